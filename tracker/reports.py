import asyncio
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List

from tracker.aggregator import Aggregator
from tracker.domain import MonthlySummary, Transaction, ViewSelection


def trailing_months(end: date, count: int) -> List[date]:
    """First-of-month dates for the ``count`` months ending with ``end``'s month, oldest first."""
    months = []
    y, m = end.year, end.month
    for _ in range(count):
        months.append(date(y, m, 1))
        y, m = (y - 1, 12) if m == 1 else (y, m - 1)
    return months[::-1]


async def monthly_overview(
    aggregator: Aggregator,
    snapshot: tuple[Transaction, ...],
    months: Iterable[date],
    selection: ViewSelection,
) -> Dict[date, MonthlySummary]:
    """Monthly income/expense totals for several months at once.

    All months are derived from the same snapshot, so a mutation committed
    while the report runs cannot mix old and new data. Each month's
    aggregation is a synchronous call.
    """
    snapshot = tuple(snapshot)

    async def month_total(month: date) -> tuple[date, MonthlySummary]:
        await asyncio.sleep(0)  # cooperate
        sel = replace(selection, month=month.replace(day=1), day=None)
        return month, aggregator.recompute(snapshot, sel).monthly_summary

    results = await asyncio.gather(*(month_total(m) for m in months))
    return {k: v for k, v in results}

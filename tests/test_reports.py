import asyncio
from datetime import date
from decimal import Decimal

import pytest

from tracker.aggregator import Aggregator
from tracker.domain import Transaction, ViewSelection
from tracker.reports import monthly_overview, trailing_months


def make_tx(id, type_, amount, d, wallet="w1"):
    return Transaction(id=id, type=type_, amount=Decimal(amount), date=d, wallet_id=wallet)


TRANS = (
    make_tx("t1", "expense", "100", date(2025, 1, 2)),
    make_tx("t2", "expense", "200.50", date(2025, 1, 15)),
    make_tx("t3", "expense", "50", date(2025, 2, 5), "w2"),
    make_tx("t4", "income", "300", date(2025, 1, 20)),
)


def test_trailing_months_crosses_year_boundary():
    assert trailing_months(date(2025, 2, 14), 4) == [
        date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1), date(2025, 2, 1),
    ]


@pytest.mark.asyncio
async def test_monthly_overview_per_month_totals():
    months = [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)]
    res = await monthly_overview(Aggregator(), TRANS, months, ViewSelection(month=date(2025, 1, 1)))

    assert res[date(2025, 1, 1)].expense == Decimal("300.50")
    assert res[date(2025, 1, 1)].income == Decimal("300")
    assert res[date(2025, 2, 1)].expense == Decimal("50")
    assert res[date(2025, 3, 1)].expense == 0


@pytest.mark.asyncio
async def test_monthly_overview_respects_wallet_and_ignores_day():
    view = ViewSelection(month=date(2025, 1, 1), day=date(2025, 1, 2), wallet_id="w2")
    res = await monthly_overview(Aggregator(), TRANS, [date(2025, 1, 1), date(2025, 2, 1)], view)
    assert res[date(2025, 1, 1)].expense == 0
    assert res[date(2025, 2, 1)].expense == Decimal("50")


def test_monthly_overview_with_asyncio_run():
    months = trailing_months(date(2025, 2, 1), 2)
    res = asyncio.run(monthly_overview(Aggregator(), TRANS, months, ViewSelection(month=date(2025, 2, 1))))
    assert list(res) == months

from dataclasses import replace
from datetime import date
from typing import Optional

from tracker.domain import ViewSelection
from tracker.exceptions import ValidationError


def for_month(year: int, month: int, wallet_id: Optional[str] = None) -> ViewSelection:
    return ViewSelection(month=date(year, month, 1), wallet_id=wallet_id)


def for_date(d: date) -> ViewSelection:
    return ViewSelection(month=d.replace(day=1))


def contains(selection: ViewSelection, d: date) -> bool:
    return d.year == selection.month.year and d.month == selection.month.month


def with_month(selection: ViewSelection, month: date) -> ViewSelection:
    """Switch month; the day filter belongs to the old month and is cleared."""
    return replace(selection, month=month.replace(day=1), day=None)


def with_day(selection: ViewSelection, day: Optional[date]) -> ViewSelection:
    if day is not None and not contains(selection, day):
        raise ValidationError(
            "Day filter must fall inside the active month",
            details={"day": day.isoformat(), "month": f"{selection.month:%Y-%m}"},
        )
    return replace(selection, day=day)


def with_wallet(selection: ViewSelection, wallet_id: Optional[str]) -> ViewSelection:
    return replace(selection, wallet_id=wallet_id)


def next_month(selection: ViewSelection) -> ViewSelection:
    m = selection.month
    return with_month(selection, date(m.year + (m.month == 12), m.month % 12 + 1, 1))


def previous_month(selection: ViewSelection) -> ViewSelection:
    m = selection.month
    if m.month == 1:
        return with_month(selection, date(m.year - 1, 12, 1))
    return with_month(selection, date(m.year, m.month - 1, 1))

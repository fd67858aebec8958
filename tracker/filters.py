from datetime import date
from typing import Callable, Iterable, Optional

from tracker.domain import Transaction

Predicate = Callable[[Transaction], bool]


def iter_transactions(trans: Iterable[Transaction], *preds: Predicate) -> Iterable[Transaction]:
    for t in trans:
        if all(pred(t) for pred in preds):
            yield t


def by_month(month: date) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.date.year == month.year and t.date.month == month.month

    return _filter


def by_day(day: date) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.date == day

    return _filter


def by_wallet(wallet_id: Optional[str]) -> Predicate:
    # None means "all wallets"
    def _filter(t: Transaction) -> bool:
        return wallet_id is None or t.wallet_id == wallet_id

    return _filter


def by_type(type_: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type == type_

    return _filter


def by_category(cat_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category_id is not None and t.category_id == cat_id

    return _filter

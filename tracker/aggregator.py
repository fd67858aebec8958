"""
Derived views over a ledger snapshot.

Everything here is a pure function of ``(snapshot, selection)``. The
``Aggregator`` memoizes on exactly those inputs; snapshots are immutable
tuples of frozen records, so any committed mutation produces a new cache
key and a stale result can never be returned.
"""

import logging
from collections import defaultdict
from datetime import date
from functools import lru_cache, partial
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from tracker.domain import (
    EXPENSE, INCOME, Aggregates, DailySummary, MonthlySummary, Transaction, ViewSelection,
    Wallet, WalletBalance,
)
from tracker.filters import by_day, by_month, by_type, by_wallet, iter_transactions
from tracker.money import ZERO, total

logger = logging.getLogger(__name__)


def _sum_of(trans: Iterable[Transaction], type_: str):
    return total(t.amount for t in iter_transactions(trans, by_type(type_)))


def month_transactions(trans: Iterable[Transaction], selection: ViewSelection) -> tuple[Transaction, ...]:
    """Transactions in the selected month and wallet. The day filter is not applied."""
    return tuple(iter_transactions(trans, by_month(selection.month), by_wallet(selection.wallet_id)))


def daily_summaries(trans: Iterable[Transaction]) -> tuple[DailySummary, ...]:
    by_date: Dict[date, List[Transaction]] = defaultdict(list)
    for t in trans:
        by_date[t.date].append(t)

    summaries = []
    for day in sorted(by_date):
        # stable sort: input order wins when sequence numbers are equal
        items = tuple(sorted(by_date[day], key=lambda t: t.created_seq))
        summaries.append(DailySummary(
            date=day,
            transactions=items,
            income=_sum_of(items, INCOME),
            expense=_sum_of(items, EXPENSE),
        ))
    return tuple(summaries)


def monthly_summary(trans: Iterable[Transaction]) -> MonthlySummary:
    trans = tuple(trans)
    return MonthlySummary(income=_sum_of(trans, INCOME), expense=_sum_of(trans, EXPENSE))


def wallet_balances(trans: Iterable[Transaction], wallets: Iterable[Wallet] = ()) -> Mapping[str, WalletBalance]:
    """All-time balance per wallet: income minus expense over the full history."""
    balances = {w.id: ZERO for w in wallets}
    for t in trans:
        delta = t.amount if t.type == INCOME else -t.amount
        balances[t.wallet_id] = balances.get(t.wallet_id, ZERO) + delta
    return MappingProxyType({wid: WalletBalance(wallet_id=wid, balance=b) for wid, b in balances.items()})


def aggregate(
    snapshot: tuple[Transaction, ...],
    selection: ViewSelection,
    wallets: tuple[Wallet, ...] = (),
) -> Aggregates:
    in_month = month_transactions(snapshot, selection)
    shown = in_month
    if selection.day is not None:
        shown = tuple(iter_transactions(in_month, by_day(selection.day)))

    return Aggregates(
        selection=selection,
        daily_summaries=daily_summaries(shown),
        monthly_summary=monthly_summary(in_month),
        wallet_balances=wallet_balances(snapshot, wallets),
        month_transactions=in_month,
    )


class Aggregator:
    """Memoizing front for :func:`aggregate`.

    Equivalent to calling ``aggregate`` from scratch: results are keyed on
    the full snapshot, and ``invalidate`` drops everything on each ledger
    mutation so memory is not held for superseded snapshots.
    """

    def __init__(self, wallets: Iterable[Wallet] = (), cache_size: int = 16):
        self.wallets = tuple(wallets)
        self._cached = lru_cache(maxsize=cache_size)(partial(aggregate, wallets=self.wallets))

    def recompute(self, snapshot: tuple[Transaction, ...], selection: ViewSelection) -> Aggregates:
        result = self._cached(tuple(snapshot), selection)
        logger.debug(f"Aggregates for {selection.month:%Y-%m}: {self._cached.cache_info()}")
        return result

    def invalidate(self, event=None) -> None:
        self._cached.cache_clear()

    def cache_info(self):
        return self._cached.cache_info()

"""
Transaction ledger.

The ledger is the only owner of transaction records. Every mutation is
validated in full before anything is changed, so a rejected call leaves the
ledger exactly as it was. Committed mutations are announced on the ledger's
event bus once the new state is in place.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from tracker.domain import Category, Transaction, Wallet
from tracker.events import EventBus, TRANSACTION_ADDED, TRANSACTION_DELETED, TRANSACTION_UPDATED
from tracker.exceptions import NotFoundError, ValidationError
from tracker.functional import validate_transaction
from tracker.money import to_amount

logger = logging.getLogger(__name__)

DRAFT_FIELDS = ("type", "amount", "date", "wallet_id", "category_id", "note")
REQUIRED_FIELDS = ("type", "amount", "date", "wallet_id")


def _coerce_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as e:
            raise ValidationError("Invalid transaction date", details={"date": value}, original_error=e) from e
    raise ValidationError("Invalid transaction date", details={"date": value})


def _normalize(t: Transaction) -> Transaction:
    """Coerce amount and date to their canonical types."""
    try:
        amount = to_amount(t.amount)
    except ValueError as e:
        raise ValidationError(str(e), details={"error": "invalid_amount"}, original_error=e) from e
    return replace(t, amount=amount, date=_coerce_date(t.date), note=t.note or "")


class Ledger:
    """
    Authoritative, ordered set of transactions.

    Args:
        categories: Category directory used for kind checks
        wallets: Wallet directory; when empty, wallet ids are not checked
        bus: Event bus mutations are published on (a private one by default)
        id_factory: Callable returning fresh transaction ids
    """

    def __init__(
        self,
        categories: Iterable[Category] = (),
        wallets: Iterable[Wallet] = (),
        bus: Optional[EventBus] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.categories: tuple[Category, ...] = tuple(categories)
        self.wallets: tuple[Wallet, ...] = tuple(wallets)
        self.bus = bus if bus is not None else EventBus()
        self._id_factory = id_factory or (lambda: uuid4().hex)
        self._records: Dict[str, Transaction] = {}
        self._next_seq = 1
        self._version = 0
        self._recent_ids: List[str] = []
        self.last_added_type: Optional[str] = None

    @property
    def version(self) -> int:
        return self._version

    @property
    def recent_ids(self) -> tuple[str, ...]:
        """Ids added during this session, oldest first."""
        return tuple(self._recent_ids)

    def clear_recent(self) -> None:
        self._recent_ids.clear()
        self.last_added_type = None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._records

    def snapshot(self) -> tuple[Transaction, ...]:
        return tuple(self._records.values())

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self._records.get(transaction_id)

    def _validate(self, t: Transaction, require_known: bool = True) -> Transaction:
        t = _normalize(t)
        result = validate_transaction(t, self.categories, self.wallets, require_known=require_known)
        if result.is_left():
            error = result.get_error()
            raise ValidationError(
                error["message"],
                details={k: v for k, v in error.items() if k != "message"},
            )
        return t

    def load(self, transactions: Iterable[Transaction]) -> int:
        """Replace the ledger content with records handed over by storage.

        All records are validated before any is stored. Dangling category or
        wallet references are kept and logged.
        """
        staged: Dict[str, Transaction] = {}
        seq = 1
        for t in transactions:
            if t.id in staged:
                raise ValidationError("Duplicate transaction id in stored data", details={"id": t.id})
            t = self._validate(t, require_known=False)
            if self.categories and t.category_id is not None \
                    and not any(c.id == t.category_id for c in self.categories):
                logger.warning(f"Transaction {t.id} references unknown category {t.category_id}")
            if self.wallets and not any(w.id == t.wallet_id for w in self.wallets):
                logger.warning(f"Transaction {t.id} references unknown wallet {t.wallet_id}")
            staged[t.id] = replace(t, created_seq=seq)
            seq += 1

        self._records = staged
        self._next_seq = seq
        self._version += 1
        self._recent_ids.clear()
        logger.info(f"Loaded {len(staged)} transactions")
        return len(staged)

    def add(self, draft: Mapping[str, Any]) -> str:
        unknown = set(draft) - set(DRAFT_FIELDS)
        if unknown:
            raise ValidationError("Unknown transaction fields", details={"fields": sorted(unknown)})
        missing = [f for f in REQUIRED_FIELDS if draft.get(f) is None]
        if missing:
            raise ValidationError("Missing transaction fields", details={"fields": missing})

        transaction_id = self._id_factory()
        while transaction_id in self._records:
            transaction_id = self._id_factory()

        t = self._validate(Transaction(
            id=transaction_id,
            type=draft["type"],
            amount=draft["amount"],
            date=draft["date"],
            wallet_id=draft["wallet_id"],
            category_id=draft.get("category_id"),
            note=draft.get("note") or "",
            created_seq=self._next_seq,
        ))

        self._records[t.id] = t
        self._next_seq += 1
        self._version += 1
        self._recent_ids.append(t.id)
        self.last_added_type = t.type
        logger.info(f"Added {t.type} transaction {t.id}: {t.amount} on {t.date.isoformat()}")
        self.bus.publish(TRANSACTION_ADDED, {"transaction": t})
        return t.id

    def update(self, transaction_id: str, patch: Mapping[str, Any]) -> Transaction:
        current = self._records.get(transaction_id)
        if current is None:
            raise NotFoundError("Transaction not found", details={"id": transaction_id})

        unknown = set(patch) - set(DRAFT_FIELDS)
        if unknown:
            raise ValidationError("Fields cannot be patched", details={"fields": sorted(unknown)})
        missing = [f for f in REQUIRED_FIELDS if f in patch and patch[f] is None]
        if missing:
            raise ValidationError("Required fields cannot be cleared", details={"fields": missing})

        updated = self._validate(replace(current, **dict(patch)))

        self._records[transaction_id] = updated
        self._version += 1
        logger.info(f"Updated transaction {transaction_id}")
        self.bus.publish(TRANSACTION_UPDATED, {"transaction": updated, "previous": current})
        return updated

    def delete(self, transaction_id: str) -> None:
        removed = self._records.pop(transaction_id, None)
        if removed is None:
            raise NotFoundError("Transaction not found", details={"id": transaction_id})

        if transaction_id in self._recent_ids:
            self._recent_ids.remove(transaction_id)
        self._version += 1
        logger.info(f"Deleted transaction {transaction_id}")
        self.bus.publish(TRANSACTION_DELETED, {"transaction": removed})

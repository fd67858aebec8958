"""
Storage collaborators.

The engine only needs ``load_all()`` once at start-up plus a ``save`` /
``remove`` call for each committed mutation; ``attach`` wires those calls to
a ledger's event bus. ``JsonFileStorage`` keeps the whole document in one
JSON file shaped like the seed file (wallets, categories, transactions).
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Protocol, Tuple

from tracker.domain import Category, Transaction, Wallet
from tracker.events import Event, EventBus, TRANSACTION_ADDED, TRANSACTION_DELETED, TRANSACTION_UPDATED
from tracker.exceptions import StorageError
from tracker.money import to_amount

logger = logging.getLogger(__name__)


class Storage(Protocol):
    def load_all(self) -> List[Transaction]: ...

    def save(self, t: Transaction) -> None: ...

    def remove(self, transaction_id: str) -> None: ...


def attach(storage: Storage, bus: EventBus) -> None:
    """Persist every committed mutation published on ``bus``.

    The ledger has already committed by the time an event is published, so a
    failed write is logged and never reported back as a failed mutation.
    """

    def _on_saved(event: Event) -> None:
        t = event.payload["transaction"]
        try:
            storage.save(t)
        except StorageError as e:
            logger.error(f"Failed to persist transaction {t.id} after {event.name}: {e}", exc_info=True)

    def _on_deleted(event: Event) -> None:
        tid = event.payload["transaction"].id
        try:
            storage.remove(tid)
        except StorageError as e:
            logger.error(f"Failed to remove transaction {tid} from storage: {e}", exc_info=True)

    bus.subscribe(TRANSACTION_ADDED, _on_saved)
    bus.subscribe(TRANSACTION_UPDATED, _on_saved)
    bus.subscribe(TRANSACTION_DELETED, _on_deleted)


def transaction_to_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "type": t.type,
        "amount": str(t.amount),
        "date": t.date.isoformat(),
        "wallet_id": t.wallet_id,
        "category_id": t.category_id,
        "note": t.note,
    }


def transaction_from_dict(d: dict) -> Transaction:
    try:
        return Transaction(
            id=str(d["id"]),
            type=d["type"],
            amount=to_amount(d["amount"]),
            date=date.fromisoformat(d["date"][:10]),
            wallet_id=d["wallet_id"],
            category_id=d.get("category_id"),
            note=d.get("note") or "",
        )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError("Malformed transaction record", details={"record": d}, original_error=e) from e


class InMemoryStorage:
    """Keeps records in a dict; used by tests and as the default collaborator."""

    def __init__(self, transactions=()):
        self.records: Dict[str, Transaction] = {t.id: t for t in transactions}
        self.writes = 0

    def load_all(self) -> List[Transaction]:
        return list(self.records.values())

    def save(self, t: Transaction) -> None:
        self.records[t.id] = t
        self.writes += 1

    def remove(self, transaction_id: str) -> None:
        self.records.pop(transaction_id, None)
        self.writes += 1


class JsonFileStorage:

    def __init__(self, path):
        self.path = Path(path)
        self._doc = None

    def _read(self) -> dict:
        if self._doc is not None:
            return self._doc
        if not self.path.exists():
            logger.info(f"No data file at {self.path}, starting empty")
            self._doc = {"wallets": [], "categories": [], "transactions": []}
            return self._doc
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                self._doc = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {self.path}: {e}", exc_info=True)
            raise StorageError("Cannot read data file", details={"path": str(self.path)}, original_error=e) from e
        self._doc.setdefault("transactions", [])
        return self._doc

    def _write(self) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._doc, f, ensure_ascii=False, indent=2)
            tmp.replace(self.path)
        except OSError as e:
            logger.error(f"Error writing {self.path}: {e}", exc_info=True)
            raise StorageError("Cannot write data file", details={"path": str(self.path)}, original_error=e) from e

    def load_directory(self) -> Tuple[Tuple[Wallet, ...], Tuple[Category, ...]]:
        doc = self._read()
        try:
            wallets = tuple(Wallet(**w) for w in doc.get("wallets", []))
            categories = tuple(Category(**c) for c in doc.get("categories", []))
        except TypeError as e:
            raise StorageError("Malformed wallet or category record", details={"path": str(self.path)},
                               original_error=e) from e
        return wallets, categories

    def load_all(self) -> List[Transaction]:
        return [transaction_from_dict(d) for d in self._read()["transactions"]]

    def save(self, t: Transaction) -> None:
        records = self._read()["transactions"]
        record = transaction_to_dict(t)
        for i, existing in enumerate(records):
            if existing.get("id") == t.id:
                records[i] = record
                break
        else:
            records.append(record)
        self._write()

    def remove(self, transaction_id: str) -> None:
        doc = self._read()
        doc["transactions"] = [r for r in doc["transactions"] if r.get("id") != transaction_id]
        self._write()

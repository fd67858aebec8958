import logging
from typing import Any, Iterable, Mapping, Optional, Protocol

from tracker.aggregator import Aggregator
from tracker.alerts import evaluate_alerts
from tracker.domain import Aggregates, AlertThresholdConfig, Category, Dashboard, Transaction, ViewSelection, Wallet
from tracker.events import MUTATION_EVENTS, EventBus
from tracker.ledger import Ledger
from tracker.settings import StaticSettings
from tracker.storage import InMemoryStorage, Storage, attach

logger = logging.getLogger(__name__)


class Settings(Protocol):
    def snapshot(self) -> AlertThresholdConfig: ...


class TrackerService:
    """Facade over ledger, aggregator and alert evaluator.

    storage: collaborator providing load_all() and receiving every committed mutation
    settings: collaborator providing a fresh AlertThresholdConfig snapshot per evaluation
    categories / wallets: directories used for validation, labels and zero balances
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        settings: Optional[Settings] = None,
        categories: Iterable[Category] = (),
        wallets: Iterable[Wallet] = (),
        id_factory=None,
    ):
        self.storage = storage if storage is not None else InMemoryStorage()
        self.settings = settings if settings is not None else StaticSettings()
        self.categories = tuple(categories)
        self.wallets = tuple(wallets)

        self.bus = EventBus()
        self.ledger = Ledger(self.categories, self.wallets, bus=self.bus, id_factory=id_factory)
        self.aggregator = Aggregator(self.wallets)

        # cache first, so nothing downstream of an event can see old aggregates
        self.bus.subscribe_all(MUTATION_EVENTS, self.aggregator.invalidate)
        attach(self.storage, self.bus)

    def start(self) -> int:
        count = self.ledger.load(self.storage.load_all())
        self.aggregator.invalidate()
        logger.info(f"Tracker started with {count} transactions")
        return count

    def add(self, draft: Mapping[str, Any]) -> str:
        return self.ledger.add(draft)

    def update(self, transaction_id: str, patch: Mapping[str, Any]) -> Transaction:
        return self.ledger.update(transaction_id, patch)

    def delete(self, transaction_id: str) -> None:
        self.ledger.delete(transaction_id)

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        return self.ledger.get_by_id(transaction_id)

    def aggregates(self, selection: ViewSelection) -> Aggregates:
        return self.aggregator.recompute(self.ledger.snapshot(), selection)

    def dashboard(self, selection: ViewSelection) -> Dashboard:
        aggregates = self.aggregates(selection)
        alerts = evaluate_alerts(
            aggregates.monthly_summary.expense,
            self.settings.snapshot(),
            aggregates.month_transactions,
            self.categories,
        )
        logger.debug(f"{len(alerts)} alerts for {selection.month:%Y-%m}")
        return Dashboard(aggregates=aggregates, alerts=tuple(alerts))

from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'Event', 'EventBus',
    'TRANSACTION_ADDED', 'TRANSACTION_UPDATED', 'TRANSACTION_DELETED', 'MUTATION_EVENTS',
]

TRANSACTION_ADDED = "TRANSACTION_ADDED"
TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
TRANSACTION_DELETED = "TRANSACTION_DELETED"
MUTATION_EVENTS = (TRANSACTION_ADDED, TRANSACTION_UPDATED, TRANSACTION_DELETED)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event], object]


class EventBus:
    """Synchronous publish/subscribe; handlers run in subscription order."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def subscribe_all(self, names, handler: Handler) -> None:
        for name in names:
            self.subscribe(name, handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict) -> List[object]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event) for handler in list(handlers)]

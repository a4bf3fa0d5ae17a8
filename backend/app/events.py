import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, List, NamedTuple

__all__ = ['event_bus', 'DATA_CHANGED', 'Event', 'EventBus']

logger = logging.getLogger(__name__)

DATA_CHANGED = "data_changed"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    """Fire-and-forget broadcast for observers that re-fetch on change.

    Delivery is best effort: a failing handler is logged and skipped. A
    per-user revision counter lets polling clients detect missed events.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event], None]]] = {}
        self._revisions: Dict[str, int] = {}
        self._lock = Lock()

    def subscribe(self, name: str, handler: Callable[[Event], None]) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        self._subscribers[name].append(handler)

    def unsubscribe(self, name: str, handler: Callable[[Event], None]) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)

    def publish(self, name: str, payload: dict) -> Event:
        event = Event(
            name=name,
            ts=datetime.now(timezone.utc).isoformat(),
            payload=payload
        )

        user_id = payload.get("user_id")
        if user_id:
            with self._lock:
                self._revisions[user_id] = self._revisions.get(user_id, 0) + 1

        for handler in list(self._subscribers.get(name, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("event handler failed for %s", name)
        return event

    def revision(self, user_id: str) -> int:
        with self._lock:
            return self._revisions.get(user_id, 0)

    def reset(self) -> None:
        with self._lock:
            self._subscribers.clear()
            self._revisions.clear()


event_bus = EventBus()


def notify_data_changed(user_ids, source: str) -> None:
    """Broadcast a data change to every affected user"""
    for user_id in sorted(set(u for u in user_ids if u)):
        event_bus.publish(DATA_CHANGED, {"user_id": user_id, "source": source})

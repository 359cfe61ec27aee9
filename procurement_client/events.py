# procurement_client/events.py
"""
Typed publish/subscribe for status-change notifications.

Producers (receipt confirmations, status updates) publish StatusChanged
events; screens subscribe to the topics they care about and re-fetch.
Topic patterns: exact match, "*" for everything, or "prefix.*" for a
whole family of topics.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Keep only the last N published events
MAX_LOG_SIZE = 100

# Topics published by the services
RECEIPT_CONFIRMED = "receipt.confirmed"
MRF_RECEIPT_CONFIRMED = "receipt.mrf_confirmed"
NOTIFICATION_CONFIRMED = "receipt.notification_confirmed"
PO_STATUS_UPDATED = "purchase_order.status_updated"
BACKORDER_STATUS_UPDATED = "backorder.status_updated"
MATERIAL_IN_UPDATED = "backorder.material_in_updated"


@dataclass(frozen=True)
class StatusChanged:
    """A backend record moved to a new status."""
    topic: str
    key: str                    # umi / mrf_no / po_number of the record
    status: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "key": self.key,
            "status": self.status,
            "payload": dict(self.payload),
            "created_at": self.created_at.isoformat(),
        }


Handler = Callable[[StatusChanged], None]


def _pattern_matches(pattern: str, topic: str) -> bool:
    if pattern == "*" or pattern == topic:
        return True
    if pattern.endswith(".*"):
        return topic.startswith(pattern[:-1])
    return False


class EventBus:
    """In-process bus; handlers run synchronously in subscription order."""

    def __init__(self) -> None:
        self._handlers: List[tuple] = []
        self._log: List[StatusChanged] = []

    def subscribe(self, pattern: str, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns a function that removes it again."""
        entry = (pattern, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def publish(self, event: StatusChanged) -> int:
        """Deliver `event` to every matching handler; returns how many ran."""
        self._log.append(event)
        if len(self._log) > MAX_LOG_SIZE:
            self._log = self._log[-MAX_LOG_SIZE:]

        delivered = 0
        for pattern, handler in list(self._handlers):
            if not _pattern_matches(pattern, event.topic):
                continue
            try:
                handler(event)
                delivered += 1
            except Exception:
                # isolate subscribers from each other
                logger.exception("Event handler failed for %s", event.topic)
        logger.debug("Published %s (%s -> %s) to %d handler(s)",
                      event.topic, event.key, event.status, delivered)
        return delivered

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Most recent events first."""
        events = list(reversed(self._log))
        if limit is not None:
            events = events[:limit]
        return [e.to_dict() for e in events]

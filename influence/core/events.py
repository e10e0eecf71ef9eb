"""
Change Events — Notifications from the record store

The record store is the source of truth; it tells the index when
something moved. Subscriptions are explicit handles: whoever subscribes
keeps the Subscription and calls unsubscribe() when it detaches.

    notifier = ChangeNotifier()
    sub = notifier.subscribe(ChangeType.RECORD_UPDATED, on_update)
    ...
    sub.unsubscribe()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .records import CharacterRecord


logger = logging.getLogger(__name__)


class ChangeType(Enum):
    RECORD_UPDATED = "record_updated"      # a character sheet changed
    READY = "ready"                        # store finished loading
    VIEW_CHANGED = "view_changed"          # scene switch, tokens replaced
    INSTANCE_UPDATED = "instance_updated"  # a token was renamed


@dataclass
class ChangeEvent:
    type: ChangeType
    record: Optional[CharacterRecord] = None
    changed_paths: Tuple[str, ...] = ()
    instance_id: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def touches(self, path: str) -> bool:
        """True if `path` or anything under it changed."""
        return any(p == path or p.startswith(path + ".") for p in self.changed_paths)


Handler = Callable[[ChangeEvent], None]


class Subscription:
    """Handle for one registered handler. unsubscribe() is idempotent."""

    def __init__(self, notifier: 'ChangeNotifier', change_type: ChangeType,
                 handler: Handler, once: bool = False):
        self.notifier = notifier
        self.change_type = change_type
        self.handler = handler
        self.once = once

    @property
    def active(self) -> bool:
        return self in self.notifier._subscriptions.get(self.change_type, [])

    def unsubscribe(self):
        self.notifier._remove(self)


class ChangeNotifier:
    """
    Synchronous fan-out of change events.

    Handlers run in subscription order. A failing handler is logged and
    does not keep later handlers from running.
    """

    def __init__(self):
        self._subscriptions: Dict[ChangeType, List[Subscription]] = {}

    def subscribe(self, change_type: ChangeType, handler: Handler,
                  once: bool = False) -> Subscription:
        sub = Subscription(self, change_type, handler, once=once)
        self._subscriptions.setdefault(change_type, []).append(sub)
        return sub

    def emit(self, event: ChangeEvent):
        # Copy: handlers may subscribe/unsubscribe while we iterate
        for sub in list(self._subscriptions.get(event.type, [])):
            if sub.once:
                sub.unsubscribe()
            try:
                sub.handler(event)
            except Exception:
                logger.exception(f"Change handler failed for {event.type.value}")

    def count(self, change_type: Optional[ChangeType] = None) -> int:
        if change_type is not None:
            return len(self._subscriptions.get(change_type, []))
        return sum(len(subs) for subs in self._subscriptions.values())

    def _remove(self, sub: Subscription):
        subs = self._subscriptions.get(sub.change_type, [])
        if sub in subs:
            subs.remove(sub)


def record_updated(record: CharacterRecord, *paths: str) -> ChangeEvent:
    return ChangeEvent(type=ChangeType.RECORD_UPDATED, record=record, changed_paths=tuple(paths))


def ready() -> ChangeEvent:
    return ChangeEvent(type=ChangeType.READY)


def view_changed() -> ChangeEvent:
    return ChangeEvent(type=ChangeType.VIEW_CHANGED)


def instance_updated(instance_id: str) -> ChangeEvent:
    return ChangeEvent(type=ChangeType.INSTANCE_UPDATED, instance_id=instance_id)

"""
Change Listener — Glue between store notifications and the index

    READY             -> rebuild
    VIEW_CHANGED      -> drop every cached token key
    INSTANCE_UPDATED  -> drop that token's cached key
    RECORD_UPDATED    -> (influences changed) sync pair, then rebuild
                         (name changed) rebuild

Notifications for records held by the SyncGuard are the echo of the
synchronizer's own writes; they still rebuild but never start a sync.
"""

import asyncio
import logging
from typing import List, Set, TYPE_CHECKING

from ..core.events import ChangeEvent, ChangeNotifier, ChangeType, Subscription
from ..core.records import INFLUENCES_PATH, NAME_PATH, REAL_NAME_PATH

if TYPE_CHECKING:
    from .index import InfluenceIndex


logger = logging.getLogger(__name__)


class ChangeListener:

    def __init__(self, index: 'InfluenceIndex', notifier: ChangeNotifier):
        self.index = index
        self.notifier = notifier
        self._subscriptions: List[Subscription] = []
        self._pending: Set[asyncio.Task] = set()

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    def attach(self):
        if self.attached:
            return
        self._subscriptions = [
            self.notifier.subscribe(ChangeType.READY, self._on_ready, once=True),
            self.notifier.subscribe(ChangeType.VIEW_CHANGED, self._on_view_changed),
            self.notifier.subscribe(ChangeType.INSTANCE_UPDATED, self._on_instance_updated),
            self.notifier.subscribe(ChangeType.RECORD_UPDATED, self._on_record_updated),
        ]

    def detach(self):
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions = []

    async def drain(self):
        """Wait for syncs started by notifications, including ones they trigger."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _on_ready(self, event: ChangeEvent):
        self.index.rebuild()

    def _on_view_changed(self, event: ChangeEvent):
        self.index.invalidate_all()

    def _on_instance_updated(self, event: ChangeEvent):
        self.index.invalidate(event.instance_id)

    def _on_record_updated(self, event: ChangeEvent):
        record = event.record
        if record is None:
            return

        influences_changed = event.touches(INFLUENCES_PATH)
        name_changed = event.touches(NAME_PATH) or event.touches(REAL_NAME_PATH)
        if not (influences_changed or name_changed):
            return

        if (influences_changed and self.index.config.symmetry
                and not self.index.guard.is_held(record.id)):
            self._start_sync(record)

        self.index.rebuild()

    def _start_sync(self, record):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous host: finish the sync before returning
            asyncio.run(self.index.sync(record))
            return

        task = loop.create_task(self.index.sync(record))
        self._pending.add(task)
        task.add_done_callback(self._settled)

    def _settled(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            logger.error(f"Influence sync failed: {err}")

"""
Influence Index — The service callers hold

One explicitly constructed object owns the whole index: the edge store,
the builder, the query engine and its key cache, the sync guard and the
synchronizer. Callers get a reference to it; nothing is module-global.

    store = MemoryRecordStore(records)
    index = InfluenceIndex(store, notifier=store.notifier)
    index.init()
    index.has_edge_between_instances(token_a, token_b)
    ...
    index.close()
"""

import logging
from typing import Any, Optional

from ..config import Config
from ..core.events import ChangeNotifier
from ..core.graph import EdgeStore, GraphBuilder
from ..core.names import candidate_names, composite_key, normalize
from ..core.query import Direction, QueryEngine
from ..core.sync import SymmetrySynchronizer, SyncGuard, SyncReport
from .listener import ChangeListener
from .store import RecordStore


logger = logging.getLogger(__name__)


class InfluenceIndex:
    """
    Influence graph over a record store.

    Lifecycle:
    - init(): attach to change notifications (if a notifier was given)
      and build the graph once
    - close(): detach; the graph stays readable but stops updating
    """

    def __init__(self, store: RecordStore, notifier: Optional[ChangeNotifier] = None,
                 config: Optional[Config] = None):
        self.store = store
        self.config = config or Config()
        self.edges = EdgeStore()
        self.builder = GraphBuilder(store, self.edges, self.config.character_type)
        self.query = QueryEngine(self.edges)
        self.guard = SyncGuard()
        self.synchronizer = SymmetrySynchronizer(
            store, self.builder, self.guard, self.config.character_type
        )
        self.listener = ChangeListener(self, notifier) if notifier is not None else None

    def init(self) -> 'InfluenceIndex':
        if self.listener is not None:
            self.listener.attach()
        version = self.rebuild()
        logger.debug(f"Influence index ready (v{version}, listening={self.listener is not None})")
        return self

    def close(self):
        if self.listener is not None:
            self.listener.detach()

    @property
    def version(self) -> int:
        return self.edges.version

    # -------------------------------------------------------------------------
    # Graph
    # -------------------------------------------------------------------------

    def rebuild(self) -> int:
        return self.builder.rebuild()

    def has_edge(self, a_key: str, b_key: str) -> bool:
        return self.query.has_edge(a_key, b_key)

    def has_influence(self, source: Any, target: Any) -> bool:
        """Does `source` hold Influence over `target`? Records, not tokens."""
        return self.query.has_edge(composite_key(source), composite_key(target))

    def influence_between(self, source: Any, target: Any) -> Direction:
        return self.query.relation(composite_key(source), composite_key(target))

    # -------------------------------------------------------------------------
    # Presented instances
    # -------------------------------------------------------------------------

    def key_for(self, instance: Any) -> str:
        return self.query.key_for(instance)

    def invalidate(self, instance_id: str):
        self.query.invalidate(instance_id)

    def invalidate_all(self):
        self.query.invalidate_all()

    def has_edge_between_instances(self, a: Any, b: Any) -> bool:
        return self.query.has_edge_between_instances(a, b)

    def relation_between(self, a: Any, b: Any) -> Direction:
        return self.query.relation_between(a, b)

    # -------------------------------------------------------------------------
    # Symmetry
    # -------------------------------------------------------------------------

    async def sync(self, record: Any) -> SyncReport:
        return await self.synchronizer.sync(record)

    def find(self, name: str) -> Optional[Any]:
        """Character record for a typed name: exact name match first, then key containment."""
        n = normalize(name)
        if not n:
            return None
        records = [
            r for r in self.store.list_character_records()
            if r.type == self.config.character_type
        ]
        for record in records:
            if any(normalize(c) == n for c in candidate_names(record)):
                return record
        return next((r for r in records if n in composite_key(r)), None)

"""
Core — Influence graph data layer

Contains the foundational pieces:
- Names: fuzzy normalization and composite keys
- Records: character sheets and relationship entries
- Graph: in-memory edge projection, rebuilt from all records
- Query: substring edge tests and per-token key cache
- Events: change notifications with explicit subscriptions
- Sync: symmetry between paired character sheets
"""

from .names import normalize, candidate_names, composite_key, KEY_SEPARATOR
from .records import (
    CharacterRecord, RelationshipEntry, PresentedInstance,
    parse_entries, copy_entries, new_entry_id,
    CHARACTER_TYPE, INFLUENCES_PATH, NAME_PATH, REAL_NAME_PATH,
)
from .graph import EdgeStore, GraphBuilder
from .query import QueryEngine, Direction, CachedKey, CacheStats
from .events import (
    ChangeType, ChangeEvent, ChangeNotifier, Subscription,
    record_updated, ready, view_changed, instance_updated,
)
from .sync import SyncGuard, SyncReport, SymmetrySynchronizer

__all__ = [
    # Names
    "normalize", "candidate_names", "composite_key", "KEY_SEPARATOR",
    # Records
    "CharacterRecord", "RelationshipEntry", "PresentedInstance",
    "parse_entries", "copy_entries", "new_entry_id",
    "CHARACTER_TYPE", "INFLUENCES_PATH", "NAME_PATH", "REAL_NAME_PATH",
    # Graph
    "EdgeStore", "GraphBuilder",
    # Query
    "QueryEngine", "Direction", "CachedKey", "CacheStats",
    # Events
    "ChangeType", "ChangeEvent", "ChangeNotifier", "Subscription",
    "record_updated", "ready", "view_changed", "instance_updated",
    # Sync
    "SyncGuard", "SyncReport", "SymmetrySynchronizer",
]

"""
Influence — Who holds Influence over whom

Builds a directed influence graph from hand-typed names on character
sheets and answers "does A have Influence over B?" from display names
alone. Optionally keeps paired sheets symmetric.

Usage:
    store = MemoryRecordStore(records)
    index = InfluenceIndex(store, notifier=store.notifier).init()
    index.has_edge(composite_key(beacon), normalize("Legacy"))
    await index.sync(beacon)
"""

__version__ = "0.1.0"

# Core layer (data)
from .core.names import normalize, candidate_names, composite_key
from .core.records import CharacterRecord, RelationshipEntry, PresentedInstance
from .core.graph import EdgeStore, GraphBuilder
from .core.query import QueryEngine, Direction
from .core.events import ChangeType, ChangeEvent, ChangeNotifier, Subscription
from .core.sync import SyncGuard, SyncReport, SymmetrySynchronizer

# Services layer
from .services.store import RecordStore, MemoryRecordStore, JsonRecordStore, StoreError
from .services.listener import ChangeListener
from .services.index import InfluenceIndex

# Tracking layer
from .tracking.tally import InfluenceTally, tally, influence_given, influence_held

# Config (stays at root)
from .config import Config, ConfigManager, get_config, IndexConfig, LoggingConfig

__all__ = [
    # Core
    'normalize', 'candidate_names', 'composite_key',
    'CharacterRecord', 'RelationshipEntry', 'PresentedInstance',
    'EdgeStore', 'GraphBuilder',
    'QueryEngine', 'Direction',
    'ChangeType', 'ChangeEvent', 'ChangeNotifier', 'Subscription',
    'SyncGuard', 'SyncReport', 'SymmetrySynchronizer',
    # Services
    'RecordStore', 'MemoryRecordStore', 'JsonRecordStore', 'StoreError',
    'ChangeListener', 'InfluenceIndex',
    # Tracking
    'InfluenceTally', 'tally', 'influence_given', 'influence_held',
    # Config
    'Config', 'ConfigManager', 'get_config', 'IndexConfig', 'LoggingConfig',
]

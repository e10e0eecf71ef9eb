"""
Services — Integration layer

- Store: record store interface plus memory and JSON implementations
- Listener: change notifications -> rebuild / sync / cache invalidation
- Index: the InfluenceIndex service that owns everything
"""

from .store import RecordStore, MemoryRecordStore, JsonRecordStore, StoreError
from .listener import ChangeListener
from .index import InfluenceIndex

__all__ = [
    # Store
    "RecordStore", "MemoryRecordStore", "JsonRecordStore", "StoreError",
    # Listener
    "ChangeListener",
    # Index
    "InfluenceIndex",
]

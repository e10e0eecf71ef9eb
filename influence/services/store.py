"""
Record Stores — Where character sheets live

The index never owns sheet data. It needs three things from a store:

- list_character_records(): every record, any type (the index filters)
- read_relationship_entries(record): parsed entries, never raises
- write_relationship_entries(record, entries): async, may fail

Two implementations ship with the package:
- MemoryRecordStore: in-process dict, used by tests and embedding hosts
- JsonRecordStore: same, persisted to a JSON document (used by the CLI)

Both report every mutation through a ChangeNotifier.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import orjson

from ..core.events import ChangeNotifier, record_updated
from ..core.records import (
    CharacterRecord, RelationshipEntry, parse_entries,
    INFLUENCES_PATH, NAME_PATH, REAL_NAME_PATH,
)


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The backing data could not be loaded or saved."""


class RecordStore(ABC):
    """Abstract base for character record stores."""

    @abstractmethod
    def list_character_records(self) -> List[CharacterRecord]:
        """All records currently known to the store."""
        pass

    @abstractmethod
    def read_relationship_entries(self, record: CharacterRecord) -> List[RelationshipEntry]:
        """
        Relationship entries of a record.

        Must not raise: missing or malformed data gives [].
        """
        pass

    @abstractmethod
    async def write_relationship_entries(self, record: CharacterRecord,
                                         entries: List[RelationshipEntry]) -> None:
        """Replace a record's relationship entries."""
        pass


class MemoryRecordStore(RecordStore):
    """
    In-memory record store.

    Writes settle on the next loop tick, then notify RECORD_UPDATED with
    the "influences" path, as a document database would.
    """

    def __init__(self, records: Optional[Iterable[CharacterRecord]] = None,
                 notifier: Optional[ChangeNotifier] = None):
        self.notifier = notifier or ChangeNotifier()
        self._records: Dict[str, CharacterRecord] = {}
        self.write_log: List[str] = []  # record ids, in write order
        for record in records or []:
            self._records[record.id] = record

    # -------------------------------------------------------------------------
    # RecordStore interface
    # -------------------------------------------------------------------------

    def list_character_records(self) -> List[CharacterRecord]:
        return list(self._records.values())

    def read_relationship_entries(self, record: CharacterRecord) -> List[RelationshipEntry]:
        if record is None:
            return []
        current = self._records.get(getattr(record, "id", None), record)
        try:
            return parse_entries(getattr(current, "influences", None))
        except Exception as e:
            logger.warning(f"Unreadable influences on {getattr(current, 'id', '?')}: {e}")
            return []

    async def write_relationship_entries(self, record: CharacterRecord,
                                         entries: List[RelationshipEntry]) -> None:
        await asyncio.sleep(0)
        self._set_influences(record.id, entries)

    # -------------------------------------------------------------------------
    # Host-side edits
    # -------------------------------------------------------------------------

    def get(self, record_id: str) -> Optional[CharacterRecord]:
        return self._records.get(record_id)

    def add(self, record: CharacterRecord) -> CharacterRecord:
        self._records[record.id] = record
        self._commit()
        self.notifier.emit(record_updated(record, NAME_PATH, INFLUENCES_PATH))
        return record

    def set_influences(self, record_id: str, entries: List[RelationshipEntry]) -> CharacterRecord:
        """A user edited a sheet's influence list."""
        return self._set_influences(record_id, entries)

    def rename(self, record_id: str, name: Optional[str] = None,
               real_name: Optional[str] = None) -> CharacterRecord:
        record = self._require(record_id)
        paths = []
        if name is not None:
            record.name = name
            paths.append(NAME_PATH)
        if real_name is not None:
            record.real_name = real_name
            paths.append(REAL_NAME_PATH)
        self._commit()
        self.notifier.emit(record_updated(record, *paths))
        return record

    def _set_influences(self, record_id: str, entries: List[RelationshipEntry]) -> CharacterRecord:
        record = self._require(record_id)
        record.influences = [e.to_dict() for e in entries]
        self.write_log.append(record_id)
        self._commit()
        self.notifier.emit(record_updated(record, INFLUENCES_PATH))
        return record

    def _require(self, record_id: str) -> CharacterRecord:
        record = self._records.get(record_id)
        if record is None:
            raise KeyError(f"Unknown record: {record_id}")
        return record

    def _commit(self):
        """Persist after a mutation. Nothing to do in memory."""
        pass


class JsonRecordStore(MemoryRecordStore):
    """
    Record store persisted to a single JSON document:

        {"characters": [{"id": ..., "name": ..., "influences": [...]}, ...]}

    A missing file is an empty cast. A file that is not such a document
    raises StoreError.
    """

    def __init__(self, path: Path, notifier: Optional[ChangeNotifier] = None):
        self.path = Path(path)
        super().__init__(self._load(), notifier=notifier)

    def _load(self) -> List[CharacterRecord]:
        if not self.path.exists():
            return []
        try:
            data = orjson.loads(self.path.read_bytes())
            return [CharacterRecord.from_dict(d) for d in data.get("characters", [])]
        except (orjson.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

    def _commit(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"characters": [r.to_dict() for r in self._records.values()]}
        self.path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))

"""
Symmetry Sync — Keep paired character sheets agreeing

If A's sheet says "I have Influence over B", B's sheet should say
"A has Influence over me", and the other way round:

    A.have_influence_over(B)  =>  B.has_influence_over(A)
    A.has_influence_over(B)   =>  B.have_influence_over(A)

Only character counterparts are touched. Writing B's sheet makes the store
notify that B changed; the SyncGuard keeps that echo from syncing B back
onto A while the write is still settling.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .names import candidate_names, composite_key, normalize
from .records import (
    CHARACTER_TYPE, CharacterRecord, RelationshipEntry, copy_entries, new_entry_id,
)

if TYPE_CHECKING:
    from .graph import GraphBuilder
    from ..services.store import RecordStore


logger = logging.getLogger(__name__)


class SyncGuard:
    """
    Suppression context for records whose sheets the synchronizer is writing.

    hold() happens before a write is issued; release_soon() after it
    settles, on the next loop tick, so change notifications fired during
    the write still see the record as held. Holds are counted: a record
    written by two overlapping syncs stays held until both release.
    """

    def __init__(self):
        self._held: Counter = Counter()

    def hold(self, record_id: str):
        self._held[record_id] += 1

    def release(self, record_id: str):
        if self._held[record_id] <= 1:
            del self._held[record_id]
        else:
            self._held[record_id] -= 1

    def release_soon(self, record_id: str):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.release(record_id)
            return
        loop.call_soon(self.release, record_id)

    def is_held(self, record_id: Optional[str]) -> bool:
        return bool(record_id) and self._held[record_id] > 0

    __contains__ = is_held

    @property
    def held(self) -> List[str]:
        return [rid for rid, n in self._held.items() if n > 0]


@dataclass
class SyncReport:
    """What one sync() call did."""
    record_id: str = ""
    counterparts: List[str] = field(default_factory=list)  # resolved, by id
    written: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)   # id -> error

    @property
    def skipped(self) -> bool:
        return not self.counterparts


@dataclass
class _Counterpart:
    record: CharacterRecord
    original: List[RelationshipEntry]
    entries: List[RelationshipEntry]

    @property
    def dirty(self) -> bool:
        return self.entries != self.original


class SymmetrySynchronizer:
    """Propagates one record's influence flags onto its counterparts' sheets."""

    def __init__(self, store: 'RecordStore', builder: 'GraphBuilder', guard: SyncGuard,
                 character_type: str = CHARACTER_TYPE):
        self.store = store
        self.builder = builder
        self.guard = guard
        self.character_type = character_type

    async def sync(self, record: Any) -> SyncReport:
        if record is None or getattr(record, "type", None) != self.character_type:
            return SyncReport()
        report = SyncReport(record_id=record.id)
        if self.guard.is_held(record.id) or not composite_key(record):
            return report

        own_name = record.name or "Character"
        own_norm = normalize(own_name)
        others = [
            r for r in self.store.list_character_records()
            if r.type == self.character_type and r.id != record.id
        ]

        counterparts: Dict[str, _Counterpart] = {}
        for entry in self.store.read_relationship_entries(record):
            n = normalize(entry.name)
            if not n:
                continue

            target = self._resolve(others, n)
            if target is None:
                continue

            bucket = counterparts.get(target.id)
            if bucket is None:
                entries = self.store.read_relationship_entries(target)
                bucket = _Counterpart(target, copy_entries(entries), copy_entries(entries))
                counterparts[target.id] = bucket

            self._reciprocate(bucket, entry, own_name, own_norm, record.id)

        report.counterparts = list(counterparts)
        dirty = [c for c in counterparts.values() if c.dirty]
        if not dirty:
            return report

        for c in dirty:
            self.guard.hold(c.record.id)
        results = await asyncio.gather(
            *(self._write(c) for c in dirty),
            return_exceptions=True,
        )

        for c, res in zip(dirty, results):
            if isinstance(res, BaseException):
                logger.warning(f"Failed to sync influence on {c.record.name} ({c.record.id}): {res}")
                report.failed[c.record.id] = str(res)
            else:
                report.written.append(c.record.id)

        self.builder.rebuild()
        logger.debug(f"Synced {record.name}: wrote {len(report.written)}, failed {len(report.failed)}")
        return report

    def _resolve(self, others: List[CharacterRecord], n: str) -> Optional[CharacterRecord]:
        """Exact name match wins; else the first record whose key contains n."""
        partial = None
        for other in others:
            if any(normalize(name) == n for name in candidate_names(other)):
                return other
            if partial is None and n in composite_key(other):
                partial = other
        return partial

    def _reciprocate(self, bucket: _Counterpart, entry: RelationshipEntry,
                     own_name: str, own_norm: str, own_id: str):
        a_over_b = entry.have_influence_over
        b_over_a = entry.has_influence_over

        mirror = next((e for e in bucket.entries if normalize(e.name) == own_norm), None)
        if mirror is None:
            mirror = RelationshipEntry(id=new_entry_id(own_id, own_name), name=own_name)
            bucket.entries.append(mirror)

        if not a_over_b and not b_over_a:
            # A declares nothing toward B any more: drop what it induced on B
            mirror.has_influence_over = False
            mirror.have_influence_over = False
        else:
            mirror.has_influence_over = a_over_b or mirror.has_influence_over
            mirror.have_influence_over = b_over_a or mirror.have_influence_over

        if not mirror.has_influence_over and not mirror.have_influence_over and not mirror.locked:
            bucket.entries[:] = [e for e in bucket.entries if e is not mirror]

    async def _write(self, c: _Counterpart):
        try:
            await self.store.write_relationship_entries(c.record, c.entries)
        finally:
            self.guard.release_soon(c.record.id)

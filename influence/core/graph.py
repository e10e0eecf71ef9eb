"""
Edge Store — In-memory influence graph projection

This is a PROJECTION, not source of truth.
The character sheets in the record store are the source; the graph is
always rebuilt from all of them, never patched edge by edge.

    edges[from_key] -> {to_key, ...}    "from has Influence over to"

Keys are normalized names (see names.normalize). A "from" key is a
character's composite key or a name someone typed on a sheet, so lookups
against it are substring tests (see query.QueryEngine).
"""

import logging
from typing import Dict, Iterator, List, Set, TYPE_CHECKING

from .names import composite_key, normalize
from .records import CHARACTER_TYPE

if TYPE_CHECKING:
    from ..services.store import RecordStore


logger = logging.getLogger(__name__)


class EdgeStore:
    """
    Directed adjacency map plus a version counter.

    Invariants:
    - add_edge() is the only way edges are added
    - version only moves forward, once per rebuild
    - "from" keys iterate in insertion order
    """

    def __init__(self):
        self.edges: Dict[str, Set[str]] = {}
        self.version = 0

    def add_edge(self, from_key: str, to_key: str):
        targets = self.edges.get(from_key)
        if targets is None:
            targets = set()
            self.edges[from_key] = targets
        targets.add(to_key)

    def clear(self):
        self.edges.clear()

    def bump(self) -> int:
        self.version += 1
        return self.version

    def from_keys(self) -> Iterator[str]:
        return iter(self.edges)

    def targets(self, from_key: str) -> Set[str]:
        return self.edges.get(from_key, set())

    def snapshot(self) -> Dict[str, List[str]]:
        """Sorted plain copy of the edges, for display and comparison."""
        return {k: sorted(v) for k, v in sorted(self.edges.items())}

    def stats(self) -> Dict[str, int]:
        return {
            "from_keys": len(self.edges),
            "edges": sum(len(v) for v in self.edges.values()),
            "version": self.version,
        }


class GraphBuilder:
    """
    Full-rescan construction of the EdgeStore from every character record.

    rebuild() never raises. A store that cannot list records gives an
    empty graph; a record whose data cannot be read is skipped. Either
    way the version still moves so cached keys are refreshed.
    """

    def __init__(self, store: 'RecordStore', edges: EdgeStore,
                 character_type: str = CHARACTER_TYPE):
        self.store = store
        self.edges = edges
        self.character_type = character_type

    def rebuild(self) -> int:
        """Rebuild all edges from the current records. Returns the new version."""
        self.edges.clear()

        try:
            records = list(self.store.list_character_records())
        except Exception as e:
            logger.warning(f"Could not list character records, graph left empty: {e}")
            records = []

        for record in records:
            if getattr(record, "type", None) != self.character_type:
                continue
            try:
                self._project_record(record)
            except Exception as e:
                logger.warning(f"Skipped record {getattr(record, 'id', '?')} during rebuild: {e}")

        version = self.edges.bump()
        logger.debug(f"Influence graph rebuilt (v{version}): {self.edges.stats()}")
        return version

    def _project_record(self, record):
        self_key = composite_key(record)
        if not self_key:
            return

        for entry in self.store.read_relationship_entries(record):
            n = normalize(entry.name)
            if not n:
                continue
            # "I have Influence over N"
            if entry.have_influence_over:
                self.edges.add_edge(self_key, n)
            # "N has Influence over me"
            if entry.has_influence_over:
                self.edges.add_edge(n, self_key)

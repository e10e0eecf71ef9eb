"""
Query Engine — "Does A have Influence over B?"

Answers from display names alone. Both sides are composite keys; the graph
keys are names typed on sheets. A pair matches when:

    some from-key F is contained in A's key, and
    some target T of F is contained in B's key

This is loose on purpose. A key that happens to be a substring of an
unrelated character's key will match it too; callers get the first match
in insertion order and no further disambiguation.

Token keys are cached per token id and tagged with the graph version, so a
rebuild silently invalidates every cached key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from .graph import EdgeStore
from .names import composite_key


class Direction(Enum):
    """Influence relation between two presented instances, seen from the first."""
    NONE = "none"
    OUTGOING = "outgoing"  # first has Influence over second
    INCOMING = "incoming"  # second has Influence over first
    MUTUAL = "mutual"


@dataclass
class CachedKey:
    key: str
    version: int


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0

    def to_dict(self) -> dict:
        return {"hits": self.hits, "misses": self.misses}


class QueryEngine:
    """Substring edge tests plus the per-token key cache."""

    def __init__(self, edges: EdgeStore):
        self.edges = edges
        self._cache: Dict[str, CachedKey] = {}
        self.stats = CacheStats()

    def has_edge(self, a_key: str, b_key: str) -> bool:
        if not a_key or not b_key:
            return False
        for from_key in self.edges.from_keys():
            if from_key not in a_key:
                continue
            for to_key in self.edges.targets(from_key):
                if to_key in b_key:
                    return True
        return False

    # -------------------------------------------------------------------------
    # Presented instances (tokens)
    # -------------------------------------------------------------------------

    def key_for(self, instance: Any) -> str:
        """
        Composite key for a token, valid for the current graph version.

        Tokens without an id are not cacheable and give "".
        """
        instance_id = getattr(instance, "id", None)
        if not instance_id:
            return ""

        cached = self._cache.get(instance_id)
        if cached is not None and cached.version == self.edges.version:
            self.stats.hits += 1
            return cached.key

        self.stats.misses += 1
        key = composite_key(getattr(instance, "record", None), instance)
        self._cache[instance_id] = CachedKey(key=key, version=self.edges.version)
        return key

    def invalidate(self, instance_id: str):
        """Drop one token's cached key (e.g. after a rename)."""
        if instance_id:
            self._cache.pop(instance_id, None)

    def invalidate_all(self):
        """Drop every cached key (e.g. on a view/scene change)."""
        self._cache.clear()

    def has_edge_between_instances(self, a: Any, b: Any) -> bool:
        return self.has_edge(self.key_for(a), self.key_for(b))

    def relation(self, a_key: str, b_key: str) -> Direction:
        outgoing = self.has_edge(a_key, b_key)
        incoming = self.has_edge(b_key, a_key)

        if outgoing and incoming:
            return Direction.MUTUAL
        if outgoing:
            return Direction.OUTGOING
        if incoming:
            return Direction.INCOMING
        return Direction.NONE

    def relation_between(self, a: Any, b: Any) -> Direction:
        return self.relation(self.key_for(a), self.key_for(b))

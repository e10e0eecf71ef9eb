"""
Influence Tally — How much Influence a character has handed out

A character can give Influence over themselves to a limited number of
others (six by default). The sheet counts "given" entries, those where
the named character has Influence over the owner.
"""

from dataclasses import dataclass, field
from typing import List, TYPE_CHECKING

from ..config import DEFAULT_INFLUENCE_LIMIT
from ..core.records import CharacterRecord, RelationshipEntry

if TYPE_CHECKING:
    from ..services.store import RecordStore


def influence_given(entries: List[RelationshipEntry]) -> List[str]:
    """Names that hold Influence over the sheet's owner."""
    return [e.name for e in entries if e.has_influence_over and e.name]


def influence_held(entries: List[RelationshipEntry]) -> List[str]:
    """Names the sheet's owner holds Influence over."""
    return [e.name for e in entries if e.have_influence_over and e.name]


@dataclass
class InfluenceTally:
    given: List[str] = field(default_factory=list)
    held: List[str] = field(default_factory=list)
    limit: int = DEFAULT_INFLUENCE_LIMIT

    @property
    def at_limit(self) -> bool:
        return len(self.given) >= self.limit

    def format(self) -> str:
        lines = [f"Influence given ({len(self.given)}/{self.limit}):"]
        lines.extend(f"  - {name}" for name in self.given)
        lines.append(f"Influence held ({len(self.held)}):")
        lines.extend(f"  - {name}" for name in self.held)
        return "\n".join(lines)


def tally(store: 'RecordStore', record: CharacterRecord,
          limit: int = DEFAULT_INFLUENCE_LIMIT) -> InfluenceTally:
    entries = store.read_relationship_entries(record)
    return InfluenceTally(
        given=influence_given(entries),
        held=influence_held(entries),
        limit=limit,
    )

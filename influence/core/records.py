"""
Records — Character sheets and their influence entries

The record store owns these; the index only reads them and, during
symmetry sync, writes back relationship lists.

Entries keep the sheet's camelCase wire keys (hasInfluenceOver,
haveInfluenceOver) on the way in and out. Keys this package does not know
about are carried in `extra` so a sync never drops sheet data.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import xxhash


CHARACTER_TYPE = "character"

# Paths reported in change notifications
INFLUENCES_PATH = "influences"
NAME_PATH = "name"
REAL_NAME_PATH = "real_name"

_ENTRY_KEYS = ("id", "name", "hasInfluenceOver", "haveInfluenceOver", "locked")


def new_entry_id(owner_id: str, name: str) -> str:
    """Fresh entry id (16 hex chars) for an entry created by sync."""
    timestamp = datetime.now(timezone.utc).isoformat()
    return xxhash.xxh64(f"{owner_id}:{name}:{timestamp}".encode()).hexdigest()


@dataclass
class RelationshipEntry:
    """
    One named relationship on a character sheet.

    has_influence_over:  the named character has Influence over the owner
    have_influence_over: the owner has Influence over the named character
    """
    id: str = ""
    name: str = ""
    has_influence_over: bool = False
    have_influence_over: bool = False
    locked: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = dict(self.extra)
        d.update({
            "id": self.id,
            "name": self.name,
            "hasInfluenceOver": self.has_influence_over,
            "haveInfluenceOver": self.have_influence_over,
            "locked": self.locked,
        })
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'RelationshipEntry':
        name = d.get("name")
        return cls(
            id=str(d.get("id") or ""),
            name=name if isinstance(name, str) else "",
            # Only a literal True counts; sheets sometimes hold "true" or 1
            has_influence_over=d.get("hasInfluenceOver") is True,
            have_influence_over=d.get("haveInfluenceOver") is True,
            locked=d.get("locked") is True,
            extra={k: copy.deepcopy(v) for k, v in d.items() if k not in _ENTRY_KEYS},
        )


def parse_entries(raw: Any) -> List[RelationshipEntry]:
    """Entries from raw sheet data. Non-lists give [], non-mappings are dropped."""
    if not isinstance(raw, (list, tuple)):
        return []
    return [RelationshipEntry.from_dict(item) for item in raw if isinstance(item, Mapping)]


def copy_entries(entries: List[RelationshipEntry]) -> List[RelationshipEntry]:
    return copy.deepcopy(entries)


@dataclass
class CharacterRecord:
    """A character sheet as the record store exposes it."""
    id: str
    name: str = ""
    type: str = CHARACTER_TYPE
    real_name: Optional[str] = None
    influences: Any = field(default_factory=list)  # raw, may be malformed

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if self.real_name:
            d["real_name"] = self.real_name
        d["influences"] = copy.deepcopy(self.influences)
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'CharacterRecord':
        return cls(
            id=str(d["id"]),
            name=d.get("name") or "",
            type=d.get("type") or CHARACTER_TYPE,
            real_name=d.get("real_name"),
            influences=copy.deepcopy(d.get("influences", [])),
        )


@dataclass
class PresentedInstance:
    """A token: one appearance of a record on the current view."""
    id: str
    name: str = ""
    record: Optional[CharacterRecord] = None

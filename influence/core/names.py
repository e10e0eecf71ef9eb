"""
Names — Fuzzy name keys for influence matching

Players type each other's names by hand, on different sheets, with titles
and nicknames. Everything that compares names goes through here so the
fuzzy rules stay identical everywhere:

- normalize(): lowercase, strip "the"/"lady"/"sir" anywhere, strip whitespace
- candidate_names(): every display name an entity is known by
- composite_key(): one normalized key built from all candidate names

The title stripping is deliberately lax ("mother" -> "mor"). Matching is
done by substring containment, so over-stripping costs little and catches
"The Beacon" vs "Beacon" vs "BEACON".
"""

import re
from typing import Any, List, Optional

# Pipe survives normalization, so names never bleed into each other
KEY_SEPARATOR = "|"

_TITLES = re.compile(r"the|lady|sir")
_WHITESPACE = re.compile(r"\s+")


def normalize(value: Any) -> str:
    """
    Canonical form of a free-text name.

    Total: None, booleans and non-text values give "". Numbers are
    stringified first. Removal repeats until stable so the result is
    idempotent even when stripping exposes a new title ("tthehe").
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return ""

    text = value.lower()
    while True:
        stripped = _WHITESPACE.sub("", _TITLES.sub("", text))
        if stripped == text:
            return text
        text = stripped


def _display_name(obj: Any, attr: str = "name") -> str:
    value = getattr(obj, attr, None) if obj is not None else None
    return value if isinstance(value, str) else ""


def candidate_names(entity: Any, presented_as: Any = None) -> List[str]:
    """
    Display names an entity answers to, first-seen order, no duplicates.

    Args:
        entity: Character record (or None for a bare token)
        presented_as: Optional presented instance (token) with its own name
    """
    names: List[str] = []

    for name in (_display_name(entity), _display_name(entity, "real_name")):
        if name and name not in names:
            names.append(name)

    token_name = _display_name(presented_as)
    if token_name and token_name not in names:
        names.append(token_name)

    return names


def composite_key(entity: Any, presented_as: Optional[Any] = None) -> str:
    """Normalized pipe-joined key of all candidate names ("" if none)."""
    names = candidate_names(entity, presented_as)
    if not names:
        return ""
    return normalize(KEY_SEPARATOR.join(names))

"""
Row mapper: one GViz row -> one canonical ``Character``.

Each logical field accepts an ordered list of header labels (compared
case-insensitively after trimming); the first label present in the sheet
wins, even when a later alias is also present.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from loremaker.engine.coercion import (
    normalize_drive_url,
    parse_locations,
    parse_powers,
    split_list,
    to_slug,
)
from loremaker.schemas.character import Character

COLUMN_ALIASES: Dict[str, List[str]] = {
    "id": ["id", "char_id", "character id", "code"],
    "name": ["character", "character name", "name"],
    "alias": ["alias", "aliases", "also known as"],
    "gender": ["gender", "sex"],
    "identity": ["identity", "identities", "persona"],
    "alignment": ["alignment"],
    "location": ["location", "base of operations", "locations"],
    "status": ["status"],
    "era": ["era", "origin/era", "time"],
    "firstAppearance": ["first appearance", "debut", "firstappearance"],
    "powers": ["powers", "abilities", "power"],
    "faction": ["faction", "team", "faction/team"],
    "tag": ["tag", "tags"],
    "shortDesc": ["short description", "shortdesc", "blurb"],
    "longDesc": ["long description", "longdesc", "bio"],
    "stories": ["stories", "story", "appears in"],
    "cover": ["cover image", "cover", "cover url"],
}

GALLERY_SLOTS = 15
GALLERY_ALIASES: List[List[str]] = [
    [f"gallery image {n}", f"gallery {n}", f"img {n}", f"image {n}"]
    for n in range(1, GALLERY_SLOTS + 1)
]


def header_map(headers: Sequence[Optional[str]]) -> Dict[str, int]:
    """Map logical field keys to column indexes for the given header labels."""
    lower = [(header or "").lower().strip() for header in headers]

    def find_index(aliases: List[str]) -> int:
        for alias in aliases:
            if alias in lower:
                return lower.index(alias)
        return -1

    mapping: Dict[str, int] = {}
    for key, aliases in COLUMN_ALIASES.items():
        idx = find_index(aliases)
        if idx != -1:
            mapping[key] = idx
    for slot, aliases in enumerate(GALLERY_ALIASES, start=1):
        idx = find_index(aliases)
        if idx != -1:
            mapping[f"gallery_{slot}"] = idx
    return mapping


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_text(cell: Any) -> str:
    """Structured ``v`` first, then formatted ``f``, then the raw cell; trimmed."""
    if cell is None:
        return ""
    if isinstance(cell, dict):
        value = cell.get("v")
        if value is None:
            value = cell.get("f")
        return _stringify(value).strip()
    return _stringify(cell).strip()


def row_to_character(cells: Sequence[Any], mapping: Dict[str, int]) -> Optional[Character]:
    """Build a character from one row, or ``None`` when the row has no name."""

    def read(key: str) -> Optional[str]:
        idx = mapping.get(key)
        if idx is None or idx >= len(cells):
            return None
        text = cell_text(cells[idx])
        return text or None

    name = read("name")
    if not name:
        return None

    source_id = to_slug(read("id")) or None
    gallery = []
    for slot in range(1, GALLERY_SLOTS + 1):
        normalised = normalize_drive_url(read(f"gallery_{slot}"))
        if normalised:
            gallery.append(normalised)

    return Character(
        id=source_id,
        slug=to_slug(source_id or name),
        name=name,
        alias=split_list(read("alias")),
        gender=read("gender"),
        identity=read("identity"),
        alignment=read("alignment"),
        locations=parse_locations(read("location")),
        status=read("status"),
        era=read("era"),
        first_appearance=read("firstAppearance"),
        powers=parse_powers(read("powers")),
        faction=split_list(read("faction")),
        tags=split_list(read("tag")),
        short_desc=read("shortDesc"),
        long_desc=read("longDesc"),
        stories=split_list(read("stories")),
        cover=normalize_drive_url(read("cover")),
        gallery=gallery,
    )

"""
Value coercion for raw spreadsheet cells.

Contains:
- ``to_slug`` / ``character_slug``: lowercase kebab identifiers
- ``split_list`` / ``parse_locations``: delimiter-tolerant list splitting
- ``parse_powers``: ``"Flight: 7/10, Shield (4)"`` style ability strings
- ``normalize_drive_url``: cloud-drive share links to embeddable image URLs
- ``split_era_values``: era strings with loose separators
- ``normalise_array``: scalar/null/list coercion shared by every list field
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_AND_WORD = re.compile(r"\band\b", re.IGNORECASE)
_LIST_DELIMS = re.compile(r"[|;/]")
_COMMA_SPLIT = re.compile(r"\s*,\s*")

# "N/10" is a rating, not a list delimiter.
_OUT_OF_TEN = re.compile(r"(\d{1,2})\s*/\s*10\b")
_POWER_COLON = re.compile(r"^(.*?)[=:]\s*(\d{1,2})(?:\s*/\s*10)?$")
_POWER_PAREN_ANY = re.compile(r"\((\d{1,2})\)")
_POWER_PAREN = re.compile(r"^(.*?)\((\d{1,2})\)$")
_POWER_TRAILING = re.compile(r"^(.*?)(\d{1,2})$")

_ERA_ELLIPSIS = re.compile(r"\.{2,}")
_ERA_DELIMS = re.compile(r"[;,/|•·&\n]+")

DRIVE_VIEW_BASE = "https://drive.google.com/uc"


def to_slug(value: Optional[str]) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``-``, trim dashes."""
    if not value:
        return ""
    return _NON_ALNUM.sub("-", str(value).lower()).strip("-")


def character_slug(character: Any) -> str:
    """Preferred slug for a character: its slug, else its id, else its name."""
    if character is None:
        return ""
    if isinstance(character, dict):
        raw = character.get("slug") or character.get("id") or character.get("name")
    else:
        raw = character.slug or character.id or character.name
    return to_slug(raw or "")


def normalise_array(value: Any) -> List[Any]:
    """``None`` -> ``[]``, scalar -> ``[scalar]``, list -> list without empties."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if item]
    if isinstance(value, str):
        trimmed = value.strip()
        return [trimmed] if trimmed else []
    return [value]


def split_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    text = _AND_WORD.sub(",", raw)
    text = _LIST_DELIMS.sub(",", text)
    return [part.strip() for part in text.split(",") if part.strip()]


def parse_locations(raw: Optional[str]) -> List[str]:
    """Split a location cell and dedupe, keeping first-seen order."""
    seen: Dict[str, None] = {}
    for item in split_list(raw):
        for value in _COMMA_SPLIT.split(item):
            value = value.strip()
            if value:
                seen.setdefault(value, None)
    return list(seen)


def clamp_level(value: Any) -> int:
    """Coerce anything numeric-ish into an integer level in [0, 10]."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return int(min(10, max(0, math.trunc(number))))


def _parse_power_item(item: str) -> Dict[str, Any]:
    name, level = item, 0
    colon = _POWER_COLON.match(item)
    if colon:
        name, level = colon.group(1), int(colon.group(2))
    elif _POWER_PAREN_ANY.search(item):
        paren = _POWER_PAREN.match(item)
        if paren:
            name, level = paren.group(1), int(paren.group(2))
    else:
        trailing = _POWER_TRAILING.match(item)
        if trailing:
            name, level = trailing.group(1), int(trailing.group(2))
    return {"name": name.strip(), "level": clamp_level(level)}


def parse_powers(raw: Optional[str]) -> List[Dict[str, Any]]:
    """
    Parse an ability cell into ``[{"name": ..., "level": ...}]``.

    Each item is read as ``name: N`` / ``name = N`` (optionally ``/10``),
    then ``name (N)``, then ``name N``; anything else gets level 0.
    Items whose name ends up empty are dropped.
    """
    if not raw:
        return []
    folded = _OUT_OF_TEN.sub(r"\1", raw)
    powers = [_parse_power_item(item) for item in split_list(folded)]
    return [power for power in powers if power["name"]]


# ---------------------------------------------------------------------------
# Drive URLs
# ---------------------------------------------------------------------------

def _drive_view_url(file_id: Optional[str], params: Dict[str, str]) -> Optional[str]:
    if not file_id:
        return None
    query = [("export", "view"), ("id", file_id)]
    resource_key = params.get("resourcekey")
    if resource_key:
        query.append(("resourcekey", resource_key))
    return f"{DRIVE_VIEW_BASE}?{urlencode(query)}"


def _with_export_view(parts, pairs: List[tuple]) -> str:
    """Rebuild *parts* with ``export=view``, keeping every other param in place."""
    updated, replaced = [], False
    for key, value in pairs:
        if key == "export":
            if replaced:
                continue
            replaced = True
            if not value or value == "download":
                value = "view"
        updated.append((key, value))
    if not replaced:
        updated.append(("export", "view"))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(updated), parts.fragment))


def normalize_drive_url(url: Any) -> Optional[str]:
    """
    Turn a Google Drive share link into a directly embeddable image URL.

    Non-drive URLs come back trimmed but otherwise unchanged. Anything that
    is not an absolute URL yields ``None``.
    """
    if not url or not isinstance(url, str):
        return None
    trimmed = url.strip()
    if not trimmed:
        return None

    try:
        parts = urlsplit(trimmed)
        host = (parts.hostname or "").lower()
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None

    pairs = parse_qsl(parts.query, keep_blank_values=True)
    params: Dict[str, str] = {}
    for key, value in pairs:
        params.setdefault(key, value)
    search_id = params.get("id")
    path = parts.path

    if "drive.google.com" in host:
        file_match = re.search(r"/file/d/([^/]+)", path)
        if path == "/thumbnail" and search_id:
            return _drive_view_url(search_id, params)
        if file_match:
            return _drive_view_url(file_match.group(1), params)
        if path == "/open" and search_id:
            return _drive_view_url(search_id, params)
        if path == "/uc" and search_id:
            return _with_export_view(parts, pairs)
        if search_id:
            return _drive_view_url(search_id, params)
        return trimmed

    if "drive.usercontent.google.com" in host:
        return _drive_view_url(search_id, params) or trimmed

    if "drive.googleusercontent.com" in host:
        if path == "/uc" and search_id and "export" not in params:
            return _with_export_view(parts, pairs)
        return trimmed

    return trimmed


# ---------------------------------------------------------------------------
# Eras
# ---------------------------------------------------------------------------

def split_era_values(value: Any) -> List[str]:
    """Split ``"Old Gods... Modern & Future"`` style era text into parts."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for entry in value:
            out.extend(split_era_values(entry))
        return out
    text = _ERA_ELLIPSIS.sub(",", str(value))
    text = _AND_WORD.sub(",", text)
    parts = [part.strip() for part in _ERA_DELIMS.split(text) if part.strip()]
    if not parts:
        trimmed = str(value).strip()
        return [trimmed] if trimmed else []
    return parts

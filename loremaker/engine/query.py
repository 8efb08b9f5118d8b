"""
Query engine: text search, facet filters and sort modes over a roster.

Facets are an explicit enumeration with one extractor each; the filter
mapping a caller passes is keyed by facet name (``"faction"``,
``"powers"``, ...). Keys that name no facet are ignored.
"""
from __future__ import annotations

import random
import re
import unicodedata
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from loremaker.engine.coercion import normalise_array
from loremaker.engine.scoring import score
from loremaker.schemas.character import Character
from loremaker.utils.logging_config import get_logger

logger = get_logger("loremaker.query")

_NON_WORD = re.compile(r"[\W_]+")

Selection = Union[str, Sequence[str], None]


class FilterMode(str, Enum):
    """How several selected values within one facet combine."""
    blend = "blend"   # any selected value present
    every = "and"     # every selected value present

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered or member.name == lowered:
                    return member
        return None


class SortMode(str, Enum):
    default = "default"
    random = "random"
    az = "az"
    za = "za"
    faction = "faction"
    era = "era"
    most = "most"
    least = "least"


class Facet(str, Enum):
    gender = "gender"
    alignment = "alignment"
    status = "status"
    era = "era"
    locations = "locations"
    faction = "faction"
    tags = "tags"
    stories = "stories"
    powers = "powers"
    alias = "alias"
    id = "id"
    name = "name"

    @property
    def multi(self) -> bool:
        """Single-valued facets take one selected string, the rest a list."""
        return self not in (Facet.gender, Facet.alignment)


_FACET_ALIASES = {"aliases": Facet.alias, "location": Facet.locations,
                  "power": Facet.powers, "tag": Facet.tags, "timeline": Facet.era}

_EXTRACTORS: Dict[Facet, Callable[[Character], List[str]]] = {
    Facet.gender: lambda c: normalise_array(c.gender),
    Facet.alignment: lambda c: normalise_array(c.alignment),
    Facet.status: lambda c: normalise_array(c.status),
    Facet.era: lambda c: list(dict.fromkeys(normalise_array(c.era) + list(c.era_tags))),
    Facet.locations: lambda c: list(c.locations),
    Facet.faction: lambda c: list(c.faction),
    Facet.tags: lambda c: list(c.tags),
    Facet.stories: lambda c: list(c.stories),
    Facet.powers: lambda c: [p.name for p in c.powers if p.name],
    Facet.alias: lambda c: list(c.alias),
    Facet.id: lambda c: normalise_array(c.id),
    Facet.name: lambda c: normalise_array(c.name),
}


def resolve_facet(key: Union[str, Facet]) -> Optional[Facet]:
    if isinstance(key, Facet):
        return key
    key = str(key).strip().lower()
    try:
        return Facet(key)
    except ValueError:
        return _FACET_ALIASES.get(key)


def facet_values(character: Character, facet: Facet) -> List[str]:
    return _EXTRACTORS[facet](character)


# ---------------------------------------------------------------------------
# Text search
# ---------------------------------------------------------------------------

def normalize_search_text(text: Optional[str]) -> str:
    """Lowercase, fold diacritics, reduce punctuation runs to single spaces."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_WORD.sub(" ", stripped).strip()


def search_fields(character: Character) -> List[str]:
    return [
        value for value in [
            character.id,
            character.name,
            character.identity,
            character.gender,
            character.alignment,
            character.status,
            character.era,
            " ".join(character.alias),
            " ".join(character.locations),
            " ".join(character.faction),
            " ".join(character.tags),
            " ".join(character.stories),
            " ".join(p.name for p in character.powers),
            character.short_desc,
            character.long_desc,
        ] if value
    ]


def matches_query(character: Character, query: Optional[str]) -> bool:
    needle = normalize_search_text(query)
    if not needle:
        return True
    fields = [normalize_search_text(field) for field in search_fields(character)]
    haystack = " ".join(field for field in fields if field)
    words = set(haystack.split())
    if all(token in haystack or token in words for token in needle.split()):
        return True
    return any(needle in field for field in fields)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def _active_selections(filters: Optional[Mapping[str, Selection]]) -> Dict[Facet, List[str]]:
    active: Dict[Facet, List[str]] = {}
    for key, selected in (filters or {}).items():
        desired = [str(value).strip().lower() for value in normalise_array(selected)
                   if str(value).strip()]
        if not desired:
            continue
        facet = resolve_facet(key)
        if facet is None:
            logger.debug("ignoring unknown facet %r", key)
            continue
        if not facet.multi:
            # gender / alignment select a single value; a repeated query param keeps the first
            active[facet] = desired[:1]
            continue
        active.setdefault(facet, []).extend(desired)
    return active


def matches_filters(character: Character, filters: Optional[Mapping[str, Selection]],
                    mode: Union[FilterMode, str] = FilterMode.blend) -> bool:
    combine = all if FilterMode(mode) is FilterMode.every else any
    for facet, desired in _active_selections(filters).items():
        available = {value.lower() for value in facet_values(character, facet)}
        if not available:
            return False
        if not combine(needle in available for needle in desired):
            return False
    return True


def matches(character: Character, filters: Optional[Mapping[str, Selection]] = None,
            mode: Union[FilterMode, str] = FilterMode.blend, query: str = "") -> bool:
    """True when *character* satisfies the text query and every facet filter."""
    return matches_query(character, query) and matches_filters(character, filters, mode)


def filter_characters(characters: Iterable[Character], filters: Optional[Mapping[str, Selection]] = None,
                      mode: Union[FilterMode, str] = FilterMode.blend, query: str = "") -> List[Character]:
    return [character for character in characters if matches(character, filters, mode, query)]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def _default_key(character: Character) -> tuple:
    index = character.source_index if character.source_index is not None else float("inf")
    return (0 if character.has_art else 1, index)


def _name_key(character: Character) -> tuple:
    return (character.name.casefold(), character.name)


def sort_characters(characters: Iterable[Character], mode: Union[SortMode, str] = SortMode.default,
                    rng: Optional[random.Random] = None) -> List[Character]:
    """Return a new list ordered by *mode*; sorts are stable."""
    items = list(characters)
    mode = SortMode(mode)

    if mode is SortMode.random:
        rng = rng or random.Random()
        illustrated = [c for c in items if c.has_art]
        text_only = [c for c in items if not c.has_art]
        rng.shuffle(illustrated)
        rng.shuffle(text_only)
        return illustrated + text_only
    if mode is SortMode.az:
        return sorted(items, key=_name_key)
    if mode is SortMode.za:
        return sorted(items, key=_name_key, reverse=True)
    if mode is SortMode.faction:
        return sorted(items, key=lambda c: (c.faction[0].casefold() if c.faction else ""))
    if mode is SortMode.era:
        return sorted(items, key=lambda c: (0 if c.era else 1, (c.era or "").lower(), *_default_key(c)))
    if mode is SortMode.most:
        return sorted(items, key=lambda c: -score(c))
    if mode is SortMode.least:
        return sorted(items, key=score)
    return sorted(items, key=_default_key)

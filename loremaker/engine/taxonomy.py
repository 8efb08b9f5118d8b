"""
Taxonomy builder: factions, powers, locations and timelines derived from a roster.

Each entry aggregates the characters sharing one facet value, with a few
description snippets, a representative image and (for powers) level metrics.
Entry slugs live in their own namespace, unique across all four kinds.
"""
from __future__ import annotations

import dataclasses
import math
import re
from typing import Dict, List, Optional, Sequence

from loremaker.engine.coercion import character_slug, to_slug
from loremaker.schemas.character import (
    Character,
    PowerMetrics,
    Taxonomies,
    TaxonomyEntry,
    TaxonomyMember,
    TaxonomyType,
)

SNIPPET_LIMIT = 3
RELATED_ENTRY_LIMIT = 6
UNIVERSE_NAME = "LoreMaker Universe"

FILTER_KEYS: Dict[str, str] = {
    "faction": "faction",
    "power": "powers",
    "location": "locations",
    "timeline": "era",
}

# Collection name used in ``Taxonomies`` for each entry kind
KIND_COLLECTIONS: Dict[str, str] = {
    "faction": "factions",
    "power": "powers",
    "location": "locations",
    "timeline": "timelines",
}

_MEMBER_NOUNS: Dict[str, tuple[str, str]] = {
    "faction": ("member", "members"),
    "power": ("wielder", "wielders"),
    "location": ("legend", "legends"),
    "timeline": ("figure", "figures"),
}

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


@dataclasses.dataclass
class _Accumulator:
    """Mutable state for one entry while the roster is being walked."""
    type: TaxonomyType
    name: str
    slug: str
    members: List[TaxonomyMember] = dataclasses.field(default_factory=list)
    member_ids: set = dataclasses.field(default_factory=set)
    snippets: Dict[str, None] = dataclasses.field(default_factory=dict)
    primary_image: Optional[str] = None
    total_level: int = 0
    samples: int = 0
    max_level: int = 0
    min_level: Optional[int] = None

    def add(self, member: TaxonomyMember, snippet: Optional[str]) -> None:
        if member.id not in self.member_ids:
            self.member_ids.add(member.id)
            self.members.append(member)
        if snippet:
            self.snippets.setdefault(snippet, None)
        if not self.primary_image and member.cover:
            self.primary_image = member.cover

    def record_level(self, level: int) -> None:
        self.total_level += level
        self.samples += 1
        self.max_level = max(self.max_level, level)
        self.min_level = level if self.min_level is None else min(self.min_level, level)


def _round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def snippet_for(character: Character) -> Optional[str]:
    """Short description, else the first sentence of the long one."""
    if character.short_desc:
        return character.short_desc
    if character.long_desc:
        first = _SENTENCE_END.split(character.long_desc, maxsplit=1)[0].strip()
        return first or None
    return None


def default_summary(entry: TaxonomyEntry) -> str:
    count = entry.member_count
    singular, plural = _MEMBER_NOUNS[entry.type]
    label = singular if count == 1 else plural
    if entry.type == "power" and entry.metrics and entry.metrics.average_level:
        return (f"{entry.name} is channelled by {count} {label} with an average "
                f"mastery of {entry.metrics.average_level:g}/10.")
    return f"{entry.name} unites {count} {label} within the {UNIVERSE_NAME}."


class _SlugRegistry:
    def __init__(self) -> None:
        self._used: set = set()

    def claim(self, base: str) -> str:
        slug, counter = base or "entry", 1
        while slug in self._used:
            counter += 1
            slug = f"{base}-{counter}"
        self._used.add(slug)
        return slug


def _member_for(character: Character) -> TaxonomyMember:
    slug = character_slug(character)
    return TaxonomyMember(
        id=character.id or slug,
        slug=slug,
        name=character.name,
        cover=character.cover or next((url for url in character.gallery if url), None),
        alias=list(character.alias),
        short_desc=character.short_desc,
        alignment=character.alignment,
        status=character.status,
        primary_location=character.locations[0] if character.locations else None,
        era=character.era or (character.era_tags[0] if character.era_tags else None),
    )


def _finalise(entries: Dict[str, _Accumulator]) -> List[TaxonomyEntry]:
    finished: List[TaxonomyEntry] = []
    for acc in entries.values():
        members = sorted(acc.members, key=lambda m: (m.name.casefold(), m.name))
        metrics = None
        if acc.type == "power":
            average = _round_half_up(acc.total_level / acc.samples) if acc.samples else 0.0
            metrics = PowerMetrics(
                total_level=acc.total_level,
                samples=acc.samples,
                max_level=acc.max_level,
                min_level=acc.min_level or 0,
                average_level=average,
            )
        entry = TaxonomyEntry(
            type=acc.type,
            name=acc.name,
            slug=acc.slug,
            filter_key=FILTER_KEYS[acc.type],
            members=members,
            member_count=len(members),
            snippets=list(acc.snippets)[:SNIPPET_LIMIT],
            primary_image=acc.primary_image or next((m.cover for m in members if m.cover), None),
            metrics=metrics,
        )
        entry.summary = default_summary(entry)
        finished.append(entry)
    finished.sort(key=lambda e: (-e.member_count, e.name.casefold(), e.name))
    return finished


def build_taxonomies(characters: Sequence[Character]) -> Taxonomies:
    """Aggregate *characters* into the four taxonomy collections.

    Deterministic for a given input; entries are ordered by member count
    (descending), then name.
    """
    registry = _SlugRegistry()
    buckets: Dict[str, Dict[str, _Accumulator]] = {kind: {} for kind in FILTER_KEYS}

    def upsert(kind: TaxonomyType, raw_name: str) -> Optional[_Accumulator]:
        name = str(raw_name or "").strip()
        if not name:
            return None
        bucket = buckets[kind]
        if name not in bucket:
            base = to_slug(name) or f"{kind}-{len(bucket) + 1}"
            bucket[name] = _Accumulator(type=kind, name=name, slug=registry.claim(base))
        return bucket[name]

    for character in characters:
        if character is None or not character.name:
            continue
        member = _member_for(character)
        snippet = snippet_for(character)

        for faction in character.faction:
            acc = upsert("faction", faction)
            if acc:
                acc.add(member, snippet)

        for power in character.powers:
            acc = upsert("power", power.name)
            if acc is None:
                continue
            fresh = member.id not in acc.member_ids
            acc.add(member.model_copy(update={"power_level": power.level}), snippet)
            if fresh:
                acc.record_level(power.level)

        for location in character.locations:
            acc = upsert("location", location)
            if acc:
                acc.add(member, snippet)

        for era in dict.fromkeys([character.era, *character.era_tags]):
            acc = upsert("timeline", era)
            if acc:
                acc.add(member, snippet)

    return Taxonomies(
        factions=_finalise(buckets["faction"]),
        powers=_finalise(buckets["power"]),
        locations=_finalise(buckets["location"]),
        timelines=_finalise(buckets["timeline"]),
    )


def entries_for(taxonomies: Taxonomies, kind: str) -> List[TaxonomyEntry]:
    """Entries of one kind; accepts ``faction`` or ``factions`` spellings.

    Raises:
        KeyError: *kind* names no taxonomy.
    """
    collections = {
        "factions": taxonomies.factions,
        "powers": taxonomies.powers,
        "locations": taxonomies.locations,
        "timelines": taxonomies.timelines,
    }
    return collections[KIND_COLLECTIONS.get(kind, kind)]


def find_taxonomy_entry(taxonomies: Taxonomies, kind: str, slug: str) -> Optional[TaxonomyEntry]:
    for entry in entries_for(taxonomies, kind):
        if entry.slug == slug:
            return entry
    return None


def related_entries(entries: Sequence[TaxonomyEntry], slug: str,
                    limit: int = RELATED_ENTRY_LIMIT) -> List[TaxonomyEntry]:
    return [entry for entry in entries if entry.slug != slug][:limit]

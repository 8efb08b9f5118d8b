"""
Canonicaliser: turns freshly mapped (or hand-authored) characters into the
stable shape every consumer relies on.

- ``canonicalise_character``: list coercion, era-tag extraction, media URLs
- ``ensure_unique_slugs``: one slug per character per load, ``-2``, ``-3``... on collision
- ``canonicalise``: both of the above over a roster; applying it twice is a no-op
- ``prepare_roster``: canonicalise, then seed the day's power levels
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from loremaker.engine.coercion import (
    character_slug,
    normalise_array,
    normalize_drive_url,
    split_era_values,
    to_slug,
)
from loremaker.engine.seeding import seed_roster
from loremaker.schemas.character import Character

_ERA_TAG = re.compile(r"^era\b\s*(?:[:\-–]\s*)?(.*)$", re.IGNORECASE | re.DOTALL)


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(value for value in values if value))


def split_era_tags(tags: Iterable[str]) -> tuple[List[str], List[str]]:
    """Separate ``Era: ...`` tags from ordinary tags.

    Returns ``(plain_tags, era_values)``. A bare ``Era`` tag carries no value
    and is dropped.
    """
    plain: List[str] = []
    eras: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        match = _ERA_TAG.match(tag)
        if match:
            eras.extend(split_era_values(match.group(1).strip()))
        else:
            plain.append(tag)
    return plain, eras


def canonicalise_character(character: Character) -> Character:
    base_eras = split_era_values(character.era)
    tags, stripped_eras = split_era_tags(normalise_array(character.tags))
    era_tags = _unique(value.strip() for value in
                       [*base_eras, *normalise_array(character.era_tags), *stripped_eras])

    gallery = [normalize_drive_url(item) or item for item in normalise_array(character.gallery)]

    return character.model_copy(update={
        "era": base_eras[0] if base_eras else (era_tags[0] if era_tags else None),
        "era_tags": era_tags,
        "tags": _unique(tags),
        "alias": normalise_array(character.alias),
        "locations": _unique(normalise_array(character.locations)),
        "faction": normalise_array(character.faction),
        "stories": normalise_array(character.stories),
        "gallery": [item for item in gallery if item],
        "cover": normalize_drive_url(character.cover) or character.cover or None,
    })


def ensure_unique_slugs(characters: Iterable[Optional[Character]]) -> List[Character]:
    """
    Give every character a slug unique within this sequence.

    The base is the character's own slug, then its id, then its name, then
    ``character-N``; collisions get ``-2``, ``-3``... in roster order.
    Characters without an id take the assigned slug as their id.
    """
    seen: Dict[str, None] = {}
    result: List[Character] = []
    for index, character in enumerate(characters):
        if character is None:
            continue
        base = character_slug(character) or to_slug(character.name) or f"character-{index + 1}"
        slug, counter = base, 1
        while slug in seen:
            counter += 1
            slug = f"{base}-{counter}"
        seen[slug] = None
        result.append(character.model_copy(update={"slug": slug, "id": character.id or slug}))
    return result


def canonicalise(characters: Iterable[Character]) -> List[Character]:
    return ensure_unique_slugs(canonicalise_character(character) for character in characters)


def prepare_roster(characters: Iterable[Character], day_key: Optional[str] = None) -> List[Character]:
    """Canonicalise *characters*, then re-roll their powers for *day_key*."""
    return seed_roster(canonicalise(characters), day_key)

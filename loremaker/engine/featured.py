"""
Featured-of-the-day selection and seeded "related characters".

Both are pure functions of the roster and a seed string, so every process
(and the browser) agrees on today's pick without coordination.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

from loremaker.engine.coercion import character_slug
from loremaker.engine.seeding import seeded_random, today_key
from loremaker.schemas.character import (
    Character,
    FeaturedBundle,
    FeaturedCollection,
    RelatedCard,
)

FEATURED_COLLECTION_SIZE = 8
RELATED_LIMIT = 6

T = TypeVar("T")


def _pick(rng: Callable[[], float], items: Sequence[T]) -> Optional[T]:
    if not items:
        return None
    index = int(rng() * len(items))
    return items[min(index, len(items) - 1)]


def top_power(character: Character) -> Optional[str]:
    """Name of the highest-level power; the first one listed wins ties."""
    best = None
    for power in character.powers:
        if not power.name:
            continue
        if best is None or power.level > best.level:
            best = power
    return best.name if best else None


def _bring_forward(featured: Character, members: List[Character]) -> List[Character]:
    """Sort *members* by name with *featured* first, deduplicated by id/name."""
    ordered: List[Character] = []
    seen = set()
    for entry in [featured, *sorted(members, key=lambda c: (c.name.casefold(), c.name))]:
        key = entry.id or entry.name
        if key in seen:
            continue
        seen.add(key)
        ordered.append(entry)
    return ordered[:FEATURED_COLLECTION_SIZE]


def _collection(featured: Character, name: Optional[str],
                carries: Callable[[Character], bool],
                roster: Sequence[Character]) -> Optional[FeaturedCollection]:
    if not name:
        return None
    members = [character for character in roster if carries(character)]
    return FeaturedCollection(name=name, members=_bring_forward(featured, members))


def compute_featured(characters: Sequence[Character], day_key: Optional[str] = None) -> FeaturedBundle:
    """
    Pick today's featured character and the collections anchored on it.

    Characters with a cover or gallery image are preferred; the whole roster
    is used only when none has art. The faction/location/power collections
    come from the character's first faction, first location and strongest
    power, and each lists the featured character first.
    """
    roster = [character for character in characters if character is not None]
    if not roster:
        return FeaturedBundle()

    rng = seeded_random(f"featured|{day_key or today_key()}")
    with_art = [character for character in roster if character.has_art]
    character = _pick(rng, with_art or roster)

    primary_faction = character.faction[0] if character.faction else None
    primary_location = character.locations[0] if character.locations else None
    power_name = top_power(character)

    return FeaturedBundle(
        character=character,
        faction=_collection(character, primary_faction,
                            lambda c: primary_faction in c.faction, roster),
        location=_collection(character, primary_location,
                             lambda c: primary_location in c.locations, roster),
        power=_collection(character, power_name,
                          lambda c: any(p.name == power_name for p in c.powers), roster),
        backgrounds=[url for url in [character.cover, *character.gallery] if url],
    )


def build_related(characters: Sequence[Character], current_id: str,
                  limit: int = RELATED_LIMIT) -> List[RelatedCard]:
    """Seeded shuffle of the rest of the roster, as lightweight cards."""
    pool = [character for character in characters
            if character is not None and character.id and character.id != current_id]
    if not pool:
        return []
    rng = seeded_random(f"related|{current_id}")
    scored = [(rng(), index, character) for index, character in enumerate(pool)]
    scored.sort(key=lambda item: (item[0], item[1]))
    return [
        RelatedCard(
            name=character.name,
            slug=character_slug(character),
            short_desc=character.short_desc or character.long_desc,
            cover=character.cover or (character.gallery[0] if character.gallery else None),
            status=character.status,
            alignment=character.alignment,
        )
        for _, _, character in scored[:limit]
    ]


def find_character(characters: Sequence[Character], slug: str) -> Optional[Character]:
    """Look a character up by its URL slug."""
    wanted = (slug or "").strip().lower()
    if not wanted:
        return None
    for character in characters:
        if character is not None and character_slug(character) == wanted:
            return character
    return None

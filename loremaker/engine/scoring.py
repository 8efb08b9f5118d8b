"""Power score used by the "most/least powerful" sort and the arena."""
from __future__ import annotations

import math
import re

from loremaker.schemas.arena import OriginProfile
from loremaker.schemas.character import Character

_ELITE_TAG = re.compile(r"leader|legend|mythic|prime", re.IGNORECASE)
_ANCIENT_ERA = re.compile(r"old gods|ancient", re.IGNORECASE)

_DIVINE = re.compile(r"god|goddess|deity|divine|celestial|primordial", re.IGNORECASE)
_DIVINE_ERA = re.compile(r"old gods|ancient gods", re.IGNORECASE)
_ALIEN = re.compile(r"alien|extraterrestrial|offworld|cosmic", re.IGNORECASE)
_MYTHIC = re.compile(r"demon|spirit|ethereal|eldritch|angel", re.IGNORECASE)
_ENHANCED = re.compile(r"meta|mutant|enhanced|super soldier|augment", re.IGNORECASE)
_HUMAN = re.compile(r"human|civilian")

ELITE_BONUS = 3
ANCIENT_ERA_MOD = 1.07
ENHANCED_LEVEL = 7


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def power_origin_profile(character: Character) -> OriginProfile:
    """Classify a character's power origin from its tags, aliases and descriptions."""
    text = " ".join([
        " ".join(character.tags),
        " ".join(character.alias),
        character.long_desc or "",
        character.short_desc or "",
    ]).lower()
    era = character.era or ""

    if _DIVINE.search(text) or _DIVINE_ERA.search(era):
        return OriginProfile(label="Divine", multiplier=1.6)
    if _ALIEN.search(text):
        return OriginProfile(label="Alien", multiplier=1.28)
    if _MYTHIC.search(text):
        return OriginProfile(label="Mythic", multiplier=1.24)
    if _ENHANCED.search(text) or any(p.level >= ENHANCED_LEVEL for p in character.powers):
        return OriginProfile(label="Enhanced", multiplier=1.14)
    if _HUMAN.search(text):
        return OriginProfile(label="Human", multiplier=1.0)
    return OriginProfile(label="Legend", multiplier=1.08)


def score(character: Character) -> int:
    """``round((sum(levels) + elite) * origin * era_mod)``; depends only on the record."""
    base = sum(power.level for power in character.powers)
    elite = ELITE_BONUS if any(_ELITE_TAG.search(tag) for tag in character.tags) else 0
    era_mod = ANCIENT_ERA_MOD if _ANCIENT_ERA.search(character.era or "") else 1.0
    origin = power_origin_profile(character)
    return _round_half_up((base + elite) * origin.multiplier * era_mod)

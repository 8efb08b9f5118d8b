"""
Deterministic daily seeding.

The generator below must stay bit-for-bit compatible with the web client's
JavaScript implementation: the same seed string yields the same stream of
floats on both sides, so a character's daily power levels and the featured
pick agree everywhere. All arithmetic is unsigned 32-bit.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from loremaker.engine.coercion import clamp_level
from loremaker.schemas.character import Character, Power

_MASK = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_GOLDEN = 0x6D2B79F5


def today_key(now: Optional[datetime] = None) -> str:
    """ISO-8601 date in UTC, e.g. ``"2025-01-01"``."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date().isoformat()


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def _code_units(seed: str) -> Iterable[int]:
    # Seeds hash per UTF-16 code unit, matching String.charCodeAt.
    data = seed.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def seeded_random(seed: str) -> Callable[[], float]:
    """Return a generator of floats in [0, 1) fully determined by *seed*."""
    h = _FNV_OFFSET
    for unit in _code_units(seed):
        h ^= unit
        h = (h + (h << 1) + (h << 4) + (h << 7) + (h << 8) + (h << 24)) & _MASK

    state = h

    def draw() -> float:
        nonlocal state
        state = (state + _GOLDEN) & _MASK
        t = _imul(state ^ (state >> 15), 1 | state)
        t = (t ^ ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    return draw


def daily_int(seed: str, low: int = 1, high: int = 10, day_key: Optional[str] = None) -> int:
    """Integer in [low, high], stable for one (seed, UTC day) pair."""
    rand = seeded_random(f"{seed}|{day_key or today_key()}")()
    return int(rand * (high - low + 1)) + low


def power_bounds(base: int) -> tuple[int, int]:
    """Daily range a raw level may drift within; unrated powers roam 3..9."""
    if base:
        return max(3, base - 2), min(10, base + 2)
    return 3, 9


def seed_daily_powers(character: Character, day_key: Optional[str] = None) -> Character:
    """Return a copy of *character* with every power re-rolled for the day.

    The raw feed level only sets the window; the seed is the character id
    (or name) plus the power label, so order and names are preserved.
    """
    day = day_key or today_key()
    seed = character.id or character.name or "character"
    powers: List[Power] = []
    for idx, power in enumerate(character.powers):
        label = power.name or f"Power {idx + 1}"
        low, high = power_bounds(clamp_level(power.level))
        powers.append(Power(name=power.name, level=daily_int(f"{seed}|{label}", low, high, day)))
    return character.model_copy(update={"powers": powers})


def seed_roster(characters: Iterable[Character], day_key: Optional[str] = None) -> List[Character]:
    day = day_key or today_key()
    return [seed_daily_powers(character, day) for character in characters]


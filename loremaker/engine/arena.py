"""
Arena duel: a short, luck-flavoured bout between two characters.

Scores come from ``score``; everything random is drawn from the injected
``random.Random`` so a duel can be replayed exactly.
"""
from __future__ import annotations

import math
import random
from typing import List, Optional

from loremaker.engine.scoring import power_origin_profile, score
from loremaker.schemas.arena import BattleResult, BattleRound
from loremaker.schemas.character import Character

SWINGS = 3
STARTING_HEALTH = 100
LUCK_SWING = 0.2       # luck is +/- 20% of the stronger score
SHIELD_RATIO = 0.35
DAMAGE_POOL = 48


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _luck(rng: random.Random, ceiling: int) -> int:
    return _round_half_up((rng.random() * 2 - 1) * LUCK_SWING * ceiling)


def duel(a: Character, b: Character, rng: Optional[random.Random] = None) -> BattleResult:
    """Fight three swings; the side with more health left wins.

    Equal health falls back to the higher score, and identical scores to a
    coin flip.
    """
    rng = rng or random.Random()
    score_a, score_b = score(a), score(b)
    ceiling = max(score_a, score_b) or 1
    health_a = health_b = STARTING_HEALTH
    rounds: List[BattleRound] = []

    for swing in range(1, SWINGS + 1):
        luck_a, luck_b = _luck(rng, ceiling), _luck(rng, ceiling)
        strike_a, strike_b = score_a + luck_a, score_b + luck_b
        delta_a = max(0.0, strike_a - score_b * SHIELD_RATIO)
        delta_b = max(0.0, strike_b - score_a * SHIELD_RATIO)
        combined = max(1.0, delta_a + delta_b)
        damage_to_b = _round_half_up(delta_a / combined * DAMAGE_POOL)
        damage_to_a = _round_half_up(delta_b / combined * DAMAGE_POOL)
        health_b = max(0, health_b - damage_to_b)
        health_a = max(0, health_a - damage_to_a)
        rounds.append(BattleRound(
            round=swing,
            strike_a=strike_a,
            strike_b=strike_b,
            luck_a=luck_a,
            luck_b=luck_b,
            damage_to_b=damage_to_b,
            damage_to_a=damage_to_a,
            health_a=health_a,
            health_b=health_b,
        ))

    if health_a != health_b:
        a_wins = health_a > health_b
    elif score_a != score_b:
        a_wins = score_a > score_b
    else:
        a_wins = rng.random() > 0.5

    return BattleResult(
        timeline=rounds,
        winner=a if a_wins else b,
        loser=b if a_wins else a,
        final_score_a=score_a,
        final_score_b=score_b,
        final_health_a=health_a,
        final_health_b=health_b,
        origin_a=power_origin_profile(a),
        origin_b=power_origin_profile(b),
    )

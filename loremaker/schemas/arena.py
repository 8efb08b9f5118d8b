"""Result models for the arena duel simulation."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from loremaker.schemas.character import Character

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OriginProfile(BaseModel):
    model_config = _CAMEL

    label: str
    multiplier: float


class BattleRound(BaseModel):
    model_config = _CAMEL

    round: int
    strike_a: int
    strike_b: int
    luck_a: int
    luck_b: int
    damage_to_b: int
    damage_to_a: int
    health_a: int
    health_b: int


class BattleResult(BaseModel):
    model_config = _CAMEL

    timeline: List[BattleRound] = Field(default_factory=list)
    winner: Character
    loser: Character
    final_score_a: int
    final_score_b: int
    final_health_a: int
    final_health_b: int
    origin_a: OriginProfile
    origin_b: OriginProfile

"""
Canonical character records and the structures derived from them.

Attributes are snake_case; every model serialises with camelCase aliases
(``sourceIndex``, ``eraTags``, ``shortDesc`` ...) and accepts either spelling
on input, so bundled JSON rosters and API payloads share one shape.
"""
from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from loremaker.engine.coercion import clamp_level, normalise_array, parse_powers

TaxonomyType = Literal["faction", "power", "location", "timeline"]

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Power(BaseModel):
    """One named ability. ``level`` is always an integer in [0, 10]."""
    model_config = _CAMEL

    name: str
    level: int = 0

    @field_validator("level", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return clamp_level(value)


class Character(BaseModel):
    model_config = _CAMEL

    # Identity
    id: Optional[str] = None
    slug: Optional[str] = None
    name: str
    source_index: Optional[int] = None

    # Descriptive scalars
    gender: Optional[str] = None
    identity: Optional[str] = None
    alignment: Optional[str] = None
    status: Optional[str] = None
    era: Optional[str] = None
    first_appearance: Optional[str] = None
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None

    # Descriptive lists
    alias: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    faction: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    stories: List[str] = Field(default_factory=list)
    era_tags: List[str] = Field(default_factory=list)

    powers: List[Power] = Field(default_factory=list)

    # Media
    cover: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)

    @field_validator("alias", "locations", "faction", "tags", "stories",
                     "era_tags", "gallery", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> List[Any]:
        return [str(item).strip() if isinstance(item, str) else item
                for item in normalise_array(value)]

    @field_validator("powers", mode="before")
    @classmethod
    def _powers(cls, value: Any) -> List[Any]:
        if isinstance(value, str):
            return parse_powers(value)
        return normalise_array(value)

    @field_validator("gender", "identity", "alignment", "status", "era",
                     "first_appearance", "short_desc", "long_desc", "cover",
                     mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def has_art(self) -> bool:
        return bool(self.cover) or any(self.gallery)


class TaxonomyMember(BaseModel):
    """Lightweight projection of a character inside a taxonomy entry."""
    model_config = _CAMEL

    id: str
    slug: str
    name: str
    cover: Optional[str] = None
    alias: List[str] = Field(default_factory=list)
    short_desc: Optional[str] = None
    alignment: Optional[str] = None
    status: Optional[str] = None
    primary_location: Optional[str] = None
    era: Optional[str] = None
    power_level: Optional[int] = None


class PowerMetrics(BaseModel):
    """Level statistics for one power entry.

    One sample per wielder: a character listing the same power twice
    contributes only its first listing, so ``samples == member_count``.
    """
    model_config = _CAMEL

    total_level: int = 0
    samples: int = 0
    max_level: int = 0
    min_level: int = 0
    average_level: float = 0.0


class TaxonomyEntry(BaseModel):
    model_config = _CAMEL

    type: TaxonomyType
    name: str
    slug: str
    filter_key: str
    members: List[TaxonomyMember] = Field(default_factory=list)
    member_count: int = 0
    snippets: List[str] = Field(default_factory=list)
    primary_image: Optional[str] = None
    metrics: Optional[PowerMetrics] = None
    summary: str = ""


class Taxonomies(BaseModel):
    model_config = _CAMEL

    factions: List[TaxonomyEntry] = Field(default_factory=list)
    powers: List[TaxonomyEntry] = Field(default_factory=list)
    locations: List[TaxonomyEntry] = Field(default_factory=list)
    timelines: List[TaxonomyEntry] = Field(default_factory=list)


class FeaturedCollection(BaseModel):
    """Characters sharing the featured character's primary facet value.

    The featured character is always ``members[0]``.
    """
    model_config = _CAMEL

    name: str
    members: List[Character] = Field(default_factory=list)


class FeaturedBundle(BaseModel):
    model_config = _CAMEL

    character: Optional[Character] = None
    faction: Optional[FeaturedCollection] = None
    location: Optional[FeaturedCollection] = None
    power: Optional[FeaturedCollection] = None
    backgrounds: List[str] = Field(default_factory=list)


class RelatedCard(BaseModel):
    model_config = _CAMEL

    name: str
    slug: str
    short_desc: Optional[str] = None
    cover: Optional[str] = None
    status: Optional[str] = None
    alignment: Optional[str] = None

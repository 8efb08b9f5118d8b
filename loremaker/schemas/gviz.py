"""
Wire models for the Google Visualization (GViz) query response.

Only the parts the row mapper reads are typed; everything else the endpoint
sends (``version``, ``reqId``, ``sig``, ``parsedNumHeaders``...) is kept as
extra data and ignored.
"""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GVizColumn(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None

    @property
    def header(self) -> str:
        return (self.label or self.id or "").strip()


class GVizRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Each cell is null, a ``{"v": ..., "f": ...}`` object, or (rarely) a raw value.
    c: List[Any] = Field(default_factory=list)

    @field_validator("c", mode="before")
    @classmethod
    def _null_cells(cls, value: Any) -> Any:
        return [] if value is None else value


class GVizTable(BaseModel):
    model_config = ConfigDict(extra="allow")

    cols: Optional[List[Optional[GVizColumn]]] = Field(default_factory=list)
    rows: Optional[List[Optional[GVizRow]]] = Field(default_factory=list)


class GVizResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    table: Optional[GVizTable] = None

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FALLBACK_ROSTER = Path(__file__).parent / "data" / "fallback_characters.json"


class Settings(BaseSettings):
    app_name: str = "LoreMaker Codex"

    # Spreadsheet the roster is published from. Required for upstream loads.
    sheet_id: Optional[str] = None
    # Preferred tab, tried before the built-in candidates
    sheet_tab: Optional[str] = None

    # Cache lifetime in milliseconds
    cache_ttl: int = 600_000

    gviz_base_url: str = "https://docs.google.com/spreadsheets/d"
    request_timeout_seconds: float = 10.0

    # Bundled roster served when every sheet candidate fails
    fallback_roster_path: Path = DEFAULT_FALLBACK_ROSTER

    # JSON log lines are also appended here when set
    log_file: Optional[str] = None

    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("sheet_id", "sheet_tab", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value


@lru_cache
def get_settings() -> Settings:
    return Settings()


def gviz_url(settings: Settings, sheet_id: str) -> str:
    """Build the GViz query endpoint for a spreadsheet."""
    return f"{settings.gviz_base_url.rstrip('/')}/{sheet_id}/gviz/tq"

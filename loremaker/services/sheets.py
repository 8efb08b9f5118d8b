"""
Cached read path for the character roster.

``CharacterLibrary`` pulls the published Google Sheet through the GViz
endpoint, walking a short list of candidate tab names, and falls back to the
bundled roster when every candidate fails. Results are cached for
``CACHE_TTL`` milliseconds; the cache record is replaced wholesale on every
successful load, so concurrent fetches are safe (last writer wins).

Usage::

    from loremaker.services.sheets import get_library

    library = get_library()
    characters = await library.load()          # never raises for upstream trouble
    characters = await library.fetch(force=True)  # raises UnavailableUpstreamError
"""
from __future__ import annotations

import dataclasses
import json
import time
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError

from loremaker.config import Settings, get_settings, gviz_url
from loremaker.engine.canonical import ensure_unique_slugs, prepare_roster
from loremaker.engine.gviz import parse_feed
from loremaker.errors import (
    CodexError,
    EmptyRosterError,
    FallbackRosterError,
    MissingConfigError,
    UnavailableUpstreamError,
    UpstreamFailureError,
)
from loremaker.schemas.character import Character
from loremaker.utils.logging_config import SheetAdapter, get_logger

logger = get_logger("loremaker.sheets")

DEFAULT_SHEET_NAMES: Tuple[Optional[str], ...] = ("Characters", "Sheet1", None)


@dataclasses.dataclass
class CacheState:
    """The single shared cache record. ``timestamp`` is epoch milliseconds."""
    data: Optional[List[Character]] = None
    timestamp: float = 0


@lru_cache(maxsize=4)
def _read_roster_file(path: str) -> Tuple[Any, ...]:
    """Read and parse a JSON roster once per path."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as exc:
        raise FallbackRosterError(f"fallback roster not found at {path}") from exc
    except json.JSONDecodeError as exc:
        raise FallbackRosterError(f"fallback roster at {path} is not valid JSON: {exc}") from exc
    if isinstance(raw, dict):
        raw = raw.get("characters", [])
    if not isinstance(raw, list):
        raise FallbackRosterError(f"fallback roster at {path} is not a list")
    return tuple(raw)


class CharacterLibrary:
    """Process-wide roster cache with upstream fetch and bundled fallback.

    Args:
        settings: configuration; defaults to :func:`get_settings`.
        transport: optional ``httpx`` transport (``httpx.MockTransport`` in tests).
        clock: returns the current time in seconds; defaults to ``time.time``.
        fallback_roster: in-memory roster that replaces the bundled JSON file.
        day_key: pins the seeding day (``YYYY-MM-DD``); defaults to today in UTC.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], float]] = None,
        fallback_roster: Optional[Sequence[Any]] = None,
        day_key: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._clock = clock or time.time
        self._fallback_roster = fallback_roster
        self.day_key = day_key
        self.cache = CacheState()
        # id -> feed row index for the last upstream load
        self.source_order: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def cached(self) -> Optional[List[Character]]:
        """Current cached roster, regardless of age."""
        return self.cache.data

    def clear(self) -> None:
        self.cache = CacheState()
        self.source_order = {}

    def _fresh(self) -> Optional[List[Character]]:
        state = self.cache
        if state.data is not None and self._now_ms() - state.timestamp < self.settings.cache_ttl:
            return state.data
        return None

    # ------------------------------------------------------------------
    # Upstream
    # ------------------------------------------------------------------

    def candidate_sheets(self) -> List[Optional[str]]:
        """Tab names to try in order; ``None`` means "no sheet parameter"."""
        names: List[Optional[str]] = []
        for name in (self.settings.sheet_tab, *DEFAULT_SHEET_NAMES):
            if isinstance(name, str):
                name = name.strip() or None
                if name is None:
                    continue
            if name not in names:
                names.append(name)
        return names

    async def _load_candidate(self, client: httpx.AsyncClient, sheet_id: str,
                              sheet: Optional[str]) -> List[Character]:
        params = {"tqx": "out:json"}
        if sheet:
            params["sheet"] = sheet
        response = await client.get(gviz_url(self.settings, sheet_id), params=params)
        if not response.is_success:
            raise UpstreamFailureError(response.status_code)
        characters = parse_feed(response.text)
        if not characters:
            raise EmptyRosterError(f"sheet {sheet or '(default)'} has no named rows")
        return prepare_roster(characters, self.day_key)

    async def fetch(self, force: bool = False, timeout: Optional[float] = None) -> List[Character]:
        """
        Return the roster, from cache when fresh, otherwise from the sheet.

        Every candidate tab is tried before the bundled roster is used.

        Raises:
            MissingConfigError: no ``SHEET_ID`` is configured; the cache is untouched.
            UnavailableUpstreamError: all candidates and the fallback failed.
        """
        if not force:
            fresh = self._fresh()
            if fresh is not None:
                return fresh

        sheet_id = self.settings.sheet_id
        if not sheet_id:
            raise MissingConfigError("Google Sheets configuration missing")

        started = time.perf_counter()
        last_error: Optional[BaseException] = None
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=timeout if timeout is not None else self.settings.request_timeout_seconds,
            follow_redirects=True,
        ) as client:
            for sheet in self.candidate_sheets():
                log = SheetAdapter(logger, sheet)
                try:
                    roster = await self._load_candidate(client, sheet_id, sheet)
                except (httpx.HTTPError, CodexError) as exc:
                    last_error = exc
                    log.warning(
                        "sheet candidate failed: %s",
                        type(exc).__name__,
                        extra={"status": getattr(exc, "status", None)},
                    )
                    continue

                self.cache = CacheState(data=roster, timestamp=self._now_ms())
                self.source_order = {c.id: c.source_index for c in roster
                                     if c.id and c.source_index is not None}
                log.info(
                    "roster loaded",
                    extra={"count": len(roster),
                           "duration_ms": round((time.perf_counter() - started) * 1000)},
                )
                return roster

        logger.warning("all sheet candidates failed; serving fallback roster",
                       extra={"action": "fallback"})
        try:
            roster = self.fallback()
        except FallbackRosterError as exc:
            cause = last_error or exc
            logger.error("fallback roster unusable: %s", exc, extra={"action": "fallback"})
            raise UnavailableUpstreamError(cause=cause) from cause

        self.cache = CacheState(data=roster, timestamp=self._now_ms())
        return roster

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    def fallback(self) -> List[Character]:
        """Canonicalised, seeded copy of the bundled (or injected) roster.

        Raises:
            FallbackRosterError: the roster is missing, malformed or empty.
        """
        if self._fallback_roster is not None:
            entries: Sequence[Any] = self._fallback_roster
        else:
            entries = _read_roster_file(str(Path(self.settings.fallback_roster_path)))

        characters: List[Character] = []
        try:
            for index, entry in enumerate(entries):
                character = entry if isinstance(entry, Character) else Character.model_validate(entry)
                if character.source_index is None:
                    character = character.model_copy(update={"source_index": index})
                characters.append(character)
        except ValidationError as exc:
            raise FallbackRosterError(f"fallback roster entry is invalid ({exc.error_count()} issues)") from exc

        if not characters:
            raise FallbackRosterError("fallback roster is empty")
        return prepare_roster(characters, self.day_key)

    async def load(self, force: bool = False, timeout: Optional[float] = None) -> List[Character]:
        """Like :meth:`fetch`, but any engine failure degrades to the fallback roster.

        Returns an empty list only when the fallback itself is unusable.
        """
        try:
            roster = await self.fetch(force=force, timeout=timeout)
            if roster:
                return ensure_unique_slugs(roster)
        except CodexError as exc:
            logger.warning("falling back to bundled roster: %s", type(exc).__name__,
                           extra={"action": "fallback"})
        try:
            return self.fallback()
        except FallbackRosterError as exc:
            logger.error("no roster available: %s", exc, extra={"action": "fallback"})
            return []


@lru_cache
def get_library() -> CharacterLibrary:
    """The process-wide library instance."""
    return CharacterLibrary()


async def fetch_characters_from_sheets(force: bool = False) -> List[Character]:
    return await get_library().fetch(force=force)


async def load_character_library(force: bool = False) -> List[Character]:
    return await get_library().load(force=force)


def get_cached_characters() -> Optional[List[Character]]:
    return get_library().cached()


def clear_character_cache() -> None:
    get_library().clear()

"""Character roster, featured, taxonomy and arena REST endpoints."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from loremaker.engine.arena import duel
from loremaker.engine.featured import build_related, compute_featured, find_character
from loremaker.engine.query import Facet, FilterMode, SortMode, filter_characters, sort_characters
from loremaker.engine.taxonomy import build_taxonomies, entries_for, related_entries
from loremaker.errors import CodexError, is_config_error, public_error_message
from loremaker.services.sheets import CharacterLibrary, get_library
from loremaker.utils.logging_config import get_logger

logger = get_logger("loremaker.api")

router = APIRouter(prefix="/api")


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _facet_filters(request: Request) -> Dict[str, List[str]]:
    filters: Dict[str, List[str]] = {}
    for facet in Facet:
        values = request.query_params.getlist(facet.value)
        if values:
            filters[facet.value] = values
    return filters


@router.get("/characters")
async def list_characters(
    request: Request,
    force: bool = False,
    q: str = "",
    mode: FilterMode = FilterMode.blend,
    sort: SortMode = SortMode.default,
    library: CharacterLibrary = Depends(get_library),
):
    """
    The roster straight from the sheet (or the fallback roster), optionally
    searched, filtered by ``?faction=...&powers=...`` facets and sorted.
    """
    try:
        characters = await library.fetch(force=force)
    except CodexError as exc:
        status = 503 if is_config_error(exc) else 500
        logger.warning("roster request failed: %s", type(exc).__name__, extra={"status": status})
        return JSONResponse(status_code=status, content={"error": public_error_message(exc)})

    selected = filter_characters(characters, _facet_filters(request), mode, q)
    ordered = sort_characters(selected, sort)
    return {
        "data": [_dump(c) for c in ordered],
        "fetchedAt": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/characters/{slug}")
async def get_character(slug: str, library: CharacterLibrary = Depends(get_library)):
    characters = await library.load()
    character = find_character(characters, slug)
    if not character:
        raise HTTPException(status_code=404, detail="Character not found")
    return {
        "character": _dump(character),
        "related": [_dump(card) for card in build_related(characters, character.id)],
    }


@router.get("/featured")
async def get_featured(library: CharacterLibrary = Depends(get_library)):
    characters = await library.load()
    return _dump(compute_featured(characters, library.day_key))


@router.get("/taxonomies")
async def get_taxonomies(library: CharacterLibrary = Depends(get_library)):
    characters = await library.load()
    return _dump(build_taxonomies(characters))


@router.get("/taxonomies/{kind}/{slug}")
async def get_taxonomy_entry(kind: str, slug: str, library: CharacterLibrary = Depends(get_library)):
    characters = await library.load()
    try:
        entries = entries_for(build_taxonomies(characters), kind)
    except KeyError:
        raise HTTPException(status_code=404, detail="Unknown taxonomy")
    entry = next((item for item in entries if item.slug == slug), None)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    return {
        "entry": _dump(entry),
        "related": [_dump(item) for item in related_entries(entries, slug)],
    }


@router.get("/arena")
async def run_arena(
    left: str,
    right: str,
    seed: Optional[int] = Query(default=None),
    library: CharacterLibrary = Depends(get_library),
):
    """Simulate a duel between two characters; pass ``seed`` for a replayable bout."""
    characters = await library.load()
    a, b = find_character(characters, left), find_character(characters, right)
    if not a or not b:
        raise HTTPException(status_code=404, detail="Character not found")
    if a.id == b.id:
        raise HTTPException(status_code=400, detail="Choose two different characters")
    return _dump(duel(a, b, random.Random(seed)))

"""
Feed parser for Google Visualization (GViz) JSON responses.

The endpoint answers with JavaScript, not JSON::

    /*O_o*/
    google.visualization.Query.setResponse({"version":"0.6","table":{...}});

so the object literal is cut out of the call before parsing.
"""
from __future__ import annotations

import json
import re
from typing import Dict, List, Tuple

from pydantic import ValidationError

from loremaker.engine.rows import cell_text, header_map, row_to_character
from loremaker.errors import BadEnvelopeError, ShapeMismatchError
from loremaker.schemas.character import Character
from loremaker.schemas.gviz import GVizResponse, GVizRow, GVizTable
from loremaker.utils.logging_config import get_logger

logger = get_logger("loremaker.gviz")

_ENVELOPE = re.compile(r"google\.visualization\.Query\.setResponse\((.*)\);?$", re.DOTALL)


def parse_gviz(text: str) -> GVizResponse:
    """Unwrap and validate a ``setResponse(...)`` body.

    Raises:
        BadEnvelopeError: the wrapper is missing or the payload is not valid JSON.
    """
    match = _ENVELOPE.search((text or "").strip())
    if not match:
        raise BadEnvelopeError("GViz format not recognised")
    try:
        payload = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise BadEnvelopeError(f"GViz payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise BadEnvelopeError(f"GViz payload is a {type(payload).__name__}, expected an object")
    try:
        return GVizResponse.model_validate(payload)
    except ValidationError as exc:
        raise BadEnvelopeError(f"GViz payload has an unexpected shape ({exc.error_count()} issues)") from exc


def resolve_header(table: GVizTable) -> Tuple[Dict[str, int], List[GVizRow]]:
    """
    Locate the header for *table* and return ``(field_map, data_rows)``.

    Sheets published without a frozen header row arrive with blank column
    labels and the real header in row 0; that row is then used as the
    header and dropped from the data.

    Raises:
        ShapeMismatchError: rows exist but no name column can be found.
    """
    rows = [row for row in table.rows or [] if row is not None]
    labels = [col.header if col else "" for col in table.cols or []]
    mapping = header_map(labels)
    if "name" in mapping or not rows:
        return mapping, rows

    guess = header_map([cell_text(cell) for cell in rows[0].c])
    if "name" in guess:
        logger.info("header recovered from first data row", extra={"count": len(rows) - 1})
        return guess, rows[1:]

    raise ShapeMismatchError(f"no name column among headers {labels!r}")


def parse_characters(response: GVizResponse) -> List[Character]:
    """Map every named row of *response* to a character, tagging ``source_index``."""
    if response.table is None:
        raise ShapeMismatchError(f"GViz response has no table (status={response.status!r})")
    mapping, rows = resolve_header(response.table)
    characters: List[Character] = []
    for index, row in enumerate(rows):
        character = row_to_character(row.c, mapping)
        if character is None:
            continue
        character.source_index = index
        characters.append(character)
    return characters


def parse_feed(text: str) -> List[Character]:
    """Envelope text straight to uncanonicalised characters."""
    return parse_characters(parse_gviz(text))


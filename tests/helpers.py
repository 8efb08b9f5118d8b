"""Builders shared by roster, feed and library tests."""

import json
from typing import Any, List, Optional

import httpx

from loremaker.schemas import Character


def gviz_body(labels: List[Optional[str]], rows: List[List[Any]]) -> str:
    """Render a GViz ``setResponse`` body; plain values become ``{"v": value}`` cells."""
    cols = [{"id": chr(65 + i), "label": label or "", "type": "string"} for i, label in enumerate(labels)]
    wire_rows = [
        {"c": [cell if cell is None or isinstance(cell, dict) else {"v": cell} for cell in cells]}
        for cells in rows
    ]
    body = {"version": "0.6", "status": "ok", "table": {"cols": cols, "rows": wire_rows}}
    return f"/*O_o*/\ngoogle.visualization.Query.setResponse({json.dumps(body)});"


def make_character(name: str, **fields: Any) -> Character:
    return Character(name=name, **fields)


class FakeClock:
    """Settable clock returning seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHandler:
    """``httpx.MockTransport`` handler answering per ``sheet`` query parameter.

    ``responses`` maps a sheet name (``None`` for the bare request) to a body
    string, an HTTP status int, or an exception to raise.
    """

    def __init__(self, responses: dict, default: Any = 500):
        self.responses = responses
        self.default = default
        self.sheets: List[Optional[str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        sheet = request.url.params.get("sheet")
        self.sheets.append(sheet)
        answer = self.responses.get(sheet, self.default)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, int):
            return httpx.Response(answer, text="upstream error")
        return httpx.Response(200, text=answer)

"""
Typed failures raised by the character data engine.

Internal callers branch on the concrete class (or its ``code``); only the
outer edge flattens them into a human sentence via ``public_error_message``.
"""
from __future__ import annotations

import re
from typing import Optional, Union

PUBLIC_AVAILABILITY_MESSAGE = "Character data is temporarily unavailable. Please try again soon."
GENERIC_FAILURE_MESSAGE = "Unable to load characters. Please try again."

# Config variable names and bare HTTP status codes never reach end users.
_LEAKY_TEXT = re.compile(r"SHEET_ID|SHEET_TAB|\b[1-5]\d{2}\b", re.IGNORECASE)


class CodexError(Exception):
    """Base class for every engine failure."""

    code = "CodexError"
    public_message = PUBLIC_AVAILABILITY_MESSAGE


class MissingConfigError(CodexError):
    """No spreadsheet identifier is configured."""

    code = "MissingConfig"


class BadEnvelopeError(CodexError):
    """The response body is not a parseable GViz ``setResponse`` call."""

    code = "BadEnvelope"


class ShapeMismatchError(CodexError):
    """The table has no recognisable name column, even after header recovery."""

    code = "ShapeMismatch"


class EmptyRosterError(CodexError):
    """The table parsed but yielded zero characters."""

    code = "EmptyRoster"


class UpstreamFailureError(CodexError):
    """The spreadsheet endpoint answered with a non-2xx status."""

    code = "UpstreamFailure"

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"Google Sheets request failed ({status})")


class FallbackRosterError(CodexError):
    """The bundled or injected fallback roster is absent or unusable."""

    code = "FallbackRoster"


class UnavailableUpstreamError(CodexError):
    """Every sheet candidate failed and the fallback roster could not be used."""

    code = "UnavailableUpstream"

    def __init__(self, message: str = "Unable to load characters from Google Sheets",
                 cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


def is_config_error(error: object) -> bool:
    return isinstance(error, MissingConfigError)


def public_error_message(error: Union[BaseException, str, None]) -> str:
    """Map any failure (exception or plain string) to one short user-facing phrase."""
    if error is None:
        return GENERIC_FAILURE_MESSAGE
    if isinstance(error, CodexError):
        return error.public_message
    if isinstance(error, str):
        text = error.strip()
        if not text:
            return GENERIC_FAILURE_MESSAGE
        if _LEAKY_TEXT.search(text):
            return PUBLIC_AVAILABILITY_MESSAGE
        return text
    return GENERIC_FAILURE_MESSAGE

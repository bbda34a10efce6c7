"""Deterministic URI validation and metadata outcome decisions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx

from asset_ingester.tasks.errors import UnrecoverableTaskError

INVALID_URI_SENTINEL = "Invalid Uri"
_HOST_REQUIRED_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})


@dataclass(slots=True)
class MetadataDecision:
    """Document to persist plus the error to raise once it is written."""

    document: Any
    terminal_error: UnrecoverableTaskError | None = None


def validate_uri(uri: str) -> bool:
    """Return True when ``uri`` parses as an absolute URI.

    Only parsing is checked. A parseable URI with a scheme the HTTP client
    cannot speak (``ipfs://``, ``ar://``) is valid here and fails later as a
    retryable transport error.
    """

    if not uri:
        return False
    try:
        parsed = urlsplit(uri)
        _ = parsed.port
        httpx.URL(uri)
    except (ValueError, httpx.InvalidURL):
        return False
    scheme = parsed.scheme.lower()
    if not scheme:
        return False
    if scheme in _HOST_REQUIRED_SCHEMES:
        return bool(parsed.hostname)
    return bool(parsed.netloc or parsed.path)


async def decide_metadata(
    *,
    uri: str,
    uri_valid: bool,
    fetch: Callable[[str], Awaitable[Any]],
) -> MetadataDecision:
    """Pick the document for the store step.

    | uri valid | fetch        | document            | after write        |
    |-----------|--------------|---------------------|--------------------|
    | no        | not called   | ``"Invalid Uri"``   | unrecoverable      |
    | yes       | success      | fetched JSON        | success            |
    | yes       | raises       | (raise propagates, nothing is written)   |
    """

    if not uri_valid:
        return MetadataDecision(
            document=INVALID_URI_SENTINEL,
            terminal_error=UnrecoverableTaskError(f"Invalid metadata URI: {uri!r}"),
        )
    return MetadataDecision(document=await fetch(uri))

from __future__ import annotations

import allure
import pytest

from asset_ingester.tasks.classifier import INVALID_URI_SENTINEL, decide_metadata, validate_uri
from asset_ingester.tasks.errors import HttpStatusError, UnrecoverableTaskError
from asset_ingester.tasks.models import OutcomeStatus, TaskOutcome

pytestmark = [
    allure.epic("Metadata Download"),
    allure.feature("Outcome Classification"),
]


@pytest.mark.parametrize(
    "uri",
    [
        "https://example.com/meta.json",
        "http://127.0.0.1:8080/m",
        "HTTPS://Example.com",
        "https://arweave.net/abc?ext=json",
        "ipfs://bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
        "ar://abc",
        "ftp://example.com/meta.json",
    ],
)
def test_validate_uri_accepts_parseable_absolute_uris(uri: str) -> None:
    assert validate_uri(uri)


@pytest.mark.parametrize(
    "uri",
    [
        "",
        "garbage",
        "/relative/path.json",
        "example.com/meta.json",
        "https://",
        "http://example.com:notaport/m",
        "ftp://",
    ],
)
def test_validate_uri_rejects_unparseable_values(uri: str) -> None:
    assert not validate_uri(uri)


@pytest.mark.asyncio
async def test_invalid_uri_yields_sentinel_without_fetching() -> None:
    calls: list[str] = []

    async def _fetch(url: str) -> object:
        calls.append(url)
        return {}

    decision = await decide_metadata(uri="garbage", uri_valid=False, fetch=_fetch)

    assert calls == []
    assert decision.document == INVALID_URI_SENTINEL
    assert isinstance(decision.terminal_error, UnrecoverableTaskError)


@pytest.mark.asyncio
async def test_valid_uri_yields_fetched_document() -> None:
    async def _fetch(url: str) -> object:
        return {"name": "x", "url": url}

    decision = await decide_metadata(uri="https://x.io/m", uri_valid=True, fetch=_fetch)

    assert decision.document == {"name": "x", "url": "https://x.io/m"}
    assert decision.terminal_error is None


@pytest.mark.asyncio
async def test_fetch_failure_propagates_before_any_document_is_chosen() -> None:
    async def _fetch(url: str) -> object:
        raise HttpStatusError(503, url)

    with pytest.raises(HttpStatusError):
        await decide_metadata(uri="https://x.io/m", uri_valid=True, fetch=_fetch)


def test_outcome_from_error_follows_retryable_flag() -> None:
    retryable = TaskOutcome.from_error("DownloadMetadata", HttpStatusError(500, "https://x.io"))
    permanent = TaskOutcome.from_error("DownloadMetadata", UnrecoverableTaskError())

    assert retryable.status == OutcomeStatus.RETRYABLE
    assert retryable.should_retry
    assert retryable.to_event_details()["reason_code"] == "fetch_http_status"
    assert permanent.status == OutcomeStatus.UNRECOVERABLE
    assert not permanent.should_retry

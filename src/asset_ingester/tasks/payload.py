"""Payload for the metadata download task and its task-data codec."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from asset_ingester.tasks.errors import PayloadError
from asset_ingester.tasks.models import TaskData

DOWNLOAD_METADATA_TASK_NAME = "DownloadMetadata"


@dataclass(slots=True)
class DownloadMetadata:
    """Asset identifier plus the URI its off-chain metadata lives at.

    ``created_at`` is provenance only: it is accepted on decode and travels on
    the ``TaskData`` envelope, but is never written into the encoded payload.
    """

    asset_data_id: bytes
    uri: str
    created_at: datetime | None = field(default=None, compare=False)

    def sanitize(self) -> None:
        """Drop NUL characters and surrounding whitespace from ``uri``."""

        self.uri = self.uri.replace("\0", "").strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_data_id": list(self.asset_data_id),
            "uri": self.uri,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DownloadMetadata:
        """Decode and validate payload fields."""

        asset_data_id = _decode_asset_id(raw.get("asset_data_id"))
        uri = raw.get("uri")
        if not isinstance(uri, str):
            raise PayloadError("download_metadata.uri must be a string")

        created_at = raw.get("created_at")
        if isinstance(created_at, str):
            try:
                created_at = datetime.fromisoformat(created_at)
            except ValueError as error:
                raise PayloadError(
                    f"download_metadata.created_at is not ISO formatted: {created_at!r}",
                ) from error
        elif created_at is not None and not isinstance(created_at, datetime):
            raise PayloadError("download_metadata.created_at must be an ISO string")
        return cls(asset_data_id=asset_data_id, uri=uri, created_at=created_at)

    def to_task_data(self) -> TaskData:
        return TaskData(
            name=DOWNLOAD_METADATA_TASK_NAME,
            data=self.to_dict(),
            created_at=self.created_at,
        )

    @classmethod
    def from_task_data(cls, task_data: TaskData) -> DownloadMetadata:
        if task_data.name != DOWNLOAD_METADATA_TASK_NAME:
            raise PayloadError(
                f"Expected task data for {DOWNLOAD_METADATA_TASK_NAME}, got {task_data.name!r}",
            )
        payload = cls.from_dict(task_data.data)
        if payload.created_at is None:
            payload.created_at = task_data.created_at
        return payload

    def __str__(self) -> str:
        return f"DownloadMetadata from {self.uri} for {self.asset_data_id.hex()}"


def _decode_asset_id(value: object) -> bytes:
    if isinstance(value, list):
        if not value or not all(_is_byte(item) for item in value):
            raise PayloadError("download_metadata.asset_data_id must be a non-empty byte array")
        return bytes(value)
    if isinstance(value, str):
        try:
            decoded = bytes.fromhex(value)
        except ValueError as error:
            raise PayloadError(f"download_metadata.asset_data_id is not hex: {value!r}") from error
        if not decoded:
            raise PayloadError("download_metadata.asset_data_id must not be empty")
        return decoded
    raise PayloadError("download_metadata.asset_data_id must be a byte array or hex string")


def _is_byte(item: object) -> bool:
    return isinstance(item, int) and not isinstance(item, bool) and 0 <= item <= 255

"""Domain models shared by background tasks and the scheduler seam."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from asset_ingester.tasks.errors import IngesterError, PayloadError


class OutcomeStatus(str, Enum):
    """Result of one task invocation as seen by the scheduler."""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    UNRECOVERABLE = "unrecoverable"


@dataclass(slots=True)
class TaskData:
    """Serialized unit of work exchanged with the scheduler."""

    name: str
    data: dict[str, Any]
    created_at: datetime | None = None

    def to_json(self) -> str:
        """Encode envelope as a JSON document."""

        return json.dumps(
            {
                "name": self.name,
                "data": self.data,
                "created_at": self.created_at.isoformat() if self.created_at else None,
            },
            ensure_ascii=False,
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: str) -> TaskData:
        """Decode envelope and validate its top-level shape."""

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as error:
            raise PayloadError(f"Task data is not valid JSON: {error}") from error
        if not isinstance(payload, dict):
            raise PayloadError("Task data must be a JSON object")

        name = payload.get("name")
        data = payload.get("data")
        created_at = payload.get("created_at")
        if not isinstance(name, str) or not name.strip():
            raise PayloadError("task_data.name must be a non-empty string")
        if not isinstance(data, dict):
            raise PayloadError("task_data.data must be an object")
        if created_at is not None and not isinstance(created_at, str):
            raise PayloadError("task_data.created_at must be an ISO string when provided")
        try:
            parsed_created_at = _parse_envelope_timestamp(created_at) if created_at else None
        except ValueError as error:
            raise PayloadError(f"task_data.created_at is not ISO formatted: {created_at!r}") from error
        return cls(name=name, data=data, created_at=parsed_created_at)


def _parse_envelope_timestamp(value: str) -> datetime:
    # Scheduler timestamps without an offset are UTC.
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


@dataclass(slots=True)
class TaskOutcome:
    """Classified outcome of one invocation."""

    task_name: str
    status: OutcomeStatus
    reason: str | None = None
    error: IngesterError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def should_retry(self) -> bool:
        return self.status == OutcomeStatus.RETRYABLE

    @classmethod
    def success(cls, task_name: str) -> TaskOutcome:
        return cls(task_name=task_name, status=OutcomeStatus.SUCCESS)

    @classmethod
    def from_error(cls, task_name: str, error: IngesterError) -> TaskOutcome:
        """Map a raised task error onto the retry classification."""

        status = OutcomeStatus.RETRYABLE if error.retryable else OutcomeStatus.UNRECOVERABLE
        return cls(task_name=task_name, status=status, reason=str(error), error=error)

    def to_event_details(self) -> dict[str, object]:
        """Serialize outcome diagnostics for logs and CLI output."""

        return {
            "task_name": self.task_name,
            "status": self.status.value,
            "reason": self.reason,
            "reason_code": self.error.reason_code if self.error is not None else None,
        }


@dataclass(slots=True)
class TaskDescription:
    """Declarative contract of one registered task."""

    name: str
    lock_duration: int
    max_attempts: int

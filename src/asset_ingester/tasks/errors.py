"""Error taxonomy for background tasks and their retry classification."""

from __future__ import annotations


class IngesterError(Exception):
    """Base error raised by background tasks.

    ``retryable`` tells the scheduler whether another attempt may succeed.
    """

    retryable: bool = True
    reason_code: str = "ingester_error"


class PayloadError(IngesterError):
    """Task data could not be decoded into the expected payload."""

    retryable = False
    reason_code = "payload_invalid"


class UnrecoverableTaskError(IngesterError):
    """Task reached a terminal state that no retry can resolve."""

    retryable = False
    reason_code = "unrecoverable"

    def __init__(self, message: str = "Unrecoverable task error") -> None:
        super().__init__(message)


class UnknownTaskError(IngesterError):
    """No task registered under the requested name."""

    retryable = False
    reason_code = "unknown_task"

    def __init__(self, name: str) -> None:
        super().__init__(f"No task registered with name {name!r}")
        self.name = name


class FetchError(IngesterError):
    """Remote metadata could not be retrieved."""

    reason_code = "fetch_error"


class TransportFetchError(FetchError):
    """Connection, DNS, TLS or timeout failure before a response arrived."""

    reason_code = "fetch_transport"


class HttpStatusError(FetchError):
    """Remote server answered with a non-200 status."""

    reason_code = "fetch_http_status"

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} fetching {url}")
        self.status_code = status_code
        self.url = url


class MetadataDecodeError(FetchError):
    """Response had a 200 status but the body was not valid JSON."""

    reason_code = "fetch_decode"


class StoreError(IngesterError):
    """Persistence layer failed to apply a write."""

    reason_code = "store_error"


class TaskManagerError(IngesterError):
    """Store failure wrapped with the name of the task that hit it."""

    reason_code = "task_manager_error"

    def __init__(self, task_name: str, cause: BaseException) -> None:
        super().__init__(f"Database error with {task_name}, error: {cause}")
        self.task_name = task_name
        self.cause = cause

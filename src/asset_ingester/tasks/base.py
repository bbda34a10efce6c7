"""Task interface consumed by the external scheduler."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession


@runtime_checkable
class BgTask(Protocol):
    """Protocol implemented by every background task type.

    The scheduler owns leasing and re-enqueueing; a task only declares how
    long its lease should be held, how many attempts it tolerates, and how to
    run one attempt.
    """

    @property
    def name(self) -> str:
        """Stable task name used for routing, logs and metric tags."""

    @property
    def lock_duration(self) -> int:
        """Advisory lease length for one running attempt."""

    @property
    def max_attempts(self) -> int:
        """Retry ceiling enforced by the scheduler."""

    async def execute(self, session: AsyncSession, data: dict[str, Any]) -> None:
        """Run one attempt, raising ``IngesterError`` on classified failure."""

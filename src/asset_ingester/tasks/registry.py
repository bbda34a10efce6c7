"""Name-keyed collection of tasks handed to the external scheduler."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from asset_ingester.tasks.base import BgTask
from asset_ingester.tasks.errors import IngesterError, UnknownTaskError
from asset_ingester.tasks.models import TaskData, TaskDescription, TaskOutcome

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Dispatches serialized task data to the task registered under its name."""

    def __init__(self, tasks: Iterable[BgTask] = ()) -> None:
        self._tasks: dict[str, BgTask] = {}
        for task in tasks:
            self.register(task)

    def register(self, task: BgTask) -> None:
        if task.name in self._tasks:
            raise ValueError(f"Task {task.name!r} is already registered")
        self._tasks[task.name] = task

    def get(self, name: str) -> BgTask:
        task = self._tasks.get(name)
        if task is None:
            raise UnknownTaskError(name)
        return task

    def names(self) -> list[str]:
        return sorted(self._tasks)

    def describe(self) -> list[TaskDescription]:
        return [
            TaskDescription(
                name=task.name,
                lock_duration=task.lock_duration,
                max_attempts=task.max_attempts,
            )
            for task in (self._tasks[name] for name in self.names())
        ]

    async def run(self, session: AsyncSession, task_data: TaskData) -> TaskOutcome:
        """Run one attempt and classify its result.

        Classified ``IngesterError`` failures become outcomes; anything else
        is a bug and propagates to the caller.
        """

        try:
            task = self.get(task_data.name)
        except UnknownTaskError as error:
            logger.error("Rejecting task data: %s", error)
            return TaskOutcome.from_error(task_data.name, error)

        logger.info("Running task %s", task.name)
        try:
            await task.execute(session, task_data.data)
        except IngesterError as error:
            outcome = TaskOutcome.from_error(task.name, error)
            logger.warning(
                "Task %s finished with %s: %s",
                task.name,
                outcome.status.value,
                error,
            )
            return outcome
        logger.info("Task %s succeeded", task.name)
        return TaskOutcome.success(task.name)

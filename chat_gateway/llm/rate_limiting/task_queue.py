"""
Single-concurrency FIFO task queue.

Every unit of work submitted to a TaskQueue runs alone and in submission
order. Callers get a future back immediately; the queue decides when the
work starts, never what it returns.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from chat_gateway.logging_utils import ContextualLogger

from ..exceptions import QueueFullError
from .models import QueuedTask, QueueStatus, TaskQueueConfig, TaskQueueState, TaskState

T = TypeVar("T")


class TaskQueue:
    """
    FIFO executor that runs at most one task at a time.

    Features:
    - Strict enqueue-order execution
    - Non-blocking enqueue returning an asyncio future
    - Failures isolated to the failing task's future
    - Optional pending capacity bound
    - Trailing tasks queued atomically behind a task
    - Statistics
    """

    def __init__(self, config: TaskQueueConfig | None = None):
        self.config = config or TaskQueueConfig()
        self.state = TaskQueueState()
        self._pending: deque[QueuedTask] = deque()
        self._running: QueuedTask | None = None
        self._drain_task: asyncio.Task | None = None
        self._logger = ContextualLogger({"queue": self.config.name})

    @property
    def status(self) -> QueueStatus:
        return self.state.status

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_running(self) -> bool:
        return self._running is not None

    def run(
        self,
        work: Callable[[], Awaitable[T]],
        *,
        name: str | None = None,
        trailing: Callable[[], Awaitable[Any]] | None = None,
    ) -> asyncio.Future[T]:
        """
        Enqueue work and return a future for its outcome.

        Args:
            work: Zero-argument callable returning an awaitable
            name: Label used in logs
            trailing: Work queued directly behind ``work`` in the same step;
                not counted against ``max_pending``

        Returns:
            Future resolved with the work's result or exception

        Raises:
            QueueFullError: If ``max_pending`` tasks are already waiting
        """
        max_pending = self.config.max_pending
        if max_pending is not None and len(self._pending) >= max_pending:
            self.state.total_rejected += 1
            self._logger.warning(
                "Task rejected, queue is full",
                task_name=name,
                max_pending=max_pending,
            )
            raise QueueFullError(
                f"Task queue '{self.config.name}' is full "
                f"({max_pending} pending tasks)",
                max_pending=max_pending,
            )

        loop = asyncio.get_running_loop()
        task = self._enqueue(loop, work, name)

        if trailing is not None:
            follow_up = self._enqueue(loop, trailing, f"{task.name}:trailing")
            follow_up.future.add_done_callback(self._consume_outcome)

        self._ensure_draining(loop)
        return task.future

    def _enqueue(
        self,
        loop: asyncio.AbstractEventLoop,
        work: Callable[[], Awaitable[Any]],
        name: str | None,
    ) -> QueuedTask:
        task_id = uuid.uuid4().hex[:12]
        task = QueuedTask(
            task_id=task_id,
            name=name or f"task-{task_id}",
            work=work,
            future=loop.create_future(),
        )
        self._pending.append(task)
        self.state.total_enqueued += 1
        self._logger.debug(
            "Task enqueued",
            task_id=task.task_id,
            task_name=task.name,
            pending=len(self._pending),
        )
        return task

    def _ensure_draining(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start the drain task when the queue is idle."""
        if self.state.status == QueueStatus.IDLE:
            self.state.status = QueueStatus.RUNNING
            self._drain_task = loop.create_task(self._drain())

    async def _drain(self) -> None:
        """Run pending tasks one by one until none are left."""
        try:
            while self._pending:
                task = self._pending.popleft()
                await self._execute(task)
        finally:
            # No await between the empty check and this line, so a concurrent
            # run() either lands in _pending above or sees IDLE and restarts.
            self.state.status = QueueStatus.IDLE
            self._drain_task = None
            for task in self._pending:
                task.future.cancel()
            self._pending.clear()

    async def _execute(self, task: QueuedTask) -> None:
        self._running = task
        task.state = TaskState.RUNNING
        task.started_at = datetime.now()
        wait_ms = round((task.started_at - task.queued_at).total_seconds() * 1000, 2)
        self._logger.debug(
            "Task started", task_id=task.task_id, task_name=task.name, wait_ms=wait_ms
        )

        try:
            result = await task.work()
        except asyncio.CancelledError:
            task.state = TaskState.FAILED
            task.future.cancel()
            drain_task = asyncio.current_task()
            if drain_task is not None and drain_task.cancelling():
                raise
            # Raised by the work itself; only its own future sees it
            self.state.total_failed += 1
        except Exception as e:
            task.state = TaskState.FAILED
            self.state.total_failed += 1
            if not task.future.done():
                task.future.set_exception(e)
        else:
            task.state = TaskState.COMPLETED
            self.state.total_completed += 1
            if not task.future.done():
                task.future.set_result(result)
        finally:
            task.finished_at = datetime.now()
            self._running = None

        duration_ms = round(
            (task.finished_at - task.started_at).total_seconds() * 1000, 2
        )
        self._logger.debug(
            "Task settled",
            task_id=task.task_id,
            task_name=task.name,
            state=task.state.value,
            duration_ms=duration_ms,
        )

    @staticmethod
    def _consume_outcome(future: asyncio.Future) -> None:
        # Trailing task futures are never awaited by anyone
        if not future.cancelled():
            future.exception()

    async def join(self) -> None:
        """Wait until every task queued so far has settled."""
        while self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    def get_statistics(self) -> dict[str, int | str | bool | None]:
        """Get current queue statistics."""
        return {
            "queue": self.config.name,
            "status": self.state.status.value,
            "pending": len(self._pending),
            "running": self._running is not None,
            "total_enqueued": self.state.total_enqueued,
            "total_completed": self.state.total_completed,
            "total_failed": self.state.total_failed,
            "total_rejected": self.state.total_rejected,
            "max_pending": self.config.max_pending,
        }

"""
Task queue models and dataclasses.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TaskState(Enum):
    """Lifecycle of a queued task."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class QueueStatus(Enum):
    """Task queue states."""
    IDLE = "idle"          # Nothing running
    RUNNING = "running"    # Drain task active


@dataclass(frozen=True)
class TaskQueueConfig:
    """Configuration for the task queue."""
    name: str = "default"
    max_pending: int | None = None  # None = unbounded

    def __post_init__(self) -> None:
        if self.max_pending is not None and self.max_pending < 1:
            raise ValueError("max_pending must be at least 1 or None")


@dataclass
class TaskQueueState:
    """Counters for the task queue."""
    status: QueueStatus = QueueStatus.IDLE
    total_enqueued: int = 0
    total_completed: int = 0
    total_failed: int = 0
    total_rejected: int = 0


@dataclass
class QueuedTask:
    """A unit of deferred work waiting for its turn in the queue."""
    task_id: str
    name: str
    work: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]
    state: TaskState = TaskState.PENDING
    queued_at: datetime = field(default_factory=datetime.now)
    started_at: datetime | None = None
    finished_at: datetime | None = None

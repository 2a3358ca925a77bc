"""
Request serialization for chat completion calls.

This module contains:
- The single-concurrency FIFO task queue
- Task and queue state models
"""

from .models import QueuedTask, QueueStatus, TaskQueueConfig, TaskState
from .task_queue import TaskQueue

__all__ = [
    "QueueStatus",
    "QueuedTask",
    "TaskQueue",
    "TaskQueueConfig",
    "TaskState",
]

"""Batch scheduling services."""

from .pool import BatchWorkerPool, create_request_queue
from .task import BatchProcessor
from .worker import WorkerState, WorkerStatus

__all__ = [
    "BatchWorkerPool",
    "BatchProcessor",
    "WorkerState",
    "WorkerStatus",
    "create_request_queue",
]

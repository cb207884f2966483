"""Thread pool of batch workers sharing one request queue.

``queue.Queue`` gives no fairness guarantee between waiting consumers: any
idle worker may claim the next request, and batches from different workers
complete in no particular order.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from typing import List, Optional

from ...config import Settings, settings
from ...topology.provider import TopologyProvider
from ..optimization.backends import SolverBackend
from ..responses.sink import OutcomeSink
from .task import BatchProcessor
from .worker import WorkerStatus, run_worker

logger = logging.getLogger(__name__)


def create_request_queue(capacity: int | None = None) -> queue.Queue:
    return queue.Queue(maxsize=capacity or settings.queue_capacity)


@dataclass(slots=True)
class WorkerHandle:
    status: WorkerStatus
    future: Future


class BatchWorkerPool:
    def __init__(
        self,
        requests: queue.Queue,
        topology: TopologyProvider,
        sink: OutcomeSink,
        *,
        config: Settings | None = None,
        backend: SolverBackend | None = None,
    ) -> None:
        self.requests = requests
        self.topology = topology
        self.sink = sink
        self.config = config or settings
        self.backend = backend
        self._cancel = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._workers: List[WorkerHandle] = []
        self._lifecycle = threading.Lock()

    @property
    def started(self) -> bool:
        return self._executor is not None

    @property
    def running(self) -> bool:
        return any(not handle.future.done() for handle in self._workers)

    @property
    def statuses(self) -> list[WorkerStatus]:
        return [replace(handle.status) for handle in self._workers]

    def start(self, worker_count: int | None = None, batch_size: int | None = None) -> bool:
        """Spawn the workers and return once every one of them is running.

        Returns ``False`` without side effects when the pool was started
        before. A stopped pool is not restarted.
        """
        worker_count = self.config.worker_count if worker_count is None else worker_count
        batch_size = self.config.batch_size if batch_size is None else batch_size
        if worker_count < 1 or batch_size < 1:
            raise ValueError(f"worker_count and batch_size must be >= 1, got {worker_count} and {batch_size}")

        with self._lifecycle:
            if self._executor is not None or self._cancel.is_set():
                return False
            logger.info(f"Initializing thread pool, size = {worker_count}, batch size = {batch_size}")
            solver_lock = threading.Lock() if self.config.serialize_solver else None
            processor = BatchProcessor(
                self.topology,
                config=self.config,
                backend=self.backend,
                solver_lock=solver_lock,
            )
            self._executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="WorkerThread")
            started_events = []
            for index in range(worker_count):
                status = WorkerStatus(worker_id=f"Thread-{index}")
                started = threading.Event()
                future = self._executor.submit(
                    run_worker,
                    status,
                    self.requests,
                    self._cancel,
                    batch_size=batch_size,
                    processor=processor,
                    sink=self.sink,
                    poll_seconds=self.config.collect_poll_seconds,
                    requeue_on_stop=self.config.requeue_on_stop,
                    started=started,
                )
                self._workers.append(WorkerHandle(status=status, future=future))
                started_events.append(started)
            for started in started_events:
                started.wait()
            logger.debug("Thread pool initialized")
            return True

    def stop(self) -> None:
        """Signal every worker to stop at its next collection boundary.

        Returns immediately; in-flight batches still finish and publish.
        """
        self._cancel.set()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
        logger.info("Stop requested for all worker threads")

    def join(self, timeout: float | None = None) -> bool:
        """Wait for all workers to exit; ``True`` if they did within ``timeout``."""
        if not self._workers:
            return True
        _, pending = wait([handle.future for handle in self._workers], timeout=timeout)
        return not pending

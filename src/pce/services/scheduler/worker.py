"""Worker loop draining the shared request queue in fixed-size batches."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ...errors import CollectionInterrupted
from ...models.domain import ModuleTarget, NoPathReason, PathOutcome, PathRequest
from ..responses.mapper import no_path_outcome
from ..responses.sink import OutcomeSink
from .task import BatchProcessor

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    STARTING = "starting"
    COLLECTING = "collecting"
    PROCESSING = "processing"
    STOPPED = "stopped"


@dataclass(slots=True)
class WorkerStatus:
    worker_id: str
    state: WorkerState = WorkerState.STARTING
    batches_processed: int = 0


def collect_batch(
    requests: queue.Queue,
    batch_size: int,
    cancel: threading.Event,
    poll_seconds: float,
) -> list[PathRequest]:
    """Block until ``batch_size`` requests are taken from ``requests``.

    The queue is polled every ``poll_seconds`` so a set ``cancel`` event wakes
    a waiting worker.

    Raises:
        CollectionInterrupted: ``cancel`` was set before the batch was full.
    """
    batch: list[PathRequest] = []
    while len(batch) < batch_size:
        if cancel.is_set():
            raise CollectionInterrupted(batch)
        try:
            batch.append(requests.get(timeout=poll_seconds))
        except queue.Empty:
            continue
        logger.debug(f"Current length of request queue = {requests.qsize()}")
    return batch


def _release_partial(
    worker_id: str,
    partial: Sequence[PathRequest],
    requests: queue.Queue,
    requeue: bool,
) -> None:
    requeued = 0
    for request in partial:
        if requeue:
            try:
                requests.put_nowait(request)
                requeued += 1
                continue
            except queue.Full:
                pass
        logger.warning(f"[Worker {worker_id}] dropping request {request.request_id} collected before shutdown")
    if requeued:
        logger.warning(f"[Worker {worker_id}] returned {requeued} partially collected request(s) to the queue")


def _publish(worker_id: str, sink: OutcomeSink, outcomes: Sequence[PathOutcome]) -> None:
    for outcome in outcomes:
        try:
            sink.publish(outcome, ModuleTarget.SESSION)
        except Exception:
            logger.exception(f"[Worker {worker_id}] failed to publish outcome for request {outcome.request_id}")


def run_worker(
    status: WorkerStatus,
    requests: queue.Queue,
    cancel: threading.Event,
    *,
    batch_size: int,
    processor: BatchProcessor,
    sink: OutcomeSink,
    poll_seconds: float,
    requeue_on_stop: bool = False,
    started: threading.Event | None = None,
) -> WorkerStatus:
    """Collect, process and publish batches until ``cancel`` is set.

    Cancellation only takes effect between batches; a batch already being
    processed always runs to completion and is published.
    """
    worker_id = status.worker_id
    logger.info(f"[Worker {worker_id}] started, batch size = {batch_size}")
    if started is not None:
        started.set()
    try:
        while not cancel.is_set():
            status.state = WorkerState.COLLECTING
            try:
                batch = collect_batch(requests, batch_size, cancel, poll_seconds)
            except CollectionInterrupted as exc:
                _release_partial(worker_id, exc.partial, requests, requeue_on_stop)
                break

            status.state = WorkerState.PROCESSING
            logger.debug(f"[Worker {worker_id}] processing batch of {len(batch)} request(s)")
            try:
                outcomes = processor.process(batch)
            except Exception:
                logger.exception(f"[Worker {worker_id}] batch processing failed")
                outcomes = [no_path_outcome(request, NoPathReason.SOLVER_ERROR) for request in batch]
            _publish(worker_id, sink, outcomes)
            status.batches_processed += 1
    finally:
        status.state = WorkerState.STOPPED
        logger.info(f"[Worker {worker_id}] stopped after {status.batches_processed} batch(es)")
    return status

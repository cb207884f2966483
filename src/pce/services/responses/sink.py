"""Outbound delivery of outcomes to the session layer."""

from __future__ import annotations

import queue
from typing import Protocol

from ...models.domain import ModuleTarget, PathOutcome


class OutcomeSink(Protocol):
    def publish(self, outcome: PathOutcome, target: ModuleTarget) -> None:
        ...


class QueueSink:
    """Places ``(target, outcome)`` tuples on a queue read by the session layer."""

    def __init__(self, outbound: queue.Queue | None = None) -> None:
        self.outbound: queue.Queue = outbound if outbound is not None else queue.Queue()

    def publish(self, outcome: PathOutcome, target: ModuleTarget) -> None:
        self.outbound.put((target, outcome))

    def drain(self) -> list[PathOutcome]:
        """Outcomes currently queued, regardless of target."""
        drained: list[PathOutcome] = []
        while True:
            try:
                _, outcome = self.outbound.get_nowait()
            except queue.Empty:
                return drained
            drained.append(outcome)

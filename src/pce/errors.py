"""Error taxonomy of the path computation core.

Every error resolves to a no-path outcome inside the worker; none of them
escapes a worker thread.
"""

from __future__ import annotations

from typing import Sequence

from .models.domain import NoPathReason, PathRequest


class PathComputationError(Exception):
    reason: NoPathReason = NoPathReason.SOLVER_ERROR


class EndpointUnknown(PathComputationError):
    reason = NoPathReason.ENDPOINT_UNKNOWN


class InvalidRequest(PathComputationError):
    reason = NoPathReason.INVALID_REQUEST


class SolverInfeasible(PathComputationError):
    reason = NoPathReason.INFEASIBLE


class SolverFailure(PathComputationError):
    reason = NoPathReason.SOLVER_ERROR


class CollectionInterrupted(PathComputationError):
    """Raised when a worker is cancelled before its batch is complete."""

    def __init__(self, partial: Sequence[PathRequest]):
        super().__init__(f"Collection interrupted with {len(partial)} request(s) pending")
        self.partial = list(partial)

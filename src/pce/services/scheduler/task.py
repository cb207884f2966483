"""Processing of one claimed batch, from snapshot to outcomes."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from ...config import Settings, settings
from ...errors import PathComputationError
from ...models.domain import NoPathReason, PathOutcome, PathRequest, RoutingConstraint
from ...topology.provider import TopologyProvider
from ..constraints.builder import build_constraints
from ..optimization.backends import OrToolsBackend, SolverBackend
from ..optimization.model import build_batch_problem, solve_batch
from ..paths.enumerator import enumerate_batch_paths
from ..responses.mapper import map_outcome, no_path_outcome

logger = logging.getLogger(__name__)


class BatchProcessor:
    """Runs constraint building, path enumeration, the joint solve and
    outcome mapping over one batch, against one private topology copy."""

    def __init__(
        self,
        topology: TopologyProvider,
        *,
        config: Settings | None = None,
        backend: SolverBackend | None = None,
        solver_lock: Optional[threading.Lock] = None,
    ) -> None:
        self.topology = topology
        self.config = config or settings
        self.backend = backend or OrToolsBackend(
            solver_id=self.config.solver_backend,
            fallback_id=self.config.solver_fallback_backend,
            time_limit_seconds=self.config.solver_time_limit_seconds,
        )
        self.solver_lock = solver_lock

    def process(self, batch: Sequence[PathRequest]) -> list[PathOutcome]:
        graph = self.topology.copy(self.topology.get_snapshot())
        outcomes: list[Optional[PathOutcome]] = [None] * len(batch)

        constraints, rejections = build_constraints(batch, graph)
        for index, error in rejections.items():
            if error.reason is NoPathReason.INVALID_REQUEST:
                logger.info(f"Request {batch[index].request_id} rejected: {error}")
            outcomes[index] = no_path_outcome(batch[index], error.reason)

        admitted = [constraint for constraint in constraints if constraint is not None]
        candidates = enumerate_batch_paths(
            graph,
            (constraint.pair for constraint in admitted),
            slack=self.config.path_slack,
        )

        # a pair without any candidate path cannot be routed whatever the solve does,
        # and a pair's path only ever serves its first request
        routable: list[Optional[RoutingConstraint]] = []
        claimed: set = set()
        for index, constraint in enumerate(constraints):
            if constraint is not None and not candidates[constraint.pair]:
                logger.info(
                    f"Request {constraint.request_id}: no path between "
                    f"{constraint.source!r} and {constraint.destination!r}"
                )
                outcomes[index] = no_path_outcome(batch[index], NoPathReason.INFEASIBLE)
                constraint = None
            elif constraint is not None and constraint.pair in claimed:
                logger.info(
                    f"Request {constraint.request_id}: pair {constraint.pair!r} already requested "
                    f"earlier in the batch"
                )
                outcomes[index] = no_path_outcome(batch[index], NoPathReason.INFEASIBLE)
                constraint = None
            elif constraint is not None:
                claimed.add(constraint.pair)
            routable.append(constraint)

        model = build_batch_problem(
            graph,
            [constraint for constraint in routable if constraint is not None],
            candidates,
            admission_floor=self.config.admission_floor,
        )
        solution = solve_batch(model, self.backend, lock=self.solver_lock)

        failure: Optional[NoPathReason] = None
        try:
            solution.raise_for_status()
        except PathComputationError as exc:
            failure = exc.reason
            assigned: list = [None] * len(routable)
        else:
            assigned = solution.assign(routable)

        for index, constraint in enumerate(routable):
            if constraint is None:
                continue
            outcomes[index] = map_outcome(
                batch[index],
                assigned[index],
                graph,
                reason=failure or NoPathReason.INFEASIBLE,
            )

        routed = sum(1 for outcome in outcomes if outcome is not None and outcome.success)
        logger.debug(
            f"Batch of {len(batch)} processed: {routed} routed, {model.variable_count} variable(s), "
            f"solver status {solution.status.value}"
        )
        return [outcome for outcome in outcomes if outcome is not None]

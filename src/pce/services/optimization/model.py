"""Joint routing model over one batch of admitted requests.

Decision variables:
    R[p]  binary, one per candidate path, cost = path delay
    G[l]  continuous, one per link, 0 <= G[l] <= residual capacity

Constraints:
    link accounting   sum_p demand(p) * R[p] over paths using l == G[l]
    one path per pair sum_p R[p] over the pair's paths <= 1
    admission floor   sum_p R[p] over the pair's paths >= floor (per request)
    delay bound       sum_p delay(p) * R[p] over the pair's paths <= max delay

The admission floor is below one, but with binary R it can only be met by
selecting a path, so it forces admission rather than allowing partial flow.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from dataclasses import dataclass, field
from typing import Hashable, List, Mapping, Optional, Sequence

import networkx as nx

from ...errors import SolverFailure, SolverInfeasible
from ...models.domain import CandidatePath, RoutingConstraint
from ...topology.provider import iter_edges
from .backends import SolverBackend
from .problem import MilpProblem, Sense, SolveResult, SolveStatus

DEFAULT_ADMISSION_FLOOR = 0.01
SELECTION_THRESHOLD = 0.5

logger = logging.getLogger(__name__)

Pair = tuple[Hashable, Hashable]


@dataclass(slots=True)
class BatchModel:
    problem: MilpProblem
    paths: List[CandidatePath] = field(default_factory=list)
    path_vars: List[int] = field(default_factory=list)
    edge_vars: dict[Hashable, int] = field(default_factory=dict)

    @property
    def variable_count(self) -> int:
        return len(self.problem.variables)


def _distinct_pairs(constraints: Sequence[RoutingConstraint]) -> list[Pair]:
    seen: dict[Pair, None] = {}
    for constraint in constraints:
        seen.setdefault(constraint.pair, None)
    return list(seen)


def build_batch_problem(
    graph: nx.Graph,
    constraints: Sequence[RoutingConstraint],
    candidates: Mapping[Pair, Sequence[CandidatePath]],
    *,
    admission_floor: float = DEFAULT_ADMISSION_FLOOR,
) -> BatchModel:
    """Assemble the batch model from admitted constraints and their candidates.

    ``graph`` must be the snapshot the candidates were enumerated on. A batch
    with no constraints yields an empty model.
    """
    problem = MilpProblem()
    model = BatchModel(problem=problem)
    if not constraints:
        return model

    # the path of a pair goes to its first request, so that demand is reserved
    demand_by_pair: dict[Pair, float] = {}
    for constraint in constraints:
        demand_by_pair.setdefault(constraint.pair, constraint.bandwidth_demand)

    vars_by_pair: dict[Pair, list[int]] = {}
    for pair in _distinct_pairs(constraints):
        pair_vars = vars_by_pair.setdefault(pair, [])
        for path in candidates.get(pair, ()):
            index = problem.add_binary(f"R[{len(model.paths)}]", objective=path.aggregate_delay)
            model.paths.append(path)
            model.path_vars.append(index)
            pair_vars.append(index)

    for position, (key, capacity) in enumerate(iter_edges(graph)):
        model.edge_vars[key] = problem.add_continuous(f"G[{position}]", upper=capacity)

    for position, (key, utilisation) in enumerate(model.edge_vars.items()):
        terms: dict[int, float] = {}
        for index, path in zip(model.path_vars, model.paths):
            if path.traverses(key):
                terms[index] = demand_by_pair[path.pair]
        terms[utilisation] = -1.0
        problem.add_constraint(f"link[{position}]", terms, Sense.EQ, 0.0)

    for pair, pair_vars in vars_by_pair.items():
        problem.add_constraint(f"single[{pair}]", {index: 1.0 for index in pair_vars}, Sense.LE, 1.0)

    for constraint in constraints:
        pair_vars = vars_by_pair[constraint.pair]
        problem.add_constraint(
            f"floor[{constraint.request_id}]",
            {index: 1.0 for index in pair_vars},
            Sense.GE,
            admission_floor,
        )

    for constraint in constraints:
        if constraint.max_delay is None:
            continue
        terms = {
            index: path.aggregate_delay
            for index, path in zip(model.path_vars, model.paths)
            if path.pair == constraint.pair
        }
        problem.add_constraint(f"delay[{constraint.request_id}]", terms, Sense.LE, constraint.max_delay)

    logger.debug(
        f"Built batch model: {len(constraints)} request(s), {len(model.paths)} path variable(s), "
        f"{len(model.edge_vars)} link variable(s), {len(problem.constraints)} constraint(s)"
    )
    return model


@dataclass(slots=True)
class BatchSolution:
    model: BatchModel
    result: SolveResult
    decisions: List[bool] = field(default_factory=list)

    @property
    def status(self) -> SolveStatus:
        return self.result.status

    def raise_for_status(self) -> None:
        if self.result.status is SolveStatus.INFEASIBLE:
            raise SolverInfeasible(self.result.message or "Batch model is infeasible")
        if not self.result.has_assignment:
            raise SolverFailure(self.result.message or "Solver returned no assignment")

    def selected_paths(self) -> list[CandidatePath]:
        return [path for path, chosen in zip(self.model.paths, self.decisions) if chosen]

    def assign(self, constraints: Sequence[Optional[RoutingConstraint]]) -> list[Optional[CandidatePath]]:
        """Selected path per constraint, aligned with ``constraints``.

        A pair's selected path serves only the first request of that pair in
        batch order. If rounding leaves more than one path of a pair selected,
        the first in enumeration order wins.
        """
        first_selected: dict[Pair, CandidatePath] = {}
        for path in self.selected_paths():
            first_selected.setdefault(path.pair, path)

        served: set[Pair] = set()
        assigned: list[Optional[CandidatePath]] = []
        for constraint in constraints:
            if constraint is None or constraint.pair in served:
                assigned.append(None)
                continue
            path = first_selected.get(constraint.pair)
            if path is not None:
                served.add(constraint.pair)
            assigned.append(path)
        return assigned


def solve_batch(
    model: BatchModel,
    backend: SolverBackend,
    *,
    lock: Optional[threading.Lock] = None,
) -> BatchSolution:
    """Run ``backend`` on the model and extract one decision per candidate path.

    Backend exceptions are logged and reported as an error status.
    """
    if model.problem.is_empty:
        return BatchSolution(model=model, result=SolveResult(SolveStatus.OPTIMAL, values=[]))

    guard = lock if lock is not None else contextlib.nullcontext()
    try:
        with guard:
            result = backend.solve(model.problem)
    except Exception as exc:
        logger.exception(f"Solver backend failed on a model with {model.variable_count} variable(s)")
        result = SolveResult(SolveStatus.ERROR, message=str(exc))

    decisions: list[bool] = []
    if result.has_assignment:
        decisions = [result.values[index] > SELECTION_THRESHOLD for index in model.path_vars]
    elif result.status is SolveStatus.INFEASIBLE:
        logger.info(f"Batch model infeasible: {result.message}")
    else:
        logger.error(f"Batch solve failed: {result.message}")
    return BatchSolution(model=model, result=result, decisions=decisions)

import pytest

from pce.errors import SolverFailure, SolverInfeasible
from pce.models.domain import RoutingConstraint
from pce.services.optimization.backends import OrToolsBackend
from pce.services.optimization.model import build_batch_problem, solve_batch
from pce.services.optimization.problem import SolveResult, SolveStatus, VariableKind
from pce.services.paths.enumerator import enumerate_batch_paths
from pce.topology.provider import build_topology


class RecordingBackend:
    def __init__(self, inner=None):
        self.inner = inner or OrToolsBackend(time_limit_seconds=10)
        self.calls = []

    def solve(self, problem):
        self.calls.append(problem)
        return self.inner.solve(problem)


class ExplodingBackend:
    def solve(self, problem):
        raise RuntimeError("solver crashed")


class SelectEverythingBackend:
    def solve(self, problem):
        values = [0.9999 if v.kind is VariableKind.BINARY else 0.0 for v in problem.variables]
        return SolveResult(SolveStatus.OPTIMAL, values=values)


def _line_graph():
    return build_topology([("A", "B", 10, 5), ("B", "C", 10, 5)])


def _constraint(rid, source, destination, demand, max_delay=None):
    return RoutingConstraint(
        request_id=rid,
        source=source,
        destination=destination,
        bandwidth_demand=demand,
        max_delay=max_delay,
    )


def _model(graph, constraints, slack=2):
    candidates = enumerate_batch_paths(graph, [c.pair for c in constraints], slack=slack)
    return build_batch_problem(graph, constraints, candidates, admission_floor=0.01)


def test_empty_batch_builds_no_variables_and_skips_solver():
    backend = RecordingBackend()
    model = _model(_line_graph(), [])

    solution = solve_batch(model, backend)

    assert model.variable_count == 0
    assert backend.calls == []
    assert solution.status is SolveStatus.OPTIMAL


def test_model_has_path_and_link_variables():
    model = _model(_line_graph(), [_constraint(1, "A", "C", 5, max_delay=20)])

    binaries = [v for v in model.problem.variables if v.kind is VariableKind.BINARY]
    links = [v for v in model.problem.variables if v.kind is VariableKind.CONTINUOUS]
    assert len(binaries) == 1
    assert binaries[0].objective == 10
    assert sorted(v.upper for v in links) == [10.0, 10.0]
    # two link rows, one single-path row, one floor row, one delay row
    assert len(model.problem.constraints) == 5


def test_feasible_request_selects_its_only_path():
    constraints = [_constraint(1, "A", "C", 5, max_delay=20)]
    model = _model(_line_graph(), constraints)

    solution = solve_batch(model, OrToolsBackend(time_limit_seconds=10))
    solution.raise_for_status()

    assert solution.decisions == [True]
    assert solution.assign(constraints)[0].vertices == ("A", "B", "C")


def test_delay_bound_below_path_delay_is_infeasible():
    model = _model(_line_graph(), [_constraint(1, "A", "C", 5, max_delay=1)])

    solution = solve_batch(model, OrToolsBackend(time_limit_seconds=10))

    assert solution.status is SolveStatus.INFEASIBLE
    with pytest.raises(SolverInfeasible):
        solution.raise_for_status()


def test_capacity_overload_on_same_pair_routes_only_first_request():
    constraints = [_constraint(1, "A", "C", 7), _constraint(2, "A", "C", 7)]
    model = _model(_line_graph(), constraints)

    solution = solve_batch(model, OrToolsBackend(time_limit_seconds=10))
    solution.raise_for_status()
    assigned = solution.assign(constraints)

    assert sum(solution.decisions) <= 1
    assert assigned[0].vertices == ("A", "B", "C")
    assert assigned[1] is None


def test_joint_allocation_steers_around_bottleneck():
    graph = build_topology(
        [("A", "B", 10, 1), ("B", "C", 10, 1), ("A", "D", 10, 5), ("D", "C", 10, 5)]
    )
    constraints = [_constraint(1, "A", "C", 7), _constraint(2, "B", "C", 7)]
    model = _model(graph, constraints)

    solution = solve_batch(model, OrToolsBackend(time_limit_seconds=10))
    solution.raise_for_status()
    assigned = solution.assign(constraints)

    assert assigned[0].vertices == ("A", "D", "C")
    assert assigned[1].vertices == ("B", "C")


def test_backend_exception_becomes_solver_error():
    model = _model(_line_graph(), [_constraint(1, "A", "C", 5)])

    solution = solve_batch(model, ExplodingBackend())

    assert solution.status is SolveStatus.ERROR
    assert solution.decisions == []
    with pytest.raises(SolverFailure):
        solution.raise_for_status()


def test_rounding_ties_resolve_to_first_enumerated_path():
    graph = build_topology(
        [("A", "B", 10, 1), ("B", "D", 10, 1), ("A", "C", 10, 2), ("C", "D", 10, 2)]
    )
    constraints = [_constraint(1, "A", "D", 1)]
    model = _model(graph, constraints, slack=0)

    solution = solve_batch(model, SelectEverythingBackend())
    assigned = solution.assign(constraints)

    assert solution.decisions == [True, True]
    assert assigned[0].vertices == ("A", "B", "D")


def test_unavailable_solver_reports_error():
    backend = OrToolsBackend(solver_id="NO_SUCH_SOLVER", fallback_id="")
    model = _model(_line_graph(), [_constraint(1, "A", "C", 5)])

    result = backend.solve(model.problem)

    assert result.status is SolveStatus.ERROR
    assert not result.has_assignment


def test_fallback_solver_is_used_when_primary_is_missing():
    backend = OrToolsBackend(solver_id="NO_SUCH_SOLVER", fallback_id="SCIP", time_limit_seconds=10)
    model = _model(_line_graph(), [_constraint(1, "A", "C", 5)])

    result = backend.solve(model.problem)

    assert result.status is SolveStatus.OPTIMAL


def test_error_message_names_the_fallback_solver_that_was_tried():
    backend = OrToolsBackend(solver_id="NO_SUCH_SOLVER", fallback_id="NO_OTHER_SOLVER")
    model = _model(_line_graph(), [_constraint(1, "A", "C", 5)])

    result = backend.solve(model.problem)

    assert result.status is SolveStatus.ERROR
    assert "NO_OTHER_SOLVER" in result.message

"""OR-Tools integration for batch route optimization."""

from __future__ import annotations

import logging
import math
from typing import Protocol

from ortools.linear_solver import pywraplp

from ...config import settings
from .problem import MilpProblem, Sense, SolveResult, SolveStatus, VariableKind

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    pywraplp.Solver.OPTIMAL: SolveStatus.OPTIMAL,
    pywraplp.Solver.FEASIBLE: SolveStatus.FEASIBLE,
    pywraplp.Solver.INFEASIBLE: SolveStatus.INFEASIBLE,
}


class SolverBackend(Protocol):
    def solve(self, problem: MilpProblem) -> SolveResult:
        ...


class OrToolsBackend:
    """Solves a :class:`MilpProblem` with an OR-Tools MIP backend.

    A fresh ``pywraplp.Solver`` is created per call, so one backend instance
    can be shared between workers.
    """

    def __init__(
        self,
        solver_id: str | None = None,
        fallback_id: str | None = None,
        time_limit_seconds: float | None = None,
    ) -> None:
        self.solver_id = (solver_id or settings.solver_backend).upper()
        self.fallback_id = (fallback_id if fallback_id is not None else settings.solver_fallback_backend).upper()
        self.time_limit_seconds = (
            time_limit_seconds if time_limit_seconds is not None else settings.solver_time_limit_seconds
        )

    def _create_solver(self) -> tuple[pywraplp.Solver | None, str]:
        """Create the primary solver, or the fallback one; returns the id used."""
        solver = pywraplp.Solver.CreateSolver(self.solver_id)
        if solver:
            return solver, self.solver_id
        if self.fallback_id and self.fallback_id != self.solver_id:
            logger.warning(f"{self.solver_id} backend not available, falling back to {self.fallback_id}.")
            return pywraplp.Solver.CreateSolver(self.fallback_id), self.fallback_id
        return None, self.solver_id

    def solve(self, problem: MilpProblem) -> SolveResult:
        solver, used_id = self._create_solver()
        if not solver:
            return SolveResult(SolveStatus.ERROR, message=f"Could not create {used_id} solver")
        if self.time_limit_seconds > 0:
            solver.set_time_limit(int(self.time_limit_seconds * 1000))

        infinity = solver.infinity()

        def _bound(value: float) -> float:
            if math.isinf(value):
                return infinity if value > 0 else -infinity
            return value

        variables = []
        for variable in problem.variables:
            if variable.kind is VariableKind.BINARY:
                variables.append(solver.BoolVar(variable.name))
            else:
                variables.append(solver.NumVar(_bound(variable.lower), _bound(variable.upper), variable.name))

        for constraint in problem.constraints:
            if constraint.sense is Sense.LE:
                lower, upper = -infinity, constraint.rhs
            elif constraint.sense is Sense.GE:
                lower, upper = constraint.rhs, infinity
            else:
                lower, upper = constraint.rhs, constraint.rhs
            row = solver.Constraint(lower, upper, constraint.name)
            for index, coefficient in constraint.terms.items():
                row.SetCoefficient(variables[index], coefficient)

        objective = solver.Objective()
        for index, variable in enumerate(problem.variables):
            if variable.objective:
                objective.SetCoefficient(variables[index], variable.objective)
        objective.SetMinimization()

        status = solver.Solve()
        mapped = _STATUS_MAP.get(status, SolveStatus.ERROR)
        if mapped is SolveStatus.ERROR:
            # NOT_SOLVED is what a time limit without an incumbent reports
            return SolveResult(mapped, message=f"{used_id} returned status {status}")
        if mapped is SolveStatus.INFEASIBLE:
            return SolveResult(mapped, message="Model is infeasible")
        return SolveResult(mapped, values=[variable.solution_value() for variable in variables])

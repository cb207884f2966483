"""Solver-neutral description of a mixed-integer linear program."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class VariableKind(str, Enum):
    BINARY = "binary"
    CONTINUOUS = "continuous"


class Sense(str, Enum):
    LE = "<="
    GE = ">="
    EQ = "=="


class SolveStatus(str, Enum):
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    ERROR = "error"


@dataclass(slots=True)
class Variable:
    name: str
    kind: VariableKind
    lower: float = 0.0
    upper: float = 1.0
    objective: float = 0.0


@dataclass(slots=True)
class LinearConstraint:
    name: str
    terms: dict[int, float]
    sense: Sense
    rhs: float


@dataclass(slots=True)
class MilpProblem:
    """Minimisation problem; variables are referenced by their index."""

    variables: List[Variable] = field(default_factory=list)
    constraints: List[LinearConstraint] = field(default_factory=list)

    def add_variable(
        self,
        name: str,
        kind: VariableKind,
        *,
        lower: float = 0.0,
        upper: float = 1.0,
        objective: float = 0.0,
    ) -> int:
        self.variables.append(Variable(name, kind, lower, upper, objective))
        return len(self.variables) - 1

    def add_binary(self, name: str, *, objective: float = 0.0) -> int:
        return self.add_variable(name, VariableKind.BINARY, objective=objective)

    def add_continuous(self, name: str, *, lower: float = 0.0, upper: float = math.inf) -> int:
        return self.add_variable(name, VariableKind.CONTINUOUS, lower=lower, upper=upper)

    def add_constraint(self, name: str, terms: dict[int, float], sense: Sense, rhs: float) -> None:
        self.constraints.append(LinearConstraint(name, dict(terms), sense, float(rhs)))

    @property
    def is_empty(self) -> bool:
        return not self.variables


@dataclass(slots=True)
class SolveResult:
    status: SolveStatus
    values: Optional[List[float]] = None
    message: str = ""

    @property
    def has_assignment(self) -> bool:
        return self.status in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE) and self.values is not None

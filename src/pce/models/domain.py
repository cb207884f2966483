"""Domain models for path computation requests, paths and outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Optional


class NoPathReason(str, Enum):
    ENDPOINT_UNKNOWN = "endpoint-unknown"
    INFEASIBLE = "infeasible"
    SOLVER_ERROR = "solver-error"
    INVALID_REQUEST = "invalid-request"


class ModuleTarget(str, Enum):
    """Destination module for a published outcome."""

    SESSION = "session"


@dataclass(frozen=True, slots=True)
class PathRequest:
    """A route computation request as handed over by the protocol layer."""

    request_id: int
    source: Hashable
    destination: Hashable
    bandwidth_demand: Optional[float] = None
    max_delay: Optional[float] = None
    reply_to: Any = None

    @property
    def pair(self) -> tuple[Hashable, Hashable]:
        return (self.source, self.destination)


@dataclass(frozen=True, slots=True)
class RoutingConstraint:
    """Admitted request, validated against one topology snapshot."""

    request_id: int
    source: Hashable
    destination: Hashable
    bandwidth_demand: float = 0.0
    max_delay: Optional[float] = None

    @property
    def pair(self) -> tuple[Hashable, Hashable]:
        return (self.source, self.destination)


@dataclass(frozen=True, slots=True)
class CandidatePath:
    """Simple path between two vertices of a snapshot.

    ``edges`` holds canonical edge keys: ``(u, v)`` on directed graphs and
    ``frozenset({u, v})`` on undirected ones.
    """

    vertices: tuple[Hashable, ...]
    edges: tuple[Hashable, ...]
    aggregate_delay: float

    @property
    def source(self) -> Hashable:
        return self.vertices[0]

    @property
    def destination(self) -> Hashable:
        return self.vertices[-1]

    @property
    def pair(self) -> tuple[Hashable, Hashable]:
        return (self.source, self.destination)

    @property
    def hop_count(self) -> int:
        return len(self.vertices) - 1

    def traverses(self, edge_key: Hashable) -> bool:
        return edge_key in self.edges


@dataclass(frozen=True, slots=True)
class PathOutcome:
    """Per-request result handed to the session layer."""

    request_id: int
    success: bool
    vertices: tuple[Hashable, ...] = ()
    reserved_bandwidth: Optional[float] = None
    reason: Optional[NoPathReason] = None
    reply_to: Any = None

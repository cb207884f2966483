"""Admission of requests into a batch optimization."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import networkx as nx

from ...errors import EndpointUnknown, InvalidRequest, PathComputationError
from ...models.domain import PathRequest, RoutingConstraint

logger = logging.getLogger(__name__)


def _check_endpoints(request: PathRequest, graph: nx.Graph) -> None:
    has_source = request.source in graph
    has_destination = request.destination in graph
    if has_source and has_destination:
        return
    if has_source:
        message = f"Destination {request.destination!r} not in the topology"
    elif has_destination:
        message = f"Source {request.source!r} not in the topology"
    else:
        message = f"Both source {request.source!r} and destination {request.destination!r} not in the topology"
    logger.info(f"Request {request.request_id}: {message}. Returning a no path outcome.")
    raise EndpointUnknown(message)


def _check_fields(request: PathRequest) -> None:
    if request.source == request.destination:
        raise InvalidRequest(f"Source and destination are both {request.source!r}")
    if request.bandwidth_demand is not None:
        if not math.isfinite(request.bandwidth_demand):
            raise InvalidRequest(f"Non-finite bandwidth demand {request.bandwidth_demand}")
        if request.bandwidth_demand < 0:
            raise InvalidRequest(f"Negative bandwidth demand {request.bandwidth_demand}")
    if request.max_delay is not None:
        if not math.isfinite(request.max_delay):
            raise InvalidRequest(f"Non-finite delay bound {request.max_delay}")
        if request.max_delay < 0:
            raise InvalidRequest(f"Negative delay bound {request.max_delay}")


def build_constraint(request: PathRequest, graph: nx.Graph) -> RoutingConstraint:
    """Validate ``request`` against ``graph`` and return its routing constraint.

    Raises:
        EndpointUnknown: source or destination is not a vertex of the snapshot.
        InvalidRequest: the request is malformed.
    """
    _check_endpoints(request, graph)
    _check_fields(request)
    return RoutingConstraint(
        request_id=request.request_id,
        source=request.source,
        destination=request.destination,
        bandwidth_demand=float(request.bandwidth_demand or 0.0),
        max_delay=request.max_delay,
    )


def build_constraints(
    batch: Sequence[PathRequest],
    graph: nx.Graph,
) -> tuple[list[Optional[RoutingConstraint]], dict[int, PathComputationError]]:
    """Constraints aligned index-for-index with ``batch``.

    Rejected requests leave ``None`` in their slot and are reported in the
    returned mapping of batch index to error.
    """
    constraints: list[Optional[RoutingConstraint]] = []
    rejections: dict[int, PathComputationError] = {}
    for index, request in enumerate(batch):
        try:
            constraints.append(build_constraint(request, graph))
        except (EndpointUnknown, InvalidRequest) as exc:
            constraints.append(None)
            rejections[index] = exc
    return constraints, rejections

"""Conversion of batch results into per-request outcomes."""

from __future__ import annotations

import logging
import math
from typing import Optional

import networkx as nx

from ...models.domain import CandidatePath, NoPathReason, PathOutcome, PathRequest
from ...topology.provider import edge_capacity

logger = logging.getLogger(__name__)


def path_bandwidth(path: CandidatePath, graph: nx.Graph) -> float:
    """Smallest residual capacity along ``path`` in ``graph``."""
    return min(
        (edge_capacity(graph, u, v) for u, v in zip(path.vertices, path.vertices[1:])),
        default=math.inf,
    )


def success_outcome(request: PathRequest, path: CandidatePath, graph: nx.Graph) -> PathOutcome:
    reserved = path_bandwidth(path, graph) if request.bandwidth_demand is not None else None
    logger.debug(f"Request {request.request_id}: computed path {list(path.vertices)}")
    return PathOutcome(
        request_id=request.request_id,
        success=True,
        vertices=path.vertices,
        reserved_bandwidth=reserved,
        reply_to=request.reply_to,
    )


def no_path_outcome(request: PathRequest, reason: NoPathReason) -> PathOutcome:
    return PathOutcome(
        request_id=request.request_id,
        success=False,
        reason=reason,
        reply_to=request.reply_to,
    )


def map_outcome(
    request: PathRequest,
    path: Optional[CandidatePath],
    graph: nx.Graph,
    *,
    reason: NoPathReason = NoPathReason.INFEASIBLE,
) -> PathOutcome:
    """Success outcome when ``path`` is set, otherwise no-path with ``reason``."""
    if path is None:
        return no_path_outcome(request, reason)
    return success_outcome(request, path, graph)

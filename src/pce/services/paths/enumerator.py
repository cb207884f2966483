"""Bounded enumeration of simple candidate paths.

Every simple path from source to destination whose hop count is within
``slack`` hops of the shortest one is returned. A pure shortest path leaves
the batch optimizer no room to steer around congested links; a small set of
near-shortest alternatives does, at the cost of a search that is exponential
in the number of paths on dense graphs. Keep topologies and slack small.
"""

from __future__ import annotations

import logging
from typing import Hashable, Iterable, Sequence

import networkx as nx

from ...models.domain import CandidatePath
from ...topology.provider import edge_delay, edge_key

DEFAULT_PATH_SLACK = 2

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


def _hops_to(graph: nx.Graph, destination: Hashable) -> dict[Hashable, int]:
    """Hop distance from every vertex that can reach ``destination``."""
    view = graph.reverse(copy=False) if graph.is_directed() else graph
    return nx.single_source_shortest_path_length(view, destination)


def _to_candidate(graph: nx.Graph, vertices: Sequence[Hashable]) -> CandidatePath:
    hops = list(zip(vertices, vertices[1:]))
    return CandidatePath(
        vertices=tuple(vertices),
        edges=tuple(edge_key(graph, u, v) for u, v in hops),
        aggregate_delay=sum(edge_delay(graph, u, v) for u, v in hops),
    )


def enumerate_paths(
    graph: nx.Graph,
    source: Hashable,
    destination: Hashable,
    *,
    slack: int = DEFAULT_PATH_SLACK,
) -> list[CandidatePath]:
    """Depth-first search over simple paths with a hop budget.

    The walk keeps the set of vertices on the current path and never revisits
    one, so path length is bounded by the vertex count. Branches are cut as
    soon as the hops taken plus the hop distance still to go exceed
    ``shortest + slack``; the pruned result equals the exhaustive one.

    Results are ordered by hop count, then aggregate delay, then discovery
    order. Neighbours are visited in graph insertion order, so repeated calls
    on the same snapshot return identical lists.
    """
    if source == destination:
        raise ValueError(f"Source and destination are the same vertex {source!r}.")
    if slack < 0:
        raise ValueError(f"Path slack must be non-negative, got {slack}.")
    if source not in graph or destination not in graph:
        raise ValueError(f"Pair ({source!r}, {destination!r}) is not contained in the topology.")

    remaining = _hops_to(graph, destination)
    if source not in remaining:
        return []
    hop_budget = remaining[source] + slack
    depth_limit = graph.number_of_nodes()

    found: list[tuple[Hashable, ...]] = []
    path: list[Hashable] = [source]
    on_path: set[Hashable] = {source}
    stack = [iter(graph.neighbors(source))]

    while stack:
        neighbour = next(stack[-1], _EXHAUSTED)
        if neighbour is _EXHAUSTED:
            stack.pop()
            on_path.discard(path.pop())
            continue
        if neighbour in on_path:
            continue
        # hops used once neighbour is appended
        hops = len(path)
        to_go = remaining.get(neighbour)
        if to_go is None or hops + to_go > hop_budget:
            continue
        if neighbour == destination:
            found.append((*path, neighbour))
            continue
        if len(path) >= depth_limit:
            continue
        path.append(neighbour)
        on_path.add(neighbour)
        stack.append(iter(graph.neighbors(neighbour)))

    candidates = [_to_candidate(graph, vertices) for vertices in found]
    candidates.sort(key=lambda candidate: (candidate.hop_count, candidate.aggregate_delay))
    logger.debug(
        f"Enumerated {len(candidates)} candidate path(s) {source!r}->{destination!r} "
        f"(shortest={remaining[source]} hops, slack={slack})"
    )
    return candidates


def enumerate_batch_paths(
    graph: nx.Graph,
    pairs: Iterable[tuple[Hashable, Hashable]],
    *,
    slack: int = DEFAULT_PATH_SLACK,
) -> dict[tuple[Hashable, Hashable], list[CandidatePath]]:
    """Candidate paths for each distinct pair, keyed in first-seen order."""
    catalog: dict[tuple[Hashable, Hashable], list[CandidatePath]] = {}
    for pair in pairs:
        if pair in catalog:
            continue
        catalog[pair] = enumerate_paths(graph, pair[0], pair[1], slack=slack)
    return catalog

"""Topology snapshot access for the computation core."""

from __future__ import annotations

import copy
import math
import threading
from typing import Hashable, Iterable, Protocol

import networkx as nx

CAPACITY = "capacity"
DELAY = "delay"

Link = tuple[Hashable, Hashable, float, float]


class TopologyProvider(Protocol):
    def get_snapshot(self) -> nx.Graph:
        ...

    def copy(self, graph: nx.Graph) -> nx.Graph:
        ...


class InMemoryTopologyProvider:
    """Holds the current topology; updates replace the whole graph."""

    def __init__(self, graph: nx.Graph | None = None) -> None:
        self._graph = graph if graph is not None else nx.Graph()
        self._lock = threading.Lock()

    def get_snapshot(self) -> nx.Graph:
        with self._lock:
            return nx.freeze(self._graph.copy())

    def copy(self, graph: nx.Graph) -> nx.Graph:
        return copy.deepcopy(graph)

    def replace(self, graph: nx.Graph) -> None:
        with self._lock:
            self._graph = graph


def build_topology(links: Iterable[Link], *, directed: bool = False) -> nx.Graph:
    """Build a graph from ``(u, v, capacity, delay)`` tuples."""
    graph: nx.Graph = nx.DiGraph() if directed else nx.Graph()
    for u, v, capacity, delay in links:
        if u == v:
            raise ValueError(f"Self-loop on vertex {u!r} is not a valid link.")
        graph.add_edge(u, v, **{CAPACITY: float(capacity), DELAY: float(delay)})
    return graph


def edge_key(graph: nx.Graph, u: Hashable, v: Hashable) -> Hashable:
    """Canonical key of the edge between ``u`` and ``v``.

    Both directions of an undirected edge map to the same key so they share
    one capacity.
    """
    if graph.is_directed():
        return (u, v)
    return frozenset((u, v))


def edge_capacity(graph: nx.Graph, u: Hashable, v: Hashable) -> float:
    return float(graph[u][v].get(CAPACITY, math.inf))


def edge_delay(graph: nx.Graph, u: Hashable, v: Hashable) -> float:
    return float(graph[u][v].get(DELAY, 0.0))


def iter_edges(graph: nx.Graph) -> Iterable[tuple[Hashable, float]]:
    """Yield ``(edge_key, capacity)`` for every edge in insertion order."""
    for u, v, data in graph.edges(data=True):
        yield edge_key(graph, u, v), float(data.get(CAPACITY, math.inf))

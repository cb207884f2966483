"""Topology snapshot access."""

from .provider import InMemoryTopologyProvider, TopologyProvider, build_topology

__all__ = ["InMemoryTopologyProvider", "TopologyProvider", "build_topology"]

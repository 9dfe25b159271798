"""Peer scoring and mesh topology calculations over a set of network nodes."""

from __future__ import annotations

import heapq
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_LATENCY_WEIGHT = 0.7
DEFAULT_BANDWIDTH_WEIGHT = 0.3
MAX_SELECTED_PEERS = 5
_MIN_DIVISOR = 0.001


@dataclass
class NetworkNode:
    """A peer in the mesh with its latency (ms) and bandwidth (Mbps)."""

    id: str = ""
    latency: float = 0.0
    bandwidth: float = 0.0
    active: bool = True
    connections: list[str] = field(default_factory=list)


@dataclass
class NetworkEdge:
    """A weighted link between two peers."""

    node1: str
    node2: str
    weight: float


def _score(latency: float, bandwidth: float, latency_weight: float, bandwidth_weight: float) -> float:
    return latency_weight * latency + (1.0 - bandwidth_weight) * (1.0 / max(bandwidth, _MIN_DIVISOR))


def edge_weight(
    first: NetworkNode,
    second: NetworkNode,
    latency_weight: float = DEFAULT_LATENCY_WEIGHT,
    bandwidth_weight: float = DEFAULT_BANDWIDTH_WEIGHT,
) -> float:
    """Weight of the link between two nodes; lower means a better link."""
    avg_latency = (first.latency + second.latency) / 2.0
    avg_bandwidth = (first.bandwidth + second.bandwidth) / 2.0
    return _score(avg_latency, avg_bandwidth, latency_weight, bandwidth_weight)


def optimal_peers(
    nodes: Mapping[str, NetworkNode],
    latency_weight: float = DEFAULT_LATENCY_WEIGHT,
    bandwidth_weight: float = DEFAULT_BANDWIDTH_WEIGHT,
) -> list[str]:
    """Up to five active, measured peers with the best combined score."""
    scored = sorted(
        (_score(node.latency, node.bandwidth, latency_weight, bandwidth_weight), peer_id)
        for peer_id, node in nodes.items()
        if node.active and node.latency > 0
    )
    return [peer_id for _, peer_id in scored[:MAX_SELECTED_PEERS]]


def minimum_spanning_tree(
    nodes: Mapping[str, NetworkNode],
    latency_weight: float = DEFAULT_LATENCY_WEIGHT,
    bandwidth_weight: float = DEFAULT_BANDWIDTH_WEIGHT,
) -> list[tuple[str, str]]:
    """Prim's minimum spanning tree over the active nodes, as a list of edges."""
    if len(nodes) <= 1:
        return []

    ordered = sorted(nodes.items())
    start = next((peer_id for peer_id, node in ordered if node.active), None)
    if start is None:
        return []

    visited = {start}
    heap: list[tuple[float, str, str]] = []

    def push_edges_from(source: str) -> None:
        source_node = nodes[source]
        for peer_id, node in ordered:
            if node.active and peer_id != source and peer_id not in visited:
                weight = edge_weight(source_node, node, latency_weight, bandwidth_weight)
                heapq.heappush(heap, (weight, source, peer_id))

    push_edges_from(start)

    tree: list[tuple[str, str]] = []
    while heap and len(visited) < len(nodes):
        _, node1, node2 = heapq.heappop(heap)
        if node1 in visited and node2 not in visited:
            new_node = node2
        elif node2 in visited and node1 not in visited:
            new_node = node1
        else:
            continue
        tree.append((node1, node2))
        visited.add(new_node)
        push_edges_from(new_node)

    return tree


def load_balanced_peers(nodes: Mapping[str, NetworkNode]) -> list[str]:
    """Up to five active peers with known bandwidth, highest bandwidth first."""
    ranked = sorted(
        (1.0 / node.bandwidth, peer_id)
        for peer_id, node in nodes.items()
        if node.active and node.bandwidth > 0
    )
    return [peer_id for _, peer_id in ranked[:MAX_SELECTED_PEERS]]


def network_efficiency(nodes: Mapping[str, NetworkNode]) -> float:
    """Mean bandwidth-to-latency ratio of active, measured peers."""
    if len(nodes) < 2:
        return 0.0
    ratios = [
        node.bandwidth / max(node.latency, _MIN_DIVISOR)
        for node in nodes.values()
        if node.active and node.latency > 0
    ]
    return sum(ratios) / len(ratios) if ratios else 0.0


def network_diameter(nodes: Mapping[str, NetworkNode]) -> str:
    """Identifier of the active peer with the highest latency, or an empty string."""
    farthest = ""
    max_latency = 0.0
    for peer_id, node in sorted(nodes.items()):
        if node.active and node.latency > max_latency:
            max_latency = node.latency
            farthest = peer_id
    return farthest
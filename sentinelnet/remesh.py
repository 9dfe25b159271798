"""Mesh re-optimisation: tracks peer link quality and recomputes the topology."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import replace

from sentinelnet.topology import (
    DEFAULT_BANDWIDTH_WEIGHT,
    DEFAULT_LATENCY_WEIGHT,
    NetworkNode,
    load_balanced_peers,
    minimum_spanning_tree,
    network_diameter,
    network_efficiency,
    optimal_peers,
)

log = logging.getLogger(__name__)

DEFAULT_REMESH_THRESHOLD_MS = 100.0
DEFAULT_INTERVAL_SECONDS = 10.0
LOW_BANDWIDTH_MBPS = 0.1
MIN_LATENCY_MS = 5.0
MAX_LATENCY_MS = 1000.0
MAX_BANDWIDTH_MBPS = 1000.0
LATENCY_JITTER_MS = (-5.0, 15.0)
BANDWIDTH_SAMPLE_MBPS = (0.1, 100.0)


class Remesh:
    """Keeps per-peer latency and bandwidth and periodically re-evaluates the mesh."""

    def __init__(
        self,
        remesh_threshold_ms: float = DEFAULT_REMESH_THRESHOLD_MS,
        bandwidth_weight: float = DEFAULT_BANDWIDTH_WEIGHT,
        latency_weight: float = DEFAULT_LATENCY_WEIGHT,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        rng: random.Random | None = None,
    ) -> None:
        self.remesh_threshold_ms = remesh_threshold_ms
        self.bandwidth_weight = bandwidth_weight
        self.latency_weight = latency_weight
        self.interval = interval
        self._rng = rng if rng is not None else random.SystemRandom()
        self._nodes: dict[str, NetworkNode] = {}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> Remesh:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    @property
    def nodes(self) -> dict[str, NetworkNode]:
        """A snapshot of the tracked peers."""
        with self._lock:
            return {peer_id: replace(node, connections=list(node.connections)) for peer_id, node in self._nodes.items()}

    def start(self) -> None:
        """Run the measure-and-remesh loop in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="remesh", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the background loop and wait for it to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.measure_latencies()
            self.measure_bandwidth()
            if self.needs_remesh():
                self.evaluate_and_optimize()
            self._stop_event.wait(self.interval)

    def evaluate_and_optimize(self) -> None:
        """Recompute the preferred topology and report it."""
        with self._lock:
            optimal = self.get_optimal_connections()
            tree = self.calculate_minimum_spanning_tree()
            balanced = self.calculate_load_balanced_connections()
            efficiency = self.network_efficiency()
        log.info("Remesh evaluation complete.")
        log.info("Optimal connections: %d peers", len(optimal))
        log.info("MST connections: %d peer pairs", len(tree))
        log.info("Load balanced peers: %d", len(balanced))
        log.info("Network efficiency: %s", efficiency)

    def update_peer_latency(self, peer_id: str, latency: float) -> None:
        """Record a latency measurement (ms), adding the peer if unknown."""
        with self._lock:
            node = self._nodes.get(peer_id)
            if node is None:
                self._nodes[peer_id] = NetworkNode(peer_id, latency=latency)
            else:
                node.latency = latency

    def update_peer_bandwidth(self, peer_id: str, bandwidth: float) -> None:
        """Record a bandwidth measurement (Mbps), adding the peer if unknown."""
        with self._lock:
            node = self._nodes.get(peer_id)
            if node is None:
                self._nodes[peer_id] = NetworkNode(peer_id, bandwidth=bandwidth)
            else:
                node.bandwidth = bandwidth

    def add_peer(self, peer_id: str) -> None:
        """Track a peer, or mark a known one active again."""
        with self._lock:
            node = self._nodes.get(peer_id)
            if node is None:
                self._nodes[peer_id] = NetworkNode(peer_id)
            else:
                node.active = True

    def remove_peer(self, peer_id: str) -> None:
        """Mark a peer inactive; it stays known."""
        with self._lock:
            node = self._nodes.get(peer_id)
            if node is not None:
                node.active = False

    def get_optimal_connections(self) -> list[str]:
        """Up to five best-scoring active peers."""
        with self._lock:
            return optimal_peers(self._nodes, self.latency_weight, self.bandwidth_weight)

    def get_optimal_topology(self) -> list[tuple[str, str]]:
        """The minimum spanning tree of the active mesh."""
        return self.calculate_minimum_spanning_tree()

    def needs_remesh(self) -> bool:
        """True if any peer is inactive, too slow or has too little bandwidth."""
        with self._lock:
            return any(
                not node.active
                or node.latency > self.remesh_threshold_ms
                or node.bandwidth < LOW_BANDWIDTH_MBPS
                for node in self._nodes.values()
            )

    def calculate_minimum_spanning_tree(self) -> list[tuple[str, str]]:
        """Edges of the minimum spanning tree over active peers."""
        with self._lock:
            return minimum_spanning_tree(self._nodes, self.latency_weight, self.bandwidth_weight)

    def calculate_load_balanced_connections(self) -> list[str]:
        """Up to five active peers, highest bandwidth first."""
        with self._lock:
            return load_balanced_peers(self._nodes)

    def network_efficiency(self) -> float:
        """Mean bandwidth-to-latency ratio across measured active peers."""
        with self._lock:
            return network_efficiency(self._nodes)

    def network_diameter(self) -> str:
        """The active peer with the highest latency, or an empty string."""
        with self._lock:
            return network_diameter(self._nodes)

    def measure_latencies(self) -> None:
        """Refresh latency estimates for active peers with simulated jitter."""
        with self._lock:
            for node in self._nodes.values():
                if node.active:
                    fluctuated = max(MIN_LATENCY_MS, node.latency + self._rng.uniform(*LATENCY_JITTER_MS))
                    node.latency = min(fluctuated, MAX_LATENCY_MS)

    def measure_bandwidth(self) -> None:
        """Refresh bandwidth estimates for active peers, scaled down by latency."""
        with self._lock:
            for node in self._nodes.values():
                if node.active:
                    base = self._rng.uniform(*BANDWIDTH_SAMPLE_MBPS)
                    latency_factor = max(0.1, 2.0 - node.latency / 200.0)
                    node.bandwidth = min(base * latency_factor, MAX_BANDWIDTH_MBPS)
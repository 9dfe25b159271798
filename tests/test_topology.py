import pytest

from sentinelnet.topology import (
    NetworkEdge,
    NetworkNode,
    edge_weight,
    load_balanced_peers,
    minimum_spanning_tree,
    network_diameter,
    network_efficiency,
    optimal_peers,
)


def make_nodes(*specs):
    nodes = {}
    for peer_id, latency, bandwidth, *rest in specs:
        active = rest[0] if rest else True
        nodes[peer_id] = NetworkNode(peer_id, latency=latency, bandwidth=bandwidth, active=active)
    return nodes


def test_node_defaults():
    node = NetworkNode("p")
    assert (node.latency, node.bandwidth, node.active, node.connections) == (0.0, 0.0, True, [])


def test_edge_holds_values():
    edge = NetworkEdge("a", "b", 2.5)
    assert (edge.node1, edge.node2, edge.weight) == ("a", "b", 2.5)


def test_edge_weight_worked_example():
    a = NetworkNode("a", latency=10.0, bandwidth=1.0)
    b = NetworkNode("b", latency=10.0, bandwidth=1.0)
    assert edge_weight(a, b) == pytest.approx(7.7)


def test_edge_weight_symmetric_and_monotonic():
    a = NetworkNode("a", latency=20.0, bandwidth=5.0)
    b = NetworkNode("b", latency=40.0, bandwidth=50.0)
    slow = NetworkNode("c", latency=400.0, bandwidth=50.0)
    assert edge_weight(a, b) == pytest.approx(edge_weight(b, a))
    assert edge_weight(a, slow) > edge_weight(a, b)


def test_edge_weight_zero_bandwidth_is_large():
    a = NetworkNode("a", latency=1.0, bandwidth=0.0)
    b = NetworkNode("b", latency=1.0, bandwidth=0.0)
    good = NetworkNode("c", latency=1.0, bandwidth=100.0)
    assert edge_weight(a, b) > edge_weight(good, good)


def test_optimal_peers_orders_by_score():
    nodes = make_nodes(("slow", 300.0, 10.0), ("fast", 10.0, 10.0), ("mid", 50.0, 10.0))
    assert optimal_peers(nodes) == ["fast", "mid", "slow"]


def test_optimal_peers_skips_inactive_and_unmeasured():
    nodes = make_nodes(("a", 10.0, 10.0), ("b", 0.0, 10.0), ("c", 5.0, 10.0, False))
    assert optimal_peers(nodes) == ["a"]


def test_optimal_peers_limited_to_five():
    nodes = make_nodes(*[(f"p{i}", float(i + 1), 10.0) for i in range(8)])
    result = optimal_peers(nodes)
    assert result == ["p0", "p1", "p2", "p3", "p4"]


def test_mst_empty_and_single():
    assert minimum_spanning_tree({}) == []
    assert minimum_spanning_tree(make_nodes(("a", 1.0, 1.0))) == []


def test_mst_all_inactive():
    nodes = make_nodes(("a", 1.0, 1.0, False), ("b", 1.0, 1.0, False))
    assert minimum_spanning_tree(nodes) == []


def test_mst_spans_active_nodes():
    nodes = make_nodes(("a", 10.0, 5.0), ("b", 20.0, 50.0), ("c", 30.0, 1.0), ("d", 5.0, 100.0))
    tree = minimum_spanning_tree(nodes)
    assert len(tree) == 3
    covered = {node for edge in tree for node in edge}
    assert covered == {"a", "b", "c", "d"}
    assert tree[0][0] == "a"


def test_mst_excludes_inactive_nodes():
    nodes = make_nodes(("a", 10.0, 5.0), ("b", 20.0, 5.0, False), ("c", 30.0, 5.0))
    tree = minimum_spanning_tree(nodes)
    assert tree == [("a", "c")]


def test_mst_starts_at_first_active_in_key_order():
    nodes = make_nodes(("z", 10.0, 5.0), ("a", 10.0, 5.0, False), ("m", 10.0, 5.0))
    assert minimum_spanning_tree(nodes) == [("m", "z")]


def test_mst_prefers_cheaper_edges():
    nodes = make_nodes(("a", 10.0, 10.0), ("b", 10.0, 10.0), ("c", 900.0, 10.0))
    tree = minimum_spanning_tree(nodes)
    assert tree[0] == ("a", "b")
    assert len(tree) == 2


def test_load_balanced_orders_by_bandwidth():
    nodes = make_nodes(("a", 10.0, 5.0), ("b", 10.0, 50.0), ("c", 10.0, 0.0), ("d", 10.0, 20.0, False))
    assert load_balanced_peers(nodes) == ["b", "a"]


def test_load_balanced_limited_to_five():
    nodes = make_nodes(*[(f"p{i}", 1.0, float(10 - i)) for i in range(7)])
    assert load_balanced_peers(nodes) == ["p0", "p1", "p2", "p3", "p4"]


def test_efficiency_needs_two_nodes():
    assert network_efficiency(make_nodes(("a", 10.0, 100.0))) == 0.0


def test_efficiency_is_mean_ratio_of_measured_peers():
    nodes = make_nodes(("a", 10.0, 100.0), ("b", 0.0, 50.0), ("c", 20.0, 40.0, False))
    single = make_nodes(("a", 10.0, 100.0), ("b", 10.0, 100.0))
    assert network_efficiency(nodes) == pytest.approx(network_efficiency(single))


def test_efficiency_without_measured_peers():
    nodes = make_nodes(("a", 0.0, 100.0), ("b", 0.0, 50.0))
    assert network_efficiency(nodes) == 0.0


def test_diameter_picks_highest_active_latency():
    nodes = make_nodes(("a", 10.0, 1.0), ("b", 90.0, 1.0), ("c", 500.0, 1.0, False))
    assert network_diameter(nodes) == "b"


def test_diameter_empty_when_nothing_measured():
    assert network_diameter(make_nodes(("a", 0.0, 1.0))) == ""
    assert network_diameter({}) == ""


def test_diameter_tie_keeps_first_in_key_order():
    nodes = make_nodes(("b", 40.0, 1.0), ("a", 40.0, 1.0))
    assert network_diameter(nodes) == "a"
import socket
import time

import pytest

from sentinelnet.discovery import (
    Discovery,
    build_discovery_packet,
    parse_discovery_packet,
)


def test_build_packet_format():
    assert build_discovery_packet("abc", 8080, "MyNode") == b"DISCOVERY|abc|8080|MyNode"


def test_parse_round_trip():
    packet = build_discovery_packet("session-1", 9000, "node-7").decode()
    assert parse_discovery_packet(packet, "session-1") == (9000, "node-7")


def test_parse_other_session_ignored():
    packet = build_discovery_packet("session-1", 9000, "node-7").decode()
    assert parse_discovery_packet(packet, "session-2") is None


@pytest.mark.parametrize("message", ["HELLO|abc|1|n", "DISCOVERY|abc", "DISCOVERYabc|1|n", ""])
def test_parse_non_announcements(message):
    assert parse_discovery_packet(message, "abc") is None


def test_parse_bad_port_raises():
    with pytest.raises(ValueError):
        parse_discovery_packet("DISCOVERY|abc|port|node", "abc")


def test_node_id_keeps_separators():
    assert parse_discovery_packet("DISCOVERY|abc|1|a|b", "abc") == (1, "a|b")


def test_handle_packet_adds_peer():
    discovery = Discovery("abc")
    peer = discovery.handle_packet("DISCOVERY|abc|8080|node-1", "10.0.0.5")
    assert (peer.id, peer.address, peer.port, peer.active) == ("node-1", "10.0.0.5", 8080, True)
    assert peer.last_seen.isdigit()
    assert discovery.peers() == [peer]


def test_handle_packet_updates_existing_peer():
    discovery = Discovery("abc")
    discovery.handle_packet("DISCOVERY|abc|8080|node-1", "10.0.0.5")
    discovery.handle_packet("DISCOVERY|abc|8080|renamed", "10.0.0.5")
    discovery.handle_packet("DISCOVERY|abc|8081|node-2", "10.0.0.5")
    peers = discovery.peers()
    assert [(p.id, p.port) for p in peers] == [("node-1", 8080), ("node-2", 8081)]


def test_handle_packet_ignores_other_session():
    discovery = Discovery("abc")
    assert discovery.handle_packet("DISCOVERY|xyz|8080|node-1", "10.0.0.5") is None
    assert discovery.peers() == []


def test_peers_returns_copies():
    discovery = Discovery("abc")
    discovery.handle_packet("DISCOVERY|abc|8080|node-1", "10.0.0.5")
    discovery.peers()[0].id = "changed"
    assert discovery.peers()[0].id == "node-1"


def test_broadcast_without_socket_is_noop():
    discovery = Discovery("abc")
    discovery.broadcast_presence()
    assert discovery.local_address is None


def test_listener_records_announcement():
    discovery = Discovery("abc", port=0, bind_address="127.0.0.1", interval=60.0)
    with discovery:
        _, port = discovery.local_address
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sender:
            sender.sendto(build_discovery_packet("abc", 7000, "node-x"), ("127.0.0.1", port))
            sender.sendto(b"DISCOVERY|zzz|7001|node-y", ("127.0.0.1", port))
        deadline = time.monotonic() + 5.0
        while time.monotonic() < deadline and not discovery.peers():
            time.sleep(0.05)
        peers = discovery.peers()
    assert [(p.id, p.address, p.port) for p in peers] == [("node-x", "127.0.0.1", 7000)]
    assert discovery.local_address is None
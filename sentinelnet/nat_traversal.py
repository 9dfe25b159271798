"""STUN-based external address discovery and UDP hole punching."""

from __future__ import annotations

import ipaddress
import logging
import os
import socket
import struct
import time

from sentinelnet.models import PeerInfo

log = logging.getLogger(__name__)

DEFAULT_STUN_SERVER = "stun.l.google.com"
DEFAULT_STUN_PORT = 19302
MAGIC_COOKIE = 0x2112A442
BINDING_REQUEST = 0x0001
BINDING_RESPONSE = 0x0101
ATTR_MAPPED_ADDRESS = 0x0001
ATTR_XOR_MAPPED_ADDRESS = 0x0020
HEADER_SIZE = 20
TRANSACTION_ID_SIZE = 12
HOLE_PUNCH_MESSAGE = b"HOLE_PUNCH"
HOLE_PUNCH_LINGER = 0.1
_RECEIVE_BUFFER = 1024

_HEADER = struct.Struct(">HHI12s")
_ATTR_HEADER = struct.Struct(">HH")


class NatTraversalError(Exception):
    """Raised when NAT discovery or hole punching fails."""


def build_binding_request(transaction_id: bytes | None = None) -> bytes:
    """Build a 20-byte STUN Binding Request with no attributes."""
    if transaction_id is None:
        transaction_id = os.urandom(TRANSACTION_ID_SIZE)
    if len(transaction_id) != TRANSACTION_ID_SIZE:
        raise ValueError(f"transaction id must be {TRANSACTION_ID_SIZE} bytes")
    return _HEADER.pack(BINDING_REQUEST, 0, MAGIC_COOKIE, bytes(transaction_id))


def _attributes(data: bytes):
    offset = HEADER_SIZE
    while offset + _ATTR_HEADER.size <= len(data):
        attr_type, attr_len = _ATTR_HEADER.unpack_from(data, offset)
        offset += _ATTR_HEADER.size
        if offset + attr_len > len(data):
            return
        yield attr_type, data[offset:offset + attr_len]
        offset = (offset + attr_len + 3) & ~3


def parse_binding_response(data: bytes) -> tuple[str, int]:
    """Extract the mapped ``(ip, port)`` from a STUN Binding Response.

    XOR-MAPPED-ADDRESS is preferred; MAPPED-ADDRESS is the fallback.
    """
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise NatTraversalError("STUN response shorter than its header")
    message_type = int.from_bytes(data[:2], "big")
    if message_type != BINDING_RESPONSE:
        raise NatTraversalError(f"STUN response has wrong type: {message_type:#06x}")

    for attr_type, value in _attributes(data):
        if attr_type == ATTR_XOR_MAPPED_ADDRESS and len(value) >= 8 and value[0] == 0x00:
            port = int.from_bytes(value[2:4], "big") ^ (MAGIC_COOKIE >> 16)
            ip = int.from_bytes(value[4:8], "big") ^ MAGIC_COOKIE
            return str(ipaddress.IPv4Address(ip)), port

    for attr_type, value in _attributes(data):
        if attr_type == ATTR_MAPPED_ADDRESS and len(value) >= 8 and value[0] == 0x01:
            port = int.from_bytes(value[2:4], "big")
            return socket.inet_ntoa(value[4:8]), port

    raise NatTraversalError("STUN response carries no mapped address")


class NATTraversal:
    """Finds this host's public address and opens NAT mappings towards peers."""

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout

    @staticmethod
    def _udp_socket(local_port: int = 0) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", local_port))
        except OSError as exc:
            sock.close()
            raise NatTraversalError("failed to create UDP socket") from exc
        return sock

    def discover_external_address(
        self,
        stun_server: str = DEFAULT_STUN_SERVER,
        stun_port: int = DEFAULT_STUN_PORT,
    ) -> tuple[str, int]:
        """Ask a STUN server for this host's public ``(ip, port)``."""
        try:
            infos = socket.getaddrinfo(stun_server, None, socket.AF_INET, socket.SOCK_DGRAM)
        except socket.gaierror as exc:
            raise NatTraversalError(f"failed to resolve STUN server {stun_server}") from exc
        if not infos:
            raise NatTraversalError(f"failed to resolve STUN server {stun_server}")
        host = infos[0][4][0]

        request = build_binding_request()
        with self._udp_socket() as sock:
            sock.settimeout(self.timeout)
            try:
                sent = sock.sendto(request, (host, stun_port))
            except OSError as exc:
                raise NatTraversalError("failed to send STUN request") from exc
            if sent != len(request):
                raise NatTraversalError("failed to send STUN request")
            try:
                response, _ = sock.recvfrom(_RECEIVE_BUFFER)
            except OSError as exc:
                raise NatTraversalError("no STUN response received") from exc
        return parse_binding_response(response)

    def punch_hole_for_peer(self, peer: PeerInfo) -> None:
        """Send a small datagram to the peer so the NAT admits its replies."""
        try:
            socket.inet_pton(socket.AF_INET, peer.address)
        except OSError as exc:
            raise NatTraversalError(f"invalid peer address: {peer.address}") from exc
        with self._udp_socket() as sock:
            try:
                sock.sendto(HOLE_PUNCH_MESSAGE, (peer.address, peer.port))
            except OSError as exc:
                raise NatTraversalError(f"failed to punch hole for peer {peer.id}") from exc
            time.sleep(HOLE_PUNCH_LINGER)
        log.info("Hole punched for peer: %s", peer.id)

    def nat_type(self) -> str:
        """The NAT type; classification is not performed, so it is always unknown."""
        return "Unknown"
"""LAN peer discovery by UDP broadcast of a session-scoped announcement."""

from __future__ import annotations

import logging
import socket
import threading
import time
from dataclasses import replace

from sentinelnet.models import PeerInfo

log = logging.getLogger(__name__)

DISCOVERY_PORT = 8081
SERVICE_PORT = 8080
DEFAULT_NODE_ID = "MyNode"
DEFAULT_INTERVAL_SECONDS = 5.0
PACKET_PREFIX = "DISCOVERY"
_RECEIVE_BUFFER = 1023
_POLL_TIMEOUT = 0.1


def build_discovery_packet(session_code: str, port: int, node_id: str) -> bytes:
    """Build the announcement ``DISCOVERY|session|port|node``."""
    return f"{PACKET_PREFIX}|{session_code}|{port}|{node_id}".encode("utf-8")


def parse_discovery_packet(message: str, session_code: str) -> tuple[int, str] | None:
    """Return ``(port, node_id)`` from an announcement for ``session_code``.

    Returns None for other messages or other sessions; raises ValueError if
    the port field is not a number.
    """
    if not message.startswith(PACKET_PREFIX + "|"):
        return None
    parts = message[len(PACKET_PREFIX) + 1:].split("|", 2)
    if len(parts) < 3 or parts[0] != session_code:
        return None
    _, port_text, node_id = parts
    return int(port_text), node_id


class Discovery:
    """Announces this node on the LAN and collects peers in the same session."""

    def __init__(
        self,
        session_code: str,
        port: int = DISCOVERY_PORT,
        service_port: int = SERVICE_PORT,
        node_id: str = DEFAULT_NODE_ID,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        bind_address: str = "",
    ) -> None:
        self.session_code = session_code
        self.port = port
        self.service_port = service_port
        self.node_id = node_id
        self.interval = interval
        self.bind_address = bind_address
        self._peers: list[PeerInfo] = []
        self._lock = threading.Lock()
        self._running = threading.Event()
        self._socket: socket.socket | None = None
        self._threads: list[threading.Thread] = []

    def __enter__(self) -> Discovery:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    @property
    def local_address(self) -> tuple[str, int] | None:
        """The address the discovery socket is bound to, while running."""
        sock = self._socket
        return sock.getsockname() if sock is not None else None

    def _open_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            for option in (socket.SO_BROADCAST, socket.SO_REUSEADDR):
                try:
                    sock.setsockopt(socket.SOL_SOCKET, option, 1)
                except OSError as exc:
                    log.warning("Could not set socket option %s: %s", option, exc)
            if hasattr(socket, "SO_REUSEPORT"):
                try:
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
                except OSError as exc:
                    log.warning("Could not enable SO_REUSEPORT: %s", exc)
            sock.bind((self.bind_address, self.port))
            sock.settimeout(_POLL_TIMEOUT)
        except OSError:
            sock.close()
            raise
        return sock

    def start(self) -> None:
        """Bind the discovery socket and start announcing and listening."""
        if self._running.is_set():
            return
        self._socket = self._open_socket()
        self._running.set()
        self._threads = [
            threading.Thread(target=self._announce_loop, name="discovery-announce", daemon=True),
            threading.Thread(target=self.listen_for_peers, name="discovery-listen", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def stop(self) -> None:
        """Stop both loops and release the socket."""
        self._running.clear()
        sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join()
        self._threads = []

    def peers(self) -> list[PeerInfo]:
        """A snapshot of the peers discovered so far."""
        with self._lock:
            return [replace(peer) for peer in self._peers]

    def broadcast_presence(self) -> None:
        """Send one announcement to the LAN broadcast address."""
        sock = self._socket
        if sock is None:
            return
        packet = build_discovery_packet(self.session_code, self.service_port, self.node_id)
        try:
            sock.sendto(packet, ("<broadcast>", self.port))
        except OSError as exc:
            log.error("Error sending discovery packet: %s", exc)

    def _announce_loop(self) -> None:
        while self._running.is_set():
            self.broadcast_presence()
            self._running_wait()

    def _running_wait(self) -> None:
        deadline = time.monotonic() + self.interval
        while self._running.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            time.sleep(min(remaining, _POLL_TIMEOUT))

    def listen_for_peers(self) -> None:
        """Receive announcements until stopped, recording matching peers."""
        while self._running.is_set():
            sock = self._socket
            if sock is None:
                break
            try:
                data, (address, _) = sock.recvfrom(_RECEIVE_BUFFER)
            except socket.timeout:
                continue
            except OSError as exc:
                if not self._running.is_set():
                    break
                log.error("Discovery receive error: %s", exc)
                time.sleep(_POLL_TIMEOUT)
                continue
            if not data:
                continue
            try:
                self.handle_packet(data.decode("utf-8", "replace"), address)
            except ValueError as exc:
                log.warning("Ignoring malformed discovery packet from %s: %s", address, exc)

    def handle_packet(self, message: str, address: str) -> PeerInfo | None:
        """Record the peer announced by ``message`` from ``address``.

        Returns the recorded peer, or None if the message is not for this session.
        """
        parsed = parse_discovery_packet(message, self.session_code)
        if parsed is None:
            return None
        port, node_id = parsed
        now = str(int(time.time()))
        with self._lock:
            for peer in self._peers:
                if peer.address == address and peer.port == port:
                    peer.last_seen = now
                    return replace(peer)
            peer = PeerInfo(id=node_id, address=address, port=port, latency=0.0, active=True, last_seen=now)
            self._peers.append(peer)
        log.info("Discovered new peer: %s at %s:%d", node_id, address, port)
        return replace(peer)
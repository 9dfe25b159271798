"""Peer discovery, mesh optimisation, STUN NAT traversal, a framed wire format and AES helpers for file sync."""

__version__ = "0.1.0"
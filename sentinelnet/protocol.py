"""Wire formats for delta and file payloads and the framing used on sockets."""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass, field

MAX_FRAME_SIZE = 100 * 1024 * 1024

_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")
_FRAME_HEADER = struct.Struct("<BQ")
_U32_MAX = 0xFFFFFFFF

FLAG_PLAIN = 0x00
FLAG_ENCRYPTED = 0x01


class FrameError(Exception):
    """Raised when a payload or frame is malformed or too large."""


class MessageType(enum.IntEnum):
    DELTA = 1
    FILE = 2
    HEARTBEAT = 3


@dataclass
class DeltaChunk:
    """A changed region of a file."""

    offset: int = 0
    length: int = 0
    checksum: str = ""
    data: bytes = b""


@dataclass
class DeltaData:
    """The set of changed chunks turning one file version into another."""

    file_path: str = ""
    is_compressed: bool = False
    old_hash: str = ""
    new_hash: str = ""
    chunks: list[DeltaChunk] = field(default_factory=list)


def _to_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _to_text(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def wrap_payload(data: bytes, encrypted: bool) -> bytes:
    """Prefix ``data`` with a one-byte flag telling whether it is encrypted."""
    return bytes([FLAG_ENCRYPTED if encrypted else FLAG_PLAIN]) + bytes(data)


def unwrap_payload(payload: bytes) -> tuple[bytes, bool]:
    """Split a wrapped payload into ``(body, encrypted)``.

    Payloads without a recognised flag byte are returned whole as plain data.
    """
    payload = bytes(payload)
    if not payload:
        return b"", False
    flag = payload[0]
    if flag in (FLAG_PLAIN, FLAG_ENCRYPTED):
        return payload[1:], flag == FLAG_ENCRYPTED
    return payload, False


def _sized(raw: bytes, what: str) -> bytes:
    if len(raw) > _U32_MAX:
        raise FrameError(f"{what} too long to encode")
    return _U32.pack(len(raw)) + raw


def encode_delta(delta: DeltaData) -> bytes:
    """Serialise a delta; raises FrameError if it would exceed the frame limit."""
    if len(delta.chunks) > _U32_MAX:
        raise FrameError("too many delta chunks to encode")
    parts = [
        _sized(_to_bytes(delta.file_path), "delta path"),
        b"\x01" if delta.is_compressed else b"\x00",
        _sized(_to_bytes(delta.old_hash), "delta hash"),
        _sized(_to_bytes(delta.new_hash), "delta hash"),
        _U32.pack(len(delta.chunks)),
    ]
    for chunk in delta.chunks:
        parts.append(_U64.pack(chunk.offset))
        parts.append(_U64.pack(chunk.length))
        parts.append(_sized(_to_bytes(chunk.checksum), "chunk checksum"))
        parts.append(_U64.pack(len(chunk.data)))
        parts.append(bytes(chunk.data))
    encoded = b"".join(parts)
    if len(encoded) > MAX_FRAME_SIZE:
        raise FrameError("encoded delta exceeds frame size")
    return encoded


class _Reader:
    def __init__(self, payload: bytes) -> None:
        self._data = bytes(payload)
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise FrameError("payload truncated")
        piece = self._data[self._pos:end]
        self._pos = end
        return piece

    def u32(self) -> int:
        return _U32.unpack(self.take(4))[0]

    def u64(self) -> int:
        return _U64.unpack(self.take(8))[0]

    def sized(self) -> bytes:
        return self.take(self.u32())

    def blob(self) -> bytes:
        length = self.u64()
        if length > MAX_FRAME_SIZE:
            raise FrameError("embedded data exceeds frame size")
        return self.take(length)

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise FrameError("trailing bytes after payload")


def decode_delta(payload: bytes) -> DeltaData:
    """Parse the output of :func:`encode_delta`."""
    reader = _Reader(payload)
    delta = DeltaData(file_path=_to_text(reader.sized()))
    delta.is_compressed = reader.take(1) != b"\x00"
    delta.old_hash = _to_text(reader.sized())
    delta.new_hash = _to_text(reader.sized())
    for _ in range(reader.u32()):
        offset = reader.u64()
        length = reader.u64()
        checksum = _to_text(reader.sized())
        data = reader.blob()
        delta.chunks.append(DeltaChunk(offset, length, checksum, data))
    reader.finish()
    return delta


def encode_file_payload(file_path: str, data: bytes) -> bytes:
    """Serialise a path and file contents; raises FrameError if too large."""
    data = bytes(data)
    encoded = _sized(_to_bytes(file_path), "file path") + _U64.pack(len(data)) + data
    if len(encoded) > MAX_FRAME_SIZE:
        raise FrameError("encoded file payload exceeds frame size")
    return encoded


def decode_file_payload(payload: bytes) -> tuple[str, bytes]:
    """Parse the output of :func:`encode_file_payload` into ``(path, contents)``."""
    reader = _Reader(payload)
    path = _to_text(reader.sized())
    contents = reader.blob()
    reader.finish()
    return path, contents


def _recv_exact(sock: socket.socket, count: int) -> bytes:
    buffer = bytearray()
    while len(buffer) < count:
        piece = sock.recv(count - len(buffer))
        if not piece:
            raise ConnectionError("connection closed by peer")
        buffer.extend(piece)
    return bytes(buffer)


def write_frame(sock: socket.socket, message_type: MessageType, data: bytes) -> None:
    """Send one frame: a type byte, a 64-bit length and the payload."""
    data = bytes(data)
    sock.sendall(_FRAME_HEADER.pack(int(message_type), len(data)) + data)


def read_frame(sock: socket.socket) -> tuple[MessageType, bytes]:
    """Receive one frame and return its type and payload.

    Raises ConnectionError if the peer closes the connection and FrameError
    for oversized frames or unknown message types (the frame is consumed).
    """
    type_byte, length = _FRAME_HEADER.unpack(_recv_exact(sock, _FRAME_HEADER.size))
    if length > MAX_FRAME_SIZE:
        raise FrameError("frame size too large")
    data = _recv_exact(sock, length) if length else b""
    try:
        message_type = MessageType(type_byte)
    except ValueError as exc:
        raise FrameError(f"unknown message type {type_byte}") from exc
    return message_type, data
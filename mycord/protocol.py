# mycord/protocol.py
"""Fixed-size binary frames exchanged with a mycord server.

A frame is always FRAME_SIZE bytes: kind and timestamp as big-endian u32,
then a 32-byte username field and a 1024-byte body field, both NUL padded.
There is no length prefix, so a reader simply pulls FRAME_SIZE bytes at a
time. Text longer than a field is cut silently on encode.
"""
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

USERNAME_FIELD = 32
BODY_FIELD = 1024
MAX_USERNAME = USERNAME_FIELD - 1
MAX_BODY = BODY_FIELD - 1

# one byte per character in both directions
TEXT_ENCODING = "latin-1"

_FRAME = struct.Struct(f"!II{USERNAME_FIELD}s{BODY_FIELD}s")
FRAME_SIZE = _FRAME.size


class MessageKind(IntEnum):
    LOGIN = 0
    LOGOUT = 1
    MESSAGE_SEND = 2
    MESSAGE_RECV = 10
    DISCONNECT = 12
    SYSTEM = 13


_KNOWN_KINDS = {k.value: k for k in MessageKind}


class ProtocolError(RuntimeError):
    """Raised when a byte block cannot be read as a frame."""


class ProtocolShortRead(ProtocolError):
    """The peer closed the stream in the middle of a frame."""

    def __init__(self, received: int, expected: int = FRAME_SIZE):
        super().__init__(f"protocol short read ({received} of {expected} bytes)")
        self.received = received
        self.expected = expected


def fit_text(text: Union[str, bytes], field_size: int) -> bytes:
    """Return at most ``field_size - 1`` bytes of *text*, leaving room for NUL."""
    raw = text if isinstance(text, bytes) else text.encode(TEXT_ENCODING, errors="replace")
    return raw[: field_size - 1]


def read_text(field: bytes) -> str:
    return field.split(b"\0", 1)[0].decode(TEXT_ENCODING)


@dataclass(frozen=True)
class WireMessage:
    kind: int
    timestamp: int = 0
    username: str = ""
    body: str = ""

    @property
    def known_kind(self) -> "MessageKind | None":
        return _KNOWN_KINDS.get(int(self.kind))

    def pack(self) -> bytes:
        return _FRAME.pack(
            int(self.kind) & 0xFFFFFFFF,
            int(self.timestamp) & 0xFFFFFFFF,
            fit_text(self.username, USERNAME_FIELD),
            fit_text(self.body, BODY_FIELD),
        )

    @classmethod
    def unpack(cls, raw: bytes) -> "WireMessage":
        if len(raw) < FRAME_SIZE:
            raise ProtocolShortRead(len(raw))
        if len(raw) > FRAME_SIZE:
            raise ProtocolError(f"frame too large ({len(raw)} bytes)")
        kind, timestamp, username, body = _FRAME.unpack(raw)
        return cls(
            kind=_KNOWN_KINDS.get(kind, kind),
            timestamp=timestamp,
            username=read_text(username),
            body=read_text(body),
        )


def encode_message(kind: int, timestamp: int = 0, username: str = "", body: str = "") -> bytes:
    return WireMessage(kind, timestamp, username, body).pack()


def decode_message(raw: bytes) -> WireMessage:
    return WireMessage.unpack(raw)

"""Frame codec for the headset's RFCOMM protocol.

Frame layout::

    +------------------+---------+-------------------+
    |      Length      |   Id    |      Payload      |
    | 2 bytes (BE)     | 1 byte  |  variable length  |
    +------------------+---------+-------------------+

- Length: size of the whole frame, header included
- Id: message id (open/close session, acknowledge, request)
- Payload: request line for requests, XML reply document for replies
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

from zikctl.core.errors import EncodingError, MalformedFrame

HEADER_SIZE = 3
MAX_FRAME_SIZE = 0xFFFF
MAX_PAYLOAD_SIZE = MAX_FRAME_SIZE - HEADER_SIZE
REQUEST_METHODS = ("get", "set", "enable", "disable")

_HEADER = struct.Struct(">HB")
_REQUEST_PREFIX = "GET "
_ARG_SEPARATOR = "?arg="


class FrameKind(Enum):
    OPEN_SESSION = 0x00
    CLOSE_SESSION = 0x01
    ACKNOWLEDGE = 0x02
    REQUEST = 0x80


class FrameClass(Enum):
    ACKNOWLEDGE = "acknowledge"
    REQUEST = "request"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Frame:
    """A decoded protocol frame."""

    message_id: int
    payload: bytes = b""

    @property
    def kind(self) -> FrameKind | None:
        try:
            return FrameKind(self.message_id)
        except ValueError:
            return None

    def __repr__(self) -> str:
        return (
            f"Frame(id=0x{self.message_id:02x}, "
            f"payload={self.payload[:32]!r}{'...' if len(self.payload) > 32 else ''})"
        )


def encode(kind: FrameKind, payload: bytes = b"") -> bytes:
    """Build a self-delimited frame.

    Raises:
        EncodingError: if the frame would not fit the 16-bit length field.
    """
    size = HEADER_SIZE + len(payload)
    if size > MAX_FRAME_SIZE:
        raise EncodingError(
            f"Payload of {len(payload)} bytes exceeds max payload size {MAX_PAYLOAD_SIZE} bytes"
        )
    return _HEADER.pack(size, kind.value) + payload


def decode(data: bytes) -> Frame:
    """Parse exactly the bytes of one frame.

    Raises:
        MalformedFrame: if the header is incomplete or the declared length
            does not match the number of bytes given.
    """
    if len(data) < HEADER_SIZE:
        raise MalformedFrame(f"Frame too short: {len(data)} bytes, header needs {HEADER_SIZE}")
    size, message_id = _HEADER.unpack_from(data)
    if size != len(data):
        raise MalformedFrame(f"Frame declares {size} bytes but {len(data)} were received")
    return Frame(message_id=message_id, payload=bytes(data[HEADER_SIZE:]))


def classify(frame: Frame) -> FrameClass:
    kind = frame.kind
    if kind is FrameKind.ACKNOWLEDGE:
        return FrameClass.ACKNOWLEDGE
    if kind is FrameKind.REQUEST:
        return FrameClass.REQUEST
    return FrameClass.UNKNOWN


def request_payload(path: str, method: str, args: str | None = None) -> bytes:
    """Serialize a (path, method, args) request into a request frame payload."""
    if method not in REQUEST_METHODS:
        allowed = ", ".join(REQUEST_METHODS)
        raise EncodingError(f"Unsupported request method '{method}'. Allowed: {allowed}")
    if not path.startswith("/"):
        raise EncodingError(f"Request path must be absolute, got '{path}'")
    line = f"{_REQUEST_PREFIX}{path.rstrip('/')}/{method}"
    if args is not None:
        line += f"{_ARG_SEPARATOR}{args}"
    try:
        return line.encode("ascii")
    except UnicodeEncodeError:
        # friendly names may carry non-ascii characters
        return line.encode("utf-8")


def parse_request_payload(payload: bytes) -> tuple[str, str, str | None]:
    """Split a request payload back into (path, method, args)."""
    try:
        line = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedFrame(f"Request payload is not valid UTF-8: {exc}") from exc
    if not line.startswith(_REQUEST_PREFIX):
        raise MalformedFrame(f"Request payload does not start with '{_REQUEST_PREFIX.strip()}'")
    line = line[len(_REQUEST_PREFIX):]

    args: str | None = None
    if _ARG_SEPARATOR in line:
        line, args = line.split(_ARG_SEPARATOR, 1)

    path, _, method = line.rpartition("/")
    if not path or method not in REQUEST_METHODS:
        raise MalformedFrame(f"Request line has no valid method: '{line}'")
    return path, method, args


def request_frame(path: str, method: str, args: str | None = None) -> bytes:
    return encode(FrameKind.REQUEST, request_payload(path, method, args))


OPEN_SESSION_FRAME = encode(FrameKind.OPEN_SESSION)
CLOSE_SESSION_FRAME = encode(FrameKind.CLOSE_SESSION)
ACKNOWLEDGE_FRAME = encode(FrameKind.ACKNOWLEDGE)

"""Synchronous request/reply channel over one connected stream socket.

At most one request is outstanding at a time, so a reply always belongs to
the last frame written and no correlation ids are needed. Callers sharing a
channel between threads must serialize access themselves.
"""

from __future__ import annotations

import logging
import socket
from enum import Enum
from types import TracebackType

from zikctl.core.document import Document, has_error, parse
from zikctl.core.errors import (
    ChannelBusy,
    ConnectionClosed,
    DeviceRejected,
    MalformedReply,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
    UnexpectedFrameKind,
)
from zikctl.core.frame import (
    CLOSE_SESSION_FRAME,
    HEADER_SIZE,
    MAX_FRAME_SIZE,
    OPEN_SESSION_FRAME,
    Frame,
    FrameClass,
    classify,
    decode,
    request_frame,
)
from zikctl.core.model import Record
from zikctl.core.registry import RECORDS, RecordKind, extract
from zikctl.transports.base import StreamSocket

LOGGER = logging.getLogger(__name__)


class ChannelState(Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_REPLY = "awaiting_reply"
    DECODING = "decoding"


class Channel:
    def __init__(self, sock: StreamSocket) -> None:
        self._socket: StreamSocket | None = sock
        # lengths are 16-bit, so one frame always fits
        self._buffer = bytearray(MAX_FRAME_SIZE)
        self._state = ChannelState.IDLE

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._socket is None

    def __enter__(self) -> Channel:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._socket is None:
            return
        sock, self._socket = self._socket, None
        try:
            sock.close()
        except OSError as exc:
            LOGGER.warning("Closing socket failed: %s", exc)

    def open_session(self) -> None:
        self._expect_acknowledge(self.exchange(OPEN_SESSION_FRAME), "open session")

    def close_session(self) -> None:
        self._expect_acknowledge(self.exchange(CLOSE_SESSION_FRAME), "close session")

    def send_request(self, path: str, method: str = "get", args: str | None = None) -> Document:
        """Send one request and return the parsed reply document.

        Raises:
            DeviceRejected: if the device answers with an error document.
        """
        frame = self.exchange(request_frame(path, method, args))
        if classify(frame) is FrameClass.ACKNOWLEDGE and not frame.payload:
            return Document.empty(f"{path}/{method}")

        self._state = ChannelState.DECODING
        try:
            document = parse(frame.payload)
        finally:
            self._state = ChannelState.IDLE

        if has_error(document):
            LOGGER.warning("Device replied with error for '%s/%s'", path, method)
            raise DeviceRejected(path, method)
        return document

    def request(self, kind: RecordKind) -> Record | None:
        """Fetch and decode one record; None when the reply lacks its subtree."""
        spec = RECORDS[kind]
        document = self.send_request(spec.path, "get")
        record = extract(document, kind)
        if record is None:
            LOGGER.warning("Reply for '%s/get' has no %s data", spec.path, kind.name)
        return record

    def exchange(self, data: bytes) -> Frame:
        """Write one frame and block until the single reply frame is read."""
        if self._state is not ChannelState.IDLE:
            raise ChannelBusy(f"Channel is {self._state.value}; requests cannot be pipelined")
        if self._socket is None:
            raise ConnectionClosed("Channel is closed")

        try:
            self._state = ChannelState.SENDING
            self._write(self._socket, data)
            self._state = ChannelState.AWAITING_REPLY
            received = self._read(self._socket)
            self._state = ChannelState.DECODING
            frame = decode(self._buffer[:received])
        finally:
            self._state = ChannelState.IDLE

        if classify(frame) is FrameClass.UNKNOWN:
            LOGGER.warning("Bad answer %s", bytes(self._buffer[:HEADER_SIZE]).hex(" "))
            raise UnexpectedFrameKind(frame.message_id)
        LOGGER.debug("Received %r", frame)
        return frame

    def _write(self, sock: StreamSocket, data: bytes) -> None:
        LOGGER.debug("Sending %d bytes: %s", len(data), data[:HEADER_SIZE].hex(" "))
        try:
            sent = sock.send(data)
        except socket.timeout as exc:
            raise TransportTimeoutError("RFCOMM send timed out") from exc
        except OSError as exc:
            raise TransportSendError(f"RFCOMM send failed: {exc}") from exc
        if sent < len(data):
            LOGGER.warning("Failed to send all data: %d/%d", sent, len(data))
            raise TransportError(f"Short write: sent {sent} of {len(data)} bytes")

    def _read(self, sock: StreamSocket) -> int:
        try:
            received = sock.recv_into(self._buffer, len(self._buffer))
        except socket.timeout as exc:
            raise TransportTimeoutError("RFCOMM receive timed out") from exc
        except OSError as exc:
            raise TransportError(f"RFCOMM receive failed: {exc}") from exc

        if received == 0:
            LOGGER.warning("Connection was closed while receiving")
            raise ConnectionClosed("Device closed the connection while a reply was awaited")
        if received < HEADER_SIZE:
            LOGGER.warning("Not enough data in answer: %d", received)
            raise MalformedReply(f"Reply of {received} bytes is shorter than a frame header")
        return received

    @staticmethod
    def _expect_acknowledge(frame: Frame, what: str) -> None:
        if classify(frame) is not FrameClass.ACKNOWLEDGE:
            raise UnexpectedFrameKind(frame.message_id, expected=f"acknowledge to {what}")

"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class StreamSocket(Protocol):
    """The subset of a connected stream socket a channel relies on."""

    def send(self, data: bytes) -> int: ...

    def recv_into(self, buffer: bytearray, nbytes: int = 0) -> int: ...

    def close(self) -> None: ...


class Transport(Protocol):
    def connect(
        self,
        mac: str,
        *,
        channel: int,
        connect_timeout_s: float = 5.0,
        read_timeout_s: float | None = None,
    ) -> StreamSocket:
        """Open a connected stream socket to a device."""

"""RFCOMM transport implementation using Python sockets."""

from __future__ import annotations

import logging
import socket

from zikctl.core.errors import TransportConnectError, TransportTimeoutError

LOGGER = logging.getLogger(__name__)


class RFCOMMTransport:
    def connect(
        self,
        mac: str,
        *,
        channel: int,
        connect_timeout_s: float = 5.0,
        read_timeout_s: float | None = None,
    ) -> socket.socket:
        """Connect to ``mac`` on ``channel`` and hand back the open socket.

        The caller owns the returned socket. Reads on it block forever unless
        ``read_timeout_s`` is given.
        """
        try:
            af_bluetooth = socket.AF_BLUETOOTH
            btproto_rfcomm = socket.BTPROTO_RFCOMM
        except AttributeError as exc:
            raise TransportConnectError(
                "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
            ) from exc

        try:
            bt_socket = socket.socket(
                af_bluetooth,
                socket.SOCK_STREAM,
                btproto_rfcomm,
            )
        except OSError as exc:
            raise TransportConnectError(f"Could not create RFCOMM socket: {exc}") from exc

        bt_socket.settimeout(connect_timeout_s)
        try:
            bt_socket.connect((mac, channel))
        except TimeoutError as exc:
            bt_socket.close()
            raise TransportTimeoutError(
                f"RFCOMM connect timed out for {mac} on channel {channel}"
            ) from exc
        except OSError as exc:
            bt_socket.close()
            raise TransportConnectError(
                f"RFCOMM connect failed for {mac} on channel {channel}: {exc}"
            ) from exc

        bt_socket.settimeout(read_timeout_s)
        LOGGER.debug("Connected to %s on RFCOMM channel %d", mac, channel)
        return bt_socket

"""Domain-specific errors for zikctl."""

from __future__ import annotations


class ZikctlError(Exception):
    """Base error for zikctl."""


class ProtocolError(ZikctlError):
    """Base error for wire protocol and reply decoding failures."""


class EncodingError(ProtocolError):
    """Raised when a message cannot be encoded into a frame."""


class MalformedFrame(ProtocolError):
    """Raised when bytes do not form a complete, well-sized frame."""


class MalformedReply(MalformedFrame):
    """Raised when a reply read from the socket is too short to be a frame."""


class UnexpectedFrameKind(ProtocolError):
    """Raised when a reply is neither an acknowledgement nor a request reply."""

    def __init__(self, message_id: int, expected: str = "acknowledge or request") -> None:
        super().__init__(f"Unexpected reply frame id 0x{message_id:02x} (expected {expected})")
        self.message_id = message_id


class ParseError(ProtocolError):
    """Raised when a reply payload is not a well-formed reply document."""


class MalformedRecord(ProtocolError):
    """Raised when a present subtree lacks an attribute its record needs."""

    def __init__(self, kind: str, attribute: str, detail: str = "missing") -> None:
        super().__init__(f"{kind}: attribute '{attribute}' {detail}")
        self.kind = kind
        self.attribute = attribute


class UnknownEnumValue(ProtocolError):
    """Raised when an enumerated attribute holds a string with no table entry."""

    def __init__(self, value: str, enum_name: str | None = None) -> None:
        where = f" for {enum_name}" if enum_name else ""
        super().__init__(f"Unknown value '{value}'{where}")
        self.value = value
        self.enum_name = enum_name


class ChannelError(ZikctlError):
    """Base error for request/reply channel misuse and device rejections."""


class ChannelBusy(ChannelError):
    """Raised when a request is issued while another one is still pending."""


class DeviceRejected(ChannelError):
    """Raised when the device answers a request with an error document."""

    def __init__(self, path: str, method: str) -> None:
        super().__init__(f"Device rejected '{path}/{method}'")
        self.path = path
        self.method = method


class TransportError(ZikctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on RFCOMM connect failures."""


class TransportSendError(TransportError):
    """Raised when writing a frame to the socket fails."""


class TransportTimeoutError(TransportError):
    """Raised when a connect or read deadline set on the socket expires."""


class ConnectionClosed(TransportError):
    """Raised when the peer closed the stream while a reply was awaited."""


class ConfigLoadError(ZikctlError):
    """Raised when a configuration file cannot be read."""


class ConfigValidationError(ZikctlError):
    """Raised when a configuration file does not conform to schema or semantics."""


class DeviceDiscoveryError(ZikctlError):
    """Raised when Bluetooth device discovery command(s) fail."""


class DeviceSelectionError(ZikctlError):
    """Raised when device matching cannot resolve a single target."""


class FacetResolutionError(ZikctlError):
    """Raised when a facet or facet value cannot be resolved."""

"""Stable public API for building tooling on top of zikctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from zikctl.core.channel import Channel, ChannelState
from zikctl.core.config import Config, load_config
from zikctl.core.device import ZikDevice
from zikctl.core.document import Document, Node, find_subtree, has_error, parse
from zikctl.core.errors import (
    ChannelBusy,
    ChannelError,
    ConfigLoadError,
    ConfigValidationError,
    ConnectionClosed,
    DeviceDiscoveryError,
    DeviceRejected,
    DeviceSelectionError,
    EncodingError,
    FacetResolutionError,
    MalformedFrame,
    MalformedRecord,
    MalformedReply,
    ParseError,
    ProtocolError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
    UnexpectedFrameKind,
    UnknownEnumValue,
    ZikctlError,
)
from zikctl.core.facets import facet_catalog, read_facet, write_facet
from zikctl.core.frame import Frame, FrameClass, FrameKind, classify, decode, encode
from zikctl.core.model import (
    Angle,
    AutoConnectionInfo,
    AutoPowerOffInfo,
    BatteryInfo,
    BluetoothInfo,
    Color,
    ColorInfo,
    DetectedDevice,
    EqualizerInfo,
    FlightModeInfo,
    HeadDetectionInfo,
    MatchRules,
    MetadataInfo,
    NoiseControlInfo,
    NoiseControlMode,
    ResolvedTarget,
    Room,
    SmartAudioTuneInfo,
    SoftwareInfo,
    SoundEffectInfo,
    SourceInfo,
    SystemInfo,
    TransportSpec,
    TTSInfo,
    VolumeInfo,
)
from zikctl.core.registry import RECORDS, RecordKind, extract
from zikctl.core.service import ZikService
from zikctl.transports.base import StreamSocket, Transport

__all__ = [
    "ZikctlError",
    "ProtocolError",
    "EncodingError",
    "MalformedFrame",
    "MalformedReply",
    "UnexpectedFrameKind",
    "ParseError",
    "MalformedRecord",
    "UnknownEnumValue",
    "ChannelError",
    "ChannelBusy",
    "DeviceRejected",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "ConnectionClosed",
    "ConfigLoadError",
    "ConfigValidationError",
    "DeviceDiscoveryError",
    "DeviceSelectionError",
    "FacetResolutionError",
    "Frame",
    "FrameKind",
    "FrameClass",
    "encode",
    "decode",
    "classify",
    "Document",
    "Node",
    "parse",
    "has_error",
    "find_subtree",
    "RecordKind",
    "RECORDS",
    "extract",
    "Channel",
    "ChannelState",
    "StreamSocket",
    "Transport",
    "Config",
    "load_config",
    "ZikDevice",
    "DetectedDevice",
    "ResolvedTarget",
    "MatchRules",
    "TransportSpec",
    "NoiseControlMode",
    "Room",
    "Angle",
    "Color",
    "SystemInfo",
    "SoftwareInfo",
    "TTSInfo",
    "SourceInfo",
    "BatteryInfo",
    "NoiseControlInfo",
    "VolumeInfo",
    "HeadDetectionInfo",
    "ColorInfo",
    "FlightModeInfo",
    "BluetoothInfo",
    "AutoConnectionInfo",
    "EqualizerInfo",
    "SmartAudioTuneInfo",
    "AutoPowerOffInfo",
    "SoundEffectInfo",
    "MetadataInfo",
    "Client",
]


class Client:
    """Public client for interacting with zikctl core capabilities.

    A `Client` instance wraps configuration loading, device discovery/matching
    and headset sessions behind a stable API intended for third-party tools
    (GUI/TUI/services/scripts).
    """

    def __init__(
        self,
        *,
        transport: Transport | None = None,
        config: Config | None = None,
    ) -> None:
        self._service = ZikService(transport=transport, config=config)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def list_devices(self) -> list[DetectedDevice]:
        return self._service.list_devices()

    def resolve_target(self, *, device_hint: str | None = None) -> ResolvedTarget:
        return self._service.resolve_target(device_hint)

    def connect(self, *, device_hint: str | None = None, sync: bool | None = None) -> ZikDevice:
        return self._service.connect(device_hint, sync=sync)

    def facet_catalog(self) -> dict[str, tuple[str, ...]]:
        return facet_catalog()

    def get_facet(self, device: ZikDevice, facet: str) -> str:
        return read_facet(device, facet)

    def set_facet(self, device: ZikDevice, facet: str, value: str) -> str:
        return write_facet(device, facet, value)

"""Typed record registry.

Each ``RecordKind`` is bound once to the request path that fetches it, the
node that carries its attributes in the reply, and a pure decoder building
the record from that node.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TypeVar

from zikctl.core.document import Document, Node, find_subtree, has_error
from zikctl.core.errors import DeviceRejected, MalformedRecord, UnknownEnumValue
from zikctl.core.model import (
    ANGLES,
    COLORS,
    NOISE_CONTROL_MODES,
    ROOMS,
    AutoConnectionInfo,
    AutoPowerOffInfo,
    BatteryInfo,
    BluetoothInfo,
    ColorInfo,
    EqualizerInfo,
    FlightModeInfo,
    HeadDetectionInfo,
    MetadataInfo,
    NoiseControlInfo,
    NoiseControlMode,
    Record,
    SmartAudioTuneInfo,
    SoftwareInfo,
    SoundEffectInfo,
    SourceInfo,
    SystemInfo,
    TTSInfo,
    VolumeInfo,
)

E = TypeVar("E", bound=Enum)

_BOOLEANS = {"true": True, "false": False}


class RecordKind(Enum):
    SYSTEM = "system"
    SOFTWARE = "software"
    TTS = "tts"
    SOURCE = "source"
    BATTERY = "battery"
    NOISE_CONTROL = "noise_control"
    NOISE_CONTROL_ENABLED = "noise_control_enabled"
    VOLUME = "volume"
    HEAD_DETECTION = "head_detection"
    COLOR = "color"
    FLIGHT_MODE = "flight_mode"
    BLUETOOTH = "bluetooth"
    AUTO_CONNECTION = "auto_connection"
    EQUALIZER = "equalizer"
    SMART_AUDIO_TUNE = "smart_audio_tune"
    AUTO_POWER_OFF = "auto_power_off"
    SOUND_EFFECT = "sound_effect"
    METADATA = "metadata"


Decoder = Callable[[Node], Record]


@dataclass(frozen=True)
class RecordSpec:
    kind: RecordKind
    path: str
    node: str
    decoder: Decoder


def _require(node: Node, kind: RecordKind, name: str) -> str:
    value = node.attribute(name)
    if value is None:
        raise MalformedRecord(kind.name, name)
    return value


def _bool(node: Node, kind: RecordKind, name: str) -> bool:
    value = _require(node, kind, name)
    try:
        return _BOOLEANS[value.strip().lower()]
    except KeyError:
        raise MalformedRecord(kind.name, name, f"is not a boolean: '{value}'") from None


def _int(node: Node, kind: RecordKind, name: str, *, low: int = 0, high: int | None = None) -> int:
    value = _require(node, kind, name)
    try:
        number = int(value)
    except ValueError:
        raise MalformedRecord(kind.name, name, f"is not an integer: '{value}'") from None
    if number < low or (high is not None and number > high):
        bounds = f"{low}..{high}" if high is not None else f">= {low}"
        raise MalformedRecord(kind.name, name, f"out of range {bounds}: {number}")
    return number


def _enum(table: Mapping[str, E], value: str, enum_name: str) -> E:
    try:
        return table[value]
    except KeyError:
        raise UnknownEnumValue(value, enum_name) from None


def _system(node: Node) -> SystemInfo:
    return SystemInfo(serial_number=_require(node, RecordKind.SYSTEM, "pi"))


def _software(node: Node) -> SoftwareInfo:
    return SoftwareInfo(version=_require(node, RecordKind.SOFTWARE, "sip6"))


def _tts(node: Node) -> TTSInfo:
    return TTSInfo(enabled=_bool(node, RecordKind.TTS, "tts"))


def _source(node: Node) -> SourceInfo:
    return SourceInfo(source=_require(node, RecordKind.SOURCE, "type"))


def _battery(node: Node) -> BatteryInfo:
    kind = RecordKind.BATTERY
    return BatteryInfo(
        state=_require(node, kind, "state"),
        percentage=_int(node, kind, "percent", high=100),
    )


def _noise_control(node: Node) -> NoiseControlInfo:
    kind = RecordKind.NOISE_CONTROL
    mode = _enum(NOISE_CONTROL_MODES, _require(node, kind, "type"), "NoiseControlMode")
    strength = _int(node, kind, "value", low=1, high=2)
    if node.attribute("enabled") is not None:
        enabled = _bool(node, kind, "enabled")
    else:
        enabled = mode is not NoiseControlMode.OFF
    return NoiseControlInfo(enabled=enabled, mode=mode, strength=strength)


def _noise_control_enabled(node: Node) -> NoiseControlInfo:
    return NoiseControlInfo(enabled=_bool(node, RecordKind.NOISE_CONTROL_ENABLED, "enabled"))


def _volume(node: Node) -> VolumeInfo:
    return VolumeInfo(volume=_int(node, RecordKind.VOLUME, "raw"))


def _head_detection(node: Node) -> HeadDetectionInfo:
    return HeadDetectionInfo(enabled=_bool(node, RecordKind.HEAD_DETECTION, "enabled"))


def _color(node: Node) -> ColorInfo:
    return ColorInfo(color=_enum(COLORS, _require(node, RecordKind.COLOR, "value"), "Color"))


def _flight_mode(node: Node) -> FlightModeInfo:
    return FlightModeInfo(enabled=_bool(node, RecordKind.FLIGHT_MODE, "enabled"))


def _bluetooth(node: Node) -> BluetoothInfo:
    return BluetoothInfo(friendly_name=_require(node, RecordKind.BLUETOOTH, "friendlyname"))


def _auto_connection(node: Node) -> AutoConnectionInfo:
    return AutoConnectionInfo(enabled=_bool(node, RecordKind.AUTO_CONNECTION, "enabled"))


def _equalizer(node: Node) -> EqualizerInfo:
    return EqualizerInfo(enabled=_bool(node, RecordKind.EQUALIZER, "enabled"))


def _smart_audio_tune(node: Node) -> SmartAudioTuneInfo:
    return SmartAudioTuneInfo(enabled=_bool(node, RecordKind.SMART_AUDIO_TUNE, "enabled"))


def _auto_power_off(node: Node) -> AutoPowerOffInfo:
    return AutoPowerOffInfo(minutes=_int(node, RecordKind.AUTO_POWER_OFF, "value"))


def _sound_effect(node: Node) -> SoundEffectInfo:
    kind = RecordKind.SOUND_EFFECT
    return SoundEffectInfo(
        enabled=_bool(node, kind, "enabled"),
        room=_enum(ROOMS, _require(node, kind, "room_size"), "Room"),
        angle=_enum(ANGLES, _require(node, kind, "angle"), "Angle"),
    )


def _metadata(node: Node) -> MetadataInfo:
    # tags are omitted or left empty while nothing is playing
    def optional(name: str) -> str | None:
        return node.attribute(name) or None

    return MetadataInfo(
        playing=_bool(node, RecordKind.METADATA, "playing"),
        title=optional("title"),
        artist=optional("artist"),
        album=optional("album"),
        genre=optional("genre"),
    )


def _spec(kind: RecordKind, path: str, node: str, decoder: Decoder) -> tuple[RecordKind, RecordSpec]:
    return kind, RecordSpec(kind=kind, path=path, node=node, decoder=decoder)


RECORDS: Mapping[RecordKind, RecordSpec] = MappingProxyType(
    dict(
        [
            _spec(RecordKind.SYSTEM, "/api/system/pi", "/system", _system),
            _spec(RecordKind.SOFTWARE, "/api/software/version", "/software", _software),
            _spec(RecordKind.TTS, "/api/software/tts", "/software", _tts),
            _spec(RecordKind.SOURCE, "/api/audio/source", "/audio/source", _source),
            _spec(RecordKind.BATTERY, "/api/system/battery", "/system/battery", _battery),
            _spec(RecordKind.NOISE_CONTROL, "/api/audio/noise_control", "/audio/noise_control", _noise_control),
            _spec(
                RecordKind.NOISE_CONTROL_ENABLED,
                "/api/audio/noise_control/enabled",
                "/audio/noise_control",
                _noise_control_enabled,
            ),
            _spec(RecordKind.VOLUME, "/api/audio/volume", "/audio/volume", _volume),
            _spec(
                RecordKind.HEAD_DETECTION,
                "/api/system/head_detection/enabled",
                "/system/head_detection",
                _head_detection,
            ),
            _spec(RecordKind.COLOR, "/api/system/color", "/system/color", _color),
            _spec(RecordKind.FLIGHT_MODE, "/api/flight_mode", "/flight_mode", _flight_mode),
            _spec(RecordKind.BLUETOOTH, "/api/bluetooth/friendlyname", "/bluetooth", _bluetooth),
            _spec(
                RecordKind.AUTO_CONNECTION,
                "/api/system/auto_connection/enabled",
                "/system/auto_connection",
                _auto_connection,
            ),
            _spec(RecordKind.EQUALIZER, "/api/audio/equalizer/enabled", "/audio/equalizer", _equalizer),
            _spec(
                RecordKind.SMART_AUDIO_TUNE,
                "/api/audio/smart_audio_tune",
                "/audio/smart_audio_tune",
                _smart_audio_tune,
            ),
            _spec(RecordKind.AUTO_POWER_OFF, "/api/system/auto_power_off", "/system/auto_power_off", _auto_power_off),
            _spec(RecordKind.SOUND_EFFECT, "/api/audio/sound_effect", "/audio/sound_effect", _sound_effect),
            _spec(RecordKind.METADATA, "/api/audio/track/metadata", "/audio/track/metadata", _metadata),
        ]
    )
)


def extract(document: Document, kind: RecordKind) -> Record | None:
    """Decode the record of ``kind`` from a reply document.

    Returns None when the document answers a different request or carries
    no subtree for ``kind``.

    Raises:
        DeviceRejected: if the document is an error document.
        MalformedRecord: if the subtree lacks an expected attribute.
        UnknownEnumValue: if an enumerated attribute is not in its table.
    """
    spec = RECORDS[kind]
    if has_error(document):
        path, method = document.request()
        raise DeviceRejected(path or spec.path, method or "get")

    # several kinds share a node, so only the reply to their own request counts
    if document.path and document.request()[0] != spec.path:
        return None
    node = find_subtree(document, spec.node)
    if node is None:
        return None
    return spec.decoder(node)

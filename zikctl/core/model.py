"""Core data models: typed info records, enum tables and discovery targets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNKNOWN_STR = "unknown"


class NoiseControlMode(Enum):
    OFF = "off"
    ANC = "anc"
    AOC = "aoc"


class Room(Enum):
    UNKNOWN = "unknown"
    SILENT = "silent"
    LIVING = "living"
    JAZZ = "jazz"
    CONCERT = "concert"


class Angle(Enum):
    A0 = 0
    A30 = 30
    A60 = 60
    A90 = 90
    A120 = 120
    A150 = 150
    A180 = 180


class Color(Enum):
    UNKNOWN = "unknown"
    BLACK = "black"
    BLUE = "blue"


NOISE_CONTROL_MODES: dict[str, NoiseControlMode] = {mode.value: mode for mode in NoiseControlMode}
ROOMS: dict[str, Room] = {room.value: room for room in Room}
ANGLES: dict[str, Angle] = {str(angle.value): angle for angle in Angle}
# the device reports its color as a numeric id
COLORS: dict[str, Color] = {"1": Color.BLACK, "2": Color.BLUE}


@dataclass(frozen=True)
class SystemInfo:
    serial_number: str


@dataclass(frozen=True)
class SoftwareInfo:
    version: str


@dataclass(frozen=True)
class TTSInfo:
    enabled: bool


@dataclass(frozen=True)
class SourceInfo:
    source: str


@dataclass(frozen=True)
class BatteryInfo:
    state: str
    percentage: int


@dataclass(frozen=True)
class NoiseControlInfo:
    enabled: bool
    mode: NoiseControlMode | None = None
    strength: int | None = None


@dataclass(frozen=True)
class VolumeInfo:
    volume: int


@dataclass(frozen=True)
class HeadDetectionInfo:
    enabled: bool


@dataclass(frozen=True)
class ColorInfo:
    color: Color


@dataclass(frozen=True)
class FlightModeInfo:
    enabled: bool


@dataclass(frozen=True)
class BluetoothInfo:
    friendly_name: str


@dataclass(frozen=True)
class AutoConnectionInfo:
    enabled: bool


@dataclass(frozen=True)
class EqualizerInfo:
    enabled: bool


@dataclass(frozen=True)
class SmartAudioTuneInfo:
    enabled: bool


@dataclass(frozen=True)
class AutoPowerOffInfo:
    minutes: int


@dataclass(frozen=True)
class SoundEffectInfo:
    enabled: bool
    room: Room
    angle: Angle


@dataclass(frozen=True)
class MetadataInfo:
    playing: bool
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    genre: str | None = None


Record = (
    SystemInfo
    | SoftwareInfo
    | TTSInfo
    | SourceInfo
    | BatteryInfo
    | NoiseControlInfo
    | VolumeInfo
    | HeadDetectionInfo
    | ColorInfo
    | FlightModeInfo
    | BluetoothInfo
    | AutoConnectionInfo
    | EqualizerInfo
    | SmartAudioTuneInfo
    | AutoPowerOffInfo
    | SoundEffectInfo
    | MetadataInfo
)


@dataclass(frozen=True)
class MatchRules:
    name_contains: tuple[str, ...]
    mac_prefix: tuple[str, ...]


@dataclass(frozen=True)
class TransportSpec:
    channel: int
    connect_timeout_s: float = 5.0
    read_timeout_s: float | None = None


@dataclass(frozen=True)
class DetectedDevice:
    mac: str
    name: str


@dataclass(frozen=True)
class ResolvedTarget:
    device: DetectedDevice
    score: int

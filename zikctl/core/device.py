"""Headset device object.

``sync_<facet>()`` performs a round trip and refreshes the cached snapshot;
``get_<facet>()`` only reads the cache. Setters send the change and then
read the facet back, since a ``set`` reply does not carry the new state.
A setter raises only when the write itself fails; a failed read-back is
logged and leaves the cached value as it was.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TypeVar

from zikctl.core.channel import Channel
from zikctl.core.errors import ZikctlError
from zikctl.core.model import (
    UNKNOWN_STR,
    Angle,
    AutoConnectionInfo,
    AutoPowerOffInfo,
    BatteryInfo,
    BluetoothInfo,
    Color,
    ColorInfo,
    EqualizerInfo,
    FlightModeInfo,
    HeadDetectionInfo,
    MetadataInfo,
    NoiseControlInfo,
    NoiseControlMode,
    Record,
    Room,
    SmartAudioTuneInfo,
    SoftwareInfo,
    SoundEffectInfo,
    SourceInfo,
    SystemInfo,
    TTSInfo,
    VolumeInfo,
)
from zikctl.core.registry import RECORDS, RecordKind

DEFAULT_NOISE_CONTROL_STRENGTH = 1
_RESERVED_ARG_CHARS = ("&", "?", "=")
LOGGER = logging.getLogger(__name__)

R = TypeVar("R")

# facets read once when a device is brought up
STARTUP_KINDS: tuple[RecordKind, ...] = (
    RecordKind.SYSTEM,
    RecordKind.NOISE_CONTROL_ENABLED,
    RecordKind.NOISE_CONTROL,
    RecordKind.SOFTWARE,
    RecordKind.SOURCE,
    RecordKind.COLOR,
    RecordKind.BATTERY,
    RecordKind.VOLUME,
)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ZikDevice:
    def __init__(self, name: str, address: str, channel: Channel) -> None:
        self.name = name
        self.address = address
        self.channel = channel
        self._cache: dict[RecordKind, Record] = {}

    def __enter__(self) -> ZikDevice:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ZikDevice(name={self.name!r}, address={self.address!r})"

    def close(self) -> None:
        if self.channel.closed:
            return
        try:
            self.channel.close_session()
        except ZikctlError as exc:
            LOGGER.warning("Failed to close session with %s: %s", self.address, exc)
        finally:
            self.channel.close()

    # generic cache access

    def sync(self, kind: RecordKind) -> Record | None:
        record = self.channel.request(kind)
        if record is not None:
            self._cache[kind] = record
        return record

    def cached(self, kind: RecordKind) -> Record | None:
        return self._cache.get(kind)

    def sync_all(self, kinds: tuple[RecordKind, ...] = STARTUP_KINDS) -> None:
        """Refresh several facets, keeping the previous value of any that fails."""
        for kind in kinds:
            try:
                if self.sync(kind) is None:
                    LOGGER.warning("Failed to get %s: no data in reply", kind.value)
            except ZikctlError as exc:
                LOGGER.warning("Failed to get %s: %s", kind.value, exc)

    def _set(self, path: str, method: str, args: str | None, kind: RecordKind) -> None:
        self.channel.send_request(path, method, args)
        self._refresh(kind)

    def _refresh(self, kind: RecordKind) -> None:
        # the write already landed; a failed read-back only leaves the cache stale
        try:
            if self.sync(kind) is None:
                LOGGER.warning("Failed to read back %s: no data in reply", kind.value)
        except ZikctlError as exc:
            LOGGER.warning("Failed to read back %s: %s", kind.value, exc)

    def _get(self, kind: RecordKind, record_type: type[R]) -> R | None:
        record = self._cache.get(kind)
        return record if isinstance(record, record_type) else None

    # system

    def sync_serial(self) -> SystemInfo | None:
        return self.sync(RecordKind.SYSTEM)

    def get_serial(self) -> str:
        info = self._get(RecordKind.SYSTEM, SystemInfo)
        return info.serial_number if info else UNKNOWN_STR

    def sync_battery(self) -> BatteryInfo | None:
        return self.sync(RecordKind.BATTERY)

    def get_battery_state(self) -> str:
        info = self._get(RecordKind.BATTERY, BatteryInfo)
        return info.state if info else UNKNOWN_STR

    def get_battery_percentage(self) -> int:
        info = self._get(RecordKind.BATTERY, BatteryInfo)
        return info.percentage if info else 0

    def sync_color(self) -> ColorInfo | None:
        return self.sync(RecordKind.COLOR)

    def get_color(self) -> Color:
        info = self._get(RecordKind.COLOR, ColorInfo)
        return info.color if info else Color.UNKNOWN

    def sync_head_detection(self) -> HeadDetectionInfo | None:
        return self.sync(RecordKind.HEAD_DETECTION)

    def get_head_detection(self) -> bool:
        info = self._get(RecordKind.HEAD_DETECTION, HeadDetectionInfo)
        return info.enabled if info else False

    def set_head_detection(self, enabled: bool) -> None:
        self._set(RECORDS[RecordKind.HEAD_DETECTION].path, "set", _flag(enabled), RecordKind.HEAD_DETECTION)

    def sync_auto_connection(self) -> AutoConnectionInfo | None:
        return self.sync(RecordKind.AUTO_CONNECTION)

    def get_auto_connection(self) -> bool:
        info = self._get(RecordKind.AUTO_CONNECTION, AutoConnectionInfo)
        return info.enabled if info else False

    def set_auto_connection(self, enabled: bool) -> None:
        self._set(RECORDS[RecordKind.AUTO_CONNECTION].path, "set", _flag(enabled), RecordKind.AUTO_CONNECTION)

    def sync_auto_power_off(self) -> AutoPowerOffInfo | None:
        return self.sync(RecordKind.AUTO_POWER_OFF)

    def get_auto_power_off(self) -> int:
        info = self._get(RecordKind.AUTO_POWER_OFF, AutoPowerOffInfo)
        return info.minutes if info else 0

    def set_auto_power_off(self, minutes: int) -> None:
        if minutes < 0:
            raise ValueError(f"auto power off delay must be >= 0, got {minutes}")
        self._set(RECORDS[RecordKind.AUTO_POWER_OFF].path, "set", str(minutes), RecordKind.AUTO_POWER_OFF)

    # software

    def sync_software_version(self) -> SoftwareInfo | None:
        return self.sync(RecordKind.SOFTWARE)

    def get_software_version(self) -> str:
        info = self._get(RecordKind.SOFTWARE, SoftwareInfo)
        return info.version if info else UNKNOWN_STR

    def sync_tts(self) -> TTSInfo | None:
        return self.sync(RecordKind.TTS)

    def get_tts(self) -> bool:
        info = self._get(RecordKind.TTS, TTSInfo)
        return info.enabled if info else False

    def set_tts(self, enabled: bool) -> None:
        self._set(RECORDS[RecordKind.TTS].path, "enable" if enabled else "disable", None, RecordKind.TTS)

    # audio

    def sync_source(self) -> SourceInfo | None:
        return self.sync(RecordKind.SOURCE)

    def get_source(self) -> str:
        info = self._get(RecordKind.SOURCE, SourceInfo)
        return info.source if info else UNKNOWN_STR

    def sync_volume(self) -> VolumeInfo | None:
        return self.sync(RecordKind.VOLUME)

    def get_volume(self) -> int:
        info = self._get(RecordKind.VOLUME, VolumeInfo)
        return info.volume if info else 0

    def sync_noise_control(self) -> NoiseControlInfo | None:
        return self.sync(RecordKind.NOISE_CONTROL_ENABLED)

    def get_noise_control(self) -> bool:
        info = self._get(RecordKind.NOISE_CONTROL_ENABLED, NoiseControlInfo)
        return info.enabled if info else False

    def set_noise_control(self, enabled: bool) -> None:
        self._set(
            RECORDS[RecordKind.NOISE_CONTROL_ENABLED].path,
            "set",
            _flag(enabled),
            RecordKind.NOISE_CONTROL_ENABLED,
        )
        # switching noise control also moves the reported mode
        self._refresh(RecordKind.NOISE_CONTROL)

    def sync_noise_control_mode(self) -> NoiseControlInfo | None:
        return self.sync(RecordKind.NOISE_CONTROL)

    def get_noise_control_mode(self) -> NoiseControlMode:
        info = self._get(RecordKind.NOISE_CONTROL, NoiseControlInfo)
        return info.mode if info and info.mode else NoiseControlMode.OFF

    def get_noise_control_strength(self) -> int:
        info = self._get(RecordKind.NOISE_CONTROL, NoiseControlInfo)
        return info.strength if info and info.strength else DEFAULT_NOISE_CONTROL_STRENGTH

    def set_noise_control_mode(self, mode: NoiseControlMode, strength: int | None = None) -> None:
        if strength is None:
            strength = self.get_noise_control_strength()
        if strength not in (1, 2):
            raise ValueError(f"noise control strength must be 1 or 2, got {strength}")
        self._set(
            RECORDS[RecordKind.NOISE_CONTROL].path,
            "set",
            f"{mode.value}&value={strength}",
            RecordKind.NOISE_CONTROL,
        )
        self._refresh(RecordKind.NOISE_CONTROL_ENABLED)

    def set_noise_control_strength(self, strength: int) -> None:
        self.set_noise_control_mode(self.get_noise_control_mode(), strength)

    def sync_equalizer(self) -> EqualizerInfo | None:
        return self.sync(RecordKind.EQUALIZER)

    def get_equalizer(self) -> bool:
        info = self._get(RecordKind.EQUALIZER, EqualizerInfo)
        return info.enabled if info else False

    def set_equalizer(self, enabled: bool) -> None:
        self._set(RECORDS[RecordKind.EQUALIZER].path, "set", _flag(enabled), RecordKind.EQUALIZER)

    def sync_smart_audio_tune(self) -> SmartAudioTuneInfo | None:
        return self.sync(RecordKind.SMART_AUDIO_TUNE)

    def get_smart_audio_tune(self) -> bool:
        info = self._get(RecordKind.SMART_AUDIO_TUNE, SmartAudioTuneInfo)
        return info.enabled if info else False

    def set_smart_audio_tune(self, enabled: bool) -> None:
        self._set(RECORDS[RecordKind.SMART_AUDIO_TUNE].path, "set", _flag(enabled), RecordKind.SMART_AUDIO_TUNE)

    def sync_sound_effect(self) -> SoundEffectInfo | None:
        return self.sync(RecordKind.SOUND_EFFECT)

    def get_sound_effect(self) -> SoundEffectInfo:
        info = self._get(RecordKind.SOUND_EFFECT, SoundEffectInfo)
        return info or SoundEffectInfo(enabled=False, room=Room.UNKNOWN, angle=Angle.A0)

    def set_sound_effect(self, enabled: bool) -> None:
        path = RECORDS[RecordKind.SOUND_EFFECT].path
        self._set(f"{path}/enabled", "set", _flag(enabled), RecordKind.SOUND_EFFECT)

    def set_sound_effect_room(self, room: Room) -> None:
        if room is Room.UNKNOWN:
            raise ValueError("room must be a concrete room size")
        path = RECORDS[RecordKind.SOUND_EFFECT].path
        self._set(f"{path}/room_size", "set", room.value, RecordKind.SOUND_EFFECT)

    def set_sound_effect_angle(self, angle: Angle) -> None:
        path = RECORDS[RecordKind.SOUND_EFFECT].path
        self._set(f"{path}/angle", "set", str(angle.value), RecordKind.SOUND_EFFECT)

    def sync_metadata(self) -> MetadataInfo | None:
        return self.sync(RecordKind.METADATA)

    def get_metadata(self) -> MetadataInfo:
        return self._get(RecordKind.METADATA, MetadataInfo) or MetadataInfo(playing=False)

    # others

    def sync_flight_mode(self) -> FlightModeInfo | None:
        return self.sync(RecordKind.FLIGHT_MODE)

    def get_flight_mode(self) -> bool:
        info = self._get(RecordKind.FLIGHT_MODE, FlightModeInfo)
        return info.enabled if info else False

    def set_flight_mode(self, enabled: bool) -> None:
        self._set(
            RECORDS[RecordKind.FLIGHT_MODE].path,
            "enable" if enabled else "disable",
            None,
            RecordKind.FLIGHT_MODE,
        )

    def sync_friendly_name(self) -> BluetoothInfo | None:
        return self.sync(RecordKind.BLUETOOTH)

    def get_friendly_name(self) -> str:
        info = self._get(RecordKind.BLUETOOTH, BluetoothInfo)
        return info.friendly_name if info else UNKNOWN_STR

    def set_friendly_name(self, name: str) -> None:
        if not name:
            raise ValueError("friendly name must not be empty")
        # the request line has no escaping; these would split the argument
        if any(char in name for char in _RESERVED_ARG_CHARS):
            raise ValueError(f"friendly name must not contain any of {' '.join(_RESERVED_ARG_CHARS)}")
        self._set(RECORDS[RecordKind.BLUETOOTH].path, "set", name, RecordKind.BLUETOOTH)

"""User-facing facet table shared by the CLI and the public client."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from zikctl.core.device import ZikDevice
from zikctl.core.errors import FacetResolutionError
from zikctl.core.model import ANGLES, NOISE_CONTROL_MODES, ROOMS, Room
from zikctl.core.registry import RecordKind

_SWITCH = {"on": True, "off": False}


@dataclass(frozen=True)
class Facet:
    name: str
    kind: RecordKind
    render: Callable[[ZikDevice], str]
    setter: Callable[[ZikDevice, str], None] | None = None
    values: tuple[str, ...] = ()

    @property
    def writable(self) -> bool:
        return self.setter is not None


def _switch(
    name: str,
    kind: RecordKind,
    getter: Callable[[ZikDevice], bool],
    setter: Callable[[ZikDevice, bool], None],
) -> Facet:
    return Facet(
        name=name,
        kind=kind,
        render=lambda device: "on" if getter(device) else "off",
        setter=lambda device, value: setter(device, _SWITCH[value]),
        values=tuple(sorted(_SWITCH)),
    )


def _set_auto_power_off(device: ZikDevice, value: str) -> None:
    try:
        minutes = int(value)
    except ValueError:
        raise FacetResolutionError(f"auto_power_off expects a number of minutes, got '{value}'") from None
    if minutes < 0:
        raise FacetResolutionError(f"auto_power_off expects a non-negative delay, got {minutes}")
    device.set_auto_power_off(minutes)


def _render_metadata(device: ZikDevice) -> str:
    info = device.get_metadata()
    state = "playing" if info.playing else "paused"
    tags = [tag for tag in (info.artist, info.title, info.album, info.genre) if tag]
    return f"{state}: {' - '.join(tags)}" if tags else state


def _render_sound_effect(device: ZikDevice) -> str:
    info = device.get_sound_effect()
    return f"{'on' if info.enabled else 'off'} (room {info.room.value}, angle {info.angle.value})"


FACETS: dict[str, Facet] = {
    facet.name: facet
    for facet in (
        Facet("serial", RecordKind.SYSTEM, ZikDevice.get_serial),
        Facet("software_version", RecordKind.SOFTWARE, ZikDevice.get_software_version),
        _switch("tts", RecordKind.TTS, ZikDevice.get_tts, ZikDevice.set_tts),
        Facet("source", RecordKind.SOURCE, ZikDevice.get_source),
        Facet(
            "battery",
            RecordKind.BATTERY,
            lambda device: f"{device.get_battery_state()} ({device.get_battery_percentage()}%)",
        ),
        _switch(
            "noise_control",
            RecordKind.NOISE_CONTROL_ENABLED,
            ZikDevice.get_noise_control,
            ZikDevice.set_noise_control,
        ),
        Facet(
            "noise_control_mode",
            RecordKind.NOISE_CONTROL,
            lambda device: device.get_noise_control_mode().value,
            lambda device, value: device.set_noise_control_mode(NOISE_CONTROL_MODES[value]),
            tuple(NOISE_CONTROL_MODES),
        ),
        Facet(
            "noise_control_strength",
            RecordKind.NOISE_CONTROL,
            lambda device: str(device.get_noise_control_strength()),
            lambda device, value: device.set_noise_control_strength(int(value)),
            ("1", "2"),
        ),
        Facet("volume", RecordKind.VOLUME, lambda device: str(device.get_volume())),
        _switch(
            "head_detection",
            RecordKind.HEAD_DETECTION,
            ZikDevice.get_head_detection,
            ZikDevice.set_head_detection,
        ),
        Facet("color", RecordKind.COLOR, lambda device: device.get_color().value),
        _switch("flight_mode", RecordKind.FLIGHT_MODE, ZikDevice.get_flight_mode, ZikDevice.set_flight_mode),
        Facet(
            "friendly_name",
            RecordKind.BLUETOOTH,
            ZikDevice.get_friendly_name,
            ZikDevice.set_friendly_name,
        ),
        _switch(
            "auto_connection",
            RecordKind.AUTO_CONNECTION,
            ZikDevice.get_auto_connection,
            ZikDevice.set_auto_connection,
        ),
        _switch("equalizer", RecordKind.EQUALIZER, ZikDevice.get_equalizer, ZikDevice.set_equalizer),
        _switch(
            "smart_audio_tune",
            RecordKind.SMART_AUDIO_TUNE,
            ZikDevice.get_smart_audio_tune,
            ZikDevice.set_smart_audio_tune,
        ),
        Facet(
            "auto_power_off",
            RecordKind.AUTO_POWER_OFF,
            lambda device: str(device.get_auto_power_off()),
            _set_auto_power_off,
        ),
        Facet(
            "sound_effect",
            RecordKind.SOUND_EFFECT,
            _render_sound_effect,
            lambda device, value: device.set_sound_effect(_SWITCH[value]),
            tuple(sorted(_SWITCH)),
        ),
        Facet(
            "sound_effect_room",
            RecordKind.SOUND_EFFECT,
            lambda device: device.get_sound_effect().room.value,
            lambda device, value: device.set_sound_effect_room(ROOMS[value]),
            tuple(name for name, room in ROOMS.items() if room is not Room.UNKNOWN),
        ),
        Facet(
            "sound_effect_angle",
            RecordKind.SOUND_EFFECT,
            lambda device: str(device.get_sound_effect().angle.value),
            lambda device, value: device.set_sound_effect_angle(ANGLES[value]),
            tuple(ANGLES),
        ),
        Facet("metadata", RecordKind.METADATA, _render_metadata),
    )
}


def resolve_facet(name: str) -> Facet:
    facet = FACETS.get(name)
    if facet is None:
        available = ", ".join(sorted(FACETS))
        raise FacetResolutionError(f"Unknown facet '{name}'. Available: {available}")
    return facet


def facet_catalog() -> dict[str, tuple[str, ...]]:
    """Accepted values per writable facet; an empty tuple means free-form."""
    return {name: facet.values for name, facet in sorted(FACETS.items()) if facet.writable}


def read_facet(device: ZikDevice, name: str) -> str:
    facet = resolve_facet(name)
    device.sync(facet.kind)
    return facet.render(device)


def write_facet(device: ZikDevice, name: str, value: str) -> str:
    """Apply ``value`` to a facet and return the value read back afterwards."""
    facet = resolve_facet(name)
    if facet.setter is None:
        raise FacetResolutionError(f"Facet '{name}' is read-only")
    if facet.values and value not in facet.values:
        allowed = ", ".join(facet.values)
        raise FacetResolutionError(f"Facet '{name}' does not support value '{value}'. Allowed: {allowed}")
    try:
        facet.setter(device, value)
    except ValueError as exc:
        raise FacetResolutionError(f"Invalid value '{value}' for facet '{name}': {exc}") from exc
    return facet.render(device)

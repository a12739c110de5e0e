from __future__ import annotations

import pytest

from zikctl.core.channel import Channel
from zikctl.core.device import ZikDevice
from zikctl.core.frame import ACKNOWLEDGE_FRAME, FrameKind, decode, encode, parse_request_payload


class FakeHeadset:
    """Socket double answering requests from a small in-memory device state."""

    def __init__(self) -> None:
        self.state = {
            "pi": "PI040345AH0000000",
            "sip6": "2.05",
            "tts": "true",
            "source": "a2dp",
            "battery_state": "in_use",
            "percent": "80",
            "nc_enabled": "true",
            "nc_type": "anc",
            "nc_value": "2",
            "volume": "12",
            "head_detection": "true",
            "color": "1",
            "flight_mode": "false",
            "friendlyname": "Zik",
            "auto_connection": "true",
            "equalizer": "false",
            "smart_audio_tune": "false",
            "auto_power_off": "0",
            "se_enabled": "false",
            "room_size": "silent",
            "angle": "120",
        }
        self.requests: list[tuple[str, str, str | None]] = []
        self.reject: set[str] = set()
        self.reject_reads: set[str] = set()
        self.pending = b""
        self.closed = False

    def send(self, data: bytes) -> int:
        frame = decode(data)
        if frame.kind in (FrameKind.OPEN_SESSION, FrameKind.CLOSE_SESSION):
            self.pending = ACKNOWLEDGE_FRAME
            return len(data)
        path, method, args = parse_request_payload(frame.payload)
        self.requests.append((path, method, args))
        if path in self.reject or (method == "get" and path in self.reject_reads):
            body = "<error/>"
        elif method == "get":
            body = self._get(path)
        else:
            self._apply(path, method, args)
            body = ""
        xml = f'<?xml version="1.0" encoding="UTF-8"?><answer path="{path}/{method}">{body}</answer>'
        self.pending = encode(FrameKind.REQUEST, xml.encode())
        return len(data)

    def recv_into(self, buffer: bytearray, nbytes: int = 0) -> int:
        reply, self.pending = self.pending, b""
        buffer[: len(reply)] = reply
        return len(reply)

    def close(self) -> None:
        self.closed = True

    def _get(self, path: str) -> str:
        s = self.state
        bodies = {
            "/api/system/pi": f'<system pi="{s["pi"]}"/>',
            "/api/software/version": f'<software sip6="{s["sip6"]}"/>',
            "/api/software/tts": f'<software tts="{s["tts"]}"/>',
            "/api/audio/source": f'<audio><source type="{s["source"]}"/></audio>',
            "/api/system/battery": (
                f'<system><battery state="{s["battery_state"]}" percent="{s["percent"]}"/></system>'
            ),
            "/api/audio/noise_control/enabled": f'<audio><noise_control enabled="{s["nc_enabled"]}"/></audio>',
            "/api/audio/noise_control": (
                f'<audio><noise_control type="{s["nc_type"]}" value="{s["nc_value"]}"/></audio>'
            ),
            "/api/audio/volume": f'<audio><volume raw="{s["volume"]}"/></audio>',
            "/api/system/head_detection/enabled": (
                f'<system><head_detection enabled="{s["head_detection"]}"/></system>'
            ),
            "/api/system/color": f'<system><color value="{s["color"]}"/></system>',
            "/api/flight_mode": f'<flight_mode enabled="{s["flight_mode"]}"/>',
            "/api/bluetooth/friendlyname": f'<bluetooth friendlyname="{s["friendlyname"]}"/>',
            "/api/system/auto_connection/enabled": (
                f'<system><auto_connection enabled="{s["auto_connection"]}"/></system>'
            ),
            "/api/audio/equalizer/enabled": f'<audio><equalizer enabled="{s["equalizer"]}"/></audio>',
            "/api/audio/smart_audio_tune": f'<audio><smart_audio_tune enabled="{s["smart_audio_tune"]}"/></audio>',
            "/api/system/auto_power_off": f'<system><auto_power_off value="{s["auto_power_off"]}"/></system>',
            "/api/audio/sound_effect": (
                f'<audio><sound_effect enabled="{s["se_enabled"]}" room_size="{s["room_size"]}" '
                f'angle="{s["angle"]}"/></audio>'
            ),
            "/api/audio/track/metadata": (
                '<audio><track><metadata playing="true" title="Blue in Green" artist="Miles Davis"/></track></audio>'
            ),
        }
        return bodies.get(path, "")

    def _apply(self, path: str, method: str, args: str | None) -> None:
        s = self.state
        if path == "/api/audio/noise_control/enabled":
            s["nc_enabled"] = args or "false"
            if args == "false":
                s["nc_type"] = "off"
        elif path == "/api/audio/noise_control":
            mode, _, value = (args or "").partition("&value=")
            s["nc_type"], s["nc_value"] = mode, value
            s["nc_enabled"] = "false" if mode == "off" else "true"
        elif path == "/api/flight_mode":
            s["flight_mode"] = "true" if method == "enable" else "false"
        elif path == "/api/software/tts":
            s["tts"] = "true" if method == "enable" else "false"
        elif path == "/api/bluetooth/friendlyname":
            s["friendlyname"] = args or ""
        elif path == "/api/system/head_detection/enabled":
            s["head_detection"] = args or "false"
        elif path == "/api/system/auto_connection/enabled":
            s["auto_connection"] = args or "false"
        elif path == "/api/audio/equalizer/enabled":
            s["equalizer"] = args or "false"
        elif path == "/api/audio/smart_audio_tune":
            s["smart_audio_tune"] = args or "false"
        elif path == "/api/system/auto_power_off":
            s["auto_power_off"] = args or "0"
        elif path == "/api/audio/sound_effect/enabled":
            s["se_enabled"] = args or "false"
        elif path == "/api/audio/sound_effect/room_size":
            s["room_size"] = args or "silent"
        elif path == "/api/audio/sound_effect/angle":
            s["angle"] = args or "0"


@pytest.fixture
def headset() -> FakeHeadset:
    return FakeHeadset()


@pytest.fixture
def device(headset: FakeHeadset) -> ZikDevice:
    return ZikDevice("Parrot Zik 2.0", "90:03:B7:11:22:33", Channel(headset))

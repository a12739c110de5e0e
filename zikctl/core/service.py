"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging
import re
import socket
import subprocess
from collections.abc import Callable, Sequence

from zikctl.core.channel import Channel
from zikctl.core.config import Config, load_config
from zikctl.core.device import ZikDevice
from zikctl.core.device_match import match_score, rank_devices
from zikctl.core.errors import DeviceDiscoveryError, DeviceSelectionError, ZikctlError
from zikctl.core.model import DetectedDevice, ResolvedTarget
from zikctl.transports.base import Transport
from zikctl.transports.rfcomm import RFCOMMTransport

_DEVICE_LINE_RE = re.compile(r"^Device\s+([0-9A-F:]{17})\s+(.+)$", re.IGNORECASE)
_MAC_RE = re.compile(r"([0-9A-F]{2}(?::[0-9A-F]{2}){5})", re.IGNORECASE)
UNKNOWN_DEVICE_NAME = "<unknown-device>"
LOGGER = logging.getLogger(__name__)


class ZikService:
    def __init__(
        self,
        *,
        transport: Transport | None = None,
        config: Config | None = None,
    ) -> None:
        self.config = config or load_config()
        self.load_warnings = self.config.warnings
        self.runtime_warnings = _runtime_warnings()
        self.transport = transport or RFCOMMTransport()

    def list_devices(self) -> list[DetectedDevice]:
        return _discover_devices()

    def match_score(self, device: DetectedDevice) -> int:
        return match_score(device, self.config.match)

    def resolve_target(self, device_hint: str | None = None) -> ResolvedTarget:
        devices = self.list_devices()
        if not devices:
            raise DeviceSelectionError("No Bluetooth devices found. Ensure your headset is connected.")

        hint = device_hint or self.config.default_device
        if hint:
            lowered = hint.lower()
            exact = [d for d in devices if d.mac.lower() == lowered]
            if exact:
                # an explicit address wins even over the match rules
                return ResolvedTarget(device=exact[0], score=self.match_score(exact[0]))
            devices = [d for d in devices if lowered in d.mac.lower() or lowered in d.name.lower()]
            if not devices:
                raise DeviceSelectionError(f"No device found matching '{hint}'")

        ranked = rank_devices(devices, self.config.match)
        if not ranked:
            raise DeviceSelectionError(
                "No connected device matched the configured headset rules. Use --device to target explicitly."
            )

        best_score = ranked[0][1]
        candidates = [device for device, score in ranked if score == best_score]
        if len(candidates) > 1:
            candidate_desc = ", ".join(f"{d.mac} ({d.name})" for d in candidates)
            raise DeviceSelectionError(
                f"Multiple candidate devices found: {candidate_desc}. Use --device to choose one."
            )
        return ResolvedTarget(device=candidates[0], score=best_score)

    def connect(self, device_hint: str | None = None, *, sync: bool | None = None) -> ZikDevice:
        """Connect to the resolved headset and open a session on it.

        The returned device owns the channel; close it to end the session.
        """
        target = self.resolve_target(device_hint)
        spec = self.config.transport
        sock = self.transport.connect(
            target.device.mac,
            channel=spec.channel,
            connect_timeout_s=spec.connect_timeout_s,
            read_timeout_s=spec.read_timeout_s,
        )
        channel = Channel(sock)
        try:
            channel.open_session()
        except ZikctlError:
            channel.close()
            raise

        LOGGER.info("Session opened with %s (%s)", target.device.name, target.device.mac)
        device = ZikDevice(target.device.name, target.device.mac, channel)
        should_sync = self.config.sync_on_connect if sync is None else sync
        if should_sync:
            device.sync_all()
        return device


def _connected_line(line: str) -> DetectedDevice | None:
    match = _DEVICE_LINE_RE.match(line.strip())
    if not match:
        return None
    return DetectedDevice(mac=match.group(1).upper(), name=match.group(2).strip())


def _acl_line(line: str) -> DetectedDevice | None:
    match = _MAC_RE.search(line)
    if not match:
        return None
    return DetectedDevice(mac=match.group(1).upper(), name=UNKNOWN_DEVICE_NAME)


# an RFCOMM session needs a live baseband link, so only connected devices count
_DISCOVERY_COMMANDS: tuple[tuple[tuple[str, ...], Callable[[str], DetectedDevice | None]], ...] = (
    (("bluetoothctl", "devices", "Connected"), _connected_line),
    (("hcitool", "con"), _acl_line),
)


def _discover_devices() -> list[DetectedDevice]:
    """List the devices the local adapter is connected to.

    ``bluetoothctl`` is asked first; ``hcitool con`` is the fallback for hosts
    without a BlueZ D-Bus session and only knows addresses.
    """
    command_errors: list[str] = []
    for cmd, parse_line in _DISCOVERY_COMMANDS:
        result = _run_discovery_command(list(cmd))
        if result is None:
            continue
        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"exit status {result.returncode}"
            command_errors.append(f"{' '.join(cmd)} -> {detail}")
            continue

        devices: dict[str, DetectedDevice] = {}
        for line in result.stdout.splitlines():
            device = parse_line(line)
            if device is not None:
                devices.setdefault(device.mac, device)
        if devices:
            return list(devices.values())

    if command_errors:
        joined = " | ".join(command_errors)
        raise DeviceDiscoveryError(
            f"Bluetooth discovery failed. Ensure a working D-Bus/BlueZ session. Details: {joined}"
        )
    return []


def _run_discovery_command(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        LOGGER.debug("Discovery command %s not available", cmd[0])
        return None


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
        warnings.append(
            "Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM; RFCOMM connections will fail."
        )
    return tuple(warnings)

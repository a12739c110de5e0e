from __future__ import annotations

import subprocess

import pytest

from zikctl.core.errors import DeviceDiscoveryError
from zikctl.core.service import _discover_devices


def _cp(cmd: list[str], rc: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)


def test_discovery_prefers_connected_devices(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd, check, capture_output, text):
        calls.append(cmd)
        if cmd == ["bluetoothctl", "devices", "Connected"]:
            return _cp(cmd, 0, stdout="Device 90:03:b7:11:22:33 Parrot ZIK 2.0\nnoise line\n")
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = _discover_devices()
    assert [(d.mac, d.name) for d in devices] == [("90:03:B7:11:22:33", "Parrot ZIK 2.0")]
    assert len(calls) == 1


def test_discovery_falls_back_to_hcitool(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        if cmd[0] == "bluetoothctl":
            return _cp(cmd, -6, stderr="dbus crashed")
        if cmd[:2] == ["hcitool", "con"]:
            return _cp(cmd, 0, stdout="Connections:\n\t< ACL 90:03:B7:11:22:33 handle 42 state 1 lm MASTER\n")
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = _discover_devices()
    assert len(devices) == 1
    assert devices[0].mac == "90:03:B7:11:22:33"
    assert devices[0].name == "<unknown-device>"


def test_discovery_raises_when_all_commands_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(cmd, -6, stderr="dbus crashed")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DeviceDiscoveryError):
        _discover_devices()


def test_discovery_without_tools_returns_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert _discover_devices() == []


def test_discovery_only_asks_for_connected_devices(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd, check, capture_output, text):
        calls.append(cmd)
        if cmd[0] == "bluetoothctl":
            return _cp(cmd, 0, stdout="")
        return _cp(
            cmd,
            0,
            stdout=(
                "Connections:\n"
                "\t< ACL 90:03:B7:11:22:33 handle 42 state 1 lm MASTER\n"
                "\t< SCO 90:03:b7:11:22:33 handle 43 state 1 lm MASTER\n"
            ),
        )

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = _discover_devices()
    assert [d.mac for d in devices] == ["90:03:B7:11:22:33"]
    assert calls == [["bluetoothctl", "devices", "Connected"], ["hcitool", "con"]]


def test_discovery_error_without_stderr_reports_exit_status(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(cmd, 1)

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DeviceDiscoveryError) as exc:
        _discover_devices()
    assert "exit status 1" in str(exc.value)

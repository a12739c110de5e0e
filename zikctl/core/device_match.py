"""Matching discovered Bluetooth devices against configured headset rules."""

from __future__ import annotations

from zikctl.core.model import DetectedDevice, MatchRules


def _mac_prefix_match(device_mac: str, rules: MatchRules) -> bool:
    upper_mac = device_mac.upper()
    return any(upper_mac.startswith(prefix) for prefix in rules.mac_prefix)


def _name_contains_match(device_name: str, rules: MatchRules) -> bool:
    lower_name = device_name.lower()
    return any(token.lower() in lower_name for token in rules.name_contains)


def match_score(device: DetectedDevice, rules: MatchRules) -> int:
    mac_match = _mac_prefix_match(device.mac, rules)
    name_match = _name_contains_match(device.name, rules)
    if mac_match and name_match:
        return 3
    if mac_match:
        return 2
    if name_match:
        return 1
    return 0


def rank_devices(devices: list[DetectedDevice], rules: MatchRules) -> list[tuple[DetectedDevice, int]]:
    """Matching devices with their score, best first; non-matching ones are dropped."""
    scored = [(device, match_score(device, rules)) for device in devices]
    matched = [(device, score) for device, score in scored if score > 0]
    return sorted(matched, key=lambda item: item[1], reverse=True)

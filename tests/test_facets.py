from __future__ import annotations

import pytest

from zikctl.core.device import ZikDevice
from zikctl.core.errors import FacetResolutionError
from zikctl.core.facets import FACETS, facet_catalog, read_facet, resolve_facet, write_facet
from zikctl.core.registry import RecordKind


def test_every_facet_maps_to_a_record_kind() -> None:
    assert {facet.kind for facet in FACETS.values()} <= set(RecordKind)
    assert not resolve_facet("battery").writable
    assert resolve_facet("noise_control_mode").values == ("off", "anc", "aoc")


def test_unknown_facet_lists_available() -> None:
    with pytest.raises(FacetResolutionError) as exc:
        resolve_facet("bass_boost")
    assert "noise_control" in str(exc.value)


def test_catalog_only_lists_writable_facets() -> None:
    catalog = facet_catalog()
    assert "battery" not in catalog
    assert catalog["flight_mode"] == ("off", "on")
    assert catalog["friendly_name"] == ()


def test_read_facet_syncs_first(headset, device: ZikDevice) -> None:
    assert read_facet(device, "battery") == "in_use (80%)"
    assert read_facet(device, "sound_effect") == "off (room silent, angle 120)"
    assert read_facet(device, "metadata") == "playing: Miles Davis - Blue in Green"
    assert headset.requests[0] == ("/api/system/battery", "get", None)


def test_write_facet_returns_read_back(headset, device: ZikDevice) -> None:
    assert write_facet(device, "noise_control_mode", "aoc") == "aoc"
    assert write_facet(device, "sound_effect_room", "jazz") == "jazz"
    assert write_facet(device, "auto_power_off", "15") == "15"
    assert headset.state["auto_power_off"] == "15"


def test_write_facet_rejects_bad_values(headset, device: ZikDevice) -> None:
    with pytest.raises(FacetResolutionError):
        write_facet(device, "battery", "on")
    with pytest.raises(FacetResolutionError):
        write_facet(device, "flight_mode", "maybe")
    with pytest.raises(FacetResolutionError):
        write_facet(device, "auto_power_off", "soon")
    with pytest.raises(FacetResolutionError):
        write_facet(device, "friendly_name", "")
    with pytest.raises(FacetResolutionError):
        write_facet(device, "friendly_name", "Tom & Jerry")
    assert headset.requests == []

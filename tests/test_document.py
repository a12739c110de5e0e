from __future__ import annotations

import pytest

from zikctl.core.document import Document, find_subtree, has_error, parse
from zikctl.core.errors import ParseError

BATTERY_REPLY = (
    b'<?xml version="1.0" encoding="UTF-8"?>'
    b'<answer path="/api/system/battery/get">'
    b'<system><battery state="discharging" percent="42"/></system>'
    b"</answer>"
)


def test_parse_builds_paths() -> None:
    document = parse(BATTERY_REPLY)
    assert document.path == "/api/system/battery/get"
    assert document.request() == ("/api/system/battery", "get")

    battery = find_subtree(document, "/system/battery")
    assert battery is not None
    assert battery.path == "/system/battery"
    assert battery.attribute("state") == "discharging"
    assert battery.attribute("percent") == "42"
    assert battery.attribute("missing") is None


def test_find_subtree_accepts_request_path() -> None:
    document = parse(BATTERY_REPLY)
    assert find_subtree(document, "/api/system/battery") == find_subtree(document, "/system/battery")


def test_find_subtree_absent() -> None:
    document = parse(BATTERY_REPLY)
    assert find_subtree(document, "/audio/volume") is None
    assert find_subtree(document, "/system/battery/level") is None
    assert find_subtree(document, "") is None


def test_trailing_nul_bytes_ignored() -> None:
    document = parse(BATTERY_REPLY + b"\x00\x00")
    assert not has_error(document)


def test_error_document() -> None:
    document = parse(b'<answer path="/api/audio/volume/get"><error/></answer>')
    assert has_error(document)


def test_bare_error_root() -> None:
    assert has_error(parse(b"<error/>"))


def test_data_document_with_error_sibling_is_not_error() -> None:
    document = parse(b'<answer path="/api/x/get"><error/><audio/></answer>')
    assert not has_error(document)


def test_empty_document() -> None:
    document = Document.empty("/api/flight_mode/enable")
    assert not has_error(document)
    assert find_subtree(document, "/flight_mode") is None
    assert document.request() == ("/api/flight_mode", "enable")


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"\x00\x00",
        b"<answer path='/api/system/battery/get'><system></answer>",
        b"<answer><system/></answer>",
        b"not xml at all",
    ],
)
def test_parse_errors(payload: bytes) -> None:
    with pytest.raises(ParseError):
        parse(payload)


def test_nodes_are_immutable() -> None:
    document = parse(BATTERY_REPLY)
    battery = find_subtree(document, "/system/battery")
    assert battery is not None
    with pytest.raises(TypeError):
        battery.attributes["state"] = "charging"  # type: ignore[index]

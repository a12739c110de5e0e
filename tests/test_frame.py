from __future__ import annotations

import pytest

from zikctl.core.errors import EncodingError, MalformedFrame
from zikctl.core.frame import (
    ACKNOWLEDGE_FRAME,
    CLOSE_SESSION_FRAME,
    MAX_FRAME_SIZE,
    MAX_PAYLOAD_SIZE,
    OPEN_SESSION_FRAME,
    Frame,
    FrameClass,
    FrameKind,
    classify,
    decode,
    encode,
    parse_request_payload,
    request_frame,
    request_payload,
)


def test_control_frames_are_fixed_bytes() -> None:
    assert OPEN_SESSION_FRAME.hex() == "000300"
    assert CLOSE_SESSION_FRAME.hex() == "000301"
    assert ACKNOWLEDGE_FRAME.hex() == "000302"


def test_request_frame_layout() -> None:
    data = request_frame("/api/audio/noise_control/enabled", "get")
    payload = b"GET /api/audio/noise_control/enabled/get"
    assert data[:2] == (len(payload) + 3).to_bytes(2, "big")
    assert data[2] == 0x80
    assert data[3:] == payload


def test_request_payload_with_args() -> None:
    payload = request_payload("/api/audio/noise_control", "set", "anc&value=2")
    assert payload == b"GET /api/audio/noise_control/set?arg=anc&value=2"
    assert parse_request_payload(payload) == ("/api/audio/noise_control", "set", "anc&value=2")


@pytest.mark.parametrize(
    ("path", "method", "args"),
    [
        ("/api/system/battery", "get", None),
        ("/api/flight_mode", "enable", None),
        ("/api/bluetooth/friendlyname", "set", "Zik de Marie"),
    ],
)
def test_request_round_trip(path: str, method: str, args: str | None) -> None:
    payload = request_payload(path, method, args)
    frame = decode(encode(FrameKind.REQUEST, payload))
    assert frame.payload == payload
    assert frame.kind is FrameKind.REQUEST
    assert parse_request_payload(frame.payload) == (path, method, args)


def test_unknown_method_rejected() -> None:
    with pytest.raises(EncodingError):
        request_payload("/api/system/battery", "post")


def test_largest_payload_fits() -> None:
    data = encode(FrameKind.REQUEST, b"x" * MAX_PAYLOAD_SIZE)
    assert len(data) == MAX_FRAME_SIZE
    assert data[:2] == b"\xff\xff"


@pytest.mark.parametrize("size", [MAX_PAYLOAD_SIZE + 1, MAX_FRAME_SIZE, MAX_FRAME_SIZE + 1, 100_000])
def test_oversized_payload_rejected(size: int) -> None:
    with pytest.raises(EncodingError):
        encode(FrameKind.REQUEST, b"x" * size)


def test_decode_short_header() -> None:
    with pytest.raises(MalformedFrame):
        decode(b"\x00\x03")


def test_decode_length_mismatch() -> None:
    with pytest.raises(MalformedFrame):
        decode(b"\x00\x05\x80ab\xff")
    with pytest.raises(MalformedFrame):
        decode(b"\x00\x09\x80ab")


def test_classify() -> None:
    assert classify(decode(ACKNOWLEDGE_FRAME)) is FrameClass.ACKNOWLEDGE
    assert classify(decode(encode(FrameKind.REQUEST, b"<answer/>"))) is FrameClass.REQUEST
    assert classify(decode(OPEN_SESSION_FRAME)) is FrameClass.UNKNOWN
    assert classify(Frame(message_id=0x42)) is FrameClass.UNKNOWN
    assert Frame(message_id=0x42).kind is None

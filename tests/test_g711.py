import struct

import pytest

from diago.g711 import (
    decode_alaw,
    decode_alaw_frame,
    decode_ulaw,
    decode_ulaw_frame,
    encode_alaw,
    encode_alaw_frame,
    encode_ulaw,
    encode_ulaw_frame,
)


def test_silence_codes():
    assert encode_ulaw_frame(0) == 0xFF
    assert encode_alaw_frame(0) == 0xD5
    assert decode_ulaw_frame(0xFF) == 0


def test_ulaw_code_round_trip():
    for code in range(256):
        if code == 0x7F:  # negative zero maps back to positive zero
            continue
        assert encode_ulaw_frame(decode_ulaw_frame(code)) == code


def test_alaw_code_round_trip():
    for code in range(256):
        assert encode_alaw_frame(decode_alaw_frame(code)) == code


@pytest.mark.parametrize("decode", [decode_ulaw_frame, decode_alaw_frame])
def test_decoded_values_are_int16(decode):
    for code in range(256):
        assert -32768 <= decode(code) <= 32767


@pytest.mark.parametrize(
    "encode, decode", [(encode_ulaw_frame, decode_ulaw_frame), (encode_alaw_frame, decode_alaw_frame)]
)
def test_sign_is_preserved(encode, decode):
    for sample in (-30000, -1000, -100, 100, 1000, 30000):
        value = decode(encode(sample))
        assert (value > 0) == (sample > 0)


@pytest.mark.parametrize(
    "encode, decode", [(encode_ulaw_frame, decode_ulaw_frame), (encode_alaw_frame, decode_alaw_frame)]
)
def test_decode_is_monotonic_in_sample(encode, decode):
    samples = range(-32768, 32768, 97)
    values = [decode(encode(s)) for s in samples]
    assert values == sorted(values)


@pytest.mark.parametrize(
    "encode, decode", [(encode_ulaw_frame, decode_ulaw_frame), (encode_alaw_frame, decode_alaw_frame)]
)
def test_relative_error_is_small(encode, decode):
    for sample in (-20000, -5000, 5000, 20000):
        value = decode(encode(sample))
        assert abs(value - sample) <= abs(sample) * 0.07


def test_out_of_range_sample_rejected():
    with pytest.raises(ValueError):
        encode_ulaw_frame(40000)
    with pytest.raises(ValueError):
        encode_alaw_frame(-40000)


def test_out_of_range_code_rejected():
    with pytest.raises(ValueError):
        decode_ulaw_frame(256)


def test_stream_encode_matches_frames():
    samples = [-32768, -1234, -1, 0, 1, 1234, 32767]
    lpcm = struct.pack(f"<{len(samples)}h", *samples)
    assert encode_ulaw(lpcm) == bytes(encode_ulaw_frame(s) for s in samples)
    assert encode_alaw(lpcm) == bytes(encode_alaw_frame(s) for s in samples)


def test_stream_decode_matches_frames():
    codes = bytes(range(0, 256, 5))
    expected_u = struct.pack(f"<{len(codes)}h", *(decode_ulaw_frame(c) for c in codes))
    expected_a = struct.pack(f"<{len(codes)}h", *(decode_alaw_frame(c) for c in codes))
    assert decode_ulaw(codes) == expected_u
    assert decode_alaw(codes) == expected_a


def test_trailing_odd_byte_ignored():
    assert len(encode_ulaw(b"\x00\x01\x02")) == 1
    assert len(encode_alaw(b"\x00\x01\x02")) == 1


def test_stream_round_trip_is_stable():
    lpcm = bytes(range(200))
    once = decode_alaw(encode_alaw(lpcm))
    assert decode_alaw(encode_alaw(once)) == once
    assert len(once) == len(lpcm)


def test_empty_input():
    assert decode_ulaw(b"") == b""
    assert encode_alaw(b"") == b""
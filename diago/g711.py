"""G.711 mu-law and A-law companding of 16-bit little-endian PCM."""

from __future__ import annotations

import struct

__all__ = [
    "decode_alaw",
    "decode_alaw_frame",
    "decode_ulaw",
    "decode_ulaw_frame",
    "encode_alaw",
    "encode_alaw_frame",
    "encode_ulaw",
    "encode_ulaw_frame",
]

_ULAW_BIAS = 0x84
_ULAW_CLIP = 0x7F7B


def _check_sample(sample: int) -> None:
    if not -0x8000 <= sample <= 0x7FFF:
        raise ValueError(f"sample {sample} is outside the signed 16-bit range")


def _check_code(code: int) -> None:
    if not 0 <= code <= 0xFF:
        raise ValueError(f"code {code} is outside the byte range")


def _to_int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def encode_ulaw_frame(sample: int) -> int:
    """Compress one signed 16-bit sample to a mu-law byte."""
    _check_sample(sample)
    sign = 0x80 if sample < 0 else 0
    magnitude = min(-sample if sign else sample, _ULAW_CLIP) + _ULAW_BIAS
    exponent = max((magnitude >> 7).bit_length() - 1, 0)
    mantissa = (magnitude >> (exponent + 3)) & 0x0F
    return ~(sign | (exponent << 4) | mantissa) & 0xFF


def decode_ulaw_frame(code: int) -> int:
    """Expand one mu-law byte to a signed 16-bit sample."""
    _check_code(code)
    inverted = ~code & 0xFF
    t = (((inverted & 0x0F) << 3) + _ULAW_BIAS) << ((inverted & 0x70) >> 4)
    return _ULAW_BIAS - t if inverted & 0x80 else t - _ULAW_BIAS


def encode_alaw_frame(sample: int) -> int:
    """Compress one signed 16-bit sample to an A-law byte."""
    _check_sample(sample)
    if sample >= 0:
        sign = 0x80
        frame = sample
    else:
        sign = 0
        frame = ~sample
    compressed = frame >> 4
    if compressed > 15:
        segment = compressed.bit_length() - 4
        compressed >>= segment - 1
        compressed -= 16
        compressed += segment << 4
    return (sign | compressed) ^ 0x55


def decode_alaw_frame(code: int) -> int:
    """Expand one A-law byte to a signed 16-bit sample."""
    _check_code(code)
    value = code ^ 0x55
    t = (value & 0x0F) << 4
    segment = (value & 0x70) >> 4
    if segment == 0:
        t += 8
    elif segment == 1:
        t += 0x108
    else:
        t += 0x108
        t <<= segment - 1
    return t if value & 0x80 else -t


_ULAW_DECODE = tuple(decode_ulaw_frame(code) for code in range(256))
_ALAW_DECODE = tuple(decode_alaw_frame(code) for code in range(256))
_ULAW_ENCODE = bytes(encode_ulaw_frame(_to_int16(u)) for u in range(0x10000))
_ALAW_ENCODE = bytes(encode_alaw_frame(_to_int16(u)) for u in range(0x10000))


def _unsigned_samples(lpcm: bytes) -> tuple[int, ...]:
    count = len(lpcm) // 2
    return struct.unpack_from(f"<{count}H", lpcm)


def _pack_samples(samples: list[int]) -> bytes:
    return struct.pack(f"<{len(samples)}h", *samples)


def encode_ulaw(lpcm: bytes) -> bytes:
    """Encode 16-bit little-endian PCM to mu-law; a trailing odd byte is ignored."""
    return bytes(_ULAW_ENCODE[s] for s in _unsigned_samples(lpcm))


def decode_ulaw(ulaw: bytes) -> bytes:
    """Decode mu-law bytes to 16-bit little-endian PCM."""
    return _pack_samples([_ULAW_DECODE[c] for c in ulaw])


def encode_alaw(lpcm: bytes) -> bytes:
    """Encode 16-bit little-endian PCM to A-law; a trailing odd byte is ignored."""
    return bytes(_ALAW_ENCODE[s] for s in _unsigned_samples(lpcm))


def decode_alaw(alaw: bytes) -> bytes:
    """Decode A-law bytes to 16-bit little-endian PCM."""
    return _pack_samples([_ALAW_DECODE[c] for c in alaw])
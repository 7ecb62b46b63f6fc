"""Translation between VoIP audio codecs and 16-bit little-endian PCM."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO, Callable, Union

from diago import g711

__all__ = [
    "CODEC_AUDIO_ALAW",
    "CODEC_AUDIO_OPUS",
    "CODEC_AUDIO_ULAW",
    "CODEC_TELEPHONE_EVENT_8000",
    "FORMAT_TYPE_ALAW",
    "FORMAT_TYPE_OPUS",
    "FORMAT_TYPE_ULAW",
    "RTP_BUF_SIZE",
    "Codec",
    "PCMDecoder",
    "PCMDecoderBuffer",
    "PCMDecoderReader",
    "PCMDecoderWriter",
    "PCMEncoder",
    "PCMEncoderWriter",
    "UnsupportedCodecError",
    "codec_audio_from_payload_type",
    "samples_bytes_to_int16",
    "samples_int16_to_bytes",
]

log = logging.getLogger(__name__)

FRAME_SIZE = 3200
READ_BUFFER = 160
RTP_BUF_SIZE = 1500

FORMAT_TYPE_ULAW = 0
FORMAT_TYPE_ALAW = 8
FORMAT_TYPE_OPUS = 96


class UnsupportedCodecError(ValueError):
    """Raised for a codec that cannot be encoded or decoded."""


@dataclass(frozen=True)
class Codec:
    """An audio codec as negotiated for a media session."""

    name: str
    payload_type: int
    sample_rate: int
    sample_dur: float = 0.02
    num_channels: int = 1

    def samples_pcm(self, bit_size: int) -> int:
        """Bytes of PCM of ``bit_size`` bits per sample in one frame."""
        return bit_size // 8 * int(self.sample_rate * self.sample_dur) * self.num_channels

    def samples16(self) -> int:
        """Bytes of 16-bit PCM in one frame."""
        return self.samples_pcm(16)

    def sample_timestamp(self) -> int:
        """RTP timestamp increment of one frame."""
        return int(self.sample_rate * self.sample_dur)


CODEC_AUDIO_ULAW = Codec("PCMU", FORMAT_TYPE_ULAW, 8000)
CODEC_AUDIO_ALAW = Codec("PCMA", FORMAT_TYPE_ALAW, 8000)
CODEC_AUDIO_OPUS = Codec("opus", FORMAT_TYPE_OPUS, 48000, num_channels=2)
CODEC_TELEPHONE_EVENT_8000 = Codec("telephone-event", 101, 8000)

_KNOWN_CODECS = {
    c.payload_type: c for c in (CODEC_AUDIO_ULAW, CODEC_AUDIO_ALAW, CODEC_AUDIO_OPUS, CODEC_TELEPHONE_EVENT_8000)
}

CodecLike = Union[Codec, int]


def codec_audio_from_payload_type(payload_type: int) -> Codec:
    """Return the default codec for a static or well-known payload type."""
    try:
        return _KNOWN_CODECS[payload_type]
    except KeyError:
        raise UnsupportedCodecError(f"unsupported payload type {payload_type}") from None


def _resolve(codec: CodecLike) -> Codec:
    if isinstance(codec, Codec):
        return codec
    return codec_audio_from_payload_type(codec)


def samples_bytes_to_int16(data: bytes) -> list[int]:
    """Unpack little-endian 16-bit PCM into signed samples."""
    if len(data) % 2:
        raise ValueError(f"PCM data length {len(data)} is not a whole number of samples")
    return list(struct.unpack(f"<{len(data) // 2}h", data))


def samples_int16_to_bytes(samples: list[int]) -> bytes:
    """Pack signed 16-bit samples as little-endian PCM."""
    try:
        return struct.pack(f"<{len(samples)}h", *samples)
    except struct.error as exc:
        raise ValueError(f"samples out of 16-bit range: {exc}") from exc


def _write_all(writer: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = writer.write(view)
        if written is None:
            return
        view = view[written:]


class PCMDecoder:
    """Decodes codec payloads to 16-bit PCM."""

    def __init__(self, codec: CodecLike) -> None:
        codec = _resolve(codec)
        self.codec = codec
        self.samples_size = codec.samples_pcm(16)
        self._decode: Callable[[bytes], bytes]
        if codec.payload_type == FORMAT_TYPE_ULAW:
            self._decode = g711.decode_ulaw
        elif codec.payload_type == FORMAT_TYPE_ALAW:
            self._decode = g711.decode_alaw
        elif codec.payload_type == FORMAT_TYPE_OPUS:
            raise UnsupportedCodecError("failed to create opus decoder: opus support is not available")
        else:
            raise UnsupportedCodecError(f"not supported codec {codec.payload_type}")

    def decode(self, encoded: bytes) -> bytes:
        """Decode one payload to PCM."""
        return self._decode(encoded)


class PCMDecoderReader(PCMDecoder):
    """Reads encoded payloads from a source and returns them decoded."""

    def __init__(self, codec: CodecLike, source: BinaryIO, buf_size: int = RTP_BUF_SIZE) -> None:
        super().__init__(codec)
        self.source = source
        self.buf_size = buf_size

    def read(self) -> bytes:
        """Read one payload of up to ``buf_size`` bytes; ``b""`` at end of stream."""
        encoded = self.source.read(self.buf_size)
        if not encoded:
            return b""
        return self.decode(encoded)

    def __iter__(self):
        return iter(self.read, b"")


class PCMDecoderWriter(PCMDecoder):
    """Decodes written payloads and passes the PCM to a writer."""

    def __init__(self, codec: CodecLike, writer: BinaryIO) -> None:
        super().__init__(codec)
        self.writer = writer

    def write(self, data: bytes) -> int:
        """Decode ``data`` and write the PCM; return the encoded bytes consumed."""
        _write_all(self.writer, self.decode(data))
        return len(data)


class _ByteSink:
    def __init__(self) -> None:
        self.data = bytearray()

    def write(self, data: bytes) -> int:
        self.data += data
        return len(data)


class PCMDecoderBuffer(PCMDecoderWriter):
    """Decodes written payloads into an in-memory buffer."""

    def __init__(self, codec: CodecLike) -> None:
        self._sink = _ByteSink()
        super().__init__(codec, self._sink)

    def write(self, data: bytes) -> int:
        return super().write(data)

    def read_all(self) -> bytes:
        """Return all decoded PCM so far and empty the buffer."""
        data = bytes(self._sink.data)
        self._sink.data.clear()
        return data


class PCMEncoder:
    """Encodes 16-bit PCM to a codec payload."""

    def __init__(self, codec: CodecLike) -> None:
        codec = _resolve(codec)
        self.codec = codec
        self.samples_size = codec.samples_pcm(16)
        self._encode: Callable[[bytes], bytes]
        if codec.payload_type == FORMAT_TYPE_ULAW:
            self._encode = g711.encode_ulaw
        elif codec.payload_type == FORMAT_TYPE_ALAW:
            self._encode = g711.encode_alaw
        elif codec.payload_type == FORMAT_TYPE_OPUS:
            raise UnsupportedCodecError("failed to create opus encoder: opus support is not available")
        else:
            raise UnsupportedCodecError(f"not supported codec {codec.payload_type}")

    def encode(self, lpcm: bytes) -> bytes:
        """Encode PCM to one payload."""
        return self._encode(lpcm)


class PCMEncoderWriter(PCMEncoder):
    """Encodes written PCM and passes the payload to a writer."""

    def __init__(self, codec: CodecLike, writer: BinaryIO) -> None:
        super().__init__(codec)
        self.writer = writer

    def write(self, lpcm: bytes) -> int:
        """Encode and write ``lpcm``; return the PCM bytes consumed."""
        if len(lpcm) > self.samples_size:
            log.warning(
                "Size of pcm samples does not match our frame lenpcm=%d expected=%d",
                len(lpcm),
                self.samples_size,
            )
        encoded = self.encode(lpcm)
        written = self.writer.write(encoded)
        if written is not None and written != len(encoded):
            raise OSError("short write")
        return len(lpcm)
"""Writing and reading WAV (RIFF) audio containers."""

from __future__ import annotations

import struct
from typing import BinaryIO

__all__ = [
    "WAV_AUDIO_FORMAT_PCM",
    "WavFormatError",
    "WavReader",
    "WavWriter",
    "wav_write",
    "wav_write_voip_pcm",
]

WAV_AUDIO_FORMAT_PCM = 1

_HEADER_SIZE = 44
_FMT_CHUNK_SIZE = 16
_U32 = 0xFFFFFFFF
_U16 = 0xFFFF


class WavFormatError(ValueError):
    """Raised when a stream is not a readable WAV container."""


def _build_header(data_size: int, sample_rate: int, bit_depth: int, num_chans: int, audio_format: int) -> bytes:
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        (data_size + _HEADER_SIZE - 8) & _U32,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        audio_format & _U16,
        num_chans & _U16,
        sample_rate & _U32,
        (sample_rate * bit_depth * num_chans // 8) & _U32,
        (bit_depth * num_chans // 8) & _U16,
        bit_depth & _U16,
        b"data",
        data_size & _U32,
    )


def _write_all(stream: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = stream.write(view)
        if written is None:
            return
        view = view[written:]


def wav_write(
    stream: BinaryIO,
    audio: bytes,
    sample_rate: int = 8000,
    bit_depth: int = 16,
    num_chans: int = 1,
    audio_format: int = WAV_AUDIO_FORMAT_PCM,
) -> int:
    """Write a complete WAV file holding ``audio``; return the bytes written."""
    wav_file = _build_header(len(audio), sample_rate, bit_depth, num_chans, audio_format) + bytes(audio)
    _write_all(stream, wav_file)
    return len(wav_file)


def wav_write_voip_pcm(stream: BinaryIO, audio: bytes) -> int:
    """Write 16-bit mono 8000 Hz PCM as a WAV file."""
    return wav_write(stream, audio, sample_rate=8000, bit_depth=16, num_chans=1, audio_format=WAV_AUDIO_FORMAT_PCM)


class WavWriter:
    """Streams audio into a seekable file; ``close`` fixes up the header sizes."""

    def __init__(
        self,
        stream: BinaryIO,
        sample_rate: int = 8000,
        bit_depth: int = 16,
        num_chans: int = 2,
        audio_format: int = WAV_AUDIO_FORMAT_PCM,
    ) -> None:
        self.stream = stream
        self.sample_rate = sample_rate
        self.bit_depth = bit_depth
        self.num_chans = num_chans
        self.audio_format = audio_format
        self.data_size = 0
        self._headers_written = False

    def _write_header(self) -> None:
        header = _build_header(self.data_size, self.sample_rate, self.bit_depth, self.num_chans, self.audio_format)
        _write_all(self.stream, header)

    def write(self, audio: bytes) -> int:
        """Append audio data, writing the header first if needed."""
        if not self._headers_written:
            self._write_header()
            self._headers_written = True
        written = self.stream.write(audio)
        if written is None:
            written = len(audio)
        self.data_size += written
        return written

    def close(self) -> None:
        """Rewrite the header with the final data size."""
        self.stream.seek(0)
        self._write_header()

    def __enter__(self) -> WavWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class WavReader:
    """Parses a WAV stream and reads the PCM held in its data chunk."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.size = 0
        self.audio_format = 0
        self.num_chans = 0
        self.sample_rate = 0
        self.byte_rate = 0
        self.block_align = 0
        self.bit_depth = 0
        self.data_size = 0
        self._remaining: int | None = None
        self._headers_parsed = False

    def _read_exact(self, size: int) -> bytes:
        data = self.stream.read(size)
        if data is None or len(data) < size:
            raise WavFormatError("unexpected end of stream")
        return data

    def _skip(self, size: int) -> None:
        while size > 0:
            data = self.stream.read(min(size, 65536))
            if not data:
                raise WavFormatError("unexpected end of stream")
            size -= len(data)

    def _next_chunk(self) -> tuple[bytes, int]:
        chunk_id, size = struct.unpack("<4sI", self._read_exact(8))
        return chunk_id, size

    def _drain(self, size: int) -> None:
        self._skip(size + (size & 1))

    def _parse_riff(self) -> None:
        riff_id, size, form = struct.unpack("<4sI4s", self._read_exact(12))
        if riff_id != b"RIFF":
            raise WavFormatError(f"{riff_id!r} - format not supported")
        if form != b"WAVE":
            raise WavFormatError(f"{form!r} - format not supported")
        self.size = size
        self._headers_parsed = True

    def _read_fmt(self) -> None:
        while True:
            chunk_id, size = self._next_chunk()
            if chunk_id != b"fmt ":
                self._drain(size)
                continue
            if size < _FMT_CHUNK_SIZE:
                raise WavFormatError("fmt chunk is too short")
            (
                self.audio_format,
                self.num_chans,
                self.sample_rate,
                self.byte_rate,
                self.block_align,
                self.bit_depth,
            ) = struct.unpack("<HHIIHH", self._read_exact(_FMT_CHUNK_SIZE))
            self._drain(size - _FMT_CHUNK_SIZE)
            return

    def _find_data(self) -> None:
        while True:
            chunk_id, size = self._next_chunk()
            if chunk_id != b"data":
                self._drain(size)
                continue
            self.data_size = size
            self._remaining = size
            return

    def read_headers(self) -> None:
        """Parse the RIFF and fmt headers and position at the data chunk."""
        self._parse_riff()
        self._read_fmt()
        self._find_data()

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes of PCM; return ``b""`` at the end of the data."""
        if self._remaining is None:
            if not self._headers_parsed:
                self._parse_riff()
                self._read_fmt()
            self._find_data()
        assert self._remaining is not None
        want = self._remaining if size is None or size < 0 else min(size, self._remaining)
        if want == 0:
            return b""
        data = self.stream.read(want) or b""
        self._remaining -= len(data)
        return data
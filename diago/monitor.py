"""Recording of the PCM that flows through audio readers and writers."""

from __future__ import annotations

import logging
import os
import tempfile
import time
import uuid
from typing import BinaryIO

from diago.pcm import Codec, CodecLike, PCMDecoderBuffer, codec_audio_from_payload_type

__all__ = [
    "RECORDING_FLUSH_SIZE",
    "MonitorPCMReader",
    "MonitorPCMStereo",
    "MonitorPCMWriter",
]

log = logging.getLogger(__name__)

RECORDING_FLUSH_SIZE = 4096

_SAMPLE_WIDTH = 2  # 16-bit PCM


def _write_all(stream: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = stream.write(view)
        if written is None:
            return
        view = view[written:]


class _BufferedSink:
    """Collects writes and passes them on in blocks of the flush size."""

    def __init__(self, stream: BinaryIO, size: int) -> None:
        self._stream = stream
        self._size = size
        self._buf = bytearray()

    def write(self, data: bytes) -> None:
        self._buf += data
        if len(self._buf) >= self._size:
            self.flush()

    def flush(self) -> None:
        if self._buf:
            _write_all(self._stream, bytes(self._buf))
            self._buf.clear()


class _PCMMonitor:
    """Decodes passing audio to PCM and fills gaps in the stream with silence."""

    def __init__(self, recording: BinaryIO, codec: CodecLike) -> None:
        if not isinstance(codec, Codec):
            codec = codec_audio_from_payload_type(codec)
        self.codec = codec
        self._decoder = PCMDecoderBuffer(codec)
        self._sink = _BufferedSink(recording, RECORDING_FLUSH_SIZE)
        self._silence = bytes(codec.samples16())
        self._last_time: float | None = None

    def _set_start_time(self, t: float) -> None:
        self._last_time = t

    def _inject_silence(self) -> None:
        now = time.monotonic()
        if self._last_time is not None:
            gap = int((now - self._last_time) * self.codec.sample_rate)
            step = self.codec.sample_timestamp()
            for _ in range(2 * step, gap, step):
                self._sink.write(self._silence)
        self._last_time = now

    def _record(self, encoded: bytes) -> None:
        self._decoder.write(encoded)
        self._sink.write(self._decoder.read_all())

    def _flush_sink(self) -> None:
        self._sink.flush()


class MonitorPCMReader(_PCMMonitor):
    """Passes reads through from an audio reader while recording them as PCM."""

    def __init__(self, recording: BinaryIO, codec: CodecLike, audio_reader: BinaryIO) -> None:
        super().__init__(recording, codec)
        self.audio_reader = audio_reader

    def start_time(self, t: float) -> None:
        """Set the moment (a ``time.monotonic`` value) from which gaps are measured."""
        self._set_start_time(t)

    def read(self, size: int = -1) -> bytes:
        """Read encoded audio; ``b""`` at end of stream."""
        data = self.audio_reader.read(size)
        if not data:
            return b""
        self._inject_silence()
        self._record(data)
        return data

    def flush(self) -> None:
        """Write all buffered PCM to the recording."""
        self._flush_sink()


class MonitorPCMWriter(_PCMMonitor):
    """Passes writes through to an audio writer while recording them as PCM."""

    def __init__(self, recording: BinaryIO, codec: CodecLike, audio_writer: BinaryIO) -> None:
        super().__init__(recording, codec)
        self.audio_writer = audio_writer

    def write(self, data: bytes) -> int:
        """Write encoded audio; return the bytes accepted by the audio writer."""
        self._inject_silence()
        written = self.audio_writer.write(data)
        if written is None:
            written = len(data)
        self._record(bytes(data[:written]))
        return written

    def flush(self) -> None:
        """Write all buffered PCM to the recording."""
        self._flush_sink()


class MonitorPCMStereo:
    """Records both directions of a call as interleaved two-channel PCM.

    Each direction is kept in a temporary file until ``close`` interleaves
    them into the recording and removes the files.
    """

    def __init__(
        self,
        recording: BinaryIO,
        codec: CodecLike,
        audio_reader: BinaryIO,
        audio_writer: BinaryIO,
    ) -> None:
        self.recording = recording
        self.pcm_file_read: BinaryIO | None = None
        self.pcm_file_write: BinaryIO | None = None
        self._closed = False
        prefix = os.path.join(os.path.realpath(tempfile.gettempdir()), str(uuid.uuid4()))
        try:
            self.pcm_file_read = open(prefix + "_monitor_reader.raw", "w+b")
            self.pcm_file_write = open(prefix + "_monitor_writer.raw", "w+b")
            self.reader = MonitorPCMReader(self.pcm_file_read, codec, audio_reader)
            self.writer = MonitorPCMWriter(self.pcm_file_write, codec, audio_writer)
        except BaseException:
            self._remove_tmp_files()
            raise

    def read(self, size: int = -1) -> bytes:
        """Read from the monitored audio reader."""
        return self.reader.read(size)

    def write(self, data: bytes) -> int:
        """Write to the monitored audio writer."""
        return self.writer.write(data)

    def flush(self) -> None:
        """Flush both directions to their temporary files."""
        self.reader.flush()
        self.writer.flush()

    def close(self) -> None:
        """Write the interleaved recording and remove the temporary files."""
        if self._closed:
            return
        try:
            self.flush()
            self._interleave()
        finally:
            self._closed = True
            self._remove_tmp_files()

    def __enter__(self) -> MonitorPCMStereo:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _remove_tmp_files(self) -> None:
        for f in (self.pcm_file_read, self.pcm_file_write):
            if f is None:
                continue
            f.close()
            try:
                os.remove(f.name)
            except FileNotFoundError:
                pass

    def _interleave(self) -> None:
        assert self.pcm_file_read is not None and self.pcm_file_write is not None
        left_file, right_file = self.pcm_file_read, self.pcm_file_write
        left_file.seek(0)
        right_file.seek(0)
        chunk = RECORDING_FLUSH_SIZE // 2
        while True:
            left = left_file.read(chunk) or b""
            right = right_file.read(chunk) or b""
            n = max(len(left), len(right))
            if n == 0:
                return
            n += n % _SAMPLE_WIDTH
            left = left.ljust(n, b"\0")
            right = right.ljust(n, b"\0")
            stereo = bytearray(2 * n)
            stereo[0::4] = left[0::2]
            stereo[1::4] = left[1::2]
            stereo[2::4] = right[0::2]
            stereo[3::4] = right[1::2]
            _write_all(self.recording, bytes(stereo))
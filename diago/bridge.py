"""Bridging of audio between two answered call legs."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

from diago.pcm import RTP_BUF_SIZE, Codec

__all__ = ["Bridge", "BridgeError", "MediaLeg", "copy_stream"]

log = logging.getLogger(__name__)


class BridgeError(Exception):
    """Raised when a call leg cannot be bridged."""


@dataclass
class MediaLeg:
    """The audio side of a dialog session that can take part in a bridge."""

    id: str
    codec: Codec | None = None
    reader: Any = None
    writer: Any = None

    @property
    def answered(self) -> bool:
        """True once the leg has both an audio reader and writer."""
        return self.reader is not None and self.writer is not None


def copy_stream(reader: Any, writer: Any, buf_size: int = RTP_BUF_SIZE) -> int:
    """Copy from ``reader`` to ``writer`` in reads of ``buf_size`` until end of stream.

    Returns the number of bytes copied.
    """
    total = 0
    while True:
        chunk = reader.read(buf_size)
        if not chunk:
            return total
        written = writer.write(chunk)
        if written is not None and written != len(chunk):
            raise OSError("short write")
        total += len(chunk)


class Bridge:
    """Proxies audio between two call legs without transcoding."""

    def __init__(self, wait_dialogs_num: int = 2) -> None:
        self.wait_dialogs_num = wait_dialogs_num or 2
        self.originator: MediaLeg | None = None
        self.proxy_thread: threading.Thread | None = None
        self._dialogs: list[MediaLeg] = []

    @property
    def dialogs(self) -> list[MediaLeg]:
        """The legs added so far, in order."""
        return list(self._dialogs)

    def add_dialog_session(self, leg: MediaLeg) -> None:
        """Add a leg; proxying starts in the background once enough legs are present."""
        if self.originator is not None and self.originator.codec != leg.codec:
            raise BridgeError(
                f"no transcoding supported in bridge codec1={self.originator.codec!r} codec2={leg.codec!r}"
            )

        self._dialogs.append(leg)
        if len(self._dialogs) == 1:
            self.originator = leg

        if len(self._dialogs) < self.wait_dialogs_num:
            return
        if len(self._dialogs) > 2:
            raise BridgeError("currently bridge only support 2 party")
        self._check_answered()
        self.start()

    def proxy_media(self) -> None:
        """Proxy media in the calling thread until both directions end.

        Only for bridges whose automatic start was held off with a
        ``wait_dialogs_num`` above 2.
        """
        if len(self._dialogs) < 2:
            raise BridgeError("number of dialogs must equal to 2")
        if self.wait_dialogs_num < 3:
            raise BridgeError("you are already running proxy media. Increase wait_dialogs_num")
        self._proxy_media()

    def start(self) -> threading.Thread:
        """Start proxying media in a background thread and return it."""
        if len(self._dialogs) < 2:
            raise BridgeError("number of dialogs must equal to 2")
        thread = threading.Thread(target=self._run_background, name="bridge-proxy", daemon=True)
        self.proxy_thread = thread
        thread.start()
        return thread

    def _check_answered(self) -> None:
        for leg in self._dialogs:
            if not leg.answered:
                raise BridgeError(f"dialog session not answered {leg.id!r}")

    def _run_background(self) -> None:
        started = time.monotonic()
        try:
            self._proxy_media()
        except Exception as exc:
            log.error("Proxy media stopped error=%s", exc)
        finally:
            log.debug("Proxy media setup dur=%.3fs", time.monotonic() - started)

    def _proxy_media(self) -> None:
        self._check_answered()
        first, second = self._dialogs[0], self._dialogs[1]
        errors: list[BaseException] = []
        workers = [
            threading.Thread(target=self._proxy_direction, args=(first, second, errors), daemon=True),
            threading.Thread(target=self._proxy_direction, args=(second, first, errors), daemon=True),
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        if errors:
            raise errors[0]

    @staticmethod
    def _proxy_direction(source: MediaLeg, target: MediaLeg, errors: list[BaseException]) -> None:
        log.debug("Starting proxy media routine from=%s to=%s", source.id, target.id)
        try:
            written = copy_stream(source.reader, target.writer)
        except TimeoutError as exc:
            log.debug("Proxy media stopped with timeout error=%s", exc)
            return
        except Exception as exc:
            errors.append(exc)
            return
        log.debug("Proxy media routine finished bytes=%d", written)
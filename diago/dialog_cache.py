"""Thread-safe store of active dialog sessions by dialog ID."""

from __future__ import annotations

import threading
from typing import Generic, Iterator, TypeVar

__all__ = ["DialogCache", "DialogDoesNotExistError"]

T = TypeVar("T")


class DialogDoesNotExistError(LookupError):
    """Raised when no dialog is stored under an ID."""


class DialogCache(Generic[T]):
    """Maps dialog IDs to dialog sessions; safe to use from several threads."""

    def __init__(self) -> None:
        self._dialogs: dict[str, T] = {}
        self._lock = threading.Lock()

    def store(self, dialog_id: str, dialog: T) -> None:
        """Store ``dialog`` under ``dialog_id``, replacing any earlier one."""
        with self._lock:
            self._dialogs[dialog_id] = dialog

    def load(self, dialog_id: str) -> T:
        """Return the dialog stored under ``dialog_id``."""
        with self._lock:
            try:
                return self._dialogs[dialog_id]
            except KeyError:
                raise DialogDoesNotExistError(f"dialog {dialog_id!r} does not exist") from None

    def delete(self, dialog_id: str) -> None:
        """Remove the dialog under ``dialog_id``; a missing ID is ignored."""
        with self._lock:
            self._dialogs.pop(dialog_id, None)

    def items(self) -> Iterator[tuple[str, T]]:
        """Iterate over a snapshot of ``(dialog_id, dialog)`` pairs."""
        with self._lock:
            snapshot = list(self._dialogs.items())
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._dialogs)
from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from ai_image_editor.domain.entities.history_entry import HistoryEntry
from ai_image_editor.domain.errors import NoImageLoadedError, SessionBusyError
from ai_image_editor.domain.services.edit_history import EditHistory


class SessionState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    PROCESSING = "processing"


@dataclass
class EditingSession:
    """Transient editing state for one uploaded image.

    The current image is always derived from the history position: the entry at
    the current index, or the original when the index is -1.
    """

    id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    original_image_ref: str | None = None
    current_image_ref: str | None = None
    original_filename: str | None = None
    mime_type: str | None = None
    width: int | None = None
    height: int | None = None
    file_size: int | None = None
    is_processing: bool = False
    status_message: str = ""
    history: EditHistory = field(default_factory=EditHistory)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def state(self) -> SessionState:
        if self.is_processing:
            return SessionState.PROCESSING
        if self.original_image_ref is None:
            return SessionState.EMPTY
        return SessionState.LOADED

    @property
    def has_image(self) -> bool:
        return self.original_image_ref is not None

    @contextmanager
    def _idle(self, action: str) -> Iterator[None]:
        # holds the lock so no operation can start between the check and the change
        with self._lock:
            if self.is_processing:
                raise SessionBusyError(f"Cannot {action} while an operation is processing")
            yield

    def load_image(
        self,
        image_ref: str,
        filename: str | None,
        mime_type: str | None,
        width: int | None = None,
        height: int | None = None,
        file_size: int | None = None,
    ) -> None:
        """Replace both image refs with a fresh upload and drop all history."""
        with self._idle("upload"):
            self.original_image_ref = image_ref
            self.current_image_ref = image_ref
            self.original_filename = filename
            self.mime_type = mime_type
            self.width = width
            self.height = height
            self.file_size = file_size
            self.status_message = ""
            self.history.clear()

    def begin_processing(self, status_message: str) -> None:
        if not self.has_image:
            raise NoImageLoadedError("Please upload an image first")
        with self._lock:
            if self.is_processing:
                raise SessionBusyError("Another operation is already processing")
            self.is_processing = True
        self.status_message = status_message

    def end_processing(self, status_message: str) -> None:
        with self._lock:
            self.is_processing = False
        self.status_message = status_message

    def record_edit(self, image_ref: str, operation: str) -> HistoryEntry:
        entry = HistoryEntry(image_ref=image_ref, operation=operation, timestamp=datetime.now(UTC))
        self.history.append(entry)
        self.current_image_ref = image_ref
        return entry

    def undo(self) -> bool:
        with self._idle("change history"):
            moved = self.history.undo()
            self._sync_current()
        return moved

    def redo(self) -> bool:
        with self._idle("change history"):
            moved = self.history.redo()
            self._sync_current()
        return moved

    def jump_to(self, index: int) -> None:
        with self._idle("change history"):
            self.history.jump_to(index)
            self._sync_current()

    def reset(self) -> None:
        with self._idle("reset"):
            self.history.clear()
            self.current_image_ref = self.original_image_ref
            self.status_message = ""

    def _sync_current(self) -> None:
        entry = self.history.current
        self.current_image_ref = entry.image_ref if entry else self.original_image_ref

from __future__ import annotations

from ai_image_editor.domain.entities.history_entry import HistoryEntry
from ai_image_editor.domain.errors import HistoryIndexError


class EditHistory:
    """Linear undo/redo log of edit results.

    Index convention:
    - `-1` means "original image, no edits applied"
    - otherwise `0 <= index < len(entries)`

    Appending after an undo drops every entry past the current index, so a new
    edit always invalidates the redo future.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self._index = -1

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> HistoryEntry | None:
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index >= 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: HistoryEntry) -> None:
        del self._entries[self._index + 1 :]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._index += 1
        return True

    def jump_to(self, index: int) -> None:
        if index != -1 and not 0 <= index < len(self._entries):
            raise HistoryIndexError(
                f"History index {index} out of range (-1..{len(self._entries) - 1})"
            )
        self._index = index

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1

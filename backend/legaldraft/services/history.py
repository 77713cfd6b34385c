from dataclasses import dataclass, field
from typing import Tuple


class EditHistory:
    """
    Undo/redo log: an immutable tuple of snapshots plus a cursor.

    `commit` drops every entry after the cursor and appends the new snapshot,
    so once a new edit lands after an undo the old "future" is gone. The
    cursor is always a valid index into `entries`.
    """

    def __init__(self, initial: str):
        self._entries: Tuple[str, ...] = (initial,)
        self._index = 0

    @property
    def entries(self) -> Tuple[str, ...]:
        return self._entries

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> str:
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def commit(self, content: str) -> None:
        self._entries = self._entries[: self._index + 1] + (content,)
        self._index = len(self._entries) - 1

    def undo(self) -> str:
        if self.can_undo:
            self._index -= 1
        return self.current

    def redo(self) -> str:
        if self.can_redo:
            self._index += 1
        return self.current

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class Draft:
    """The authoritative document text of a drafting session."""

    content: str
    language: str
    history: EditHistory = field(init=False)

    def __post_init__(self):
        self.history = EditHistory(self.content)

    def replaced(self, content: str) -> "Draft":
        """A new draft carrying `content`, with a fresh single-entry history."""
        return Draft(content=content, language=self.language)

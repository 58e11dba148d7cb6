"""Viewport state of the thread list: rows, cursor, scroll offset, height.

``ViewState`` is shared by the input handlers, the background refresh loop
and the resize handler. Every read and write happens under one lock, and
every mutation hands back the ``ViewSnapshot`` taken inside the same critical
section, so a redraw never mixes a row list with a cursor computed against
another version of it.

Invariant, whenever rows are non-empty and the height is known:
``0 <= offset <= cursor < min(len(rows), offset + visible_rows)``.
"""

import threading
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple

from threadview.core.models import Row


@dataclass(frozen=True)
class ViewSnapshot:
    """Immutable copy of the view state at one point in time."""

    rows: Tuple[Row, ...]
    cursor: int
    offset: int
    visible_rows: int
    loaded: bool
    status: Optional[str]
    version: int

    @property
    def visible(self) -> Tuple[Row, ...]:
        """Rows that fit on screen, starting at the scroll offset."""
        return self.rows[self.offset:self.offset + self.visible_rows]

    @property
    def selection(self) -> Optional[Row]:
        if 0 <= self.cursor < len(self.rows):
            return self.rows[self.cursor]
        return None


class CursorMove(NamedTuple):
    """Result of a cursor movement."""

    moved: bool
    snapshot: ViewSnapshot
    # set when the move landed on the final row of the list
    last_row: Optional[Row] = None


class ViewState:
    """Lock-guarded cursor/offset state machine over an immutable row tuple."""

    def __init__(self, rows: Sequence[Row] = (), visible_rows: int = 0):
        self._lock = threading.RLock()
        self._rows: Tuple[Row, ...] = tuple(rows)
        self._loaded = bool(rows)
        self._cursor = 0
        self._offset = 0
        self._visible_rows = max(0, visible_rows)
        self._status: Optional[str] = None
        self._fatal = False
        self._version = 0

    def _snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            rows=self._rows,
            cursor=self._cursor,
            offset=self._offset,
            visible_rows=self._visible_rows,
            loaded=self._loaded,
            status=self._status,
            version=self._version,
        )

    def _changed(self) -> ViewSnapshot:
        self._version += 1
        return self._snapshot()

    def snapshot(self) -> ViewSnapshot:
        with self._lock:
            return self._snapshot()

    def move_cursor_up(self) -> CursorMove:
        with self._lock:
            if self._cursor == 0:
                return CursorMove(False, self._snapshot())
            self._cursor -= 1
            if self._cursor < self._offset:
                self._offset = self._cursor
            return CursorMove(True, self._changed())

    def move_cursor_down(self) -> CursorMove:
        with self._lock:
            if self._cursor >= len(self._rows) - 1:
                return CursorMove(False, self._snapshot())
            self._cursor += 1
            if self._cursor - self._offset >= max(self._visible_rows, 1):
                self._offset = self._cursor - max(self._visible_rows, 1) + 1
            last_row = self._rows[-1] if self._cursor == len(self._rows) - 1 else None
            return CursorMove(True, self._changed(), last_row)

    def on_resize(self, visible_rows: int) -> ViewSnapshot:
        """Adopt a new height; the offset is re-derived from scratch."""
        with self._lock:
            self._visible_rows = max(0, visible_rows)
            max_offset = max(0, len(self._rows) - self._visible_rows)
            self._offset = min(self._cursor, max_offset)
            return self._changed()

    def replace_rows(self, rows: Sequence[Row]) -> ViewSnapshot:
        """Swap in a new row list.

        The cursor keeps its numeric position, so after a refresh it may
        denote a different thread. It is only clamped when the new list is
        shorter.
        """
        with self._lock:
            self._rows = tuple(rows)
            self._loaded = True
            if not self._fatal:
                self._status = None
            if self._rows:
                self._cursor = min(self._cursor, len(self._rows) - 1)
            else:
                self._cursor = 0
            self._offset = min(self._offset, self._cursor)
            if self._visible_rows and self._cursor >= self._offset + self._visible_rows:
                self._offset = self._cursor - self._visible_rows + 1
            return self._changed()

    def current_selection(self) -> Optional[Row]:
        with self._lock:
            if self._rows:
                return self._rows[self._cursor]
            return None

    def set_status(self, message: Optional[str], fatal: bool = False) -> ViewSnapshot:
        """Show a message in place of the list (loading or fatal errors).

        A fatal message stays up for the rest of the session: later row
        replacements and non-fatal messages do not clear it.
        """
        with self._lock:
            if fatal:
                self._fatal = True
            elif self._fatal:
                return self._snapshot()
            self._status = message
            return self._changed()

"""Widget drawing the visible slice of the thread list."""

from typing import Callable, Optional

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from threadview.tui.rendering import render_lines
from threadview.tui.view_state import ViewSnapshot


class ThreadList(Widget, can_focus=True):
    """Shows the newest ``ViewSnapshot`` it has been handed.

    Snapshots may arrive from several threads in any order; older versions
    than the one on screen are dropped.
    """

    DEFAULT_CSS = """
    ThreadList {
        width: 1fr;
        height: 1fr;
        background: black;
    }
    """

    class SnapshotChanged(Message):
        """Posted (from any thread) when the view state has a new snapshot."""

        def __init__(self, snapshot: ViewSnapshot) -> None:
            super().__init__()
            self.snapshot = snapshot

    def __init__(self, on_resize: Optional[Callable[[int], ViewSnapshot]] = None, **kwargs):
        super().__init__(**kwargs)
        self._snapshot: Optional[ViewSnapshot] = None
        self._on_resize = on_resize

    @property
    def snapshot(self) -> Optional[ViewSnapshot]:
        return self._snapshot

    def show(self, snapshot: ViewSnapshot) -> None:
        if self._snapshot is not None and snapshot.version < self._snapshot.version:
            return
        self._snapshot = snapshot
        self.refresh()

    def on_thread_list_snapshot_changed(self, message: SnapshotChanged) -> None:
        self.show(message.snapshot)

    def on_resize(self, event: events.Resize) -> None:
        if self._on_resize is not None:
            self.show(self._on_resize(event.size.height))

    def render(self) -> Text:
        if self._snapshot is None:
            return Text("")
        return Text("\n").join(render_lines(self._snapshot, self.size.width))

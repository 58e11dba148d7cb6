"""Textual application hosting the thread list."""

from functools import partial

from textual import events
from textual.app import App, ComposeResult

from threadview.tui.message_actions import CursorDown, CursorUp, Quit
from threadview.tui.session import ViewerSession
from threadview.tui.view_state import ViewSnapshot
from threadview.tui.widgets.thread_list import ThreadList
from threadview.utils.logging import get_logger

logger = get_logger(__name__)


class ThreadviewApp(App):
    TITLE = "threadview"

    def __init__(self, session: ViewerSession):
        super().__init__()
        self.session = session
        self.thread_list = ThreadList(on_resize=session.scroll.resize, id="thread-list")

    def compose(self) -> ComposeResult:
        yield self.thread_list

    # --- Event Handlers ---
    def on_mount(self) -> None:
        self.thread_list.focus()
        self.session.start(redraw=self.request_redraw, runner=self.run_in_thread)

    def on_unmount(self) -> None:
        self.session.stop()

    def request_redraw(self, snapshot: ViewSnapshot) -> None:
        """Thread-safe: hand a snapshot to the list widget."""
        self.thread_list.post_message(ThreadList.SnapshotChanged(snapshot))

    def run_in_thread(self, func, *args) -> None:
        self.run_worker(
            partial(func, *args),
            thread=True,
            group="pagination",
            exit_on_error=False,
        )

    async def on_key(self, event: events.Key) -> None:
        action = self.session.dispatcher.action_for(event.key)
        if action is None:
            return
        event.stop()

        if isinstance(action, Quit):
            self.session.stop()
            self.exit()
        elif isinstance(action, CursorUp):
            self.session.scroll.move_up()
        elif isinstance(action, CursorDown):
            self.session.scroll.move_down()
        else:
            self.session.dispatcher.dispatch(action, self.session.state.current_selection())

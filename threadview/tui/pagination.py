"""Cursor movement, resize handling and incremental pagination."""

from typing import Any, Callable, Optional

from threadview.core.cache import InMemoryCache
from threadview.core.models import EmailQuery, QueryStatus
from threadview.tui.view_state import CursorMove, ViewSnapshot, ViewState
from threadview.utils.errors import error_context
from threadview.utils.logging import get_logger

logger = get_logger(__name__)

Redraw = Callable[[ViewSnapshot], None]
# Runs a blocking callable somewhere that does not block the input loop.
Runner = Callable[..., Any]


def run_inline(func: Callable[..., Any], *args: Any) -> Any:
    return func(*args)


class ScrollController:
    """Applies cursor/resize events to the view and pages in more rows.

    Landing on the last row requests exactly one extra page, keyed by that
    row's continuation token. Requests are not deduplicated otherwise:
    leaving the last row and coming back asks again.
    """

    def __init__(
        self,
        state: ViewState,
        cache: InMemoryCache,
        engine,
        redraw: Redraw,
        query_provider: Callable[[], Optional[EmailQuery]],
        runner: Runner = run_inline,
    ):
        self.state = state
        self.cache = cache
        self.engine = engine
        self.redraw = redraw
        self.query_provider = query_provider
        self.runner = runner

    def move_up(self) -> CursorMove:
        move = self.state.move_cursor_up()
        if move.moved:
            self.redraw(move.snapshot)
        return move

    def move_down(self) -> CursorMove:
        move = self.state.move_cursor_down()
        if move.moved:
            self.redraw(move.snapshot)
            if move.last_row is not None:
                self.runner(self.fetch_next_page, move.last_row.continuation_token)
        return move

    def resize(self, visible_rows: int) -> ViewSnapshot:
        snapshot = self.state.on_resize(visible_rows)
        self.redraw(snapshot)
        return snapshot

    def fetch_next_page(self, continuation_token: str) -> Optional[QueryStatus]:
        """Extend the active query past ``continuation_token``.

        Runs without the state lock; failures are logged and the view keeps
        its current rows.
        """
        query = self.query_provider()
        if query is None:
            logger.debug("Pagination requested before the active query exists")
            return None

        status = None
        with error_context("Fetching next page", reraise=False, log_traceback=False):
            logger.debug(f"Requesting page after {continuation_token}")
            status = self.engine.query(query, after=continuation_token)
            if status == QueryStatus.UPDATED:
                rows = self.cache.query_rows(query.to_query_string())
                self.redraw(self.state.replace_rows(rows))
        return status

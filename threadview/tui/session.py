"""Interactive session context: everything the viewer shares, with one lifecycle."""

from typing import Callable, Optional

from threadview.core.cache import InMemoryCache
from threadview.core.models import EmailQuery
from threadview.tui.message_actions import ActionDispatcher
from threadview.tui.pagination import Runner, ScrollController, run_inline
from threadview.tui.refresh import RefreshLoop
from threadview.tui.view_state import ViewSnapshot, ViewState
from threadview.utils.config import AppConfig
from threadview.utils.logging import get_logger

logger = get_logger(__name__)


def _discard(snapshot: ViewSnapshot) -> None:
    pass


class ViewerSession:
    """Owns the view state and the components acting on it.

    Built once per interactive run. ``start`` wires the redraw callback and
    starts polling; ``stop`` stops polling, drops queued actions and shuts the
    engine down. Both are safe to call more than once.
    """

    def __init__(
        self,
        engine,
        cache: InMemoryCache,
        config: Optional[AppConfig] = None,
        scheduler=None,
        action_executor=None,
    ):
        self.config = config or AppConfig()
        self.engine = engine
        self.cache = cache
        self.state = ViewState()
        self._redraw: Callable[[ViewSnapshot], None] = _discard
        self.refresh_loop = RefreshLoop(
            self.state,
            cache,
            engine,
            self.redraw,
            interval=self.config.refresh.interval_seconds,
            scheduler=scheduler,
        )
        self.scroll = ScrollController(
            self.state,
            cache,
            engine,
            self.redraw,
            query_provider=self.active_query,
        )
        self.dispatcher = ActionDispatcher(
            cache, engine, self.config.ui, executor=action_executor
        )
        self.running = False
        self._closed = False

    def redraw(self, snapshot: ViewSnapshot) -> None:
        self._redraw(snapshot)

    def active_query(self) -> Optional[EmailQuery]:
        return self.refresh_loop.query

    def start(self, redraw: Callable[[ViewSnapshot], None], runner: Runner = run_inline) -> None:
        if self.running or self._closed:
            return
        self._redraw = redraw
        self.scroll.runner = runner
        self.running = True
        self.refresh_loop.start()
        logger.info("Viewer session started")

    def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.running = False
        self.refresh_loop.stop()
        self.dispatcher.shutdown()
        self._redraw = _discard
        try:
            self.engine.shutdown()
        finally:
            logger.info("Viewer session stopped")

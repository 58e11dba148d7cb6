"""Background polling of the active query."""

import threading
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from threadview.core.cache import InMemoryCache
from threadview.core.models import EmailQuery, QueryStatus, Role
from threadview.tui.view_state import ViewSnapshot, ViewState
from threadview.utils.errors import (
    FATAL_SESSION_ERRORS,
    MailboxNotFoundError,
    format_error_message,
)
from threadview.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 5

LOADING_MAILBOXES = "Loading mailboxes…"
LOADING_IDENTITIES = "Loading identities…"
LOADING_MESSAGES = "Loading messages from inbox…"


class LoopState(Enum):
    IDLE = "idle"
    QUERYING = "querying"
    STOPPED = "stopped"
    FAILED = "failed"


class RefreshLoop:
    """Re-executes the active query on a fixed interval.

    The first tick bootstraps the session (mailboxes, identities, inbox
    query). Each later tick runs the query; only an UPDATED result replaces
    the rows and redraws. Authorization failures and JMAP method errors end
    the loop for good and leave their message on screen; anything else,
    including an HTTP 5xx, is logged and the next tick tries again.
    """

    JOB_ID = "refresh-active-query"

    def __init__(
        self,
        state: ViewState,
        cache: InMemoryCache,
        engine,
        redraw: Callable[[ViewSnapshot], None],
        interval: int = DEFAULT_INTERVAL_SECONDS,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.state = state
        self.cache = cache
        self.engine = engine
        self.redraw = redraw
        self.interval = interval
        self.query: Optional[EmailQuery] = None
        self.loop_state = LoopState.IDLE
        self._scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._stopping = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopping.is_set()

    def start(self) -> None:
        """Schedule the first tick immediately and then every ``interval`` seconds."""
        self._scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.interval,
            id=self.JOB_ID,
            next_run_time=datetime.now(),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info(f"Refresh loop started (interval: {self.interval}s)")

    def stop(self) -> None:
        """Stop polling without waiting for an in-flight query."""
        self._stopping.set()
        if self.loop_state != LoopState.FAILED:
            self.loop_state = LoopState.STOPPED
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("Refresh loop stopped")

    def tick(self) -> Optional[QueryStatus]:
        """One poll: IDLE -> QUERYING -> IDLE, or a terminal state."""
        if self.stopped:
            return None
        if self.query is None and not self._bootstrap():
            return None

        if not self.state.snapshot().loaded:
            self._show(LOADING_MESSAGES)

        self.loop_state = LoopState.QUERYING
        try:
            status = self.engine.query(self.query)
        except FATAL_SESSION_ERRORS as e:
            self._fail(e)
            return None
        except Exception as e:
            logger.warning(f"Background refresh failed, retrying in {self.interval}s: {e}")
            self.loop_state = LoopState.IDLE
            return None

        if self.stopped:
            return status

        if status == QueryStatus.UPDATED:
            rows = self.cache.query_rows(self.query.to_query_string())
            self.redraw(self.state.replace_rows(rows))
        self.loop_state = LoopState.IDLE
        return status

    def _bootstrap(self) -> bool:
        try:
            self._show(LOADING_MAILBOXES)
            self.engine.refresh_mailboxes()
            inbox = self.cache.mailbox_by_role(Role.INBOX)
            self._show(LOADING_IDENTITIES)
            self.engine.refresh_identities()
        except Exception as e:
            self._fail(e)
            return False

        if inbox is None:
            self._fail(MailboxNotFoundError("Inbox not found"))
            return False

        self.query = EmailQuery(in_mailbox=inbox.id)
        logger.info(f"Active query on inbox {inbox.id}")
        return True

    def _show(self, message: str) -> None:
        self.redraw(self.state.set_status(message))

    def _fail(self, error: Exception) -> None:
        message = format_error_message(error)
        logger.error(f"Refresh loop terminated: {message}", exc_info=error)
        self.loop_state = LoopState.FAILED
        self._stopping.set()
        self.redraw(self.state.set_status(message, fatal=True))
        try:
            self._scheduler.remove_job(self.JOB_ID)
        except JobLookupError:
            pass

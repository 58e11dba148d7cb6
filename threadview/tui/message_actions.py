"""Key symbols, the actions they stand for, and the dispatcher that runs them."""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from threadview.core.cache import InMemoryCache
from threadview.core.models import Email, EmailAddress, Keyword, Mailbox, Role, Row
from threadview.utils.config import UIConfig
from threadview.utils.errors import error_context
from threadview.utils.logging import get_logger

logger = get_logger(__name__)


## Action variants


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class CursorUp:
    pass


@dataclass(frozen=True)
class CursorDown:
    pass


@dataclass(frozen=True)
class ToggleKeyword:
    keyword: str


@dataclass(frozen=True)
class Archive:
    pass


@dataclass(frozen=True)
class MoveToTrash:
    pass


@dataclass(frozen=True)
class ApplyLabel:
    label: str


@dataclass(frozen=True)
class MarkImportant:
    pass


@dataclass(frozen=True)
class Compose:
    send_immediately: bool = False


@dataclass(frozen=True)
class SubmitDraft:
    pass


@dataclass(frozen=True)
class EmptyTrash:
    pass


Action = Union[
    Quit,
    CursorUp,
    CursorDown,
    ToggleKeyword,
    Archive,
    MoveToTrash,
    ApplyLabel,
    MarkImportant,
    Compose,
    SubmitDraft,
    EmptyTrash,
]

ROW_ACTIONS = (ToggleKeyword, Archive, MoveToTrash, ApplyLabel, MarkImportant, SubmitDraft)
GLOBAL_ACTIONS = (Compose, EmptyTrash)


def build_keymap(labels: Iterable[str] = ("jmap", "xmpp")) -> Dict[str, Action]:
    """Key symbol (Textual key name) to action."""
    first, second = list(labels)
    return {
        "q": Quit(),
        "up": CursorUp(),
        "down": CursorDown(),
        "n": ToggleKeyword(Keyword.SEEN),
        "s": ToggleKeyword(Keyword.FLAGGED),
        "a": Archive(),
        "d": MoveToTrash(),
        "j": ApplyLabel(first),
        "x": ApplyLabel(second),
        "m": MarkImportant(),
        "w": Compose(send_immediately=False),
        "W": Compose(send_immediately=True),
        "enter": SubmitDraft(),
        "T": EmptyTrash(),
    }


KEYMAP = build_keymap()


## Dispatcher


class ActionDispatcher:
    """Runs mutating actions against the sync engine.

    Handlers never touch the view; the next refresh or page fetch brings the
    list in line with whatever the server now holds. Failures are logged and
    dropped.
    """

    def __init__(
        self,
        cache: InMemoryCache,
        engine,
        ui_config: Optional[UIConfig] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.cache = cache
        self.engine = engine
        self.ui = ui_config or UIConfig()
        self.keymap = build_keymap(self.ui.labels)
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="action")

    def action_for(self, key: str) -> Optional[Action]:
        return self.keymap.get(key)

    def dispatch(self, action: Action, selection: Optional[Row]) -> Optional[Future]:
        """Submit ``action`` to the worker pool; returns None when there is nothing to do."""
        if isinstance(action, ROW_ACTIONS) and selection is None:
            logger.debug(f"Ignoring {action} without a selected row")
            return None
        if not isinstance(action, ROW_ACTIONS + GLOBAL_ACTIONS):
            return None
        return self._executor.submit(self.perform, action, selection)

    def perform(self, action: Action, selection: Optional[Row]) -> None:
        """Run one action synchronously, logging any failure."""
        with error_context(f"Action {type(action).__name__}", reraise=False):
            if isinstance(action, ToggleKeyword):
                self._toggle_keyword(selection, action.keyword)
            elif isinstance(action, Archive):
                self.engine.archive(self._messages(selection))
            elif isinstance(action, MoveToTrash):
                self.engine.move_to_trash(self._messages(selection))
            elif isinstance(action, ApplyLabel):
                self._apply_label(selection, action.label)
            elif isinstance(action, MarkImportant):
                self.engine.copy_to_important(self._messages(selection))
            elif isinstance(action, Compose):
                self._compose(action.send_immediately)
            elif isinstance(action, SubmitDraft):
                self._submit(selection)
            elif isinstance(action, EmptyTrash):
                self.engine.empty_trash()

    def shutdown(self) -> None:
        """Drop queued actions; running ones finish on their own."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _messages(self, row: Row):
        return self.cache.thread_messages(row.thread_id)

    def _toggle_keyword(self, row: Row, keyword: str) -> None:
        emails = self._messages(row)
        if keyword in row.most_recent.keywords:
            self.engine.remove_keyword(emails, keyword)
        else:
            self.engine.set_keyword(emails, keyword)

    def _apply_label(self, row: Row, label: str) -> None:
        mailbox = self.cache.label(label)
        if mailbox is None:
            # first press only creates the label; the next one files the thread
            self.engine.create_mailbox(Mailbox(name=label))
        else:
            self.engine.copy_to_mailbox(self._messages(row), mailbox)

    def _first_identity(self):
        identities = self.cache.identities()
        return identities[0] if identities else None

    def _compose(self, send_immediately: bool) -> None:
        inbox = self.cache.mailbox_by_role(Role.INBOX)
        email = Email(
            id="",
            thread_id="",
            subject=self.ui.compose_subject,
            from_=(EmailAddress(email=self.engine.username),),
            to=(EmailAddress(email=self.ui.compose_to, name=self.ui.compose_to_name),),
            mailbox_ids=frozenset({inbox.id}) if inbox is not None else frozenset(),
            text_body=("1",),
            body_values=(("1", self.ui.compose_body),),
        )
        if send_immediately:
            identity = self._first_identity()
            if identity is None:
                logger.error("No identity found, cannot send")
                return
            logger.info(f"Sent email, submission {self.engine.send(email, identity)}")
        else:
            logger.info(f"Stored draft {self.engine.draft(email)}")

    def _submit(self, row: Row) -> None:
        if Keyword.DRAFT not in row.most_recent.keywords:
            return
        identity = self._first_identity()
        if identity is None:
            logger.error("No identity found, cannot submit draft")
            return
        logger.info(f"Submitted email: {self.engine.submit(row.most_recent, identity)}")

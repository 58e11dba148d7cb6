"""In-memory cache of mailboxes, identities, emails, threads and query results.

The sync engine writes into the cache; the viewer only reads from it through
``query_rows`` and ``thread_messages``. All access is serialised by one
re-entrant lock so readers never see half-applied updates.
"""

import threading
from typing import Dict, Iterable, List, NamedTuple, Optional

from threadview.core.models import (
    Email,
    Identity,
    Mailbox,
    QueryStatus,
    Role,
    Row,
    Thread,
)
from threadview.utils.logging import get_logger

logger = get_logger(__name__)


class QueryItem(NamedTuple):
    email_id: str
    thread_id: str


class InMemoryCache:
    """Process-local store backing the thread list."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._emails: Dict[str, Email] = {}
        self._threads: Dict[str, Thread] = {}
        self._mailboxes: Dict[str, Mailbox] = {}
        self._identities: Dict[str, Identity] = {}
        self._query_results: Dict[str, List[QueryItem]] = {}

    ## Read side

    def query_rows(self, query_string: str) -> List[Row]:
        """Aggregate the cached result of a query into one row per thread."""
        rows: List[Row] = []
        with self._lock:
            for item in self._query_results.get(query_string, ()):
                email = self._emails.get(item.email_id)
                thread = self._threads.get(item.thread_id)
                if email is None or thread is None:
                    logger.debug(f"Skipping incomplete query item {item}")
                    continue
                participants = set()
                for email_id in thread.email_ids:
                    member = self._emails.get(email_id)
                    if member is not None:
                        participants.update(member.from_)
                rows.append(
                    Row(
                        thread_id=thread.id,
                        message_count=len(thread.email_ids),
                        participants=frozenset(participants),
                        most_recent=email,
                    )
                )
        return rows

    def thread_messages(self, thread_id: str) -> List[Email]:
        """All cached emails of a thread, in thread order."""
        with self._lock:
            thread = self._threads.get(thread_id)
            if thread is None:
                return []
            return [self._emails[i] for i in thread.email_ids if i in self._emails]

    def query_items(self, query_string: str) -> List[QueryItem]:
        with self._lock:
            return list(self._query_results.get(query_string, ()))

    def mailboxes(self) -> List[Mailbox]:
        with self._lock:
            return list(self._mailboxes.values())

    def identities(self) -> List[Identity]:
        with self._lock:
            return list(self._identities.values())

    def mailbox_by_role(self, role: Role) -> Optional[Mailbox]:
        with self._lock:
            for mailbox in self._mailboxes.values():
                if mailbox.role == role:
                    return mailbox
        return None

    def label(self, name: str) -> Optional[Mailbox]:
        """A role-less mailbox with exactly this name."""
        with self._lock:
            for mailbox in self._mailboxes.values():
                if mailbox.role is None and mailbox.name == name:
                    return mailbox
        return None

    ## Write side

    def set_mailboxes(self, mailboxes: Iterable[Mailbox]) -> bool:
        new = {m.id: m for m in mailboxes}
        with self._lock:
            changed = new != self._mailboxes
            self._mailboxes = new
        return changed

    def add_mailbox(self, mailbox: Mailbox) -> None:
        with self._lock:
            self._mailboxes[mailbox.id] = mailbox

    def set_identities(self, identities: Iterable[Identity]) -> bool:
        new = {i.id: i for i in identities}
        with self._lock:
            changed = new != self._identities
            self._identities = new
        return changed

    def update_query(
        self,
        query_string: str,
        items: Iterable[QueryItem],
        emails: Iterable[Email],
        threads: Iterable[Thread],
        append: bool = False,
        window: Optional[int] = None,
    ) -> QueryStatus:
        """Store a query result and report whether anything visible changed.

        With ``append`` the items extend the known result (pagination);
        otherwise they replace it. A replacement that covered only the first
        ``window`` positions keeps the known items past that range, which
        were paged in while it was in flight.
        """
        items = list(items)
        with self._lock:
            known = self._query_results.get(query_string)
            changed = known is None

            if append and known is not None:
                seen = {item.email_id for item in known}
                new_items = list(known) + [i for i in items if i.email_id not in seen]
            elif window is not None and known is not None:
                fresh = {item.email_id for item in items}
                tail = [i for i in known[window:] if i.email_id not in fresh]
                new_items = items + tail
            else:
                new_items = items
            if new_items != known:
                changed = True
            self._query_results[query_string] = new_items

            for email in emails:
                if self._emails.get(email.id) != email:
                    self._emails[email.id] = email
                    changed = True
            for thread in threads:
                if self._threads.get(thread.id) != thread:
                    self._threads[thread.id] = thread
                    changed = True

        return QueryStatus.UPDATED if changed else QueryStatus.UNCHANGED

    def remove_emails(self, email_ids: Iterable[str]) -> None:
        doomed = set(email_ids)
        with self._lock:
            for email_id in doomed:
                self._emails.pop(email_id, None)
            for key, items in self._query_results.items():
                self._query_results[key] = [i for i in items if i.email_id not in doomed]


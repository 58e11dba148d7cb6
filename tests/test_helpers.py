"""
Test helper functions and factories shared across test modules
"""
from datetime import datetime, timedelta, timezone
from typing import List
from unittest.mock import MagicMock

from threadview.core.cache import InMemoryCache, QueryItem
from threadview.core.models import (
    Email,
    EmailAddress,
    EmailQuery,
    Identity,
    Mailbox,
    QueryStatus,
    Role,
    Row,
    Thread,
)

BASE_TIME = datetime(2025, 10, 2, 10, 30, tzinfo=timezone.utc)


class MailTestHelper:
    """Factories for mail domain objects"""

    @staticmethod
    def create_email(index: int = 0, **kwargs) -> Email:
        """Create an email with sensible defaults"""
        defaults = {
            'id': f'M{index}',
            'thread_id': f'T{index}',
            'subject': f'Subject {index}',
            'keywords': frozenset(),
            'from_': (EmailAddress(email=f'sender{index}@example.com', name=f'Sender {index}'),),
            'received_at': BASE_TIME - timedelta(minutes=index),
            'preview': f'Preview {index}',
            'mailbox_ids': frozenset({'inbox'}),
        }
        defaults.update(kwargs)
        return Email(**defaults)

    @staticmethod
    def create_row(index: int = 0, message_count: int = 1, **email_kwargs) -> Row:
        """Create a row whose newest message is a fresh email"""
        email = MailTestHelper.create_email(index, **email_kwargs)
        return Row(
            thread_id=email.thread_id,
            message_count=message_count,
            participants=frozenset(email.from_),
            most_recent=email,
        )

    @staticmethod
    def create_rows(count: int, start: int = 0) -> List[Row]:
        """Create ``count`` single-message rows"""
        return [MailTestHelper.create_row(i) for i in range(start, start + count)]

    @staticmethod
    def mailboxes() -> List[Mailbox]:
        """The special mailboxes most servers have"""
        return [
            Mailbox(name='Inbox', id='inbox', role=Role.INBOX),
            Mailbox(name='Archive', id='archive', role=Role.ARCHIVE),
            Mailbox(name='Drafts', id='drafts', role=Role.DRAFTS),
            Mailbox(name='Sent', id='sent', role=Role.SENT),
            Mailbox(name='Trash', id='trash', role=Role.TRASH),
        ]


class CacheTestHelper:
    """Helpers for populating an InMemoryCache"""

    QUERY = EmailQuery(in_mailbox='inbox')

    @staticmethod
    def populate(cache: InMemoryCache, emails: List[Email], query: EmailQuery = None) -> None:
        """Store emails as the result of ``query``, one thread per thread id"""
        query = query or CacheTestHelper.QUERY
        threads = {}
        for email in emails:
            threads.setdefault(email.thread_id, []).append(email.id)
        newest = {}
        for email in emails:
            current = newest.get(email.thread_id)
            if current is None or email.received_at > current.received_at:
                newest[email.thread_id] = email
        items = [
            QueryItem(e.id, e.thread_id)
            for e in sorted(newest.values(), key=lambda e: e.received_at, reverse=True)
        ]
        cache.update_query(
            query.to_query_string(),
            items,
            emails,
            [Thread(id=t, email_ids=tuple(ids)) for t, ids in threads.items()],
        )

    @staticmethod
    def create_cache(emails: List[Email] = None) -> InMemoryCache:
        cache = InMemoryCache()
        cache.set_mailboxes(MailTestHelper.mailboxes())
        cache.set_identities([Identity(id='I1', email='me@example.com', name='Me')])
        if emails:
            CacheTestHelper.populate(cache, emails)
        return cache


class EngineTestHelper:
    """Helpers for mocking the sync engine"""

    @staticmethod
    def create_mock_engine(status: QueryStatus = QueryStatus.UNCHANGED) -> MagicMock:
        engine = MagicMock()
        engine.username = 'me@example.com'
        engine.query.return_value = status
        return engine


class RedrawRecorder:
    """Callable collecting every snapshot passed to a redraw callback"""

    def __init__(self):
        self.snapshots = []

    def __call__(self, snapshot):
        self.snapshots.append(snapshot)

    @property
    def count(self):
        return len(self.snapshots)

    @property
    def last(self):
        return self.snapshots[-1] if self.snapshots else None

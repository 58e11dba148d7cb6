"""Mail domain models shared by the cache, the sync engine and the viewer."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple


class Keyword:
    """Standard JMAP keywords."""

    SEEN = "$seen"
    FLAGGED = "$flagged"
    DRAFT = "$draft"


class Role(str, Enum):
    """Special mailbox roles (RFC 8621)."""

    INBOX = "inbox"
    ARCHIVE = "archive"
    DRAFTS = "drafts"
    SENT = "sent"
    TRASH = "trash"
    IMPORTANT = "important"

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["Role"]:
        if value is None:
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None


class QueryStatus(Enum):
    """Outcome of executing or extending a query."""

    UNCHANGED = "unchanged"
    UPDATED = "updated"


def parse_utc_date(value: Optional[str]) -> datetime:
    """Parse a JMAP UTCDate; missing values sort as the epoch."""
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class EmailAddress:
    """A sender or recipient address."""

    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_jmap(cls, data: Mapping[str, Any]) -> "EmailAddress":
        return cls(email=data.get("email"), name=data.get("name"))

    def to_jmap(self) -> Dict[str, Any]:
        return {"email": self.email, "name": self.name}


@dataclass(frozen=True)
class Email:
    """An email as known to the local cache."""

    id: str
    thread_id: str
    subject: str = ""
    keywords: FrozenSet[str] = frozenset()
    from_: Tuple[EmailAddress, ...] = ()
    to: Tuple[EmailAddress, ...] = ()
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    preview: str = ""
    mailbox_ids: FrozenSet[str] = frozenset()
    text_body: Tuple[str, ...] = ()
    body_values: Tuple[Tuple[str, str], ...] = ()

    PROPERTIES = (
        "id",
        "threadId",
        "mailboxIds",
        "keywords",
        "from",
        "to",
        "subject",
        "receivedAt",
        "preview",
        "textBody",
        "bodyValues",
    )

    @property
    def is_seen(self) -> bool:
        return Keyword.SEEN in self.keywords

    @property
    def is_flagged(self) -> bool:
        return Keyword.FLAGGED in self.keywords

    @property
    def is_draft(self) -> bool:
        return Keyword.DRAFT in self.keywords

    def body_value(self, part_id: str) -> Optional[str]:
        for key, value in self.body_values:
            if key == part_id:
                return value
        return None

    @classmethod
    def from_jmap(cls, data: Mapping[str, Any]) -> "Email":
        keywords = frozenset(k for k, v in (data.get("keywords") or {}).items() if v)
        mailbox_ids = frozenset(k for k, v in (data.get("mailboxIds") or {}).items() if v)
        text_body = tuple(
            part["partId"] for part in (data.get("textBody") or []) if part.get("partId")
        )
        body_values = tuple(
            (part_id, value.get("value", ""))
            for part_id, value in sorted((data.get("bodyValues") or {}).items())
        )
        return cls(
            id=data["id"],
            thread_id=data["threadId"],
            subject=data.get("subject") or "",
            keywords=keywords,
            from_=tuple(EmailAddress.from_jmap(a) for a in (data.get("from") or [])),
            to=tuple(EmailAddress.from_jmap(a) for a in (data.get("to") or [])),
            received_at=parse_utc_date(data.get("receivedAt")),
            preview=data.get("preview") or "",
            mailbox_ids=mailbox_ids,
            text_body=text_body,
            body_values=body_values,
        )


@dataclass(frozen=True)
class Thread:
    id: str
    email_ids: Tuple[str, ...]

    @classmethod
    def from_jmap(cls, data: Mapping[str, Any]) -> "Thread":
        return cls(id=data["id"], email_ids=tuple(data.get("emailIds") or ()))


@dataclass(frozen=True)
class Mailbox:
    """A JMAP mailbox; a mailbox without role is a label."""

    name: str
    id: Optional[str] = None
    role: Optional[Role] = None
    parent_id: Optional[str] = None

    @classmethod
    def from_jmap(cls, data: Mapping[str, Any]) -> "Mailbox":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            role=Role.from_value(data.get("role")),
            parent_id=data.get("parentId"),
        )

    def to_jmap(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "parentId": self.parent_id}
        if self.role is not None:
            data["role"] = self.role.value
        return data


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    name: str = ""

    @classmethod
    def from_jmap(cls, data: Mapping[str, Any]) -> "Identity":
        return cls(id=data["id"], email=data.get("email") or "", name=data.get("name") or "")


@dataclass(frozen=True)
class Row:
    """One thread as shown in the list.

    ``most_recent`` is the newest email of the thread and ``participants``
    collects the senders of every email in it.
    """

    thread_id: str
    message_count: int
    participants: FrozenSet[EmailAddress]
    most_recent: Email

    @property
    def continuation_token(self) -> str:
        """Anchor for requesting the rows that follow this one."""
        return self.most_recent.id


@dataclass(frozen=True)
class EmailQuery:
    """An inbox-style query: one mailbox, newest first, collapsed by thread."""

    in_mailbox: str
    collapse_threads: bool = True

    def filter(self) -> Dict[str, Any]:
        return {"inMailbox": self.in_mailbox}

    def sort(self) -> list:
        return [{"property": "receivedAt", "isAscending": False}]

    def to_query_string(self) -> str:
        """Stable cache key for this query."""
        return json.dumps(
            {
                "filter": self.filter(),
                "sort": self.sort(),
                "collapseThreads": self.collapse_threads,
            },
            sort_keys=True,
        )

"""Sync engine: runs JMAP queries and mutations and keeps the cache current.

Every method blocks on the network. Callers in the viewer run them on worker
threads and never while holding view state.
"""

from typing import Any, Dict, Iterable, List, Optional

from threadview.core.cache import InMemoryCache, QueryItem
from threadview.core.jmap.client import JmapClient, ref
from threadview.core.models import (
    Email,
    EmailQuery,
    Identity,
    Keyword,
    Mailbox,
    QueryStatus,
    Role,
    Thread,
)
from threadview.utils.errors import MailboxNotFoundError, ProtocolError
from threadview.utils.logging import get_logger, log_call

DEFAULT_PAGE_SIZE = 10
PREVIEW_BODY_BYTES = 256


def email_to_jmap(email: Email) -> Dict[str, Any]:
    """Creation arguments for a locally composed email."""
    data: Dict[str, Any] = {
        "from": [a.to_jmap() for a in email.from_],
        "to": [a.to_jmap() for a in email.to],
        "subject": email.subject,
        "keywords": {k: True for k in sorted(email.keywords)},
        "mailboxIds": {m: True for m in sorted(email.mailbox_ids)},
    }
    if email.text_body:
        data["bodyValues"] = {part: {"value": value} for part, value in email.body_values}
        data["textBody"] = [{"partId": part, "type": "text/plain"} for part in email.text_body]
    return data


class SyncEngine:
    """Mail user agent facade over a ``JmapClient`` and an ``InMemoryCache``."""

    def __init__(
        self,
        client: JmapClient,
        cache: InMemoryCache,
        account_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.cache = cache
        self.account_id = account_id
        self.page_size = page_size
        self.logger = get_logger(__name__, context={"account": account_id})

    @property
    def username(self) -> str:
        return self.client.username

    def _args(self, **kwargs) -> Dict[str, Any]:
        return {"accountId": self.account_id, **kwargs}

    ## Bootstrap

    @log_call
    def refresh_mailboxes(self) -> bool:
        result = self.client.call([("Mailbox/get", self._args(ids=None), "0")])
        mailboxes = [Mailbox.from_jmap(m) for m in result["0"].get("list", [])]
        self.logger.info(f"Loaded {len(mailboxes)} mailboxes")
        return self.cache.set_mailboxes(mailboxes)

    @log_call
    def refresh_identities(self) -> bool:
        result = self.client.call([("Identity/get", self._args(ids=None), "0")])
        identities = [Identity.from_jmap(i) for i in result["0"].get("list", [])]
        self.logger.info(f"Loaded {len(identities)} identities")
        return self.cache.set_identities(identities)

    ## Queries

    def query(self, query: EmailQuery, after: Optional[str] = None) -> QueryStatus:
        """Run a query, or extend it with the page following ``after``.

        A plain run re-fetches at least as many rows as are already cached,
        so polling never shrinks a list the user has paged through.
        """
        query_string = query.to_query_string()
        args = self._args(
            filter=query.filter(),
            sort=query.sort(),
            collapseThreads=query.collapse_threads,
        )
        if after is None:
            args["position"] = 0
            args["limit"] = max(self.page_size, len(self.cache.query_items(query_string)))
        else:
            args["anchor"] = after
            args["anchorOffset"] = 1
            args["limit"] = self.page_size

        result = self.client.call(
            [
                ("Email/query", args, "0"),
                (
                    "Email/get",
                    self._args(**{"#ids": ref("0", "Email/query", "/ids"), "properties": ["threadId"]}),
                    "1",
                ),
                (
                    "Thread/get",
                    self._args(**{"#ids": ref("1", "Email/get", "/list/*/threadId")}),
                    "2",
                ),
                (
                    "Email/get",
                    self._args(
                        **{
                            "#ids": ref("2", "Thread/get", "/list/*/emailIds"),
                            "properties": list(Email.PROPERTIES),
                            "fetchTextBodyValues": True,
                            "maxBodyValueBytes": PREVIEW_BODY_BYTES,
                        }
                    ),
                    "3",
                ),
            ]
        )

        ids: List[str] = result["0"].get("ids", [])
        threads = [Thread.from_jmap(t) for t in result["2"].get("list", [])]
        emails = [Email.from_jmap(e) for e in result["3"].get("list", [])]
        thread_of = {e.id: e.thread_id for e in emails}
        items = [QueryItem(i, thread_of[i]) for i in ids if i in thread_of]

        status = self.cache.update_query(
            query_string,
            items,
            emails,
            threads,
            append=after is not None,
            window=None if after is not None else args["limit"],
        )
        self.logger.debug(
            f"Query {'page after ' + after if after else 'refresh'}: "
            f"{len(items)} rows, {status.value}"
        )
        return status

    ## Mutations

    def _require(self, role: Role) -> Mailbox:
        mailbox = self.cache.mailbox_by_role(role)
        if mailbox is None:
            raise MailboxNotFoundError(f"No mailbox with role {role.value}", details={"role": role.value})
        return mailbox

    def _update_emails(self, patches: Dict[str, Dict[str, Any]]) -> bool:
        if not patches:
            return False
        result = self.client.call([("Email/set", self._args(update=patches), "0")])
        not_updated = result["0"].get("notUpdated") or {}
        if not_updated:
            raise ProtocolError("Email/set rejected updates", details={"notUpdated": not_updated})
        return True

    def set_keyword(self, emails: Iterable[Email], keyword: str) -> bool:
        return self._update_emails(
            {e.id: {f"keywords/{keyword}": True} for e in emails if keyword not in e.keywords}
        )

    def remove_keyword(self, emails: Iterable[Email], keyword: str) -> bool:
        return self._update_emails(
            {e.id: {f"keywords/{keyword}": None} for e in emails if keyword in e.keywords}
        )

    def move_to_trash(self, emails: Iterable[Email]) -> bool:
        trash = self._require(Role.TRASH)
        return self._update_emails(
            {
                e.id: {"mailboxIds": {trash.id: True}}
                for e in emails
                if e.mailbox_ids != frozenset({trash.id})
            }
        )

    def archive(self, emails: Iterable[Email]) -> bool:
        archive = self._require(Role.ARCHIVE)
        inbox = self._require(Role.INBOX)
        return self._update_emails(
            {
                e.id: {f"mailboxIds/{inbox.id}": None, f"mailboxIds/{archive.id}": True}
                for e in emails
                if inbox.id in e.mailbox_ids
            }
        )

    def copy_to_mailbox(self, emails: Iterable[Email], mailbox: Mailbox) -> bool:
        return self._update_emails(
            {
                e.id: {f"mailboxIds/{mailbox.id}": True}
                for e in emails
                if mailbox.id not in e.mailbox_ids
            }
        )

    def copy_to_important(self, emails: Iterable[Email]) -> bool:
        important = self.cache.mailbox_by_role(Role.IMPORTANT)
        if important is None:
            important = self.create_mailbox(Mailbox(name="Important", role=Role.IMPORTANT))
        return self.copy_to_mailbox(emails, important)

    @log_call
    def create_mailbox(self, mailbox: Mailbox) -> Mailbox:
        result = self.client.call(
            [("Mailbox/set", self._args(create={"new": mailbox.to_jmap()}), "0")]
        )
        created = (result["0"].get("created") or {}).get("new")
        if not created:
            raise ProtocolError(
                f"Could not create mailbox {mailbox.name}",
                details={"notCreated": result["0"].get("notCreated")},
            )
        stored = Mailbox(
            name=mailbox.name,
            id=created["id"],
            role=mailbox.role,
            parent_id=mailbox.parent_id,
        )
        self.cache.add_mailbox(stored)
        self.logger.info(f"Created mailbox {stored.name} ({stored.id})")
        return stored

    @log_call
    def empty_trash(self) -> int:
        trash = self._require(Role.TRASH)
        result = self.client.call(
            [
                ("Email/query", self._args(filter={"inMailbox": trash.id}), "0"),
                (
                    "Email/set",
                    self._args(**{"#destroy": ref("0", "Email/query", "/ids")}),
                    "1",
                ),
            ]
        )
        destroyed = result["1"].get("destroyed") or []
        self.cache.remove_emails(destroyed)
        self.logger.info(f"Emptied trash: {len(destroyed)} emails destroyed")
        return len(destroyed)

    def _draft_arguments(self, email: Email) -> Dict[str, Any]:
        data = email_to_jmap(email)
        data["keywords"].update({Keyword.DRAFT: True, Keyword.SEEN: True})
        drafts = self.cache.mailbox_by_role(Role.DRAFTS)
        if drafts is not None:
            data["mailboxIds"][drafts.id] = True
        return data

    def _on_success_update(self) -> Dict[str, Any]:
        patch: Dict[str, Any] = {f"keywords/{Keyword.DRAFT}": None}
        drafts = self.cache.mailbox_by_role(Role.DRAFTS)
        sent = self.cache.mailbox_by_role(Role.SENT)
        if drafts is not None:
            patch[f"mailboxIds/{drafts.id}"] = None
        if sent is not None:
            patch[f"mailboxIds/{sent.id}"] = True
        return patch

    @log_call
    def draft(self, email: Email) -> str:
        result = self.client.call(
            [("Email/set", self._args(create={"draft": self._draft_arguments(email)}), "0")]
        )
        created = (result["0"].get("created") or {}).get("draft")
        if not created:
            raise ProtocolError(
                "Could not store draft",
                details={"notCreated": result["0"].get("notCreated")},
            )
        return created["id"]

    @log_call
    def send(self, email: Email, identity: Identity) -> str:
        """Store ``email`` as a draft and submit it in the same request."""
        result = self.client.call(
            [
                ("Email/set", self._args(create={"draft": self._draft_arguments(email)}), "0"),
                (
                    "EmailSubmission/set",
                    self._args(
                        create={"send": {"identityId": identity.id, "emailId": "#draft"}},
                        onSuccessUpdateEmail={"#send": self._on_success_update()},
                    ),
                    "1",
                ),
            ]
        )
        return self._submission_id(result["1"])

    @log_call
    def submit(self, email: Email, identity: Identity) -> str:
        """Submit an already stored draft."""
        result = self.client.call(
            [
                (
                    "EmailSubmission/set",
                    self._args(
                        create={"send": {"identityId": identity.id, "emailId": email.id}},
                        onSuccessUpdateEmail={"#send": self._on_success_update()},
                    ),
                    "0",
                )
            ]
        )
        return self._submission_id(result["0"])

    @staticmethod
    def _submission_id(response: Dict[str, Any]) -> str:
        created = (response.get("created") or {}).get("send")
        if not created:
            raise ProtocolError(
                "Email submission failed",
                details={"notCreated": response.get("notCreated")},
            )
        return created["id"]

    def shutdown(self) -> None:
        self.client.close()

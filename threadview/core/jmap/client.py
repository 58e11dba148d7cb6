"""Minimal JMAP (RFC 8620/8621) client over HTTP."""

import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from threadview.utils.errors import (
    MethodError,
    NetworkError,
    NetworkTimeoutError,
    ProtocolError,
    UnauthorizedError,
)
from threadview.utils.logging import get_logger, log_call

logger = get_logger(__name__)

CAPABILITY_CORE = "urn:ietf:params:jmap:core"
CAPABILITY_MAIL = "urn:ietf:params:jmap:mail"
CAPABILITY_SUBMISSION = "urn:ietf:params:jmap:submission"

USING = [CAPABILITY_CORE, CAPABILITY_MAIL, CAPABILITY_SUBMISSION]

# (method name, arguments, call id)
MethodCall = Tuple[str, Dict[str, Any], str]


def well_known_url(username: str) -> str:
    """Session resource for a login, derived from the domain part."""
    if "@" not in username:
        raise ProtocolError(
            f"Cannot derive a session URL from '{username}', pass one explicitly",
            details={"username": username},
        )
    domain = username.rsplit("@", 1)[1]
    return f"https://{domain}/.well-known/jmap"


def ref(call_id: str, name: str, path: str) -> Dict[str, str]:
    """A result reference to the output of an earlier call in the same request."""
    return {"resultOf": call_id, "name": name, "path": path}


class JmapClient:
    """Authenticated JMAP session.

    The session object is fetched lazily and cached; ``call`` sends one
    batched request and returns the method responses by call id.
    """

    def __init__(
        self,
        username: str,
        password: str,
        session_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.username = username
        self.session_url = session_url or well_known_url(username)
        self._http = httpx.Client(
            auth=(username, password),
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )
        self._session: Optional[Dict[str, Any]] = None
        self._session_lock = threading.Lock()

    def __enter__(self) -> "JmapClient":
        return self

    def __exit__(self, exc_type, exc_value, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(f"Request to {url} timed out") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        if response.status_code == 401:
            raise UnauthorizedError(details={"url": url})
        if response.is_server_error:
            raise NetworkError(
                f"HTTP {response.status_code} from {url}",
                details={"status": response.status_code, "url": url},
            )
        if response.is_error:
            raise ProtocolError(
                f"HTTP {response.status_code} from {url}",
                details={"status": response.status_code, "url": url},
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError(f"Invalid JSON from {response.url}") from e
        if not isinstance(data, dict):
            raise ProtocolError(f"Unexpected payload from {response.url}")
        return data

    @log_call
    def get_session(self) -> Dict[str, Any]:
        with self._session_lock:
            if self._session is None:
                response = self._request("GET", self.session_url)
                session = self._json(response)
                if "apiUrl" not in session:
                    raise ProtocolError("Session resource has no apiUrl")
                self._session = session
                logger.info(f"JMAP session established for {self.username}")
            return self._session

    def primary_account(self, capability: str = CAPABILITY_MAIL) -> str:
        session = self.get_session()
        account_id = (session.get("primaryAccounts") or {}).get(capability)
        if not account_id:
            raise ProtocolError(
                f"No primary account for {capability}",
                details={"capability": capability},
            )
        return account_id

    def call(self, method_calls: Sequence[MethodCall]) -> Dict[str, Dict[str, Any]]:
        """Send one request; return the arguments of each response by call id.

        Any ``error`` response raises ``MethodError``.
        """
        session = self.get_session()
        payload = {
            "using": USING,
            "methodCalls": [[name, args, call_id] for name, args, call_id in method_calls],
        }
        response = self._request("POST", session["apiUrl"], json=payload)
        data = self._json(response)

        results: Dict[str, Dict[str, Any]] = {}
        responses: List[Any] = data.get("methodResponses") or []
        for entry in responses:
            try:
                name, args, call_id = entry
            except (TypeError, ValueError) as e:
                raise ProtocolError(f"Malformed method response: {entry!r}") from e
            if name == "error":
                raise MethodError(
                    args.get("type", "serverFail"),
                    args.get("description"),
                    method=call_id,
                )
            # the first response of a call id wins; implicit calls come later
            results.setdefault(call_id, args)
        return results

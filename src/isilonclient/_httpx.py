from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import IntEnum
from http import HTTPStatus
from typing import TYPE_CHECKING, Iterable, NamedTuple, Optional, Protocol, Tuple

import httpx

from isilonclient.exceptions import (
    AuthenticateError,
    AuthenticationFailed,
    SessionTokenMissing,
)

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Generator
    import ssl

logger = logging.getLogger(__name__)

SESSION_PATH = "session/1/session/"
SESSION_COOKIE_NAME = "isisessid"
CSRF_COOKIE_NAME = "isicsrf"

HEADER_COOKIE = "Cookie"
HEADER_REFERER = "Referer"
HEADER_CSRF_TOKEN = "X-CSRF-Token"

DEFAULT_VOLUMES_PATH = "/ifs/volumes"
DEFAULT_VOLUMES_PATH_PERMISSIONS = "0777"


class AuthType(IntEnum):
    """How a client proves its identity to the cluster."""

    BASIC = 0
    SESSION_BASED = 1

    @classmethod
    def normalize(cls, value) -> "AuthType":
        """Map a configured auth type to a member, falling back to BASIC."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            logger.warning(
                f"Invalid auth type {value!r}, falling back to basic authentication"
            )
            return cls.BASIC


@dataclass(frozen=True)
class IsilonConnectionParameters:
    """Parameters required to connect to a OneFS cluster.

    Attributes:
        endpoint (str): The base URL of the OneFS API, e.g. ``https://1.2.3.4:8080``.
        username (str): The username for authentication.
        password (str): The password for authentication.
        group (str): The group name used for ownership of created resources.
        auth_type (AuthType): Basic or session-based authentication.
        ssl_verify (bool | ssl.SSLContext): Whether to verify TLS certificates,
            or a configured SSL context.
        timeout (httpx.Timeout): Timeout applied to each request.
        volumes_path (str): Resource root for volumes on the cluster.
        volumes_path_permissions (str): Permission string for new volumes.
        ignore_unresolvable_hosts (bool): Sent as a query flag on export create and
            update, so the cluster accepts client host names it cannot resolve.
        verbose (int): Diagnostic dump level (0 high, 1 medium, 2 low).
    """

    endpoint: str
    username: str
    password: str
    group: str
    auth_type: AuthType
    ssl_verify: bool | ssl.SSLContext
    timeout: httpx.Timeout
    volumes_path: str = DEFAULT_VOLUMES_PATH
    volumes_path_permissions: str = DEFAULT_VOLUMES_PATH_PERMISSIONS
    ignore_unresolvable_hosts: bool = False
    verbose: int = 0


class Session(NamedTuple):
    """Session state returned by a successful login.

    ``cookie`` is the full ``isisessid=<token>`` pair sent back in the Cookie header.
    """

    cookie: str = ""
    csrf_token: str = ""
    referer: str = ""


class SessionStore:
    """Holds the current session for one client.

    Reads return a complete snapshot and writes replace the session as a whole,
    so a request racing a re-authentication sees either the old session or the
    new one, never a mix of both.
    """

    def __init__(self, session: Optional[Session] = None):
        self._session = session or Session()
        self._lock = threading.Lock()

    def snapshot(self) -> Session:
        with self._lock:
            return self._session

    def replace(self, session: Session) -> None:
        with self._lock:
            self._session = session

    def clear(self) -> None:
        self.replace(Session())

    @property
    def auth_token(self) -> str:
        return self.snapshot().cookie

    @auth_token.setter
    def auth_token(self, value: str) -> None:
        with self._lock:
            self._session = self._session._replace(cookie=value)

    @property
    def csrf_token(self) -> str:
        return self.snapshot().csrf_token

    @csrf_token.setter
    def csrf_token(self, value: str) -> None:
        with self._lock:
            self._session = self._session._replace(csrf_token=value)

    @property
    def referer(self) -> str:
        return self.snapshot().referer

    @referer.setter
    def referer(self, value: str) -> None:
        with self._lock:
            self._session = self._session._replace(referer=value)


def parse_session_cookies(
    set_cookie_values: Iterable[str],
) -> Tuple[Optional[str], Optional[str]]:
    """Find the session id and anti-CSRF token in ``Set-Cookie`` header values.

    Only the leading ``name=value`` pair of each value is read. Attributes after
    the first ``;`` (Path, Secure, Partitioned and any the cluster adds later) are
    ignored, so an unfamiliar attribute never hides the cookie itself.

    Args:
        set_cookie_values: Every ``Set-Cookie`` value of the login response.

    Returns:
        tuple: ``(session_id, csrf_token)``; either is None when not present.
    """
    session_id: Optional[str] = None
    csrf_token: Optional[str] = None
    for header_value in set_cookie_values:
        cookie_pair = header_value.split(";", 1)[0]
        name, sep, value = cookie_pair.partition("=")
        name = name.strip()
        if not sep or not name:
            logger.debug("Skipping Set-Cookie value without a cookie pair")
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        if session_id is None and name == SESSION_COOKIE_NAME:
            session_id = value
        elif csrf_token is None and name == CSRF_COOKIE_NAME:
            csrf_token = value
    return session_id, csrf_token


class Authenticator(Protocol):
    """Performs the login exchange and returns a fresh session."""

    def authenticate(self, client: httpx.Client) -> Session:  # pragma: no cover
        ...


class SessionAuthenticator:
    """Logs in against the OneFS session endpoint.

    Posts the credentials to ``session/1/session/`` and reads the session id and
    anti-CSRF token from the response cookies.
    """

    def __init__(self, params: IsilonConnectionParameters):
        self._params = params

    def authenticate(self, client: httpx.Client) -> Session:
        """Authenticate with the cluster using an existing HTTP client.

        Args:
            client (httpx.Client): Client configured with the cluster's base URL.
                The login request is sent without client-level auth.

        Returns:
            Session: The new session state.

        Raises:
            AuthenticationFailed: On HTTP 401.
            AuthenticateError: On any status other than 201 or 401.
            SessionTokenMissing: When the 201 response carries no session id.
        """
        auth_data = {
            "services": ["platform", "namespace"],
            "username": self._params.username,
            "password": self._params.password,
        }
        response = client.post(
            SESSION_PATH,
            json=auth_data,
            headers={"Content-Type": "application/json"},
            auth=None,
        )
        try:
            logger.debug(f"Authentication response code: {response.status_code}")
            if response.status_code == HTTPStatus.UNAUTHORIZED:
                raise AuthenticationFailed()
            if response.status_code != HTTPStatus.CREATED:
                raise AuthenticateError(response.status_code, response.text[:500])

            session_id, csrf_token = parse_session_cookies(
                response.headers.get_list("set-cookie")
            )
            if not session_id:
                raise SessionTokenMissing()
            if not csrf_token:
                logger.warning("Anti-CSRF Token not retrieved")
            logger.debug("Authentication successful")
            return Session(
                cookie=f"{SESSION_COOKIE_NAME}={session_id}",
                csrf_token=csrf_token or "",
                referer=self._params.endpoint,
            )
        finally:
            response.close()


class IsilonSessionAuth(httpx.Auth):
    """Attaches the current session to outgoing requests.

    When the store holds no session the request goes out unauthenticated and
    the 401 it earns drives re-authentication in the client.
    """

    def __init__(self, store: SessionStore):
        self._store = store

    def auth_flow(self, request: httpx.Request) -> "Generator[httpx.Request, httpx.Response, None]":
        session = self._store.snapshot()
        if session.cookie:
            request.headers[HEADER_COOKIE] = session.cookie
            request.headers[HEADER_REFERER] = session.referer
            request.headers[HEADER_CSRF_TOKEN] = session.csrf_token
        yield request

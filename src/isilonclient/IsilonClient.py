from __future__ import annotations

import dataclasses
import json
import logging
import os
import posixpath
import ssl
from typing import Any, Dict, Mapping, Optional, Tuple, Union, cast

import httpx

from isilonclient._httpx import (
    DEFAULT_VOLUMES_PATH,
    DEFAULT_VOLUMES_PATH_PERMISSIONS,
    Authenticator,
    AuthType,
    IsilonConnectionParameters,
    IsilonSessionAuth,
    SessionAuthenticator,
    SessionStore,
)
from isilonclient.decorators import retry_with_reauthentication, use_client_session
from isilonclient.diagnostics import DiagnosticHooks, VerboseLevel
from isilonclient.exceptions import (
    IsilonAPIError,
    IsilonConfigurationError,
    IsilonUnsupportedVersionError,
    IsilonURLError,
    IsilonVersionError,
    decode_api_error,
    isilon_errors,
)
from isilonclient.ordered_values import OrderedValues

# Constants
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_BINARY = "binary/octet-stream"

USER_AGENT_STRING = "isilonclient (https://github.com/isilonclient/isilonclient)"

VERSION_PATH = "platform/latest"
NAMESPACE_PATH = "namespace"
SNAPSHOTS_PATH = "platform/1/snapshot/snapshots"
SNAPSHOT_DIR = ".snapshot"
QUOTAS_PATH = "platform/1/quota/quotas"
EXPORTS_PATH = "platform/2/protocols/nfs/exports"
DEFAULT_API_VERSION = 2
MIN_API_VERSION = 3

Params = Union[OrderedValues, Mapping[str, Any], None]

# Set up logger
logger = logging.getLogger(__name__)


# Sentinel value for detecting unset timeout parameter
class _TimeoutUnsetType:
    def __repr__(self):
        return "_TIMEOUT_UNSET"


_TIMEOUT_UNSET = _TimeoutUnsetType()


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}")
        return None


def _env_bool(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "t", "yes", "y")


def _get_timeout_config() -> dict:
    """Get granular timeout configuration from environment variables.

    Returns:
        dict: connect, read, write, and pool timeouts; None where unset.
    """
    return {
        "connect": _env_float("ISILONCLIENT_CONNECT_TIMEOUT"),
        "read": _env_float("ISILONCLIENT_READ_TIMEOUT"),
        "write": _env_float("ISILONCLIENT_WRITE_TIMEOUT"),
        "pool": _env_float("ISILONCLIENT_POOL_TIMEOUT"),
    }


def parse_api_version(latest: Optional[str]) -> Tuple[int, int]:
    """Parse the ``latest`` value reported by ``platform/latest``.

    Args:
        latest (str | None): A ``"<major>.<minor>"`` or ``"<major>"`` string.

    Returns:
        tuple: ``(major, minor)``; ``(2, 0)`` when no version was reported.

    Raises:
        IsilonVersionError: If either component is not an unsigned integer.
    """
    if latest is None:
        return DEFAULT_API_VERSION, 0
    major, _, minor = str(latest).partition(".")
    if not major.isdigit() or (minor and not minor.isdigit()):
        raise IsilonVersionError(f"Unable to parse API version {latest!r}")
    return int(major), int(minor) if minor else 0


def _is_raw_body(body: Any) -> bool:
    """Raw bodies are sent as is; everything else is serialized as JSON."""
    if isinstance(body, (bytes, bytearray, memoryview)):
        return True
    if hasattr(body, "read"):
        return True
    return hasattr(body, "__next__")


def _replayable_body(body: Any) -> Any:
    """Read stream bodies into bytes so a replayed request sends the same payload."""
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if hasattr(body, "read"):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if hasattr(body, "__next__"):
        return b"".join(
            chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk) for chunk in body
        )
    return body


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _join_path(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts if part and part.strip("/"))


class IsilonClient:
    """A Python client for the Dell PowerScale (Isilon) OneFS API

    Turns a logical operation (verb, path, resource id, query parameters, body)
    into one HTTP request, re-authenticates once when a session expires, and turns
    the response into decoded JSON or a structured error.

    Initialization:
        IsilonClient can be used as a context manager

        >>> from isilonclient import IsilonClient
        >>> with IsilonClient(
        ...     "https://1.2.3.4:8080",
        ...     "admin",
        ...     "password",
        ...     auth_type=1,
        ... ) as isilon_client:
        ...     zones = isilon_client.get("platform/1/zones")
        ...     print(zones["zones"][0]["name"])
        ...
        System

    Parameters:
        endpoint (str): The base URL for the OneFS API.
        username (str): The username for authentication.
        password (str): The password for authentication.
        group (str): Group name for ownership of created resources. Default is "".
        auth_type (int), keyword-only: 0 for basic auth, 1 for session-based auth.
            Any other value falls back to basic auth with a warning.
        verbose (int), keyword-only: Diagnostic dump level, 0 high, 1 medium, 2 low.
        insecure (bool), keyword-only: Skip TLS certificate verification.
        ssl_verify (bool | ssl.SSLContext), keyword-only: Verification flag or a custom
            SSL context. Ignored when insecure is set.
        tls_min_version, tls_max_version (ssl.TLSVersion), keyword-only: Protocol bounds.
        ciphers (str), keyword-only: OpenSSL cipher suite string.
        timeout (float | dict | httpx.Timeout | None), keyword-only: Request timeout.
            httpx applies it per phase (connect, read, write, pool acquisition), so a
            float of 10 bounds each phase at 10 seconds and a slow response that keeps
            sending data can take longer overall. It is not a total deadline for the
            round trip. A dict sets individual phases; None disables timeouts.
            Unset reads the ISILONCLIENT_*_TIMEOUT environment variables.
        volumes_path (str), keyword-only: Resource root for volumes.
        volumes_path_permissions (str), keyword-only: Permissions for new volumes.
        ignore_unresolvable_hosts (bool), keyword-only: Tolerate unresolvable hosts in
            export client lists.
        authenticator (Authenticator), keyword-only: Replaces the session login exchange.
        transport (httpx.BaseTransport), keyword-only: Replaces the HTTP transport.
    """  # noqa: E501

    def __init__(
        self,
        endpoint: str,
        username: str,
        password: str,
        group: str = "",
        *,
        auth_type: Union[int, AuthType] = AuthType.BASIC,
        verbose: Union[int, VerboseLevel] = VerboseLevel.HIGH,
        insecure: bool = False,
        ssl_verify: Union[bool, ssl.SSLContext, None] = None,
        tls_min_version: Optional[ssl.TLSVersion] = None,
        tls_max_version: Optional[ssl.TLSVersion] = None,
        ciphers: Optional[str] = None,
        timeout: float | dict | httpx.Timeout | None | _TimeoutUnsetType = _TIMEOUT_UNSET,
        volumes_path: Optional[str] = None,
        volumes_path_permissions: Optional[str] = None,
        ignore_unresolvable_hosts: bool = False,
        authenticator: Optional[Authenticator] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not endpoint or not username or not password:
            raise IsilonConfigurationError("missing endpoint, username, or password")

        # Determine timeout value to use
        if timeout is _TIMEOUT_UNSET:
            timeout_value: httpx.Timeout = IsilonClient._construct_timeout_from_env()
        elif timeout is None:
            timeout_value = httpx.Timeout(None)
        else:
            timeout_value = IsilonClient._construct_timeout(
                cast(Union[float, dict, httpx.Timeout], timeout)
            )

        self.isilon_parameters: IsilonConnectionParameters = IsilonConnectionParameters(
            endpoint=endpoint,
            username=username,
            password=password,
            group=group,
            auth_type=AuthType.normalize(auth_type),
            ssl_verify=IsilonClient._construct_ssl_verify(
                insecure, ssl_verify, tls_min_version, tls_max_version, ciphers
            ),
            timeout=timeout_value,
            volumes_path=volumes_path or DEFAULT_VOLUMES_PATH,
            volumes_path_permissions=volumes_path_permissions or DEFAULT_VOLUMES_PATH_PERMISSIONS,
            ignore_unresolvable_hosts=ignore_unresolvable_hosts,
            verbose=VerboseLevel.from_value(verbose),
        )
        self.session_store = SessionStore()
        self.authenticator: Authenticator = authenticator or SessionAuthenticator(
            self.isilon_parameters
        )
        self.base_headers = {"User-Agent": USER_AGENT_STRING}
        self._transport = transport
        self.api_version = 0
        self.api_minor_version = 0
        self.is_closed = False
        self.httpx_client: httpx.Client = self.get_isilon_http_client()

        try:
            if self.is_session_based:
                self.login()
            self._discover_api_version()
        except Exception:
            self.close()
            raise

    @classmethod
    def from_env(cls, **kwargs) -> "IsilonClient":
        """Create a client from ``ISILONCLIENT_*`` environment variables.

        Keyword arguments override the values read from the environment.
        """
        settings: Dict[str, Any] = {
            "group": os.environ.get("ISILONCLIENT_GROUP", ""),
            "auth_type": os.environ.get("ISILONCLIENT_AUTH_TYPE", AuthType.SESSION_BASED),
            "verbose": os.environ.get("ISILONCLIENT_VERBOSE", VerboseLevel.MEDIUM),
            "insecure": _env_bool("ISILONCLIENT_INSECURE"),
            "volumes_path": os.environ.get("ISILONCLIENT_VOLUMES_PATH"),
            "volumes_path_permissions": os.environ.get("ISILONCLIENT_VOLUMES_PATH_PERMISSIONS"),
            "ignore_unresolvable_hosts": _env_bool("ISILONCLIENT_IGNORE_UNRESOLVABLE_HOSTS"),
        }
        settings.update(kwargs)
        return cls(
            os.environ.get("ISILONCLIENT_ENDPOINT", ""),
            os.environ.get("ISILONCLIENT_USERNAME", ""),
            os.environ.get("ISILONCLIENT_PASSWORD", ""),
            **settings,
        )

    def __repr__(self) -> str:
        return (
            f"IsilonClient for {self.endpoint} as {self.user}"
            f" ({self.auth_type.name.lower()} auth, API v{self.api_version}.{self.api_minor_version})"
        )

    def __enter__(self):
        """Context manager entry for IsilonClient.

        Returns:
            IsilonClient: The IsilonClient instance.
        """
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        """Context manager exit method; closes the HTTP client."""
        self.close()

    def close(self) -> None:
        """Close the HTTP client. Further requests raise IsilonClientClosed."""
        if hasattr(self, "httpx_client") and not self.httpx_client.is_closed:
            self.httpx_client.close()
        self.session_store.clear()
        self.is_closed = True

    @staticmethod
    def _construct_timeout_from_env() -> httpx.Timeout:
        """Construct httpx.Timeout object from environment variables only.

        Returns:
            httpx.Timeout: Configured timeout object from environment variables.
                If no environment configuration is found, returns httpx.Timeout(None).
        """
        default_timeout = _env_float("ISILONCLIENT_HTTP_TIMEOUT")
        granular = {k: v for k, v in _get_timeout_config().items() if v is not None}
        if not granular and default_timeout is None:
            return httpx.Timeout(None)
        return httpx.Timeout(default_timeout, **granular)

    @staticmethod
    def _construct_timeout(timeout: float | dict | httpx.Timeout) -> httpx.Timeout:
        """Construct httpx.Timeout object from user-provided timeout parameter.

        If timeout is a dict, any unspecified values will be replaced by the environment
        default values.

        Args:
            timeout: Timeout configuration - can be float, dict, or httpx.Timeout.

        Returns:
            httpx.Timeout: Configured timeout object.
        """
        if isinstance(timeout, httpx.Timeout):
            return timeout
        elif isinstance(timeout, dict):
            granular = {k: v for k, v in _get_timeout_config().items() if v is not None}
            merged_timeout = {**granular, **timeout}
            return httpx.Timeout(_env_float("ISILONCLIENT_HTTP_TIMEOUT"), **merged_timeout)
        else:
            return httpx.Timeout(timeout)

    @staticmethod
    def _construct_ssl_verify(
        insecure: bool,
        ssl_verify: Union[bool, ssl.SSLContext, None],
        tls_min_version: Optional[ssl.TLSVersion],
        tls_max_version: Optional[ssl.TLSVersion],
        ciphers: Optional[str],
    ) -> bool | ssl.SSLContext:
        """Build the TLS policy handed to httpx.

        Raises:
            IsilonConfigurationError: If the system trust store cannot be loaded or the
                protocol bounds or cipher string are rejected.
        """
        if insecure or ssl_verify is False:
            return False
        try:
            if isinstance(ssl_verify, ssl.SSLContext):
                context = ssl_verify
            else:
                context = ssl.create_default_context()
            if tls_min_version is not None:
                context.minimum_version = tls_min_version
            if tls_max_version is not None:
                context.maximum_version = tls_max_version
            if ciphers:
                context.set_ciphers(ciphers)
        except (ssl.SSLError, OSError, ValueError) as e:
            raise IsilonConfigurationError(f"Unable to configure TLS: {e}") from e
        return context

    @property
    def endpoint(self) -> str:
        return self.isilon_parameters.endpoint

    @property
    def user(self) -> str:
        """The username used to access the OneFS API."""
        return self.isilon_parameters.username

    @property
    def password(self) -> str:
        return self.isilon_parameters.password

    @property
    def group(self) -> str:
        """The group name used to access the OneFS API."""
        return self.isilon_parameters.group

    @property
    def auth_type(self) -> AuthType:
        return self.isilon_parameters.auth_type

    @property
    def is_session_based(self) -> bool:
        return self.isilon_parameters.auth_type == AuthType.SESSION_BASED

    @property
    def volumes_path(self) -> str:
        """The client's configured volumes path."""
        return self.isilon_parameters.volumes_path

    @property
    def volumes_path_permissions(self) -> str:
        return self.isilon_parameters.volumes_path_permissions

    @property
    def ignore_unresolvable_hosts(self) -> bool:
        return self.isilon_parameters.ignore_unresolvable_hosts

    def volume_path(self, name: str) -> str:
        """Returns the path to a volume with the provided name."""
        return posixpath.normpath(posixpath.join(self.volumes_path, name))

    @property
    def auth_token(self) -> str:
        """The session cookie (``isisessid=<token>``) sent with each request."""
        return self.session_store.auth_token

    @auth_token.setter
    def auth_token(self, value: str) -> None:
        self.session_store.auth_token = value

    @property
    def csrf_token(self) -> str:
        return self.session_store.csrf_token

    @csrf_token.setter
    def csrf_token(self, value: str) -> None:
        self.session_store.csrf_token = value

    @property
    def referer(self) -> str:
        return self.session_store.referer

    @referer.setter
    def referer(self, value: str) -> None:
        self.session_store.referer = value

    @use_client_session
    @isilon_errors
    def login(self) -> None:
        """Logs into OneFS to get a new session.

        This method should not be necessary to call directly: session-based clients
        log in at construction and again whenever a request is rejected with 401.
        It does nothing for basic-auth clients.

        Raises:
            AuthenticationFailed: For rejected credentials.
            SessionTokenMissing: When the login response carries no session id.
            AuthenticateError: For any other unexpected login status.
            IsilonClientClosed: If the client has been closed.
        """
        if not self.is_session_based:
            logger.debug("Basic authentication in use, skipping session login")
            return
        self.session_store.replace(self.authenticator.authenticate(self.httpx_client))

    def _discover_api_version(self) -> None:
        """Read the API version from the cluster and reject unsupported releases."""
        # Error responses raise from the dispatcher, undecodable ones included
        content = self._dispatch("GET", VERSION_PATH, raw=True)
        try:
            resp = json.loads(content) if content else None
        except json.JSONDecodeError:
            logger.debug("Unable to decode platform/latest response, assuming API v2")
            resp = None
        latest = resp.get("latest") if isinstance(resp, dict) else None
        self.api_version, self.api_minor_version = parse_api_version(latest)
        if self.api_version < MIN_API_VERSION:
            raise IsilonUnsupportedVersionError(api_version=self.api_version)
        logger.debug(f"OneFS API version {self.api_version}.{self.api_minor_version}")

    def build_url(self, path: str = "", resource_id: str = "", params: Params = None) -> str:
        """Build complete URL from endpoint, path, resource id and query parameters.

        Args:
            path (str): The API path, with or without leading/trailing slashes.
            resource_id (str): Appended verbatim as the final path segment.
            params (OrderedValues | Mapping): Query parameters, encoded in order.

        Returns:
            str: The complete URL, with exactly one slash between endpoint, path and id.

        Raises:
            IsilonURLError: If the result is not a valid URL.
        """
        endpoint = self.endpoint
        url = endpoint
        if not endpoint.endswith("/") and (path or resource_id):
            url += "/"
        if path:
            url += path[1:] if path.startswith("/") else path
            if not path.endswith("/"):
                url += "/"
        if resource_id:
            url += resource_id
        if params:
            url += "?" + OrderedValues(params).encode()
        try:
            httpx.URL(url)
        except (httpx.InvalidURL, ValueError) as e:
            raise IsilonURLError(f"Invalid request URL {url!r}: {e}") from e
        return url

    @retry_with_reauthentication
    @isilon_errors
    def _dispatch(
        self,
        method: str,
        path: str,
        resource_id: str = "",
        params: Params = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        decode: bool = True,
        raw: bool = False,
    ) -> Any:
        """Send one request and decode the response.

        The response is streamed and closed on every exit path, whether or not
        its body was read.

        Returns:
            Any: The decoded JSON body, or None for an empty body or when decode is False.
                With raw set, the undecoded body bytes of a 2xx response.

        Raises:
            JSONError, HTMLError: For non-2xx responses.
            json.JSONDecodeError: For undecodable bodies.
        """
        url = self.build_url(path, resource_id, params)
        request_headers = httpx.Headers(headers or {})
        content: Any = None
        if body is not None:
            if _is_raw_body(body):
                content = body
                default_content_type = CONTENT_TYPE_BINARY
            else:
                content = json.dumps(body, default=_json_default).encode("utf-8")
                default_content_type = CONTENT_TYPE_JSON
            if "content-type" not in request_headers:
                request_headers["Content-Type"] = default_content_type

        request = self.httpx_client.build_request(
            method, url, headers=request_headers, content=content
        )
        response = self.httpx_client.send(request, stream=True)
        try:
            if not response.is_success:
                response.read()
                raise decode_api_error(response)
            if not decode:
                return None
            content = response.read()
            if raw:
                return content
            if not content:
                return None
            return json.loads(content)
        finally:
            response.close()

    @use_client_session
    def do_with_headers(
        self,
        method: str,
        path: str,
        resource_id: str = "",
        params: Params = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Sends an HTTP request to the OneFS API.

        Args:
            method (str): HTTP method.
            path (str): API path, e.g. ``platform/1/quota/quotas``.
            resource_id (str, optional): Resource id appended to the path.
            params (OrderedValues | Mapping, optional): Query parameters.
            headers (Mapping, optional): Extra request headers. A Content-Type here
                overrides the one derived from the body.
            body (Any, optional): bytes, file-like objects and iterators of bytes are
                sent as is, with ``binary/octet-stream``; anything else is serialized
                as JSON. Session-based clients read file-like and iterator bodies into
                memory first, so the replay after a re-authentication sends the same
                payload.
            decode (bool, keyword-only): Set to False to ignore the response body.

        Returns:
            Any: The decoded JSON response, or None.

        Raises:
            JSONError: For non-2xx responses with a JSON error body.
            HTMLError: For non-2xx responses with an HTML error page.
            ReauthenticationFailed: When a session-based client cannot log in again
                after a 401.
            IsilonConnectionError: For transport failures, including timeouts.
        """
        if self.is_session_based and body is not None and _is_raw_body(body):
            body = _replayable_body(body)
        return self._dispatch(method, path, resource_id, params, headers, body, decode)

    def do(
        self,
        method: str,
        path: str,
        resource_id: str = "",
        params: Params = None,
        body: Any = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Sends an HTTP request to the OneFS API without extra headers."""
        return self.do_with_headers(method, path, resource_id, params, None, body, decode=decode)

    def get(
        self,
        path: str,
        resource_id: str = "",
        params: Params = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Sends an HTTP request using the GET method to the OneFS API."""
        return self.do_with_headers("GET", path, resource_id, params, headers, decode=decode)

    def post(
        self,
        path: str,
        resource_id: str = "",
        params: Params = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Sends an HTTP request using the POST method to the OneFS API."""
        return self.do_with_headers(
            "POST", path, resource_id, params, headers, body, decode=decode
        )

    def put(
        self,
        path: str,
        resource_id: str = "",
        params: Params = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Sends an HTTP request using the PUT method to the OneFS API."""
        return self.do_with_headers("PUT", path, resource_id, params, headers, body, decode=decode)

    def delete(
        self,
        path: str,
        resource_id: str = "",
        params: Params = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Sends an HTTP request using the DELETE method to the OneFS API."""
        return self.do_with_headers("DELETE", path, resource_id, params, headers, decode=decode)

    def get_isilon_http_client(self) -> httpx.Client:
        """Returns a httpx client for use in OneFS communication.

        Basic-auth clients send credentials with every request; session-based
        clients attach the current session from the session store.

        Returns:
            httpx.Client: Configured HTTP client for OneFS API calls.
        """
        auth: httpx.Auth
        if self.is_session_based:
            auth = IsilonSessionAuth(self.session_store)
        else:
            auth = httpx.BasicAuth(self.user, self.password)
        return httpx.Client(
            timeout=self.isilon_parameters.timeout,
            verify=self.isilon_parameters.ssl_verify,
            base_url=self.endpoint,
            auth=auth,
            headers=self.base_headers,
            event_hooks=DiagnosticHooks(self.isilon_parameters.verbose).as_event_hooks(),
            transport=self._transport,
        )

    # Namespace (volume) helpers

    def _namespace_path(self) -> str:
        return _join_path(NAMESPACE_PATH, self.volumes_path)

    def get_volumes(self) -> Dict[str, Any] | None:
        """Lists the volumes under the configured volumes path.

        Returns:
            dict: The namespace listing, with a ``children`` array.
        """
        return self.get(self._namespace_path())

    def get_volume(self, name: str) -> Dict[str, Any] | None:
        """Returns the attributes of a volume (``?metadata``)."""
        return self.get(self._namespace_path(), name, OrderedValues([("metadata", None)]))

    def volume_exists(self, name: str) -> bool:
        """Checks whether a volume exists.

        Returns:
            bool: False when the cluster answers 404, True on success.
        """
        try:
            self.get(self._namespace_path(), name, decode=False)
        except IsilonAPIError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    def create_volume(self, name: str, permissions: Optional[str] = None) -> Dict[str, Any] | None:
        """Creates a directory for a volume.

        Args:
            name (str): Volume name under the configured volumes path.
            permissions (str, optional): Access control for the new directory.
                Defaults to the configured volumes path permissions.
        """
        headers = {
            "x-isi-ifs-target-type": "container",
            "x-isi-ifs-access-control": permissions or self.volumes_path_permissions,
        }
        return self.put(self._namespace_path(), name, headers=headers)

    def delete_volume(self, name: str) -> Dict[str, Any] | None:
        """Removes a volume and its contents."""
        return self.delete(
            self._namespace_path(), name, OrderedValues([("recursive", "true")])
        )

    def copy_volume(self, source_name: str, destination_name: str) -> Dict[str, Any] | None:
        """Creates a new volume from the contents of an existing one."""
        headers = {"x-isi-ifs-copy-source": "/" + _join_path(self._namespace_path(), source_name)}
        return self.put(
            self._namespace_path(),
            destination_name,
            OrderedValues([("merge", "True")]),
            headers,
        )

    def get_volume_size(self, name: str) -> Dict[str, Any] | None:
        """Lists the size of every file and directory in a volume."""
        params = OrderedValues([("detail", "size"), ("max-depth", "-1")])
        return self.get(self._namespace_path(), name, params)

    def set_volume_owner(self, name: str, owner: Optional[str] = None) -> Dict[str, Any] | None:
        """Sets the owner of a volume, and its group when the client has one.

        Args:
            name (str): Volume name under the configured volumes path.
            owner (str, optional): User name of the new owner. Defaults to the
                client's user.
        """
        body: Dict[str, Any] = {
            "authoritative": "acl",
            "action": "update",
            "owner": {"name": owner or self.user, "type": "user"},
        }
        if self.group:
            body["group"] = {"name": self.group, "type": "group"}
        return self.put(self._namespace_path(), name, OrderedValues([("acl", None)]), body=body)

    def get_volume_acl(self, name: str) -> Dict[str, Any] | None:
        """Returns the access control list of a volume (``?acl``)."""
        return self.get(self._namespace_path(), name, OrderedValues([("acl", None)]))

    # Snapshot helpers

    def get_snapshots(self) -> list:
        """Lists every snapshot on the cluster."""
        resp = self.get(SNAPSHOTS_PATH)
        return resp.get("snapshots", []) if resp else []

    def get_volume_snapshots(self, volume_name: str) -> list:
        """Lists the snapshots taken of one volume."""
        path = self.volume_path(volume_name)
        return [s for s in self.get_snapshots() if s.get("path") == path]

    def get_snapshot(self, snapshot_id: Union[int, str]) -> Dict[str, Any] | None:
        """Returns a snapshot by id or name, or None when the listing is empty."""
        resp = self.get(SNAPSHOTS_PATH, str(snapshot_id))
        snapshots = resp.get("snapshots") if resp else None
        return snapshots[0] if snapshots else None

    def create_snapshot(self, volume_name: str, snapshot_name: str = "") -> Dict[str, Any] | None:
        """Takes a snapshot of a volume.

        Args:
            volume_name (str): Volume name under the configured volumes path.
            snapshot_name (str, optional): Snapshot name; the cluster picks one when empty.

        Returns:
            dict: The new snapshot, as reported by the cluster.
        """
        if not volume_name:
            raise ValueError("no path set")
        body = {"path": self.volume_path(volume_name)}
        if snapshot_name:
            body["name"] = snapshot_name
        return self.post(SNAPSHOTS_PATH, body=body)

    def delete_snapshot(self, snapshot_id: Union[int, str]) -> None:
        self.delete(SNAPSHOTS_PATH, str(snapshot_id), decode=False)

    def _snapshot_namespace_path(self, snapshot_name: str) -> str:
        # /ifs/<volumes path> becomes /ifs/.snapshot/<snapshot>/<volumes path>
        relative = self.volumes_path.strip("/")
        if relative == "ifs" or relative.startswith("ifs/"):
            relative = relative[len("ifs") :]
        return _join_path(NAMESPACE_PATH, "ifs", SNAPSHOT_DIR, snapshot_name, relative)

    def copy_snapshot(
        self, snapshot_name: str, source_volume: str, destination_name: str
    ) -> Dict[str, Any] | None:
        """Creates a new volume from a volume's contents in a snapshot."""
        source = "/" + _join_path(self._snapshot_namespace_path(snapshot_name), source_volume)
        return self.put(
            self._namespace_path(),
            destination_name,
            OrderedValues([("merge", "True")]),
            {"x-isi-ifs-copy-source": source},
        )

    # Quota helpers

    def get_quotas(self) -> list:
        """Lists every quota, following ``resume`` tokens across pages."""
        resp = self.get(QUOTAS_PATH) or {}
        quotas = list(resp.get("quotas", []))
        while resp.get("resume"):
            resp = self.get(QUOTAS_PATH, params=OrderedValues([("resume", resp["resume"])])) or {}
            quotas.extend(resp.get("quotas", []))
        return quotas

    def get_quota(self, volume_name: str) -> Dict[str, Any] | None:
        """Returns the quota on a volume's directory, or None when it has none."""
        path = self.volume_path(volume_name)
        for quota in self.get_quotas():
            if quota.get("path") == path:
                return quota
        logger.debug(f"Quota not found: {path}")
        return None

    def get_quota_by_id(self, quota_id: str) -> Dict[str, Any] | None:
        resp = self.get(QUOTAS_PATH, quota_id)
        quotas = resp.get("quotas") if resp else None
        return quotas[0] if quotas else None

    def create_quota(self, volume_name: str, size: int, container: bool = False) -> str:
        """Sets a hard directory quota on a volume.

        Args:
            volume_name (str): Volume name under the configured volumes path.
            size (int): Hard threshold in bytes.
            container (bool): Report the quota as the directory's size to clients.

        Returns:
            str: The id of the new quota.
        """
        body = {
            "enforced": True,
            "include_snapshots": False,
            "path": self.volume_path(volume_name),
            "container": container,
            "thresholds_include_overhead": False,
            "type": "directory",
            "thresholds": {"advisory": None, "hard": size, "soft": None},
        }
        resp = self.post(QUOTAS_PATH, body=body)
        return resp["id"]

    def update_quota_size(self, quota_id: str, size: int) -> None:
        """Changes the hard threshold of an existing quota."""
        body = {
            "enforced": True,
            "thresholds_include_overhead": False,
            "thresholds": {"advisory": None, "hard": size, "soft": None},
        }
        self.put(QUOTAS_PATH, quota_id, body=body, decode=False)

    def delete_quota(self, volume_name: str) -> None:
        """Removes the quota on a volume's directory."""
        params = OrderedValues([("path", self.volume_path(volume_name))])
        self.delete(QUOTAS_PATH, params=params, decode=False)

    def delete_quota_by_id(self, quota_id: str, zone: str = "") -> None:
        params = OrderedValues([("zone", zone)]) if zone else None
        self.delete(QUOTAS_PATH, quota_id, params, decode=False)

    # NFS export helpers

    def _export_params(self, zone: str = "", validate_hosts: bool = False) -> OrderedValues:
        params = OrderedValues()
        if zone:
            params.add("zone", zone)
        if validate_hosts and self.ignore_unresolvable_hosts:
            params.add("ignore_unresolvable_hosts", "true")
        return params

    def get_exports(self, zone: str = "") -> list:
        """Lists the NFS exports, optionally in one access zone."""
        resp = self.get(EXPORTS_PATH, params=self._export_params(zone))
        return resp.get("exports", []) if resp else []

    def get_export(self, export_id: Union[int, str], zone: str = "") -> Dict[str, Any] | None:
        resp = self.get(EXPORTS_PATH, str(export_id), self._export_params(zone))
        exports = resp.get("exports") if resp else None
        return exports[0] if exports else None

    def get_export_by_path(self, path: str, zone: str = "") -> Dict[str, Any] | None:
        """Returns the first export that shares the given path, or None."""
        for export in self.get_exports(zone):
            if path in export.get("paths", []):
                return export
        return None

    def create_export(self, paths: list, zone: str = "", **fields: Any) -> int:
        """Creates an NFS export.

        Client host names are checked by the cluster unless the client was
        created with ``ignore_unresolvable_hosts``.

        Args:
            paths (list): Directories shared by the export.
            zone (str, optional): Access zone; the cluster default when empty.
            **fields: Other export properties, e.g. ``clients`` or ``root_clients``.

        Returns:
            int: The id of the new export.
        """
        if not paths:
            raise ValueError("no path set")
        body = {"paths": list(paths), **fields}
        resp = self.post(EXPORTS_PATH, params=self._export_params(zone, True), body=body)
        return resp["id"]

    def create_volume_export(self, volume_name: str, zone: str = "", **fields: Any) -> int:
        return self.create_export([self.volume_path(volume_name)], zone, **fields)

    def update_export(
        self, export_id: Union[int, str], fields: Mapping[str, Any], zone: str = ""
    ) -> None:
        self.put(
            EXPORTS_PATH,
            str(export_id),
            self._export_params(zone, True),
            body=dict(fields),
            decode=False,
        )

    def delete_export(self, export_id: Union[int, str], zone: str = "") -> None:
        self.delete(EXPORTS_PATH, str(export_id), self._export_params(zone), decode=False)

    def add_export_clients(
        self,
        export_id: Union[int, str],
        clients: list,
        zone: str = "",
        field: str = "clients",
    ) -> None:
        """Adds hosts to one of an export's client lists, keeping existing entries.

        Args:
            field (str): ``clients``, ``read_only_clients``, ``read_write_clients``
                or ``root_clients``.
        """
        export = self.get_export(export_id, zone) or {}
        merged = list(export.get(field, []))
        for client in clients:
            if client not in merged:
                merged.append(client)
        self.update_export(export_id, {field: merged}, zone)

    def remove_export_clients(
        self,
        export_id: Union[int, str],
        clients: list,
        zone: str = "",
        field: str = "clients",
    ) -> None:
        """Removes hosts from one of an export's client lists."""
        export = self.get_export(export_id, zone) or {}
        remaining = [c for c in export.get(field, []) if c not in clients]
        self.update_export(export_id, {field: remaining}, zone)

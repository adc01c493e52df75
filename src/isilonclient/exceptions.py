"""
Custom exceptions for the isilonclient package.

This module provides OneFS-specific exceptions that wrap httpx exceptions,
and decodes the two error body shapes the OneFS API returns (a JSON
multi-error document, or an HTML error page) into structured errors.
"""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    ParamSpec,
    Type,
    TypeVar,
    cast,
)

import httpx
from bs4 import BeautifulSoup

P = ParamSpec("P")
T = TypeVar("T")

CONTENT_TYPE_HTML = "text/html"


# Base OneFS exceptions
class IsilonError(Exception):
    """Base exception for all isilonclient errors."""

    pass


class IsilonClientClosed(IsilonError):
    """
    Raised when an operation is attempted on a closed IsilonClient.
    """

    def __init__(self, message: str = "The IsilonClient is closed") -> None:
        super().__init__(message)


# Construction errors
class IsilonConfigurationError(IsilonError, ValueError):
    """
    Raised when a client cannot be constructed from the supplied configuration.
    Missing endpoint or credentials, or an unusable TLS trust store.
    """

    pass


class IsilonURLError(IsilonError, ValueError):
    """Raised when a request URL cannot be built or parsed."""

    pass


class IsilonVersionError(IsilonError, ValueError):
    """Raised when the version reported by platform/latest cannot be parsed."""

    pass


class IsilonUnsupportedVersionError(IsilonError):
    """
    Raised when the cluster reports an API major version below the minimum supported.
    """

    def __init__(
        self,
        message: str = "OneFS releases older than 8.0 are no longer supported",
        *,
        api_version: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.api_version = api_version


# Connection and network errors
class IsilonConnectionError(IsilonError, httpx.RequestError):
    """
    Base class for OneFS connection-related errors.
    Raised when there are network connectivity issues with the cluster.
    """

    def __init__(self, message: str, *, request: httpx.Request) -> None:
        super().__init__(message)
        self.message = message
        self.request = request

    def __str__(self) -> str:
        return f"OneFS connection error: {self.message}"


class IsilonSystemUnavailableError(IsilonConnectionError):
    """
    Raised when the cluster is completely unreachable.
    """

    def __str__(self) -> str:
        return f"OneFS system unavailable: {self.message}"


class IsilonTimeoutError(IsilonConnectionError, httpx.TimeoutException):
    """
    Raised when a request to the cluster exceeds the configured timeout.
    """

    def __str__(self) -> str:
        return f"OneFS request timeout: {self.message}"


class IsilonProtocolError(IsilonConnectionError):
    """
    Raised when there are HTTP protocol-level errors talking to the cluster.
    """

    def __str__(self) -> str:
        return f"OneFS protocol error: {self.message}"


class IsilonNetworkError(IsilonConnectionError):
    """
    Raised for general network connectivity issues.
    DNS resolution failures, connection refused, etc.
    """

    def __str__(self) -> str:
        return f"OneFS network error: {self.message}"


# Structured API errors
class IsilonAPIError(IsilonError):
    """
    Base class for errors decoded from a non-2xx OneFS API response.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        response: Optional[httpx.Response] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ErrorDetail:
    """One entry of the ``errors`` array in a JSON error document."""

    code: str = ""
    field: str = ""
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorDetail":
        return cls(
            code=str(data.get("code") or ""),
            field=str(data.get("field") or ""),
            message=str(data.get("message") or ""),
        )


class JSONError(IsilonAPIError):
    """
    A JSON error document with one or more errors.

    The message is the first error's message, or the HTTP status line when that
    message is empty.
    """

    def __init__(
        self,
        errors: List[ErrorDetail],
        *,
        status_code: int,
        status_line: str = "",
        response: Optional[httpx.Response] = None,
    ) -> None:
        self.errors = list(errors)
        if self.errors and not self.errors[0].message:
            self.errors[0] = ErrorDetail(self.errors[0].code, self.errors[0].field, status_line)
        message = self.errors[0].message if self.errors else status_line
        super().__init__(message, status_code=status_code, response=response)


class HTMLError(IsilonAPIError):
    """An HTML error page; the message is the page's first heading or title."""

    pass


# Authentication errors
class IsilonAuthenticationError(IsilonError):
    """Base class for failures of the session login exchange."""

    pass


class AuthenticationFailed(IsilonAuthenticationError):
    """Raised when the session endpoint rejects the credentials (HTTP 401)."""

    def __init__(
        self,
        message: str = (
            "authentication failed. unable to login to powerscale. verify username and password"
        ),
    ) -> None:
        super().__init__(message)


class SessionTokenMissing(IsilonAuthenticationError):
    """Raised when a successful login response carries no session id cookie."""

    def __init__(self, message: str = "session ID not retrieved") -> None:
        super().__init__(message)


class AuthenticateError(IsilonAuthenticationError):
    """
    Raised when the session endpoint answers with anything other than 201 or 401.

    The message keeps the generic form callers already match on; the status code
    and a truncated body are attached for diagnosis.
    """

    def __init__(self, status_code: Optional[int] = None, detail: str = "") -> None:
        super().__init__("authenticate error. response-")
        self.status_code = status_code
        self.detail = detail


class ReauthenticationFailed(IsilonAuthenticationError):
    """Raised when re-authenticating after a 401 fails; the request is not replayed."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"authentication failure due to: {cause}")
        self.cause = cause


# Exception mapping dictionaries
_CONNECTION_EXCEPTIONS: Dict[Type[httpx.RequestError], Type[IsilonConnectionError]] = {
    httpx.ConnectError: IsilonSystemUnavailableError,
    httpx.ConnectTimeout: IsilonTimeoutError,
    httpx.ReadTimeout: IsilonTimeoutError,
    httpx.WriteTimeout: IsilonTimeoutError,
    httpx.PoolTimeout: IsilonTimeoutError,
    httpx.RemoteProtocolError: IsilonProtocolError,
    httpx.LocalProtocolError: IsilonProtocolError,
    httpx.TimeoutException: IsilonTimeoutError,
    httpx.ProtocolError: IsilonProtocolError,
    httpx.NetworkError: IsilonNetworkError,
}


def status_line(response: httpx.Response) -> str:
    """Return the HTTP status line text, e.g. ``404 Not Found``."""
    reason = response.reason_phrase
    return f"{response.status_code} {reason}" if reason else str(response.status_code)


def _html_message(document: str) -> str:
    soup = BeautifulSoup(document, "html.parser")
    heading = soup.find("h1")
    if heading is not None:
        text = heading.get_text(strip=True)
        if text:
            return text
    title = soup.find("title")
    if title is not None:
        return title.get_text(strip=True)
    return ""


def decode_api_error(response: httpx.Response) -> IsilonAPIError:
    """Decode a non-2xx response into a JSONError or an HTMLError.

    The branch is chosen by the ``Content-Type`` header only; the body is never
    sniffed.

    Args:
        response (httpx.Response): A response with a non-2xx status, already read.

    Returns:
        IsilonAPIError: ``HTMLError`` for ``text/html`` bodies, ``JSONError`` otherwise.

    Raises:
        json.JSONDecodeError: If a non-HTML body is not a valid JSON document.
    """
    media_type = response.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if media_type == CONTENT_TYPE_HTML:
        return HTMLError(
            _html_message(response.text),
            status_code=response.status_code,
            response=response,
        )

    payload = json.loads(response.content)
    raw_errors = payload.get("errors") if isinstance(payload, dict) else None
    errors = [ErrorDetail.from_dict(item) for item in raw_errors or [] if isinstance(item, dict)]
    return JSONError(
        errors,
        status_code=response.status_code,
        status_line=status_line(response),
        response=response,
    )


def _create_isilon_exception(original_error: httpx.RequestError) -> IsilonConnectionError:
    """Create the matching OneFS connection exception for an httpx transport error."""
    try:
        request: Optional[httpx.Request] = original_error.request
    except RuntimeError:
        # httpx raises when the error was created without a request
        request = None
    # Walk the MRO so the most specific mapping wins (ConnectTimeout before TimeoutException)
    for error_type in type(original_error).__mro__:
        if error_type in _CONNECTION_EXCEPTIONS:
            exception_class = _CONNECTION_EXCEPTIONS[cast(Type[httpx.RequestError], error_type)]
            return exception_class(str(original_error), request=cast(httpx.Request, request))
    return IsilonConnectionError(
        f"Connection error: {original_error}", request=cast(httpx.Request, request)
    )


def isilon_errors(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator that converts httpx transport exceptions to OneFS-specific exceptions.

    The original httpx exception is chained as ``__cause__``. Exceptions that are
    already isilonclient errors pass through untouched.

    Usage:
        >>> @isilon_errors
        ... def get_zone(self, name: str):
        ...     return self.get("platform/1/zones", name)
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except IsilonError:
            raise
        except httpx.RequestError as e:
            raise _create_isilon_exception(e) from e

    return cast(Callable[P, T], wrapper)

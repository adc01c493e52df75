"""This module contains decorators for the IsilonClient package."""

import logging
from functools import wraps
from http import HTTPStatus
from typing import Callable

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    after_log,
    stop_after_attempt,
    wait_none,
)

from isilonclient.exceptions import (
    IsilonAPIError,
    IsilonAuthenticationError,
    IsilonClientClosed,
    ReauthenticationFailed,
)

logger = logging.getLogger(__name__)

# One original attempt plus one replay after re-authenticating
MAX_AUTH_ATTEMPTS = 2


def should_retry_auth_error(exception: BaseException) -> bool:
    """
    Determine if a request should be re-authenticated and replayed.

    parameters:
        exception: The exception raised by the request

    returns:
        True for a decoded API error (JSON or HTML) with status 401, False otherwise
    """
    return (
        isinstance(exception, IsilonAPIError)
        and exception.status_code == HTTPStatus.UNAUTHORIZED
    )


class AuthErrorRetryCondition:
    """Custom retry condition for expired or missing sessions."""

    def __call__(self, retry_state: RetryCallState) -> bool:
        """Check if we should retry based on auth error conditions."""
        if not retry_state.outcome.failed:
            return False
        exception = retry_state.outcome.exception()
        return should_retry_auth_error(exception)


def reauthenticate_callback(retry_state: RetryCallState) -> None:
    """
    Re-authenticate before the request is replayed.

    These decorators are only used on IsilonClient instance methods, so the first
    argument is always the client. A failed login ends the call with
    ReauthenticationFailed and the original request is not replayed.
    """
    isilon_client = retry_state.args[0]
    logger.info("Authentication failed. Trying to re-authenticate")
    try:
        isilon_client.login()
    except (IsilonAuthenticationError, httpx.RequestError) as e:
        raise ReauthenticationFailed(e) from e


def get_auth_retry_config() -> dict:
    """Get the tenacity configuration for the re-authentication cycle."""
    return {
        "stop": stop_after_attempt(MAX_AUTH_ATTEMPTS),
        "wait": wait_none(),
        "retry": AuthErrorRetryCondition(),
        "before_sleep": reauthenticate_callback,
        "after": after_log(logger, logging.DEBUG),
        "reraise": True,
    }


def retry_with_reauthentication(func: Callable) -> Callable:
    """
    Replay a request once after re-authenticating when it fails with HTTP 401.

    Basic-auth clients call straight through: their credentials go out with every
    request and there is nothing to refresh. Session-based clients get at most one
    re-authentication per call; the replayed request's outcome is returned as is,
    including a second 401.
    """

    @wraps(func)
    def wrapper(self, method, path, *args, **kwargs):
        if not self.is_session_based:
            return func(self, method, path, *args, **kwargs)

        retryer = Retrying(**get_auth_retry_config())
        try:
            result = retryer(func, self, method, path, *args, **kwargs)
        except IsilonAPIError as e:
            if not should_retry_auth_error(e):
                logger.error(
                    f"Error in response. Method: {method} URI: {path} Error: {e}"
                    f" (HTTP {e.status_code})"
                )
            raise
        logger.debug(f"Execution successful on Method: {method}, URI: {path}")
        return result

    return wrapper


def use_client_session(func: Callable) -> Callable:
    """
    Decorator that refuses to run an IsilonClient method once the client is closed.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        if self.is_closed:
            raise IsilonClientClosed()
        return func(self, *args, **kwargs)

    return wrapper

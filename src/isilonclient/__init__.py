"""IsilonClient is a Python client for the Dell PowerScale (Isilon) OneFS API.

It turns logical operations into HTTP requests, handles basic and
session-based authentication (including one re-authentication when a
session expires), and decodes OneFS JSON and HTML error responses into
structured exceptions.
"""

import importlib.metadata

from isilonclient.exceptions import (
    # Base exceptions
    IsilonError,
    IsilonClientClosed,
    # Construction errors
    IsilonConfigurationError,
    IsilonURLError,
    IsilonVersionError,
    IsilonUnsupportedVersionError,
    # Connection errors
    IsilonConnectionError,
    IsilonSystemUnavailableError,
    IsilonTimeoutError,
    IsilonProtocolError,
    IsilonNetworkError,
    # API errors
    IsilonAPIError,
    ErrorDetail,
    JSONError,
    HTMLError,
    # Authentication errors
    IsilonAuthenticationError,
    AuthenticationFailed,
    SessionTokenMissing,
    AuthenticateError,
    ReauthenticationFailed,
)
from isilonclient.IsilonClient import IsilonClient
from isilonclient._httpx import (
    AuthType,
    Authenticator,
    IsilonConnectionParameters,
    IsilonSessionAuth,
    Session,
    SessionAuthenticator,
)
from isilonclient.diagnostics import VerboseLevel
from isilonclient.ordered_values import OrderedValues

__version__ = importlib.metadata.version("isilonclient")
__all__ = [
    # Core client
    "IsilonClient",
    "OrderedValues",
    "VerboseLevel",
    # OneFS Auth Components
    "AuthType",
    "Authenticator",
    "IsilonConnectionParameters",
    "IsilonSessionAuth",
    "Session",
    "SessionAuthenticator",
    # Base exceptions
    "IsilonError",
    "IsilonClientClosed",
    # Construction errors
    "IsilonConfigurationError",
    "IsilonURLError",
    "IsilonVersionError",
    "IsilonUnsupportedVersionError",
    # Connection errors
    "IsilonConnectionError",
    "IsilonSystemUnavailableError",
    "IsilonTimeoutError",
    "IsilonProtocolError",
    "IsilonNetworkError",
    # API errors
    "IsilonAPIError",
    "ErrorDetail",
    "JSONError",
    "HTMLError",
    # Authentication errors
    "IsilonAuthenticationError",
    "AuthenticationFailed",
    "SessionTokenMissing",
    "AuthenticateError",
    "ReauthenticationFailed",
]

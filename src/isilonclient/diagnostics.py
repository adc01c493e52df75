"""Debug dumps of OneFS HTTP traffic.

Requests and responses are written to the ``isilonclient.diagnostics`` logger
at DEBUG level, with credentials, session ids and CSRF tokens masked. The
dumps are installed as httpx event hooks and never alter a request or its
outcome.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from enum import IntEnum
from typing import Iterable

import httpx

logger = logging.getLogger(__name__)

CONTENT_TYPE_BINARY = "binary/octet-stream"
BINARY_MEDIA_TYPES = frozenset({CONTENT_TYPE_BINARY, "application/octet-stream"})
MASK = "******"

_BASIC_AUTH_RE = re.compile(r"^(?P<name>authorization):\s*basic\s+(?P<token>\S+)", re.IGNORECASE)
_PASSWORD_RE = re.compile(r'("password"\s*:\s*)"(?:[^"\\]|\\.)*"', re.IGNORECASE)
_SESSION_RE = re.compile(r"((?:isisessid|isicsrf)=)[^;\s]+", re.IGNORECASE)
_CSRF_HEADER_RE = re.compile(r"^(x-csrf-token:)\s*.*$", re.IGNORECASE)


class VerboseLevel(IntEnum):
    """How much of each message is dumped."""

    HIGH = 0
    MEDIUM = 1
    LOW = 2

    @classmethod
    def from_value(cls, value) -> "VerboseLevel":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.HIGH


def _redact_basic_auth(match: re.Match) -> str:
    try:
        decoded = base64.b64decode(match.group("token"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return f"{match.group('name')}: {MASK}"
    username = decoded.split(":", 1)[0]
    return f"{match.group('name')}: {username}:{MASK}"


def redact(text: str) -> str:
    """Mask passwords, basic-auth credentials, session ids and CSRF tokens."""
    lines = []
    for line in text.splitlines():
        line = _BASIC_AUTH_RE.sub(_redact_basic_auth, line)
        line = _CSRF_HEADER_RE.sub(rf"\1 {MASK}", line)
        line = _SESSION_RE.sub(rf"\g<1>{MASK}", line)
        line = _PASSWORD_RE.sub(r'\1"****"', line)
        lines.append(line)
    return "\n".join(lines)


def write_indented(lines: Iterable[str], n: int = 4) -> str:
    """Indent every line by ``n`` spaces."""
    pad = " " * n
    return "\n".join(f"{pad}{line}" for line in lines)


def _is_binary(headers: httpx.Headers) -> bool:
    media_type = headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return media_type in BINARY_MEDIA_TYPES


def _header_lines(headers: httpx.Headers, skip: tuple = ()) -> list[str]:
    return [f"{name}: {value}" for name, value in headers.multi_items() if name not in skip]


def _dump(title: str, lines: list[str]) -> str:
    banner = f"    -------------------------- {title} -------------------------"
    return "\n".join(["", banner, write_indented(redact("\n".join(lines)).splitlines())])


def format_request(request: httpx.Request, verbose: VerboseLevel) -> str:
    target = request.url.raw_path.decode("ascii")
    lines = [f"{request.method} {target} HTTP/1.1"]
    if verbose != VerboseLevel.LOW:
        lines.append(f"Host: {request.url.netloc.decode('ascii')}")
        lines.extend(_header_lines(request.headers, skip=("host",)))
        if not _is_binary(request.headers):
            try:
                body = request.content
            except httpx.RequestNotRead:
                body = b""
            if body:
                lines.append("")
                lines.extend(body.decode("utf-8", errors="replace").splitlines())
    return _dump("ISILONCLIENT HTTP REQUEST", lines)


def format_response(response: httpx.Response, verbose: VerboseLevel) -> str:
    status = f"{response.http_version} {response.status_code} {response.reason_phrase}".rstrip()
    lines = [status]
    if verbose != VerboseLevel.LOW:
        lines.extend(_header_lines(response.headers))
        if verbose == VerboseLevel.HIGH and not _is_binary(response.headers):
            body = response.read()
            if body:
                lines.append("")
                lines.extend(body.decode("utf-8", errors="replace").splitlines())
    return _dump("ISILONCLIENT HTTP RESPONSE", lines)


class DiagnosticHooks:
    """httpx event hooks that dump traffic at the configured verbosity."""

    def __init__(self, verbose: int | VerboseLevel = VerboseLevel.HIGH):
        self.verbose = VerboseLevel.from_value(verbose)

    def log_request(self, request: httpx.Request) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(format_request(request, self.verbose))

    def log_response(self, response: httpx.Response) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(format_response(response, self.verbose))

    def as_event_hooks(self) -> dict:
        return {"request": [self.log_request], "response": [self.log_response]}

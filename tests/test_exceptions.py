"""Tests for the exceptions module."""

import json
from unittest.mock import Mock

import httpx
import pytest

from isilonclient.exceptions import (
    # Base exceptions
    IsilonError,
    IsilonClientClosed,
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
    AuthenticateError,
    AuthenticationFailed,
    ReauthenticationFailed,
    SessionTokenMissing,
    # Decoder and decorator
    decode_api_error,
    isilon_errors,
    status_line,
    _create_isilon_exception,
)


def make_response(status_code, content=b"", content_type="application/json"):
    headers = {"content-type": content_type} if content_type else {}
    return httpx.Response(status_code, content=content, headers=headers)


class TestIsilonClientClosed:
    """Test IsilonClientClosed exception."""

    def test_default_message(self):
        exc = IsilonClientClosed()
        assert str(exc) == "The IsilonClient is closed"

    def test_custom_message(self):
        exc = IsilonClientClosed("Custom message")
        assert str(exc) == "Custom message"


class TestConnectionErrors:
    """Test connection-related exceptions."""

    def test_isilon_connection_error(self):
        request = Mock(spec=httpx.Request)
        exc = IsilonConnectionError("Connection failed", request=request)
        assert exc.message == "Connection failed"
        assert exc.request == request
        assert str(exc) == "OneFS connection error: Connection failed"
        assert isinstance(exc, httpx.RequestError)

    def test_isilon_system_unavailable_error(self):
        request = Mock(spec=httpx.Request)
        exc = IsilonSystemUnavailableError("System down", request=request)
        assert str(exc) == "OneFS system unavailable: System down"

    def test_isilon_timeout_error(self):
        request = Mock(spec=httpx.Request)
        exc = IsilonTimeoutError("Request timeout", request=request)
        assert str(exc) == "OneFS request timeout: Request timeout"
        assert isinstance(exc, httpx.TimeoutException)

    def test_isilon_protocol_error(self):
        request = Mock(spec=httpx.Request)
        exc = IsilonProtocolError("Protocol issue", request=request)
        assert str(exc) == "OneFS protocol error: Protocol issue"

    def test_isilon_network_error(self):
        request = Mock(spec=httpx.Request)
        exc = IsilonNetworkError("Network issue", request=request)
        assert str(exc) == "OneFS network error: Network issue"


class TestAuthenticationErrors:
    def test_authentication_failed_message(self):
        assert str(AuthenticationFailed()) == (
            "authentication failed. unable to login to powerscale. verify username and password"
        )

    def test_session_token_missing_message(self):
        assert str(SessionTokenMissing()) == "session ID not retrieved"

    def test_authenticate_error_keeps_generic_message(self):
        exc = AuthenticateError(500, "boom")
        assert str(exc) == "authenticate error. response-"
        assert exc.status_code == 500
        assert exc.detail == "boom"

    def test_reauthentication_failed_wraps_cause(self):
        cause = AuthenticationFailed()
        exc = ReauthenticationFailed(cause)
        assert exc.cause is cause
        assert str(exc).startswith("authentication failure due to: authentication failed.")

    def test_unsupported_version_default_message(self):
        exc = IsilonUnsupportedVersionError(api_version=2)
        assert str(exc) == "OneFS releases older than 8.0 are no longer supported"
        assert exc.api_version == 2


class TestJSONError:
    def test_message_is_first_error_message(self):
        exc = JSONError(
            [ErrorDetail("AEC_NOT_FOUND", "", "Path not found"), ErrorDetail(message="second")],
            status_code=404,
            status_line="404 Not Found",
        )
        assert str(exc) == "Path not found"
        assert len(exc.errors) == 2
        assert exc.status_code == 404

    def test_empty_first_message_is_replaced_with_status_line(self):
        exc = JSONError(
            [ErrorDetail(code="AEC_EXCEPTION")], status_code=500, status_line="500 Internal Server Error"
        )
        assert str(exc) == "500 Internal Server Error"
        assert exc.errors[0].message == "500 Internal Server Error"
        assert exc.errors[0].code == "AEC_EXCEPTION"

    def test_no_errors_uses_status_line(self):
        exc = JSONError([], status_code=503, status_line="503 Service Unavailable")
        assert str(exc) == "503 Service Unavailable"
        assert exc.errors == []


class TestDecodeAPIError:
    """Test decoding of OneFS error bodies."""

    def test_json_error_document(self):
        body = json.dumps(
            {"errors": [{"code": "AEC_NOT_FOUND", "field": "name", "message": "Path not found"}]}
        ).encode()
        exc = decode_api_error(make_response(404, body))
        assert isinstance(exc, JSONError)
        assert exc.status_code == 404
        assert exc.errors == [ErrorDetail("AEC_NOT_FOUND", "name", "Path not found")]
        assert str(exc) == "Path not found"

    def test_json_error_with_empty_message(self):
        body = json.dumps({"errors": [{"code": "AEC_EXCEPTION", "message": ""}]}).encode()
        exc = decode_api_error(make_response(500, body))
        assert str(exc) == "500 Internal Server Error"

    def test_content_type_parameters_are_ignored(self):
        exc = decode_api_error(
            make_response(502, b"<html><h1>Bad Gateway</h1></html>", "text/html; charset=utf-8")
        )
        assert isinstance(exc, HTMLError)
        assert str(exc) == "Bad Gateway"

    def test_html_uses_first_heading(self):
        page = b"<html><head><title>Error</title></head><body><h1>Unauthorized</h1></body></html>"
        exc = decode_api_error(make_response(401, page, "text/html"))
        assert isinstance(exc, HTMLError)
        assert isinstance(exc, IsilonAPIError)
        assert exc.status_code == 401
        assert str(exc) == "Unauthorized"

    def test_html_falls_back_to_title(self):
        page = b"<html><head><title>Service Unavailable</title></head><body></body></html>"
        exc = decode_api_error(make_response(503, page, "text/html"))
        assert str(exc) == "Service Unavailable"

    def test_html_without_heading_or_title_has_empty_message(self):
        exc = decode_api_error(make_response(500, b"<html><body>oops</body></html>", "text/html"))
        assert str(exc) == ""

    def test_missing_content_type_is_decoded_as_json(self):
        body = json.dumps({"errors": [{"message": "denied"}]}).encode()
        exc = decode_api_error(make_response(403, body, content_type=None))
        assert isinstance(exc, JSONError)
        assert str(exc) == "denied"

    def test_undecodable_body_raises(self):
        with pytest.raises(json.JSONDecodeError):
            decode_api_error(make_response(401, b"", "text/plain"))

    def test_status_line(self):
        assert status_line(make_response(404)) == "404 Not Found"


class TestIsilonErrorsDecorator:
    """Test conversion of httpx transport errors."""

    @pytest.mark.parametrize(
        "httpx_error, expected",
        [
            (httpx.ConnectError, IsilonSystemUnavailableError),
            (httpx.ConnectTimeout, IsilonTimeoutError),
            (httpx.ReadTimeout, IsilonTimeoutError),
            (httpx.RemoteProtocolError, IsilonProtocolError),
            (httpx.ReadError, IsilonNetworkError),
        ],
    )
    def test_transport_errors_are_converted(self, httpx_error, expected):
        request = httpx.Request("GET", "https://onefs.example:8080/platform/latest/")

        @isilon_errors
        def failing():
            raise httpx_error("boom", request=request)

        with pytest.raises(expected) as exc_info:
            failing()
        assert isinstance(exc_info.value.__cause__, httpx_error)
        assert exc_info.value.request is request

    def test_isilon_errors_pass_through(self):
        original = JSONError([], status_code=404, status_line="404 Not Found")

        @isilon_errors
        def failing():
            raise original

        with pytest.raises(JSONError) as exc_info:
            failing()
        assert exc_info.value is original

    def test_other_exceptions_pass_through(self):
        @isilon_errors
        def failing():
            raise ValueError("not a transport error")

        with pytest.raises(ValueError):
            failing()

    def test_error_without_request(self):
        exc = _create_isilon_exception(httpx.ConnectError("refused"))
        assert isinstance(exc, IsilonSystemUnavailableError)
        assert isinstance(exc, IsilonError)
        assert exc.message == "refused"

"""Unit tests for the Sohar Port error taxonomy and transport-failure mapping."""

import json

import pytest
import requests

from app.integrations.sohar_port.errors import (
    ERROR_MESSAGES,
    ErrorKind,
    SoharPortAuthError,
    SoharPortError,
    SoharPortNetworkError,
    SoharPortNotFoundError,
    SoharPortValidationError,
    failure_fields,
    map_transport_failure,
)


def _http_error(status: int, body=None) -> requests.HTTPError:
    """Build the HTTPError requests would raise from raise_for_status()."""
    resp = requests.Response()
    resp.status_code = status
    resp.encoding = "utf-8"
    resp.url = "https://sohar.test/api/v1/gate-passes"
    if body is None:
        resp._content = b""
    elif isinstance(body, str):
        resp._content = body.encode()
    else:
        resp._content = json.dumps(body).encode()
    return requests.HTTPError(f"{status} error", response=resp)


class TestMapTransportFailure:

    def test_timeout_is_network_error(self):
        err = map_transport_failure(requests.Timeout("read timed out"))
        assert isinstance(err, SoharPortNetworkError)
        assert err.status_code == 0
        assert err.error_code == "NETWORK_ERROR"
        assert err.message == ERROR_MESSAGES["TIMEOUT_ERROR"]
        assert err.retryable is True

    def test_connection_error_is_network_error(self):
        err = map_transport_failure(requests.ConnectionError("refused"))
        assert err.kind is ErrorKind.NETWORK
        assert err.message == ERROR_MESSAGES["NETWORK_ERROR"]

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status):
        err = map_transport_failure(_http_error(status))
        assert isinstance(err, SoharPortAuthError)
        assert err.status_code == status
        assert err.error_code == "AUTH_ERROR"
        assert err.retryable is False

    def test_400_uses_body_message(self):
        err = map_transport_failure(_http_error(400, {"message": "passportIdNumber missing"}))
        assert isinstance(err, SoharPortValidationError)
        assert err.message == "passportIdNumber missing"
        assert err.details == {"message": "passportIdNumber missing"}

    def test_404_defaults_message(self):
        err = map_transport_failure(_http_error(404))
        assert isinstance(err, SoharPortNotFoundError)
        assert err.message == ERROR_MESSAGES["NOT_FOUND"]

    def test_5xx_keeps_body_error_code_and_is_retryable(self):
        err = map_transport_failure(_http_error(503, {"errorCode": "MAINTENANCE"}))
        assert type(err) is SoharPortError
        assert err.status_code == 503
        assert err.error_code == "MAINTENANCE"
        assert err.retryable is True

    def test_other_4xx_is_generic_and_not_retryable(self):
        err = map_transport_failure(_http_error(409, "conflict"))
        assert err.kind is ErrorKind.UNKNOWN
        assert err.error_code == "UNKNOWN_ERROR"
        assert err.details == "conflict"
        assert err.retryable is False

    def test_request_exception_without_response(self):
        err = map_transport_failure(requests.RequestException("boom"))
        assert err.status_code == 0
        assert err.error_code == "UNKNOWN_ERROR"
        assert err.retryable is True


class TestFailureFields:

    def test_status_zero_is_reported_as_500(self):
        fields = failure_fields(SoharPortNetworkError("down"), "fallback")
        assert fields == {
            "success": False,
            "status_code": 500,
            "message": "down",
            "error": "NETWORK_ERROR",
        }

    def test_http_status_is_kept(self):
        fields = failure_fields(SoharPortValidationError("bad"), "fallback")
        assert fields["status_code"] == 400
        assert fields["error"] == "VALIDATION_ERROR"

    def test_empty_message_uses_fallback(self):
        fields = failure_fields(SoharPortError("", 502), "Failed to create gate pass")
        assert fields["message"] == "Failed to create gate pass"

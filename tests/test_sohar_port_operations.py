"""Unit tests for the real-mode send/receive operations.

All HTTP goes through a fake session injected into SoharPortTransport.
Every operation must return a result object; none may raise for a
gateway failure.
"""

import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.integrations.sohar_port import receive, send
from app.integrations.sohar_port.audit import AuditLogger, InMemoryAuditSink
from app.integrations.sohar_port.config import SoharPortConfig
from app.integrations.sohar_port.errors import ERROR_MESSAGES
from app.integrations.sohar_port.transport import SoharPortTransport
from app.integrations.sohar_port.types import (
    CreateGatePassRequest,
    GatePassStatus,
    GatePassType,
    ListGatePassesRequest,
)


def _response(status: int = 200, body=None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.encoding = "utf-8"
    resp.url = "https://sohar.test/api/v1/gate-passes"
    resp._content = json.dumps(body).encode() if body is not None else b""
    return resp


def _make_transport(*outcomes, **cfg):
    session = MagicMock()
    session.request.side_effect = list(outcomes)
    defaults = dict(base_url="https://sohar.test", api_key="test-key", retry_delay_ms=1)
    defaults.update(cfg)
    transport = SoharPortTransport(
        SoharPortConfig(**defaults), AuditLogger(InMemoryAuditSink()), session=session,
    )
    return transport, session


def _make_request(**kwargs) -> CreateGatePassRequest:
    defaults = dict(
        request_number="REQ-2024-001",
        applicant_name="Ahmed Al-Balushi",
        applicant_email="ahmed@example.com",
        passport_id_number="OM1234567",
        purpose_of_visit="Cargo inspection",
        date_of_visit=date(2024, 12, 15),
        request_type=GatePassType.CONTRACTOR,
    )
    defaults.update(kwargs)
    return CreateGatePassRequest(**defaults)


@pytest.fixture(autouse=True)
def _no_sleep():
    with patch("app.integrations.sohar_port.transport.time.sleep"):
        yield


class TestCreateGatePass:

    def test_posts_camel_case_payload_with_timestamp(self):
        transport, session = _make_transport(_response(200, {"referenceId": "SP-100"}))

        send.create_gate_pass(transport, _make_request(extra_fields={"vehiclePlate": "12345 AB"}))

        args, kwargs = session.request.call_args
        assert args == ("POST", "https://sohar.test/api/v1/gate-passes")
        payload = kwargs["json"]
        assert payload["requestNumber"] == "REQ-2024-001"
        assert payload["passportIdNumber"] == "OM1234567"
        assert payload["dateOfVisit"] == "2024-12-15"
        assert payload["requestType"] == "CONTRACTOR"
        assert payload["extraFields"] == {"vehiclePlate": "12345 AB"}
        assert "timestamp" in payload

    def test_extra_fields_omitted_when_absent(self):
        transport, session = _make_transport(_response(200, {"id": "SP-1"}))
        send.create_gate_pass(transport, _make_request())
        assert "extraFields" not in session.request.call_args.kwargs["json"]

    def test_success_result(self):
        transport, _ = _make_transport(
            _response(200, {"referenceId": "SP-100", "qrCode": "https://qr/100.pdf"})
        )
        result = send.create_gate_pass(transport, _make_request())

        assert result.success is True
        assert result.status_code == 200
        assert result.message == "Gate pass created successfully"
        assert result.external_reference == "SP-100"
        assert result.qr_code_pdf_url == "https://qr/100.pdf"

    def test_reference_id_wins_over_id_and_external_reference(self):
        transport, _ = _make_transport(
            _response(200, {"externalReference": "EXT", "id": "ID", "referenceId": "REF"})
        )
        assert send.create_gate_pass(transport, _make_request()).external_reference == "REF"

    def test_id_used_when_reference_id_missing(self):
        transport, _ = _make_transport(_response(200, {"externalReference": "EXT", "id": "ID"}))
        assert send.create_gate_pass(transport, _make_request()).external_reference == "ID"

    def test_audit_entry_carries_the_returned_reference(self):
        sink = InMemoryAuditSink()
        session = MagicMock()
        session.request.return_value = _response(
            200, {"externalReference": "EXT", "referenceId": "REF"}
        )
        transport = SoharPortTransport(
            SoharPortConfig(base_url="https://sohar.test", api_key="test-key"),
            AuditLogger(sink),
            session=session,
        )

        result = send.create_gate_pass(transport, _make_request())

        assert result.external_reference == "REF"
        assert [e.external_reference for e in sink.entries] == ["REF"]

    def test_unexpected_session_error_becomes_failed_result(self):
        transport, session = _make_transport(*[ValueError("Timeout cannot be 0")] * 3)

        result = send.create_gate_pass(transport, _make_request())

        assert session.request.call_count == 3
        assert result.success is False
        assert result.status_code == 500
        assert result.error == "UNKNOWN_ERROR"

    def test_server_error_is_retried_then_reported(self):
        transport, session = _make_transport(_response(500), _response(500), _response(500))

        result = send.create_gate_pass(transport, _make_request())

        assert session.request.call_count == 3
        assert result.success is False
        assert result.status_code == 500
        assert result.error == "UNKNOWN_ERROR"
        assert result.external_reference is None

    def test_validation_failure_is_not_retried(self):
        transport, session = _make_transport(_response(400, {"message": "Invalid passport"}))

        result = send.create_gate_pass(transport, _make_request())

        assert session.request.call_count == 1
        assert result.success is False
        assert result.status_code == 400
        assert result.message == "Invalid passport"
        assert result.error == "VALIDATION_ERROR"

    def test_network_failure_reports_500(self):
        transport, _ = _make_transport(*[requests.ConnectionError("refused")] * 3)

        result = send.create_gate_pass(transport, _make_request())

        assert result.status_code == 500
        assert result.error == "NETWORK_ERROR"
        assert result.message == ERROR_MESSAGES["NETWORK_ERROR"]


class TestCancelGatePass:

    def test_sends_delete_with_reason(self):
        transport, session = _make_transport(_response(200, {"message": "Cancelled"}))

        result = send.cancel_gate_pass(transport, "SP-100", "Visit postponed")

        args, kwargs = session.request.call_args
        assert args == ("DELETE", "https://sohar.test/api/v1/gate-passes/SP-100")
        assert kwargs["json"]["reason"] == "Visit postponed"
        assert result.success is True
        assert result.message == "Cancelled"
        assert result.external_reference == "SP-100"

    def test_not_found(self):
        transport, _ = _make_transport(_response(404))
        result = send.cancel_gate_pass(transport, "SP-404", "x")
        assert result.success is False
        assert result.status_code == 404
        assert result.error == "NOT_FOUND"
        assert result.external_reference == "SP-404"


class TestGetGatePass:

    def test_parses_gate_pass_data(self):
        body = {
            "externalReference": "SP-1",
            "referenceId": "OTHER",
            "status": "ACTIVE",
            "requestNumber": "REQ-1",
            "requestType": "VISITOR",
            "dateOfVisit": "2024-12-15",
            "qrCodePdfUrl": "https://qr/1.pdf",
        }
        transport, session = _make_transport(_response(200, body))

        result = receive.get_gate_pass(transport, "SP-1")

        assert session.request.call_args.args[1].endswith("/api/v1/gate-passes/SP-1")
        assert result.success is True
        assert result.data.external_reference == "SP-1"
        assert result.data.status is GatePassStatus.ACTIVE
        assert result.data.request_type is GatePassType.VISITOR
        assert result.data.qr_code_pdf_url == "https://qr/1.pdf"

    def test_unknown_status_value_passes_through(self):
        transport, _ = _make_transport(_response(200, {"id": "SP-1", "status": "SUSPENDED"}))
        assert receive.get_gate_pass(transport, "SP-1").data.status == "SUSPENDED"

    def test_not_found_is_404_result(self):
        transport, session = _make_transport(_response(404, {"message": "nope"}))

        result = receive.get_gate_pass(transport, "SP-missing")

        assert session.request.call_count == 1
        assert result.success is False
        assert result.status_code == 404
        assert result.message == ERROR_MESSAGES["NOT_FOUND"]
        assert result.error == "NOT_FOUND"
        assert result.data is None

    def test_reads_are_not_retried(self):
        transport, session = _make_transport(_response(503), _response(200, {"id": "SP-1"}))

        result = receive.get_gate_pass(transport, "SP-1")

        assert session.request.call_count == 1
        assert result.success is False
        assert result.status_code == 503

    @pytest.mark.parametrize("body", [[{"id": "SP-1"}], "ok", 42, None])
    def test_body_that_is_not_an_object_is_a_failed_result(self, body):
        resp = _response(200, body)
        if body is None:
            resp._content = b"null"
        transport, _ = _make_transport(resp)

        result = receive.get_gate_pass(transport, "SP-1")

        assert result.success is False
        assert result.status_code == 502
        assert result.error == "UNKNOWN_ERROR"
        assert result.message == ERROR_MESSAGES["MALFORMED_RESPONSE"]
        assert result.data is None


class TestListGatePasses:

    def test_only_non_empty_filters_are_sent(self):
        transport, session = _make_transport(_response(200, {"data": []}))

        receive.list_gate_passes(
            transport,
            ListGatePassesRequest(status=GatePassStatus.ACTIVE, search_query="doe", page=2, limit=0),
        )

        assert session.request.call_args.kwargs["params"] == {
            "status": "ACTIVE", "search": "doe", "page": 2,
        }

    def test_uses_server_pagination_when_present(self):
        body = {
            "data": [{"externalReference": "SP-1"}, {"externalReference": "SP-2"}],
            "pagination": {"page": 3, "limit": 2, "total": 10, "totalPages": 5},
        }
        transport, _ = _make_transport(_response(200, body))

        result = receive.list_gate_passes(transport)

        assert [item.external_reference for item in result.data] == ["SP-1", "SP-2"]
        assert result.pagination.to_dict() == {"page": 3, "limit": 2, "total": 10, "totalPages": 5}

    def test_derives_pagination_from_total(self):
        transport, _ = _make_transport(_response(200, {"data": [{"id": "SP-1"}], "total": 45}))

        result = receive.list_gate_passes(transport, ListGatePassesRequest(page=2))

        assert result.pagination.page == 2
        assert result.pagination.limit == 20
        assert result.pagination.total == 45
        assert result.pagination.total_pages == 3

    def test_bare_list_body(self):
        transport, _ = _make_transport(_response(200, [{"id": "SP-1"}, {"id": "SP-2"}]))

        result = receive.list_gate_passes(transport)

        assert len(result.data) == 2
        assert result.pagination.total == 2
        assert result.pagination.total_pages == 1

    def test_failure_returns_empty_list(self):
        transport, _ = _make_transport(_response(401))
        result = receive.list_gate_passes(transport)
        assert result.success is False
        assert result.error == "AUTH_ERROR"
        assert result.data == []
        assert result.pagination is None

    @pytest.mark.parametrize("body", [
        "ok",
        {"data": "SP-1"},
        {"data": [{"id": "SP-1"}, "SP-2"]},
        [{"id": "SP-1"}, 7],
    ])
    def test_malformed_body_is_a_failed_result(self, body):
        transport, _ = _make_transport(_response(200, body))

        result = receive.list_gate_passes(transport)

        assert result.success is False
        assert result.status_code == 502
        assert result.error == "UNKNOWN_ERROR"
        assert result.message == ERROR_MESSAGES["MALFORMED_RESPONSE"]
        assert result.data == []

    def test_non_numeric_total_falls_back_to_item_count(self):
        transport, _ = _make_transport(_response(200, {"data": [{"id": "SP-1"}], "total": "many"}))

        result = receive.list_gate_passes(transport)

        assert result.success is True
        assert result.pagination.total == 1
        assert result.pagination.total_pages == 1

    def test_non_numeric_server_pagination_uses_request_values(self):
        body = {
            "data": [{"id": "SP-1"}],
            "pagination": {"page": "two", "limit": None, "total": "x", "totalPages": []},
        }
        transport, _ = _make_transport(_response(200, body))

        result = receive.list_gate_passes(transport, ListGatePassesRequest(page=2, limit=10))

        assert result.success is True
        assert result.pagination.to_dict() == {"page": 2, "limit": 10, "total": 0, "totalPages": 0}


class TestGetGatePassStatus:

    def test_status_and_validity(self):
        body = {"status": "EXPIRED", "validFrom": "2024-01-01", "validUntil": "2024-01-31"}
        transport, session = _make_transport(_response(200, body))

        result = receive.get_gate_pass_status(transport, "SP-1")

        assert session.request.call_args.args[1].endswith("/gate-passes/SP-1/status")
        assert result.success is True
        assert result.status is GatePassStatus.EXPIRED
        assert result.valid_until == "2024-01-31"
        assert result.external_reference == "SP-1"

    def test_not_found(self):
        transport, _ = _make_transport(_response(404))
        result = receive.get_gate_pass_status(transport, "SP-404")
        assert result.status_code == 404
        assert result.error == "NOT_FOUND"
        assert result.external_reference == "SP-404"

    @pytest.mark.parametrize("body", [["ACTIVE"], "ACTIVE", 3.5])
    def test_body_that_is_not_an_object_is_a_failed_result(self, body):
        transport, _ = _make_transport(_response(200, body))

        result = receive.get_gate_pass_status(transport, "SP-1")

        assert result.success is False
        assert result.status_code == 502
        assert result.error == "UNKNOWN_ERROR"
        assert result.external_reference == "SP-1"
        assert result.status is None

"""
In-memory stand-in for the Sohar Port gate-pass API.

MockOperations implements the same operations as the real send/receive
modules and returns the same result shapes; only latency and content differ.
State lives in a MockGatePassStore owned by one client instance, so two
clients (or two tests) never see each other's passes.

Mock create always succeeds; unknown references give 404 results.
"""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from app.integrations.sohar_port.audit import AuditLogger
from app.integrations.sohar_port.config import get_endpoint_url
from app.integrations.sohar_port.transport import Deadline
from app.integrations.sohar_port.types import (
    CancelGatePassResponse,
    CreateGatePassRequest,
    CreateGatePassResponse,
    GatePassData,
    GatePassStatus,
    GatePassStatusResponse,
    GatePassType,
    GetGatePassResponse,
    ListGatePassesRequest,
    ListGatePassesResponse,
    PaginationMeta,
    enum_value,
    iso_value,
)

logger = logging.getLogger(__name__)

DEFAULT_LATENCY = (0.5, 1.0)   # seconds, uniform
_VALIDITY_DAYS = 30
_QR_URL_TEMPLATE = "https://soharport.com/qr-codes/{request_number}.pdf"

_DEMO_REQUESTS = (
    CreateGatePassRequest(
        request_number="GP-001",
        applicant_name="John Doe",
        applicant_email="john@example.com",
        passport_id_number="AB123456",
        purpose_of_visit="Business Meeting",
        date_of_visit="2024-12-15",
        request_type=GatePassType.VISITOR,
    ),
    CreateGatePassRequest(
        request_number="GP-002",
        applicant_name="Jane Smith",
        applicant_email="jane@example.com",
        passport_id_number="CD789012",
        purpose_of_visit="Site Inspection",
        date_of_visit="2024-12-20",
        request_type=GatePassType.CONTRACTOR,
    ),
)


def generate_mock_reference() -> str:
    """`SP-<epoch ms>-<9 random hex chars>`; unique per process on a best-effort basis."""
    return f"SP-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class MockGatePassStore:
    """Lock-guarded map of external reference → GatePassData (insertion ordered)."""

    def __init__(self) -> None:
        self._passes: dict[str, GatePassData] = {}
        self._lock = threading.Lock()

    def put(self, data: GatePassData) -> None:
        with self._lock:
            self._passes[data.external_reference] = data

    def get(self, external_reference: str) -> GatePassData | None:
        with self._lock:
            return self._passes.get(external_reference)

    def values(self) -> list[GatePassData]:
        with self._lock:
            return list(self._passes.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._passes)

    def clear(self) -> None:
        with self._lock:
            self._passes.clear()


def _visit_day(value: str | None) -> str:
    return (value or "")[:10]


def _matches(data: GatePassData, request: ListGatePassesRequest) -> bool:
    if request.status and enum_value(data.status) != enum_value(request.status):
        return False
    if request.request_type and enum_value(data.request_type) != enum_value(request.request_type):
        return False
    if request.date_from and _visit_day(data.date_of_visit) < str(iso_value(request.date_from))[:10]:
        return False
    if request.date_to and _visit_day(data.date_of_visit) > str(iso_value(request.date_to))[:10]:
        return False
    if request.search_query:
        query = request.search_query.lower()
        haystack = (data.request_number, data.applicant_name, data.passport_id_number)
        if not any(query in (value or "").lower() for value in haystack):
            return False
    return True


class MockOperations:
    """Mock counterpart of RealOperations; see client.GatePassOperations."""

    def __init__(
        self,
        store: MockGatePassStore,
        audit_logger: AuditLogger,
        *,
        api_version: str = "v1",
        latency: float | tuple[float, float] | None = DEFAULT_LATENCY,
    ) -> None:
        self.store = store
        self._audit = audit_logger
        self._api_version = api_version
        self._latency = latency

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _simulate_latency(self) -> None:
        if not self._latency:
            return
        if isinstance(self._latency, tuple):
            time.sleep(random.uniform(*self._latency))
        else:
            time.sleep(self._latency)

    def _record(self, method: str, endpoint: str, status_code: int, t0: float, **kwargs) -> None:
        self._audit.record(
            operation=f"{method} {endpoint} (mock)",
            status_code=status_code,
            duration_ms=int((time.perf_counter() - t0) * 1000),
            **kwargs,
        )

    def _store_request(self, request: CreateGatePassRequest) -> GatePassData:
        now = datetime.now(timezone.utc)
        data = GatePassData(
            external_reference=generate_mock_reference(),
            status=GatePassStatus.ACTIVE,
            request_number=request.request_number,
            applicant_name=request.applicant_name,
            applicant_email=request.applicant_email,
            passport_id_number=request.passport_id_number,
            purpose_of_visit=request.purpose_of_visit,
            date_of_visit=request.date_of_visit.isoformat(),
            request_type=request.request_type,
            qr_code_pdf_url=_QR_URL_TEMPLATE.format(request_number=request.request_number),
            valid_from=now.isoformat(),
            valid_until=(now + timedelta(days=_VALIDITY_DAYS)).isoformat(),
            created_at=now.isoformat(),
            updated_at=now.isoformat(),
            metadata=dict(request.extra_fields) if request.extra_fields else None,
        )
        self.store.put(data)
        return data

    # ── Send ─────────────────────────────────────────────────────────────────

    def create_gate_pass(
        self,
        request: CreateGatePassRequest,
        *,
        deadline: Deadline | None = None,
    ) -> CreateGatePassResponse:
        t0 = time.perf_counter()
        self._simulate_latency()
        data = self._store_request(request)
        self._record(
            "POST", get_endpoint_url(self._api_version, "CREATE_GATE_PASS"), 200, t0,
            external_reference=data.external_reference,
            request_data=request.to_payload(),
            response_data=data.to_dict(),
        )
        logger.info("Created mock gate pass: %s", data.external_reference)
        return CreateGatePassResponse(
            success=True,
            status_code=200,
            message="Gate pass created successfully (MOCK)",
            external_reference=data.external_reference,
            qr_code_pdf_url=data.qr_code_pdf_url,
        )

    def cancel_gate_pass(
        self,
        external_reference: str,
        reason: str,
        *,
        deadline: Deadline | None = None,
    ) -> CancelGatePassResponse:
        t0 = time.perf_counter()
        self._simulate_latency()
        endpoint = get_endpoint_url(self._api_version, "CANCEL_GATE_PASS", {"ref": external_reference})
        existing = self.store.get(external_reference)
        if existing is None:
            self._record("DELETE", endpoint, 404, t0, error="Gate pass not found (MOCK)",
                         request_data={"reason": reason})
            return CancelGatePassResponse(
                success=False,
                status_code=404,
                message="Gate pass not found (MOCK)",
                error="NOT_FOUND",
                external_reference=external_reference,
            )

        metadata = dict(existing.metadata or {})
        metadata["cancellationReason"] = reason
        self.store.put(replace(
            existing,
            status=GatePassStatus.CANCELLED,
            updated_at=datetime.now(timezone.utc).isoformat(),
            metadata=metadata,
        ))
        self._record("DELETE", endpoint, 200, t0, external_reference=external_reference,
                     request_data={"reason": reason})
        return CancelGatePassResponse(
            success=True,
            status_code=200,
            message="Gate pass cancelled successfully (MOCK)",
            external_reference=external_reference,
        )

    # ── Receive ──────────────────────────────────────────────────────────────

    def get_gate_pass(self, external_reference: str) -> GetGatePassResponse:
        t0 = time.perf_counter()
        self._simulate_latency()
        endpoint = get_endpoint_url(self._api_version, "GET_GATE_PASS", {"ref": external_reference})
        data = self.store.get(external_reference)
        if data is None:
            self._record("GET", endpoint, 404, t0, error="Gate pass not found (MOCK)")
            return GetGatePassResponse(
                success=False,
                status_code=404,
                message="Gate pass not found (MOCK)",
                error="NOT_FOUND",
            )
        self._record("GET", endpoint, 200, t0, external_reference=external_reference,
                     response_data=data.to_dict())
        return GetGatePassResponse(
            success=True,
            status_code=200,
            message="Gate pass retrieved successfully (MOCK)",
            data=data,
        )

    def list_gate_passes(self, request: ListGatePassesRequest | None = None) -> ListGatePassesResponse:
        t0 = time.perf_counter()
        request = request or ListGatePassesRequest()
        self._simulate_latency()

        matching = [data for data in self.store.values() if _matches(data, request)]
        page, limit = request.effective_page, request.effective_limit
        start = (page - 1) * limit
        page_items = matching[start:start + limit]

        self._record(
            "GET", get_endpoint_url(self._api_version, "LIST_GATE_PASSES"), 200, t0,
            request_data=request.to_query_params(),
            response_data={"count": len(page_items), "total": len(matching)},
        )
        logger.info("Retrieved %d mock gate passes", len(page_items))
        return ListGatePassesResponse(
            success=True,
            status_code=200,
            message="Gate passes retrieved successfully (MOCK)",
            data=page_items,
            pagination=PaginationMeta.from_counts(page, limit, len(matching)),
        )

    def get_gate_pass_status(self, external_reference: str) -> GatePassStatusResponse:
        t0 = time.perf_counter()
        self._simulate_latency()
        endpoint = get_endpoint_url(self._api_version, "GET_STATUS", {"ref": external_reference})
        data = self.store.get(external_reference)
        if data is None:
            self._record("GET", endpoint, 404, t0, error="Gate pass not found (MOCK)")
            return GatePassStatusResponse(
                success=False,
                status_code=404,
                message="Gate pass not found (MOCK)",
                error="NOT_FOUND",
                external_reference=external_reference,
            )
        self._record("GET", endpoint, 200, t0, external_reference=external_reference)
        return GatePassStatusResponse(
            success=True,
            status_code=200,
            message="Gate pass status retrieved successfully (MOCK)",
            external_reference=external_reference,
            status=data.status,
            valid_from=data.valid_from,
            valid_until=data.valid_until,
        )

    # ── Seeding ──────────────────────────────────────────────────────────────

    def seed(self, gate_pass_requests: Iterable[CreateGatePassRequest] | None = None) -> list[GatePassData]:
        """Insert passes directly (no latency, no audit). Defaults to two demo passes."""
        if gate_pass_requests is None:
            gate_pass_requests = _DEMO_REQUESTS
        seeded = [self._store_request(req) for req in gate_pass_requests]
        logger.info("Mock data seeded: %d gate passes", len(seeded))
        return seeded

"""
Gate Pass Service: approval flow and Sohar Port result persistence.

Business logic:
  - Approve a PENDING request: apply last-minute edits, submit it to
    Sohar Port, and only mark it APPROVED when the gateway succeeded.
  - Persist the integration outcome (external reference, status code,
    message) on the request row.
  - Write ActivityLog rows for every gateway call (via ActivityLogAuditSink)
    and for the approval itself.

All outbound HTTP: delegated to `app.integrations.sohar_port.SoharPortClient`.
Direct `requests` usage is FORBIDDEN in this module.

Transactions: helpers flush; the public functions commit.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from flask import current_app
from sqlalchemy import select

from app.core.exceptions import NotFoundError, ValidationError
from app.integrations.sohar_port import (
    AuditLogEntry,
    AuditSink,
    CreateGatePassRequest,
    GatePassType,
    SoharPortClient,
)
from app.integrations.sohar_port.types import CreateGatePassResponse
from app.models import db
from app.models.audit import write_activity
from app.models.gate_pass import GatePassRequest

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "sohar_port_client"

# Internal request type → Sohar Port contract value. Unmapped types are rejected.
_REQUEST_TYPE_MAP: dict[str, GatePassType] = {
    "VISITOR": GatePassType.VISITOR,
    "CONTRACTOR": GatePassType.CONTRACTOR,
    "EMPLOYEE": GatePassType.EMPLOYEE,
    "VEHICLE": GatePassType.VEHICLE,
}


# ═════════════════════════════════════════════════════════════════════════════
# Audit sink
# ═════════════════════════════════════════════════════════════════════════════


class ActivityLogAuditSink(AuditSink):
    """Writes each Sohar Port audit entry as a SYSTEM_INTEGRATION activity row.

    Flushes only; the surrounding service call owns the commit. Must be used
    inside an application context.
    """

    def create_entry(self, entry: AuditLogEntry) -> None:
        write_activity(
            action_type="SYSTEM_INTEGRATION",
            action_performed=f"Sohar Port API: {entry.operation}",
            affected_entity_type="GATE_PASS" if entry.external_reference else None,
            affected_entity_id=entry.external_reference,
            details=entry.to_dict(),
        )


# ═════════════════════════════════════════════════════════════════════════════
# Client wiring
# ═════════════════════════════════════════════════════════════════════════════


def get_client() -> SoharPortClient:
    """Return the app-scoped SoharPortClient, building it on first use.

    One client per app keeps the mock store alive across requests in mock
    mode. Config errors surface here, on first use, not at import time.
    """
    client = current_app.extensions.get(_EXTENSION_KEY)
    if client is None:
        client = SoharPortClient(
            current_app.config.get("SOHAR_PORT_OVERRIDES") or {},
            audit_sink=ActivityLogAuditSink(),
            mock_latency=current_app.config.get("SOHAR_PORT_MOCK_LATENCY"),
        )
        current_app.extensions[_EXTENSION_KEY] = client
    return client


# ═════════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═════════════════════════════════════════════════════════════════════════════


def _get_request(request_id: int) -> GatePassRequest:
    req = db.session.execute(
        select(GatePassRequest).where(GatePassRequest.id == request_id)
    ).scalar_one_or_none()
    if req is None:
        raise NotFoundError(resource="GatePassRequest", resource_id=request_id)
    return req


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("Invalid date_of_visit", details={"date_of_visit": str(value)}) from None


def _apply_updates(req: GatePassRequest, updates: dict) -> list[str]:
    """Apply admin edits made at approval time. Returns the changed field names."""
    changed = []
    if updates.get("applicant_name"):
        req.applicant_name = updates["applicant_name"].strip()
        changed.append("applicant_name")
    if updates.get("applicant_email"):
        req.applicant_email = updates["applicant_email"].strip().lower()
        changed.append("applicant_email")
    if updates.get("passport_id_number"):
        req.passport_id_number = updates["passport_id_number"].strip().upper()
        changed.append("passport_id_number")
    if updates.get("purpose_of_visit"):
        req.purpose_of_visit = updates["purpose_of_visit"].strip()
        changed.append("purpose_of_visit")
    if updates.get("date_of_visit"):
        req.date_of_visit = _parse_date(updates["date_of_visit"])
        changed.append("date_of_visit")
    if updates.get("request_type"):
        req.request_type = str(updates["request_type"]).upper()
        changed.append("request_type")
    if updates.get("extra_fields"):
        req.extra_fields = updates["extra_fields"]
        changed.append("extra_fields")
    if changed:
        db.session.flush()
    return changed


def to_gate_pass_type(request_type: str) -> GatePassType:
    """Map an internal request type onto the Sohar Port contract value."""
    try:
        return _REQUEST_TYPE_MAP[request_type]
    except KeyError:
        raise ValidationError(
            f"Request type {request_type!r} has no Sohar Port equivalent",
            details={"request_type": request_type},
        ) from None


def build_create_request(req: GatePassRequest) -> CreateGatePassRequest:
    """Build the outbound payload from the fields the gateway consumes."""
    return CreateGatePassRequest(
        request_number=req.request_number,
        applicant_name=req.applicant_name,
        applicant_email=req.applicant_email,
        passport_id_number=req.passport_id_number,
        purpose_of_visit=req.purpose_of_visit,
        date_of_visit=req.date_of_visit,
        request_type=to_gate_pass_type(req.request_type),
        extra_fields=req.extra_fields,
    )


def _integration_dict(result: CreateGatePassResponse) -> dict:
    return {
        "success": result.success,
        "status_code": result.status_code,
        "message": result.message,
        "error": result.error,
        "external_reference": result.external_reference,
        "qr_code_pdf_url": result.qr_code_pdf_url,
    }


# ═════════════════════════════════════════════════════════════════════════════
# Public API
# ═════════════════════════════════════════════════════════════════════════════


def approve_request(
    request_id: int,
    *,
    approved_by_id: int | None = None,
    updates: dict | None = None,
    client: SoharPortClient | None = None,
) -> dict:
    """Submit a PENDING request to Sohar Port and approve it on success.

    Returns:
        {"ok": True, "request": {...}, "integration": {...}} on success.
        {"ok": False, "request": {...}, "integration": {...}} when the gateway
        call failed; the request stays PENDING so it can be retried.

    Raises:
        NotFoundError: No request with this id.
        ValidationError: Request is not PENDING, or has an unmappable type
                         or invalid date in *updates*.
    """
    req = _get_request(request_id)
    if req.status != "PENDING":
        raise ValidationError(
            "Only pending requests can be approved",
            details={"status": req.status},
        )

    if updates:
        changed = _apply_updates(req, updates)
        if changed:
            logger.info("Applied approval-time edits request=%s fields=%s", req.request_number, changed)

    outbound = build_create_request(req)
    client = client or get_client()
    logger.info(
        "Submitting request %s to Sohar Port mode=%s",
        req.request_number, "MOCK" if client.is_mock_mode() else "REAL",
    )
    result = client.send.create_gate_pass(outbound)

    req.last_integration_status_code = result.status_code
    req.last_integration_status_message = result.message

    if not result.success:
        logger.error(
            "Sohar Port integration failed request=%s status=%s error=%s",
            req.request_number, result.status_code, result.error,
        )
        write_activity(
            action_type="SYSTEM_INTEGRATION",
            action_performed=f"Sohar Port submission failed for request {req.request_number}",
            user_id=approved_by_id,
            affected_entity_type="REQUEST",
            affected_entity_id=req.id,
            details=_integration_dict(result),
        )
        db.session.commit()
        return {"ok": False, "request": req.to_dict(), "integration": _integration_dict(result)}

    req.status = "APPROVED"
    req.approved_by_id = approved_by_id
    req.external_reference = result.external_reference

    write_activity(
        action_type="REQUEST_MANAGEMENT",
        action_performed=f"Approved request {req.request_number}",
        user_id=approved_by_id,
        affected_entity_type="REQUEST",
        affected_entity_id=req.id,
        details={
            "approved_by_id": approved_by_id,
            "external_reference": result.external_reference,
            "status_code": result.status_code,
        },
    )
    db.session.commit()
    logger.info(
        "Request %s approved external_reference=%s",
        req.request_number, result.external_reference,
    )
    return {"ok": True, "request": req.to_dict(), "integration": _integration_dict(result)}


def refresh_external_status(request_id: int, *, client: SoharPortClient | None = None) -> dict:
    """Read the current Sohar Port status of an approved request.

    Read-only towards the request row; the status lookup itself is audited.

    Raises:
        NotFoundError: No request with this id.
        ValidationError: Request has no external reference yet.
    """
    req = _get_request(request_id)
    if not req.external_reference:
        raise ValidationError(
            "Request has not been submitted to Sohar Port",
            details={"status": req.status},
        )
    client = client or get_client()
    result = client.receive.get_gate_pass_status(req.external_reference)
    db.session.commit()
    return {"ok": result.success, "request_id": req.id, "gate_pass": result.to_dict()}

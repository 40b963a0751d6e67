"""Send operations (outbound to Sohar Port): create and cancel gate passes.

Both are writes and go through request_with_retry(). Neither raises for a
gateway failure; the caller always receives a result object.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.integrations.sohar_port.config import get_endpoint_url
from app.integrations.sohar_port.errors import SoharPortError, failure_fields
from app.integrations.sohar_port.transport import Deadline, SoharPortTransport
from app.integrations.sohar_port.types import (
    CREATE_REFERENCE_FIELDS,
    QR_CODE_FIELDS,
    CancelGatePassResponse,
    CreateGatePassRequest,
    CreateGatePassResponse,
    first_present,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_gate_pass(
    transport: SoharPortTransport,
    request: CreateGatePassRequest,
    *,
    deadline: Deadline | None = None,
) -> CreateGatePassResponse:
    """POST a new gate pass and return the external reference it was given."""
    logger.info("Creating Sohar Port gate pass for %s", request.request_number)
    endpoint = get_endpoint_url(transport.config.api_version, "CREATE_GATE_PASS")
    payload = {**request.to_payload(), "timestamp": _now_iso()}

    try:
        body = transport.request_with_retry(
            "POST", endpoint,
            data=payload,
            deadline=deadline,
            reference_fields=CREATE_REFERENCE_FIELDS,
        )
    except SoharPortError as exc:
        logger.error("Sohar Port createGatePass failed for %s: %r", request.request_number, exc)
        return CreateGatePassResponse(**failure_fields(exc, "Failed to create gate pass"))

    result = CreateGatePassResponse(
        success=True,
        status_code=200,
        message=(body.get("message") if isinstance(body, dict) else None)
        or "Gate pass created successfully",
        external_reference=first_present(body, CREATE_REFERENCE_FIELDS),
        qr_code_pdf_url=first_present(body, QR_CODE_FIELDS),
    )
    if not result.external_reference:
        logger.warning(
            "Sohar Port accepted %s but returned no identifier field", request.request_number
        )
    logger.info("Sohar Port gate pass created: %s", result.external_reference)
    return result


def cancel_gate_pass(
    transport: SoharPortTransport,
    external_reference: str,
    reason: str,
    *,
    deadline: Deadline | None = None,
) -> CancelGatePassResponse:
    """Cancel an existing gate pass in the Sohar Port system."""
    logger.info("Cancelling Sohar Port gate pass %s", external_reference)
    endpoint = get_endpoint_url(
        transport.config.api_version, "CANCEL_GATE_PASS", {"ref": external_reference}
    )
    try:
        body = transport.request_with_retry(
            "DELETE", endpoint,
            data={"reason": reason, "timestamp": _now_iso()},
            deadline=deadline,
        )
    except SoharPortError as exc:
        logger.error("Sohar Port cancelGatePass failed for %s: %r", external_reference, exc)
        return CancelGatePassResponse(
            **failure_fields(exc, "Failed to cancel gate pass"),
            external_reference=external_reference,
        )

    return CancelGatePassResponse(
        success=True,
        status_code=200,
        message=(body.get("message") if isinstance(body, dict) else None)
        or "Gate pass cancelled successfully",
        external_reference=external_reference,
    )

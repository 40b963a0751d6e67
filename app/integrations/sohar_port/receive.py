"""Receive operations (inbound from Sohar Port): get, list, status.

Reads are single-attempt (transport.request); a failed read is cheap for
the caller to repeat and is never retried behind its back.

A 2xx body that does not have the documented shape is reported as a failed
result (status 502, UNKNOWN_ERROR), never as an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.integrations.sohar_port.config import get_endpoint_url
from app.integrations.sohar_port.errors import (
    ERROR_MESSAGES,
    ErrorKind,
    SoharPortError,
    failure_fields,
    malformed_body_error,
)
from app.integrations.sohar_port.transport import SoharPortTransport
from app.integrations.sohar_port.types import (
    GatePassData,
    GatePassStatus,
    GatePassStatusResponse,
    GetGatePassResponse,
    ListGatePassesRequest,
    ListGatePassesResponse,
    PaginationMeta,
    as_int,
    coerce_enum,
)

logger = logging.getLogger(__name__)


def _not_found_fields(exc: SoharPortError) -> dict:
    return {
        "success": False,
        "status_code": 404,
        "message": ERROR_MESSAGES["NOT_FOUND"],
        "error": exc.error_code,
    }


def _expect_mapping(body: Any) -> Mapping:
    if not isinstance(body, Mapping):
        raise malformed_body_error(body)
    return body


def _split_list_body(body: Any) -> tuple[list[Mapping], Mapping]:
    """Return (raw items, envelope) for a bare list or a `{"data": [...]}` body."""
    if isinstance(body, list):
        raw_items, envelope = body, {}
    else:
        envelope = _expect_mapping(body)
        raw_items = envelope.get("data") or []
    if not isinstance(raw_items, list) or not all(isinstance(i, Mapping) for i in raw_items):
        raise malformed_body_error(raw_items)
    return raw_items, envelope


def get_gate_pass(transport: SoharPortTransport, external_reference: str) -> GetGatePassResponse:
    """Fetch one gate pass by its external reference."""
    logger.info("Fetching Sohar Port gate pass %s", external_reference)
    endpoint = get_endpoint_url(
        transport.config.api_version, "GET_GATE_PASS", {"ref": external_reference}
    )
    try:
        body = _expect_mapping(transport.request("GET", endpoint))
    except SoharPortError as exc:
        match exc.kind:
            case ErrorKind.NOT_FOUND:
                logger.info("Sohar Port gate pass %s not found", external_reference)
                return GetGatePassResponse(**_not_found_fields(exc))
            case _:
                logger.error("Sohar Port getGatePass failed for %s: %r", external_reference, exc)
                return GetGatePassResponse(**failure_fields(exc, "Failed to retrieve gate pass"))

    data = GatePassData.from_api(body)
    logger.info("Sohar Port gate pass retrieved: %s", data.external_reference)
    return GetGatePassResponse(
        success=True,
        status_code=200,
        message="Gate pass retrieved successfully",
        data=data,
    )


def list_gate_passes(
    transport: SoharPortTransport,
    request: ListGatePassesRequest | None = None,
) -> ListGatePassesResponse:
    """List gate passes with optional filters and pagination."""
    request = request or ListGatePassesRequest()
    params = request.to_query_params()
    logger.info("Listing Sohar Port gate passes filters=%s", params)
    endpoint = get_endpoint_url(transport.config.api_version, "LIST_GATE_PASSES")
    try:
        raw_items, envelope = _split_list_body(
            transport.request("GET", endpoint, params=params)
        )
    except SoharPortError as exc:
        logger.error("Sohar Port listGatePasses failed: %r", exc)
        return ListGatePassesResponse(**failure_fields(exc, "Failed to list gate passes"))

    items = [GatePassData.from_api(item) for item in raw_items]

    page, limit = request.effective_page, request.effective_limit
    if isinstance(envelope.get("pagination"), Mapping):
        pagination = PaginationMeta.from_api(envelope["pagination"], page, limit)
    else:
        pagination = PaginationMeta.from_counts(
            page, limit, as_int(envelope.get("total"), len(items))
        )

    logger.info("Sohar Port returned %d gate passes", len(items))
    return ListGatePassesResponse(
        success=True,
        status_code=200,
        message="Gate passes retrieved successfully",
        data=items,
        pagination=pagination,
    )


def get_gate_pass_status(
    transport: SoharPortTransport,
    external_reference: str,
) -> GatePassStatusResponse:
    """Fetch only the lifecycle status and validity window of a gate pass."""
    endpoint = get_endpoint_url(
        transport.config.api_version, "GET_STATUS", {"ref": external_reference}
    )
    try:
        body = _expect_mapping(transport.request("GET", endpoint))
    except SoharPortError as exc:
        match exc.kind:
            case ErrorKind.NOT_FOUND:
                fields = _not_found_fields(exc)
            case _:
                logger.error("Sohar Port getStatus failed for %s: %r", external_reference, exc)
                fields = failure_fields(exc, "Failed to retrieve gate pass status")
        return GatePassStatusResponse(**fields, external_reference=external_reference)

    return GatePassStatusResponse(
        success=True,
        status_code=200,
        message="Gate pass status retrieved successfully",
        external_reference=external_reference,
        status=coerce_enum(GatePassStatus, body.get("status")),
        valid_from=body.get("validFrom"),
        valid_until=body.get("validUntil"),
    )

"""
Sohar Port value objects.

Python attributes are snake_case; the external API speaks camelCase.
`to_payload()` / `to_dict()` render the wire shape, `from_api()` parses it.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20

# Identifier field priority when the external API is ambiguous.
# Create responses historically return `referenceId`; pass records use
# `externalReference`. `id` is the generic fallback for both.
CREATE_REFERENCE_FIELDS = ("referenceId", "id", "externalReference")
DATA_REFERENCE_FIELDS = ("externalReference", "referenceId", "id")
QR_CODE_FIELDS = ("qrCodePdfUrl", "qrCode")


class GatePassStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class GatePassType(str, enum.Enum):
    VISITOR = "VISITOR"
    CONTRACTOR = "CONTRACTOR"
    EMPLOYEE = "EMPLOYEE"
    VEHICLE = "VEHICLE"


def first_present(body: Any, keys: tuple[str, ...]) -> Any:
    """Return the first non-empty value of *keys* in *body*, in priority order."""
    if not isinstance(body, Mapping):
        return None
    for key in keys:
        value = body.get(key)
        if value not in (None, ""):
            return value
    return None


def coerce_enum(enum_cls: type[enum.Enum], value: Any) -> Any:
    """Known values become enum members; unknown ones pass through untouched."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


def enum_value(value: Any) -> Any:
    return value.value if isinstance(value, enum.Enum) else value


def iso_value(value: Any) -> Any:
    return value.isoformat() if isinstance(value, (date, datetime)) else value


def as_int(value: Any, default: int) -> int:
    """Lenient int coercion for counters in API bodies; junk falls back to *default*."""
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _parse_visit_date(value: date | datetime | str) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        # Plain "YYYY-MM-DD" stays a date
        return parsed.date() if len(value) == 10 else parsed
    raise TypeError(f"date_of_visit must be a date, datetime or ISO string, got {type(value).__name__}")


# ── Outbound ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreateGatePassRequest:
    request_number: str
    applicant_name: str
    applicant_email: str
    passport_id_number: str
    purpose_of_visit: str
    date_of_visit: date | datetime
    request_type: GatePassType
    extra_fields: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        # frozen → bypass __setattr__ for normalisation
        object.__setattr__(self, "request_type", GatePassType(enum_value(self.request_type)))
        object.__setattr__(self, "date_of_visit", _parse_visit_date(self.date_of_visit))
        if self.extra_fields is not None:
            object.__setattr__(self, "extra_fields", dict(self.extra_fields))

    def to_payload(self) -> dict:
        payload = {
            "requestNumber": self.request_number,
            "applicantName": self.applicant_name,
            "applicantEmail": self.applicant_email,
            "passportIdNumber": self.passport_id_number,
            "purposeOfVisit": self.purpose_of_visit,
            "dateOfVisit": self.date_of_visit.isoformat(),
            "requestType": self.request_type.value,
        }
        if self.extra_fields:
            payload["extraFields"] = dict(self.extra_fields)
        return payload


# ── Inbound ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GatePassData:
    """The external system's view of one gate pass."""

    external_reference: str
    status: GatePassStatus | str | None
    request_number: str | None
    applicant_name: str | None
    applicant_email: str | None
    passport_id_number: str | None
    purpose_of_visit: str | None
    date_of_visit: str | None
    request_type: GatePassType | str | None
    qr_code_pdf_url: str | None = None
    valid_from: str | None = None
    valid_until: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    metadata: dict | None = None

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "GatePassData":
        return cls(
            external_reference=first_present(raw, DATA_REFERENCE_FIELDS),
            status=coerce_enum(GatePassStatus, raw.get("status")),
            request_number=raw.get("requestNumber"),
            applicant_name=raw.get("applicantName"),
            applicant_email=raw.get("applicantEmail"),
            passport_id_number=raw.get("passportIdNumber"),
            purpose_of_visit=raw.get("purposeOfVisit"),
            date_of_visit=iso_value(raw.get("dateOfVisit")),
            request_type=coerce_enum(GatePassType, raw.get("requestType")),
            qr_code_pdf_url=first_present(raw, QR_CODE_FIELDS),
            valid_from=raw.get("validFrom"),
            valid_until=raw.get("validUntil"),
            created_at=raw.get("createdAt"),
            updated_at=raw.get("updatedAt"),
            metadata=raw.get("metadata"),
        )

    def to_dict(self) -> dict:
        return {
            "externalReference": self.external_reference,
            "status": enum_value(self.status),
            "requestNumber": self.request_number,
            "applicantName": self.applicant_name,
            "applicantEmail": self.applicant_email,
            "passportIdNumber": self.passport_id_number,
            "purposeOfVisit": self.purpose_of_visit,
            "dateOfVisit": self.date_of_visit,
            "requestType": enum_value(self.request_type),
            "qrCodePdfUrl": self.qr_code_pdf_url,
            "validFrom": self.valid_from,
            "validUntil": self.valid_until,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class ListGatePassesRequest:
    status: GatePassStatus | str | None = None
    request_type: GatePassType | str | None = None
    date_from: date | str | None = None
    date_to: date | str | None = None
    page: int | None = None
    limit: int | None = None
    search_query: str | None = None

    @property
    def effective_page(self) -> int:
        return max(self.page or DEFAULT_PAGE, 1)

    @property
    def effective_limit(self) -> int:
        return max(self.limit or DEFAULT_LIMIT, 1)

    def to_query_params(self) -> dict[str, Any]:
        """Only non-empty filters are forwarded; `search_query` goes out as `search`."""
        candidates = {
            "status": enum_value(self.status),
            "requestType": enum_value(self.request_type),
            "dateFrom": iso_value(self.date_from),
            "dateTo": iso_value(self.date_to),
            "page": self.page,
            "limit": self.limit,
            "search": self.search_query,
        }
        return {k: v for k, v in candidates.items() if v not in (None, "", 0)}


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_counts(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)

    @classmethod
    def from_api(cls, raw: Mapping[str, Any], page: int, limit: int) -> "PaginationMeta":
        page = as_int(raw.get("page"), page) or page
        limit = as_int(raw.get("limit"), limit) or limit
        total = as_int(raw.get("total"), 0)
        total_pages = as_int(raw.get("totalPages"), -1)
        if total_pages < 0:
            return cls.from_counts(page, limit, total)
        return cls(page=page, limit=limit, total=total, total_pages=total_pages)

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


# ── Results ──────────────────────────────────────────────────────────────────
# success=True results carry operation data; success=False results carry
# `error` (machine-readable error code). Neither shape ever raises.


@dataclass(frozen=True)
class BaseResponse:
    success: bool
    status_code: int
    message: str
    error: str | None = None

    def to_dict(self) -> dict:
        body = {
            "success": self.success,
            "statusCode": self.status_code,
            "message": self.message,
        }
        if self.error is not None:
            body["error"] = self.error
        return body


@dataclass(frozen=True)
class CreateGatePassResponse(BaseResponse):
    external_reference: str | None = None
    qr_code_pdf_url: str | None = None

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.success:
            body["externalReference"] = self.external_reference
            body["qrCodePdfUrl"] = self.qr_code_pdf_url
        return body


@dataclass(frozen=True)
class CancelGatePassResponse(BaseResponse):
    external_reference: str | None = None

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["externalReference"] = self.external_reference
        return body


@dataclass(frozen=True)
class GetGatePassResponse(BaseResponse):
    data: GatePassData | None = None

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.data is not None:
            body["data"] = self.data.to_dict()
        return body


@dataclass(frozen=True)
class ListGatePassesResponse(BaseResponse):
    data: list[GatePassData] = field(default_factory=list)
    pagination: PaginationMeta | None = None

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.success:
            body["data"] = [item.to_dict() for item in self.data]
            body["pagination"] = self.pagination.to_dict() if self.pagination else None
        return body


@dataclass(frozen=True)
class GatePassStatusResponse(BaseResponse):
    external_reference: str | None = None
    status: GatePassStatus | str | None = None
    valid_from: str | None = None
    valid_until: str | None = None

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["externalReference"] = self.external_reference
        if self.success:
            body["status"] = enum_value(self.status)
            body["validFrom"] = self.valid_from
            body["validUntil"] = self.valid_until
        return body

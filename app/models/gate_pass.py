"""
Sohar Gate Pass Portal
Gate-pass request domain model.

Models:
    - GatePassRequest: an applicant's request for port access, plus the
      columns written back after the Sohar Port integration call.

The internal RequestType / RequestStatus values are this portal's own
vocabulary. They are not the Sohar Port enums; the approval
service maps between them explicitly.
"""

import json
from datetime import UTC, datetime

from app.models import db

# ── Constants ────────────────────────────────────────────────────────────────

REQUEST_TYPES = {"VISITOR", "CONTRACTOR", "EMPLOYEE", "VEHICLE"}
REQUEST_STATUSES = {"PENDING", "APPROVED", "REJECTED"}


def _utcnow():
    return datetime.now(UTC)


class GatePassRequest(db.Model):
    """A gate-pass request awaiting (or past) admin approval."""

    __tablename__ = "gate_pass_requests"
    __table_args__ = (
        db.Index("idx_gpr_status", "status"),
        db.Index("idx_gpr_external_ref", "external_reference"),
    )

    id = db.Column(db.Integer, primary_key=True)
    request_number = db.Column(db.String(40), nullable=False, unique=True)

    applicant_name = db.Column(db.String(200), nullable=False)
    applicant_email = db.Column(db.String(254), nullable=False)
    passport_id_number = db.Column(db.String(50), nullable=False)
    purpose_of_visit = db.Column(db.Text, nullable=False)
    date_of_visit = db.Column(db.Date, nullable=False)
    request_type = db.Column(
        db.String(20), nullable=False, default="VISITOR",
        comment="VISITOR | CONTRACTOR | EMPLOYEE | VEHICLE",
    )
    extra_fields_json = db.Column(db.Text, nullable=True)

    status = db.Column(
        db.String(20), nullable=False, default="PENDING",
        comment="PENDING | APPROVED | REJECTED",
    )
    approved_by_id = db.Column(db.Integer, nullable=True, comment="Admin user id (users table is external)")

    # ── Sohar Port integration ───────────────────────────────────────────
    external_reference = db.Column(
        db.String(100), nullable=True,
        comment="Reference assigned by Sohar Port; never generated locally",
    )
    last_integration_status_code = db.Column(db.Integer, nullable=True)
    last_integration_status_message = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def extra_fields(self) -> dict | None:
        if not self.extra_fields_json:
            return None
        try:
            return json.loads(self.extra_fields_json)
        except (json.JSONDecodeError, TypeError):
            return None

    @extra_fields.setter
    def extra_fields(self, value: dict | None) -> None:
        self.extra_fields_json = json.dumps(value, default=str) if value else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "request_number": self.request_number,
            "applicant_name": self.applicant_name,
            "applicant_email": self.applicant_email,
            "passport_id_number": self.passport_id_number,
            "purpose_of_visit": self.purpose_of_visit,
            "date_of_visit": self.date_of_visit.isoformat() if self.date_of_visit else None,
            "request_type": self.request_type,
            "extra_fields": self.extra_fields,
            "status": self.status,
            "approved_by_id": self.approved_by_id,
            "external_reference": self.external_reference,
            "last_integration_status_code": self.last_integration_status_code,
            "last_integration_status_message": self.last_integration_status_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<GatePassRequest {self.request_number} {self.status}>"

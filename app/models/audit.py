"""
Sohar Gate Pass Portal
Activity log domain model.

Models:
    - ActivityLog: immutable, append-only trail for request management
      actions and Sohar Port integration calls.
"""

import json
from datetime import UTC, datetime

from app.models import db

# ── Constants ────────────────────────────────────────────────────────────────

ACTION_TYPES = {
    "REQUEST_MANAGEMENT",
    "SYSTEM_INTEGRATION",
}

ENTITY_TYPES = {"REQUEST", "GATE_PASS"}


class ActivityLog(db.Model):
    """
    One row per action.  ``details_json`` carries the structured payload
    (integration status code, duration, truncated request/response, …).
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("idx_activity_entity", "affected_entity_type", "affected_entity_id"),
        db.Index("idx_activity_action_type", "action_type"),
        db.Index("idx_activity_ts", "timestamp"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, comment="NULL for system-originated entries")

    action_type = db.Column(
        db.String(30), nullable=False,
        comment="REQUEST_MANAGEMENT | SYSTEM_INTEGRATION",
    )
    action_performed = db.Column(db.String(300), nullable=False)

    # Polymorphic entity reference
    affected_entity_type = db.Column(db.String(30), nullable=True, comment="REQUEST | GATE_PASS")
    affected_entity_id = db.Column(
        db.String(100), nullable=True,
        comment="Internal request id, or Sohar Port external reference",
    )

    details_json = db.Column(db.Text, default="{}")

    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(UTC),
    )

    # ── Helpers ──────────────────────────────────────────────────────────

    @property
    def details(self) -> dict:
        """Deserialise *details_json* to a Python dict."""
        try:
            return json.loads(self.details_json or "{}")
        except (json.JSONDecodeError, TypeError):
            return {}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action_type": self.action_type,
            "action_performed": self.action_performed,
            "affected_entity_type": self.affected_entity_type,
            "affected_entity_id": self.affected_entity_id,
            "details": self.details,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<ActivityLog {self.id}: {self.action_type} {self.action_performed!r}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def write_activity(
    *,
    action_type: str,
    action_performed: str,
    user_id: int | None = None,
    affected_entity_type: str | None = None,
    affected_entity_id: str | int | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """
    Append a single activity row.  Uses ``flush`` so callers keep
    transaction control.

    Returns the (flushed) ActivityLog instance.
    """
    if action_type not in ACTION_TYPES:
        raise ValueError(f"Unknown activity action_type: {action_type!r}")

    log = ActivityLog(
        user_id=user_id,
        action_type=action_type,
        action_performed=action_performed[:300],
        affected_entity_type=affected_entity_type,
        affected_entity_id=str(affected_entity_id) if affected_entity_id is not None else None,
        details_json=json.dumps(details or {}, default=str),
    )
    db.session.add(log)
    db.session.flush()
    return log

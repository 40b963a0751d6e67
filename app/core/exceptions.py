"""
Service-layer exception hierarchy.

Services raise these for business-rule failures; callers map them to
responses once. Gateway failures are NOT represented here: the Sohar Port
client returns structured results instead of raising.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="GatePassRequest", resource_id=42)
    raise ValidationError("Only pending requests can be approved", details={"status": "APPROVED"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "GatePassRequest").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)

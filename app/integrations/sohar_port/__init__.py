"""app.integrations.sohar_port: Sohar Port gate-pass API gateway.

    send     createGatePass, cancelGatePass        (outbound, retried)
    receive  getGatePass, listGatePasses, status   (inbound, single attempt)

Real and mock backends return identical result shapes; see client.py.
"""

from app.integrations.sohar_port.audit import (
    AuditLogEntry,
    AuditLogger,
    AuditSink,
    InMemoryAuditSink,
    LoggingAuditSink,
)
from app.integrations.sohar_port.client import SoharPortClient
from app.integrations.sohar_port.config import SoharPortConfig, resolve_config, validate_config
from app.integrations.sohar_port.errors import (
    SoharPortAuthError,
    SoharPortConfigError,
    SoharPortError,
    SoharPortNetworkError,
    SoharPortNotFoundError,
    SoharPortValidationError,
)
from app.integrations.sohar_port.transport import Deadline
from app.integrations.sohar_port.types import (
    CreateGatePassRequest,
    GatePassData,
    GatePassStatus,
    GatePassType,
    ListGatePassesRequest,
)

__all__ = [
    "AuditLogEntry",
    "AuditLogger",
    "AuditSink",
    "CreateGatePassRequest",
    "Deadline",
    "GatePassData",
    "GatePassStatus",
    "GatePassType",
    "InMemoryAuditSink",
    "ListGatePassesRequest",
    "LoggingAuditSink",
    "SoharPortAuthError",
    "SoharPortClient",
    "SoharPortConfig",
    "SoharPortConfigError",
    "SoharPortError",
    "SoharPortNetworkError",
    "SoharPortNotFoundError",
    "SoharPortValidationError",
    "resolve_config",
    "validate_config",
]

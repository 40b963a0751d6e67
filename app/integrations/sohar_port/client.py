"""
Sohar Port client facade.

SoharPortClient resolves and validates its configuration once, then binds a
single GatePassOperations implementation for its whole lifetime:

    use_mock=False → RealOperations  (shared SoharPortTransport)
    use_mock=True  → MockOperations  (instance-owned MockGatePassStore)

The decision is never re-evaluated per call, and a mock-mode client never
constructs a transport, so it cannot reach the network.

Usage:
    from app.integrations.sohar_port import SoharPortClient, CreateGatePassRequest

    client = SoharPortClient({"use_mock": True})
    result = client.send.create_gate_pass(CreateGatePassRequest(...))
    if result.success:
        ref = result.external_reference
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

import requests

from app.integrations.sohar_port import receive, send
from app.integrations.sohar_port.audit import AuditLogger, AuditSink
from app.integrations.sohar_port.config import SoharPortConfig, resolve_config, validate_config
from app.integrations.sohar_port.mock import DEFAULT_LATENCY, MockGatePassStore, MockOperations
from app.integrations.sohar_port.transport import Deadline, SoharPortTransport
from app.integrations.sohar_port.types import (
    CancelGatePassResponse,
    CreateGatePassRequest,
    CreateGatePassResponse,
    GatePassData,
    GatePassStatusResponse,
    GetGatePassResponse,
    ListGatePassesRequest,
    ListGatePassesResponse,
)

logger = logging.getLogger(__name__)


class GatePassOperations(ABC):
    """Everything the facade can route; implemented by real and mock backends."""

    @abstractmethod
    def create_gate_pass(
        self, request: CreateGatePassRequest, *, deadline: Deadline | None = None
    ) -> CreateGatePassResponse: ...

    @abstractmethod
    def cancel_gate_pass(
        self, external_reference: str, reason: str, *, deadline: Deadline | None = None
    ) -> CancelGatePassResponse: ...

    @abstractmethod
    def get_gate_pass(self, external_reference: str) -> GetGatePassResponse: ...

    @abstractmethod
    def list_gate_passes(
        self, request: ListGatePassesRequest | None = None
    ) -> ListGatePassesResponse: ...

    @abstractmethod
    def get_gate_pass_status(self, external_reference: str) -> GatePassStatusResponse: ...


class RealOperations(GatePassOperations):
    """Routes every operation through the send/receive modules over one transport."""

    def __init__(self, transport: SoharPortTransport) -> None:
        self.transport = transport

    def create_gate_pass(self, request, *, deadline=None):
        return send.create_gate_pass(self.transport, request, deadline=deadline)

    def cancel_gate_pass(self, external_reference, reason, *, deadline=None):
        return send.cancel_gate_pass(self.transport, external_reference, reason, deadline=deadline)

    def get_gate_pass(self, external_reference):
        return receive.get_gate_pass(self.transport, external_reference)

    def list_gate_passes(self, request=None):
        return receive.list_gate_passes(self.transport, request)

    def get_gate_pass_status(self, external_reference):
        return receive.get_gate_pass_status(self.transport, external_reference)


# MockOperations satisfies the same interface structurally; register it so
# isinstance checks against GatePassOperations hold for both backends.
GatePassOperations.register(MockOperations)


@dataclass(frozen=True)
class SendOperations:
    """Outbound-only operations."""

    create_gate_pass: Callable[..., CreateGatePassResponse]
    cancel_gate_pass: Callable[..., CancelGatePassResponse]


@dataclass(frozen=True)
class ReceiveOperations:
    """Inbound-only operations."""

    get_gate_pass: Callable[[str], GetGatePassResponse]
    list_gate_passes: Callable[..., ListGatePassesResponse]
    get_gate_pass_status: Callable[[str], GatePassStatusResponse]


class SoharPortClient:
    """Single entry point for the Sohar Port gate-pass integration.

    Args:
        overrides:    Config field overrides (see SoharPortConfig). Anything
                      not given falls back to SOHAR_PORT_* env vars, then
                      built-in defaults.
        session:      requests.Session to use in real mode (tests inject a fake).
        audit_sink:   Where audit entries go; defaults to the logging sink.
        mock_latency: Simulated latency in mock mode, seconds or (min, max).
                      0 disables it.
        env:          Environment mapping for config resolution (default os.environ).

    Raises:
        SoharPortConfigError: Synchronously, before any network activity, when
                              real mode lacks a base URL or API key.
    """

    def __init__(
        self,
        overrides: Mapping[str, Any] | None = None,
        *,
        session: requests.Session | None = None,
        audit_sink: AuditSink | None = None,
        mock_latency: float | tuple[float, float] | None = DEFAULT_LATENCY,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config: SoharPortConfig = resolve_config(overrides, env=env)
        validate_config(self._config)

        self._audit = AuditLogger(audit_sink)
        self._transport: SoharPortTransport | None = None

        if self._config.use_mock:
            self._operations: GatePassOperations = MockOperations(
                MockGatePassStore(),
                self._audit,
                api_version=self._config.api_version,
                latency=mock_latency,
            )
        else:
            self._transport = SoharPortTransport(self._config, self._audit, session=session)
            self._operations = RealOperations(self._transport)

        self.send = SendOperations(
            create_gate_pass=self._operations.create_gate_pass,
            cancel_gate_pass=self._operations.cancel_gate_pass,
        )
        self.receive = ReceiveOperations(
            get_gate_pass=self._operations.get_gate_pass,
            list_gate_passes=self._operations.list_gate_passes,
            get_gate_pass_status=self._operations.get_gate_pass_status,
        )

        logger.info(
            "Sohar Port client initialized mode=%s config=%s",
            "MOCK" if self._config.use_mock else "REAL",
            self._config.to_log_dict(),
        )

    @property
    def operations(self) -> GatePassOperations:
        return self._operations

    def is_mock_mode(self) -> bool:
        return self._config.use_mock

    def get_config(self) -> SoharPortConfig:
        """Return a copy of the resolved config."""
        return replace(self._config)

    def seed_mock_data(
        self, gate_pass_requests: Iterable[CreateGatePassRequest] | None = None
    ) -> list[GatePassData]:
        """Populate the mock store. Outside mock mode this only logs a warning."""
        if not isinstance(self._operations, MockOperations):
            logger.warning("seed_mock_data() can only be called in mock mode; ignoring")
            return []
        return self._operations.seed(gate_pass_requests)

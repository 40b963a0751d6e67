"""
Audit trail for Sohar Port calls.

One AuditLogEntry is emitted per attempted call, successful or not. Where
the entries end up is decided by the injected AuditSink:

    LoggingAuditSink      default; writes to the `app.integrations.sohar_port.audit` logger
    InMemoryAuditSink     tests; collects entries in a list
    ActivityLogAuditSink  activity_logs table (app.services.gate_pass_service)

Sink failures are swallowed and logged at ERROR level; an audit problem
must never change the outcome of the gateway call that produced it.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_SNIPPET_LIMIT = 1000


def truncate_payload(payload: Any, limit: int = _SNIPPET_LIMIT) -> str | None:
    """Serialise *payload* to JSON and cut it to *limit* characters."""
    if payload is None:
        return None
    if isinstance(payload, str):
        raw = payload
    else:
        try:
            raw = json.dumps(payload, sort_keys=True, default=str)
        except (TypeError, ValueError):
            raw = repr(payload)
    if len(raw) <= limit:
        return raw
    return raw[:limit] + "...[truncated]"


@dataclass(frozen=True)
class AuditLogEntry:
    operation: str
    status_code: int
    duration_ms: int
    external_reference: str | None = None
    error: str | None = None
    request_snippet: str | None = None
    response_snippet: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "statusCode": self.status_code,
            "externalReference": self.external_reference,
            "durationMs": self.duration_ms,
            "error": self.error,
            "requestData": self.request_snippet,
            "responseData": self.response_snippet,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditSink(ABC):
    """Append-only destination for audit entries. Never read back by the gateway."""

    @abstractmethod
    def create_entry(self, entry: AuditLogEntry) -> None:
        """Persist a single entry."""


class LoggingAuditSink(AuditSink):
    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logging.getLogger(__name__)

    def create_entry(self, entry: AuditLogEntry) -> None:
        self._log.info(
            "Sohar Port audit: %s status=%s duration=%dms ref=%s error=%s",
            entry.operation,
            entry.status_code,
            entry.duration_ms,
            entry.external_reference,
            entry.error,
            extra={
                "operation": entry.operation,
                "status_code": entry.status_code,
                "duration_ms": entry.duration_ms,
                "external_reference": entry.external_reference,
            },
        )


class InMemoryAuditSink(AuditSink):
    """Thread-safe in-process collector; handy in tests and local demos."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []
        self._lock = threading.Lock()

    def create_entry(self, entry: AuditLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    @property
    def entries(self) -> list[AuditLogEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class AuditLogger:
    """Builds AuditLogEntry values and hands them to the configured sink."""

    def __init__(self, sink: AuditSink | None = None) -> None:
        self.sink = sink or LoggingAuditSink()

    def record(
        self,
        *,
        operation: str,
        status_code: int,
        duration_ms: int,
        external_reference: str | None = None,
        error: str | None = None,
        request_data: Any = None,
        response_data: Any = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            operation=operation,
            status_code=status_code,
            duration_ms=duration_ms,
            external_reference=external_reference,
            error=error,
            request_snippet=truncate_payload(request_data),
            response_snippet=truncate_payload(response_data),
        )
        try:
            self.sink.create_entry(entry)
        except Exception as exc:
            logger.error("Failed to write Sohar Port audit entry op=%s: %s", operation, exc)
        return entry

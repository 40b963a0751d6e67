"""
Sohar Port HTTP transport.

All outbound HTTP calls to the Sohar Port gate-pass API go through this
class. Operation modules never touch `requests` directly.

Per call:
  1. Bearer API key + X-API-Version header injected.
  2. Single attempt executed; elapsed time measured.
  3. Exactly one audit entry emitted (success or failure).
  4. Failures classified by map_transport_failure() (or, for anything that
     is not a requests exception, map_unexpected_failure()) and raised as a
     SoharPortError; the raw exception never escapes.

request_with_retry() wraps request() with exponential backoff:
    delay before attempt n+1 = retry_delay_ms * 2**n   (n starts at 0)
Auth / validation / not-found failures are raised on the first attempt.

Timeout semantics: `timeout_ms` bounds one HTTP attempt only. Without a
Deadline the worst-case latency of request_with_retry() is roughly
timeout × attempts + Σ backoff delays. Pass a Deadline to cap the whole
sequence; each attempt's timeout is then clipped to the remaining budget.

Thread safety: the transport holds only its immutable config, the audit
logger and a requests.Session, so one instance can serve concurrent callers.
Backoff sleeps block the calling thread only.

Testability: pass a fake `session` whose `request()` returns
requests.Response objects.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from app.integrations.sohar_port.audit import AuditLogger
from app.integrations.sohar_port.config import SoharPortConfig
from app.integrations.sohar_port.errors import (
    ERROR_MESSAGES,
    SoharPortError,
    SoharPortNetworkError,
    map_transport_failure,
    map_unexpected_failure,
)
from app.integrations.sohar_port.types import DATA_REFERENCE_FIELDS, first_present

logger = logging.getLogger(__name__)


class Deadline:
    """Overall time budget for a call sequence (monotonic clock)."""

    def __init__(self, seconds: float) -> None:
        self._expires_at = time.monotonic() + seconds

    @classmethod
    def from_ms(cls, milliseconds: int) -> "Deadline":
        return cls(milliseconds / 1000)

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0


def _deadline_error(endpoint: str) -> SoharPortNetworkError:
    return SoharPortNetworkError(
        ERROR_MESSAGES["DEADLINE_EXCEEDED"],
        details={"code": "DEADLINE_EXCEEDED", "endpoint": endpoint},
    )


class SoharPortTransport:
    """Authenticated, audited HTTP access to the Sohar Port API."""

    def __init__(
        self,
        config: SoharPortConfig,
        audit_logger: AuditLogger,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._audit = audit_logger
        self._session = session

    @property
    def config(self) -> SoharPortConfig:
        return self._config

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _headers(self, extra: dict | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-API-Version": self._config.api_version,
        }
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        if extra:
            headers.update(extra)
        return headers

    def _url(self, endpoint: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{endpoint}"

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        data: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
        deadline: Deadline | None = None,
        reference_fields: tuple[str, ...] = DATA_REFERENCE_FIELDS,
    ) -> Any:
        """Execute one authenticated request.

        *reference_fields* sets the identifier priority used to tag the audit
        entry with the external reference found in the response body.

        Returns:
            Parsed JSON response body ({} for an empty body).

        Raises:
            SoharPortError: One of the taxonomy variants, never a raw
                            transport exception.
        """
        method = method.upper()
        operation = f"{method} {endpoint}"
        timeout = self._config.timeout_seconds
        if deadline is not None:
            remaining = deadline.remaining()
            if remaining <= 0:
                raise _deadline_error(endpoint)
            timeout = min(timeout, remaining)

        kwargs: dict[str, Any] = {"headers": self._headers(headers), "timeout": timeout}
        if data is not None:
            kwargs["json"] = data
        if params:
            kwargs["params"] = params

        logger.debug("Sohar Port request %s", operation)
        t0 = time.perf_counter()
        try:
            resp = self.session.request(method, self._url(endpoint), **kwargs)
            resp.raise_for_status()
            try:
                body = resp.json() if resp.content else {}
            except ValueError:
                body = {}
        except Exception as exc:
            duration_ms = int((time.perf_counter() - t0) * 1000)
            if isinstance(exc, requests.RequestException):
                error = map_transport_failure(exc)
            else:
                error = map_unexpected_failure(exc)
            logger.warning(
                "Sohar Port request failed %s status=%s code=%s duration=%dms",
                operation, error.status_code, error.error_code, duration_ms,
            )
            self._audit.record(
                operation=operation,
                status_code=error.status_code,
                duration_ms=duration_ms,
                error=error.message,
                request_data=data,
                response_data=error.details,
            )
            raise error from exc

        duration_ms = int((time.perf_counter() - t0) * 1000)
        logger.info(
            "Sohar Port response %s status=%d duration=%dms",
            operation, resp.status_code, duration_ms,
        )
        self._audit.record(
            operation=operation,
            status_code=resp.status_code,
            duration_ms=duration_ms,
            external_reference=first_present(body, reference_fields),
            request_data=data,
            response_data=body,
        )
        return body

    def request_with_retry(
        self,
        method: str,
        endpoint: str,
        *,
        data: Any = None,
        params: dict | None = None,
        headers: dict | None = None,
        attempts: int | None = None,
        deadline: Deadline | None = None,
        reference_fields: tuple[str, ...] = DATA_REFERENCE_FIELDS,
    ) -> Any:
        """request() with exponential backoff for retryable failures only."""
        attempts = self._config.retry_attempts if attempts is None else max(attempts, 1)
        last_error: SoharPortError | None = None

        for attempt in range(attempts):
            try:
                return self.request(
                    method, endpoint,
                    data=data, params=params, headers=headers,
                    deadline=deadline, reference_fields=reference_fields,
                )
            except SoharPortError as exc:
                last_error = exc
                if not exc.retryable:
                    raise

            if attempt < attempts - 1:
                delay_s = self._config.retry_delay_ms * (2 ** attempt) / 1000
                if deadline is not None and deadline.remaining() <= delay_s:
                    logger.warning(
                        "Sohar Port retry abandoned: backoff %.3fs exceeds remaining deadline %s %s",
                        delay_s, method, endpoint,
                    )
                    break
                logger.info(
                    "Retrying Sohar Port request in %.3fs (attempt %d/%d) %s %s",
                    delay_s, attempt + 2, attempts, method, endpoint,
                )
                time.sleep(delay_s)

        raise last_error

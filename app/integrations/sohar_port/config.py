"""
Sohar Port gateway configuration.

Resolution order for every field:
    explicit override (not None) > SOHAR_PORT_* env var > built-in default

The resolved SoharPortConfig is immutable; a client resolves it once at
construction time and never re-reads the environment afterwards.

Usage:
    from app.integrations.sohar_port.config import resolve_config, validate_config

    cfg = resolve_config({"use_mock": True})
    validate_config(cfg)
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import quote

from app.integrations.sohar_port.errors import SoharPortConfigError

# ── Built-in defaults ──────────────────────────────────────────────────────
DEFAULT_BASE_URL = "https://api.soharport.com"
DEFAULT_API_VERSION = "v1"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000

# ── Environment variable names ─────────────────────────────────────────────
_ENV_VARS = {
    "base_url": "SOHAR_PORT_API_BASE_URL",
    "api_key": "SOHAR_PORT_API_KEY",
    "api_version": "SOHAR_PORT_API_VERSION",
    "timeout_ms": "SOHAR_PORT_TIMEOUT",
    "use_mock": "SOHAR_PORT_MOCK_MODE",
    "retry_attempts": "SOHAR_PORT_RETRY_ATTEMPTS",
    "retry_delay_ms": "SOHAR_PORT_RETRY_DELAY",
}

_TRUTHY = {"1", "true", "yes", "on"}

# ── Versioned endpoint table ───────────────────────────────────────────────
API_ENDPOINTS: dict[str, dict[str, str]] = {
    "v1": {
        # Send operations
        "CREATE_GATE_PASS": "/api/v1/gate-passes",
        "UPDATE_GATE_PASS": "/api/v1/gate-passes/:ref",
        "CANCEL_GATE_PASS": "/api/v1/gate-passes/:ref",
        # Receive operations
        "GET_GATE_PASS": "/api/v1/gate-passes/:ref",
        "LIST_GATE_PASSES": "/api/v1/gate-passes",
        "GET_STATUS": "/api/v1/gate-passes/:ref/status",
    },
    "v2": {
        "CREATE_GATE_PASS": "/api/v2/gate-passes",
        "UPDATE_GATE_PASS": "/api/v2/gate-passes/:ref",
        "CANCEL_GATE_PASS": "/api/v2/gate-passes/:ref",
        "GET_GATE_PASS": "/api/v2/gate-passes/:ref",
        "LIST_GATE_PASSES": "/api/v2/gate-passes",
        "GET_STATUS": "/api/v2/gate-passes/:ref/status",
        "BATCH_CREATE": "/api/v2/gate-passes/batch",
    },
}

_PATH_TOKEN = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class SoharPortConfig:
    """Resolved, immutable gateway configuration."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    api_version: str = DEFAULT_API_VERSION
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    use_mock: bool = False
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def to_log_dict(self) -> dict:
        """Loggable view of the config. The API key is never included."""
        return {
            "base_url": self.base_url,
            "api_version": self.api_version,
            "timeout_ms": self.timeout_ms,
            "use_mock": self.use_mock,
            "retry_attempts": self.retry_attempts,
            "retry_delay_ms": self.retry_delay_ms,
            "has_api_key": bool(self.api_key),
        }


_FIELD_NAMES = {f.name for f in fields(SoharPortConfig)}


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise SoharPortConfigError(
            f"{_ENV_VARS[name]} must be an integer, got {raw!r}"
        ) from None


def _from_env(name: str, env: Mapping[str, str]) -> Any:
    """Return the env-sourced value for *name*, or None when unset/empty."""
    raw = env.get(_ENV_VARS[name])
    if raw is None or raw == "":
        return None
    match name:
        case "use_mock":
            return raw.strip().lower() in _TRUTHY
        case "timeout_ms" | "retry_attempts" | "retry_delay_ms":
            return _parse_int(name, raw.strip())
        case _:
            return raw.strip()


def resolve_config(
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> SoharPortConfig:
    """Merge per-call overrides over env-sourced values over defaults.

    Args:
        overrides: Field name → value. None values fall through to the
                   environment / default for that field.
        env:       Environment mapping; defaults to os.environ (read now).

    Raises:
        SoharPortConfigError: Unknown override key or unparsable env number.
    """
    overrides = dict(overrides or {})
    unknown = set(overrides) - _FIELD_NAMES
    if unknown:
        raise SoharPortConfigError(
            f"Unknown Sohar Port config option(s): {', '.join(sorted(unknown))}"
        )
    env = os.environ if env is None else env

    values: dict[str, Any] = {}
    for name in _FIELD_NAMES:
        value = overrides.get(name)
        if value is None:
            value = _from_env(name, env)
        if value is not None:
            values[name] = value
    return SoharPortConfig(**values)


def validate_config(config: SoharPortConfig) -> None:
    """Fail fast on a configuration that cannot work.

    Real mode requires a base URL and an API key. Mock mode skips those
    checks but still requires a known API version, at least one attempt,
    a positive timeout and a non-negative retry delay.
    """
    if config.api_version not in API_ENDPOINTS:
        raise SoharPortConfigError(
            f"Unsupported Sohar Port API version {config.api_version!r}; "
            f"expected one of: {', '.join(API_ENDPOINTS)}"
        )
    if config.retry_attempts < 1:
        raise SoharPortConfigError("retry_attempts must be at least 1")
    if config.timeout_ms <= 0:
        raise SoharPortConfigError("timeout_ms must be greater than 0")
    if config.retry_delay_ms < 0:
        raise SoharPortConfigError("retry_delay_ms must not be negative")
    if config.use_mock:
        return
    if not config.base_url:
        raise SoharPortConfigError(
            "SOHAR_PORT_API_BASE_URL is required when not in mock mode"
        )
    if not config.api_key:
        raise SoharPortConfigError(
            "SOHAR_PORT_API_KEY is required when not in mock mode"
        )


def get_endpoint_url(
    version: str,
    endpoint: str,
    params: Mapping[str, Any] | None = None,
) -> str:
    """Return the endpoint path with ``:name`` tokens substituted.

    Values are URL-quoted. Tokens with no matching param are left as literal
    text so a missing substitution shows up in logs and audit entries.
    """
    try:
        template = API_ENDPOINTS[version][endpoint]
    except KeyError:
        raise SoharPortConfigError(
            f"Unknown Sohar Port endpoint {endpoint!r} for version {version!r}"
        ) from None
    if not params:
        return template

    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in params:
            return match.group(0)
        return quote(str(params[key]), safe="")

    return _PATH_TOKEN.sub(_substitute, template)

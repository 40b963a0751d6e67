"""
Shared pytest fixtures for the Sohar Gate Pass Portal test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - audit_sink: Fresh InMemoryAuditSink
    - mock_client: Mock-mode SoharPortClient with latency disabled
    - real_env: Environment mapping for a real-mode client (no network)
"""

import pytest

from app import create_app
from app.integrations.sohar_port import InMemoryAuditSink, SoharPortClient
from app.models import db as _db

REAL_ENV = {
    "SOHAR_PORT_API_BASE_URL": "https://sohar.test",
    "SOHAR_PORT_API_KEY": "test-key",
    "SOHAR_PORT_RETRY_DELAY": "1",
}


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        # The app-scoped client owns the mock store; start every test empty.
        app.extensions.pop("sohar_port_client", None)
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


# ── Sohar Port fixtures ──────────────────────────────────────────────────


@pytest.fixture()
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture()
def mock_client(audit_sink):
    """Mock-mode client; no sleeping, entries land in audit_sink."""
    return SoharPortClient(
        {"use_mock": True}, audit_sink=audit_sink, mock_latency=0, env={},
    )


@pytest.fixture()
def real_env():
    return dict(REAL_ENV)

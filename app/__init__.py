"""
Sohar Gate Pass Portal
Flask Application Factory.

The factory hosts configuration, structured logging and the SQLAlchemy
session used by the gate-pass approval service and its activity log.
There are no HTTP routes; the Sohar Port client is built lazily by
app.services.gate_pass_service.get_client().

Usage:
    from app import create_app
    app = create_app()           # APP_ENV, else "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask

from app.config import config
from app.middleware.logging_config import configure_logging
from app.models import db

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to the APP_ENV env var, or "development".

    Raises:
        KeyError: Unknown config name.
        RuntimeError: Production config missing DATABASE_URL or with mock mode on.
    """
    config_name = config_name or os.getenv("APP_ENV", "development")
    config_cls = config[config_name]

    app = Flask(__name__, instance_relative_config=True)
    # Production validates its environment on instantiation
    app.config.from_object(config_cls() if config_name == "production" else config_cls)

    configure_logging(app)
    db.init_app(app)

    # Register the tables with the metadata before any create_all()
    from app.models import audit, gate_pass  # noqa: F401

    if config_name == "development":
        os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            db.create_all()

    logger.info(
        "App created env=%s sohar_port_overrides=%s",
        config_name,
        sorted(app.config.get("SOHAR_PORT_OVERRIDES", {})),
    )
    return app

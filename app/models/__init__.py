"""
Sohar Gate Pass Portal
SQLAlchemy models package.

Models:
    - gate_pass.GatePassRequest: internal gate-pass request + integration columns
    - audit.ActivityLog: append-only activity / integration audit trail
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

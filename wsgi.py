"""
WSGI / Flask CLI entry point.

Usage:
    APP_ENV=production gunicorn wsgi:app
    flask --app wsgi shell      # interactive session with db + get_client()
"""

from app import create_app

app = create_app()

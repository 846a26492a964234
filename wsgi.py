"""
WSGI entry point and Flask CLI target.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade
    flask --app wsgi create-admin --email admin@example.com --password ...
    flask --app wsgi normalize-roles
"""

from app import create_app

app = create_app()

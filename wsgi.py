"""
WSGI entry point for the intake service.

Usage:
    flask --app wsgi db init        # Flask-Migrate, first time only
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
"""

from intake import create_app

app = create_app()

"""
WSGI Entry Point for Gunicorn

Gunicorn can be configured to use either:
  - wsgi:app
  - app:app (via app/__init__.py which imports from application.py)
  - application:app

The Flask application is created in application.py.
"""

from application import app

__all__ = ['app']

"""
ServiceRig Dashboard - Application Package

This package contains the modular web layer:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared helpers for the blueprints

The app factory and core Flask setup remain in app_init.py at the project root.
Blueprints are imported inside register_blueprints so that services can import
app.utils without pulling in the route modules.
"""

import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """
    Register all page and API blueprints with the Flask app.
    Called from app_init.create_app after the services are attached.

    Args:
        app: Flask application instance
    """
    from app.api.pages import pages_bp
    from app.api.customers import customers_bp
    from app.api.scheduling import scheduling_bp
    from app.api.estimates import estimates_bp
    from app.api.invoices import invoices_bp
    from app.api.inventory import inventory_bp
    from app.api.settings import settings_bp
    from app.api.ai_tools import ai_tools_bp
    from app.api.reports import reports_bp

    blueprints = (
        pages_bp,
        customers_bp,
        scheduling_bp,
        estimates_bp,
        invoices_bp,
        inventory_bp,
        settings_bp,
        ai_tools_bp,
        reports_bp,
    )
    for blueprint in blueprints:
        app.register_blueprint(blueprint)

    logger.info(f"Registered {len(blueprints)} blueprints")


__all__ = ['register_blueprints', 'app']


# ==============================================================================
# WSGI APP EXPORT FOR GUNICORN
# ==============================================================================
# This allows gunicorn to run with: gunicorn app:app
# The Flask app is created in application.py.
# We use __getattr__ for lazy loading to avoid circular import issues.
# ==============================================================================

_flask_app = None


def __getattr__(name):
    """Lazy load the Flask app to avoid circular imports."""
    global _flask_app
    if name == 'app':
        if _flask_app is None:
            from application import app as flask_app
            _flask_app = flask_app
        return _flask_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

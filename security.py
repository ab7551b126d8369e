"""
Security Utilities & Middleware
Secret key checks, CORS, response headers, error handlers and request logging
"""
import os
import secrets
from typing import Dict, Any
from flask import Flask, request, jsonify, render_template, Response
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import logging

logger = logging.getLogger(__name__)

# Paths skipped by request logging
QUIET_PATHS = ('/api/health', '/api/ping')


class SecurityConfig:
    """Security configuration and validation"""

    @staticmethod
    def generate_secret_key() -> str:
        return secrets.token_hex(32)

    @staticmethod
    def validate_secret_key(secret_key: str) -> bool:
        """
        Validate that secret key is sufficiently secure

        Args:
            secret_key: Secret key to validate

        Returns:
            True if key is secure, False otherwise
        """
        if not secret_key:
            return False

        if len(secret_key) < 32:
            logger.warning("Secret key is too short (minimum 32 characters)")
            return False

        weak_keys = ['dev', 'test', 'secret', 'password', '12345']
        if any(weak in secret_key.lower() for weak in weak_keys):
            logger.warning("Secret key appears to be weak or default")
            return False

        return True

    @staticmethod
    def ensure_secret_key(config: Dict[str, Any]) -> str:
        """Return the configured key, or a generated one when it is missing or weak"""
        secret_key = config.get('SECRET_KEY')

        if not secret_key or not SecurityConfig.validate_secret_key(secret_key):
            if os.environ.get('FLASK_ENV') == 'production':
                logger.error("No secure SECRET_KEY in production! Generating one...")
                logger.error("Add SECRET_KEY to environment variables for persistence!")

            secret_key = SecurityConfig.generate_secret_key()
            logger.warning(f"Generated new secret key (length: {len(secret_key)})")

        return secret_key


def setup_security_headers(app: Flask):
    """
    Add security headers to all responses

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # Pages only load local scripts and styles
        response.headers['Content-Security-Policy'] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "connect-src 'self';"
        )
        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the JSON API

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_methods = config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])
    cors_headers = config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization'])

    if not app.debug and '*' in cors_origins:
        logger.warning("Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=cors_methods,
        allow_headers=cors_headers,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def sanitize_error_response(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    Sanitize error response to prevent information leakage

    Args:
        error: Exception object
        include_details: Whether to include detailed error info (dev only)

    Returns:
        Error envelope
    """
    error_response = {
        'success': False,
        'message': 'An error occurred while processing your request',
        'data': None,
        'errors': {},
    }

    if include_details:
        error_response['details'] = str(error)
        error_response['type'] = type(error).__name__

    return error_response


def _wants_json() -> bool:
    return request.path.startswith('/api/') or request.accept_mimetypes.best == 'application/json'


def setup_error_handlers(app: Flask):
    """
    Register error handlers. API paths get the JSON envelope, pages get error.html.

    Args:
        app: Flask application instance
    """
    include_details = app.debug

    def respond(code: int, message: str):
        if _wants_json():
            return jsonify({'success': False, 'message': message, 'data': None, 'errors': {}}), code
        return render_template('error.html', code=code, message=message), code

    @app.errorhandler(400)
    def bad_request(error):
        return respond(400, 'The request could not be understood or was missing required parameters')

    @app.errorhandler(404)
    def not_found(error):
        return respond(404, 'The requested resource was not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return respond(405, 'The method is not allowed for the requested URL')

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return respond(413, 'The request is too large')

    @app.errorhandler(HTTPException)
    def http_error(error):
        return respond(error.code, error.description)

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        if _wants_json():
            return jsonify(sanitize_error_response(error, include_details)), 500
        return render_template('error.html', code=500, message='Something went wrong.'), 500

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """
    Log each request and response, except health checks

    Args:
        app: Flask application instance
    """
    @app.before_request
    def log_request():
        if request.path in QUIET_PATHS:
            return

        logger.info(
            f"Request: {request.method} {request.path} "
            f"from {request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path in QUIET_PATHS:
            return response

        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={response.status_code} "
            f"size={response.content_length}"
        )
        return response

    logger.info("Request logging configured")


def validate_environment_variables(required_vars: list, app: Flask) -> bool:
    """Warn about missing environment variables; returns True when all are set"""
    missing_vars = [var for var in required_vars if not os.environ.get(var)]
    for var in missing_vars:
        logger.warning(f"Missing environment variable: {var}")

    if missing_vars and not app.debug:
        logger.error(f"Missing required environment variables in production: {missing_vars}")

    return len(missing_vars) == 0


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    logger.info("Configuring application security...")

    app.secret_key = SecurityConfig.ensure_secret_key(config)
    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug:
        validate_environment_variables(['SECRET_KEY'], app)
        if not config.get('ANTHROPIC_API_KEY'):
            logger.warning("ANTHROPIC_API_KEY is not set; AI tools will be disabled")

    logger.info("Security configuration complete")

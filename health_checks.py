"""
Health Check & Monitoring Endpoints
Liveness, readiness and process metrics for deployment checks
"""
import os
import sys
import time
import psutil
from datetime import datetime, timezone
from typing import Dict, Any
from flask import Blueprint, current_app, jsonify
import logging

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

# Track application start time
START_TIME = time.time()

SERVICE_NAME = 'servicerig'


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic process metrics

    Returns:
        Dictionary of process metrics, empty if psutil cannot read them
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_minutes': round(uptime_seconds / 60, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_ai_services(app) -> Dict[str, bool]:
    """
    Check which AI providers are configured

    Args:
        app: Flask application instance

    Returns:
        Dictionary of provider availability
    """
    ai_service = getattr(app, 'ai_service', None)
    if ai_service is None:
        return {'anthropic_claude': False, 'tavily_search': False}
    return {
        'anthropic_claude': ai_service.is_available('claude'),
        'tavily_search': ai_service.is_available('search'),
    }


def check_store(app) -> Dict[str, Any]:
    """Record counts per collection in the mock store"""
    services = getattr(app, 'services', None)
    if services is None:
        return {'healthy': False, 'collections': {}}
    return {'healthy': True, 'collections': services.store.collections()}


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': _now(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness check endpoint
    Ready once the store is wired up. AI providers are reported but optional.
    """
    store = check_store(current_app)
    is_ready = store['healthy']

    return jsonify({
        'status': 'ready' if is_ready else 'not_ready',
        'timestamp': _now(),
        'checks': {
            'store': store,
            'ai_services': check_ai_services(current_app),
        }
    }), 200 if is_ready else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """Process metrics, uptime and store counts"""
    return jsonify({
        'timestamp': _now(),
        'service': SERVICE_NAME,
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'environment': os.environ.get('FLASK_ENV', 'development'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'services': check_ai_services(current_app),
        'store': check_store(current_app),
        'python_version': sys.version.split()[0]
    }), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered")
    logger.info("Available endpoints: /api/health, /api/ready, /api/metrics, /api/ping")

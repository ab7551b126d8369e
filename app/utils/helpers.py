"""
Helper utility functions shared by the API blueprints.

Every JSON endpoint answers with the same envelope:
    {"success": bool, "message": str, "data": ..., "errors": {field: [messages]}}
"""

import json
import logging
from functools import wraps

from flask import current_app, jsonify, request

from ai_service import AIServiceError, AIServiceUnavailable
from services.errors import ServiceError
from validators import ValidationError, format_success_response, format_validation_error

logger = logging.getLogger(__name__)

# Form fields that carry JSON when submitted as multipart/form-urlencoded
JSON_FORM_FIELDS = ('lineItems', 'parts', 'gbbTier', 'selectedTier', 'jobIds', 'trades')


def get_services():
    """ServiceContainer wired up by the app factory"""
    return current_app.services


def get_ai_service():
    return current_app.ai_service


def get_request_data():
    """
    Read the submitted payload from a JSON body or a form post.

    Form fields listed in JSON_FORM_FIELDS are decoded when they hold JSON text.
    """
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload

    data = request.form.to_dict()
    for key in JSON_FORM_FIELDS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            try:
                data[key] = json.loads(value)
            except json.JSONDecodeError:
                logger.debug(f"Form field {key} is not JSON; leaving it for validation")
    return data


def api_success(data=None, message="Success", status_code=200):
    body = format_success_response(data, message)
    body['errors'] = {}
    return jsonify(body), status_code


def api_error(message, status_code=400, errors=None):
    return jsonify({
        'success': False,
        'message': message,
        'data': None,
        'errors': errors or {},
    }), status_code


def handle_service_errors(action):
    """
    Decorator translating service exceptions into JSON envelopes.

    Args:
        action: Phrase used in the generic AI failure message,
                e.g. "generating estimates"
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ValidationError as e:
                body = format_validation_error(e.field, e.message, e.errors)
                body['data'] = None
                return jsonify(body), 400
            except ServiceError as e:
                field = getattr(e, 'field', None)
                return api_error(e.message, e.status_code, {field: [e.message]} if field else None)
            except AIServiceUnavailable as e:
                logger.warning(f"AI unavailable while {action}: {e}")
                return api_error("AI features are not configured.", 503)
            except AIServiceError as e:
                logger.error(f"AI failure while {action}: {e}")
                return api_error(f"An error occurred while {action}.", 502)
        return wrapper
    return decorator

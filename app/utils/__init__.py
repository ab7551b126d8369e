"""
Utilities Package

Shared helper functions used across the application.
"""

from app.utils.ai_tools import format_search_results
from app.utils.helpers import (
    api_error,
    api_success,
    get_ai_service,
    get_services,
    get_request_data,
    handle_service_errors,
)

__all__ = [
    'format_search_results',
    'api_error',
    'api_success',
    'get_ai_service',
    'get_services',
    'get_request_data',
    'handle_service_errors',
]

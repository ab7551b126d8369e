"""
AI Tools Routes Blueprint

- GET  /api/ai/flows              : available flows and provider status
- POST /api/ai/<flow>             : run a flow, returns the validated JSON output
- POST /api/ai/<flow>/stream      : stream raw model text as text/plain
- POST /api/ai/vendors/save       : save a suggested vendor to the directory
"""

import logging
import queue
import threading
from flask import Blueprint, Response, stream_with_context

from ai_service import AIServiceError
from app.utils.helpers import (
    api_error,
    api_success,
    get_ai_service,
    get_request_data,
    get_services,
    handle_service_errors,
)
from services.ai_flows import FLOWS, get_flow

logger = logging.getLogger(__name__)

# Create blueprint
ai_tools_bp = Blueprint('ai_tools_bp', __name__, url_prefix='/api/ai')

_STREAM_DONE = object()


def _flow_action(flow_name):
    return f"running {flow_name.replace('_', ' ')}"


@ai_tools_bp.route('/flows', methods=['GET'])
def list_flows():
    ai_service = get_ai_service()
    return api_success({
        'flows': sorted(FLOWS),
        'claude': ai_service.is_available('claude'),
        'search': ai_service.is_available('search'),
    })


@ai_tools_bp.route('/vendors/save', methods=['POST'])
@handle_service_errors('saving the vendor')
def save_suggested_vendor():
    vendor = get_services().inventory.create_vendor(get_request_data())
    return api_success(vendor, f"{vendor['name']} added to vendors.", 201)


@ai_tools_bp.route('/<flow_name>', methods=['POST'])
def run_flow(flow_name):
    """Run one prompt flow synchronously"""
    flow = get_flow(flow_name)
    if not flow:
        return api_error(f"Unknown AI flow: {flow_name}", 404)

    @handle_service_errors(_flow_action(flow_name))
    def execute():
        result = flow.run(get_request_data(), get_ai_service())
        return api_success(result.model_dump(), 'Generated successfully.')

    return execute()


@ai_tools_bp.route('/<flow_name>/stream', methods=['POST'])
def stream_flow(flow_name):
    """
    Stream a flow's raw text. Input is validated before the response starts,
    so bad input still gets a 400 JSON envelope.
    """
    flow = get_flow(flow_name)
    if not flow:
        return api_error(f"Unknown AI flow: {flow_name}", 404)

    data = get_request_data()

    @handle_service_errors(_flow_action(flow_name))
    def check_input():
        flow.validate_input(data)

    rejected = check_input()
    if rejected is not None:
        return rejected

    ai_service = get_ai_service()
    if not ai_service.is_available('claude'):
        return api_error("AI features are not configured.", 503)

    chunks = queue.Queue()

    def worker():
        try:
            flow.stream(data, ai_service, chunks.put)
        except AIServiceError as e:
            logger.error(f"Streaming flow {flow_name} failed: {e}")
            chunks.put(f"\n\n[error] An error occurred while {_flow_action(flow_name)}.")
        except Exception as e:
            logger.exception(f"Unexpected error in streaming flow {flow_name}: {e}")
            chunks.put(f"\n\n[error] An error occurred while {_flow_action(flow_name)}.")
        finally:
            chunks.put(_STREAM_DONE)

    threading.Thread(target=worker, daemon=True).start()

    def generate():
        while True:
            chunk = chunks.get()
            if chunk is _STREAM_DONE:
                break
            yield chunk

    return Response(stream_with_context(generate()), mimetype='text/plain')

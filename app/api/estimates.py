"""
Estimate Routes Blueprint

- Estimates: create, accept from tiers, status changes, signature acceptance,
  conversion to invoice
- Change orders: create and status changes
"""

import logging
from flask import Blueprint, request

from app.utils.helpers import api_success, get_request_data, get_services, handle_service_errors
from services.errors import NotFoundError

logger = logging.getLogger(__name__)

# Create blueprint
estimates_bp = Blueprint('estimates_bp', __name__)


# ============================================================================
# ESTIMATES
# ============================================================================

@estimates_bp.route('/api/estimates', methods=['GET'])
def list_estimates():
    estimates = get_services().billing_repo.list_estimates(
        customer_id=request.args.get('customerId'),
        status=request.args.get('status'),
    )
    return api_success(estimates, f"{len(estimates)} estimates")


@estimates_bp.route('/api/estimates', methods=['POST'])
@handle_service_errors('creating the estimate')
def create_estimate():
    estimate = get_services().billing.create_estimate(get_request_data())
    return api_success(estimate, 'Estimate created successfully.', 201)


@estimates_bp.route('/api/estimates/from-tier', methods=['POST'])
@handle_service_errors('accepting the estimate')
def accept_from_tier():
    """Customer picked one of the Good / Better / Best options"""
    estimate = get_services().billing.accept_estimate_from_tier(get_request_data())
    return api_success(estimate, 'Estimate accepted.', 201)


@estimates_bp.route('/api/estimates/<estimate_id>', methods=['GET'])
@handle_service_errors('loading the estimate')
def get_estimate(estimate_id):
    services = get_services()
    estimate = services.billing_repo.get_estimate(estimate_id)
    if not estimate:
        raise NotFoundError('Estimate', estimate_id)
    return api_success({
        'estimate': estimate,
        'customer': services.crm.get_customer(estimate['customerId']),
        'job': services.crm.get_job(estimate['jobId']) if estimate.get('jobId') else None,
    })


@estimates_bp.route('/api/estimates/<estimate_id>/status', methods=['POST'])
@handle_service_errors('updating the estimate')
def update_estimate_status(estimate_id):
    data = get_request_data()
    estimate = get_services().billing.update_estimate_status(estimate_id, data.get('status'))
    return api_success(estimate, f"Estimate marked as {estimate['status']}.")


@estimates_bp.route('/api/estimates/<estimate_id>/accept', methods=['POST'])
@handle_service_errors('accepting the estimate')
def accept_with_signature(estimate_id):
    data = get_request_data()
    estimate = get_services().billing.accept_estimate_with_signature(estimate_id, data.get('signature'))
    return api_success(estimate, 'Estimate accepted.')


@estimates_bp.route('/api/estimates/<estimate_id>/convert', methods=['POST'])
@handle_service_errors('converting the estimate')
def convert_to_invoice(estimate_id):
    invoice = get_services().billing.convert_estimate_to_invoice(estimate_id)
    return api_success(invoice, f"Invoice {invoice['invoiceNumber']} created.", 201)


# ============================================================================
# CHANGE ORDERS
# ============================================================================

@estimates_bp.route('/api/change-orders', methods=['GET'])
def list_change_orders():
    return api_success(get_services().billing_repo.list_change_orders(job_id=request.args.get('jobId')))


@estimates_bp.route('/api/change-orders', methods=['POST'])
@handle_service_errors('creating the change order')
def create_change_order():
    change_order = get_services().billing.create_change_order(get_request_data())
    return api_success(change_order, 'Change order created.', 201)


@estimates_bp.route('/api/change-orders/<change_order_id>/status', methods=['POST'])
@handle_service_errors('updating the change order')
def update_change_order_status(change_order_id):
    data = get_request_data()
    change_order = get_services().billing.update_change_order_status(change_order_id, data.get('status'))
    return api_success(change_order, f"Change order {change_order['status']}.")

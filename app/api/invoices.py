"""
Invoice Routes Blueprint

- Invoices: list with payment-derived status, create, edit drafts, status
- Batch invoicing of completed, uninvoiced jobs
- Payments, refunds and deposit application
- AI invoice audit against the job and estimate
"""

import logging
from flask import Blueprint, request

from app.utils.helpers import (
    api_success,
    get_ai_service,
    get_request_data,
    get_services,
    handle_service_errors,
)
from services.ai_flows import get_flow

logger = logging.getLogger(__name__)

# Create blueprint
invoices_bp = Blueprint('invoices_bp', __name__)


# ============================================================================
# INVOICES
# ============================================================================

@invoices_bp.route('/api/invoices', methods=['GET'])
def list_invoices():
    invoices = get_services().billing.list_invoice_summaries(
        customer_id=request.args.get('customerId'),
        status=request.args.get('status'),
    )
    return api_success(invoices, f"{len(invoices)} invoices")


@invoices_bp.route('/api/invoices', methods=['POST'])
@handle_service_errors('creating the invoice')
def create_invoice():
    invoice = get_services().billing.create_invoice(get_request_data())
    return api_success(invoice, 'Invoice created successfully.', 201)


@invoices_bp.route('/api/invoices/invoiceable', methods=['GET'])
def list_invoiceable_jobs():
    """Completed jobs without an invoice, optionally for one ?customerId="""
    jobs = get_services().billing.invoiceable_jobs(customer_id=request.args.get('customerId'))
    return api_success(jobs, f"{len(jobs)} jobs ready to invoice")


@invoices_bp.route('/api/invoices/batch', methods=['POST'])
@handle_service_errors('generating the invoices')
def create_batch_invoices():
    invoices = get_services().billing.create_batch_invoices(get_request_data().get('jobIds'))
    return api_success(invoices, f"{len(invoices)} invoices created.", 201)


@invoices_bp.route('/api/invoices/<invoice_id>', methods=['GET'])
@handle_service_errors('loading the invoice')
def get_invoice(invoice_id):
    services = get_services()
    summary = services.billing.get_invoice_summary(invoice_id)
    return api_success({
        'invoice': summary,
        'payments': services.billing_repo.list_payments(invoice_id),
        'refunds': services.billing_repo.list_refunds(invoice_id),
        'customer': services.crm.get_customer(summary['customerId']),
    })


@invoices_bp.route('/api/invoices/<invoice_id>', methods=['PUT'])
@handle_service_errors('updating the invoice')
def update_invoice(invoice_id):
    """Edit a draft invoice"""
    invoice = get_services().billing.update_invoice(invoice_id, get_request_data())
    return api_success(invoice, 'Invoice updated successfully.')


@invoices_bp.route('/api/invoices/<invoice_id>/status', methods=['POST'])
@handle_service_errors('updating the invoice')
def update_invoice_status(invoice_id):
    data = get_request_data()
    invoice = get_services().billing.update_invoice_status(invoice_id, data.get('status'))
    return api_success(invoice, f"Invoice marked {invoice['status']}.")


# ============================================================================
# PAYMENTS, REFUNDS, DEPOSITS
# ============================================================================

@invoices_bp.route('/api/invoices/<invoice_id>/payments', methods=['POST'])
@handle_service_errors('recording the payment')
def record_payment(invoice_id):
    result = get_services().billing.record_payment(invoice_id, get_request_data())
    return api_success(result, 'Payment recorded.', 201)


@invoices_bp.route('/api/invoices/<invoice_id>/refunds', methods=['POST'])
@handle_service_errors('issuing the refund')
def issue_refund(invoice_id):
    result = get_services().billing.issue_refund(invoice_id, get_request_data())
    return api_success(result, 'Refund issued.', 201)


@invoices_bp.route('/api/deposits', methods=['GET'])
def list_deposits():
    return api_success(get_services().billing_repo.list_deposits(customer_id=request.args.get('customerId')))


@invoices_bp.route('/api/deposits/<deposit_id>/apply', methods=['POST'])
@handle_service_errors('applying the deposit')
def apply_deposit(deposit_id):
    data = get_request_data()
    result = get_services().billing.apply_deposit(deposit_id, data.get('invoiceId'))
    return api_success(result, 'Deposit applied.')


# ============================================================================
# AI AUDIT
# ============================================================================

@invoices_bp.route('/api/invoices/<invoice_id>/analyze', methods=['POST'])
@handle_service_errors('analyzing the invoice')
def analyze_invoice(invoice_id):
    """Check the invoice against its job and estimate with the audit flow"""
    details = get_services().billing.invoice_analysis_details(invoice_id)
    result = get_flow('analyze_invoice').run(details, get_ai_service())
    return api_success(result.model_dump(), result.analysisSummary)

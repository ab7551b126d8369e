"""
Page Routes Blueprint

Handles all template rendering routes for the dashboard pages.
Forms on these pages submit to the JSON endpoints under /api/.
"""

import logging
from datetime import date
from flask import Blueprint, abort, redirect, render_template, request, url_for

from app.utils.helpers import get_ai_service, get_services
from database.models import (
    EQUIPMENT_LOG_TYPES,
    PAYMENT_METHODS,
    REFUND_METHODS,
    TRADES,
    parse_date,
)
from services.errors import NotFoundError
from services.kpi_service import AGING_BUCKETS

logger = logging.getLogger(__name__)

# Create blueprint
pages_bp = Blueprint('pages', __name__)


# ============================================================================
# MAIN PAGE ROUTES
# ============================================================================

@pages_bp.route('/')
def index():
    """Redirect to the dashboard as the main landing page"""
    return redirect(url_for('pages.dashboard_page'))


@pages_bp.route('/dashboard')
def dashboard_page():
    services = get_services()
    today = date.today()
    return render_template(
        'dashboard.html',
        kpis=services.kpis.calculate_kpis(),
        todays_jobs=services.scheduling.jobs_on(today),
        unscheduled=services.scheduling.unscheduled_jobs(),
        reorders=services.inventory.suggested_reorders(),
    )


@pages_bp.route('/dashboard/schedule')
def schedule_page():
    services = get_services()
    day = parse_date(request.args.get('date')) or date.today()
    technicians = services.crm.list_technicians()
    board = [
        {'technician': tech, 'jobs': services.scheduling.technician_schedule(tech['id'], day)}
        for tech in technicians
    ]
    return render_template('schedule.html', day=day, board=board,
                           technicians=technicians,
                           unscheduled=services.scheduling.unscheduled_jobs())


# ============================================================================
# CUSTOMERS
# ============================================================================

@pages_bp.route('/dashboard/customers')
def customers_page():
    services = get_services()
    search = request.args.get('search', '')
    return render_template('customers.html',
                           customers=services.customers.list_customers(search),
                           tax_zones=services.crm.list_tax_zones(),
                           search=search)


@pages_bp.route('/dashboard/customers/<customer_id>')
def customer_detail_page(customer_id):
    try:
        profile = get_services().customers.get_profile(customer_id)
    except NotFoundError:
        abort(404)
    return render_template('customer_detail.html', profile=profile,
                           log_types=EQUIPMENT_LOG_TYPES)


# ============================================================================
# ESTIMATES & INVOICES
# ============================================================================

@pages_bp.route('/dashboard/estimates')
def estimates_page():
    services = get_services()
    customers = {c['id']: c for c in services.crm.list_customers()}
    return render_template('estimates.html',
                           estimates=services.billing_repo.list_estimates(status=request.args.get('status')),
                           customers=customers,
                           templates=services.billing_repo.list_estimate_templates())


@pages_bp.route('/dashboard/estimates/<estimate_id>')
def estimate_detail_page(estimate_id):
    services = get_services()
    estimate = services.billing_repo.get_estimate(estimate_id)
    if not estimate:
        abort(404)
    return render_template('estimate_detail.html', estimate=estimate,
                           customer=services.crm.get_customer(estimate['customerId']),
                           change_orders=services.billing_repo.list_change_orders(job_id=estimate.get('jobId')))


@pages_bp.route('/dashboard/invoices')
def invoices_page():
    services = get_services()
    customers = {c['id']: c for c in services.crm.list_customers()}
    return render_template('invoices.html',
                           invoices=services.billing.list_invoice_summaries(status=request.args.get('status')),
                           customers=customers)


@pages_bp.route('/dashboard/invoices/<invoice_id>')
def invoice_detail_page(invoice_id):
    services = get_services()
    try:
        invoice = services.billing.get_invoice_summary(invoice_id)
    except NotFoundError:
        abort(404)
    return render_template('invoice_detail.html', invoice=invoice,
                           customer=services.crm.get_customer(invoice['customerId']),
                           payments=services.billing_repo.list_payments(invoice_id),
                           refunds=services.billing_repo.list_refunds(invoice_id),
                           deposits=[d for d in services.billing_repo.list_deposits(invoice['customerId'])
                                     if d.get('status') == 'available'],
                           payment_methods=PAYMENT_METHODS,
                           refund_methods=REFUND_METHODS,
                           ai_enabled=get_ai_service().is_available('claude'))


# ============================================================================
# INVENTORY, SETTINGS, REPORTS, AI TOOLS
# ============================================================================

@pages_bp.route('/dashboard/inventory')
def inventory_page():
    services = get_services()
    return render_template('inventory.html',
                           items=services.inventory_repo.list_items(search=request.args.get('search')),
                           on_order=services.inventory.on_order(),
                           technicians=services.crm.list_technicians(),
                           vendors=services.inventory_repo.list_vendors())


@pages_bp.route('/dashboard/settings')
def settings_page():
    services = get_services()
    return render_template('settings.html',
                           tax_zones=services.crm.list_tax_zones(),
                           vendors=services.inventory_repo.list_vendors(),
                           templates=services.billing_repo.list_estimate_templates(),
                           pricebook=services.billing_repo.list_pricebook_items(),
                           trades=TRADES)


@pages_bp.route('/dashboard/reports')
def reports_page():
    services = get_services()
    return render_template('reports.html',
                           kpis=services.kpis.calculate_kpis(),
                           aging=services.kpis.aging_report(),
                           buckets=AGING_BUCKETS,
                           earnings=services.kpis.technician_earnings(),
                           asset_value=services.inventory.asset_value(),
                           most_used=services.inventory.most_used_parts())


@pages_bp.route('/dashboard/ai-tools')
def ai_tools_page():
    ai_service = get_ai_service()
    return render_template('ai_tools.html',
                           claude_enabled=ai_service.is_available('claude'),
                           search_enabled=ai_service.is_available('search'),
                           trades=TRADES)

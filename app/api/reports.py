"""
Reports Routes Blueprint

KPI cards, receivables aging, technician commission, inventory value and part usage.
"""

import logging
from flask import Blueprint, request

from app.utils.helpers import api_error, api_success, get_services
from database.models import TRADES, parse_date

logger = logging.getLogger(__name__)

# Create blueprint
reports_bp = Blueprint('reports_bp', __name__, url_prefix='/api/reports')


@reports_bp.route('/kpis', methods=['GET'])
def kpis():
    return api_success(get_services().kpis.calculate_kpis())


@reports_bp.route('/aging', methods=['GET'])
def aging():
    """Accounts receivable aging, optionally as of ?date=YYYY-MM-DD"""
    as_of = None
    if request.args.get('date'):
        as_of = parse_date(request.args['date'])
        if as_of is None:
            return api_error('Invalid date. Use YYYY-MM-DD.', 400, {'date': ['Invalid date.']})
    report = get_services().kpis.aging_report(today=as_of, customer_id=request.args.get('customerId'))
    return api_success(report)


@reports_bp.route('/technician-earnings', methods=['GET'])
def technician_earnings():
    return api_success(get_services().kpis.technician_earnings(request.args.get('technicianId')))


@reports_bp.route('/inventory', methods=['GET'])
def inventory_report():
    """Asset value, reorders and open orders; ?trade= and ?technicianId= narrow the most-used parts"""
    trade = request.args.get('trade') or None
    if trade and trade not in TRADES:
        return api_error('Unknown trade.', 400, {'trade': [f"Must be one of: {', '.join(TRADES)}"]})

    services = get_services()
    return api_success({
        'assetValue': services.inventory.asset_value(),
        'suggestedReorders': services.inventory.suggested_reorders(),
        'onOrder': services.inventory.on_order(),
        'mostUsedParts': services.inventory.most_used_parts(
            trade=trade, technician_id=request.args.get('technicianId') or None,
        ),
    })

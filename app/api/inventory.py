"""
Inventory Routes Blueprint

- Stock: list, edit, issue to technician, log usage on a job
- Purchase orders: create, on-order view, receive, field purchases
- Equipment: service logs and condition changes
"""

import logging
from flask import Blueprint, request

from app.utils.helpers import api_success, get_request_data, get_services, handle_service_errors

logger = logging.getLogger(__name__)

# Create blueprint
inventory_bp = Blueprint('inventory_bp', __name__)


# ============================================================================
# STOCK
# ============================================================================

@inventory_bp.route('/api/inventory', methods=['GET'])
def list_inventory():
    items = get_services().inventory_repo.list_items(
        category=request.args.get('category'),
        trade=request.args.get('trade'),
        low_stock_only=request.args.get('lowStock', 'false').lower() == 'true',
        search=request.args.get('search'),
    )
    return api_success(items, f"{len(items)} items")


@inventory_bp.route('/api/inventory/<item_id>', methods=['PUT'])
@handle_service_errors('updating the item')
def update_item(item_id):
    item = get_services().inventory.update_inventory_item(item_id, get_request_data())
    return api_success(item, 'Item updated successfully.')


@inventory_bp.route('/api/inventory/<item_id>/issue', methods=['POST'])
@handle_service_errors('issuing stock')
def issue_stock(item_id):
    """Move warehouse stock onto a technician's truck"""
    data = get_request_data()
    result = get_services().inventory.issue_stock_to_technician(
        item_id, data.get('technicianId'), data.get('quantity'),
    )
    return api_success(result['item'], result['message'])


@inventory_bp.route('/api/inventory/<item_id>/usage', methods=['POST'])
@handle_service_errors('logging the part')
def log_usage(item_id):
    data = get_request_data()
    result = get_services().inventory.log_part_usage(
        item_id, data.get('jobId'), data.get('technicianId'), data.get('quantity'), data.get('note'),
    )
    return api_success({'item': result['item'], 'job': result['job']}, result['message'])


# ============================================================================
# PURCHASE ORDERS
# ============================================================================

@inventory_bp.route('/api/purchase-orders', methods=['GET'])
def list_purchase_orders():
    statuses = request.args.getlist('status') or None
    return api_success(get_services().inventory_repo.list_purchase_orders(statuses=statuses))


@inventory_bp.route('/api/purchase-orders', methods=['POST'])
@handle_service_errors('creating the purchase order')
def create_purchase_order():
    po = get_services().inventory.create_purchase_order(get_request_data())
    return api_success(po, 'Purchase order created.', 201)


@inventory_bp.route('/api/purchase-orders/on-order', methods=['GET'])
def on_order():
    orders = get_services().inventory.on_order(search=request.args.get('search'))
    return api_success(orders, f"{len(orders)} orders awaiting delivery")


@inventory_bp.route('/api/purchase-orders/<po_id>/receive', methods=['POST'])
@handle_service_errors('receiving the purchase order')
def receive_purchase_order(po_id):
    data = get_request_data()
    result = get_services().inventory.receive_purchase_order(po_id, data.get('itemId'))
    return api_success(result, f"Purchase order {po_id} {result['purchaseOrder']['status']}.")


@inventory_bp.route('/api/field-purchases', methods=['POST'])
@handle_service_errors('logging the purchase')
def add_field_purchase():
    data = get_request_data()
    po = get_services().inventory.add_field_purchase(data, data.get('technicianId'))
    return api_success(po, 'Field purchase logged successfully.', 201)


# ============================================================================
# EQUIPMENT
# ============================================================================

@inventory_bp.route('/api/equipment', methods=['GET'])
def list_equipment():
    return api_success(get_services().crm.list_equipment(customer_id=request.args.get('customerId')))


@inventory_bp.route('/api/equipment/<equipment_id>/logs', methods=['GET'])
def list_equipment_logs(equipment_id):
    return api_success(get_services().inventory_repo.list_equipment_logs(equipment_id))


@inventory_bp.route('/api/equipment/logs', methods=['POST'])
@handle_service_errors('adding the service log')
def add_equipment_log():
    log = get_services().inventory.add_equipment_log(get_request_data())
    return api_success(log, 'Service log added successfully.', 201)


@inventory_bp.route('/api/equipment/<equipment_id>/condition', methods=['POST'])
@handle_service_errors('updating equipment condition')
def update_equipment_condition(equipment_id):
    data = {**get_request_data(), 'equipmentId': equipment_id}
    result = get_services().inventory.update_equipment_condition(data)
    return api_success(result, 'Equipment condition updated successfully.')

"""
Settings Routes Blueprint

Tax zones, vendors, estimate templates and the price book.
"""

import logging
from flask import Blueprint, request

from app.utils.helpers import api_success, get_request_data, get_services, handle_service_errors

logger = logging.getLogger(__name__)

# Create blueprint
settings_bp = Blueprint('settings_bp', __name__, url_prefix='/api/settings')


# ============================================================================
# TAX ZONES
# ============================================================================

@settings_bp.route('/tax-zones', methods=['GET'])
def list_tax_zones():
    return api_success(get_services().crm.list_tax_zones())


@settings_bp.route('/tax-zones', methods=['POST'])
@handle_service_errors('saving the tax zone')
def create_tax_zone():
    """Rate is submitted as a percentage, e.g. 8.25"""
    zone = get_services().billing.create_tax_zone(get_request_data())
    return api_success(zone, f"Tax zone '{zone['name']}' added.", 201)


@settings_bp.route('/tax-zones/<zone_id>', methods=['DELETE'])
@handle_service_errors('deleting the tax zone')
def delete_tax_zone(zone_id):
    get_services().billing.delete_tax_zone(zone_id)
    return api_success(None, 'Tax zone deleted.')


# ============================================================================
# VENDORS
# ============================================================================

@settings_bp.route('/vendors', methods=['GET'])
def list_vendors():
    vendors = get_services().inventory.search_vendors(
        search=request.args.get('search'),
        trade=request.args.get('trade'),
        preferred_only=request.args.get('preferred', 'false').lower() == 'true',
    )
    return api_success(vendors, f"{len(vendors)} vendors")


@settings_bp.route('/vendors', methods=['POST'])
@handle_service_errors('saving the vendor')
def create_vendor():
    vendor = get_services().inventory.create_vendor(get_request_data())
    return api_success(vendor, 'Vendor added.', 201)


@settings_bp.route('/vendors/<vendor_id>', methods=['PUT'])
@handle_service_errors('saving the vendor')
def update_vendor(vendor_id):
    vendor = get_services().inventory.update_vendor(vendor_id, get_request_data())
    return api_success(vendor, 'Vendor updated.')


@settings_bp.route('/vendors/<vendor_id>', methods=['DELETE'])
@handle_service_errors('deleting the vendor')
def delete_vendor(vendor_id):
    get_services().inventory.delete_vendor(vendor_id)
    return api_success(None, 'Vendor deleted.')


# ============================================================================
# ESTIMATE TEMPLATES
# ============================================================================

@settings_bp.route('/estimate-templates', methods=['GET'])
def list_templates():
    return api_success(get_services().billing_repo.list_estimate_templates())


@settings_bp.route('/estimate-templates', methods=['POST'])
@handle_service_errors('saving the template')
def create_template():
    template = get_services().billing.create_estimate_template(get_request_data())
    return api_success(template, 'Template created successfully.', 201)


@settings_bp.route('/estimate-templates/<template_id>', methods=['PUT'])
@handle_service_errors('saving the template')
def update_template(template_id):
    template = get_services().billing.update_estimate_template(template_id, get_request_data())
    return api_success(template, 'Template updated successfully.')


# ============================================================================
# PRICE BOOK
# ============================================================================

@settings_bp.route('/pricebook', methods=['GET'])
def list_pricebook():
    return api_success(get_services().billing_repo.list_pricebook_items(trade=request.args.get('trade')))


@settings_bp.route('/pricebook', methods=['POST'])
@handle_service_errors('saving the price book item')
def add_pricebook_item():
    item = get_services().billing.add_pricebook_item(get_request_data())
    return api_success(item, 'Item added to price book.', 201)

"""
Customer Routes Blueprint

- /api/customers            : list (search) and create
- /api/customers/<id>       : customer profile with linked records
- /api/referrals/<id>/status: referral status changes
"""

import logging
from flask import Blueprint, request

from app.utils.helpers import api_success, get_request_data, get_services, handle_service_errors

logger = logging.getLogger(__name__)

# Create blueprint
customers_bp = Blueprint('customers_bp', __name__)


@customers_bp.route('/api/customers', methods=['GET'])
def list_customers():
    customers = get_services().customers.list_customers(search=request.args.get('search'))
    return api_success(customers, f"{len(customers)} customers")


@customers_bp.route('/api/customers', methods=['POST'])
@handle_service_errors('creating the customer')
def create_customer():
    """Create a customer from the new-customer form"""
    customer = get_services().customers.create_customer(get_request_data())
    return api_success(customer, 'Customer created successfully.', 201)


@customers_bp.route('/api/customers/<customer_id>', methods=['GET'])
@handle_service_errors('loading the customer')
def get_customer(customer_id):
    profile = get_services().customers.get_profile(customer_id)
    return api_success(profile)


@customers_bp.route('/api/referrals/<referral_id>/status', methods=['POST'])
@handle_service_errors('updating the referral')
def update_referral_status(referral_id):
    data = get_request_data()
    referral = get_services().customers.update_referral_status(referral_id, data.get('status'))
    return api_success(referral, 'Referral updated.')

"""
Customer Service - customer onboarding, referrals and the customer profile view.
"""

import logging
from typing import Any, Dict, List

from database import models
from services.billing_repository import BillingRepository
from services.crm_repository import CRMRepository
from services.errors import NotFoundError
from services.inventory_repository import InventoryRepository
from validators import ValidationError, validate_choice, validate_customer_form

logger = logging.getLogger(__name__)


class CustomerService:
    """Creates customers and assembles the data shown on a customer page."""

    def __init__(self, crm: CRMRepository, billing: BillingRepository, inventory: InventoryRepository):
        self.crm = crm
        self.billing = billing
        self.inventory = inventory

    def create_customer(self, data: Dict[str, Any]) -> Dict:
        """
        Validate the new-customer form and store the customer.

        A ``referredBy`` value may be a referral code or a customer id; when it
        resolves, a pending referral is recorded for the referrer.

        Raises:
            ValidationError: Missing or malformed contact fields, unknown tax
                zone or referrer
        """
        form = validate_customer_form(data)

        if form['taxRegion'] and not self.crm.get_tax_zone(form['taxRegion']):
            raise ValidationError('Unknown tax zone.', field='taxRegion')

        referrer = None
        if form['referredBy']:
            referrer = (self.crm.find_customer_by_referral_code(form['referredBy'])
                        or self.crm.get_customer(form['referredBy']))
            if not referrer:
                raise ValidationError('Referral code not recognised.', field='referredBy')

        name = f"{form['firstName']} {form['lastName']}"
        street_line = ', '.join(part for part in (
            form['street'], form['city'], f"{form['state']} {form['zipCode']}".strip(),
        ) if part)

        customer = self.crm.create_customer({
            'primaryContact': {'name': name, 'email': form['email'], 'phone': form['phone']},
            'companyInfo': {'name': form['companyName'], 'address': street_line},
            'address': {
                'street': form['street'],
                'city': form['city'],
                'state': form['state'],
                'zipCode': form['zipCode'],
            },
            'taxRegion': form['taxRegion'] or None,
            'notes': form['notes'],
            'referralCode': models.generate_referral_code(name),
            'referredBy': referrer['id'] if referrer else None,
        })

        if referrer:
            self.crm.create_referral({
                'referrerId': referrer['id'],
                'referredName': name,
                'referredCustomerId': customer['id'],
                'status': 'pending',
            })
        return customer

    def update_referral_status(self, referral_id: str, status: str) -> Dict:
        is_valid, error = validate_choice(status, models.REFERRAL_STATUSES)
        if not is_valid:
            raise ValidationError(error, field='status')
        referral = self.crm.update_referral(referral_id, {'status': status})
        if not referral:
            raise NotFoundError('Referral', referral_id)
        return referral

    def get_profile(self, customer_id: str) -> Dict[str, Any]:
        """Customer record plus linked jobs, estimates, deposits and money totals."""
        customer = self.crm.get_customer(customer_id)
        if not customer:
            raise NotFoundError('Customer', customer_id)

        technicians = {t['id']: t['name'] for t in self.crm.list_technicians()}
        jobs = self.crm.list_jobs(customer_id=customer_id)
        for job in jobs:
            job['technicianName'] = technicians.get(job.get('technicianId'), 'Unassigned')

        job_ids = {job['id'] for job in jobs}
        invoices = self.billing.list_invoices(customer_id=customer_id)
        payments = [p for p in self.billing.list_payments() if p.get('customerId') == customer_id]
        estimates = self.billing.list_estimates(customer_id=customer_id)
        deposits = self.billing.list_deposits(customer_id=customer_id)
        purchase_orders = [po for po in self.inventory.list_purchase_orders() if po.get('jobId') in job_ids]

        return {
            'customer': customer,
            'equipment': self.crm.list_equipment(customer_id=customer_id),
            'jobs': jobs,
            'estimates': estimates,
            'invoices': invoices,
            'deposits': deposits,
            'referrals': self.crm.list_referrals(referrer_id=customer_id),
            'totals': {
                'totalBilled': round(sum(float(i.get('total', 0)) for i in invoices), 2),
                'totalPaid': round(sum(float(p.get('amount', 0)) for p in payments), 2),
                'totalDirectExpenses': round(sum(float(po.get('total', 0)) for po in purchase_orders), 2),
            },
            'linkedRecords': {
                'purchaseOrders': len(purchase_orders),
                'estimates': len(estimates),
                'invoices': len(invoices),
                'deposits': len(deposits),
            },
        }

    def list_customers(self, search: str = None) -> List[Dict]:
        return self.crm.list_customers(search=search)

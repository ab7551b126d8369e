"""
Billing Repository - Store access layer for monetary documents.
Estimates, invoices, payments, refunds, deposits, change orders, estimate
templates, pricebook items and service agreements.
"""

import logging
from typing import List, Optional, Dict

from database import models
from database.store import MockStore

logger = logging.getLogger(__name__)


class BillingRepository:
    """Repository for billing records held in the mock store."""

    def __init__(self, store: MockStore):
        self.store = store

    # =========================================================================
    # ESTIMATES
    # =========================================================================

    def list_estimates(self, customer_id: str = None, status: str = None) -> List[Dict]:
        filters = {}
        if customer_id:
            filters['customerId'] = customer_id
        if status:
            filters['status'] = status
        return self.store.list(models.ESTIMATES, **filters)

    def get_estimate(self, estimate_id: str) -> Optional[Dict]:
        return self.store.get(models.ESTIMATES, estimate_id)

    def create_estimate(self, data: Dict) -> Dict:
        estimate = self.store.insert(models.ESTIMATES, data)
        logger.info(f"Created estimate: {estimate['id']} ({estimate.get('estimateNumber')})")
        return estimate

    def update_estimate(self, estimate_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.ESTIMATES, estimate_id, data)

    # =========================================================================
    # INVOICES
    # =========================================================================

    def list_invoices(self, customer_id: str = None, status: str = None) -> List[Dict]:
        filters = {}
        if customer_id:
            filters['customerId'] = customer_id
        if status:
            filters['status'] = status
        return self.store.list(models.INVOICES, **filters)

    def get_invoice(self, invoice_id: str) -> Optional[Dict]:
        return self.store.get(models.INVOICES, invoice_id)

    def create_invoice(self, data: Dict) -> Dict:
        invoice = self.store.insert(models.INVOICES, data)
        logger.info(f"Created invoice: {invoice['id']} ({invoice.get('invoiceNumber')})")
        return invoice

    def update_invoice(self, invoice_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.INVOICES, invoice_id, data)

    # =========================================================================
    # PAYMENTS & REFUNDS
    # =========================================================================

    def list_payments(self, invoice_id: str = None) -> List[Dict]:
        if invoice_id:
            return self.store.list(models.PAYMENTS, invoiceId=invoice_id)
        return self.store.list(models.PAYMENTS)

    def create_payment(self, data: Dict) -> Dict:
        payment = self.store.insert(models.PAYMENTS, data)
        logger.info(f"Recorded payment: {payment['id']} of {payment.get('amount')} on {payment.get('invoiceId')}")
        return payment

    def list_refunds(self, invoice_id: str = None) -> List[Dict]:
        if invoice_id:
            return self.store.list(models.REFUNDS, invoiceId=invoice_id)
        return self.store.list(models.REFUNDS)

    def create_refund(self, data: Dict) -> Dict:
        refund = self.store.insert(models.REFUNDS, data)
        logger.info(f"Issued refund: {refund['id']} of {refund.get('amount')} on {refund.get('invoiceId')}")
        return refund

    # =========================================================================
    # DEPOSITS
    # =========================================================================

    def list_deposits(self, customer_id: str = None) -> List[Dict]:
        if customer_id:
            return self.store.list(models.DEPOSITS, customerId=customer_id)
        return self.store.list(models.DEPOSITS)

    def get_deposit(self, deposit_id: str) -> Optional[Dict]:
        return self.store.get(models.DEPOSITS, deposit_id)

    def update_deposit(self, deposit_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.DEPOSITS, deposit_id, data)

    # =========================================================================
    # CHANGE ORDERS
    # =========================================================================

    def list_change_orders(self, job_id: str = None) -> List[Dict]:
        if job_id:
            return self.store.list(models.CHANGE_ORDERS, jobId=job_id)
        return self.store.list(models.CHANGE_ORDERS)

    def get_change_order(self, change_order_id: str) -> Optional[Dict]:
        return self.store.get(models.CHANGE_ORDERS, change_order_id)

    def create_change_order(self, data: Dict) -> Dict:
        change_order = self.store.insert(models.CHANGE_ORDERS, data)
        logger.info(f"Created change order: {change_order['id']} for job {change_order.get('jobId')}")
        return change_order

    def update_change_order(self, change_order_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.CHANGE_ORDERS, change_order_id, data)

    # =========================================================================
    # TEMPLATES, PRICEBOOK, AGREEMENTS
    # =========================================================================

    def list_estimate_templates(self) -> List[Dict]:
        return self.store.list(models.ESTIMATE_TEMPLATES)

    def create_estimate_template(self, data: Dict) -> Dict:
        template = self.store.insert(models.ESTIMATE_TEMPLATES, data)
        logger.info(f"Created estimate template: {template['id']}")
        return template

    def update_estimate_template(self, template_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.ESTIMATE_TEMPLATES, template_id, data)

    def list_pricebook_items(self, trade: str = None) -> List[Dict]:
        if trade:
            return self.store.list(models.PRICEBOOK_ITEMS, trade=trade)
        return self.store.list(models.PRICEBOOK_ITEMS)

    def create_pricebook_item(self, data: Dict) -> Dict:
        item = self.store.insert(models.PRICEBOOK_ITEMS, data)
        logger.info(f"Created pricebook item: {item['id']} ({item.get('title')})")
        return item

    def list_service_agreements(self, customer_id: str = None) -> List[Dict]:
        if customer_id:
            return self.store.list(models.SERVICE_AGREEMENTS, customerId=customer_id)
        return self.store.list(models.SERVICE_AGREEMENTS)

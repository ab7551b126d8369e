"""
Billing Service - business rules for estimates, invoices and money movement.

Totals are always recomputed from line items and the customer's tax zone.
Payment-derived invoice status (paid / partially_paid / overdue) is computed by
``summarize_invoice`` and never overrides a manually set status.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from database import models
from services.billing_repository import BillingRepository
from services.crm_repository import CRMRepository
from services.errors import BusinessRuleError, NotFoundError
from validators import (
    MONEY_TOLERANCE,
    FieldErrors,
    ValidationError,
    coerce_number,
    sanitize_string,
    validate_choice,
    validate_line_items,
    validate_money,
    validate_tax_zone_form,
)

logger = logging.getLogger(__name__)


def _money(value: float) -> float:
    return round(float(value), 2)


def calculate_totals(line_items: List[Dict[str, Any]], tax_zone: Optional[Dict] = None,
                     discount: float = 0.0) -> Dict[str, Any]:
    """
    Compute subtotal, the single tax line and the total.

    Tax is charged on the subtotal at the zone rate; an unknown zone taxes at 0.

    Args:
        line_items: Items carrying quantity and unitPrice
        tax_zone: The customer's tax zone record, if any
        discount: Flat discount taken off before tax is added

    Returns:
        Dict with subtotal, discount, taxes and total
    """
    subtotal = sum(float(item.get('quantity', 0)) * float(item.get('unitPrice', 0)) for item in line_items)
    rate = float(tax_zone['rate']) if tax_zone else 0.0
    tax = subtotal * rate
    return {
        'subtotal': _money(subtotal),
        'discount': _money(discount),
        'taxes': [{
            'name': f"{tax_zone['name']} Tax" if tax_zone else 'Tax',
            'amount': _money(tax),
            'rate': rate,
        }],
        'total': _money(subtotal - discount + tax),
    }


def summarize_invoice(invoice: Dict[str, Any], payments: List[Dict], refunds: List[Dict],
                      today: Optional[date] = None) -> Dict[str, Any]:
    """
    Derive amountPaid, balanceDue and status from recorded payments and refunds.

    Manual statuses (draft, refunded, credited, pending_review) are kept as-is.
    """
    today = today or date.today()
    paid = sum(float(p.get('amount', 0)) for p in payments)
    refunded = sum(float(r.get('amount', 0)) for r in refunds)
    net_paid = paid - refunded
    balance = float(invoice.get('total', 0)) - net_paid

    status = invoice.get('status', 'draft')
    if status not in models.MANUAL_INVOICE_STATUSES:
        due = models.parse_date(invoice.get('dueDate'))
        if balance <= MONEY_TOLERANCE and net_paid > 0:
            status = 'paid'
        elif net_paid > 0:
            status = 'partially_paid'
        elif due and due < today:
            status = 'overdue'

    return {
        **invoice,
        'amountPaid': _money(net_paid),
        'totalPayments': _money(paid),
        'totalRefunds': _money(refunded),
        'balanceDue': _money(balance),
        'status': status,
    }


class BillingService:
    """Estimates, invoices, payments, refunds, deposits and billing settings."""

    def __init__(self, crm: CRMRepository, billing: BillingRepository,
                 payment_terms_days: int = 30, labor_rate: float = 95.0,
                 today: Callable[[], date] = date.today):
        self.crm = crm
        self.billing = billing
        self.payment_terms_days = payment_terms_days
        self.labor_rate = labor_rate
        self.today = today

    # ==================== HELPERS ====================

    def _require_customer(self, customer_id: str) -> Dict:
        customer = self.crm.get_customer(customer_id)
        if not customer:
            raise NotFoundError('Customer', customer_id)
        return customer

    def _require_estimate(self, estimate_id: str) -> Dict:
        estimate = self.billing.get_estimate(estimate_id)
        if not estimate:
            raise NotFoundError('Estimate', estimate_id)
        return estimate

    def _require_invoice(self, invoice_id: str) -> Dict:
        invoice = self.billing.get_invoice(invoice_id)
        if not invoice:
            raise NotFoundError('Invoice', invoice_id)
        return invoice

    def _totals_for_customer(self, customer: Dict, line_items: List[Dict], discount: float = 0.0) -> Dict:
        return calculate_totals(line_items, self.crm.get_tax_zone(customer.get('taxRegion')), discount)

    def _payment_terms(self) -> Dict[str, Any]:
        issue = self.today()
        return {
            'issueDate': issue.isoformat(),
            'dueDate': (issue + timedelta(days=self.payment_terms_days)).isoformat(),
            'paymentTerms': f"Net {self.payment_terms_days}",
        }

    @staticmethod
    def _audit_entry(action: str, details: str, user: str = 'system') -> Dict[str, Any]:
        return {
            'id': models.generate_id('log'),
            'timestamp': models.now_iso(),
            'userId': user,
            'userName': user,
            'action': action,
            'details': details,
        }

    def _append_audit(self, invoice: Dict, action: str, details: str, user: str = 'system'):
        log = list(invoice.get('auditLog') or [])
        log.append(self._audit_entry(action, details, user))
        self.billing.update_invoice(invoice['id'], {'auditLog': log})

    # =========================================================================
    # ESTIMATES
    # =========================================================================

    def create_estimate(self, data: Dict[str, Any], created_by: str = 'admin_user') -> Dict:
        """
        Create a draft estimate for an existing customer.

        When no job is given an unscheduled job is created and linked.
        """
        errors = FieldErrors()
        customer_id = sanitize_string(data.get('customerId'))
        title = sanitize_string(data.get('title'), 200)
        if not customer_id:
            errors.add('customerId', 'Customer is required.')
        if not title:
            errors.add('title', 'Title is required.')
        errors.raise_if_any('Invalid estimate data provided.')

        line_items = validate_line_items(data.get('lineItems'), required=False)
        discount = validate_money(data.get('discount', 0) or 0, 'discount')
        gbb_tier = self._clean_gbb_tier(data.get('gbbTier'))
        customer = self._require_customer(customer_id)

        job_id = sanitize_string(data.get('jobId')) or None
        if job_id:
            if not self.crm.get_job(job_id):
                raise NotFoundError('Job', job_id)
        else:
            job = self.crm.create_job({
                'customerId': customer_id,
                'title': f"Job for: {title}",
                'description': f'This job was auto-created from estimate for "{title}".',
                'status': 'unscheduled',
                'technicianId': '',
                'schedule': None,
                'duration': 0,
                'details': {'serviceType': 'Unspecified'},
                'isAutoCreated': True,
            })
            job_id = job['id']
            logger.info(f"Auto-created job {job_id} for estimate '{title}'")

        estimate = {
            'estimateNumber': models.generate_document_number('EST', 4),
            'customerId': customer_id,
            'title': title,
            'status': 'draft',
            'jobId': job_id,
            'lineItems': line_items,
            'gbbTier': gbb_tier,
            'notes': sanitize_string(data.get('notes'), 2000),
            'createdBy': created_by,
            **self._totals_for_customer(customer, line_items, discount),
        }
        return self.billing.create_estimate(estimate)

    @staticmethod
    def _clean_gbb_tier(value: Any) -> Optional[Dict]:
        # Incomplete tiers are dropped rather than rejected
        if not isinstance(value, dict):
            return None
        if not all(tier in value for tier in models.GBB_TIERS):
            return None
        return {tier: value[tier] for tier in models.GBB_TIERS}

    def accept_estimate_from_tier(self, data: Dict[str, Any]) -> Dict:
        """Create an accepted estimate holding the single tier the customer picked."""
        errors = FieldErrors()
        customer_id = sanitize_string(data.get('customerId'))
        title = sanitize_string(data.get('title'), 200)
        tier = data.get('selectedTier')
        if not customer_id:
            errors.add('customerId', 'Customer is required.')
        if not title:
            errors.add('title', 'Title is required.')
        price = None
        if not isinstance(tier, dict) or not sanitize_string(tier.get('description')):
            errors.add('selectedTier', 'A tier with a description must be selected.')
        else:
            price = coerce_number(tier.get('price'))
            if price is None:
                errors.add('selectedTier', 'Tier price must be a number.')
            elif price < 0:
                errors.add('selectedTier', 'Tier price cannot be negative.')
        errors.raise_if_any('Invalid estimate data provided.')

        customer = self._require_customer(customer_id)
        line_items = [{
            'description': sanitize_string(tier['description'], 2000),
            'quantity': 1,
            'unitPrice': price,
            'inventoryParts': [],
        }]
        estimate = {
            'estimateNumber': models.generate_document_number('EST', 4),
            'customerId': customer_id,
            'title': title,
            'status': 'accepted',
            'jobId': sanitize_string(data.get('jobId')) or None,
            'lineItems': line_items,
            'createdBy': 'customer_acceptance',
            **self._totals_for_customer(customer, line_items),
        }
        return self.billing.create_estimate(estimate)

    def update_estimate_status(self, estimate_id: str, status: str) -> Dict:
        is_valid, error = validate_choice(status, models.ESTIMATE_STATUSES)
        if not is_valid:
            raise ValidationError(error, field='status')
        self._require_estimate(estimate_id)
        estimate = self.billing.update_estimate(estimate_id, {'status': status})
        logger.info(f"Estimate {estimate_id} status -> {status}")
        return estimate

    def accept_estimate_with_signature(self, estimate_id: str, signature: str = None) -> Dict:
        estimate = self._require_estimate(estimate_id)
        if estimate.get('status') != 'sent':
            raise BusinessRuleError('Only sent estimates can be accepted.', field='status')
        changes = {'status': 'accepted', 'acceptedAt': models.now_iso()}
        if signature:
            changes['signature'] = signature
        return self.billing.update_estimate(estimate_id, changes)

    def convert_estimate_to_invoice(self, estimate_id: str) -> Dict:
        """Create a draft invoice from an accepted estimate."""
        estimate = self._require_estimate(estimate_id)
        if estimate.get('status') != 'accepted':
            raise BusinessRuleError('Cannot convert an estimate that is not accepted.', field='status')

        invoice = {
            'invoiceNumber': models.generate_document_number('INV', 6),
            'customerId': estimate['customerId'],
            'jobIds': [estimate['jobId']] if estimate.get('jobId') else [],
            'title': estimate['title'],
            'status': 'draft',
            'lineItems': [
                {**item, 'origin': {'type': 'estimate', 'id': estimate_id}}
                for item in estimate.get('lineItems', [])
            ],
            'subtotal': estimate.get('subtotal', 0),
            'discount': estimate.get('discount', 0),
            'taxes': estimate.get('taxes', []),
            'total': estimate.get('total', 0),
            'amountPaid': 0,
            'balanceDue': estimate.get('total', 0),
            'linkedEstimateIds': [estimate_id],
            'auditLog': [self._audit_entry('Invoice Created', f"Converted from estimate {estimate.get('estimateNumber')}.")],
            **self._payment_terms(),
        }
        created = self.billing.create_invoice(invoice)
        for job_id in created['jobIds']:
            self.crm.update_job(job_id, {'invoiceId': created['id']})
        return created

    # =========================================================================
    # INVOICES
    # =========================================================================

    def create_invoice(self, data: Dict[str, Any]) -> Dict:
        """Create a draft invoice and link the given jobs to it."""
        errors = FieldErrors()
        customer_id = sanitize_string(data.get('customerId'))
        title = sanitize_string(data.get('title'), 200)
        job_ids = data.get('jobIds') or []
        if not customer_id:
            errors.add('customerId', 'Customer is required.')
        if not title:
            errors.add('title', 'Title is required.')
        if not isinstance(job_ids, list) or not all(isinstance(j, str) for j in job_ids):
            errors.add('jobIds', 'Invalid Job IDs.')
        errors.raise_if_any('Invalid invoice data provided.')

        line_items = validate_line_items(data.get('lineItems'))
        customer = self._require_customer(customer_id)
        totals = self._totals_for_customer(customer, line_items)

        invoice = {
            'invoiceNumber': models.generate_document_number('INV', 6),
            'customerId': customer_id,
            'title': title,
            'jobIds': job_ids,
            'status': 'draft',
            'lineItems': line_items,
            'subtotal': totals['subtotal'],
            'taxes': totals['taxes'],
            'total': totals['total'],
            'amountPaid': 0,
            'balanceDue': totals['total'],
            'auditLog': [self._audit_entry('Invoice Created', 'Created manually.')],
            **self._payment_terms(),
        }
        created = self.billing.create_invoice(invoice)

        for job_id in job_ids:
            if self.crm.update_job(job_id, {'invoiceId': created['id']}) is None:
                logger.warning(f"Invoice {created['id']} references missing job {job_id}")
        return created

    # ==================== BATCH INVOICING ====================

    @staticmethod
    def _is_invoiceable(job: Dict) -> bool:
        return job.get('status') == 'complete' and not job.get('invoiceId')

    def invoiceable_jobs(self, customer_id: str = None) -> List[Dict]:
        """Completed jobs that have not been invoiced yet, with the customer's name."""
        jobs = []
        for job in self.crm.list_jobs(customer_id=customer_id, status='complete'):
            if not self._is_invoiceable(job):
                continue
            customer = self.crm.get_customer(job['customerId'])
            jobs.append({
                **job,
                'customerName': customer['primaryContact']['name'] if customer else 'Unknown',
            })
        return jobs

    def _job_line_items(self, job: Dict) -> List[Dict]:
        """Labour at the configured hourly rate plus every part logged on the job."""
        hours = round(float(job.get('duration') or 60) / 60, 2)
        lines = [{
            'description': f"Labor: {job.get('title') or 'Service call'}",
            'quantity': hours,
            'unitPrice': self.labor_rate,
        }]
        for used in job.get('usedParts') or []:
            lines.append({
                'description': used.get('name') or used.get('partId'),
                'quantity': used.get('quantity', 1),
                'unitPrice': used.get('ourPrice') or 0,
                'partId': used.get('partId'),
            })
        return lines

    def create_batch_invoices(self, job_ids: Any) -> List[Dict]:
        """
        Create one draft invoice per completed, uninvoiced job.

        Every job is checked before any invoice is written, so one bad id
        leaves the whole batch undone.

        Raises:
            ValidationError: If no job ids are given
            NotFoundError: If a job does not exist
            BusinessRuleError: If a job is not complete or already invoiced
        """
        if not isinstance(job_ids, list) or not job_ids or not all(isinstance(j, str) for j in job_ids):
            raise ValidationError('Select at least one job to invoice.', field='jobIds')

        jobs = []
        for job_id in dict.fromkeys(job_ids):
            job = self.crm.get_job(job_id)
            if not job:
                raise NotFoundError('Job', job_id)
            if not self._is_invoiceable(job):
                raise BusinessRuleError(
                    f"Job {job.get('title') or job_id} is not complete or is already invoiced.", field='jobIds')
            jobs.append(job)

        invoices = [
            self.create_invoice({
                'customerId': job['customerId'],
                'title': job.get('title') or 'Service call',
                'jobIds': [job['id']],
                'lineItems': self._job_line_items(job),
            })
            for job in jobs
        ]
        logger.info(f"Batch created {len(invoices)} invoices")
        return invoices

    def update_invoice(self, invoice_id: str, data: Dict[str, Any]) -> Dict:
        """Edit title and line items of a draft invoice and recompute totals."""
        title = sanitize_string(data.get('title'), 200)
        if not title:
            raise ValidationError('Title is required.', field='title')
        line_items = validate_line_items(data.get('lineItems'))

        invoice = self._require_invoice(invoice_id)
        if invoice.get('status') != 'draft':
            raise BusinessRuleError('Only draft invoices can be edited.', field='status')

        customer = self.crm.get_customer(invoice['customerId'])
        if not customer:
            raise NotFoundError('Customer', invoice['customerId'])

        totals = self._totals_for_customer(customer, line_items)
        updated = self.billing.update_invoice(invoice_id, {
            'title': title,
            'lineItems': line_items,
            'subtotal': totals['subtotal'],
            'taxes': totals['taxes'],
            'total': totals['total'],
            'balanceDue': _money(totals['total'] - float(invoice.get('amountPaid', 0))),
        })
        self._append_audit(updated, 'Invoice Edited', 'Line items updated.')
        return self.billing.get_invoice(invoice_id)

    def update_invoice_status(self, invoice_id: str, status: str) -> Dict:
        is_valid, error = validate_choice(status, models.INVOICE_STATUSES)
        if not is_valid:
            raise ValidationError(error, field='status')
        invoice = self._require_invoice(invoice_id)
        self.billing.update_invoice(invoice_id, {'status': status})
        self._append_audit(invoice, 'Status Changed', f"{invoice.get('status')} -> {status}")
        return self.billing.get_invoice(invoice_id)

    def get_invoice_summary(self, invoice_id: str) -> Dict:
        invoice = self._require_invoice(invoice_id)
        return summarize_invoice(
            invoice,
            self.billing.list_payments(invoice_id),
            self.billing.list_refunds(invoice_id),
            self.today(),
        )

    def list_invoice_summaries(self, customer_id: str = None, status: str = None) -> List[Dict]:
        payments = self.billing.list_payments()
        refunds = self.billing.list_refunds()
        summaries = []
        for invoice in self.billing.list_invoices(customer_id=customer_id):
            summary = summarize_invoice(
                invoice,
                [p for p in payments if p.get('invoiceId') == invoice['id']],
                [r for r in refunds if r.get('invoiceId') == invoice['id']],
                self.today(),
            )
            if status and summary['status'] != status:
                continue
            summaries.append(summary)
        return summaries

    @staticmethod
    def _describe_lines(document: Dict) -> str:
        lines = [
            f"- {item.get('description')}: {item.get('quantity')} x ${float(item.get('unitPrice', 0)):.2f}"
            for item in document.get('lineItems', [])
        ]
        lines.append(f"Total: ${float(document.get('total', 0)):.2f}")
        return '\n'.join(lines)

    def invoice_analysis_details(self, invoice_id: str) -> Dict[str, str]:
        """Plain-text job, estimate and invoice details for the invoice audit flow."""
        invoice = self._require_invoice(invoice_id)

        jobs = [self.crm.get_job(job_id) for job_id in invoice.get('jobIds', [])]
        jobs = [job for job in jobs if job]
        job_details = '\n\n'.join(
            f"{job.get('title')}: {job.get('description', '')}\nDuration: {job.get('duration', 0)} minutes"
            for job in jobs
        ) or invoice.get('title', '')

        estimates = [self.billing.get_estimate(est_id) for est_id in invoice.get('linkedEstimateIds') or []]
        if not estimates:
            job_ids = {job['id'] for job in jobs}
            estimates = [e for e in self.billing.list_estimates(customer_id=invoice['customerId'])
                         if e.get('jobId') in job_ids]
        estimate_details = '\n\n'.join(
            f"{e.get('estimateNumber')} {e.get('title')}\n{self._describe_lines(e)}" for e in estimates if e
        ) or 'N/A'

        return {
            'jobDetails': job_details,
            'estimateDetails': estimate_details,
            'invoiceDetails': f"{invoice.get('invoiceNumber')} {invoice.get('title')}\n{self._describe_lines(invoice)}",
        }

    def _sync_invoice_balance(self, invoice_id: str) -> Dict:
        summary = self.get_invoice_summary(invoice_id)
        self.billing.update_invoice(invoice_id, {
            'amountPaid': summary['amountPaid'],
            'balanceDue': summary['balanceDue'],
            'status': summary['status'],
        })
        return self.get_invoice_summary(invoice_id)

    # ==================== PAYMENTS ====================

    def record_payment(self, invoice_id: str, data: Dict[str, Any], recorded_by: str = 'user_admin') -> Dict:
        """
        Record a payment against an invoice.

        Raises:
            ValidationError: Amount missing, not positive, or above the balance
        """
        amount = validate_money(data.get('amount'), 'amount', exclusive=True)
        method = sanitize_string(data.get('method')) or 'Credit Card'
        summary = self.get_invoice_summary(invoice_id)
        if summary['status'] == 'draft':
            raise BusinessRuleError('Payments cannot be recorded against a draft invoice.', field='status')
        if amount > summary['balanceDue'] + MONEY_TOLERANCE:
            raise ValidationError(
                f"Amount cannot exceed the balance due of {summary['balanceDue']:.2f}.", field='amount')

        payment = self.billing.create_payment({
            'invoiceId': invoice_id,
            'customerId': summary['customerId'],
            'amount': _money(amount),
            'date': sanitize_string(data.get('date')) or self.today().isoformat(),
            'method': method,
            'transactionId': sanitize_string(data.get('transactionId')) or None,
            'notes': sanitize_string(data.get('notes'), 1000),
            'recordedBy': recorded_by,
        })
        invoice = self._sync_invoice_balance(invoice_id)
        self._append_audit(invoice, 'Payment Received', f"Paid ${amount:.2f} via {method}.", recorded_by)
        return {'payment': payment, 'invoice': self.get_invoice_summary(invoice_id)}

    # ==================== REFUNDS ====================

    def issue_refund(self, invoice_id: str, data: Dict[str, Any], processed_by: str = 'user_admin') -> Dict:
        """
        Refund part or all of what has been paid on an invoice.

        Raises:
            ValidationError: Amount not positive, above the net amount paid,
                or an unknown refund method
        """
        amount = validate_money(data.get('amount'), 'amount', exclusive=True)
        method = data.get('method') or 'original_payment'
        is_valid, error = validate_choice(method, models.REFUND_METHODS)
        if not is_valid:
            raise ValidationError(error, field='method')
        reason = sanitize_string(data.get('reason'), 1000)

        summary = self.get_invoice_summary(invoice_id)
        if amount > summary['amountPaid'] + MONEY_TOLERANCE:
            raise ValidationError(
                f"Refund cannot exceed the amount paid of {summary['amountPaid']:.2f}.", field='amount')

        refund = self.billing.create_refund({
            'invoiceId': invoice_id,
            'amount': _money(amount),
            'date': self.today().isoformat(),
            'reason': reason,
            'method': method,
            'processedBy': processed_by,
        })

        changes = {}
        if method == 'credit_memo':
            changes['status'] = 'credited'
        elif abs(summary['amountPaid'] - amount) <= MONEY_TOLERANCE:
            changes['status'] = 'refunded'
        if changes:
            self.billing.update_invoice(invoice_id, changes)

        invoice = self._sync_invoice_balance(invoice_id)
        self._append_audit(invoice, 'Refund Issued', f"Refunded ${amount:.2f}. {reason}".strip(), processed_by)
        return {'refund': refund, 'invoice': self.get_invoice_summary(invoice_id)}

    # ==================== DEPOSITS ====================

    def apply_deposit(self, deposit_id: str, invoice_id: str) -> Dict:
        """Apply an available customer deposit to an invoice as a payment."""
        deposit = self.billing.get_deposit(deposit_id)
        if not deposit:
            raise NotFoundError('Deposit', deposit_id)
        if deposit.get('status') != 'available':
            raise BusinessRuleError('Deposit has already been applied.', field='status')

        summary = self.get_invoice_summary(invoice_id)
        if summary['customerId'] != deposit.get('customerId'):
            raise BusinessRuleError('Deposit belongs to a different customer.', field='customerId')

        amount = min(float(deposit['amount']), summary['balanceDue'])
        if amount <= 0:
            raise BusinessRuleError('Invoice has no balance due.', field='balanceDue')

        payment = self.billing.create_payment({
            'invoiceId': invoice_id,
            'customerId': summary['customerId'],
            'amount': _money(amount),
            'date': self.today().isoformat(),
            'method': 'Deposit',
            'transactionId': deposit_id,
            'recordedBy': 'system',
        })
        self.billing.update_deposit(deposit_id, {'status': 'applied', 'appliedToInvoiceId': invoice_id})
        self._sync_invoice_balance(invoice_id)
        return {'payment': payment, 'invoice': self.get_invoice_summary(invoice_id)}

    # ==================== CHANGE ORDERS ====================

    def create_change_order(self, data: Dict[str, Any]) -> Dict:
        errors = FieldErrors()
        job_id = sanitize_string(data.get('jobId'))
        title = sanitize_string(data.get('title'), 200)
        if not job_id:
            errors.add('jobId', 'Job is required.')
        if not title:
            errors.add('title', 'Title is required.')
        errors.raise_if_any('Invalid change order.')

        line_items = validate_line_items(data.get('lineItems'))
        job = self.crm.get_job(job_id)
        if not job:
            raise NotFoundError('Job', job_id)

        totals = calculate_totals(line_items)
        return self.billing.create_change_order({
            'jobId': job_id,
            'customerId': job['customerId'],
            'title': title,
            'description': sanitize_string(data.get('description'), 2000),
            'lineItems': line_items,
            'total': totals['subtotal'],
            'status': 'draft',
        })

    def update_change_order_status(self, change_order_id: str, status: str) -> Dict:
        is_valid, error = validate_choice(status, models.CHANGE_ORDER_STATUSES)
        if not is_valid:
            raise ValidationError(error, field='status')
        change_order = self.billing.get_change_order(change_order_id)
        if not change_order:
            raise NotFoundError('Change order', change_order_id)
        if change_order.get('status') == 'invoiced':
            raise BusinessRuleError('Invoiced change orders cannot be changed.', field='status')
        return self.billing.update_change_order(change_order_id, {'status': status})

    # =========================================================================
    # SETTINGS: TAX ZONES, TEMPLATES, PRICEBOOK
    # =========================================================================

    def create_tax_zone(self, data: Dict[str, Any]) -> Dict:
        """Validate first; a rejected submission leaves the store untouched."""
        name, rate = validate_tax_zone_form(data)
        return self.crm.create_tax_zone({'name': name, 'rate': rate})

    def delete_tax_zone(self, zone_id: str):
        if not self.crm.delete_tax_zone(zone_id):
            raise NotFoundError('Tax zone', zone_id)

    def _template_fields(self, data: Dict[str, Any]) -> Dict:
        title = sanitize_string(data.get('title'), 200)
        if not title:
            raise ValidationError('Title is required.', field='title')
        return {
            'title': title,
            'lineItems': validate_line_items(data.get('lineItems'), required=False),
            'gbbTier': self._clean_gbb_tier(data.get('gbbTier')),
        }

    def create_estimate_template(self, data: Dict[str, Any]) -> Dict:
        return self.billing.create_estimate_template(self._template_fields(data))

    def update_estimate_template(self, template_id: str, data: Dict[str, Any]) -> Dict:
        fields = self._template_fields(data)
        template = self.billing.update_estimate_template(template_id, fields)
        if not template:
            raise NotFoundError('Estimate template', template_id)
        return template

    def add_pricebook_item(self, data: Dict[str, Any]) -> Dict:
        errors = FieldErrors()
        title = sanitize_string(data.get('title'), 200)
        if not title:
            errors.add('title', 'Title is required')
        price = coerce_number(data.get('price'))
        if price is None:
            errors.add('price', 'Price must be a number')
        elif price < 0:
            errors.add('price', 'Price cannot be negative')
        trade = data.get('trade')
        errors.check('trade', validate_choice(trade, models.TRADES))
        errors.raise_if_any('Invalid data provided.')

        return self.billing.create_pricebook_item({
            'title': title,
            'description': sanitize_string(data.get('description'), 2000),
            'price': _money(price),
            'trade': trade,
            'isCustom': True,
            'inventoryParts': [],
        })

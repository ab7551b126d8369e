"""
KPI & Reports Service

Dashboard metrics computed from live store data, the receivables aging
report and technician commission earnings.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from database import models
from services.billing_repository import BillingRepository
from services.billing_service import BillingService
from services.crm_repository import CRMRepository

logger = logging.getLogger(__name__)

AGING_BUCKETS = ['current', '31-60', '61-90', '90+']

# Invoices that are not receivables even with a balance left on them
NON_RECEIVABLE_STATUSES = ('draft', 'refunded', 'credited')


def format_currency(value: float) -> str:
    """Format as US dollars, e.g. ``$1,234.50`` or ``-$20.00``."""
    sign = '-' if value < 0 else ''
    return f"{sign}${abs(value):,.2f}"


def format_percentage(value: float) -> str:
    return f"{value * 100:.1f}%"


def format_duration(minutes: float) -> str:
    """Minutes as ``Xh Ym``."""
    hours = int(minutes // 60)
    return f"{hours}h {round(minutes % 60)}m"


def aging_bucket(days_past_due: int) -> str:
    if days_past_due <= 30:
        return 'current'
    if days_past_due <= 60:
        return '31-60'
    if days_past_due <= 90:
        return '61-90'
    return '90+'


class KPIService:
    """Reporting over the CRM and billing repositories."""

    def __init__(self, crm: CRMRepository, billing: BillingRepository,
                 billing_service: BillingService, today: Callable[[], date] = date.today):
        self.crm = crm
        self.billing = billing
        self.billing_service = billing_service
        self.today = today

    def calculate_kpis(self) -> Dict[str, Dict[str, str]]:
        """
        Headline metrics for the reports page.

        Each entry is ``{'value': display string, 'change': caption}``.
        Revenue counts invoices whose payment-derived status is ``paid``.
        """
        invoices = self.billing_service.list_invoice_summaries()
        estimates = self.billing.list_estimates()
        jobs = self.crm.list_jobs()
        customers = self.crm.list_customers()
        technicians = self.crm.list_technicians()

        paid = [inv for inv in invoices if inv['status'] == 'paid']
        total_revenue = sum(float(inv.get('total', 0)) for inv in paid)
        accepted = len([e for e in estimates if e.get('status') == 'accepted'])
        close_rate = accepted / len(estimates) if estimates else 0
        avg_invoice = total_revenue / len(paid) if paid else 0
        lifetime_value = total_revenue / len(customers) if customers else 0
        avg_duration = sum(job.get('duration', 0) or 0 for job in jobs) / len(jobs) if jobs else 0
        tech_count = len(technicians)
        revenue_per_tech = total_revenue / tech_count if tech_count else 0
        jobs_per_tech = len(jobs) / tech_count if tech_count else 0

        active_agreements = [a for a in self.billing.list_service_agreements() if a.get('status') == 'active']
        outstanding = sum(inv['balanceDue'] for inv in invoices
                          if inv['status'] not in NON_RECEIVABLE_STATUSES and inv['balanceDue'] > 0)

        return {
            'totalRevenue': {'value': format_currency(total_revenue), 'change': f"from {len(paid)} paid invoices"},
            'outstandingReceivables': {'value': format_currency(outstanding), 'change': 'open invoice balances'},
            'closeRate': {'value': format_percentage(close_rate), 'change': f"{accepted} of {len(estimates)} estimates"},
            'avgInvoiceValue': {'value': format_currency(avg_invoice), 'change': f"from {len(paid)} invoices"},
            'customerLifetimeValue': {'value': format_currency(lifetime_value),
                                      'change': f"across {len(customers)} customers"},
            'activeServiceAgreements': {'value': str(len(active_agreements)), 'change': 'recurring revenue plans'},
            'avgJobDuration': {'value': format_duration(avg_duration), 'change': 'across all jobs'},
            'revenuePerTech': {'value': format_currency(revenue_per_tech), 'change': f"avg over {tech_count} techs"},
            'jobsPerTechPerWeek': {'value': f"{jobs_per_tech:.1f}", 'change': 'Target: 20'},
        }

    def aging_report(self, today: Optional[date] = None, customer_id: str = None) -> Dict[str, Any]:
        """
        Outstanding balances per customer bucketed by days past the due date.

        Invoices in NON_RECEIVABLE_STATUSES are left out.
        """
        today = today or self.today()
        customers = {c['id']: c for c in self.crm.list_customers()}
        rows: Dict[str, Dict[str, Any]] = {}

        for invoice in self.billing_service.list_invoice_summaries(customer_id=customer_id):
            if invoice['status'] in NON_RECEIVABLE_STATUSES or invoice['balanceDue'] <= 0:
                continue
            due = models.parse_date(invoice.get('dueDate')) or today
            bucket = aging_bucket((today - due).days)

            row = rows.get(invoice['customerId'])
            if row is None:
                customer = customers.get(invoice['customerId'])
                row = {
                    'customerId': invoice['customerId'],
                    'customerName': customer['primaryContact']['name'] if customer else 'Unknown Customer',
                    'buckets': {name: 0.0 for name in AGING_BUCKETS + ['total']},
                }
                rows[invoice['customerId']] = row
            row['buckets'][bucket] = round(row['buckets'][bucket] + invoice['balanceDue'], 2)
            row['buckets']['total'] = round(row['buckets']['total'] + invoice['balanceDue'], 2)

        totals = {name: round(sum(r['buckets'][name] for r in rows.values()), 2)
                  for name in AGING_BUCKETS + ['total']}
        return {'asOf': today.isoformat(), 'customers': list(rows.values()), 'totals': totals}

    def technician_earnings(self, technician_id: str = None) -> Dict[str, Any]:
        """Commission entries across invoices with totals and the average rate."""
        customers = {c['id']: c for c in self.crm.list_customers()}
        entries: List[Dict[str, Any]] = []
        for invoice in self.billing.list_invoices():
            for commission in invoice.get('commission') or []:
                if technician_id and commission.get('technicianId') != technician_id:
                    continue
                customer = customers.get(invoice.get('customerId'))
                entries.append({
                    **commission,
                    'invoiceId': invoice['id'],
                    'invoiceNumber': invoice.get('invoiceNumber'),
                    'invoiceTotal': invoice.get('total', 0),
                    'invoiceDate': invoice.get('issueDate'),
                    'customerName': customer['primaryContact']['name'] if customer else 'Unknown',
                })

        invoice_totals = {e['invoiceId']: e['invoiceTotal'] for e in entries}
        return {
            'entries': entries,
            'totalCommission': round(sum(e.get('amount', 0) for e in entries), 2),
            'totalRevenue': round(sum(invoice_totals.values()), 2),
            'averageRate': sum(e.get('rate', 0) for e in entries) / len(entries) if entries else 0,
        }

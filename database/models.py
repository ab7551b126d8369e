"""
Record vocabulary for the ServiceRig mock store.

Records are plain JSON-shaped dictionaries with camelCase keys. This module
holds the collection names, status enumerations and identifier helpers shared
by the repositories and services.
"""

import random
import uuid
from datetime import datetime, date
from typing import Any, Optional


# =========================================================================
# COLLECTIONS
# =========================================================================

CUSTOMERS = 'customers'
REFERRALS = 'referrals'
TECHNICIANS = 'technicians'
JOBS = 'jobs'
EQUIPMENT = 'equipment'
EQUIPMENT_LOGS = 'equipmentLogs'
TAX_ZONES = 'taxZones'
ESTIMATES = 'estimates'
ESTIMATE_TEMPLATES = 'estimateTemplates'
PRICEBOOK_ITEMS = 'pricebookItems'
INVOICES = 'invoices'
PAYMENTS = 'payments'
REFUNDS = 'refunds'
DEPOSITS = 'deposits'
CHANGE_ORDERS = 'changeOrders'
SERVICE_AGREEMENTS = 'serviceAgreements'
INVENTORY_ITEMS = 'inventoryItems'
PURCHASE_ORDERS = 'purchaseOrders'
VENDORS = 'vendors'

ALL_COLLECTIONS = (
    CUSTOMERS, REFERRALS, TECHNICIANS, JOBS, EQUIPMENT, EQUIPMENT_LOGS,
    TAX_ZONES, ESTIMATES, ESTIMATE_TEMPLATES, PRICEBOOK_ITEMS, INVOICES,
    PAYMENTS, REFUNDS, DEPOSITS, CHANGE_ORDERS, SERVICE_AGREEMENTS,
    INVENTORY_ITEMS, PURCHASE_ORDERS, VENDORS,
)

# Prefixes used when the store generates an id for a new record
ID_PREFIXES = {
    CUSTOMERS: 'cust',
    REFERRALS: 'ref',
    JOBS: 'job',
    EQUIPMENT_LOGS: 'log',
    TAX_ZONES: 'tz',
    ESTIMATES: 'est',
    ESTIMATE_TEMPLATES: 'template',
    PRICEBOOK_ITEMS: 'pb',
    INVOICES: 'inv',
    PAYMENTS: 'pay',
    REFUNDS: 'refund',
    DEPOSITS: 'dep',
    CHANGE_ORDERS: 'co',
    INVENTORY_ITEMS: 'inv_part',
    PURCHASE_ORDERS: 'po',
    VENDORS: 'vendor',
}


# =========================================================================
# STATUS ENUMERATIONS
# =========================================================================

JOB_STATUSES = ['unscheduled', 'scheduled', 'in_progress', 'complete']

ESTIMATE_STATUSES = ['draft', 'sent', 'accepted', 'rejected']

INVOICE_STATUSES = [
    'draft', 'pending_review', 'sent', 'paid', 'overdue',
    'partially_paid', 'refunded', 'credited',
]
# Statuses that are set by hand and never replaced by the payment-derived status
MANUAL_INVOICE_STATUSES = ['draft', 'refunded', 'credited', 'pending_review']

PO_STATUSES = ['draft', 'ordered', 'pending', 'approved', 'received', 'delivered', 'field-purchased']
PO_ON_ORDER_STATUSES = ['ordered', 'approved', 'pending']
PO_OPEN_STATUSES = ['ordered', 'pending']

CHANGE_ORDER_STATUSES = ['draft', 'approved', 'rejected', 'invoiced']
DEPOSIT_STATUSES = ['available', 'applied']
REFERRAL_STATUSES = ['pending', 'converted', 'rewarded']

REFUND_METHODS = ['original_payment', 'credit_memo']
PAYMENT_METHODS = ['Credit Card', 'Check', 'Cash', 'ACH', 'Deposit']

TRADES = ['Plumbing', 'HVAC', 'Electrical', 'General']
GBB_TIERS = ['good', 'better', 'best']

EQUIPMENT_LOG_TYPES = ['usage', 'repair', 'inspection', 'note', 'new', 'good', 'fair', 'poor', 'decommissioned']
EQUIPMENT_CONDITIONS = ['new', 'good', 'fair', 'poor', 'decommissioned']

WAREHOUSE = 'Warehouse'


# =========================================================================
# IDENTIFIERS
# =========================================================================

def generate_id(collection: str) -> str:
    """Generate a short prefixed id such as ``est_1a2b3c4d``."""
    prefix = ID_PREFIXES.get(collection, collection.rstrip('s'))
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def generate_document_number(prefix: str, digits: int) -> str:
    """Human-facing document number, e.g. ``EST-0421`` or ``INV-104233``."""
    upper = 10 ** digits - 1
    lower = 10 ** (digits - 1)
    return f"{prefix}-{random.randint(lower, upper)}"


def generate_referral_code(name: str) -> str:
    letters = ''.join(ch for ch in (name or '').upper() if ch.isalpha())[:5] or 'RIG'
    return f"{letters}-{uuid.uuid4().hex[:4].upper()}"


# =========================================================================
# DATES
# =========================================================================

def now_iso() -> str:
    return datetime.now().isoformat(timespec='seconds')


def parse_date(value: Any) -> Optional[date]:
    """Accept ISO strings, datetimes or dates and return a date."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except ValueError:
            return None
    return None


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
        # Schedules are compared as wall-clock times
        return parsed.replace(tzinfo=None)
    return None

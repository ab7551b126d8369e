"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Pages:
- pages.py      : Server-rendered dashboard pages (/, /dashboard/*)

JSON API:
- customers.py  : Customers, profiles, referrals (/api/customers)
- scheduling.py : Jobs, dispatch, technician day views (/api/jobs, /api/technicians)
- estimates.py  : Estimates, tier acceptance, conversion, change orders
- invoices.py   : Invoices, payments, refunds, deposits, AI audit
- inventory.py  : Stock, truck issue/usage, purchase orders, equipment logs
- settings.py   : Tax zones, vendors, estimate templates, price book (/api/settings)
- ai_tools.py   : Prompt flows, sync and streaming (/api/ai)
- reports.py    : KPIs, aging, commission, inventory value (/api/reports)
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []

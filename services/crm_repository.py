"""
CRM Repository - Store access layer for CRM entities.
Handles customers, referrals, technicians, jobs, customer equipment and tax zones.
"""

import logging
from typing import List, Optional, Dict

from database import models
from database.store import MockStore

logger = logging.getLogger(__name__)


class CRMRepository:
    """Repository for CRM records held in the mock store."""

    def __init__(self, store: MockStore):
        self.store = store

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    def list_customers(self, search: str = None) -> List[Dict]:
        """List customers, optionally filtered by name, company, email or phone."""
        if not search:
            return self.store.list(models.CUSTOMERS)

        term = search.lower()

        def matches(customer: Dict) -> bool:
            contact = customer.get('primaryContact') or {}
            company = customer.get('companyInfo') or {}
            haystack = [
                contact.get('name', ''), contact.get('email', ''), contact.get('phone', ''),
                company.get('name', ''),
            ]
            return any(term in (value or '').lower() for value in haystack)

        return self.store.list(models.CUSTOMERS, predicate=matches)

    def get_customer(self, customer_id: str) -> Optional[Dict]:
        """Get a customer by ID."""
        return self.store.get(models.CUSTOMERS, customer_id)

    def create_customer(self, data: Dict) -> Dict:
        """Create a new customer."""
        customer = self.store.insert(models.CUSTOMERS, data)
        logger.info(f"Created customer: {customer['id']}")
        return customer

    def find_customer_by_referral_code(self, code: str) -> Optional[Dict]:
        matches = self.store.list(models.CUSTOMERS, referralCode=code)
        return matches[0] if matches else None

    # =========================================================================
    # REFERRALS
    # =========================================================================

    def list_referrals(self, referrer_id: str = None) -> List[Dict]:
        if referrer_id:
            return self.store.list(models.REFERRALS, referrerId=referrer_id)
        return self.store.list(models.REFERRALS)

    def create_referral(self, data: Dict) -> Dict:
        referral = self.store.insert(models.REFERRALS, data)
        logger.info(f"Created referral: {referral['id']} (referrer {referral.get('referrerId')})")
        return referral

    def update_referral(self, referral_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.REFERRALS, referral_id, data)

    # =========================================================================
    # TECHNICIANS
    # =========================================================================

    def list_technicians(self) -> List[Dict]:
        return self.store.list(models.TECHNICIANS)

    def get_technician(self, technician_id: str) -> Optional[Dict]:
        return self.store.get(models.TECHNICIANS, technician_id)

    # =========================================================================
    # JOBS
    # =========================================================================

    def list_jobs(self, customer_id: str = None, technician_id: str = None,
                  status: str = None) -> List[Dict]:
        """List jobs with optional filters."""
        filters = {}
        if customer_id:
            filters['customerId'] = customer_id
        if technician_id:
            filters['technicianId'] = technician_id
        if status:
            filters['status'] = status
        return self.store.list(models.JOBS, **filters)

    def get_job(self, job_id: str) -> Optional[Dict]:
        return self.store.get(models.JOBS, job_id)

    def create_job(self, data: Dict) -> Dict:
        job = self.store.insert(models.JOBS, data)
        logger.info(f"Created job: {job['id']} ({job.get('status')})")
        return job

    def update_job(self, job_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.JOBS, job_id, data)

    # =========================================================================
    # EQUIPMENT
    # =========================================================================

    def list_equipment(self, customer_id: str = None) -> List[Dict]:
        if customer_id:
            return self.store.list(models.EQUIPMENT, customerId=customer_id)
        return self.store.list(models.EQUIPMENT)

    def get_equipment(self, equipment_id: str) -> Optional[Dict]:
        return self.store.get(models.EQUIPMENT, equipment_id)

    def update_equipment(self, equipment_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.EQUIPMENT, equipment_id, data)

    # =========================================================================
    # TAX ZONES
    # =========================================================================

    def list_tax_zones(self) -> List[Dict]:
        return self.store.list(models.TAX_ZONES)

    def get_tax_zone(self, zone_id: str) -> Optional[Dict]:
        if not zone_id:
            return None
        return self.store.get(models.TAX_ZONES, zone_id)

    def create_tax_zone(self, data: Dict) -> Dict:
        zone = self.store.insert(models.TAX_ZONES, data)
        logger.info(f"Created tax zone: {zone['id']} ({zone.get('name')} @ {zone.get('rate')})")
        return zone

    def delete_tax_zone(self, zone_id: str) -> bool:
        deleted = self.store.delete(models.TAX_ZONES, zone_id)
        if deleted:
            logger.info(f"Deleted tax zone: {zone_id}")
        return deleted

"""
Services package for the ServiceRig dashboard.
Repository classes over the mock store plus the business services built on them.
"""

from database.store import MockStore
from services.billing_repository import BillingRepository
from services.billing_service import BillingService
from services.crm_repository import CRMRepository
from services.customer_service import CustomerService
from services.inventory_repository import InventoryRepository
from services.inventory_service import InventoryService
from services.kpi_service import KPIService
from services.scheduling_service import SchedulingService


class ServiceContainer:
    """Repositories and services sharing one store"""

    def __init__(self, store: MockStore, config=None):
        config = config or {}
        self.store = store

        self.crm = CRMRepository(store)
        self.billing_repo = BillingRepository(store)
        self.inventory_repo = InventoryRepository(store)

        self.customers = CustomerService(self.crm, self.billing_repo, self.inventory_repo)
        self.billing = BillingService(
            self.crm, self.billing_repo,
            payment_terms_days=config.get('DEFAULT_PAYMENT_TERMS_DAYS', 30),
            labor_rate=config.get('LABOR_RATE_PER_HOUR', 95.0),
        )
        self.inventory = InventoryService(
            self.crm, self.inventory_repo,
            field_purchase_markup=config.get('FIELD_PURCHASE_MARKUP', 1.5),
        )
        self.scheduling = SchedulingService(self.crm)
        self.kpis = KPIService(self.crm, self.billing_repo, self.billing)


__all__ = [
    'ServiceContainer',
    'CRMRepository',
    'BillingRepository',
    'InventoryRepository',
    'CustomerService',
    'BillingService',
    'InventoryService',
    'SchedulingService',
    'KPIService',
]

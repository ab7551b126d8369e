"""
Inventory Repository - Store access layer for stock, purchase orders,
vendors and equipment service logs.
"""

import logging
from typing import List, Optional, Dict

from database import models
from database.store import MockStore

logger = logging.getLogger(__name__)


class InventoryRepository:
    """Repository for inventory records held in the mock store."""

    def __init__(self, store: MockStore):
        self.store = store

    # ==================== ITEMS ====================

    def list_items(self, category: str = None, trade: str = None,
                   low_stock_only: bool = False, search: str = None) -> List[Dict]:
        """List inventory items with optional filters."""
        filters = {}
        if category:
            filters['category'] = category
        if trade:
            filters['trade'] = trade

        term = (search or '').lower()

        def matches(item: Dict) -> bool:
            if low_stock_only and item.get('quantityOnHand', 0) >= item.get('reorderThreshold', 0):
                return False
            if term:
                fields = [item.get('name', ''), item.get('sku', ''), item.get('partNumber', '')]
                return any(term in (value or '').lower() for value in fields)
            return True

        return self.store.list(models.INVENTORY_ITEMS, predicate=matches, **filters)

    def get_item(self, item_id: str) -> Optional[Dict]:
        """Get an inventory item by ID."""
        return self.store.get(models.INVENTORY_ITEMS, item_id)

    def find_item_by_name(self, name: str) -> Optional[Dict]:
        target = (name or '').strip().lower()
        matches = self.store.list(
            models.INVENTORY_ITEMS,
            predicate=lambda item: (item.get('name') or '').strip().lower() == target,
        )
        return matches[0] if matches else None

    def create_item(self, data: Dict) -> Dict:
        """Create a new inventory item."""
        item = self.store.insert(models.INVENTORY_ITEMS, data)
        logger.info(f"Created inventory item: {item['id']}")
        return item

    def update_item(self, item_id: str, data: Dict) -> Optional[Dict]:
        """Update an inventory item."""
        item = self.store.update(models.INVENTORY_ITEMS, item_id, data)
        if item:
            logger.info(f"Updated inventory item: {item_id}")
        return item

    # ==================== PURCHASE ORDERS ====================

    def list_purchase_orders(self, statuses: List[str] = None) -> List[Dict]:
        if statuses:
            return self.store.list(models.PURCHASE_ORDERS,
                                   predicate=lambda po: po.get('status') in statuses)
        return self.store.list(models.PURCHASE_ORDERS)

    def get_purchase_order(self, po_id: str) -> Optional[Dict]:
        return self.store.get(models.PURCHASE_ORDERS, po_id)

    def create_purchase_order(self, data: Dict) -> Dict:
        po = self.store.insert(models.PURCHASE_ORDERS, data)
        logger.info(f"Created purchase order: {po['id']} ({po.get('status')}) from {po.get('vendor')}")
        return po

    def update_purchase_order(self, po_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.PURCHASE_ORDERS, po_id, data)

    # ==================== VENDORS ====================

    def list_vendors(self, search: str = None, trade: str = None,
                     preferred_only: bool = False) -> List[Dict]:
        term = (search or '').lower()

        def matches(vendor: Dict) -> bool:
            if trade and trade not in (vendor.get('trades') or []):
                return False
            if preferred_only and not vendor.get('preferred'):
                return False
            if term:
                fields = [vendor.get('name', ''), vendor.get('contactName', '')]
                fields.extend(vendor.get('categories') or [])
                return any(term in (value or '').lower() for value in fields)
            return True

        return self.store.list(models.VENDORS, predicate=matches)

    def get_vendor(self, vendor_id: str) -> Optional[Dict]:
        return self.store.get(models.VENDORS, vendor_id)

    def create_vendor(self, data: Dict) -> Dict:
        vendor = self.store.insert(models.VENDORS, data)
        logger.info(f"Created vendor: {vendor['id']} ({vendor.get('name')})")
        return vendor

    def update_vendor(self, vendor_id: str, data: Dict) -> Optional[Dict]:
        return self.store.update(models.VENDORS, vendor_id, data)

    def delete_vendor(self, vendor_id: str) -> bool:
        deleted = self.store.delete(models.VENDORS, vendor_id)
        if deleted:
            logger.info(f"Deleted vendor: {vendor_id}")
        return deleted

    # ==================== EQUIPMENT LOGS ====================

    def list_equipment_logs(self, equipment_id: str = None) -> List[Dict]:
        if equipment_id:
            return self.store.list(models.EQUIPMENT_LOGS, equipmentId=equipment_id)
        return self.store.list(models.EQUIPMENT_LOGS)

    def create_equipment_log(self, data: Dict) -> Dict:
        log = self.store.insert(models.EQUIPMENT_LOGS, data)
        logger.info(f"Added equipment log: {log['id']} for {log.get('equipmentId')}")
        return log

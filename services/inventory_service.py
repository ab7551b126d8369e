"""
Inventory Service - stock movement between warehouse, trucks and jobs.

Covers issuing stock to technicians, purchase orders (including field
purchases), part usage against jobs, equipment condition logs, reorder
suggestions and the vendor directory.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from database import models
from services.crm_repository import CRMRepository
from services.errors import BusinessRuleError, NotFoundError
from services.inventory_repository import InventoryRepository
from validators import (
    FieldErrors,
    ValidationError,
    coerce_int,
    coerce_number,
    sanitize_string,
    validate_choice,
    validate_quantity,
    validate_vendor_form,
)

logger = logging.getLogger(__name__)


def _truck_quantity(item: Dict, technician_id: str) -> int:
    for location in item.get('truckLocations') or []:
        if location.get('technicianId') == technician_id:
            return location.get('quantity', 0)
    return 0


def _adjust_truck(item: Dict, technician_id: str, delta: int) -> List[Dict]:
    """Return a new truckLocations list with ``delta`` applied for one technician."""
    locations = [dict(loc) for loc in item.get('truckLocations') or []]
    for location in locations:
        if location.get('technicianId') == technician_id:
            location['quantity'] = location.get('quantity', 0) + delta
            return locations
    locations.append({'technicianId': technician_id, 'quantity': delta})
    return locations


class InventoryService:
    """Business rules for parts, purchase orders, equipment and vendors."""

    def __init__(self, crm: CRMRepository, inventory: InventoryRepository,
                 field_purchase_markup: float = 1.5, today: Callable[[], date] = date.today):
        self.crm = crm
        self.inventory = inventory
        self.field_purchase_markup = field_purchase_markup
        self.today = today

    def _require_item(self, item_id: str) -> Dict:
        item = self.inventory.get_item(item_id)
        if not item:
            raise NotFoundError('Inventory item', item_id)
        return item

    def _technician_name(self, technician_id: str) -> Optional[str]:
        technician = self.crm.get_technician(technician_id)
        return technician['name'] if technician else None

    # =========================================================================
    # STOCK MOVEMENT
    # =========================================================================

    def issue_stock_to_technician(self, item_id: str, technician_id: str, quantity: Any) -> Dict:
        """
        Move stock from the warehouse onto a technician's truck.

        Raises:
            ValidationError: Quantity below 1 or above warehouse stock
            NotFoundError: Unknown item or technician
        """
        quantity = validate_quantity(quantity)
        item = self._require_item(item_id)
        name = self._technician_name(technician_id)
        if name is None:
            raise NotFoundError('Technician', technician_id)

        on_hand = item.get('quantityOnHand', 0)
        if on_hand < quantity:
            raise ValidationError(f"Not enough stock. Only {on_hand} available.", field='quantity')

        updated = self.inventory.update_item(item_id, {
            'quantityOnHand': on_hand - quantity,
            'truckLocations': _adjust_truck(item, technician_id, quantity),
        })
        logger.info(f"Issued {quantity} x {item['name']} to {technician_id}")
        return {'item': updated, 'message': f"{quantity} x {item['name']} issued to {name}."}

    def log_part_usage(self, part_id: str, job_id: str, technician_id: str,
                       quantity: Any, note: str = None) -> Dict:
        """Deduct truck stock and append a used-part record to the job."""
        quantity = validate_quantity(quantity)
        item = self._require_item(part_id)

        if not any(loc.get('technicianId') == technician_id for loc in item.get('truckLocations') or []):
            raise BusinessRuleError("Part not found in this technician's truck stock.", field='technicianId')
        on_truck = _truck_quantity(item, technician_id)
        if on_truck < quantity:
            raise ValidationError(f"Not enough stock on truck. Only {on_truck} available.", field='quantity')

        job = self.crm.get_job(job_id)
        if not job:
            raise NotFoundError('Job', job_id)

        updated_item = self.inventory.update_item(part_id, {
            'truckLocations': _adjust_truck(item, technician_id, -quantity),
        })
        used_parts = list(job.get('usedParts') or [])
        used_parts.append({
            'partId': item['id'],
            'name': item['name'],
            'sku': item.get('sku'),
            'quantity': quantity,
            'source': 'truck',
            'technicianId': technician_id,
            'unitCost': item.get('unitCost'),
            'ourPrice': item.get('ourPrice'),
            'note': sanitize_string(note, 500) or None,
            'timestamp': models.now_iso(),
        })
        updated_job = self.crm.update_job(job_id, {'usedParts': used_parts})
        return {
            'item': updated_item,
            'job': updated_job,
            'message': f"{quantity} x {item['name']} logged to job {job.get('title')}.",
        }

    # =========================================================================
    # PURCHASE ORDERS
    # =========================================================================

    def destination_name(self, destination: str) -> str:
        if destination == models.WAREHOUSE:
            return models.WAREHOUSE
        name = self._technician_name(destination)
        return f"Truck - {name}" if name else f"Unknown ({destination})"

    def on_order(self, search: str = None) -> List[Dict]:
        """Purchase orders still awaiting delivery, with a readable destination."""
        orders = []
        term = (search or '').lower()
        for po in self.inventory.list_purchase_orders(statuses=models.PO_ON_ORDER_STATUSES):
            po['destinationName'] = self.destination_name(po.get('destination'))
            if term and term not in (po.get('vendor') or '').lower() \
                    and term not in po['destinationName'].lower():
                continue
            orders.append(po)
        return orders

    def create_purchase_order(self, data: Dict[str, Any], requested_by: str = 'user_admin') -> Dict:
        errors = FieldErrors()
        vendor = sanitize_string(data.get('vendor'), 200)
        if not vendor:
            errors.add('vendor', 'Vendor is required.')

        destination = sanitize_string(data.get('destination')) or models.WAREHOUSE
        if destination != models.WAREHOUSE and not self.crm.get_technician(destination):
            errors.add('destination', 'Destination must be the warehouse or a technician.')

        status = data.get('status') or 'ordered'
        errors.check('status', validate_choice(status, models.PO_STATUSES))

        raw_parts = data.get('parts') or []
        if not isinstance(raw_parts, list) or not raw_parts:
            errors.add('parts', 'At least one part is required.')
            raw_parts = []

        parts = []
        for idx, part in enumerate(raw_parts):
            key = f"parts[{idx}]"
            part = part if isinstance(part, dict) else {}
            part_id = sanitize_string(part.get('partId'))
            qty = coerce_int(part.get('qty'))
            unit_cost = coerce_number(part.get('unitCost'))
            if not part_id or not self.inventory.get_item(part_id):
                errors.add(f"{key}.partId", 'Unknown inventory item.')
            if qty is None or qty < 1:
                errors.add(f"{key}.qty", 'Quantity must be at least 1.')
            if unit_cost is None or unit_cost < 0:
                errors.add(f"{key}.unitCost", 'Unit cost must be 0 or more.')
            parts.append({'partId': part_id, 'qty': qty, 'unitCost': unit_cost})
        errors.raise_if_any('Invalid purchase order.')

        return self.inventory.create_purchase_order({
            'vendor': vendor,
            'parts': parts,
            'total': round(sum(p['qty'] * p['unitCost'] for p in parts), 2),
            'status': status,
            'destination': destination,
            'orderDate': self.today().isoformat(),
            'requestedBy': requested_by,
        })

    def receive_purchase_order(self, po_id: str, item_id: str = None,
                               received_by: str = 'user_admin') -> Dict:
        """
        Receive an open purchase order.

        Warehouse orders add to quantityOnHand and become ``received``; orders
        for a technician add to that truck and become ``delivered``. With an
        ``item_id`` only that line is booked in.
        """
        po = self.inventory.get_purchase_order(po_id)
        if not po:
            raise NotFoundError('Purchase order', po_id)
        if po.get('status') not in models.PO_ON_ORDER_STATUSES:
            raise BusinessRuleError(f"Purchase order is already {po.get('status')}.", field='status')

        lines = po.get('parts') or []
        if item_id:
            self._require_item(item_id)
            lines = [p for p in lines if p.get('partId') == item_id]
            if not lines:
                raise BusinessRuleError('Item not on this PO.', field='itemId')

        destination = po.get('destination') or models.WAREHOUSE
        received = []
        for line in lines:
            item = self._require_item(line['partId'])
            if destination == models.WAREHOUSE:
                changes = {'quantityOnHand': item.get('quantityOnHand', 0) + line['qty']}
            else:
                changes = {'truckLocations': _adjust_truck(item, destination, line['qty'])}
            received.append(self.inventory.update_item(item['id'], changes))

        status = 'received' if destination == models.WAREHOUSE else 'delivered'
        updated = self.inventory.update_purchase_order(po_id, {
            'status': status,
            'receivedAt': models.now_iso(),
            'receivedBy': received_by,
        })
        logger.info(f"Purchase order {po_id} {status} ({len(received)} line(s))")
        return {'purchaseOrder': updated, 'items': received}

    def add_field_purchase(self, data: Dict[str, Any], technician_id: str) -> Dict:
        """
        Record parts a technician bought on site.

        Known parts (matched by name) are added to the technician's truck;
        unknown parts become new inventory items priced at cost times markup.
        """
        errors = FieldErrors()
        vendor = sanitize_string(data.get('vendor'), 200)
        if not vendor:
            errors.add('vendor', 'Vendor name is required.')
        total = coerce_number(data.get('total'))
        if total is None or total < 0.01:
            errors.add('total', 'Total cost is required.')

        raw_parts = data.get('parts')
        if not isinstance(raw_parts, list) or not raw_parts:
            errors.add('parts', 'At least one part is required.')
            raw_parts = []

        parts = []
        for idx, part in enumerate(raw_parts):
            key = f"parts[{idx}]"
            part = part if isinstance(part, dict) else {}
            name = sanitize_string(part.get('name'), 200)
            qty = coerce_int(part.get('qty'))
            unit_cost = coerce_number(part.get('unitCost'))
            if not name:
                errors.add(f"{key}.name", 'Part name is required.')
            if qty is None or qty < 1:
                errors.add(f"{key}.qty", 'Quantity must be at least 1.')
            if unit_cost is None or unit_cost < 0:
                errors.add(f"{key}.unitCost", 'Unit cost must be 0 or more.')
            parts.append({
                'id': sanitize_string(part.get('id')) or None,
                'name': name,
                'sku': sanitize_string(part.get('sku')),
                'partNumber': sanitize_string(part.get('partNumber')),
                'modelNumber': sanitize_string(part.get('modelNumber')),
                'qty': qty,
                'unitCost': unit_cost,
            })
        errors.raise_if_any('Invalid field purchase data.')

        if not self.crm.get_technician(technician_id):
            raise NotFoundError('Technician', technician_id)

        po_lines = []
        for part in parts:
            existing = self.inventory.find_item_by_name(part['name'])
            if existing:
                self.inventory.update_item(existing['id'], {
                    'truckLocations': _adjust_truck(existing, technician_id, part['qty']),
                })
                part_id = existing['id']
            else:
                created = self.inventory.create_item({
                    'id': part['id'] or models.generate_id(models.INVENTORY_ITEMS),
                    'name': part['name'],
                    'description': 'Field purchased item',
                    'sku': part['sku'],
                    'partNumber': part['partNumber'],
                    'modelNumber': part['modelNumber'],
                    'warehouseLocation': '',
                    'quantityOnHand': 0,
                    'reorderThreshold': 0,
                    'reorderQtyDefault': 1,
                    'unitCost': part['unitCost'],
                    'ourPrice': round(part['unitCost'] * self.field_purchase_markup, 2),
                    'vendor': vendor,
                    'trade': 'General',
                    'category': 'Field Purchase',
                    'truckLocations': [{'technicianId': technician_id, 'quantity': part['qty']}],
                })
                part_id = created['id']
            po_lines.append({'partId': part_id, 'qty': part['qty'], 'unitCost': part['unitCost']})

        now = models.now_iso()
        return self.inventory.create_purchase_order({
            'vendor': vendor,
            'parts': po_lines,
            'total': round(total, 2),
            'status': 'field-purchased',
            'destination': technician_id,
            'orderDate': self.today().isoformat(),
            'isFieldPurchase': True,
            'jobId': sanitize_string(data.get('jobId')) or None,
            'receiptImage': sanitize_string(data.get('receiptImage'), 2048) or None,
            'requestedBy': technician_id,
            'receivedBy': technician_id,
            'receivedAt': now,
        })

    # =========================================================================
    # ITEMS & REPORTS
    # =========================================================================

    def update_inventory_item(self, item_id: str, data: Dict[str, Any]) -> Dict:
        errors = FieldErrors()
        name = sanitize_string(data.get('name'), 200)
        if not name:
            errors.add('name', 'Name is required.')
        changes = {
            'name': name,
            'sku': sanitize_string(data.get('sku'), 100),
            'partNumber': sanitize_string(data.get('partNumber'), 100),
            'modelNumber': sanitize_string(data.get('modelNumber'), 100),
        }
        for key in ('reorderThreshold', 'reorderQtyDefault'):
            if data.get(key) not in (None, ''):
                value = coerce_int(data.get(key))
                if value is None or value < 0:
                    errors.add(key, 'Must be a whole number of 0 or more.')
                changes[key] = value
        if data.get('ourPrice') not in (None, ''):
            price = coerce_number(data.get('ourPrice'))
            if price is None or price < 0:
                errors.add('ourPrice', 'Price must be 0 or more.')
            changes['ourPrice'] = price
        errors.raise_if_any('Invalid data')

        self._require_item(item_id)
        return self.inventory.update_item(item_id, changes)

    def usage_since(self, since: datetime) -> Dict[str, int]:
        """Quantity of each part logged against jobs since a point in time."""
        usage: Dict[str, int] = {}
        for job in self.crm.list_jobs():
            for used in job.get('usedParts') or []:
                stamp = models.parse_datetime(used.get('timestamp'))
                if stamp and stamp > since:
                    usage[used['partId']] = usage.get(used['partId'], 0) + used.get('quantity', 0)
        return usage

    def most_used_parts(self, trade: str = None, technician_id: str = None,
                        since: datetime = None, limit: int = 10) -> List[Dict]:
        """
        Total quantity of each part logged against jobs, highest first.

        Args:
            trade: Only count parts stocked for this trade
            technician_id: Only count usage logged by this technician
            since: Only count usage logged after this moment
            limit: Maximum number of parts returned

        Returns:
            List of {partId, name, trade, totalUsed}
        """
        items = {item['id']: item for item in self.inventory.list_items()}
        summary: Dict[str, Dict] = {}
        for job in self.crm.list_jobs():
            for used in job.get('usedParts') or []:
                item = items.get(used.get('partId'))
                if not item:
                    continue
                if trade and item.get('trade') != trade:
                    continue
                if technician_id and used.get('technicianId') != technician_id:
                    continue
                if since:
                    stamp = models.parse_datetime(used.get('timestamp'))
                    if not stamp or stamp <= since:
                        continue
                entry = summary.setdefault(item['id'], {
                    'partId': item['id'],
                    'name': item['name'],
                    'trade': item.get('trade'),
                    'totalUsed': 0,
                })
                entry['totalUsed'] += used.get('quantity', 0)

        ranked = sorted(summary.values(), key=lambda entry: (-entry['totalUsed'], entry['name']))
        return ranked[:limit]

    def suggested_reorders(self) -> List[Dict]:
        """Items below threshold or used faster than stock allows over the last 30 days."""
        since = datetime.combine(self.today() - timedelta(days=30), datetime.min.time())
        usage = self.usage_since(since)
        suggestions = []
        for item in self.inventory.list_items():
            on_hand = item.get('quantityOnHand', 0)
            threshold = item.get('reorderThreshold', 0)
            used = usage.get(item['id'], 0)
            if on_hand < threshold or used > on_hand:
                suggestions.append({
                    'partId': item['id'],
                    'partName': item['name'],
                    'vendor': item.get('vendor'),
                    'thirtyDayUsage': used,
                    'currentStock': on_hand,
                    'reorderThreshold': threshold,
                    'suggestedQuantity': max(item.get('reorderQtyDefault', 0), threshold - on_hand, used),
                })
        return suggestions

    def asset_value(self) -> Dict[str, Any]:
        items = self.inventory.list_items()
        warehouse = sum(i.get('quantityOnHand', 0) * i.get('unitCost', 0) for i in items)
        by_technician = []
        for technician in self.crm.list_technicians():
            value = sum(_truck_quantity(i, technician['id']) * i.get('unitCost', 0) for i in items)
            if value > 0:
                by_technician.append({'technicianId': technician['id'], 'name': technician['name'],
                                      'value': round(value, 2)})
        truck_total = sum(t['value'] for t in by_technician)
        return {
            'warehouseStockValue': round(warehouse, 2),
            'totalTruckStockValue': round(truck_total, 2),
            'truckStockValueByTech': by_technician,
            'totalAssetValue': round(warehouse + truck_total, 2),
        }

    # =========================================================================
    # EQUIPMENT
    # =========================================================================

    def add_equipment_log(self, data: Dict[str, Any]) -> Dict:
        errors = FieldErrors()
        equipment_id = sanitize_string(data.get('equipmentId'))
        technician_id = sanitize_string(data.get('technicianId'))
        log_type = data.get('logType')
        notes = sanitize_string(data.get('notes'), 2000)
        if not equipment_id:
            errors.add('equipmentId', 'Equipment is required.')
        errors.check('logType', validate_choice(log_type, models.EQUIPMENT_LOG_TYPES))
        if not notes:
            errors.add('notes', 'Notes are required.')
        errors.raise_if_any('Invalid data provided.')

        if not self.crm.get_equipment(equipment_id):
            raise NotFoundError('Equipment', equipment_id)
        return self.inventory.create_equipment_log({
            'equipmentId': equipment_id,
            'technicianId': technician_id,
            'type': log_type,
            'notes': notes,
            'timestamp': models.now_iso(),
        })

    def update_equipment_condition(self, data: Dict[str, Any]) -> Dict:
        """Change an equipment condition and log the change with the reason given."""
        errors = FieldErrors()
        equipment_id = sanitize_string(data.get('equipmentId'))
        technician_id = sanitize_string(data.get('technicianId'))
        condition = data.get('newCondition')
        notes = sanitize_string(data.get('notes'), 2000)
        errors.check('newCondition', validate_choice(condition, models.EQUIPMENT_CONDITIONS))
        if not notes:
            errors.add('notes', 'Notes are required.')
        errors.raise_if_any('Invalid data provided.')

        equipment = self.crm.get_equipment(equipment_id)
        if not equipment:
            raise NotFoundError('Equipment', equipment_id)

        old_condition = equipment.get('condition')
        updated = self.crm.update_equipment(equipment_id, {
            'condition': condition,
            'lastInspectionDate': self.today().isoformat(),
        })
        log = self.inventory.create_equipment_log({
            'equipmentId': equipment_id,
            'technicianId': technician_id,
            'type': condition,
            'notes': f"Condition changed from '{old_condition}' to '{condition}'. Reason: {notes}",
            'timestamp': models.now_iso(),
        })
        return {'equipment': updated, 'log': log}

    # =========================================================================
    # VENDORS
    # =========================================================================

    def search_vendors(self, search: str = None, trade: str = None, preferred_only: bool = False) -> List[Dict]:
        return self.inventory.list_vendors(search=search, trade=trade, preferred_only=preferred_only)

    def create_vendor(self, data: Dict[str, Any]) -> Dict:
        return self.inventory.create_vendor(validate_vendor_form(data))

    def update_vendor(self, vendor_id: str, data: Dict[str, Any]) -> Dict:
        fields = validate_vendor_form(data)
        vendor = self.inventory.update_vendor(vendor_id, fields)
        if not vendor:
            raise NotFoundError('Vendor', vendor_id)
        return vendor

    def delete_vendor(self, vendor_id: str):
        if not self.inventory.delete_vendor(vendor_id):
            raise NotFoundError('Vendor', vendor_id)

"""
Seed data and batch import for the ServiceRig mock store.

``seed_store`` loads the built-in demo data at application startup.
``import_collection`` / ``import_folder`` load JSON exports of the form
``{"<id>": {...document...}}`` and upsert each document by its key.
"""

import json
import logging
import os
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from database import models
from database.store import MockStore

logger = logging.getLogger(__name__)


def _weekday_at(day: int, hour: int, minute: int = 0, today: Optional[datetime] = None) -> str:
    """ISO timestamp for a weekday (0=Sunday) of the current week."""
    today = today or datetime.now()
    current = (today.weekday() + 1) % 7
    target = today + timedelta(days=day - current)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0).isoformat()


def build_default_data(today: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Demo records for every collection. Job schedules are placed in the current week."""
    today = today or datetime.now()
    stamp = today.isoformat(timespec='seconds')

    def at(day, hour, minute=0):
        return _weekday_at(day, hour, minute, today)

    return {
        models.TAX_ZONES: [
            {'id': 'ca-sv', 'name': 'California (Silicon Valley)', 'rate': 0.0925},
            {'id': 'il-metro', 'name': 'Illinois (Metropolis)', 'rate': 0.08},
            {'id': 'ny-gotham', 'name': 'New York (Gotham)', 'rate': 0.08875},
            {'id': 'no-tax', 'name': 'No Tax', 'rate': 0},
        ],
        models.TECHNICIANS: [
            {'id': 'tech1', 'name': 'John Doe', 'role': 'technician'},
            {'id': 'tech2', 'name': 'Jane Smith', 'role': 'technician'},
            {'id': 'tech3', 'name': 'Mike Johnson', 'role': 'technician'},
            {'id': 'tech4', 'name': 'Emily Brown', 'role': 'technician'},
        ],
        models.CUSTOMERS: [
            {
                'id': 'cust1',
                'primaryContact': {'name': 'Alice Williams', 'email': 'alice@example.com', 'phone': '123-456-7890'},
                'companyInfo': {'name': 'Innovate Inc.', 'address': '123 Tech Park, Silicon Valley, CA 94000'},
                'address': {'street': '123 Tech Park', 'city': 'Silicon Valley', 'state': 'CA', 'zipCode': '94000'},
                'taxRegion': 'ca-sv',
                'referralCode': 'ALICE-7F3A',
                'createdAt': stamp,
                'updatedAt': stamp,
            },
            {
                'id': 'cust2',
                'primaryContact': {'name': 'Bob Davis', 'email': 'bob@example.com', 'phone': '234-567-8901'},
                'companyInfo': {'name': 'Solutions Corp.', 'address': '456 Business Blvd, Metropolis, IL 62960'},
                'address': {'street': '456 Business Blvd', 'city': 'Metropolis', 'state': 'IL', 'zipCode': '62960'},
                'taxRegion': 'il-metro',
                'referralCode': 'BOBDA-19C2',
                'referredBy': 'cust1',
                'createdAt': stamp,
                'updatedAt': stamp,
            },
            {
                'id': 'cust3',
                'primaryContact': {'name': 'Charlie Miller', 'email': 'charlie@example.com', 'phone': '345-678-9012'},
                'companyInfo': {'name': 'Gadgets & More', 'address': '789 Market St, Gotham, NY 10001'},
                'address': {'street': '789 Market St', 'city': 'Gotham', 'state': 'NY', 'zipCode': '10001'},
                'taxRegion': 'ny-gotham',
                'referralCode': 'CHARL-44B0',
                'createdAt': stamp,
                'updatedAt': stamp,
            },
        ],
        models.REFERRALS: [
            {'id': 'ref1', 'referrerId': 'cust1', 'referredName': 'Bob Davis', 'referredCustomerId': 'cust2',
             'status': 'converted', 'createdAt': '2024-05-20T10:00:00'},
        ],
        models.JOBS: [
            {'id': 'job1', 'customerId': 'cust1', 'technicianId': 'tech1',
             'schedule': {'start': at(1, 9), 'end': at(1, 11)}, 'status': 'complete',
             'title': 'HVAC Tune-up', 'description': 'Annual maintenance for HVAC system.',
             'details': {'serviceType': 'HVAC Maintenance'}, 'duration': 120, 'invoiceId': 'inv1',
             'createdAt': stamp, 'updatedAt': stamp},
            {'id': 'job2', 'customerId': 'cust2', 'technicianId': 'tech2',
             'schedule': {'start': at(1, 10), 'end': at(1, 12, 30)}, 'status': 'complete',
             'title': 'Leaky Faucet', 'description': 'Repair leaky faucet in master bathroom.',
             'details': {'serviceType': 'Plumbing Repair'}, 'duration': 150, 'invoiceId': 'inv2',
             'createdAt': stamp, 'updatedAt': stamp},
            {'id': 'job3', 'customerId': 'cust1', 'technicianId': 'tech1',
             'schedule': {'start': at(2, 13), 'end': at(2, 14, 30)}, 'status': 'scheduled',
             'title': 'Panel Upgrade', 'description': 'Upgrade main electrical panel.',
             'details': {'serviceType': 'Electrical Inspection'}, 'duration': 90,
             'createdAt': stamp, 'updatedAt': stamp},
            {'id': 'job4', 'customerId': 'cust3', 'technicianId': 'tech3',
             'schedule': {'start': at(3, 8), 'end': at(3, 10)}, 'status': 'complete',
             'title': 'Dishwasher Install', 'description': 'Install new Bosch dishwasher.',
             'details': {'serviceType': 'Appliance Installation'}, 'duration': 120, 'invoiceId': 'inv3',
             'createdAt': stamp, 'updatedAt': stamp},
            {'id': 'job5', 'customerId': 'cust2', 'technicianId': 'tech4',
             'schedule': {'start': at(4, 14), 'end': at(4, 16)}, 'status': 'scheduled',
             'title': 'Router Setup', 'description': 'Setup new office network router.',
             'details': {'serviceType': 'Network Setup'}, 'duration': 120,
             'createdAt': stamp, 'updatedAt': stamp},
            {'id': 'job6', 'customerId': 'cust3', 'technicianId': '',
             'schedule': None, 'status': 'unscheduled',
             'title': 'Quote for AC', 'description': 'Provide quote for new AC unit.',
             'details': {'serviceType': 'Estimate'}, 'duration': 60,
             'createdAt': stamp, 'updatedAt': stamp},
            {'id': 'job7', 'customerId': 'cust1', 'technicianId': '',
             'schedule': None, 'status': 'unscheduled',
             'title': 'Fix Garage Door', 'description': 'Garage door opener not working.',
             'details': {'serviceType': 'Repair'}, 'duration': 60,
             'createdAt': stamp, 'updatedAt': stamp},
        ],
        models.INVOICES: [
            {
                'id': 'inv1', 'invoiceNumber': 'INV-2024-001', 'customerId': 'cust1', 'jobIds': ['job1'],
                'title': 'HVAC Tune-up Invoice', 'status': 'refunded',
                'issueDate': '2024-07-10', 'dueDate': '2024-08-09',
                'lineItems': [
                    {'description': 'Annual HVAC Maintenance Service', 'quantity': 1, 'unitPrice': 250,
                     'origin': {'type': 'estimate', 'id': 'est1'}},
                    {'description': 'Replacement 1-inch Filter', 'quantity': 2, 'unitPrice': 25,
                     'origin': {'type': 'estimate', 'id': 'est1'}},
                ],
                'subtotal': 300.00, 'taxes': [{'name': 'CA State Tax', 'amount': 24.00, 'rate': 0.08}],
                'total': 324.00, 'amountPaid': 324.00, 'balanceDue': 0.00, 'paymentTerms': 'Net 30',
                'createdAt': '2024-07-10T00:00:00', 'linkedEstimateIds': ['est1'],
                'commission': [{'technicianId': 'tech1', 'rate': 0.1, 'amount': 32.40, 'technicianName': 'John Doe'}],
                'auditLog': [
                    {'id': 'log1', 'timestamp': '2024-07-10T11:05:00', 'userId': 'tech1', 'userName': 'John Doe',
                     'action': 'Invoice Created', 'details': 'Created from job JOB-9611 after completion.'},
                    {'id': 'log2', 'timestamp': '2024-07-10T14:20:00', 'userId': 'admin1', 'userName': 'Admin User',
                     'action': 'Invoice Approved', 'details': 'Approved after review.'},
                    {'id': 'log4', 'timestamp': '2024-07-15T09:15:00', 'userId': 'cust1', 'userName': 'Alice Williams',
                     'action': 'Payment Received', 'details': 'Paid $324.00 via Credit Card.'},
                    {'id': 'log5', 'timestamp': '2024-07-16T10:00:00', 'userId': 'admin1', 'userName': 'Admin User',
                     'action': 'Refund Issued', 'details': 'Refunded $50.00 as goodwill gesture.'},
                ],
            },
            {
                'id': 'inv2', 'invoiceNumber': 'INV-2024-002', 'customerId': 'cust2', 'jobIds': ['job2'],
                'title': 'Plumbing Repair Invoice', 'status': 'partially_paid',
                'issueDate': '2024-06-01', 'dueDate': '2024-07-01',
                'lineItems': [
                    {'description': 'Emergency Callout Fee', 'quantity': 1, 'unitPrice': 150},
                    {'description': 'Repair Kitchen Sink Leak', 'quantity': 1, 'unitPrice': 200,
                     'origin': {'type': 'estimate', 'id': 'est2'}},
                    {'description': 'Replace Garbage Disposal', 'quantity': 1, 'unitPrice': 450,
                     'origin': {'type': 'estimate', 'id': 'est2'}},
                ],
                'subtotal': 800.00, 'taxes': [{'name': 'IL State Tax', 'amount': 64.00, 'rate': 0.08}],
                'total': 864.00, 'amountPaid': 400.00, 'balanceDue': 464.00, 'paymentTerms': 'Due on receipt',
                'createdAt': '2024-06-01T00:00:00', 'linkedEstimateIds': ['est2'], 'linkedChangeOrderIds': ['co2'],
                'commission': [{'technicianId': 'tech2', 'rate': 0.12, 'amount': 103.68, 'technicianName': 'Jane Smith'}],
            },
            {
                'id': 'inv3', 'invoiceNumber': 'INV-2024-003', 'customerId': 'cust3', 'jobIds': ['job4'],
                'title': 'Appliance Install Invoice', 'status': 'sent',
                'issueDate': '2024-07-18', 'dueDate': '2024-08-17',
                'lineItems': [
                    {'description': 'Installation of customer-provided dishwasher', 'quantity': 1, 'unitPrice': 250},
                    {'description': 'Haul away old appliance', 'quantity': 1, 'unitPrice': 50},
                ],
                'subtotal': 300.00, 'taxes': [{'name': 'NY State Tax', 'amount': 24.00, 'rate': 0.08}],
                'total': 324.00, 'amountPaid': 108.00, 'balanceDue': 216.00, 'paymentTerms': 'Net 30',
                'createdAt': '2024-07-18T00:00:00',
                'commission': [{'technicianId': 'tech3', 'rate': 0.08, 'amount': 25.92, 'technicianName': 'Mike Johnson'}],
            },
            {
                'id': 'inv4', 'invoiceNumber': 'INV-2024-004', 'customerId': 'cust1', 'jobIds': [],
                'title': 'Quarterly Service Agreement', 'status': 'draft',
                'issueDate': '2024-07-20', 'dueDate': '2024-08-19',
                'lineItems': [
                    {'description': 'Q3 Service Agreement Maintenance', 'quantity': 1, 'unitPrice': 500,
                     'origin': {'type': 'agreement', 'id': 'sa1'}},
                ],
                'subtotal': 500.00, 'taxes': [{'name': 'CA State Tax', 'amount': 40.00, 'rate': 0.08}],
                'total': 540.00, 'amountPaid': 0.00, 'balanceDue': 540.00, 'paymentTerms': 'Net 30',
                'createdAt': '2024-07-20T00:00:00', 'linkedServiceAgreementId': 'sa1',
            },
        ],
        models.PAYMENTS: [
            {'id': 'pay1', 'invoiceId': 'inv1', 'customerId': 'cust1', 'amount': 324.00, 'date': '2024-07-15',
             'method': 'Credit Card', 'transactionId': 'ch_12345', 'recordedBy': 'user_admin_01'},
            {'id': 'pay2', 'invoiceId': 'inv2', 'customerId': 'cust2', 'amount': 400.00, 'date': '2024-07-05',
             'method': 'Check', 'transactionId': 'check_1054', 'recordedBy': 'user_admin_01'},
            {'id': 'pay3', 'invoiceId': 'inv3', 'customerId': 'cust3', 'amount': 108.00, 'date': '2024-07-20',
             'method': 'Credit Card', 'transactionId': 'ch_67890', 'recordedBy': 'user_admin_01'},
        ],
        models.REFUNDS: [
            {'id': 'ref1', 'invoiceId': 'inv1', 'amount': 50.00, 'date': '2024-07-16', 'method': 'original_payment',
             'reason': 'Goodwill gesture for delay', 'processedBy': 'user_admin_01'},
        ],
        models.DEPOSITS: [
            {'id': 'dep1', 'customerId': 'cust2', 'amount': 500.00, 'status': 'available',
             'createdAt': '2024-07-01T00:00:00', 'originalInvoiceId': 'inv_dep_123'},
        ],
        models.CHANGE_ORDERS: [
            {
                'id': 'co1', 'jobId': 'job1', 'customerId': 'cust1', 'title': 'Upgrade to Smart Thermostat',
                'description': 'Customer requested an upgrade from the standard thermostat to a Nest Smart Thermostat.',
                'lineItems': [
                    {'description': 'Nest Learning Thermostat', 'quantity': 1, 'unitPrice': 249.00},
                    {'description': 'Additional Labor for Setup', 'quantity': 1, 'unitPrice': 75.00},
                ],
                'total': 324.00, 'status': 'approved',
                'createdAt': '2024-07-10T11:00:00', 'updatedAt': '2024-07-10T11:30:00',
            },
            {
                'id': 'co2', 'jobId': 'job2', 'customerId': 'cust2', 'title': 'Additional Outlet Installation',
                'description': 'While on site, customer requested an additional GFCI outlet to be installed by the sink.',
                'lineItems': [
                    {'description': '15 Amp GFCI Outlet', 'quantity': 1, 'unitPrice': 28.00},
                    {'description': 'Labor for new outlet', 'quantity': 1, 'unitPrice': 120.00},
                ],
                'total': 148.00, 'status': 'invoiced',
                'createdAt': '2024-06-01T11:00:00', 'updatedAt': '2024-06-01T11:30:00',
            },
        ],
        models.SERVICE_AGREEMENTS: [
            {'id': 'sa1', 'title': 'Innovate Inc. HVAC Platinum Plan', 'customerId': 'cust1', 'status': 'active',
             'billingSchedule': {'frequency': 'quarterly'}, 'autoInvoiceEnabled': True,
             'startDate': '2023-01-01', 'linkedJobIds': [], 'amount': 500},
            {'id': 'sa2', 'title': 'Solutions Corp. Monthly Maintenance', 'customerId': 'cust2', 'status': 'active',
             'billingSchedule': {'frequency': 'monthly'}, 'autoInvoiceEnabled': False,
             'startDate': '2024-03-01', 'linkedJobIds': [], 'amount': 250},
            {'id': 'sa3', 'title': 'Gadgets & More Annual Checkup', 'customerId': 'cust3', 'status': 'cancelled',
             'billingSchedule': {'frequency': 'annually', 'nextDueDate': '2025-01-15'}, 'autoInvoiceEnabled': True,
             'startDate': '2023-01-15', 'endDate': '2024-01-14', 'linkedJobIds': [], 'amount': 800},
        ],
        models.INVENTORY_ITEMS: [
            {'id': 'inv_part_001', 'name': 'Dual-run Capacitor 45/5 MFD',
             'description': 'Oval run capacitor for HVAC condenser units.', 'sku': 'CAP-45-5',
             'partNumber': 'PRCFD455A', 'warehouseLocation': 'Aisle 3, Bin 4', 'quantityOnHand': 50,
             'reorderThreshold': 10, 'unitCost': 12.50, 'ourPrice': 35.00, 'vendor': 'Johnstone Supply',
             'trade': 'HVAC', 'category': 'Capacitors', 'reorderQtyDefault': 20,
             'truckLocations': [{'technicianId': 'tech1', 'quantity': 5}]},
            {'id': 'inv_part_002', 'name': '1/2" PEX-A Pipe (100ft)', 'description': 'Uponor PEX-A pipe for plumbing.',
             'sku': 'PEX-A-050-100', 'partNumber': 'F1040500', 'warehouseLocation': 'Aisle 1, Bay 2',
             'quantityOnHand': 20, 'reorderThreshold': 5, 'unitCost': 45.00, 'ourPrice': 75.00,
             'vendor': 'Ferguson', 'trade': 'Plumbing', 'category': 'Piping', 'reorderQtyDefault': 10,
             'truckLocations': []},
            {'id': 'inv_part_003', 'name': '15 Amp GFCI Outlet', 'description': 'Leviton GFCI duplex receptacle, white.',
             'sku': 'ELEC-GFCI-15A', 'partNumber': 'GFTR1-W', 'warehouseLocation': 'Aisle 5, Bin 12',
             'quantityOnHand': 150, 'reorderThreshold': 25, 'unitCost': 15.00, 'ourPrice': 28.00,
             'vendor': 'Home Depot Pro', 'trade': 'Electrical', 'category': 'Outlets', 'reorderQtyDefault': 50,
             'truckLocations': [{'technicianId': 'tech1', 'quantity': 10}, {'technicianId': 'tech2', 'quantity': 8}]},
            {'id': 'inv_part_004', 'name': 'Standard 1-Handle Faucet', 'description': 'Moen chrome single handle kitchen faucet.',
             'sku': 'FAUC-K-MOEN-1H', 'modelNumber': '7425', 'warehouseLocation': 'Aisle 1, Bin 6',
             'quantityOnHand': 15, 'reorderThreshold': 5, 'unitCost': 95.00, 'ourPrice': 165.00,
             'vendor': 'Ferguson', 'trade': 'Plumbing', 'category': 'Faucets', 'reorderQtyDefault': 5,
             'truckLocations': []},
            {'id': 'inv_part_005', 'name': 'Ignition Control Board', 'description': 'Universal ignition control board for furnaces.',
             'sku': 'HVAC-ICB-UNIV', 'partNumber': 'ICM282A', 'warehouseLocation': 'Aisle 3, Bin 8',
             'quantityOnHand': 1, 'reorderThreshold': 2, 'unitCost': 85.00, 'ourPrice': 210.00,
             'vendor': 'RE Michel', 'trade': 'HVAC', 'category': 'Control Boards', 'reorderQtyDefault': 4,
             'truckLocations': [{'technicianId': 'tech1', 'quantity': 1}]},
        ],
        models.PURCHASE_ORDERS: [
            {'id': 'po1', 'vendor': 'Johnstone Supply', 'parts': [{'partId': 'inv_part_001', 'qty': 20, 'unitCost': 12.50}],
             'total': 250.00, 'status': 'ordered', 'destination': models.WAREHOUSE, 'orderDate': '2024-07-18'},
            {'id': 'po2', 'vendor': 'Home Depot Pro', 'parts': [{'partId': 'inv_part_003', 'qty': 10, 'unitCost': 15.00}],
             'total': 150.00, 'status': 'pending', 'destination': 'tech2', 'orderDate': '2024-07-19'},
            {'id': 'po3', 'vendor': 'Ferguson', 'parts': [{'partId': 'inv_part_004', 'qty': 5, 'unitCost': 95.00}],
             'total': 475.00, 'status': 'received', 'destination': models.WAREHOUSE, 'orderDate': '2024-07-01',
             'receivedAt': '2024-07-05T10:00:00', 'receivedBy': 'user_admin'},
        ],
        models.VENDORS: [
            {'id': 'vendor1', 'name': 'Johnstone Supply', 'contactName': 'Pro Desk', 'phone': '408-555-0101',
             'email': 'sales@johnstonesupply.com', 'website': 'https://www.johnstonesupply.com',
             'address': '1000 Supply Way, San Jose, CA 95110', 'trades': ['HVAC'],
             'categories': ['Capacitors', 'Motors', 'Refrigerant'], 'preferred': True},
            {'id': 'vendor2', 'name': 'Ferguson', 'contactName': 'Sales Department', 'phone': '312-555-0144',
             'email': 'counter@ferguson.com', 'website': 'https://www.ferguson.com',
             'address': '22 Industrial Dr, Chicago, IL 60607', 'trades': ['Plumbing', 'HVAC'],
             'categories': ['Piping', 'Faucets', 'Water Heaters'], 'preferred': True},
            {'id': 'vendor3', 'name': 'Home Depot Pro', 'contactName': 'Pro Desk', 'phone': '212-555-0199',
             'email': 'prodesk@homedepot.com', 'website': 'https://www.homedepot.com/c/Pro',
             'address': '40 W 23rd St, New York, NY 10010', 'trades': ['Electrical', 'General'],
             'categories': ['Outlets', 'Wire', 'Breakers'], 'preferred': False},
        ],
        models.EQUIPMENT: [
            {'id': 'equip1', 'customerId': 'cust1', 'make': 'Carrier', 'model': '59MN7A', 'serial': 'SN12345ABC',
             'notes': 'Main HVAC unit for the primary building. Installed 2021.', 'installedDate': '2021-06-15',
             'condition': 'good'},
            {'id': 'equip2', 'customerId': 'cust1', 'make': 'Rheem', 'model': 'XE50M12', 'serial': 'SN67890DEF',
             'notes': 'Water heater, 50-gallon capacity.', 'installedDate': '2021-06-15', 'condition': 'fair'},
            {'id': 'equip3', 'customerId': 'cust2', 'make': 'Generac', 'model': 'Guardian 22kW', 'serial': 'SN55511GHI',
             'notes': 'Backup generator for server room.', 'installedDate': '2022-01-20', 'condition': 'new'},
        ],
        models.EQUIPMENT_LOGS: [],
        models.ESTIMATES: [
            {
                'id': 'est1', 'estimateNumber': 'EST-001', 'title': 'Full HVAC System Replacement',
                'customerId': 'cust1', 'jobId': 'job1', 'status': 'accepted',
                'lineItems': [
                    {'description': 'Carrier Infinity Series AC Unit', 'quantity': 1, 'unitPrice': 4500},
                    {'description': 'Carrier Infinity Series Furnace', 'quantity': 1, 'unitPrice': 3200},
                    {'description': 'Labor and Installation', 'quantity': 16, 'unitPrice': 120},
                    {'description': 'Ductwork Modification', 'quantity': 1, 'unitPrice': 800},
                ],
                'subtotal': 10420, 'discount': 500,
                'taxes': [
                    {'name': 'State Sales Tax', 'rate': 0.06, 'amount': 595.20},
                    {'name': 'County Sales Tax', 'rate': 0.01, 'amount': 99.20},
                ],
                'total': 10614.40,
                'notes': 'This estimate includes a 5-year parts and labor warranty. A 10-year extended warranty is available.',
                'gbbTier': {
                    'good': 'Basic replacement with a standard efficiency unit. Includes essential installation services.',
                    'better': 'Upgraded, high-efficiency unit with a smart thermostat. Includes full system flush and balancing.',
                    'best': 'Top-of-the-line, variable-speed system with zoning capabilities, advanced air purification, '
                            'and a 10-year extended warranty.',
                },
                'createdBy': 'user_admin_01',
                'createdAt': '2024-07-10T10:00:00', 'updatedAt': '2024-07-11T14:30:00',
            },
            {
                'id': 'est2', 'estimateNumber': 'EST-002', 'title': 'Leaky Faucet Repair Options',
                'customerId': 'cust2', 'jobId': 'job2', 'status': 'sent',
                'lineItems': [
                    {'description': 'Faucet Cartridge Replacement', 'quantity': 1, 'unitPrice': 150},
                    {'description': 'Labor', 'quantity': 1, 'unitPrice': 100},
                ],
                'subtotal': 250, 'discount': 0,
                'taxes': [{'name': 'Sales Tax', 'rate': 0.08, 'amount': 20}],
                'total': 270,
                'notes': 'Repair of existing Moen faucet in master bathroom.',
                'gbbTier': {
                    'good': 'Replace the cartridge in the existing faucet to stop the leak.',
                    'better': 'Replace the entire faucet with a new, mid-grade Delta model.',
                    'best': 'Upgrade to a premium Kohler faucet with a lifetime warranty and new supply lines.',
                },
                'createdBy': 'tech1',
                'createdAt': '2024-07-15T09:00:00', 'updatedAt': '2024-07-15T09:30:00',
            },
        ],
        models.ESTIMATE_TEMPLATES: [
            {
                'id': 'template-wh-install', 'title': 'Water Heater Installation',
                'lineItems': [
                    {'description': 'Bradford White 50-Gallon Gas Water Heater', 'quantity': 1, 'unitPrice': 1200},
                    {'description': 'Installation Labor', 'quantity': 4, 'unitPrice': 150},
                    {'description': 'New Gas Line & Fittings', 'quantity': 1, 'unitPrice': 250},
                    {'description': 'Haul Away Old Unit', 'quantity': 1, 'unitPrice': 75},
                ],
                'gbbTier': {
                    'good': 'Install a standard 50-gallon gas water heater with a 6-year warranty.',
                    'better': 'Install a high-efficiency 50-gallon gas water heater with an 8-year warranty.',
                    'best': 'Install a premium, condensing tankless water heater with a 12-year warranty.',
                },
            },
            {
                'id': 'template-ac-diag', 'title': 'A/C System Diagnosis',
                'lineItems': [{'description': 'HVAC Diagnostic Fee', 'quantity': 1, 'unitPrice': 99}],
                'gbbTier': {
                    'good': 'Perform a full system diagnostic and provide a quote for necessary repairs.',
                    'better': 'Diagnostic plus a refrigerant level check and standard filter replacement.',
                    'best': 'Diagnostic, refrigerant service, a new filter, and a full coil cleaning.',
                },
            },
            {
                'id': 'template-repipe', 'title': 'Whole Home Repipe',
                'lineItems': [
                    {'description': 'PEX-A Piping for Whole Home', 'quantity': 200, 'unitPrice': 5},
                    {'description': 'Labor for Repipe', 'quantity': 40, 'unitPrice': 150},
                    {'description': 'Drywall Repair & Patching', 'quantity': 1, 'unitPrice': 2500},
                    {'description': 'Permits and Inspection', 'quantity': 1, 'unitPrice': 500},
                ],
                'gbbTier': {
                    'good': 'Repipe the entire home with standard PEX-B tubing and basic patching.',
                    'better': 'Repipe using PEX-A with new quarter-turn shut-off valves and textured drywall repair.',
                    'best': 'PEX-A, new valves, whole-home filtration and a pressure-reducing valve.',
                },
            },
        ],
        models.PRICEBOOK_ITEMS: [
            {'id': 'pb_hvac_002', 'title': 'Capacitor Replacement', 'description': 'Replace dual-run capacitor for outdoor unit.',
             'trade': 'HVAC', 'price': 280, 'estimatedLaborHours': 0.75,
             'inventoryParts': [{'partId': 'inv_part_001', 'quantity': 1}], 'isUrgent': True},
            {'id': 'pb_plumb_001', 'title': 'Standard Faucet Install', 'description': 'Install customer-provided faucet.',
             'trade': 'Plumbing', 'price': 250, 'estimatedLaborHours': 1.5,
             'inventoryParts': [{'partId': 'inv_part_004', 'quantity': 1}]},
            {'id': 'pb_plumb_002', 'title': 'Drain Clearing (Main Line)', 'description': 'Cable main sewer line up to 100ft.',
             'trade': 'Plumbing', 'price': 450, 'isUrgent': True},
            {'id': 'pb_plumb_003', 'title': 'Toilet Rebuild', 'description': 'Replace all internal tank components.',
             'trade': 'Plumbing', 'price': 320, 'estimatedLaborHours': 1},
            {'id': 'pb_hvac_001', 'title': 'AC Tune-up', 'description': 'Comprehensive cleaning and inspection of AC system.',
             'trade': 'HVAC', 'price': 129, 'estimatedLaborHours': 1, 'inventoryParts': []},
            {'id': 'pb_elec_001', 'title': 'GFCI Outlet Replacement', 'description': 'Replace a single GFCI electrical outlet.',
             'trade': 'Electrical', 'price': 150, 'estimatedLaborHours': 0.5,
             'inventoryParts': [{'partId': 'inv_part_003', 'quantity': 1}]},
            {'id': 'pb_elec_002', 'title': 'Ceiling Fan Installation',
             'description': 'Install customer-provided ceiling fan on existing brace.',
             'trade': 'Electrical', 'price': 300, 'estimatedLaborHours': 2},
        ],
    }


def seed_store(store: MockStore, today: Optional[datetime] = None) -> Dict[str, int]:
    """
    Load the demo data into every collection.

    Returns:
        Record counts per collection
    """
    data = build_default_data(today)
    for collection, records in data.items():
        store.load(collection, records)
    counts = {name: len(records) for name, records in data.items()}
    logger.info(f"Seeded mock store with {sum(counts.values())} records in {len(counts)} collections")
    return counts


# ==================== BATCH IMPORT ====================

def _documents_from_json(payload: Any, file_path: str) -> List[Dict[str, Any]]:
    """Accept ``{id: doc}`` maps or lists of docs carrying their own id."""
    if isinstance(payload, dict):
        documents = []
        for key, doc in payload.items():
            if not isinstance(doc, dict):
                raise ValueError(f"{file_path}: document '{key}' is not an object")
            documents.append({**doc, 'id': key})
        return documents

    if isinstance(payload, list):
        for idx, doc in enumerate(payload):
            if not isinstance(doc, dict) or not doc.get('id'):
                raise ValueError(f"{file_path}: entry {idx} must be an object with an 'id'")
        return payload

    raise ValueError(f"{file_path}: expected a JSON object keyed by id or a list of documents")


def _read_export(file_path: str) -> List[Dict[str, Any]]:
    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{file_path}: invalid JSON ({e})") from e
    return _documents_from_json(payload, file_path)


def import_collection(store: MockStore, file_path: str, collection: str) -> int:
    """
    Upsert every document in a JSON file into a collection, keyed by id.

    Args:
        store: Target store
        file_path: Path to the JSON export
        collection: Collection name

    Returns:
        Number of documents written

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a keyed JSON export
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Import file not found: {file_path}")

    documents = _read_export(file_path)
    for doc in documents:
        store.upsert(collection, doc)

    logger.info(f"Imported {len(documents)} documents into '{collection}' from {file_path}")
    return len(documents)


def import_folder(store: MockStore, folder: str) -> Dict[str, int]:
    """Import every ``<collection>.json`` file in a folder."""
    if not os.path.isdir(folder):
        raise FileNotFoundError(f"Import folder not found: {folder}")

    results = {}
    for filename in sorted(os.listdir(folder)):
        if not filename.endswith('.json'):
            continue
        collection = filename[:-len('.json')]
        results[collection] = import_collection(store, os.path.join(folder, filename), collection)
    return results


def merge_into_folder(source: str, target: str) -> Dict[str, int]:
    """
    Merge every ``<collection>.json`` export in ``source`` into the matching
    file in ``target``, replacing documents with the same id.

    Every source file is parsed before anything is written, so a bad export
    leaves the target folder untouched. Merged files are written as
    ``{id: doc}`` maps, which ``import_folder`` reads back at startup.

    Returns:
        Number of documents merged per collection

    Raises:
        FileNotFoundError: If ``source`` does not exist
        ValueError: If any export is malformed
    """
    if not os.path.isdir(source):
        raise FileNotFoundError(f"Import folder not found: {source}")

    incoming = {}
    for filename in sorted(os.listdir(source)):
        if filename.endswith('.json'):
            incoming[filename[:-len('.json')]] = _read_export(os.path.join(source, filename))

    os.makedirs(target, exist_ok=True)
    results = {}
    for collection, documents in incoming.items():
        target_path = os.path.join(target, f"{collection}.json")
        merged = {}
        if os.path.exists(target_path):
            for doc in _read_export(target_path):
                merged[doc['id']] = {k: v for k, v in doc.items() if k != 'id'}
        for doc in documents:
            merged[doc['id']] = {k: v for k, v in doc.items() if k != 'id'}

        with open(target_path, 'w', encoding='utf-8') as f:
            json.dump(merged, f, indent=2)
        results[collection] = len(documents)
        logger.info(f"Merged {len(documents)} documents into {target_path}")

    return results

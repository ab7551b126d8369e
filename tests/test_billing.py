"""
Tests for estimates, invoices, payments, refunds and deposits
"""
from datetime import date
import pytest
from services.billing_service import calculate_totals, summarize_invoice
from services.errors import BusinessRuleError, NotFoundError
from validators import ValidationError
from database import models


@pytest.mark.unit
class TestCalculateTotals:
    """Tests for totals and the single tax line"""

    def test_tax_on_subtotal(self):
        zone = {'name': 'California (Silicon Valley)', 'rate': 0.0925}
        totals = calculate_totals([{'quantity': 2, 'unitPrice': 100}], zone)
        assert totals['subtotal'] == 200.0
        assert totals['taxes'] == [{'name': 'California (Silicon Valley) Tax', 'amount': 18.5, 'rate': 0.0925}]
        assert totals['total'] == 218.5

    def test_no_zone_taxes_at_zero(self):
        totals = calculate_totals([{'quantity': 1, 'unitPrice': 50}])
        assert totals['taxes'][0]['amount'] == 0
        assert totals['total'] == 50.0

    def test_discount_is_taken_before_tax_is_added(self):
        totals = calculate_totals([{'quantity': 1, 'unitPrice': 100}], {'name': 'Z', 'rate': 0.1}, discount=20)
        assert totals['total'] == 90.0


@pytest.mark.unit
class TestSummarizeInvoice:
    """Tests for payment-derived invoice status"""

    def test_partially_paid(self):
        invoice = {'total': 100, 'status': 'sent', 'dueDate': '2024-07-01'}
        summary = summarize_invoice(invoice, [{'amount': 40}], [], date(2024, 8, 1))
        assert summary['status'] == 'partially_paid'
        assert summary['balanceDue'] == 60

    def test_paid(self):
        summary = summarize_invoice({'total': 100, 'status': 'sent'}, [{'amount': 100}], [])
        assert summary['status'] == 'paid'

    def test_overdue_without_payments(self):
        invoice = {'total': 100, 'status': 'sent', 'dueDate': '2024-07-01'}
        assert summarize_invoice(invoice, [], [], date(2024, 8, 1))['status'] == 'overdue'

    def test_refunds_reduce_amount_paid(self):
        summary = summarize_invoice({'total': 100, 'status': 'sent'}, [{'amount': 100}], [{'amount': 30}])
        assert summary['amountPaid'] == 70
        assert summary['balanceDue'] == 30
        assert summary['status'] == 'partially_paid'

    def test_manual_status_is_kept(self):
        """Test that a draft stays draft even when fully paid"""
        summary = summarize_invoice({'total': 10, 'status': 'draft'}, [{'amount': 10}], [])
        assert summary['status'] == 'draft'


@pytest.mark.unit
class TestEstimates:
    """Tests for estimate creation, acceptance and conversion"""

    def test_create_estimate_uses_customer_tax_zone(self, container):
        estimate = container.billing.create_estimate({
            'customerId': 'cust1', 'title': 'Water heater',
            'lineItems': [{'description': 'Heater', 'quantity': 2, 'unitPrice': 100}],
        })
        assert estimate['status'] == 'draft'
        assert estimate['total'] == 218.5
        assert estimate['estimateNumber'].startswith('EST-')

    def test_create_estimate_auto_creates_job(self, container):
        """Test that an estimate without a job gets a new unscheduled one"""
        estimate = container.billing.create_estimate({'customerId': 'cust3', 'title': 'Attic fan'})
        job = container.crm.get_job(estimate['jobId'])
        assert job['status'] == 'unscheduled'
        assert job['isAutoCreated'] is True
        assert job['title'] == 'Job for: Attic fan'

    def test_create_estimate_unknown_customer(self, container):
        with pytest.raises(NotFoundError):
            container.billing.create_estimate({'customerId': 'nobody', 'title': 'X'})

    def test_create_estimate_requires_title_and_customer(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.billing.create_estimate({})
        assert set(exc_info.value.errors) == {'customerId', 'title'}

    def test_incomplete_gbb_tier_is_dropped(self, container):
        estimate = container.billing.create_estimate({
            'customerId': 'cust1', 'title': 'Tiers', 'gbbTier': {'good': 'a', 'better': 'b'},
        })
        assert estimate['gbbTier'] is None

    def test_accept_from_tier(self, container):
        """Test that picking a tier creates an accepted single-line estimate"""
        estimate = container.billing.accept_estimate_from_tier({
            'customerId': 'cust2', 'title': 'Faucet',
            'selectedTier': {'description': 'Replace with Delta faucet', 'price': 400},
        })
        assert estimate['status'] == 'accepted'
        assert len(estimate['lineItems']) == 1
        assert estimate['total'] == 432.0

    @pytest.mark.parametrize('price', ['call us', None, 'nan', -5])
    def test_accept_from_tier_rejects_bad_price(self, container, store, price):
        """Test that a tier without a usable price is rejected, not priced at zero"""
        before = store.count(models.ESTIMATES)
        with pytest.raises(ValidationError) as exc_info:
            container.billing.accept_estimate_from_tier({
                'customerId': 'cust2', 'title': 'Faucet',
                'selectedTier': {'description': 'Replace with Delta faucet', 'price': price},
            })
        assert 'selectedTier' in exc_info.value.errors
        assert store.count(models.ESTIMATES) == before

    def test_accept_with_signature_requires_sent(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.accept_estimate_with_signature('est1')
        accepted = container.billing.accept_estimate_with_signature('est2', 'data:image/png;base64,xx')
        assert accepted['status'] == 'accepted'
        assert accepted['signature'].startswith('data:image')

    def test_only_accepted_estimates_convert(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.convert_estimate_to_invoice('est2')

    def test_convert_estimate_to_invoice(self, container):
        """Test that conversion copies totals and links the job"""
        invoice = container.billing.convert_estimate_to_invoice('est1')
        assert invoice['status'] == 'draft'
        assert invoice['total'] == 10614.40
        assert invoice['linkedEstimateIds'] == ['est1']
        assert invoice['dueDate'] == '2024-08-31'
        assert all(item['origin'] == {'type': 'estimate', 'id': 'est1'} for item in invoice['lineItems'])
        assert container.crm.get_job('job1')['invoiceId'] == invoice['id']

    def test_update_estimate_status_rejects_unknown(self, container):
        with pytest.raises(ValidationError):
            container.billing.update_estimate_status('est2', 'archived')


@pytest.mark.unit
class TestInvoices:
    """Tests for invoice creation and editing"""

    def test_create_invoice_links_jobs(self, container):
        invoice = container.billing.create_invoice({
            'customerId': 'cust1', 'title': 'Panel upgrade', 'jobIds': ['job3'],
            'lineItems': [{'description': 'Panel', 'quantity': 1, 'unitPrice': 1000}],
        })
        assert invoice['total'] == 1092.5
        assert invoice['balanceDue'] == 1092.5
        assert container.crm.get_job('job3')['invoiceId'] == invoice['id']

    def test_create_invoice_rejects_bad_job_ids(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.billing.create_invoice({
                'customerId': 'cust1', 'title': 'X', 'jobIds': 'job3',
                'lineItems': [{'description': 'A', 'quantity': 1, 'unitPrice': 1}],
            })
        assert 'jobIds' in exc_info.value.errors

    def test_only_draft_invoices_can_be_edited(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.update_invoice('inv2', {
                'title': 'Edited', 'lineItems': [{'description': 'A', 'quantity': 1, 'unitPrice': 1}],
            })

    def test_edit_draft_recomputes_totals(self, container):
        """Test that editing a draft recomputes tax from the customer's zone"""
        invoice = container.billing.update_invoice('inv4', {
            'title': 'Q3 Agreement',
            'lineItems': [{'description': 'Maintenance', 'quantity': 1, 'unitPrice': 500}],
        })
        assert invoice['total'] == 546.25
        assert invoice['auditLog'][-1]['action'] == 'Invoice Edited'

    def test_summary_for_missing_invoice(self, container):
        with pytest.raises(NotFoundError):
            container.billing.get_invoice_summary('nope')

    def test_list_summaries_filter_by_status(self, container):
        summaries = container.billing.list_invoice_summaries(status='partially_paid')
        assert {s['id'] for s in summaries} == {'inv2', 'inv3'}

    def test_analysis_details(self, container):
        details = container.billing.invoice_analysis_details('inv2')
        assert 'Leaky Faucet' in details['jobDetails']
        assert 'EST-002' in details['estimateDetails']
        assert 'Total: $864.00' in details['invoiceDetails']


@pytest.mark.unit
class TestBatchInvoicing:
    """Tests for invoicing completed jobs in bulk"""

    @pytest.fixture
    def completed(self, container):
        container.inventory.log_part_usage('inv_part_003', 'job3', 'tech1', 2)
        container.crm.update_job('job3', {'status': 'complete'})
        container.crm.update_job('job5', {'status': 'complete'})
        return container

    def test_seeded_jobs_are_all_invoiced(self, container):
        assert container.billing.invoiceable_jobs() == []

    def test_invoiceable_jobs(self, completed):
        jobs = {job['id']: job for job in completed.billing.invoiceable_jobs()}
        assert set(jobs) == {'job3', 'job5'}
        assert jobs['job3']['customerName'] == 'Alice Williams'
        assert [j['id'] for j in completed.billing.invoiceable_jobs(customer_id='cust2')] == ['job5']

    def test_batch_creates_one_invoice_per_job(self, completed):
        invoices = completed.billing.create_batch_invoices(['job3', 'job5'])
        assert len(invoices) == 2
        panel = invoices[0]
        assert panel['status'] == 'draft'
        assert panel['jobIds'] == ['job3']
        assert [line['description'] for line in panel['lineItems']] == ['Labor: Panel Upgrade', '15 Amp GFCI Outlet']
        # 1.5h at 95 plus two outlets at 28
        assert panel['subtotal'] == 198.5
        assert completed.crm.get_job('job3')['invoiceId'] == panel['id']
        assert completed.crm.get_job('job5')['invoiceId'] == invoices[1]['id']
        assert completed.billing.invoiceable_jobs() == []

    def test_batch_rejects_invoiced_job_without_writing(self, completed):
        """Test that one invoiced job stops the whole batch"""
        before = completed.store.count(models.INVOICES)
        with pytest.raises(BusinessRuleError):
            completed.billing.create_batch_invoices(['job3', 'job1'])
        assert completed.store.count(models.INVOICES) == before
        assert not completed.crm.get_job('job3').get('invoiceId')

    def test_batch_rejects_unfinished_job(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.create_batch_invoices(['job6'])

    def test_batch_unknown_job(self, completed):
        with pytest.raises(NotFoundError):
            completed.billing.create_batch_invoices(['job3', 'job404'])

    @pytest.mark.parametrize('job_ids', [[], None, 'job3', [3]])
    def test_batch_needs_job_ids(self, completed, job_ids):
        with pytest.raises(ValidationError) as exc_info:
            completed.billing.create_batch_invoices(job_ids)
        assert 'jobIds' in exc_info.value.errors


@pytest.mark.unit
class TestPayments:
    """Tests for recording payments"""

    def test_payment_capped_at_balance(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.billing.record_payment('inv2', {'amount': 500})
        assert exc_info.value.field == 'amount'

    def test_payment_must_be_positive(self, container):
        with pytest.raises(ValidationError):
            container.billing.record_payment('inv2', {'amount': 0})

    @pytest.mark.parametrize('amount', ['nan', float('nan'), 'inf'])
    def test_non_finite_payment_rejected(self, container, store, amount):
        before = store.count(models.PAYMENTS)
        with pytest.raises(ValidationError) as exc_info:
            container.billing.record_payment('inv2', {'amount': amount})
        assert exc_info.value.field == 'amount'
        assert store.count(models.PAYMENTS) == before
        assert container.billing.get_invoice_summary('inv2')['balanceDue'] == 464

    def test_no_payments_on_drafts(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.record_payment('inv4', {'amount': 10})

    def test_full_payment_marks_paid(self, container):
        result = container.billing.record_payment('inv2', {'amount': 464, 'method': 'Check'})
        assert result['invoice']['status'] == 'paid'
        assert result['invoice']['balanceDue'] == 0
        assert result['payment']['date'] == '2024-08-01'
        assert container.billing_repo.get_invoice('inv2')['auditLog'][-1]['action'] == 'Payment Received'


@pytest.mark.unit
class TestRefunds:
    """Tests for refunds and credit memos"""

    def test_refund_cannot_exceed_paid(self, container):
        with pytest.raises(ValidationError):
            container.billing.issue_refund('inv3', {'amount': 200})

    @pytest.mark.parametrize('amount', ['nan', float('nan'), '-inf'])
    def test_non_finite_refund_rejected(self, container, store, amount):
        before = store.count(models.REFUNDS)
        with pytest.raises(ValidationError) as exc_info:
            container.billing.issue_refund('inv3', {'amount': amount})
        assert exc_info.value.field == 'amount'
        assert store.count(models.REFUNDS) == before
        assert container.billing.get_invoice_summary('inv3')['amountPaid'] == 108

    def test_unknown_method(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.billing.issue_refund('inv3', {'amount': 10, 'method': 'cash'})
        assert exc_info.value.field == 'method'

    def test_full_refund_marks_refunded(self, container):
        result = container.billing.issue_refund('inv3', {'amount': 108, 'reason': 'Cancelled'})
        assert result['invoice']['status'] == 'refunded'
        assert result['invoice']['amountPaid'] == 0

    def test_partial_refund_keeps_derived_status(self, container):
        result = container.billing.issue_refund('inv2', {'amount': 100})
        assert result['invoice']['status'] == 'partially_paid'
        assert result['invoice']['balanceDue'] == 564

    def test_credit_memo_marks_credited(self, container):
        result = container.billing.issue_refund('inv3', {'amount': 50, 'method': 'credit_memo'})
        assert result['invoice']['status'] == 'credited'


@pytest.mark.unit
class TestDeposits:
    """Tests for applying customer deposits"""

    def test_apply_deposit_up_to_balance(self, container):
        """Test that a deposit larger than the balance pays exactly the balance"""
        result = container.billing.apply_deposit('dep1', 'inv2')
        assert result['payment']['amount'] == 464
        assert result['payment']['method'] == 'Deposit'
        assert result['invoice']['status'] == 'paid'
        assert container.billing_repo.get_deposit('dep1')['status'] == 'applied'

    def test_deposit_applies_once(self, container):
        container.billing.apply_deposit('dep1', 'inv2')
        with pytest.raises(BusinessRuleError):
            container.billing.apply_deposit('dep1', 'inv2')

    def test_deposit_for_other_customer(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.apply_deposit('dep1', 'inv3')

    def test_unknown_deposit(self, container):
        with pytest.raises(NotFoundError):
            container.billing.apply_deposit('dep404', 'inv2')


@pytest.mark.unit
class TestChangeOrdersAndSettings:
    """Tests for change orders, tax zones, templates and the price book"""

    def test_create_change_order(self, container):
        change_order = container.billing.create_change_order({
            'jobId': 'job3', 'title': 'Extra circuit',
            'lineItems': [{'description': 'Breaker', 'quantity': 2, 'unitPrice': 40}],
        })
        assert change_order['status'] == 'draft'
        assert change_order['customerId'] == 'cust1'
        assert change_order['total'] == 80

    def test_invoiced_change_order_is_locked(self, container):
        with pytest.raises(BusinessRuleError):
            container.billing.update_change_order_status('co2', 'approved')

    def test_invalid_tax_zone_leaves_store_untouched(self, container, store):
        before = store.count(models.TAX_ZONES)
        with pytest.raises(ValidationError):
            container.billing.create_tax_zone({'name': 'Bad', 'rate': 'abc'})
        assert store.count(models.TAX_ZONES) == before

    @pytest.mark.parametrize('rate', ['nan', 'inf', float('nan')])
    def test_non_finite_tax_rate_leaves_store_untouched(self, container, store, rate):
        before = store.count(models.TAX_ZONES)
        with pytest.raises(ValidationError) as exc_info:
            container.billing.create_tax_zone({'name': 'Nowhere', 'rate': rate})
        assert 'rate' in exc_info.value.errors
        assert store.count(models.TAX_ZONES) == before

    def test_create_and_delete_tax_zone(self, container):
        zone = container.billing.create_tax_zone({'name': 'Texas', 'rate': '6.25'})
        assert zone['rate'] == 0.0625
        container.billing.delete_tax_zone(zone['id'])
        with pytest.raises(NotFoundError):
            container.billing.delete_tax_zone(zone['id'])

    def test_update_missing_template(self, container):
        with pytest.raises(NotFoundError):
            container.billing.update_estimate_template('missing', {'title': 'X'})

    def test_pricebook_trade_must_be_known(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.billing.add_pricebook_item({'title': 'Roof patch', 'price': 100, 'trade': 'Roofing'})
        assert 'trade' in exc_info.value.errors

    def test_pricebook_item_is_custom(self, container):
        item = container.billing.add_pricebook_item({'title': 'Hose bib', 'price': '85', 'trade': 'Plumbing'})
        assert item['isCustom'] is True
        assert item['price'] == 85.0

"""
Tests for the mock store, seed data and batch import
"""
import json
import time
import pytest
from database import MockStore, build_default_data, import_collection, import_folder, merge_into_folder, seed_store
from database import models


@pytest.mark.unit
class TestMockStoreReads:
    """Tests for get/list"""

    def test_get_returns_copy(self):
        """Test that mutating a fetched record does not change the store"""
        store = MockStore()
        store.insert('things', {'id': 't1', 'name': 'Wrench'})
        record = store.get('things', 't1')
        record['name'] = 'Hammer'
        assert store.get('things', 't1')['name'] == 'Wrench'

    def test_get_missing_returns_none(self):
        """Test that a missing id returns None rather than raising"""
        assert MockStore().get('things', 'nope') is None

    def test_list_filters_by_field(self):
        """Test that keyword filters match on field equality"""
        store = MockStore()
        store.insert('jobs', {'id': 'a', 'status': 'scheduled'})
        store.insert('jobs', {'id': 'b', 'status': 'complete'})
        assert [j['id'] for j in store.list('jobs', status='complete')] == ['b']

    def test_list_with_predicate(self):
        """Test that a predicate narrows the results"""
        store = MockStore()
        for qty in (1, 5, 10):
            store.insert('items', {'qty': qty})
        assert len(store.list('items', predicate=lambda r: r['qty'] > 2)) == 2


@pytest.mark.unit
class TestMockStoreWrites:
    """Tests for insert/update/upsert/delete"""

    def test_insert_generates_prefixed_id(self):
        """Test that inserts without an id get a collection prefix"""
        record = MockStore().insert(models.ESTIMATES, {'title': 'Repipe'})
        assert record['id'].startswith('est_')
        assert 'createdAt' in record

    def test_insert_goes_to_front(self):
        """Test that the newest record is listed first"""
        store = MockStore()
        store.insert('notes', {'id': 'old'})
        store.insert('notes', {'id': 'new'})
        assert [n['id'] for n in store.list('notes')] == ['new', 'old']

    def test_update_merges_changes(self):
        """Test that update keeps fields it was not given"""
        store = MockStore()
        store.insert('jobs', {'id': 'j1', 'title': 'Fix sink', 'status': 'unscheduled'})
        updated = store.update('jobs', 'j1', {'status': 'scheduled'})
        assert updated['title'] == 'Fix sink'
        assert updated['status'] == 'scheduled'
        assert 'updatedAt' in updated

    def test_update_missing_returns_none(self):
        """Test that updating a missing record reports None"""
        assert MockStore().update('jobs', 'missing', {'status': 'x'}) is None

    def test_upsert_replaces_existing(self):
        """Test that upsert replaces the whole record with the same id"""
        store = MockStore()
        store.insert('vendors', {'id': 'v1', 'name': 'Old', 'phone': '1'})
        store.upsert('vendors', {'id': 'v1', 'name': 'New'})
        assert store.get('vendors', 'v1') == {'id': 'v1', 'name': 'New'}
        assert store.count('vendors') == 1

    def test_delete(self):
        """Test that delete reports whether anything was removed"""
        store = MockStore()
        store.insert('zones', {'id': 'z1'})
        assert store.delete('zones', 'z1') is True
        assert store.delete('zones', 'z1') is False

    def test_latency_is_applied(self):
        """Test that configured latency delays each operation"""
        store = MockStore(latency_ms=20)
        started = time.monotonic()
        store.get('anything', 'x')
        assert time.monotonic() - started >= 0.015


@pytest.mark.unit
class TestSeedData:
    """Tests for the demo data set"""

    def test_every_collection_is_seeded(self):
        """Test that the demo data covers every collection"""
        data = build_default_data()
        assert set(data) == set(models.ALL_COLLECTIONS)

    def test_seed_store_counts(self):
        """Test that seeding reports per-collection counts"""
        store = MockStore()
        counts = seed_store(store)
        assert counts[models.CUSTOMERS] == 3
        assert store.count(models.INVOICES) == counts[models.INVOICES]

    def test_scheduled_jobs_fall_in_current_week(self, store):
        """Test that seeded job schedules are relative to today"""
        job = store.get(models.JOBS, 'job3')
        assert job['schedule']['start'].startswith('2024-07-30')


@pytest.mark.unit
class TestBatchImport:
    """Tests for JSON export import"""

    def test_import_keyed_object_upserts(self, tmp_path, store):
        """Test that a {id: doc} export upserts by key"""
        path = tmp_path / 'customers.json'
        path.write_text(json.dumps({
            'cust1': {'primaryContact': {'name': 'Alice Renamed'}},
            'cust9': {'primaryContact': {'name': 'New Person'}},
        }))
        assert import_collection(store, str(path), models.CUSTOMERS) == 2
        assert store.get(models.CUSTOMERS, 'cust1')['primaryContact']['name'] == 'Alice Renamed'
        assert store.get(models.CUSTOMERS, 'cust9') is not None
        assert store.count(models.CUSTOMERS) == 4

    def test_import_list_requires_ids(self, tmp_path):
        """Test that list exports must carry an id on every document"""
        path = tmp_path / 'vendors.json'
        path.write_text(json.dumps([{'name': 'No id'}]))
        with pytest.raises(ValueError):
            import_collection(MockStore(), str(path), models.VENDORS)

    def test_import_missing_file(self):
        """Test that a missing file raises FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            import_collection(MockStore(), '/nonexistent/file.json', models.VENDORS)

    def test_import_invalid_json(self, tmp_path):
        """Test that malformed JSON is reported as ValueError"""
        path = tmp_path / 'jobs.json'
        path.write_text('{not json')
        with pytest.raises(ValueError):
            import_collection(MockStore(), str(path), models.JOBS)

    def test_import_folder_uses_file_names(self, tmp_path):
        """Test that each <collection>.json lands in its collection"""
        (tmp_path / 'vendors.json').write_text(json.dumps([{'id': 'v1', 'name': 'Ferguson'}]))
        (tmp_path / 'taxZones.json').write_text(json.dumps({'tx': {'name': 'Texas', 'rate': 0.0625}}))
        (tmp_path / 'README.txt').write_text('ignored')
        store = MockStore()
        results = import_folder(store, str(tmp_path))
        assert results == {'taxZones': 1, 'vendors': 1}
        assert store.get(models.TAX_ZONES, 'tx')['rate'] == 0.0625

    def test_merge_into_folder_replaces_by_id(self, tmp_path):
        """Test that merged exports overwrite same-id documents and keep the rest"""
        source, target = tmp_path / 'export', tmp_path / 'seed'
        source.mkdir()
        target.mkdir()
        (target / 'vendors.json').write_text(json.dumps({'v1': {'name': 'Old'}, 'v2': {'name': 'Kept'}}))
        (source / 'vendors.json').write_text(json.dumps([{'id': 'v1', 'name': 'Ferguson'}]))
        assert merge_into_folder(str(source), str(target)) == {'vendors': 1}

        store = MockStore()
        import_folder(store, str(target))
        assert store.get(models.VENDORS, 'v1')['name'] == 'Ferguson'
        assert store.get(models.VENDORS, 'v2')['name'] == 'Kept'

    def test_merge_into_new_folder(self, tmp_path):
        source = tmp_path / 'export'
        source.mkdir()
        (source / 'taxZones.json').write_text(json.dumps({'tx': {'name': 'Texas', 'rate': 0.0625}}))
        merge_into_folder(str(source), str(tmp_path / 'fresh'))
        assert json.loads((tmp_path / 'fresh' / 'taxZones.json').read_text()) == {'tx': {'name': 'Texas', 'rate': 0.0625}}

    def test_merge_checks_every_file_first(self, tmp_path):
        """Test that one malformed export stops the merge before any write"""
        source, target = tmp_path / 'export', tmp_path / 'seed'
        source.mkdir()
        (source / 'jobs.json').write_text('{not json')
        (source / 'vendors.json').write_text(json.dumps([{'id': 'v1', 'name': 'Ferguson'}]))
        with pytest.raises(ValueError):
            merge_into_folder(str(source), str(target))
        assert not target.exists()

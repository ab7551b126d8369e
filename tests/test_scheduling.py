"""
Tests for job creation, dispatch and status changes
"""
from datetime import date
import pytest
from services.errors import BusinessRuleError, NotFoundError
from validators import ValidationError


@pytest.mark.unit
class TestCreateJob:
    """Tests for new jobs"""

    def test_new_jobs_are_unscheduled(self, container):
        job = container.scheduling.create_job({'customerId': 'cust2', 'title': 'Water softener', 'duration': '45'})
        assert job['status'] == 'unscheduled'
        assert job['schedule'] is None
        assert job['duration'] == 45
        assert job['details'] == {'serviceType': 'Unspecified'}

    def test_requires_customer_and_title(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.scheduling.create_job({'duration': -5})
        assert set(exc_info.value.errors) == {'customerId', 'title', 'duration'}

    def test_unknown_customer(self, container):
        with pytest.raises(NotFoundError):
            container.scheduling.create_job({'customerId': 'cust404', 'title': 'X'})


@pytest.mark.unit
class TestScheduleJob:
    """Tests for dispatching jobs"""

    def test_schedule_sets_window_and_duration(self, container):
        job = container.scheduling.schedule_job('job6', 'tech2', '2024-08-02T09:00:00', '2024-08-02T10:30:00')
        assert job['status'] == 'scheduled'
        assert job['technicianId'] == 'tech2'
        assert job['duration'] == 90

    def test_end_must_follow_start(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.scheduling.schedule_job('job6', 'tech2', '2024-08-02T10:00:00', '2024-08-02T09:00:00')
        assert 'end' in exc_info.value.errors

    def test_unparseable_times(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.scheduling.schedule_job('job6', 'tech2', 'tomorrow', None)
        assert set(exc_info.value.errors) == {'start', 'end'}

    def test_completed_jobs_cannot_be_rescheduled(self, container):
        with pytest.raises(BusinessRuleError):
            container.scheduling.schedule_job('job1', 'tech1', '2024-08-02T09:00:00', '2024-08-02T10:00:00')

    def test_unknown_technician(self, container):
        with pytest.raises(NotFoundError):
            container.scheduling.schedule_job('job6', 'tech9', '2024-08-02T09:00:00', '2024-08-02T10:00:00')


@pytest.mark.unit
class TestJobStatus:
    """Tests for the forward-only job lifecycle"""

    def test_move_forward(self, container):
        assert container.scheduling.update_job_status('job3', 'in_progress')['status'] == 'in_progress'

    def test_cannot_move_back(self, container):
        with pytest.raises(BusinessRuleError):
            container.scheduling.update_job_status('job1', 'scheduled')

    def test_unscheduled_job_cannot_start(self, container):
        with pytest.raises(BusinessRuleError):
            container.scheduling.update_job_status('job7', 'in_progress')

    def test_unknown_status(self, container):
        with pytest.raises(ValidationError):
            container.scheduling.update_job_status('job3', 'cancelled')


@pytest.mark.unit
class TestDayViews:
    """Tests for unscheduled and per-day job lists"""

    def test_unscheduled_jobs(self, container):
        assert {j['id'] for j in container.scheduling.unscheduled_jobs()} == {'job6', 'job7'}

    def test_jobs_on_day_sorted_by_start(self, container):
        jobs = container.scheduling.jobs_on(date(2024, 7, 29))
        assert [j['id'] for j in jobs] == ['job1', 'job2']

    def test_technician_schedule(self, container):
        assert [j['id'] for j in container.scheduling.technician_schedule('tech1', date(2024, 7, 30))] == ['job3']
        assert container.scheduling.technician_schedule('tech1', date(2024, 7, 31)) == []

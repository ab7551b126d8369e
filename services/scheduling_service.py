"""
Scheduling Service - job creation, dispatch and the job lifecycle.

Jobs move forward only: unscheduled -> scheduled -> in_progress -> complete.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from database import models
from services.crm_repository import CRMRepository
from services.errors import BusinessRuleError, NotFoundError
from validators import FieldErrors, ValidationError, coerce_int, sanitize_string, validate_choice

logger = logging.getLogger(__name__)


class SchedulingService:

    def __init__(self, crm: CRMRepository):
        self.crm = crm

    def _require_job(self, job_id: str) -> Dict:
        job = self.crm.get_job(job_id)
        if not job:
            raise NotFoundError('Job', job_id)
        return job

    def create_job(self, data: Dict[str, Any]) -> Dict:
        errors = FieldErrors()
        customer_id = sanitize_string(data.get('customerId'))
        title = sanitize_string(data.get('title'), 200)
        if not customer_id:
            errors.add('customerId', 'Customer is required.')
        if not title:
            errors.add('title', 'Title is required.')
        duration = coerce_int(data.get('duration', 60))
        if duration is None or duration < 0:
            errors.add('duration', 'Duration must be a whole number of minutes.')
        errors.raise_if_any('Invalid job.')

        if not self.crm.get_customer(customer_id):
            raise NotFoundError('Customer', customer_id)

        return self.crm.create_job({
            'customerId': customer_id,
            'technicianId': '',
            'title': title,
            'description': sanitize_string(data.get('description'), 2000),
            'status': 'unscheduled',
            'schedule': None,
            'duration': duration,
            'details': {'serviceType': sanitize_string(data.get('serviceType'), 100) or 'Unspecified'},
        })

    def schedule_job(self, job_id: str, technician_id: str, start: Any, end: Any) -> Dict:
        """
        Assign a technician and a time window; the duration follows the window.

        Raises:
            ValidationError: Missing or unparseable times, or end not after start
            BusinessRuleError: Job already started or finished
        """
        start_at = models.parse_datetime(start)
        end_at = models.parse_datetime(end)
        errors = FieldErrors()
        if not start_at:
            errors.add('start', 'A valid start time is required.')
        if not end_at:
            errors.add('end', 'A valid end time is required.')
        if start_at and end_at and end_at <= start_at:
            errors.add('end', 'End time must be after start time.')
        errors.raise_if_any('Invalid schedule.')

        job = self._require_job(job_id)
        if job.get('status') not in ('unscheduled', 'scheduled'):
            raise BusinessRuleError(f"Cannot reschedule a job that is {job.get('status')}.", field='status')
        if not self.crm.get_technician(technician_id):
            raise NotFoundError('Technician', technician_id)

        updated = self.crm.update_job(job_id, {
            'technicianId': technician_id,
            'schedule': {'start': start_at.isoformat(), 'end': end_at.isoformat()},
            'duration': int((end_at - start_at).total_seconds() // 60),
            'status': 'scheduled',
        })
        logger.info(f"Scheduled job {job_id} for {technician_id} at {start_at.isoformat()}")
        return updated

    def update_job_status(self, job_id: str, status: str) -> Dict:
        is_valid, error = validate_choice(status, models.JOB_STATUSES)
        if not is_valid:
            raise ValidationError(error, field='status')

        job = self._require_job(job_id)
        current = models.JOB_STATUSES.index(job.get('status', 'unscheduled'))
        target = models.JOB_STATUSES.index(status)
        if target < current:
            raise BusinessRuleError(f"Job cannot move from {job['status']} back to {status}.", field='status')
        if status != 'unscheduled' and not job.get('schedule'):
            raise BusinessRuleError('Job must be scheduled first.', field='status')
        return self.crm.update_job(job_id, {'status': status})

    def unscheduled_jobs(self) -> List[Dict]:
        return self.crm.list_jobs(status='unscheduled')

    def technician_schedule(self, technician_id: str, day: date) -> List[Dict]:
        """Jobs for a technician starting on the given day, earliest first."""
        return self.jobs_on(day, technician_id=technician_id)

    def jobs_on(self, day: date, technician_id: str = None) -> List[Dict]:
        day_start = datetime.combine(day, datetime.min.time())
        day_end = day_start + timedelta(days=1)
        jobs = []
        for job in self.crm.list_jobs(technician_id=technician_id):
            start = models.parse_datetime((job.get('schedule') or {}).get('start'))
            if start and day_start <= start < day_end:
                jobs.append(job)
        return sorted(jobs, key=lambda j: j['schedule']['start'])

"""
Scheduling Routes Blueprint

Jobs, dispatch and technician day views.
"""

import logging
from datetime import date
from flask import Blueprint, request

from app.utils.helpers import api_error, api_success, get_request_data, get_services, handle_service_errors
from services.errors import NotFoundError

logger = logging.getLogger(__name__)

# Create blueprint
scheduling_bp = Blueprint('scheduling_bp', __name__)


# ============================================================================
# JOBS
# ============================================================================

@scheduling_bp.route('/api/jobs', methods=['GET'])
def list_jobs():
    jobs = get_services().crm.list_jobs(
        customer_id=request.args.get('customerId'),
        technician_id=request.args.get('technicianId'),
        status=request.args.get('status'),
    )
    return api_success(jobs, f"{len(jobs)} jobs")


@scheduling_bp.route('/api/jobs', methods=['POST'])
@handle_service_errors('creating the job')
def create_job():
    job = get_services().scheduling.create_job(get_request_data())
    return api_success(job, 'Job created.', 201)


@scheduling_bp.route('/api/jobs/unscheduled', methods=['GET'])
def unscheduled_jobs():
    return api_success(get_services().scheduling.unscheduled_jobs())


@scheduling_bp.route('/api/jobs/<job_id>', methods=['GET'])
@handle_service_errors('loading the job')
def get_job(job_id):
    job = get_services().crm.get_job(job_id)
    if not job:
        raise NotFoundError('Job', job_id)
    return api_success(job)


@scheduling_bp.route('/api/jobs/<job_id>/schedule', methods=['POST'])
@handle_service_errors('scheduling the job')
def schedule_job(job_id):
    """Assign a technician and time window"""
    data = get_request_data()
    job = get_services().scheduling.schedule_job(
        job_id, data.get('technicianId'), data.get('start'), data.get('end'),
    )
    return api_success(job, 'Job scheduled.')


@scheduling_bp.route('/api/jobs/<job_id>/status', methods=['POST'])
@handle_service_errors('updating the job')
def update_job_status(job_id):
    data = get_request_data()
    job = get_services().scheduling.update_job_status(job_id, data.get('status'))
    return api_success(job, f"Job marked {job['status']}.")


# ============================================================================
# TECHNICIANS
# ============================================================================

@scheduling_bp.route('/api/technicians', methods=['GET'])
def list_technicians():
    return api_success(get_services().crm.list_technicians())


@scheduling_bp.route('/api/technicians/<technician_id>/schedule', methods=['GET'])
@handle_service_errors('loading the schedule')
def technician_schedule(technician_id):
    """Jobs for one technician on ?date=YYYY-MM-DD (defaults to today)"""
    raw_day = request.args.get('date')
    try:
        day = date.fromisoformat(raw_day) if raw_day else date.today()
    except ValueError:
        return api_error('Date must be YYYY-MM-DD.', 400, {'date': ['Date must be YYYY-MM-DD.']})

    if not get_services().crm.get_technician(technician_id):
        raise NotFoundError('Technician', technician_id)
    jobs = get_services().scheduling.technician_schedule(technician_id, day)
    return api_success(jobs, f"{len(jobs)} jobs on {day.isoformat()}")

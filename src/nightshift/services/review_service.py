import uuid
from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.clock import local_now
from nightshift.core.exceptions import NotFoundError
from nightshift.models.application import Application
from nightshift.models.job import Job
from nightshift.schemas.application import (
    ApplicantRead,
    ApplicationStatus,
    JobApplicants,
    ReviewAction,
)
from nightshift.schemas.job import JobSummary
from nightshift.services import application_service, job_service


def calculate_age(date_of_birth: date, today: date) -> int:
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def to_applicant(application: Application, today: date) -> ApplicantRead:
    person = application.applicant
    return ApplicantRead(
        application_id=application.id,
        applicant_id=person.id,
        name=person.name,
        email=person.email,
        avatar_url=person.avatar_url,
        phone=person.phone,
        gender=person.gender,
        date_of_birth=person.date_of_birth,
        age=calculate_age(person.date_of_birth, today) if person.date_of_birth else None,
        status=application.status,
        applied_at=application.applied_at,
    )


async def list_applicants_grouped(
    db: AsyncSession, owner_id: uuid.UUID, now: datetime | None = None
) -> list[JobApplicants]:
    """Every job the owner posted, deleted and expired ones included, with open applicants."""
    today = (now or local_now()).date()
    jobs = await db.execute(
        select(Job).where(Job.created_by == owner_id).order_by(Job.date, Job.start_time, Job.id)
    )
    owned = list(jobs.scalars().all())

    applications = await application_service.list_for_jobs(db, [job.id for job in owned])
    grouped: dict[uuid.UUID, list[ApplicantRead]] = defaultdict(list)
    for application in applications:
        grouped[application.job_id].append(to_applicant(application, today))

    return [
        JobApplicants(job=JobSummary.model_validate(job), applicants=grouped[job.id])
        for job in owned
    ]


async def review(
    db: AsyncSession,
    job_id: uuid.UUID,
    applicant_id: uuid.UUID,
    owner_id: uuid.UUID,
    action: ReviewAction,
) -> Application:
    await job_service.require_owned_job(db, job_id, owner_id, include_deleted=True)

    application = await application_service.find_open_application(db, job_id, applicant_id)
    if not application:
        raise NotFoundError("Application", f"{job_id}/{applicant_id}")

    if action == ReviewAction.CONNECT:
        new_status = ApplicationStatus.CONNECTED
    else:
        new_status = ApplicationStatus.DECLINED
    return await application_service.set_status(db, application.id, owner_id, new_status)


async def connect(
    db: AsyncSession, job_id: uuid.UUID, applicant_id: uuid.UUID, owner_id: uuid.UUID
) -> Application:
    return await review(db, job_id, applicant_id, owner_id, ReviewAction.CONNECT)


async def decline(
    db: AsyncSession, job_id: uuid.UUID, applicant_id: uuid.UUID, owner_id: uuid.UUID
) -> Application:
    return await review(db, job_id, applicant_id, owner_id, ReviewAction.DECLINE)

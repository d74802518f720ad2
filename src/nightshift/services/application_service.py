import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.clock import local_now, utcnow
from nightshift.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from nightshift.models.application import Application
from nightshift.schemas.application import ApplicationStatus
from nightshift.services import job_service

logger = logging.getLogger(__name__)

OWNER_TRANSITIONS = {ApplicationStatus.CONNECTED, ApplicationStatus.DECLINED}


async def get_application(db: AsyncSession, application_id: uuid.UUID) -> Application | None:
    result = await db.execute(select(Application).where(Application.id == application_id))
    return result.scalar_one_or_none()


async def find_open_application(
    db: AsyncSession, job_id: uuid.UUID, applicant_id: uuid.UUID
) -> Application | None:
    result = await db.execute(
        select(Application).where(
            Application.job_id == job_id,
            Application.applicant_id == applicant_id,
            Application.status != ApplicationStatus.WITHDRAWN,
        )
    )
    return result.scalar_one_or_none()


async def apply(
    db: AsyncSession,
    job_id: uuid.UUID,
    applicant_id: uuid.UUID,
    now: datetime | None = None,
) -> Application:
    now = now or local_now()
    job = await job_service.require_job(db, job_id, include_deleted=True)

    if job.created_by == applicant_id:
        logger.debug("Rejected self-apply by %s to job %s", applicant_id, job_id)
        raise ConflictError("You cannot apply to a job you posted (self-apply)")
    if not job_service.compute_is_active(job, now):
        raise NotFoundError("Job", str(job_id))
    if await find_open_application(db, job_id, applicant_id):
        logger.debug("Rejected duplicate application by %s to job %s", applicant_id, job_id)
        raise ConflictError("You have already applied for this job (duplicate)")

    application = Application(
        job_id=job_id,
        applicant_id=applicant_id,
        applied_at=utcnow(),
        status=ApplicationStatus.APPLIED,
    )
    try:
        async with db.begin_nested():
            db.add(application)
    except IntegrityError as e:
        # Lost a race against a concurrent apply for the same pair.
        logger.debug("Rejected duplicate application by %s to job %s", applicant_id, job_id)
        raise ConflictError("You have already applied for this job (duplicate)") from e
    await db.refresh(application)
    logger.info("Application %s: %s applied to job %s", application.id, applicant_id, job_id)
    return application


async def set_status(
    db: AsyncSession,
    application_id: uuid.UUID,
    acting_user_id: uuid.UUID,
    new_status: ApplicationStatus,
    now: datetime | None = None,
) -> Application:
    """Move an application through its lifecycle.

    ``applied`` -> ``connected`` | ``declined`` is reserved for the job owner;
    any non-withdrawn status -> ``withdrawn`` is reserved for the applicant and
    only allowed before the job ends. Every target state is terminal.
    """
    application = await get_application(db, application_id)
    if not application:
        raise NotFoundError("Application", str(application_id))
    job = application.job
    current = ApplicationStatus(application.status)

    if new_status in OWNER_TRANSITIONS:
        if job.created_by != acting_user_id:
            raise AuthorizationError("Only the job owner can connect or decline applicants")
        if current != ApplicationStatus.APPLIED:
            logger.debug("Application %s is %s, not %s", application_id, current, new_status)
            raise ConflictError(f"Application is already {current}")
    elif new_status == ApplicationStatus.WITHDRAWN:
        if application.applicant_id != acting_user_id:
            raise AuthorizationError("Only the applicant can withdraw this application")
        if current == ApplicationStatus.WITHDRAWN:
            raise ConflictError("Application is already withdrawn")
        if job.ends_at <= (now or local_now()):
            raise ConflictError("Cannot withdraw an application for a job that has already ended")
    else:
        raise ValidationError(f"Cannot move an application to '{new_status}'")

    application.status = new_status
    await db.flush()
    await db.refresh(application)
    logger.info(
        "Application %s: %s -> %s by %s", application.id, current, new_status, acting_user_id
    )
    return application


async def withdraw(
    db: AsyncSession,
    application_id: uuid.UUID,
    applicant_id: uuid.UUID,
    now: datetime | None = None,
) -> Application:
    return await set_status(db, application_id, applicant_id, ApplicationStatus.WITHDRAWN, now)


async def list_for_applicant(
    db: AsyncSession, applicant_id: uuid.UUID, include_withdrawn: bool = False
) -> list[Application]:
    query = select(Application).where(Application.applicant_id == applicant_id)
    if not include_withdrawn:
        query = query.where(Application.status != ApplicationStatus.WITHDRAWN)
    results = await db.execute(query.order_by(Application.applied_at.desc()))
    return list(results.scalars().all())


async def list_withdrawn_for_applicant(
    db: AsyncSession, applicant_id: uuid.UUID
) -> list[Application]:
    results = await db.execute(
        select(Application)
        .where(
            Application.applicant_id == applicant_id,
            Application.status == ApplicationStatus.WITHDRAWN,
        )
        .order_by(Application.applied_at.desc())
    )
    return list(results.scalars().all())


async def list_for_job(
    db: AsyncSession, job_id: uuid.UUID, include_withdrawn: bool = False
) -> list[Application]:
    query = select(Application).where(Application.job_id == job_id)
    if not include_withdrawn:
        query = query.where(Application.status != ApplicationStatus.WITHDRAWN)
    results = await db.execute(query.order_by(Application.applied_at))
    return list(results.scalars().all())


async def list_for_jobs(
    db: AsyncSession, job_ids: list[uuid.UUID], include_withdrawn: bool = False
) -> list[Application]:
    if not job_ids:
        return []
    query = select(Application).where(Application.job_id.in_(job_ids))
    if not include_withdrawn:
        query = query.where(Application.status != ApplicationStatus.WITHDRAWN)
    results = await db.execute(query.order_by(Application.applied_at))
    return list(results.scalars().all())


async def list_applicants_for_job(
    db: AsyncSession, job_id: uuid.UUID, owner_id: uuid.UUID
) -> list[Application]:
    await job_service.require_owned_job(db, job_id, owner_id, include_deleted=True)
    return await list_for_job(db, job_id)


def applied_job_ids(applicant_id: uuid.UUID):
    """Subquery of job ids the applicant holds a non-withdrawn application for."""
    return select(Application.job_id).where(
        Application.applicant_id == applicant_id,
        Application.status != ApplicationStatus.WITHDRAWN,
    )

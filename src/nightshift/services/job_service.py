import logging
import uuid
from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.clock import local_now, utcnow
from nightshift.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from nightshift.models.job import Job, Location
from nightshift.schemas.job import JobCreate, JobUpdate

logger = logging.getLogger(__name__)


def compute_is_active(job: Job, now: datetime) -> bool:
    """A job is active while it is not deleted and its end is still ahead of ``now``."""
    return job.is_active_at(now)


def active_clause(now: datetime):
    """SQL form of ``compute_is_active`` for the date/end_time columns."""
    today, current_time = now.date(), now.time()
    return and_(
        Job.deleted_at.is_(None),
        or_(
            Job.date > today,
            and_(Job.date == today, Job.end_time > current_time),
        ),
    )


def _ensure_ends_in_future(data: JobCreate, now: datetime) -> None:
    if datetime.combine(data.date, data.end_time) <= now:
        raise ValidationError("Job end time must be in the future")


def _job_fields(data: JobCreate) -> dict:
    fields = data.model_dump(exclude={"location"})
    fields["location"] = Location(**data.location.model_dump())
    return fields


async def create_job(
    db: AsyncSession,
    owner_id: uuid.UUID,
    data: JobCreate,
    now: datetime | None = None,
) -> Job:
    _ensure_ends_in_future(data, now or local_now())

    job = Job(**_job_fields(data), created_by=owner_id, deleted_at=None)
    db.add(job)
    await db.flush()
    await db.refresh(job)
    logger.info("Job %s created by %s", job.id, owner_id)
    return job


async def get_job(
    db: AsyncSession, job_id: uuid.UUID, include_deleted: bool = False
) -> Job | None:
    query = select(Job).where(Job.id == job_id)
    if not include_deleted:
        query = query.where(Job.deleted_at.is_(None))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def require_job(
    db: AsyncSession, job_id: uuid.UUID, include_deleted: bool = False
) -> Job:
    job = await get_job(db, job_id, include_deleted=include_deleted)
    if not job:
        raise NotFoundError("Job", str(job_id))
    return job


async def require_owned_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    owner_id: uuid.UUID,
    include_deleted: bool = False,
) -> Job:
    job = await require_job(db, job_id, include_deleted=include_deleted)
    if job.created_by != owner_id:
        # Deleted jobs do not exist for anyone but their owner.
        if job.deleted_at is not None:
            raise NotFoundError("Job", str(job_id))
        raise AuthorizationError("Only the job owner can manage this job")
    return job


async def update_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    owner_id: uuid.UUID,
    data: JobUpdate,
    now: datetime | None = None,
) -> Job:
    now = now or local_now()
    job = await require_owned_job(db, job_id, owner_id)

    # Expired is terminal; editing must not bring a finished job back.
    if job.ends_at <= now:
        raise ConflictError("Job has already ended and can no longer be edited")
    _ensure_ends_in_future(data, now)

    for field, value in _job_fields(data).items():
        setattr(job, field, value)
    await db.flush()
    await db.refresh(job)
    logger.info("Job %s updated by %s", job.id, owner_id)
    return job


async def soft_delete_job(db: AsyncSession, job_id: uuid.UUID, owner_id: uuid.UUID) -> None:
    job = await require_owned_job(db, job_id, owner_id, include_deleted=True)
    if job.deleted_at is not None:
        return

    job.deleted_at = utcnow()
    await db.flush()
    await db.refresh(job)
    logger.info("Job %s soft-deleted by %s", job.id, owner_id)


async def purge_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    owner_id: uuid.UUID,
    now: datetime | None = None,
) -> None:
    """Hard-delete a job from the owner's history. Only deleted or expired jobs qualify."""
    job = await require_owned_job(db, job_id, owner_id, include_deleted=True)
    if compute_is_active(job, now or local_now()):
        raise ConflictError("Only deleted or expired jobs can be removed from history")

    await db.delete(job)
    await db.flush()
    logger.info("Job %s purged from history by %s", job_id, owner_id)


async def list_owner_jobs(
    db: AsyncSession,
    owner_id: uuid.UUID,
    page: int = 1,
    page_size: int = 10,
    include_deleted: bool = False,
) -> tuple[list[Job], int]:
    condition = Job.created_by == owner_id
    if not include_deleted:
        condition = and_(condition, Job.deleted_at.is_(None))

    count_query = select(func.count()).select_from(Job).where(condition)
    total = (await db.execute(count_query)).scalar_one()

    query = (
        select(Job)
        .where(condition)
        .order_by(Job.date, Job.start_time, Job.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    results = await db.execute(query)
    return list(results.scalars().all()), total


async def list_job_history(
    db: AsyncSession, owner_id: uuid.UUID, now: datetime | None = None
) -> list[Job]:
    """Owner's jobs that are no longer live: soft-deleted or past their end time."""
    now = now or local_now()
    query = (
        select(Job)
        .where(Job.created_by == owner_id, ~active_clause(now))
        .order_by(Job.date.desc(), Job.start_time.desc())
    )
    results = await db.execute(query)
    return list(results.scalars().all())


async def list_filter_options(db: AsyncSession) -> tuple[list[str], list[str]]:
    live = Job.deleted_at.is_(None)
    cities = await db.execute(select(Job.city).where(live).distinct().order_by(Job.city))
    roles = await db.execute(select(Job.role).where(live).distinct().order_by(Job.role))
    return list(cities.scalars().all()), list(roles.scalars().all())


async def search_roles(db: AsyncSession, search: str | None = None) -> list[str]:
    query = select(Job.role).distinct().order_by(Job.role)
    if search:
        query = query.where(Job.role.ilike(f"%{search}%"))
    results = await db.execute(query)
    return list(results.scalars().all())

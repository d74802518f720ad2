"""Search over posted jobs, as seen by a particular worker."""

import calendar
import uuid
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.clock import local_now
from nightshift.models.job import Job
from nightshift.schemas.job import DateRange, JobFilters
from nightshift.services import job_service
from nightshift.services.application_service import applied_job_ids


def date_window(date_range: DateRange, today: date) -> tuple[date, date]:
    """Inclusive (first, last) calendar dates covered by ``date_range``.

    Weeks run Monday to Sunday.
    """
    if date_range == DateRange.TODAY:
        return today, today
    if date_range == DateRange.TOMORROW:
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow
    if date_range == DateRange.THIS_WEEK:
        monday = today - timedelta(days=today.weekday())
        return monday, monday + timedelta(days=6)
    if date_range == DateRange.THIS_MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)
    raise ValueError(f"No calendar window for date range '{date_range}'")


def build_conditions(requester_id: uuid.UUID, filters: JobFilters, now: datetime) -> list:
    if filters.date_range == DateRange.ALL:
        conditions = [job_service.active_clause(now)]
    else:
        # Browsing by date ignores the live end-time check but never shows deleted jobs.
        first, last = date_window(filters.date_range, now.date())
        conditions = [Job.deleted_at.is_(None), Job.date.between(first, last)]

    if filters.exclude_posted_by_me:
        conditions.append(Job.created_by != requester_id)
    if filters.exclude_applied:
        conditions.append(Job.id.not_in(applied_job_ids(requester_id)))
    if filters.city:
        conditions.append(Job.city == filters.city)
    if filters.role:
        conditions.append(Job.role == filters.role)
    return conditions


async def query_jobs(
    db: AsyncSession,
    requester_id: uuid.UUID,
    filters: JobFilters,
    page: int = 1,
    page_size: int = 10,
    now: datetime | None = None,
) -> tuple[list[Job], int]:
    """Return one page of matching jobs, soonest first, and the total match count."""
    conditions = build_conditions(requester_id, filters, now or local_now())

    count_query = select(func.count()).select_from(Job).where(*conditions)
    total = (await db.execute(count_query)).scalar_one()

    query = (
        select(Job)
        .where(*conditions)
        .order_by(Job.date, Job.start_time, Job.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    results = await db.execute(query)
    return list(results.scalars().all()), total

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.api.deps import Pagination, get_current_user, get_db, get_pagination
from nightshift.core.clock import local_now
from nightshift.core.exceptions import NotFoundError
from nightshift.models.user import User
from nightshift.schemas import PaginatedResponse
from nightshift.schemas.application import ApplicantRead, ApplicationRead, ReviewDecision
from nightshift.schemas.job import (
    DateRange,
    FilterOptions,
    JobCreate,
    JobFilters,
    JobRead,
    JobUpdate,
)
from nightshift.services import application_service, job_query, job_service, review_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/", response_model=JobRead, status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JobRead:
    job = await job_service.create_job(db, user.id, data)
    return JobRead.model_validate(job)


@router.get("/", response_model=PaginatedResponse[JobRead])
async def query_jobs(
    exclude_applied: bool = Query(False),
    exclude_posted_by_me: bool = Query(False),
    city: str | None = Query(None),
    role: str | None = Query(None),
    date_range: DateRange = Query(DateRange.ALL),
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[JobRead]:
    filters = JobFilters(
        exclude_applied=exclude_applied,
        exclude_posted_by_me=exclude_posted_by_me,
        city=city,
        role=role,
        date_range=date_range,
    )
    items, total = await job_query.query_jobs(
        db, user.id, filters, pagination.page, pagination.page_size
    )
    return PaginatedResponse(
        items=[JobRead.model_validate(j) for j in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/filters", response_model=FilterOptions, dependencies=[Depends(get_current_user)])
async def filter_options(db: AsyncSession = Depends(get_db)) -> FilterOptions:
    cities, roles = await job_service.list_filter_options(db)
    return FilterOptions(cities=cities, roles=roles)


@router.get("/{job_id}", response_model=JobRead)
async def get_job(
    job_id: uuid.UUID,
    include_deleted: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JobRead:
    job = await job_service.require_job(db, job_id, include_deleted=include_deleted)
    # Deleted jobs stay invisible to everyone but their owner.
    if job.deleted_at is not None and job.created_by != user.id:
        raise NotFoundError("Job", str(job_id))
    return JobRead.model_validate(job)


@router.put("/{job_id}", response_model=JobRead)
async def update_job(
    job_id: uuid.UUID,
    data: JobUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JobRead:
    job = await job_service.update_job(db, job_id, user.id, data)
    return JobRead.model_validate(job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await job_service.soft_delete_job(db, job_id, user.id)


@router.post(
    "/{job_id}/apply",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_job(
    job_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationRead:
    application = await application_service.apply(db, job_id, user.id)
    return ApplicationRead.model_validate(application)


@router.get("/{job_id}/applicants", response_model=list[ApplicantRead])
async def list_job_applicants(
    job_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicantRead]:
    applications = await application_service.list_applicants_for_job(db, job_id, user.id)
    today = local_now().date()
    return [review_service.to_applicant(a, today) for a in applications]


@router.put("/{job_id}/applicants/{applicant_id}", response_model=ApplicationRead)
async def review_applicant(
    job_id: uuid.UUID,
    applicant_id: uuid.UUID,
    decision: ReviewDecision,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationRead:
    application = await review_service.review(db, job_id, applicant_id, user.id, decision.action)
    return ApplicationRead.model_validate(application)

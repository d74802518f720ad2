from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.api.deps import Pagination, get_current_user, get_db, get_pagination
from nightshift.models.user import User
from nightshift.schemas import PaginatedResponse
from nightshift.schemas.application import ApplicationRead, JobApplicants, OwnerReviewDecision
from nightshift.schemas.job import JobRead
from nightshift.services import job_service, review_service

router = APIRouter(prefix="/my-jobs", tags=["my-jobs"])


@router.get("/", response_model=PaginatedResponse[JobRead])
async def list_my_jobs(
    include_deleted: bool = Query(False),
    pagination: Pagination = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[JobRead]:
    items, total = await job_service.list_owner_jobs(
        db, user.id, pagination.page, pagination.page_size, include_deleted=include_deleted
    )
    return PaginatedResponse(
        items=[JobRead.model_validate(j) for j in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/applicants", response_model=list[JobApplicants])
async def list_my_applicants(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[JobApplicants]:
    return await review_service.list_applicants_grouped(db, user.id)


@router.put("/applicants", response_model=ApplicationRead)
async def review_my_applicant(
    decision: OwnerReviewDecision,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationRead:
    application = await review_service.review(
        db, decision.job_id, decision.applicant_id, user.id, decision.action
    )
    return ApplicationRead.model_validate(application)

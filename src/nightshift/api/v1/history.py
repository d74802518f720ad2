import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.api.deps import get_current_user, get_db
from nightshift.models.user import User
from nightshift.schemas.job import JobSummary
from nightshift.services import job_service

router = APIRouter(prefix="/history", tags=["history"])


@router.get("/posted-jobs", response_model=list[JobSummary])
async def list_posted_job_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[JobSummary]:
    jobs = await job_service.list_job_history(db, user.id)
    return [JobSummary.model_validate(j) for j in jobs]


@router.delete("/posted-jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def purge_posted_job(
    job_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await job_service.purge_job(db, job_id, user.id)

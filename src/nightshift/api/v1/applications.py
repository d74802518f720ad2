import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.api.deps import get_current_user, get_db
from nightshift.models.user import User
from nightshift.schemas.application import (
    ApplicationRead,
    ApplicationStatusUpdate,
    ApplicationWithJob,
)
from nightshift.services import application_service

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("/me", response_model=list[ApplicationWithJob])
async def list_my_applications(
    include_withdrawn: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationWithJob]:
    applications = await application_service.list_for_applicant(
        db, user.id, include_withdrawn=include_withdrawn
    )
    return [ApplicationWithJob.model_validate(a) for a in applications]


@router.get("/history", response_model=list[ApplicationWithJob])
async def list_withdrawn_applications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationWithJob]:
    applications = await application_service.list_withdrawn_for_applicant(db, user.id)
    return [ApplicationWithJob.model_validate(a) for a in applications]


@router.patch("/{application_id}", response_model=ApplicationRead)
async def set_application_status(
    application_id: uuid.UUID,
    data: ApplicationStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationRead:
    application = await application_service.set_status(db, application_id, user.id, data.status)
    return ApplicationRead.model_validate(application)


@router.delete("/{application_id}", response_model=ApplicationRead)
async def withdraw_application(
    application_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationRead:
    application = await application_service.withdraw(db, application_id, user.id)
    return ApplicationRead.model_validate(application)

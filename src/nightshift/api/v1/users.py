from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.api.deps import get_current_user, get_db
from nightshift.models.user import User
from nightshift.schemas.user import ProfileUpdate, UserRead
from nightshift.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def get_me(user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(user)


@router.put("/me", response_model=UserRead)
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserRead:
    updated = await user_service.update_profile(db, user, data)
    return UserRead.model_validate(updated)

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.api.deps import get_current_user, get_db
from nightshift.core.exceptions import ConflictError
from nightshift.schemas.venue import VenueCreate, VenueRead
from nightshift.services import job_service, venue_service

router = APIRouter(tags=["venues"])


@router.get(
    "/venues",
    response_model=list[VenueRead],
    dependencies=[Depends(get_current_user)],
)
async def list_venues(
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[VenueRead]:
    venues = await venue_service.list_venues(db, search)
    return [VenueRead.model_validate(v) for v in venues]


@router.post(
    "/venues",
    response_model=VenueRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
)
async def create_venue(
    data: VenueCreate,
    db: AsyncSession = Depends(get_db),
) -> VenueRead:
    try:
        venue = await venue_service.create_venue(db, data.name)
    except IntegrityError as e:
        raise ConflictError(f"A venue named '{data.name}' already exists") from e
    return VenueRead.model_validate(venue)


@router.get("/roles", response_model=list[str])
async def list_roles(
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[str]:
    return await job_service.search_roles(db, search)

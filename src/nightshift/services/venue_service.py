from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.exceptions import ConflictError
from nightshift.models.venue import Venue


async def get_venue_by_name(db: AsyncSession, name: str) -> Venue | None:
    result = await db.execute(select(Venue).where(func.lower(Venue.name) == name.lower()))
    return result.scalar_one_or_none()


async def create_venue(db: AsyncSession, name: str) -> Venue:
    name = name.strip()
    if await get_venue_by_name(db, name):
        raise ConflictError(f"A venue named '{name}' already exists")

    venue = Venue(name=name)
    db.add(venue)
    await db.flush()
    await db.refresh(venue)
    return venue


async def list_venues(db: AsyncSession, search: str | None = None) -> list[Venue]:
    query = select(Venue).order_by(Venue.name)
    if search:
        query = query.where(Venue.name.ilike(f"%{search}%"))
    results = await db.execute(query)
    return list(results.scalars().all())

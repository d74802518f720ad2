import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nightshift.core.security import Identity
from nightshift.models.user import User
from nightshift.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def sync_identity(db: AsyncSession, identity: Identity) -> User:
    """Mirror the identity provider's claims into the local user row."""
    user = await get_user(db, identity.id)
    if user is None:
        try:
            async with db.begin_nested():
                user = User(
                    id=identity.id,
                    name=identity.name,
                    email=identity.email,
                    avatar_url=identity.avatar_url,
                )
                db.add(user)
        except IntegrityError:
            # A concurrent request registered the same identity first.
            logger.debug("User %s already registered, reloading", identity.id)
            user = await get_user(db, identity.id)
            if user is None:
                raise
        else:
            logger.info("Registered user %s from identity claims", identity.id)
            await db.refresh(user)
            return user

    if (user.name, user.email, user.avatar_url) != (
        identity.name,
        identity.email,
        identity.avatar_url,
    ):
        user.name = identity.name
        user.email = identity.email
        user.avatar_url = identity.avatar_url
        await db.flush()
        await db.refresh(user)
    return user


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(user, field, value)
    await db.flush()
    await db.refresh(user)
    return user

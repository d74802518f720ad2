"""Identity token handling.

Tokens are issued by the external identity provider; this module only
verifies them and turns the claims into an ``Identity``. ``create_access_token``
exists for local development and tests.
"""

import uuid
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ValidationError

from nightshift.core.config import Settings
from nightshift.core.exceptions import UnauthenticatedError


class Identity(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    avatar_url: str | None = None


def create_access_token(
    identity: Identity,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {
        "sub": str(identity.id),
        "name": identity.name,
        "email": identity.email,
        "avatar_url": identity.avatar_url,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Identity:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise UnauthenticatedError("Token has expired. Please log in again.") from e
    except JWTError as e:
        raise UnauthenticatedError("Invalid token") from e

    try:
        return Identity(
            id=payload.get("sub"),
            name=payload.get("name"),
            email=payload.get("email"),
            avatar_url=payload.get("avatar_url"),
        )
    except ValidationError as e:
        raise UnauthenticatedError("Token is missing identity claims") from e

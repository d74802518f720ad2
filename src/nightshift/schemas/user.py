import uuid
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class UserPublic(BaseModel):
    """What other marketplace users may see about a person."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    avatar_url: str | None


class UserRead(UserPublic):
    phone: str | None
    gender: str | None
    date_of_birth: date | None


class ProfileUpdate(BaseModel):
    phone: str | None = Field(None, max_length=50)
    gender: Gender | None = None
    date_of_birth: date | None = None

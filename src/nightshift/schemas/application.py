import uuid
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from nightshift.schemas.job import JobSummary


class ApplicationStatus(StrEnum):
    APPLIED = "applied"
    CONNECTED = "connected"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"


class ReviewAction(StrEnum):
    CONNECT = "connect"
    DECLINE = "decline"


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    job_id: uuid.UUID
    applicant_id: uuid.UUID
    applied_at: datetime
    status: str


class ApplicationWithJob(ApplicationRead):
    job: JobSummary


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ReviewDecision(BaseModel):
    action: ReviewAction


class OwnerReviewDecision(ReviewDecision):
    job_id: uuid.UUID
    applicant_id: uuid.UUID


class ApplicantRead(BaseModel):
    application_id: uuid.UUID
    applicant_id: uuid.UUID
    name: str
    email: str
    avatar_url: str | None
    phone: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None
    age: int | None = None
    status: str
    applied_at: datetime


class JobApplicants(BaseModel):
    job: JobSummary
    applicants: list[ApplicantRead]

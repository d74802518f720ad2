import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nightshift.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from nightshift.models.job import Job
    from nightshift.models.user import User

_OPEN_APPLICATION = text("status <> 'withdrawn'")


class Application(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (
        # At most one non-withdrawn application per (job, applicant).
        Index(
            "uq_applications_open_pair",
            "job_id",
            "applicant_id",
            unique=True,
            postgresql_where=_OPEN_APPLICATION,
            sqlite_where=_OPEN_APPLICATION,
        ),
    )

    job_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    applicant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="applied", server_default="applied", index=True
    )

    job: Mapped["Job"] = relationship(lazy="selectin")
    applicant: Mapped["User"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Application {self.applicant_id} -> {self.job_id} ({self.status})>"

import dataclasses
import datetime as dt
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from nightshift.core.clock import local_now
from nightshift.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from nightshift.models.user import User


@dataclasses.dataclass
class Location:
    city: str
    street: str | None = None
    number: str | None = None


class Job(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "jobs"

    role: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    venue: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    street_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    date: Mapped[dt.date] = mapped_column(nullable=False, index=True)
    start_time: Mapped[dt.time] = mapped_column(nullable=False)
    end_time: Mapped[dt.time] = mapped_column(nullable=False)
    payment_type: Mapped[str] = mapped_column(String(30), nullable=False)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    description: Mapped[str | None] = mapped_column(nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    deleted_at: Mapped[dt.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    location: Mapped[Location] = composite("city", "street", "street_number")

    owner: Mapped["User"] = relationship(lazy="selectin")

    @property
    def ends_at(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.end_time)

    def is_active_at(self, now: dt.datetime) -> bool:
        return self.deleted_at is None and self.ends_at > now

    @property
    def is_active(self) -> bool:
        return self.is_active_at(local_now())

    def __repr__(self) -> str:
        return f"<Job {self.role} @ {self.venue} ({self.date})>"

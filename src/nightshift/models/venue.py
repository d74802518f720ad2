from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from nightshift.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Venue(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "venues"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)

    def __repr__(self) -> str:
        return f"<Venue {self.name}>"

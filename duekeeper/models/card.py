import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from duekeeper.config import settings
from duekeeper.database import Base

LAST_DAY_OF_MONTH = 0


def new_id() -> str:
    return str(uuid.uuid4())


class Card(Base):
    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200))
    last_four_digits: Mapped[str] = mapped_column(String(4), default="")
    due_day: Mapped[int] = mapped_column(Integer)  # 1-31, or 0 for the last day of the month
    reminder_lead_days: Mapped[int] = mapped_column(Integer, default=5)
    predefined_card_id: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    catalog_version: Mapped[str | None] = mapped_column(String(100), nullable=True)
    anniversary_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_paid_through: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    benefits: Mapped[list["CardBenefit"]] = relationship(back_populates="card", cascade="all, delete-orphan")  # noqa: F821

    def __init__(self, **kwargs):
        # Column defaults only fire on flush.
        kwargs.setdefault("id", new_id())
        kwargs.setdefault("last_four_digits", "")
        kwargs.setdefault("reminder_lead_days", settings.default_reminder_lead_days)
        kwargs.setdefault("created_at", datetime.now(timezone.utc))
        super().__init__(**kwargs)

    @property
    def is_last_day_of_month(self) -> bool:
        return self.due_day == LAST_DAY_OF_MONTH

    @property
    def is_predefined(self) -> bool:
        return self.predefined_card_id is not None

    @property
    def due_day_label(self) -> str:
        if self.is_last_day_of_month:
            return "last day"
        day = self.due_day
        if day in (1, 21, 31):
            suffix = "st"
        elif day in (2, 22):
            suffix = "nd"
        elif day in (3, 23):
            suffix = "rd"
        else:
            suffix = "th"
        return f"{day}{suffix}"

    @property
    def active_benefits(self) -> list["CardBenefit"]:  # noqa: F821
        return [b for b in self.benefits if b.is_active]

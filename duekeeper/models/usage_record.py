from datetime import date, datetime, timezone

from sqlalchemy import String, Float, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from duekeeper.database import Base
from duekeeper.models.card import new_id


class UsageRecord(Base):
    """Append-only ledger row written each time a benefit is marked used.

    No foreign keys: records outlive the benefit and card they describe.
    """

    __tablename__ = "usage_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    benefit_id: Mapped[str] = mapped_column(String(36), index=True)
    card_id: Mapped[str] = mapped_column(String(36), index=True)
    used_date: Mapped[date] = mapped_column(Date)
    amount_at_use: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency_at_use: Mapped[str] = mapped_column(String(3), default="USD")
    benefit_name_at_use: Mapped[str] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("id", new_id())
        kwargs.setdefault("currency_at_use", "USD")
        kwargs.setdefault("created_at", datetime.now(timezone.utc))
        super().__init__(**kwargs)

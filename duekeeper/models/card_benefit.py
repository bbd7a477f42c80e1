from datetime import date, datetime, timezone

from sqlalchemy import String, Text, Integer, Float, Date, DateTime, ForeignKey, Boolean, JSON, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from duekeeper.database import Base
from duekeeper.models.card import new_id
from duekeeper.utils.recurrence import RecurrenceType

_recurrence_column = Enum(
    RecurrenceType,
    native_enum=False,
    length=20,
    values_callable=lambda members: [m.value for m in members],
)


class CardBenefit(Base):
    __tablename__ = "card_benefits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    card_id: Mapped[str] = mapped_column(ForeignKey("cards.id"), index=True)
    predefined_benefit_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(100), default="Other")
    benefit_type: Mapped[str] = mapped_column(String(50), default="other")  # credit | membership | bonus | ...
    amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency_code: Mapped[str] = mapped_column(String(3), default="USD")
    max_spend: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_reward: Mapped[float | None] = mapped_column(Float, nullable=True)
    special_month_amounts: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # {"12": 35.0}

    recurrence_type: Mapped[RecurrenceType] = mapped_column(_recurrence_column)
    monthly_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    one_time_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reminder_days_before: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reminder_message: Mapped[str] = mapped_column(Text, default="")
    anniversary_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_from_catalog: Mapped[bool] = mapped_column(Boolean, default=False)
    is_user_custom: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_retired: Mapped[bool] = mapped_column(Boolean, default=False)
    last_used_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reset_period: Mapped[RecurrenceType | None] = mapped_column(_recurrence_column, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    card: Mapped["Card"] = relationship(back_populates="benefits")  # noqa: F821

    def __init__(self, **kwargs):
        kwargs.setdefault("id", new_id())
        kwargs.setdefault("description", "")
        kwargs.setdefault("category", "Other")
        kwargs.setdefault("benefit_type", "other")
        kwargs.setdefault("currency_code", "USD")
        kwargs.setdefault("reminder_message", "")
        kwargs.setdefault("is_from_catalog", False)
        kwargs.setdefault("is_user_custom", False)
        kwargs.setdefault("is_active", True)
        kwargs.setdefault("is_retired", False)
        kwargs.setdefault("created_at", datetime.now(timezone.utc))
        super().__init__(**kwargs)

    @property
    def is_used(self) -> bool:
        return self.last_used_date is not None

    @property
    def is_catalog_managed(self) -> bool:
        """Catalog-derived and not locked by a user edit; reconciliation may overwrite it."""
        return self.is_from_catalog and not self.is_user_custom and self.predefined_benefit_id is not None

    def amount_for_month(self, month: int) -> float | None:
        """Benefit value for a calendar month, honoring special-month overrides."""
        if self.special_month_amounts:
            override = self.special_month_amounts.get(str(month))
            if override is not None:
                return override
        return self.amount

from datetime import date

from pydantic import BaseModel, Field

from duekeeper.config import settings


class CardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    last_four_digits: str = Field(default="", max_length=4)
    due_day: int = Field(ge=0, le=31)  # 0 = last day of the month
    reminder_lead_days: int = Field(default_factory=lambda: settings.default_reminder_lead_days, ge=0)
    predefined_card_id: str | None = None
    anniversary_date: date | None = None
    last_paid_through: date | None = None


class CardUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    last_four_digits: str | None = Field(default=None, max_length=4)
    due_day: int | None = Field(default=None, ge=0, le=31)
    reminder_lead_days: int | None = Field(default=None, ge=0)
    predefined_card_id: str | None = None
    anniversary_date: date | None = None

from datetime import date

from pydantic import BaseModel, Field, model_validator

from duekeeper.utils.recurrence import RecurrenceType


class BenefitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    category: str = Field(default="Other", max_length=100)
    benefit_type: str = Field(default="other", max_length=50)
    amount: float | None = Field(default=None, ge=0)
    currency_code: str = Field(default="USD", min_length=3, max_length=3)
    recurrence_type: RecurrenceType
    monthly_day: int | None = Field(default=None, ge=1, le=31)
    one_time_date: date | None = None
    reminder_days_before: int | None = Field(default=None, ge=0)
    reminder_message: str = Field(default="", max_length=1000)
    reset_period: RecurrenceType | None = None

    @model_validator(mode="after")
    def validate_schedule(self) -> "BenefitCreate":
        if self.recurrence_type == RecurrenceType.MONTHLY and self.monthly_day is None:
            raise ValueError("monthly benefits require monthly_day")
        if self.recurrence_type == RecurrenceType.ONE_TIME and self.one_time_date is None:
            raise ValueError("one_time benefits require one_time_date")
        return self


class BenefitUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=100)
    benefit_type: str | None = Field(default=None, max_length=50)
    amount: float | None = Field(default=None, ge=0)
    currency_code: str | None = Field(default=None, min_length=3, max_length=3)
    recurrence_type: RecurrenceType | None = None
    monthly_day: int | None = Field(default=None, ge=1, le=31)
    one_time_date: date | None = None
    reminder_days_before: int | None = Field(default=None, ge=0)
    reminder_message: str | None = Field(default=None, max_length=1000)
    reset_period: RecurrenceType | None = None

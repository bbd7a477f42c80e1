"""Shapes of the remote predefined-card catalog (card-benefits.json)."""
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from duekeeper.utils.recurrence import RecurrenceType

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class BenefitValue(BaseModel):
    amount: float | None = None
    currency: str | None = None
    type: str | None = None  # credit | membership | bonus | ...
    frequency: str | None = None
    validity_period: str | None = None  # e.g. "4_years"
    max_spend: float | None = None
    max_reward: float | None = None
    special_months: dict[str, float] | None = None  # {"12": 35} for December

    model_config = _CAMEL


class HalfYearPeriod(BaseModel):
    start_month: int = Field(ge=1, le=12)
    end_month: int = Field(ge=1, le=12)

    model_config = _CAMEL


class BenefitReminder(BaseModel):
    type: RecurrenceType
    start_date: str | None = None  # "card_anniversary" or an ISO date
    days_before: int | None = None
    day_of_month: int | None = None
    date: str | None = None  # ISO 8601, one_time only
    message: str | None = None
    periods: list[HalfYearPeriod] | None = None
    condition: str | None = None

    model_config = _CAMEL


class UsageTracking(BaseModel):
    enabled: bool = True
    reset_period: RecurrenceType | None = None

    model_config = _CAMEL

    @field_validator("reset_period", mode="before")
    @classmethod
    def unknown_reset_period_never_resets(cls, v):
        if v is None:
            return None
        try:
            return RecurrenceType(v)
        except ValueError:
            return None


class PredefinedBenefit(BaseModel):
    id: str
    name: str | None = None
    description: str | None = None
    category: str | None = None
    value: BenefitValue | None = None
    reminder: BenefitReminder | None = None
    usage_tracking: UsageTracking | None = None

    model_config = _CAMEL


class PredefinedCard(BaseModel):
    id: str
    name: str = ""
    issuer: str = ""
    card_network: str | None = None
    category: str | None = None
    default_benefits: list[PredefinedBenefit] = []

    model_config = _CAMEL


class CatalogResponse(BaseModel):
    schema_version: str
    last_updated: str | None = None
    predefined_cards: list[PredefinedCard] = []

    model_config = _CAMEL

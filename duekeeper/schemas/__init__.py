from duekeeper.schemas.card import CardCreate, CardUpdate
from duekeeper.schemas.card_benefit import BenefitCreate, BenefitUpdate
from duekeeper.schemas.catalog import (
    BenefitReminder,
    BenefitValue,
    CatalogResponse,
    HalfYearPeriod,
    PredefinedBenefit,
    PredefinedCard,
    UsageTracking,
)

__all__ = [
    "CardCreate", "CardUpdate",
    "BenefitCreate", "BenefitUpdate",
    "BenefitReminder", "BenefitValue", "CatalogResponse", "HalfYearPeriod",
    "PredefinedBenefit", "PredefinedCard", "UsageTracking",
]

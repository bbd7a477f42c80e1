from duekeeper.models.card import Card
from duekeeper.models.card_benefit import CardBenefit
from duekeeper.models.usage_record import UsageRecord

__all__ = ["Card", "CardBenefit", "UsageRecord"]

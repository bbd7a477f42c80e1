import logging
from datetime import date

from duekeeper.models.card_benefit import CardBenefit
from duekeeper.utils.recurrence import usage_period_elapsed

logger = logging.getLogger(__name__)


def resolve_lapsed_benefits(cards, today: date) -> list[CardBenefit]:
    """Used benefits whose reset period has rolled over as of today."""
    return [
        benefit
        for card in cards
        for benefit in card.benefits
        if usage_period_elapsed(benefit.reset_period, benefit.last_used_date, today)
    ]


def reset_lapsed_usage(cards, today: date) -> list[CardBenefit]:
    """Clear ``last_used_date`` on every benefit whose usage period has lapsed.

    Only the usage marker changes: active flags and the usage ledger are left alone.
    Returns the benefits that were reset.
    """
    lapsed = resolve_lapsed_benefits(cards, today)
    for benefit in lapsed:
        benefit.last_used_date = None
    if lapsed:
        logger.info("Reset usage on %d lapsed benefits", len(lapsed))
    return lapsed

"""Merge the predefined-card catalog into cards' local benefit lists.

Catalog-managed benefits (from the catalog, not locked by a user edit) are
added, refreshed or retired to match the catalog. Custom and locked benefits
are never touched, and a benefit that is currently used is frozen until the
reset engine clears its usage.
"""
import logging
from contextlib import nullcontext
from datetime import date

from dateutil.parser import isoparse
from sqlalchemy.orm import Session

from duekeeper.config import settings
from duekeeper.models.card import Card
from duekeeper.models.card_benefit import CardBenefit
from duekeeper.schemas.catalog import PredefinedBenefit, PredefinedCard
from duekeeper.services.catalog_loader import (
    CatalogSnapshot,
    catalog_changed,
    load_cached_catalog,
    parse_catalog,
    save_catalog_cache,
)
from duekeeper.utils.recurrence import RecurrenceType, resolve_anniversary

logger = logging.getLogger(__name__)


def _parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return isoparse(value).date()
    except (ValueError, OverflowError):
        return None


def _catalog_fields(predefined: PredefinedBenefit) -> dict:
    """CardBenefit attributes carried by a catalog entry; absent fields are left out."""
    fields = {}
    if predefined.name is not None:
        fields["name"] = predefined.name
    if predefined.description is not None:
        fields["description"] = predefined.description
    if predefined.category is not None:
        fields["category"] = predefined.category

    value = predefined.value
    if value is not None:
        if value.amount is not None:
            fields["amount"] = value.amount
        if value.currency is not None:
            fields["currency_code"] = value.currency
        if value.type is not None:
            fields["benefit_type"] = value.type
        if value.max_spend is not None:
            fields["max_spend"] = value.max_spend
        if value.max_reward is not None:
            fields["max_reward"] = value.max_reward
        if value.special_months is not None:
            fields["special_month_amounts"] = dict(value.special_months)

    reminder = predefined.reminder
    if reminder is not None:
        kind = reminder.type
        fields["recurrence_type"] = kind
        if reminder.message is not None:
            fields["reminder_message"] = reminder.message
        fields["monthly_day"] = (reminder.day_of_month or 1) if kind == RecurrenceType.MONTHLY else None
        if kind == RecurrenceType.ONE_TIME:
            one_time = _parse_iso_date(reminder.date)
            if one_time is not None:
                fields["one_time_date"] = one_time
        else:
            fields["one_time_date"] = None
        if kind == RecurrenceType.ANNUAL and reminder.days_before is not None:
            fields["reminder_days_before"] = reminder.days_before

    tracking = predefined.usage_tracking
    if tracking is not None and tracking.reset_period is not None:
        fields["reset_period"] = tracking.reset_period
    return fields


def benefit_from_catalog(predefined: PredefinedBenefit, card: Card) -> CardBenefit | None:
    """Instantiate a catalog-managed benefit for a card, or None if the entry has no schedule."""
    if predefined.reminder is None:
        logger.warning("Catalog benefit %s has no reminder; not adding it to card %s", predefined.id, card.id)
        return None
    fields = _catalog_fields(predefined)
    fields.setdefault("name", predefined.id)
    return CardBenefit(
        card_id=card.id,
        predefined_benefit_id=predefined.id,
        is_from_catalog=True,
        is_user_custom=False,
        is_active=True,
        anniversary_date=resolve_anniversary(card),
        **fields,
    )


def _empty_summary() -> dict:
    return {
        "benefits_added": 0,
        "benefits_updated": 0,
        "benefits_retired": 0,
        "benefits_skipped_used": 0,
        "benefits_skipped_invalid": 0,
    }


def reconcile_card(card: Card, catalog_card: PredefinedCard) -> dict:
    """Bring one card's catalog-managed benefits in line with its catalog entry.

    Plans every change against a snapshot of the card's benefits, then applies
    them. Safe to repeat: a second call with the same catalog changes nothing.
    """
    summary = _empty_summary()
    existing = list(card.benefits)

    local_catalog_ids = {b.predefined_benefit_id for b in existing if b.predefined_benefit_id is not None}
    managed = {b.predefined_benefit_id: b for b in existing if b.is_catalog_managed}
    remote = {pb.id: pb for pb in catalog_card.default_benefits}

    additions: list[CardBenefit] = []
    for benefit_id, predefined in remote.items():
        if benefit_id in local_catalog_ids:
            continue
        benefit = benefit_from_catalog(predefined, card)
        if benefit is None:
            summary["benefits_skipped_invalid"] += 1
            continue
        additions.append(benefit)

    updates: list[tuple[CardBenefit, dict]] = []
    for benefit_id, benefit in managed.items():
        predefined = remote.get(benefit_id)
        if predefined is None:
            continue
        if benefit.is_used:
            summary["benefits_skipped_used"] += 1
            continue
        changes = _catalog_fields(predefined)
        if benefit.is_retired:
            changes.update(is_active=True, is_retired=False)
        changes = {k: v for k, v in changes.items() if getattr(benefit, k) != v}
        if changes:
            updates.append((benefit, changes))

    retirements: list[CardBenefit] = []
    for benefit_id, benefit in managed.items():
        if benefit_id in remote:
            continue
        if benefit.is_used:
            summary["benefits_skipped_used"] += 1
            continue
        # Already inactive: either retired earlier or switched off by the user.
        if benefit.is_active:
            retirements.append(benefit)

    for benefit in additions:
        card.benefits.append(benefit)
        summary["benefits_added"] += 1
    for benefit, changes in updates:
        for field, value in changes.items():
            setattr(benefit, field, value)
        summary["benefits_updated"] += 1
    for benefit in retirements:
        benefit.is_active = False
        benefit.is_retired = True
        summary["benefits_retired"] += 1

    return summary


def sync_cards_to_catalog(cards, snapshot: CatalogSnapshot, force: bool = False, savepoint=None) -> dict:
    """Reconcile every card that references the catalog.

    Cards already reconciled against ``snapshot.schema_version`` are skipped
    unless ``force``. A failure on one card is logged and counted; the
    remaining cards are still processed. ``savepoint`` is an optional
    context-manager factory (e.g. ``Session.begin_nested``) wrapped around
    each card.
    """
    summary = {"cards_synced": 0, "cards_skipped": 0, "cards_failed": 0, **_empty_summary()}

    for card in cards:
        if card.predefined_card_id is None:
            continue
        catalog_card = snapshot.get_card(card.predefined_card_id)
        if catalog_card is None:
            summary["cards_skipped"] += 1
            continue
        if card.catalog_version == snapshot.schema_version and not force:
            summary["cards_skipped"] += 1
            continue

        try:
            with (savepoint() if savepoint else nullcontext()):
                result = reconcile_card(card, catalog_card)
                card.catalog_version = snapshot.schema_version
        except Exception:
            logger.exception("Catalog reconciliation failed for card %s", card.id)
            summary["cards_failed"] += 1
            continue

        for key, count in result.items():
            summary[key] += count
        summary["cards_synced"] += 1

    return summary


def sync_catalog(db: Session, snapshot: CatalogSnapshot, force: bool = False) -> dict:
    """Persisted variant: reconcile all stored cards, one SAVEPOINT per card."""
    cards = db.query(Card).filter(Card.predefined_card_id.isnot(None)).all()
    summary = sync_cards_to_catalog(cards, snapshot, force=force, savepoint=db.begin_nested)
    db.commit()
    logger.info("Catalog sync to version %s: %s", snapshot.schema_version, summary)
    return summary


def retire_catalog_benefits(card: Card) -> dict:
    """Retire every catalog-managed benefit on a card that no longer references the catalog.

    Same rules as a catalog that dropped all of the card's benefits: used
    benefits stay as they are, inactive ones are left alone.
    """
    return reconcile_card(card, PredefinedCard(id=card.predefined_card_id or "", default_benefits=[]))


def handle_catalog_fetched(db: Session, payload: dict, cache_path: str | None = None) -> tuple[CatalogSnapshot, dict]:
    """Entry point for a successful catalog fetch.

    Parses the payload, reconciles all stored cards (cards already on this
    schema version are skipped per card) and then refreshes the cache.
    Returns the new snapshot and the sync summary.
    """
    cache_path = cache_path or settings.catalog_cache_path
    previous = load_cached_catalog(cache_path)
    snapshot = parse_catalog(payload)

    previous_version = previous.schema_version if previous else None
    if catalog_changed(previous_version, snapshot):
        logger.info("Card catalog updated from %s to %s", previous_version, snapshot.schema_version)
    summary = sync_catalog(db, snapshot)
    save_catalog_cache(snapshot, cache_path)
    return snapshot, summary

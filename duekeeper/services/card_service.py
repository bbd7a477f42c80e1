import logging
from datetime import date

from sqlalchemy.orm import Session, selectinload

from duekeeper.models.card import Card
from duekeeper.schemas.card import CardCreate, CardUpdate
from duekeeper.services.catalog_loader import CatalogSnapshot
from duekeeper.services.catalog_sync import reconcile_card, retire_catalog_benefits
from duekeeper.utils.clock import get_today

logger = logging.getLogger(__name__)


def _populate_from_catalog(card: Card, catalog: CatalogSnapshot | None) -> None:
    if catalog is None or not card.is_predefined:
        return
    catalog_card = catalog.get_card(card.predefined_card_id)
    if catalog_card is None:
        logger.warning("Card %s references unknown catalog card %s", card.id, card.predefined_card_id)
        return
    reconcile_card(card, catalog_card)
    card.catalog_version = catalog.schema_version


def list_cards(db: Session) -> list[Card]:
    """Snapshot of all cards with their benefits loaded, for one aggregation pass."""
    return db.query(Card).options(selectinload(Card.benefits)).order_by(Card.created_at).all()


def create_card(db: Session, data: CardCreate, catalog: CatalogSnapshot | None = None) -> Card:
    card = Card(
        name=data.name,
        last_four_digits=data.last_four_digits,
        due_day=data.due_day,
        reminder_lead_days=data.reminder_lead_days,
        predefined_card_id=data.predefined_card_id,
        anniversary_date=data.anniversary_date or get_today(),
        last_paid_through=data.last_paid_through,
    )
    db.add(card)
    _populate_from_catalog(card, catalog)
    db.commit()
    db.refresh(card)
    return card


# Columns that cannot be cleared by an explicit None in a partial update.
_REQUIRED_FIELDS = {"name", "last_four_digits", "due_day", "reminder_lead_days"}


def update_card(db: Session, card: Card, data: CardUpdate, catalog: CatalogSnapshot | None = None) -> Card:
    """Partial update. Switching the catalog card reconciles against the new one;
    dropping it retires the card's catalog-managed benefits.
    """
    update_data = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k not in _REQUIRED_FIELDS
    }
    previous_catalog_id = card.predefined_card_id
    for field, value in update_data.items():
        setattr(card, field, value)

    if "predefined_card_id" in update_data and card.predefined_card_id != previous_catalog_id:
        card.catalog_version = None
        if card.is_predefined:
            _populate_from_catalog(card, catalog)
        else:
            retire_catalog_benefits(card)

    db.commit()
    db.refresh(card)
    return card


def delete_card(db: Session, card: Card) -> None:
    """Delete a card and its benefits. Usage records are kept."""
    db.delete(card)
    db.commit()


def mark_paid(db: Session, card: Card, through: date) -> Card:
    """Record a payment covering every due date on or before ``through``.

    The watermark only moves forward.
    """
    if card.last_paid_through is None or through > card.last_paid_through:
        card.last_paid_through = through
        db.commit()
        db.refresh(card)
    return card

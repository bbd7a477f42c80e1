from datetime import date

from sqlalchemy.orm import Session

from duekeeper.models.card import Card
from duekeeper.models.card_benefit import CardBenefit
from duekeeper.models.usage_record import UsageRecord
from duekeeper.schemas.card_benefit import BenefitCreate, BenefitUpdate
from duekeeper.utils.recurrence import RecurrenceType, resolve_anniversary


def create_custom_benefit(db: Session, card: Card, data: BenefitCreate) -> CardBenefit:
    benefit = CardBenefit(
        card_id=card.id,
        name=data.name,
        description=data.description,
        category=data.category,
        benefit_type=data.benefit_type,
        amount=data.amount,
        currency_code=data.currency_code,
        recurrence_type=data.recurrence_type,
        monthly_day=data.monthly_day,
        one_time_date=data.one_time_date,
        reminder_days_before=data.reminder_days_before,
        reminder_message=data.reminder_message,
        reset_period=data.reset_period,
        anniversary_date=resolve_anniversary(card),
        is_from_catalog=False,
        is_user_custom=True,
    )
    card.benefits.append(benefit)
    db.commit()
    db.refresh(benefit)
    return benefit


# Columns that cannot be cleared by an explicit None in a partial update.
_REQUIRED_FIELDS = {
    "name", "description", "category", "benefit_type",
    "currency_code", "recurrence_type", "reminder_message",
}


def update_benefit(db: Session, benefit: CardBenefit, data: BenefitUpdate) -> CardBenefit:
    """Apply a user edit. Edited catalog benefits are locked against catalog overwrites."""
    update_data = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k not in _REQUIRED_FIELDS
    }
    kind = update_data.get("recurrence_type", benefit.recurrence_type)
    if kind == RecurrenceType.MONTHLY and update_data.get("monthly_day", benefit.monthly_day) is None:
        raise ValueError("monthly benefits require monthly_day")
    if kind == RecurrenceType.ONE_TIME and update_data.get("one_time_date", benefit.one_time_date) is None:
        raise ValueError("one_time benefits require one_time_date")

    for field, value in update_data.items():
        setattr(benefit, field, value)
    if update_data and benefit.is_from_catalog:
        benefit.is_user_custom = True

    db.commit()
    db.refresh(benefit)
    return benefit


def toggle_benefit_active(db: Session, benefit: CardBenefit) -> CardBenefit:
    benefit.is_active = not benefit.is_active
    db.commit()
    db.refresh(benefit)
    return benefit


def delete_benefit(db: Session, benefit: CardBenefit) -> None:
    db.delete(benefit)
    db.commit()


def record_usage(benefit: CardBenefit, used_on: date) -> UsageRecord:
    """Mark a benefit used for its current period and build the ledger entry."""
    benefit.last_used_date = used_on
    return UsageRecord(
        benefit_id=benefit.id,
        card_id=benefit.card_id,
        used_date=used_on,
        amount_at_use=benefit.amount_for_month(used_on.month),
        currency_at_use=benefit.currency_code,
        benefit_name_at_use=benefit.name,
    )


def mark_benefit_used(db: Session, benefit: CardBenefit, used_on: date) -> UsageRecord:
    record = record_usage(benefit, used_on)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def list_usage_records(db: Session, card_id: str | None = None) -> list[UsageRecord]:
    query = db.query(UsageRecord)
    if card_id is not None:
        query = query.filter(UsageRecord.card_id == card_id)
    return query.order_by(UsageRecord.used_date.desc()).all()


def total_value_earned(records, currency: str | None = None) -> float:
    """Sum of recorded benefit values; no currency conversion is attempted."""
    return sum(
        r.amount_at_use
        for r in records
        if r.amount_at_use is not None and (currency is None or r.currency_at_use == currency)
    )

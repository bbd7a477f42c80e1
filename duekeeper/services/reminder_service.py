"""Upcoming dues, upcoming benefits, reminder counts and notification dates.

All derivations take ``today`` explicitly and share the same date helpers
(``card_next_due`` and ``benefit_expiration``), so list and count views
always agree on which date applies.
"""
from datetime import date, timedelta
from typing import NamedTuple

from duekeeper.config import settings
from duekeeper.models.card import Card
from duekeeper.models.card_benefit import CardBenefit
from duekeeper.services.reset_service import reset_lapsed_usage
from duekeeper.utils.month_math import clamped_date, days_until, last_day_of_month, shift_month
from duekeeper.utils.recurrence import (
    RecurrenceType,
    anniversary_month_end,
    monthly_due_date,
    next_due_date,
    next_expiration,
    next_monthly_occurrence,
    resolve_benefit_anniversary,
)


class DueReminder(NamedTuple):
    card: Card
    due_date: date
    days_until_due: int


class BenefitExpiration(NamedTuple):
    benefit: CardBenefit
    card: Card
    expiration_date: date
    days_until_expiration: int


def card_next_due(card: Card, today: date) -> date | None:
    return next_due_date(card.due_day, today, card.last_paid_through)


def benefit_expiration(benefit: CardBenefit, today: date) -> date | None:
    return next_expiration(benefit.recurrence_type, today, benefit.one_time_date)


def upcoming_dues(cards, today: date) -> list[DueReminder]:
    """One row per card with its next unpaid due date, soonest first.

    Overdue cards (unpaid due date already passed) sort first with a negative
    ``days_until_due``.
    """
    rows = []
    for card in cards:
        due = card_next_due(card, today)
        if due is None:
            continue
        rows.append(DueReminder(card, due, days_until(due, today)))
    return sorted(rows, key=lambda r: r.days_until_due)


def _open_benefits(cards, today: date) -> list[BenefitExpiration]:
    rows = []
    for card in cards:
        for benefit in card.benefits:
            if not benefit.is_active or benefit.last_used_date is not None:
                continue
            expires = benefit_expiration(benefit, today)
            if expires is None:
                continue
            remaining = days_until(expires, today)
            if remaining < 0:
                continue
            rows.append(BenefitExpiration(benefit, card, expires, remaining))
    return rows


def upcoming_benefits(cards, today: date) -> list[BenefitExpiration]:
    """Active, unused benefits with a current expiration, soonest first.

    Lapsed usage is reset first so benefits from a new period show up at once.
    """
    reset_lapsed_usage(cards, today)
    return sorted(_open_benefits(cards, today), key=lambda r: r.days_until_expiration)


def overdue_count(cards, today: date) -> int:
    """Cards whose nearest unpaid due date is inside its reminder lead window (or past)."""
    count = 0
    for row in upcoming_dues(cards, today):
        reminder_on = row.due_date - timedelta(days=row.card.reminder_lead_days or 0)
        if reminder_on <= today:
            count += 1
    return count


def near_expiry_count(cards, today: date, window_days: int | None = None) -> int:
    """Active, unused benefits expiring within [today, today + window_days]."""
    if window_days is None:
        window_days = settings.near_expiry_window_days
    reset_lapsed_usage(cards, today)
    return sum(1 for row in _open_benefits(cards, today) if row.days_until_expiration <= window_days)


def reminder_summary(cards, today: date, window_days: int | None = None) -> dict:
    overdue = overdue_count(cards, today)
    near_expiry = near_expiry_count(cards, today, window_days)
    return {
        "overdue_count": overdue,
        "near_expiry_count": near_expiry,
        "badge_count": overdue + near_expiry,
    }


# --- Dates for the external notification scheduler ---

def due_reminder_dates(card: Card, today: date, months: int | None = None) -> list[date]:
    """Reminder dates (due date minus lead days) for the coming months.

    Skips reminders already in the past and due dates covered by the payment watermark.
    """
    if months is None:
        months = settings.reminder_horizon_months
    lead = timedelta(days=card.reminder_lead_days or 0)
    dates = []
    for offset in range(months):
        year, month = shift_month(today.year, today.month, offset)
        due = monthly_due_date(card.due_day, year, month)
        if due is None:
            return []
        if card.last_paid_through is not None and due <= card.last_paid_through:
            continue
        reminder_on = due - lead
        if reminder_on < today:
            continue
        dates.append(reminder_on)
    return dates


def _period_starts(today: date, step_months: int, count: int) -> list[date]:
    period_month = ((today.month - 1) // step_months) * step_months + 1
    starts = []
    offset = 0
    while len(starts) < count:
        year, month = shift_month(today.year, period_month, offset)
        start = date(year, month, 1)
        if start >= today:
            starts.append(start)
        offset += step_months
    return starts


def benefit_reminder_dates(benefit: CardBenefit, card: Card, today: date) -> list[date]:
    """Upcoming reminder dates for a benefit; empty for inactive benefits."""
    if not benefit.is_active:
        return []
    try:
        kind = RecurrenceType(benefit.recurrence_type)
    except ValueError:
        return []

    if kind is RecurrenceType.MONTHLY:
        first = next_monthly_occurrence(benefit.monthly_day, today)
        if first is None:
            return []
        dates = [first]
        for offset in range(1, settings.reminder_horizon_months):
            year, month = shift_month(first.year, first.month, offset)
            dates.append(clamped_date(year, month, benefit.monthly_day))
        return dates

    if kind is RecurrenceType.ANNUAL:
        anniversary = resolve_benefit_anniversary(benefit, card)
        anchor = anniversary_month_end(anniversary, today)
        days_before = benefit.reminder_days_before
        if days_before is None:
            days_before = settings.annual_reminder_days_before
        dates = []
        for year_offset in range(3):
            reminder_on = last_day_of_month(anchor.year + year_offset, anniversary.month) - timedelta(days=days_before)
            if reminder_on >= today:
                dates.append(reminder_on)
        return dates

    if kind is RecurrenceType.QUARTERLY:
        return _period_starts(today, 3, 4)

    if kind is RecurrenceType.SEMI_ANNUAL:
        return _period_starts(today, 6, 2)

    if benefit.one_time_date is not None and benefit.one_time_date >= today:
        return [benefit.one_time_date]
    return []

"""Recurrence calculator for card due dates and benefit schedules.

Every function here is pure: "today" is always an argument. Invalid
parameters produce ``None`` (no occurrence) instead of raising, so callers
can drop the item from lists and counts.

Two "monthly" rules exist and are kept apart:

* ``next_monthly_occurrence`` - the next calendar date carrying a given day
  of month. Used for due-style reminders (benefit reminder days).
* ``monthly_expiration`` - the end of the current month. Used for "use it by
  the end of the month" benefit expiration.

Likewise for annual: ``annual_expiration`` is calendar-year based (Dec 31),
``anniversary_month_end`` is the due-style annual reminder anchored on the
card anniversary.
"""
from datetime import date
from enum import Enum

from dateutil.relativedelta import relativedelta

from duekeeper.utils.month_math import clamped_date, last_day_of_month, shift_month


class RecurrenceType(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ONE_TIME = "one_time"


# --- Card due dates ---

def monthly_due_date(due_day: int, year: int, month: int) -> date | None:
    """Due date inside (year, month). ``due_day == 0`` means the last day of the month."""
    if due_day == 0:
        return last_day_of_month(year, month)
    if not 1 <= due_day <= 31:
        return None
    return clamped_date(year, month, due_day)


def next_due_date(due_day: int, today: date, last_paid_through: date | None = None) -> date | None:
    """Next unpaid due date for a card.

    Without a payment watermark this is the first due date on or after today.
    With a watermark, the current month's due date stays returned after it
    passes until a payment covers it; only a recorded payment moves past it.

    Note the asymmetry: a card that has never been marked paid
    (``last_paid_through is None``) has no record of what is unpaid, so a
    passed due date drops out the next day and the following month's date is
    returned. Callers that need overdue rows must record payments.
    """
    current = monthly_due_date(due_day, today.year, today.month)
    if current is None:
        return None
    if last_paid_through is not None and last_paid_through < current < today:
        return current

    offset = 0
    while True:
        year, month = shift_month(today.year, today.month, offset)
        due = monthly_due_date(due_day, year, month)
        if due >= today and (last_paid_through is None or due > last_paid_through):
            return due
        offset += 1


# --- Benefit expiration (end-of-period semantics) ---

def monthly_expiration(today: date) -> date:
    end = last_day_of_month(today.year, today.month)
    if end >= today:
        return end
    year, month = shift_month(today.year, today.month, 1)
    return last_day_of_month(year, month)


def quarterly_expiration(today: date) -> date:
    quarter_end_month = ((today.month - 1) // 3) * 3 + 3
    end = last_day_of_month(today.year, quarter_end_month)
    if end >= today:
        return end
    year, month = shift_month(today.year, quarter_end_month, 3)
    return last_day_of_month(year, month)


def semi_annual_expiration(today: date) -> date:
    first_half_end = last_day_of_month(today.year, 6)
    if today <= first_half_end:
        return first_half_end
    second_half_end = last_day_of_month(today.year, 12)
    if today <= second_half_end:
        return second_half_end
    return last_day_of_month(today.year + 1, 6)


def annual_expiration(today: date) -> date:
    end = last_day_of_month(today.year, 12)
    if end >= today:
        return end
    return last_day_of_month(today.year + 1, 12)


def one_time_expiration(one_time_date: date | None, today: date) -> date | None:
    if one_time_date is None or one_time_date < today:
        return None
    return one_time_date


def next_expiration(
    recurrence_type: RecurrenceType | str,
    today: date,
    one_time_date: date | None = None,
) -> date | None:
    """Expiration date of the current period for a benefit, or None."""
    try:
        kind = RecurrenceType(recurrence_type)
    except ValueError:
        return None
    if kind is RecurrenceType.MONTHLY:
        return monthly_expiration(today)
    if kind is RecurrenceType.QUARTERLY:
        return quarterly_expiration(today)
    if kind is RecurrenceType.SEMI_ANNUAL:
        return semi_annual_expiration(today)
    if kind is RecurrenceType.ANNUAL:
        return annual_expiration(today)
    return one_time_expiration(one_time_date, today)


# --- Occurrence semantics (reminders) ---

def next_monthly_occurrence(monthly_day: int | None, today: date) -> date | None:
    """Next date on or after today falling on ``monthly_day`` (clamped to month end)."""
    if monthly_day is None or not 1 <= monthly_day <= 31:
        return None
    candidate = clamped_date(today.year, today.month, monthly_day)
    if candidate >= today:
        return candidate
    year, month = shift_month(today.year, today.month, 1)
    return clamped_date(year, month, monthly_day)


def anniversary_month_end(anniversary: date | None, today: date) -> date | None:
    """Last day of the anniversary's month this year, or next year once passed."""
    if anniversary is None:
        return None
    end = last_day_of_month(today.year, anniversary.month)
    if end >= today:
        return end
    return last_day_of_month(today.year + 1, anniversary.month)


def resolve_anniversary(card) -> date:
    """Card anniversary, falling back to the card's creation date."""
    if card.anniversary_date is not None:
        return card.anniversary_date
    return card.created_at.date()


def resolve_benefit_anniversary(benefit, card) -> date:
    """Anniversary stamped on the benefit, falling back to its card's."""
    if benefit.anniversary_date is not None:
        return benefit.anniversary_date
    return resolve_anniversary(card)


# --- Usage reset ---

def usage_period_elapsed(
    reset_period: RecurrenceType | str | None,
    last_used_date: date | None,
    today: date,
) -> bool:
    """True when a used benefit's reset period has rolled over since it was used.

    Monthly and annual compare calendar months/years; quarterly and
    semi-annual are rolling windows measured from the usage date.
    """
    if reset_period is None or last_used_date is None:
        return False
    try:
        period = RecurrenceType(reset_period)
    except ValueError:
        return False
    if period is RecurrenceType.MONTHLY:
        return (last_used_date.year, last_used_date.month) < (today.year, today.month)
    if period is RecurrenceType.ANNUAL:
        return last_used_date.year < today.year
    if period is RecurrenceType.SEMI_ANNUAL:
        return last_used_date + relativedelta(months=6) < today
    if period is RecurrenceType.QUARTERLY:
        return last_used_date + relativedelta(months=3) < today
    return False

from datetime import date, timedelta

from duekeeper.models import Card, CardBenefit
from duekeeper.services.reminder_service import (
    benefit_reminder_dates,
    due_reminder_dates,
    near_expiry_count,
    overdue_count,
    reminder_summary,
    upcoming_benefits,
    upcoming_dues,
)
from duekeeper.utils.recurrence import RecurrenceType


def _make_card(name: str = "Card", due_day: int = 15, **kwargs) -> Card:
    kwargs.setdefault("anniversary_date", date(2024, 3, 14))
    kwargs.setdefault("reminder_lead_days", 5)
    return Card(name=name, due_day=due_day, **kwargs)


def _add_benefit(card: Card, name: str, recurrence_type, **kwargs) -> CardBenefit:
    benefit = CardBenefit(card_id=card.id, name=name, recurrence_type=recurrence_type, **kwargs)
    card.benefits.append(benefit)
    return benefit


# --- Upcoming dues ---

def test_upcoming_dues_one_row_per_card_sorted():
    today = date(2025, 4, 10)
    late = _make_card("Late", due_day=28)
    soon = _make_card("Soon", due_day=12)
    rolled = _make_card("Rolled", due_day=5)

    rows = upcoming_dues([late, soon, rolled], today)

    assert [r.card.name for r in rows] == ["Soon", "Late", "Rolled"]
    assert rows[0].due_date == date(2025, 4, 12)
    assert rows[0].days_until_due == 2
    assert rows[2].due_date == date(2025, 5, 5)


def test_upcoming_dues_clamps_day_31_in_april():
    rows = upcoming_dues([_make_card(due_day=31)], date(2025, 4, 2))
    assert rows[0].due_date == date(2025, 4, 30)


def test_upcoming_dues_last_day_sentinel_due_today():
    rows = upcoming_dues([_make_card(due_day=0)], date(2025, 4, 30))
    assert rows[0].days_until_due == 0


def test_upcoming_dues_keeps_unpaid_overdue_first():
    today = date(2025, 4, 20)
    overdue = _make_card("Overdue", due_day=15, last_paid_through=date(2025, 3, 15))
    paid = _make_card("Paid", due_day=15, last_paid_through=date(2025, 4, 15))

    rows = upcoming_dues([paid, overdue], today)

    assert rows[0].card is overdue
    assert rows[0].days_until_due == -5
    assert rows[1].due_date == date(2025, 5, 15)


# --- Overdue count ---

def test_overdue_count_uses_reminder_lead():
    today = date(2025, 4, 10)
    inside = _make_card("Inside", due_day=14, reminder_lead_days=5)  # reminder Apr 9
    boundary = _make_card("Boundary", due_day=15, reminder_lead_days=5)  # reminder Apr 10
    outside = _make_card("Outside", due_day=20, reminder_lead_days=5)  # reminder Apr 15

    assert overdue_count([inside, boundary, outside], today) == 2


def test_overdue_count_counts_each_card_once():
    card = _make_card(due_day=15, last_paid_through=date(2025, 1, 15))
    assert overdue_count([card], date(2025, 4, 20)) == 1


def test_overdue_count_bounded_by_cards():
    cards = [_make_card(f"C{d}", due_day=d, reminder_lead_days=31) for d in range(0, 29)]
    count = overdue_count(cards, date(2025, 4, 10))
    assert 0 <= count <= len(cards)
    assert count == len(cards)


# --- Upcoming benefits ---

def test_upcoming_benefits_filters_and_sorts():
    today = date(2025, 5, 10)
    card = _make_card()
    monthly = _add_benefit(card, "Dining", RecurrenceType.MONTHLY, monthly_day=1)
    annual = _add_benefit(card, "Hotel", RecurrenceType.ANNUAL)
    quarterly = _add_benefit(card, "Streaming", RecurrenceType.QUARTERLY)
    _add_benefit(card, "Used", RecurrenceType.MONTHLY, monthly_day=1, last_used_date=date(2025, 5, 2))
    _add_benefit(card, "Inactive", RecurrenceType.MONTHLY, monthly_day=1, is_active=False)
    _add_benefit(card, "Expired", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 1))

    rows = upcoming_benefits([card], today)

    assert [r.benefit for r in rows] == [monthly, quarterly, annual]
    assert rows[0].expiration_date == date(2025, 5, 31)
    assert rows[0].days_until_expiration == 21
    assert rows[1].expiration_date == date(2025, 6, 30)
    assert rows[2].expiration_date == date(2025, 12, 31)
    assert all(r.card is card for r in rows)


def test_upcoming_benefits_monthly_on_last_day():
    card = _make_card()
    _add_benefit(card, "Dining", RecurrenceType.MONTHLY, monthly_day=1)

    rows = upcoming_benefits([card], date(2025, 4, 30))

    assert rows[0].expiration_date == date(2025, 4, 30)
    assert rows[0].days_until_expiration == 0


def test_upcoming_benefits_resets_lapsed_usage_first():
    card = _make_card()
    benefit = _add_benefit(
        card, "Dining", RecurrenceType.MONTHLY,
        monthly_day=1, reset_period=RecurrenceType.MONTHLY, last_used_date=date(2025, 4, 20),
    )

    rows = upcoming_benefits([card], date(2025, 5, 1))

    assert [r.benefit for r in rows] == [benefit]
    assert benefit.last_used_date is None


# --- Near-expiry count ---

def test_near_expiry_count_window_is_inclusive():
    card = _make_card()
    _add_benefit(card, "Today", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 10))
    _add_benefit(card, "Edge", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 15))
    _add_benefit(card, "Beyond", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 16))
    _add_benefit(card, "Past", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 9))

    assert near_expiry_count([card], date(2025, 5, 10), window_days=5) == 2


def test_near_expiry_count_agrees_with_upcoming_benefits():
    today = date(2025, 6, 27)
    card = _make_card()
    _add_benefit(card, "Dining", RecurrenceType.MONTHLY, monthly_day=1)
    _add_benefit(card, "Streaming", RecurrenceType.QUARTERLY)
    _add_benefit(card, "Hotel", RecurrenceType.SEMI_ANNUAL)
    _add_benefit(card, "Travel", RecurrenceType.ANNUAL)
    _add_benefit(card, "Used", RecurrenceType.MONTHLY, monthly_day=1, last_used_date=today)

    rows = upcoming_benefits([card], today)
    expected = sum(1 for r in rows if r.days_until_expiration <= 5)

    assert near_expiry_count([card], today, window_days=5) == expected == 3


def test_near_expiry_count_defaults_to_five_days():
    card = _make_card()
    _add_benefit(card, "Edge", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 15))
    _add_benefit(card, "Beyond", RecurrenceType.ONE_TIME, one_time_date=date(2025, 5, 16))

    assert near_expiry_count([card], date(2025, 5, 10)) == 1


def test_reminder_summary():
    today = date(2025, 4, 28)
    card = _make_card(due_day=30, reminder_lead_days=3)
    _add_benefit(card, "Dining", RecurrenceType.MONTHLY, monthly_day=1)

    summary = reminder_summary([card], today)

    assert summary == {"overdue_count": 1, "near_expiry_count": 1, "badge_count": 2}


# --- Notification schedule dates ---

def test_due_reminder_dates_skip_past_and_paid():
    card = _make_card(due_day=15, reminder_lead_days=5, last_paid_through=date(2025, 5, 15))

    dates = due_reminder_dates(card, date(2025, 4, 12), months=4)

    # April and May are covered by the payment.
    assert dates == [date(2025, 6, 10), date(2025, 7, 10)]


def test_due_reminder_dates_last_day_sentinel():
    card = _make_card(due_day=0, reminder_lead_days=0)
    dates = due_reminder_dates(card, date(2025, 1, 1), months=3)
    assert dates == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)]


def test_benefit_reminder_dates_monthly():
    card = _make_card()
    benefit = _add_benefit(card, "Dining", RecurrenceType.MONTHLY, monthly_day=31)

    dates = benefit_reminder_dates(benefit, card, date(2025, 1, 31))

    assert len(dates) == 12
    assert dates[:3] == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)]


def test_benefit_reminder_dates_annual_uses_anniversary_month_end():
    card = _make_card(anniversary_date=date(2024, 3, 14))
    benefit = _add_benefit(card, "Hotel", RecurrenceType.ANNUAL, reminder_days_before=30)

    dates = benefit_reminder_dates(benefit, card, date(2025, 2, 1))

    assert dates == [
        date(2025, 3, 31) - timedelta(days=30),
        date(2026, 3, 31) - timedelta(days=30),
        date(2027, 3, 31) - timedelta(days=30),
    ]


def test_benefit_reminder_dates_quarterly_and_semi_annual():
    card = _make_card()
    quarterly = _add_benefit(card, "Streaming", RecurrenceType.QUARTERLY)
    semi = _add_benefit(card, "Saks", RecurrenceType.SEMI_ANNUAL)
    today = date(2025, 5, 10)

    assert benefit_reminder_dates(quarterly, card, today) == [
        date(2025, 7, 1), date(2025, 10, 1), date(2026, 1, 1), date(2026, 4, 1),
    ]
    assert benefit_reminder_dates(semi, card, today) == [date(2025, 7, 1), date(2026, 1, 1)]


def test_benefit_reminder_dates_one_time_and_inactive():
    card = _make_card()
    upcoming = _add_benefit(card, "GE", RecurrenceType.ONE_TIME, one_time_date=date(2025, 9, 1))
    inactive = _add_benefit(card, "Off", RecurrenceType.ONE_TIME, one_time_date=date(2025, 9, 1), is_active=False)

    assert benefit_reminder_dates(upcoming, card, date(2025, 5, 1)) == [date(2025, 9, 1)]
    assert benefit_reminder_dates(upcoming, card, date(2025, 9, 2)) == []
    assert benefit_reminder_dates(inactive, card, date(2025, 5, 1)) == []


def test_due_reminder_dates_skip_reminders_already_past():
    card = _make_card(due_day=15, reminder_lead_days=5)
    assert due_reminder_dates(card, date(2025, 4, 12), months=2) == [date(2025, 5, 10)]

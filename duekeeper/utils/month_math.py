from datetime import date

from dateutil.relativedelta import relativedelta


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Return the (year, month) that is `offset` months after (year, month)."""
    shifted = date(year, month, 1) + relativedelta(months=offset)
    return shifted.year, shifted.month


def last_day_of_month(year: int, month: int) -> date:
    # First day of next month minus one day.
    return date(year, month, 1) + relativedelta(months=1) - relativedelta(days=1)


def clamped_date(year: int, month: int, day: int) -> date:
    """Day `day` of the month, clamped to the month's last day (31 -> Apr 30)."""
    last = last_day_of_month(year, month)
    return last if day >= last.day else date(year, month, day)


def days_until(target: date, today: date) -> int:
    """Calendar-day difference; negative when target is in the past."""
    return (target - today).days

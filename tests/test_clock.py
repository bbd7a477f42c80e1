from datetime import date, datetime, timezone

from duekeeper.utils.clock import get_today


def test_get_today_in_named_zone():
    assert get_today("UTC") == datetime.now(timezone.utc).date()


def test_unknown_zone_falls_back_to_local_date(caplog):
    assert get_today("Not/AZone") == date.today()
    assert "Unknown timezone" in caplog.text

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from voice_ledger.utils.dates import local_tz, today


def _clock(dt):
    return lambda: dt


def test_today_formats_as_iso_date():
    assert today(_clock(datetime(2025, 3, 7, 12, 0))) == "2025-03-07"


def test_today_uses_local_calendar_day_not_utc():
    # 20:30 UTC on the 1st is already the 2nd in Yangon (UTC+06:30).
    utc_evening = datetime(2025, 6, 1, 20, 30, tzinfo=timezone.utc)
    assert today(_clock(utc_evening), tz=ZoneInfo("Asia/Yangon")) == "2025-06-02"
    assert today(_clock(utc_evening), tz=ZoneInfo("America/New_York")) == "2025-06-01"


def test_today_honours_local_timezone_setting(monkeypatch):
    monkeypatch.setenv("LOCAL_TIMEZONE", "Asia/Yangon")
    utc_evening = datetime(2025, 6, 1, 20, 30, tzinfo=timezone.utc)
    assert today(_clock(utc_evening)) == "2025-06-02"


def test_unknown_timezone_setting_is_ignored(monkeypatch):
    monkeypatch.setenv("LOCAL_TIMEZONE", "Mars/Olympus_Mons")
    assert local_tz() is None


def test_today_without_clock_matches_pattern():
    from voice_ledger.schemas.transaction import DATE_PATTERN

    assert DATE_PATTERN.match(today())

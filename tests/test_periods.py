from datetime import date, datetime, timezone

from app.domain.periods import iso_week_period, month_period, period_for, utc_today


def test_month_period_covers_calendar_month():
    period = month_period(datetime(2025, 2, 14, 9, 30, tzinfo=timezone.utc))
    assert period.start == date(2025, 2, 1)
    assert period.end == date(2025, 3, 1)
    assert period.inclusive_end == date(2025, 2, 28)


def test_month_period_wraps_december():
    period = month_period(datetime(2024, 12, 31, 23, 59, tzinfo=timezone.utc))
    assert period.start == date(2024, 12, 1)
    assert period.end == date(2025, 1, 1)


def test_iso_week_starts_on_monday():
    # 2025-03-05 is a Wednesday
    period = iso_week_period(datetime(2025, 3, 5, tzinfo=timezone.utc))
    assert period.start == date(2025, 3, 3)
    assert period.end == date(2025, 3, 10)
    assert period.inclusive_end == date(2025, 3, 9)


def test_sunday_belongs_to_the_week_that_started_monday():
    period = iso_week_period(datetime(2025, 3, 9, 23, 0, tzinfo=timezone.utc))
    assert period.start == date(2025, 3, 3)


def test_non_utc_times_are_converted_first():
    # Monday 01:00 in UTC+2 is still Sunday in UTC
    from datetime import timedelta

    local = datetime(2025, 3, 10, 1, 0, tzinfo=timezone(timedelta(hours=2)))
    assert utc_today(local) == date(2025, 3, 9)
    assert iso_week_period(local).start == date(2025, 3, 3)


def test_period_for_dispatches_on_cadence():
    now = datetime(2025, 3, 5, tzinfo=timezone.utc)
    assert period_for("MONTHLY", now) == month_period(now)
    assert period_for("WEEKLY", now) == iso_week_period(now)

"""Tests for premium schedule helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from lifecrm_app.core.schedule import calculate_next_payment_date


def test_short_months_clamp_to_last_day() -> None:
    assert calculate_next_payment_date(date(2024, 1, 31), "month", datetime(2024, 2, 5)) == datetime(
        2024, 2, 29
    )
    assert calculate_next_payment_date(date(2023, 1, 31), "month", datetime(2023, 2, 5)) == datetime(
        2023, 2, 28
    )
    assert calculate_next_payment_date(
        date(2024, 11, 30), "quarter", datetime(2025, 1, 2)
    ) == datetime(2025, 2, 28)


def test_monthly_schedule_does_not_drift_after_short_month() -> None:
    now = datetime(2024, 3, 5, 10, 0)

    assert calculate_next_payment_date(date(2024, 1, 31), "month", now) == datetime(2024, 3, 31)


def test_quarterly_schedule() -> None:
    now = datetime(2024, 6, 10, 9, 30)

    assert calculate_next_payment_date(date(2023, 1, 20), "quarter", now) == datetime(2024, 7, 20)


def test_half_year_schedule() -> None:
    now = datetime(2024, 6, 10, 9, 30)

    assert calculate_next_payment_date(date(2022, 2, 1), "6-month", now) == datetime(2024, 8, 1)


def test_yearly_schedule_from_leap_day() -> None:
    now = datetime(2024, 6, 10, 9, 30)

    assert calculate_next_payment_date(date(2020, 2, 29), "year", now) == datetime(2025, 2, 28)


def test_join_date_in_future_is_first_payment() -> None:
    now = datetime(2024, 6, 10, 9, 30)

    assert calculate_next_payment_date(date(2024, 7, 1), "month", now) == datetime(2024, 7, 1)


def test_join_today_moves_to_next_period() -> None:
    now = datetime(2024, 6, 10, 9, 30)

    assert calculate_next_payment_date(date(2024, 6, 10), "month", now) == datetime(2024, 7, 10)


def test_aware_now_keeps_timezone() -> None:
    tz = timezone(timedelta(hours=7))
    now = datetime(2024, 6, 10, 9, 30, tzinfo=tz)

    result = calculate_next_payment_date(date(2024, 1, 20), "month", now)

    assert result == datetime(2024, 6, 20, tzinfo=tz)
    assert result.tzinfo == tz


def test_invalid_frequency_is_rejected() -> None:
    with pytest.raises(ValueError, match="Định kỳ đóng phí không hợp lệ"):
        calculate_next_payment_date(date(2024, 1, 1), "weekly", datetime(2024, 6, 10))

"""Premium payment schedule helpers."""

from __future__ import annotations

from datetime import date, datetime, time

from dateutil.relativedelta import relativedelta

from lifecrm_app.core.validation import validate_payment_frequency
from lifecrm_app.models.insurance import PAYMENT_FREQUENCY_MONTHS


def calculate_next_payment_date(
    join_date: date,
    frequency: str,
    now: datetime | None = None,
) -> datetime:
    """First period boundary from ``join_date`` that is not before ``now``.

    Each step is measured from the join date, so a contract joined on the
    31st returns to the 31st whenever the month allows it; shorter months
    clamp to their last day.
    """
    step = PAYMENT_FREQUENCY_MONTHS[validate_payment_frequency(frequency)]
    now = now or datetime.now()
    start = datetime.combine(join_date, time.min, tzinfo=now.tzinfo)
    periods = 0
    candidate = start
    while candidate < now:
        periods += 1
        candidate = start + relativedelta(months=periods * step)
    return candidate

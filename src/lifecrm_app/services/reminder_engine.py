"""Reminder and dashboard computation over an in-memory customer snapshot.

Both entry points are pure: they read the customer list, never mutate it,
and produce the same output for the same ``customers`` and ``now``.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Sequence

from lifecrm_app.models.customer import Customer
from lifecrm_app.models.reminder import (
    BIRTHDAY,
    PAYMENT_DUE,
    PAYMENT_OVERDUE,
    DashboardStats,
    Reminder,
)

BIRTHDAY_WINDOW_DAYS = 5
PAYMENT_WINDOW_DAYS = 30

BIRTHDAY_MESSAGE = "Còn {days} ngày nữa tới sinh nhật"
PAYMENT_DUE_MESSAGE = "Còn {days} ngày nữa tới hạn đóng phí - {company}"
PAYMENT_OVERDUE_MESSAGE = "Đã trễ phí {days} ngày - {company}"

_ONE_DAY = timedelta(days=1)


def _align(value: date | datetime, now: datetime) -> datetime:
    """Return ``value`` as a datetime comparable with ``now``."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=now.tzinfo)
    if now.tzinfo is not None and value.tzinfo is None:
        return value.replace(tzinfo=now.tzinfo)
    if now.tzinfo is None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _days_between(target: datetime, now: datetime) -> int:
    return math.ceil((target - now) / _ONE_DAY)


def project_birthday(date_of_birth: date, year: int) -> date:
    """Place a birth month/day in ``year``; Feb 29 becomes Feb 28 off leap years."""
    try:
        return date_of_birth.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def next_birthday(date_of_birth: date, now: datetime) -> datetime:
    """Return local midnight of the next birthday, today included."""
    candidate = project_birthday(date_of_birth, now.year)
    if candidate < now.date():
        candidate = project_birthday(date_of_birth, now.year + 1)
    return datetime.combine(candidate, time.min, tzinfo=now.tzinfo)


def _birthday_reminder(customer: Customer, now: datetime) -> Reminder | None:
    occurrence = next_birthday(customer.date_of_birth, now)
    days = _days_between(occurrence, now)
    if not 0 <= days <= BIRTHDAY_WINDOW_DAYS:
        return None
    return Reminder(
        customer_id=customer.id,
        customer_name=customer.full_name,
        type=BIRTHDAY,
        date=occurrence,
        message=BIRTHDAY_MESSAGE.format(days=days),
        days_until=days,
    )


def _payment_reminders(customer: Customer, now: datetime) -> list[Reminder]:
    reminders: list[Reminder] = []
    for contract in customer.insurance_contracts:
        due = _align(contract.next_payment_date, now)
        days = _days_between(due, now)
        if days < 0:
            reminders.append(
                Reminder(
                    customer_id=customer.id,
                    customer_name=customer.full_name,
                    type=PAYMENT_OVERDUE,
                    date=due,
                    message=PAYMENT_OVERDUE_MESSAGE.format(days=-days, company=contract.company),
                    days_overdue=-days,
                )
            )
        elif days <= PAYMENT_WINDOW_DAYS:
            reminders.append(
                Reminder(
                    customer_id=customer.id,
                    customer_name=customer.full_name,
                    type=PAYMENT_DUE,
                    date=due,
                    message=PAYMENT_DUE_MESSAGE.format(days=days, company=contract.company),
                    days_until=days,
                )
            )
    return reminders


def _sort_key(reminder: Reminder) -> tuple[int, int]:
    return (0 if reminder.type == PAYMENT_OVERDUE else 1, reminder.severity)


def compute_reminders(
    customers: Sequence[Customer],
    now: datetime | None = None,
) -> list[Reminder]:
    """Derive birthday and payment reminders, overdue first, then by urgency."""
    now = now or datetime.now()
    reminders: list[Reminder] = []
    for customer in customers:
        birthday = _birthday_reminder(customer, now)
        if birthday is not None:
            reminders.append(birthday)
        reminders.extend(_payment_reminders(customer, now))
    # sorted() is stable, so equal keys keep input order.
    return sorted(reminders, key=_sort_key)


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def compute_dashboard_stats(
    customers: Sequence[Customer],
    now: datetime | None = None,
) -> DashboardStats:
    """Aggregate classification counts, reminder counts and monthly growth."""
    now = now or datetime.now()
    reminders = compute_reminders(customers, now)
    month_start = start_of_month(now)

    def count_reminders(reminder_type: str) -> int:
        return sum(1 for reminder in reminders if reminder.type == reminder_type)

    def count_classification(classification: str) -> int:
        return sum(1 for customer in customers if customer.classification == classification)

    return DashboardStats(
        total_customers=len(customers),
        signed_count=count_classification("Signed"),
        potential_count=count_classification("Potential"),
        dropped_count=count_classification("Dropped"),
        upcoming_meetings=sum(
            1
            for customer in customers
            if any(_align(meeting.date, now) > now for meeting in customer.meeting_records)
        ),
        upcoming_payments=count_reminders(PAYMENT_DUE),
        overdue_payments=count_reminders(PAYMENT_OVERDUE),
        upcoming_birthdays=count_reminders(BIRTHDAY),
        new_customers_this_month=sum(
            1 for customer in customers if _align(customer.created_at, now) >= month_start
        ),
    )

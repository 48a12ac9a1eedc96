"""Load a customer snapshot and run the reminder engine over it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from lifecrm_app.models.reminder import DashboardStats, Reminder
from lifecrm_app.repositories.customer_repository import CustomerSource
from lifecrm_app.services.reminder_engine import compute_dashboard_stats, compute_reminders

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardSnapshot:
    generated_at: datetime
    reminders: tuple[Reminder, ...]
    stats: DashboardStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "reminders": [reminder.to_dict() for reminder in self.reminders],
            "stats": self.stats.to_dict(),
        }


class DashboardService:
    """Recomputes reminders and stats on every call; nothing is cached."""

    def __init__(self, source: CustomerSource, clock: Callable[[], datetime] = datetime.now):
        self._source = source
        self._clock = clock

    def load(self, now: datetime | None = None) -> DashboardSnapshot:
        now = now or self._clock()
        # One read so both computations see the same snapshot.
        customers = tuple(self._source.list_customers())
        reminders = compute_reminders(customers, now)
        stats = compute_dashboard_stats(customers, now)
        logger.debug(
            "dashboard computed: %d customers, %d reminders", stats.total_customers, len(reminders)
        )
        return DashboardSnapshot(generated_at=now, reminders=tuple(reminders), stats=stats)

    def reminders_for_customer(self, customer_id: str, now: datetime | None = None) -> list[Reminder]:
        return [r for r in self.load(now).reminders if r.customer_id == customer_id]

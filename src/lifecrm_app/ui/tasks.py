"""Background worker tasks used by the main GUI window."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, QRunnable, Signal

if TYPE_CHECKING:
    from lifecrm_app.services.customer_service import CustomerService
    from lifecrm_app.services.dashboard_service import DashboardService


class DashboardSignals(QObject):
    done = Signal(object)
    error = Signal(str)


class LoadSignals(QObject):
    done = Signal(list)
    error = Signal(str)


class LoadDashboardTask(QRunnable):
    """Recompute reminders and stats without blocking the UI thread."""

    def __init__(self, dashboard_service: DashboardService):
        super().__init__()
        self.dashboard_service = dashboard_service
        self.signals = DashboardSignals()

    def run(self) -> None:
        try:
            self.signals.done.emit(self.dashboard_service.load())
        except Exception as error:  # pylint: disable=broad-except
            # Worker boundary: convert any failure to a user-visible message.
            self.signals.error.emit(str(error))


class SearchCustomersTask(QRunnable):
    """Search customers by name/phone within one classification tab."""

    def __init__(self, customer_service: CustomerService, query: str, classification: str | None):
        super().__init__()
        self.customer_service = customer_service
        self.query = query
        self.classification = classification
        self.signals = LoadSignals()

    def run(self) -> None:
        try:
            customers = self.customer_service.search_customers(self.query, self.classification)
            self.signals.done.emit(customers)
        except Exception as error:  # pylint: disable=broad-except
            # Worker boundary: convert any failure to a user-visible message.
            self.signals.error.emit(str(error))

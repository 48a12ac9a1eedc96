"""Application entry point."""

from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication, QDialog

from lifecrm_app.core.container import build_container
from lifecrm_app.ui.login_dialog import LoginDialog
from lifecrm_app.ui.main_window import MainWindow


def run() -> None:
    """Launch the GUI application."""
    container = build_container()

    app = QApplication(sys.argv)
    app.aboutToQuit.connect(container.close)
    login = LoginDialog(container.user_service)
    if login.exec() != QDialog.DialogCode.Accepted or login.user is None:
        container.close()
        sys.exit(0)

    window = MainWindow(
        container.dashboard_service,
        container.customer_service,
        container.learning_service,
        container.user_service,
        login.user,
    )
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    run()

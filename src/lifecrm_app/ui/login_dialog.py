"""Login dialog shown before the main window."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QFormLayout,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from lifecrm_app.models.user import User
from lifecrm_app.services.user_service import UserService


class LoginDialog(QDialog):
    def __init__(self, user_service: UserService):
        super().__init__()
        self.user_service = user_service
        self.user: User | None = None

        self.setWindowTitle("Đăng nhập")
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self.email_input = QLineEdit()
        self.password_input = QLineEdit()
        self.password_input.setEchoMode(QLineEdit.EchoMode.Password)
        self.password_input.returnPressed.connect(self.try_login)
        form.addRow("Email", self.email_input)
        form.addRow("Mật khẩu", self.password_input)
        layout.addLayout(form)

        login_button = QPushButton("Đăng nhập")
        login_button.clicked.connect(self.try_login)
        layout.addWidget(login_button)

    def try_login(self) -> None:
        try:
            self.user = self.user_service.authenticate(
                self.email_input.text(),
                self.password_input.text(),
            )
        except ValueError as error:
            QMessageBox.warning(self, "Lỗi đăng nhập", str(error))
            return
        self.accept()

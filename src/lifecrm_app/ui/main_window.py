"""Main GUI window: dashboard, customers, staff accounts and learning content."""

from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import QThreadPool
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from lifecrm_app.models.customer import CLASSIFICATION_LABELS, CLASSIFICATIONS, Customer
from lifecrm_app.models.insurance import PAYMENT_FREQUENCY_LABELS, InsuranceCreate
from lifecrm_app.models.learning import CONTENT_TYPES, LearningContentCreate
from lifecrm_app.models.user import ROLES, User, UserCreate
from lifecrm_app.services.customer_service import CustomerService
from lifecrm_app.services.dashboard_service import DashboardService, DashboardSnapshot
from lifecrm_app.services.learning_service import LearningService
from lifecrm_app.services.user_service import UserService
from lifecrm_app.ui.dialogs import (
    CONTENT_TYPE_LABELS,
    ContractDialog,
    CustomerDialog,
    LearningDialog,
    MeetingDialog,
    UserDialog,
)
from lifecrm_app.ui.forms import format_date_text, format_datetime_text
from lifecrm_app.ui.tasks import LoadDashboardTask, SearchCustomersTask

STAT_TILES = [
    ("total_customers", "Tổng khách hàng"),
    ("signed_count", "Đã ký"),
    ("potential_count", "Tiềm năng"),
    ("dropped_count", "Đã bỏ"),
    ("upcoming_meetings", "Cuộc họp sắp tới"),
    ("upcoming_payments", "Sắp tới hạn đóng phí"),
    ("overdue_payments", "Trễ phí"),
    ("upcoming_birthdays", "Sinh nhật sắp tới"),
    ("new_customers_this_month", "Khách hàng mới trong tháng"),
]

REMINDER_TYPE_LABELS = {
    "birthday": "Sinh nhật",
    "payment-due": "Tới hạn đóng phí",
    "payment-overdue": "Trễ phí",
}

ROLE_LABELS = {
    "Admin": "Quản trị viên",
    "Manager": "Quản lý",
    "Staff": "Nhân viên",
}


class MainWindow(QMainWindow):
    """Agent workspace; the dashboard is recomputed on every refresh."""

    def __init__(
        self,
        dashboard_service: DashboardService,
        customer_service: CustomerService,
        learning_service: LearningService,
        user_service: UserService,
        user: User,
    ):
        super().__init__()
        self.dashboard_service = dashboard_service
        self.customer_service = customer_service
        self.learning_service = learning_service
        self.user_service = user_service
        self.user = user
        self.selected_customer_id: str | None = None
        self.thread_pool = QThreadPool.globalInstance()

        self.setWindowTitle(f"LifeCRM - {user.full_name} ({user.role})")
        self.resize(1200, 800)

        self.tabs = QTabWidget()
        self._build_dashboard_tab()
        self._build_customer_tab()
        if user.role in {"Admin", "Manager"}:
            self._build_user_tab()
        self._build_learning_tab()
        self.setCentralWidget(self.tabs)

        self.refresh_dashboard()
        self.search_customers()

    def _build_dashboard_tab(self) -> None:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        grid = QGridLayout()
        self.stat_labels: dict[str, QLabel] = {}
        for index, (key, title) in enumerate(STAT_TILES):
            value = QLabel("0")
            value.setStyleSheet("font-size: 22px; font-weight: 700;")
            grid.addWidget(QLabel(title), (index // 3) * 2, index % 3)
            grid.addWidget(value, (index // 3) * 2 + 1, index % 3)
            self.stat_labels[key] = value
        layout.addLayout(grid)

        self.reminders_table = QTableWidget(0, 4)
        self.reminders_table.setHorizontalHeaderLabels(["Khách hàng", "Loại", "Ngày", "Nội dung"])
        self.reminders_table.horizontalHeader().setStretchLastSection(True)
        layout.addWidget(self.reminders_table)

        refresh_button = QPushButton("Làm mới")
        refresh_button.clicked.connect(self.refresh_dashboard)
        layout.addWidget(refresh_button)
        self.tabs.addTab(tab, "Tổng quan")

    def _build_customer_tab(self) -> None:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        controls = QHBoxLayout()
        self.classification_filter = QComboBox()
        self.classification_filter.addItem("Tất cả", None)
        for classification in CLASSIFICATIONS:
            self.classification_filter.addItem(CLASSIFICATION_LABELS[classification], classification)
        self.classification_filter.currentIndexChanged.connect(lambda _index: self.search_customers())
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Tìm theo tên hoặc số điện thoại")
        self.search_input.returnPressed.connect(self.search_customers)
        controls.addWidget(self.classification_filter)
        controls.addWidget(self.search_input)
        layout.addLayout(controls)

        actions = QHBoxLayout()
        for text, handler in (
            ("Thêm khách hàng", self.open_create_customer),
            ("Sửa khách hàng", self.open_edit_customer),
            ("Thêm cuộc gặp", self.open_add_meeting),
            ("Thêm hợp đồng", self.open_add_contract),
            ("Xóa hợp đồng", self.remove_contract),
        ):
            button = QPushButton(text)
            button.clicked.connect(handler)
            actions.addWidget(button)
        if self.user.role in {"Admin", "Manager"}:
            delete_button = QPushButton("Xóa khách hàng")
            delete_button.clicked.connect(self.delete_customer)
            actions.addWidget(delete_button)
        layout.addLayout(actions)

        self.customers_table = QTableWidget(0, 5)
        self.customers_table.setHorizontalHeaderLabels(
            ["ID", "Họ tên", "Số điện thoại", "Phân loại", "Hợp đồng"]
        )
        self.customers_table.horizontalHeader().setStretchLastSection(True)
        self.customers_table.cellClicked.connect(self._on_customer_row_selected)
        layout.addWidget(self.customers_table)

        self.customer_detail_label = QLabel("Chọn khách hàng để xem chi tiết")
        layout.addWidget(self.customer_detail_label)

        details = QHBoxLayout()
        self.contracts_table = QTableWidget(0, 6)
        self.contracts_table.setHorizontalHeaderLabels(
            ["ID", "Công ty", "Số hợp đồng", "Định kỳ", "Phí", "Kỳ đóng phí tiếp theo"]
        )
        self.contracts_table.setColumnHidden(0, True)
        self.contracts_table.horizontalHeader().setStretchLastSection(True)
        self.meetings_table = QTableWidget(0, 2)
        self.meetings_table.setHorizontalHeaderLabels(["Ngày gặp", "Nội dung"])
        self.meetings_table.horizontalHeader().setStretchLastSection(True)
        details.addWidget(self.contracts_table)
        details.addWidget(self.meetings_table)
        layout.addLayout(details)
        self.tabs.addTab(tab, "Khách hàng")

    def _build_user_tab(self) -> None:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        controls = QHBoxLayout()
        self.user_search_input = QLineEdit()
        self.user_search_input.setPlaceholderText("Tìm theo tên, email hoặc số điện thoại")
        self.user_search_input.returnPressed.connect(self.refresh_users)
        add_button = QPushButton("Thêm nhân viên")
        add_button.clicked.connect(self.open_add_user)
        controls.addWidget(self.user_search_input)
        controls.addWidget(add_button)
        if self.user.role == "Admin":
            delete_button = QPushButton("Xóa nhân viên")
            delete_button.clicked.connect(self.delete_user)
            controls.addWidget(delete_button)
        layout.addLayout(controls)

        self.role_counts_label = QLabel("")
        layout.addWidget(self.role_counts_label)

        self.users_table = QTableWidget(0, 5)
        self.users_table.setHorizontalHeaderLabels(["ID", "Họ tên", "Email", "Số điện thoại", "Vai trò"])
        self.users_table.setColumnHidden(0, True)
        self.users_table.horizontalHeader().setStretchLastSection(True)
        layout.addWidget(self.users_table)
        self.tabs.addTab(tab, "Nhân viên")
        self.refresh_users()

    def _build_learning_tab(self) -> None:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        controls = QHBoxLayout()
        self.learning_filter = QComboBox()
        self.learning_filter.addItem("Tất cả", None)
        for content_type in CONTENT_TYPES:
            self.learning_filter.addItem(CONTENT_TYPE_LABELS[content_type], content_type)
        self.learning_filter.currentIndexChanged.connect(lambda _index: self._render_learning())
        controls.addWidget(self.learning_filter)
        if self.user.role == "Admin":
            add_button = QPushButton("Thêm bài học")
            add_button.clicked.connect(self.open_add_learning)
            delete_button = QPushButton("Xóa bài học")
            delete_button.clicked.connect(self.delete_learning)
            controls.addWidget(add_button)
            controls.addWidget(delete_button)
        layout.addLayout(controls)

        self.learning_table = QTableWidget(0, 5)
        self.learning_table.setHorizontalHeaderLabels(["ID", "Tiêu đề", "Loại", "Mô tả", "URL"])
        self.learning_table.setColumnHidden(0, True)
        self.learning_table.horizontalHeader().setStretchLastSection(True)
        layout.addWidget(self.learning_table)
        self.tabs.addTab(tab, "Học tập")
        self._render_learning()

    def refresh_dashboard(self) -> None:
        task = LoadDashboardTask(self.dashboard_service)
        task.signals.done.connect(self._render_dashboard)
        task.signals.error.connect(lambda message: QMessageBox.critical(self, "Lỗi", message))
        self.thread_pool.start(task)

    def search_customers(self) -> None:
        task = SearchCustomersTask(
            self.customer_service,
            self.search_input.text(),
            self.classification_filter.currentData(),
        )
        task.signals.done.connect(self._render_customers)
        task.signals.error.connect(lambda message: QMessageBox.critical(self, "Lỗi", message))
        self.thread_pool.start(task)

    def _after_customer_change(self) -> None:
        self.search_customers()
        self.refresh_dashboard()
        if self.selected_customer_id:
            self._show_customer_detail(self.selected_customer_id)

    def _require_selected_customer(self) -> str | None:
        if not self.selected_customer_id:
            QMessageBox.information(self, "Thông báo", "Vui lòng chọn khách hàng")
            return None
        return self.selected_customer_id

    def _on_customer_row_selected(self, row: int, _column: int) -> None:
        item = self.customers_table.item(row, 0)
        if item is None:
            return
        self.selected_customer_id = item.text()
        self._show_customer_detail(self.selected_customer_id)

    def _show_customer_detail(self, customer_id: str) -> None:
        try:
            customer = self.customer_service.get_customer(customer_id)
        except ValueError:
            self.selected_customer_id = None
            self.customer_detail_label.setText("Chọn khách hàng để xem chi tiết")
            self.contracts_table.setRowCount(0)
            self.meetings_table.setRowCount(0)
            return
        self._render_customer_detail(customer)

    def _render_customer_detail(self, customer: Customer) -> None:
        reminders = self.dashboard_service.reminders_for_customer(customer.id)
        summary = f"{customer.full_name} - {format_date_text(customer.date_of_birth)}"
        if customer.address.display():
            summary += f" - {customer.address.display()}"
        if reminders:
            summary += " | " + "; ".join(reminder.message for reminder in reminders)
        self.customer_detail_label.setText(summary)

        self.contracts_table.setRowCount(len(customer.insurance_contracts))
        for row_index, contract in enumerate(customer.insurance_contracts):
            values = [
                contract.id,
                contract.company,
                contract.contract_number,
                PAYMENT_FREQUENCY_LABELS[contract.payment_frequency],
                f"{contract.premium_amount:,}",
                format_date_text(contract.next_payment_date),
            ]
            for column, value in enumerate(values):
                self.contracts_table.setItem(row_index, column, QTableWidgetItem(value))

        self.meetings_table.setRowCount(len(customer.meeting_records))
        for row_index, record in enumerate(customer.meeting_records):
            self.meetings_table.setItem(row_index, 0, QTableWidgetItem(format_datetime_text(record.date)))
            self.meetings_table.setItem(row_index, 1, QTableWidgetItem(record.notes))

    def open_create_customer(self) -> None:
        dialog = CustomerDialog(
            lambda payload: self.customer_service.create_customer(payload, self.user),
            contract_exists=self.customer_service.contract_number_exists,
            parent=self,
        )
        if dialog.exec() == QDialog.DialogCode.Accepted:
            QMessageBox.information(self, "Thành công", "Đã thêm khách hàng mới")
            self._after_customer_change()

    def open_edit_customer(self) -> None:
        customer_id = self._require_selected_customer()
        if customer_id is None:
            return
        try:
            customer = self.customer_service.get_customer(customer_id)
        except ValueError as error:
            QMessageBox.warning(self, "Lỗi", str(error))
            return
        dialog = CustomerDialog(
            lambda payload: self.customer_service.update_customer(customer_id, payload, self.user),
            customer=customer,
            contract_exists=self.customer_service.contract_number_exists,
            parent=self,
        )
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self._after_customer_change()

    def open_add_meeting(self) -> None:
        customer_id = self._require_selected_customer()
        if customer_id is None:
            return

        def submit(meeting_date: datetime, notes: str) -> None:
            self.customer_service.add_meeting_record(customer_id, meeting_date, notes, self.user)

        if MeetingDialog(submit, parent=self).exec() == QDialog.DialogCode.Accepted:
            self._after_customer_change()

    def open_add_contract(self) -> None:
        customer_id = self._require_selected_customer()
        if customer_id is None:
            return

        def submit(payload: InsuranceCreate) -> None:
            self.customer_service.add_contract(customer_id, payload, self.user)

        if ContractDialog(submit, parent=self).exec() == QDialog.DialogCode.Accepted:
            self._after_customer_change()

    def remove_contract(self) -> None:
        customer_id = self._require_selected_customer()
        if customer_id is None:
            return
        row = self.contracts_table.currentRow()
        if row < 0:
            QMessageBox.information(self, "Thông báo", "Vui lòng chọn hợp đồng")
            return
        contract_id = self.contracts_table.item(row, 0).text()
        contract_number = self.contracts_table.item(row, 2).text()
        answer = QMessageBox.question(self, "Xóa hợp đồng", f"Xóa hợp đồng {contract_number}?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.customer_service.remove_contract(customer_id, contract_id, self.user)
        except Exception as error:  # pylint: disable=broad-except
            QMessageBox.critical(self, "Lỗi", str(error))
            return
        self._after_customer_change()

    def delete_customer(self) -> None:
        row = self.customers_table.currentRow()
        if row < 0:
            QMessageBox.information(self, "Thông báo", "Vui lòng chọn khách hàng")
            return
        customer_id = self.customers_table.item(row, 0).text()
        name = self.customers_table.item(row, 1).text()
        answer = QMessageBox.question(self, "Xóa khách hàng", f"Bạn có chắc chắn muốn xóa {name}?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.customer_service.delete_customer(customer_id, self.user)
        except (PermissionError, ValueError) as error:
            QMessageBox.warning(self, "Không thể xóa", str(error))
            return
        if customer_id == self.selected_customer_id:
            self.selected_customer_id = None
        self._after_customer_change()

    def refresh_users(self) -> None:
        try:
            users = self.user_service.list_users(self.user_search_input.text())
            counts = self.user_service.role_counts()
        except Exception as error:  # pylint: disable=broad-except
            QMessageBox.critical(self, "Lỗi", str(error))
            return
        self.role_counts_label.setText(
            " | ".join(f"{ROLE_LABELS[role]}: {counts.get(role, 0)}" for role in ROLES)
        )
        self.users_table.setRowCount(len(users))
        for row_index, account in enumerate(users):
            values = [account.id, account.full_name, account.email, account.phone_number, ROLE_LABELS[account.role]]
            for column, value in enumerate(values):
                self.users_table.setItem(row_index, column, QTableWidgetItem(value))

    def open_add_user(self) -> None:
        allowed = ROLES if self.user.role == "Admin" else ("Manager", "Staff")

        def submit(payload: UserCreate) -> None:
            self.user_service.add_user(payload, self.user)

        if UserDialog(submit, allowed_roles=allowed, parent=self).exec() == QDialog.DialogCode.Accepted:
            QMessageBox.information(self, "Thành công", "Đã tạo tài khoản nhân viên")
            self.refresh_users()

    def delete_user(self) -> None:
        row = self.users_table.currentRow()
        if row < 0:
            QMessageBox.information(self, "Thông báo", "Vui lòng chọn nhân viên")
            return
        user_id = self.users_table.item(row, 0).text()
        name = self.users_table.item(row, 1).text()
        answer = QMessageBox.question(self, "Xóa nhân viên", f"Bạn có chắc chắn muốn xóa {name}?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.user_service.delete_user(user_id, self.user)
        except (PermissionError, ValueError) as error:
            QMessageBox.warning(self, "Không thể xóa", str(error))
            return
        self.refresh_users()

    def open_add_learning(self) -> None:
        def submit(payload: LearningContentCreate) -> None:
            self.learning_service.add_content(payload, self.user)

        if LearningDialog(submit, parent=self).exec() == QDialog.DialogCode.Accepted:
            self._render_learning()

    def delete_learning(self) -> None:
        row = self.learning_table.currentRow()
        if row < 0:
            QMessageBox.information(self, "Thông báo", "Vui lòng chọn bài học")
            return
        content_id = self.learning_table.item(row, 0).text()
        try:
            self.learning_service.delete_content(content_id, self.user)
        except (PermissionError, ValueError) as error:
            QMessageBox.warning(self, "Không thể xóa", str(error))
            return
        self._render_learning()

    def _render_dashboard(self, snapshot: DashboardSnapshot) -> None:
        stats = snapshot.stats.to_dict()
        for key, label in self.stat_labels.items():
            label.setText(str(stats[key]))

        self.reminders_table.setRowCount(len(snapshot.reminders))
        for row_index, reminder in enumerate(snapshot.reminders):
            self.reminders_table.setItem(row_index, 0, QTableWidgetItem(reminder.customer_name))
            self.reminders_table.setItem(
                row_index, 1, QTableWidgetItem(REMINDER_TYPE_LABELS[reminder.type])
            )
            self.reminders_table.setItem(
                row_index, 2, QTableWidgetItem(format_date_text(reminder.date))
            )
            self.reminders_table.setItem(row_index, 3, QTableWidgetItem(reminder.message))

    def _render_customers(self, customers: list) -> None:
        self.customers_table.setRowCount(len(customers))
        for row_index, customer in enumerate(customers):
            self.customers_table.setItem(row_index, 0, QTableWidgetItem(customer.id))
            self.customers_table.setItem(row_index, 1, QTableWidgetItem(customer.full_name))
            self.customers_table.setItem(row_index, 2, QTableWidgetItem(customer.phone_number))
            self.customers_table.setItem(
                row_index, 3, QTableWidgetItem(CLASSIFICATION_LABELS[customer.classification])
            )
            contracts = ", ".join(
                f"{contract.company} {contract.contract_number}"
                for contract in customer.insurance_contracts
            )
            self.customers_table.setItem(row_index, 4, QTableWidgetItem(contracts))

    def _render_learning(self) -> None:
        contents = self.learning_service.list_content(self.learning_filter.currentData())
        self.learning_table.setRowCount(len(contents))
        for row_index, content in enumerate(contents):
            values = [
                content.id,
                content.title,
                CONTENT_TYPE_LABELS.get(content.content_type, content.content_type),
                content.description,
                content.url,
            ]
            for column, value in enumerate(values):
                self.learning_table.setItem(row_index, column, QTableWidgetItem(value))

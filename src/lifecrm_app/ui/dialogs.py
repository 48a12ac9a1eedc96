"""Entry dialogs for customers, contracts, meetings, accounts and learning content."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable

from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from lifecrm_app.models.customer import (
    CLASSIFICATION_LABELS,
    CLASSIFICATIONS,
    Address,
    Customer,
    CustomerCreate,
)
from lifecrm_app.models.insurance import (
    PAYMENT_FREQUENCIES,
    PAYMENT_FREQUENCY_LABELS,
    InsuranceCreate,
)
from lifecrm_app.models.learning import CONTENT_TYPES, LearningContentCreate
from lifecrm_app.models.user import ROLES, UserCreate
from lifecrm_app.ui.forms import (
    contract_payload,
    format_date_text,
    format_datetime_text,
    parse_date_text,
    parse_optional_datetime_text,
)

INSURANCE_COMPANIES = [
    "Prudential",
    "Manulife",
    "AIA",
    "Bảo Việt Nhân thọ",
    "Dai-ichi Life",
    "FWD",
    "Generali",
    "Sun Life",
]

CONTENT_TYPE_LABELS = {
    "video": "Video",
    "pdf": "Tài liệu PDF",
    "announcement": "Thông báo",
}


class _SubmitDialog(QDialog):
    """Keeps the dialog open and shows the message when ``submit`` fails."""

    def _save_button(self, text: str = "Lưu") -> QPushButton:
        button = QPushButton(text)
        button.clicked.connect(self._on_save)
        return button

    def _submit(self) -> None:
        raise NotImplementedError

    def _on_save(self) -> None:
        try:
            self._submit()
        except Exception as error:  # pylint: disable=broad-except
            QMessageBox.critical(self, "Lỗi", str(error))
            return
        self.accept()


class ContractForm(QWidget):
    """Input fields for one insurance contract."""

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        form = QFormLayout(self)
        form.setContentsMargins(0, 0, 0, 0)

        self.company_input = QComboBox()
        self.company_input.setEditable(True)
        self.company_input.addItem("")
        self.company_input.addItems(INSURANCE_COMPANIES)
        self.contract_number_input = QLineEdit()
        self.join_date_input = QLineEdit(format_date_text(date.today()))
        self.join_date_input.setPlaceholderText("DD/MM/YYYY")
        self.frequency_input = QComboBox()
        for frequency in PAYMENT_FREQUENCIES:
            self.frequency_input.addItem(PAYMENT_FREQUENCY_LABELS[frequency], frequency)
        self.premium_input = QLineEdit()
        self.premium_input.setPlaceholderText("VD: 1500000")
        self.details_input = QLineEdit()

        form.addRow("Công ty bảo hiểm", self.company_input)
        form.addRow("Số hợp đồng", self.contract_number_input)
        form.addRow("Ngày tham gia", self.join_date_input)
        form.addRow("Định kỳ đóng phí", self.frequency_input)
        form.addRow("Phí bảo hiểm", self.premium_input)
        form.addRow("Chi tiết hợp đồng", self.details_input)

    def payload(self) -> InsuranceCreate:
        return contract_payload(
            self.company_input.currentText(),
            self.contract_number_input.text(),
            self.join_date_input.text(),
            self.frequency_input.currentData(),
            self.premium_input.text(),
            self.details_input.text(),
        )

    def clear(self) -> None:
        self.company_input.setCurrentIndex(0)
        self.contract_number_input.clear()
        self.join_date_input.setText(format_date_text(date.today()))
        self.frequency_input.setCurrentIndex(0)
        self.premium_input.clear()
        self.details_input.clear()


class CustomerDialog(_SubmitDialog):
    """Create a customer, or edit one; contracts listed here are added on save."""

    def __init__(
        self,
        submit: Callable[[CustomerCreate], object],
        customer: Customer | None = None,
        contract_exists: Callable[[str], bool] | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self._submit_payload = submit
        self._contract_exists = contract_exists
        self._pending: list[InsuranceCreate] = []
        self.setWindowTitle("Sửa khách hàng" if customer else "Thêm khách hàng")
        self.resize(560, 760)

        layout = QVBoxLayout(self)
        form = QFormLayout()
        self.full_name_input = QLineEdit()
        self.full_name_input.setPlaceholderText("Nhập họ và tên")
        self.phone_input = QLineEdit()
        self.phone_input.setPlaceholderText("Nhập số điện thoại")
        self.birth_date_input = QLineEdit()
        self.birth_date_input.setPlaceholderText("DD/MM/YYYY")
        self.classification_input = QComboBox()
        for classification in CLASSIFICATIONS:
            self.classification_input.addItem(CLASSIFICATION_LABELS[classification], classification)
        self.classification_input.setCurrentIndex(CLASSIFICATIONS.index("Potential"))
        self.hamlet_input = QLineEdit()
        self.hamlet_input.setPlaceholderText("Nhập ấp/thôn/số nhà")
        self.commune_input = QLineEdit()
        self.district_input = QLineEdit()
        self.province_input = QLineEdit()
        self.occupation_input = QLineEdit()
        self.financial_input = QLineEdit()
        self.family_input = QLineEdit()
        self.meeting_date_input = QLineEdit()
        self.meeting_date_input.setPlaceholderText("DD/MM/YYYY HH:MM")
        self.meeting_notes_input = QPlainTextEdit()
        self.meeting_notes_input.setPlaceholderText("Nhập nội dung cuộc gặp")
        self.meeting_notes_input.setFixedHeight(60)

        form.addRow("Họ tên *", self.full_name_input)
        form.addRow("Số điện thoại *", self.phone_input)
        form.addRow("Ngày sinh *", self.birth_date_input)
        form.addRow("Phân loại", self.classification_input)
        form.addRow("Ấp/Thôn", self.hamlet_input)
        form.addRow("Xã/Phường", self.commune_input)
        form.addRow("Quận/Huyện", self.district_input)
        form.addRow("Tỉnh/Thành phố", self.province_input)
        form.addRow("Nghề nghiệp", self.occupation_input)
        form.addRow("Tình trạng kinh tế", self.financial_input)
        form.addRow("Thông tin gia đình", self.family_input)
        form.addRow("Ngày gặp", self.meeting_date_input)
        form.addRow("Nội dung cuộc gặp", self.meeting_notes_input)
        layout.addLayout(form)

        layout.addWidget(QLabel("Hợp đồng bảo hiểm"))
        self.contracts_table = QTableWidget(0, 3)
        self.contracts_table.setHorizontalHeaderLabels(["Công ty", "Số hợp đồng", "Ngày tham gia"])
        self.contracts_table.horizontalHeader().setStretchLastSection(True)
        layout.addWidget(self.contracts_table)
        self.contract_form = ContractForm()
        layout.addWidget(self.contract_form)
        add_contract_button = QPushButton("Thêm hợp đồng vào danh sách")
        add_contract_button.clicked.connect(self.add_pending_contract)
        layout.addWidget(add_contract_button)

        buttons = QHBoxLayout()
        cancel_button = QPushButton("Hủy")
        cancel_button.clicked.connect(self.reject)
        buttons.addWidget(self._save_button())
        buttons.addWidget(cancel_button)
        layout.addLayout(buttons)

        if customer is not None:
            self._fill(customer)

    def _fill(self, customer: Customer) -> None:
        self.full_name_input.setText(customer.full_name)
        self.phone_input.setText(customer.phone_number)
        self.birth_date_input.setText(format_date_text(customer.date_of_birth))
        self.classification_input.setCurrentIndex(CLASSIFICATIONS.index(customer.classification))
        self.hamlet_input.setText(customer.address.hamlet)
        self.commune_input.setText(customer.address.commune)
        self.district_input.setText(customer.address.district)
        self.province_input.setText(customer.address.province or customer.address.city)
        self.occupation_input.setText(customer.occupation)
        self.financial_input.setText(customer.financial_status)
        self.family_input.setText(customer.family_info)
        for contract in customer.insurance_contracts:
            self._append_contract_row(contract.company, contract.contract_number, contract.join_date)

    def _append_contract_row(self, company: str, contract_number: str, join_date: date) -> None:
        row = self.contracts_table.rowCount()
        self.contracts_table.insertRow(row)
        self.contracts_table.setItem(row, 0, QTableWidgetItem(company))
        self.contracts_table.setItem(row, 1, QTableWidgetItem(contract_number))
        self.contracts_table.setItem(row, 2, QTableWidgetItem(format_date_text(join_date)))

    def add_pending_contract(self) -> None:
        try:
            contract = self.contract_form.payload()
            if not contract.company.strip():
                raise ValueError("Vui lòng chọn công ty bảo hiểm")
            if not contract.contract_number:
                raise ValueError("Vui lòng nhập số hợp đồng")
            if any(item.contract_number == contract.contract_number for item in self._pending):
                raise ValueError("Số hợp đồng này đã được thêm vào danh sách")
            if self._contract_exists and self._contract_exists(contract.contract_number):
                raise ValueError("Số hợp đồng này đã tồn tại trong hệ thống")
        except ValueError as error:
            QMessageBox.warning(self, "Cảnh báo", str(error))
            return
        self._pending.append(contract)
        self._append_contract_row(contract.company, contract.contract_number, contract.join_date)
        self.contract_form.clear()

    def payload(self) -> CustomerCreate:
        return CustomerCreate(
            full_name=self.full_name_input.text(),
            phone_number=self.phone_input.text(),
            date_of_birth=parse_date_text(self.birth_date_input.text(), "ngày sinh"),
            classification=self.classification_input.currentData(),
            address=Address(
                hamlet=self.hamlet_input.text().strip(),
                commune=self.commune_input.text().strip(),
                district=self.district_input.text().strip(),
                province=self.province_input.text().strip(),
            ),
            occupation=self.occupation_input.text(),
            financial_status=self.financial_input.text(),
            family_info=self.family_input.text(),
            meeting_date=parse_optional_datetime_text(self.meeting_date_input.text(), "ngày gặp"),
            meeting_notes=self.meeting_notes_input.toPlainText(),
            contracts=list(self._pending),
        )

    def _submit(self) -> None:
        self._submit_payload(self.payload())


class ContractDialog(_SubmitDialog):
    def __init__(self, submit: Callable[[InsuranceCreate], object], parent: QWidget | None = None):
        super().__init__(parent)
        self._submit_payload = submit
        self.setWindowTitle("Thêm hợp đồng bảo hiểm")
        layout = QVBoxLayout(self)
        self.contract_form = ContractForm()
        layout.addWidget(self.contract_form)
        layout.addWidget(self._save_button())

    def _submit(self) -> None:
        self._submit_payload(self.contract_form.payload())


class MeetingDialog(_SubmitDialog):
    def __init__(self, submit: Callable[[datetime, str], object], parent: QWidget | None = None):
        super().__init__(parent)
        self._submit_meeting = submit
        self.setWindowTitle("Thêm cuộc gặp")
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self.date_input = QLineEdit(format_datetime_text(datetime.now().replace(second=0, microsecond=0)))
        self.date_input.setPlaceholderText("DD/MM/YYYY HH:MM")
        self.notes_input = QPlainTextEdit()
        self.notes_input.setPlaceholderText("Nhập nội dung cuộc gặp")
        form.addRow("Ngày gặp", self.date_input)
        form.addRow("Nội dung", self.notes_input)
        layout.addLayout(form)
        layout.addWidget(self._save_button())

    def _submit(self) -> None:
        meeting_date = parse_optional_datetime_text(self.date_input.text(), "ngày gặp")
        if meeting_date is None:
            raise ValueError("Vui lòng nhập ngày gặp")
        self._submit_meeting(meeting_date, self.notes_input.toPlainText())


class UserDialog(_SubmitDialog):
    def __init__(
        self,
        submit: Callable[[UserCreate], object],
        allowed_roles: tuple[str, ...] = ROLES,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self._submit_payload = submit
        self.setWindowTitle("Thêm nhân viên")
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self.full_name_input = QLineEdit()
        self.email_input = QLineEdit()
        self.phone_input = QLineEdit()
        self.password_input = QLineEdit()
        self.password_input.setEchoMode(QLineEdit.EchoMode.Password)
        self.role_input = QComboBox()
        self.role_input.addItems(list(allowed_roles))
        self.role_input.setCurrentText("Staff")
        form.addRow("Họ tên *", self.full_name_input)
        form.addRow("Email *", self.email_input)
        form.addRow("Số điện thoại", self.phone_input)
        form.addRow("Mật khẩu *", self.password_input)
        form.addRow("Vai trò", self.role_input)
        layout.addLayout(form)
        layout.addWidget(self._save_button("Tạo tài khoản"))

    def _submit(self) -> None:
        self._submit_payload(
            UserCreate(
                full_name=self.full_name_input.text(),
                email=self.email_input.text(),
                password=self.password_input.text(),
                role=self.role_input.currentText(),
                phone_number=self.phone_input.text(),
            )
        )


class LearningDialog(_SubmitDialog):
    def __init__(self, submit: Callable[[LearningContentCreate], object], parent: QWidget | None = None):
        super().__init__(parent)
        self._submit_payload = submit
        self.setWindowTitle("Thêm bài học")
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self.title_input = QLineEdit()
        self.description_input = QLineEdit()
        self.type_input = QComboBox()
        for content_type in CONTENT_TYPES:
            self.type_input.addItem(CONTENT_TYPE_LABELS[content_type], content_type)
        self.url_input = QLineEdit()
        self.url_input.setPlaceholderText("https://")
        self.body_input = QPlainTextEdit()
        form.addRow("Tiêu đề *", self.title_input)
        form.addRow("Mô tả *", self.description_input)
        form.addRow("Loại", self.type_input)
        form.addRow("URL", self.url_input)
        form.addRow("Nội dung", self.body_input)
        layout.addLayout(form)
        layout.addWidget(self._save_button())

    def _submit(self) -> None:
        self._submit_payload(
            LearningContentCreate(
                title=self.title_input.text(),
                description=self.description_input.text(),
                content_type=self.type_input.currentData(),
                url=self.url_input.text(),
                body=self.body_input.toPlainText(),
            )
        )

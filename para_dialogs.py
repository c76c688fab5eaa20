import html

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QFrame, QPushButton,
    QLineEdit, QFileDialog, QComboBox, QCheckBox, QTextBrowser, QMessageBox
)
from PyQt6.QtGui import QFont, QColor, QPalette

from para_settings import (
    DEFAULT_SETTINGS, FIELD_TO_CATEGORY, ROOT_FIELDS, SORT_ORDERS, ParaSettings,
    RootConfig, save_settings, validate_root_set, validate_single_field_change
)

ERROR_COLOR = "#e06c75"


def _section_label(text):
    label = QLabel(text)
    label.setFont(QFont("Arial", 12, QFont.Weight.Bold))
    return label


# --- SETTINGS DIALOG ---

class SettingsDialog(QDialog):
    """
    Edits the PARA folders and archive options. Each folder edit is checked
    against the other three as the user types; Save re-checks the whole set.
    """
    def __init__(self, settings, config_path, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.config_path = config_path
        self.saved_settings = None
        self.setWindowTitle("Settings")
        self.setMinimumWidth(650)
        if parent: self.setStyleSheet(parent.styleSheet())
        main_layout = QVBoxLayout(self)

        # Base directory
        base_group = QFrame(self); base_group.setLayout(QVBoxLayout())
        base_group.layout().addWidget(_section_label("PARA Base Directory"))
        base_row = QHBoxLayout()
        self.base_dir_edit = QLineEdit()
        browse_button = QPushButton("Browse...")
        browse_button.clicked.connect(self.browse_directory)
        base_row.addWidget(self.base_dir_edit); base_row.addWidget(browse_button)
        base_group.layout().addLayout(base_row)
        main_layout.addWidget(base_group)

        # PARA folders
        folders_group = QFrame(self); folders_layout = QGridLayout(folders_group)
        folders_layout.addWidget(_section_label("PARA Folders"), 0, 0, 1, 2)
        self.folder_edits = {}
        self.folder_errors = {}
        for row, field in enumerate(ROOT_FIELDS):
            edit = QLineEdit()
            edit.setPlaceholderText(DEFAULT_SETTINGS[f"{field}_path"])
            error_label = QLabel("")
            error_label.setStyleSheet(f"color: {ERROR_COLOR};")
            error_label.setWordWrap(True)
            edit.textChanged.connect(self.validate_all_fields)
            folders_layout.addWidget(QLabel(f"{FIELD_TO_CATEGORY[field]} folder"), 1 + row * 2, 0)
            folders_layout.addWidget(edit, 1 + row * 2, 1)
            folders_layout.addWidget(error_label, 2 + row * 2, 1)
            self.folder_edits[field] = edit
            self.folder_errors[field] = error_label
        main_layout.addWidget(folders_group)

        # Archive & display options
        options_group = QFrame(self); options_layout = QGridLayout(options_group)
        options_layout.addWidget(_section_label("Archive & Display"), 0, 0, 1, 2)
        self.confirm_checkbox = QCheckBox("Ask for confirmation before archiving")
        self.focus_checkbox = QCheckBox("Show the source folder after archiving")
        options_layout.addWidget(self.confirm_checkbox, 1, 0, 1, 2)
        options_layout.addWidget(self.focus_checkbox, 2, 0, 1, 2)
        self.name_format_edit = QLineEdit()
        self.name_format_edit.setToolTip("Use {{name}} for the project name and YYYY, YY, MM, DD for today's date.")
        options_layout.addWidget(QLabel("Project name format"), 3, 0)
        options_layout.addWidget(self.name_format_edit, 3, 1)
        self.sort_combo = QComboBox()
        self.sort_combo.addItems(SORT_ORDERS)
        options_layout.addWidget(QLabel("Sort items by"), 4, 0)
        options_layout.addWidget(self.sort_combo, 4, 1)
        main_layout.addWidget(options_group)

        # Templates
        templates_group = QFrame(self); templates_layout = QGridLayout(templates_group)
        templates_layout.addWidget(_section_label("Templates"), 0, 0, 1, 2)
        self.templates_folder_edit = QLineEdit()
        templates_layout.addWidget(QLabel("Templates folder"), 1, 0)
        templates_layout.addWidget(self.templates_folder_edit, 1, 1)
        self.template_edits = {}
        for row, field in enumerate(("projects", "areas", "resources")):
            edit = QLineEdit(); edit.setPlaceholderText("No template")
            templates_layout.addWidget(QLabel(f"{FIELD_TO_CATEGORY[field][:-1]} template"), 2 + row, 0)
            templates_layout.addWidget(edit, 2 + row, 1)
            self.template_edits[field] = edit
        main_layout.addWidget(templates_group)

        dialog_buttons_layout = QHBoxLayout()
        dialog_buttons_layout.addStretch()
        cancel_button = QPushButton("Cancel")
        self.save_button = QPushButton("Save & Close")
        self.save_button.setDefault(True)
        dialog_buttons_layout.addWidget(cancel_button)
        dialog_buttons_layout.addWidget(self.save_button)
        main_layout.addLayout(dialog_buttons_layout)

        cancel_button.clicked.connect(self.reject)
        self.save_button.clicked.connect(self.save_and_accept)
        self.load_settings()

    def load_settings(self):
        s = self.settings
        self.base_dir_edit.setText(s.base_directory)
        for field, edit in self.folder_edits.items():
            edit.setText(s.roots.get(field))
        self.confirm_checkbox.setChecked(s.confirm_before_archive)
        self.focus_checkbox.setChecked(s.focus_after_archive)
        self.name_format_edit.setText(s.project_name_format)
        self.sort_combo.setCurrentText(s.sort_order)
        self.templates_folder_edit.setText(s.templates_folder)
        for field, edit in self.template_edits.items():
            edit.setText(s.templates.get(field, ""))
        self.validate_all_fields()

    def browse_directory(self):
        if (directory := QFileDialog.getExistingDirectory(self, "Select PARA Base Directory")):
            self.base_dir_edit.setText(directory)

    def _folder_value(self, field):
        return self.folder_edits[field].text().strip() or DEFAULT_SETTINGS[f"{field}_path"]

    def current_roots(self):
        return RootConfig(*(self._folder_value(f) for f in ROOT_FIELDS))

    def validate_field(self, field):
        """Shows the first conflict of `field` with the other folders; returns the report."""
        report = validate_single_field_change(self._folder_value(field), field, self.current_roots())
        self.folder_errors[field].setText(report.message if report else "")
        return report

    def validate_all_fields(self, _text=None):
        # A conflict involves two fields, so one edit can set or clear the other's label.
        for field in ROOT_FIELDS:
            self.validate_field(field)

    def collect_settings(self):
        values = {
            "base_directory": self.base_dir_edit.text().strip(),
            "confirm_before_archive": self.confirm_checkbox.isChecked(),
            "focus_after_archive": self.focus_checkbox.isChecked(),
            "project_name_format": self.name_format_edit.text(),
            "sort_order": self.sort_combo.currentText(),
            "templates_folder": self.templates_folder_edit.text().strip(),
            "project_template": self.template_edits["projects"].text().strip(),
            "area_template": self.template_edits["areas"].text().strip(),
            "resource_template": self.template_edits["resources"].text().strip(),
        }
        for field in ROOT_FIELDS:
            values[f"{field}_path"] = self._folder_value(field)
        return ParaSettings(**values)

    def save_and_accept(self):
        settings = self.collect_settings()
        report = validate_root_set(settings.roots)
        if report:
            QMessageBox.warning(self, "Invalid PARA Folders", report.message)
            return
        save_settings(settings, self.config_path)
        self.saved_settings = settings
        self.accept()


# --- ARCHIVE CONFIRMATION ---

class ArchiveConfirmDialog(QDialog):
    def __init__(self, item_name, destination, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Archive Item?")
        if parent: self.setStyleSheet(parent.styleSheet())
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel(f'Move "{item_name}" to:'))
        dest_label = QLabel(destination)
        dest_label.setFont(QFont("Consolas", 10))
        dest_label.setObjectName("ArchiveDestPath")
        layout.addWidget(dest_label)

        button_layout = QHBoxLayout()
        button_layout.addStretch()
        cancel_button = QPushButton("Cancel")
        cancel_button.clicked.connect(self.reject)
        self.archive_button = QPushButton("Archive")
        self.archive_button.setDefault(True)
        self.archive_button.clicked.connect(self.accept)
        button_layout.addWidget(cancel_button)
        button_layout.addWidget(self.archive_button)
        layout.addLayout(button_layout)
        self.archive_button.setFocus()


# --- NAME INPUT ---

class NameInputDialog(QDialog):
    """Asks for the name of a new Project, Area or Resource."""
    def __init__(self, title, placeholder, parent=None):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setMinimumWidth(400)
        if parent: self.setStyleSheet(parent.styleSheet())
        layout = QVBoxLayout(self)
        layout.addWidget(_section_label(title))
        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText(placeholder)
        layout.addWidget(self.name_edit)

        button_layout = QHBoxLayout()
        button_layout.addStretch()
        cancel_button = QPushButton("Cancel")
        cancel_button.clicked.connect(self.reject)
        self.create_button = QPushButton("Create")
        self.create_button.setDefault(True)
        self.create_button.setEnabled(False)
        self.create_button.clicked.connect(self.accept)
        button_layout.addWidget(cancel_button)
        button_layout.addWidget(self.create_button)
        layout.addLayout(button_layout)

        self.name_edit.textChanged.connect(lambda text: self.create_button.setEnabled(bool(text.strip())))
        self.name_edit.setFocus()

    def value(self):
        return self.name_edit.text().strip()

    def accept(self):
        if self.value():
            super().accept()


# --- LOG VIEWER ---

TIMESTAMP_COLOR = "#6c7380"
LEVEL_COLORS = {"ERROR": "#b85c5c", "WARNING": "#cda152", "INFO": "#63a37b"}
DEFAULT_LOG_COLOR = "#abb2bf"
_PRE_STYLE = 'style="margin: 0; padding: 2px 5px; white-space: pre-wrap;"'


def log_line_to_html(line):
    """One log line as a <pre> block: dim timestamp, message colored by level."""
    line = html.escape(line, quote=False)
    color = next((c for level, c in LEVEL_COLORS.items() if f"[{level}" in line), DEFAULT_LOG_COLOR)
    # "YYYY-MM-DD HH:MM:SS [LEVEL   ] message": the timestamp is the first 19 characters.
    if len(line) > 23 and line[19] == " ":
        body = (f'<span style="color: {TIMESTAMP_COLOR};">{line[:19]}</span>'
                f'<span style="color: {color};">{line[19:]}</span>')
    else:
        body = f'<span style="color: {color};">{line}</span>'
    return f"<pre {_PRE_STYLE}>{body}</pre>"


class LogViewerDialog(QDialog):
    def __init__(self, logger, parent=None):
        super().__init__(parent)
        self.logger = logger
        self.setWindowTitle("Log Viewer")
        self.setMinimumSize(900, 700)
        if parent: self.setStyleSheet(parent.styleSheet())

        layout = QVBoxLayout(self)
        controls_layout = QHBoxLayout()
        self.date_combo = QComboBox()
        controls_layout.addWidget(QLabel("Select Date:"))
        controls_layout.addWidget(self.date_combo)
        controls_layout.addStretch()
        layout.addLayout(controls_layout)

        self.log_display = QTextBrowser()
        self.log_display.setFont(QFont("Consolas", 10))
        palette = self.log_display.palette()
        palette.setColor(QPalette.ColorRole.Base, QColor("#21252b"))
        self.log_display.setPalette(palette)
        layout.addWidget(self.log_display)

        self.date_combo.currentTextChanged.connect(self.show_date)
        self.date_combo.addItems(self.logger.get_log_dates())

    def show_date(self, date_str):
        if not date_str:
            self.log_display.setHtml("")
            return
        lines = self.logger.get_logs_for_date(date_str).split("\n")
        self.log_display.setHtml("".join(log_line_to_html(line) for line in lines))

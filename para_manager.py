import sys
import os
import subprocess
import traceback
from datetime import datetime
from functools import partial

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
    QListWidget, QListWidgetItem, QStyle, QMessageBox, QMenu, QStatusBar,
    QTabWidget, QTextBrowser, QLabel, QFileDialog
)
from PyQt6.QtGui import QFont
from PyQt6.QtCore import Qt, QThread, pyqtSignal

from para_archive import ArchiveMover
from para_dialogs import ArchiveConfirmDialog, LogViewerDialog, NameInputDialog, SettingsDialog
from para_errors import NotInParaFolderError, ParaError
from para_settings import FIELD_TO_CATEGORY, ROOT_FIELDS, SOURCE_FIELDS, load_settings
from para_sorting import sort_items
from para_storage import LocalVaultStorage
from para_templates import TemplateLibrary, create_para_item
from para_utils import Logger, get_user_data_path

APP_VERSION = "1.0.0"


# --- GLOBAL EXCEPTION HOOK ---
def global_exception_hook(exctype, value, tb, window=None, logger=None):
    traceback_details = "".join(traceback.format_exception(exctype, value, tb))
    if logger:
        logger.error("A fatal, unhandled exception occurred:\n" + traceback_details)
    try:
        with open(get_user_data_path("crash_report.log"), "a", encoding="utf-8") as f:
            f.write(f"\n--- FATAL CRASH AT {datetime.now()} ---\n{traceback_details}")
    except OSError as e:
        print(f"Could not write to crash_report.log: {e}")
    app = QApplication.instance() or QApplication(sys.argv)
    error_box = QMessageBox()
    error_box.setIcon(QMessageBox.Icon.Critical)
    error_box.setWindowTitle("Application Error")
    error_box.setText("A critical error occurred and the application must close.")
    error_box.setInformativeText("The error has been logged to 'crash_report.log'.")
    error_box.setDetailedText(
        f"Error Type: {exctype.__name__}\nError Message: {value}\n\nTraceback:\n{traceback_details}")
    if window:
        error_box.setStyleSheet(window.styleSheet())
    text_edit = error_box.findChild(QTextBrowser)
    if text_edit:
        text_edit.setFont(QFont("Consolas", 10))
    error_box.exec()
    sys.exit(1)


# --- HELPER & WORKER CLASSES ---
class Worker(QThread):
    """Runs `func(**kwargs)` off the GUI thread and reports back through signals."""
    result = pyqtSignal(object)
    error = pyqtSignal(str)
    def __init__(self, func, **kwargs):
        super().__init__()
        self.func = func
        self.kwargs = kwargs
    def run(self):
        try:
            self.result.emit(self.func(**self.kwargs))
        except Exception:
            self.error.emit(traceback.format_exc())


class CategoryList(QListWidget):
    def __init__(self, field, main_window):
        super().__init__()
        self.field = field
        self.main_window = main_window
        self.setSpacing(2)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(lambda pos: self.main_window.show_context_menu(self, pos))
        self.itemDoubleClicked.connect(lambda item: self.main_window.open_item(item.data(Qt.ItemDataRole.UserRole)))


# --- MAIN WINDOW ---
class ParaFileManager(QMainWindow):
    def __init__(self, logger, config_path):
        super().__init__()
        self.logger = logger
        self.config_path = config_path
        self.setWindowTitle(f"PARA Archive Manager {APP_VERSION}")
        self.setGeometry(100, 100, 1100, 750)

        self.settings = None
        self.storage = None
        self.mover = None
        self.templates = None
        self.category_lists = {}
        self.worker = None

        self.setup_styles()
        self.init_ui()
        self.reload_configuration()
        self.logger.info("Application Started.")

    def setup_styles(self):
        self.setStyleSheet("""
            QWidget { font-size: 10pt; }
            QMainWindow, QDialog { background-color: #282c34; color: #abb2bf; }
            QLabel { color: #abb2bf; }
            QPushButton { background-color: #61afef; color: #282c34; border: none; padding: 8px 16px; border-radius: 4px; font-weight: bold; }
            QPushButton:hover { background-color: #82c0ff; }
            QPushButton:pressed { background-color: #5298d8; }
            QPushButton:disabled { background-color: #3e4451; color: #5c6370; }
            QLineEdit { padding: 6px; border-radius: 4px; border: 1px solid #3e4451; background-color: #21252b; color: #d8dee9; }
            QLineEdit:focus { background-color: #2c313a; border: 1px solid #61afef; }
            QListWidget { background-color: #21252b; border-radius: 5px; border: 1px solid #3e4451; }
            QListWidget::item { color: #d8dee9; padding: 6px; }
            QListWidget::item:hover { background-color: #2c313a; }
            QListWidget::item:selected { background-color: #61afef; color: #282c34; }
            QTabWidget::pane { border: 1px solid #3e4451; }
            QTabBar::tab { background-color: #21252b; color: #abb2bf; padding: 8px 16px; }
            QTabBar::tab:selected { background-color: #61afef; color: #282c34; font-weight: bold; }
            QStatusBar { color: #abb2bf; }
            QComboBox { background-color: #21252b; border: 1px solid #3e4451; padding: 4px; color: #d8dee9; }
            QCheckBox { color: #abb2bf; }
        """)

    def init_ui(self):
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)
        main_layout.setContentsMargins(10, 10, 10, 10)
        main_layout.setSpacing(10)
        self.setStatusBar(QStatusBar(self))
        main_layout.addLayout(self._create_top_bar())

        self.base_dir_label = QLabel("")
        main_layout.addWidget(self.base_dir_label)

        self.category_tabs = QTabWidget()
        for field in ROOT_FIELDS:
            list_widget = CategoryList(field, self)
            self.category_lists[field] = list_widget
            self.category_tabs.addTab(list_widget, FIELD_TO_CATEGORY[field])
        main_layout.addWidget(self.category_tabs)

    def _create_top_bar(self):
        top_bar_layout = QHBoxLayout()
        style = self.style()
        self.new_buttons = {}
        for field in SOURCE_FIELDS:
            label = FIELD_TO_CATEGORY[field][:-1]
            button = QPushButton(f"New {label}")
            button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_FileDialogNewFolder))
            button.clicked.connect(lambda checked, f=field: self.create_item(f))
            top_bar_layout.addWidget(button)
            self.new_buttons[field] = button
        self.archive_file_button = QPushButton("Archive Containing Item...")
        self.archive_file_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_DialogSaveButton))
        self.archive_file_button.setToolTip("Pick any file and archive the Project, Area or Resource it belongs to")
        self.archive_file_button.clicked.connect(self.archive_containing_item)
        top_bar_layout.addWidget(self.archive_file_button)
        top_bar_layout.addStretch(1)

        refresh_button = QPushButton()
        refresh_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
        refresh_button.setToolTip("Refresh")
        refresh_button.clicked.connect(self.refresh_lists)

        settings_button = QPushButton()
        settings_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_ComputerIcon))
        settings_button.setToolTip("Open Settings")
        settings_button.clicked.connect(self.open_settings_dialog)

        log_button = QPushButton()
        log_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_FileDialogDetailedView))
        log_button.setToolTip("View Logs")
        log_button.clicked.connect(self.open_log_viewer)

        top_bar_layout.addWidget(refresh_button)
        top_bar_layout.addWidget(settings_button)
        top_bar_layout.addWidget(log_button)
        return top_bar_layout

    # --- CONFIGURATION ---

    def reload_configuration(self):
        """Loads settings, repairs conflicting PARA folders, and rebuilds the collaborators."""
        self.settings, warning = load_settings(self.config_path, self.logger)
        if warning:
            QMessageBox.warning(self, "Settings Reset", warning)

        base_dir = self.settings.base_directory
        if not base_dir or not os.path.isdir(base_dir):
            self.storage = self.mover = self.templates = None
            self.base_dir_label.setText("No PARA base directory set. Open Settings to choose one.")
            for list_widget in self.category_lists.values(): list_widget.clear()
            for button in self.new_buttons.values(): button.setEnabled(False)
            self.archive_file_button.setEnabled(False)
            self.log_and_show("PARA base directory not set or invalid. Please check settings.", "warn", 10000)
            return

        self.storage = LocalVaultStorage(base_dir, self.logger)
        self.mover = ArchiveMover(self.storage, self.logger)
        self.templates = TemplateLibrary(self.storage, self.settings.templates_folder, self.logger)
        self.base_dir_label.setText(f"Base directory: {os.path.normpath(base_dir)}")
        for button in self.new_buttons.values(): button.setEnabled(True)
        self.archive_file_button.setEnabled(True)
        self.log_and_show(f"Config loaded. Base directory: {base_dir}", "info", 3000)
        self.refresh_lists()

    # --- BACKGROUND TASKS ---

    def run_task(self, task_func, on_success, **kwargs):
        self.logger.info(f"--- 'run_task' called for task: {task_func.__name__} ---")
        if self.worker and self.worker.isRunning():
            self.logger.warn("Task aborted: A previous worker is still running.")
            self.log_and_show("A background task is already running.", "warn")
            return
        self.worker = Worker(task_func, **kwargs)
        self.worker.result.connect(on_success)
        self.worker.error.connect(self.on_task_error)
        self.worker.finished.connect(self.on_task_truly_finished)
        self.worker.start()

    def on_task_error(self, error_message):
        self.logger.error(f"Background task failed: {error_message}", exc_info=False)
        self.log_and_show("A background task failed. See the log for details.", "error", 8000)

    def on_task_truly_finished(self):
        self.worker = None

    def refresh_lists(self):
        if not self.storage:
            return
        self.statusBar().showMessage("Reading PARA folders...")
        self.run_task(self._task_list_items, on_success=self.on_items_listed,
                      storage=self.storage, settings=self.settings)

    def _task_list_items(self, storage, settings):
        """Lists and sorts the top-level items of every PARA folder. Runs in a background thread."""
        listed = {}
        for field in ROOT_FIELDS:
            entries = storage.list_top_level_items(settings.roots.get(field))
            listed[field] = sort_items(entries, settings.sort_order, settings.project_name_format)
        return listed

    def on_items_listed(self, listed):
        style = self.style()
        for field, entries in listed.items():
            list_widget = self.category_lists[field]
            list_widget.clear()
            for entry in entries:
                icon = style.standardIcon(QStyle.StandardPixmap.SP_DirIcon if entry["is_dir"] else QStyle.StandardPixmap.SP_FileIcon)
                item = QListWidgetItem(icon, entry["name"])
                item.setData(Qt.ItemDataRole.UserRole, entry["path"])
                modified = datetime.fromtimestamp(entry["mtime"]).strftime('%Y-%m-%d %H:%M') if entry["mtime"] else "empty"
                item.setToolTip(f"{entry['path']}\nLast modified: {modified}")
                list_widget.addItem(item)
        self.log_and_show("PARA folders refreshed.", "info", 2000)

    # --- ACTIONS ---

    def show_context_menu(self, list_widget, pos):
        item = list_widget.itemAt(pos)
        if not item: return
        path = item.data(Qt.ItemDataRole.UserRole)
        style = self.style()
        menu = QMenu()
        menu.addAction(style.standardIcon(QStyle.StandardPixmap.SP_DialogOkButton), "Open", lambda: self.open_item(path))
        menu.addAction(style.standardIcon(QStyle.StandardPixmap.SP_DirIcon), "Show in File Explorer", lambda: self.show_in_explorer(path))
        if list_widget.field in SOURCE_FIELDS:
            menu.addSeparator()
            menu.addAction(style.standardIcon(QStyle.StandardPixmap.SP_DialogSaveButton), "Archive it", lambda: self.archive_item(path, list_widget.field))
        menu.exec(list_widget.viewport().mapToGlobal(pos))

    def confirm_archive(self, item_name, destination):
        return bool(ArchiveConfirmDialog(item_name, destination, self).exec())

    def archive_item(self, path, source_field):
        if not self.mover: return
        confirm = self.confirm_archive if self.settings.confirm_before_archive else None
        try:
            destination = self.mover.archive(path, self.settings.roots, confirm=confirm)
        except (ParaError, OSError) as e:
            self.logger.error(f"Failed to archive '{path}': {e}", exc_info=True)
            self.log_and_show(f"Failed to archive \"{os.path.basename(path)}\": {e}", "error", 10000)
            QMessageBox.warning(self, "Archive Failed", f"Failed to archive \"{os.path.basename(path)}\": {e}")
            return
        if destination is None:
            return
        self.log_and_show(f"Archived \"{os.path.basename(path)}\" to {destination}", "info", 8000)
        if self.settings.focus_after_archive:
            self.category_tabs.setCurrentWidget(self.category_lists[source_field])
        self.refresh_lists()

    def archive_containing_item(self):
        if not self.mover: return
        base_dir = self.storage.base_directory
        file_path, _ = QFileDialog.getOpenFileName(self, "Select a File to Archive", base_dir)
        if not file_path: return
        rel_path = os.path.relpath(file_path, base_dir)
        try:
            if rel_path.startswith(".."):
                raise NotInParaFolderError(f'"{file_path}" is outside the PARA base directory')
            item_path = self.mover.resolve_top_level_item(rel_path, self.settings.roots)
            source_field, _ = self.mover.find_owner_root(item_path, self.settings.roots)
        except ParaError as e:
            self.log_and_show(str(e), "warn", 8000)
            QMessageBox.information(self, "Nothing to Archive", str(e))
            return
        self.archive_item(item_path, source_field)

    def create_item(self, field):
        if not self.storage: return
        label = FIELD_TO_CATEGORY[field][:-1]
        dialog = NameInputDialog(f"New {label}", f"{label} name", self)
        if not dialog.exec(): return
        try:
            path = create_para_item(field, dialog.value(), self.settings, self.storage, self.templates, self.logger)
        except (ParaError, OSError) as e:
            self.logger.error(f"Failed to create {label.lower()} '{dialog.value()}': {e}", exc_info=True)
            QMessageBox.warning(self, f"Could Not Create {label}", str(e))
            return
        self.log_and_show(f"Created {path}", "info", 5000)
        self.category_tabs.setCurrentWidget(self.category_lists[field])
        self.refresh_lists()

    def open_item(self, path):
        full_path = self.storage.absolute_path(path) if self.storage else path
        try:
            if sys.platform == "win32": os.startfile(full_path)
            elif sys.platform == "darwin": subprocess.run(["open", full_path])
            else: subprocess.run(["xdg-open", full_path])
            self.logger.info(f"Opening: {full_path}")
        except OSError:
            self.logger.error(f"Failed to open {full_path}", exc_info=True)

    def show_in_explorer(self, path):
        full_path = self.storage.absolute_path(path) if self.storage else path
        try:
            if sys.platform == "win32": subprocess.run(["explorer", "/select,", os.path.normpath(full_path)])
            elif sys.platform == "darwin": subprocess.run(["open", "-R", full_path])
            else: subprocess.run(["xdg-open", os.path.dirname(full_path)])
            self.logger.info(f"Showing in explorer: {full_path}")
        except OSError:
            self.logger.error(f"Failed to show {full_path}", exc_info=True)

    def open_settings_dialog(self):
        dialog = SettingsDialog(self.settings, self.config_path, self)
        if dialog.exec():
            self.log_and_show("Settings saved. Reloading configuration...", "info", 2000)
            self.reload_configuration()

    def open_log_viewer(self):
        LogViewerDialog(self.logger, self).exec()

    def log_and_show(self, message, level="info", duration=5000):
        self.statusBar().showMessage(message, duration)
        if level == "info": self.logger.info(message)
        elif level == "warn": self.logger.warn(message)
        elif level == "error": self.logger.error(message)


# --- EXECUTION BLOCK ---
def main():
    app = QApplication(sys.argv)
    try:
        main_logger = Logger(filename=get_user_data_path("para_archiver.log"))
        window = ParaFileManager(main_logger, get_user_data_path("config.json"))
        sys.excepthook = partial(global_exception_hook, window=window, logger=main_logger)
        window.show()
        return app.exec()
    except Exception as e:
        # Fallback crash handler in case the main logger fails
        print(f"A fatal error occurred during application startup: {e}")
        traceback.print_exc()
        try:
            with open(get_user_data_path("crash_report.log"), "a", encoding="utf-8") as f:
                f.write(f"\n--- STARTUP CRASH AT {datetime.now()} ---\n")
                traceback.print_exc(file=f)
        except OSError as log_e:
            print(f"Additionally, could not write to crash_report.log: {log_e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

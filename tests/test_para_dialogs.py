import json
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

from para_dialogs import (
    LEVEL_COLORS, ArchiveConfirmDialog, LogViewerDialog, NameInputDialog, SettingsDialog, log_line_to_html
)
from para_settings import ParaSettings


@pytest.fixture(scope="session")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture
def no_message_boxes(monkeypatch):
    shown = []
    monkeypatch.setattr(QtWidgets.QMessageBox, "warning", lambda *args: shown.append(args))
    return shown


def test_settings_dialog_shows_current_values(qapp, tmp_path):
    settings = ParaSettings(base_directory="/vault", areas_path="Life/Areas", sort_order="name")
    dialog = SettingsDialog(settings, str(tmp_path / "config.json"))
    assert dialog.base_dir_edit.text() == "/vault"
    assert dialog.folder_edits["areas"].text() == "Life/Areas"
    assert dialog.sort_combo.currentText() == "name"
    assert all(label.text() == "" for label in dialog.folder_errors.values())


def test_conflicting_folder_is_flagged_while_typing(qapp, tmp_path):
    dialog = SettingsDialog(ParaSettings(), str(tmp_path / "config.json"))
    dialog.folder_edits["areas"].setText("Projects/Sub")
    assert "Areas folder cannot be nested with Projects folder" in dialog.folder_errors["areas"].text()
    dialog.folder_edits["areas"].setText("Areas")
    assert dialog.folder_errors["areas"].text() == ""


def test_both_sides_of_a_conflict_follow_each_edit(qapp, tmp_path):
    dialog = SettingsDialog(ParaSettings(), str(tmp_path / "config.json"))
    dialog.folder_edits["areas"].setText("Projects/Sub")
    assert "Projects folder cannot be nested with Areas folder" in dialog.folder_errors["projects"].text()
    assert dialog.folder_errors["areas"].text() != ""
    dialog.folder_edits["projects"].setText("Work")
    assert dialog.folder_errors["projects"].text() == ""
    assert dialog.folder_errors["areas"].text() == ""


def test_conflicts_loaded_from_settings_are_flagged(qapp, tmp_path):
    settings = ParaSettings()
    settings.roots.archive = "Projects/Archive"
    dialog = SettingsDialog(settings, str(tmp_path / "config.json"))
    assert dialog.folder_errors["projects"].text() != ""
    assert dialog.folder_errors["archive"].text() != ""


def test_save_refuses_conflicting_folders(qapp, tmp_path, no_message_boxes):
    config_path = tmp_path / "config.json"
    dialog = SettingsDialog(ParaSettings(), str(config_path))
    dialog.folder_edits["resources"].setText("Areas")
    dialog.save_and_accept()
    assert len(no_message_boxes) == 1
    assert dialog.saved_settings is None
    assert not config_path.exists()


def test_save_writes_the_config(qapp, tmp_path):
    config_path = tmp_path / "config.json"
    dialog = SettingsDialog(ParaSettings(), str(config_path))
    dialog.folder_edits["projects"].setText("Work/Projects")
    dialog.folder_edits["archive"].setText("")
    dialog.confirm_checkbox.setChecked(False)
    dialog.save_and_accept()
    stored = json.loads(config_path.read_text(encoding="utf-8"))
    assert stored["projects_path"] == "Work/Projects"
    assert stored["archive_path"] == "Archive"
    assert stored["confirm_before_archive"] is False
    assert dialog.saved_settings.roots.projects == "Work/Projects"


def test_name_input_needs_a_name(qapp):
    dialog = NameInputDialog("New Project", "Project name")
    assert not dialog.create_button.isEnabled()
    dialog.name_edit.setText("   ")
    assert not dialog.create_button.isEnabled()
    dialog.name_edit.setText("  Launch ")
    assert dialog.create_button.isEnabled()
    assert dialog.value() == "Launch"


def test_archive_confirm_dialog_accepts(qapp):
    dialog = ArchiveConfirmDialog("MyProject", "Archive/Projects/MyProject")
    dialog.archive_button.click()
    assert dialog.result() == QtWidgets.QDialog.DialogCode.Accepted


def test_log_viewer_lists_dates(qapp, logger):
    dialog = LogViewerDialog(logger)
    assert dialog.date_combo.count() == 1
    assert "Logger initialized." in dialog.log_display.toPlainText()


def test_log_lines_are_escaped_and_colored_by_level():
    rendered = log_line_to_html("2024-03-15 10:00:00 [ERROR   ] Failed to archive <Launch>")
    assert "&lt;Launch&gt;" in rendered
    assert f'color: {LEVEL_COLORS["ERROR"]};">' in rendered
    assert ">2024-03-15 10:00:00</span>" in rendered
    assert f'color: {LEVEL_COLORS["INFO"]}' not in rendered


def test_traceback_lines_keep_the_default_color():
    rendered = log_line_to_html("Traceback (most recent call last):")
    assert "#abb2bf" in rendered

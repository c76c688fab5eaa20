from datetime import date

import pytest

from para_errors import InvalidItemNameError, ItemExistsError
from para_settings import ParaSettings
from para_templates import TemplateLibrary, create_para_item, validate_item_name

CREATED_ON = date(2024, 3, 5)


@pytest.fixture
def templates(storage, logger):
    storage.files["Templates/project.md"] = "# {{title}}\nStarted {{date}}\n"
    return TemplateLibrary(storage, "/Templates/", logger)


def test_template_path(templates):
    assert templates.template_path("project") == "Templates/project.md"
    assert templates.template_path("project.md") == "Templates/project.md"


def test_render_fills_placeholders(templates):
    assert templates.render_initial_content("Launch", "project", CREATED_ON) == "# Launch\nStarted 2024-03-05\n"


def test_render_without_template(templates):
    assert templates.render_initial_content("Launch", "", CREATED_ON) == "# Launch\n"


def test_missing_template_falls_back_and_warns(templates, logger):
    assert templates.render_initial_content("Launch", "nope", CREATED_ON) == "# Launch\n"
    assert "Template 'nope' could not be read" in open(logger.log_file, encoding="utf-8").read()


@pytest.mark.parametrize("raw", ["", "   ", None, "a/b", "a\\b", ".", ".."])
def test_invalid_names(raw):
    with pytest.raises(InvalidItemNameError):
        validate_item_name(raw)


def test_names_are_trimmed():
    assert validate_item_name("  Launch  ") == "Launch"


def test_create_project_uses_the_name_format(storage, templates, logger):
    settings = ParaSettings(project_name_format="YYYY-MM-DD {{name}}", project_template="project")
    path = create_para_item("projects", " Launch ", settings, storage, templates, logger, CREATED_ON)
    assert path == "Projects/2024-03-05 Launch"
    assert "Projects/2024-03-05 Launch" in storage.folders
    assert storage.files["Projects/2024-03-05 Launch/2024-03-05 Launch.md"] == "# Launch\nStarted 2024-03-05\n"
    assert "Created project 'Projects/2024-03-05 Launch'" in open(logger.log_file, encoding="utf-8").read()


def test_create_area_ignores_the_project_format(storage, templates, logger):
    settings = ParaSettings(project_name_format="YYYY-MM-DD {{name}}")
    assert create_para_item("areas", "Finance", settings, storage, templates, logger, CREATED_ON) == "Areas/Finance"
    assert storage.files["Areas/Finance/Finance.md"] == "# Finance\n"


def test_create_creates_a_missing_root(storage, templates, logger):
    settings = ParaSettings(resources_path="Library/Resources")
    assert create_para_item("resources", "Recipes", settings, storage, templates, logger) == "Library/Resources/Recipes"
    assert {"Library", "Library/Resources", "Library/Resources/Recipes"} <= storage.folders


def test_existing_item_is_not_replaced(storage, templates, logger):
    with pytest.raises(ItemExistsError):
        create_para_item("projects", "MyProject", ParaSettings(), storage, templates, logger)
    assert storage.files["Projects/MyProject/MyProject.md"] == "# MyProject\n"


def test_cannot_create_in_the_archive(storage, templates, logger):
    with pytest.raises(InvalidItemNameError):
        create_para_item("archive", "Old", ParaSettings(), storage, templates, logger)

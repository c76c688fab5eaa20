from datetime import date

from para_errors import InvalidItemNameError, ItemExistsError
from para_paths import join_path, normalize_path
from para_settings import FIELD_TO_CATEGORY, SOURCE_FIELDS
from para_sorting import format_item_name

TEMPLATE_EXTENSION = ".md"


class TemplateLibrary:
    """Reads note templates from a folder in the store and fills in their placeholders."""

    def __init__(self, storage, templates_folder, logger):
        self.storage = storage
        self.templates_folder = normalize_path(templates_folder)
        self.logger = logger

    def template_path(self, template_id):
        name = template_id if template_id.endswith(TEMPLATE_EXTENSION) else template_id + TEMPLATE_EXTENSION
        return join_path(self.templates_folder, name)

    def render_initial_content(self, name, template_id, on_date=None):
        on_date = on_date or date.today()
        default = f"# {name}\n"
        if not template_id:
            return default
        path = self.template_path(template_id)
        try:
            text = self.storage.read_text(path)
        except OSError as e:
            self.logger.warn(f"Template '{template_id}' could not be read from {path}: {e}. Using a blank note.")
            return default
        return (text.replace("{{name}}", name)
                    .replace("{{title}}", name)
                    .replace("{{date}}", on_date.isoformat()))


def validate_item_name(raw_name):
    name = (raw_name or "").strip()
    if not name:
        raise InvalidItemNameError("Name cannot be empty")
    if "/" in name or "\\" in name:
        raise InvalidItemNameError(f'Name "{name}" cannot contain a path separator')
    if name in (".", ".."):
        raise InvalidItemNameError(f'"{name}" is not a valid name')
    return name


def create_para_item(field, raw_name, settings, storage, templates, logger, on_date=None):
    """
    Creates a new top-level folder in the Projects, Areas or Resources folder
    with an index note named after it. Returns the new folder's path.
    """
    if field not in SOURCE_FIELDS:
        raise InvalidItemNameError(f"New items cannot be created in the {FIELD_TO_CATEGORY.get(field, field)} folder")
    on_date = on_date or date.today()
    name = validate_item_name(raw_name)
    if field == "projects":
        folder_name = validate_item_name(format_item_name(settings.project_name_format, name, on_date))
    else:
        folder_name = name

    root = normalize_path(settings.roots.get(field))
    folder_path = join_path(root, folder_name)
    if storage.exists(folder_path):
        raise ItemExistsError(f'"{folder_path}" already exists')

    storage.ensure_directory_exists(root)
    storage.create_folder(folder_path)
    content = templates.render_initial_content(name, settings.templates.get(field), on_date)
    storage.write_text(join_path(folder_path, folder_name + TEMPLATE_EXTENSION), content)
    logger.info(f"Created {FIELD_TO_CATEGORY[field][:-1].lower()} '{folder_path}'")
    return folder_path

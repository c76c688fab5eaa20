import json
import os

from para_paths import find_first_nested_pair, normalize_path

# --- PARA ROOTS ---

# Category order matters: validate_root_set always names the earlier category first.
PARA_CATEGORIES = ("Projects", "Areas", "Resources", "Archive")
ROOT_FIELDS = ("projects", "areas", "resources", "archive")
SOURCE_FIELDS = ROOT_FIELDS[:3]
FIELD_TO_CATEGORY = dict(zip(ROOT_FIELDS, PARA_CATEGORIES))

SORT_ORDERS = ("last_modified", "name_date", "name")

DEFAULT_SETTINGS = {
    "base_directory": "",
    "projects_path": "Projects",
    "areas_path": "Areas",
    "resources_path": "Resources",
    "archive_path": "Archive",
    "confirm_before_archive": True,
    "focus_after_archive": True,
    "project_name_format": "{{name}}",
    "sort_order": "last_modified",
    "templates_folder": "Templates",
    "project_template": "",
    "area_template": "",
    "resource_template": "",
}


class RootConfig:
    """The four PARA root folders, addressed by field name."""

    def __init__(self, projects="Projects", areas="Areas", resources="Resources", archive="Archive"):
        self.projects = projects
        self.areas = areas
        self.resources = resources
        self.archive = archive

    def get(self, field):
        if field not in ROOT_FIELDS:
            raise KeyError(f"Unknown PARA folder field: {field}")
        return getattr(self, field)

    def items(self):
        """(category, normalized path) pairs in category order."""
        return [(FIELD_TO_CATEGORY[f], normalize_path(self.get(f))) for f in ROOT_FIELDS]

    def source_paths(self):
        return [normalize_path(self.get(f)) for f in SOURCE_FIELDS]

    def to_dict(self):
        return {f: self.get(f) for f in ROOT_FIELDS}

    def __eq__(self, other):
        return isinstance(other, RootConfig) and self.items() == other.items()

    def __repr__(self):
        return f"RootConfig({', '.join(f'{f}={self.get(f)!r}' for f in ROOT_FIELDS)})"


class ConflictReport:
    def __init__(self, field, other_field, path, other_path, kind):
        self.field = field
        self.other_field = other_field
        self.path = path
        self.other_path = other_path
        self.kind = kind # "same" or "nested"

    @property
    def message(self):
        relation = "be the same as" if self.kind == "same" else "be nested with"
        return (f'{self.field} folder cannot {relation} {self.other_field} folder '
                f'("{self.path}" and "{self.other_path}")')

    def __str__(self):
        return self.message

    def __repr__(self):
        return f"ConflictReport({self.message!r})"


# --- VALIDATION ---

def _conflict(name_a, path_a, name_b, path_b):
    a, b = normalize_path(path_a), normalize_path(path_b)
    return ConflictReport(name_a, name_b, a, b, "same" if a == b else "nested")


def validate_root_set(roots):
    """
    Checks every pair of PARA folders for equality or nesting.
    `roots` is a RootConfig or an ordered list of (category, path) pairs.
    Returns the first ConflictReport found, or None when the set is valid.
    """
    named = roots.items() if isinstance(roots, RootConfig) else list(roots)
    pair = find_first_nested_pair([path for _, path in named])
    if pair is None:
        return None
    i, j = pair
    return _conflict(named[i][0], named[i][1], named[j][0], named[j][1])


def validate_single_field_change(candidate, field, roots):
    """
    Validates a new value for one field against the other three current values.
    The field's own current value is never consulted.
    """
    if field not in ROOT_FIELDS:
        raise KeyError(f"Unknown PARA folder field: {field}")
    name = FIELD_TO_CATEGORY[field]
    for other in ROOT_FIELDS:
        if other == field:
            continue
        report = validate_root_set([(name, candidate), (FIELD_TO_CATEGORY[other], roots.get(other))])
        if report:
            return report
    return None


# --- PERSISTED SETTINGS ---

class ParaSettings:
    """Everything the settings page edits. Passed around explicitly, never global."""

    def __init__(self, **values):
        merged = dict(DEFAULT_SETTINGS)
        merged.update({k: v for k, v in values.items() if k in DEFAULT_SETTINGS})
        self.base_directory = merged["base_directory"]
        self.roots = RootConfig(
            merged["projects_path"], merged["areas_path"],
            merged["resources_path"], merged["archive_path"],
        )
        self.confirm_before_archive = bool(merged["confirm_before_archive"])
        self.focus_after_archive = bool(merged["focus_after_archive"])
        self.project_name_format = merged["project_name_format"] or DEFAULT_SETTINGS["project_name_format"]
        self.sort_order = merged["sort_order"] if merged["sort_order"] in SORT_ORDERS else "last_modified"
        self.templates_folder = merged["templates_folder"]
        self.templates = {
            "projects": merged["project_template"],
            "areas": merged["area_template"],
            "resources": merged["resource_template"],
        }
        self._fill_blank_roots()

    def _fill_blank_roots(self):
        for field in ROOT_FIELDS:
            value = str(self.roots.get(field) or "").strip()
            setattr(self.roots, field, value or DEFAULT_SETTINGS[f"{field}_path"])

    def reset_roots(self):
        self.roots = RootConfig()

    def to_dict(self):
        return {
            "base_directory": self.base_directory,
            "projects_path": self.roots.projects,
            "areas_path": self.roots.areas,
            "resources_path": self.roots.resources,
            "archive_path": self.roots.archive,
            "confirm_before_archive": self.confirm_before_archive,
            "focus_after_archive": self.focus_after_archive,
            "project_name_format": self.project_name_format,
            "sort_order": self.sort_order,
            "templates_folder": self.templates_folder,
            "project_template": self.templates["projects"],
            "area_template": self.templates["areas"],
            "resource_template": self.templates["resources"],
        }


def save_settings(settings, config_path):
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=4)


def load_settings(config_path, logger):
    """
    load -> validate -> repair -> persist.
    Returns (settings, warning); warning is None unless the stored PARA folders
    conflicted and were reset to their defaults.
    """
    data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warn(f"Config load error: {e}. Using defaults.")
            data = {}
        if not isinstance(data, dict):
            logger.warn(f"Config file {config_path} does not hold an object. Using defaults.")
            data = {}

    settings = ParaSettings(**data)
    report = validate_root_set(settings.roots)
    if report is None:
        return settings, None

    warning = f"Invalid settings detected ({report.message}), resetting PARA folders to defaults"
    logger.warn(warning)
    settings.reset_roots()
    save_settings(settings, config_path)
    return settings, warning

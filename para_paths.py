import re

# --- PATH NORMALIZATION ---

_SLASH_RUN = re.compile(r"/+")


def normalize_path(path):
    """Canonical form: forward slashes, no repeats, no leading/trailing slash."""
    if not path:
        return ""
    path = _SLASH_RUN.sub("/", path.replace("\\", "/"))
    return path.strip("/")


def get_parent_path(path):
    """Returns the parent path, or an empty string for root-level items."""
    normalized = normalize_path(path)
    last_slash = normalized.rfind("/")
    if last_slash == -1:
        return ""
    return normalized[:last_slash]


def get_item_name(path):
    normalized = normalize_path(path)
    last_slash = normalized.rfind("/")
    if last_slash == -1:
        return normalized
    return normalized[last_slash + 1:]


def join_path(*parts):
    # The storage root is "", so it must not contribute a leading slash.
    return "/".join(p for p in (normalize_path(part) for part in parts) if p)


# --- HIERARCHY RELATIONS ---

def is_top_level_child(item_path, root_path):
    """True when the item sits directly inside root_path (never the root itself)."""
    return get_parent_path(item_path) == normalize_path(root_path)


def is_nested_path(path_a, path_b):
    """
    True when one path is an ancestor of the other, or both are the same.
    The prefix test is anchored on a segment boundary so that
    "ProjectsExtra" is not treated as living inside "Projects".
    """
    a = normalize_path(path_a)
    b = normalize_path(path_b)
    if a == b:
        return True
    return b.startswith(a + "/") or a.startswith(b + "/")


def find_first_nested_pair(paths):
    """Returns the first (i, j) with i < j whose paths are nested, or None."""
    for i in range(len(paths)):
        for j in range(i + 1, len(paths)):
            if is_nested_path(paths[i], paths[j]):
                return i, j
    return None


def find_top_level_item(path, root_paths):
    """
    Walks up from `path` (starting with the path itself) and returns the first
    ancestor that is a direct child of one of `root_paths`.
    """
    current = normalize_path(path)
    while current:
        if any(is_top_level_child(current, root) for root in root_paths):
            return current
        current = get_parent_path(current)
    return None

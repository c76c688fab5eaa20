import threading
from datetime import date

from para_errors import NotInParaFolderError, TooManyCollisionsError
from para_paths import find_top_level_item, get_item_name, is_top_level_child, join_path, normalize_path
from para_settings import FIELD_TO_CATEGORY, ROOT_FIELDS

MAX_COLLISION_ATTEMPTS = 1000
MAX_MOVE_ATTEMPTS = 3


# --- DESTINATION NAMING ---

def generate_archive_destination(target_dir, base_name, existing_paths, current_date):
    """
    Returns the first free destination for `base_name` inside `target_dir`:
    the bare name, then the name with an "(Archived YYYY-MM-DD)" suffix, then
    that suffix followed by a counter starting at 2. `base_name` is used as
    given; only `target_dir` is normalized.
    """
    target_dir = normalize_path(target_dir)

    def child(name):
        return f"{target_dir}/{name}" if target_dir else name

    base_dest = child(base_name)
    if base_dest not in existing_paths:
        return base_dest

    dated_name = f"{base_name} (Archived {current_date.isoformat()})"
    dated_dest = child(dated_name)
    if dated_dest not in existing_paths:
        return dated_dest

    counter = 2
    while True:
        counter_dest = child(f"{dated_name} ({counter})")
        if counter_dest not in existing_paths:
            return counter_dest
        counter += 1
        if counter > MAX_COLLISION_ATTEMPTS:
            raise TooManyCollisionsError("Too many archive collisions - please clean up your archive folder")


# --- ARCHIVE MOVER ---

class ArchivePlan:
    def __init__(self, item_path, category, source_root, archive_subdir, destination):
        self.item_path = item_path
        self.item_name = get_item_name(item_path)
        self.category = category
        self.source_root = source_root
        self.archive_subdir = archive_subdir
        self.destination = destination


class ArchiveMover:
    """
    Moves a top-level PARA item into Archive/<source folder name>/ without ever
    overwriting an existing item. All durable I/O goes through `storage`.
    """

    def __init__(self, storage, logger, today=date.today):
        self.storage = storage
        self.logger = logger
        self.today = today
        self._archiving = set()
        self._guard = threading.Lock()

    def find_owner_root(self, item_path, roots):
        """Returns (field, normalized root path) for the root that directly contains the item."""
        for field in ROOT_FIELDS:
            root = normalize_path(roots.get(field))
            if is_top_level_child(item_path, root):
                if field == "archive":
                    raise NotInParaFolderError(f'"{normalize_path(item_path)}" is already in the Archive folder')
                return field, root
        raise NotInParaFolderError(
            f'"{normalize_path(item_path)}" is not a top-level item of the Projects, Areas or Resources folder')

    def resolve_top_level_item(self, path, roots):
        """Returns the top-level Project, Area or Resource that contains `path` (or is `path`)."""
        item_path = find_top_level_item(path, roots.source_paths())
        if item_path is None:
            raise NotInParaFolderError(
                f'"{normalize_path(path)}" is not inside a Project, Area or Resource')
        return item_path

    def plan_archive(self, item_path, roots):
        item_path = normalize_path(item_path)
        field, source_root = self.find_owner_root(item_path, roots)
        archive_root = normalize_path(roots.get("archive"))
        archive_subdir = join_path(archive_root, get_item_name(source_root))
        self.storage.ensure_directory_exists(archive_subdir)
        existing = self.storage.list_sibling_names(archive_subdir)
        destination = generate_archive_destination(archive_subdir, get_item_name(item_path), existing, self.today())
        return ArchivePlan(item_path, FIELD_TO_CATEGORY[field], source_root, archive_subdir, destination)

    def archive(self, item_path, roots, confirm=None):
        """
        Archives `item_path` and returns its final destination. Returns None when
        the same path is already being archived or `confirm` declines.
        """
        key = normalize_path(item_path)
        with self._guard:
            if key in self._archiving:
                self.logger.warn(f"Archive already in progress for '{key}', ignoring request.")
                return None
            self._archiving.add(key)
        try:
            plan = self.plan_archive(key, roots)
            if confirm is not None and not confirm(plan.item_name, plan.destination):
                self.logger.info(f"Archive of '{key}' cancelled by user.")
                return None
            destination = self._move_with_retry(plan)
            if destination != plan.destination:
                self.logger.warn(f"Archived '{key}' to '{destination}' (path changed due to conflict)")
            else:
                self.logger.info(f"Archived '{key}' to '{destination}'")
            return destination
        finally:
            with self._guard:
                self._archiving.discard(key)

    def _move_with_retry(self, plan):
        # Every move failure is treated as a possible collision the snapshot
        # missed (stale listing, case-insensitive filesystem).
        destination = plan.destination
        failed = set()
        for attempt in range(1, MAX_MOVE_ATTEMPTS + 1):
            try:
                self.storage.move(plan.item_path, destination)
                return destination
            except Exception as e:
                if attempt == MAX_MOVE_ATTEMPTS:
                    self.logger.error(f"Failed to move '{plan.item_path}' to '{destination}' after {attempt} attempts: {e}")
                    raise
                self.logger.warn(f"Move of '{plan.item_path}' to '{destination}' failed ({e}), retrying with a new name.")
                failed.add(destination)
                existing = set(self.storage.list_sibling_names(plan.archive_subdir)) | failed
                destination = generate_archive_destination(plan.archive_subdir, plan.item_name, existing, self.today())

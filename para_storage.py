import errno
import os

from para_errors import StorageError
from para_paths import get_item_name, join_path, normalize_path


class LocalVaultStorage:
    """
    Storage collaborator backed by the local filesystem. Every path it takes or
    returns is a normalized path relative to `base_directory`.
    """

    def __init__(self, base_directory, logger):
        self.base_directory = os.path.normpath(base_directory)
        self.logger = logger

    def absolute_path(self, path):
        normalized = normalize_path(path)
        if not normalized:
            return self.base_directory
        return os.path.join(self.base_directory, *normalized.split("/"))

    # --- QUERIES ---

    def exists(self, path):
        return os.path.lexists(self.absolute_path(path))

    def is_directory(self, path):
        return os.path.isdir(self.absolute_path(path))

    def list_sibling_names(self, directory):
        """Normalized paths of everything directly inside `directory` (empty if it is missing)."""
        abs_dir = self.absolute_path(directory)
        if not os.path.isdir(abs_dir):
            return set()
        return {join_path(directory, name) for name in os.listdir(abs_dir)}

    def folder_last_modified(self, path):
        """Latest mtime of any file below `path`, or 0 when it holds no files."""
        max_mtime = 0
        for root, _, files in os.walk(self.absolute_path(path)):
            for name in files:
                try:
                    max_mtime = max(max_mtime, os.stat(os.path.join(root, name)).st_mtime)
                except (FileNotFoundError, PermissionError) as e:
                    self.logger.warn(f"Could not access file while computing last modified time: {name} - {e}")
        return max_mtime

    def list_top_level_items(self, root):
        """Entries for the direct children of `root`, as used by the sorter."""
        entries = []
        for path in self.list_sibling_names(root):
            if get_item_name(path).startswith("."):
                continue
            abs_path = self.absolute_path(path)
            try:
                is_dir = self.is_directory(path)
                mtime = self.folder_last_modified(path) if is_dir else os.stat(abs_path).st_mtime
            except (FileNotFoundError, PermissionError) as e:
                self.logger.warn(f"Could not access item during listing: {path} - {e}")
                continue
            entries.append({"path": path, "name": get_item_name(path), "is_dir": is_dir, "mtime": mtime})
        return entries

    def read_text(self, path):
        with open(self.absolute_path(path), "r", encoding="utf-8") as f:
            return f.read()

    # --- MUTATIONS ---

    def ensure_directory_exists(self, directory):
        """Creates `directory` and any missing parents; a file in the way is an error."""
        normalized = normalize_path(directory)
        abs_dir = self.absolute_path(normalized)
        if os.path.lexists(abs_dir):
            if not os.path.isdir(abs_dir):
                raise StorageError(f'"{normalized}" exists but is not a folder')
            return

        segments = [s for s in normalized.split("/") if s]
        for i in range(1, len(segments) + 1):
            parent_path = "/".join(segments[:i])
            abs_parent = self.absolute_path(parent_path)
            if not os.path.lexists(abs_parent):
                os.mkdir(abs_parent)
                self.logger.info(f"Created folder: {parent_path}")
            elif not os.path.isdir(abs_parent):
                raise StorageError(
                    f'Cannot create folder "{normalized}": intermediate path "{parent_path}" exists but is not a folder')

    def create_folder(self, path):
        os.mkdir(self.absolute_path(path))
        self.logger.info(f"Created folder: {normalize_path(path)}")

    def write_text(self, path, content):
        # "x" refuses to overwrite an existing note.
        with open(self.absolute_path(path), "x", encoding="utf-8") as f:
            f.write(content)

    def move(self, source_path, destination_path):
        """
        Renames within the same volume. Never overwrites: an existing destination,
        including a case variant on a case-insensitive filesystem, is an error.
        """
        abs_source = self.absolute_path(source_path)
        abs_dest = self.absolute_path(destination_path)
        if os.path.lexists(abs_dest):
            raise FileExistsError(errno.EEXIST, "Destination already exists", normalize_path(destination_path))
        os.rename(abs_source, abs_dest)

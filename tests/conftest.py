from datetime import date

import pytest

from para_errors import StorageError
from para_paths import get_parent_path, normalize_path
from para_settings import RootConfig
from para_utils import Logger

ARCHIVE_DAY = date(2024, 3, 15)


class FakeStorage:
    """In-memory storage collaborator with failure injection."""

    def __init__(self, folders=(), files=None, case_insensitive=False):
        self.folders = {normalize_path(f) for f in folders}
        self.files = {normalize_path(k): v for k, v in (files or {}).items()}
        self.case_insensitive = case_insensitive
        self.move_failures = []
        self.move_calls = []
        self.moves = []
        self.before_move = None

    def _key(self, path):
        return path.lower() if self.case_insensitive else path

    def exists(self, path):
        path = normalize_path(path)
        return any(self._key(p) == self._key(path) for p in self.folders | set(self.files))

    def list_sibling_names(self, directory):
        directory = normalize_path(directory)
        return {p for p in self.folders | set(self.files) if get_parent_path(p) == directory}

    def ensure_directory_exists(self, directory):
        segments = normalize_path(directory).split("/")
        for i in range(1, len(segments) + 1):
            path = "/".join(segments[:i])
            if path in self.files:
                raise StorageError(f'intermediate path "{path}" exists but is not a folder')
            self.folders.add(path)

    def create_folder(self, path):
        self.folders.add(normalize_path(path))

    def read_text(self, path):
        path = normalize_path(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def write_text(self, path, content):
        path = normalize_path(path)
        if self.exists(path):
            raise FileExistsError(path)
        self.files[path] = content

    def move(self, source, destination):
        self.move_calls.append((source, destination))
        if self.before_move:
            self.before_move(source, destination)
        if self.move_failures:
            raise self.move_failures.pop(0)
        if self.exists(destination):
            raise FileExistsError(17, "Destination already exists", destination)
        prefix = source + "/"
        self.folders = {destination + p[len(source):] if p == source or p.startswith(prefix) else p for p in self.folders}
        self.files = {(destination + p[len(source):] if p.startswith(prefix) or p == source else p): v
                      for p, v in self.files.items()}
        self.moves.append((source, destination))


@pytest.fixture
def logger(tmp_path):
    return Logger(str(tmp_path / "para_archiver.log"))


@pytest.fixture
def roots():
    return RootConfig()


@pytest.fixture
def storage():
    return FakeStorage(folders=["Projects", "Projects/MyProject", "Areas", "Areas/Health",
                                "Resources", "Archive"],
                       files={"Projects/MyProject/MyProject.md": "# MyProject\n"})

"""Shared fixtures: an in-memory IO adapter and a collecting diagnostic sink."""

import json

import pytest

from adapters.io_adapter import IOAdapter
from resolver.errors import FetchError
from resolver.warning_system import MemorySink


class FakeIO(IOAdapter):
    """In-memory adapter.

    ``files`` holds the workspace and the ``.deps`` cache; ``remote`` maps the
    exact string passed to ``fetch`` to its content. Every fetch is recorded
    in ``fetched``.
    """

    def __init__(self, files=None, remote=None):
        self.files = dict(files or {})
        self.remote = dict(remote or {})
        self.dirs = set()
        self.fetched = []

    def read_file(self, path):
        if path not in self.files:
            raise FetchError(path, "file not found")
        return self.files[path]

    def write_file(self, path, content):
        self.files[path] = content

    def set_file(self, path, content):
        self.files[path] = content

    def exists(self, path):
        if path in self.files or path in self.dirs:
            return True
        prefix = path.rstrip("/") + "/"
        return any(name.startswith(prefix) for name in self.files)

    def mkdir(self, path):
        self.dirs.add(path)

    def fetch(self, url):
        self.fetched.append(url)
        if url not in self.remote:
            raise FetchError(url, status=404)
        return self.remote[url]

    def add_json(self, path, data, remote=False):
        """Store ``data`` as JSON in ``files`` (or ``remote``)."""
        target = self.remote if remote else self.files
        target[path] = json.dumps(data)


@pytest.fixture
def fake_io():
    """Empty in-memory workspace with no remote content."""
    return FakeIO()


@pytest.fixture
def sink():
    """Collects diagnostics for assertions."""
    return MemorySink()

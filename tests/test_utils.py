"""
Shared helpers for the runtimedeps tests: an in-memory HTTP session and archive builders.
"""

import io
import zipfile
from typing import Dict, List, Optional, Union

import requests
import tokenize_rt

from runtimedeps.runtime_dependency_models import direct

ENGINE_URL = "https://files.example.org/engine/tokenize_rt-test.whl"


class FakeResponse:
    """
    Stands in for a requests.Response, optionally failing part way through the body.
    """

    def __init__(
        self,
        content: bytes = b"",
        status_code: int = 200,
        error: Optional[Exception] = None,
    ):
        self.content = content
        self.status_code = status_code
        self.error = error
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def iter_content(self, chunk_size: int = 1024):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]
        if self.error is not None:
            raise self.error

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.closed = True
        return False


Route = Union[bytes, FakeResponse, Exception]


class FakeSession:
    """
    Stands in for a requests.Session, serving canned responses by URL.

    Unknown URLs answer 404. Every requested URL is recorded in ``requests``.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.headers: Dict[str, str] = {}
        self.requests: List[str] = []

    def get(self, url: str, timeout=None, allow_redirects: bool = True, stream: bool = False):
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(b"", status_code=404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(route)


class RecordingLoader:
    """
    Registration target that records the paths it is given, in order.
    """

    def __init__(self):
        self.paths: List[str] = []

    def add_path(self, path: str) -> bool:
        if path in self.paths:
            return False
        self.paths.append(path)
        return True


def build_archive(files: Dict[str, Union[str, bytes]], directories: List[str] = ()) -> bytes:
    """
    Build an in-memory zip archive from a mapping of member names to contents.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for directory in directories:
            archive.writestr(directory.rstrip("/") + "/", b"")
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def engine_archive() -> bytes:
    """
    An archive holding the tokenize_rt module of the test environment.
    """
    with open(tokenize_rt.__file__, "rb") as f:
        return build_archive({"tokenize_rt.py": f.read()})


def engine_dependencies():
    return [direct("tokenize-rt", "test", ENGINE_URL, priority=-1)]

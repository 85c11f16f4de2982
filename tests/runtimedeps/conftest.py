import pytest

from runtimedeps.runtime_dependency_relocation import DependencyRelocator
from runtimedeps.runtimedeps_config import RuntimeDepsConfig
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger
from tests.test_utils import ENGINE_URL, FakeSession, engine_archive, engine_dependencies

REPOSITORY = "https://repo.example.org/maven2/"


@pytest.fixture
def logger():
    return RuntimeDepsLogger()


@pytest.fixture
def session():
    return FakeSession({ENGINE_URL: engine_archive()})


@pytest.fixture
def statuses():
    return []


@pytest.fixture
def config(tmp_path, statuses):
    return RuntimeDepsConfig(
        directory=str(tmp_path / "artifacts"),
        timeout=1000,
        repositories=[REPOSITORY],
        status_handler=statuses.append,
        relocation_dependencies=engine_dependencies(),
    )


@pytest.fixture
def fresh_engine(monkeypatch):
    """Forget any rewrite engine bootstrapped by an earlier test."""
    monkeypatch.setattr(DependencyRelocator, "_engine", None)

"""
Configuration parameters for runtimedeps.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import TypeAdapter

from runtimedeps.runtime_dependency_models import Artifact, BaseArtifact, Status
from runtimedeps.runtimedeps_settings import MAVEN_CENTRAL, RuntimeDepsSettings

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib


def _ignore_status(status: Status) -> None:
    pass


def normalize_repository(repository: str) -> str:
    return repository if repository.endswith("/") else repository + "/"


@dataclass
class RuntimeDepsConfig:
    """
    Configuration parameters for a runtimedeps pipeline.

    ``timeout`` is in milliseconds and bounds every request and download.
    ``repositories`` is an ordered priority list; earlier repositories are tried first.
    """

    directory: str = field(default_factory=RuntimeDepsSettings.get_artifact_directory)
    timeout: int = 5000
    repositories: List[str] = field(default_factory=lambda: [MAVEN_CENTRAL])
    delete_on_relocate: bool = True
    status_handler: Callable[[Status], None] = _ignore_status
    relocation_dependencies: Optional[List[BaseArtifact]] = None

    def __post_init__(self):
        repositories = []
        for repository in self.repositories:
            repository = normalize_repository(repository)
            if repository not in repositories:
                repositories.append(repository)
        self.repositories = repositories
        if self.relocation_dependencies is not None:
            adapter = TypeAdapter(Artifact)
            self.relocation_dependencies = [
                d if isinstance(d, BaseArtifact) else adapter.validate_python(d)
                for d in self.relocation_dependencies
            ]

    def add_repositories(self, *repositories: str) -> "RuntimeDepsConfig":
        for repository in repositories:
            repository = normalize_repository(repository)
            if repository not in self.repositories:
                self.repositories.append(repository)
        return self

    @classmethod
    def from_dict(cls, env: Dict[str, Any]):
        """
        Create a RuntimeDepsConfig instance from a dictionary
        """
        return cls(**{k: v for k, v in env.items() if k in inspect.signature(cls).parameters})

    @classmethod
    def from_toml(cls, path: str) -> "RuntimeDepsConfig":
        """
        Create a RuntimeDepsConfig from the ``[runtimedeps]`` table of a TOML file.
        """
        with open(path, "rb") as f:
            toml_dict = tomllib.load(f)

        return cls.from_dict(toml_dict.get("runtimedeps", {}))

"""
Runtime dependency models.

This package provides the Pydantic data models describing the artifacts an
application requests at run time, and the manifests that declare them.
"""

from .artifacts import (
    DEFAULT_EXTENSION,
    DEFAULT_PRIORITY,
    Artifact,
    BaseArtifact,
    CoordinateArtifact,
    DirectArtifact,
    Relocation,
    Status,
    coordinate,
    direct,
)
from .runtime_dependencies import RuntimeDependenciesConfig

__all__ = [
    # Artifacts
    "DEFAULT_EXTENSION",
    "DEFAULT_PRIORITY",
    "Artifact",
    "BaseArtifact",
    "CoordinateArtifact",
    "DirectArtifact",
    "Relocation",
    "Status",
    "coordinate",
    "direct",
    # Manifests
    "RuntimeDependenciesConfig",
]

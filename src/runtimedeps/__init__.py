"""
runtimedeps acquires the artifacts an application declares at run time: it resolves
them in Maven-layout repositories or downloads them from a URL, optionally relocates
their modules under a private prefix, and makes them importable ahead of the host's
own modules.
"""

from . import runtime_deps
from .runtime_dependency_models import (
    CoordinateArtifact,
    DirectArtifact,
    Relocation,
    Status,
    coordinate,
    direct,
)
from .runtimedeps_exceptions import (
    DownloadFailure,
    LoadFailure,
    RelocationFailure,
    ResolveFailure,
    RuntimeDepsException,
)

RuntimeDeps = runtime_deps.RuntimeDeps

__all__ = [
    "RuntimeDeps",
    "CoordinateArtifact",
    "DirectArtifact",
    "Relocation",
    "Status",
    "coordinate",
    "direct",
    "DownloadFailure",
    "LoadFailure",
    "RelocationFailure",
    "ResolveFailure",
    "RuntimeDepsException",
]

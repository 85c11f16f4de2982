"""
Pydantic data models for the artifacts an application requests at run time.

An artifact is identified either by repository coordinates (group, artifact, version)
or by a direct URL. Both variants share the acquisition state that the pipeline
mutates while a run is in progress: the cache file name and the relocated flag.
"""

import abc
import enum
from typing import Annotated, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_PRIORITY = 1000
DEFAULT_EXTENSION = "whl"
FLOATING_SUFFIX = "-SNAPSHOT"
RELOCATED_SUFFIX = "-relocated"


class Status(str, enum.Enum):
    """Status values emitted to the status handler, in order, during a run."""

    STARTING = "starting"
    DOWNLOADING = "downloading"
    RELOCATING = "relocating"
    LOADING = "loading"
    FINISHED = "finished"
    FAILED = "failed"


class Relocation(BaseModel):
    """
    A single rewrite rule, moving every module under ``from_prefix`` to ``to_prefix``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_prefix: str = Field(..., alias="from", description="Dotted module prefix to rewrite")
    to_prefix: str = Field(..., alias="to", description="Dotted module prefix to rewrite to")

    @classmethod
    def of(cls, from_prefix: str, to_prefix: str) -> "Relocation":
        return cls(from_prefix=_unescape(from_prefix), to_prefix=_unescape(to_prefix))

    def __str__(self) -> str:
        return f"{self.from_prefix} -> {self.to_prefix}"


class BaseArtifact(BaseModel):
    """
    Fields shared by every artifact variant.

    Identity fields are frozen once the model is built; ``file_name`` and ``relocated``
    are acquisition state and change while a run is in progress.
    """

    model_config = ConfigDict(populate_by_name=True)

    priority: int = Field(DEFAULT_PRIORITY, description="Lower values are acquired and loaded first")
    extension: str = Field(DEFAULT_EXTENSION, frozen=True, description="Archive extension")
    relocations: Set[Relocation] = Field(default_factory=set)
    file_name: str = Field("", alias="fileName", description="Name of the cache file in the working directory")
    relocated: bool = False

    @model_validator(mode="after")
    def _default_file_name(self) -> "BaseArtifact":
        if not self.file_name:
            self.file_name = self.canonical_file_name
        return self

    @property
    @abc.abstractmethod
    def identifier(self) -> str:
        """Artifact id or name, the first part of the cache file name."""

    @property
    def canonical_file_name(self) -> str:
        return f"{self.identifier}-{self.version}.{self.extension}"

    @property
    def relocated_file_name(self) -> str:
        """
        Name of the shadow file produced by relocating this artifact.
        """
        stem = self.canonical_file_name[: -len(f".{self.extension}")]
        return f"{stem}{RELOCATED_SUFFIX}.{self.extension}"

    def add_relocations(self, *relocations: Relocation) -> "BaseArtifact":
        self.relocations.update(relocations)
        return self

    def relocation_mapping(self) -> dict:
        return {r.from_prefix: r.to_prefix for r in sorted(self.relocations, key=lambda r: r.from_prefix)}


class CoordinateArtifact(BaseArtifact):
    """
    An artifact located by repository coordinates.
    """

    kind: Literal["coordinate"] = "coordinate"
    group_id: str = Field(..., alias="groupId", frozen=True)
    artifact_id: str = Field(..., alias="artifactId", frozen=True)
    version: str = Field(..., frozen=True)

    @property
    def identifier(self) -> str:
        return self.artifact_id

    @property
    def is_floating(self) -> bool:
        return self.version.endswith(FLOATING_SUFFIX)

    @property
    def base_version(self) -> str:
        """Version with the floating suffix removed."""
        if self.is_floating:
            return self.version[: -len(FLOATING_SUFFIX)]
        return self.version

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


class DirectArtifact(BaseArtifact):
    """
    An artifact downloaded straight from a URL.
    """

    kind: Literal["direct"] = "direct"
    name: str = Field(..., frozen=True)
    version: str = Field(..., frozen=True)
    url: str = Field(..., frozen=True)

    @property
    def identifier(self) -> str:
        return self.name

    def __str__(self) -> str:
        return f"{self.name}:{self.version}:{self.url}"


Artifact = Annotated[Union[CoordinateArtifact, DirectArtifact], Field(discriminator="kind")]


def _unescape(value: str) -> str:
    # "org\.example" lets callers keep ids away from their own relocation tooling
    return value.replace("\\.", ".")


def coordinate(
    group_id: str,
    artifact_id: str,
    version: str,
    priority: int = DEFAULT_PRIORITY,
    extension: str = DEFAULT_EXTENSION,
    relocations: Optional[Set[Relocation]] = None,
) -> CoordinateArtifact:
    return CoordinateArtifact(
        group_id=_unescape(group_id),
        artifact_id=_unescape(artifact_id),
        version=version,
        priority=priority,
        extension=extension,
        relocations=set(relocations or ()),
    )


def direct(
    name: str,
    version: str,
    url: str,
    priority: int = DEFAULT_PRIORITY,
    extension: str = DEFAULT_EXTENSION,
    relocations: Optional[Set[Relocation]] = None,
) -> DirectArtifact:
    return DirectArtifact(
        name=name,
        version=version,
        url=url,
        priority=priority,
        extension=extension,
        relocations=set(relocations or ()),
    )

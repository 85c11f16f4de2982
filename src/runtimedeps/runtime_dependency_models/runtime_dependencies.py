"""
Pydantic data model for dependency manifests.

A manifest declares the artifacts an application wants at run time, together with
the repositories to resolve coordinate artifacts in. Manifests are JSON or TOML:

{
  "_description": "...",
  "repositories": ["https://repo.example.org/releases/"],
  "dependencies": [
    {"kind": "coordinate", "group_id": "org.example", "artifact_id": "lib", "version": "1.0.0"},
    {"kind": "direct", "name": "tool", "version": "2.1", "url": "https://example.org/tool.whl",
     "relocations": [{"from": "tool", "to": "myapp._vendor.tool"}]}
  ]
}
"""

import json
import pathlib
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from runtimedeps.runtime_dependency_models.artifacts import Artifact, BaseArtifact

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

_ARTIFACT_ADAPTER = TypeAdapter(Artifact)


class RuntimeDependenciesConfig(BaseModel):
    """
    Complete dependency manifest.

    ``dependencies`` is kept as raw dictionaries so that every call to
    ``get_dependencies`` builds fresh artifacts; acquisition state is never shared
    between runs.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    description: Optional[str] = Field(None, alias="_description")
    repositories: List[str] = Field(default_factory=list)
    dependencies: List[Dict[str, Any]] = Field(default_factory=list)

    def get_dependencies(self) -> List[BaseArtifact]:
        """
        Build the artifacts declared by this manifest, in document order.
        """
        return [_ARTIFACT_ADAPTER.validate_python(d) for d in self.dependencies]

    @classmethod
    def from_file(cls, path: str) -> "RuntimeDependenciesConfig":
        """
        Load a manifest from a ``.json`` or ``.toml`` file.

        Keys of the configuration table (``directory``, ``timeout``, ...) are kept as
        extra fields and otherwise ignored.
        """
        manifest_path = pathlib.Path(path)
        if manifest_path.suffix == ".toml":
            with open(manifest_path, "rb") as f:
                data = tomllib.load(f)
            # a runtimedeps configuration file may carry the manifest in its own table
            data = data.get("runtimedeps", data)
        else:
            with open(manifest_path, "r") as f:
                data = json.load(f)
        return cls(**data)

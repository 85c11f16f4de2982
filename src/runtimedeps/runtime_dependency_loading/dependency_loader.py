"""
Registers downloaded artifacts with a namespace loader.
"""

import logging
import zipfile
from typing import List

from runtimedeps.runtime_dependency_config.config_manager import DependencyConfigManager
from runtimedeps.runtime_dependency_models import BaseArtifact
from runtimedeps.runtimedeps_exceptions import LoadFailure
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger


class DependencyLoader:
    """
    Turns the cache files of artifacts into namespace registrations.

    ``namespace_loader`` is anything with an ``add_path(path)`` method; it is usually
    a NamespaceLoader.
    """

    def __init__(self, config_manager: DependencyConfigManager, namespace_loader, logger: RuntimeDepsLogger):
        self.config_manager = config_manager
        self.namespace_loader = namespace_loader
        self.logger = logger

    def load(self, artifacts: List[BaseArtifact]) -> None:
        """
        Register ``artifacts`` in the order given.

        Raises:
            LoadFailure: at the first artifact that cannot be registered
        """
        for artifact in artifacts:
            self.load_dependency(artifact)

    def load_dependency(self, artifact: BaseArtifact) -> None:
        path = self.config_manager.path_of(artifact)
        if not path.is_file():
            raise LoadFailure(f"Cannot load {artifact}, {path} does not exist")
        if not zipfile.is_zipfile(path):
            raise LoadFailure(f"Cannot load {artifact}, {path} is not an importable archive")

        try:
            added = self.namespace_loader.add_path(str(path.resolve()))
        except (OSError, ValueError) as e:
            raise LoadFailure(f"Cannot load {artifact} from {path}") from e

        if added is False:
            self.logger.log(f"{artifact} is already loaded from {path}", logging.DEBUG)
        else:
            self.logger.log(f"Loaded {artifact} from {path}", logging.INFO)

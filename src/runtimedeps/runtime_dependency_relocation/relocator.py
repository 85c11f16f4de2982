"""
Dependency relocation.

Produces relocated copies of downloaded archives so that they can be imported next
to a different copy of the same library the host may already provide.
"""

import logging
import threading
from typing import List, Optional

from runtimedeps.runtime_dependency_config.config_manager import DependencyConfigManager
from runtimedeps.runtime_dependency_downloader import DependencyDownloader
from runtimedeps.runtime_dependency_loading import DependencyLoader, NamespaceLoader
from runtimedeps.runtime_dependency_models import BaseArtifact, direct
from runtimedeps.runtime_dependency_relocation.engine import ArchiveRelocator
from runtimedeps.runtimedeps_exceptions import RelocationFailure
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger

ENGINE_MODULE = "tokenize_rt"


class DependencyRelocator:
    """
    Rewrites downloaded archives according to their relocation rules.

    The rewrite engine is not a static dependency of runtimedeps. It is acquired with
    the same downloader as every other artifact and registered into a namespace loader
    private to the relocator, once per process, before the first rewrite.
    """

    _engine_lock = threading.Lock()
    _engine = None
    _namespace_loader = NamespaceLoader("runtimedeps-relocator")

    def __init__(
        self,
        config_manager: DependencyConfigManager,
        downloader: DependencyDownloader,
        delete_on_relocate: bool,
        logger: RuntimeDepsLogger,
        dependencies: Optional[List[BaseArtifact]] = None,
    ):
        """
        Args:
            config_manager: Run planner holding the working directory
            downloader: Downloader used to acquire the rewrite engine
            delete_on_relocate: Whether the original archive is deleted once relocated
            logger: Logger for progress and error messages
            dependencies: Artifacts providing the rewrite engine, replacing the defaults
        """
        self.config_manager = config_manager
        self.downloader = downloader
        self.delete_on_relocate = delete_on_relocate
        self.logger = logger
        self.dependencies = dependencies

    def get_dependencies(self) -> List[BaseArtifact]:
        """
        Artifacts providing the rewrite engine, with priorities below every default.
        """
        if self.dependencies is not None:
            return [d.model_copy(deep=True) for d in self.dependencies]
        return [
            direct(
                "tokenize-rt",
                "6.1.0",
                "https://files.pythonhosted.org/packages/py2.py3/t/tokenize-rt/tokenize_rt-6.1.0-py2.py3-none-any.whl",
                priority=-1,
            ),
        ]

    def load_engine(self):
        """
        Acquire, register and import the rewrite engine unless this process already has.

        Raises:
            RelocationFailure: if the engine cannot be acquired or imported
        """
        with DependencyRelocator._engine_lock:
            if DependencyRelocator._engine is None:
                dependencies = sorted(self.get_dependencies(), key=lambda d: d.priority)
                self.logger.log(f"Bootstrapping relocation engine from {len(dependencies)} dependencies", logging.INFO)
                try:
                    self.downloader.download_all(dependencies)
                    DependencyLoader(self.config_manager, self._namespace_loader, self.logger).load(dependencies)
                    DependencyRelocator._engine = self._namespace_loader.import_module(ENGINE_MODULE)
                except Exception as e:
                    self.logger.log(f"Failed to bootstrap relocation engine: {e}", logging.ERROR)
                    raise RelocationFailure(f"Failed to bootstrap relocation engine: {e}") from e
            return DependencyRelocator._engine

    def relocate(self, artifacts: List[BaseArtifact]) -> None:
        """
        Relocate every artifact that has relocation rules, in the order given.

        Raises:
            RelocationFailure: at the first artifact that cannot be relocated
        """
        targets = [a for a in artifacts if a.relocations]
        if not targets:
            return

        engine = self.load_engine()
        for artifact in targets:
            self.relocate_dependency(artifact, engine)

    def relocate_dependency(self, artifact: BaseArtifact, engine) -> None:
        relocated_path = self.config_manager.relocated_path_of(artifact)
        if relocated_path.exists():
            self.logger.log(f"{artifact} is already relocated", logging.DEBUG)
            self.mark_relocated(artifact)
            return

        source_path = self.config_manager.path_of(artifact)
        self.logger.log(f"Relocating {artifact} to {relocated_path}", logging.INFO)
        try:
            ArchiveRelocator(engine, artifact.relocation_mapping()).run(source_path, relocated_path)
            if self.delete_on_relocate:
                source_path.unlink()
        except Exception as e:
            self.logger.log(f"Failed to relocate {artifact}: {e}", logging.ERROR)
            raise RelocationFailure(f"Failed to relocate {artifact}") from e

        self.mark_relocated(artifact)

    @staticmethod
    def mark_relocated(artifact: BaseArtifact) -> None:
        artifact.file_name = artifact.relocated_file_name
        artifact.relocated = True

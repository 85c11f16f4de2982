"""
This file contains the main interface of runtimedeps.

RuntimeDeps acquires the artifacts an application declares at run time and makes
them importable: resolve -> download -> relocate -> register.
"""

import asyncio
import concurrent.futures
import logging
import os
from typing import Optional

import requests

from runtimedeps.runtime_dependency_config import DependencyConfigManager, RunPlan
from runtimedeps.runtime_dependency_downloader import DependencyDownloader
from runtimedeps.runtime_dependency_loading import DependencyLoader, NamespaceLoader
from runtimedeps.runtime_dependency_models import BaseArtifact, RuntimeDependenciesConfig, Status
from runtimedeps.runtime_dependency_relocation import DependencyRelocator
from runtimedeps.runtimedeps_config import RuntimeDepsConfig
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger
from runtimedeps.runtimedeps_settings import VERSION
from runtimedeps.runtimedeps_utils import HttpClient


class RuntimeDeps:
    """
    Acquires artifacts at run time and registers them with a namespace loader.

    A run is submitted to a single background worker, so the caller is never blocked
    and runs on one instance never overlap. Every stage inside a run is sequential.
    Running two instances against the same working directory at the same time is not
    supported.
    """

    @staticmethod
    def get_version() -> str:
        return VERSION

    @classmethod
    def create(cls, config: RuntimeDepsConfig, logger: RuntimeDepsLogger) -> "RuntimeDeps":
        """
        Creates a RuntimeDeps instance registering artifacts with a new NamespaceLoader.

        Args:
            config: The runtimedeps configuration
            logger: The logger to use
        """
        return RuntimeDeps(config, logger)

    def __init__(
        self,
        config: RuntimeDepsConfig,
        logger: RuntimeDepsLogger,
        namespace_loader=None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            config: The runtimedeps configuration
            logger: The logger to use
            namespace_loader: Registration target with an ``add_path(path)`` method;
                a NamespaceLoader installed in ``sys.meta_path`` when omitted
            session: requests session used for every HTTP request
        """
        self.config = config
        self.logger = logger

        os.makedirs(config.directory, exist_ok=True)

        if namespace_loader is None:
            namespace_loader = NamespaceLoader()
            namespace_loader.install()
        self.namespace_loader = namespace_loader

        self.config_manager = DependencyConfigManager(config.directory)
        self.http_client = HttpClient(config.timeout, logger, session)
        self.dependency_downloader = DependencyDownloader(
            self.config_manager, self.http_client, config.repositories, logger
        )
        self.dependency_relocator = DependencyRelocator(
            self.config_manager,
            self.dependency_downloader,
            config.delete_on_relocate,
            logger,
            config.relocation_dependencies,
        )
        self.dependency_loader = DependencyLoader(self.config_manager, namespace_loader, logger)

        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="runtimedeps")

    def _emit(self, status: Status) -> None:
        self.logger.log(f"Status: {status.value}", logging.DEBUG)
        self.config.status_handler(status)

    def is_downloaded(self, artifact: BaseArtifact) -> bool:
        return self.config_manager.is_downloaded(artifact)

    def run(self, *artifacts: BaseArtifact) -> bool:
        """
        Download, relocate and load ``artifacts`` in the calling thread.

        RELOCATING is emitted whenever an artifact with relocation rules has no shadow
        file yet, including when its raw file was cached by an earlier run and nothing
        is downloaded; the shadow is then rebuilt from the cached file.

        Returns:
            True once every artifact is registered

        Raises:
            ResolveFailure, DownloadFailure, RelocationFailure, LoadFailure: from the
                stage that failed; later stages do not run
        """
        try:
            self._emit(Status.STARTING)
            plan = self.config_manager.create_run_plan(artifacts)
            self.logger.log(f"Planned {plan}", logging.INFO)
            self._acquire(plan)

            self._emit(Status.LOADING)
            self.dependency_loader.load(plan.ordered)

            self._emit(Status.FINISHED)
            return True
        except Exception as e:
            self.logger.log(f"Failed to load dependencies: {e}", logging.ERROR)
            self._emit(Status.FAILED)
            raise

    def _acquire(self, plan: RunPlan) -> None:
        if plan.downloads:
            self._emit(Status.DOWNLOADING)
            self.dependency_downloader.download_all(plan.downloads)

        if plan.relocations:
            self._emit(Status.RELOCATING)
            self.dependency_relocator.relocate(plan.relocations)

        # shadow files produced by an earlier run
        for artifact in plan.ordered:
            if artifact.relocations and not artifact.relocated:
                DependencyRelocator.mark_relocated(artifact)

        summary = self.config_manager.get_download_summary()
        self.logger.log(
            f"Download summary: {summary['completed']} completed, "
            f"{summary['failed']} failed, {summary['pending']} pending",
            logging.INFO,
        )

    def load(self, *artifacts: BaseArtifact) -> "concurrent.futures.Future[bool]":
        """
        Download, relocate and load ``artifacts`` in the background.

        Returns:
            A future resolving to True, or failing with the error of the stage that failed
        """
        return self._executor.submit(self.run, *artifacts)

    async def load_async(self, *artifacts: BaseArtifact) -> bool:
        return await asyncio.wrap_future(self.load(*artifacts))

    def load_manifest(self, path: str) -> "concurrent.futures.Future[bool]":
        """
        Load the artifacts declared by a manifest, after adding its repositories.
        """
        manifest = RuntimeDependenciesConfig.from_file(path)
        self.config.add_repositories(*manifest.repositories)
        return self.load(*manifest.get_dependencies())

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "RuntimeDeps":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

"""
Dependency downloader implementation.

Locates and downloads artifacts into the working directory.
"""

import logging
from typing import Callable, Dict, List

from runtimedeps.runtime_dependency_config.config_manager import DependencyConfigManager
from runtimedeps.runtime_dependency_models import BaseArtifact, CoordinateArtifact, DirectArtifact
from runtimedeps.runtime_dependency_resolver import FixedVersionResolver, FloatingVersionResolver
from runtimedeps.runtimedeps_exceptions import DownloadFailure, ResolveFailure
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger
from runtimedeps.runtimedeps_utils import HttpClient


class DependencyDownloader:
    """
    Downloads artifacts into the working directory.

    The URL of an artifact is located by a strategy picked from a registry keyed by
    the artifact's ``kind``: coordinate artifacts go through a resolver, direct
    artifacts carry their URL. Downloads run one after the other in the order given
    and stop at the first failure.
    """

    def __init__(
        self,
        config_manager: DependencyConfigManager,
        http_client: HttpClient,
        repositories: List[str],
        logger: RuntimeDepsLogger,
    ):
        """
        Args:
            config_manager: Run planner holding the working directory and download states
            http_client: Client used to query repositories and fetch files
            repositories: Ordered repository base URLs for coordinate artifacts
            logger: Logger for progress and error messages
        """
        self.config_manager = config_manager
        self.http_client = http_client
        self.logger = logger
        self.fixed_resolver = FixedVersionResolver(repositories, http_client, logger)
        self.floating_resolver = FloatingVersionResolver(repositories, http_client, logger)
        self.locators: Dict[str, Callable[[BaseArtifact], str]] = {
            "coordinate": self._locate_coordinate,
            "direct": self._locate_direct,
        }

    def _locate_coordinate(self, artifact: CoordinateArtifact) -> str:
        if artifact.is_floating:
            return self.floating_resolver.resolve(artifact)
        return self.fixed_resolver.resolve(artifact)

    @staticmethod
    def _locate_direct(artifact: DirectArtifact) -> str:
        return artifact.url

    def locate(self, artifact: BaseArtifact) -> str:
        """
        Find the URL ``artifact`` is downloaded from.

        Raises:
            DownloadFailure: if no strategy handles the artifact's kind
            ResolveFailure: if a coordinate artifact cannot be resolved
        """
        locator = self.locators.get(getattr(artifact, "kind", None))
        if locator is None:
            raise DownloadFailure(f"Could not find downloader for {type(artifact).__name__}")

        url = locator(artifact)
        if not url:
            raise ResolveFailure(f"Cannot resolve dependency: {artifact}")
        return url

    def download_all(self, artifacts: List[BaseArtifact]) -> None:
        """
        Download every artifact whose cache file is missing, in the order given.

        Raises:
            ResolveFailure: if a coordinate artifact cannot be resolved
            DownloadFailure: if a download fails
        """
        self.config_manager.directory.mkdir(parents=True, exist_ok=True)
        self.logger.log(f"Starting download of {len(artifacts)} dependencies", logging.INFO)

        for artifact in artifacts:
            if self.config_manager.path_of(artifact).exists():
                self.logger.log(f"{artifact} is already downloaded", logging.DEBUG)
                continue
            self.download_dependency(artifact)

    def download_dependency(self, artifact: BaseArtifact) -> None:
        """
        Download a single artifact to its cache path.
        """
        self.config_manager.mark_download_started(artifact)
        target_path = self.config_manager.path_of(artifact)
        try:
            url = self.locate(artifact)
            self.logger.log(f"Downloading {artifact} from {url}", logging.INFO)
            self.http_client.download(url, target_path)
            self._verify_download(artifact)
        except (ResolveFailure, DownloadFailure) as e:
            error_msg = f"Failed to download {artifact}: {e.message}"
            self.logger.log(error_msg, logging.ERROR)
            self.config_manager.mark_download_completed(artifact, success=False, error_message=error_msg)
            raise

        self.config_manager.mark_download_completed(artifact, success=True)
        self.logger.log(f"Successfully downloaded {artifact} to {target_path}", logging.INFO)

    def _verify_download(self, artifact: BaseArtifact) -> None:
        """
        Reject empty downloads so that they are not mistaken for cached artifacts later.
        """
        target_path = self.config_manager.path_of(artifact)
        if target_path.stat().st_size == 0:
            target_path.unlink()
            raise DownloadFailure(f"Downloaded file is empty: {target_path}")

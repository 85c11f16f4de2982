"""
Dependency run planning.

Orders the artifacts of a run, decides which of them still have to be acquired
based on what the working directory already holds, and records the acquisition
state of every artifact while the run is in progress.
"""

import pathlib
from typing import Dict, List, Optional, Sequence

from runtimedeps.runtime_dependency_models import BaseArtifact


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class DependencyState:
    """
    Current state of a dependency.

    Tracks whether a dependency has been downloaded and where it's located.
    """

    def __init__(
            self,
            dependency_key: str,
            download_status: str,
            downloaded_path: Optional[str] = None,
            error_message: Optional[str] = None,
    ):
        """
        Initialize dependency state.

        Args:
            dependency_key: Unique key for the dependency
            download_status: Current download status
            downloaded_path: Path where dependency was downloaded
            error_message: Error message if download failed
        """
        self.dependency_key = dependency_key
        self.download_status = download_status
        self.downloaded_path = downloaded_path
        self.error_message = error_message

    def is_downloaded(self) -> bool:
        """Check if the dependency has been successfully downloaded."""
        return self.download_status == DownloadStatus.COMPLETED

    def __repr__(self) -> str:
        return (
            f"DependencyState(key={self.dependency_key}, "
            f"status={self.download_status}, path={self.downloaded_path})"
        )


class RunPlan:
    """
    The artifacts of one run, in acquisition order, and the subset still to download.
    """

    def __init__(
        self,
        ordered: List[BaseArtifact],
        downloads: List[BaseArtifact],
        relocations: List[BaseArtifact],
    ):
        """
        Args:
            ordered: Every artifact of the run, by priority
            downloads: Artifacts whose cache file and shadow file are both missing
            relocations: Artifacts with relocation rules whose shadow file is missing
        """
        self.ordered = ordered
        self.downloads = downloads
        self.relocations = relocations

    def __repr__(self) -> str:
        return f"RunPlan(ordered={len(self.ordered)}, downloads={len(self.downloads)}, relocations={len(self.relocations)})"


class DependencyConfigManager:
    """
    Plans runs against a working directory and tracks per-artifact acquisition state.

    The working directory is the only source of truth for "already acquired": an
    artifact counts as acquired when its cache file exists, or when it requests
    relocation and its shadow file exists.
    """

    def __init__(self, directory: str):
        """
        Args:
            directory: The working directory holding fetched and relocated files
        """
        self.directory = pathlib.Path(directory)
        self.dependency_states: Dict[str, DependencyState] = {}

    def path_of(self, artifact: BaseArtifact) -> pathlib.Path:
        return self.directory / artifact.file_name

    def relocated_path_of(self, artifact: BaseArtifact) -> pathlib.Path:
        return self.directory / artifact.relocated_file_name

    def is_relocated(self, artifact: BaseArtifact) -> bool:
        return bool(artifact.relocations) and self.relocated_path_of(artifact).exists()

    def is_downloaded(self, artifact: BaseArtifact) -> bool:
        return self.is_relocated(artifact) or self.path_of(artifact).exists()

    def create_run_plan(self, artifacts: Sequence[BaseArtifact]) -> RunPlan:
        """
        Order ``artifacts`` by priority and find the ones that still need fetching.

        The sort is stable, so artifacts sharing a priority keep their input order.
        Acquisition states of earlier runs are discarded.
        """
        self.dependency_states = {}
        ordered = sorted(artifacts, key=lambda a: a.priority)
        downloads = [a for a in ordered if not self.is_downloaded(a)]
        relocations = [a for a in ordered if a.relocations and not self.is_relocated(a)]
        for artifact in downloads:
            self.dependency_states[str(artifact)] = DependencyState(str(artifact), DownloadStatus.PENDING)
        return RunPlan(ordered, downloads, relocations)

    def mark_download_started(self, artifact: BaseArtifact) -> None:
        self.dependency_states[str(artifact)] = DependencyState(str(artifact), DownloadStatus.IN_PROGRESS)

    def mark_download_completed(
        self, artifact: BaseArtifact, success: bool = True, error_message: Optional[str] = None
    ) -> None:
        """
        Mark the download of an artifact as completed or failed.

        Args:
            artifact: The artifact whose download finished
            success: Whether the download was successful
            error_message: Why the download failed
        """
        status = DownloadStatus.COMPLETED if success else DownloadStatus.FAILED
        self.dependency_states[str(artifact)] = DependencyState(
            dependency_key=str(artifact),
            download_status=status,
            downloaded_path=str(self.path_of(artifact)) if success else None,
            error_message=None if success else (error_message or "Download failed"),
        )

    def get_dependency_states(self) -> Dict[str, DependencyState]:
        return self.dependency_states

    def get_dependency_state(self, dep_key: str) -> Optional[DependencyState]:
        return self.dependency_states.get(dep_key)

    def get_download_summary(self) -> dict:
        """
        Get a summary of download results.

        Returns:
            Dictionary with counts of completed, failed, and pending downloads
        """
        states = self.dependency_states.values()
        completed = sum(1 for state in states if state.is_downloaded())
        failed = sum(1 for state in states if state.download_status == DownloadStatus.FAILED)
        pending = sum(
            1 for state in states
            if state.download_status in (DownloadStatus.PENDING, DownloadStatus.IN_PROGRESS)
        )
        return {
            "completed": completed,
            "failed": failed,
            "pending": pending,
            "total": completed + failed + pending,
        }

"""
Resolvers turn a coordinate artifact into the URL it can be downloaded from.

Two strategies are provided:

1. FixedVersionResolver checks the standard repository layout of every configured
   repository, in order, and returns the first candidate that answers.
2. FloatingVersionResolver reads the snapshot metadata document of a floating version
   and computes the URL of the latest timestamped build.
"""

import abc
import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from runtimedeps.runtime_dependency_models import CoordinateArtifact
from runtimedeps.runtimedeps_exceptions import ResolveFailure
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger
from runtimedeps.runtimedeps_utils import HttpClient

METADATA_DOCUMENT = "maven-metadata.xml"


class RepositoryResolver(abc.ABC):
    """
    Shared behaviour of the resolvers: candidate generation over the configured
    repositories and a one-by-one check of those candidates.
    """

    def __init__(self, repositories: List[str], http_client: HttpClient, logger: RuntimeDepsLogger):
        self.repositories = repositories
        self.http_client = http_client
        self.logger = logger

    @staticmethod
    def artifact_directory(repository: str, artifact: CoordinateArtifact) -> str:
        """
        Directory of ``artifact``'s version in ``repository``, without a trailing slash.
        """
        return "%s%s/%s/%s" % (
            repository,
            artifact.group_id.replace(".", "/"),
            artifact.artifact_id,
            artifact.version,
        )

    @abc.abstractmethod
    def resolve(self, artifact: CoordinateArtifact) -> str:
        """Return the URL ``artifact`` is downloaded from, or raise ResolveFailure."""


class FixedVersionResolver(RepositoryResolver):
    """
    Resolves artifacts with an immutable version.
    """

    def candidate_urls(self, artifact: CoordinateArtifact) -> List[str]:
        return [
            "%s/%s-%s.%s" % (
                self.artifact_directory(repository, artifact),
                artifact.artifact_id,
                artifact.version,
                artifact.extension,
            )
            for repository in self.repositories
        ]

    def resolve(self, artifact: CoordinateArtifact) -> str:
        """
        Returns:
            URL of the first repository that serves the artifact

        Raises:
            ResolveFailure: if no repository serves the artifact
        """
        for url in self.candidate_urls(artifact):
            if self.http_client.exists(url):
                self.logger.log(f"Resolved {artifact} to {url}", logging.INFO)
                return url

        raise ResolveFailure(f"Cannot resolve dependency: {artifact}")


class FloatingVersionResolver(RepositoryResolver):
    """
    Resolves artifacts whose version floats, through the metadata document published
    next to the builds of that version.
    """

    def candidate_urls(self, artifact: CoordinateArtifact) -> List[str]:
        return [
            "%s/%s" % (self.artifact_directory(repository, artifact), METADATA_DOCUMENT)
            for repository in self.repositories
        ]

    def fetch_metadata(self, artifact: CoordinateArtifact) -> Optional[Tuple[str, bytes]]:
        """
        Returns:
            The URL and body of the first metadata document found, or None
        """
        for url in self.candidate_urls(artifact):
            data = self.http_client.get_bytes(url)
            if data is not None:
                return url, data
        return None

    @staticmethod
    def parse_snapshot(data: bytes) -> Tuple[Optional[str], Optional[str]]:
        """
        Extract the ``timestamp`` and ``buildNumber`` of the ``snapshot`` section.
        """
        # ElementTree neither fetches external entities nor expands external DTDs
        root = ET.fromstring(data)
        snapshot = next(root.iter("snapshot"), None)
        if snapshot is None:
            return None, None
        return snapshot.findtext("timestamp"), snapshot.findtext("buildNumber")

    def resolve(self, artifact: CoordinateArtifact) -> str:
        """
        Returns:
            URL of the timestamped build named by the metadata document

        Raises:
            ResolveFailure: if the version does not float, no repository serves the
                metadata document, or the document lacks the snapshot fields
        """
        if not artifact.is_floating:
            raise ResolveFailure(
                f"Cannot resolve {artifact} as a floating version, its version does not float"
            )

        metadata = self.fetch_metadata(artifact)
        if metadata is None:
            raise ResolveFailure(f"Cannot resolve dependency: {artifact}")
        metadata_url, data = metadata

        try:
            timestamp, build_number = self.parse_snapshot(data)
        except ET.ParseError as e:
            raise ResolveFailure(f"Cannot resolve dependency: {artifact}") from e

        if not timestamp or not build_number:
            raise ResolveFailure(
                f"Cannot resolve dependency: {artifact}, metadata at {metadata_url} has no snapshot build"
            )

        base_url = metadata_url[: -len("/" + METADATA_DOCUMENT)]
        url = "%s/%s-%s-%s-%s.%s" % (
            base_url,
            artifact.artifact_id,
            artifact.base_version,
            timestamp.strip(),
            build_number.strip(),
            artifact.extension,
        )
        self.logger.log(f"Resolved {artifact} to {url}", logging.INFO)
        return url

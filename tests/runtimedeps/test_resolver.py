"""
Tests for the fixed and floating version resolvers.
"""

import pytest
import requests

from runtimedeps.runtime_dependency_models import coordinate
from runtimedeps.runtime_dependency_resolver import FixedVersionResolver, FloatingVersionResolver, RepositoryResolver
from runtimedeps.runtimedeps_exceptions import ResolveFailure
from runtimedeps.runtimedeps_utils import HttpClient
from tests.test_utils import FakeResponse, FakeSession

REPO_A = "https://a.example.org/maven2/"
REPO_B = "https://b.example.org/maven2/"

SNAPSHOT_METADATA = b"""<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>org.example</groupId>
  <artifactId>foo</artifactId>
  <version>1.0-SNAPSHOT</version>
  <versioning>
    <snapshot>
      <timestamp>20240101.010101</timestamp>
      <buildNumber>7</buildNumber>
    </snapshot>
    <lastUpdated>20240101010101</lastUpdated>
  </versioning>
</metadata>
"""


def make_client(session, logger):
    return HttpClient(1000, logger, session)


class TestFixedVersionResolver:
    """Tests for FixedVersionResolver."""

    def test_candidate_urls_follow_repository_layout(self, logger):
        resolver = FixedVersionResolver([REPO_A], make_client(FakeSession(), logger), logger)
        artifact = coordinate("org.example.group", "lib", "1.2.3")

        assert resolver.candidate_urls(artifact) == [
            "https://a.example.org/maven2/org/example/group/lib/1.2.3/lib-1.2.3.whl"
        ]

    def test_falls_back_to_later_repository(self, logger):
        url_b = f"{REPO_B}org/example/lib/1.0/lib-1.0.whl"
        session = FakeSession({url_b: b"archive"})
        resolver = FixedVersionResolver([REPO_A, REPO_B], make_client(session, logger), logger)

        assert resolver.resolve(coordinate("org.example", "lib", "1.0")) == url_b
        assert session.requests == [f"{REPO_A}org/example/lib/1.0/lib-1.0.whl", url_b]

    def test_first_repository_wins(self, logger):
        url_a = f"{REPO_A}org/example/lib/1.0/lib-1.0.whl"
        url_b = f"{REPO_B}org/example/lib/1.0/lib-1.0.whl"
        session = FakeSession({url_a: b"a", url_b: b"b"})
        resolver = FixedVersionResolver([REPO_A, REPO_B], make_client(session, logger), logger)

        assert resolver.resolve(coordinate("org.example", "lib", "1.0")) == url_a
        assert session.requests == [url_a]

    def test_transport_error_counts_as_not_found(self, logger):
        url_a = f"{REPO_A}org/example/lib/1.0/lib-1.0.whl"
        url_b = f"{REPO_B}org/example/lib/1.0/lib-1.0.whl"
        session = FakeSession({url_a: requests.ConnectionError("refused"), url_b: b"b"})
        resolver = FixedVersionResolver([REPO_A, REPO_B], make_client(session, logger), logger)

        assert resolver.resolve(coordinate("org.example", "lib", "1.0")) == url_b

    def test_fails_when_no_repository_answers(self, logger):
        session = FakeSession({f"{REPO_A}org/example/lib/1.0/lib-1.0.whl": FakeResponse(status_code=500)})
        resolver = FixedVersionResolver([REPO_A, REPO_B], make_client(session, logger), logger)

        with pytest.raises(ResolveFailure):
            resolver.resolve(coordinate("org.example", "lib", "1.0"))
        assert len(session.requests) == 2


class TestFloatingVersionResolver:
    """Tests for FloatingVersionResolver."""

    def metadata_url(self, repository):
        return f"{repository}org/example/foo/1.0-SNAPSHOT/maven-metadata.xml"

    def test_resolves_timestamped_build(self, logger):
        session = FakeSession({self.metadata_url(REPO_A): SNAPSHOT_METADATA})
        resolver = FloatingVersionResolver([REPO_A], make_client(session, logger), logger)

        url = resolver.resolve(coordinate("org.example", "foo", "1.0-SNAPSHOT"))
        assert url == f"{REPO_A}org/example/foo/1.0-SNAPSHOT/foo-1.0-20240101.010101-7.whl"

    def test_falls_back_to_later_repository(self, logger):
        session = FakeSession({self.metadata_url(REPO_B): SNAPSHOT_METADATA})
        resolver = FloatingVersionResolver([REPO_A, REPO_B], make_client(session, logger), logger)

        url = resolver.resolve(coordinate("org.example", "foo", "1.0-SNAPSHOT", extension="zip"))
        assert url == f"{REPO_B}org/example/foo/1.0-SNAPSHOT/foo-1.0-20240101.010101-7.zip"
        assert session.requests == [self.metadata_url(REPO_A), self.metadata_url(REPO_B)]

    def test_rejects_fixed_version(self, logger):
        session = FakeSession()
        resolver = FloatingVersionResolver([REPO_A], make_client(session, logger), logger)

        with pytest.raises(ResolveFailure):
            resolver.resolve(coordinate("org.example", "foo", "1.0"))
        assert session.requests == []

    def test_fails_without_metadata(self, logger):
        resolver = FloatingVersionResolver([REPO_A, REPO_B], make_client(FakeSession(), logger), logger)

        with pytest.raises(ResolveFailure):
            resolver.resolve(coordinate("org.example", "foo", "1.0-SNAPSHOT"))

    def test_fails_on_missing_fields(self, logger):
        metadata = b"<metadata><versioning><snapshot><timestamp>20240101.010101</timestamp></snapshot></versioning></metadata>"
        session = FakeSession({self.metadata_url(REPO_A): metadata})
        resolver = FloatingVersionResolver([REPO_A], make_client(session, logger), logger)

        with pytest.raises(ResolveFailure):
            resolver.resolve(coordinate("org.example", "foo", "1.0-SNAPSHOT"))

    def test_fails_on_malformed_metadata(self, logger):
        session = FakeSession({self.metadata_url(REPO_A): b"<metadata><snapshot>"})
        resolver = FloatingVersionResolver([REPO_A], make_client(session, logger), logger)

        with pytest.raises(ResolveFailure) as exc_info:
            resolver.resolve(coordinate("org.example", "foo", "1.0-SNAPSHOT"))
        assert exc_info.value.__cause__ is not None


class TestRepositoryResolver:
    """Tests for the shared resolver base."""

    def test_requires_a_resolve_strategy(self, logger):
        with pytest.raises(TypeError):
            RepositoryResolver([REPO_A], make_client(FakeSession(), logger), logger)

    def test_artifact_directory(self):
        artifact = coordinate("org.example", "lib", "1.0")
        assert RepositoryResolver.artifact_directory(REPO_A, artifact) == f"{REPO_A}org/example/lib/1.0"

"""Tests for script path resolution."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from fakes import FakeGateway
from diversion_sync.entities import PathEntry
from diversion_sync.errors import TransportFailureError
from diversion_sync.resolver import ScriptPathResolver
from diversion_sync.tree import VirtualTree


def _resolver(paths: list[PathEntry]) -> tuple[ScriptPathResolver, FakeGateway]:
    gw = FakeGateway(paths=paths)
    return ScriptPathResolver(VirtualTree.for_revision(gw, "dv.repo.1", "main")), gw


def _blobs(*paths: str) -> list[PathEntry]:
    return [PathEntry(path=p, has_blob=True) for p in paths]


class TestExplicitPath:
    def test_configured_path_returned_verbatim(self) -> None:
        resolver, gw = _resolver(_blobs("pipelines/Jenkinsfile"))
        assert resolver.resolve_path("ci/absent.groovy", "nightly") == "ci/absent.groovy"
        assert gw.calls["list_paths"] == 0

    def test_configured_path_wins_over_auto_detection(self) -> None:
        resolver, _ = _resolver(_blobs("nightly.groovy"))
        assert resolver.resolve_path("other.groovy", "nightly", "Jenkinsfile") == "other.groovy"


class TestAutoDetection:
    def test_job_name_with_extension_preferred(self, library_paths: list[PathEntry]) -> None:
        resolver, _ = _resolver(library_paths)
        assert resolver.resolve_path(None, "nightly-build") == "pipelines/nightly-build.groovy"

    def test_pattern_order_beats_listing_order(self) -> None:
        resolver, _ = _resolver(_blobs("Jenkinsfile", "ci/deploy", "ci/deploy.groovy"))
        assert resolver.resolve_path(None, "deploy") == "ci/deploy.groovy"

    def test_bare_job_name_second(self) -> None:
        resolver, _ = _resolver(_blobs("Jenkinsfile", "scripts/Jenkinsfile-demo"))
        assert resolver.resolve_path(None, "Jenkinsfile-demo") == "scripts/Jenkinsfile-demo"

    def test_default_name_last(self) -> None:
        resolver, _ = _resolver(_blobs("README.md", "build/Jenkinsfile"))
        assert resolver.resolve_path(None, "unrelated") == "build/Jenkinsfile"

    def test_first_match_in_listing_order(self) -> None:
        resolver, _ = _resolver(_blobs("z/nightly.groovy", "a/nightly.groovy"))
        assert resolver.resolve_path(None, "nightly") == "z/nightly.groovy"

    def test_suffix_match_requires_segment_boundary(self) -> None:
        resolver, _ = _resolver(_blobs("my-nightly.groovy"))
        assert resolver.resolve_path(None, "nightly") == "nightly.groovy"

    def test_default_request_is_case_insensitive(self) -> None:
        resolver, _ = _resolver(_blobs("ci/nightly.groovy"))
        assert resolver.resolve_path(None, "nightly", "jenkinsfile") == "ci/nightly.groovy"

    def test_non_default_request_returned_unchanged(self) -> None:
        resolver, gw = _resolver(_blobs("ci/nightly.groovy"))
        assert resolver.resolve_path(None, "nightly", "vars/deploy.groovy") == "vars/deploy.groovy"
        assert gw.calls["list_paths"] == 0


class TestFallback:
    def test_fallback_when_nothing_matches(self) -> None:
        resolver, _ = _resolver(_blobs("README.md"))
        assert resolver.resolve_path(None, "nightly") == "nightly.groovy"

    def test_fallback_when_listing_fails(self) -> None:
        resolver, gw = _resolver(_blobs("ci/nightly.groovy"))
        gw.fail_listing = TransportFailureError("boom")
        assert resolver.resolve_path("", "nightly") == "nightly.groovy"


class TestConcurrency:
    def test_shared_listing_across_jobs(self, library_paths: list[PathEntry]) -> None:
        resolver, gw = _resolver([*library_paths, *_blobs("jobs/a.groovy", "jobs/b.groovy")])
        jobs = ["a", "b", "nightly-build", "missing"] * 10
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda job: resolver.resolve_path(None, job), jobs))
        assert results[:4] == ["jobs/a.groovy", "jobs/b.groovy", "pipelines/nightly-build.groovy", "pipelines/Jenkinsfile"]
        assert gw.calls["list_paths"] == 1

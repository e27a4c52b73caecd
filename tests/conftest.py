"""Shared test fixtures for diversion-sync."""

from __future__ import annotations

import pytest
from fakes import FakeGateway, make_commit

from diversion_sync.entities import Commit, PathEntry
from diversion_sync.errors import TransportFailureError


@pytest.fixture
def commits() -> list[Commit]:
    """Five commits, newest first: C5 .. C1."""
    return [make_commit(f"C{i}", created_ts=1_700_000_000 + i * 60, files=(f"file{i}.txt",)) for i in range(5, 0, -1)]


@pytest.fixture
def gateway(commits: list[Commit]) -> FakeGateway:
    """Gateway whose branch head is C5."""
    return FakeGateway(commits=commits, head="C5")


@pytest.fixture
def library_paths() -> list[PathEntry]:
    """Listing of a repo holding a shared library and a few pipeline scripts."""
    return [
        PathEntry(path="Meta", has_blob=False),
        PathEntry(path="Meta/Jenkins", has_blob=False),
        PathEntry(path="Meta/Jenkins/SharedLibs", has_blob=False),
        PathEntry(path="Meta/Jenkins/SharedLibs/vars/deploy.groovy", has_blob=True),
        PathEntry(path="Meta/Jenkins/SharedLibs/src/org/acme/Util.groovy", has_blob=True),
        PathEntry(path="Meta/Jenkins/SharedLibs/resources/config.json", has_blob=True),
        PathEntry(path="pipelines/nightly-build.groovy", has_blob=True),
        PathEntry(path="pipelines/Jenkinsfile", has_blob=True),
        PathEntry(path="README.md", has_blob=True),
    ]


@pytest.fixture
def transport_failure() -> TransportFailureError:
    return TransportFailureError("Diversion API request failed: 503 - unavailable", status_code=503)

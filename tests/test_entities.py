"""Tests for entity models and API payload parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from diversion_sync.entities import (
    Branch,
    ChangelogRecord,
    Commit,
    MultiSourceRevisionState,
    Repository,
    RevisionState,
    Tag,
    extract_revision_state,
)
from diversion_sync.errors import MalformedResponseError


class TestCommit:
    def test_from_api_full_payload(self) -> None:
        commit = Commit.from_api(
            {
                "commit_id": "dv.commit.7",
                "created_ts": 1700000123,
                "commit_message": "Fix deploy step",
                "branch_id": "dv.branch.1",
                "author": {"id": "u1", "name": "alice", "full_name": "Alice A", "email": "a@x.io"},
                "parents": ["dv.commit.6"],
                "files": ["vars/deploy.groovy", "README.md"],
            }
        )
        assert commit.commit_id == "dv.commit.7"
        assert commit.created_ts == 1700000123
        assert commit.message == "Fix deploy step"
        assert commit.author.name == "alice"
        assert commit.parent_ids == ("dv.commit.6",)
        assert commit.changed_paths == ("vars/deploy.groovy", "README.md")

    def test_from_api_minimal_payload(self) -> None:
        commit = Commit.from_api({"commit_id": "c1", "created_ts": "42"})
        assert commit.created_ts == 42
        assert commit.author.name == ""
        assert commit.changed_paths == ()

    def test_missing_commit_id_is_malformed(self) -> None:
        with pytest.raises(MalformedResponseError):
            Commit.from_api({"created_ts": 1})

    def test_non_numeric_timestamp_is_malformed(self) -> None:
        with pytest.raises(MalformedResponseError):
            Commit.from_api({"commit_id": "c1", "created_ts": "yesterday"})

    def test_commit_is_frozen(self) -> None:
        commit = Commit(commit_id="c1", created_ts=1)
        with pytest.raises(ValidationError):
            commit.commit_id = "c2"  # type: ignore[misc]


class TestBranch:
    def test_alternative_key_spellings(self) -> None:
        branch = Branch.from_api({"id": "dv.branch.2", "name": "dev", "commit": "c9"})
        assert branch == Branch(branch_id="dv.branch.2", name="dev", head_commit_id="c9")

    def test_branch_without_head(self) -> None:
        branch = Branch.from_api({"branch_id": "dv.branch.2", "branch_name": "dev"})
        assert branch.head_commit_id is None

    def test_branch_without_id_is_malformed(self) -> None:
        with pytest.raises(MalformedResponseError):
            Branch.from_api({"name": "dev"})

    @pytest.mark.parametrize("payload", [["unexpected"], "main", 7])
    def test_non_object_payload_is_malformed(self, payload: object) -> None:
        with pytest.raises(MalformedResponseError):
            Branch.from_api(payload)  # type: ignore[arg-type]


class TestRepositoryAndTag:
    def test_repository(self) -> None:
        repo = Repository.from_api({"repo_id": "dv.repo.1", "repo_name": "game"})
        assert repo.name == "game"

    def test_tag_with_author(self) -> None:
        tag = Tag.from_api({"id": "t1", "name": "v1", "commit_id": "c1", "author": {"name": "bob"}, "time": 5})
        assert tag.author is not None
        assert tag.author.name == "bob"
        assert tag.time == 5

    def test_repository_payload_that_is_not_an_object(self) -> None:
        with pytest.raises(MalformedResponseError):
            Repository.from_api(["dv.repo.1"])  # type: ignore[arg-type]

    def test_tag_with_non_numeric_time_is_malformed(self) -> None:
        with pytest.raises(MalformedResponseError, match="non-numeric time"):
            Tag.from_api({"id": "t1", "time": "yesterday"})

    def test_commit_author_that_is_not_an_object(self) -> None:
        with pytest.raises(MalformedResponseError):
            Commit.from_api({"commit_id": "c1", "created_ts": 1, "author": "alice"})


class TestRevisionState:
    def test_structural_equality(self) -> None:
        assert RevisionState(commit_id="c1", timestamp=10) == RevisionState(commit_id="c1", timestamp=10)
        assert RevisionState(commit_id="c1", timestamp=10) != RevisionState(commit_id="c1", timestamp=11)

    def test_json_round_trip(self) -> None:
        state = RevisionState(commit_id="c1", timestamp=10)
        assert RevisionState.model_validate_json(state.model_dump_json()) == state

    def test_extract_direct_state(self) -> None:
        state = RevisionState(commit_id="c1", timestamp=10)
        assert extract_revision_state(state) is state

    def test_extract_from_multi_source_container(self) -> None:
        inner = RevisionState(commit_id="c3", timestamp=30)
        container = MultiSourceRevisionState(states={"git": None, "diversion": inner})
        assert extract_revision_state(container) == inner

    def test_extract_from_unrelated_values(self) -> None:
        assert extract_revision_state(None) is None
        assert extract_revision_state({"commit_id": "c1"}) is None
        assert extract_revision_state(MultiSourceRevisionState()) is None


class TestChangelogRecord:
    def test_empty_record(self) -> None:
        record = ChangelogRecord.empty()
        assert record.entries == ()
        assert record.commit_ids == []

    def test_from_commits_keeps_order(self) -> None:
        commits = [Commit(commit_id=c, created_ts=i) for i, c in enumerate(["c3", "c2"])]
        record = ChangelogRecord.from_commits(commits)
        assert record.commit_ids == ["c3", "c2"]

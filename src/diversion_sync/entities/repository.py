"""Domain models for remote repository objects."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from diversion_sync.errors import MalformedResponseError


def _ensure_object(data: Any, kind: str) -> None:
    if not isinstance(data, dict):
        msg = f"{kind} response is not an object: {type(data).__name__}"
        raise MalformedResponseError(msg)


def _require(data: dict[str, Any], key: str, kind: str) -> Any:
    _ensure_object(data, kind)
    try:
        value = data[key]
    except KeyError as exc:
        msg = f"{kind} response is missing '{key}'"
        raise MalformedResponseError(msg) from exc
    if value is None:
        msg = f"{kind} response has null '{key}'"
        raise MalformedResponseError(msg)
    return value


def _first(data: dict[str, Any], *keys: str) -> Any:
    """Return the first non-null value among alternative key spellings."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class PathEntry(BaseModel):
    """One row of a flat tree listing."""

    model_config = ConfigDict(frozen=True)

    path: str
    has_blob: bool = False


class Author(BaseModel):
    """Commit or tag author."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    full_name: str = ""
    email: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> Author:
        if not data:
            return cls()
        _ensure_object(data, "Author")
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            full_name=str(data.get("full_name") or ""),
            email=str(data.get("email") or ""),
        )


class Commit(BaseModel):
    """Immutable snapshot of a remote commit.

    ``created_ts`` is in unix seconds. ``changed_paths`` is empty when the
    remote did not include the file list (commit feed entries usually do not).
    """

    model_config = ConfigDict(frozen=True)

    commit_id: str
    created_ts: int
    message: str = ""
    branch_id: str = ""
    author: Author = Field(default_factory=Author)
    parent_ids: tuple[str, ...] = ()
    changed_paths: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Commit:
        """Build a commit from a ``/commits`` payload."""
        created = _require(data, "created_ts", "Commit")
        try:
            created_ts = int(created)
        except (TypeError, ValueError) as exc:
            msg = f"Commit has non-numeric created_ts: {created!r}"
            raise MalformedResponseError(msg) from exc
        return cls(
            commit_id=str(_require(data, "commit_id", "Commit")),
            created_ts=created_ts,
            message=str(data.get("commit_message") or ""),
            branch_id=str(data.get("branch_id") or ""),
            author=Author.from_api(data.get("author")),
            parent_ids=tuple(str(p) for p in data.get("parents") or ()),
            changed_paths=tuple(str(f) for f in data.get("files") or ()),
        )


class Branch(BaseModel):
    """Read-only view of a branch at query time."""

    model_config = ConfigDict(frozen=True)

    branch_id: str
    name: str = ""
    head_commit_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Branch:
        _ensure_object(data, "Branch")
        branch_id = _first(data, "branch_id", "id")
        if branch_id is None:
            msg = "Branch response is missing 'branch_id'"
            raise MalformedResponseError(msg)
        head = _first(data, "commit_id", "commit")
        return cls(
            branch_id=str(branch_id),
            name=str(_first(data, "branch_name", "name") or ""),
            head_commit_id=str(head) if head else None,
        )


class Repository(BaseModel):
    """A Diversion repository."""

    model_config = ConfigDict(frozen=True)

    repo_id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Repository:
        _ensure_object(data, "Repository")
        repo_id = _first(data, "repo_id", "id")
        if repo_id is None:
            msg = "Repository response is missing 'repo_id'"
            raise MalformedResponseError(msg)
        return cls(repo_id=str(repo_id), name=str(_first(data, "repo_name", "name") or ""))


class Tag(BaseModel):
    """A named pointer to a commit."""

    model_config = ConfigDict(frozen=True)

    tag_id: str
    name: str = ""
    commit_id: str = ""
    description: str = ""
    author: Author | None = None
    time: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Tag:
        tag_id = _require(data, "id", "Tag")
        raw_time = data.get("time") or 0
        try:
            time = int(raw_time)
        except (TypeError, ValueError) as exc:
            msg = f"Tag has non-numeric time: {raw_time!r}"
            raise MalformedResponseError(msg) from exc
        return cls(
            tag_id=str(tag_id),
            name=str(data.get("name") or ""),
            commit_id=str(data.get("commit_id") or ""),
            description=str(data.get("description") or ""),
            author=Author.from_api(data["author"]) if data.get("author") else None,
            time=time,
        )

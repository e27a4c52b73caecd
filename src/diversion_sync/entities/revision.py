"""Persisted revision baselines."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RevisionState(BaseModel):
    """Baseline persisted by the host between builds.

    Equality is structural over ``commit_id`` and ``timestamp``.
    """

    model_config = ConfigDict(frozen=True)

    commit_id: str
    timestamp: int


class MultiSourceRevisionState(BaseModel):
    """Container used by hosts that track several sources per job."""

    model_config = ConfigDict(frozen=True)

    states: dict[str, RevisionState | None] = Field(default_factory=dict)


RevisionStateLike = RevisionState | MultiSourceRevisionState | None


def extract_revision_state(state: object) -> RevisionState | None:
    """Pull the Diversion baseline out of whatever the host persisted.

    Returns the first ``RevisionState`` found in a multi-source container
    (in insertion order), the state itself when it already is one, and
    ``None`` for anything else.
    """
    if isinstance(state, RevisionState):
        return state
    if isinstance(state, MultiSourceRevisionState):
        for inner in state.states.values():
            if isinstance(inner, RevisionState):
                return inner
    return None

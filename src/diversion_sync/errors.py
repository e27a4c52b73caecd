"""Exception taxonomy shared by the gateway and the sync core."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every synchronization failure."""


class NotFoundError(SyncError):
    """A path, branch, commit or tag does not exist on the remote."""


class UnauthorizedError(SyncError):
    """The remote rejected the supplied credentials."""


class TransportFailureError(SyncError):
    """Network or remote-service failure, including HTTP error statuses."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class MalformedResponseError(SyncError):
    """A remote response (or persisted record) did not have the expected shape."""


class ConfigurationInvalidError(SyncError):
    """A required identifier such as the repository id is missing."""

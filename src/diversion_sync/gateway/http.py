"""HTTP gateway for the Diversion REST API."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import httpx

from diversion_sync.config import SYNC_CONFIG, SyncConfig
from diversion_sync.entities import Branch, Commit, PathEntry, Repository, Tag
from diversion_sync.errors import (
    ConfigurationInvalidError,
    MalformedResponseError,
    NotFoundError,
    TransportFailureError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str]

_REDIRECT_STATUSES = (204, 302)


def _raise_for_status(response: httpx.Response, what: str) -> None:
    """Translate an HTTP error status into the sync error taxonomy."""
    status = response.status_code
    if status < 400:
        return
    msg = f"{what} failed: {status} - {response.text[:200]}"
    if status in (401, 403):
        raise UnauthorizedError(msg)
    if status == 404:
        raise NotFoundError(msg)
    raise TransportFailureError(msg, status_code=status)


def _items(payload: Any) -> list[dict[str, Any]]:
    """Unwrap list responses that come either enveloped in ``items`` or bare."""
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        items = payload["items"]
    elif isinstance(payload, list):
        items = payload
    else:
        msg = f"Expected a list response, got {type(payload).__name__}"
        raise MalformedResponseError(msg)
    for item in items:
        if not isinstance(item, dict):
            msg = f"Expected list items to be objects, got {type(item).__name__}"
            raise MalformedResponseError(msg)
    return items


class DiversionGateway:
    """Synchronous client for the Diversion API.

    Authenticates by exchanging a refresh token (obtained from
    ``token_provider``) for an access token, which is cached for the
    lifetime of the gateway. No request is retried.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        config: SyncConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            token_provider: Returns the Diversion refresh token. Credential
                lookup lives outside this package.
            config: Sync configuration with endpoint settings.
            client: Optional preconfigured httpx client (proxy, transport).
        """
        self._config = config or SYNC_CONFIG
        self._token_provider = token_provider
        self._client = client or httpx.Client(timeout=self._config.request_timeout_seconds)
        self._owns_client = client is None
        self._access_token: str | None = None
        self._token_lock = threading.Lock()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> DiversionGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- authentication -------------------------------------------------

    def _get_access_token(self) -> str:
        with self._token_lock:
            if self._access_token:
                return self._access_token

            refresh_token = self._token_provider()
            if not refresh_token or not refresh_token.strip():
                msg = "Diversion refresh token is empty"
                raise ConfigurationInvalidError(msg)

            try:
                response = self._client.post(
                    self._config.auth_url,
                    data={
                        "grant_type": "refresh_token",
                        "refresh_token": refresh_token,
                        "client_id": self._config.client_id,
                    },
                )
            except httpx.HTTPError as exc:
                msg = f"Token exchange failed: {exc}"
                raise TransportFailureError(msg) from exc

            if response.status_code >= 400:
                msg = f"Token exchange failed: {response.status_code} - {response.text[:200]}"
                raise UnauthorizedError(msg)

            token = self._decode(response, "Token exchange").get("access_token")
            if not token:
                msg = "Token exchange response has no access_token"
                raise MalformedResponseError(msg)

            self._access_token = str(token)
            logger.debug("Obtained Diversion access token")
            return self._access_token

    def test_authentication(self) -> bool:
        """Return True when the configured credentials can obtain a token."""
        try:
            return bool(self._get_access_token())
        except (UnauthorizedError, ConfigurationInvalidError):
            return False

    # -- transport ------------------------------------------------------

    @staticmethod
    def _decode(response: httpx.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            msg = f"{what} returned invalid JSON"
            raise MalformedResponseError(msg) from exc

    def _get(self, endpoint: str, what: str, params: dict[str, Any] | None = None) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self._get_access_token()}",
            "Content-Type": "application/json",
        }
        url = f"{self._config.api_base_url}{endpoint}"
        try:
            response = self._client.get(url, headers=headers, params=params, follow_redirects=False)
        except httpx.HTTPError as exc:
            msg = f"{what} failed: {exc}"
            raise TransportFailureError(msg) from exc
        _raise_for_status(response, what)
        return response

    def _get_json(self, endpoint: str, what: str, params: dict[str, Any] | None = None) -> Any:
        return self._decode(self._get(endpoint, what, params), what)

    # -- repositories ---------------------------------------------------

    def get_repository(self, repo_id: str) -> Repository:
        return Repository.from_api(self._get_json(f"/repos/{repo_id}", "Get repository"))

    def list_repositories(self) -> list[Repository]:
        payload = self._get_json("/repos", "List repositories")
        return [Repository.from_api(item) for item in _items(payload)]

    # -- files ----------------------------------------------------------

    def list_paths(self, repo_id: str, ref: str) -> list[PathEntry]:
        """Flat tree listing; an entry with a non-null ``blob`` is a file."""
        payload = self._get_json(f"/repos/{repo_id}/trees/{ref}", "Get file tree")
        if not isinstance(payload, dict):
            msg = "File tree response is not an object"
            raise MalformedResponseError(msg)

        entries: list[PathEntry] = []
        for item in payload.get("items") or []:
            path = item.get("path") if isinstance(item, dict) else None
            if path is None:
                msg = "File tree item is missing 'path'"
                raise MalformedResponseError(msg)
            entries.append(PathEntry(path=str(path), has_blob=item.get("blob") is not None))

        logger.debug("Listed %d paths for %s@%s", len(entries), repo_id, ref)
        return entries

    def read_blob(self, repo_id: str, ref: str, path: str) -> bytes:
        """Fetch file content, following the storage redirect when issued."""
        endpoint = f"/repos/{repo_id}/blobs/{ref}/{quote(path, safe='')}"
        response = self._get(endpoint, f"Get file content for {path}")

        if response.status_code in _REDIRECT_STATUSES:
            location = response.headers.get("Location")
            if not location:
                msg = "Blob endpoint returned redirect but no Location header found"
                raise MalformedResponseError(msg)
            try:
                content_response = self._client.get(location)
            except httpx.HTTPError as exc:
                msg = f"Failed to get file content from Location URL: {exc}"
                raise TransportFailureError(msg) from exc
            _raise_for_status(content_response, f"Get file content from Location URL for {path}")
            return content_response.content

        return response.content

    # -- branches -------------------------------------------------------

    def list_branches(self, repo_id: str) -> list[Branch]:
        payload = self._get_json(f"/repos/{repo_id}/branches", "List branches")
        return [Branch.from_api(item) for item in _items(payload)]

    def get_branch(self, repo_id: str, ref: str) -> Branch:
        """Look a branch up by id (``dv.branch.`` prefix) or by name."""
        if ref.startswith(self._config.branch_id_prefix):
            return Branch.from_api(self._get_json(f"/repos/{repo_id}/branches/{ref}", "Get branch"))

        for branch in self.list_branches(repo_id):
            if branch.name == ref:
                return branch

        msg = f"Branch not found: {ref}"
        raise NotFoundError(msg)

    def resolve_branch_id(self, repo_id: str, ref: str) -> str:
        if ref.startswith(self._config.branch_id_prefix):
            return ref
        return self.get_branch(repo_id, ref).branch_id

    # -- commits --------------------------------------------------------

    def list_commits(self, repo_id: str, limit: int) -> list[Commit]:
        payload = self._get_json(f"/repos/{repo_id}/commits", "List commits", params={"limit": limit})
        return [Commit.from_api(item) for item in _items(payload)]

    def get_commit(self, repo_id: str, commit_id: str) -> Commit:
        return Commit.from_api(self._get_json(f"/repos/{repo_id}/commits/{commit_id}", "Get commit"))

    # -- tags -----------------------------------------------------------

    def list_tags(self, repo_id: str) -> list[Tag]:
        payload = self._get_json(f"/repos/{repo_id}/tags", "List tags")
        return [Tag.from_api(item) for item in _items(payload)]

    def get_tag(self, repo_id: str, tag_id: str) -> Tag:
        return Tag.from_api(self._get_json(f"/repos/{repo_id}/tags/{tag_id}", "Get tag"))

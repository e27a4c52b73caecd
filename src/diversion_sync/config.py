"""Configuration for Diversion synchronization."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyncConfig(BaseModel):
    """Configuration for repository sync."""

    # Remote API
    api_base_url: str = Field(default="https://api.diversion.dev/v0", description="Diversion REST API base URL")
    auth_url: str = Field(
        default="https://auth.diversion.dev/oauth2/token",
        description="OAuth2 endpoint used to exchange the refresh token",
    )
    client_id: str = Field(default="j084768v4hd6j1pf8df4h4c47", description="OAuth2 client id")
    request_timeout_seconds: float = Field(default=30.0, description="Transport timeout for a single request")
    branch_id_prefix: str = Field(default="dv.branch.", description="Prefix that marks a ref as a branch id")

    # Changelog
    commit_window: int = Field(default=100, ge=1, description="Newest commits fetched when searching for the baseline")

    # Tree and script resolution
    conventional_root_dirs: frozenset[str] = Field(
        default=frozenset({"vars", "src", "resources"}),
        description="Top-level names assumed to be directories without a listing scan",
    )
    default_script_name: str = Field(default="Jenkinsfile", description="Placeholder name the host asks for")
    script_extension: str = Field(default="groovy", description="Extension appended to the job name")
    default_library_path: str = Field(
        default="Meta/Jenkins/SharedLibs",
        description="Repository directory downloaded for shared-library checkouts",
    )


# Default configuration
SYNC_CONFIG = SyncConfig()

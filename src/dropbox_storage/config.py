"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT = 100.0
DEFAULT_MAX_RETRIES_ON_ERROR = 4
DEFAULT_UPLOAD_CHUNK_SIZE = 8 * 1024 * 1024


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Credentials are optional individually, but at least one usable set must be
    present: a long-lived access token, or a refresh token together with the
    app key. ``load_config`` enforces this at startup.
    """

    # Credentials
    access_token: str | None = None
    refresh_token: str | None = None
    app_key: str | None = None
    app_secret: str | None = None

    # Adapter and client tuning, defaults provided, overridable via env
    path_prefix: str = ""
    timeout: float = DEFAULT_TIMEOUT
    max_retries_on_error: int = DEFAULT_MAX_RETRIES_ON_ERROR
    upload_chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE

    @property
    def has_credentials(self) -> bool:
        """True when either supported credential set is configured."""
        return bool(self.access_token) or bool(self.refresh_token and self.app_key)


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Credential environment variables (one set required):
        DBX_ACCESS_TOKEN: Long-lived or short-lived OAuth2 access token.
        DBX_REFRESH_TOKEN: OAuth2 refresh token (requires DBX_APP_KEY).
        DBX_APP_KEY: Dropbox app key, used to refresh access tokens.
        DBX_APP_SECRET: Dropbox app secret (omit for PKCE-issued tokens).

    Optional environment variables (with defaults):
        DBX_PATH_PREFIX: Root folder all logical paths are resolved under (default: "").
        DBX_TIMEOUT: HTTP timeout in seconds passed to the SDK (default: 100).
        DBX_MAX_RETRIES_ON_ERROR: SDK retry count for 5xx responses (default: 4).
        DBX_UPLOAD_CHUNK_SIZE: Bytes per upload-session chunk (default: 8388608).

    Returns:
        Configured AppConfig instance.

    Raises:
        ValueError: If no usable credential set is configured.
    """
    config = AppConfig(
        access_token=os.environ.get("DBX_ACCESS_TOKEN") or None,
        refresh_token=os.environ.get("DBX_REFRESH_TOKEN") or None,
        app_key=os.environ.get("DBX_APP_KEY") or None,
        app_secret=os.environ.get("DBX_APP_SECRET") or None,
        path_prefix=os.environ.get("DBX_PATH_PREFIX", ""),
        timeout=float(os.environ.get("DBX_TIMEOUT", str(DEFAULT_TIMEOUT))),
        max_retries_on_error=int(
            os.environ.get("DBX_MAX_RETRIES_ON_ERROR", str(DEFAULT_MAX_RETRIES_ON_ERROR))
        ),
        upload_chunk_size=int(
            os.environ.get("DBX_UPLOAD_CHUNK_SIZE", str(DEFAULT_UPLOAD_CHUNK_SIZE))
        ),
    )
    if not config.has_credentials:
        raise ValueError(
            "No Dropbox credentials configured: set DBX_ACCESS_TOKEN, "
            "or DBX_REFRESH_TOKEN together with DBX_APP_KEY"
        )
    return config

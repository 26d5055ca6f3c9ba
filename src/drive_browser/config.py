"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Everything else
    has a sensible default that can be overridden via environment variables.
    """

    # Required — no defaults, fail at startup if missing
    credentials_path: str
    root_folder_id: str

    # Drive access
    application_name: str = "Google Drive Browser"
    delegated_subject: str = ""
    request_timeout_seconds: float = 30.0
    page_size: int = 50
    max_breadcrumb_depth: int = 64

    # Cache
    cache_backend: str = "filesystem"
    cache_dir: str = ".cache"
    cache_ttl_seconds: int = 3600
    cache_fail_open: bool = True
    cache_container: str = "drive-browser-cache"
    cache_blob_prefix: str = "folder-cache/"
    storage_connection_string: str = ""


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        GDB_CREDENTIALS_PATH: Path to the service account JSON key file.
        GDB_ROOT_FOLDER_ID: Drive folder ID used as the browsing root. It is the
            initial current folder and the upper bound of breadcrumb trails.

    Optional environment variables (with defaults):
        GDB_APPLICATION_NAME: Sent as the user agent (default: Google Drive Browser).
        GDB_DELEGATED_SUBJECT: Account to impersonate via domain-wide delegation.
        GDB_REQUEST_TIMEOUT_SECONDS: HTTP timeout for Drive calls (default: 30).
        GDB_PAGE_SIZE: Max children returned per folder listing (default: 50).
        GDB_MAX_BREADCRUMB_DEPTH: Max parent hops when building breadcrumbs (default: 64).
        GDB_CACHE_BACKEND: One of filesystem, memory, blob (default: filesystem).
        GDB_CACHE_DIR: Directory for the filesystem backend (default: .cache).
        GDB_CACHE_TTL_SECONDS: Cache entry lifetime; 0 disables caching (default: 3600).
        GDB_CACHE_FAIL_OPEN: Bypass the cache on storage errors (default: true).
        GDB_CACHE_CONTAINER: Blob container for the blob backend.
        GDB_CACHE_BLOB_PREFIX: Blob path prefix for the blob backend.
        AzureWebJobsStorage: Azure Storage connection string (blob backend only).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        credentials_path=os.environ["GDB_CREDENTIALS_PATH"],
        root_folder_id=os.environ["GDB_ROOT_FOLDER_ID"],
        application_name=os.environ.get("GDB_APPLICATION_NAME", "Google Drive Browser"),
        delegated_subject=os.environ.get("GDB_DELEGATED_SUBJECT", ""),
        request_timeout_seconds=float(os.environ.get("GDB_REQUEST_TIMEOUT_SECONDS", "30")),
        page_size=int(os.environ.get("GDB_PAGE_SIZE", "50")),
        max_breadcrumb_depth=int(os.environ.get("GDB_MAX_BREADCRUMB_DEPTH", "64")),
        cache_backend=os.environ.get("GDB_CACHE_BACKEND", "filesystem"),
        cache_dir=os.environ.get("GDB_CACHE_DIR", ".cache"),
        cache_ttl_seconds=int(os.environ.get("GDB_CACHE_TTL_SECONDS", "3600")),
        cache_fail_open=_env_bool("GDB_CACHE_FAIL_OPEN", True),
        cache_container=os.environ.get("GDB_CACHE_CONTAINER", "drive-browser-cache"),
        cache_blob_prefix=os.environ.get("GDB_CACHE_BLOB_PREFIX", "folder-cache/"),
        storage_connection_string=os.environ.get("AzureWebJobsStorage", ""),  # noqa: SIM112
    )

"""Folder browser — cached folder listings and breadcrumb resolution."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from drive_browser.cache.backends import StorageError
from drive_browser.cache.store import ContentCache, cache_key, content_cache_from_config
from drive_browser.drive.client import DEFAULT_PAGE_SIZE, DriveClient, drive_client_from_config
from drive_browser.drive.models import ROOT_FOLDER_ALIAS, Breadcrumb, FolderEntry

if TYPE_CHECKING:
    from drive_browser.config import AppConfig

logger = logging.getLogger(__name__)

CONTENTS_NAMESPACE = "contents"
CRUMBS_NAMESPACE = "crumbs"

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_DEPTH = 64


class InvalidFolderIdError(ValueError):
    """Raised when a caller passes an empty folder ID."""

    def __init__(self) -> None:
        super().__init__("Invalid folder ID")


class CorruptHierarchyError(Exception):
    """Raised when walking up the parent chain cycles or exceeds the hop limit."""

    def __init__(self, folder_id: str, hops: int, reason: str) -> None:
        super().__init__(f"Corrupt folder hierarchy above {folder_id} after {hops} hop(s): {reason}")
        self.folder_id = folder_id
        self.hops = hops


class FolderBrowser:
    """Lists folders and builds breadcrumb trails through a ContentCache.

    The browser owns a cursor (the current folder ID) that starts at the
    browsing root and changes only through change_folder(). Calls made
    without an explicit folder ID operate on the cursor.
    """

    def __init__(
        self,
        drive: DriveClient,
        cache: ContentCache,
        root_folder_id: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_depth: int = DEFAULT_MAX_DEPTH,
        fail_open: bool = True,
    ) -> None:
        """Initialise the folder browser.

        Args:
            drive: Drive client used on cache misses.
            cache: Content cache shared by listings and breadcrumbs.
            root_folder_id: Browsing root; the initial cursor and the topmost
                folder a breadcrumb trail will climb to.
            ttl_seconds: Lifetime of cached results. Zero disables caching.
            page_size: Default maximum number of children per listing.
            max_depth: Maximum number of metadata lookups per breadcrumb walk.
            fail_open: On cache storage errors, fall back to Drive instead of failing.
        """
        if not root_folder_id:
            raise ValueError("root_folder_id must not be empty")
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self._drive = drive
        self._cache = cache
        self._root_folder_id = root_folder_id
        self._ttl_seconds = ttl_seconds
        self._page_size = page_size
        self._max_depth = max_depth
        self._fail_open = fail_open
        self._current_folder_id = root_folder_id

    @property
    def current_folder_id(self) -> str:
        return self._current_folder_id

    @property
    def root_folder_id(self) -> str:
        return self._root_folder_id

    def change_folder(self, folder_id: str) -> None:
        """Point the cursor at another folder. Performs no I/O."""
        if not folder_id:
            raise InvalidFolderIdError
        logger.info(
            "[change_folder] cursor moved; from:%s;to:%s", self._current_folder_id, folder_id
        )
        self._current_folder_id = folder_id

    def get_folder_contents(
        self, folder_id: str | None = None, page_size: int | None = None
    ) -> list[FolderEntry]:
        """Return the immediate children of a folder, in API order.

        Args:
            folder_id: Folder to list; defaults to the cursor.
            page_size: Max children to request on a miss; defaults to the configured size.

        Returns:
            List of FolderEntry objects.

        Raises:
            RemoteFetchError: If Drive cannot be reached or rejects the request.
        """
        target = self._resolve(folder_id)
        size = self._page_size if page_size is None else page_size
        if size < 1:
            raise ValueError(f"page_size must be >= 1, got {size}")

        def load() -> list[dict[str, Any]]:
            return [entry.to_dict() for entry in self._drive.list_children(target, size)]

        raw = self._through_cache(
            "get_folder_contents", target, cache_key(target, CONTENTS_NAMESPACE), load
        )
        return [FolderEntry.from_dict(item) for item in raw]

    def get_breadcrumbs(self, folder_id: str | None = None) -> list[Breadcrumb]:
        """Return the trail from the browsing root (or Drive root) down to a folder.

        The last element always carries the requested folder ID. The walk
        stops after including a folder that has no parent, is the "root"
        alias, or is the configured browsing root.

        Args:
            folder_id: Folder to resolve; defaults to the cursor.

        Returns:
            Breadcrumbs ordered root to leaf; never empty.

        Raises:
            RemoteFetchError: If any metadata lookup fails.
            CorruptHierarchyError: If the parent chain cycles or is deeper than max_depth.
        """
        target = self._resolve(folder_id)

        def load() -> list[dict[str, str]]:
            return [crumb.to_dict() for crumb in self._walk_to_root(target)]

        raw = self._through_cache("get_breadcrumbs", target, self._crumbs_key(target), load)
        return [Breadcrumb.from_dict(item) for item in raw]

    def refresh(self, folder_id: str | None = None) -> None:
        """Drop the cached listing and breadcrumbs of a folder."""
        target = self._resolve(folder_id)
        self._cache.clear(cache_key(target, CONTENTS_NAMESPACE))
        self._cache.clear(self._crumbs_key(target))
        logger.info("[refresh] cleared cached folder; folder_id:%s", target)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve(self, folder_id: str | None) -> str:
        if folder_id is None:
            return self._current_folder_id
        if not folder_id:
            raise InvalidFolderIdError
        return folder_id

    def _crumbs_key(self, folder_id: str) -> str:
        # Trails stop at the browsing root; keys are scoped to it
        return cache_key(folder_id, f"{CRUMBS_NAMESPACE}:{self._root_folder_id}")

    def _walk_to_root(self, folder_id: str) -> list[Breadcrumb]:
        """Follow parent links upward, collecting crumbs in root-to-leaf order."""
        stop_ids = {ROOT_FOLDER_ALIAS, self._root_folder_id}
        trail: list[Breadcrumb] = []
        seen: set[str] = set()
        current: str | None = folder_id

        while current is not None:
            if current in seen:
                raise CorruptHierarchyError(folder_id, len(trail), f"cycle at {current}")
            if len(trail) >= self._max_depth:
                raise CorruptHierarchyError(
                    folder_id, len(trail), f"exceeded max depth {self._max_depth}"
                )
            seen.add(current)

            metadata = self._drive.get_metadata(current)
            # Crumb IDs are the requested IDs, never Drive's resolved ones
            trail.insert(0, Breadcrumb(id=current, name=metadata.name))
            if current in stop_ids or metadata.id in stop_ids:
                break
            current = metadata.parent_id

        logger.info(
            "[get_breadcrumbs] resolved trail; folder_id:%s;depth:%d", folder_id, len(trail)
        )
        return trail

    def _through_cache(
        self,
        operation: str,
        folder_id: str,
        key: str,
        loader: Callable[[], list[Any]],
    ) -> list[Any]:
        """Serve from the cache, loading on a miss, honouring TTL 0 and fail-open."""
        if self._ttl_seconds == 0:
            return loader()

        loaded: list[list[Any]] = []

        def load_once() -> list[Any]:
            value = loader()
            loaded.append(value)
            return value

        try:
            return self._cache.get_or_load(key, load_once, self._ttl_seconds)  # type: ignore[no-any-return]
        except StorageError:
            if not self._fail_open:
                raise
            logger.warning(
                "[%s] cache unavailable, bypassing; folder_id:%s",
                operation,
                folder_id,
                exc_info=True,
            )
            return loaded[0] if loaded else loader()


def folder_browser_from_config(config: AppConfig) -> FolderBrowser:
    """Construct a FolderBrowser from application configuration.

    Creates a DriveClient and ContentCache from the config, then wires
    them into a FolderBrowser.

    Args:
        config: Application configuration instance.

    Returns:
        Configured FolderBrowser instance.
    """
    return FolderBrowser(
        drive=drive_client_from_config(config),
        cache=content_cache_from_config(config),
        root_folder_id=config.root_folder_id,
        ttl_seconds=config.cache_ttl_seconds,
        page_size=config.page_size,
        max_depth=config.max_breadcrumb_depth,
        fail_open=config.cache_fail_open,
    )

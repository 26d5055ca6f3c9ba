"""Byte-oriented key/value backends for the content cache."""

from __future__ import annotations

import contextlib
import hashlib
import logging
import os
import tempfile
import threading
from pathlib import Path

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "drive-browser"
DEFAULT_CACHE_CONTAINER = "drive-browser-cache"
DEFAULT_CACHE_BLOB_PREFIX = "folder-cache/"


class StorageError(Exception):
    """Raised when the cache backing store cannot be read or written."""


class CacheBackend:
    """Interface for cache storage media.

    Backends store opaque bytes and know nothing about expiry; the
    ContentCache wraps values in an envelope that carries it.
    """

    def read(self, key: str) -> bytes | None:
        raise NotImplementedError

    def write(self, key: str, data: bytes) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryBackend(CacheBackend):
    """Process-local backend, mostly useful for tests and single workers."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, data: bytes) -> None:
        with self._lock:
            self._data[key] = data

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class FilesystemBackend(CacheBackend):
    """One file per key under ``<directory>/<namespace>/``.

    File names are the SHA-256 of the key so that arbitrary keys map to
    safe names. Writes land in a temporary file first and are renamed into
    place, so a reader sees either the old entry or the new one.
    """

    def __init__(self, directory: str | os.PathLike[str], namespace: str = DEFAULT_NAMESPACE) -> None:
        self._root = Path(directory) / namespace

    def _path_for(self, key: str) -> Path:
        return self._root / hashlib.sha256(key.encode("utf-8")).hexdigest()

    def read(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read cache file {path}: {exc}") from exc

    def write(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write cache file {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot delete cache file {path}: {exc}") from exc


class BlobBackend(CacheBackend):
    """Backend storing each entry as a blob in Azure Blob Storage."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_CACHE_CONTAINER,
        blob_prefix: str = DEFAULT_CACHE_BLOB_PREFIX,
    ) -> None:
        """Initialise the blob backend.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container name for cache storage.
            blob_prefix: Prefix for cache blob paths (e.g. "folder-cache/").
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob_prefix = blob_prefix

    def _blob_client(self, key: str):  # type: ignore[no-untyped-def]
        container_client = self._blob_service.get_container_client(self._container)
        return container_client.get_blob_client(f"{self._blob_prefix}{key}")

    def read(self, key: str) -> bytes | None:
        try:
            return self._blob_client(key).download_blob().readall()  # type: ignore[no-any-return]
        except ResourceNotFoundError:
            return None
        except AzureError as exc:
            raise StorageError(f"Cannot read cache blob {key}: {exc}") from exc

    def write(self, key: str, data: bytes) -> None:
        container_client = self._blob_service.get_container_client(self._container)
        try:
            with contextlib.suppress(ResourceExistsError):
                container_client.create_container()
                logger.info("[blob_backend] created blob container; container:%s", self._container)
            blob_client = container_client.get_blob_client(f"{self._blob_prefix}{key}")
            blob_client.upload_blob(data, overwrite=True)
        except AzureError as exc:
            raise StorageError(f"Cannot write cache blob {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._blob_client(key).delete_blob()
        except ResourceNotFoundError:
            return
        except AzureError as exc:
            raise StorageError(f"Cannot delete cache blob {key}: {exc}") from exc

"""Google Drive v3 client authenticated with a service account."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import set_user_agent

from drive_browser.drive.models import (
    FIELD_FILES,
    FIELD_ICON_LINK,
    FIELD_ID,
    FIELD_MIME_TYPE,
    FIELD_MODIFIED_TIME,
    FIELD_NAME,
    FIELD_NEXT_PAGE_TOKEN,
    FIELD_PARENTS,
    FIELD_SIZE,
    FIELD_THUMBNAIL_LINK,
    FIELD_TRASHED,
    FIELD_WEB_VIEW_LINK,
    EntryKind,
    FolderEntry,
    FolderMetadata,
)

if TYPE_CHECKING:
    from drive_browser.config import AppConfig

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_PAGE_SIZE = 50

_LIST_FIELDS = (
    "nextPageToken, files(id, name, mimeType, webViewLink, size, modifiedTime,"
    " iconLink, thumbnailLink, trashed)"
)
_METADATA_FIELDS = "id, name, parents"


class RemoteFetchError(Exception):
    """Raised when a Drive API call fails (auth, network, timeout, HTTP status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        prefix = f"Drive API error {status_code}" if status_code is not None else "Drive API error"
        super().__init__(f"{prefix}: {message}")
        self.status_code = status_code
        self.message = message


def _escape_query_value(value: str) -> str:
    """Escape a value for use inside a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveClient:
    """Read-only access to folder listings and folder metadata."""

    def __init__(
        self,
        credentials_path: str,
        application_name: str,
        subject: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Load credentials and build the Drive v3 resource.

        Args:
            credentials_path: Path to the service account JSON key file.
            application_name: Sent as the User-Agent of every request.
            subject: Account to impersonate via domain-wide delegation, if any.
            timeout: Socket timeout in seconds for each HTTP request.
        """
        credentials = service_account.Credentials.from_service_account_file(
            credentials_path, scopes=DRIVE_SCOPES
        )
        if subject:
            credentials = credentials.with_subject(subject)

        http = google_auth_httplib2.AuthorizedHttp(
            credentials, http=httplib2.Http(timeout=timeout)
        )
        http = set_user_agent(http, application_name)
        self._service = build("drive", "v3", http=http, cache_discovery=False)

    def _execute(self, operation: str, request: Any) -> dict[str, Any]:
        """Execute a prepared API request, mapping every failure to RemoteFetchError."""
        try:
            return request.execute()  # type: ignore[no-any-return]
        except HttpError as exc:
            status = exc.resp.status
            logger.error("[%s] Drive request failed; status:%s", operation, status)
            raise RemoteFetchError(str(exc.reason), status_code=int(status)) from exc
        except GoogleAuthError as exc:
            logger.error("[%s] Drive authentication failed", operation)
            raise RemoteFetchError(f"authentication failed: {exc}") from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            # socket.timeout is an OSError, so timeouts land here too.
            logger.error("[%s] Drive transport failure; error:%s", operation, exc)
            raise RemoteFetchError(f"transport failure: {exc}") from exc

    def list_children(
        self, folder_id: str, page_size: int = DEFAULT_PAGE_SIZE
    ) -> list[FolderEntry]:
        """List the non-trashed immediate children of a folder.

        Only the first page is fetched, matching the page size the caller
        asked for. Entries are returned in the order the API returned them.

        Args:
            folder_id: Drive ID of the folder (or the "root" alias).
            page_size: Maximum number of children to return.

        Returns:
            List of FolderEntry objects.

        Raises:
            RemoteFetchError: If the API call fails.
        """
        query = f"'{_escape_query_value(folder_id)}' in parents and trashed = false"
        request = self._service.files().list(
            q=query,
            fields=_LIST_FIELDS,
            pageSize=page_size,
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        )
        response = self._execute("list_children", request)

        entries = [
            self._parse_entry(raw)
            for raw in response.get(FIELD_FILES, [])
            if not raw.get(FIELD_TRASHED, False)
        ]
        if response.get(FIELD_NEXT_PAGE_TOKEN):
            logger.info(
                "[list_children] listing truncated at page size; folder_id:%s;page_size:%d",
                folder_id,
                page_size,
            )
        logger.info(
            "[list_children] listed folder; folder_id:%s;entry_count:%d",
            folder_id,
            len(entries),
        )
        return entries

    def get_metadata(self, folder_id: str) -> FolderMetadata:
        """Fetch the ID, name and first parent of a folder.

        Args:
            folder_id: Drive ID of the folder (or the "root" alias).

        Returns:
            FolderMetadata; parent_id is None for top-level folders.

        Raises:
            RemoteFetchError: If the API call fails.
        """
        request = self._service.files().get(
            fileId=folder_id,
            fields=_METADATA_FIELDS,
            supportsAllDrives=True,
        )
        raw = self._execute("get_metadata", request)
        parents = raw.get(FIELD_PARENTS) or []
        return FolderMetadata(
            id=raw.get(FIELD_ID, folder_id),
            name=raw.get(FIELD_NAME, ""),
            parent_id=parents[0] if parents else None,
        )

    @staticmethod
    def _parse_entry(raw: dict[str, Any]) -> FolderEntry:
        """Map a raw Drive file resource to a FolderEntry."""
        mime_type = raw.get(FIELD_MIME_TYPE, "")
        kind = EntryKind.from_mime_type(mime_type)
        size: int | None = None
        if kind is EntryKind.FILE and raw.get(FIELD_SIZE) is not None:
            # Drive serializes int64 fields as strings.
            size = int(raw[FIELD_SIZE])
        return FolderEntry(
            id=raw.get(FIELD_ID, ""),
            name=raw.get(FIELD_NAME, ""),
            kind=kind,
            mime_type=mime_type,
            web_link=raw.get(FIELD_WEB_VIEW_LINK),
            size=size,
            modified_time=raw.get(FIELD_MODIFIED_TIME),
            icon_link=raw.get(FIELD_ICON_LINK),
            thumbnail_link=raw.get(FIELD_THUMBNAIL_LINK),
        )


def drive_client_from_config(config: AppConfig) -> DriveClient:
    """Construct a DriveClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DriveClient instance.
    """
    return DriveClient(
        credentials_path=config.credentials_path,
        application_name=config.application_name,
        subject=config.delegated_subject or None,
        timeout=config.request_timeout_seconds,
    )

"""Data models for Google Drive folder entries and breadcrumb trails."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# Drive API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_MIME_TYPE = "mimeType"
FIELD_WEB_VIEW_LINK = "webViewLink"
FIELD_SIZE = "size"
FIELD_MODIFIED_TIME = "modifiedTime"
FIELD_ICON_LINK = "iconLink"
FIELD_THUMBNAIL_LINK = "thumbnailLink"
FIELD_PARENTS = "parents"
FIELD_TRASHED = "trashed"
FIELD_FILES = "files"
FIELD_NEXT_PAGE_TOKEN = "nextPageToken"

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Drive accepts "root" as an alias for the caller's My Drive folder.
ROOT_FOLDER_ALIAS = "root"


class EntryKind(str, Enum):
    """Whether a Drive entry is a folder or a file."""

    FOLDER = "folder"
    FILE = "file"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> EntryKind:
        return cls.FOLDER if mime_type == FOLDER_MIME_TYPE else cls.FILE


@dataclass(frozen=True)
class FolderEntry:
    """A single child of a Drive folder, as fetched from the API.

    Attributes:
        id: Drive file ID.
        name: Display name.
        kind: Folder or file.
        mime_type: Drive MIME type.
        web_link: Browser URL (webViewLink) for opening the item.
        size: Byte count. Only files carry a size; Google-native documents
            and folders report none.
        modified_time: RFC 3339 timestamp of the last modification.
        icon_link: URL of the Drive icon for the MIME type.
        thumbnail_link: URL of a thumbnail, when Drive has generated one.
    """

    id: str
    name: str
    kind: EntryKind
    mime_type: str = ""
    web_link: str | None = None
    size: int | None = None
    modified_time: str | None = None
    icon_link: str | None = None
    thumbnail_link: str | None = None

    @property
    def is_folder(self) -> bool:
        return self.kind is EntryKind.FOLDER

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable form used for caching and responses."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "mime_type": self.mime_type,
            "web_link": self.web_link,
            "size": self.size,
            "modified_time": self.modified_time,
            "icon_link": self.icon_link,
            "thumbnail_link": self.thumbnail_link,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FolderEntry:
        """Rebuild an entry from the output of ``to_dict``."""
        return cls(
            id=data["id"],
            name=data["name"],
            kind=EntryKind(data["kind"]),
            mime_type=data.get("mime_type", ""),
            web_link=data.get("web_link"),
            size=data.get("size"),
            modified_time=data.get("modified_time"),
            icon_link=data.get("icon_link"),
            thumbnail_link=data.get("thumbnail_link"),
        )


@dataclass(frozen=True)
class Breadcrumb:
    """One step of a breadcrumb trail."""

    id: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Breadcrumb:
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class FolderMetadata:
    """The subset of folder metadata needed to walk up the hierarchy."""

    id: str
    name: str
    parent_id: str | None = None

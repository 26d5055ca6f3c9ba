"""Rendering helpers — ordering and display formatting of folder entries."""

from __future__ import annotations

from typing import Any

from drive_browser.drive.models import Breadcrumb, FolderEntry

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

GENERIC_FILE_TYPE = "generic"

MIME_TYPE_FILE_TYPES: dict[str, str] = {
    "application/vnd.google-apps.folder": "folder",
    "application/vnd.google-apps.document": "document",
    "application/vnd.google-apps.spreadsheet": "spreadsheet",
    "application/vnd.google-apps.presentation": "presentation",
    "application/pdf": "pdf",
    "image/jpeg": "image",
    "image/png": "image",
    "image/gif": "image",
    "text/plain": "text",
    "text/csv": "spreadsheet",
    "application/zip": "archive",
    "video/mp4": "video",
    "audio/mpeg": "audio",
}


def sort_entries(entries: list[FolderEntry]) -> list[FolderEntry]:
    """Return entries with folders first, then by case-insensitive name.

    Python's sort is stable, so entries with equal names keep their API
    order and sorting an already sorted list changes nothing.
    """
    return sorted(entries, key=lambda e: (not e.is_folder, e.name.casefold()))


def format_file_size(num_bytes: int | None) -> str:
    """Format a byte count as a short human-readable string (e.g. "1.5 KB")."""
    if not num_bytes or num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"


def file_type_for(mime_type: str) -> str:
    """Classify a MIME type into a coarse file type used to pick an icon."""
    return MIME_TYPE_FILE_TYPES.get(mime_type, GENERIC_FILE_TYPE)


def entry_payload(entry: FolderEntry) -> dict[str, Any]:
    """Build the JSON object returned to HTTP clients for one entry."""
    payload = entry.to_dict()
    payload["file_type"] = file_type_for(entry.mime_type)
    payload["display_size"] = "-" if entry.is_folder else format_file_size(entry.size)
    return payload


def breadcrumb_payload(crumb: Breadcrumb) -> dict[str, str]:
    return crumb.to_dict()

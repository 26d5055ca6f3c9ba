"""HTTP trigger blueprint — health check and folder browsing endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any

import azure.functions as func

from drive_browser import __version__
from drive_browser.browsing.browser import (
    CorruptHierarchyError,
    InvalidFolderIdError,
    folder_browser_from_config,
)
from drive_browser.browsing.presentation import breadcrumb_payload, entry_payload, sort_entries
from drive_browser.cache.backends import StorageError
from drive_browser.config import load_config
from drive_browser.drive.client import RemoteFetchError

logger = logging.getLogger(__name__)

bp = func.Blueprint()

FOLDER_ID_PARAM = "folder_id"


def _json_response(payload: dict[str, Any], status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(json.dumps(payload), status_code=status_code, mimetype="application/json")


def _error_response(message: str, status_code: int) -> func.HttpResponse:
    return _json_response({"status": "error", "message": message}, status_code=status_code)


def _folder_id_from_params(req: func.HttpRequest) -> str | None:
    """Read folder_id from the query string; None when absent or blank."""
    folder_id = req.params.get(FOLDER_ID_PARAM, "").strip()
    return folder_id or None


def _folder_id_from_body(req: func.HttpRequest) -> str | None:
    """Read folder_id from a JSON request body; None when absent or malformed."""
    try:
        body = req.get_json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    folder_id = body.get(FOLDER_ID_PARAM)
    if not isinstance(folder_id, str) or not folder_id.strip():
        return None
    return folder_id.strip()


def _handle_failure(operation: str, exc: Exception) -> func.HttpResponse:
    """Map a browsing failure to an HTTP error response."""
    if isinstance(exc, InvalidFolderIdError):
        logger.warning("[%s] rejected request; error:%s", operation, exc)
        return _error_response("Invalid folder ID", 400)
    if isinstance(exc, RemoteFetchError):
        logger.error("[%s] Drive request failed", operation, exc_info=True)
        if exc.status_code == 404:
            return _error_response("Folder not found", 404)
        return _error_response("Error accessing Google Drive folder", 502)
    if isinstance(exc, CorruptHierarchyError):
        logger.error("[%s] folder hierarchy is corrupt", operation, exc_info=True)
        return _error_response("Folder hierarchy could not be resolved", 502)
    if isinstance(exc, StorageError):
        logger.error("[%s] cache storage failed", operation, exc_info=True)
        return _error_response("Cache storage unavailable", 503)
    logger.error("[%s] request failed", operation, exc_info=True)
    return _error_response("Internal server error", 500)


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint — returns service status and version."""
    logger.info("[health_check] health check requested")

    try:
        return _json_response({"status": "ok", "version": __version__})

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _error_response("Internal server error", 500)


@bp.route(route="folders/contents", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def folder_contents(req: func.HttpRequest) -> func.HttpResponse:
    """List a folder, folders first. Defaults to the browsing root."""
    folder_id = _folder_id_from_params(req)
    logger.info("[folder_contents] requested; folder_id:%s", folder_id)

    try:
        browser = folder_browser_from_config(load_config())
        target = folder_id or browser.current_folder_id
        entries = sort_entries(browser.get_folder_contents(target))
        return _json_response(
            {
                "status": "ok",
                "folder_id": target,
                "files": [entry_payload(entry) for entry in entries],
            }
        )

    except Exception as exc:
        return _handle_failure("folder_contents", exc)


@bp.route(route="folders/breadcrumbs", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def folder_breadcrumbs(req: func.HttpRequest) -> func.HttpResponse:
    """Return the breadcrumb trail of a folder. Defaults to the browsing root."""
    folder_id = _folder_id_from_params(req)
    logger.info("[folder_breadcrumbs] requested; folder_id:%s", folder_id)

    try:
        browser = folder_browser_from_config(load_config())
        target = folder_id or browser.current_folder_id
        crumbs = browser.get_breadcrumbs(target)
        return _json_response(
            {
                "status": "ok",
                "folder_id": target,
                "breadcrumbs": [breadcrumb_payload(crumb) for crumb in crumbs],
            }
        )

    except Exception as exc:
        return _handle_failure("folder_breadcrumbs", exc)


@bp.route(route="folders/change", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def change_folder(req: func.HttpRequest) -> func.HttpResponse:
    """Switch to another folder and return its files and breadcrumbs in one response."""
    folder_id = _folder_id_from_body(req)
    if folder_id is None:
        logger.warning("[change_folder] missing folder_id")
        return _error_response("Invalid folder ID", 400)

    logger.info("[change_folder] requested; folder_id:%s", folder_id)
    try:
        browser = folder_browser_from_config(load_config())
        browser.change_folder(folder_id)
        entries = sort_entries(browser.get_folder_contents())
        crumbs = browser.get_breadcrumbs()
        return _json_response(
            {
                "status": "ok",
                "files": [entry_payload(entry) for entry in entries],
                "breadcrumbs": [breadcrumb_payload(crumb) for crumb in crumbs],
                "current_folder": browser.current_folder_id,
            }
        )

    except Exception as exc:
        return _handle_failure("change_folder", exc)


@bp.route(route="folders/refresh", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def refresh_folder(req: func.HttpRequest) -> func.HttpResponse:
    """Drop the cached listing and breadcrumbs of a folder."""
    folder_id = _folder_id_from_body(req)
    if folder_id is None:
        logger.warning("[refresh_folder] missing folder_id")
        return _error_response("Invalid folder ID", 400)

    try:
        browser = folder_browser_from_config(load_config())
        browser.refresh(folder_id)
        return _json_response({"status": "ok", "folder_id": folder_id})

    except Exception as exc:
        return _handle_failure("refresh_folder", exc)

"""Unit tests for functions/http_trigger.py — folder endpoints and error mapping."""

import json
from unittest.mock import MagicMock, patch

import azure.functions as func
import pytest

from drive_browser.browsing.browser import CorruptHierarchyError, InvalidFolderIdError
from drive_browser.cache.backends import StorageError
from drive_browser.drive.client import RemoteFetchError
from drive_browser.drive.models import FOLDER_MIME_TYPE, Breadcrumb, EntryKind, FolderEntry
from drive_browser.functions.http_trigger import (
    change_folder,
    folder_breadcrumbs,
    folder_contents,
    refresh_folder,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MODULE = "drive_browser.functions.http_trigger"

_FOLDER_X = FolderEntry(id="f1", name="X", kind=EntryKind.FOLDER, mime_type=FOLDER_MIME_TYPE)
_DOC = FolderEntry(id="d1", name="doc.txt", kind=EntryKind.FILE, mime_type="text/plain", size=10)


def _get(route: str, params: dict[str, str] | None = None) -> func.HttpRequest:
    return func.HttpRequest(method="GET", url=f"/api/{route}", body=b"", params=params or {})


def _post(route: str, body: object) -> func.HttpRequest:
    raw = body if isinstance(body, bytes) else json.dumps(body).encode()
    return func.HttpRequest(method="POST", url=f"/api/{route}", body=raw)


def _mock_browser(current: str = "root") -> MagicMock:
    browser = MagicMock()
    state = {"current": current}

    def _change(folder_id: str) -> None:
        state["current"] = folder_id

    browser.change_folder.side_effect = _change
    type(browser).current_folder_id = property(lambda _self: state["current"])
    browser.get_folder_contents.return_value = [_DOC, _FOLDER_X]
    browser.get_breadcrumbs.return_value = [
        Breadcrumb("root", "My Drive"),
        Breadcrumb("f1", "X"),
    ]
    return browser


def _call(handler, req: func.HttpRequest, browser: MagicMock):  # type: ignore[no-untyped-def]
    with (
        patch(f"{_MODULE}.load_config"),
        patch(f"{_MODULE}.folder_browser_from_config", return_value=browser),
    ):
        response = handler(req)
    return response, json.loads(response.get_body())


# ---------------------------------------------------------------------------
# folder_contents tests
# ---------------------------------------------------------------------------


class TestFolderContents:
    def test_returns_sorted_entries_for_requested_folder(self) -> None:
        browser = _mock_browser()
        response, body = _call(folder_contents, _get("folders/contents", {"folder_id": "f9"}), browser)

        assert response.status_code == 200
        assert body["folder_id"] == "f9"
        assert [f["id"] for f in body["files"]] == ["f1", "d1"]
        assert body["files"][1]["display_size"] == "10 B"
        browser.get_folder_contents.assert_called_once_with("f9")

    def test_query_folder_id_is_stripped(self) -> None:
        browser = _mock_browser()
        _, body = _call(folder_contents, _get("folders/contents", {"folder_id": "  f9  "}), browser)

        assert body["folder_id"] == "f9"
        browser.get_folder_contents.assert_called_once_with("f9")

    def test_blank_query_folder_id_uses_browsing_root(self) -> None:
        browser = _mock_browser(current="root-folder")
        _, body = _call(
            folder_breadcrumbs, _get("folders/breadcrumbs", {"folder_id": "   "}), browser
        )

        assert body["folder_id"] == "root-folder"
        browser.get_breadcrumbs.assert_called_once_with("root-folder")

    def test_defaults_to_browsing_root(self) -> None:
        browser = _mock_browser(current="root-folder")
        _, body = _call(folder_contents, _get("folders/contents"), browser)

        assert body["folder_id"] == "root-folder"
        browser.get_folder_contents.assert_called_once_with("root-folder")


# ---------------------------------------------------------------------------
# folder_breadcrumbs tests
# ---------------------------------------------------------------------------


class TestFolderBreadcrumbs:
    def test_returns_trail(self) -> None:
        browser = _mock_browser()
        response, body = _call(
            folder_breadcrumbs, _get("folders/breadcrumbs", {"folder_id": "f1"}), browser
        )

        assert response.status_code == 200
        assert body["breadcrumbs"] == [
            {"id": "root", "name": "My Drive"},
            {"id": "f1", "name": "X"},
        ]
        browser.get_breadcrumbs.assert_called_once_with("f1")


# ---------------------------------------------------------------------------
# change_folder tests
# ---------------------------------------------------------------------------


class TestChangeFolder:
    def test_moves_cursor_and_returns_files_and_breadcrumbs(self) -> None:
        browser = _mock_browser()
        response, body = _call(change_folder, _post("folders/change", {"folder_id": "f1"}), browser)

        assert response.status_code == 200
        assert body["current_folder"] == "f1"
        assert [f["id"] for f in body["files"]] == ["f1", "d1"]
        assert body["breadcrumbs"][-1] == {"id": "f1", "name": "X"}
        browser.change_folder.assert_called_once_with("f1")
        browser.get_folder_contents.assert_called_once_with()
        browser.get_breadcrumbs.assert_called_once_with()

    @pytest.mark.parametrize(
        "body",
        [{}, {"folder_id": ""}, {"folder_id": "   "}, {"folder_id": 42}, [], b"not json"],
    )
    def test_rejects_missing_or_invalid_folder_id(self, body: object) -> None:
        browser = _mock_browser()
        response, payload = _call(change_folder, _post("folders/change", body), browser)

        assert response.status_code == 400
        assert payload == {"status": "error", "message": "Invalid folder ID"}
        browser.change_folder.assert_not_called()


# ---------------------------------------------------------------------------
# refresh_folder tests
# ---------------------------------------------------------------------------


class TestRefreshFolder:
    def test_clears_folder_cache(self) -> None:
        browser = _mock_browser()
        response, body = _call(refresh_folder, _post("folders/refresh", {"folder_id": "f1"}), browser)

        assert response.status_code == 200
        assert body == {"status": "ok", "folder_id": "f1"}
        browser.refresh.assert_called_once_with("f1")

    def test_rejects_missing_folder_id(self) -> None:
        browser = _mock_browser()
        response, _ = _call(refresh_folder, _post("folders/refresh", {}), browser)

        assert response.status_code == 400
        browser.refresh.assert_not_called()


# ---------------------------------------------------------------------------
# Error mapping tests
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (RemoteFetchError("File not found", status_code=404), 404),
            (RemoteFetchError("Backend Error", status_code=500), 502),
            (RemoteFetchError("transport failure: timed out"), 502),
            (CorruptHierarchyError("A", 2, "cycle at A"), 502),
            (StorageError("disk full"), 503),
            (InvalidFolderIdError(), 400),
            (ValueError("page_size must be >= 1, got 0"), 500),
            (RuntimeError("unexpected"), 500),
        ],
    )
    def test_maps_failures_to_status_codes(self, error: Exception, status: int) -> None:
        browser = _mock_browser()
        browser.get_folder_contents.side_effect = error

        response, body = _call(folder_contents, _get("folders/contents"), browser)

        assert response.status_code == status
        assert body["status"] == "error"

    def test_error_body_does_not_leak_details(self) -> None:
        browser = _mock_browser()
        browser.get_breadcrumbs.side_effect = RemoteFetchError("secret internal detail", 500)

        _, body = _call(folder_breadcrumbs, _get("folders/breadcrumbs"), browser)

        assert "secret" not in body["message"]

    def test_missing_config_is_internal_error(self) -> None:
        with patch(f"{_MODULE}.load_config", side_effect=KeyError("GDB_ROOT_FOLDER_ID")):
            response = folder_contents(_get("folders/contents"))

        assert response.status_code == 500


# ---------------------------------------------------------------------------
# Misconfiguration tests
# ---------------------------------------------------------------------------


class TestMisconfiguration:
    @pytest.fixture(autouse=True)
    def _base_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GDB_CREDENTIALS_PATH", "/secrets/sa.json")
        monkeypatch.setenv("GDB_ROOT_FOLDER_ID", "root")

    def test_bad_page_size_is_internal_error_without_details(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GDB_PAGE_SIZE", "fifty")

        response = folder_contents(_get("folders/contents"))

        body = json.loads(response.get_body())
        assert response.status_code == 500
        assert body == {"status": "error", "message": "Internal server error"}

    def test_unknown_cache_backend_is_internal_error_without_details(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GDB_CACHE_BACKEND", "bogus")

        with patch("drive_browser.browsing.browser.drive_client_from_config"):
            response = folder_breadcrumbs(_get("folders/breadcrumbs"))

        body = json.loads(response.get_body())
        assert response.status_code == 500
        assert "bogus" not in body["message"]

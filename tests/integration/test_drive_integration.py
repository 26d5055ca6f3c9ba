"""Integration tests for Google Drive API connectivity.

These tests require a real service account key and are skipped in CI/CD
unless the GDB_CREDENTIALS_PATH environment variable is set.
"""

import os

import pytest

pytestmark = pytest.mark.skipif(
    not os.getenv("GDB_CREDENTIALS_PATH"),
    reason="Real Drive credentials not available",
)


def test_list_root_real() -> None:
    """List the configured browsing root through the real Drive API."""
    from drive_browser.config import load_config
    from drive_browser.drive.client import drive_client_from_config

    config = load_config()
    client = drive_client_from_config(config)
    entries = client.list_children(config.root_folder_id, page_size=config.page_size)

    assert isinstance(entries, list)
    assert len(entries) <= config.page_size


def test_breadcrumbs_of_root_real() -> None:
    """Breadcrumbs of the browsing root are a single element naming the root."""
    from drive_browser.browsing.browser import folder_browser_from_config
    from drive_browser.config import load_config

    browser = folder_browser_from_config(load_config())
    crumbs = browser.get_breadcrumbs()

    assert len(crumbs) == 1
    assert crumbs[0].id == browser.root_folder_id

"""Google Drive folder browser with a TTL content cache."""

__version__ = "0.1.0"

"""Google Drive API access and data models."""

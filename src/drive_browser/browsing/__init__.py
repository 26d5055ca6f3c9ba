"""Folder listing, breadcrumb resolution and presentation helpers."""

"""Shared utilities: logging, errors, serialization and URL helpers."""

"""Shared helpers: HTTP, logging and the package cache lock."""

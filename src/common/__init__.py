"""Shared helpers: errors, HTTP, logging, integrity and directory census."""

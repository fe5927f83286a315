"""Command-line interface for morbitgen."""

from .app import app

__all__ = ["app"]

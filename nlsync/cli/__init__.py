"""CLI for nlsync."""

from .app import app

__all__ = ["app"]

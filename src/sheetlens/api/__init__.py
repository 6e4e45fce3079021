"""HTTP API for SheetLens."""

from .app import create_app

__all__ = ["create_app"]

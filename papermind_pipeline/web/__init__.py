"""HTTP surface (Flask) for triggering ticks and writing to the drive."""

from .app import create_app

__all__ = ["create_app"]

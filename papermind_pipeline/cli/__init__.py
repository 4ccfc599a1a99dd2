"""Command-line interface components for the PaperMind pipeline.

This package provides the command implementations behind the ``command``
config key. Commands are called from the main entry point after configuration
validation and collaborator initialization.
"""

from .commands import serve_command, status_command, tick_command, upload_command

__all__ = ["tick_command", "status_command", "upload_command", "serve_command"]

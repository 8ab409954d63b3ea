"""
gqlexec CLI - Command line tools for checking schemas and running operations.
"""

from __future__ import annotations

from .main import app, main

__all__ = ["main", "app"]

"""Flask-based HTTP interface for placement_manager."""
from __future__ import annotations

from .app import create_app

__all__ = ["create_app"]

"""Reporting utilities for placement_manager."""

from .allocation import (
    allocation_rows,
    export_yaml,
    export_csv,
)

__all__ = ["allocation_rows", "export_yaml", "export_csv"]

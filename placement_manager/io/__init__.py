"""Input/output helpers for :mod:`placement_manager`."""

from .sheets import SheetClient, WorkbookSheetClient, create_workbook
from .store import SheetStore, parse_preferences

__all__ = [
    "SheetClient",
    "WorkbookSheetClient",
    "create_workbook",
    "SheetStore",
    "parse_preferences",
]

"""Spreadsheet access for the roster store.

:class:`SheetStore <placement_manager.io.store.SheetStore>` talks to any object
implementing :class:`SheetClient`. The shipped implementation,
:class:`WorkbookSheetClient`, reads and writes an ``.xlsx`` workbook with
openpyxl. The workbook is reloaded on every call so edits made in a
spreadsheet application show up on the next read.
"""
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Iterable, List, Protocol, Union
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from ..errors import StoreError
from ..models.applicant import Applicant, format_rank
from ..models.department import Department

CONFIG_HEADER = ["label", "regular", "bound"]
ROSTER_HEADER = ["rank", "name", "password", "pre_assigned", "preferences"]


class SheetClient(Protocol):
    """Minimal cell-level access to a tabular store."""

    def read_rows(self, sheet: str, first_row: int, width: int) -> List[List[str]]:
        """Return rows from ``first_row`` onward, each padded to ``width`` strings."""

    def read_column(self, sheet: str, column: int) -> List[str]:
        """Return a whole column starting at row 1."""

    def write_cell(self, sheet: str, row: int, column: int, value: str) -> None:
        """Overwrite a single cell (1-based row and column)."""


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class WorkbookSheetClient:
    """:class:`SheetClient` backed by an ``.xlsx`` file on disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    def _load(self) -> "openpyxl.Workbook":
        try:
            return openpyxl.load_workbook(self.path)
        except (OSError, BadZipFile, InvalidFileException) as exc:
            raise StoreError(f"Cannot open workbook {self.path}: {exc}") from exc

    @staticmethod
    def _sheet(workbook: "openpyxl.Workbook", name: str):
        try:
            return workbook[name]
        except KeyError as exc:
            raise StoreError(f"Workbook has no sheet named '{name}'") from exc

    def read_rows(self, sheet: str, first_row: int, width: int) -> List[List[str]]:
        with self._lock:
            ws = self._sheet(self._load(), sheet)
            rows: List[List[str]] = []
            for values in ws.iter_rows(min_row=first_row, max_col=width, values_only=True):
                cells = [_cell_text(v) for v in values]
                rows.append(cells + [""] * (width - len(cells)))
            return rows

    def read_column(self, sheet: str, column: int) -> List[str]:
        with self._lock:
            ws = self._sheet(self._load(), sheet)
            return [
                _cell_text(values[0])
                for values in ws.iter_rows(min_col=column, max_col=column, values_only=True)
            ]

    def write_cell(self, sheet: str, row: int, column: int, value: str) -> None:
        with self._lock:
            workbook = self._load()
            self._sheet(workbook, sheet).cell(row=row, column=column, value=value)
            try:
                workbook.save(self.path)
            except OSError as exc:
                raise StoreError(f"Cannot write workbook {self.path}: {exc}") from exc


def create_workbook(
    path: Union[str, Path],
    departments: Iterable[Department] = (),
    applicants: Iterable[Applicant] = (),
    config_sheet: str = "config",
    roster_sheet: str = "Roster",
) -> Path:
    """Write a workbook with header rows and optional seed data."""
    path = Path(path)
    workbook = openpyxl.Workbook()
    config_ws = workbook.active
    config_ws.title = config_sheet
    config_ws.append(CONFIG_HEADER)
    for dept in departments:
        config_ws.append([dept.label, dept.regular, dept.bound])

    roster_ws = workbook.create_sheet(roster_sheet)
    roster_ws.append(ROSTER_HEADER)
    for applicant in applicants:
        preferences = [p.to_dict() for p in applicant.preferences]
        roster_ws.append(
            [
                format_rank(applicant.rank),
                applicant.name,
                applicant.password,
                applicant.pre_assigned,
                json.dumps(preferences, ensure_ascii=False) if preferences else None,
            ]
        )
    workbook.save(path)
    return path

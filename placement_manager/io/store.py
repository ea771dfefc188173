"""Roster and department configuration stored in a spreadsheet."""
from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

from ..errors import ApplicantNotFoundError, InvalidCredentialsError
from ..models.applicant import UNRANKED, Applicant, coerce_rank
from ..models.department import Department
from ..models.slot import Slot
from ..models.snapshot import Snapshot
from .sheets import SheetClient

logger = logging.getLogger(__name__)

NAME_COLUMN = 2
PREFERENCES_COLUMN = 5


def parse_capacity(raw: str, lineno: int) -> int:
    if not raw:
        return 0
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        logger.warning("Row %d: capacity %r is not a number, using 0", lineno, raw)
        return 0


def parse_preferences(raw: str, name: str) -> List[Slot]:
    """Decode a stored preference cell.

    Malformed JSON or a non-list value yields an empty list. Bad entries are
    dropped and repeated ``(label, isBound)`` pairs keep their first position.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse preferences for %s: %s", name, exc)
        return []
    if not isinstance(data, list):
        logger.error("Preferences for %s are not a list", name)
        return []

    preferences: List[Slot] = []
    for entry in data:
        try:
            slot = Slot.from_dict(entry)
        except ValueError as exc:
            logger.warning("Skipping preference entry for %s: %s", name, exc)
            continue
        if slot in preferences:
            logger.warning("Dropping repeated preference %s for %s", slot.key, name)
            continue
        preferences.append(slot)
    return preferences


class SheetStore:
    """Read the roster and write preference lists through a :class:`SheetClient`.

    The ``config`` sheet holds ``label | regular | bound`` and the roster
    sheet holds ``rank | name | password | pre_assigned | preferences``, both
    with a header in row 1.
    """

    def __init__(
        self,
        client: SheetClient,
        config_sheet: str = "config",
        roster_sheet: str = "Roster",
    ) -> None:
        self.client = client
        self.config_sheet = config_sheet
        self.roster_sheet = roster_sheet

    def load_departments(self) -> List[Department]:
        departments: List[Department] = []
        for lineno, row in enumerate(self.client.read_rows(self.config_sheet, 2, 3), start=2):
            label, regular, bound = row
            if not label:
                continue
            departments.append(
                Department(
                    label=label,
                    regular=parse_capacity(regular, lineno),
                    bound=parse_capacity(bound, lineno),
                )
            )
        return departments

    def load_applicants(self) -> List[Applicant]:
        applicants: List[Applicant] = []
        seen = set()
        for lineno, row in enumerate(self.client.read_rows(self.roster_sheet, 2, 5), start=2):
            rank_raw, name, password, pre_assigned, preferences_raw = row
            if not name:
                if any(row):
                    logger.warning("Row %d: roster entry without a name skipped", lineno)
                continue
            if name in seen:
                logger.warning("Row %d: duplicate applicant %s skipped", lineno, name)
                continue
            seen.add(name)

            try:
                rank = coerce_rank(rank_raw)
            except ValueError as exc:
                logger.warning("Row %d: %s; %s ranked last", lineno, exc, name)
                rank = UNRANKED

            applicants.append(
                Applicant(
                    name=name,
                    rank=rank,
                    password=password,
                    pre_assigned=pre_assigned or None,
                    preferences=parse_preferences(preferences_raw, name),
                )
            )
        return applicants

    def load_snapshot(self) -> Snapshot:
        return Snapshot(
            departments=self.load_departments(), applicants=self.load_applicants()
        )

    def find_row(self, name: str) -> int:
        """Return the 1-based sheet row of the first entry named ``name``."""
        column = self.client.read_column(self.roster_sheet, NAME_COLUMN)
        for index, value in enumerate(column, start=1):
            if index > 1 and value == name:
                return index
        raise ApplicantNotFoundError(name)

    def find_applicant(self, name: str) -> Applicant:
        for applicant in self.load_applicants():
            if applicant.name == name:
                return applicant
        raise ApplicantNotFoundError(name)

    def authenticate(self, name: str, password: Optional[str]) -> Applicant:
        """Look an applicant up by name and passcode.

        This is a convenience lookup, not a security boundary.
        """
        applicant = self.find_applicant(name)
        if (password or "") != applicant.password:
            raise InvalidCredentialsError(f"Passcode mismatch for {name}")
        return applicant

    def save_preferences(self, name: str, preferences: Sequence[Slot]) -> int:
        """Overwrite the stored preference list of ``name`` and return its row.

        Lookup and write are separate calls, so a concurrent reshuffle of the
        roster rows between them can land the write on the wrong row.
        """
        row = self.find_row(name)
        payload = json.dumps([p.to_dict() for p in preferences], ensure_ascii=False)
        self.client.write_cell(self.roster_sheet, row, PREFERENCES_COLUMN, payload)
        logger.info("Saved %d preferences for %s to row %d", len(preferences), name, row)
        return row

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from .applicant import Applicant
from .department import Department
from .slot import Slot


@dataclass(frozen=True)
class Snapshot:
    """Roster and department configuration read at one point in time."""

    departments: List[Department] = field(default_factory=list)
    applicants: List[Applicant] = field(default_factory=list)

    def find(self, name: str) -> Optional[Applicant]:
        for applicant in self.applicants:
            if applicant.name == name:
                return applicant
        return None

    def with_preferences(self, name: str, preferences: Sequence[Slot]) -> "Snapshot":
        """Return a copy where ``name`` has ``preferences`` as its whole list."""
        applicants = [
            replace(a, preferences=list(preferences)) if a.name == name else a
            for a in self.applicants
        ]
        return Snapshot(departments=list(self.departments), applicants=applicants)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": [d.to_dict() for d in self.departments],
            "users": [a.to_dict() for a in self.applicants],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(
            departments=[Department.from_dict(d) for d in data.get("config") or []],
            applicants=[Applicant.from_dict(u) for u in data.get("users") or []],
        )

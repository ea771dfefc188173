from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.applicant import Applicant
from ..models.department import Department
from ..models.slot import BOUND_MARKER, Slot
from .capacity import CapacityTable


class Outcome(str, Enum):
    """How an applicant's assignment was reached."""

    PRE_ASSIGNED = "pre_assigned"
    PREFERENCE = "preference"
    ALL_FULL = "all_full"
    NO_PREFERENCES = "no_preferences"


@dataclass
class AllocationResult:
    """Final allocation package."""

    assignments: Dict[str, Optional[Slot]]
    capacity: Dict[str, int]
    order: List[str] = field(default_factory=list)
    outcomes: Dict[str, Outcome] = field(default_factory=dict)
    rationales: Dict[str, str] = field(default_factory=dict)

    def assignment_for(self, name: str) -> Optional[Slot]:
        return self.assignments.get(name)


def rank_order(applicants: Iterable[Applicant]) -> List[Applicant]:
    """Sort applicants by ascending rank.

    ``sorted`` is stable, so applicants sharing a rank keep roster order.
    """
    return sorted(applicants, key=lambda a: a.rank)


class Allocator:
    """Assign each applicant the first preference that still has a seat.

    Applicants are processed once, in rank order:
    1. pre-assigned applicants keep their slot without touching the counters
    2. everyone else takes the first preference with remaining capacity
    3. an applicant with nothing available stays unassigned
    """

    @staticmethod
    def first_available(
        preferences: Sequence[Slot], capacity: CapacityTable
    ) -> Tuple[Optional[Slot], int]:
        """Consume and return the first preference with a free seat and its 1-based position."""
        for position, pref in enumerate(preferences, start=1):
            if capacity.consume(pref.key):
                return pref, position
        return None, 0

    @staticmethod
    def allocate(
        applicants: Iterable[Applicant],
        departments: Iterable[Department],
        bound_marker: str = BOUND_MARKER,
    ) -> AllocationResult:
        capacity = CapacityTable.from_departments(departments)
        assignments: Dict[str, Optional[Slot]] = {}
        outcomes: Dict[str, Outcome] = {}
        rationales: Dict[str, str] = {}
        order: List[str] = []

        for applicant in rank_order(applicants):
            order.append(applicant.name)
            if applicant.is_pre_assigned:
                assignments[applicant.name] = applicant.pre_assignment(bound_marker)
                outcomes[applicant.name] = Outcome.PRE_ASSIGNED
                rationales[applicant.name] = f"Pre-assigned to {applicant.pre_assigned}"
                continue

            if not applicant.preferences:
                assignments[applicant.name] = None
                outcomes[applicant.name] = Outcome.NO_PREFERENCES
                rationales[applicant.name] = "No preferences submitted"
                continue

            slot, position = Allocator.first_available(applicant.preferences, capacity)
            assignments[applicant.name] = slot
            if slot is None:
                outcomes[applicant.name] = Outcome.ALL_FULL
                rationales[applicant.name] = "All preferences full"
            else:
                outcomes[applicant.name] = Outcome.PREFERENCE
                rationales[applicant.name] = (
                    f"Preference {position} of {len(applicant.preferences)}"
                )

        return AllocationResult(
            assignments=assignments,
            capacity=capacity.as_dict(),
            order=order,
            outcomes=outcomes,
            rationales=rationales,
        )

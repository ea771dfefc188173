"""Capacity visible to an applicant at their turn in the ranking."""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from ..errors import ApplicantNotFoundError
from ..models.applicant import Applicant
from ..models.department import Department
from ..models.slot import Slot
from .allocator import AllocationResult, rank_order
from .capacity import CapacityTable


def project_capacity(
    applicants: Iterable[Applicant],
    departments: Iterable[Department],
    viewer_rank: float,
    assignments: Mapping[str, Optional[Slot]],
) -> Dict[str, int]:
    """Return remaining capacity after every applicant ranked ahead of the viewer.

    Unlike :meth:`Allocator.allocate`, pre-assigned seats are deducted here
    too, since the viewer competes against them all the same.
    """
    capacity = CapacityTable.from_departments(departments)
    for applicant in rank_order(applicants):
        if applicant.rank >= viewer_rank:
            break
        slot = assignments.get(applicant.name)
        if slot is not None:
            capacity.deduct(slot.key)
    return capacity.as_dict()


def capacity_before(
    applicants: Iterable[Applicant],
    departments: Iterable[Department],
    viewer_name: str,
    result: AllocationResult,
) -> Dict[str, int]:
    """Project capacity for the applicant called ``viewer_name``.

    Raises
    ------
    ApplicantNotFoundError
        If nobody on the roster has that name.
    """
    roster: List[Applicant] = list(applicants)
    viewer = next((a for a in roster if a.name == viewer_name), None)
    if viewer is None:
        raise ApplicantNotFoundError(viewer_name)
    return project_capacity(roster, departments, viewer.rank, result.assignments)

"""Utilities for exporting allocation results and residual capacity.

This module turns an
:class:`~placement_manager.engine.allocator.AllocationResult` into rows
suitable for YAML or CSV output. Applicants are listed in processing order
together with how their assignment came about, and residual capacity is
written per department and slot kind.
"""
from __future__ import annotations

import csv
from typing import Any, Dict, Iterable, List

import yaml

from ..engine.allocator import AllocationResult
from ..models.applicant import Applicant, format_rank

ALLOCATION_FIELDS = ["rank", "name", "label", "bound", "outcome", "rationale"]


def allocation_rows(
    result: AllocationResult, applicants: Iterable[Applicant]
) -> List[Dict[str, Any]]:
    """Return one row per applicant in rank order.

    Parameters
    ----------
    result:
        Allocation produced by :meth:`Allocator.allocate`.
    applicants:
        The roster the allocation was computed from.

    Returns
    -------
    list[dict]
        Rows with ``rank``, ``name``, ``label``, ``bound``, ``outcome`` and
        ``rationale`` keys. Unassigned applicants have an empty label.
    """
    by_name = {a.name: a for a in applicants}
    rows = []
    for name in result.order:
        slot = result.assignments.get(name)
        outcome = result.outcomes.get(name)
        rows.append(
            {
                "rank": format_rank(by_name[name].rank) if name in by_name else None,
                "name": name,
                "label": slot.label if slot else "",
                "bound": bool(slot and slot.is_bound),
                "outcome": outcome.value if outcome else "",
                "rationale": result.rationales.get(name, ""),
            }
        )
    return rows


def export_yaml(
    result: AllocationResult,
    applicants: Iterable[Applicant],
    allocation_file: str,
    capacity_file: str,
) -> None:
    """Write the allocation and the residual capacity to YAML files.

    The allocation file maps each applicant to ``{label, isBound, outcome}``
    (``label`` is ``null`` when unassigned). The capacity file maps slot keys
    to remaining seats.
    """
    allocations = {
        row["name"]: {
            "label": row["label"] or None,
            "isBound": row["bound"],
            "outcome": row["outcome"],
        }
        for row in allocation_rows(result, applicants)
    }
    with open(allocation_file, "w", encoding="utf8") as handle:
        yaml.safe_dump(allocations, handle, sort_keys=True, allow_unicode=True)
    with open(capacity_file, "w", encoding="utf8") as handle:
        yaml.safe_dump(result.capacity, handle, sort_keys=True, allow_unicode=True)


def export_csv(
    result: AllocationResult,
    applicants: Iterable[Applicant],
    allocation_file: str,
    capacity_file: str,
) -> None:
    """Write the allocation and the residual capacity to CSV files.

    The allocation CSV uses the columns of :func:`allocation_rows`. The
    capacity CSV has columns ``slot`` and ``remaining``.
    """
    with open(allocation_file, "w", newline="", encoding="utf8") as handle:
        writer = csv.DictWriter(handle, fieldnames=ALLOCATION_FIELDS)
        writer.writeheader()
        writer.writerows(allocation_rows(result, applicants))

    with open(capacity_file, "w", newline="", encoding="utf8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["slot", "remaining"])
        for key in sorted(result.capacity):
            writer.writerow([key, result.capacity[key]])

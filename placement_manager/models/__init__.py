"""Data models for placement_manager."""

from .applicant import Applicant
from .department import Department
from .slot import BOUND_MARKER, Slot, parse_pre_assignment, slot_key
from .snapshot import Snapshot

__all__ = [
    "Applicant",
    "Department",
    "Slot",
    "Snapshot",
    "BOUND_MARKER",
    "parse_pre_assignment",
    "slot_key",
]

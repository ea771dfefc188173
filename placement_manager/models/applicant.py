from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .slot import BOUND_MARKER, Slot, parse_pre_assignment

UNRANKED = math.inf


def coerce_rank(value: Any) -> float:
    """Return ``value`` as a float rank.

    Raises
    ------
    ValueError
        If the value is empty, non-numeric or NaN.
    """
    if isinstance(value, bool):
        raise ValueError("rank must be numeric")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("rank must not be empty")
    try:
        rank = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"rank must be numeric, got {value!r}") from exc
    if math.isnan(rank):
        raise ValueError("rank must not be NaN")
    return rank


def format_rank(rank: float) -> Union[int, float, None]:
    """Render a rank for JSON: integral ranks as ints, unranked as ``None``."""
    if math.isinf(rank):
        return None
    if rank.is_integer():
        return int(rank)
    return rank


@dataclass(eq=False)
class Applicant:
    """A roster entry competing for department slots."""

    name: str
    rank: float
    password: str = ""
    pre_assigned: Optional[str] = None
    preferences: List[Slot] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("Applicant name must not be empty")
        self.rank = coerce_rank(self.rank)
        if self.pre_assigned is not None and not self.pre_assigned.strip():
            self.pre_assigned = None
        self.preferences = [
            p if isinstance(p, Slot) else Slot.from_dict(p) for p in self.preferences
        ]
        seen = set()
        for pref in self.preferences:
            if pref in seen:
                raise ValueError(
                    f"{self.name} lists {pref.label} ({pref.kind}) more than once"
                )
            seen.add(pref)

    @property
    def is_pre_assigned(self) -> bool:
        return self.pre_assigned is not None

    def pre_assignment(self, marker: str = BOUND_MARKER) -> Optional[Slot]:
        """Return the parsed pre-assignment, if any."""
        return parse_pre_assignment(self.pre_assigned, marker)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": format_rank(self.rank),
            "name": self.name,
            "password": self.password,
            "preAssigned": self.pre_assigned,
            "preferences": [p.to_dict() for p in self.preferences],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Applicant":
        """Build an applicant from the ``/api/data`` user payload.

        A missing rank means unranked and a non-list ``preferences`` value
        is read as an empty list.
        """
        rank = data.get("rank")
        preferences = data.get("preferences")
        return cls(
            name=str(data.get("name") or ""),
            rank=UNRANKED if rank is None else rank,
            password=str(data.get("password") or ""),
            pre_assigned=data.get("preAssigned") or None,
            preferences=preferences if isinstance(preferences, list) else [],
        )

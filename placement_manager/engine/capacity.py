from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from ..models.department import Department
from ..models.slot import slot_key

logger = logging.getLogger(__name__)


class CapacityTable:
    """Remaining seat counters keyed by ``"{label}-regular"`` / ``"{label}-bound"``."""

    def __init__(self, counts: Optional[Dict[str, int]] = None) -> None:
        self._counts: Dict[str, int] = {k: max(0, v) for k, v in (counts or {}).items()}

    @classmethod
    def from_departments(cls, departments: Iterable[Department]) -> "CapacityTable":
        """Initialise counters from configuration, clamping negatives to zero."""
        counts: Dict[str, int] = {}
        for dept in departments:
            regular_key = slot_key(dept.label, False)
            if regular_key in counts:
                logger.warning("Duplicate department %s ignored", dept.label)
                continue
            for key, value in ((regular_key, dept.regular), (slot_key(dept.label, True), dept.bound)):
                if value < 0:
                    logger.warning("Negative capacity %d for %s clamped to 0", value, key)
                    value = 0
                counts[key] = value
        return cls(counts)

    def __contains__(self, key: str) -> bool:
        return key in self._counts

    def remaining(self, key: str) -> int:
        return self._counts.get(key, 0)

    def consume(self, key: str) -> bool:
        """Take one seat from ``key``; return ``False`` if none is left."""
        if self.remaining(key) <= 0:
            return False
        self._counts[key] -= 1
        return True

    def deduct(self, key: str) -> None:
        """Record an observed seat use; unknown keys are ignored, zero is a floor."""
        if key in self._counts and self._counts[key] > 0:
            self._counts[key] -= 1

    def as_dict(self) -> Dict[str, int]:
        return dict(self._counts)

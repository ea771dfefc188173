from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

BOUND_MARKER = "綁定"
REGULAR = "regular"
BOUND = "bound"


def slot_key(label: str, is_bound: bool) -> str:
    """Return the capacity key for a department slot, e.g. ``"ER-regular"``."""
    return f"{label}-{BOUND if is_bound else REGULAR}"


@dataclass(frozen=True)
class Slot:
    """A department seat of a given kind.

    Slots appear both as preference entries and as assignments.
    """

    label: str
    is_bound: bool = False

    @property
    def kind(self) -> str:
        return BOUND if self.is_bound else REGULAR

    @property
    def key(self) -> str:
        return slot_key(self.label, self.is_bound)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "isBound": self.is_bound}

    @classmethod
    def from_dict(cls, data: Any) -> "Slot":
        """Build a slot from its ``{label, isBound}`` wire form."""
        if not isinstance(data, dict):
            raise ValueError(f"Preference entry must be a mapping, not {type(data).__name__}")
        label = data.get("label")
        if not isinstance(label, str) or not label.strip():
            raise ValueError("Preference entry requires a non-empty 'label'")
        is_bound = data.get("isBound", False)
        if not isinstance(is_bound, bool):
            raise ValueError("Preference entry 'isBound' must be a boolean")
        return cls(label=label.strip(), is_bound=is_bound)


def parse_pre_assignment(raw: Optional[str], marker: str = BOUND_MARKER) -> Optional[Slot]:
    """Turn a raw pre-assigned label such as ``"ER(綁定)"`` into a :class:`Slot`.

    The slot is bound when ``marker`` occurs in the label. The marker, with an
    optional leading ``(``/``-`` and trailing ``)`` (ASCII or full-width), is
    stripped from the display label.
    """
    if raw is None or not raw.strip():
        return None
    if marker not in raw:
        return Slot(label=raw.strip(), is_bound=False)
    pattern = rf"[\(\-（]?{re.escape(marker)}[\)）]?"
    label = re.sub(pattern, "", raw, count=1).strip()
    return Slot(label=label, is_bound=True)

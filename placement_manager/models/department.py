from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Department:
    """Configured capacity for one department.

    Negative capacities are accepted here and clamped when the capacity
    table is built.
    """

    label: str
    regular: int = 0
    bound: int = 0

    def __post_init__(self) -> None:
        self.label = self.label.strip()
        if not self.label:
            raise ValueError("Department label must not be empty")
        try:
            self.regular = int(self.regular)
            self.bound = int(self.bound)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Capacities for {self.label} must be integers"
            ) from exc

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "regular": self.regular, "bound": self.bound}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Department":
        return cls(
            label=str(data.get("label") or ""),
            regular=data.get("regular") or 0,
            bound=data.get("bound") or 0,
        )

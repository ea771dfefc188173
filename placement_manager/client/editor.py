"""Client-side editing of one applicant's preference list."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ..errors import EditorStateError, PlacementError
from ..models.applicant import Applicant
from ..models.slot import Slot

logger = logging.getLogger(__name__)


class EditorState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    SAVING = "saving"


def entry_id(slot: Slot) -> str:
    """Display-only identifier for an entry in the working copy."""
    return f"{slot.label}-{'b' if slot.is_bound else 'r'}"


@dataclass(frozen=True)
class EditEntry:
    id: str
    slot: Slot


class PreferenceEditor:
    """State machine for ``VIEWING -> EDITING -> SAVING -> VIEWING``.

    Edits only touch the working copy. :meth:`save` submits the whole list and
    always calls ``refresh`` afterwards, whether or not the submit succeeded;
    the re-fetch is what resynchronises the local state, there is no rollback.
    """

    def __init__(
        self,
        submit: Callable[[str, List[Slot]], object],
        refresh: Callable[[], object],
        apply_local: Optional[Callable[[str, List[Slot]], None]] = None,
    ) -> None:
        self._submit = submit
        self._refresh = refresh
        self._apply_local = apply_local
        self.state = EditorState.VIEWING
        self.applicant_name: Optional[str] = None
        self.entries: List[EditEntry] = []

    def _require(self, state: EditorState) -> None:
        if self.state is not state:
            raise EditorStateError(f"Expected {state.value} state, editor is {self.state.value}")

    def begin(self, applicant: Applicant) -> None:
        self._require(EditorState.VIEWING)
        if applicant.is_pre_assigned:
            raise EditorStateError(
                f"{applicant.name} is fixed to {applicant.pre_assigned} and cannot edit preferences"
            )
        self.applicant_name = applicant.name
        self.entries = [EditEntry(entry_id(p), p) for p in applicant.preferences]
        self.state = EditorState.EDITING

    def add(self, label: str, is_bound: bool = False) -> bool:
        """Append an entry; return ``False`` if it is already listed."""
        self._require(EditorState.EDITING)
        label = label.strip()
        if not label:
            raise ValueError("Department label must not be empty")
        slot = Slot(label=label, is_bound=is_bound)
        if any(e.slot == slot for e in self.entries):
            return False
        self.entries.append(EditEntry(entry_id(slot), slot))
        return True

    def remove(self, identifier: str) -> None:
        self._require(EditorState.EDITING)
        self.entries = [e for e in self.entries if e.id != identifier]

    def move(self, identifier: str, index: int) -> None:
        """Move an entry to ``index``, shifting the others."""
        self._require(EditorState.EDITING)
        old_index = next((i for i, e in enumerate(self.entries) if e.id == identifier), None)
        if old_index is None:
            return
        entry = self.entries.pop(old_index)
        index = max(0, min(index, len(self.entries)))
        self.entries.insert(index, entry)

    def working_copy(self) -> List[Slot]:
        return [e.slot for e in self.entries]

    def cancel(self) -> None:
        self._require(EditorState.EDITING)
        self._reset()

    def _reset(self) -> None:
        self.state = EditorState.VIEWING
        self.applicant_name = None
        self.entries = []

    def save(self) -> bool:
        """Submit the working copy; return whether the store accepted it."""
        self._require(EditorState.EDITING)
        self.state = EditorState.SAVING
        name = self.applicant_name
        preferences = self.working_copy()
        if self._apply_local:
            self._apply_local(name, preferences)

        success = False
        try:
            success = self._submit(name, preferences) is not False
        except PlacementError as exc:
            logger.error("Saving preferences for %s failed: %s", name, exc)
        finally:
            self._reset()
            self._refresh()
        return success

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from placement_manager.client import EditorState, PreferenceEditor, entry_id
from placement_manager.errors import EditorStateError, RemoteError, TransportError
from placement_manager.models import Applicant, Slot


class Recorder:
    def __init__(self, fail=None):
        self.fail = fail
        self.submitted = []
        self.local = []
        self.refreshes = 0

    def submit(self, name, preferences):
        if self.fail:
            raise self.fail
        self.submitted.append((name, preferences))
        return True

    def refresh(self):
        self.refreshes += 1

    def apply_local(self, name, preferences):
        self.local.append((name, preferences))


def _editor(recorder):
    return PreferenceEditor(recorder.submit, recorder.refresh, recorder.apply_local)


def test_edit_and_save():
    recorder = Recorder()
    editor = _editor(recorder)
    editor.begin(Applicant("A", 1, preferences=[Slot("X"), Slot("Y")]))
    assert editor.state is EditorState.EDITING
    assert [e.id for e in editor.entries] == ["X-r", "Y-r"]

    assert editor.add("Z", is_bound=True)
    assert not editor.add("X")
    editor.move("Z-b", 0)
    editor.remove("Y-r")
    assert editor.working_copy() == [Slot("Z", True), Slot("X")]

    assert editor.save() is True
    assert recorder.submitted == [("A", [Slot("Z", True), Slot("X")])]
    assert recorder.local == recorder.submitted
    assert recorder.refreshes == 1
    assert editor.state is EditorState.VIEWING
    assert editor.entries == []


def test_move_clamps_index_and_ignores_unknown_ids():
    editor = _editor(Recorder())
    editor.begin(Applicant("A", 1, preferences=[Slot("X"), Slot("Y"), Slot("Z")]))
    editor.move("X-r", 99)
    assert [e.id for e in editor.entries] == ["Y-r", "Z-r", "X-r"]
    editor.move("missing", 0)
    assert [e.id for e in editor.entries] == ["Y-r", "Z-r", "X-r"]


@pytest.mark.parametrize("error", [TransportError("offline"), RemoteError(500, "boom")])
def test_failed_save_still_refreshes(error):
    recorder = Recorder(fail=error)
    editor = _editor(recorder)
    editor.begin(Applicant("A", 1))
    editor.add("X")
    assert editor.save() is False
    assert recorder.refreshes == 1
    assert recorder.local == [("A", [Slot("X")])]
    assert editor.state is EditorState.VIEWING


def test_cancel_discards_working_copy():
    recorder = Recorder()
    editor = _editor(recorder)
    applicant = Applicant("A", 1, preferences=[Slot("X")])
    editor.begin(applicant)
    editor.remove("X-r")
    editor.cancel()
    assert editor.state is EditorState.VIEWING
    assert applicant.preferences == [Slot("X")]
    assert recorder.submitted == []
    assert recorder.refreshes == 0


def test_pre_assigned_cannot_edit():
    editor = _editor(Recorder())
    with pytest.raises(EditorStateError):
        editor.begin(Applicant("A", 1, pre_assigned="X(綁定)"))
    assert editor.state is EditorState.VIEWING


def test_illegal_transitions():
    editor = _editor(Recorder())
    with pytest.raises(EditorStateError):
        editor.add("X")
    with pytest.raises(EditorStateError):
        editor.save()
    editor.begin(Applicant("A", 1))
    with pytest.raises(EditorStateError):
        editor.begin(Applicant("B", 2))


def test_add_rejects_blank_label():
    editor = _editor(Recorder())
    editor.begin(Applicant("A", 1, preferences=[Slot("X")]))
    with pytest.raises(ValueError):
        editor.add("")
    with pytest.raises(ValueError):
        editor.add("   ", is_bound=True)
    assert editor.add(" Y ")
    assert editor.working_copy() == [Slot("X"), Slot("Y")]


def test_entry_id():
    assert entry_id(Slot("X", True)) == "X-b"
    assert entry_id(Slot("X")) == "X-r"

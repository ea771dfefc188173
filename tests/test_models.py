import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from placement_manager.models import (
    Applicant,
    Department,
    Slot,
    Snapshot,
    parse_pre_assignment,
    slot_key,
)


def test_slot_keys():
    assert slot_key("ER", False) == "ER-regular"
    assert slot_key("ER", True) == "ER-bound"
    assert Slot("ER", is_bound=True).key == "ER-bound"


def test_slot_from_dict_validation():
    assert Slot.from_dict({"label": " ER ", "isBound": True}) == Slot("ER", True)
    assert Slot.from_dict({"label": "ER"}) == Slot("ER", False)
    with pytest.raises(ValueError):
        Slot.from_dict({"label": ""})
    with pytest.raises(ValueError):
        Slot.from_dict({"label": "ER", "isBound": "yes"})
    with pytest.raises(ValueError):
        Slot.from_dict(["ER"])


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("X(綁定)", Slot("X", True)),
        ("X-綁定", Slot("X", True)),
        ("X（綁定）", Slot("X", True)),
        ("X綁定", Slot("X", True)),
        (" Surgery ", Slot("Surgery", False)),
        ("", None),
        (None, None),
    ],
)
def test_parse_pre_assignment(raw, expected):
    assert parse_pre_assignment(raw) == expected


def test_parse_pre_assignment_custom_marker():
    assert parse_pre_assignment("ER(bonded)", marker="bonded") == Slot("ER", True)


def test_applicant_validation():
    with pytest.raises(ValueError):
        Applicant(name=" ", rank=1)
    with pytest.raises(ValueError):
        Applicant(name="Alice", rank="first")
    with pytest.raises(ValueError):
        Applicant(name="Alice", rank=float("nan"))
    with pytest.raises(ValueError):
        Applicant(
            name="Alice",
            rank=1,
            preferences=[{"label": "ER", "isBound": False}, {"label": "ER", "isBound": False}],
        )


def test_applicant_normalises_fields():
    alice = Applicant(
        name=" Alice ",
        rank="3",
        pre_assigned="  ",
        preferences=[{"label": "ER", "isBound": False}, Slot("ER", True)],
    )
    assert alice.name == "Alice"
    assert alice.rank == 3.0
    assert alice.pre_assigned is None
    assert not alice.is_pre_assigned
    assert alice.preferences == [Slot("ER", False), Slot("ER", True)]


def test_applicant_round_trip_through_wire_format():
    alice = Applicant(name="Alice", rank=2, password="123", preferences=[Slot("ER")])
    data = alice.to_dict()
    assert data == {
        "rank": 2,
        "name": "Alice",
        "password": "123",
        "preAssigned": None,
        "preferences": [{"label": "ER", "isBound": False}],
    }
    unranked = Applicant.from_dict({"name": "Bob", "preferences": "oops"})
    assert math.isinf(unranked.rank)
    assert unranked.preferences == []
    assert unranked.to_dict()["rank"] is None


def test_department_coerces_capacities():
    dept = Department(label="ER", regular="2", bound=1)
    assert dept.regular == 2
    with pytest.raises(ValueError):
        Department(label="", regular=1)
    with pytest.raises(ValueError):
        Department(label="ER", regular="many")


def test_snapshot_with_preferences_replaces_whole_list():
    snapshot = Snapshot(
        departments=[Department("ER", 1, 0)],
        applicants=[
            Applicant("Alice", 1, preferences=[Slot("ER")]),
            Applicant("Bob", 2),
        ],
    )
    updated = snapshot.with_preferences("Bob", [Slot("ER", True)])
    assert updated.find("Bob").preferences == [Slot("ER", True)]
    assert snapshot.find("Bob").preferences == []
    assert updated.find("Alice").preferences == [Slot("ER")]
    assert Snapshot.from_dict(updated.to_dict()).find("Bob").preferences == [Slot("ER", True)]

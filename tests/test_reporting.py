import csv
import sys
from pathlib import Path

import yaml

sys.path.append(str(Path(__file__).resolve().parents[1]))

from placement_manager.engine.allocator import Allocator
from placement_manager.models import Applicant, Department, Slot
from placement_manager.reporting import allocation_rows, export_csv, export_yaml


def _allocate():
    applicants = [
        Applicant("Bob", 2, preferences=[Slot("ER")]),
        Applicant("Alice", 1, preferences=[Slot("ER")]),
        Applicant("Carol", 3, pre_assigned="IM(綁定)"),
        Applicant("Dan", 4),
    ]
    departments = [Department("ER", 1, 0), Department("IM", 0, 1)]
    return Allocator.allocate(applicants, departments), applicants


def test_allocation_rows_follow_rank_order():
    result, applicants = _allocate()
    rows = allocation_rows(result, applicants)
    assert [r["name"] for r in rows] == ["Alice", "Bob", "Carol", "Dan"]
    assert rows[0] == {
        "rank": 1,
        "name": "Alice",
        "label": "ER",
        "bound": False,
        "outcome": "preference",
        "rationale": "Preference 1 of 1",
    }
    assert rows[1]["label"] == "" and rows[1]["outcome"] == "all_full"
    assert rows[2]["label"] == "IM" and rows[2]["bound"] is True
    assert rows[3]["outcome"] == "no_preferences"


def test_export_yaml_and_csv(tmp_path):
    result, applicants = _allocate()

    alloc_yaml = tmp_path / "allocation.yaml"
    cap_yaml = tmp_path / "capacity.yaml"
    export_yaml(result, applicants, str(alloc_yaml), str(cap_yaml))

    allocations = yaml.safe_load(alloc_yaml.read_text(encoding="utf8"))
    assert allocations["Alice"] == {"label": "ER", "isBound": False, "outcome": "preference"}
    assert allocations["Bob"] == {"label": None, "isBound": False, "outcome": "all_full"}
    assert allocations["Carol"]["isBound"] is True
    capacity = yaml.safe_load(cap_yaml.read_text(encoding="utf8"))
    assert capacity == {"ER-regular": 0, "ER-bound": 0, "IM-regular": 0, "IM-bound": 1}

    alloc_csv = tmp_path / "allocation.csv"
    cap_csv = tmp_path / "capacity.csv"
    export_csv(result, applicants, str(alloc_csv), str(cap_csv))

    with open(alloc_csv, newline="", encoding="utf8") as handle:
        rows = list(csv.DictReader(handle))
    assert [r["name"] for r in rows] == ["Alice", "Bob", "Carol", "Dan"]
    assert rows[2]["bound"] == "True"

    with open(cap_csv, newline="", encoding="utf8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["slot", "remaining"]
    assert ["IM-bound", "1"] in rows

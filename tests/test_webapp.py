from __future__ import annotations

import json

import openpyxl
import pytest

from placement_manager.config import Settings
from placement_manager.errors import StoreError
from placement_manager.io import SheetStore, WorkbookSheetClient, create_workbook
from placement_manager.models import Applicant, Department, Slot
from placement_manager.web import create_app


@pytest.fixture
def workbook(tmp_path):
    return create_workbook(
        tmp_path / "roster.xlsx",
        departments=[Department("X", regular=1, bound=1), Department("Y", regular=1, bound=0)],
        applicants=[
            Applicant("A", 1, password="111", preferences=[Slot("X")]),
            Applicant("B", 2, password="222", preferences=[Slot("X")]),
            Applicant("C", 3, password="333", pre_assigned="X(綁定)"),
        ],
    )


@pytest.fixture
def client(workbook):
    app = create_app(SheetStore(WorkbookSheetClient(workbook)), Settings(cors_origin="https://example.org"))
    return app.test_client()


class BrokenStore:
    def load_snapshot(self):
        raise StoreError("unreachable")

    def save_preferences(self, name, preferences):
        raise StoreError("unreachable")


def test_get_data(client):
    resp = client.get("/api/data")
    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "https://example.org"
    data = resp.get_json()
    assert data["config"] == [
        {"label": "X", "regular": 1, "bound": 1},
        {"label": "Y", "regular": 1, "bound": 0},
    ]
    assert data["users"][0] == {
        "rank": 1,
        "name": "A",
        "password": "111",
        "preAssigned": None,
        "preferences": [{"label": "X", "isBound": False}],
    }
    assert data["users"][2]["preAssigned"] == "X(綁定)"


def test_save_then_read_back(client, workbook):
    resp = client.post(
        "/api/save",
        json={"name": "B", "preferences": [{"label": "Y", "isBound": False}]},
    )
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}

    stored = openpyxl.load_workbook(workbook)["Roster"].cell(row=3, column=5).value
    assert json.loads(stored) == [{"label": "Y", "isBound": False}]

    allocation = client.get("/api/allocation").get_json()
    assert allocation["allocations"]["B"] == {"label": "Y", "isBound": False}


def test_save_validation_errors(client):
    resp = client.post("/api/save", json={"preferences": []})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False

    resp = client.post("/api/save", json={"name": "A", "preferences": "X"})
    assert resp.status_code == 400

    resp = client.post(
        "/api/save",
        json={
            "name": "A",
            "preferences": [{"label": "X", "isBound": False}, {"label": "X", "isBound": False}],
        },
    )
    assert resp.status_code == 400

    resp = client.post("/api/save", json={"name": "Nobody", "preferences": []})
    assert resp.status_code == 404


def test_store_failures_are_500():
    client = create_app(BrokenStore()).test_client()
    resp = client.get("/api/data")
    assert resp.status_code == 500
    assert resp.data == b"Server Error"

    resp = client.post("/api/save", json={"name": "A", "preferences": []})
    assert resp.status_code == 500
    assert resp.get_json()["success"] is False


def test_login(client):
    resp = client.post("/api/login", json={"name": "B", "password": "222"})
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "name": "B", "rank": 2}

    assert client.post("/api/login", json={"name": "B", "password": "000"}).status_code == 401
    assert client.post("/api/login", json={"name": "Z", "password": "000"}).status_code == 404
    assert client.post("/api/login", json={}).status_code == 400


def test_allocation_with_viewer(client):
    resp = client.get("/api/allocation?viewer=B")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["allocations"] == {
        "A": {"label": "X", "isBound": False},
        "B": None,
        "C": {"label": "X", "isBound": True},
    }
    assert data["outcomes"]["B"] == "all_full"
    assert data["capacity"]["X-bound"] == 1
    assert data["capacityBeforeViewer"]["X-regular"] == 0

    assert client.get("/api/allocation?viewer=Nobody").status_code == 404


def test_board_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Allocation" in resp.data
    assert "(fixed)".encode() in resp.data
    assert b"All preferences full" in resp.data

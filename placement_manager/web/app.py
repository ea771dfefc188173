"""Flask application serving the roster, allocation and preference edits."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from flask import Blueprint, Flask, Response, current_app, jsonify, render_template_string, request

from ..config import Settings
from ..engine.allocator import Allocator
from ..engine.projector import capacity_before
from ..errors import ApplicantNotFoundError, InvalidCredentialsError, StoreError
from ..io.store import SheetStore
from ..models.applicant import format_rank
from ..models.slot import Slot

logger = logging.getLogger(__name__)

api = Blueprint("placement", __name__)

BOARD_TEMPLATE = """
<!doctype html>
<title>Placement Board</title>
<h1>Allocation</h1>
<table border="1">
  <tr><th>Rank</th><th>Name</th><th>Assignment</th><th>Note</th></tr>
  {% for applicant in applicants %}
    {% set slot = result.assignments.get(applicant.name) %}
    <tr>
      <td>{{ rank(applicant.rank) if rank(applicant.rank) is not none else '-' }}</td>
      <td>{{ applicant.name }}{% if applicant.is_pre_assigned %} (fixed){% endif %}</td>
      <td>{% if slot %}{{ slot.label }}{% if slot.is_bound %}*{% endif %}{% else %}-{% endif %}</td>
      <td>{{ result.rationales.get(applicant.name, '') }}</td>
    </tr>
  {% endfor %}
</table>

<h1>Remaining Capacity</h1>
<table border="1">
  <tr><th>Department</th><th>Regular</th><th>Bound</th></tr>
  {% for dept in departments %}
    <tr>
      <td>{{ dept.label }}</td>
      <td>{{ result.capacity.get(dept.label ~ '-regular', 0) }} / {{ dept.regular }}</td>
      <td>{{ result.capacity.get(dept.label ~ '-bound', 0) }} / {{ dept.bound }}</td>
    </tr>
  {% endfor %}
</table>
"""


def _store() -> SheetStore:
    return current_app.extensions["placement_store"]


def _settings() -> Settings:
    return current_app.extensions["placement_settings"]


def _error(status: int, message: str) -> Tuple[Response, int]:
    return jsonify({"success": False, "error": message}), status


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def parse_preference_payload(data: object) -> List[Slot]:
    """Validate a submitted preference list.

    Raises
    ------
    ValueError
        If the payload is not a list of unique ``{label, isBound}`` entries.
    """
    if not isinstance(data, list):
        raise ValueError("preferences must be a list")
    preferences: List[Slot] = []
    for entry in data:
        slot = Slot.from_dict(entry)
        if slot in preferences:
            raise ValueError(f"Duplicate preference {slot.key}")
        preferences.append(slot)
    return preferences


@api.route("/api/data", methods=["GET"])
def get_data():
    try:
        snapshot = _store().load_snapshot()
    except StoreError:
        logger.exception("Failed to read roster")
        return "Server Error", 500
    return jsonify(snapshot.to_dict())


@api.route("/api/save", methods=["POST"])
def save_preferences():
    body = _json_body()
    name = body.get("name")
    if not name or not isinstance(name, str):
        return _error(400, "Missing name")
    try:
        preferences = parse_preference_payload(body.get("preferences", []))
    except ValueError as exc:
        return _error(400, str(exc))

    try:
        _store().save_preferences(name, preferences)
    except ApplicantNotFoundError as exc:
        return _error(404, str(exc))
    except StoreError as exc:
        logger.exception("Failed to save preferences for %s", name)
        return _error(500, str(exc))
    return jsonify({"success": True})


@api.route("/api/login", methods=["POST"])
def login():
    body = _json_body()
    name = body.get("name")
    if not name or not isinstance(name, str):
        return _error(400, "Missing name")
    try:
        applicant = _store().authenticate(name, body.get("password"))
    except ApplicantNotFoundError as exc:
        return _error(404, str(exc))
    except InvalidCredentialsError:
        return _error(401, "Invalid passcode")
    except StoreError as exc:
        logger.exception("Failed to read roster")
        return _error(500, str(exc))
    return jsonify(
        {"success": True, "name": applicant.name, "rank": format_rank(applicant.rank)}
    )


@api.route("/api/allocation", methods=["GET"])
def get_allocation():
    viewer: Optional[str] = request.args.get("viewer")
    try:
        snapshot = _store().load_snapshot()
    except StoreError as exc:
        logger.exception("Failed to read roster")
        return _error(500, str(exc))

    result = Allocator.allocate(
        snapshot.applicants, snapshot.departments, _settings().bound_marker
    )
    payload = {
        "allocations": {
            name: slot.to_dict() if slot else None
            for name, slot in result.assignments.items()
        },
        "outcomes": {name: outcome.value for name, outcome in result.outcomes.items()},
        "capacity": result.capacity,
    }
    if viewer:
        try:
            payload["capacityBeforeViewer"] = capacity_before(
                snapshot.applicants, snapshot.departments, viewer, result
            )
        except ApplicantNotFoundError as exc:
            return _error(404, str(exc))
    return jsonify(payload)


@api.route("/", methods=["GET"])
def board():
    """Render a read-only overview of the current allocation."""
    try:
        snapshot = _store().load_snapshot()
    except StoreError:
        logger.exception("Failed to read roster")
        return "Server Error", 500
    result = Allocator.allocate(
        snapshot.applicants, snapshot.departments, _settings().bound_marker
    )
    by_name = {a.name: a for a in snapshot.applicants}
    return render_template_string(
        BOARD_TEMPLATE,
        applicants=[by_name[name] for name in result.order],
        departments=snapshot.departments,
        result=result,
        rank=format_rank,
    )


def create_app(store: SheetStore, settings: Optional[Settings] = None) -> Flask:
    """Return a Flask application bound to ``store``."""
    settings = settings or Settings()
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.extensions["placement_store"] = store
    app.extensions["placement_settings"] = settings
    app.register_blueprint(api)

    @app.after_request
    def allow_cors(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = settings.cors_origin
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        return response

    return app

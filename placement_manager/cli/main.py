from __future__ import annotations

import argparse
import os
import time
from typing import Dict, List, Optional

import yaml

from ..client.api import PlacementClient
from ..client.poller import RosterPoller
from ..config import Settings, load_settings
from ..engine.allocator import Allocator
from ..engine.projector import capacity_before
from ..io.sheets import WorkbookSheetClient, create_workbook
from ..io.store import SheetStore
from ..models.slot import Slot
from ..models.snapshot import Snapshot
from ..reporting.allocation import export_csv, export_yaml
from ..web.app import create_app


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _settings(args: argparse.Namespace) -> Settings:
    return load_settings(getattr(args, "config", None))


def _open_store(args: argparse.Namespace, settings: Settings) -> SheetStore:
    path = getattr(args, "workbook", None) or settings.workbook_path
    return SheetStore(
        WorkbookSheetClient(path),
        config_sheet=settings.config_sheet,
        roster_sheet=settings.roster_sheet,
    )


def parse_preference_arg(value: str) -> Slot:
    """Parse ``LABEL`` or ``LABEL:bound`` into a :class:`Slot`."""
    label, sep, kind = value.rpartition(":")
    if not sep or kind not in {"bound", "regular"}:
        label, kind = value, "regular"
    label = label.strip()
    if not label:
        raise ValueError(f"Empty department label in {value!r}")
    return Slot(label=label, is_bound=kind == "bound")


def _format_capacity(capacity: Dict[str, int]) -> List[str]:
    return [f"  {key}: {capacity[key]}" for key in sorted(capacity)]


def _describe_viewer(snapshot: Snapshot, viewer: str, marker: str) -> str:
    result = Allocator.allocate(snapshot.applicants, snapshot.departments, marker)
    slot = result.assignment_for(viewer)
    assigned = f"{slot.label}{' (bound)' if slot.is_bound else ''}" if slot else "-"
    lines = [
        f"{viewer}: {assigned} [{result.rationales.get(viewer, '')}]",
        "Capacity at your turn:",
    ]
    lines.extend(
        _format_capacity(
            capacity_before(snapshot.applicants, snapshot.departments, viewer, result)
        )
    )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------

def cmd_init_workbook(args: argparse.Namespace) -> None:
    settings = _settings(args)
    path = create_workbook(
        args.path, config_sheet=settings.config_sheet, roster_sheet=settings.roster_sheet
    )
    print(f"Created workbook {path}")


def cmd_allocate(args: argparse.Namespace) -> None:
    settings = _settings(args)
    snapshot = _open_store(args, settings).load_snapshot()
    result = Allocator.allocate(
        snapshot.applicants, snapshot.departments, settings.bound_marker
    )

    os.makedirs(args.output, exist_ok=True)
    if args.format == "csv":
        allocation_file = os.path.join(args.output, "allocation.csv")
        capacity_file = os.path.join(args.output, "capacity.csv")
        export_csv(result, snapshot.applicants, allocation_file, capacity_file)
    else:
        allocation_file = os.path.join(args.output, "allocation.yaml")
        capacity_file = os.path.join(args.output, "capacity.yaml")
        export_yaml(result, snapshot.applicants, allocation_file, capacity_file)

    print(f"Wrote allocation to {allocation_file} and capacity to {capacity_file}")


def cmd_project(args: argparse.Namespace) -> None:
    settings = _settings(args)
    snapshot = _open_store(args, settings).load_snapshot()
    print(_describe_viewer(snapshot, args.viewer, settings.bound_marker))


def cmd_set_preferences(args: argparse.Namespace) -> None:
    settings = _settings(args)
    preferences: List[Slot] = []
    for value in args.preferences:
        slot = parse_preference_arg(value)
        if slot in preferences:
            raise ValueError(f"Duplicate preference {slot.key}")
        preferences.append(slot)
    row = _open_store(args, settings).save_preferences(args.name, preferences)
    print(f"Saved {len(preferences)} preferences for {args.name} (row {row})")


def cmd_compare(args: argparse.Namespace) -> None:
    def _load_alloc(directory: str) -> Dict[str, Dict]:
        path = os.path.join(directory, "allocation.yaml")
        with open(path, "r", encoding="utf8") as handle:
            return yaml.safe_load(handle) or {}

    def _label(entry: Optional[Dict]) -> str:
        if not entry or not entry.get("label"):
            return "-"
        return f"{entry['label']}{'*' if entry.get('isBound') else ''}"

    alloc1 = _load_alloc(args.dir1)
    alloc2 = _load_alloc(args.dir2)

    for name in sorted(set(alloc1) | set(alloc2)):
        before = _label(alloc1.get(name))
        after = _label(alloc2.get(name))
        if before != after:
            print(f"{name}: {before} -> {after}")


def cmd_serve(args: argparse.Namespace) -> None:
    settings = _settings(args)
    app = create_app(_open_store(args, settings), settings)
    app.run(host=args.host or settings.host, port=args.port or settings.port)


def cmd_watch(args: argparse.Namespace) -> None:
    settings = _settings(args)
    client = PlacementClient(args.url or settings.api_url, timeout=settings.request_timeout)
    last: Dict[str, str] = {}

    def _show(snapshot: Snapshot) -> None:
        if snapshot.find(args.viewer) is None:
            print(f"{args.viewer} is not on the roster")
            return
        text = _describe_viewer(snapshot, args.viewer, settings.bound_marker)
        if text != last.get("text"):
            last["text"] = text
            print(text)

    poller = RosterPoller(
        client.fetch,
        interval=args.interval or settings.poll_interval,
        on_update=_show,
        on_error=lambda exc: print(f"Connection failed: {exc}"),
        bound_marker=settings.bound_marker,
    )
    if args.once:
        poller.refresh()
        return

    poller.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()


# ---------------------------------------------------------------------------
# Argument parser setup
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="placement-manager")
    parser.add_argument("--config", help="Settings YAML path")
    sub = parser.add_subparsers(dest="command", required=True)

    # init-workbook
    p_init = sub.add_parser("init-workbook", help="Create an empty roster workbook")
    p_init.add_argument("path", help="Workbook path to create")
    p_init.set_defaults(func=cmd_init_workbook)

    # allocate
    p_alloc = sub.add_parser("allocate", help="Run allocation")
    p_alloc.add_argument("--workbook", help="Roster workbook path")
    p_alloc.add_argument("--output", required=True, help="Output directory")
    p_alloc.add_argument(
        "--format",
        choices=["yaml", "csv"],
        default="yaml",
        help="Output format (default: yaml)",
    )
    p_alloc.set_defaults(func=cmd_allocate)

    # project
    p_project = sub.add_parser("project", help="Show capacity left at an applicant's turn")
    p_project.add_argument("--workbook", help="Roster workbook path")
    p_project.add_argument("--viewer", required=True, help="Applicant name")
    p_project.set_defaults(func=cmd_project)

    # set-preferences
    p_prefs = sub.add_parser("set-preferences", help="Overwrite an applicant's preferences")
    p_prefs.add_argument("--workbook", help="Roster workbook path")
    p_prefs.add_argument("name", help="Applicant name")
    p_prefs.add_argument(
        "preferences", nargs="*", help="Departments in order, LABEL or LABEL:bound"
    )
    p_prefs.set_defaults(func=cmd_set_preferences)

    # compare
    p_compare = sub.add_parser("compare", help="Compare two allocation directories")
    p_compare.add_argument("dir1", help="First allocation directory")
    p_compare.add_argument("dir2", help="Second allocation directory")
    p_compare.set_defaults(func=cmd_compare)

    # serve
    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--workbook", help="Roster workbook path")
    p_serve.add_argument("--host", help="Bind address")
    p_serve.add_argument("--port", type=int, help="Port")
    p_serve.set_defaults(func=cmd_serve)

    # watch
    p_watch = sub.add_parser("watch", help="Poll the API and show an applicant's standing")
    p_watch.add_argument("--viewer", required=True, help="Applicant name")
    p_watch.add_argument("--url", help="API base URL")
    p_watch.add_argument("--interval", type=float, help="Seconds between polls")
    p_watch.add_argument("--once", action="store_true", help="Fetch once and exit")
    p_watch.set_defaults(func=cmd_watch)

    return parser


def main(argv: List[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()

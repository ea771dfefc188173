"""Polling client and preference editor for the placement API."""

from .api import PlacementClient
from .editor import EditEntry, EditorState, PreferenceEditor, entry_id
from .poller import RosterPoller

__all__ = [
    "PlacementClient",
    "RosterPoller",
    "PreferenceEditor",
    "EditorState",
    "EditEntry",
    "entry_id",
]

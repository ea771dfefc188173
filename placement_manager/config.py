"""Runtime settings loaded from YAML and environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .models.slot import BOUND_MARKER

ENV_OVERRIDES = {
    "PLACEMENT_WORKBOOK": "workbook_path",
    "PLACEMENT_HOST": "host",
    "PORT": "port",
    "PLACEMENT_API_URL": "api_url",
    "PLACEMENT_POLL_INTERVAL": "poll_interval",
    "PLACEMENT_CORS_ORIGIN": "cors_origin",
}


@dataclass
class Settings:
    """Settings shared by the server, the CLI and the polling client."""

    workbook_path: str = "placement.xlsx"
    config_sheet: str = "config"
    roster_sheet: str = "Roster"
    bound_marker: str = BOUND_MARKER
    host: str = "127.0.0.1"
    port: int = 3000
    api_url: str = "http://localhost:3000"
    poll_interval: float = 3.0
    request_timeout: float = 10.0
    cors_origin: str = "*"

    def __post_init__(self) -> None:
        try:
            self.port = int(self.port)
            self.poll_interval = float(self.poll_interval)
            self.request_timeout = float(self.request_timeout)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                "port, poll_interval and request_timeout must be numeric"
            ) from exc
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if not self.bound_marker:
            raise ValueError("bound_marker must not be empty")


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a mapping")
    known = {f.name for f in fields(Settings)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    return data


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """Build :class:`Settings` from defaults, an optional YAML file and the environment.

    Environment variables win over the file. A ``.env`` file in the working
    directory is loaded first when ``environ`` is not given.
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    data: Dict[str, Any] = _read_yaml(path) if path else {}
    for variable, key in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            data[key] = value
    return Settings(**data)

"""HTTP client for the placement API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ..errors import RemoteError, TransportError
from ..models.slot import Slot
from ..models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class PlacementClient:
    """Thin wrapper over ``requests`` for ``/api/data``, ``/api/save`` and ``/api/login``.

    Network and decoding failures raise :class:`TransportError`; non-2xx
    answers raise :class:`RemoteError` with the server's message.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 400:
            message = response.text
            try:
                message = response.json().get("error") or message
            except (ValueError, AttributeError):
                pass
            raise RemoteError(response.status_code, message)

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{method} {url} returned invalid JSON") from exc

    def fetch(self) -> Snapshot:
        """Download the current roster and department configuration."""
        data = self._request("GET", "/api/data")
        try:
            return Snapshot.from_dict(data)
        except (ValueError, TypeError, AttributeError) as exc:
            raise TransportError(f"Malformed roster payload: {exc}") from exc

    def save_preferences(self, name: str, preferences: Sequence[Slot]) -> bool:
        payload = {"name": name, "preferences": [p.to_dict() for p in preferences]}
        data = self._request("POST", "/api/save", json=payload)
        return bool(data.get("success"))

    def login(self, name: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/api/login", json={"name": name, "password": password})

    def allocation(self, viewer: Optional[str] = None) -> Dict[str, Any]:
        params = {"viewer": viewer} if viewer else None
        return self._request("GET", "/api/allocation", params=params)

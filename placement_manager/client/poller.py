from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence

from ..engine.allocator import AllocationResult, Allocator
from ..engine.projector import capacity_before
from ..errors import PlacementError
from ..models.slot import BOUND_MARKER, Slot
from ..models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class RosterPoller:
    """Keep a local copy of the roster fresh by polling ``fetch``.

    A failed fetch is logged and passed to ``on_error``; the previous snapshot
    stays in place and the next tick tries again. The allocation is never
    cached, it is recomputed from the latest snapshot on request.
    """

    def __init__(
        self,
        fetch: Callable[[], Snapshot],
        interval: float = 3.0,
        on_update: Optional[Callable[[Snapshot], None]] = None,
        on_error: Optional[Callable[[PlacementError], None]] = None,
        bound_marker: str = BOUND_MARKER,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._fetch = fetch
        self.interval = interval
        self.on_update = on_update
        self.on_error = on_error
        self.bound_marker = bound_marker
        self.last_updated: Optional[datetime] = None
        self._snapshot: Optional[Snapshot] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        with self._lock:
            return self._snapshot

    def refresh(self) -> Optional[Snapshot]:
        """Fetch once; return the new snapshot or ``None`` on failure."""
        try:
            snapshot = self._fetch()
        except PlacementError as exc:
            logger.warning("Roster refresh failed: %s", exc)
            if self.on_error:
                self.on_error(exc)
            return None
        with self._lock:
            self._snapshot = snapshot
            self.last_updated = datetime.now()
        if self.on_update:
            self.on_update(snapshot)
        return snapshot

    def apply_local(self, name: str, preferences: Sequence[Slot]) -> None:
        """Optimistically replace ``name``'s preferences until the next fetch."""
        with self._lock:
            if self._snapshot is not None:
                self._snapshot = self._snapshot.with_preferences(name, preferences)

    def allocation(self) -> Optional[AllocationResult]:
        snapshot = self.snapshot
        if snapshot is None:
            return None
        return Allocator.allocate(snapshot.applicants, snapshot.departments, self.bound_marker)

    def capacity_before(self, name: str) -> Dict[str, int]:
        """Capacity left for ``name`` at their turn; empty before the first fetch."""
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        result = Allocator.allocate(snapshot.applicants, snapshot.departments, self.bound_marker)
        return capacity_before(snapshot.applicants, snapshot.departments, name, result)

    def _run(self) -> None:
        while not self._stop.is_set():
            self.refresh()
            self._stop.wait(self.interval)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="roster-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

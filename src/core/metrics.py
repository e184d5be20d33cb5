"""Simple in-memory metrics for ticks, fetch/parse/tick errors, light errors, emergencies."""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class BeaconMetrics:
    """In-memory counters; logged as one line per tick."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ticks = 0
        self._fetch_errors = 0
        self._parse_errors = 0
        self._tick_errors = 0
        self._light_errors = 0
        self._emergency_starts = 0
        self._last_kind: Optional[str] = None

    def inc_ticks(self) -> int:
        with self._lock:
            self._ticks += 1
            return self._ticks

    @property
    def ticks(self) -> int:
        with self._lock:
            return self._ticks

    def inc_fetch_errors(self) -> None:
        with self._lock:
            self._fetch_errors += 1

    @property
    def fetch_errors(self) -> int:
        with self._lock:
            return self._fetch_errors

    def inc_parse_errors(self) -> None:
        with self._lock:
            self._parse_errors += 1

    @property
    def parse_errors(self) -> int:
        with self._lock:
            return self._parse_errors

    def inc_tick_errors(self) -> None:
        with self._lock:
            self._tick_errors += 1

    @property
    def tick_errors(self) -> int:
        with self._lock:
            return self._tick_errors

    def inc_light_errors(self) -> None:
        with self._lock:
            self._light_errors += 1

    @property
    def light_errors(self) -> int:
        with self._lock:
            return self._light_errors

    def inc_emergency_starts(self) -> None:
        with self._lock:
            self._emergency_starts += 1

    @property
    def emergency_starts(self) -> int:
        with self._lock:
            return self._emergency_starts

    def set_last_kind(self, kind: Optional[str]) -> None:
        with self._lock:
            self._last_kind = kind

    @property
    def last_kind(self) -> Optional[str]:
        with self._lock:
            return self._last_kind

    def log_snapshot(self) -> None:
        """Log current metrics snapshot."""
        with self._lock:
            parts = [f"ticks={self._ticks}"]
            if self._fetch_errors:
                parts.append(f"fetch_errors={self._fetch_errors}")
            if self._parse_errors:
                parts.append(f"parse_errors={self._parse_errors}")
            if self._tick_errors:
                parts.append(f"tick_errors={self._tick_errors}")
            if self._light_errors:
                parts.append(f"light_errors={self._light_errors}")
            if self._emergency_starts:
                parts.append(f"emergency_starts={self._emergency_starts}")
            if self._last_kind:
                parts.append(f"last_kind={self._last_kind}")
        logger.info("metrics " + " ".join(parts))


_global_metrics: Optional[BeaconMetrics] = None


def get_metrics() -> BeaconMetrics:
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = BeaconMetrics()
    return _global_metrics

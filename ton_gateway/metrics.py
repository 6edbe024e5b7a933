"""In-process counters for the gateway (single process only)."""

from __future__ import annotations

from collections import Counter, OrderedDict
from threading import Lock
from typing import Dict

# Per-request durations kept for /metrics; older entries are evicted first.
MAX_RECENT_DURATIONS = 100


class MetricsRecorder:
    def __init__(self, max_recent: int = MAX_RECENT_DURATIONS) -> None:
        self._lock = Lock()
        self._max_recent = max_recent
        self._requests = 0
        self._request_durations_ms: "OrderedDict[str, float]" = OrderedDict()
        self._route_success: Counter[str] = Counter()
        self._route_error: Counter[str] = Counter()
        self._broadcasts: Counter[str] = Counter()

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._request_durations_ms[request_id] = duration_ms
            self._request_durations_ms.move_to_end(request_id)
            while len(self._request_durations_ms) > self._max_recent:
                self._request_durations_ms.popitem(last=False)

    def record_route(self, route: str, *, success: bool) -> None:
        with self._lock:
            counter = self._route_success if success else self._route_error
            counter[route] += 1

    def record_broadcast(self, *, accepted: bool) -> None:
        with self._lock:
            self._broadcasts["accepted" if accepted else "rejected"] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            durations = list(self._request_durations_ms.values())
            return {
                "requests": self._requests,
                "route_success": dict(self._route_success),
                "route_error": dict(self._route_error),
                "broadcasts": dict(self._broadcasts),
                "recent_request_durations_ms": dict(self._request_durations_ms),
                "max_recent_duration_ms": max(durations) if durations else None,
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._request_durations_ms.clear()
            self._route_success.clear()
            self._route_error.clear()
            self._broadcasts.clear()


default_metrics = MetricsRecorder()

"""In-process metrics collector.

Counters only, no external dependencies, exported in Prometheus text
format on ``GET /metrics``.
"""

from __future__ import annotations

import threading
import time


class MetricsCollector:
    """Thread-safe in-process counter registry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._start_time = time.time()

    def increment(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, name: str, labels: dict | None = None) -> int:
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def export(self) -> str:
        """Export all counters in Prometheus text format."""
        lines = [
            "# HELP pushnotify_uptime_seconds Time since process start",
            "# TYPE pushnotify_uptime_seconds gauge",
            f"pushnotify_uptime_seconds {time.time() - self._start_time:.1f}",
            "",
        ]

        with self._lock:
            grouped: dict[str, list[tuple[str, int]]] = {}
            for key, value in sorted(self._counters.items()):
                name = key.split("{")[0]
                grouped.setdefault(name, []).append((key, value))

        for name, entries in sorted(grouped.items()):
            lines.append(f"# TYPE {name} counter")
            lines.extend(f"{key} {value}" for key, value in entries)
            lines.append("")

        return "\n".join(lines) + "\n"

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

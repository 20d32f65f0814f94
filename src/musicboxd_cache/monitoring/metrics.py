from __future__ import annotations

import threading
import typing as t
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

if t.TYPE_CHECKING:
    from musicboxd_cache.core.registry import CacheRegistry


def _label_key(labels: Dict[str, Any]) -> Tuple:
    return tuple(sorted(labels.items()))


def _format_labels(key: Tuple, extra: str = "") -> str:
    parts = [f'{name}="{value}"' for name, value in key]
    if extra:
        parts.append(extra)
    return "{" + ",".join(parts) + "}" if parts else ""


@dataclass
class Gauge:
    name: str
    help: str
    values: Dict[Tuple, float] = field(default_factory=dict)

    def set(self, value: float, **labels: Any) -> None:
        self.values[_label_key(labels)] = float(value)

    def get(self, **labels: Any) -> t.Optional[float]:
        return self.values.get(_label_key(labels))

    def render(self) -> List[str]:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} gauge"]
        for key, value in sorted(self.values.items()):
            lines.append(f"{self.name}{_format_labels(key)} {value}")
        return lines


@dataclass
class Histogram:
    name: str
    help: str
    buckets: List[float]
    counts: Dict[Tuple, List[int]] = field(default_factory=dict)
    sums: Dict[Tuple, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def observe(self, val: float, **labels: Any) -> None:
        key = _label_key(labels)
        with self._lock:
            if key not in self.counts:
                # last slot is the +Inf bucket
                self.counts[key] = [0 for _ in range(len(self.buckets) + 1)]
                self.sums[key] = 0.0
            for i, b in enumerate(self.buckets):
                if val <= b:
                    self.counts[key][i] += 1
                    break
            else:
                self.counts[key][-1] += 1
            self.sums[key] += val

    def count(self, **labels: Any) -> int:
        return sum(self.counts.get(_label_key(labels), []))

    def render(self) -> List[str]:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} histogram"]
        with self._lock:
            for key, counts in sorted(self.counts.items()):
                cumulative = 0
                for bound, n in zip([*self.buckets, "+Inf"], counts):
                    cumulative += n
                    le = 'le="%s"' % bound
                    lines.append(f"{self.name}_bucket{_format_labels(key, le)} {cumulative}")
                lines.append(f"{self.name}_sum{_format_labels(key)} {self.sums[key]}")
                lines.append(f"{self.name}_count{_format_labels(key)} {cumulative}")
        return lines


# Predefined metrics
cache_entries = Gauge("musicboxd_cache_entries", "Entries currently held per namespace")
cache_hit_rate = Gauge("musicboxd_cache_hit_rate", "Hits over lookups per namespace")
cache_operations = Gauge("musicboxd_cache_operations", "Cumulative cache operations by kind")
cache_sweep_seconds = Histogram(
    "musicboxd_cache_sweep_seconds",
    "Expired-entry sweep duration",
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
)

_COUNTERS = ("hits", "misses", "sets", "deletes", "evictions", "expirations")


def collect_registry_metrics(registry: "CacheRegistry") -> None:
    """Refresh the gauges from the current stats of every namespace."""
    for namespace, stats in registry.stats().items():
        cache_entries.set(stats["size"], namespace=namespace)
        cache_hit_rate.set(stats["hit_rate"], namespace=namespace)
        for kind in _COUNTERS:
            cache_operations.set(stats[kind], namespace=namespace, kind=kind)


def render_text() -> str:
    lines: List[str] = []
    for metric in (cache_entries, cache_hit_rate, cache_operations, cache_sweep_seconds):
        lines.extend(metric.render())
    return "\n".join(lines) + "\n"

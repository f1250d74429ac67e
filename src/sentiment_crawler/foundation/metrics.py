"""In-process metrics for a single crawler run."""

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from .logging import get_logger


@dataclass
class MetricValue:
    """Individual metric value with timestamp."""
    value: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tags: Dict[str, str] = field(default_factory=dict)


class MetricsCollector:
    """Collects counters and timings."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self._counters: Dict[str, float] = defaultdict(float)
        self._timings: Dict[str, List[MetricValue]] = defaultdict(list)

    def increment_counter(
        self,
        name: str,
        value: float = 1.0,
        tags: Optional[Dict[str, str]] = None
    ) -> None:
        """Increment a counter metric.

        Args:
            name: Counter name
            value: Value to add (default: 1.0)
            tags: Optional tags
        """
        self._counters[name] += value

    def get_counter(self, name: str) -> float:
        return self._counters.get(name, 0.0)

    def record_timing(
        self,
        name: str,
        duration: float,
        tags: Optional[Dict[str, str]] = None
    ) -> None:
        """Record a duration in seconds."""
        self._timings[name].append(MetricValue(value=duration, tags=tags or {}))
        self.logger.debug(f"{name} took {duration:.3f}s")

    def get_timing(self, name: str) -> Optional[float]:
        """Latest duration recorded under ``name``."""
        values = self._timings.get(name)
        if not values:
            return None
        return values[-1].value

    @contextmanager
    def timer(self, name: str, tags: Optional[Dict[str, str]] = None) -> Iterator[None]:
        """Context manager for timing operations.

        Usage:
            with metrics.timer("engine.fetch"):
                source.read()
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            self.record_timing(name, time.perf_counter() - start_time, tags)

    def get_summary(self) -> Dict[str, Any]:
        """Counters and the latest value of every timing."""
        return {
            "counters": dict(self._counters),
            "timings": {name: values[-1].value for name, values in self._timings.items() if values},
        }

    def reset(self) -> None:
        self._counters.clear()
        self._timings.clear()


# Global metrics collector
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def timer(name: str, tags: Optional[Dict[str, str]] = None):
    """Context manager for timing operations."""
    return get_metrics_collector().timer(name, tags)

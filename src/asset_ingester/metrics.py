"""Counter sinks for background task telemetry.

Tasks receive a ``MetricsSink`` explicitly. Emission goes through
``safe_increment`` so a broken sink never fails a task.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from prometheus_client import CollectorRegistry
from prometheus_client import Counter as PrometheusCounter

logger = logging.getLogger(__name__)

FETCH_ERROR_METRIC = "bgtask.fetch_error"
HTTP_ERROR_METRIC = "bgtask.http_error"
DECODE_ERROR_METRIC = "bgtask.decode_error"

_INVALID_METRIC_CHARS = re.compile(r"[^a-zA-Z0-9_:]")


class MetricsSink(Protocol):
    """Counter-style metrics backend."""

    def increment(self, name: str, value: int = 1, *, tags: Mapping[str, str]) -> None:
        """Add ``value`` to the counter identified by ``name`` and ``tags``."""


class NullMetricsSink:
    """Discards every emission."""

    def increment(self, name: str, value: int = 1, *, tags: Mapping[str, str]) -> None:
        return None


@dataclass(slots=True)
class RecordingMetricsSink:
    """Keeps counters in memory, keyed by name and sorted tag pairs."""

    counts: Counter[tuple[str, tuple[tuple[str, str], ...]]] = field(default_factory=Counter)

    def increment(self, name: str, value: int = 1, *, tags: Mapping[str, str]) -> None:
        self.counts[(name, tuple(sorted(tags.items())))] += value

    def total(self, name: str) -> int:
        return sum(count for (metric, _), count in self.counts.items() if metric == name)

    def tagged(self, name: str, **tags: str) -> int:
        return self.counts[(name, tuple(sorted(tags.items())))]


class PrometheusMetricsSink:
    """Maps dotted counter names onto ``prometheus_client`` counters.

    ``bgtask.http_error`` with prefix ``ingester`` is exported as
    ``ingester_bgtask_http_error_total``. Label names are fixed by the first
    emission of each counter.
    """

    def __init__(self, *, prefix: str = "ingester", registry: CollectorRegistry | None = None) -> None:
        self.prefix = prefix
        self.registry = registry or CollectorRegistry()
        self._counters: dict[str, tuple[PrometheusCounter, tuple[str, ...]]] = {}

    def increment(self, name: str, value: int = 1, *, tags: Mapping[str, str]) -> None:
        label_names = tuple(sorted(tags))
        counter = self._counter(name, label_names)
        if label_names:
            counter.labels(**{label: str(tags[label]) for label in label_names}).inc(value)
        else:
            counter.inc(value)

    def _counter(self, name: str, label_names: tuple[str, ...]) -> PrometheusCounter:
        registered = self._counters.get(name)
        if registered is None:
            counter = PrometheusCounter(
                _prometheus_name(self.prefix, name),
                f"Background task counter {name}",
                label_names,
                registry=self.registry,
            )
            self._counters[name] = (counter, label_names)
            return counter
        counter, known_labels = registered
        if known_labels != label_names:
            raise ValueError(
                f"Counter {name!r} registered with labels {known_labels}, got {label_names}",
            )
        return counter


def safe_increment(
    sink: MetricsSink,
    name: str,
    *,
    tags: Mapping[str, str],
    value: int = 1,
) -> None:
    """Emit one counter increment, logging and absorbing sink failures."""

    try:
        sink.increment(name, value, tags=tags)
    except Exception as error:  # noqa: BLE001
        logger.warning("Metrics emission failed for %s: %s", name, error)


def build_metrics_sink(backend: str, *, prefix: str) -> MetricsSink:
    """Build sink for a configured backend name."""

    normalized = backend.strip().lower()
    if normalized in {"", "none", "null"}:
        return NullMetricsSink()
    if normalized == "prometheus":
        return PrometheusMetricsSink(prefix=prefix)
    raise ValueError(f"Unsupported metrics backend: {backend!r}")


def _prometheus_name(prefix: str, name: str) -> str:
    return _INVALID_METRIC_CHARS.sub("_", f"{prefix}.{name}" if prefix else name)

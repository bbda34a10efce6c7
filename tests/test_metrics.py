from __future__ import annotations

import allure
import pytest
from prometheus_client import CollectorRegistry

from asset_ingester.metrics import (
    HTTP_ERROR_METRIC,
    NullMetricsSink,
    PrometheusMetricsSink,
    RecordingMetricsSink,
    build_metrics_sink,
    safe_increment,
)

pytestmark = [
    allure.epic("Metadata Download"),
    allure.feature("Telemetry"),
]


class _ExplodingSink:
    def increment(self, name: str, value: int = 1, *, tags: object) -> None:
        raise ConnectionError("sink unreachable")


def test_safe_increment_absorbs_sink_failures(caplog: pytest.LogCaptureFixture) -> None:
    safe_increment(_ExplodingSink(), HTTP_ERROR_METRIC, tags={"type": "DownloadMetadata"})
    assert "Metrics emission failed" in caplog.text


def test_recording_sink_counts_by_name_and_tags() -> None:
    sink = RecordingMetricsSink()
    safe_increment(sink, HTTP_ERROR_METRIC, tags={"type": "T", "status": "500"})
    safe_increment(sink, HTTP_ERROR_METRIC, tags={"status": "500", "type": "T"})
    safe_increment(sink, HTTP_ERROR_METRIC, tags={"type": "T", "status": "404"})

    assert sink.tagged(HTTP_ERROR_METRIC, type="T", status="500") == 2
    assert sink.total(HTTP_ERROR_METRIC) == 3


def test_prometheus_sink_exports_prefixed_counter() -> None:
    registry = CollectorRegistry()
    sink = PrometheusMetricsSink(prefix="ingester", registry=registry)

    sink.increment(HTTP_ERROR_METRIC, tags={"type": "DownloadMetadata", "status": "503"})
    sink.increment(HTTP_ERROR_METRIC, tags={"type": "DownloadMetadata", "status": "503"})

    value = registry.get_sample_value(
        "ingester_bgtask_http_error_total",
        {"type": "DownloadMetadata", "status": "503"},
    )
    assert value == 2.0


def test_prometheus_sink_rejects_label_drift() -> None:
    sink = PrometheusMetricsSink(registry=CollectorRegistry())
    sink.increment(HTTP_ERROR_METRIC, tags={"type": "T"})
    with pytest.raises(ValueError, match="registered with labels"):
        sink.increment(HTTP_ERROR_METRIC, tags={"type": "T", "status": "500"})


def test_build_metrics_sink_by_backend_name() -> None:
    assert isinstance(build_metrics_sink("none", prefix="x"), NullMetricsSink)
    assert isinstance(build_metrics_sink("prometheus", prefix="x"), PrometheusMetricsSink)
    with pytest.raises(ValueError, match="Unsupported metrics backend"):
        build_metrics_sink("statsd", prefix="x")

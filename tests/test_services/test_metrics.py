"""
Tests for the in-process metrics collector.
"""

from app.services.metrics import MetricsCollector, normalize_path


def test_normalize_path_collapses_object_keys():
    path = "/api/v1/media/3f2504e0-4f89-41d3-9a0c-0305e82c3301.jpg"

    assert normalize_path(path) == "/api/v1/media/{key}"


def test_normalize_path_keeps_other_segments():
    assert normalize_path("/api/v1/health") == "/api/v1/health"
    assert normalize_path("/api/v1/media/holiday.jpg") == "/api/v1/media/holiday.jpg"


def test_collector_counts_errors():
    collector = MetricsCollector()

    collector.record_request("GET", "/api/v1/media/{key}", 200, 0.01)
    collector.record_request("GET", "/api/v1/media/{key}", 404, 0.02)

    metrics = collector.get_metrics()
    assert metrics["total_requests"] == 2
    assert metrics["total_errors"] == 1
    assert metrics["error_rate"] == 0.5
    assert metrics["status_code_counts"] == {"200": 1, "404": 1}


def test_prometheus_export():
    collector = MetricsCollector()
    collector.record_request("DELETE", "/api/v1/media/{key}", 204, 0.005)

    text = collector.to_prometheus()

    assert 'media_gateway_http_requests_total{method="DELETE",path="/api/v1/media/{key}"} 1' in text
    assert 'media_gateway_http_status_total{code="204"} 1' in text

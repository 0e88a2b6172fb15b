"""
Lightweight Prometheus-compatible metrics collector.

Tracks request counts, response times and error rates per route, with
object keys collapsed so every media object shares one series.
"""

import re
import threading
import time
from collections import defaultdict
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# Object keys are a UUID4 with an optional file extension
_OBJECT_KEY = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}(\.[A-Za-z0-9]+)?$"
)


def normalize_path(path: str) -> str:
    """Replace object keys in a request path with ``{key}``."""
    return "/".join(
        "{key}" if _OBJECT_KEY.match(part) else part
        for part in path.split("/")
    )


class MetricsCollector:
    """
    In-process metrics collector.

    Records from concurrent requests are serialized by a lock.
    """

    def __init__(self) -> None:
        self._request_count: dict[str, int] = defaultdict(int)
        self._error_count: dict[str, int] = defaultdict(int)
        self._response_time_sum: dict[str, float] = defaultdict(float)
        self._status_counts: dict[int, int] = defaultdict(int)
        self._start_time: float = time.time()
        self._lock = threading.Lock()

    def record_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record a completed request."""
        key = f"{method} {path}"
        with self._lock:
            self._request_count[key] += 1
            self._response_time_sum[key] += duration
            self._status_counts[status_code] += 1
            if status_code >= 400:
                self._error_count[key] += 1

    def get_metrics(self) -> dict[str, Any]:
        """Get metrics as a structured dictionary."""
        with self._lock:
            total_requests = sum(self._request_count.values())
            total_errors = sum(self._error_count.values())

            return {
                "uptime_seconds": round(time.time() - self._start_time, 2),
                "total_requests": total_requests,
                "total_errors": total_errors,
                "error_rate": round(total_errors / total_requests, 4) if total_requests > 0 else 0,
                "requests_by_endpoint": dict(self._request_count),
                "errors_by_endpoint": dict(self._error_count),
                "status_code_counts": {str(k): v for k, v in sorted(self._status_counts.items())},
                "avg_response_time_ms": {
                    k: round((self._response_time_sum[k] / count) * 1000, 2)
                    for k, count in self._request_count.items()
                },
            }

    def to_prometheus(self) -> str:
        """
        Export metrics in Prometheus text exposition format.
        See: https://prometheus.io/docs/instrumenting/exposition_formats/
        """
        lines: list[str] = []

        def series(name: str, help_text: str, kind: str, samples: list[str]) -> None:
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} {kind}")
            lines.extend(samples)
            lines.append("")

        def labels(key: str) -> str:
            method, path = key.split(" ", 1)
            return f'method="{method}",path="{path}"'

        with self._lock:
            series(
                "media_gateway_uptime_seconds",
                "Time since service start in seconds",
                "gauge",
                [f"media_gateway_uptime_seconds {time.time() - self._start_time:.2f}"],
            )
            series(
                "media_gateway_http_requests_total",
                "Total HTTP requests",
                "counter",
                [
                    f"media_gateway_http_requests_total{{{labels(k)}}} {v}"
                    for k, v in sorted(self._request_count.items())
                ],
            )
            series(
                "media_gateway_http_errors_total",
                "Total HTTP errors (4xx/5xx)",
                "counter",
                [
                    f"media_gateway_http_errors_total{{{labels(k)}}} {v}"
                    for k, v in sorted(self._error_count.items())
                ],
            )
            series(
                "media_gateway_http_status_total",
                "HTTP responses by status code",
                "counter",
                [
                    f'media_gateway_http_status_total{{code="{code}"}} {count}'
                    for code, count in sorted(self._status_counts.items())
                ],
            )
            series(
                "media_gateway_http_response_time_seconds",
                "Average response time in seconds",
                "gauge",
                [
                    f"media_gateway_http_response_time_seconds{{{labels(k)}}} "
                    f"{self._response_time_sum[k] / count:.6f}"
                    for k, count in sorted(self._request_count.items())
                ],
            )

        return "\n".join(lines) + "\n"


# Global singleton
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware that records request metrics.

    Measures request duration and records status codes
    for all API requests.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Skip metrics endpoints themselves
        if "/metrics" in request.url.path:
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        get_metrics_collector().record_request(
            method=request.method,
            path=normalize_path(request.url.path),
            status_code=response.status_code,
            duration=duration,
        )

        return response

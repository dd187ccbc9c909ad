from __future__ import annotations

from fastapi.testclient import TestClient

from contentdeck.api.context import build_context
from contentdeck.api.main import create_app
from contentdeck.core.config import get_settings


def test_metrics_endpoint_returns_prometheus_payload() -> None:
    client = TestClient(create_app(build_context(get_settings())))
    version_response = client.get("/version")
    assert version_response.status_code == 200

    metrics_response = client.get("/metrics")
    assert metrics_response.status_code == 200
    assert metrics_response.headers["content-type"].startswith("text/plain")
    body = metrics_response.text
    assert "contentdeck_build_info" in body
    assert 'contentdeck_http_requests_total{method="GET",path="/version",status="200"}' in body
    assert "contentdeck_http_request_duration_seconds_sum" in body


def test_metrics_endpoint_disabled_returns_404(monkeypatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    client = TestClient(create_app(build_context(get_settings())))
    response = client.get("/metrics")
    assert response.status_code == 404

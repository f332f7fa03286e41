"""
tests/test_health.py -- Integration tests for GET / and GET /api/health.

Covers:
  - root banner is plain text, no auth
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test stores
  - unknown routes use the standard error envelope
  - middleware order: TrustedHost -> CORS -> SlowAPI
"""

from __future__ import annotations

from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi.middleware import SlowAPIMiddleware

from api.main import app


def test_root_banner(api_client):
    client, _ = api_client
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Military Asset System API is running."
    assert resp.headers["content-type"].startswith("text/plain")


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _ = api_client
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_unknown_route_uses_error_envelope(api_client):
    client, _ = api_client
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"


def test_middleware_order():
    """TrustedHost is outermost of the three, SlowAPI innermost."""
    # user_middleware is listed outermost first
    classes = [m.cls for m in app.user_middleware]
    assert classes.index(TrustedHostMiddleware) < classes.index(CORSMiddleware) < classes.index(SlowAPIMiddleware)

"""
tests/test_health.py -- Integration tests for GET /api/v1/health and the docs guard.

Covers:
  - 200 response with status and version
  - No authentication required
  - /docs requires a valid access token
"""

from __future__ import annotations


def test_health_returns_200_with_version(api_client):
    """Health endpoint returns 200 with status and version."""
    resp = api_client.client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "version" in data


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_docs_require_auth(api_client):
    assert api_client.client.get("/docs").status_code == 401
    resp = api_client.client.get("/docs", headers=api_client.headers(api_client.user_token))
    assert resp.status_code == 200

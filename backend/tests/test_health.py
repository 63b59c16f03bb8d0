"""
Tests for the operational endpoints and the error body shape.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposes_domain_counters(client: AsyncClient, participant, published_event):
    await client.post(f"/users/{participant.id}/requests", params={"eventId": published_event.id})

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "participation_requests_total" in response.text
    assert "stats_lookups_total" in response.text


@pytest.mark.asyncio
async def test_not_found_error_body(client: AsyncClient):
    response = await client.get("/events/12345")
    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "NOT_FOUND"
    assert body["reason"]
    assert "12345" in body["message"]
    assert len(body["timestamp"]) == len("2026-01-01 00:00:00")


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_stats_service_health(stats_api: AsyncClient):
    response = await stats_api.get("/health")
    assert response.status_code == 200

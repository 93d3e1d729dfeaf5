"""API tests for the developer stats endpoints."""

from __future__ import annotations

import httpx
import pytest


class TestStatsEndpoints:
    """GET /api/v1/stats and related routes."""

    @pytest.mark.asyncio
    async def test_get_stats_camel_case(self, api_client):
        resp = await api_client.get("/api/v1/stats")

        assert resp.status_code == 200
        data = resp.json()
        assert data["totalStars"] == 9
        assert data["topLanguages"] == {"Rust": 70, "TypeScript": 30}
        assert data["recentActivity"] >= 0
        assert data["currentStreak"] <= 30
        assert "total_stars" not in data

    @pytest.mark.asyncio
    async def test_second_request_served_from_cache(self, api_client, github):
        await api_client.get("/api/v1/stats")
        before = sum(github.hits.values())

        resp = await api_client.get("/api/v1/stats")

        assert resp.status_code == 200
        assert sum(github.hits.values()) == before

    @pytest.mark.asyncio
    async def test_refresh_refetches(self, api_client, github):
        await api_client.get("/api/v1/stats")
        github.profile["followers"] = 42

        resp = await api_client.post("/api/v1/stats/refresh")

        assert resp.status_code == 200
        assert resp.json()["followers"] == 42

    @pytest.mark.asyncio
    async def test_state_before_and_after_load(self, api_client):
        idle = await api_client.get("/api/v1/stats/state")
        assert idle.json() == {
            "state": "idle",
            "loading": False,
            "error": None,
            "progress": 0,
            "stats": None,
        }

        await api_client.get("/api/v1/stats")
        done = (await api_client.get("/api/v1/stats/state")).json()

        assert done["state"] == "done"
        assert done["progress"] == 100
        assert done["stats"]["followers"] == 10

    @pytest.mark.asyncio
    async def test_languages(self, api_client):
        resp = await api_client.get("/api/v1/stats/languages")

        assert resp.status_code == 200
        assert resp.json() == [
            {"name": "Rust", "bytes": 700, "percentage": 70, "color": "#dea584"},
            {"name": "TypeScript", "bytes": 300, "percentage": 30, "color": "#3178c6"},
        ]

    @pytest.mark.asyncio
    async def test_failure_returns_503_then_retry(self, api_client, github):
        github.overrides["/users/octocat"] = httpx.Response(401)

        failed = await api_client.get("/api/v1/stats")

        assert failed.status_code == 503
        body = failed.json()
        assert "Authentication failed" in body["error"]
        assert body["retry"] == "/api/v1/stats/retry"

        state = (await api_client.get("/api/v1/stats/state")).json()
        assert state["state"] == "error"

        del github.overrides["/users/octocat"]
        retried = await api_client.post("/api/v1/stats/retry")

        assert retried.status_code == 200
        assert retried.json()["followers"] == 10

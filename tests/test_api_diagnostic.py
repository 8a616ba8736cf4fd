"""Tests for the diagnostic endpoints.

POST /v1/diagnostics, GET /v1/diagnostics/policy. Covers validation,
basic vs deeper mode, and ontology fallback wiring.
"""

import pytest
from httpx import AsyncClient

from src.agents.ontology import OntologyBackendError
from src.api.diagnostic import get_ontology_backend
from src.config.settings import Settings, get_settings

_BODY = {
    "clinic_name": "Glow Aesthetics",
    "monthly_revenue": 85000,
    "staff_count": 8,
    "no_show_rate": 12,
    "avg_treatment_value": 250,
}


class _DownBackend:

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def diagnose(self, payload: dict) -> dict:
        raise self.exc


class TestCreateDiagnostic:

    @pytest.mark.anyio
    async def test_basic_run(self, client: AsyncClient) -> None:
        response = await client.post("/v1/diagnostics", json=_BODY)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["source"] == "LOCAL_ENGINE"
        assert len(data["bottlenecks"]) == 5
        assert data["recommended_pilot_value"] == 8000
        assert data["current_state"]["analysis_mode"] == "basic"
        assert "90_day_projection" in data
        assert "impactDollars" in data["bottlenecks"][0]

    @pytest.mark.anyio
    async def test_deeper_run(self, client: AsyncClient) -> None:
        body = {
            **_BODY,
            "deeperData": {
                "staff_hourly_cost": 28,
                "monthly_marketing_spend": 6000,
                "current_inventory_value": 12000,
            },
        }
        response = await client.post("/v1/diagnostics", json=body)
        assert response.status_code == 200
        data = response.json()
        assert len(data["bottlenecks"]) == 9
        assert data["capture_rate"] == 0.72
        assert data["90_day_projection"]["no_show_reduction_pct"] == 55

    @pytest.mark.anyio
    async def test_multi_site_pilot(self, client: AsyncClient) -> None:
        response = await client.post(
            "/v1/diagnostics", json={**_BODY, "number_of_locations": 2},
        )
        assert response.json()["recommended_pilot_value"] == 12000

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "patch",
        [
            {"clinic_name": ""},
            {"monthly_revenue": 0},
            {"staff_count": 0},
            {"no_show_rate": 101},
            {"avg_treatment_value": -1},
            {"deeperData": {"csv_row_count": -3}},
        ],
    )
    async def test_invalid_body_rejected(
        self, client: AsyncClient, patch: dict,
    ) -> None:
        response = await client.post("/v1/diagnostics", json={**_BODY, **patch})
        assert response.status_code == 422

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "exc",
        [
            OntologyBackendError("ontology unavailable"),
            RuntimeError("HTTP 500 from ontology"),
        ],
    )
    async def test_ontology_failure_served_locally(
        self, client: AsyncClient, exc: Exception,
    ) -> None:
        from src.api.main import app

        app.dependency_overrides[get_settings] = lambda: Settings(
            ONTOLOGY_ENABLED=True,
        )
        app.dependency_overrides[get_ontology_backend] = lambda: _DownBackend(exc)

        response = await client.post("/v1/diagnostics", json=_BODY)
        assert response.status_code == 200
        assert response.json()["source"] == "LOCAL_ENGINE"


class TestPolicyEndpoint:

    @pytest.mark.anyio
    async def test_policy_exposed(self, client: AsyncClient) -> None:
        response = await client.get("/v1/diagnostics/policy")
        assert response.status_code == 200
        data = response.json()
        assert data["working_days_per_month"] == 22
        assert data["precision"]["deeper"]["ci_multiplier"] == 0.05

"""Tests for OntologyDiagnosticAgent: remote-first, local fallback.

Covers: no backend, backend success, backend errors, malformed
payloads, and the request payload contract.
"""

import logging

import pytest

from src.agents.ontology import (
    OntologyBackendError,
    OntologyDiagnosticAgent,
    build_payload,
    parse_backend_result,
)
from src.engine.diagnostic.engine import run_diagnostic
from src.models.clinic import ClinicInput, RefinementInput
from src.models.common import ResultSource


class _RecordingBackend:
    """Backend stub returning a fixed payload and recording requests."""

    def __init__(self, response) -> None:
        self.response = response
        self.payloads: list[dict] = []

    def diagnose(self, payload: dict) -> dict:
        self.payloads.append(payload)
        return self.response


class _FailingBackend:

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def diagnose(self, payload: dict) -> dict:
        raise self.exc


class TestBuildPayload:

    def test_basic_payload(self, clinic: ClinicInput) -> None:
        payload = build_payload(clinic)
        assert payload["ontology"] == "L5_Medspa_IaC"
        assert payload["clinic_data"]["monthly_revenue"] == 85000
        assert "deeper_data" not in payload

    def test_deeper_payload_drops_nulls(self, clinic: ClinicInput) -> None:
        payload = build_payload(clinic, RefinementInput(staff_hourly_cost=28))
        assert payload["deeper_data"] == {"staff_hourly_cost": 28}


class TestLocalFallback:

    def test_no_backend_uses_engine(self, clinic: ClinicInput) -> None:
        run = OntologyDiagnosticAgent().run(clinic)
        assert run.source == ResultSource.LOCAL_ENGINE
        assert run.result == run_diagnostic(clinic)

    @pytest.mark.parametrize(
        "exc",
        [
            OntologyBackendError("503 Service Unavailable"),
            TimeoutError("timed out"),
            ConnectionError("refused"),
            RuntimeError("HTTP 500 from ontology"),
            KeyError("choices"),
        ],
    )
    def test_backend_error_falls_back(
        self, clinic: ClinicInput, exc: Exception,
    ) -> None:
        run = OntologyDiagnosticAgent(_FailingBackend(exc)).run(clinic)
        assert run.source == ResultSource.LOCAL_ENGINE
        assert len(run.result.bottlenecks) == 5

    def test_malformed_payload_falls_back(self, clinic: ClinicInput) -> None:
        backend = _RecordingBackend({"current_state": {}})
        run = OntologyDiagnosticAgent(backend).run(clinic)
        assert run.source == ResultSource.LOCAL_ENGINE
        assert len(backend.payloads) == 1

    def test_non_dict_payload_falls_back(self, clinic: ClinicInput) -> None:
        run = OntologyDiagnosticAgent(_RecordingBackend(["nope"])).run(clinic)
        assert run.source == ResultSource.LOCAL_ENGINE

    def test_fallback_honours_refinement(
        self, clinic: ClinicInput, refinement: RefinementInput,
    ) -> None:
        run = OntologyDiagnosticAgent().run(clinic, refinement)
        assert run.result.capture_rate == 0.72

    def test_any_backend_error_is_logged_not_raised(
        self, clinic: ClinicInput, caplog: pytest.LogCaptureFixture,
    ) -> None:
        agent = OntologyDiagnosticAgent(_FailingBackend(RuntimeError("boom")))
        with caplog.at_level(logging.WARNING, logger="src.agents.ontology"):
            run = agent.run(clinic)
        assert run.source == ResultSource.LOCAL_ENGINE
        assert run.result == run_diagnostic(clinic)
        assert "boom" in caplog.text


class TestOntologySuccess:

    def test_valid_payload_used(self, clinic: ClinicInput) -> None:
        remote = run_diagnostic(
            clinic.model_copy(update={"number_of_locations": 3}),
        ).to_contract()
        backend = _RecordingBackend(remote)
        run = OntologyDiagnosticAgent(backend, ontology="custom").run(clinic)
        assert run.source == ResultSource.ONTOLOGY
        assert run.result.recommended_pilot_value == 12000
        assert backend.payloads[0]["ontology"] == "custom"

    def test_parse_backend_result_rejects_garbage(self) -> None:
        with pytest.raises(ValueError, match="failed validation"):
            parse_backend_result({"bottlenecks": "many"})

    def test_legacy_shaped_payload_accepted(self, clinic: ClinicInput) -> None:
        """Free-form current_state, no bottlenecks, no capture_rate."""
        legacy = {
            "current_state": {
                "monthly_revenue": 85000,
                "staff_count": 8,
                "no_show_rate": 12,
                "avg_treatment_value": 250,
                "locations": 1,
                "ontology_version": "L5",
            },
            "hidden_leaks": ["Front-desk manual scheduling consumes ~64 hrs/week"],
            "90_day_projection": {
                "revenue_lift_pct": 5.12,
                "staff_hours_saved_per_week": 48,
                "no_show_reduction_pct": 35,
                "payback_months": 4,
            },
            "12_month_projection": {
                "revenue_lift_pct": 12.8,
                "total_savings": 143683.2,
                "staff_reduction_pct": 15,
                "roi_multiple": 3.2,
            },
            "staff_reduction_pct": 15,
            "revenue_lift": 12.8,
            "total_savings": 143683.2,
            "recommended_pilot_value": 8000,
        }
        run = OntologyDiagnosticAgent(_RecordingBackend(legacy)).run(clinic)
        assert run.source == ResultSource.ONTOLOGY
        assert run.result.capture_rate is None
        assert run.result.bottlenecks == []
        assert run.result.total_savings == 143683.2
        assert run.result.current_state.analysis_mode is None
        contract = run.result.to_contract()
        assert contract["current_state"]["ontology_version"] == "L5"

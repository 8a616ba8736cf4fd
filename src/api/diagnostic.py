"""FastAPI diagnostic endpoints.

POST /v1/diagnostics         — run a diagnostic (ontology or local engine)
GET  /v1/diagnostics/policy  — active policy constants

No persistence: results are returned to the caller, who owns storage.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.agents.ontology import OntologyBackend, OntologyDiagnosticAgent
from src.config.settings import Settings, get_settings
from src.engine.diagnostic.config import DEFAULT_POLICY
from src.models.clinic import ClinicInput, RefinementInput
from src.models.common import ResultSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/diagnostics", tags=["diagnostics"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class DiagnosticRequest(BaseModel):
    """Intake form body: clinic KPIs plus optional ``deeperData`` block."""

    model_config = {"populate_by_name": True}

    clinic_name: str = Field(..., min_length=1)
    monthly_revenue: float = Field(..., ge=1)
    staff_count: int = Field(..., ge=1)
    no_show_rate: float = Field(..., ge=0, le=100)
    avg_treatment_value: float = Field(..., ge=0)
    number_of_locations: int = Field(default=1, ge=1)
    deeper_data: RefinementInput | None = Field(default=None, alias="deeperData")

    def to_clinic_input(self) -> ClinicInput:
        return ClinicInput(
            clinic_name=self.clinic_name,
            monthly_revenue=self.monthly_revenue,
            staff_count=self.staff_count,
            no_show_rate=self.no_show_rate,
            avg_treatment_value=self.avg_treatment_value,
            number_of_locations=self.number_of_locations,
        )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_ontology_backend() -> OntologyBackend | None:
    """Transport to the ontology service; none is wired in this deployment."""
    return None


def get_diagnostic_agent(
    settings: Settings = Depends(get_settings),
    backend: OntologyBackend | None = Depends(get_ontology_backend),
) -> OntologyDiagnosticAgent:
    return OntologyDiagnosticAgent(
        backend if settings.ONTOLOGY_ENABLED else None,
        ontology=settings.ONTOLOGY_NAME,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("")
def create_diagnostic(
    body: DiagnosticRequest,
    agent: OntologyDiagnosticAgent = Depends(get_diagnostic_agent),
) -> dict:
    """Run a diagnostic and return the published result contract."""
    run = agent.run(body.to_clinic_input(), body.deeper_data)
    if run.source != ResultSource.ONTOLOGY:
        logger.info("Diagnostic for %s served by local engine", body.clinic_name)
    return {
        "success": True,
        "clinic_name": body.clinic_name,
        "source": run.source.value,
        **run.result.to_contract(),
    }


@router.get("/policy")
def get_policy() -> dict:
    """Return the policy constants the local engine applies."""
    return DEFAULT_POLICY.model_dump(mode="json")

"""Ontology-backed diagnostics with deterministic fallback.

The ontology service is an external collaborator: it receives
``{"clinic_data": ..., "ontology": ...}`` and returns a payload shaped
like DiagnosticResult. This module owns the contract, not the transport.

Fallback rules:
- No backend configured -> local engine
- Backend raises anything -> local engine (logged, never surfaced)
- Backend payload fails schema validation -> local engine

The local engine shares the exact input/output contract, so callers
cannot tell the two paths apart except through ``source``.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from src.engine.diagnostic.config import DiagnosticPolicy
from src.engine.diagnostic.engine import run_diagnostic
from src.engine.diagnostic.schemas import DiagnosticResult
from src.models.clinic import ClinicInput, RefinementInput
from src.models.common import ResultSource

logger = logging.getLogger(__name__)

DEFAULT_ONTOLOGY = "L5_Medspa_IaC"


class OntologyBackendError(RuntimeError):
    """Raised by a backend when the ontology service cannot answer."""


class OntologyBackend(Protocol):
    """Synchronous transport to the ontology service."""

    def diagnose(self, payload: dict) -> dict:
        ...


@dataclass(frozen=True)
class DiagnosticRun:
    """A diagnostic result plus where it was computed."""

    result: DiagnosticResult
    source: ResultSource


def build_payload(
    clinic: ClinicInput,
    refinement: RefinementInput | None = None,
    ontology: str = DEFAULT_ONTOLOGY,
) -> dict:
    """Request body sent to the ontology service."""
    payload: dict = {
        "clinic_data": clinic.model_dump(mode="json"),
        "ontology": ontology,
    }
    if refinement is not None and refinement.is_populated:
        payload["deeper_data"] = refinement.model_dump(
            mode="json", exclude_none=True,
        )
    return payload


def parse_backend_result(raw: dict) -> DiagnosticResult:
    """Validate a backend payload against the result contract.

    Raises ValueError if the payload does not match the schema.
    """
    try:
        return DiagnosticResult.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Ontology payload failed validation: {exc}") from exc


class OntologyDiagnosticAgent:
    """Runs diagnostics remotely when possible, locally otherwise."""

    def __init__(
        self,
        backend: OntologyBackend | None = None,
        *,
        ontology: str = DEFAULT_ONTOLOGY,
        policy: DiagnosticPolicy | None = None,
    ) -> None:
        self._backend = backend
        self._ontology = ontology
        self._policy = policy

    def run(
        self,
        clinic: ClinicInput,
        refinement: RefinementInput | None = None,
    ) -> DiagnosticRun:
        if self._backend is not None:
            try:
                return self._run_with_backend(clinic, refinement)
            except Exception as exc:
                logger.warning(
                    "Ontology diagnostic fallback: %s", exc, exc_info=True,
                )

        logger.info("Diagnostic: using local engine (fallback)")
        result = run_diagnostic(clinic, refinement, policy=self._policy)
        return DiagnosticRun(result=result, source=ResultSource.LOCAL_ENGINE)

    def _run_with_backend(
        self,
        clinic: ClinicInput,
        refinement: RefinementInput | None,
    ) -> DiagnosticRun:
        payload = build_payload(clinic, refinement, self._ontology)
        raw = self._backend.diagnose(payload)
        if not isinstance(raw, dict):
            raise ValueError(
                f"Ontology payload must be an object, got {type(raw).__name__}",
            )
        result = parse_backend_result(raw)
        logger.info(
            "Diagnostic: ontology %s returned %d bottlenecks",
            self._ontology, len(result.bottlenecks),
        )
        return DiagnosticRun(result=result, source=ResultSource.ONTOLOGY)

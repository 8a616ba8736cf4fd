"""Shared types, enums, and base models used across the diagnostic domain models."""

from enum import StrEnum

from pydantic import BaseModel


# --- Shared enums ---


class AnalysisMode(StrEnum):
    """Precision tier of a diagnostic run."""

    BASIC = "basic"
    DEEPER = "deeper"


class ResultSource(StrEnum):
    """Where a diagnostic result was computed."""

    ONTOLOGY = "ONTOLOGY"
    LOCAL_ENGINE = "LOCAL_ENGINE"


# --- Base models ---


class DiagnosticBase(BaseModel):
    """Base model with common configuration for all diagnostic Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }


class FrozenDiagnosticBase(DiagnosticBase):
    """Immutable variant for values constructed once per diagnostic run."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "frozen": True,
    }

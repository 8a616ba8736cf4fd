"""Pydantic schemas for diagnostic intake.

ClinicInput carries the required clinic KPIs; RefinementInput carries the
optional "deeper" data that switches the engine into its higher-precision
mode. Range validation lives here so the engine can assume clean input.
"""

from pydantic import Field

from src.models.common import AnalysisMode, FrozenDiagnosticBase

# ---------------------------------------------------------------------------
# Required clinic KPIs
# ---------------------------------------------------------------------------


class ClinicInput(FrozenDiagnosticBase):
    """Core clinic KPIs collected by the intake form."""

    clinic_name: str = Field(..., min_length=1)
    monthly_revenue: float = Field(
        ..., gt=0,
        description="Gross monthly revenue in dollars.",
    )
    staff_count: int = Field(..., ge=1)
    no_show_rate: float = Field(
        ..., ge=0, le=100,
        description="Share of booked appointments missed, in percent.",
    )
    avg_treatment_value: float = Field(
        ..., ge=0,
        description="Average revenue per completed treatment in dollars.",
    )
    number_of_locations: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Optional refinement data
# ---------------------------------------------------------------------------


class RefinementInput(FrozenDiagnosticBase):
    """Optional refinement data; any populated field enables deeper mode."""

    staff_hourly_cost: float | None = Field(default=None, ge=0)
    monthly_marketing_spend: float | None = Field(default=None, ge=0)
    current_inventory_value: float | None = Field(default=None, ge=0)
    csv_row_count: int | None = Field(
        default=None, ge=0,
        description="Rows in an uploaded export. Informational only.",
    )

    @property
    def is_populated(self) -> bool:
        """True when at least one refinement field was supplied."""
        return any(
            value is not None
            for value in (
                self.staff_hourly_cost,
                self.monthly_marketing_spend,
                self.current_inventory_value,
                self.csv_row_count,
            )
        )


def resolve_mode(refinement: RefinementInput | None) -> AnalysisMode:
    """Return the analysis mode implied by the refinement data."""
    if refinement is not None and refinement.is_populated:
        return AnalysisMode.DEEPER
    return AnalysisMode.BASIC

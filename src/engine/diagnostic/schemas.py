"""Diagnostic engine result schemas.

Field aliases are the published contract consumed by the dashboard,
PDF export, and persistence layers. Serialize with
``model_dump(by_alias=True)`` to get the wire names.
"""

from __future__ import annotations

from pydantic import Field

from src.models.common import AnalysisMode, FrozenDiagnosticBase

# ---------------------------------------------------------------------------
# Stage 1: derived operational metrics
# ---------------------------------------------------------------------------


class DerivedMetrics(FrozenDiagnosticBase):
    """Intermediate operating metrics computed from the clinic KPIs."""

    treatments_completed: int = Field(..., ge=0)
    treatments_per_day: float = Field(..., ge=0)
    gross_scheduled: int = Field(..., ge=0)
    no_show_count: int = Field(..., ge=0)
    no_show_fraction: float = Field(..., ge=0, lt=1)
    providers: int = Field(..., ge=1)
    provider_hours_per_month: float = Field(..., ge=0)
    capacity_treatments: int = Field(..., ge=0)
    utilization: float = Field(..., ge=0, le=1)
    revenue_per_provider_hour: float = Field(..., ge=0)
    admin_hours_per_week: int = Field(..., ge=0)
    admin_hours_per_month: int = Field(..., ge=0)
    idle_gap_hours_per_provider_day: float = Field(..., ge=0)
    dead_time_hours_monthly: float = Field(..., ge=0)
    hourly_cost: float = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Stage 2: bottlenecks
# ---------------------------------------------------------------------------


class Bottleneck(FrozenDiagnosticBase):
    """A named, quantified operational inefficiency."""

    # Internal category key; not part of the published contract
    key: str = Field(default="", exclude=True)
    name: str
    impact_dollars: int = Field(..., ge=0, alias="impactDollars")
    impact_percent: int = Field(..., ge=0, alias="impactPercent")
    confidence: int = Field(..., ge=0, le=99)
    ci_low: int = Field(..., ge=0, alias="ciLow")
    ci_high: int = Field(..., ge=0, alias="ciHigh")
    description: str = ""

    @property
    def ci_half_width(self) -> float:
        return (self.ci_high - self.ci_low) / 2


# ---------------------------------------------------------------------------
# Stage 3: projections and the assembled result
# ---------------------------------------------------------------------------


class CurrentState(FrozenDiagnosticBase):
    """Snapshot of the clinic as it operates today.

    Only the five intake figures are required; the ontology service may
    omit the derived keys or add its own, which are kept as extras.
    """

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "frozen": True,
        "extra": "allow",
    }

    monthly_revenue: float
    staff_count: int
    no_show_rate: float
    avg_treatment_value: float
    locations: int

    # Derived by the local engine
    treatments_per_month: int | None = None
    treatments_per_day: float | None = None
    provider_utilization: int | None = None
    admin_hours_per_week: int | None = None
    providers: int | None = None
    revenue_per_provider_hour: float | None = None
    analysis_mode: AnalysisMode | None = None


class NinetyDayProjection(FrozenDiagnosticBase):
    revenue_lift_pct: float
    staff_hours_saved_per_week: int
    no_show_reduction_pct: int
    payback_months: int


class TwelveMonthProjection(FrozenDiagnosticBase):
    revenue_lift_pct: float
    total_savings: float
    staff_reduction_pct: float
    roi_multiple: float


class DiagnosticResult(FrozenDiagnosticBase):
    """Complete diagnostic output for one clinic.

    Answers:
    - Where is money leaking today? (bottlenecks, ranked by impact)
    - How sure are we? (confidence + CI per bottleneck)
    - What is recoverable, and how fast? (90-day / 12-month projections)
    """

    current_state: CurrentState
    hidden_leaks: list[str] = Field(default_factory=list)
    bottlenecks: list[Bottleneck] = Field(default_factory=list)
    projection_90_day: NinetyDayProjection = Field(
        ..., alias="90_day_projection",
    )
    projection_12_month: TwelveMonthProjection = Field(
        ..., alias="12_month_projection",
    )
    staff_reduction_pct: float
    revenue_lift: float
    total_savings: float
    recommended_pilot_value: int
    # Not reported by the ontology service
    capture_rate: float | None = None

    def to_contract(self) -> dict:
        """Serialize using the published field names."""
        return self.model_dump(mode="json", by_alias=True)

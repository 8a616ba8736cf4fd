"""Diagnostic policy configuration: ratios, tiers, and precision profiles.

Every fixed assumption the engine uses lives in DiagnosticPolicy so the
formulas stay free of inline literals. Bump ``policy_version`` whenever a
default changes.

Deterministic -- no I/O.
"""

from __future__ import annotations

import math

from pydantic import Field

from src.models.common import AnalysisMode, FrozenDiagnosticBase

# ---------------------------------------------------------------------------
# Bottleneck category keys (fixed evaluation order)
# ---------------------------------------------------------------------------

NO_SHOW = "no_show"
SCHEDULE_GAP = "schedule_gap"
ADMIN_OVERHEAD = "admin_overhead"
DORMANT_PATIENTS = "dormant_patients"
CHAIR_UTILIZATION = "chair_utilization"
STAFF_IDLE_WAGE = "staff_idle_wage"
TREATMENT_UPSELL = "treatment_upsell"
INVENTORY_WASTE = "inventory_waste"
MARKETING_ATTRIBUTION = "marketing_attribution"

BASE_CATEGORIES: tuple[str, ...] = (
    NO_SHOW,
    SCHEDULE_GAP,
    ADMIN_OVERHEAD,
    DORMANT_PATIENTS,
    CHAIR_UTILIZATION,
)
DEEPER_CATEGORIES: tuple[str, ...] = (
    STAFF_IDLE_WAGE,
    TREATMENT_UPSELL,
    INVENTORY_WASTE,
    MARKETING_ATTRIBUTION,
)


class PrecisionProfile(FrozenDiagnosticBase):
    """Confidence parameters for one analysis mode."""

    ci_multiplier: float = Field(..., gt=0, lt=1)
    base_confidence: int = Field(..., ge=0, le=99)
    capture_rate: float = Field(..., gt=0, le=1)
    no_show_reduction_pct: int = Field(..., ge=0, le=100)


class DiagnosticPolicy(FrozenDiagnosticBase):
    """Fixed policy constants for the diagnostic engine."""

    policy_version: str = "2025.1"

    # --- Calendar / staffing ---
    working_days_per_month: int = 22
    weeks_per_month: float = 4.33
    staff_hours_per_day: int = 8
    staff_hours_per_week: int = 40
    avg_treatment_hours: float = 0.75
    utilization_benchmark: float = 0.85
    max_utilization: float = 0.99
    provider_ratio: float = 0.60
    admin_time_ratio: float = 0.35
    default_hourly_cost: float = 30.0

    # Degenerate-input guards
    max_no_show_rate_pct: float = 99.0
    payback_unbounded_months: int = 999

    # (no-show fraction lower bound, idle hours/provider/day), checked in order
    idle_gap_tiers: list[tuple[float, float]] = Field(
        default_factory=lambda: [
            (0.08, 1.8),
            (0.04, 1.2),
        ],
    )
    idle_gap_floor_hours: float = 0.8

    # --- Bottleneck assumptions ---
    no_show_recovery_rate: float = 0.65
    admin_automatable_share: float = 0.70
    dormant_patient_share: float = 0.15
    dormant_recovery_rate: float = 0.80
    upsell_value_ratio: float = 0.35
    upsell_opportunity_share: float = 0.45
    upsell_conversion_rate: float = 0.30
    inventory_waste_rate: float = 0.11
    default_inventory_revenue_ratio: float = 0.15
    marketing_waste_rate: float = 0.28
    default_marketing_revenue_ratio: float = 0.08

    # --- Precision by mode ---
    precision: dict[AnalysisMode, PrecisionProfile] = Field(
        default_factory=lambda: {
            AnalysisMode.BASIC: PrecisionProfile(
                ci_multiplier=0.12,
                base_confidence=85,
                capture_rate=0.60,
                no_show_reduction_pct=42,
            ),
            AnalysisMode.DEEPER: PrecisionProfile(
                ci_multiplier=0.05,
                base_confidence=93,
                capture_rate=0.72,
                no_show_reduction_pct=55,
            ),
        },
    )
    max_confidence: int = 99

    # Per-category (confidence bonus, CI scale factor)
    category_confidence_bonus: dict[str, int] = Field(
        default_factory=lambda: {
            NO_SHOW: 6,
            SCHEDULE_GAP: 3,
            ADMIN_OVERHEAD: 4,
            DORMANT_PATIENTS: 1,
            CHAIR_UTILIZATION: 2,
            STAFF_IDLE_WAGE: 5,
            TREATMENT_UPSELL: 0,
            INVENTORY_WASTE: 2,
            MARKETING_ATTRIBUTION: 1,
        },
    )
    category_ci_scale: dict[str, float] = Field(
        default_factory=lambda: {
            NO_SHOW: 1.0,
            SCHEDULE_GAP: 1.2,
            ADMIN_OVERHEAD: 1.1,
            DORMANT_PATIENTS: 1.3,
            CHAIR_UTILIZATION: 1.15,
            STAFF_IDLE_WAGE: 1.1,
            TREATMENT_UPSELL: 1.3,
            INVENTORY_WASTE: 1.2,
            MARKETING_ATTRIBUTION: 1.25,
        },
    )

    # --- Projections ---
    automation_share: float = 0.70
    ninety_day_lift_share: float = 0.45
    max_revenue_lift_pct: float = 22.0
    # (max locations, pilot value); larger practices use the fallback value
    pilot_value_tiers: list[tuple[int, int]] = Field(
        default_factory=lambda: [(1, 8000)],
    )
    pilot_value_multi_site: int = 12000

    def profile(self, mode: AnalysisMode) -> PrecisionProfile:
        """Return the precision profile for *mode*."""
        return self.precision[mode]

    def idle_gap_hours(self, no_show_fraction: float) -> float:
        """Step function from no-show fraction to idle hours per provider-day."""
        for threshold, hours in self.idle_gap_tiers:
            if no_show_fraction > threshold:
                return hours
        return self.idle_gap_floor_hours

    def pilot_value(self, number_of_locations: int) -> int:
        """Recommended pilot investment for a practice of this size."""
        for max_locations, value in self.pilot_value_tiers:
            if number_of_locations <= max_locations:
                return value
        return self.pilot_value_multi_site


DEFAULT_POLICY = DiagnosticPolicy()


def round_int(value: float) -> int:
    """Half-up rounding to the nearest integer (inputs are non-negative)."""
    return int(math.floor(value + 0.5))


def round_tenth(value: float) -> float:
    """Half-up rounding to one decimal place."""
    return round_int(value * 10) / 10

"""Stage 3: roll bottleneck impacts into top-line projections.

Assembles the final DiagnosticResult: current-state snapshot, hidden
leaks, 90-day and 12-month projections, and the headline scalars.

Deterministic -- no I/O.
"""

from __future__ import annotations

import math

from src.engine.diagnostic.config import (
    DEFAULT_POLICY,
    DiagnosticPolicy,
    round_int,
    round_tenth,
)
from src.engine.diagnostic.schemas import (
    Bottleneck,
    CurrentState,
    DerivedMetrics,
    DiagnosticResult,
    NinetyDayProjection,
    TwelveMonthProjection,
)
from src.models.clinic import ClinicInput
from src.models.common import AnalysisMode


class ProjectionAggregator:
    """Turns a ranked bottleneck list into recoverable-value projections."""

    def __init__(self, policy: DiagnosticPolicy | None = None) -> None:
        self._policy = policy or DEFAULT_POLICY

    def aggregate(
        self,
        clinic: ClinicInput,
        metrics: DerivedMetrics,
        bottlenecks: list[Bottleneck],
        mode: AnalysisMode,
    ) -> DiagnosticResult:
        """Assemble the result from the ranked bottlenecks.

        ``revenue_lift`` is capped at ``policy.max_revenue_lift_pct`` for
        display; ``total_savings``, ROI and payback use the uncapped
        recoverable amount, so the two figures come from different bases.
        """
        p = self._policy
        profile = p.profile(mode)

        total_impact = sum(b.impact_dollars for b in bottlenecks)
        recoverable_monthly = round_int(total_impact * profile.capture_rate)

        revenue_lift = min(
            p.max_revenue_lift_pct,
            round_int(recoverable_monthly / clinic.monthly_revenue * 1000) / 10,
        )
        # Independent of clinic inputs; scales only with policy ratios
        staff_reduction = round_int(p.automation_share * p.admin_time_ratio * 1000) / 10
        hours_saved_per_week = round_int(
            clinic.staff_count
            * p.staff_hours_per_week
            * p.automation_share
            * p.admin_time_ratio,
        )
        total_savings = recoverable_monthly * 12
        pilot_value = p.pilot_value(clinic.number_of_locations)
        roi_multiple = round_int(total_savings / pilot_value * 10) / 10
        payback_months = self.payback_months(pilot_value, recoverable_monthly)

        return DiagnosticResult(
            current_state=self._current_state(clinic, metrics, mode),
            hidden_leaks=self.hidden_leaks(clinic, metrics),
            bottlenecks=list(bottlenecks),
            projection_90_day=NinetyDayProjection(
                revenue_lift_pct=round_tenth(revenue_lift * p.ninety_day_lift_share),
                staff_hours_saved_per_week=hours_saved_per_week,
                no_show_reduction_pct=profile.no_show_reduction_pct,
                payback_months=payback_months,
            ),
            projection_12_month=TwelveMonthProjection(
                revenue_lift_pct=revenue_lift,
                total_savings=total_savings,
                staff_reduction_pct=staff_reduction,
                roi_multiple=roi_multiple,
            ),
            staff_reduction_pct=staff_reduction,
            revenue_lift=revenue_lift,
            total_savings=total_savings,
            recommended_pilot_value=pilot_value,
            capture_rate=profile.capture_rate,
        )

    def payback_months(self, pilot_value: int, recoverable_monthly: int) -> int:
        """Months until the pilot pays for itself.

        Zero recoverable revenue never pays back; it maps to
        ``policy.payback_unbounded_months``.
        """
        if recoverable_monthly <= 0:
            return self._policy.payback_unbounded_months
        return max(1, math.ceil(pilot_value / recoverable_monthly))

    def hidden_leaks(
        self,
        clinic: ClinicInput,
        metrics: DerivedMetrics,
    ) -> list[str]:
        """Five short findings quoted on the dashboard and in the PDF."""
        p = self._policy
        no_show_loss = metrics.no_show_count * clinic.avg_treatment_value
        dormant = round_int(metrics.treatments_completed * p.dormant_patient_share)
        return [
            f"No-shows are costing an estimated ${round_int(no_show_loss):,}/mo "
            f"in lost revenue ({metrics.no_show_count} missed appointments)",
            f"Front-desk scheduling and admin work consume "
            f"~{metrics.admin_hours_per_week} hrs/week",
            f"Providers run at {round_int(metrics.utilization * 100)}% utilization "
            f"against a {round_int(p.utilization_benchmark * 100)}% benchmark",
            f"Schedule gaps leave ~{metrics.idle_gap_hours_per_provider_day} idle "
            f"hrs per provider per day across {metrics.providers} providers",
            f"Missed recall and reactivation: ~{dormant} dormant patients "
            f"recoverable each month",
        ]

    def _current_state(
        self,
        clinic: ClinicInput,
        metrics: DerivedMetrics,
        mode: AnalysisMode,
    ) -> CurrentState:
        return CurrentState(
            monthly_revenue=clinic.monthly_revenue,
            staff_count=clinic.staff_count,
            no_show_rate=clinic.no_show_rate,
            avg_treatment_value=clinic.avg_treatment_value,
            locations=clinic.number_of_locations,
            treatments_per_month=metrics.treatments_completed,
            treatments_per_day=metrics.treatments_per_day,
            provider_utilization=round_int(metrics.utilization * 100),
            admin_hours_per_week=metrics.admin_hours_per_week,
            providers=metrics.providers,
            revenue_per_provider_hour=round(metrics.revenue_per_provider_hour, 2),
            analysis_mode=mode,
        )

"""Stage 1: derive operating metrics from raw clinic KPIs.

Degenerate inputs are absorbed rather than raised:
- avg_treatment_value == 0 -> zero treatments downstream
- no_show_rate == 100 -> capped at policy.max_no_show_rate_pct

Deterministic -- no I/O.
"""

from __future__ import annotations

from src.engine.diagnostic.config import (
    DEFAULT_POLICY,
    DiagnosticPolicy,
    round_int,
    round_tenth,
)
from src.engine.diagnostic.schemas import DerivedMetrics
from src.models.clinic import ClinicInput, RefinementInput


class MetricsDeriver:
    """Transforms clinic KPIs into intermediate operating metrics."""

    def __init__(self, policy: DiagnosticPolicy | None = None) -> None:
        self._policy = policy or DEFAULT_POLICY

    def derive(
        self,
        clinic: ClinicInput,
        refinement: RefinementInput | None = None,
    ) -> DerivedMetrics:
        p = self._policy

        # 1. Completed treatments back-calculated from revenue
        if clinic.avg_treatment_value > 0:
            treatments = round_int(
                clinic.monthly_revenue / clinic.avg_treatment_value,
            )
        else:
            treatments = 0

        # 2-3. Gross bookings implied by the no-show rate
        no_show_fraction = min(clinic.no_show_rate, p.max_no_show_rate_pct) / 100
        gross_scheduled = round_int(treatments / (1 - no_show_fraction))
        no_show_count = max(0, gross_scheduled - treatments)

        # 4-6. Provider capacity
        providers = max(1, round_int(clinic.staff_count * p.provider_ratio))
        provider_hours = float(
            providers * p.staff_hours_per_day * p.working_days_per_month,
        )
        capacity = round_int(provider_hours / p.avg_treatment_hours)

        # 7-8. Utilization and yield
        utilization = 0.0
        if capacity > 0:
            utilization = min(p.max_utilization, treatments / capacity)
        revenue_per_provider_hour = clinic.monthly_revenue / provider_hours

        # 9. Admin load
        admin_week = round_int(
            clinic.staff_count * p.admin_time_ratio * p.staff_hours_per_week,
        )
        admin_month = round_int(admin_week * p.weeks_per_month)

        # 10. Idle gaps
        idle_gap = p.idle_gap_hours(no_show_fraction)
        dead_time = providers * idle_gap * p.working_days_per_month

        hourly_cost = p.default_hourly_cost
        if refinement is not None and refinement.staff_hourly_cost is not None:
            hourly_cost = refinement.staff_hourly_cost

        return DerivedMetrics(
            treatments_completed=treatments,
            treatments_per_day=round_tenth(treatments / p.working_days_per_month),
            gross_scheduled=gross_scheduled,
            no_show_count=no_show_count,
            no_show_fraction=no_show_fraction,
            providers=providers,
            provider_hours_per_month=provider_hours,
            capacity_treatments=capacity,
            utilization=utilization,
            revenue_per_provider_hour=revenue_per_provider_hour,
            admin_hours_per_week=admin_week,
            admin_hours_per_month=admin_month,
            idle_gap_hours_per_provider_day=idle_gap,
            dead_time_hours_monthly=dead_time,
            hourly_cost=hourly_cost,
        )


def derive_metrics(
    clinic: ClinicInput,
    refinement: RefinementInput | None = None,
    policy: DiagnosticPolicy | None = None,
) -> DerivedMetrics:
    """Convenience wrapper around :class:`MetricsDeriver`."""
    return MetricsDeriver(policy).derive(clinic, refinement)

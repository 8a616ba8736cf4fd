"""Stage 2: estimate bottleneck costs from derived metrics.

Categories are declared once in ``BOTTLENECK_RULES`` as
(predicate, estimator) pairs and evaluated in that fixed order. The
order doubles as the tie-breaker when two bottlenecks carry the same
dollar impact.

Deterministic -- no I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from src.engine.diagnostic.config import (
    ADMIN_OVERHEAD,
    CHAIR_UTILIZATION,
    DEFAULT_POLICY,
    DORMANT_PATIENTS,
    INVENTORY_WASTE,
    MARKETING_ATTRIBUTION,
    NO_SHOW,
    SCHEDULE_GAP,
    STAFF_IDLE_WAGE,
    TREATMENT_UPSELL,
    DiagnosticPolicy,
    round_int,
)
from src.engine.diagnostic.schemas import Bottleneck, DerivedMetrics
from src.models.clinic import ClinicInput, RefinementInput, resolve_mode
from src.models.common import AnalysisMode

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule plumbing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EstimationContext:
    """Everything a rule needs to price one category."""

    clinic: ClinicInput
    metrics: DerivedMetrics
    refinement: RefinementInput | None
    policy: DiagnosticPolicy

    @property
    def inventory_value(self) -> float:
        if self.refinement and self.refinement.current_inventory_value is not None:
            return self.refinement.current_inventory_value
        return self.clinic.monthly_revenue * self.policy.default_inventory_revenue_ratio

    @property
    def marketing_spend(self) -> float:
        if self.refinement and self.refinement.monthly_marketing_spend is not None:
            return self.refinement.monthly_marketing_spend
        return self.clinic.monthly_revenue * self.policy.default_marketing_revenue_ratio

    @property
    def utilization_gap(self) -> float:
        return max(
            0.0, self.policy.utilization_benchmark - self.metrics.utilization,
        )


@dataclass(frozen=True)
class Estimate:
    impact: float
    description: str


@dataclass(frozen=True)
class BottleneckRule:
    """Declarative bottleneck category."""

    key: str
    name: str
    estimate: Callable[[EstimationContext], Estimate]
    applies: Callable[[EstimationContext], bool] = lambda ctx: True
    deeper_only: bool = False


def _usd(value: float) -> str:
    return f"${round_int(value):,}"


# ---------------------------------------------------------------------------
# Category estimators
# ---------------------------------------------------------------------------


def _no_show(ctx: EstimationContext) -> Estimate:
    m, p = ctx.metrics, ctx.policy
    impact = m.no_show_count * ctx.clinic.avg_treatment_value * p.no_show_recovery_rate
    return Estimate(
        impact,
        f"{m.no_show_count} missed appointments/month at "
        f"{_usd(ctx.clinic.avg_treatment_value)} each; "
        f"{round_int(p.no_show_recovery_rate * 100)}% recoverable with "
        f"predictive reminders and waitlist backfill.",
    )


def _schedule_gap(ctx: EstimationContext) -> Estimate:
    m = ctx.metrics
    impact = m.dead_time_hours_monthly * m.revenue_per_provider_hour
    return Estimate(
        impact,
        f"{m.providers} providers idle ~{m.idle_gap_hours_per_provider_day}h/day "
        f"({round_int(m.dead_time_hours_monthly)} dead hours/month) at "
        f"{_usd(m.revenue_per_provider_hour)} per provider-hour.",
    )


def _admin_overhead(ctx: EstimationContext) -> Estimate:
    m, p = ctx.metrics, ctx.policy
    monthly_cost = m.admin_hours_per_month * m.hourly_cost
    impact = monthly_cost * p.admin_automatable_share
    return Estimate(
        impact,
        f"{m.admin_hours_per_week} admin hours/week ({_usd(monthly_cost)}/month "
        f"at {_usd(m.hourly_cost)}/hr); "
        f"{round_int(p.admin_automatable_share * 100)}% automatable.",
    )


def _dormant_patients(ctx: EstimationContext) -> Estimate:
    m, p = ctx.metrics, ctx.policy
    recoverable = round_int(m.treatments_completed * p.dormant_patient_share)
    impact = recoverable * ctx.clinic.avg_treatment_value * p.dormant_recovery_rate
    return Estimate(
        impact,
        f"~{recoverable} lapsed patients/month reachable through automated "
        f"recall and reactivation campaigns.",
    )


def _chair_utilization(ctx: EstimationContext) -> Estimate:
    m, p = ctx.metrics, ctx.policy
    gap = ctx.utilization_gap
    impact = gap * m.capacity_treatments * ctx.clinic.avg_treatment_value
    return Estimate(
        impact,
        f"Running at {round_int(m.utilization * 100)}% utilization vs "
        f"{round_int(p.utilization_benchmark * 100)}% best-in-class across "
        f"{m.capacity_treatments} treatment slots/month.",
    )


def _staff_idle_wage(ctx: EstimationContext) -> Estimate:
    m = ctx.metrics
    impact = m.dead_time_hours_monthly * m.hourly_cost
    return Estimate(
        impact,
        f"{round_int(m.dead_time_hours_monthly)} paid-but-idle hours/month at "
        f"{_usd(m.hourly_cost)}/hr fully loaded.",
    )


def _treatment_upsell(ctx: EstimationContext) -> Estimate:
    m, p = ctx.metrics, ctx.policy
    upsell_value = ctx.clinic.avg_treatment_value * p.upsell_value_ratio
    opportunities = round_int(m.treatments_completed * p.upsell_opportunity_share)
    impact = opportunities * upsell_value * p.upsell_conversion_rate
    return Estimate(
        impact,
        f"{opportunities} visits/month with a missed add-on worth "
        f"{_usd(upsell_value)}; {round_int(p.upsell_conversion_rate * 100)}% "
        f"conversion assumed.",
    )


def _inventory_waste(ctx: EstimationContext) -> Estimate:
    p = ctx.policy
    inventory = ctx.inventory_value
    return Estimate(
        inventory * p.inventory_waste_rate,
        f"{round_int(p.inventory_waste_rate * 100)}% of {_usd(inventory)} "
        f"inventory lost to expiry, shrinkage, and over-ordering.",
    )


def _marketing_attribution(ctx: EstimationContext) -> Estimate:
    p = ctx.policy
    spend = ctx.marketing_spend
    return Estimate(
        spend * p.marketing_waste_rate,
        f"{round_int(p.marketing_waste_rate * 100)}% of {_usd(spend)}/month "
        f"marketing spend cannot be tied to booked treatments.",
    )


BOTTLENECK_RULES: tuple[BottleneckRule, ...] = (
    BottleneckRule(NO_SHOW, "No-Show Revenue Drain", _no_show),
    BottleneckRule(SCHEDULE_GAP, "Schedule Gap Dead Time", _schedule_gap),
    BottleneckRule(ADMIN_OVERHEAD, "Admin Overhead Burn", _admin_overhead),
    BottleneckRule(DORMANT_PATIENTS, "Dormant Patient Revenue", _dormant_patients),
    BottleneckRule(
        CHAIR_UTILIZATION,
        "Chair Utilization Gap",
        _chair_utilization,
        applies=lambda ctx: ctx.utilization_gap > 0,
    ),
    BottleneckRule(
        STAFF_IDLE_WAGE, "Staff Idle Wage Burn", _staff_idle_wage,
        deeper_only=True,
    ),
    BottleneckRule(
        TREATMENT_UPSELL, "Missed Treatment Upsell", _treatment_upsell,
        deeper_only=True,
    ),
    BottleneckRule(
        INVENTORY_WASTE, "Inventory Waste", _inventory_waste,
        deeper_only=True,
    ),
    BottleneckRule(
        MARKETING_ATTRIBUTION,
        "Marketing Attribution Gap",
        _marketing_attribution,
        applies=lambda ctx: ctx.marketing_spend > 0,
        deeper_only=True,
    ),
)


# ---------------------------------------------------------------------------
# BottleneckEstimator
# ---------------------------------------------------------------------------


class BottleneckEstimator:
    """Prices each applicable category and ranks them by dollar impact."""

    def __init__(
        self,
        policy: DiagnosticPolicy | None = None,
        rules: tuple[BottleneckRule, ...] = BOTTLENECK_RULES,
    ) -> None:
        self._policy = policy or DEFAULT_POLICY
        self._rules = rules

    def estimate(
        self,
        clinic: ClinicInput,
        metrics: DerivedMetrics,
        refinement: RefinementInput | None = None,
    ) -> list[Bottleneck]:
        """Return bottlenecks sorted by impact, highest first.

        Ties keep rule order (``sorted`` is stable).
        """
        mode = resolve_mode(refinement)
        ctx = EstimationContext(
            clinic=clinic,
            metrics=metrics,
            refinement=refinement,
            policy=self._policy,
        )

        bottlenecks: list[Bottleneck] = []
        for rule in self._rules:
            if rule.deeper_only and mode != AnalysisMode.DEEPER:
                continue
            if not rule.applies(ctx):
                logger.debug("Bottleneck %s skipped: predicate false", rule.key)
                continue
            bottlenecks.append(self._build(rule, rule.estimate(ctx), clinic, mode))

        return sorted(bottlenecks, key=lambda b: b.impact_dollars, reverse=True)

    def _build(
        self,
        rule: BottleneckRule,
        estimate: Estimate,
        clinic: ClinicInput,
        mode: AnalysisMode,
    ) -> Bottleneck:
        p = self._policy
        profile = p.profile(mode)

        impact = round_int(max(0.0, estimate.impact))
        half_width = profile.ci_multiplier * p.category_ci_scale.get(rule.key, 1.0)
        confidence = min(
            p.max_confidence,
            profile.base_confidence + p.category_confidence_bonus.get(rule.key, 0),
        )

        return Bottleneck(
            key=rule.key,
            name=rule.name,
            impact_dollars=impact,
            impact_percent=round_int(impact / clinic.monthly_revenue * 100),
            confidence=confidence,
            ci_low=round_int(impact * (1 - half_width)),
            ci_high=round_int(impact * (1 + half_width)),
            description=estimate.description,
        )

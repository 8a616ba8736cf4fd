"""Diagnostic engine entry point: chains the three stages."""

from __future__ import annotations

import logging

from src.engine.diagnostic.bottlenecks import BottleneckEstimator
from src.engine.diagnostic.config import DEFAULT_POLICY, DiagnosticPolicy
from src.engine.diagnostic.metrics import MetricsDeriver
from src.engine.diagnostic.projections import ProjectionAggregator
from src.engine.diagnostic.schemas import DiagnosticResult
from src.models.clinic import ClinicInput, RefinementInput, resolve_mode

logger = logging.getLogger(__name__)


def run_diagnostic(
    clinic: ClinicInput,
    refinement: RefinementInput | None = None,
    *,
    policy: DiagnosticPolicy | None = None,
) -> DiagnosticResult:
    """Run the full diagnostic for one clinic.

    Args:
        clinic: Validated clinic KPIs.
        refinement: Optional deeper-mode data. Any populated field
            switches to deeper mode (tighter CIs, extra categories).
        policy: Override the default policy constants.

    Returns:
        Immutable DiagnosticResult. Identical inputs give identical results.
    """
    policy = policy or DEFAULT_POLICY
    mode = resolve_mode(refinement)

    metrics = MetricsDeriver(policy).derive(clinic, refinement)
    bottlenecks = BottleneckEstimator(policy).estimate(clinic, metrics, refinement)

    logger.debug(
        "Diagnostic (%s mode, policy %s): %d bottlenecks",
        mode.value, policy.policy_version, len(bottlenecks),
    )
    return ProjectionAggregator(policy).aggregate(
        clinic, metrics, bottlenecks, mode,
    )

"""Clinic operational diagnostic engine.

Deterministic 3-stage pipeline:
1. MetricsDeriver — KPIs to throughput, capacity, utilization, admin load
2. BottleneckEstimator — ranked dollar-impact estimates with confidence
3. ProjectionAggregator — revenue lift, savings, payback, ROI

Pure and synchronous. Also serves as the local fallback when the
external ontology service is unavailable.
"""

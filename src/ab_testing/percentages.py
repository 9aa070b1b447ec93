"""
Traffic share reporting for the debug surface.

Debug percentages come from the configured weights in the registry, not
from recorded assignments: one subject only ever holds one assignment per
experiment, so an observed split from a single store says nothing about
traffic. ``observed_split`` exists for simulations over many subjects.
"""

import math
from typing import Dict

import pandas as pd

from .registry import ExperimentRegistry
from .schema import Experiment


def configured_split(experiment: Experiment) -> Dict[str, float]:
    """
    Fraction of traffic each variant is configured to receive.

    All-zero weights route everything to the default variant, matching
    bucketing.
    """
    total = experiment.total_weight()
    if total <= 0:
        return {v.id: (1.0 if v.id == experiment.default_variant else 0.0) for v in experiment.variants}
    return {v.id: experiment.weight_of(v) / total for v in experiment.variants}


def variant_percentage(registry: ExperimentRegistry, experiment_id: str, variant_id: str) -> int:
    """
    Configured share of a variant as a whole percent for display.

    Halves round up (12.5% shows as 13%).

    Returns 0 for unknown experiments or variants.
    """
    experiment = registry.lookup(experiment_id)
    if experiment is None or not experiment.has_variant(variant_id):
        return 0
    pct = math.floor(configured_split(experiment)[variant_id] * 100 + 0.5)
    return int(min(100, max(0, pct)))


def observed_split(assignments: pd.DataFrame, variant_col: str = "variant_id") -> Dict[str, float]:
    """
    Observed fraction per variant in a table of assignments.

    Args:
        assignments: One row per subject (e.g. from assign_subjects)
        variant_col: Column holding the variant id

    Returns:
        Dict variant_id -> fraction; empty if there are no rows
    """
    if assignments.empty or variant_col not in assignments.columns:
        return {}
    shares = assignments[variant_col].value_counts(normalize=True)
    return {str(k): float(v) for k, v in shares.items()}

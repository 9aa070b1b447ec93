"""
Split simulator.

Buckets a population of synthetic subject ids into one experiment and
compares the observed split against the configured weights with an SRM
check. Used to verify a catalog change before shipping it.
"""

import logging
from typing import Any, Dict

from .assignment import assign_subjects
from .percentages import configured_split, observed_split
from .registry import ExperimentRegistry
from .stats import check_srm

logger = logging.getLogger(__name__)


def run_split_simulation(
    registry: ExperimentRegistry,
    experiment_id: str,
    n_subjects: int = 10000,
    id_prefix: str = "subject_",
    alpha: float = 0.01,
) -> Dict[str, Any]:
    """
    Simulate bucketing for n synthetic subjects.

    Args:
        registry: Experiment catalog
        experiment_id: Experiment to simulate
        n_subjects: Population size
        id_prefix: Prefix for synthetic subject ids
        alpha: SRM significance threshold

    Returns:
        Dict with n_subjects, counts, observed, configured, srm_passed,
        chi2, p_value

    Raises:
        ValueError: if the experiment is unknown
    """
    experiment = registry.lookup(experiment_id)
    if experiment is None:
        raise ValueError(f"Unknown experiment {experiment_id}")

    df = assign_subjects(experiment, (f"{id_prefix}{i}" for i in range(n_subjects)))
    counts = {str(k): int(v) for k, v in df["variant_id"].value_counts().items()}
    configured = configured_split(experiment)
    srm_passed, chi2, p_value = check_srm(counts, configured, alpha=alpha)
    if not srm_passed:
        logger.warning(f"SRM detected for {experiment_id}: p={p_value:.4g}, counts={counts}")

    return {
        "experiment_id": experiment_id,
        "n_subjects": len(df),
        "counts": counts,
        "observed": observed_split(df),
        "configured": configured,
        "srm_passed": srm_passed,
        "chi2": chi2,
        "p_value": p_value,
    }

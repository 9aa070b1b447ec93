"""
Deterministic variant assignment for A/B testing.

Uses hashing of (subject_id, experiment_id) to ensure stable assignments
with configurable relative weights per variant.
"""

import hashlib
import logging
from typing import Iterable

import pandas as pd

from .schema import Experiment

logger = logging.getLogger(__name__)

_HASH_SPACE = 0x100000000  # 32 bits of the digest


def _hash_to_unit(subject_id: str, experiment_id: str) -> float:
    """
    Deterministic hash to [0, 1).

    Same subject + experiment always maps to the same point.
    """
    key = f"{subject_id}:{experiment_id}"
    h = hashlib.sha256(key.encode()).hexdigest()
    return int(h[:8], 16) / _HASH_SPACE


def assign_variant(experiment: Experiment, subject_id: str) -> str:
    """
    Pick a variant for a subject deterministically.

    Walks variants in registration order accumulating their normalized
    weight and returns the first whose cumulative boundary exceeds the
    subject's hash point. Callers must look the experiment up in the
    registry first; unknown experiments are never bucketed here.

    Args:
        experiment: Experiment configuration
        subject_id: Stable subject identity (browser id or user id)

    Returns:
        Variant id
    """
    variants = experiment.variants
    if len(variants) == 1:
        return variants[0].id

    total = experiment.total_weight()
    if total <= 0:
        # Degenerate all-zero weights
        return experiment.default_variant

    point = _hash_to_unit(subject_id, experiment.id)
    cumulative = 0.0
    last_eligible = experiment.default_variant
    for variant in variants:
        share = experiment.weight_of(variant) / total
        if share <= 0:
            continue
        last_eligible = variant.id
        cumulative += share
        if point < cumulative:
            return variant.id
    # Float round-off can leave the final boundary just below 1.0
    return last_eligible


def assign_subjects(experiment: Experiment, subject_ids: Iterable[str]) -> pd.DataFrame:
    """
    Bucket a batch of subjects into an experiment.

    Args:
        experiment: Experiment configuration
        subject_ids: Subject identifiers

    Returns:
        DataFrame with columns subject_id, variant_id
    """
    rows = [
        {"subject_id": sid, "variant_id": assign_variant(experiment, sid)}
        for sid in subject_ids
    ]
    df = pd.DataFrame(rows, columns=["subject_id", "variant_id"])
    counts = df["variant_id"].value_counts().to_dict()
    logger.info(f"Bucketing complete: {len(df)} subjects -> {counts}")
    return df

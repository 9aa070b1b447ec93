"""
Experiment registry: the read-only catalog of experiments and variants.

Add new experiments to ``DEFAULT_EXPERIMENTS``. Weights are relative, not
percentages:
- 50/50 split: A=1, B=1
- 80/20 split: A=4, B=1
- three-way split: A=1, B=1, C=1
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .schema import Experiment, ExperimentConfigError, Variant

logger = logging.getLogger(__name__)

# Returned for experiments the registry does not know
FALLBACK_VARIANT = "A"

DEFAULT_EXPERIMENTS = [
    # CTA button text: "Book Now" vs "Get Started"
    Experiment(
        id="cta-button-text",
        variants=[Variant("A", 1), Variant("B", 1)],
        default_variant="A",
    ),
    Experiment(
        id="marketplace-layout",
        variants=[Variant("grid", 1), Variant("list", 1)],
        default_variant="grid",
    ),
    # 90/10 split for careful testing of annual pricing
    Experiment(
        id="price-display",
        variants=[Variant("standard", 9), Variant("annual", 1)],
        default_variant="standard",
    ),
    Experiment(
        id="cta-color",
        variants=[Variant("primary", 1), Variant("green", 1), Variant("orange", 1)],
        default_variant="primary",
    ),
]


class ExperimentRegistry:
    """
    Immutable catalog of experiments keyed by id.

    Lookups of unknown ids return None rather than raising, so display code
    stays robust against stale or mistyped experiment ids.
    """

    def __init__(self, experiments: Iterable[Experiment] = ()):
        self._experiments: Dict[str, Experiment] = {}
        for experiment in experiments:
            experiment.validate()
            if experiment.id in self._experiments:
                raise ExperimentConfigError(f"Duplicate experiment id: {experiment.id}")
            self._experiments[experiment.id] = experiment
        logger.debug(f"Registry loaded with {len(self._experiments)} experiments")

    def lookup(self, experiment_id: str) -> Optional[Experiment]:
        return self._experiments.get(experiment_id)

    def list(self) -> List[Experiment]:
        """Experiments in registration order."""
        return list(self._experiments.values())

    def get_default_variant(self, experiment_id: str) -> str:
        experiment = self.lookup(experiment_id)
        if experiment is None:
            return FALLBACK_VARIANT
        return experiment.default_variant

    def __len__(self) -> int:
        return len(self._experiments)


def default_registry() -> ExperimentRegistry:
    """Registry holding the marketplace's built-in experiments."""
    return ExperimentRegistry(DEFAULT_EXPERIMENTS)


def _experiment_from_dict(data: dict) -> Experiment:
    try:
        variants = [Variant(v["id"], v.get("weight")) for v in data["variants"]]
        return Experiment(
            id=data["id"],
            variants=variants,
            default_variant=data.get("defaultVariant") or variants[0].id,
        )
    except (KeyError, IndexError, TypeError) as e:
        raise ExperimentConfigError(f"Malformed experiment definition {data!r}: {e}") from e


def load_registry(path: str) -> ExperimentRegistry:
    """
    Build a registry from a JSON catalog.

    The file holds a list of experiments shaped like
    ``{"id": ..., "variants": [{"id": ..., "weight": ...}], "defaultVariant": ...}``.
    A missing ``defaultVariant`` falls back to the first variant.

    Raises:
        ExperimentConfigError: if the catalog is malformed or violates an invariant
    """
    with open(Path(path)) as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ExperimentConfigError(f"Catalog {path} is not valid JSON: {e}") from e
    if not isinstance(raw, list):
        raise ExperimentConfigError(f"Catalog {path} must be a JSON list of experiments")
    registry = ExperimentRegistry(_experiment_from_dict(item) for item in raw)
    logger.info(f"Loaded {len(registry)} experiments from {path}")
    return registry

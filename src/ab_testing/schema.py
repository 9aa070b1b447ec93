"""
Experiment data models for the marketplace A/B testing engine.

Dataclass schemas for experiment configuration, variants, persisted
assignments and the two-phase resolution handed to rendering code.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ExperimentConfigError(ValueError):
    """Raised when an experiment definition violates a catalog invariant."""


class AssignmentState(str, Enum):
    """Lifecycle state of a subject's assignment to one experiment."""
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    FORCED = "forced"


@dataclass(frozen=True)
class Variant:
    """One treatment arm of an experiment."""
    id: str
    weight: Optional[float] = None  # relative, not a percentage


@dataclass(frozen=True)
class Experiment:
    """Configuration for an A/B experiment."""
    id: str
    variants: Tuple[Variant, ...]
    default_variant: str

    def __post_init__(self):
        # Accept lists from callers but keep the stored value immutable
        object.__setattr__(self, "variants", tuple(self.variants))

    @property
    def variant_ids(self) -> Tuple[str, ...]:
        return tuple(v.id for v in self.variants)

    @property
    def is_weighted(self) -> bool:
        return any(v.weight is not None for v in self.variants)

    def has_variant(self, variant_id: str) -> bool:
        return variant_id in self.variant_ids

    def weight_of(self, variant: Variant) -> float:
        """Effective weight; unweighted experiments split equally."""
        if not self.is_weighted:
            return 1.0
        return float(variant.weight or 0.0)

    def total_weight(self) -> float:
        return sum(self.weight_of(v) for v in self.variants)

    def validate(self) -> None:
        """
        Check catalog invariants.

        Raises:
            ExperimentConfigError: on empty variants, unknown default,
                duplicate variant ids, or inconsistent weights.
        """
        if not self.id:
            raise ExperimentConfigError("Experiment id must be non-empty")
        if not self.variants:
            raise ExperimentConfigError(f"Experiment {self.id} has no variants")
        ids = self.variant_ids
        if len(set(ids)) != len(ids):
            raise ExperimentConfigError(f"Experiment {self.id} has duplicate variant ids")
        if self.default_variant not in ids:
            raise ExperimentConfigError(
                f"Experiment {self.id}: default variant {self.default_variant!r} "
                f"is not one of {list(ids)}"
            )
        if self.is_weighted:
            if any(v.weight is None for v in self.variants):
                raise ExperimentConfigError(
                    f"Experiment {self.id}: either all variants carry a weight or none do"
                )
            if any(v.weight < 0 for v in self.variants):
                raise ExperimentConfigError(f"Experiment {self.id}: weights must be non-negative")
            if not any(v.weight > 0 for v in self.variants):
                raise ExperimentConfigError(f"Experiment {self.id}: at least one weight must be > 0")


@dataclass
class Assignment:
    """Persisted record of the variant a subject received."""
    experiment_id: str
    variant_id: str
    assigned_at: int  # epoch milliseconds

    def to_record(self) -> Dict[str, Any]:
        """Persisted shape, keyed by experiment id in the outer map."""
        return {"variantId": self.variant_id, "assignedAt": self.assigned_at}

    @classmethod
    def from_record(cls, experiment_id: str, record: Any) -> Optional["Assignment"]:
        """Parse a persisted record; None if it is malformed."""
        if not isinstance(record, dict):
            return None
        variant_id = record.get("variantId")
        assigned_at = record.get("assignedAt")
        if not isinstance(variant_id, str) or not variant_id:
            return None
        if isinstance(assigned_at, bool) or not isinstance(assigned_at, (int, float)):
            return None
        # json accepts NaN and Infinity literals
        if not math.isfinite(assigned_at):
            return None
        return cls(experiment_id=experiment_id, variant_id=variant_id, assigned_at=int(assigned_at))


@dataclass
class VariantResolution:
    """
    Two-phase read for hydration-sensitive consumers.

    Before resolution the value is the experiment's default variant and
    ``resolved`` is False; afterwards it carries the persisted or bucketed
    variant.
    """
    experiment_id: str
    variant: str
    resolved: bool = False
    experiment: Optional[Experiment] = None
    percentage: int = 0

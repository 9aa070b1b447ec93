"""Deterministic A/B test assignment for the sponsorship marketplace."""

from .schema import (
    Experiment,
    Variant,
    Assignment,
    AssignmentState,
    VariantResolution,
    ExperimentConfigError,
)
from .registry import ExperimentRegistry, DEFAULT_EXPERIMENTS, default_registry, load_registry
from .assignment import assign_variant, assign_subjects
from .storage import InMemoryStorage, JsonFileStorage, StorageError, read_serialized_variant
from .store import AssignmentStore
from .overrides import OverrideController, parse_override_param
from .percentages import variant_percentage, configured_split, observed_split
from .config import ABTestingSettings
from .client import ABTestingClient
from .simulate import run_split_simulation

__all__ = [
    "Experiment",
    "Variant",
    "Assignment",
    "AssignmentState",
    "VariantResolution",
    "ExperimentConfigError",
    "ExperimentRegistry",
    "DEFAULT_EXPERIMENTS",
    "default_registry",
    "load_registry",
    "assign_variant",
    "assign_subjects",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
    "read_serialized_variant",
    "AssignmentStore",
    "OverrideController",
    "parse_override_param",
    "variant_percentage",
    "configured_split",
    "observed_split",
    "ABTestingSettings",
    "ABTestingClient",
    "run_split_simulation",
]

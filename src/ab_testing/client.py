"""
Public query/command surface consumed by rendering code and debug tooling.

Rendering code that paints before resolution should call
``initial_resolution`` for the first paint and swap to ``resolve`` once it
can touch storage; both return a ``VariantResolution``.

Example:
    client = ABTestingClient.from_settings()
    first = client.initial_resolution("cta-button-text")   # default, resolved=False
    steady = client.resolve("cta-button-text")             # bucketed, resolved=True
    label = "Get Started" if steady.variant == "B" else "Book Now"
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from .config import ABTestingSettings
from .identity import get_or_create_subject_id
from .overrides import OverrideController
from .percentages import variant_percentage
from .registry import ExperimentRegistry, default_registry
from .schema import Assignment, Experiment, VariantResolution
from .storage import InMemoryStorage, JsonFileStorage
from .store import AssignmentStore

logger = logging.getLogger(__name__)


class ABTestingClient:
    """Facade over the registry, assignment store and override controller."""

    def __init__(
        self,
        registry: ExperimentRegistry,
        store: AssignmentStore,
        overrides: Optional[OverrideController] = None,
    ):
        self.registry = registry
        self.store = store
        self.overrides = overrides or OverrideController(store)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ABTestingSettings] = None,
        registry: Optional[ExperimentRegistry] = None,
        storage=None,
        subject_id: Optional[str] = None,
        tracker: Optional[Callable[[str, str], None]] = None,
    ) -> "ABTestingClient":
        """
        Build a client with the default wiring.

        Args:
            settings: Defaults to ``ABTestingSettings.from_env()``
            registry: Defaults to the built-in marketplace experiments
            storage: Defaults to JSON file storage at ``settings.storage_path``
            subject_id: Explicit bucketing key, e.g. an authenticated user id.
                Defaults to a persisted random per-browser id.
            tracker: Called with (experiment_id, variant_id) on new assignments
        """
        settings = settings or ABTestingSettings.from_env()
        registry = registry or default_registry()
        if storage is None:
            storage = JsonFileStorage(settings.storage_path) if settings.storage_path else InMemoryStorage()
        subject_id = subject_id or get_or_create_subject_id(storage, settings.subject_key)
        store = AssignmentStore(registry, storage, subject_id, settings=settings, tracker=tracker)
        return cls(registry, store)

    def get_variant(self, experiment_id: str) -> str:
        try:
            return self.store.get_variant(experiment_id)
        except Exception:
            logger.exception(f"Variant resolution failed for {experiment_id}, using default")
            return self.registry.get_default_variant(experiment_id)

    def get_all_assignments(self) -> Dict[str, Assignment]:
        return self.store.get_all()

    def clear_assignments(self) -> None:
        self.overrides.clear_all()

    def force_variant(self, experiment_id: str, variant_id: str) -> bool:
        return self.overrides.force_variant(experiment_id, variant_id)

    def apply_url_overrides(self, url_or_query: str):
        return self.overrides.apply_query_string(url_or_query)

    def get_variant_percentage(self, experiment_id: str, variant_id: str) -> int:
        return variant_percentage(self.registry, experiment_id, variant_id)

    def list_experiments(self) -> List[Experiment]:
        return self.registry.list()

    def choose(self, experiment_id: str, options: Dict[str, Any], fallback: Any = None) -> Any:
        """
        Pick the option keyed by the subject's variant.

        Example:
            label = client.choose("cta-button-text", {"A": "Book Now", "B": "Get Started"})

        Returns:
            ``options[variant]``, or ``fallback`` when no option matches
        """
        return options.get(self.get_variant(experiment_id), fallback)

    def initial_resolution(self, experiment_id: str) -> VariantResolution:
        """Pre-resolution value: the experiment's default variant."""
        return VariantResolution(
            experiment_id=experiment_id,
            variant=self.registry.get_default_variant(experiment_id),
            resolved=False,
        )

    def resolve(self, experiment_id: str) -> VariantResolution:
        return VariantResolution(
            experiment_id=experiment_id,
            variant=self.get_variant(experiment_id),
            resolved=True,
        )

    def resolve_with_meta(self, experiment_id: str) -> VariantResolution:
        """Resolved variant plus its experiment and configured percentage."""
        resolution = self.resolve(experiment_id)
        resolution.experiment = self.registry.lookup(experiment_id)
        resolution.percentage = self.get_variant_percentage(experiment_id, resolution.variant)
        return resolution

    def debug_state(self) -> pd.DataFrame:
        """
        One row per (experiment, variant) for the debug panel.

        Columns: experiment_id, variant_id, percentage, is_current, assigned_at.
        ``assigned_at`` is the current assignment's timestamp (epoch ms) on
        every row of an assigned experiment, NaN otherwise.
        """
        assignments = self.store.get_all()
        rows = []
        for experiment in self.registry.list():
            current = assignments.get(experiment.id)
            for variant in experiment.variants:
                rows.append({
                    "experiment_id": experiment.id,
                    "variant_id": variant.id,
                    "percentage": self.get_variant_percentage(experiment.id, variant.id),
                    "is_current": current is not None and current.variant_id == variant.id,
                    "assigned_at": current.assigned_at if current is not None else None,
                })
        return pd.DataFrame(
            rows,
            columns=["experiment_id", "variant_id", "percentage", "is_current", "assigned_at"],
        )

"""
Assignment store: resolve a variant once per experiment and persist it.

The persisted map is read once at construction and kept in memory as the
session cache, so every call site asking for the same experiment observes
the same variant. Writes go through to durable storage; if storage fails the
store keeps working from memory for the rest of its lifetime.
"""

import json
import logging
import time
from typing import Callable, Dict, Optional, Set

from .assignment import assign_variant
from .config import ABTestingSettings
from .registry import ExperimentRegistry
from .schema import Assignment, AssignmentState
from .storage import StorageError

logger = logging.getLogger(__name__)

_MS_PER_DAY = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class AssignmentStore:
    """
    Per-subject mapping of experiment id to Assignment.

    Args:
        registry: Experiment catalog
        storage: Durable key/value storage (get_item/set_item/remove_item)
        subject_id: Bucketing key for this subject
        settings: Key names and expiry policy
        clock: Returns the current time in epoch milliseconds
        tracker: Called with (experiment_id, variant_id) on each new bucketing
    """

    def __init__(
        self,
        registry: ExperimentRegistry,
        storage,
        subject_id: str,
        settings: Optional[ABTestingSettings] = None,
        clock: Optional[Callable[[], int]] = None,
        tracker: Optional[Callable[[str, str], None]] = None,
    ):
        self.registry = registry
        self.subject_id = subject_id
        self.settings = settings or ABTestingSettings()
        self._storage = storage
        self._clock = clock or _now_ms
        self._tracker = tracker
        self._persistent = True
        self._forced: Set[str] = set()
        self._assignments: Dict[str, Assignment] = self._load()

    @property
    def is_persistent(self) -> bool:
        """False once storage has failed and the store runs memory-only."""
        return self._persistent

    def _degrade(self, err: Exception) -> None:
        if self._persistent:
            logger.warning(f"Assignment storage unavailable, continuing in memory only: {err}")
        self._persistent = False

    def _load(self) -> Dict[str, Assignment]:
        try:
            raw = self._storage.get_item(self.settings.storage_key)
        except (StorageError, OSError) as e:
            self._degrade(e)
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Persisted assignments are not valid JSON, starting fresh")
            return {}
        if not isinstance(data, dict):
            return {}

        assignments = {}
        for experiment_id, record in data.items():
            assignment = Assignment.from_record(experiment_id, record)
            if assignment is None:
                logger.warning(f"Dropping malformed persisted assignment for {experiment_id}")
                continue
            assignments[experiment_id] = assignment
        return assignments

    def _save(self) -> None:
        if not self._persistent:
            return
        payload = json.dumps({eid: a.to_record() for eid, a in self._assignments.items()})
        try:
            self._storage.set_item(self.settings.storage_key, payload)
        except (StorageError, OSError) as e:
            self._degrade(e)

    def _is_expired(self, assignment: Assignment) -> bool:
        if self.settings.max_age_days is None:
            return False
        return self._clock() - assignment.assigned_at > self.settings.max_age_days * _MS_PER_DAY

    def _track(self, experiment_id: str, variant_id: str) -> None:
        if self._tracker is None:
            return
        try:
            self._tracker(experiment_id, variant_id)
        except Exception:
            # Analytics must never break variant resolution
            logger.exception(f"Assignment tracker failed for {experiment_id}")

    def get_variant(self, experiment_id: str) -> str:
        """
        Return the subject's variant, bucketing and persisting on first access.

        Unknown experiments return the registry fallback and persist nothing.
        """
        experiment = self.registry.lookup(experiment_id)
        if experiment is None:
            logger.warning(f"Experiment {experiment_id!r} not found")
            return self.registry.get_default_variant(experiment_id)

        existing = self._assignments.get(experiment_id)
        if existing is not None:
            if not experiment.has_variant(existing.variant_id):
                logger.warning(
                    f"Stored variant {existing.variant_id!r} no longer exists in "
                    f"{experiment_id}, reassigning"
                )
            elif self._is_expired(existing):
                logger.info(f"Assignment for {experiment_id} expired, reassigning")
            else:
                return existing.variant_id

        variant_id = assign_variant(experiment, self.subject_id)
        self._write(experiment_id, variant_id)
        self._forced.discard(experiment_id)
        self._track(experiment_id, variant_id)
        logger.info(f"New assignment: {experiment_id} = {variant_id}")
        return variant_id

    def _write(self, experiment_id: str, variant_id: str) -> Assignment:
        assignment = Assignment(
            experiment_id=experiment_id,
            variant_id=variant_id,
            assigned_at=self._clock(),
        )
        self._assignments[experiment_id] = assignment
        self._save()
        return assignment

    def put(self, experiment_id: str, variant_id: str, forced: bool = False) -> Assignment:
        """Write an assignment without validation; callers validate first."""
        assignment = self._write(experiment_id, variant_id)
        if forced:
            self._forced.add(experiment_id)
        else:
            self._forced.discard(experiment_id)
        return assignment

    def get_all(self) -> Dict[str, Assignment]:
        """Snapshot of all assignments; mutating it does not touch the store."""
        return {
            eid: Assignment(a.experiment_id, a.variant_id, a.assigned_at)
            for eid, a in self._assignments.items()
        }

    def clear(self, experiment_id: Optional[str] = None) -> None:
        """Remove one assignment, or all when no id is given."""
        if experiment_id is None:
            self._assignments.clear()
            self._forced.clear()
            if self._persistent:
                try:
                    self._storage.remove_item(self.settings.storage_key)
                except (StorageError, OSError) as e:
                    self._degrade(e)
            logger.info("Cleared all assignments")
            return

        if self._assignments.pop(experiment_id, None) is not None:
            self._forced.discard(experiment_id)
            self._save()
            logger.info(f"Cleared assignment for {experiment_id}")

    def state(self, experiment_id: str) -> AssignmentState:
        if experiment_id not in self._assignments:
            return AssignmentState.UNASSIGNED
        if experiment_id in self._forced:
            return AssignmentState.FORCED
        return AssignmentState.ASSIGNED

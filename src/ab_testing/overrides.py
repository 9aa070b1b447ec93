"""
Manual variant overrides for QA and debugging.

Forced variants are written as ordinary assignments, so later reads cannot
tell them apart from bucketed ones until they are cleared.

URL convention: ``?ab_debug=experimentId:variantId`` forces one variant,
``?ab_debug=exp1:A,exp2:B`` forces several.
"""

import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from .store import AssignmentStore

logger = logging.getLogger(__name__)


def parse_override_param(value: str) -> List[Tuple[str, str]]:
    """
    Parse comma-separated ``experimentId:variantId`` pairs.

    Malformed pairs are skipped.
    """
    pairs = []
    for override in (value or "").split(","):
        experiment_id, sep, variant_id = override.strip().partition(":")
        if sep and experiment_id and variant_id:
            pairs.append((experiment_id, variant_id))
    return pairs


def _query_values(url_or_query: str) -> Dict[str, List[str]]:
    query = url_or_query or ""
    if "?" in query or "://" in query:
        query = urlsplit(query).query
    # Bare flags like ?ab_panel have no value
    return parse_qs(query.lstrip("?"), keep_blank_values=True)


class OverrideController:
    """Forces or clears assignments held by an AssignmentStore."""

    def __init__(self, store: AssignmentStore, debug_param: Optional[str] = None):
        self.store = store
        self.debug_param = debug_param or store.settings.debug_param

    def force_variant(self, experiment_id: str, variant_id: str) -> bool:
        """
        Force a variant for an experiment.

        Returns:
            True if written; False (with an error logged) if the experiment
            or variant is unknown
        """
        experiment = self.store.registry.lookup(experiment_id)
        if experiment is None:
            logger.error(f"Cannot force {experiment_id}={variant_id}: unknown experiment")
            return False
        if not experiment.has_variant(variant_id):
            logger.error(
                f"Cannot force {experiment_id}={variant_id}: variant not in "
                f"{list(experiment.variant_ids)}"
            )
            return False
        self.store.put(experiment_id, variant_id, forced=True)
        logger.info(f"Forced variant: {experiment_id} = {variant_id}")
        return True

    def clear_all(self) -> None:
        self.store.clear()

    def apply_query_string(self, url_or_query: str) -> List[Tuple[str, str]]:
        """
        Apply overrides from a page URL or raw query string.

        Returns:
            The (experiment_id, variant_id) pairs that were forced
        """
        applied = []
        for value in _query_values(url_or_query).get(self.debug_param, []):
            for experiment_id, variant_id in parse_override_param(value):
                if self.force_variant(experiment_id, variant_id):
                    applied.append((experiment_id, variant_id))
        return applied

    def panel_requested(self, url_or_query: str) -> bool:
        """
        Whether the debug panel should be shown.

        Always on when ``settings.debug_panel`` is set; otherwise only when
        the page URL carries the panel parameter (``?ab_panel``).
        """
        settings = self.store.settings
        if settings.debug_panel:
            return True
        return settings.panel_param in _query_values(url_or_query)

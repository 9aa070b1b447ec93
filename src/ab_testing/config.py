"""
Runtime settings for the A/B testing engine.

Defaults live in module constants; ``ABTestingSettings.from_env`` lets a
deployment override the storage location and key names without code changes.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Single namespaced map for all experiments to keep storage overhead low
ASSIGNMENTS_KEY = "anvara_ab_tests"
SUBJECT_KEY = "anvara_ab_subject"

# Add ?ab_debug=experimentId:variantId to force a variant, e.g. ?ab_debug=cta-button-text:B
DEBUG_PARAM = "ab_debug"
PANEL_PARAM = "ab_panel"

DEFAULT_STORAGE_PATH = "data/ab_testing/storage.json"


@dataclass
class ABTestingSettings:
    """Settings shared by the store, override controller and client."""
    storage_key: str = ASSIGNMENTS_KEY
    subject_key: str = SUBJECT_KEY
    debug_param: str = DEBUG_PARAM
    panel_param: str = PANEL_PARAM
    storage_path: Optional[str] = DEFAULT_STORAGE_PATH  # None = memory only
    max_age_days: Optional[float] = None  # None = assignments never expire
    debug_panel: bool = False  # show the debug panel without ?ab_panel

    @classmethod
    def from_env(cls) -> "ABTestingSettings":
        """
        Build settings from ``AB_TESTING_*`` environment variables.

        AB_TESTING_STORAGE_PATH: JSON storage file; empty string disables persistence
        AB_TESTING_STORAGE_KEY: key of the assignments map
        AB_TESTING_MAX_AGE_DAYS: expire persisted assignments after N days
        AB_TESTING_DEBUG_PANEL: "1"/"true" always shows the debug panel
        """
        settings = cls()
        if "AB_TESTING_STORAGE_PATH" in os.environ:
            settings.storage_path = os.environ["AB_TESTING_STORAGE_PATH"] or None
        if os.environ.get("AB_TESTING_STORAGE_KEY"):
            settings.storage_key = os.environ["AB_TESTING_STORAGE_KEY"]
        if os.environ.get("AB_TESTING_DEBUG_PANEL", "").lower() in ("1", "true", "yes"):
            settings.debug_panel = True
        raw_age = os.environ.get("AB_TESTING_MAX_AGE_DAYS")
        if raw_age:
            try:
                settings.max_age_days = float(raw_age)
            except ValueError:
                logger.warning(f"Ignoring invalid AB_TESTING_MAX_AGE_DAYS={raw_age!r}")
        return settings

"""Per-browser subject identity used as the bucketing key."""

import logging
import uuid

from .storage import StorageError

logger = logging.getLogger(__name__)


def get_or_create_subject_id(storage, key: str) -> str:
    """
    Return the persisted subject id, minting a random one on first use.

    If storage is unavailable the fresh id lives only as long as the caller
    keeps it, so bucketing degrades to per-session consistency.
    """
    try:
        existing = storage.get_item(key)
    except (StorageError, OSError) as e:
        logger.warning(f"Subject id storage unavailable, using ephemeral id: {e}")
        return uuid.uuid4().hex
    if existing:
        return existing

    subject_id = uuid.uuid4().hex
    try:
        storage.set_item(key, subject_id)
    except (StorageError, OSError) as e:
        logger.warning(f"Could not persist subject id, using ephemeral id: {e}")
    return subject_id

# services/learning-service/src/apps/core/services/media.py
"""
Stored file cleanup for course and module images.

Deletion runs after the database change has committed and never fails the
caller; a file that cannot be removed is logged and left behind.
"""

import logging
from typing import Optional

from django.core.files.storage import default_storage

from .unit_of_work import after_commit

logger = logging.getLogger(__name__)


def discard_stored_file(key: Optional[str]) -> bool:
    """
    Delete a stored file, logging instead of raising on failure.

    Returns:
        True if the file was deleted or did not exist
    """
    if not key:
        return True

    try:
        default_storage.delete(key)
    except Exception as e:
        logger.warning(f"Could not delete stored file {key}: {e}")
        return False

    logger.info(f"Deleted stored file {key}")
    return True


def discard_after_commit(key: Optional[str]) -> None:
    """Schedule `discard_stored_file(key)` for after the current transaction."""
    if key:
        after_commit(discard_stored_file, key)

"""Scheduled reconciliation sweep, bounding how stale stored trip status can get.

Listing trips also reconciles on read; this covers the stretches where
nobody lists anything.
"""

import logging
from typing import Any

from transit.api import reconciler_for
from transit.store import get_store

logger = logging.getLogger(__name__)


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    result = reconciler_for(get_store()).reconcile()

    logger.info(
        "Reconciliation complete: %d scanned, %d completed, %d conflicts",
        result.scanned,
        result.completed,
        result.conflicts,
    )

    return {
        "statusCode": 200,
        "body": f"Reconciled: {result.completed} completed, {result.conflicts} conflicts",
    }

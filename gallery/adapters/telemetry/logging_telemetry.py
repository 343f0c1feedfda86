"""Logging telemetry adapter.

Implements TelemetryPort by emitting events as JSON lines to a Python
logger. Gives observability without an external collector.
"""

import json
import logging

from gallery.core.models import User
from gallery.core.ports import TelemetryPort


class LoggingTelemetryAdapter(TelemetryPort):
    """Emits telemetry events to the ``gallery.telemetry`` logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO):
        self._logger = logger or logging.getLogger("gallery.telemetry")
        self._level = level

    async def track_account_deletion_completed(
        self, deleted_user: User, deleted_by: User, success: bool
    ) -> None:
        payload = {
            "event": "AccountDeletionCompleted",
            "account": deleted_user.username,
            "is_organization": deleted_user.is_organization,
            "deleted_by": deleted_by.username,
            "success": success,
        }
        self._logger.log(self._level, json.dumps(payload))

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol


class AuditLevel(str, Enum):
    INFO = "info"
    WARN = "warn"


_LOG_LEVELS = {
    AuditLevel.INFO: logging.INFO,
    AuditLevel.WARN: logging.WARNING,
}


class AuditLog(Protocol):
    def record(self, *, user_id: Any, level: AuditLevel, message: str) -> None: ...


class LoggingAuditLog:
    """Audit sink writing one line per verification outcome to the ``otpgate.audit`` logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("otpgate.audit")

    def record(self, *, user_id: Any, level: AuditLevel, message: str) -> None:
        self._logger.log(
            _LOG_LEVELS[level],
            "user=%s %s",
            user_id,
            message,
            extra={"audit_user_id": user_id, "audit_message": message},
        )

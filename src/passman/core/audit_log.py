# Core - Audit Logging
#
# Structured, append-only record of vault operations.
# Events name the account and the vault path; secrets, notes and keys
# are never logged.

import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog


class EventType(str, Enum):
    """Types of vault events that can be logged."""
    VAULT_CREATED = "vault.created"
    VAULT_OPENED = "vault.opened"
    VAULT_OPEN_FAILED = "vault.open.failed"
    VAULT_SAVED = "vault.saved"
    VAULT_LISTED = "vault.listed"
    VAULT_ERROR = "vault.error"

    RECORD_ADDED = "vault.record.added"
    RECORD_ACCESSED = "vault.record.accessed"
    RECORD_UPDATED = "vault.record.updated"
    RECORD_DELETED = "vault.record.deleted"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: Normal activity
    - ALERT: Rejected access (wrong passphrase, tampered file)
    - CRITICAL: Vault could not be read or written
    """
    INFO = "info"
    ALERT = "alert"
    CRITICAL = "critical"

    def to_log_level(self) -> int:
        level_map = {
            EventSeverity.INFO: logging.INFO,
            EventSeverity.ALERT: logging.WARNING,
            EventSeverity.CRITICAL: logging.ERROR,
        }
        return level_map[self]


class AuditLogger:
    """
    Append-only audit logger for vault events.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - OS user / host context
    - Optional daily log file when log_dir is set
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for daily audit files. None keeps events on
                     whatever handlers the application configured.
        """
        self.log_dir = Path(log_dir) if log_dir else None
        self._file_handler: Optional[logging.Handler] = None

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        if self.log_dir is not None:
            self._setup_file_handler()

        self.logger = structlog.get_logger("passman.audit")

    def _setup_file_handler(self):
        """Attach a file handler for today's audit log."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting

        audit_logger = logging.getLogger("passman.audit")
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        self._file_handler = file_handler

    def close(self):
        """Detach and close the file handler, if any."""
        if self._file_handler is not None:
            logging.getLogger("passman.audit").removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Log a vault event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets!)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "details": details or {},
            "user_context": self._get_default_user_context(),
        }

        self.logger.log(severity.to_log_level(), "vault_event", **event_data)

        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Log a routine (INFO) vault event."""
        return self.log_event(
            event_type=event_type,
            severity=EventSeverity.INFO,
            message=f"Vault: {message}",
            details=details
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, platform)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Optional[Path] = None) -> AuditLogger:
    """Replace the global audit logger, e.g. once the CLI knows its config."""
    global _audit_logger
    if _audit_logger is not None:
        _audit_logger.close()
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger

# Core Module - Shared Utilities
#
# Core module provides functionality shared by the CLI and command layers:
# - Audit logging
# - Configuration

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
)
from .config import PassmanConfig, load_config

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "configure_audit_logger",
    # Configuration
    "PassmanConfig",
    "load_config",
]

"""Structured logging for provider operations.

Entries are written one JSON object per line so they can be grepped or fed
to a log shipper. The bearer token never reaches these logs.
"""

import json
import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__

LOG_DIR_ENV = "TERRAKUBE_LOG_DIR"
LOG_LEVEL_ENV = "TERRAKUBE_LOG"


class LogEventType(Enum):
    """Types of provider events."""
    CONFIGURE = "configure"
    REQUEST = "request"
    RESPONSE = "response"
    RESOURCE_OPERATION = "resource_operation"
    ERROR = "error"


class ProviderLogger:
    """Writes structured provider log entries."""

    def __init__(self, log_dir: Optional[Path] = None, level: Optional[str] = None) -> None:
        """Initialize provider logger.

        Args:
            log_dir: Directory for logs. Defaults to $TERRAKUBE_LOG_DIR or ~/.terrakube/logs
            level: Level name. Defaults to $TERRAKUBE_LOG or INFO
        """
        if log_dir is None:
            env_dir = os.environ.get(LOG_DIR_ENV)
            log_dir = Path(env_dir) if env_dir else Path.home() / ".terrakube" / "logs"

        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.log_dir, 0o700)

        self.log_file = self.log_dir / "provider.log"
        self.level = logging.getLevelName((level or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO

        self._setup_logging()

    def _setup_logging(self) -> None:
        """Configure the file handler."""
        self.logger = logging.getLogger('terrakube_provider')
        self.logger.setLevel(self.level)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        if not self.log_file.exists():
            self.log_file.touch()
        os.chmod(self.log_file, 0o600)

        handler = logging.FileHandler(self.log_file)
        handler.setLevel(self.level)
        handler.setFormatter(logging.Formatter('%(message)s'))
        self.logger.addHandler(handler)

    def _create_log_entry(
        self,
        event_type: LogEventType,
        message: str,
        severity: str = "INFO",
        resource: Optional[str] = None,
        action: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a structured log entry."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type.value,
            "severity": severity,
            "message": message,
            "source": "terrakube_provider",
            "version": __version__
        }

        if resource:
            entry["resource"] = resource
        if action:
            entry["action"] = action
        if details:
            entry["details"] = details

        return entry

    def _write_entry(self, entry: Dict[str, Any]) -> None:
        level = logging.getLevelName(entry["severity"])
        self.logger.log(level, json.dumps(entry, default=str))

    def log_configure(self, resource: str, success: bool, details: Optional[Dict[str, Any]] = None) -> None:
        """Log that a provider or resource has been configured."""
        entry = self._create_log_entry(
            event_type=LogEventType.CONFIGURE,
            message=f"Configuring {resource}",
            severity="DEBUG" if success else "ERROR",
            resource=resource,
            details={"success": success, **(details or {})}
        )
        self._write_entry(entry)

    def log_request(self, method: str, url: str) -> None:
        entry = self._create_log_entry(
            event_type=LogEventType.REQUEST,
            message=f"{method} {url}",
            severity="DEBUG",
            action=method.lower(),
            details={"url": url}
        )
        self._write_entry(entry)

    def log_response(self, method: str, url: str, status_code: int, body: Optional[str]) -> None:
        """Log a response; the body is only written at DEBUG level."""
        entry = self._create_log_entry(
            event_type=LogEventType.RESPONSE,
            message=f"{method} {url} -> {status_code}",
            severity="DEBUG",
            action=method.lower(),
            details={"url": url, "status_code": status_code, "bodyResponse": body}
        )
        self._write_entry(entry)

    def log_resource_operation(
        self,
        resource: str,
        operation: str,
        success: bool,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log the outcome of a lifecycle operation."""
        status = "succeeded" if success else "failed"
        entry = self._create_log_entry(
            event_type=LogEventType.RESOURCE_OPERATION,
            message=f"{resource} {operation} {status}",
            severity="INFO" if success else "WARNING",
            resource=resource,
            action=operation,
            details={"success": success, **(details or {})}
        )
        self._write_entry(entry)

    def log_warning(self, resource: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        entry = self._create_log_entry(
            event_type=LogEventType.RESOURCE_OPERATION,
            message=message,
            severity="WARNING",
            resource=resource,
            details=details
        )
        self._write_entry(entry)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        resource: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        entry = self._create_log_entry(
            event_type=LogEventType.ERROR,
            message=f"Error occurred: {error_type}",
            severity="ERROR",
            resource=resource,
            details={
                "error_type": error_type,
                "error_message": error_message,
                **(details or {})
            }
        )
        self._write_entry(entry)


# Global provider logger instance
_provider_logger = None


def get_provider_logger() -> ProviderLogger:
    """Get the global provider logger instance."""
    global _provider_logger
    if _provider_logger is None:
        _provider_logger = ProviderLogger()
    return _provider_logger


def reset_provider_logger() -> None:
    """Drop the global instance so the next call re-reads the environment."""
    global _provider_logger
    if _provider_logger is not None:
        for handler in list(_provider_logger.logger.handlers):
            handler.close()
        _provider_logger.logger.handlers.clear()
    _provider_logger = None

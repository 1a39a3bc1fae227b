"""
Structured logging for Jobly.

Provides centralized logging with console and file outputs, keyword
context rendered as JSON, and metrics about the SQL the models execute.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import config


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks query metrics for the database client.
    """

    def __init__(
        self,
        name: str = "jobly",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console (stderr)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers
        self.logger.propagate = False

        self.metrics = {
            "queries_executed": 0,
            "rows_returned": 0,
            "queries_by_kind": {},
            "errors_by_type": {},
        }

        # Console handler; stdout is reserved for command output
        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobly_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_query(self, sql: str, rows: int = 0):
        """Count an executed statement by its leading keyword (SELECT, UPDATE, ...)."""
        kind = sql.strip().split(None, 1)[0].upper() if sql.strip() else "UNKNOWN"
        self.metrics["queries_executed"] += 1
        self.metrics["rows_returned"] += rows
        by_kind = self.metrics["queries_by_kind"]
        by_kind[kind] = by_kind.get(kind, 0) + 1

    def record_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of the current metrics."""
        return {
            "queries_executed": self.metrics["queries_executed"],
            "rows_returned": self.metrics["rows_returned"],
            "queries_by_kind": dict(self.metrics["queries_by_kind"]),
            "errors_by_type": dict(self.metrics["errors_by_type"]),
        }

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Query Metrics ===")
        self.info(f"Queries: {metrics['queries_executed']} ({metrics['rows_returned']} rows)")

        if metrics["queries_by_kind"]:
            self.info("By statement:")
            for kind, count in sorted(metrics["queries_by_kind"].items()):
                self.info(f"  {kind}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobly",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and log directory default to the JOBLY_LOG_LEVEL and JOBLY_LOG_DIR
    settings; file logging is off unless a log directory is configured.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if "log_dir" not in kwargs:
            kwargs["log_dir"] = config.get_log_dir()
        kwargs.setdefault("enable_file", kwargs["log_dir"] is not None)
        _global_logger = StructuredLogger(name=name, level=level or config.get_log_level(), **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None

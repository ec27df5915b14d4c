"""
Pipeline logger - Structured logging for EET submissions

Lines are written as `message | {json}` so they stay grep-able and machine
readable. Never pass the private key or the full PKP as structured data.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class PipelineLogger:
    """Structured logger for EET client operations."""

    def __init__(self, name: str, log_dir: Optional[Path] = None, console: bool = True):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # Avoid duplicated handlers when re-created
        self.logger.handlers.clear()

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            self.logger.addHandler(console_handler)

        if log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
            ))
            self.logger.addHandler(file_handler)

    def _log(self, level: int, message: str, data: Dict[str, Any]):
        if data:
            message = f"{message} | {json.dumps(data, default=str, ensure_ascii=False)}"
        self.logger.log(level, message)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def log_operation(self, operation: str, status: str, **data):
        """Log an operation step with structured data."""
        self.info(
            f"Operation: {operation} - {status}",
            operation=operation,
            status=status,
            timestamp=datetime.now().isoformat(),
            **data
        )

    @contextmanager
    def log_context(self, operation: str, **context):
        """Context manager for logging operation start/end."""
        start_time = datetime.now()
        self.log_operation(operation, "START", **context)

        try:
            yield
            duration = (datetime.now() - start_time).total_seconds()
            self.log_operation(operation, "SUCCESS", duration=duration, **context)
        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            self.error(
                f"Operation failed: {operation}",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                duration=duration,
                **context
            )
            raise


# Global logger instance
_global_logger: Optional[PipelineLogger] = None


def get_logger(name: str = "eet_pipeline") -> PipelineLogger:
    """
    Get or create the client logger.

    Library code never writes to the console: records propagate to the root
    logger (configured by the CLI or the application). A file handler is added
    only when EET_LOG_DIR is set.
    """
    global _global_logger
    if _global_logger is None:
        log_dir = os.environ.get("EET_LOG_DIR")
        _global_logger = PipelineLogger(name, Path(log_dir) if log_dir else None, console=False)
    return _global_logger

"""
Structured logging configuration.
Designed for easy debugging without exposing stored content.
"""
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Optional, Generator

import structlog
from structlog.types import Processor

from context_engine.core.config import Settings, settings


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure structured logging for the application."""
    config = config or settings

    # Common processors
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.LOG_FORMAT == "json":
        # JSON format for production
        renderer = structlog.processors.JSONRenderer()
    else:
        # Console format for development
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure root logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, config.LOG_LEVEL.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def truncate_text(text: str, max_length: int = 0) -> str:
    """Truncate text if max_length is set."""
    if max_length <= 0:
        return text
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... [truncated, total {len(text)} chars]"


# ========================================
# Operation Tracking
# ========================================

@dataclass
class OperationLog:
    """Log entry for a single store or search operation."""
    operation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    operation: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    start_time: float = 0.0
    end_time: float = 0.0
    duration_ms: float = 0.0

    success: bool = True
    error_type: Optional[str] = None
    error_message: Optional[str] = None


class OperationLogger:
    """
    Times store and search operations and logs a one-line summary.

    Usage:
        op_logger = OperationLogger(logger)
        with op_logger.track("search", limit=10) as op:
            ...
            op.add(results_count=len(results))
    """

    def __init__(self, logger: structlog.stdlib.BoundLogger):
        self.logger = logger
        self.debug_enabled = settings.SEARCH_DEBUG_LOG
        self.max_length = settings.SEARCH_DEBUG_LOG_MAX_LENGTH

    @contextmanager
    def track(self, operation: str, **context: Any) -> Generator["OperationTracker", None, None]:
        """Context manager for tracking one operation."""
        tracker = OperationTracker(
            logger=self.logger,
            debug_enabled=self.debug_enabled,
            max_length=self.max_length,
            operation=operation,
            context=context,
        )
        tracker.start()
        try:
            yield tracker
        except Exception as e:
            tracker.set_error(type(e).__name__, str(e))
            raise
        finally:
            tracker.finish()


class OperationTracker:
    """Tracker for a single operation."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        debug_enabled: bool,
        max_length: int,
        operation: str,
        context: dict[str, Any],
    ):
        self.logger = logger
        self.debug_enabled = debug_enabled
        self.max_length = max_length
        self.log = OperationLog(operation=operation, context=dict(context))

    def start(self) -> None:
        self.log.start_time = time.perf_counter()

    def add(self, **context: Any) -> None:
        """Attach summary fields to the completion log line."""
        self.log.context.update(context)

    def debug_text(self, label: str, text: str) -> None:
        """Log free text (queries, content) only when debug logging is on."""
        if self.debug_enabled:
            self.logger.debug(
                f"{self.log.operation} {label}",
                operation_id=self.log.operation_id,
                text=truncate_text(text, self.max_length),
                text_length=len(text),
            )

    def set_error(self, error_type: str, error_message: str) -> None:
        self.log.success = False
        self.log.error_type = error_type
        self.log.error_message = error_message

    def finish(self) -> None:
        """Mark the end of the operation and log summary."""
        self.log.end_time = time.perf_counter()
        self.log.duration_ms = (self.log.end_time - self.log.start_time) * 1000

        if self.log.success:
            self.logger.debug(
                f"{self.log.operation} completed",
                operation_id=self.log.operation_id,
                duration_ms=round(self.log.duration_ms, 2),
                **self.log.context,
            )
        else:
            self.logger.warning(
                f"{self.log.operation} failed",
                operation_id=self.log.operation_id,
                duration_ms=round(self.log.duration_ms, 2),
                error_type=self.log.error_type,
                error_message=self.log.error_message,
                **self.log.context,
            )

# =============================================================================
# HOOKRELAY - STRUCTURED LOGGING
# =============================================================================
"""
Structured Logging Module

Provides consistent, structured logging across all components.
Modules log through stdlib ``logging``; records are rendered by structlog
so they pick up context bound with :class:`LogContext`.

Features:
    - JSON-formatted logs for easy parsing
    - Per-delivery context (delivery id, event) in all logs
    - Sensitive data masking (secrets, signatures)
    - File output with rotation
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import structlog
from structlog.contextvars import bind_contextvars, merge_contextvars, unbind_contextvars


# =============================================================================
# SENSITIVE DATA MASKING
# =============================================================================

# Keys whose values should be masked
SENSITIVE_KEYS = frozenset([
    "token", "password", "secret", "credential",
    "authorization", "signature", "webhook_secret",
])


def _is_sensitive(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    key_lower = key.lower().replace("-", "_")
    return any(s in key_lower for s in SENSITIVE_KEYS)


def _mask_value(value: Any) -> str:
    """Mask a sensitive value, keeping first/last 4 chars if long enough."""
    if not isinstance(value, str):
        return "****"
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "****"


def mask_sensitive_data(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Structlog processor that masks sensitive data in log events.

    Recursively processes dictionaries to mask values whose keys
    match known sensitive patterns.
    """

    def _process(d: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in d.items():
            if _is_sensitive(key):
                result[key] = _mask_value(value)
            elif isinstance(value, dict):
                result[key] = _process(value)
            else:
                result[key] = value
        return result

    return _process(event_dict)


def mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Public helper to mask sensitive data in an arbitrary dict."""
    return mask_sensitive_data(None, "", data)


# =============================================================================
# LOGGING SETUP
# =============================================================================


def _shared_processors(mask_sensitive: bool) -> list:
    processors: list = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if mask_sensitive:
        processors.append(mask_sensitive_data)
    return processors


def _formatter(renderer: Any, mask_sensitive: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(mask_sensitive),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    level: str = "INFO",
    fmt: str = "json",
    log_file: Optional[str] = None,
    mask_sensitive: bool = True,
    max_bytes: int = 100 * 1024 * 1024,  # 100 MB
    backup_count: int = 10,
) -> logging.Logger:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: Console output format – ``"json"`` or ``"text"``.
        log_file: Optional log file path (always JSON, rotated).
        mask_sensitive: Mask sensitive values in logs.
        max_bytes: Max file size before rotation.
        backup_count: Number of rotated files to keep.

    Returns:
        Root logger instance.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=_shared_processors(mask_sensitive) + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates on re-init
    root.handlers.clear()

    # Console handler
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric_level)
    if fmt == "json":
        console_renderer: Any = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=False)
    console.setFormatter(_formatter(console_renderer, mask_sensitive))
    root.addHandler(console)

    # File handler (with rotation)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)  # capture everything to file
        file_handler.setFormatter(
            _formatter(structlog.processors.JSONRenderer(), mask_sensitive)
        )
        root.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    return root


# =============================================================================
# LOG CONTEXT MANAGER
# =============================================================================


class LogContext:
    """
    Context manager that binds key-value pairs to all logs emitted
    inside the block.

    Usage::

        with LogContext(delivery_id="72d3162e", github_event="push"):
            logger.info("Dispatching")
            # All logs include delivery_id and github_event
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_contextvars(*self.context.keys())


@contextmanager
def log_context(**kwargs: Any) -> Iterator[LogContext]:
    """Functional alias for :class:`LogContext`."""
    with LogContext(**kwargs) as ctx:
        yield ctx


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    # Setup
    "setup_logging",
    # Data masking
    "mask_sensitive_data",
    "mask_dict",
    # Context
    "LogContext",
    "log_context",
]

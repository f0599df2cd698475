# =============================================================================
# HOOKRELAY - MONITORING PACKAGE
# =============================================================================
"""
Monitoring Package

This package provides logging and metrics infrastructure for hookrelay.

Components:
    - Logger: Structured logging through structlog
    - Metrics: Prometheus metrics for webhook deliveries

Usage:
    from monitoring import setup_logging, WebhookMetrics

    # Setup logging
    setup_logging(level="INFO", fmt="json", log_file="./logs/hookrelay.log")

    # Metrics
    metrics = WebhookMetrics().attach(handler)
    print(metrics.snapshot())
"""

# Logger
from monitoring.logger import (
    setup_logging,
    LogContext,
    log_context,
    mask_sensitive_data,
    mask_dict,
)

# Metrics
from monitoring.metrics import WebhookMetrics


__all__ = [
    # Logger
    "setup_logging",
    "LogContext",
    "log_context",
    "mask_sensitive_data",
    "mask_dict",
    # Metrics
    "WebhookMetrics",
]

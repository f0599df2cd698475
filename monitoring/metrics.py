# =============================================================================
# HOOKRELAY - METRICS COLLECTION
# =============================================================================
"""
Metrics Collection Module

Collects and exports Prometheus metrics for webhook deliveries.

Each collector owns its own ``CollectorRegistry`` so several independently
configured handlers (or test cases) can coexist in one process.

Metric Categories:
    - Delivery metrics: accepted deliveries by event
    - Failure metrics: rejected deliveries by reason
    - Gate metrics: requests not addressed to the handler
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Info,
    generate_latest,
)

if TYPE_CHECKING:
    from hookrelay.handler import WebhookError, WebhookEvent, WebhookHandler

logger = logging.getLogger(__name__)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================


class WebhookMetrics:
    """
    Metrics collector for a webhook handler.

    Usage::

        metrics = WebhookMetrics()
        metrics.attach(handler)
        body, content_type = metrics.render()
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize all metric collectors.

        Args:
            config: Optional metrics configuration dict ("namespace").
        """
        self.config = config or {}
        self.registry = CollectorRegistry()
        self._start_time = time.monotonic()
        self._lock = threading.Lock()

        # Plain counts mirrored for snapshot()
        self._deliveries: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, int] = defaultdict(int)
        self._ignored = 0

        namespace = self.config.get("namespace", "hookrelay")

        self.deliveries_total = Counter(
            "webhook_deliveries_total",
            "Total webhook deliveries accepted and dispatched",
            ["event"],
            namespace=namespace,
            registry=self.registry,
        )
        self.failures_total = Counter(
            "webhook_failures_total",
            "Total webhook deliveries rejected",
            ["reason"],
            namespace=namespace,
            registry=self.registry,
        )
        self.ignored_total = Counter(
            "webhook_requests_ignored_total",
            "Requests not addressed to the webhook handler",
            namespace=namespace,
            registry=self.registry,
        )
        self.handler_info = Info(
            "webhook_handler",
            "Webhook handler configuration",
            namespace=namespace,
            registry=self.registry,
        )

    # =====================================================================
    # RECORDING
    # =====================================================================

    def record_delivery(self, event: "WebhookEvent") -> None:
        """Record an accepted delivery."""
        self.deliveries_total.labels(event=event.event).inc()
        with self._lock:
            self._deliveries[event.event] += 1

    def record_failure(self, error: "WebhookError", request: Any = None) -> None:
        """Record a rejected delivery, labelled by error type."""
        reason = type(error).__name__
        self.failures_total.labels(reason=reason).inc()
        with self._lock:
            self._failures[reason] += 1

    def record_ignored(self) -> None:
        """Record a request that was not addressed to the handler."""
        self.ignored_total.inc()
        with self._lock:
            self._ignored += 1

    def attach(self, handler: "WebhookHandler") -> "WebhookMetrics":
        """Subscribe to a handler's "*" and "error" channels."""
        handler.on("*", self.record_delivery)
        handler.on("error", self.record_failure)
        self.handler_info.info({
            "path": handler.options.path,
            "algorithm": handler.options.algorithm,
            "events": ",".join(sorted(handler.options.events or ["*"])),
        })
        return self

    def detach(self, handler: "WebhookHandler") -> None:
        handler.remove_listener("*", self.record_delivery)
        handler.remove_listener("error", self.record_failure)

    def get_uptime(self) -> float:
        """Return seconds since this collector was created."""
        return time.monotonic() - self._start_time

    # =====================================================================
    # EXPORT / SNAPSHOT
    # =====================================================================

    def render(self) -> Tuple[bytes, str]:
        """Return the Prometheus exposition text and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST

    def snapshot(self) -> Dict[str, Any]:
        """Return a plain dict snapshot, for logs and the stats endpoint."""
        with self._lock:
            deliveries = dict(self._deliveries)
            failures = dict(self._failures)
            ignored = self._ignored

        return {
            "uptime_seconds": round(self.get_uptime(), 1),
            "total_processed": sum(deliveries.values()),
            "total_errors": sum(failures.values()),
            "total_ignored": ignored,
            "by_event": deliveries,
            "by_error": failures,
        }


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "WebhookMetrics",
]

# =============================================================================
# HOOKRELAY - WEBHOOK SERVER
# =============================================================================
"""
Webhook Server

aiohttp application that puts a :class:`WebhookHandler` in front of the
router. The handler runs as a middleware: deliveries addressed to it are
answered directly, every other request falls through to the normal routes
(health, stats, metrics, or 404).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from aiohttp import web

from hookrelay.handler import ResponseWriter, WebhookHandler
from monitoring.metrics import WebhookMetrics

logger = logging.getLogger(__name__)


RequestHandler = Callable[[web.Request], Awaitable[web.StreamResponse]]


# =============================================================================
# MIDDLEWARE
# =============================================================================


def webhook_middleware(
    webhook: WebhookHandler,
    metrics: Optional[WebhookMetrics] = None,
):
    """
    Build an aiohttp middleware that runs ``webhook`` on every request.

    Args:
        webhook: WebhookHandler instance
        metrics: Optional collector; ignored requests are counted on it

    Returns:
        Middleware for ``web.Application(middlewares=[...])``
    """

    @web.middleware
    async def middleware(request: web.Request, handler: RequestHandler) -> web.StreamResponse:
        writer = ResponseWriter()
        handled = await webhook(request, writer)

        if not handled:
            if metrics is not None:
                metrics.record_ignored()
            return await handler(request)

        return writer.to_web_response()

    return middleware


# =============================================================================
# WEBHOOK SERVER
# =============================================================================


class WebhookServer:
    """
    HTTP server for receiving webhooks.

    Attributes:
        handler: WebhookHandler instance
        host: Host to bind to
        port: Port to listen on
        metrics: Metrics collector attached to the handler
    """

    def __init__(
        self,
        handler: WebhookHandler,
        host: str = "0.0.0.0",
        port: int = 8080,
        metrics: Optional[WebhookMetrics] = None,
    ):
        """
        Initialize webhook server.

        Args:
            handler: WebhookHandler instance
            host: Host to bind to (default: 0.0.0.0)
            port: Port to listen on (default: 8080)
            metrics: Optional collector, created and attached if omitted
        """
        self.handler = handler
        self.host = host
        self.port = port
        self.metrics = metrics or WebhookMetrics().attach(handler)

        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._running = False

        logger.info(f"WebhookServer initialized (will listen on {host}:{port}{handler.options.path})")

    def create_app(self) -> web.Application:
        """Build the aiohttp application (also used directly by tests)."""
        app = web.Application(middlewares=[webhook_middleware(self.handler, self.metrics)])
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/stats", self._handle_stats)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self) -> None:
        """
        Start the webhook server.

        Creates aiohttp application and starts listening for connections.
        """
        if self._running:
            logger.warning("Webhook server already running")
            return

        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        self._running = True
        logger.info(f"Webhook server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the webhook server."""
        if not self._running:
            return

        logger.info("Stopping webhook server...")

        if self._site:
            await self._site.stop()

        if self._runner:
            await self._runner.cleanup()

        self._running = False
        self._runner = None
        self._site = None

        logger.info("Webhook server stopped")

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    # =========================================================================
    # REQUEST HANDLERS
    # =========================================================================

    async def _handle_health(self, request: web.Request) -> web.Response:
        del request  # Unused but required by aiohttp
        return web.json_response({
            "status": "healthy",
            "server": "webhook",
            "running": self._running,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def _handle_stats(self, request: web.Request) -> web.Response:
        del request  # Unused but required by aiohttp
        return web.json_response({
            "status": "ok",
            "stats": self.metrics.snapshot(),
        })

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        del request  # Unused but required by aiohttp
        body, content_type = self.metrics.render()
        response = web.Response(body=body)
        # CONTENT_TYPE_LATEST carries parameters aiohttp won't accept in content_type=
        response.headers["Content-Type"] = content_type
        return response


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def create_webhook_server(
    handler: WebhookHandler,
    config: Optional[Dict[str, Any]] = None,
    metrics: Optional[WebhookMetrics] = None,
) -> WebhookServer:
    """
    Create a configured webhook server.

    Args:
        handler: WebhookHandler instance
        config: Optional "server" configuration section with host, port
        metrics: Optional metrics collector

    Returns:
        Configured WebhookServer instance
    """
    config = config or {}

    return WebhookServer(
        handler=handler,
        host=config.get("host", "0.0.0.0"),
        port=int(config.get("port", 8080)),
        metrics=metrics,
    )


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "WebhookServer",
    "webhook_middleware",
    "create_webhook_server",
]

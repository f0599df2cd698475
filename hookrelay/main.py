# =============================================================================
# HOOKRELAY - MAIN ENTRY POINT
# =============================================================================
"""
Hookrelay Main Module

Runs a standalone webhook receiver: loads configuration, builds the
handler and serves it until interrupted. Every accepted delivery is logged.

Usage:
    python -m hookrelay.main
    python -m hookrelay.main --config config/hookrelay.yaml
    python -m hookrelay.main --debug
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict, Optional

from hookrelay.config import load_config
from hookrelay.handler import (
    WebhookConfigError,
    WebhookEvent,
    WebhookHandler,
    create_handler,
)
from hookrelay.server import create_webhook_server
from monitoring.logger import setup_logging

logger = logging.getLogger(__name__)


# =============================================================================
# LISTENERS
# =============================================================================


def log_delivery(event: WebhookEvent) -> None:
    action = event.payload.get("action") if isinstance(event.payload, dict) else None
    event_key = f"{event.event}.{action}" if action else event.event
    logger.info(f"Delivery {event.id} dispatched: {event_key}")


def build_handler(config: Dict[str, Any]) -> WebhookHandler:
    """Create the handler from the "webhook" section and log every delivery.

    Rejections are already logged by the handler itself.
    """
    handler = create_handler(config["webhook"])
    handler.on("*", log_delivery)
    return handler


# =============================================================================
# ARGUMENT PARSING
# =============================================================================


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="hookrelay - authenticated GitHub webhook receiver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        default="config/hookrelay.yaml",
        help="Path to configuration file (default: config/hookrelay.yaml)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


async def async_main(config: Dict[str, Any]) -> None:
    """Serve webhooks until SIGINT or SIGTERM."""
    handler = build_handler(config)
    server = create_webhook_server(handler, config["server"])

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    # Only set signal handlers if running on Unix-like systems
    if sys.platform != "win32":
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

    await server.start()
    try:
        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        await server.stop()


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    config = load_config(args.config)

    log_config = config["logging"]
    setup_logging(
        level="DEBUG" if args.debug else str(log_config["level"]),
        fmt=log_config["format"],
        log_file=log_config["file"],
    )

    try:
        asyncio.run(async_main(config))
    except WebhookConfigError as e:
        logger.critical(f"Invalid webhook configuration: {e}")
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("hookrelay stopped by user")


if __name__ == "__main__":
    main()

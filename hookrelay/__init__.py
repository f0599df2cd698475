# =============================================================================
# HOOKRELAY - PACKAGE
# =============================================================================
"""
Hookrelay Package

Authenticates GitHub webhook deliveries and dispatches them to listeners
keyed by event name.

Package Structure:
    - handler.py: Request gate, header checks, signature check, dispatch
    - emitter.py: Listener registry
    - signature.py: HMAC sign/verify helpers
    - server.py: aiohttp middleware and server
    - config.py: YAML + environment configuration
    - main.py: Command line entry point

Usage:
    from hookrelay import create_handler

    handler = create_handler({"path": "/webhook", "secret": "s3cret", "events": ["push"]})
    handler.on("push", lambda event: print(event.id, event.payload))
"""

__version__ = "1.0.0"

from hookrelay.emitter import EventEmitter
from hookrelay.handler import (
    HandlerOptions,
    ResponseWriter,
    WebhookConfigError,
    WebhookError,
    WebhookEvent,
    WebhookHandler,
    WebhookParseError,
    WebhookStreamError,
    WebhookValidationError,
    create_handler,
)
from hookrelay.signature import sign, verify

__all__ = [
    # Handler
    "WebhookHandler",
    "HandlerOptions",
    "WebhookEvent",
    "ResponseWriter",
    "create_handler",
    # Emitter
    "EventEmitter",
    # Signatures
    "sign",
    "verify",
    # Exceptions
    "WebhookError",
    "WebhookConfigError",
    "WebhookValidationError",
    "WebhookStreamError",
    "WebhookParseError",
]

# =============================================================================
# HOOKRELAY - WEBHOOK HANDLER
# =============================================================================
"""
GitHub Webhook Handler

Authenticates incoming webhook deliveries and dispatches them to listeners
registered by event name.

Pipeline (per request):
    1. Gate: only POST requests to the configured path are handled
    2. Headers: signature, event and delivery id must all be present
    3. Filter: events outside the configured allow-list are rejected
    4. Body: the request body is drained into a single buffer
    5. Verify: the HMAC signature must match the raw body
    6. Dispatch: the JSON payload is emitted under its event name and "*"

Security:
    - Validates webhook signature using HMAC-SHA1 (or HMAC-SHA256)
    - Rejected deliveries never reach event listeners

Usage:
    handler = create_handler({"path": "/webhook", "secret": "s3cret"})
    handler.on("push", lambda event: print(event.payload["ref"]))
    handler.on("error", lambda err, request: print(err))

    response = ResponseWriter()
    await handler(request, response)
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Optional,
    Union,
)

from aiohttp import ClientPayloadError, web
from aiohttp.http_exceptions import HttpProcessingError
from multidict import CIMultiDict

from hookrelay.emitter import ERROR_EVENT, WILDCARD, EventEmitter, Listener
from hookrelay.signature import DEFAULT_ALGORITHM, SIGNATURE_HEADERS, Data
from hookrelay.signature import sign as sign_payload
from hookrelay.signature import verify as verify_payload
from monitoring.logger import log_context


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class WebhookError(Exception):
    """Base exception for webhook errors."""

    @property
    def message(self) -> str:
        return str(self)


class WebhookConfigError(WebhookError, TypeError):
    """Raised when webhook handler options are invalid."""
    pass


class WebhookValidationError(WebhookError):
    """Raised when a delivery is missing headers, not acceptable, or badly signed."""
    pass


class WebhookStreamError(WebhookError):
    """Raised when the request body stream fails before completion."""
    pass


class WebhookParseError(WebhookError):
    """Raised when webhook payload cannot be parsed."""
    pass


# =============================================================================
# TYPE DEFINITIONS
# =============================================================================

# Completion callback, called with None on success or when ignored
Callback = Callable[[Optional[WebhookError]], Any]


# =============================================================================
# CONSTANTS
# =============================================================================

# GitHub event header names
HEADER_EVENT = "X-GitHub-Event"
HEADER_DELIVERY = "X-GitHub-Delivery"
HEADER_HOST = "Host"

JSON_HEADERS = {"content-type": "application/json"}

# Errors a body stream may fail with while it is being drained
STREAM_ERRORS = (
    OSError,
    ClientPayloadError,
    HttpProcessingError,
    asyncio.IncompleteReadError,
)


# =============================================================================
# OPTIONS
# =============================================================================


def _normalize_events(events: Any) -> Optional[FrozenSet[str]]:
    """Return the allow-list, or None when every event is acceptable."""
    if events is None:
        return None

    if isinstance(events, str):
        return None if events == WILDCARD else frozenset([events])

    if not isinstance(events, Iterable):
        raise WebhookConfigError("'events' option must be a string or a list of strings")

    names = list(events)
    if not all(isinstance(name, str) for name in names):
        raise WebhookConfigError("'events' option must be a string or a list of strings")

    if not names or WILDCARD in names:
        return None
    return frozenset(names)


@dataclass(frozen=True)
class HandlerOptions:
    """
    Immutable handler configuration.

    Attributes:
        path: URL path the handler answers on (query string ignored)
        secret: Shared secret used as the HMAC key
        events: Accepted event names, None when every event is accepted
        algorithm: Signature algorithm ("sha1" or "sha256")
    """

    path: str
    secret: str = field(repr=False)
    events: Optional[FrozenSet[str]] = None
    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        if not isinstance(self.path, str):
            raise WebhookConfigError("must provide a 'path' option")
        if not isinstance(self.secret, str):
            raise WebhookConfigError("must provide a 'secret' option")
        if self.algorithm not in SIGNATURE_HEADERS:
            raise WebhookConfigError(
                f"unsupported 'algorithm' option: {self.algorithm!r} "
                f"(expected one of {', '.join(sorted(SIGNATURE_HEADERS))})"
            )
        object.__setattr__(self, "events", _normalize_events(self.events))

    @classmethod
    def from_mapping(
        cls,
        options: Union["HandlerOptions", Mapping[str, Any], None],
    ) -> "HandlerOptions":
        """
        Build options from a plain mapping (e.g. the "webhook" config section).

        Raises:
            WebhookConfigError: If options is not a mapping or is invalid
        """
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise WebhookConfigError("must provide an options object")

        return cls(
            path=options.get("path"),
            secret=options.get("secret"),
            events=options.get("events"),
            algorithm=options.get("algorithm") or DEFAULT_ALGORITHM,
        )

    @property
    def signature_header(self) -> str:
        return SIGNATURE_HEADERS[self.algorithm]

    def accepts(self, event: str) -> bool:
        """Check an event name against the allow-list."""
        return self.events is None or event in self.events


# =============================================================================
# EVENT AND RESPONSE TYPES
# =============================================================================


@dataclass(frozen=True)
class WebhookEvent:
    """An authenticated delivery, as handed to listeners."""

    event: str
    id: str
    payload: Any
    url: str
    host: Optional[str] = None
    protocol: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ResponseWriter:
    """
    Minimal response sink the handler writes its reply into.

    The server turns a finished writer into an aiohttp response with
    :meth:`to_web_response`.
    """

    def __init__(self) -> None:
        self.status: Optional[int] = None
        self.headers: Dict[str, str] = {}
        self.body: Optional[bytes] = None

    def write_head(self, status: int, headers: Optional[Mapping[str, str]] = None) -> None:
        self.status = status
        self.headers = dict(headers or {})

    def end(self, body: Union[str, bytes] = b"") -> None:
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)

    @property
    def finished(self) -> bool:
        return self.body is not None

    def json(self) -> Any:
        """Decode the written body (test and logging helper)."""
        return json.loads(self.body) if self.body else None

    def to_web_response(self) -> web.Response:
        headers = dict(self.headers)
        content_type = headers.pop("content-type", None)
        return web.Response(
            status=self.status or 200,
            body=self.body or b"",
            headers=headers,
            content_type=content_type,
        )


# =============================================================================
# WEBHOOK HANDLER CLASS
# =============================================================================


class WebhookHandler:
    """
    Handles incoming GitHub webhooks.

    This class:
    1. Ignores requests that are not POSTs to its path
    2. Validates delivery headers and the HMAC signature
    3. Parses the JSON payload and emits it to listeners

    Handler instances are callables and behave like an event emitter
    through delegation to an owned :class:`EventEmitter`.

    Attributes:
        options: Validated handler options
    """

    def __init__(self, options: Union[HandlerOptions, Mapping[str, Any]]):
        """
        Initialize webhook handler.

        Args:
            options: HandlerOptions or a mapping with path, secret,
                and optionally events and algorithm

        Raises:
            WebhookConfigError: If options are missing or invalid
        """
        self.options = HandlerOptions.from_mapping(options)
        self._emitter = EventEmitter()

        logger.info(
            f"WebhookHandler initialized (path: {self.options.path}, "
            f"algorithm: {self.options.algorithm}, "
            f"events: {sorted(self.options.events) if self.options.events else '*'})"
        )

    # =========================================================================
    # EVENT EMITTER INTERFACE
    # =========================================================================

    def on(self, event: str, listener: Listener) -> "WebhookHandler":
        self._emitter.on(event, listener)
        return self

    def once(self, event: str, listener: Listener) -> "WebhookHandler":
        self._emitter.once(event, listener)
        return self

    def remove_listener(self, event: str, listener: Listener) -> "WebhookHandler":
        self._emitter.remove_listener(event, listener)
        return self

    removeListener = remove_listener

    def emit(self, event: str, *args: Any) -> bool:
        return self._emitter.emit(event, *args)

    def listeners(self, event: str):
        return self._emitter.listeners(event)

    def listener_count(self, event: str) -> int:
        return self._emitter.listener_count(event)

    # =========================================================================
    # SIGNATURES
    # =========================================================================

    def sign(self, data: Data) -> str:
        """Sign a payload with this handler's secret and algorithm."""
        return sign_payload(self.options.secret, data, self.options.algorithm)

    def verify(self, signature: Data, data: Data) -> bool:
        """Constant-time check of a signature against a payload."""
        return verify_payload(self.options.secret, signature, data, self.options.algorithm)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def matches(self, request: web.BaseRequest) -> bool:
        """Check whether a request is addressed to this handler."""
        return request.method == "POST" and _raw_path(request) == self.options.path

    async def __call__(
        self,
        request: web.BaseRequest,
        response: ResponseWriter,
        callback: Optional[Callback] = None,
    ) -> bool:
        """
        Process a request.

        Args:
            request: aiohttp request (body is read from request.content)
            response: Writer that receives the reply
            callback: Optional completion callback, called with None when
                the request was ignored or accepted, or with the error

        Returns:
            False if the request was not addressed to this handler,
            True otherwise (whether accepted or rejected)
        """
        if not self.matches(request):
            _complete(callback, None)
            return False

        headers = CIMultiDict(request.headers)
        signature_header = self.options.signature_header

        signature = headers.get(signature_header)
        event = headers.get(HEADER_EVENT)
        delivery_id = headers.get(HEADER_DELIVERY)

        if not signature:
            return self._fail(
                request, response, callback,
                WebhookValidationError(f"No {signature_header} found on request"),
            )

        if not event:
            return self._fail(
                request, response, callback,
                WebhookValidationError("No X-Github-Event found on request"),
            )

        if not delivery_id:
            return self._fail(
                request, response, callback,
                WebhookValidationError("No X-Github-Delivery found on request"),
            )

        if not self.options.accepts(event):
            return self._fail(
                request, response, callback,
                WebhookValidationError("X-Github-Event is not acceptable"),
            )

        try:
            body = await self._collect_body(request)
        except STREAM_ERRORS as e:
            return self._fail(request, response, callback, WebhookStreamError(_stream_error_message(e)))

        if not self.verify(signature, body):
            return self._fail(
                request, response, callback,
                WebhookValidationError(f"{signature_header} does not match blob signature"),
            )

        try:
            payload = json.loads(body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return self._fail(
                request, response, callback,
                WebhookParseError(f"Invalid JSON payload: {e}"),
            )

        response.write_head(200, JSON_HEADERS)
        response.end('{"ok":true}')

        webhook_event = WebhookEvent(
            event=event,
            id=delivery_id,
            payload=payload,
            url=request.path_qs,
            host=headers.get(HEADER_HOST),
            protocol=request.get("protocol"),
        )

        with log_context(delivery_id=delivery_id, github_event=event):
            logger.info(f"Webhook received: {event} (delivery: {delivery_id}, {len(body)} bytes)")
            self._emitter.emit(event, webhook_event)
            self._emitter.emit(WILDCARD, webhook_event)

        _complete(callback, None)
        return True

    async def _collect_body(self, request: web.BaseRequest) -> bytes:
        buffer = bytearray()
        async for chunk in request.content.iter_any():
            buffer.extend(chunk)
        return bytes(buffer)

    def _fail(
        self,
        request: web.BaseRequest,
        response: ResponseWriter,
        callback: Optional[Callback],
        error: WebhookError,
    ) -> bool:
        """Reply 400, report the error on the "error" channel, and complete."""
        response.write_head(400, JSON_HEADERS)
        response.end(json.dumps({"error": error.message}))

        logger.warning(
            f"Webhook rejected: {error.message} "
            f"({request.method} {request.path_qs} from {getattr(request, 'remote', None)})"
        )

        if self._emitter.listener_count(ERROR_EVENT):
            self._emitter.emit(ERROR_EVENT, error, request)
        else:
            logger.debug("No error listeners registered, rejection only logged")

        _complete(callback, error)
        return True


def _raw_path(request: web.BaseRequest) -> str:
    # Undecoded path, so "/web%68ook" never matches "/webhook"
    return request.raw_path.split("?", 1)[0]


def _stream_error_message(error: BaseException) -> str:
    # HttpProcessingError formats str() as "<code>, message=..."
    message = getattr(error, "message", None)
    return message if isinstance(message, str) and message else str(error)


def _complete(callback: Optional[Callback], error: Optional[WebhookError]) -> None:
    if callback is not None:
        callback(error)


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def create_handler(
    options: Union[HandlerOptions, Mapping[str, Any]],
) -> WebhookHandler:
    """
    Create a configured webhook handler.

    Args:
        options: HandlerOptions or mapping with path, secret, events, algorithm

    Returns:
        Configured WebhookHandler instance

    Raises:
        WebhookConfigError: If options are missing or invalid
    """
    return WebhookHandler(options)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    # Main classes
    "WebhookHandler",
    "HandlerOptions",
    "WebhookEvent",
    "ResponseWriter",
    # Factory functions
    "create_handler",
    # Exceptions
    "WebhookError",
    "WebhookConfigError",
    "WebhookValidationError",
    "WebhookStreamError",
    "WebhookParseError",
    # Constants
    "HEADER_EVENT",
    "HEADER_DELIVERY",
]

"""Request lifecycle observers.

A middleware sees every request a scope starts (``on_request``) and every
settled result (``on_request_outcome``). Both hooks are optional and return
nothing; side effects only.
"""

from __future__ import annotations

import time
from typing import Callable

from .endpoint import EndpointResponse
from .logging import get_logger
from .request import Request
from .schemas import Message, Severity, make_message

logger = get_logger("middleware")

MessageSink = Callable[[Message], None]

CONNECTION_FAILED_MESSAGE_ID = "connection-failed"


class Middleware:
    """No-op base; override either hook."""

    def on_request(self, request: Request) -> None:
        return None

    def on_request_outcome(self, response: EndpointResponse) -> None:
        return None


class CallbackMiddleware(Middleware):
    def __init__(
        self,
        on_request: Callable[[Request], None] | None = None,
        on_request_outcome: Callable[[EndpointResponse], None] | None = None,
    ) -> None:
        self._on_request = on_request
        self._on_request_outcome = on_request_outcome

    def on_request(self, request: Request) -> None:
        if self._on_request:
            self._on_request(request)

    def on_request_outcome(self, response: EndpointResponse) -> None:
        if self._on_request_outcome:
            self._on_request_outcome(response)


class GeneralMessageMiddleware(Middleware):
    """Forward messages that have no field context to a display sink.

    Server general messages are forwarded as-is. A request that never got an
    answer produces one ``connection-failed`` error. Cancellations are silent.
    """

    def __init__(self, sink: MessageSink) -> None:
        self._sink = sink

    def on_request_outcome(self, response: EndpointResponse) -> None:
        if response.cancelled:
            return
        if response.connection_failed:
            self._sink(
                make_message(
                    CONNECTION_FAILED_MESSAGE_ID,
                    Severity.ERROR,
                    "errors.connectionFailed",
                )
            )
            return
        for message in response.general_messages:
            self._sink(message)


class LoggingMiddleware(Middleware):
    def __init__(self) -> None:
        self._started: dict[str, float] = {}

    def on_request(self, request: Request) -> None:
        self._started[request.id] = time.time()
        logger.info(
            "request_started",
            extra={
                "extra": {
                    "request_id": request.id,
                    "method": request.method.value,
                    "url": request.url,
                }
            },
        )

    def on_request_outcome(self, response: EndpointResponse) -> None:
        started = self._started.pop(response.request.id, None)
        latency_ms = int((time.time() - started) * 1000) if started is not None else None
        result = response.result
        logger.info(
            "request_settled",
            extra={
                "extra": {
                    "request_id": response.request.id,
                    "outcome": response.outcome.status.value,
                    "status_code": result.status if result else None,
                    "result": result.type if result else None,
                    "field_messages": len(response.field_messages),
                    "latency_ms": latency_ms,
                }
            },
        )

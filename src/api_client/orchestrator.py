"""Scoped request orchestration.

A ``RequestOrchestrator`` tracks the requests one scope (a view, a form, a
CLI command) has started, so the scope can cancel them individually or all at
once on teardown. Scopes created with ``create_scoped`` share the transport
and configuration but nothing else.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Generator, Mapping

from .endpoint import EndpointResponse, VersionedEndpoint
from .logging import get_logger
from .middleware import Middleware
from .request import Request, RequestOutcome, Scalar
from .settings import ClientSettings, get_settings
from .transport import ProgressCallback, TransportHandler

logger = get_logger("orchestrator")


class InFlightRequest:
    """Handle on a submitted request; await it for the ``EndpointResponse``."""

    def __init__(
        self,
        request: Request,
        task: asyncio.Task[EndpointResponse],
        scope: RequestOrchestrator,
    ) -> None:
        self.request = request
        self.task = task
        self._scope = scope

    @property
    def id(self) -> str:
        return self.request.id

    def cancel(self) -> None:
        self._scope.cancel_request_by_id(self.request.id)

    def done(self) -> bool:
        return self.task.done()

    def __await__(self) -> Generator[Any, None, EndpointResponse]:
        return self.task.__await__()


class RequestOrchestrator:
    def __init__(
        self,
        transport: TransportHandler,
        settings: ClientSettings | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._transport = transport
        self._settings = settings or get_settings()
        self._headers = dict(headers) if headers is not None else _default_headers(self._settings)
        self._pending: set[str] = set()
        self._cancelled: set[str] = set()
        self._middleware: list[Middleware] = []

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware)

    def add_middleware(self, middleware: Middleware) -> None:
        self._middleware.append(middleware)

    def create_scoped(self) -> RequestOrchestrator:
        return RequestOrchestrator(self._transport, self._settings, headers=self._headers)

    def submit(
        self,
        endpoint: VersionedEndpoint[Any, Any],
        payload: Any,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Scalar] | None = None,
        headers: Mapping[str, str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> InFlightRequest:
        """Start a request and return immediately.

        The id is pending and every ``on_request`` hook has run by the time
        this returns. The middleware registered now are the ones that see the
        outcome, even if the scope is closed first. Must be called from a
        running event loop.
        """
        loop = asyncio.get_running_loop()
        request = endpoint.build_request(
            payload,
            base_url=self._settings.base_url,
            path_params=path_params,
            query=query,
            headers=headers,
        )
        request = self._decorate(request)
        middleware = tuple(self._middleware)
        self._pending.add(request.id)
        for observer in middleware:
            self._notify(observer, "on_request", request, request.id)
        task = loop.create_task(self._run(endpoint, request, middleware, on_progress))
        return InFlightRequest(request, task, self)

    async def execute(
        self,
        endpoint: VersionedEndpoint[Any, Any],
        payload: Any,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Scalar] | None = None,
        headers: Mapping[str, str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> EndpointResponse:
        return await self.submit(
            endpoint,
            payload,
            path_params=path_params,
            query=query,
            headers=headers,
            on_progress=on_progress,
        )

    def cancel_request_by_id(self, request_id: str) -> None:
        # Only ids this scope started and has not settled yet.
        if request_id not in self._pending:
            return
        self._pending.discard(request_id)
        self._cancelled.add(request_id)
        self._transport.cancel(request_id)

    def cancel_all_requests(self) -> None:
        for request_id in list(self._pending):
            self.cancel_request_by_id(request_id)

    def close(self) -> None:
        self.cancel_all_requests()
        self._middleware.clear()

    async def __aenter__(self) -> RequestOrchestrator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    async def _run(
        self,
        endpoint: VersionedEndpoint[Any, Any],
        request: Request,
        middleware: tuple[Middleware, ...],
        on_progress: ProgressCallback | None,
    ) -> EndpointResponse:
        try:
            if request.id in self._cancelled:
                # Cancelled before the transport ever saw it.
                outcome = RequestOutcome(request=request, cancelled=True)
            else:
                outcome = await self._transport.execute(request, on_progress)
                if request.id in self._cancelled and not outcome.cancelled:
                    outcome = replace(outcome, cancelled=True)
        finally:
            self._pending.discard(request.id)
            self._cancelled.discard(request.id)

        try:
            result = endpoint.parse_outcome(outcome)
        except Exception:
            logger.exception(
                "transform_error",
                extra={"extra": {"request_id": request.id, "endpoint": endpoint.name}},
            )
            raise

        response = EndpointResponse(outcome=outcome, result=result)
        for observer in middleware:
            self._notify(observer, "on_request_outcome", response, request.id)
        return response

    def _decorate(self, request: Request) -> Request:
        own = {name.lower() for name in request.headers}
        extra = {name: value for name, value in self._headers.items() if name.lower() not in own}
        if not extra:
            return request
        return request.with_headers(extra)

    def _notify(self, middleware: Middleware, hook: str, value: Any, request_id: str) -> None:
        callback = getattr(middleware, hook, None)
        if callback is None:
            return
        try:
            callback(value)
        except Exception:  # noqa: BLE001
            logger.exception(
                "middleware_error",
                extra={
                    "extra": {
                        "middleware": type(middleware).__name__,
                        "hook": hook,
                        "request_id": request_id,
                    }
                },
            )


def _default_headers(settings: ClientSettings) -> dict[str, str]:
    headers = dict(settings.default_headers)
    if settings.auth_token:
        headers["authorization"] = f"Bearer {settings.auth_token}"
    return headers

"""Transport handler: runs one request over HTTP and supports cancellation.

HTTP error statuses and cancellation come back as ordinary outcomes so the
caller has a single success path. Only unclassified errors raise.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Callable, Protocol

import httpx

from .logging import get_logger
from .request import Request, RequestOutcome, Response
from .settings import ClientSettings, get_settings

logger = get_logger("transport")

ProgressCallback = Callable[[int], None]


class TransportHandler(Protocol):
    async def execute(
        self, request: Request, on_progress: ProgressCallback | None = None
    ) -> RequestOutcome: ...

    def cancel(self, request_id: str) -> None: ...


class HttpxTransportHandler:
    """Transport handler backed by a shared ``httpx.AsyncClient``.

    Every request runs in its own task keyed by request id, so one handler can
    serve many orchestrator scopes concurrently.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._owns_client = client is None
        # Avoid inheriting system proxy settings that can break localhost calls.
        self._client = client or httpx.AsyncClient(
            timeout=self._settings.request_timeout_s, trust_env=False
        )
        self._inflight: dict[str, asyncio.Task[Response]] = {}
        self._cancel_requested: set[str] = set()

    @property
    def inflight_ids(self) -> frozenset[str]:
        return frozenset(self._inflight)

    async def execute(
        self, request: Request, on_progress: ProgressCallback | None = None
    ) -> RequestOutcome:
        task = asyncio.ensure_future(self._send(request, on_progress))
        self._inflight[request.id] = task
        start = time.time()
        try:
            response = await task
        except asyncio.CancelledError:
            if request.id not in self._cancel_requested:
                raise
            logger.info(
                "request_cancelled",
                extra={"extra": {"request_id": request.id, "url": request.url}},
            )
            return RequestOutcome(request=request, cancelled=True)
        except httpx.RequestError as exc:
            latency_ms = int((time.time() - start) * 1000)
            logger.warning(
                "request_failed",
                extra={
                    "extra": {
                        "request_id": request.id,
                        "url": request.url,
                        "latency_ms": latency_ms,
                        "error": str(exc) or exc.__class__.__name__,
                    }
                },
            )
            return RequestOutcome(request=request)
        except Exception:
            logger.exception(
                "request_error",
                extra={"extra": {"request_id": request.id, "url": request.url}},
            )
            raise
        else:
            # A reply that raced a cancel is still reported as cancelled.
            return RequestOutcome(
                request=request,
                response=response,
                cancelled=request.id in self._cancel_requested,
            )
        finally:
            self._inflight.pop(request.id, None)
            self._cancel_requested.discard(request.id)

    def cancel(self, request_id: str) -> None:
        task = self._inflight.get(request_id)
        if task is None or task.done():
            return
        self._cancel_requested.add(request_id)
        task.cancel()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _send(self, request: Request, on_progress: ProgressCallback | None) -> Response:
        kwargs: dict[str, Any] = {
            "headers": dict(request.headers),
            "params": {k: v for k, v in request.query.items() if v is not None},
        }
        if isinstance(request.body, (bytes, str)):
            kwargs["content"] = request.body
        elif request.body is not None:
            kwargs["json"] = request.body

        async with self._client.stream(request.method.value, request.url, **kwargs) as resp:
            # content-length counts encoded bytes.
            total = int(resp.headers.get("content-length") or 0)
            reported = -1
            chunks: list[bytes] = []
            async for chunk in resp.aiter_bytes():
                chunks.append(chunk)
                if on_progress and total:
                    percent = min(100, resp.num_bytes_downloaded * 100 // total)
                    if percent > reported:
                        on_progress(percent)
                        reported = percent
            if on_progress and reported < 100:
                on_progress(100)

        logger.debug(
            "request_answered",
            extra={
                "extra": {
                    "request_id": request.id,
                    "status_code": resp.status_code,
                    "bytes": resp.num_bytes_downloaded,
                }
            },
        )
        return Response(
            status=resp.status_code,
            headers=dict(resp.headers),
            body=_decode_body(b"".join(chunks), resp.headers.get("content-type", "")),
        )


def _decode_body(content: bytes, content_type: str) -> Any:
    if not content:
        return None
    text = content.decode("utf-8", errors="replace")
    if "json" in content_type:
        try:
            return json.loads(text)
        except ValueError:
            return text
    return text

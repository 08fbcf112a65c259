"""Transport-level request and response values."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

Scalar = Union[str, int, float, bool, None]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


class OutcomeStatus(str, Enum):
    ANSWERED = "answered"
    CANCELLED = "cancelled"
    CONNECTION_FAILED = "connection_failed"


def new_request_id() -> str:
    return uuid.uuid4().hex


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Request:
    """An outbound request. ``id`` is the only handle used for cancellation."""

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Scalar] = field(default_factory=dict)
    body: Any = None
    id: str = field(default_factory=new_request_id)

    def __post_init__(self) -> None:
        if not isinstance(self.method, HttpMethod):
            object.__setattr__(self, "method", HttpMethod(str(self.method).upper()))
        object.__setattr__(self, "headers", _frozen(self.headers))
        object.__setattr__(self, "query", _frozen(self.query))

    def with_headers(self, headers: Mapping[str, str]) -> "Request":
        """Return a copy with ``headers`` layered over the current ones.

        The id is kept, so the copy stays cancellable through the same handle.
        """
        return replace(self, headers={**self.headers, **headers})


@dataclass(frozen=True)
class Response:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "headers", _frozen({k.lower(): v for k, v in self.headers.items()})
        )


@dataclass(frozen=True)
class RequestOutcome:
    """Terminal state of one request.

    Exactly one of answered, cancelled or connection failure holds:
    ``cancelled`` wins; otherwise a missing response means the transport
    never got a reply.
    """

    request: Request
    response: Response | None = None
    cancelled: bool = False

    @property
    def status(self) -> OutcomeStatus:
        if self.cancelled:
            return OutcomeStatus.CANCELLED
        if self.response is None:
            return OutcomeStatus.CONNECTION_FAILED
        return OutcomeStatus.ANSWERED

    @property
    def answered(self) -> bool:
        return self.status is OutcomeStatus.ANSWERED

    @property
    def connection_failed(self) -> bool:
        return self.status is OutcomeStatus.CONNECTION_FAILED

"""Versioned endpoints: typed payloads in, typed results out.

An endpoint turns a payload model into a ``Request`` and turns the
``RequestOutcome`` back into a ``SuccessResult`` or ``ErrorResult``.
Outcomes without a server answer are not classified; ``parse_outcome``
returns ``None`` for them and the caller decides what that means.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Literal, Mapping, TypeVar, Union
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError

from .logging import get_logger
from .request import HttpMethod, Request, RequestOutcome, Scalar
from .schemas import (
    ErrorEnvelope,
    FieldMessage,
    Message,
    Severity,
    SuccessEnvelope,
    make_message,
)

logger = get_logger("endpoint")

PayloadT = TypeVar("PayloadT", bound=BaseModel)
DataT = TypeVar("DataT")

INVALID_RESPONSE_MESSAGE_ID = "invalid-response"


class SuccessResult(BaseModel, Generic[DataT]):
    type: Literal["success"] = "success"
    success: Literal[True] = True
    status: int
    data: DataT
    field_messages: list[FieldMessage] = Field(default_factory=list)
    general_messages: list[Message] = Field(default_factory=list)


class ErrorResult(BaseModel):
    type: Literal["error"] = "error"
    success: Literal[False] = False
    status: int
    field_messages: list[FieldMessage] = Field(default_factory=list)
    general_messages: list[Message] = Field(default_factory=list)


VersionedResult = Union[SuccessResult[Any], ErrorResult]


@dataclass(frozen=True)
class EndpointResponse:
    """A settled request paired with its typed result, if the server answered."""

    outcome: RequestOutcome
    result: VersionedResult | None = None

    @property
    def request(self) -> Request:
        return self.outcome.request

    @property
    def cancelled(self) -> bool:
        return self.outcome.cancelled

    @property
    def connection_failed(self) -> bool:
        return self.outcome.connection_failed

    @property
    def ok(self) -> bool:
        return isinstance(self.result, SuccessResult)

    @property
    def field_messages(self) -> list[FieldMessage]:
        return list(self.result.field_messages) if self.result else []

    @property
    def general_messages(self) -> list[Message]:
        return list(self.result.general_messages) if self.result else []


@dataclass(frozen=True)
class VersionedEndpoint(Generic[PayloadT, DataT]):
    """One server operation: method plus path template under an API version."""

    name: str
    method: HttpMethod
    path: str
    payload_model: type[PayloadT]
    data_model: type[DataT]
    success_status: int = 200
    version: str = "v1"
    description: str = ""

    def route(self, path_params: Mapping[str, Any] | None = None) -> str:
        params = {key: quote(str(value), safe="") for key, value in (path_params or {}).items()}
        return f"/{self.version}{self.path.format_map(params)}"

    def build_request(
        self,
        payload: PayloadT | Mapping[str, Any],
        *,
        base_url: str,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Scalar] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Request:
        if not isinstance(payload, self.payload_model):
            payload = self.payload_model.model_validate(payload)
        wire = payload.model_dump(mode="json", by_alias=True)

        params: dict[str, Scalar] = dict(query or {})
        body = None
        if self.method.has_body:
            body = wire
        else:
            nested = sorted(key for key, value in wire.items() if isinstance(value, (dict, list)))
            if nested:
                raise ValueError(
                    f"{self.method.value} {self.name} cannot carry nested payload fields in the query: {nested}"
                )
            params.update(wire)

        return Request(
            url=base_url.rstrip("/") + self.route(path_params),
            method=self.method,
            headers=headers or {},
            query=params,
            body=body,
        )

    def parse_outcome(self, outcome: RequestOutcome) -> VersionedResult | None:
        if not outcome.answered or outcome.response is None:
            return None
        status = outcome.response.status
        body = outcome.response.body

        if status == self.success_status:
            try:
                success = SuccessEnvelope[self.data_model].model_validate(body)
            except ValidationError:
                pass
            else:
                return SuccessResult(
                    status=status,
                    data=success.data,
                    field_messages=success.field_messages,
                    general_messages=success.general_messages,
                )

        try:
            error = ErrorEnvelope.model_validate(body)
        except ValidationError as exc:
            return self._invalid_response(status, exc)
        return ErrorResult(
            status=status,
            field_messages=error.field_messages,
            general_messages=error.general_messages,
        )

    def _invalid_response(self, status: int, exc: ValidationError) -> ErrorResult:
        logger.warning(
            "invalid_response",
            extra={
                "extra": {
                    "endpoint": self.name,
                    "status_code": status,
                    "errors": exc.error_count(),
                }
            },
        )
        return ErrorResult(
            status=status,
            general_messages=[
                make_message(
                    INVALID_RESPONSE_MESSAGE_ID,
                    Severity.ERROR,
                    "errors.invalidResponse",
                    {"status": status},
                )
            ],
        )

"""Wire schemas shared by the client and the development server.

Both sides import these models so the envelope field names cannot drift.
Python attributes are snake_case; the JSON names are the camelCase aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

DataT = TypeVar("DataT")

PathSegment = Union[str, int]
FieldMessagePath = list[PathSegment]


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Translation(BaseModel):
    """Opaque reference handed to the display layer for lookup."""

    model_config = ConfigDict(frozen=True)

    id: str
    placeholders: dict[str, Any] | None = None


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    severity: Severity
    translation: Translation


class FieldMessage(BaseModel):
    """A message addressed to one location of the request's input structure."""

    model_config = ConfigDict(frozen=True)

    path: FieldMessagePath
    message: Message


class Envelope(BaseModel):
    """Fields present on every versioned endpoint response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    field_messages: list[FieldMessage] = Field(default_factory=list, alias="fieldMessages")
    general_messages: list[Message] = Field(default_factory=list, alias="generalMessages")


class SuccessEnvelope(Envelope, Generic[DataT]):
    success: Literal[True]
    data: DataT


class ErrorEnvelope(Envelope):
    success: Literal[False]


def make_message(
    id: str,
    severity: Severity | str,
    translation_id: str | None = None,
    placeholders: dict[str, Any] | None = None,
) -> Message:
    """Build a message whose translation id defaults to its own id."""
    return Message(
        id=id,
        severity=Severity(severity),
        translation=Translation(id=translation_id or id, placeholders=placeholders),
    )


# Endpoint payloads and data.


class EmptyPayload(BaseModel):
    """Payload for endpoints that take no input."""


class PingData(BaseModel):
    status: str
    version: str


class LoginPayload(BaseModel):
    username: str = ""
    password: str = ""


class LoginData(BaseModel):
    username: str
    token: str


class AddressPayload(BaseModel):
    street: str = ""
    city: str = ""
    country: str = ""


class RegisterPayload(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    addresses: list[AddressPayload] = Field(default_factory=list)


class RegisterData(BaseModel):
    user_id: str = Field(alias="userId")
    username: str

    model_config = ConfigDict(populate_by_name=True)

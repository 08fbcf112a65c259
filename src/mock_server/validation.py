"""Domain validation that reports problems as field messages.

Paths address the request body, so a client can route each message to the
form field that produced the value.
"""

from __future__ import annotations

import re

from api_client.schemas import (
    FieldMessage,
    FieldMessagePath,
    LoginPayload,
    RegisterPayload,
    Severity,
    make_message,
)

from .settings import MockServerSettings

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_COUNTRY_RE = re.compile(r"^[A-Z]{2}$")


def field_error(path: FieldMessagePath, code: str, **placeholders: object) -> FieldMessage:
    message_id = ".".join(str(segment) for segment in path) + f":{code}"
    return FieldMessage(
        path=list(path),
        message=make_message(
            message_id,
            Severity.ERROR,
            f"validation.{code}",
            placeholders or None,
        ),
    )


def validate_login(payload: LoginPayload) -> list[FieldMessage]:
    errors: list[FieldMessage] = []
    if not payload.username.strip():
        errors.append(field_error(["username"], "required"))
    if not payload.password:
        errors.append(field_error(["password"], "required"))
    return errors


def validate_register(payload: RegisterPayload, settings: MockServerSettings) -> list[FieldMessage]:
    errors: list[FieldMessage] = []

    username = payload.username.strip()
    if not username:
        errors.append(field_error(["username"], "required"))
    elif len(username) < settings.min_username_length:
        errors.append(field_error(["username"], "tooShort", min=settings.min_username_length))

    if not payload.email.strip():
        errors.append(field_error(["email"], "required"))
    elif not _EMAIL_RE.match(payload.email.strip()):
        errors.append(field_error(["email"], "invalidEmail"))

    if len(payload.password) < settings.min_password_length:
        errors.append(field_error(["password"], "tooShort", min=settings.min_password_length))

    if not payload.addresses:
        errors.append(field_error(["addresses"], "atLeastOne"))
    for index, address in enumerate(payload.addresses):
        if not address.street.strip():
            errors.append(field_error(["addresses", index, "street"], "required"))
        if not address.city.strip():
            errors.append(field_error(["addresses", index, "city"], "required"))
        if not _COUNTRY_RE.match(address.country.strip().upper()):
            errors.append(field_error(["addresses", index, "country"], "invalidCountry"))

    return errors

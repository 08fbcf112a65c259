"""FastAPI development server speaking the versioned response envelope.

Every ``/v1`` route answers with ``success``, ``fieldMessages`` and
``generalMessages``; successful answers also carry ``data``.
"""

from __future__ import annotations

import secrets
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from api_client.logging import get_logger
from api_client.schemas import (
    Envelope,
    ErrorEnvelope,
    FieldMessage,
    LoginData,
    LoginPayload,
    Message,
    PingData,
    RegisterData,
    RegisterPayload,
    Severity,
    SuccessEnvelope,
    make_message,
)

from .settings import get_settings
from .validation import field_error, validate_login, validate_register

logger = get_logger("mock_server")


class MalformedBody(ValueError):
    pass


class UserStore:
    """In-memory accounts; seeded with the demo user from settings."""

    def __init__(self, username: str, password: str) -> None:
        self._passwords: dict[str, str] = {username: password}
        self._ids: dict[str, str] = {username: uuid.uuid4().hex}

    def exists(self, username: str) -> bool:
        return username in self._passwords

    def check(self, username: str, password: str) -> bool:
        return self._passwords.get(username) == password

    def add(self, username: str, password: str) -> str:
        user_id = uuid.uuid4().hex
        self._passwords[username] = password
        self._ids[username] = user_id
        return user_id


def new_user_store() -> UserStore:
    settings = get_settings()
    return UserStore(settings.demo_username, settings.demo_password)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "mock_server_config",
        extra={
            "extra": {
                "api_version": settings.api_version,
                "demo_username": settings.demo_username,
            }
        },
    )
    yield


app = FastAPI(title="Versioned API Mock Server", version="0.1.0", lifespan=lifespan)
app.state.users = new_user_store()


def envelope_response(status_code: int, envelope: Envelope) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def error_response(
    status_code: int,
    *,
    field_messages: list[FieldMessage] | None = None,
    general_messages: list[Message] | None = None,
) -> JSONResponse:
    return envelope_response(
        status_code,
        ErrorEnvelope(
            success=False,
            field_messages=field_messages or [],
            general_messages=general_messages or [],
        ),
    )


async def read_payload(request: Request, model: type[BaseModel]) -> Any:
    try:
        return model.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        raise MalformedBody(str(exc)) from exc


@app.exception_handler(MalformedBody)
async def malformed_body_handler(request: Request, exc: MalformedBody) -> JSONResponse:
    logger.info(
        "malformed_body",
        extra={"extra": {"path": request.url.path, "error": str(exc)[:200]}},
    )
    return error_response(
        400,
        general_messages=[make_message("malformed-body", Severity.ERROR, "errors.malformedBody")],
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    logger.info(
        "http_request",
        extra={
            "extra": {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": int((time.time() - start) * 1000),
            }
        },
    )
    return response


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/v1/system/ping")
def ping() -> JSONResponse:
    settings = get_settings()
    return envelope_response(
        200,
        SuccessEnvelope[PingData](
            success=True, data=PingData(status="ok", version=settings.api_version)
        ),
    )


@app.post("/v1/user/login")
async def login(request: Request) -> JSONResponse:
    payload: LoginPayload = await read_payload(request, LoginPayload)
    errors = validate_login(payload)
    if errors:
        return error_response(400, field_messages=errors)

    users: UserStore = request.app.state.users
    if not users.check(payload.username, payload.password):
        return error_response(
            401,
            general_messages=[
                make_message("invalid-credentials", Severity.ERROR, "login.invalidCredentials")
            ],
        )

    data = LoginData(username=payload.username, token=secrets.token_hex(16))
    return envelope_response(200, SuccessEnvelope[LoginData](success=True, data=data))


@app.post("/v1/user/register")
async def register(request: Request) -> JSONResponse:
    settings = get_settings()
    payload: RegisterPayload = await read_payload(request, RegisterPayload)
    errors = validate_register(payload, settings)

    users: UserStore = request.app.state.users
    username = payload.username.strip()
    if username and users.exists(username):
        errors.insert(0, field_error(["username"], "taken"))
    if errors:
        return error_response(
            400,
            field_messages=errors,
            general_messages=[
                make_message("register-failed", Severity.WARNING, "register.checkFields")
            ],
        )

    user_id = users.add(username, payload.password)
    return envelope_response(
        201,
        SuccessEnvelope[RegisterData](
            success=True,
            data=RegisterData(user_id=user_id, username=username),
            general_messages=[make_message("register-success", Severity.SUCCESS, "register.success")],
        ),
    )


def main() -> None:
    import uvicorn

    from api_client.logging import configure_logging

    settings = get_settings()
    configure_logging()
    uvicorn.run(
        "mock_server.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()

"""Command-line client for versioned API endpoints."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

import httpx

from api_client.endpoint import EndpointResponse
from api_client.endpoints import get_endpoint
from api_client.logging import configure_logging
from api_client.middleware import GeneralMessageMiddleware, LoggingMiddleware
from api_client.orchestrator import RequestOrchestrator
from api_client.schemas import EmptyPayload, LoginPayload, Message
from api_client.settings import get_settings
from api_client.transport import HttpxTransportHandler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Call a versioned API endpoint")
    parser.add_argument("--base-url", default=None, help="API base URL (defaults to API_CLIENT_BASE_URL)")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout seconds")
    parser.add_argument("--verbose", action="store_true", help="Log request lifecycle and print request id")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("ping", help="Check the server status")
    login = commands.add_parser("login", help="Log in and print the session token")
    login.add_argument("username")
    login.add_argument("password")
    return parser


def print_message(message: Message) -> None:
    print(f"[{message.severity.value}] {message.translation.id}")


def render(response: EndpointResponse, verbose: bool) -> int:
    if verbose:
        print(f"request_id: {response.request.id}")
    if response.cancelled:
        print("Request cancelled.")
        return 1
    if response.connection_failed:
        # The general message middleware has already reported it.
        return 1
    if response.ok:
        data = response.result.data  # type: ignore[union-attr]
        print(json.dumps(data.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
        return 0
    for field_message in response.field_messages:
        path = ".".join(str(segment) for segment in field_message.path)
        print(f"{path}: {field_message.message.translation.id}")
    return 1


async def run(args: argparse.Namespace, client: httpx.AsyncClient | None = None) -> int:
    updates: dict[str, Any] = {}
    if args.base_url:
        updates["base_url"] = args.base_url
    if args.timeout is not None:
        updates["request_timeout_s"] = args.timeout
    settings = get_settings().model_copy(update=updates)
    if args.verbose:
        configure_logging(settings.log_level)

    if args.command == "login":
        endpoint = get_endpoint("user.login")
        payload: Any = LoginPayload(username=args.username, password=args.password)
    else:
        endpoint = get_endpoint("system.ping")
        payload = EmptyPayload()

    transport = HttpxTransportHandler(settings, client=client)
    try:
        async with RequestOrchestrator(transport, settings).create_scoped() as scope:
            scope.add_middleware(GeneralMessageMiddleware(print_message))
            if args.verbose:
                scope.add_middleware(LoggingMiddleware())
            response = await scope.execute(endpoint, payload)
    finally:
        await transport.aclose()
    return render(response, args.verbose)


def main(argv: list[str] | None = None, client: httpx.AsyncClient | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return asyncio.run(run(args, client))


if __name__ == "__main__":
    raise SystemExit(main())

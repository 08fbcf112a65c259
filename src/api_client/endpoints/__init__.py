"""Registry of versioned endpoints known to the client."""

from __future__ import annotations

from typing import Any

from ..endpoint import VersionedEndpoint
from ..errors import UnknownEndpointError
from .system import PING
from .user import LOGIN, REGISTER

ENDPOINTS: dict[str, VersionedEndpoint[Any, Any]] = {
    endpoint.name: endpoint for endpoint in (PING, LOGIN, REGISTER)
}


def get_endpoint(name: str) -> VersionedEndpoint[Any, Any]:
    try:
        return ENDPOINTS[name]
    except KeyError:
        raise UnknownEndpointError(name) from None


def list_endpoints() -> list[VersionedEndpoint[Any, Any]]:
    return list(ENDPOINTS.values())

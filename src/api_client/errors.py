"""Exceptions raised by the client core.

Expected conditions (cancellation, connection loss, validation failures
reported by the server) are values, not exceptions. These only signal
programming errors.
"""

from __future__ import annotations


class ApiClientError(RuntimeError):
    """Base class for client core errors."""


class UnknownLeafKindError(ApiClientError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown leaf kind: {kind!r}")
        self.kind = kind


class UnknownEndpointError(ApiClientError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown endpoint: {name}")
        self.name = name

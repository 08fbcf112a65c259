"""Service status endpoints."""

from __future__ import annotations

from ..endpoint import VersionedEndpoint
from ..request import HttpMethod
from ..schemas import EmptyPayload, PingData

PING: VersionedEndpoint[EmptyPayload, PingData] = VersionedEndpoint(
    name="system.ping",
    method=HttpMethod.GET,
    path="/system/ping",
    payload_model=EmptyPayload,
    data_model=PingData,
    description="Report server status and API version.",
)

"""User account endpoints."""

from __future__ import annotations

from ..endpoint import VersionedEndpoint
from ..request import HttpMethod
from ..schemas import LoginData, LoginPayload, RegisterData, RegisterPayload

LOGIN: VersionedEndpoint[LoginPayload, LoginData] = VersionedEndpoint(
    name="user.login",
    method=HttpMethod.POST,
    path="/user/login",
    payload_model=LoginPayload,
    data_model=LoginData,
    description="Exchange username and password for a session token.",
)

REGISTER: VersionedEndpoint[RegisterPayload, RegisterData] = VersionedEndpoint(
    name="user.register",
    method=HttpMethod.POST,
    path="/user/register",
    payload_model=RegisterPayload,
    data_model=RegisterData,
    success_status=201,
    description="Create an account with one or more postal addresses.",
)

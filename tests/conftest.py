import asyncio

import pytest

from api_client.request import Request, RequestOutcome, Response
from api_client.settings import ClientSettings
from api_client.settings import get_settings as get_client_settings
from mock_server.settings import get_settings as get_server_settings

BASE_URL = "http://testserver"


class ControlledTransport:
    """In-memory transport whose requests settle only when the test says so."""

    def __init__(self) -> None:
        self.started: list[Request] = []
        self.cancel_calls: list[str] = []
        self._requests: dict[str, Request] = {}
        self._waiters: dict[str, asyncio.Future] = {}

    @property
    def inflight_ids(self) -> frozenset[str]:
        return frozenset(self._waiters)

    async def execute(self, request, on_progress=None):
        future = asyncio.get_running_loop().create_future()
        self._requests[request.id] = request
        self._waiters[request.id] = future
        self.started.append(request)
        try:
            return await future
        finally:
            self._waiters.pop(request.id, None)

    def cancel(self, request_id: str) -> None:
        self.cancel_calls.append(request_id)
        self._settle(request_id, RequestOutcome(request=self._requests.get(request_id), cancelled=True))

    def respond(self, request_id: str, status: int, body=None) -> None:
        response = Response(status=status, headers={"Content-Type": "application/json"}, body=body)
        self._settle(request_id, RequestOutcome(request=self._requests[request_id], response=response))

    def fail(self, request_id: str) -> None:
        self._settle(request_id, RequestOutcome(request=self._requests[request_id]))

    def _settle(self, request_id: str, outcome: RequestOutcome) -> None:
        future = self._waiters.get(request_id)
        if future is not None and not future.done():
            future.set_result(outcome)


async def drain(rounds: int = 3) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_client_settings.cache_clear()
    get_server_settings.cache_clear()
    yield
    get_client_settings.cache_clear()
    get_server_settings.cache_clear()


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(
        _env_file=None,
        base_url=BASE_URL,
        default_headers={"accept": "application/json"},
    )


@pytest.fixture
def controlled_transport() -> ControlledTransport:
    return ControlledTransport()

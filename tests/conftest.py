"""Shared pytest fixtures."""

import asyncio
import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio

from sessionguard.app import App
from sessionguard.config import Config

LOGIN_PAYLOAD = {
    "credential": "tok-123",
    "sessionId": "sess-1",
    "user": {
        "id": "u-1",
        "email": "ada@example.com",
        "name": "Ada",
        "role": "Employee",
        "isEmailVerified": True,
    },
}


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self) -> None:
        self.current = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class FakeApi:
    """In-process stand-in for the task-management API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status: dict = {"isActive": True, "idleTimeRemainingMs": 300_000, "shouldWarn": False}
        self.status_code = 200
        self.fail_status = False
        self.fail_logout = False
        self.resource_status = 200
        self.resource_headers: dict[str, str] = {}
        self.status_gate: asyncio.Event | None = None
        self.logins = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/auth/login":
            body = json.loads(request.content)
            if body["password"] != "secret":
                return httpx.Response(401, json={"message": "Invalid credentials"})
            self.logins += 1
            return httpx.Response(200, json={**LOGIN_PAYLOAD, "sessionId": f"sess-{self.logins}"})

        if path == "/auth/session-status":
            # The answer is fixed when the request arrives, even if held back
            status, gate = self.status, self.status_gate
            if gate is not None:
                await gate.wait()
            if self.fail_status:
                raise httpx.ConnectError("unreachable", request=request)
            if self.status_code != 200:
                return httpx.Response(self.status_code, json={"message": "error"})
            return httpx.Response(200, json=status)

        if path == "/auth/logout":
            if self.fail_logout:
                raise httpx.ConnectError("unreachable", request=request)
            return httpx.Response(204)

        return httpx.Response(self.resource_status, json={"items": []}, headers=self.resource_headers)

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]


class RecordingNotifier:
    def __init__(self) -> None:
        self.warnings: list = []
        self.hidden = 0
        self.notices: list = []

    def show_warning(self, view) -> None:
        self.warnings.append(view)

    def hide_warning(self) -> None:
        self.hidden += 1

    def notify(self, level, message) -> None:
        self.notices.append((level, message))


class RecordingNavigator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, bool]] = []

    def navigate(self, path: str, *, replace: bool) -> None:
        self.calls.append((path, replace))


class RecordingCache:
    def __init__(self) -> None:
        self.cleared = 0

    def clear(self) -> None:
        self.cleared += 1


class MemoryPersistence:
    def __init__(self) -> None:
        self.saved = None

    def save(self, persisted) -> None:
        self.saved = persisted

    def clear(self) -> None:
        self.saved = None


async def _settle() -> None:
    """Let scheduled loop callbacks run."""
    for _ in range(20):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    return _settle


@pytest.fixture
def config():
    return Config(api_base_url="http://testserver", _env_file=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def cache():
    return RecordingCache()


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest_asyncio.fixture
async def app(config, api, clock, notifier, navigator, cache, persistence):
    """Started client wired to the fake API."""
    client = App(
        config,
        transport=httpx.MockTransport(api.handler),
        clock=clock,
        notifier=notifier,
        navigator=navigator,
        cache=cache,
        persistence=persistence,
    )
    async with client.lifespan():
        yield client


@pytest.fixture
def services(app):
    return app._core.services


@pytest_asyncio.fixture
async def signed_in(app):
    """Client after login and the initial status check (300s idle budget)."""
    await app.login("ada@example.com", "secret")
    await _settle()
    return app

import json
import threading
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from earnalliance import Client, ClientOptions
from earnalliance.constants import ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_DSN, ENV_GAME_ID


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_GAME_ID, ENV_DSN):
        monkeypatch.delenv(name, raising=False)


def ok_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"message": "OK"})


class Collector:
    """
    Fake collector endpoint for ``httpx.MockTransport`` that records requests
    and lets tests wait for them from other threads.
    """

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response] = ok_response):
        self.respond = respond
        self.requests: List[httpx.Request] = []
        self._cond = threading.Condition()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        response = self.respond(request)
        with self._cond:
            self.requests.append(request)
            self._cond.notify_all()
        return response

    @property
    def count(self) -> int:
        with self._cond:
            return len(self.requests)

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.requests) >= count, timeout)

    def payload(self, index: int) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def collector():
    return Collector()


@pytest.fixture
def make_client(collector):
    """
    Build clients talking to ``collector``; the periodic loop is off unless
    ``flush_interval`` is given.
    """
    clients: List[Client] = []

    def factory(error_handler: Optional[Callable[[Exception], None]] = None, **overrides) -> Client:
        values = {
            "client_id": "a",
            "client_secret": "b",
            "game_id": "c",
            "flush_interval": 0,
            "flush_cooldown": 5,
        }
        values.update(overrides)
        client = Client(
            ClientOptions.create(**values),
            http_client=collector.http_client(),
            error_handler=error_handler,
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()

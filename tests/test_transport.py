import httpx
import pytest

from earnalliance.errors import (
    NetworkConnectionError,
    RequestBuildError,
    RequestFailedError,
    RequestTimeoutError,
    ServerError,
    TooManyRequestsError,
)
from earnalliance.transport import ResilientSender

URL = "https://collector.example.com/v2/custom-events"


class Sequence:
    """
    Handler answering with the given responses (or raising the given
    exceptions) in order, repeating the last one.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self, request):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("boom", request=request)
        return outcome


def make_sender(handler, max_retry_attempts=2):
    return ResilientSender(
        max_retry_attempts=max_retry_attempts,
        timeout=1,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        retry_wait_min=0,
        retry_wait_max=0,
    )


def test_success_is_returned():
    handler = Sequence(httpx.Response(200, json={"message": "OK"}))
    response = make_sender(handler).post(URL, b"{}", {"Content-Type": "application/json"})
    assert response.status_code == 200
    assert handler.calls == 1


def test_request_is_sent_as_given():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"message": "OK"})

    make_sender(handler).post(URL, b'{"a":1}', {"x-client-id": "a"})

    assert seen[0].method == "POST"
    assert str(seen[0].url) == URL
    assert seen[0].content == b'{"a":1}'
    assert seen[0].headers["x-client-id"] == "a"


def test_client_errors_are_not_retried():
    handler = Sequence(httpx.Response(400, json={"error": "bad signature"}))
    response = make_sender(handler).post(URL, b"{}", {})
    assert response.status_code == 400
    assert handler.calls == 1


def test_server_error_is_retried_until_success():
    handler = Sequence(httpx.Response(502), httpx.Response(200, json={"message": "OK"}))
    response = make_sender(handler).post(URL, b"{}", {})
    assert response.status_code == 200
    assert handler.calls == 2


def test_server_error_gives_up_after_max_retries():
    handler = Sequence(httpx.Response(503, text="down"))
    with pytest.raises(ServerError, match="HTTP 503") as exc_info:
        make_sender(handler, max_retry_attempts=3).post(URL, b"{}", {})
    assert exc_info.value.status_code == 503
    # First try and three retries
    assert handler.calls == 4


def test_rate_limit_is_retried():
    handler = Sequence(httpx.Response(429), httpx.Response(200, json={"message": "OK"}))
    assert make_sender(handler).post(URL, b"{}", {}).status_code == 200
    assert handler.calls == 2


def test_rate_limit_gives_up():
    handler = Sequence(httpx.Response(429, text="slow down"))
    with pytest.raises(TooManyRequestsError, match="slow down"):
        make_sender(handler, max_retry_attempts=1).post(URL, b"{}", {})
    assert handler.calls == 2


def test_connection_error():
    handler = Sequence(httpx.ConnectError)
    with pytest.raises(NetworkConnectionError):
        make_sender(handler).post(URL, b"{}", {})
    assert handler.calls == 3


def test_connection_error_then_success():
    handler = Sequence(httpx.ConnectError, httpx.Response(200, json={"message": "OK"}))
    assert make_sender(handler).post(URL, b"{}", {}).status_code == 200


def test_timeout():
    handler = Sequence(httpx.ReadTimeout)
    with pytest.raises(RequestTimeoutError):
        make_sender(handler, max_retry_attempts=1).post(URL, b"{}", {})
    assert handler.calls == 2


def test_unsupported_protocol_is_not_retried():
    handler = Sequence(httpx.UnsupportedProtocol)
    with pytest.raises(RequestBuildError):
        make_sender(handler).post(URL, b"{}", {})
    assert handler.calls == 1


@pytest.mark.parametrize("error", [httpx.DecodingError, httpx.TooManyRedirects])
def test_other_http_errors_are_not_retried(error):
    handler = Sequence(error)
    with pytest.raises(RequestFailedError, match="boom"):
        make_sender(handler).post(URL, b"{}", {})
    assert handler.calls == 1


def test_close_leaves_injected_client_open():
    http_client = httpx.Client(transport=httpx.MockTransport(Sequence(httpx.Response(200))))
    sender = ResilientSender(http_client=http_client)
    sender.close()
    assert not http_client.is_closed


def test_close_owned_client():
    sender = ResilientSender()
    sender.close()
    assert sender._http_client.is_closed

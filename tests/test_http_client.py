import asyncio

import pytest

from core.errors import RemoteRequestError
from utils.http_client import HttpClient

from fakes import FakeResponse, FakeSession, connection_error


def client(*responses, max_retries=3):
    session = FakeSession(*responses)
    return HttpClient(session=session, max_retries=max_retries, base_delay=0), session


def test_returns_decoded_body():
    http, session = client(FakeResponse(body={"data": {"ok": True}}))
    body = asyncio.run(http.request_json("POST", "https://api", json={"query": "{}"}))

    assert body == {"data": {"ok": True}}
    method, url, kwargs = session.requests[0]
    assert (method, url, kwargs["json"]) == ("POST", "https://api", {"query": "{}"})


def test_retries_server_errors_then_succeeds():
    http, session = client(FakeResponse(status=502), connection_error(), FakeResponse(body=[1]))
    assert asyncio.run(http.request_json("GET", "https://api")) == [1]
    assert len(session.requests) == 3


def test_gives_up_after_max_retries():
    http, session = client(FakeResponse(status=500), FakeResponse(status=500), FakeResponse(status=503))
    with pytest.raises(RemoteRequestError) as excinfo:
        asyncio.run(http.request_json("GET", "https://api"))

    assert excinfo.value.status == 503
    assert "after 3 attempts" in str(excinfo.value)
    assert len(session.requests) == 3


def test_malformed_json_is_not_retried():
    http, session = client(FakeResponse(error=ValueError("Expecting value")), FakeResponse(body={}))
    with pytest.raises(RemoteRequestError, match="Malformed JSON"):
        asyncio.run(http.request_json("GET", "https://api"))
    assert len(session.requests) == 1


def test_backoff_doubles(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    session = FakeSession(FakeResponse(status=500), FakeResponse(status=500), FakeResponse(status=500))
    http = HttpClient(session=session, max_retries=3, base_delay=1.0)

    with pytest.raises(RemoteRequestError):
        asyncio.run(http.request_json("GET", "https://api"))
    assert delays == [2.0, 4.0]


def test_close_leaves_injected_session_open():
    http, session = client(FakeResponse(body={}))
    asyncio.run(http.close())
    assert not session.closed

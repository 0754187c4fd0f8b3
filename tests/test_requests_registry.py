from __future__ import annotations

import pytest
import requests

from autojoin.adapters.http.requests_registry import RequestsRegistryClient, build_url
from autojoin.core.errors import (
    RegistryDecodeError,
    RegistryFaultError,
    RegistryHTTPError,
    RegistryTransportError,
)


def _response(status: int, body: bytes = b"", reason: str = "") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.encoding = "utf-8"
    resp.reason = reason
    return resp


class FakeSession:
    def __init__(self, result) -> None:
        self.result = result
        self.requests = []

    def request(self, method, url, data=None, headers=None, timeout=None):
        self.requests.append({"method": method, "url": url, "data": data, "headers": headers, "timeout": timeout})
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result

    def close(self) -> None:
        pass


def _client(result, **kw) -> tuple[RequestsRegistryClient, FakeSession]:
    session = FakeSession(result)
    return RequestsRegistryClient(host="consul.local", port=8500, session=session, **kw), session


def test_build_url_flags_and_pairs():
    url = build_url("http", "localhost", 8500, ["v1", "health", "service", "web"], ["passing", ("tag", "a b"), ("token", "x/y")])
    assert url == "http://localhost:8500/v1/health/service/web?passing&tag=a%20b&token=x%2Fy"


def test_build_url_keeps_service_colon():
    url = build_url("https", "c", 443, ["v1", "agent", "check", "pass", "service:web:10.0.0.5"])
    assert url == "https://c:443/v1/agent/check/pass/service:web:10.0.0.5"


def test_get_decodes_json(event_loop):
    client, session = _client(_response(200, b'[{"Node": {"Node": "n1"}}]'), timeout=2.5)
    data = event_loop.run_until_complete(client.get(["v1", "health", "service", "web"], ["passing"]))
    assert data == [{"Node": {"Node": "n1"}}]
    (req,) = session.requests
    assert req["method"] == "GET"
    assert req["url"] == "http://consul.local:8500/v1/health/service/web?passing"
    assert req["timeout"] == 2.5
    assert req["data"] is None


def test_empty_body_is_empty_list(event_loop):
    client, _ = _client(_response(200, b""))
    assert event_loop.run_until_complete(client.get(["v1", "agent", "check", "pass", "service:web"])) == []


def test_post_sends_body(event_loop):
    client, session = _client(_response(200, b""))
    event_loop.run_until_complete(client.post(["v1", "agent", "service", "register"], [("token", "t")], b'{"ID": "web"}'))
    (req,) = session.requests
    assert req["method"] == "POST"
    assert req["data"] == b'{"ID": "web"}'
    assert req["headers"] == {"Content-Type": "application/json"}


def test_500_is_registry_fault(event_loop):
    client, _ = _client(_response(500, b"rpc error: No cluster leader"))
    with pytest.raises(RegistryFaultError) as ei:
        event_loop.run_until_complete(client.get(["v1", "agent", "check", "pass", "service:web"]))
    assert ei.value.status == 500
    assert "No cluster leader" in ei.value.reason


@pytest.mark.parametrize("status", [403, 404, 503])
def test_other_statuses_are_http_errors(event_loop, status):
    client, _ = _client(_response(status, b"nope"))
    with pytest.raises(RegistryHTTPError) as ei:
        event_loop.run_until_complete(client.get(["v1", "agent", "service", "deregister", "web"]))
    assert ei.value.status == status
    assert not isinstance(ei.value, RegistryFaultError)


def test_connection_error_is_transport_error(event_loop):
    client, _ = _client(requests.ConnectionError("connection refused"))
    with pytest.raises(RegistryTransportError):
        event_loop.run_until_complete(client.get(["v1", "health", "service", "web"]))


def test_invalid_json_is_decode_error(event_loop):
    client, _ = _client(_response(200, b"<html>"))
    with pytest.raises(RegistryDecodeError):
        event_loop.run_until_complete(client.get(["v1", "health", "service", "web"]))


def test_from_settings(make_settings):
    client = RequestsRegistryClient.from_settings(make_settings(consul_scheme="https", consul_host="c1", consul_port=8501, http_timeout=3))
    assert (client.scheme, client.host, client.port, client.timeout) == ("https", "c1", 8501, 3)

"""Tests for ship.platform.http module."""

from __future__ import annotations

import base64

from ship.core.result import Err, Ok
from ship.platform.http import BasicAuth, HttpClient, HttpError, MockHttpClient, RealHttpClient

_URL = "http://localhost:2015/api/deploy-caddy"


class TestBasicAuth:
    def test_header(self) -> None:
        header = BasicAuth("acct", "s3cret").header()
        assert header.startswith("Basic ")
        assert base64.b64decode(header[6:]) == b"acct:s3cret"

    def test_password_not_in_repr(self) -> None:
        assert "s3cret" not in repr(BasicAuth("acct", "s3cret"))


class TestHttpError:
    def test_str_with_status(self) -> None:
        assert str(HttpError(url=_URL, status=500, message="boom")) == f"HTTP 500: boom ({_URL})"

    def test_str_network(self) -> None:
        assert str(HttpError(url=_URL, status=0, message="refused")) == f"refused ({_URL})"


class TestMockHttpClient:
    def test_records_requests(self) -> None:
        client = MockHttpClient()
        client.set_response(_URL, 200, "ok")
        auth = BasicAuth("acct", "key")

        result = client.post_json(_URL, {"caddy_version": "v1.0"}, auth=auth)

        assert isinstance(result, Ok)
        assert result.value.body == "ok"
        assert client.requests == [
            MockHttpClient.Request(url=_URL, payload={"caddy_version": "v1.0"}, auth=auth)
        ]

    def test_error_status(self) -> None:
        client = MockHttpClient()
        client.set_response(_URL, 401, "unauthorized")

        result = client.post_json(_URL, {})

        assert isinstance(result, Err)
        assert result.error.status == 401
        assert result.error.message == "unauthorized"

    def test_unknown_url_is_404(self) -> None:
        result = MockHttpClient().post_json(_URL, {})
        assert isinstance(result, Err)
        assert result.error.status == 404

    def test_network_error(self) -> None:
        client = MockHttpClient()
        client.set_error(_URL, HttpError(url=_URL, status=0, message="connection refused"))

        result = client.post_json(_URL, {})

        assert isinstance(result, Err)
        assert result.error.status == 0


def test_clients_satisfy_protocol() -> None:
    assert isinstance(MockHttpClient(), HttpClient)
    assert isinstance(RealHttpClient(), HttpClient)


def test_real_client_reports_connection_failure() -> None:
    # Port 9 on localhost is the discard service; nothing listens there in CI.
    result = RealHttpClient(timeout=2.0).post_json("http://127.0.0.1:9/api", {"a": 1})
    assert isinstance(result, Err)
    assert result.error.status == 0

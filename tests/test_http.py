from __future__ import annotations

import base64
import io

import httpx
import pytest

from fedora_oai_driver.adapters.http import Downloader
from fedora_oai_driver.core.errors import TransportError


def _basic(user: str, password: str) -> str:
    return "Basic " + base64.b64encode(f"{user}:{password}".encode()).decode()


def test_get_streams_body_and_sends_credentials_to_bound_host():
    seen = []

    def responder(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"<sparql/>" * 1000)

    downloader = Downloader.for_base_url(
        "http://localhost:8080/fedora/",
        user="fedoraAdmin",
        password="secret",
        transport=httpx.MockTransport(responder),
    )
    sink = io.BytesIO()

    written = downloader.get("http://localhost:8080/fedora/risearch?type=tuples", sink)

    assert written == len(b"<sparql/>" * 1000)
    assert sink.getvalue() == b"<sparql/>" * 1000
    assert seen[0].headers["Authorization"] == _basic("fedoraAdmin", "secret")


def test_get_does_not_send_credentials_to_other_hosts():
    seen = []

    def responder(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    downloader = Downloader.for_base_url(
        "http://localhost:8080/fedora/",
        user="fedoraAdmin",
        password="secret",
        transport=httpx.MockTransport(responder),
    )

    downloader.get("http://example.org/Identify.xml", io.BytesIO())
    downloader.get("http://localhost:9090/Identify.xml", io.BytesIO())

    assert all("Authorization" not in request.headers for request in seen)


def test_error_status_raises_transport_error():
    downloader = Downloader.for_base_url(
        "http://localhost:8080/fedora/",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, content=b"boom")),
    )

    with pytest.raises(TransportError) as excinfo:
        downloader.get("http://localhost:8080/fedora/risearch?query=secret", io.BytesIO())

    assert "HTTP 500" in str(excinfo.value)
    assert "query=secret" not in str(excinfo.value)


def test_connection_failure_is_chained():
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    downloader = Downloader.for_base_url("http://localhost:8080/fedora/", transport=httpx.MockTransport(responder))

    with pytest.raises(TransportError) as excinfo:
        downloader.get("http://localhost:8080/fedora/risearch", io.BytesIO())

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.parametrize(
    ("base_url", "host", "port"),
    [
        ("http://localhost/fedora/", "localhost", 80),
        ("https://repo.example.org/fedora/", "repo.example.org", 443),
        ("http://repo.example.org:8080/fedora/", "repo.example.org", 8080),
    ],
)
def test_for_base_url_binds_host_and_port(base_url, host, port):
    downloader = Downloader.for_base_url(base_url)

    assert (downloader.host, downloader.port) == (host, port)


def test_for_base_url_rejects_non_http_urls():
    with pytest.raises(ValueError):
        Downloader.for_base_url("ftp://repo.example.org/fedora/")


def test_password_is_not_in_repr():
    downloader = Downloader(host="localhost", port=8080, user="fedoraAdmin", password="secret")

    assert "secret" not in repr(downloader)

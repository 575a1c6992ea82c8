"""
HTTP download client bound to a single repository host.

The :class:`Downloader` streams a response body into a caller-supplied binary
sink. HTTP basic credentials are only sent to the host and port the downloader
was built for, so following a link to another server never leaks them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import LoggerAdapter
from typing import BinaryIO, Optional

import httpx

from ..core.errors import TransportError
from ..core.logging import get_logger

DEFAULT_TIMEOUT = 30.0
DEFAULT_CHUNK_SIZE = 64 * 1024
USER_AGENT = "fedora-oai-driver"


def _redact(url: httpx.URL) -> str:
    port = f":{url.port}" if url.port else ""
    return f"{url.scheme}://{url.host}{port}{url.path}"


@dataclass(slots=True)
class Downloader:
    """
    Synchronous streaming download client.

    Parameters
    ----------
    host:
        Repository host name credentials are bound to.
    port:
        Repository port credentials are bound to.
    user, password:
        HTTP basic credentials.
    timeout:
        Per-request timeout in seconds. The driver enforces no timeout of its own.
    transport:
        Optional :mod:`httpx` transport, mainly for tests.
    """

    host: str
    port: int
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    transport: Optional[httpx.BaseTransport] = field(default=None, repr=False)
    logger: LoggerAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"host": self.host, "port": self.port},
        )

    @classmethod
    def for_base_url(
        cls,
        base_url: str,
        *,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "Downloader":
        """Build a downloader bound to the host and port of ``base_url``."""

        url = httpx.URL(base_url)
        if url.scheme not in {"http", "https"} or not url.host:
            raise ValueError(f"Not an absolute http(s) URL: {base_url!r}")
        port = url.port or (443 if url.scheme == "https" else 80)
        return cls(host=url.host, port=port, user=user, password=password, timeout=timeout, transport=transport)

    def _build_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self.transport,
        )

    def _auth_for(self, url: httpx.URL) -> Optional[httpx.BasicAuth]:
        if self.user is None:
            return None
        port = url.port or (443 if url.scheme == "https" else 80)
        if url.host != self.host or port != self.port:
            return None
        return httpx.BasicAuth(self.user, self.password or "")

    def get(self, url: str, sink: BinaryIO) -> int:
        """
        Stream the body of ``url`` into ``sink`` and return the byte count.

        Raises
        ------
        TransportError
            On connection failures and non-success status codes.
        """

        target = httpx.URL(url)
        written = 0
        try:
            with self._build_client() as client:
                with client.stream("GET", target, auth=self._auth_for(target)) as response:
                    if response.is_error:
                        raise TransportError(f"HTTP {response.status_code} error for GET {_redact(target)}")
                    for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                        sink.write(chunk)
                        written += len(chunk)
        except httpx.HTTPError as exc:
            self.logger.error("HTTP error during download", extra={"url": _redact(target), "error": str(exc)})
            raise TransportError(f"HTTP error while downloading {_redact(target)}: {exc}") from exc

        self.logger.debug(
            "Download complete",
            extra={"url": _redact(target), "status_code": response.status_code, "bytes": written},
        )
        return written

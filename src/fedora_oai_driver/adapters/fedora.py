"""
OAI provider driver backed by a Fedora repository's resource index.

The driver answers the provider's questions by running tuple queries against
``<baseURL>risearch``. Query text comes from a pluggable
:class:`~fedora_oai_driver.core.queries.QueryFactory`; metadata formats come
straight from configuration and never touch the network.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from logging import LoggerAdapter
from pathlib import Path
from typing import List, Mapping, Optional, TextIO, Tuple

import httpx

from ..config import DriverConfig
from ..core.dates import parse_date
from ..core.errors import RepositoryError
from ..core.formats import MetadataFormat
from ..core.logging import get_logger, log_progress
from ..core.queries import QueryFactory, QueryFactoryRegistry, default_query_factories
from .base import SetInfo
from .http import DEFAULT_TIMEOUT, Downloader
from .risearch import RISearchClient
from .tuples import Literal, Node, Row, URIReference

_LOGGER = get_logger(__name__)


class DriverState(str, Enum):
    """Lifecycle of a :class:`FedoraOAIDriver`."""

    UNCONFIGURED = "unconfigured"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


def _literal(row: Row, name: str) -> Optional[str]:
    value: Optional[Node] = row.get(name)
    if value is None:
        return None
    if not isinstance(value, Literal):
        raise RepositoryError(f"Expected a literal for '{name}', got {type(value).__name__}")
    return value.lexical_form


def _uri(row: Row, name: str) -> Optional[str]:
    value: Optional[Node] = row.get(name)
    if value is None:
        return None
    if not isinstance(value, URIReference):
        raise RepositoryError(f"Expected a URI reference for '{name}', got {type(value).__name__}")
    return value.uri


class FedoraOAIDriver:
    """
    Driver implementing :class:`~fedora_oai_driver.adapters.base.OAIDriver`.

    Construct it, then call :meth:`init` with the driver properties (or use
    :meth:`from_properties`). Until initialization has fully succeeded every
    operation raises :class:`RepositoryError`.

    The driver is not thread-safe; callers serialize access per instance.

    Parameters
    ----------
    query_factories:
        Registry the ``queryFactory`` property is resolved against. Defaults to
        :func:`~fedora_oai_driver.core.queries.default_query_factories`.
    transport:
        Optional :mod:`httpx` transport handed to the downloader.
    timeout:
        Download timeout in seconds.
    temp_dir:
        Directory for staged query results.
    """

    def __init__(
        self,
        *,
        query_factories: Optional[QueryFactoryRegistry] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
        temp_dir: Optional[Path] = None,
    ) -> None:
        self._query_factories = query_factories or default_query_factories()
        self._transport = transport
        self._timeout = timeout
        self._temp_dir = temp_dir
        self._state = DriverState.UNCONFIGURED
        self._config: Optional[DriverConfig] = None
        self._query_factory: Optional[QueryFactory] = None
        self._client: Optional[RISearchClient] = None
        self.logger: LoggerAdapter = _LOGGER

    @classmethod
    def from_properties(cls, props: Mapping[str, str], **kwargs: object) -> "FedoraOAIDriver":
        """Construct and initialize a driver in one step."""

        driver = cls(**kwargs)  # type: ignore[arg-type]
        driver.init(props)
        return driver

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def config(self) -> DriverConfig:
        return self._require_ready()[0]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, props: Mapping[str, str]) -> None:
        """
        Validate configuration and prepare the driver.

        No network call is made. On failure the driver stays unusable and the
        error is raised as :class:`RepositoryError` (or a subclass).
        """

        if self._state is DriverState.CLOSED:
            raise RepositoryError("Driver has been closed.")
        self._state = DriverState.INITIALIZING
        try:
            config = DriverConfig.from_properties(props)
            query_factory = self._build_query_factory(config.query_factory, props)
            try:
                downloader = Downloader.for_base_url(
                    config.base_url,
                    user=config.user,
                    password=config.password,
                    timeout=self._timeout,
                    transport=self._transport,
                )
            except Exception as exc:
                raise RepositoryError("Error parsing baseURL") from exc
        except BaseException:
            self._state = DriverState.UNCONFIGURED
            raise

        self._config = config
        self._query_factory = query_factory
        self._client = RISearchClient(base_url=config.base_url, downloader=downloader, temp_dir=self._temp_dir)
        self._state = DriverState.READY
        self.logger = get_logger(__name__, extra={"base_url": config.base_url})
        log_progress(
            self.logger,
            "Driver initialized",
            operation="init",
            status="ready",
            extra={"query_factory": config.query_factory, "formats": [fmt.prefix for fmt in config.metadata_formats]},
        )

    def _build_query_factory(self, name: str, props: Mapping[str, str]) -> QueryFactory:
        try:
            factory = self._query_factories.create(name)
            factory.init(props)
        except Exception as exc:
            raise RepositoryError(f"Unable to initialize {name}") from exc
        return factory

    def close(self) -> None:
        """Move to the terminal closed state. Holds no resources between calls."""

        self._state = DriverState.CLOSED

    def _require_ready(self) -> Tuple[DriverConfig, QueryFactory, RISearchClient]:
        if self._state is not DriverState.READY or self._config is None or self._query_factory is None or self._client is None:
            raise RepositoryError(f"Driver is not ready (state: {self._state.value}).")
        return self._config, self._query_factory, self._client

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def write_identify(self, out: TextIO) -> None:
        """Relay the configured Identify document to ``out`` unchanged."""

        config, _, client = self._require_ready()
        client.fetch_document(config.identify_url, out)
        log_progress(self.logger, "Identify document relayed", operation="identify", status="ok", extra={"url": config.identify_url})

    def get_latest_date(self) -> datetime:
        """
        Return the newest record change time reported by the resource index.

        Reads at most one row; the row iterator is always closed.
        """

        _, factory, client = self._require_ready()
        tuples = None
        try:
            tuples = client.fetch_tuples(factory.latest_record_date_query())
            row = next(tuples, None)
            if row is None:
                raise RepositoryError("No rows returned from query")
            lexical = _literal(row, "date")
            if lexical is None:
                raise RepositoryError("A row was returned, but it did not contain a 'date' binding")
            latest = parse_date(lexical)
        except Exception as exc:
            raise RepositoryError("Error querying for latest changed record date") from exc
        finally:
            if tuples is not None:
                tuples.close()
        log_progress(self.logger, "Latest record date resolved", operation="latest-date", status="ok", extra={"date": latest.isoformat()})
        return latest

    def list_metadata_formats(self) -> List[MetadataFormat]:
        """Return the configured metadata formats in declaration order."""

        config, _, _ = self._require_ready()
        return list(config.metadata_formats)

    def list_set_info(self) -> List[SetInfo]:
        """
        Return every set known to the resource index.

        All rows are read before returning; any malformed row fails the whole
        call and no partial list is returned.
        """

        _, factory, client = self._require_ready()
        sets: List[SetInfo] = []
        tuples = None
        try:
            tuples = client.fetch_tuples(factory.set_info_query())
            for row in tuples:
                spec = _literal(row, "setSpec")
                if spec is None:
                    raise RepositoryError("Unexpected: got null setSpec")
                name = _literal(row, "setName")
                if name is None:
                    raise RepositoryError("Unexpected: got null setName")
                info = SetInfo(spec=spec, name=name, dissemination_type=_uri(row, "setDiss"))
                self.logger.debug("Set found", extra={"set_spec": spec, "set_name": name, "set_diss": info.dissemination_type})
                sets.append(info)
        except Exception as exc:
            raise RepositoryError("Error querying for set information") from exc
        finally:
            if tuples is not None:
                tuples.close()
        log_progress(self.logger, "Set information listed", operation="list-sets", status="ok", extra={"rows": len(sets)})
        return sets

    def list_records(
        self,
        from_date: Optional[datetime],
        until_date: Optional[datetime],
        md_prefix: str,
        with_content: bool,
    ) -> List[object]:
        """Record listing is not implemented by this driver."""

        self._require_ready()
        raise RepositoryError("listRecords is not supported by this driver")

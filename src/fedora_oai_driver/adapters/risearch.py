"""
Client for the Fedora resource index search service (``risearch``).

Results can be arbitrarily large (every set, every record change), so they are
never buffered in memory. Each request is staged through its own uniquely
named temporary file and rows are then read from that file lazily by a
:class:`~fedora_oai_driver.adapters.tuples.TupleIterator`, which deletes the
file when it is closed.
"""

from __future__ import annotations

import tempfile
from contextlib import suppress
from dataclasses import dataclass, field
from logging import LoggerAdapter
from pathlib import Path
from typing import Dict, Mapping, Optional, TextIO
from urllib.parse import quote, urlencode

from ..core.errors import RepositoryError
from ..core.logging import get_logger
from .http import Downloader
from .tuples import TupleIterator

RISEARCH_PATH = "risearch"
RESULT_TYPE = "tuples"
RESULT_FORMAT = "Sparql"
QUERY_TEMP_PREFIX = "proai-fedora-queryresult-"
IDENTIFY_TEMP_PREFIX = "proai-fedora-identify-"
TEMP_SUFFIX = ".xml"


def build_query_url(base_url: str, params: Mapping[str, str], *, path: str = RISEARCH_PATH) -> str:
    """
    Return ``<base_url><path>?<params>`` with the tuple result directives applied.

    ``type=tuples`` and ``format=Sparql`` always replace caller-supplied values.
    Keys are sorted and every key and value is UTF-8 percent-encoded with no
    safe characters, so a space becomes ``%20`` and ``&``/``=`` never appear
    unescaped inside a value. ``base_url`` is expected to end with ``/``.
    """

    merged: Dict[str, str] = dict(params)
    merged["type"] = RESULT_TYPE
    merged["format"] = RESULT_FORMAT
    query = urlencode(sorted(merged.items()), safe="", quote_via=quote)
    return f"{base_url}{path}?{query}"


def _remove(path: Path) -> None:
    with suppress(OSError):
        path.unlink(missing_ok=True)


@dataclass(slots=True)
class RISearchClient:
    """
    Resource index client staging every response through a temporary file.

    Parameters
    ----------
    base_url:
        Repository base URL ending with ``/``.
    downloader:
        Transport used to fetch bytes.
    temp_dir:
        Directory for staged responses. Defaults to the system temp directory.
    """

    base_url: str
    downloader: Downloader
    temp_dir: Optional[Path] = None
    logger: LoggerAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"base_url": self.base_url},
        )

    def _download_to_temp(self, url: str, prefix: str) -> Path:
        # The path is recorded before the download so a failure can remove it.
        path: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(prefix=prefix, suffix=TEMP_SUFFIX, dir=self.temp_dir, delete=False) as sink:
                path = Path(sink.name)
                self.downloader.get(url, sink)
        except BaseException:
            if path is not None:
                _remove(path)
            raise
        return path

    def fetch_tuples(self, params: Mapping[str, str]) -> TupleIterator:
        """
        Run a tuple query and return a lazy iterator over its rows.

        The caller owns the returned iterator and must close it. If anything
        fails before the iterator is returned, the staged file is removed and a
        :class:`RepositoryError` chained to the original failure is raised.
        """

        url = build_query_url(self.base_url, params)
        self.logger.debug("Querying resource index", extra={"url": url})
        try:
            path = self._download_to_temp(url, QUERY_TEMP_PREFIX)
        except Exception as exc:
            raise RepositoryError("Error querying remote repository") from exc
        try:
            return TupleIterator.from_path(path)
        except Exception as exc:
            _remove(path)
            raise RepositoryError("Error querying remote repository") from exc

    def fetch_document(self, url: str, out: TextIO) -> None:
        """
        Copy the document at ``url`` to ``out`` line by line.

        Every line written to ``out`` ends with a newline. The staged file is
        always removed.
        """

        try:
            path = self._download_to_temp(url, IDENTIFY_TEMP_PREFIX)
        except Exception as exc:
            raise RepositoryError(f"Error getting identify document from {url}") from exc
        try:
            with path.open("r", encoding="utf-8") as reader:
                for line in reader:
                    out.write(line if line.endswith("\n") else line + "\n")
        except (OSError, UnicodeDecodeError) as exc:
            raise RepositoryError(f"Error reading {url}") from exc
        finally:
            _remove(path)

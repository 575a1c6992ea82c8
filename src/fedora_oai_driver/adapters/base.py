"""
Capability protocol expected by the OAI provider framework.

Drivers are intentionally narrow in scope: they answer a handful of questions
about the repository (identify document, latest change, sets, formats) and
leave request handling, paging and response rendering to the provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional, Protocol, TextIO

from ..core.errors import (
    ConfigurationError,
    MissingPropertyError,
    RepositoryError,
    TransportError,
    TupleParseError,
    UnparsableDateError,
)
from ..core.formats import MetadataFormat

__all__ = [
    "ConfigurationError",
    "MissingPropertyError",
    "OAIDriver",
    "RepositoryError",
    "SetInfo",
    "TransportError",
    "TupleParseError",
    "UnparsableDateError",
]


@dataclass(frozen=True, slots=True)
class SetInfo:
    """
    Descriptor for a single OAI set.

    Attributes
    ----------
    spec:
        Hierarchical set identifier, e.g. ``collections:maps``.
    name:
        Human-readable set name.
    dissemination_type:
        URI of the dissemination producing the set description, when the
        repository provides one.
    """

    spec: str
    name: str
    dissemination_type: Optional[str] = None


class OAIDriver(Protocol):
    """Protocol implemented by repository drivers."""

    def init(self, props: Mapping[str, str]) -> None:
        """Validate configuration and prepare the driver for use."""

    def write_identify(self, out: TextIO) -> None:
        """Relay the repository's Identify document to ``out``."""

    def get_latest_date(self) -> datetime:
        """Return the timestamp of the most recently changed record."""

    def list_metadata_formats(self) -> Iterable[MetadataFormat]:
        """Return the configured metadata formats."""

    def list_set_info(self) -> Iterable[SetInfo]:
        """Return descriptors for every set in the repository."""

    def list_records(
        self,
        from_date: Optional[datetime],
        until_date: Optional[datetime],
        md_prefix: str,
        with_content: bool,
    ) -> Iterable[object]:
        """Return records changed in the given range."""

    def close(self) -> None:
        """Release resources held by the driver."""

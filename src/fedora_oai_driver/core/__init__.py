"""
Core building blocks shared by the driver, its transport and the CLI.

This package has no third-party dependencies and performs no I/O: it holds
error kinds, configuration property names, date normalisation, metadata format
declarations, query factories and logging helpers.
"""

from .dates import DATE_FORMATS, format_date, parse_date
from .errors import (
    ConfigurationError,
    MissingPropertyError,
    RepositoryError,
    TransportError,
    TupleParseError,
    UnparsableDateError,
)
from .formats import MetadataFormat, build_metadata_formats
from .logging import configure_logging, get_logger, log_progress
from .queries import (
    ITQLQueryFactory,
    QueryFactory,
    QueryFactoryRegistry,
    SPARQLQueryFactory,
    default_query_factories,
)

__all__ = [
    "DATE_FORMATS",
    "format_date",
    "parse_date",
    "ConfigurationError",
    "MissingPropertyError",
    "RepositoryError",
    "TransportError",
    "TupleParseError",
    "UnparsableDateError",
    "MetadataFormat",
    "build_metadata_formats",
    "configure_logging",
    "get_logger",
    "log_progress",
    "ITQLQueryFactory",
    "QueryFactory",
    "QueryFactoryRegistry",
    "SPARQLQueryFactory",
    "default_query_factories",
]

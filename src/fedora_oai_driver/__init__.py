"""
Fedora repository driver for OAI-PMH harvesting providers.

:class:`~fedora_oai_driver.adapters.fedora.FedoraOAIDriver` answers the
provider's Identify, ListMetadataFormats and ListSets questions and reports the
latest record change by querying the repository's resource index.
"""

from .adapters import FedoraOAIDriver, OAIDriver, SetInfo
from .config import DriverConfig, load_properties
from .core import MetadataFormat, RepositoryError, parse_date

__all__ = [
    "DriverConfig",
    "FedoraOAIDriver",
    "MetadataFormat",
    "OAIDriver",
    "RepositoryError",
    "SetInfo",
    "load_properties",
    "parse_date",
]

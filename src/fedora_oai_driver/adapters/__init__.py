"""
Repository-facing adapters.

* :mod:`.http` streams bytes from the repository host.
* :mod:`.tuples` reads SPARQL XML tuple results lazily.
* :mod:`.risearch` builds resource index requests and stages their results.
* :mod:`.fedora` composes them into the driver used by the OAI provider.
"""

from .base import OAIDriver, SetInfo
from .fedora import DriverState, FedoraOAIDriver
from .http import Downloader
from .risearch import RISearchClient, build_query_url
from .tuples import BlankNode, Literal, TupleIterator, URIReference

__all__ = [
    "OAIDriver",
    "SetInfo",
    "DriverState",
    "FedoraOAIDriver",
    "Downloader",
    "RISearchClient",
    "build_query_url",
    "BlankNode",
    "Literal",
    "TupleIterator",
    "URIReference",
]

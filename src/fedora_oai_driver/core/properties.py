"""
Configuration property names understood by the Fedora driver.

All keys share the ``driver.fedora.`` namespace so a single properties mapping
can configure the provider framework and several drivers side by side.
"""

from __future__ import annotations

from typing import Mapping

from .errors import MissingPropertyError

NS = "driver.fedora."

PROP_BASEURL = NS + "baseURL"
PROP_USER = NS + "user"
PROP_PASS = NS + "pass"
PROP_IDENTIFY = NS + "identify"
PROP_ITEMID = NS + "itemID"
PROP_SETSPEC = NS + "setSpec"
PROP_SETSPEC_NAME = NS + "setSpec.name"
PROP_SETSPEC_DISSTYPE = NS + "setSpec.dissType"
PROP_QUERY_FACTORY = NS + "queryFactory"
PROP_FORMATS = NS + "md.formats"
PROP_FORMAT_START = NS + "md.format."
PROP_FORMAT_PFX_END = ".mdPrefix"
PROP_FORMAT_LOC_END = ".loc"
PROP_FORMAT_URI_END = ".uri"
PROP_FORMAT_DISSTYPE_END = ".dissType"


def format_key(prefix: str, suffix: str) -> str:
    """Return the per-format property key, e.g. ``driver.fedora.md.format.oai_dc.uri``."""

    return f"{PROP_FORMAT_START}{prefix}{suffix}"


def get_required(props: Mapping[str, str], key: str) -> str:
    """Return ``props[key]`` or raise :class:`MissingPropertyError` naming the key."""

    value = props.get(key)
    if value is None:
        raise MissingPropertyError(key)
    return value

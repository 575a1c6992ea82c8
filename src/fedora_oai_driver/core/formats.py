"""
Metadata format declarations built from driver configuration.

Formats are listed by key in ``driver.fedora.md.formats``; each key carries its
namespace URI, schema location and dissemination type. The optional
``.mdPrefix`` property replaces the key as the prefix advertised to harvesters,
which allows two keys to share one public prefix across deployments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Tuple

from .properties import (
    PROP_FORMAT_DISSTYPE_END,
    PROP_FORMAT_LOC_END,
    PROP_FORMAT_PFX_END,
    PROP_FORMAT_URI_END,
    PROP_FORMATS,
    format_key,
    get_required,
)


@dataclass(frozen=True, slots=True)
class MetadataFormat:
    """
    Metadata format advertised through ``ListMetadataFormats``.

    Attributes
    ----------
    prefix:
        Public ``metadataPrefix``.
    namespace_uri:
        XML namespace of the format.
    schema_location:
        URL of the XML schema.
    dissemination_type:
        Repository-side dissemination producing records in this format.
    """

    prefix: str
    namespace_uri: str
    schema_location: str
    dissemination_type: str

    def to_dict(self) -> dict[str, str]:
        return {
            "prefix": self.prefix,
            "namespace_uri": self.namespace_uri,
            "schema_location": self.schema_location,
            "dissemination_type": self.dissemination_type,
        }


def build_metadata_formats(props: Mapping[str, str]) -> Tuple[MetadataFormat, ...]:
    """
    Build the ordered tuple of formats declared in ``props``.

    Raises :class:`~fedora_oai_driver.core.errors.MissingPropertyError` for the
    first missing key; nothing is returned in that case.
    """

    formats: List[MetadataFormat] = []
    for key in get_required(props, PROP_FORMATS).split():
        namespace_uri = get_required(props, format_key(key, PROP_FORMAT_URI_END))
        schema_location = get_required(props, format_key(key, PROP_FORMAT_LOC_END))
        diss_type = get_required(props, format_key(key, PROP_FORMAT_DISSTYPE_END))
        prefix = props.get(format_key(key, PROP_FORMAT_PFX_END)) or key
        formats.append(
            MetadataFormat(
                prefix=prefix,
                namespace_uri=namespace_uri,
                schema_location=schema_location,
                dissemination_type=diss_type,
            )
        )
    return tuple(formats)

"""
Configuration loading for the Fedora OAI driver.

Driver properties are flat ``driver.fedora.*`` keys. They are usually supplied
by the provider framework as a mapping; the CLI reads them from a YAML file via
:func:`load_properties`.

Repository credentials may be kept out of that file. :func:`load_secrets` looks
for a TOML secrets file in this order:

1. Explicit ``FEDORA_OAI_SECRETS_PATH`` environment variable.
2. ``.secrets/secret.toml`` relative to the current directory.
3. ``.secrets/secrets.toml`` relative to the current directory.

and :func:`merge_credentials` fills ``user``/``pass`` from its ``[fedora]``
section when the properties do not set them.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import yaml

from .core.errors import ConfigurationError, RepositoryError
from .core.formats import MetadataFormat, build_metadata_formats
from .core.properties import (
    PROP_BASEURL,
    PROP_IDENTIFY,
    PROP_ITEMID,
    PROP_PASS,
    PROP_QUERY_FACTORY,
    PROP_SETSPEC,
    PROP_SETSPEC_DISSTYPE,
    PROP_SETSPEC_NAME,
    PROP_USER,
    get_required,
)

_ENV_SECRETS = "FEDORA_OAI_SECRETS_PATH"


@dataclass(frozen=True, slots=True)
class DriverConfig:
    """
    Validated, immutable driver configuration.

    Built once by :meth:`from_properties`; ``base_url`` always ends with ``/``.
    """

    base_url: str
    user: str
    password: str = field(repr=False)
    identify_url: str
    item_id: str
    set_spec: str
    set_spec_name: str
    set_spec_diss_type: str
    query_factory: str
    metadata_formats: Tuple[MetadataFormat, ...]

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "DriverConfig":
        """
        Validate ``props`` and build a configuration.

        Raises
        ------
        MissingPropertyError
            For the first required key that is absent.
        RepositoryError
            When the identify location is not an absolute URL.
        """

        base_url = get_required(props, PROP_BASEURL)
        if not base_url.endswith("/"):
            base_url += "/"
        user = get_required(props, PROP_USER)
        password = get_required(props, PROP_PASS)
        item_id = get_required(props, PROP_ITEMID)
        set_spec = get_required(props, PROP_SETSPEC)
        set_spec_name = get_required(props, PROP_SETSPEC_NAME)
        set_spec_diss_type = get_required(props, PROP_SETSPEC_DISSTYPE)

        metadata_formats = build_metadata_formats(props)

        identify_url = get_required(props, PROP_IDENTIFY)
        parts = urlsplit(identify_url)
        if not parts.scheme or not parts.netloc:
            raise RepositoryError(f"Identify property is not a valid URL: {identify_url}")

        return cls(
            base_url=base_url,
            user=user,
            password=password,
            identify_url=identify_url,
            item_id=item_id,
            set_spec=set_spec,
            set_spec_name=set_spec_name,
            set_spec_diss_type=set_spec_diss_type,
            query_factory=get_required(props, PROP_QUERY_FACTORY),
            metadata_formats=metadata_formats,
        )


def load_properties(path: Path | str) -> Dict[str, str]:
    """
    Load driver properties from a flat YAML mapping.

    Values are coerced to strings; ``null`` values are dropped so they count as
    unset.
    """

    location = Path(path)
    if not location.is_file():
        raise ConfigurationError(f"Configuration file '{location}' does not exist.")
    try:
        with location.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse '{location}': {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Configuration file '{location}' must contain a mapping of property keys.")

    properties: Dict[str, str] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            raise ConfigurationError(f"Property '{key}' in '{location}' must be a scalar value.")
        if isinstance(value, bool):
            value = "true" if value else "false"
        properties[str(key)] = str(value)
    return properties


@dataclass(slots=True)
class FedoraCredentials:
    """Repository credentials read from the ``[fedora]`` secrets section."""

    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)


@dataclass(slots=True)
class SecretsBundle:
    """Parsed secret values and where they came from."""

    source_path: Optional[Path]
    data: Dict[str, Dict[str, object]]
    fedora: FedoraCredentials = field(default_factory=FedoraCredentials)


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(_ENV_SECRETS)
    if env_override:
        yield Path(env_override).expanduser()
    secrets_dir = Path.cwd() / ".secrets"
    for filename in ("secret.toml", "secrets.toml"):
        yield secrets_dir / filename


def _extract_credentials(raw: Mapping[str, object]) -> FedoraCredentials:
    section = raw.get("fedora", {})
    if not isinstance(section, dict):
        section = {}

    def _extract(*keys: str) -> Optional[str]:
        for key in keys:
            value = section.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    return FedoraCredentials(user=_extract("user"), password=_extract("pass", "password"))


def load_secrets(strict: bool = False) -> SecretsBundle:
    """
    Load the first secrets file found.

    Parameters
    ----------
    strict:
        Raise :class:`ConfigurationError` when no secrets file exists instead of
        returning an empty bundle.
    """

    for path in _candidate_paths():
        if path.is_file():
            try:
                with path.open("rb") as handle:
                    data = tomllib.load(handle)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigurationError(f"Failed to parse secrets file '{path}': {exc}") from exc
            return SecretsBundle(source_path=path, data=data, fedora=_extract_credentials(data))

    if strict:
        raise ConfigurationError(f"No secrets file found. Configure {_ENV_SECRETS} or .secrets/secret.toml.")
    return SecretsBundle(source_path=None, data={})


def merge_credentials(props: Mapping[str, str], secrets: SecretsBundle) -> Dict[str, str]:
    """Return a copy of ``props`` with ``user``/``pass`` filled from ``secrets`` when unset."""

    merged = dict(props)
    if PROP_USER not in merged and secrets.fedora.user:
        merged[PROP_USER] = secrets.fedora.user
    if PROP_PASS not in merged and secrets.fedora.password:
        merged[PROP_PASS] = secrets.fedora.password
    return merged

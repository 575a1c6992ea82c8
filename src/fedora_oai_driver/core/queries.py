"""
Query factories producing resource index request parameters.

A query factory turns driver configuration into the ``risearch`` parameters for
each question the driver asks. Factories are looked up by name in a
:class:`QueryFactoryRegistry`; the ``driver.fedora.queryFactory`` property
selects one. Legacy fully qualified class names are registered as aliases so
existing configuration files keep working.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from textwrap import dedent
from typing import Callable, Dict, List, Mapping, MutableMapping, Optional, Protocol

from .properties import PROP_ITEMID, PROP_SETSPEC, PROP_SETSPEC_DISSTYPE, PROP_SETSPEC_NAME, get_required

VIEW_NS = "info:fedora/fedora-system:def/view#"


class QueryFactory(Protocol):
    """Protocol implemented by query factories."""

    def init(self, props: Mapping[str, str]) -> None:
        """Read the configuration needed to build queries."""

    def latest_record_date_query(self) -> Dict[str, str]:
        """Parameters for a query binding ``date`` to the newest change."""

    def set_info_query(self) -> Dict[str, str]:
        """Parameters for a query binding ``setSpec``, ``setName`` and optionally ``setDiss``."""


@dataclass(slots=True)
class _PredicateSettings:
    item_id: str
    set_spec: str
    set_name: str
    set_diss_type: str

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "_PredicateSettings":
        return cls(
            item_id=get_required(props, PROP_ITEMID),
            set_spec=get_required(props, PROP_SETSPEC),
            set_name=get_required(props, PROP_SETSPEC_NAME),
            set_diss_type=get_required(props, PROP_SETSPEC_DISSTYPE),
        )


class _BaseQueryFactory:
    lang: str = ""

    def __init__(self) -> None:
        self._settings: Optional[_PredicateSettings] = None

    def init(self, props: Mapping[str, str]) -> None:
        self._settings = _PredicateSettings.from_properties(props)

    @property
    def settings(self) -> _PredicateSettings:
        if self._settings is None:
            raise RuntimeError(f"{type(self).__name__} used before init().")
        return self._settings

    def _params(self, query: str) -> Dict[str, str]:
        return {"lang": self.lang, "query": dedent(query).strip()}


class ITQLQueryFactory(_BaseQueryFactory):
    """Builds iTQL queries. iTQL has no optional patterns, so ``setDiss`` is never bound."""

    lang = "itql"

    def latest_record_date_query(self) -> Dict[str, str]:
        s = self.settings
        return self._params(
            f"""
            select $date
            from <#ri>
            where $item <{s.item_id}> $itemID
            and $item <fedora-view:disseminates> $recordDiss
            and $recordDiss <fedora-view:lastModifiedDate> $date
            order by $date desc
            limit 1
            """
        )

    def set_info_query(self) -> Dict[str, str]:
        s = self.settings
        return self._params(
            f"""
            select $setSpec $setName
            from <#ri>
            where $set <{s.set_spec}> $setSpec
            and $set <{s.set_name}> $setName
            order by $setSpec
            """
        )


class SPARQLQueryFactory(_BaseQueryFactory):
    """Builds SPARQL queries, binding ``setDiss`` when a set description exists."""

    lang = "sparql"

    def latest_record_date_query(self) -> Dict[str, str]:
        s = self.settings
        return self._params(
            f"""
            PREFIX view: <{VIEW_NS}>
            SELECT ?date
            FROM <#ri>
            WHERE {{
              ?item <{s.item_id}> ?itemID .
              ?item view:disseminates ?recordDiss .
              ?recordDiss view:lastModifiedDate ?date .
            }}
            ORDER BY DESC(?date)
            LIMIT 1
            """
        )

    def set_info_query(self) -> Dict[str, str]:
        s = self.settings
        return self._params(
            f"""
            PREFIX view: <{VIEW_NS}>
            SELECT ?setSpec ?setName ?setDiss
            FROM <#ri>
            WHERE {{
              ?set <{s.set_spec}> ?setSpec .
              ?set <{s.set_name}> ?setName .
              OPTIONAL {{
                ?set view:disseminates ?setDiss .
                ?setDiss view:disseminationType <{s.set_diss_type}> .
              }}
            }}
            ORDER BY ?setSpec
            """
        )


QueryFactoryBuilder = Callable[[], QueryFactory]


@dataclass(slots=True)
class QueryFactoryRegistry:
    """Name-keyed catalogue of query factory builders."""

    _builders: MutableMapping[str, QueryFactoryBuilder] = field(default_factory=dict)
    _aliases: MutableMapping[str, str] = field(default_factory=dict)

    def register(self, name: str, builder: QueryFactoryBuilder, *, aliases: tuple[str, ...] = ()) -> None:
        """Register or overwrite ``builder`` under ``name`` and any ``aliases``."""

        self._builders[name] = builder
        for alias in aliases:
            self._aliases[alias] = name

    def names(self) -> List[str]:
        return sorted(self._builders)

    def resolve(self, name: str) -> str:
        """Return the canonical name for ``name`` or raise ``KeyError``."""

        key = name.strip()
        canonical = self._aliases.get(key, key)
        if canonical not in self._builders:
            raise KeyError(f"Query factory '{name}' is not registered. Known factories: {', '.join(self.names()) or 'none'}.")
        return canonical

    def create(self, name: str) -> QueryFactory:
        """Instantiate the factory registered under ``name`` (or one of its aliases)."""

        return self._builders[self.resolve(name)]()


def default_query_factories() -> QueryFactoryRegistry:
    """Return a registry holding the built-in iTQL and SPARQL factories."""

    registry = QueryFactoryRegistry()
    registry.register(
        "itql",
        ITQLQueryFactory,
        aliases=("fedora.services.oaiprovider.ITQLQueryFactory",),
    )
    registry.register(
        "sparql",
        SPARQLQueryFactory,
        aliases=("fedora.services.oaiprovider.SPARQLQueryFactory",),
    )
    return registry

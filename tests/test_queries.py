from __future__ import annotations

import pytest

from fedora_oai_driver.core.queries import (
    ITQLQueryFactory,
    QueryFactoryRegistry,
    SPARQLQueryFactory,
    default_query_factories,
)


def test_default_registry_lists_builtin_factories():
    registry = default_query_factories()

    assert registry.names() == ["itql", "sparql"]
    assert isinstance(registry.create("sparql"), SPARQLQueryFactory)
    assert isinstance(registry.create(" itql "), ITQLQueryFactory)


def test_legacy_class_names_are_aliases():
    registry = default_query_factories()

    factory = registry.create("fedora.services.oaiprovider.ITQLQueryFactory")

    assert isinstance(factory, ITQLQueryFactory)


def test_unknown_factory_raises_key_error():
    with pytest.raises(KeyError) as excinfo:
        default_query_factories().create("com.example.Missing")

    assert "com.example.Missing" in str(excinfo.value)


def test_custom_factory_can_be_registered():
    class StaticFactory:
        def init(self, props):
            self.props = props

        def latest_record_date_query(self):
            return {"lang": "static", "query": "latest"}

        def set_info_query(self):
            return {"lang": "static", "query": "sets"}

    registry = QueryFactoryRegistry()
    registry.register("static", StaticFactory, aliases=("legacy.Static",))

    assert isinstance(registry.create("legacy.Static"), StaticFactory)


def test_sparql_queries_use_configured_predicates(driver_properties):
    factory = SPARQLQueryFactory()
    factory.init(driver_properties)

    latest = factory.latest_record_date_query()
    sets = factory.set_info_query()

    assert latest["lang"] == "sparql"
    assert "SELECT ?date" in latest["query"]
    assert "<http://www.openarchives.org/OAI/2.0/itemID>" in latest["query"]
    assert "LIMIT 1" in latest["query"]
    assert "?setDiss" in sets["query"]
    assert "OPTIONAL" in sets["query"]
    assert "<info:fedora/*/SetInfo.xml>" in sets["query"]


def test_itql_queries_use_configured_predicates(driver_properties):
    factory = ITQLQueryFactory()
    factory.init(driver_properties)

    latest = factory.latest_record_date_query()
    sets = factory.set_info_query()

    assert latest["lang"] == "itql"
    assert latest["query"].startswith("select $date")
    assert "<http://www.openarchives.org/OAI/2.0/setName> $setName" in sets["query"]


def test_factory_requires_init():
    with pytest.raises(RuntimeError):
        SPARQLQueryFactory().latest_record_date_query()

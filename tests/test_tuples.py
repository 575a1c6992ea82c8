from __future__ import annotations

import io

import pytest

from fedora_oai_driver.adapters.tuples import BlankNode, Literal, TupleIterator, URIReference
from fedora_oai_driver.core.errors import TupleParseError

LEGACY_DOCUMENT = b"""<?xml version="1.0" encoding="UTF-8"?>
<sparql xmlns="http://www.w3.org/2001/sw/DataAccess/rf1/result">
  <head>
    <variable name="setSpec"/>
    <variable name="setName"/>
    <variable name="setDiss"/>
  </head>
  <results>
    <result>
      <setSpec>maps</setSpec>
      <setName>Historic Maps</setName>
      <setDiss uri="info:fedora/demo:maps/SetInfo.xml"/>
    </result>
    <result>
      <setSpec>photos</setSpec>
      <setName>Photographs</setName>
      <setDiss bound="false"/>
    </result>
  </results>
</sparql>
"""


def test_reads_w3c_bindings(sparql_document):
    document = sparql_document(
        '<binding name="date"><literal datatype="http://www.w3.org/2001/XMLSchema#dateTime">2020-01-01T00:00:00Z</literal></binding>'
        '<binding name="item"><uri>info:fedora/demo:1</uri></binding>'
        '<binding name="node"><bnode>b0</bnode></binding>'
        '<binding name="title"><literal xml:lang="en">Maps</literal></binding>',
        variables=("date", "item", "node", "title"),
    )

    with TupleIterator(io.BytesIO(document)) as tuples:
        rows = list(tuples)

    assert rows == [
        {
            "date": Literal("2020-01-01T00:00:00Z", datatype="http://www.w3.org/2001/XMLSchema#dateTime"),
            "item": URIReference("info:fedora/demo:1"),
            "node": BlankNode("b0"),
            "title": Literal("Maps", language="en"),
        }
    ]


def test_reads_legacy_variable_elements():
    with TupleIterator(io.BytesIO(LEGACY_DOCUMENT)) as tuples:
        rows = list(tuples)

    assert rows[0] == {
        "setSpec": Literal("maps"),
        "setName": Literal("Historic Maps"),
        "setDiss": URIReference("info:fedora/demo:maps/SetInfo.xml"),
    }
    assert rows[1] == {"setSpec": Literal("photos"), "setName": Literal("Photographs")}


def test_empty_result_set_yields_no_rows(sparql_document):
    with TupleIterator(io.BytesIO(sparql_document(variables=("date",)))) as tuples:
        assert next(tuples, None) is None


def test_rows_are_produced_lazily(sparql_document):
    results = [f'<binding name="n"><literal>{index}</literal></binding>' for index in range(3)]
    tuples = TupleIterator(io.BytesIO(sparql_document(*results)))

    first = next(tuples)
    tuples.close()

    assert first == {"n": Literal("0")}
    assert next(tuples, None) is None


def test_malformed_document_raises_parse_error():
    tuples = TupleIterator(io.BytesIO(b"<sparql><results><result>"))

    with pytest.raises(TupleParseError):
        list(tuples)


def test_binding_without_name_is_rejected(sparql_document):
    document = sparql_document("<binding><literal>x</literal></binding>")

    with pytest.raises(TupleParseError):
        list(TupleIterator(io.BytesIO(document)))


def test_close_removes_owned_file(tmp_path, sparql_document):
    path = tmp_path / "result.xml"
    path.write_bytes(sparql_document('<binding name="n"><literal>1</literal></binding>'))

    tuples = TupleIterator.from_path(path)
    assert list(tuples) == [{"n": Literal("1")}]
    tuples.close()
    tuples.close()

    assert tuples.closed
    assert not path.exists()


def test_close_keeps_file_that_is_not_owned(tmp_path, sparql_document):
    path = tmp_path / "result.xml"
    path.write_bytes(sparql_document())

    with TupleIterator.from_path(path, owned=False):
        pass

    assert path.exists()

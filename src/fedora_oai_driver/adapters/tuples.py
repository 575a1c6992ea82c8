"""
Lazy reader for SPARQL XML tuple results.

The resource index answers ``type=tuples&format=Sparql`` queries with a SPARQL
results document. Two dialects are accepted:

* the W3C form, where each ``<result>`` holds ``<binding name="x">`` elements
  wrapping a ``<literal>``, ``<uri>`` or ``<bnode>``;
* the older form written by Fedora 2.x, where each bound variable is an
  element named after the variable, URIs are given in a ``uri`` attribute and
  unbound variables carry ``bound="false"``.

Rows are produced one at a time with :func:`xml.etree.ElementTree.iterparse`
and parsed elements are discarded immediately, so memory use does not grow with
the size of the result.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Optional, Union

from ..core.errors import TupleParseError

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


@dataclass(frozen=True, slots=True)
class Literal:
    """Literal binding value."""

    lexical_form: str
    datatype: Optional[str] = None
    language: Optional[str] = None


@dataclass(frozen=True, slots=True)
class URIReference:
    """URI binding value."""

    uri: str


@dataclass(frozen=True, slots=True)
class BlankNode:
    """Blank node binding value."""

    identifier: str


Node = Union[Literal, URIReference, BlankNode]
Row = Dict[str, Node]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _w3c_value(binding: ET.Element) -> Node:
    for value in binding:
        kind = _local_name(value.tag)
        text = value.text or ""
        if kind == "literal":
            return Literal(text, datatype=value.get("datatype"), language=value.get(XML_LANG))
        if kind == "uri":
            return URIReference(text.strip())
        if kind == "bnode":
            return BlankNode(text.strip())
        raise TupleParseError(f"Unsupported binding value element <{kind}>.")
    raise TupleParseError(f"Binding '{binding.get('name')}' has no value.")


def _legacy_value(element: ET.Element) -> Optional[Node]:
    if element.get("bound") == "false":
        return None
    uri = element.get("uri")
    if uri is not None:
        return URIReference(uri)
    bnode = element.get("bnodeid")
    if bnode is not None:
        return BlankNode(bnode)
    return Literal(element.text or "", datatype=element.get("datatype"), language=element.get(XML_LANG))


def _row_from_element(result: ET.Element) -> Row:
    row: Row = {}
    for child in result:
        local = _local_name(child.tag)
        if local == "binding":
            name = child.get("name")
            if not name:
                raise TupleParseError("Encountered <binding> without a name attribute.")
            row[name] = _w3c_value(child)
            continue
        value = _legacy_value(child)
        if value is not None:
            row[local] = value
    return row


class TupleIterator(Iterator[Row]):
    """
    Forward-only, single-consumer iterator over result rows.

    The iterator owns ``stream`` and, when given, the file at ``path``; both are
    released by :meth:`close`, which is idempotent. Use it as a context manager
    or close it in a ``finally`` block, including after an early ``break``.
    """

    def __init__(self, stream: BinaryIO, *, path: Optional[Path] = None) -> None:
        self._stream = stream
        self._path = path
        self._events = ET.iterparse(stream, events=("start", "end"))
        self._results: Optional[ET.Element] = None
        self._closed = False

    @classmethod
    def from_path(cls, path: Path, *, owned: bool = True) -> "TupleIterator":
        """Open ``path`` for reading; when ``owned`` the file is deleted on close."""

        stream = path.open("rb")
        return cls(stream, path=path if owned else None)

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "TupleIterator":
        return self

    def __next__(self) -> Row:
        if self._closed:
            raise StopIteration
        try:
            for event, element in self._events:
                local = _local_name(element.tag)
                if event == "start":
                    if local == "results":
                        self._results = element
                    continue
                if local == "result":
                    row = _row_from_element(element)
                    (self._results if self._results is not None else element).clear()
                    return row
        except ET.ParseError as exc:
            raise TupleParseError(f"Malformed tuple result: {exc}") from exc
        raise StopIteration

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with suppress(OSError):
            self._stream.close()
        if self._path is not None:
            with suppress(OSError):
                self._path.unlink(missing_ok=True)

    def __enter__(self) -> "TupleIterator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

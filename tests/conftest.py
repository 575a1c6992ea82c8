from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import pytest
from typer.testing import CliRunner

W3C_NS = "http://www.w3.org/2005/sparql-results#"
LEGACY_NS = "http://www.w3.org/2001/sw/DataAccess/rf1/result"

BASE_URL = "http://localhost:8080/fedora"
IDENTIFY_URL = "http://localhost:8080/fedora/get/demo:MyRepository/Identify.xml"


@pytest.fixture()
def driver_properties() -> Dict[str, str]:
    return {
        "driver.fedora.baseURL": BASE_URL,
        "driver.fedora.user": "fedoraAdmin",
        "driver.fedora.pass": "secret",
        "driver.fedora.identify": IDENTIFY_URL,
        "driver.fedora.itemID": "http://www.openarchives.org/OAI/2.0/itemID",
        "driver.fedora.setSpec": "http://www.openarchives.org/OAI/2.0/setSpec",
        "driver.fedora.setSpec.name": "http://www.openarchives.org/OAI/2.0/setName",
        "driver.fedora.setSpec.dissType": "info:fedora/*/SetInfo.xml",
        "driver.fedora.queryFactory": "sparql",
        "driver.fedora.md.formats": "oai_dc",
        "driver.fedora.md.format.oai_dc.uri": "http://www.openarchives.org/OAI/2.0/oai_dc/",
        "driver.fedora.md.format.oai_dc.loc": "http://www.openarchives.org/OAI/2.0/oai_dc.xsd",
        "driver.fedora.md.format.oai_dc.dissType": "info:fedora/*/oai_dc",
    }


@pytest.fixture()
def sparql_document() -> Callable[..., bytes]:
    """Wrap W3C-style ``<result>`` snippets into a complete results document."""

    def _build(*results: str, variables: tuple[str, ...] = ()) -> bytes:
        head = "".join(f'<variable name="{name}"/>' for name in variables)
        body = "".join(f"<result>{result}</result>" for result in results)
        return f'<?xml version="1.0" encoding="UTF-8"?><sparql xmlns="{W3C_NS}"><head>{head}</head><results>{body}</results></sparql>'.encode("utf-8")

    return _build


@pytest.fixture()
def staging_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "staging"
    directory.mkdir()
    return directory


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()

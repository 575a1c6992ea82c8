"""
Typer application for inspecting a Fedora OAI driver configuration.

Every command builds a driver from the ``--config`` YAML file (credentials may
come from the secrets file instead) and runs a single capability against the
repository, which makes it easy to check a deployment before wiring it into
the provider.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional

import typer

from ..adapters import FedoraOAIDriver, build_query_url
from ..adapters.http import DEFAULT_TIMEOUT
from ..config import load_properties, load_secrets, merge_credentials
from ..core import RepositoryError, configure_logging, format_date

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Query a Fedora repository the way the OAI provider does.\n\n"
        "Commands: identify, latest-date, formats, sets, query-url."
    ),
)


@app.callback(invoke_without_command=False)
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="YAML file holding driver.fedora.* properties.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG or INFO."),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="HTTP timeout in seconds."),
) -> None:
    """
    Load driver properties.

    The callback stores the merged properties in Typer's state; the driver is
    built by each command so configuration errors surface as command failures.
    """

    configure_logging(log_level)
    try:
        properties = merge_credentials(load_properties(config), load_secrets(strict=False))
    except RepositoryError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    state = ctx.ensure_object(dict)
    state["properties"] = properties
    state["timeout"] = timeout


def _build_driver(ctx: typer.Context) -> FedoraOAIDriver:
    state = ctx.ensure_object(dict)
    properties = state.get("properties")
    if not isinstance(properties, dict):
        raise typer.Exit(code=2)
    try:
        return FedoraOAIDriver.from_properties(properties, timeout=state.get("timeout", DEFAULT_TIMEOUT))
    except RepositoryError as exc:
        _fail(exc)


def _fail(exc: RepositoryError) -> NoReturn:
    message = str(exc)
    cause = exc.__cause__
    if cause is not None:
        message = f"{message}: {cause}"
    typer.echo(message, err=True)
    raise typer.Exit(code=1) from exc


def _parse_params(values: Optional[List[str]]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for entry in values or []:
        if "=" not in entry:
            raise typer.BadParameter(f"Parameter '{entry}' must use key=value format.")
        key, value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"Parameter '{entry}' is missing a key.")
        params[key] = value
    return params


@app.command("identify")
def identify(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the document to a file instead of stdout.", dir_okay=False),
) -> None:
    """Print the repository's Identify document."""

    driver = _build_driver(ctx)
    try:
        if output is None:
            driver.write_identify(sys.stdout)
        else:
            with output.open("w", encoding="utf-8") as handle:
                driver.write_identify(handle)
            typer.echo(f"Identify document written to {output}")
    except RepositoryError as exc:
        _fail(exc)
    finally:
        driver.close()


@app.command("latest-date")
def latest_date(ctx: typer.Context) -> None:
    """Print the timestamp of the most recently changed record (UTC)."""

    driver = _build_driver(ctx)
    try:
        typer.echo(format_date(driver.get_latest_date()))
    except RepositoryError as exc:
        _fail(exc)
    finally:
        driver.close()


@app.command("formats")
def formats(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", help="Emit formats as JSON."),
) -> None:
    """List the configured metadata formats."""

    driver = _build_driver(ctx)
    entries = driver.list_metadata_formats()
    driver.close()
    if output_json:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], ensure_ascii=False, indent=2))
        return

    header = f"{'Prefix':<16} {'Namespace':<48} Dissemination"
    typer.echo(header)
    typer.echo("-" * len(header))
    for entry in entries:
        typer.echo(f"{entry.prefix:<16} {entry.namespace_uri:<48} {entry.dissemination_type}")


@app.command("sets")
def sets(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", help="Emit sets as JSON."),
) -> None:
    """List the sets reported by the resource index."""

    driver = _build_driver(ctx)
    try:
        entries = driver.list_set_info()
    except RepositoryError as exc:
        _fail(exc)
    finally:
        driver.close()

    if output_json:
        payload = [{"spec": entry.spec, "name": entry.name, "dissemination_type": entry.dissemination_type} for entry in entries]
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    if not entries:
        typer.echo("No sets reported by the repository.")
        return
    for entry in entries:
        suffix = f" -> {entry.dissemination_type}" if entry.dissemination_type else ""
        typer.echo(f"{entry.spec} -> {entry.name}{suffix}")


@app.command("query-url")
def query_url(
    ctx: typer.Context,
    param: Optional[List[str]] = typer.Argument(None, help="Query parameters in key=value form."),
) -> None:
    """Print the risearch URL for the given parameters without running it."""

    driver = _build_driver(ctx)
    base_url = driver.config.base_url
    driver.close()
    typer.echo(build_query_url(base_url, _parse_params(param)))


if __name__ == "__main__":  # pragma: no cover
    app()

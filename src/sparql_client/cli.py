"""Command line interface for :mod:`sparql_client`."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import click
from rdflib import Dataset, Graph

from .client import SparqlClient
from .config import ClientConfig
from .exceptions import OptionsError, UsageError
from .formats import QUERY_FORMS, format_names
from .results import OperationResult, TupleResult
from .version import VERSION

__all__ = [
    "main",
]

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=VERSION)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with the client configuration (default: SPARQL_CLIENT_* variables)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[str]) -> None:
    r"""sparql-client - SPARQL 1.1 Protocol client.

    Run queries and updates against SPARQL endpoints.

    Queries and updates are passed as arguments, or read from a file
    when the argument starts with @.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
        logging.getLogger("sparql_client").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)

    try:
        config = ClientConfig.from_yaml(config_path) if config_path else ClientConfig.from_env()
    except OptionsError as e:
        raise click.ClickException(str(e))
    logger.debug(f"Using {config!r}")
    ctx.obj["client"] = SparqlClient(config)


def _read_argument(value: str) -> str:
    """Return the argument, or the contents of the file it names with a leading @."""
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def _compact(**options: Any) -> dict[str, Any]:
    """Drop options that were not given on the command line."""
    return {key: value for key, value in options.items() if value not in (None, (), False)}


def _finish(result: OperationResult[Any]) -> Any:
    if not result.ok:
        click.echo(f"Error: {result.error}", err=True)
        click.get_current_context().exit(1)
    return result.value


def _echo_result(value: Any) -> None:
    if isinstance(value, TupleResult):
        if value.type == "ASK":
            click.echo(json.dumps({"boolean": value.boolean}))
            return
        rows = [
            {var: cell.model_dump(exclude_none=True) for var, cell in row.items()}
            for row in value.to_cells()
        ]
        click.echo(json.dumps(rows, indent=2))
    elif isinstance(value, Dataset):
        click.echo(value.serialize(format="trig"))
    elif isinstance(value, Graph):
        click.echo(value.serialize(format="turtle"))
    else:
        click.echo(str(value))


def _update_method_option(f: Any) -> Any:
    return click.option(
        "--method",
        type=click.Choice(["direct", "url_encoded"]),
        help="Update request method (default: direct POST)",
    )(f)


@main.command()
@click.argument("endpoint")
@click.argument("query")
@click.option("--method", type=click.Choice(["get", "post"], case_sensitive=False), help="HTTP request method")
@click.option("--protocol-version", type=click.Choice(["1.0", "1.1"]), help="SPARQL protocol version")
@click.option("--result-format", type=click.Choice(format_names()), help="Result format to request")
@click.option("--default-graph", multiple=True, help="Default graph IRI(s) of the dataset")
@click.option("--named-graph", multiple=True, help="Named graph IRI(s) of the dataset")
@click.option("--raw", is_flag=True, help="Send the query without parsing it (requires --form)")
@click.option("--form", type=click.Choice(QUERY_FORMS), help="Query form, for raw queries")
@click.pass_context
def query(
    ctx: click.Context,
    endpoint: str,
    query: str,
    method: Optional[str],
    protocol_version: Optional[str],
    result_format: Optional[str],
    default_graph: tuple[str, ...],
    named_graph: tuple[str, ...],
    raw: bool,
    form: Optional[str],
) -> None:
    """Run a SPARQL query and print the result.

    SELECT and ASK results are printed as JSON, CONSTRUCT and DESCRIBE
    results as Turtle.


    Example:
      sparql-client query https://dbpedia.org/sparql "SELECT * WHERE { ?s ?p ?o } LIMIT 3"
    """
    client: SparqlClient = ctx.obj["client"]
    options = _compact(
        request_method=method,
        protocol_version=protocol_version,
        result_format=result_format,
        default_graph=list(default_graph) or None,
        named_graph=list(named_graph) or None,
    )
    query_string = _read_argument(query)

    try:
        if raw:
            if form is None:
                raise click.UsageError("--raw requires --form")
            result = getattr(client, form)(query_string, endpoint, raw_mode=True, **options)
        elif form is not None:
            result = getattr(client, form)(query_string, endpoint, **options)
        else:
            result = client.query(query_string, endpoint, **options)
    except UsageError as e:
        raise click.UsageError(str(e))

    _echo_result(_finish(result))


@main.command()
@click.argument("endpoint")
@click.argument("update")
@_update_method_option
@click.option("--using-graph", multiple=True, help="USING graph IRI(s)")
@click.option("--using-named-graph", multiple=True, help="USING NAMED graph IRI(s)")
@click.pass_context
def update(
    ctx: click.Context,
    endpoint: str,
    update: str,
    method: Optional[str],
    using_graph: tuple[str, ...],
    using_named_graph: tuple[str, ...],
) -> None:
    """Run a SPARQL update (sent as given, without validation).


    Example:
      sparql-client update http://localhost:3030/ds/update @changes.ru
    """
    client: SparqlClient = ctx.obj["client"]
    options = _compact(
        request_method=method,
        using_graph=list(using_graph) or None,
        using_named_graph=list(using_named_graph) or None,
    )
    _finish(client.update(_read_argument(update), endpoint, raw_mode=True, **options))
    click.echo(f"OK update executed at {endpoint}")


@main.command()
@click.argument("endpoint")
@click.argument("source")
@click.option("--into", "target", help="Graph IRI to load into (default graph if omitted)")
@click.option("--silent", is_flag=True, help="Run in SILENT mode")
@_update_method_option
@click.pass_context
def load(
    ctx: click.Context,
    endpoint: str,
    source: str,
    target: Optional[str],
    silent: bool,
    method: Optional[str],
) -> None:
    """Load the RDF document at SOURCE into the store."""
    client: SparqlClient = ctx.obj["client"]
    _finish(client.load(endpoint, from_=source, to=target, silent=silent, **_compact(request_method=method)))
    click.echo(f"OK loaded {source}")


def _graph_command(name: str, description: str) -> click.Command:
    @main.command(name, help=description)
    @click.argument("endpoint")
    @click.argument("graph")
    @click.option("--silent", is_flag=True, help="Run in SILENT mode")
    @_update_method_option
    @click.pass_context
    def command(ctx: click.Context, endpoint: str, graph: str, silent: bool, method: Optional[str]) -> None:
        client: SparqlClient = ctx.obj["client"]
        operation = getattr(client, name)
        try:
            result = operation(endpoint, graph=graph, silent=silent, **_compact(request_method=method))
        except UsageError as e:
            raise click.UsageError(str(e))
        _finish(result)
        click.echo(f"OK {name} {graph}")

    return command


def _transfer_command(name: str, description: str) -> click.Command:
    @main.command(name, help=description)
    @click.argument("endpoint")
    @click.argument("source")
    @click.argument("target")
    @click.option("--silent", is_flag=True, help="Run in SILENT mode")
    @_update_method_option
    @click.pass_context
    def command(
        ctx: click.Context, endpoint: str, source: str, target: str, silent: bool, method: Optional[str]
    ) -> None:
        client: SparqlClient = ctx.obj["client"]
        operation = getattr(client, name)
        _finish(operation(endpoint, from_=source, to=target, silent=silent, **_compact(request_method=method)))
        click.echo(f"OK {name} {source} to {target}")

    return command


clear = _graph_command(
    "clear", "Remove all triples of GRAPH (an IRI, or default, named, all)."
)
drop = _graph_command("drop", "Remove GRAPH (an IRI, or default, named, all) from the store.")
create = _graph_command("create", "Create the empty graph GRAPH (an IRI).")
copy = _transfer_command("copy", "Copy SOURCE into TARGET, replacing its content (IRIs or default).")
move = _transfer_command("move", "Move SOURCE into TARGET, replacing its content (IRIs or default).")
add = _transfer_command("add", "Add the triples of SOURCE to TARGET (IRIs or default).")


if __name__ == "__main__":
    main()

"""
SPARQL 1.1 Protocol client.

Dedicated functions exist for every SPARQL query and update form, next to
the generic :meth:`SparqlClient.query` and :meth:`SparqlClient.update`.

Usage:
    from sparql_client import SparqlClient

    client = SparqlClient()

    # SELECT query (TupleResult)
    result = client.select("SELECT * WHERE { ?s ?p ?o } LIMIT 10", "https://example.org/sparql")
    for row in result.unwrap().simple_bindings():
        print(row["s"])

    # CONSTRUCT query (rdflib Graph)
    graph = client.construct(
        "CONSTRUCT { ?s ?p ?o } WHERE { ?s ?p ?o }",
        "https://example.org/sparql",
        result_format="turtle",
    ).unwrap()

    # INSERT DATA from an rdflib Graph
    client.insert_data(graph, "https://example.org/sparql/update")

Every call returns an :class:`~sparql_client.results.OperationResult`.
Failures of the exchange (invalid options, unusable responses, non-2xx
status) are carried in its ``error``; :class:`UsageError` is raised for
mistakes in the calling code.

Raw mode:
    Query strings are parsed before they are sent, which also determines
    the query form. ``raw_mode=True`` skips this on the dedicated query
    functions; the generic :meth:`SparqlClient.query` can't run in raw mode.
    Update strings can't be validated, so passing one requires raw mode;
    the structured update functions generate valid updates instead.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

import requests

from sparql_client import update_builder
from sparql_client.config import ClientConfig
from sparql_client.exceptions import QuerySyntaxError, SparqlClientError, UsageError
from sparql_client.operations import QUERY, UPDATE
from sparql_client.options import validate_query_options, validate_update_options
from sparql_client.query import SparqlQuery
from sparql_client.request import build_request, call
from sparql_client.results import OperationResult
from sparql_client.transport import Transport
from sparql_client.update_builder import UpdateData
from sparql_client.utils import GraphSelector, IRILike

logger = logging.getLogger(__name__)

QueryInput = Union[str, SparqlQuery]


class SparqlClient:
    """
    Client for SPARQL protocol services.

    Attributes:
        config: Default values for all operations
        transport: Executor of the HTTP requests
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration (default: ``ClientConfig()``)
            session: ``requests.Session`` to send all requests with; by
                default every request uses its own session
        """
        self.config = config or ClientConfig()
        self.transport = Transport(session)

    # ── Queries ───────────────────────────────────────────────────

    def query(self, query: QueryInput, endpoint: str, **options: Any) -> OperationResult[Any]:
        """
        Execute any form of SPARQL query.

        The type of the result value depends on the query form: a
        :class:`~sparql_client.results.TupleResult` for SELECT and ASK, an
        rdflib ``Graph`` (or ``Dataset``) for CONSTRUCT and DESCRIBE.

        Args:
            query: Query string or parsed :class:`SparqlQuery`
            endpoint: URL of the SPARQL service
            **options: Query options, see :class:`~sparql_client.options.QueryOptions`

        Raises:
            UsageError: When called with ``raw_mode=True``
        """
        if isinstance(query, SparqlQuery):
            return self._do_query(query.form, query.query_string, endpoint, options)

        if options.get("raw_mode"):
            raise UsageError(
                "The generic query function can not be used in raw mode since it needs "
                "to parse the query to determine the query form. Use one of the "
                "dedicated functions like select() instead."
            )
        try:
            parsed = SparqlQuery.parse(query)
        except QuerySyntaxError as e:
            return OperationResult.failure(e)
        return self.query(parsed, endpoint, **options)

    def select(self, query: QueryInput, endpoint: str, **options: Any) -> OperationResult[Any]:
        """Execute a SPARQL SELECT query."""
        return self._query_form("select", query, endpoint, options)

    def ask(self, query: QueryInput, endpoint: str, **options: Any) -> OperationResult[Any]:
        """Execute a SPARQL ASK query."""
        return self._query_form("ask", query, endpoint, options)

    def construct(self, query: QueryInput, endpoint: str, **options: Any) -> OperationResult[Any]:
        """Execute a SPARQL CONSTRUCT query."""
        return self._query_form("construct", query, endpoint, options)

    def describe(self, query: QueryInput, endpoint: str, **options: Any) -> OperationResult[Any]:
        """Execute a SPARQL DESCRIBE query."""
        return self._query_form("describe", query, endpoint, options)

    def _query_form(
        self, form: str, query: QueryInput, endpoint: str, options: dict[str, Any]
    ) -> OperationResult[Any]:
        if isinstance(query, SparqlQuery):
            if query.form != form:
                raise UsageError(
                    f"expected a {form.upper()} query, got: {query.form.upper()} query"
                )
            return self._do_query(form, query.query_string, endpoint, options)

        if self._raw_mode(options):
            return self._do_query(form, query, endpoint, options)

        try:
            parsed = SparqlQuery.parse(query)
        except QuerySyntaxError as e:
            return OperationResult.failure(e)
        return self._query_form(form, parsed, endpoint, options)

    def _do_query(
        self, form: str, query_string: str, endpoint: str, options: dict[str, Any]
    ) -> OperationResult[Any]:
        try:
            opts = validate_query_options(options)
            request = build_request(QUERY, form, query_string, endpoint, opts, self.config)
        except UsageError:
            raise
        except SparqlClientError as e:
            logger.debug(f"Query request not built: {e}")
            return OperationResult.failure(e)
        return call(request, opts, self.config, self.transport)

    # ── Updates given as strings ──────────────────────────────────

    def update(self, update: str, endpoint: str, **options: Any) -> OperationResult[Any]:
        """
        Execute any form of SPARQL update given as string (raw mode only).

        Args:
            update: SPARQL update string
            endpoint: URL of the SPARQL service
            **options: Update options, see :class:`~sparql_client.options.UpdateOptions`
        """
        return self._raw_update(None, update, endpoint, options)

    def insert(self, update: str, endpoint: str, **options: Any) -> OperationResult[Any]:
        """Execute a SPARQL INSERT update given as string (raw mode only)."""
        return self._raw_update("insert", update, endpoint, options)

    def delete(self, update: str, endpoint: str, **options: Any) -> OperationResult[Any]:
        """Execute a SPARQL DELETE update given as string (raw mode only)."""
        return self._raw_update("delete", update, endpoint, options)

    # ── INSERT DATA / DELETE DATA ─────────────────────────────────

    def insert_data(
        self, data: Union[UpdateData, str], endpoint: str, **options: Any
    ) -> OperationResult[Any]:
        """
        Execute a SPARQL INSERT DATA update.

        Args:
            data: rdflib ``Graph``, ``Dataset`` or ``Resource`` with the
                triples to insert, or an update string (raw mode only)
            endpoint: URL of the SPARQL service
            **options: Update options; ``prefixes`` and ``merge_graphs``
                control the generated update
        """
        return self._update_data("insert_data", data, endpoint, options)

    def delete_data(
        self, data: Union[UpdateData, str], endpoint: str, **options: Any
    ) -> OperationResult[Any]:
        """Execute a SPARQL DELETE DATA update; see :meth:`insert_data`."""
        return self._update_data("delete_data", data, endpoint, options)

    def _update_data(
        self, form: str, data: Union[UpdateData, str], endpoint: str, options: dict[str, Any]
    ) -> OperationResult[Any]:
        if isinstance(data, str):
            return self._raw_update(form, data, endpoint, options)

        def build(opts: Any) -> str:
            return update_builder.update_data(
                form, data, prefixes=opts.prefixes, merge_graphs=opts.merge_graphs
            )

        return self._built_update(form, build, endpoint, options)

    # ── Graph management ──────────────────────────────────────────

    def load(
        self,
        endpoint: str,
        *,
        from_: Optional[IRILike] = None,
        to: Optional[IRILike] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """
        Execute a SPARQL LOAD update.

        Args:
            endpoint: URL of the SPARQL service
            from_: IRI of the document to load
            to: IRI of the graph to load into (default graph if omitted)
            silent: Run in ``SILENT`` mode
            update: A ``LOAD`` update string instead of the structured
                arguments (raw mode only)
            **options: Update options
        """
        if update is not None:
            self._reject_structured("load", from_=from_, to=to, silent=silent)
            return self._raw_update("load", update, endpoint, options)
        source = self._required("load", "from_", from_)
        return self._built_update(
            "load", lambda _: update_builder.load(source, to, silent), endpoint, options
        )

    def clear(
        self,
        endpoint: str,
        *,
        graph: Optional[GraphSelector] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """
        Execute a SPARQL CLEAR update.

        ``graph`` is a graph IRI or one of ``"default"``, ``"named"``, ``"all"``.
        """
        return self._graph_update("clear", update_builder.clear, endpoint, graph, silent, update, options)

    def drop(
        self,
        endpoint: str,
        *,
        graph: Optional[GraphSelector] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """
        Execute a SPARQL DROP update.

        ``graph`` is a graph IRI or one of ``"default"``, ``"named"``, ``"all"``.
        """
        return self._graph_update("drop", update_builder.drop, endpoint, graph, silent, update, options)

    def create(
        self,
        endpoint: str,
        *,
        graph: Optional[IRILike] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """Execute a SPARQL CREATE update for the graph IRI ``graph``."""
        return self._graph_update("create", update_builder.create, endpoint, graph, silent, update, options)

    def copy(
        self,
        endpoint: str,
        *,
        from_: Optional[GraphSelector] = None,
        to: Optional[GraphSelector] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """
        Execute a SPARQL COPY update.

        ``from_`` and ``to`` are graph IRIs or ``"default"``.
        """
        return self._transfer("copy", update_builder.copy, endpoint, from_, to, silent, update, options)

    def move(
        self,
        endpoint: str,
        *,
        from_: Optional[GraphSelector] = None,
        to: Optional[GraphSelector] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """Execute a SPARQL MOVE update; see :meth:`copy`."""
        return self._transfer("move", update_builder.move, endpoint, from_, to, silent, update, options)

    def add(
        self,
        endpoint: str,
        *,
        from_: Optional[GraphSelector] = None,
        to: Optional[GraphSelector] = None,
        silent: Optional[bool] = None,
        update: Optional[str] = None,
        **options: Any,
    ) -> OperationResult[Any]:
        """Execute a SPARQL ADD update; see :meth:`copy`."""
        return self._transfer("add", update_builder.add, endpoint, from_, to, silent, update, options)

    def _graph_update(
        self,
        form: str,
        builder: Callable[..., str],
        endpoint: str,
        graph: Any,
        silent: Optional[bool],
        update: Optional[str],
        options: dict[str, Any],
    ) -> OperationResult[Any]:
        if update is not None:
            self._reject_structured(form, graph=graph, silent=silent)
            return self._raw_update(form, update, endpoint, options)
        graph = self._required(form, "graph", graph)
        return self._built_update(form, lambda _: builder(graph, silent), endpoint, options)

    def _transfer(
        self,
        form: str,
        builder: Callable[..., str],
        endpoint: str,
        source: Any,
        target: Any,
        silent: Optional[bool],
        update: Optional[str],
        options: dict[str, Any],
    ) -> OperationResult[Any]:
        if update is not None:
            self._reject_structured(form, from_=source, to=target, silent=silent)
            return self._raw_update(form, update, endpoint, options)
        source = self._required(form, "from_", source)
        target = self._required(form, "to", target)
        return self._built_update(form, lambda _: builder(source, target, silent), endpoint, options)

    # ── Update plumbing ───────────────────────────────────────────

    @staticmethod
    def _required(form: str, name: str, value: Any) -> Any:
        if value is None:
            raise UsageError(f"{form}() is missing the required argument {name!r}")
        return value

    @staticmethod
    def _reject_structured(form: str, **arguments: Any) -> None:
        given = [name for name, value in arguments.items() if value is not None]
        if given:
            raise UsageError(
                f"{form}() does not support {', '.join(repr(n) for n in given)} "
                "together with an update string"
            )

    def _raw_mode(self, options: dict[str, Any]) -> bool:
        raw_mode = options.get("raw_mode")
        return bool(self.config.raw_mode if raw_mode is None else raw_mode)

    def _raw_update(
        self, form: Optional[str], update: str, endpoint: str, options: dict[str, Any]
    ) -> OperationResult[Any]:
        if not isinstance(update, str):
            raise UsageError(f"expected an update string, got: {type(update).__name__}")
        if not self._raw_mode(options):
            raise UsageError(
                "An update is passed directly as a string. Validation of updates is not "
                "implemented. Run it in raw mode by passing raw_mode=True."
            )
        return self._built_update(form, lambda _: update, endpoint, options)

    def _built_update(
        self,
        form: Optional[str],
        build: Callable[[Any], str],
        endpoint: str,
        options: dict[str, Any],
    ) -> OperationResult[Any]:
        try:
            opts = validate_update_options(options)
            update_string = build(opts)
            request = build_request(UPDATE, form, update_string, endpoint, opts, self.config)
        except UsageError:
            raise
        except SparqlClientError as e:
            logger.debug(f"Update request not built: {e}")
            return OperationResult.failure(e)
        return call(request, opts, self.config, self.transport)

    def close(self) -> None:
        """Close the session passed to the client, if any."""
        self.transport.close()

    def __enter__(self) -> SparqlClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SparqlClient({self.config!r})"


# Convenience functions for one-off operations


def _client(config: Optional[ClientConfig], session: Optional[requests.Session]) -> SparqlClient:
    return SparqlClient(config, session=session)


def query(query: QueryInput, endpoint: str, *, config: Optional[ClientConfig] = None,
          session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute any form of SPARQL query; see :meth:`SparqlClient.query`."""
    return _client(config, session).query(query, endpoint, **options)


def select(query: QueryInput, endpoint: str, *, config: Optional[ClientConfig] = None,
           session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL SELECT query; see :meth:`SparqlClient.select`."""
    return _client(config, session).select(query, endpoint, **options)


def ask(query: QueryInput, endpoint: str, *, config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL ASK query; see :meth:`SparqlClient.ask`."""
    return _client(config, session).ask(query, endpoint, **options)


def construct(query: QueryInput, endpoint: str, *, config: Optional[ClientConfig] = None,
              session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL CONSTRUCT query; see :meth:`SparqlClient.construct`."""
    return _client(config, session).construct(query, endpoint, **options)


def describe(query: QueryInput, endpoint: str, *, config: Optional[ClientConfig] = None,
             session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL DESCRIBE query; see :meth:`SparqlClient.describe`."""
    return _client(config, session).describe(query, endpoint, **options)


def update(update: str, endpoint: str, *, config: Optional[ClientConfig] = None,
           session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL update string in raw mode; see :meth:`SparqlClient.update`."""
    return _client(config, session).update(update, endpoint, **options)


def insert(update: str, endpoint: str, *, config: Optional[ClientConfig] = None,
           session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL INSERT update string; see :meth:`SparqlClient.insert`."""
    return _client(config, session).insert(update, endpoint, **options)


def delete(update: str, endpoint: str, *, config: Optional[ClientConfig] = None,
           session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL DELETE update string; see :meth:`SparqlClient.delete`."""
    return _client(config, session).delete(update, endpoint, **options)


def insert_data(data: Union[UpdateData, str], endpoint: str, *, config: Optional[ClientConfig] = None,
                session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL INSERT DATA update; see :meth:`SparqlClient.insert_data`."""
    return _client(config, session).insert_data(data, endpoint, **options)


def delete_data(data: Union[UpdateData, str], endpoint: str, *, config: Optional[ClientConfig] = None,
                session: Optional[requests.Session] = None, **options: Any) -> OperationResult[Any]:
    """Execute a SPARQL DELETE DATA update; see :meth:`SparqlClient.delete_data`."""
    return _client(config, session).delete_data(data, endpoint, **options)


def load(endpoint: str, *, config: Optional[ClientConfig] = None,
         session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL LOAD update; see :meth:`SparqlClient.load`."""
    return _client(config, session).load(endpoint, **kwargs)


def clear(endpoint: str, *, config: Optional[ClientConfig] = None,
          session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL CLEAR update; see :meth:`SparqlClient.clear`."""
    return _client(config, session).clear(endpoint, **kwargs)


def drop(endpoint: str, *, config: Optional[ClientConfig] = None,
         session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL DROP update; see :meth:`SparqlClient.drop`."""
    return _client(config, session).drop(endpoint, **kwargs)


def create(endpoint: str, *, config: Optional[ClientConfig] = None,
           session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL CREATE update; see :meth:`SparqlClient.create`."""
    return _client(config, session).create(endpoint, **kwargs)


def copy(endpoint: str, *, config: Optional[ClientConfig] = None,
         session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL COPY update; see :meth:`SparqlClient.copy`."""
    return _client(config, session).copy(endpoint, **kwargs)


def move(endpoint: str, *, config: Optional[ClientConfig] = None,
         session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL MOVE update; see :meth:`SparqlClient.move`."""
    return _client(config, session).move(endpoint, **kwargs)


def add(endpoint: str, *, config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None, **kwargs: Any) -> OperationResult[Any]:
    """Execute a SPARQL ADD update; see :meth:`SparqlClient.add`."""
    return _client(config, session).add(endpoint, **kwargs)

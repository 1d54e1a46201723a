"""SPARQL query model: a validated query string plus its form.

Parsing is delegated to rdflib's SPARQL grammar; only the query form is
extracted, the string itself is sent unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pyparsing import ParseBaseException
from rdflib.plugins.sparql.parser import parseQuery

from sparql_client.exceptions import QuerySyntaxError

logger = logging.getLogger(__name__)

_FORMS = {
    "SelectQuery": "select",
    "AskQuery": "ask",
    "ConstructQuery": "construct",
    "DescribeQuery": "describe",
}


@dataclass(frozen=True)
class SparqlQuery:
    """A parsed SPARQL query."""

    query_string: str
    form: str

    @classmethod
    def parse(cls, query_string: str) -> "SparqlQuery":
        """
        Parse a query string and determine its form.

        Args:
            query_string: SPARQL query string

        Returns:
            The parsed query

        Raises:
            QuerySyntaxError: If the query can't be parsed
        """
        try:
            parsed = parseQuery(query_string)
        except ParseBaseException as e:
            raise QuerySyntaxError(f"invalid SPARQL query: {e}") from e

        name = getattr(parsed[1], "name", None)
        form = _FORMS.get(name)
        if form is None:
            raise QuerySyntaxError(f"unsupported SPARQL query form: {name}")

        logger.debug(f"Parsed {form.upper()} query")
        return cls(query_string=query_string, form=form)

    def __str__(self) -> str:
        return self.query_string

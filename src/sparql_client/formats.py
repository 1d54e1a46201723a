"""Result format registry.

Maps format names and media types to codecs, scoped by query form:

* tuple result formats (JSON, XML, CSV, TSV) for ``select`` and ``ask``
  queries, decoded with :meth:`rdflib.query.Result.parse`
* RDF serialization formats for ``construct`` and ``describe`` queries,
  decoded with :meth:`rdflib.Graph.parse`
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Union

from rdflib import Dataset, Graph
from rdflib.query import Result

from sparql_client.results import TupleResult

logger = logging.getLogger(__name__)

TUPLE_FORMS = frozenset({"select", "ask"})
RDF_FORMS = frozenset({"construct", "describe"})
QUERY_FORMS = ("select", "ask", "construct", "describe")


# MIME types for SPARQL responses
class MimeTypes:
    """Standard MIME types for SPARQL protocol."""

    # SELECT/ASK results
    JSON = "application/sparql-results+json"
    XML = "application/sparql-results+xml"
    CSV = "text/csv"
    TSV = "text/tab-separated-values"

    # CONSTRUCT/DESCRIBE results (RDF formats)
    TURTLE = "text/turtle"
    NTRIPLES = "application/n-triples"
    NQUADS = "application/n-quads"
    JSONLD = "application/ld+json"
    RDFXML = "application/rdf+xml"
    N3 = "text/n3"
    TRIG = "application/trig"

    # Request bodies
    SPARQL_QUERY = "application/sparql-query"
    SPARQL_UPDATE = "application/sparql-update"
    FORM_URLENCODED = "application/x-www-form-urlencoded"

    # Default accept headers for the query forms
    SELECT_ACCEPT = ", ".join(
        [JSON, XML, f"{TSV};q=0.8", f"{CSV};q=0.2", "*/*;q=0.1"]
    )
    ASK_ACCEPT = ", ".join([JSON, XML, "*/*;q=0.1"])
    RDF_ACCEPT = ", ".join([TURTLE, NTRIPLES, NQUADS, JSONLD, "*/*;q=0.1"])


@dataclass(frozen=True)
class ResultFormat:
    """A registered result format.

    Attributes:
        name: Format name used for the ``result_format`` option
        media_type: Media type sent in the Accept header
        query_forms: Query forms whose results can be read in this format
        codec: Format name understood by the rdflib parser plugins
        quads: Whether the format carries named graphs
    """

    name: str
    media_type: str
    query_forms: FrozenSet[str]
    codec: str
    quads: bool = False

    @property
    def is_tuple_format(self) -> bool:
        return self.query_forms <= TUPLE_FORMS

    def supports(self, query_form: str) -> bool:
        return query_form in self.query_forms

    def decode(self, body: Union[bytes, str, None]) -> Union[TupleResult, Graph]:
        """
        Decode a response body.

        Codec errors propagate unchanged.

        Args:
            body: Raw response body

        Returns:
            A :class:`TupleResult` for tuple formats, otherwise an rdflib
            ``Graph`` (``Dataset`` for quad formats)
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        body = body or b""

        if self.is_tuple_format:
            result = Result.parse(io.BytesIO(body), format=self.codec)
            return TupleResult.from_rdflib(result)

        graph: Graph = Dataset() if self.quads else Graph()
        if body.strip():
            graph.parse(data=body, format=self.codec)
        return graph


_TUPLE_FORMATS = (
    ResultFormat("json", MimeTypes.JSON, TUPLE_FORMS, "json"),
    ResultFormat("xml", MimeTypes.XML, TUPLE_FORMS, "xml"),
    ResultFormat("csv", MimeTypes.CSV, frozenset({"select"}), "csv"),
    ResultFormat("tsv", MimeTypes.TSV, frozenset({"select"}), "tsv"),
)

_RDF_FORMATS = (
    ResultFormat("turtle", MimeTypes.TURTLE, RDF_FORMS, "turtle"),
    ResultFormat("ntriples", MimeTypes.NTRIPLES, RDF_FORMS, "nt"),
    ResultFormat("nquads", MimeTypes.NQUADS, RDF_FORMS, "nquads", quads=True),
    ResultFormat("jsonld", MimeTypes.JSONLD, RDF_FORMS, "json-ld"),
    ResultFormat("rdfxml", MimeTypes.RDFXML, RDF_FORMS, "xml"),
    ResultFormat("n3", MimeTypes.N3, RDF_FORMS, "n3"),
    ResultFormat("trig", MimeTypes.TRIG, RDF_FORMS, "trig", quads=True),
)

_BY_NAME: Dict[str, ResultFormat] = {f.name: f for f in _TUPLE_FORMATS + _RDF_FORMATS}

_DEFAULT_ACCEPT = {
    "select": MimeTypes.SELECT_ACCEPT,
    "ask": MimeTypes.ASK_ACCEPT,
    "construct": MimeTypes.RDF_ACCEPT,
    "describe": MimeTypes.RDF_ACCEPT,
}


def format_names() -> list[str]:
    """Names of all registered formats."""
    return list(_BY_NAME)


def _family(query_form: str) -> tuple[ResultFormat, ...]:
    if query_form in TUPLE_FORMS:
        return _TUPLE_FORMATS
    if query_form in RDF_FORMS:
        return _RDF_FORMATS
    raise ValueError(f"unknown query form: {query_form!r}")


def lookup_name(name: Optional[str], query_form: str) -> Optional[ResultFormat]:
    """Find a format of the query form's family by name, ignoring form support."""
    if name is None:
        return None
    wanted = str(name).lower()
    return next((f for f in _family(query_form) if f.name == wanted), None)


def lookup_media_type(media_type: Optional[str], query_form: str) -> Optional[ResultFormat]:
    """Find a format of the query form's family by media type, ignoring form support."""
    if media_type is None:
        return None
    wanted = media_type.lower()
    return next((f for f in _family(query_form) if f.media_type == wanted), None)


def by_name(name: Optional[str], query_form: str) -> Optional[ResultFormat]:
    """Return the format named ``name`` if it can be used for ``query_form``."""
    fmt = lookup_name(name, query_form)
    if fmt is not None and fmt.supports(query_form):
        return fmt
    return None


def by_media_type(media_type: Optional[str], query_form: str) -> Optional[ResultFormat]:
    """Return the format for ``media_type`` if it can be used for ``query_form``."""
    fmt = lookup_media_type(media_type, query_form)
    if fmt is not None and fmt.supports(query_form):
        return fmt
    return None


def default_accept_header(query_form: str) -> str:
    """Quality-weighted Accept header for a query form."""
    try:
        return _DEFAULT_ACCEPT[query_form]
    except KeyError:
        raise ValueError(f"unknown query form: {query_form!r}") from None

"""Typed results of SPARQL operations.

* :class:`TupleResult` gives typed access to SELECT bindings and ASK
  booleans, independent of the result format the service answered with.
* :class:`ResultCell` is the JSON-ready rendering of one bound term.
* :class:`OperationResult` is what every public client call returns: the
  value on success, or the error that stopped the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from rdflib import BNode, Literal, URIRef
from rdflib.query import Result
from rdflib.term import Node

if TYPE_CHECKING:
    from sparql_client.request import SparqlRequest

T = TypeVar("T")

# ── Result models ─────────────────────────────────────────────────


class ResultCell(BaseModel):
    """One cell in a SPARQL result row."""

    value: str
    type: str  # "uri" | "literal" | "bnode"
    lang: str | None = None
    datatype: str | None = None

    @classmethod
    def from_term(cls, term: Node) -> "ResultCell":
        if isinstance(term, URIRef):
            return cls(value=str(term), type="uri")
        if isinstance(term, BNode):
            return cls(value=str(term), type="bnode")
        if isinstance(term, Literal):
            return cls(
                value=str(term),
                type="literal",
                lang=term.language,
                datatype=str(term.datatype) if term.datatype else None,
            )
        return cls(value=str(term), type="literal")


class TupleResult(BaseModel):
    """Decoded SELECT or ASK result."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str = Field(..., description='"SELECT" or "ASK"')
    variables: list[str] = Field(default_factory=list)
    bindings: list[dict[str, Any]] = Field(default_factory=list)
    boolean: bool | None = None

    @classmethod
    def from_rdflib(cls, result: Result) -> "TupleResult":
        """Convert a parsed :class:`rdflib.query.Result`."""
        if result.type == "ASK":
            return cls(type="ASK", boolean=bool(result.askAnswer))
        variables = [str(var) for var in (result.vars or [])]
        bindings = [
            {str(var): term for var, term in row.items() if term is not None}
            for row in result.bindings
        ]
        return cls(type="SELECT", variables=variables, bindings=bindings)

    @property
    def row_count(self) -> int:
        return len(self.bindings)

    def simple_bindings(self) -> list[dict[str, str]]:
        """
        Return bindings with plain string values.

        Example:
            >>> for row in result.simple_bindings():
            ...     print(row["s"], row["p"])
        """
        return [{var: str(term) for var, term in row.items()} for row in self.bindings]

    def to_cells(self) -> list[dict[str, ResultCell]]:
        """Return bindings as :class:`ResultCell` rows."""
        return [
            {var: ResultCell.from_term(term) for var, term in row.items()}
            for row in self.bindings
        ]


@dataclass
class OperationResult(Generic[T]):
    """Outcome of one client call.

    Attributes:
        value: The typed result; ``True`` for successful updates
        error: The error that stopped the call, or None
        request: The request as it was built and, if sent, answered
    """

    value: Optional[T] = None
    error: Optional[Exception] = None
    request: Optional["SparqlRequest"] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def failure(
        cls, error: Exception, request: Optional["SparqlRequest"] = None
    ) -> "OperationResult[Any]":
        return cls(error=error, request=request)

"""
Common utility functions for IRI and media type handling.

This module contains the small helpers shared by the update builder, the
request builder and the response evaluation so the rendering of IRIs and
the parsing of ``Content-Type`` values stay consistent.
"""

from __future__ import annotations

import enum
import re
from typing import Iterable, List, Optional, Tuple, Union

from rdflib import URIRef
from rdflib.resource import Resource
from rdflib.term import Node

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_INVALID_IRI_CHARS = re.compile(r'[\s<>"{}|\\^`]')


class GraphTarget(str, enum.Enum):
    """Special graph selectors of the SPARQL graph management updates."""

    DEFAULT = "DEFAULT"
    NAMED = "NAMED"
    ALL = "ALL"


IRILike = Union[str, URIRef, Resource]
GraphSelector = Union[GraphTarget, IRILike]


def is_absolute_iri(value: str) -> bool:
    """Check that a string looks like an absolute IRI."""
    return bool(_SCHEME_RE.match(value)) and not _INVALID_IRI_CHARS.search(value)


def iri_string(value: IRILike) -> str:
    """
    Normalize an IRI given as string, ``URIRef`` or namespace term.

    Args:
        value: IRI value to normalize

    Returns:
        The absolute IRI as plain string

    Raises:
        ValueError: If the value is not an absolute IRI
    """
    if isinstance(value, Resource):
        value = value.identifier
    if isinstance(value, Node) and not isinstance(value, URIRef):
        raise ValueError(f"expected an IRI, got: {value!r}")
    if not isinstance(value, str):
        raise ValueError(f"expected an IRI, got: {value!r}")

    iri = str(value).strip()
    if iri.startswith("<") and iri.endswith(">"):
        iri = iri[1:-1]
    if not is_absolute_iri(iri):
        raise ValueError(f"not an absolute IRI: {iri!r}")
    return iri


def iri_ref(value: IRILike) -> str:
    """Render an IRI wrapped in angle brackets, e.g. ``<http://ex.org/g>``."""
    return f"<{iri_string(value)}>"


def graph_target(value: GraphSelector) -> Optional[GraphTarget]:
    """Return the special graph selector named by ``value``, if any."""
    if isinstance(value, GraphTarget):
        return value
    if isinstance(value, str) and not isinstance(value, URIRef):
        try:
            return GraphTarget(value.strip().upper())
        except ValueError:
            return None
    return None


def media_type(content_type: Optional[str]) -> Optional[str]:
    """
    Extract the bare media type from a ``Content-Type`` header value.

    Parameters like ``charset`` are stripped and the type is lowercased,
    so ``"text/turtle; charset=utf-8"`` becomes ``"text/turtle"``.
    """
    if not content_type:
        return None
    value = content_type.split(";", 1)[0].strip().lower()
    if "/" not in value:
        return None
    return value


def as_list(value: Union[None, str, Iterable[str]]) -> List[str]:
    """Normalize a single value or an iterable of values to a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [str(value)]
    return [str(v) for v in value]


def graph_params(
    default_key: str,
    default_graphs: Union[None, str, Iterable[str]],
    named_key: str,
    named_graphs: Union[None, str, Iterable[str]],
) -> List[Tuple[str, str]]:
    """
    Expand dataset options to ordered ``(parameter, graph IRI)`` pairs.

    Default graph parameters come first, then named graph parameters, each
    in the order given.
    """
    params = [(default_key, iri) for iri in as_list(default_graphs)]
    params.extend((named_key, iri) for iri in as_list(named_graphs))
    return params

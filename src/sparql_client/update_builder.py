"""Generation of SPARQL Update strings.

Pure string generation without any network I/O:

* ``INSERT DATA`` / ``DELETE DATA`` from rdflib data (a ``Graph``, a
  ``Dataset`` or a ``Resource`` describing one subject)
* the graph management updates ``LOAD``, ``CLEAR``, ``DROP``, ``CREATE``,
  ``COPY``, ``MOVE`` and ``ADD``

All builders raise :class:`~sparql_client.exceptions.UpdateBuildError`
when no valid update can be generated.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Mapping, Optional, Union

from rdflib import BNode, Dataset, Graph, Literal, URIRef
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID
from rdflib.resource import Resource
from rdflib.term import Node

from sparql_client.exceptions import UpdateBuildError
from sparql_client.utils import GraphSelector, GraphTarget, IRILike, graph_target, iri_ref, is_absolute_iri

logger = logging.getLogger(__name__)

UpdateData = Union[Graph, Dataset, Resource]

DATA_FORMS = {"insert_data": "INSERT", "delete_data": "DELETE"}

# Conservative subset of the SPARQL PN_LOCAL production
_LOCAL_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


class _TermWriter:
    """Renders rdflib terms, compacting IRIs with the known prefixes."""

    def __init__(self, namespaces: Iterable[tuple[str, str]], allow_bnodes: bool = True) -> None:
        # longest namespace first so the most specific prefix wins
        self.namespaces = sorted(
            ((prefix, str(ns)) for prefix, ns in namespaces if prefix is not None and ns),
            key=lambda item: (-len(item[1]), item[0]),
        )
        self.allow_bnodes = allow_bnodes
        self.used: dict[str, str] = {}

    def iri(self, iri: str) -> str:
        for prefix, ns in self.namespaces:
            if iri.startswith(ns) and _LOCAL_NAME.match(iri[len(ns):]):
                self.used[prefix] = ns
                return f"{prefix}:{iri[len(ns):]}"
        if not is_absolute_iri(iri):
            raise UpdateBuildError(f"not an absolute IRI: {iri!r}")
        return f"<{iri}>"

    def term(self, node: Node) -> str:
        if isinstance(node, URIRef):
            return self.iri(str(node))
        if isinstance(node, BNode):
            if not self.allow_bnodes:
                raise UpdateBuildError("blank nodes are not allowed in DELETE DATA updates")
            return f"_:{node}"
        if isinstance(node, Literal):
            if node.datatype is not None and node.language is None:
                return f"{Literal(str(node)).n3()}^^{self.iri(str(node.datatype))}"
            return node.n3()
        raise UpdateBuildError(f"can't write {node!r} in an update")

    def triples(self, triples: Iterable[tuple[Node, Node, Node]]) -> str:
        lines = sorted(
            f"{self.term(s)} {self.term(p)} {self.term(o)} ." for s, p, o in triples
        )
        return "\n".join(lines)

    def prologue(self) -> str:
        return "\n".join(f"PREFIX {prefix}: <{ns}>" for prefix, ns in sorted(self.used.items()))


def _namespaces(data: UpdateData, prefixes: Optional[Mapping[str, str]]) -> Iterable[tuple[str, str]]:
    if prefixes is not None:
        return [(str(prefix), str(ns)) for prefix, ns in prefixes.items()]
    graph = data.graph if isinstance(data, Resource) else data
    return [(prefix, str(ns)) for prefix, ns in graph.namespaces()]


def _graph_blocks(writer: _TermWriter, dataset: Dataset) -> list[str]:
    blocks = []
    named = []
    for graph in dataset.graphs():
        if len(graph) == 0:
            continue
        if graph.identifier == DATASET_DEFAULT_GRAPH_ID:
            blocks.append(writer.triples(graph.triples((None, None, None))))
        else:
            named.append(graph)

    for graph in sorted(named, key=lambda g: str(g.identifier)):
        if not isinstance(graph.identifier, URIRef) or not is_absolute_iri(str(graph.identifier)):
            raise UpdateBuildError(f"graph name must be an absolute IRI, got: {graph.identifier!r}")
        triples = writer.triples(graph.triples((None, None, None)))
        blocks.append(f"GRAPH {iri_ref(graph.identifier)} {{\n{triples}\n}}")
    return blocks


def update_data(
    form: str,
    data: UpdateData,
    *,
    prefixes: Optional[Mapping[str, str]] = None,
    merge_graphs: bool = False,
) -> str:
    """
    Generate an ``INSERT DATA`` or ``DELETE DATA`` update.

    Args:
        form: ``"insert_data"`` or ``"delete_data"``
        data: The triples to insert or delete
        prefixes: Prefixes to use instead of the ones bound in ``data``
        merge_graphs: Write all graphs of a dataset into one block instead
            of wrapping named graphs in ``GRAPH`` blocks

    Returns:
        The SPARQL update string

    Raises:
        UpdateBuildError: If the data can't be written as an update
    """
    try:
        keyword = DATA_FORMS[form]
    except KeyError:
        raise UpdateBuildError(f"unknown update data form: {form!r}") from None
    if not isinstance(data, (Graph, Resource)):
        raise UpdateBuildError(f"unsupported update data: {type(data).__name__}")

    writer = _TermWriter(_namespaces(data, prefixes), allow_bnodes=(form == "insert_data"))

    if isinstance(data, Dataset):
        if merge_graphs:
            quads = data.quads((None, None, None, None))
            blocks = [writer.triples({(s, p, o) for s, p, o, _ in quads})]
        else:
            blocks = _graph_blocks(writer, data)
    elif isinstance(data, Graph):
        blocks = [writer.triples(data.triples((None, None, None)))]
    else:
        blocks = [writer.triples(data.graph.triples((data.identifier, None, None)))]

    body = "\n".join(block for block in blocks if block)
    prologue = writer.prologue()
    update = f"{keyword} DATA {{\n{body}\n}}\n"
    if prologue:
        update = f"{prologue}\n\n{update}"

    logger.debug(f"Built {keyword} DATA update with {len(writer.used)} prefixes")
    return update


# ── Graph management ─────────────────────────────────────────────


def _silent(silent: Optional[bool]) -> str:
    return "SILENT " if silent else ""


def _iri(value: IRILike) -> str:
    try:
        return iri_ref(value)
    except ValueError as e:
        raise UpdateBuildError(str(e)) from e


def _graph_ref(graph: GraphSelector, allowed: tuple[GraphTarget, ...]) -> str:
    target = graph_target(graph)
    if target is None:
        return f"GRAPH {_iri(graph)}"
    if target not in allowed:
        raise UpdateBuildError(f"{target.value} is not allowed as graph here")
    return target.value


def load(source: IRILike, to: Optional[IRILike] = None, silent: Optional[bool] = False) -> str:
    """Build ``LOAD [SILENT] <source> [INTO GRAPH <to>]``."""
    update = f"LOAD {_silent(silent)}{_iri(source)}"
    if to is not None:
        update += f" INTO GRAPH {_iri(to)}"
    return update


def clear(graph: GraphSelector, silent: Optional[bool] = False) -> str:
    """Build ``CLEAR [SILENT] (DEFAULT | NAMED | ALL | GRAPH <iri>)``."""
    return f"CLEAR {_silent(silent)}{_graph_ref(graph, tuple(GraphTarget))}"


def drop(graph: GraphSelector, silent: Optional[bool] = False) -> str:
    """Build ``DROP [SILENT] (DEFAULT | NAMED | ALL | GRAPH <iri>)``."""
    return f"DROP {_silent(silent)}{_graph_ref(graph, tuple(GraphTarget))}"


def create(graph: IRILike, silent: Optional[bool] = False) -> str:
    """Build ``CREATE [SILENT] GRAPH <iri>``."""
    return f"CREATE {_silent(silent)}{_graph_ref(graph, ())}"


def _transfer(keyword: str, source: GraphSelector, target: GraphSelector, silent: Optional[bool]) -> str:
    allowed = (GraphTarget.DEFAULT,)
    return (
        f"{keyword} {_silent(silent)}{_graph_ref(source, allowed)}"
        f" TO {_graph_ref(target, allowed)}"
    )


def copy(source: GraphSelector, target: GraphSelector, silent: Optional[bool] = False) -> str:
    """Build ``COPY [SILENT] <source> TO <target>``."""
    return _transfer("COPY", source, target, silent)


def move(source: GraphSelector, target: GraphSelector, silent: Optional[bool] = False) -> str:
    """Build ``MOVE [SILENT] <source> TO <target>``."""
    return _transfer("MOVE", source, target, silent)


def add(source: GraphSelector, target: GraphSelector, silent: Optional[bool] = False) -> str:
    """Build ``ADD [SILENT] <source> TO <target>``."""
    return _transfer("ADD", source, target, silent)


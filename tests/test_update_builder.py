"""Tests for the SPARQL update builder."""

import pytest
from rdflib import BNode, Dataset, Graph, Literal, Namespace, URIRef

from sparql_client import update_builder
from sparql_client.exceptions import UpdateBuildError
from sparql_client.utils import GraphTarget

EX = Namespace("http://example.org/")


@pytest.fixture
def graph():
    """Graph with one triple and the ex prefix bound."""
    g = Graph()
    g.bind("ex", EX)
    g.add((EX.s, EX.p, Literal("o")))
    return g


class TestUpdateData:
    """Test INSERT DATA and DELETE DATA generation."""

    def test_insert_data_with_bound_prefix(self, graph):
        update = update_builder.update_data("insert_data", graph)
        assert update == 'PREFIX ex: <http://example.org/>\n\nINSERT DATA {\nex:s ex:p "o" .\n}\n'

    def test_delete_data(self, graph):
        update = update_builder.update_data("delete_data", graph)
        assert update.endswith('DELETE DATA {\nex:s ex:p "o" .\n}\n')

    def test_without_matching_prefix(self):
        g = Graph()
        g.add((URIRef("http://other.org/s"), URIRef("http://other.org/p"), URIRef("http://other.org/o")))

        update = update_builder.update_data("insert_data", g)
        assert update == (
            "INSERT DATA {\n<http://other.org/s> <http://other.org/p> <http://other.org/o> .\n}\n"
        )

    def test_prefixes_option_replaces_bound_prefixes(self, graph):
        update = update_builder.update_data("insert_data", graph, prefixes={"e": str(EX)})
        assert "PREFIX e: <http://example.org/>" in update
        assert "e:s e:p" in update
        assert "PREFIX ex:" not in update

    def test_typed_and_language_literals(self):
        g = Graph()
        g.bind("ex", EX)
        g.add((EX.s, EX["count"], Literal(42)))
        g.add((EX.s, EX.label, Literal("hallo", lang="de")))

        update = update_builder.update_data("insert_data", g)
        assert 'ex:s ex:count "42"^^xsd:integer .' in update
        assert 'ex:s ex:label "hallo"@de .' in update
        assert "PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>" in update

    def test_triples_are_sorted(self):
        g = Graph()
        g.bind("ex", EX)
        g.add((EX.b, EX.p, EX.o))
        g.add((EX.a, EX.p, EX.o))

        update = update_builder.update_data("insert_data", g)
        assert update.index("ex:a") < update.index("ex:b")

    def test_blank_nodes_in_insert_data(self):
        g = Graph()
        g.add((BNode("b1"), URIRef("http://example.org/p"), Literal("x")))
        assert '_:b1 <http://example.org/p> "x" .' in update_builder.update_data("insert_data", g)

    def test_blank_nodes_not_allowed_in_delete_data(self):
        g = Graph()
        g.add((BNode(), URIRef("http://example.org/p"), Literal("x")))
        with pytest.raises(UpdateBuildError, match="blank nodes"):
            update_builder.update_data("delete_data", g)

    def test_resource_contributes_its_subject_triples(self, graph):
        graph.add((EX.other, EX.p, Literal("ignored")))
        update = update_builder.update_data("insert_data", graph.resource(EX.s))
        assert 'ex:s ex:p "o" .' in update
        assert "ex:other" not in update

    def test_unsupported_data(self):
        with pytest.raises(UpdateBuildError, match="unsupported update data"):
            update_builder.update_data("insert_data", {"s": "o"})

    def test_unknown_form(self, graph):
        with pytest.raises(UpdateBuildError):
            update_builder.update_data("insert", graph)


class TestDatasets:
    """Test the graph structure of dataset updates."""

    @pytest.fixture
    def dataset(self):
        ds = Dataset()
        ds.add((URIRef("http://example.org/a"), URIRef("http://example.org/p"), Literal("x")))
        named = ds.graph(URIRef("http://example.org/g1"))
        named.add((URIRef("http://example.org/b"), URIRef("http://example.org/p"), Literal("y")))
        ds.graph(URIRef("http://example.org/empty"))
        return ds

    def test_named_graphs_are_wrapped(self, dataset):
        update = update_builder.update_data("insert_data", dataset)
        assert update == (
            "INSERT DATA {\n"
            '<http://example.org/a> <http://example.org/p> "x" .\n'
            "GRAPH <http://example.org/g1> {\n"
            '<http://example.org/b> <http://example.org/p> "y" .\n'
            "}\n"
            "}\n"
        )

    def test_graph_names_are_not_compacted(self):
        ds = Dataset()
        ds.bind("ex", EX)
        ds.add((EX.a, EX.p, Literal("x")))
        ds.graph(EX.g1).add((EX.b, EX.p, Literal("y")))

        update = update_builder.update_data("insert_data", ds)
        assert "GRAPH <http://example.org/g1> {\nex:b ex:p \"y\" .\n}" in update
        assert "ex:g1" not in update

    def test_merge_graphs(self, dataset):
        update = update_builder.update_data("insert_data", dataset, merge_graphs=True)
        assert "GRAPH" not in update
        assert '<http://example.org/a> <http://example.org/p> "x" .' in update
        assert '<http://example.org/b> <http://example.org/p> "y" .' in update


class TestGraphManagement:
    """Test LOAD, CLEAR, DROP, CREATE, COPY, MOVE and ADD generation."""

    def test_load(self):
        assert update_builder.load("http://example.org/data.ttl") == "LOAD <http://example.org/data.ttl>"

    def test_load_into_graph_silently(self):
        assert update_builder.load(EX["data.ttl"], to=EX.g, silent=True) == (
            "LOAD SILENT <http://example.org/data.ttl> INTO GRAPH <http://example.org/g>"
        )

    @pytest.mark.parametrize(
        ("graph", "expected"),
        [
            ("default", "CLEAR DEFAULT"),
            ("NAMED", "CLEAR NAMED"),
            (GraphTarget.ALL, "CLEAR ALL"),
            ("http://example.org/g", "CLEAR GRAPH <http://example.org/g>"),
            (EX.g, "CLEAR GRAPH <http://example.org/g>"),
        ],
    )
    def test_clear(self, graph, expected):
        assert update_builder.clear(graph) == expected

    def test_drop_silent(self):
        assert update_builder.drop("all", silent=True) == "DROP SILENT ALL"

    def test_create(self):
        assert update_builder.create(EX.g) == "CREATE GRAPH <http://example.org/g>"

    def test_create_requires_an_iri(self):
        with pytest.raises(UpdateBuildError):
            update_builder.create("default")

    @pytest.mark.parametrize("builder", ["copy", "move", "add"])
    def test_transfer(self, builder):
        update = getattr(update_builder, builder)("default", EX.g, silent=True)
        assert update == f"{builder.upper()} SILENT DEFAULT TO GRAPH <http://example.org/g>"

    def test_transfer_rejects_named_and_all(self):
        with pytest.raises(UpdateBuildError, match="NAMED is not allowed"):
            update_builder.copy("named", EX.g)

    def test_relative_iri(self):
        with pytest.raises(UpdateBuildError, match="not an absolute IRI"):
            update_builder.load("data.ttl")

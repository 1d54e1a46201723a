"""Tests for the query functions of the client."""

from __future__ import annotations

import pytest
import requests
from rdflib import Graph, Literal, URIRef
from rdflib.query import ResultException

import sparql_client
from sparql_client import SparqlQuery, formats
from sparql_client.exceptions import (
    ContentNegotiationError,
    OptionsError,
    QuerySyntaxError,
    SparqlClientError,
    SparqlHTTPError,
    TransportError,
    UsageError,
)
from sparql_client.results import TupleResult

ENDPOINT = "http://example.org/sparql"

SELECT = "SELECT ?s WHERE { ?s ?p ?o }"
ASK = "ASK { ?s ?p ?o }"
CONSTRUCT = "CONSTRUCT { ?s ?p ?o } WHERE { ?s ?p ?o }"

SELECT_JSON = (
    b'{"head": {"vars": ["s"]}, "results": {"bindings": ['
    b'{"s": {"type": "uri", "value": "http://example.org/a"}}]}}'
)
ASK_JSON = b'{"head": {}, "boolean": true}'
TURTLE = b"@prefix ex: <http://example.org/> .\nex:a ex:p ex:b .\nex:b ex:p ex:c .\n"


class TestSelect:
    """Test SELECT queries."""

    def test_single_row(self, client, session):
        session.respond(SELECT_JSON, "application/sparql-results+json")

        result = client.select(SELECT, ENDPOINT)

        assert result.ok
        assert isinstance(result.value, TupleResult)
        assert result.value.bindings == [{"s": URIRef("http://example.org/a")}]

    def test_default_request(self, client, session):
        session.respond(SELECT_JSON, "application/sparql-results+json")

        client.select(SELECT, ENDPOINT)

        call = session.last_call
        assert call["method"] == "POST"
        assert call["url"] == ENDPOINT
        assert call["data"] == b"query=SELECT+%3Fs+WHERE+%7B+%3Fs+%3Fp+%3Fo+%7D"
        assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert call["timeout"] == 60.0

    def test_get_matches_direct_decoding(self, client, session):
        body = (
            b'{"head": {"vars": ["s", "p", "o"]}, "results": {"bindings": [{'
            b'"s": {"type": "uri", "value": "http://example.org/s"}, '
            b'"p": {"type": "uri", "value": "http://example.org/p"}, '
            b'"o": {"type": "uri", "value": "http://example.org/o"}}]}}'
        )
        session.respond(body, "application/sparql-results+json")

        result = client.query(
            "SELECT * WHERE { ?s ?p ?o }", ENDPOINT, request_method="get", protocol_version="1.1"
        )

        call = session.last_call
        assert call["method"] == "GET"
        assert call["url"].startswith(ENDPOINT + "?query=SELECT")
        assert result.value == formats.by_name("json", "select").decode(body)

    def test_request_is_attached(self, client, session):
        session.respond(SELECT_JSON, "application/sparql-results+json; charset=utf-8")

        result = client.select(SELECT, ENDPOINT, request_method="get")

        assert result.request.http_status == 200
        assert result.request.url.startswith(ENDPOINT + "?query=")
        assert result.request.operation_form == "select"

    def test_html_response(self, client, session):
        session.respond(b"<html></html>", "text/html")

        result = client.select(SELECT, ENDPOINT)

        assert isinstance(result.error, ContentNegotiationError)
        assert str(result.error) == (
            "SPARQL service responded with text/html content which can't be interpreted. "
            "Try specifying one of the supported result formats with the result_format option."
        )

    def test_response_without_content_type(self, client, session):
        session.respond(b"{}")

        result = client.select(SELECT, ENDPOINT)

        assert isinstance(result.error, ContentNegotiationError)
        assert str(result.error).startswith(
            "SPARQL service responded without a content type, which can't be interpreted."
        )

    def test_result_format_fallback(self, client, session):
        session.respond(b"s\r\nhttp://example.org/a\r\n", "text/plain")

        result = client.select(SELECT, ENDPOINT, result_format="csv")

        assert result.value.simple_bindings() == [{"s": "http://example.org/a"}]

    def test_codec_errors_are_returned_unchanged(self, client, session):
        session.respond(b"not json", "application/sparql-results+json")

        result = client.select(SELECT, ENDPOINT)

        assert isinstance(result.error, (ValueError, ResultException))
        assert not isinstance(result.error, SparqlClientError)

    def test_parsed_query(self, client, session):
        session.respond(SELECT_JSON, "application/sparql-results+json")
        assert client.select(SparqlQuery.parse(SELECT), ENDPOINT).ok


class TestAsk:
    """Test ASK queries."""

    def test_boolean(self, client, session):
        session.respond(ASK_JSON, "application/sparql-results+json")

        result = client.ask(ASK, ENDPOINT)

        assert result.value.boolean is True
        assert session.last_call["headers"]["Accept"] == (
            "application/sparql-results+json, application/sparql-results+xml, */*;q=0.1"
        )

    def test_csv_response(self, client, session):
        session.respond(b"", "text/csv")

        result = client.ask(ASK, ENDPOINT)

        assert str(result.error) == 'unsupported result format for ask query: "text/csv"'


class TestConstruct:
    """Test CONSTRUCT and DESCRIBE queries."""

    def test_turtle(self, client, session):
        session.respond(TURTLE, "text/turtle")

        result = client.construct(CONSTRUCT, ENDPOINT)

        assert isinstance(result.value, Graph)
        assert len(result.value) == 2

    def test_turtle_fallback(self, client, session):
        session.respond(TURTLE, "text/plain")

        result = client.construct(CONSTRUCT, ENDPOINT, result_format="turtle")

        assert result.ok
        assert session.last_call["headers"]["Accept"] == "text/turtle"

    def test_describe_ntriples(self, client, session):
        session.respond(b'<http://example.org/a> <http://example.org/p> "x" .\n', "application/n-triples")

        result = client.describe("DESCRIBE <http://example.org/a>", ENDPOINT)

        assert (URIRef("http://example.org/a"), URIRef("http://example.org/p"), Literal("x")) in result.value


class TestGenericQuery:
    """Test the form-dispatching query function."""

    def test_dispatches_on_form(self, client, session):
        session.respond(ASK_JSON, "application/sparql-results+json")

        result = client.query(ASK, ENDPOINT)

        assert result.request.operation_form == "ask"
        assert result.value.boolean is True

    def test_raw_mode_is_rejected(self, client):
        with pytest.raises(UsageError, match="raw mode"):
            client.query(SELECT, ENDPOINT, raw_mode=True)

    def test_syntax_error(self, client, session):
        result = client.query("SELEKT * WHERE {}", ENDPOINT)

        assert isinstance(result.error, QuerySyntaxError)
        assert session.calls == []


class TestUsage:
    """Test usage errors and option validation."""

    def test_form_mismatch(self, client):
        with pytest.raises(UsageError) as exc_info:
            client.select(ASK, ENDPOINT)
        assert str(exc_info.value) == "expected a SELECT query, got: ASK query"

    def test_form_mismatch_of_parsed_query(self, client):
        with pytest.raises(UsageError):
            client.construct(SparqlQuery.parse(SELECT), ENDPOINT)

    def test_raw_mode_skips_parsing(self, client, session):
        session.respond(SELECT_JSON, "application/sparql-results+json")

        result = client.select("SELECT vendor:extension()", ENDPOINT, raw_mode=True)

        assert result.ok
        assert result.request.operation_payload == "SELECT vendor:extension()"

    def test_unknown_option(self, client, session):
        result = client.select(SELECT, ENDPOINT, foo=1)

        assert isinstance(result.error, OptionsError)
        assert "unknown option 'foo'" in str(result.error)
        assert session.calls == []

    def test_request_opts_cannot_set_transport_arguments(self, client, session):
        result = client.select(SELECT, ENDPOINT, request_opts={"allow_redirects": False})

        assert isinstance(result.error, OptionsError)
        assert "request_opts can't set allow_redirects" in str(result.error)
        assert session.calls == []

    def test_invalid_option_value(self, client):
        result = client.select(SELECT, ENDPOINT, request_method="put")
        assert isinstance(result.error, OptionsError)

    def test_protocol_error_is_returned(self, client, session):
        result = client.select(SELECT, ENDPOINT, protocol_version="1.0", request_method="get")

        assert str(result.error) == "request method GET is not supported with SPARQL protocol version 1.0"
        assert session.calls == []


class TestFailures:
    """Test HTTP and transport failures."""

    def test_error_status(self, client, session):
        session.respond(b"Parse error", "text/plain", status_code=400)

        result = client.select(SELECT, ENDPOINT)

        assert isinstance(result.error, SparqlHTTPError)
        assert result.error.status == 400
        assert result.error.body == b"Parse error"
        assert result.value is None
        with pytest.raises(SparqlHTTPError):
            result.unwrap()

    def test_connection_error(self, client, session):
        session.fail(requests.exceptions.ConnectionError("refused"))

        result = client.select(SELECT, ENDPOINT)

        assert isinstance(result.error, TransportError)


def test_module_level_function(session):
    session.respond(SELECT_JSON, "application/sparql-results+json")

    result = sparql_client.select(SELECT, ENDPOINT, session=session, request_method="get")

    assert result.value.row_count == 1
    assert session.last_call["method"] == "GET"

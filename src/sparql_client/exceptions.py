"""Error types surfaced by :mod:`sparql_client`.

Runtime failures are carried as values in
:class:`~sparql_client.results.OperationResult`; only :class:`UsageError`
is raised from the public functions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sparql_client.request import SparqlRequest


class SparqlClientError(Exception):
    """Base exception for SPARQL client errors."""

    pass


class OptionsError(SparqlClientError):
    """Raised when operation options fail validation."""

    pass


class ProtocolError(SparqlClientError):
    """Raised when a request method can't be used with a protocol version."""

    def __init__(self, request_method: str, protocol_version: str) -> None:
        self.request_method = request_method
        self.protocol_version = protocol_version
        super().__init__(
            f"request method {request_method.upper()} is not supported "
            f"with SPARQL protocol version {protocol_version}"
        )


class InvalidResultFormatError(SparqlClientError):
    """Raised when a ``result_format`` can't be used for a query form."""

    def __init__(self, result_format: str, query_form: str) -> None:
        self.result_format = result_format
        self.query_form = query_form
        super().__init__(
            f"{result_format} is not a valid result format for {query_form} queries"
        )


class QuerySyntaxError(SparqlClientError):
    """Raised when a query string can't be parsed."""

    pass


class UpdateBuildError(SparqlClientError):
    """Raised when a SPARQL update string can't be generated."""

    pass


class ContentNegotiationError(SparqlClientError):
    """Raised when a response body can't be interpreted."""

    def __init__(self, message: str, media_type: str | None = None) -> None:
        self.media_type = media_type
        super().__init__(message)


class TransportError(SparqlClientError):
    """Raised when the HTTP stack fails before a response is received."""

    pass


class SparqlHTTPError(SparqlClientError):
    """Raised when the service answers with a non-2xx status."""

    def __init__(self, request: SparqlRequest, status: int) -> None:
        self.request = request
        self.status = status
        super().__init__(
            f"{request.http_method.upper()} {request.endpoint} "
            f"({request.operation_type} {request.operation_form}) "
            f"failed with status {status}"
        )

    @property
    def body(self) -> bytes | None:
        """Response body returned together with the error status."""
        return self.request.http_response_body


class UsageError(SparqlClientError, ValueError):
    """Raised immediately on programmer errors in calling code."""

    pass

"""SPARQL operation strategies.

An :class:`Operation` knows, for one kind of SPARQL operation, how to pick
the request method and protocol version, which headers to send, how the
dataset parameters are named and how to read the response:

* :class:`QueryOperation` for ``select``, ``ask``, ``construct`` and
  ``describe`` queries
* :class:`UpdateOperation` for all update forms
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from sparql_client import formats
from sparql_client.exceptions import ContentNegotiationError, InvalidResultFormatError, ProtocolError
from sparql_client.formats import MimeTypes, ResultFormat
from sparql_client.options import QueryOptions, UpdateOptions
from sparql_client.utils import graph_params, media_type

if TYPE_CHECKING:
    from sparql_client.config import ClientConfig
    from sparql_client.request import SparqlRequest

logger = logging.getLogger(__name__)

# (protocol version, request method) given -> (protocol version, request method) used
_QUERY_PROTOCOLS = {
    (None, None): ("1.0", "post"),
    ("1.0", None): ("1.0", "post"),
    ("1.1", None): ("1.1", "get"),
    (None, "get"): ("1.1", "get"),
    (None, "post"): ("1.0", "post"),
    ("1.1", "get"): ("1.1", "get"),
    ("1.0", "post"): ("1.0", "post"),
    ("1.1", "post"): ("1.1", "post"),
}

_UPDATE_PROTOCOLS = {
    "direct": ("1.1", "post"),
    "url_encoded": ("1.0", "post"),
}

_CONTENT_TYPES = {
    ("query", "1.1", "post"): MimeTypes.SPARQL_QUERY,
    ("query", "1.0", "post"): MimeTypes.FORM_URLENCODED,
    ("update", "1.1", "post"): MimeTypes.SPARQL_UPDATE,
    ("update", "1.0", "post"): MimeTypes.FORM_URLENCODED,
}


def resolve_query_protocol(
    protocol_version: Optional[str], request_method: Optional[str]
) -> tuple[str, str]:
    """
    Resolve the protocol version and request method of a query.

    Args:
        protocol_version: Explicit protocol version (``"1.0"``, ``"1.1"``) or None
        request_method: Explicit request method (``"get"``, ``"post"``) or None

    Returns:
        The ``(protocol_version, request_method)`` pair to use

    Raises:
        ProtocolError: If the combination is not part of the SPARQL protocol
    """
    method = request_method.lower() if request_method else None
    try:
        return _QUERY_PROTOCOLS[(protocol_version, method)]
    except KeyError:
        raise ProtocolError(str(method), str(protocol_version)) from None


def resolve_update_protocol(request_method: str) -> tuple[str, str]:
    """Resolve the protocol version and HTTP method of an update request method."""
    try:
        return _UPDATE_PROTOCOLS[request_method]
    except KeyError:
        raise ProtocolError(str(request_method), "1.1") from None


def content_type(operation_type: str, protocol_version: str, request_method: str) -> Optional[str]:
    """Content-Type of a request body; None for requests without body."""
    return _CONTENT_TYPES.get((operation_type, protocol_version, request_method))


class Operation(ABC):
    """Strategy for one type of SPARQL operation."""

    name: str
    query_parameter_key: str
    default_graph_param: str
    named_graph_param: str

    @abstractmethod
    def init(self, request: SparqlRequest, options: Any, config: ClientConfig) -> None:
        """Fill protocol, method and content negotiation fields of ``request``."""

    @abstractmethod
    def http_headers(self, request: SparqlRequest, options: Any) -> dict[str, str]:
        """Headers required by the operation."""

    @abstractmethod
    def graph_params(self, options: Any) -> list[tuple[str, str]]:
        """Dataset parameters as ordered ``(name, graph IRI)`` pairs."""

    @abstractmethod
    def evaluate_response(self, request: SparqlRequest, options: Any) -> Any:
        """Interpret a 2xx response and return the typed result."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class QueryOperation(Operation):
    """SPARQL query operation."""

    name = "query"
    query_parameter_key = "query"
    default_graph_param = "default-graph-uri"
    named_graph_param = "named-graph-uri"

    def init(self, request: SparqlRequest, options: QueryOptions, config: ClientConfig) -> None:
        protocol_version = options.protocol_version
        request_method = options.request_method
        if protocol_version is None and request_method is None:
            protocol_version = config.protocol_version
            request_method = config.query_request_method

        request.protocol_version, request.http_method = resolve_query_protocol(
            protocol_version, request_method
        )
        request.content_type_header = content_type(
            self.name, request.protocol_version, request.http_method
        )

        form = request.operation_form
        name = options.result_format or config.query_result_format.get(form)

        if options.accept_header:
            request.result_format = formats.by_name(name, form)
            request.accept_header = options.accept_header
        elif name is not None:
            request.result_format = self._result_format(name, form)
            request.accept_header = request.result_format.media_type
        else:
            request.accept_header = formats.default_accept_header(form)

    @staticmethod
    def _result_format(name: str, form: str) -> ResultFormat:
        fmt = formats.by_name(name, form)
        if fmt is None:
            raise InvalidResultFormatError(name, form)
        return fmt

    def http_headers(self, request: SparqlRequest, options: QueryOptions) -> dict[str, str]:
        headers = {"Accept": request.accept_header}
        if request.content_type_header:
            headers["Content-Type"] = request.content_type_header
        return headers

    def graph_params(self, options: QueryOptions) -> list[tuple[str, str]]:
        return graph_params(
            self.default_graph_param,
            options.default_graph,
            self.named_graph_param,
            options.named_graph,
        )

    def response_format(self, request: SparqlRequest) -> ResultFormat:
        """
        Determine the format to decode a response with.

        The format registered for the response media type wins; the
        requested ``result_format`` is used when the service sent something
        else.

        Raises:
            ContentNegotiationError: If no usable format is found
        """
        form = request.operation_form
        response_media_type = media_type(request.http_response_content_type)

        fmt = formats.by_media_type(response_media_type, form)
        if fmt is not None:
            return fmt

        if request.result_format is not None:
            logger.warning(
                f"Service responded with {response_media_type or 'no content type'}, "
                f"reading it as {request.result_format.name}"
            )
            return request.result_format

        if formats.lookup_media_type(response_media_type, form) is not None:
            raise ContentNegotiationError(
                f'unsupported result format for {form} query: "{response_media_type}"',
                response_media_type,
            )
        if response_media_type is None:
            received = "SPARQL service responded without a content type, which"
        else:
            received = f"SPARQL service responded with {response_media_type} content which"
        raise ContentNegotiationError(
            f"{received} can't be interpreted. "
            "Try specifying one of the supported result "
            "formats with the result_format option.",
            response_media_type,
        )

    def evaluate_response(self, request: SparqlRequest, options: QueryOptions) -> Any:
        fmt = self.response_format(request)
        logger.debug(f"Decoding {request.operation_form} result as {fmt.name}")
        return fmt.decode(request.http_response_body)


class UpdateOperation(Operation):
    """SPARQL update operation."""

    name = "update"
    query_parameter_key = "update"
    default_graph_param = "using-graph-uri"
    named_graph_param = "using-named-graph-uri"

    def init(self, request: SparqlRequest, options: UpdateOptions, config: ClientConfig) -> None:
        request_method = options.request_method or config.update_request_method
        request.protocol_version, request.http_method = resolve_update_protocol(request_method)
        request.content_type_header = content_type(
            self.name, request.protocol_version, request.http_method
        )

    def http_headers(self, request: SparqlRequest, options: UpdateOptions) -> dict[str, str]:
        return {"Content-Type": request.content_type_header}

    def graph_params(self, options: UpdateOptions) -> list[tuple[str, str]]:
        return graph_params(
            self.default_graph_param,
            options.using_graph,
            self.named_graph_param,
            options.using_named_graph,
        )

    def evaluate_response(self, request: SparqlRequest, options: UpdateOptions) -> bool:
        return True


QUERY = QueryOperation()
UPDATE = UpdateOperation()

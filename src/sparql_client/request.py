"""The request model and its construction pipeline.

A :class:`SparqlRequest` describes one HTTP exchange with a SPARQL service.
It is built fresh for every call by :func:`build_request`, in order:

1. allocate the request with endpoint and operation identity
2. let the operation strategy resolve protocol, method and content negotiation
3. compute the HTTP headers
4. compute the dataset parameters
5. place operation string and dataset parameters in URL and body

Building never performs I/O. :func:`call` sends a built request and
evaluates the response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from requests.structures import CaseInsensitiveDict

from sparql_client.config import ClientConfig
from sparql_client.exceptions import SparqlHTTPError, TransportError
from sparql_client.formats import ResultFormat
from sparql_client.operations import Operation
from sparql_client.options import GeneralOptions
from sparql_client.results import OperationResult
from sparql_client.transport import Transport, route

logger = logging.getLogger(__name__)


@dataclass
class SparqlRequest:
    """One SPARQL protocol exchange."""

    endpoint: str
    operation: Operation
    operation_form: Optional[str]
    operation_payload: str

    protocol_version: Optional[str] = None
    http_method: Optional[str] = None
    content_type_header: Optional[str] = None
    accept_header: Optional[str] = None
    result_format: Optional[ResultFormat] = None
    http_headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    graph_params: list[tuple[str, str]] = field(default_factory=list)
    url: Optional[str] = None
    http_body: Optional[bytes] = None

    http_status: Optional[int] = None
    http_response_content_type: Optional[str] = None
    http_response_body: Optional[bytes] = None
    result: Any = None

    @property
    def operation_type(self) -> str:
        """``"query"`` or ``"update"``."""
        return self.operation.name

    @property
    def is_success(self) -> bool:
        return self.http_status is not None and 200 <= self.http_status < 300

    def __repr__(self) -> str:
        return (
            f"SparqlRequest({self.http_method and self.http_method.upper()} {self.url!r}, "
            f"{self.operation_type} {self.operation_form}, "
            f"headers={dict(self.http_headers)!r}, status={self.http_status})"
        )


def _default_headers(config: ClientConfig, request: SparqlRequest, computed: CaseInsensitiveDict) -> dict:
    source = config.http_headers
    if source is None:
        return {}
    if callable(source):
        return dict(source(request, computed) or {})
    return dict(source)


def build_request(
    operation: Operation,
    form: Optional[str],
    payload: str,
    endpoint: str,
    options: GeneralOptions,
    config: ClientConfig,
) -> SparqlRequest:
    """
    Build a request ready to be sent.

    Args:
        operation: Strategy of the operation type
        form: Query or update form, e.g. ``"select"`` or ``"insert_data"``
        payload: Query or update string
        endpoint: URL of the SPARQL service
        options: Validated per-call options
        config: Client configuration

    Returns:
        The built request

    Raises:
        ProtocolError: If method and protocol version don't fit together
        InvalidResultFormatError: If ``result_format`` can't be used for the form
    """
    request = SparqlRequest(
        endpoint=endpoint,
        operation=operation,
        operation_form=form,
        operation_payload=payload,
    )

    operation.init(request, options, config)

    headers = CaseInsensitiveDict({"User-Agent": config.user_agent})
    headers.update(operation.http_headers(request, options))
    headers.update(_default_headers(config, request, CaseInsensitiveDict(headers)))
    if options.headers:
        headers.update(options.headers)
    request.http_headers = headers

    request.graph_params = operation.graph_params(options)
    request.url, request.http_body = route(request)

    logger.debug(f"Built request {request!r}")
    return request


def call(
    request: SparqlRequest,
    options: GeneralOptions,
    config: ClientConfig,
    transport: Transport,
) -> OperationResult[Any]:
    """
    Send a built request and evaluate the response.

    Transport failures and non-2xx responses become error values; errors of
    the result codecs are returned as they were raised.
    """
    try:
        transport.execute(
            request,
            max_redirects=options.max_redirects or config.max_redirects,
            request_opts=config.transport_options(options.request_opts),
            log=options.logger if options.logger is not None else config.logger,
        )
    except TransportError as e:
        return OperationResult.failure(e, request)

    if not request.is_success:
        logger.debug(f"Service answered {request.http_status} for {request!r}")
        return OperationResult.failure(SparqlHTTPError(request, request.http_status), request)

    try:
        request.result = request.operation.evaluate_response(request, options)
    except Exception as e:  # codec errors are passed on unchanged
        logger.debug(f"Failed to evaluate response: {e}")
        return OperationResult.failure(e, request)

    return OperationResult(value=request.result, request=request)

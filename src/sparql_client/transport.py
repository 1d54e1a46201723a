"""
HTTP transport for SPARQL protocol requests.

This module routes a built request to the wire and executes it with
``requests``:

- Placement of the operation string and dataset parameters per request
  method and protocol version (query string, URL-encoded body or direct body)
- Redirect following with a bounded number of redirects
- Optional logging of the request line and the response status

Status codes are not interpreted here; a non-2xx response is recorded on the
request like any other.

Usage:
    from sparql_client.transport import Transport

    transport = Transport()
    transport.execute(request, max_redirects=5, request_opts={"timeout": 30})
    print(request.http_status, request.http_response_content_type)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union
from urllib.parse import urlencode

import requests

from sparql_client.exceptions import ProtocolError, TransportError

if TYPE_CHECKING:
    from sparql_client.request import SparqlRequest

logger = logging.getLogger(__name__)

# Arguments of requests.Session.request the transport sets itself
RESERVED_REQUEST_OPTS = frozenset({"method", "url", "data", "headers", "allow_redirects"})


def check_request_opts(request_opts: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    """Reject request options that would clash with the arguments set by the transport."""
    if request_opts is None:
        return request_opts
    if not isinstance(request_opts, Mapping):
        raise ValueError(f"expected request_opts to be a mapping, got: {request_opts!r}")
    reserved = sorted(RESERVED_REQUEST_OPTS.intersection(request_opts))
    if reserved:
        raise ValueError(f"request_opts can't set {', '.join(reserved)}; use the client options instead")
    return request_opts



def _with_params(endpoint: str, params: list[tuple[str, str]]) -> str:
    if not params:
        return endpoint
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{urlencode(params)}"


def route(request: SparqlRequest) -> tuple[str, Optional[bytes]]:
    """
    Compute the URL and body of a request.

    - GET, protocol 1.1: operation string and dataset parameters in the URL
    - POST, protocol 1.0: both URL-encoded in the body
    - POST, protocol 1.1: operation string as body, dataset parameters in the URL

    Args:
        request: Request with protocol version and method already resolved

    Returns:
        ``(url, body)``; ``body`` is None for GET requests

    Raises:
        ProtocolError: For any other method and protocol version combination
    """
    key = request.operation.query_parameter_key
    payload = request.operation_payload
    params = list(request.graph_params)
    method, version = request.http_method, request.protocol_version

    if (method, version) == ("get", "1.1"):
        return _with_params(request.endpoint, [(key, payload)] + params), None
    if (method, version) == ("post", "1.0"):
        return request.endpoint, urlencode([(key, payload)] + params).encode("utf-8")
    if (method, version) == ("post", "1.1"):
        return _with_params(request.endpoint, params), payload.encode("utf-8")

    raise ProtocolError(str(method), str(version))


def _log_level(log: Union[bool, Mapping[str, Any], None]) -> Optional[int]:
    if not log:
        return None
    if isinstance(log, Mapping):
        level = log.get("level", logging.INFO)
        if isinstance(level, str):
            return logging.getLevelName(level.upper())
        return int(level)
    return logging.INFO


class Transport:
    """
    Executes SPARQL requests with ``requests``.

    Uses the given session for every request; without one, a new session is
    opened and closed per request so no state is shared between calls.

    Attributes:
        session: Optional caller-provided ``requests.Session``
    """

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self.session = session

    def execute(
        self,
        request: SparqlRequest,
        *,
        max_redirects: int = 5,
        request_opts: Optional[Mapping[str, Any]] = None,
        log: Union[bool, Mapping[str, Any], None] = False,
    ) -> SparqlRequest:
        """
        Send a request and record the response on it.

        Args:
            request: A fully built request
            max_redirects: Number of redirects to follow before failing; an
                injected session keeps its own limit
            request_opts: Keyword arguments for ``requests.Session.request``
            log: Log the exchange; a mapping may set the ``level``

        Returns:
            The request with ``http_status``, ``http_response_content_type``
            and ``http_response_body`` filled in

        Raises:
            TransportError: On connection errors, timeouts or too many redirects
        """
        level = _log_level(log)
        method = request.http_method.upper()
        if self.session is not None:
            session = self.session
        else:
            session = requests.Session()
            session.max_redirects = max_redirects

        if level is not None:
            logger.log(level, "%s %s (%s)", method, request.url, request.content_type_header)
        logger.debug(f"Executing {request.operation_type} {request.operation_form} with {method}")

        try:
            response = session.request(
                method,
                request.url,
                data=request.http_body,
                headers=dict(request.http_headers),
                allow_redirects=True,
                **dict(request_opts or {}),
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {request.endpoint} failed: {e}")
            raise TransportError(f"{method} {request.endpoint} failed: {e}") from e
        finally:
            if self.session is None:
                session.close()

        request.http_status = response.status_code
        request.http_response_content_type = response.headers.get("content-type")
        request.http_response_body = response.content

        if level is not None:
            logger.log(
                level,
                "%s %s -> %s (%s)",
                method,
                request.url,
                request.http_status,
                request.http_response_content_type,
            )
        return request

    def close(self) -> None:
        """Close the caller-provided session, if any."""
        if self.session is not None:
            self.session.close()

    def __repr__(self) -> str:
        return f"Transport(session={self.session!r})"

"""sparql-client: A client for the SPARQL 1.1 Protocol.

Main modules:
- client: SparqlClient and module-level functions for all query and update forms
- update_builder: Generation of INSERT DATA, DELETE DATA and graph management updates
- formats: Result format registry and response decoding
- config: Client configuration, from code, the environment or YAML files
- results: Typed results of SPARQL operations
"""

from . import update_builder
from .client import (
    SparqlClient,
    add,
    ask,
    clear,
    construct,
    copy,
    create,
    delete,
    delete_data,
    describe,
    drop,
    insert,
    insert_data,
    load,
    move,
    query,
    select,
    update,
)
from .config import ClientConfig
from .exceptions import (
    ContentNegotiationError,
    InvalidResultFormatError,
    OptionsError,
    ProtocolError,
    QuerySyntaxError,
    SparqlClientError,
    SparqlHTTPError,
    TransportError,
    UpdateBuildError,
    UsageError,
)
from .query import SparqlQuery
from .results import OperationResult, ResultCell, TupleResult
from .utils import GraphTarget

# Import version information
from .version import VERSION

__all__ = [
    "VERSION",
    "ClientConfig",
    "ContentNegotiationError",
    "GraphTarget",
    "InvalidResultFormatError",
    "OperationResult",
    "OptionsError",
    "ProtocolError",
    "QuerySyntaxError",
    "ResultCell",
    "SparqlClient",
    "SparqlClientError",
    "SparqlHTTPError",
    "SparqlQuery",
    "TransportError",
    "TupleResult",
    "UpdateBuildError",
    "UsageError",
    "add",
    "ask",
    "clear",
    "construct",
    "copy",
    "create",
    "delete",
    "delete_data",
    "describe",
    "drop",
    "insert",
    "insert_data",
    "load",
    "move",
    "query",
    "select",
    "update",
    "update_builder",
]

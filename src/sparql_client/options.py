"""
Pydantic models for per-call operation options.

Provides type-safe option sets for query and update operations with
validation of the known keys and their allowed values.
"""

from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, field_validator

from sparql_client.exceptions import OptionsError
from sparql_client.formats import format_names
from sparql_client.transport import check_request_opts

GraphOption = Optional[Union[str, List[str]]]


class GeneralOptions(BaseModel):
    """Options shared by query and update operations."""

    headers: Optional[Dict[str, str]] = Field(None, description="Custom HTTP headers")
    request_opts: Optional[Dict[str, Any]] = Field(
        None, description="Keyword arguments passed to requests.Session.request"
    )
    max_redirects: Optional[PositiveInt] = Field(
        None, description="Number of redirects to follow before the request fails"
    )
    raw_mode: Optional[bool] = Field(
        None, description="Pass query or update strings through without parsing"
    )
    logger: Optional[Union[bool, Dict[str, Any]]] = Field(
        None, description="Enable request/response logging, optionally with a level"
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> Any:
        """Headers must be given as a mapping."""
        if v is not None and not isinstance(v, Mapping):
            raise ValueError(f"expected headers to be a mapping, got: {v!r}")
        return dict(v) if v is not None else v

    @field_validator("request_opts", mode="before")
    @classmethod
    def validate_request_opts(cls, v: Any) -> Any:
        return check_request_opts(v)


def _graph_list(v: Any) -> Any:
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, (list, tuple)):
        return [str(item) for item in v]
    raise ValueError(f"expected a graph IRI or a list of graph IRIs, got: {v!r}")


class QueryOptions(GeneralOptions):
    """Options of the SPARQL query operations."""

    protocol_version: Optional[Literal["1.0", "1.1"]] = None
    request_method: Optional[Literal["get", "post"]] = None
    accept_header: Optional[str] = None
    result_format: Optional[str] = None
    default_graph: GraphOption = None
    named_graph: GraphOption = None

    @field_validator("request_method", mode="before")
    @classmethod
    def lower_request_method(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("result_format", mode="before")
    @classmethod
    def validate_result_format(cls, v: Any) -> Any:
        """Result formats must be registered format names."""
        if v is None:
            return v
        name = str(v).lower()
        if name not in format_names():
            raise ValueError(
                f"unknown result format {v!r}, expected one of: {', '.join(format_names())}"
            )
        return name

    @field_validator("default_graph", "named_graph", mode="before")
    @classmethod
    def validate_graphs(cls, v: Any) -> Any:
        return _graph_list(v)


class UpdateOptions(GeneralOptions):
    """Options of the SPARQL update operations."""

    request_method: Optional[Literal["direct", "url_encoded"]] = None
    using_graph: GraphOption = None
    using_named_graph: GraphOption = None
    prefixes: Optional[Dict[str, str]] = Field(
        None, description="Prefixes used when generating INSERT DATA/DELETE DATA updates"
    )
    merge_graphs: bool = Field(
        False, description="Flatten all graphs of a dataset into one DATA block"
    )

    @field_validator("request_method", mode="before")
    @classmethod
    def lower_request_method(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("using_graph", "using_named_graph", mode="before")
    @classmethod
    def validate_graphs(cls, v: Any) -> Any:
        return _graph_list(v)

    @field_validator("prefixes", mode="before")
    @classmethod
    def validate_prefixes(cls, v: Any) -> Any:
        if v is None:
            return v
        if not isinstance(v, Mapping):
            raise ValueError(f"expected prefixes to be a mapping, got: {v!r}")
        return {str(prefix): str(namespace) for prefix, namespace in v.items()}


def _error_message(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(loc) for loc in err["loc"]) or "options"
        if err["type"] == "extra_forbidden":
            parts.append(f"unknown option {location!r}")
        else:
            parts.append(f"invalid value for option {location!r}: {err['msg']}")
    return "; ".join(parts)


def validate_query_options(options: Mapping[str, Any]) -> QueryOptions:
    """
    Validate keyword options of a query operation.

    Raises:
        OptionsError: On unknown keys or invalid values
    """
    try:
        return QueryOptions.model_validate(dict(options))
    except ValidationError as e:
        raise OptionsError(_error_message(e)) from e


def validate_update_options(options: Mapping[str, Any]) -> UpdateOptions:
    """
    Validate keyword options of an update operation.

    Raises:
        OptionsError: On unknown keys or invalid values
    """
    try:
        return UpdateOptions.model_validate(dict(options))
    except ValidationError as e:
        raise OptionsError(_error_message(e)) from e

"""Client configuration, built once per client and threaded through every call."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Literal, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, field_validator

from sparql_client.exceptions import OptionsError
from sparql_client.formats import QUERY_FORMS, lookup_name
from sparql_client.transport import check_request_opts

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPARQL_CLIENT_"

# Either a static header mapping or a function of the request and the
# headers computed for it, returning extra headers.
HeadersSource = Union[Mapping[str, str], Callable[..., Mapping[str, str]]]


class ClientConfig(BaseModel):
    """Default values for the client operations."""

    protocol_version: Optional[Literal["1.0", "1.1"]] = None
    query_request_method: Optional[Literal["get", "post"]] = None
    update_request_method: Literal["direct", "url_encoded"] = "direct"
    query_result_format: dict[str, str] = Field(default_factory=dict)
    http_headers: Optional[HeadersSource] = None
    request_opts: dict[str, Any] = Field(default_factory=dict)
    timeout: Optional[float] = 60.0
    max_redirects: PositiveInt = 5
    raw_mode: bool = False
    logger: Union[bool, dict[str, Any]] = False
    user_agent: str = "sparql-client/0.1 (SPARQL 1.1 protocol client)"

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @field_validator("query_request_method", "update_request_method", mode="before")
    @classmethod
    def lower_request_method(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("request_opts", mode="before")
    @classmethod
    def validate_request_opts(cls, v: Any) -> Any:
        return {} if v is None else check_request_opts(v)

    @field_validator("query_result_format")
    @classmethod
    def validate_query_result_format(cls, v: dict[str, str]) -> dict[str, str]:
        """Each query form must map to a format of its family."""
        normalized = {}
        for form, name in v.items():
            form = form.lower()
            if form not in QUERY_FORMS:
                raise ValueError(f"unknown query form: {form!r}")
            fmt = lookup_name(name, form)
            if fmt is None or not fmt.supports(form):
                raise ValueError(f"{name} is not a valid result format for {form} queries")
            normalized[form] = fmt.name
        return normalized

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ClientConfig":
        """
        Build a configuration from a plain mapping.

        Raises:
            OptionsError: If a key is unknown or a value is invalid
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise OptionsError(f"invalid client configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Build a configuration from ``SPARQL_CLIENT_*`` environment variables.

        Recognized variables: ``PROTOCOL_VERSION``, ``QUERY_REQUEST_METHOD``,
        ``UPDATE_REQUEST_METHOD``, ``TIMEOUT``, ``MAX_REDIRECTS``,
        ``RAW_MODE``, ``LOGGER``, ``USER_AGENT`` and
        ``RESULT_FORMAT_<FORM>`` (e.g. ``SPARQL_CLIENT_RESULT_FORMAT_SELECT=xml``).
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        for key in ("protocol_version", "query_request_method", "update_request_method", "user_agent"):
            value = env.get(ENV_PREFIX + key.upper())
            if value:
                data[key] = value

        if env.get(ENV_PREFIX + "TIMEOUT"):
            timeout = env[ENV_PREFIX + "TIMEOUT"]
            data["timeout"] = None if timeout.lower() == "none" else timeout
        if env.get(ENV_PREFIX + "MAX_REDIRECTS"):
            data["max_redirects"] = env[ENV_PREFIX + "MAX_REDIRECTS"]
        for key in ("raw_mode", "logger"):
            value = env.get(ENV_PREFIX + key.upper())
            if value:
                data[key] = value.strip().lower() in ("1", "true", "yes", "on")

        result_formats = {}
        for form in QUERY_FORMS:
            value = env.get(f"{ENV_PREFIX}RESULT_FORMAT_{form.upper()}")
            if value:
                result_formats[form] = value
        if result_formats:
            data["query_result_format"] = result_formats

        logger.debug(f"Loaded client configuration from environment: {sorted(data)}")
        return cls.from_mapping(data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ClientConfig":
        """
        Load a configuration from a YAML file.

        The file holds a mapping with the field names of this model, either at
        the top level or under a ``sparql_client`` key.

        Args:
            path: Path to the YAML file

        Returns:
            The loaded configuration
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, Mapping):
            raise OptionsError(f"expected a mapping in {path}, got: {type(data).__name__}")
        if "sparql_client" in data:
            data = data["sparql_client"] or {}

        logger.info(f"Loaded client configuration from {path}")
        return cls.from_mapping(data)

    def transport_options(self, request_opts: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Merge configured and per-call options for ``requests.Session.request``."""
        merged: dict[str, Any] = dict(self.request_opts)
        if request_opts:
            merged.update(request_opts)
        if self.timeout is not None:
            merged.setdefault("timeout", self.timeout)
        return merged

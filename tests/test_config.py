"""Tests for ClientConfig and its loaders."""

import pytest
import yaml
from pydantic import ValidationError

from sparql_client.config import ClientConfig
from sparql_client.exceptions import OptionsError


class TestDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.protocol_version is None
        assert config.query_request_method is None
        assert config.update_request_method == "direct"
        assert config.timeout == 60.0
        assert config.max_redirects == 5
        assert config.raw_mode is False

    def test_is_frozen(self):
        with pytest.raises(ValidationError):
            ClientConfig().raw_mode = True

    def test_request_methods_are_case_insensitive(self):
        assert ClientConfig(query_request_method="GET").query_request_method == "get"

    def test_result_format_must_fit_form(self):
        with pytest.raises(OptionsError, match="csv is not a valid result format for ask queries"):
            ClientConfig.from_mapping({"query_result_format": {"ask": "csv"}})

    def test_unknown_key(self):
        with pytest.raises(OptionsError):
            ClientConfig.from_mapping({"endpoint": "http://example.org/sparql"})

    def test_request_opts_cannot_set_transport_arguments(self):
        with pytest.raises(OptionsError, match="request_opts can't set headers"):
            ClientConfig.from_mapping({"request_opts": {"headers": {"X-Key": "1"}}})


class TestTransportOptions:
    """Test merging of requests keyword arguments."""

    def test_timeout_default(self):
        assert ClientConfig().transport_options() == {"timeout": 60.0}

    def test_call_options_win(self):
        config = ClientConfig(request_opts={"verify": False, "timeout": 5})
        assert config.transport_options({"timeout": 1}) == {"verify": False, "timeout": 1}

    def test_no_timeout(self):
        assert ClientConfig(timeout=None).transport_options() == {}


class TestFromEnv:
    """Test loading from SPARQL_CLIENT_* variables."""

    def test_from_env(self):
        config = ClientConfig.from_env(
            {
                "SPARQL_CLIENT_PROTOCOL_VERSION": "1.1",
                "SPARQL_CLIENT_UPDATE_REQUEST_METHOD": "url_encoded",
                "SPARQL_CLIENT_TIMEOUT": "30",
                "SPARQL_CLIENT_MAX_REDIRECTS": "2",
                "SPARQL_CLIENT_RAW_MODE": "true",
                "SPARQL_CLIENT_RESULT_FORMAT_SELECT": "xml",
                "UNRELATED": "x",
            }
        )

        assert config.protocol_version == "1.1"
        assert config.update_request_method == "url_encoded"
        assert config.timeout == 30.0
        assert config.max_redirects == 2
        assert config.raw_mode is True
        assert config.query_result_format == {"select": "xml"}

    def test_empty_env(self):
        assert ClientConfig.from_env({}) == ClientConfig()

    def test_timeout_none(self):
        assert ClientConfig.from_env({"SPARQL_CLIENT_TIMEOUT": "none"}).timeout is None

    def test_invalid_value(self):
        with pytest.raises(OptionsError):
            ClientConfig.from_env({"SPARQL_CLIENT_PROTOCOL_VERSION": "2.0"})


class TestFromYaml:
    """Test loading from YAML files."""

    def test_top_level(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text(yaml.safe_dump({"query_request_method": "get", "timeout": 10}))

        config = ClientConfig.from_yaml(path)

        assert config.query_request_method == "get"
        assert config.timeout == 10.0

    def test_nested(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "sparql_client": {
                        "http_headers": {"Authorization": "Bearer token"},
                        "query_result_format": {"construct": "ntriples"},
                    }
                }
            )
        )

        config = ClientConfig.from_yaml(path)

        assert config.http_headers == {"Authorization": "Bearer token"}
        assert config.query_result_format == {"construct": "ntriples"}

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(OptionsError):
            ClientConfig.from_yaml(path)

"""Unit tests for ClientConfig loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from obsws_client.config import ClientConfig, parse_event_subscriptions
from obsws_client.protocol import EventSubscription


class TestDefaults:
    def test_defaults(self) -> None:
        config = ClientConfig()

        assert config.url == "ws://localhost:4455"
        assert config.password is None
        assert config.rpc_version == 1
        assert config.event_subscriptions is None
        assert config.request_timeout == 10.0
        config.validate()


class TestValidate:
    @pytest.mark.parametrize("url", ["ws://host:4455", "wss://host", "WS://HOST:4455"])
    def test_valid_urls(self, url: str) -> None:
        ClientConfig(url=url).validate()

    @pytest.mark.parametrize("url", ["http://host", "host:4455", ""])
    def test_invalid_urls(self, url: str) -> None:
        with pytest.raises(ValueError, match="ws://"):
            ClientConfig(url=url).validate()

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError, match="request_timeout"):
            ClientConfig(request_timeout=0).validate()

    def test_no_timeout_allowed(self) -> None:
        ClientConfig(request_timeout=None, connect_timeout=None).validate()


class TestFromEnv:
    def test_reads_variables(self) -> None:
        environ = {
            "OBSWS_URL": "ws://studio:4455",
            "OBSWS_PASSWORD": "hunter2",
            "OBSWS_REQUEST_TIMEOUT": "2.5",
            "OBSWS_CONNECT_TIMEOUT": "none",
            "OBSWS_EVENT_SUBSCRIPTIONS": "scenes|inputs",
        }

        config = ClientConfig.from_env(environ)

        assert config.url == "ws://studio:4455"
        assert config.password == "hunter2"
        assert config.request_timeout == 2.5
        assert config.connect_timeout is None
        assert config.event_subscriptions == EventSubscription.SCENES | EventSubscription.INPUTS

    def test_overrides_win(self) -> None:
        config = ClientConfig.from_env({"OBSWS_URL": "ws://a"}, url="ws://b", password=None)

        assert config.url == "ws://b"
        assert config.password is None

    def test_empty_environment(self) -> None:
        assert ClientConfig.from_env({}) == ClientConfig()

    def test_bad_timeout(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            ClientConfig.from_env({"OBSWS_REQUEST_TIMEOUT": "soon"})


class TestFromFile:
    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "obs.yaml"
        path.write_text(
            "url: wss://studio.local:4455\n"
            "password: 1234\n"
            "request-timeout: 5\n"
            "event-subscriptions: all|input_volume_meters\n"
        )

        config = ClientConfig.from_file(path)

        assert config.url == "wss://studio.local:4455"
        assert config.password == "1234"
        assert config.request_timeout == 5.0
        assert config.event_subscriptions == int(
            EventSubscription.ALL | EventSubscription.INPUT_VOLUME_METERS
        )

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ClientConfig.from_file(path) == ClientConfig()

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("port: 4455\n")

        with pytest.raises(ValueError, match="port"):
            ClientConfig.from_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            ClientConfig.from_file(path)


class TestParseEventSubscriptions:
    def test_int(self) -> None:
        assert parse_event_subscriptions(8) == 8

    def test_numeric_string(self) -> None:
        assert parse_event_subscriptions("65536") == 65536

    def test_names_case_insensitive(self) -> None:
        assert parse_event_subscriptions("General | UI") == 1 | 1024

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="bogus"):
            parse_event_subscriptions("general|bogus")

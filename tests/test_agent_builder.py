"""
Tests for the Agent builder: constructors, mutators and the failure state.
"""

import logging
from typing import Callable

import httpx
import pytest

from httpagent import (
    DELETE,
    GET,
    HEAD,
    PATCH,
    POST,
    PUT,
    Agent,
    AgentSettings,
    Building,
    ConstructionError,
    Failed,
    delete,
    get,
    head,
    http,
    https,
    patch,
    post,
    put,
)
from tests.conftest import RecordingTransport


class TestConstructors:
    """Test suite for the agent constructors."""

    @pytest.mark.parametrize(
        "constructor, method",
        [
            (get, GET),
            (post, POST),
            (put, PUT),
            (patch, PATCH),
            (head, HEAD),
            (delete, DELETE),
        ],
    )
    def test_constructor_sets_method(
        self, constructor: Callable[[str], Agent], method: str
    ) -> None:
        """Test that every verb constructor sets its method."""
        agent = constructor("http://example.com/resource")
        assert agent.current_method == method

    def test_last_method_call_wins(self, transport: RecordingTransport) -> None:
        """Test that the request is sent with the last configured method."""
        get("http://example.com/").method("patch").transport(transport).do()

        assert transport.last.method == "PATCH"

    def test_agent_defaults_to_get(self) -> None:
        """Test that a plain agent uses GET."""
        assert Agent("http://example.com").current_method == GET

    def test_host_constructors(self) -> None:
        """Test http() and https() build URLs from a host."""
        plain = http("example.com:8080")
        secure = https("example.com")

        assert plain.url.scheme == "http"
        assert plain.url.host == "example.com"
        assert plain.url.port == 8080
        assert secure.url.scheme == "https"

    def test_invalid_url_fails_the_agent(self) -> None:
        """Test that an unparsable URL is recorded as a construction error."""
        agent = get("http://example.com:notaport/")

        assert isinstance(agent.state, Failed)
        assert isinstance(agent.error, ConstructionError)

    def test_settings_provide_debug_default(
        self, transport: RecordingTransport, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that settings seed the debug flag."""
        caplog.set_level(logging.INFO, logger="httpagent")

        Agent("http://example.com", settings=AgentSettings(debug=True)).transport(
            transport
        ).do()

        assert "api request" in caplog.text
        assert "api response" in caplog.text


class TestTarget:
    """Test suite for prefix, uri, fragment and basic auth."""

    def test_uri_is_appended_to_url_path(self) -> None:
        """Test that the URL path acts as the default prefix."""
        agent = get("http://example.com/api/").uri("/users")
        assert agent.url.path == "/api/users"

    def test_custom_prefix(self) -> None:
        """Test that prefix() replaces the default prefix."""
        agent = get("http://example.com/api").prefix("/v2/").uri("/users")
        assert agent.url.path == "/v2/users"

    def test_fragment(self) -> None:
        """Test fragment()."""
        agent = get("http://example.com/page").fragment("top")
        assert agent.url.fragment == "top"

    def test_basic_auth_set_and_del(self) -> None:
        """Test that basic auth credentials live in the URL userinfo."""
        agent = get("http://example.com/").basic_auth_set("user", "secret")
        assert agent.url.username == "user"
        assert agent.url.password == "secret"

        agent.basic_auth_del()
        assert agent.url.userinfo == b""


class TestQuery:
    """Test suite for the query mutators."""

    def test_query_add_accumulates(self) -> None:
        """Test that query_add keeps every value of a key."""
        agent = get("http://example.com/").query_add("a", "1").query_add("a", "2")
        assert agent.query_get() == [("a", "1"), ("a", "2")]

    def test_query_set_overwrites(self) -> None:
        """Test that query_set replaces previous values."""
        agent = get("http://example.com/").query_add("a", "1").query_set("a", "3")
        assert agent.query_get() == [("a", "3")]

    def test_query_get_merges_url_parameters(self) -> None:
        """Test that URL parameters come first and are kept."""
        agent = get("http://example.com/?b=0").query_add("a", "1")
        assert agent.query_get() == [("b", "0"), ("a", "1")]

    def test_query_del_keeps_url_parameters(self) -> None:
        """Test that query_del only removes parameters added on the agent."""
        agent = (
            get("http://example.com/?b=0")
            .query_add("b", "1")
            .query_add("c", "2")
            .query_del("b")
        )
        assert agent.query_get() == [("b", "0"), ("c", "2")]


class TestHeaders:
    """Test suite for the header mutators."""

    def test_head_set_add_del(self) -> None:
        """Test head_set, head_add and head_del."""
        agent = (
            get("http://example.com/")
            .head_set("X-One", "1")
            .head_add("X-Many", "a")
            .head_add("X-Many", "b")
            .head_set("X-Gone", "x")
            .head_del("X-Gone")
        )
        headers = agent.get_head_in()

        assert headers["X-One"] == "1"
        assert headers.get_list("X-Many") == ["a", "b"]
        assert "X-Gone" not in headers

    def test_set_head_adds_every_value(self) -> None:
        """Test that set_head appends to existing headers."""
        agent = get("http://example.com/").head_set("X-Many", "a")
        agent.set_head(httpx.Headers([("X-Many", "b"), ("X-Other", "c")]))
        agent.set_head({"X-Plain": "d"})

        headers = agent.get_head_in()
        assert headers.get_list("X-Many") == ["a", "b"]
        assert headers["X-Other"] == "c"
        assert headers["X-Plain"] == "d"

    def test_head_del_missing_key(self) -> None:
        """Test that deleting an unknown header is a no-op."""
        agent = get("http://example.com/").head_del("X-Missing")
        assert "X-Missing" not in agent.get_head_in()


class TestFailureState:
    """Test suite for the sticky failure state."""

    def test_marshal_failure_is_sticky(self, transport: RecordingTransport) -> None:
        """Test that do() keeps raising the stored error without sending."""
        agent = post("http://example.com/").transport(transport)
        agent.json_data({"value": object()})

        with pytest.raises(ConstructionError) as first:
            agent.do()
        with pytest.raises(ConstructionError) as second:
            agent.do()

        assert first.value is second.value
        assert transport.requests == []

    def test_mutators_are_ignored_once_failed(self) -> None:
        """Test that a failed agent ignores further configuration."""
        agent = post("http://example.com/").json_data({"value": object()})
        agent.head_set("X-Ignored", "1").method("PUT")

        assert "X-Ignored" not in agent.get_head_in()
        assert agent.current_method == POST

    def test_reset_clears_the_failure(self, transport: RecordingTransport) -> None:
        """Test that reset() makes the agent executable again."""
        agent = post("http://example.com/").transport(transport)
        agent.xml_data({"first": 1, "second": 2})
        assert isinstance(agent.state, Failed)

        agent.reset()
        assert isinstance(agent.state, Building)
        assert agent.error is None

        agent.do()
        assert len(transport.requests) == 1

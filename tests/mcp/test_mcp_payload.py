"""Tests for pasted MCP server payloads."""

from __future__ import annotations

import pytest

from oh_my_skills.errors import InvalidServerConfigError
from oh_my_skills.mcp.models import AddMcpServerRequest, Transport
from oh_my_skills.mcp.payload import (
    DEFAULT_SERVER_NAME,
    PayloadShape,
    classify_payload,
    parse_server_payload,
    request_from_dict,
    validate_request,
)


def test_wrapped_payload() -> None:
    request = parse_server_payload(
        '{"mcpServers": {"fs": {"command": "npx", "args": ["-y", "fs"], "env": {"A": "1"}}}}'
    )
    assert request == AddMcpServerRequest(
        name="fs",
        transport=Transport.STDIO,
        command="npx",
        args=["-y", "fs"],
        env={"A": "1"},
    )


def test_named_payload_with_url_is_http() -> None:
    request = parse_server_payload(
        {"docs": {"url": "https://mcp.example.com", "headers": {"X-Key": "k"}}}
    )
    assert request.name == "docs"
    assert request.transport == Transport.HTTP
    assert request.headers == {"X-Key": "k"}
    assert request.command is None


def test_flat_payload_uses_name_or_default() -> None:
    named = parse_server_payload('{"name": "web", "url": "https://x"}')
    assert named.name == "web"

    unnamed = parse_server_payload('{"command": "run"}')
    assert unnamed.name == DEFAULT_SERVER_NAME
    assert unnamed.transport == Transport.STDIO


def test_command_wins_over_url() -> None:
    request = parse_server_payload('{"x": {"command": "run", "url": "https://x"}}')
    assert request.transport == Transport.STDIO
    assert request.url is None


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ("", "required"),
        ("   ", "required"),
        ("{oops", "invalid JSON"),
        ("[1]", "expected a JSON object"),
        ("{}", "no server found"),
        ('{"mcpServers": {}}', "no server found"),
        ('{"a": {"command": "x"}, "b": {"command": "y"}}', "one server at a time"),
        ('{"a": "npx"}', "must be an object"),
        ('{"a": {"args": ["x"]}}', "command"),
        ('{"a": {"command": "x", "env": {"N": 1}}}', "env"),
    ],
)
def test_invalid_payloads(payload: str, message: str) -> None:
    with pytest.raises(InvalidServerConfigError) as exc:
        parse_server_payload(payload)
    assert message in str(exc.value)


def test_classify_payload_shapes() -> None:
    assert classify_payload({"mcpServers": {"a": {}}})[0] == PayloadShape.WRAPPED
    assert classify_payload({"url": "https://x"})[0] == PayloadShape.FLAT
    assert classify_payload({"a": {"url": "https://x"}})[:2] == (PayloadShape.NAMED, "a")


def test_validate_request_requires_transport_fields() -> None:
    with pytest.raises(InvalidServerConfigError):
        validate_request({"name": "a", "transport": "http"})
    with pytest.raises(InvalidServerConfigError):
        validate_request({"name": "a", "transport": "sse", "url": "https://x"})
    with pytest.raises(InvalidServerConfigError):
        validate_request({"name": " ", "transport": "stdio", "command": "x"})
    validate_request({"name": "a", "transport": "stdio", "command": "x"})


def test_request_from_dict_round_trips_as_dict() -> None:
    payload = {"name": "a", "transport": "http", "url": "https://x", "headers": {"H": "v"}}
    assert request_from_dict(payload).as_dict() == payload

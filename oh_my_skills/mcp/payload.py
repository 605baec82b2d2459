"""Validation and classification of MCP server definitions pasted as JSON."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Mapping

from jsonschema import Draft7Validator

from oh_my_skills.errors import InvalidServerConfigError
from oh_my_skills.mcp.models import AddMcpServerRequest, Transport

WRAPPER_KEY = "mcpServers"
DEFAULT_SERVER_NAME = "unnamed-server"

_STRING_MAP = {"type": "object", "additionalProperties": {"type": "string"}}

ADD_REQUEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name", "transport"],
    "properties": {
        "name": {"type": "string", "pattern": r"\S"},
        "transport": {"enum": [Transport.STDIO.value, Transport.HTTP.value]},
        "command": {"type": "string", "pattern": r"\S"},
        "args": {"type": "array", "items": {"type": "string"}},
        "env": _STRING_MAP,
        "url": {"type": "string", "pattern": r"\S"},
        "headers": _STRING_MAP,
    },
    "allOf": [
        {
            "if": {"properties": {"transport": {"const": Transport.STDIO.value}}},
            "then": {"required": ["command"]},
        },
        {
            "if": {"properties": {"transport": {"const": Transport.HTTP.value}}},
            "then": {"required": ["url"]},
        },
    ],
}

_validator = Draft7Validator(ADD_REQUEST_SCHEMA)


class PayloadShape(str, Enum):
    WRAPPED = "wrapped"
    FLAT = "flat"
    NAMED = "named"


def _format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


def validate_request(payload: Any) -> None:
    error = next(iter(_validator.iter_errors(payload)), None)
    if error is not None:
        raise InvalidServerConfigError(_format_schema_error(error))


def request_from_dict(payload: Mapping[str, Any]) -> AddMcpServerRequest:
    validate_request(dict(payload))
    return AddMcpServerRequest(
        name=payload["name"],
        transport=Transport(payload["transport"]),
        command=payload.get("command"),
        args=list(payload.get("args") or []),
        env=dict(payload.get("env") or {}),
        url=payload.get("url"),
        headers=dict(payload.get("headers") or {}),
    )


def _single(servers: Mapping[str, Any], where: str) -> tuple[str, Any]:
    if not servers:
        raise InvalidServerConfigError(f"no server found in {where}")
    if len(servers) > 1:
        raise InvalidServerConfigError("add one server at a time")
    return next(iter(servers.items()))


def classify_payload(payload: Mapping[str, Any]) -> tuple[PayloadShape, str, Any]:
    """Return the shape of ``payload`` with the server name and raw config."""
    wrapped = payload.get(WRAPPER_KEY)
    if isinstance(wrapped, dict):
        name, config = _single(wrapped, WRAPPER_KEY)
        return PayloadShape.WRAPPED, name, config

    if any(key in payload for key in ("name", "command", "url")):
        name = payload.get("name") or DEFAULT_SERVER_NAME
        return PayloadShape.FLAT, str(name), payload

    name, config = _single(payload, "payload")
    return PayloadShape.NAMED, name, config


def parse_server_payload(payload: str | Mapping[str, Any]) -> AddMcpServerRequest:
    if isinstance(payload, str):
        if not payload.strip():
            raise InvalidServerConfigError("JSON configuration is required")
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise InvalidServerConfigError(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise InvalidServerConfigError("expected a JSON object")

    _, name, config = classify_payload(payload)
    if not isinstance(config, Mapping):
        raise InvalidServerConfigError(f"server '{name}' must be an object")

    has_command = "command" in config
    transport = (
        Transport.HTTP if "url" in config and not has_command else Transport.STDIO
    )
    request: dict[str, Any] = {"name": name, "transport": transport.value}
    if transport == Transport.STDIO:
        fields = ("command", "args", "env")
    else:
        fields = ("url", "headers")
    for key in fields:
        if config.get(key) is not None:
            request[key] = config[key]
    return request_from_dict(request)

import re
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Mapping

from oh_my_skills.agents.models import McpDialectId
from oh_my_skills.mcp.models import AddMcpServerRequest, McpServerEntry, Transport

_ENV_PATTERN = re.compile(r"^\$\{(?:env:)?([A-Z_][A-Z0-9_]*)\}$")
_BEARER_PATTERN = re.compile(r"^Bearer\s+\$\{(?:env:)?([A-Z_][A-Z0-9_]*)\}$")


def _extract_env_var(value: str) -> str | None:
    match = _ENV_PATTERN.match(value.strip())
    return match.group(1) if match else None


def _extract_bearer_env_var(value: str) -> str | None:
    match = _BEARER_PATTERN.match(value.strip())
    return match.group(1) if match else None


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str):
        return [value]
    return []


def _as_str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def _extra(raw: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {key: deepcopy(value) for key, value in raw.items() if key not in known}


class McpDialect(ABC):
    """Translates between ``McpServerEntry`` and one agent's raw entry shape."""

    servers_key: str

    @abstractmethod
    def to_entry(self, name: str, raw: dict[str, Any]) -> McpServerEntry:
        raise NotImplementedError

    @abstractmethod
    def from_request(self, request: AddMcpServerRequest) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def set_disabled(self, raw: dict[str, Any], disabled: bool) -> dict[str, Any]:
        raise NotImplementedError


class StandardDialect(McpDialect):
    servers_key = "mcpServers"
    KNOWN_KEYS = frozenset(
        {"type", "command", "args", "env", "url", "headers", "disabled"}
    )

    def __init__(self, writes_type: bool = True) -> None:
        self.writes_type = writes_type

    def to_entry(self, name: str, raw: dict[str, Any]) -> McpServerEntry:
        url = raw.get("url")
        command = raw.get("command")
        return McpServerEntry(
            name=name,
            transport=Transport.HTTP if url is not None else Transport.STDIO,
            disabled=raw.get("disabled") is True,
            command=command if isinstance(command, str) else None,
            args=_as_list(raw.get("args")) if isinstance(raw.get("args"), list) else [],
            env=_as_str_map(raw.get("env")),
            url=url if isinstance(url, str) else None,
            headers=_as_str_map(raw.get("headers")),
            extra=_extra(raw, self.KNOWN_KEYS),
        )

    def from_request(self, request: AddMcpServerRequest) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if request.transport == Transport.STDIO:
            if self.writes_type:
                out["type"] = Transport.STDIO.value
            out["command"] = request.command
            if request.args:
                out["args"] = list(request.args)
            if request.env:
                out["env"] = dict(request.env)
        else:
            if self.writes_type:
                out["type"] = Transport.HTTP.value
            out["url"] = request.url
            if request.headers:
                out["headers"] = dict(request.headers)
        return out

    def set_disabled(self, raw: dict[str, Any], disabled: bool) -> dict[str, Any]:
        updated = deepcopy(raw)
        if disabled:
            updated["disabled"] = True
        else:
            updated.pop("disabled", None)
        return updated


class OpenCodeDialect(McpDialect):
    servers_key = "mcp"
    KNOWN_KEYS = frozenset(
        {"type", "command", "environment", "url", "headers", "enabled"}
    )

    def to_entry(self, name: str, raw: dict[str, Any]) -> McpServerEntry:
        disabled = raw.get("enabled") is False
        extra = _extra(raw, self.KNOWN_KEYS)
        if raw.get("type") == "local" or "command" in raw:
            command_parts = _as_list(raw.get("command"))
            return McpServerEntry(
                name=name,
                transport=Transport.STDIO,
                disabled=disabled,
                command=command_parts[0] if command_parts else None,
                args=command_parts[1:],
                env=_as_str_map(raw.get("environment")),
                headers=_as_str_map(raw.get("headers")),
                extra=extra,
            )

        url = raw.get("url")
        return McpServerEntry(
            name=name,
            transport=Transport.HTTP,
            disabled=disabled,
            url=url if isinstance(url, str) else None,
            env=_as_str_map(raw.get("environment")),
            headers=_as_str_map(raw.get("headers")),
            extra=extra,
        )

    def from_request(self, request: AddMcpServerRequest) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if request.transport == Transport.STDIO:
            out["type"] = "local"
            out["command"] = [request.command, *request.args]
            if request.env:
                out["environment"] = dict(request.env)
        else:
            out["type"] = "remote"
            out["url"] = request.url
            if request.headers:
                out["headers"] = dict(request.headers)
        out["enabled"] = True
        return out

    def set_disabled(self, raw: dict[str, Any], disabled: bool) -> dict[str, Any]:
        updated = deepcopy(raw)
        updated["enabled"] = not disabled
        return updated


class CodexDialect(McpDialect):
    """``[mcp_servers.<name>]`` tables in ``~/.codex/config.toml``.

    Environment values of the form ``${VAR}`` are stored by reference in
    ``env_vars`` / ``env_http_headers`` / ``bearer_token_env_var`` and read
    back in the same ``${VAR}`` form.
    """

    servers_key = "mcp_servers"
    KNOWN_KEYS = frozenset(
        {
            "command",
            "args",
            "env",
            "env_vars",
            "url",
            "http_headers",
            "env_http_headers",
            "bearer_token_env_var",
            "enabled",
        }
    )

    def to_entry(self, name: str, raw: dict[str, Any]) -> McpServerEntry:
        url = raw.get("url")

        env: dict[str, str] = {}
        env_vars = raw.get("env_vars")
        if isinstance(env_vars, list):
            for key in env_vars:
                if isinstance(key, str):
                    env[key] = f"${{{key}}}"
        env.update(_as_str_map(raw.get("env")))

        headers = _as_str_map(raw.get("http_headers"))
        env_http_headers = raw.get("env_http_headers")
        if isinstance(env_http_headers, dict):
            for key, env_name in env_http_headers.items():
                if isinstance(env_name, str):
                    headers[str(key)] = f"${{{env_name}}}"
        bearer_token_env_var = raw.get("bearer_token_env_var")
        if isinstance(bearer_token_env_var, str):
            headers["Authorization"] = f"Bearer ${{{bearer_token_env_var}}}"

        command = raw.get("command")
        return McpServerEntry(
            name=name,
            transport=Transport.HTTP if isinstance(url, str) else Transport.STDIO,
            disabled=raw.get("enabled") is False,
            command=command if isinstance(command, str) else None,
            args=_as_list(raw.get("args")) if isinstance(raw.get("args"), list) else [],
            env=env,
            url=url if isinstance(url, str) else None,
            headers=headers,
            extra=_extra(raw, self.KNOWN_KEYS),
        )

    def from_request(self, request: AddMcpServerRequest) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if request.transport == Transport.STDIO:
            out["command"] = request.command
            if request.args:
                out["args"] = list(request.args)

            env_vars: list[str] = []
            env_table: dict[str, str] = {}
            for key, value in request.env.items():
                env_name = _extract_env_var(value)
                if env_name is None:
                    env_table[key] = value
                else:
                    env_vars.append(env_name)
            if env_vars:
                out["env_vars"] = sorted(set(env_vars))
            if env_table:
                out["env"] = env_table
            return out

        out["url"] = request.url
        http_headers: dict[str, str] = {}
        env_http_headers: dict[str, str] = {}
        for key, value in request.headers.items():
            bearer_env = (
                _extract_bearer_env_var(value) if key.lower() == "authorization" else None
            )
            if bearer_env is not None:
                out["bearer_token_env_var"] = bearer_env
                continue
            env_name = _extract_env_var(value)
            if env_name is None:
                http_headers[key] = value
            else:
                env_http_headers[key] = env_name
        if http_headers:
            out["http_headers"] = http_headers
        if env_http_headers:
            out["env_http_headers"] = env_http_headers
        return out

    def set_disabled(self, raw: dict[str, Any], disabled: bool) -> dict[str, Any]:
        updated = deepcopy(raw)
        if disabled:
            updated["enabled"] = False
        else:
            updated.pop("enabled", None)
        return updated


DIALECTS: Mapping[McpDialectId, McpDialect] = {
    McpDialectId.STANDARD: StandardDialect(writes_type=True),
    McpDialectId.STANDARD_UNTYPED: StandardDialect(writes_type=False),
    McpDialectId.OPENCODE: OpenCodeDialect(),
    McpDialectId.CODEX: CodexDialect(),
}


def dialect_for(dialect_id: McpDialectId) -> McpDialect:
    return DIALECTS[dialect_id]

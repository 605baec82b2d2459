from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Transport(str, Enum):
    STDIO = "stdio"
    HTTP = "http"


@dataclass(frozen=True)
class McpServerEntry:
    name: str
    transport: Transport
    disabled: bool = False
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "transport": self.transport.value,
            "disabled": self.disabled,
            "command": self.command,
            "args": list(self.args),
            "env": dict(self.env),
            "url": self.url,
            "headers": dict(self.headers),
            "extra": dict(self.extra),
        }


@dataclass(frozen=True)
class AddMcpServerRequest:
    name: str
    transport: Transport
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "transport": self.transport.value
            if isinstance(self.transport, Transport)
            else self.transport,
        }
        if self.command is not None:
            payload["command"] = self.command
        if self.args:
            payload["args"] = list(self.args)
        if self.env:
            payload["env"] = dict(self.env)
        if self.url is not None:
            payload["url"] = self.url
        if self.headers:
            payload["headers"] = dict(self.headers)
        return payload

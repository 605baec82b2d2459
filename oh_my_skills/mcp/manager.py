from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from oh_my_skills.agents.models import AgentId, AgentProfile
from oh_my_skills.agents.registry import AgentRegistry
from oh_my_skills.config.document import load_document, save_document
from oh_my_skills.errors import (
    InvalidServerConfigError,
    McpUnsupportedError,
    NotFoundError,
)
from oh_my_skills.locks import KeyedLocks
from oh_my_skills.mcp.dialects import McpDialect, dialect_for
from oh_my_skills.mcp.models import AddMcpServerRequest, McpServerEntry
from oh_my_skills.mcp.payload import validate_request

logger = logging.getLogger(__name__)

ServersChange = Callable[[dict[str, Any], McpDialect], None]


class McpServerManager:
    """Load, mutate and save the MCP servers map of an agent's config file."""

    def __init__(self, registry: AgentRegistry, locks: KeyedLocks | None = None) -> None:
        self._registry = registry
        self._locks = locks or KeyedLocks()

    async def list(self, agent: AgentId | str) -> list[McpServerEntry]:
        profile = self._registry.resolve(agent)
        if not profile.has_mcp:
            return []
        return await asyncio.to_thread(self._list, profile)

    async def add(self, agent: AgentId | str, request: AddMcpServerRequest) -> None:
        validate_request(request.as_dict())

        def change(servers: dict[str, Any], dialect: McpDialect) -> None:
            if request.name in servers:
                logger.info("replacing existing MCP server %s", request.name)
            servers[request.name] = dialect.from_request(request)

        await self._mutate(agent, change)

    async def remove(self, agent: AgentId | str, name: str) -> None:
        def change(servers: dict[str, Any], dialect: McpDialect) -> None:
            if name not in servers:
                raise NotFoundError("MCP server", name)
            del servers[name]

        await self._mutate(agent, change)

    async def toggle(self, agent: AgentId | str, name: str, disabled: bool) -> None:
        def change(servers: dict[str, Any], dialect: McpDialect) -> None:
            if name not in servers:
                raise NotFoundError("MCP server", name)
            raw = servers[name]
            if not isinstance(raw, dict):
                raise InvalidServerConfigError(f"entry '{name}' is not an object")
            servers[name] = dialect.set_disabled(raw, disabled)

        await self._mutate(agent, change)

    def _mcp_profile(self, agent: AgentId | str) -> AgentProfile:
        profile = self._registry.resolve(agent)
        if not profile.has_mcp:
            raise McpUnsupportedError(profile.id)
        return profile

    async def _mutate(self, agent: AgentId | str, change: ServersChange) -> None:
        profile = self._mcp_profile(agent)
        assert profile.mcp_config_path is not None
        key = ("mcp", str(profile.mcp_config_path.resolve()))
        async with self._locks.hold(key):
            await asyncio.to_thread(self._apply, profile, change)

    def _list(self, profile: AgentProfile) -> list[McpServerEntry]:
        dialect = dialect_for(profile.mcp_dialect)  # type: ignore[arg-type]
        document = load_document(
            profile.mcp_config_path,  # type: ignore[arg-type]
            profile.mcp_format,  # type: ignore[arg-type]
            dialect.servers_key,
        )
        entries: list[McpServerEntry] = []
        for name, raw in document.servers().items():
            if not isinstance(raw, dict):
                logger.warning("skipping non-object MCP entry %s in %s", name, document.path)
                continue
            entries.append(dialect.to_entry(name, raw))
        return entries

    def _apply(self, profile: AgentProfile, change: ServersChange) -> None:
        dialect = dialect_for(profile.mcp_dialect)  # type: ignore[arg-type]
        document = load_document(
            profile.mcp_config_path,  # type: ignore[arg-type]
            profile.mcp_format,  # type: ignore[arg-type]
            dialect.servers_key,
        )
        servers = document.servers()
        change(servers, dialect)
        document.replace_servers(servers)
        save_document(document)
        logger.debug("updated MCP servers for %s", profile.id)

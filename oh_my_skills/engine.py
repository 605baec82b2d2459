"""Async facade over the skill and MCP components."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable

import httpx

from oh_my_skills.agents.models import AgentId, AgentProfile
from oh_my_skills.agents.registry import AgentRegistry
from oh_my_skills.errors import SkillSyncError
from oh_my_skills.locks import KeyedLocks
from oh_my_skills.mcp.manager import McpServerManager
from oh_my_skills.mcp.models import AddMcpServerRequest, McpServerEntry
from oh_my_skills.settings import EngineSettings
from oh_my_skills.skills.archive import SkillArchive
from oh_my_skills.skills.models import (
    PreparedSkill,
    SkillFile,
    SkillInfo,
    SkillMetadata,
)
from oh_my_skills.skills.store import SkillStore
from oh_my_skills.sources.classifier import is_url
from oh_my_skills.sources.models import Bundle, SearchSkill, SourceKind
from oh_my_skills.sources.resolver import SourceResolver, build_http_client
from oh_my_skills.sources.search import DEFAULT_SEARCH_LIMIT, SkillSearchClient

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "local"


@dataclass(frozen=True)
class AgentInstallResult:
    agent: str
    metadata: SkillMetadata | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def source_label(descriptor: str, bundle: Bundle) -> str:
    raw = descriptor.strip()
    if bundle.kind in (SourceKind.GITHUB_DIRECTORY, SourceKind.GITHUB_REPOSITORY):
        return raw
    if is_url(raw):
        return raw
    return LOCAL_SOURCE


class SkillsEngine:
    def __init__(
        self,
        settings: EngineSettings | None = None,
        registry: AgentRegistry | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.registry = registry or AgentRegistry.default(self.settings.home)
        self._owns_client = client is None
        self._client = client or build_http_client(self.settings)
        locks = KeyedLocks()
        self.store = SkillStore(self.registry, locks)
        self.archive = SkillArchive()
        self.mcp = McpServerManager(self.registry, locks)
        self.resolver = SourceResolver(self.settings, self._client)
        self.search_client = SkillSearchClient(self.settings, self._client)

    @classmethod
    def create_default(cls) -> "SkillsEngine":
        return cls(settings=EngineSettings.from_env())

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SkillsEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def list_agents(self) -> list[AgentProfile]:
        return self.registry.profiles()

    async def list_skills(self, agent: AgentId | str) -> list[SkillInfo]:
        return await self.store.list(agent)

    async def list_all_skills(self) -> list[SkillInfo]:
        listings = await asyncio.gather(
            *(self.store.list(profile.agent_id) for profile in self.list_agents())
        )
        seen: dict[str, SkillInfo] = {}
        for skills in listings:
            for skill in skills:
                seen.setdefault(skill.name, skill)
        return sorted(seen.values(), key=lambda item: item.name)

    async def get_skill_metadata(
        self, agent: AgentId | str, name: str
    ) -> SkillMetadata | None:
        return await self.store.read_metadata(agent, name)

    async def get_skill_content(self, agent: AgentId | str, name: str) -> str:
        return await self.store.read_content(agent, name)

    async def list_skill_files(
        self, agent: AgentId | str, name: str, subpath: str | None = None
    ) -> list[SkillFile]:
        return await self.store.list_files(agent, name, subpath)

    async def read_skill_file(self, agent: AgentId | str, name: str, path: str) -> str:
        return await self.store.read_file(agent, name, path)

    async def prepare_source(
        self, descriptor: str, content: bytes | None = None
    ) -> tuple[PreparedSkill, str]:
        bundle = await self.resolver.resolve(descriptor, content)
        prepared = self.archive.prepare(bundle)
        return prepared, source_label(descriptor, bundle)

    async def install_skill_from_source(
        self,
        agent: AgentId | str,
        descriptor: str,
        content: bytes | None = None,
    ) -> SkillMetadata:
        profile = self.registry.resolve(agent)
        prepared, source = await self.prepare_source(descriptor, content)
        return await self.store.install(profile.agent_id, prepared, source)

    async def install_skill_to_agents(
        self,
        agents: Iterable[AgentId | str] | None,
        descriptor: str,
        content: bytes | None = None,
    ) -> list[AgentInstallResult]:
        """Fetch ``descriptor`` once and install it into every given agent.

        ``None`` or an empty iterable means every registered agent. A failure
        for one agent is reported in its result and does not stop the others.
        """
        selected = list(agents or [])
        profiles = (
            [self.registry.resolve(agent) for agent in selected]
            if selected
            else self.list_agents()
        )
        prepared, source = await self.prepare_source(descriptor, content)

        async def install_one(profile: AgentProfile) -> AgentInstallResult:
            try:
                metadata = await self.store.install(profile.agent_id, prepared, source)
            except (SkillSyncError, OSError) as exc:
                logger.warning("install of %s into %s failed: %s", prepared.name, profile.id, exc)
                return AgentInstallResult(agent=profile.id, error=str(exc))
            return AgentInstallResult(agent=profile.id, metadata=metadata)

        return list(await asyncio.gather(*(install_one(p) for p in profiles)))

    async def delete_skill(self, agent: AgentId | str, name: str) -> None:
        await self.store.delete(agent, name)

    async def search_skills(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> list[SearchSkill]:
        return await self.search_client.search(query, limit)

    async def list_mcp_servers(self, agent: AgentId | str) -> list[McpServerEntry]:
        return await self.mcp.list(agent)

    async def add_mcp_server(
        self, agent: AgentId | str, request: AddMcpServerRequest
    ) -> None:
        await self.mcp.add(agent, request)

    async def remove_mcp_server(self, agent: AgentId | str, name: str) -> None:
        await self.mcp.remove(agent, name)

    async def toggle_mcp_server(
        self, agent: AgentId | str, name: str, disabled: bool
    ) -> None:
        await self.mcp.toggle(agent, name, disabled)

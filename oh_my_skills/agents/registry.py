from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from oh_my_skills.agents.models import (
    AgentId,
    AgentProfile,
    ConfigFormat,
    McpDialectId,
)
from oh_my_skills.errors import UnknownAgentError


@dataclass(frozen=True)
class _AgentLayout:
    agent_id: AgentId
    label: str
    skills_dir: tuple[str, ...]
    mcp_config: tuple[str, ...] | None = None
    mcp_format: ConfigFormat | None = None
    mcp_dialect: McpDialectId | None = None


AGENT_LAYOUTS: tuple[_AgentLayout, ...] = (
    _AgentLayout(
        AgentId.CLAUDE,
        "Claude Code",
        (".claude", "skills"),
        (".claude.json",),
        ConfigFormat.JSON,
        McpDialectId.STANDARD,
    ),
    _AgentLayout(
        AgentId.GEMINI,
        "Gemini CLI",
        (".gemini", "skills"),
        (".gemini", "settings.json"),
        ConfigFormat.JSON,
        McpDialectId.STANDARD_UNTYPED,
    ),
    _AgentLayout(
        AgentId.CODEX,
        "Codex CLI",
        (".codex", "skills"),
        (".codex", "config.toml"),
        ConfigFormat.TOML,
        McpDialectId.CODEX,
    ),
    _AgentLayout(
        AgentId.OPENCODE,
        "OpenCode",
        (".config", "opencode", "skills"),
        (".config", "opencode", "opencode.json"),
        ConfigFormat.JSON,
        McpDialectId.OPENCODE,
    ),
    _AgentLayout(
        AgentId.KIRO,
        "Kiro CLI",
        (".kiro", "skills"),
        (".kiro", "settings.json"),
        ConfigFormat.JSON,
        McpDialectId.STANDARD,
    ),
    _AgentLayout(
        AgentId.ANTIGRAVITY,
        "Antigravity",
        (".gemini", "antigravity", "global_skills"),
    ),
    _AgentLayout(AgentId.CODEBUDDY, "CodeBuddy", (".codebuddy", "skills")),
    _AgentLayout(
        AgentId.CURSOR,
        "Cursor",
        (".cursor", "skills"),
        (".cursor", "mcp.json"),
        ConfigFormat.JSON,
        McpDialectId.STANDARD_UNTYPED,
    ),
    _AgentLayout(AgentId.KIMI, "Kimi CLI", (".kimi", "skills")),
    _AgentLayout(AgentId.MOLTBOT, "Moltbot", (".moltbot", "skills")),
    _AgentLayout(AgentId.QODER, "Qoder", (".qoder", "skills")),
    _AgentLayout(AgentId.QWEN, "Qwen Code", (".qwen", "skills")),
    _AgentLayout(AgentId.ZENCODER, "Zencoder", (".zencoder", "skills")),
)


def _profile_from_layout(home: Path, layout: _AgentLayout) -> AgentProfile:
    return AgentProfile(
        agent_id=layout.agent_id,
        label=layout.label,
        skills_dir=home.joinpath(*layout.skills_dir),
        mcp_config_path=home.joinpath(*layout.mcp_config)
        if layout.mcp_config is not None
        else None,
        mcp_format=layout.mcp_format,
        mcp_dialect=layout.mcp_dialect,
    )


class AgentRegistry:
    """Immutable lookup table of agent profiles, built once per process."""

    def __init__(self, profiles: Iterable[AgentProfile]) -> None:
        table: dict[str, AgentProfile] = {}
        for profile in profiles:
            if profile.id in table:
                raise ValueError(f"Duplicate agent profile: {profile.id}")
            if profile.has_mcp and (
                profile.mcp_format is None or profile.mcp_dialect is None
            ):
                raise ValueError(
                    f"Agent {profile.id} has an MCP config without format or dialect"
                )
            table[profile.id] = profile
        self._profiles: Mapping[str, AgentProfile] = MappingProxyType(table)

    @classmethod
    def default(cls, home: Path | None = None) -> "AgentRegistry":
        root = home or Path.home()
        return cls(_profile_from_layout(root, layout) for layout in AGENT_LAYOUTS)

    def resolve(self, agent_id: AgentId | str) -> AgentProfile:
        key = agent_id.value if isinstance(agent_id, AgentId) else str(agent_id)
        profile = self._profiles.get(key.lower())
        if profile is None:
            raise UnknownAgentError(key)
        return profile

    def has_mcp_support(self, agent_id: AgentId | str) -> bool:
        return self.resolve(agent_id).has_mcp

    def profiles(self) -> list[AgentProfile]:
        return list(self._profiles.values())

    def __contains__(self, agent_id: object) -> bool:
        if isinstance(agent_id, AgentId):
            return agent_id.value in self._profiles
        return isinstance(agent_id, str) and agent_id.lower() in self._profiles

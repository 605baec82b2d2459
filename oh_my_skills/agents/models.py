from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class AgentId(str, Enum):
    CLAUDE = "claude"
    GEMINI = "gemini"
    CODEX = "codex"
    OPENCODE = "opencode"
    KIRO = "kiro"
    ANTIGRAVITY = "antigravity"
    CODEBUDDY = "codebuddy"
    CURSOR = "cursor"
    KIMI = "kimi"
    MOLTBOT = "moltbot"
    QODER = "qoder"
    QWEN = "qwen"
    ZENCODER = "zencoder"


class ConfigFormat(str, Enum):
    JSON = "json"
    TOML = "toml"


class McpDialectId(str, Enum):
    STANDARD = "standard"
    STANDARD_UNTYPED = "standard-untyped"
    OPENCODE = "opencode"
    CODEX = "codex"


@dataclass(frozen=True)
class AgentProfile:
    agent_id: AgentId
    label: str
    skills_dir: Path
    mcp_config_path: Path | None = None
    mcp_format: ConfigFormat | None = None
    mcp_dialect: McpDialectId | None = None

    @property
    def id(self) -> str:
        return self.agent_id.value

    @property
    def has_mcp(self) -> bool:
        return self.mcp_config_path is not None

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.label,
            "skills_path": str(self.skills_dir),
            "has_mcp": self.has_mcp,
            "mcp_config_path": str(self.mcp_config_path)
            if self.mcp_config_path is not None
            else None,
        }

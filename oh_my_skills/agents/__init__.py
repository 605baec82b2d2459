from oh_my_skills.agents.models import (
    AgentId,
    AgentProfile,
    ConfigFormat,
    McpDialectId,
)
from oh_my_skills.agents.registry import AgentRegistry

__all__ = [
    "AgentId",
    "AgentProfile",
    "AgentRegistry",
    "ConfigFormat",
    "McpDialectId",
]

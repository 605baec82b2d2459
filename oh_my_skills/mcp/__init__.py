from oh_my_skills.mcp.dialects import McpDialect, dialect_for
from oh_my_skills.mcp.manager import McpServerManager
from oh_my_skills.mcp.models import AddMcpServerRequest, McpServerEntry, Transport
from oh_my_skills.mcp.payload import PayloadShape, parse_server_payload

__all__ = [
    "AddMcpServerRequest",
    "McpDialect",
    "McpServerEntry",
    "McpServerManager",
    "PayloadShape",
    "Transport",
    "dialect_for",
    "parse_server_payload",
]

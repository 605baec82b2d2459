from pathlib import Path


class SkillSyncError(Exception):
    """Base user-facing engine error."""


class SkillSyncFileError(SkillSyncError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class UnknownAgentError(SkillSyncError):
    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Unknown agent: {agent_id}")


class McpUnsupportedError(SkillSyncError):
    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"MCP is not supported for agent: {agent_id}")


class SourceError(SkillSyncError):
    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{message}: {source}")


class SourceUnreachableError(SourceError):
    def __init__(self, source: str, detail: str) -> None:
        self.detail = detail
        super().__init__(source=source, message=f"Source unreachable ({detail})")


class SourceInvalidError(SourceError):
    def __init__(self, source: str, detail: str) -> None:
        self.detail = detail
        super().__init__(source=source, message=f"Invalid source ({detail})")


class SourceEmptyError(SourceError):
    def __init__(self, source: str) -> None:
        super().__init__(source=source, message="No files found in source")


class MissingPrimaryFileError(SkillSyncError):
    def __init__(self, where: str) -> None:
        self.where = where
        super().__init__(f"No SKILL.md found in {where}")


class PathEscapeError(SkillSyncError):
    def __init__(self, path: str, root: Path | None = None) -> None:
        self.path = path
        self.root = root
        super().__init__(f"Path escapes skill directory: {path}")


class InvalidServerConfigError(SkillSyncError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid MCP server config ({detail})")


class NotFoundError(SkillSyncError):
    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} not found: {name}")


class ConfigParseError(SkillSyncFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Cannot parse config ({detail})")

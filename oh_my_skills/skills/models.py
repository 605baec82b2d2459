"""Skill data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any

from oh_my_skills.sources.models import BundleFile


@dataclass(frozen=True)
class FrontMatter:
    name: str | None = None
    description: str | None = None
    version: str | None = None
    author: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SkillMetadata:
    name: str
    installed_at: str
    updated_at: str
    description: str | None = None
    source: str | None = None
    version: str | None = None
    author: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SkillMetadata":
        def _opt(key: str) -> str | None:
            value = payload.get(key)
            return str(value) if value is not None else None

        name = payload.get("name")
        installed_at = payload.get("installed_at")
        if not isinstance(name, str) or not isinstance(installed_at, str):
            raise ValueError("metadata requires string 'name' and 'installed_at'")
        updated_at = payload.get("updated_at")
        return cls(
            name=name,
            installed_at=installed_at,
            updated_at=updated_at if isinstance(updated_at, str) else installed_at,
            description=_opt("description"),
            source=_opt("source"),
            version=_opt("version"),
            author=_opt("author"),
        )

    def reinstalled(self, previous: "SkillMetadata | None") -> "SkillMetadata":
        if previous is None:
            return self
        return replace(self, installed_at=previous.installed_at)


@dataclass(frozen=True)
class SkillInfo:
    name: str
    path: Path
    token_count: int

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": str(self.path), "token_count": self.token_count}


@dataclass(frozen=True)
class SkillFile:
    name: str
    path: str
    is_directory: bool
    size: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PreparedSkill:
    """A validated bundle re-rooted at its primary file."""

    name: str
    primary_path: str
    files: tuple[BundleFile, ...]
    front_matter: FrontMatter
    description: str | None
    token_count: int
    origin: str

"""On-disk skill directories for one agent at a time."""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from pathlib import Path

from oh_my_skills.agents.models import AgentId, AgentProfile
from oh_my_skills.agents.registry import AgentRegistry
from oh_my_skills.constants import METADATA_FILENAME, PRIMARY_FILENAME
from oh_my_skills.errors import (
    MissingPrimaryFileError,
    NotFoundError,
    PathEscapeError,
)
from oh_my_skills.filesystem import (
    path_exists,
    remove_path,
    staging_dir_for,
    swap_into_place,
)
from oh_my_skills.locks import KeyedLocks
from oh_my_skills.skills.models import (
    PreparedSkill,
    SkillFile,
    SkillInfo,
    SkillMetadata,
)
from oh_my_skills.skills.parser import count_tokens
from oh_my_skills.utils import is_under, utc_now_iso

logger = logging.getLogger(__name__)


def find_primary_file(skill_dir: Path) -> Path | None:
    for candidate in (PRIMARY_FILENAME, PRIMARY_FILENAME.lower()):
        direct = skill_dir / candidate
        if direct.is_file():
            return direct

    try:
        children = sorted(skill_dir.iterdir())
    except OSError:
        return None

    for child in children:
        if child.is_file() and child.name.lower() == PRIMARY_FILENAME.lower():
            return child
    for child in children:
        if child.is_dir() and not child.name.startswith("."):
            found = find_primary_file(child)
            if found is not None:
                return found
    return None


def _validate_name(name: str) -> str:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise PathEscapeError(name)
    return name


class SkillStore:
    def __init__(self, registry: AgentRegistry, locks: KeyedLocks | None = None) -> None:
        self._registry = registry
        self._locks = locks or KeyedLocks()

    def skill_dir(self, agent: AgentId | str, name: str) -> Path:
        profile = self._registry.resolve(agent)
        return profile.skills_dir / _validate_name(name)

    async def install(
        self,
        agent: AgentId | str,
        prepared: PreparedSkill,
        source: str | None = None,
    ) -> SkillMetadata:
        profile = self._registry.resolve(agent)
        _validate_name(prepared.name)
        async with self._locks.hold((profile.id, prepared.name)):
            return await asyncio.to_thread(self._install, profile, prepared, source)

    async def list(self, agent: AgentId | str) -> list[SkillInfo]:
        profile = self._registry.resolve(agent)
        return await asyncio.to_thread(self._list, profile)

    async def delete(self, agent: AgentId | str, name: str) -> None:
        profile = self._registry.resolve(agent)
        _validate_name(name)
        async with self._locks.hold((profile.id, name)):
            await asyncio.to_thread(self._delete, profile, name)

    async def read_metadata(
        self, agent: AgentId | str, name: str
    ) -> SkillMetadata | None:
        skill_dir = self._existing_dir(agent, name)
        return await asyncio.to_thread(self._load_metadata, skill_dir)

    async def read_content(self, agent: AgentId | str, name: str) -> str:
        skill_dir = self._existing_dir(agent, name)
        primary = await asyncio.to_thread(find_primary_file, skill_dir)
        if primary is None:
            raise MissingPrimaryFileError(str(skill_dir))
        return await asyncio.to_thread(
            primary.read_text, encoding="utf-8", errors="replace"
        )

    async def list_files(
        self, agent: AgentId | str, name: str, subpath: str | None = None
    ) -> list[SkillFile]:
        skill_dir = self._existing_dir(agent, name)
        return await asyncio.to_thread(self._list_files, skill_dir, subpath)

    async def read_file(self, agent: AgentId | str, name: str, path: str) -> str:
        skill_dir = self._existing_dir(agent, name)
        target = self._contained(skill_dir, path)
        if not target.is_file():
            raise NotFoundError("File", path)
        return await asyncio.to_thread(
            target.read_text, encoding="utf-8", errors="replace"
        )

    def _existing_dir(self, agent: AgentId | str, name: str) -> Path:
        skill_dir = self.skill_dir(agent, name)
        if not skill_dir.is_dir():
            raise NotFoundError("Skill", name)
        return skill_dir

    @staticmethod
    def _contained(skill_dir: Path, relative: str) -> Path:
        root = skill_dir.resolve()
        target = (root / relative).resolve()
        if not is_under(target, root):
            raise PathEscapeError(relative, root)
        return target

    def _install(
        self,
        profile: AgentProfile,
        prepared: PreparedSkill,
        source: str | None,
    ) -> SkillMetadata:
        profile.skills_dir.mkdir(parents=True, exist_ok=True)
        target = profile.skills_dir / prepared.name
        previous = self._load_metadata(target) if target.is_dir() else None

        now = utc_now_iso()
        metadata = SkillMetadata(
            name=prepared.name,
            installed_at=now,
            updated_at=now,
            description=prepared.description,
            source=source,
            version=prepared.front_matter.version,
            author=prepared.front_matter.author,
        ).reinstalled(previous)

        staging = staging_dir_for(target)
        try:
            staging.mkdir()
            for item in prepared.files:
                out_path = self._contained(staging, item.path)
                out_path.parent.mkdir(parents=True, exist_ok=True)
                out_path.write_bytes(item.content)
            (staging / METADATA_FILENAME).write_text(
                json.dumps(metadata.as_dict(), indent=2) + "\n", encoding="utf-8"
            )
            swap_into_place(staging, target)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        logger.info(
            "installed skill %s for %s (%d files)",
            prepared.name,
            profile.id,
            len(prepared.files),
        )
        return metadata

    def _list(self, profile: AgentProfile) -> list[SkillInfo]:
        if not profile.skills_dir.is_dir():
            return []

        skills: list[SkillInfo] = []
        for entry in profile.skills_dir.iterdir():
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            primary = find_primary_file(entry)
            if primary is None:
                continue
            text = primary.read_text(encoding="utf-8", errors="replace")
            skills.append(
                SkillInfo(name=entry.name, path=entry, token_count=count_tokens(text))
            )
        return sorted(skills, key=lambda item: item.name)

    def _delete(self, profile: AgentProfile, name: str) -> None:
        target = profile.skills_dir / name
        if not path_exists(target):
            raise NotFoundError("Skill", name)
        remove_path(target)
        logger.info("deleted skill %s for %s", name, profile.id)

    def _list_files(self, skill_dir: Path, subpath: str | None) -> list[SkillFile]:
        root = skill_dir.resolve()
        base = self._contained(skill_dir, subpath) if subpath else root
        if not base.is_dir():
            raise NotFoundError("Directory", subpath or ".")

        items: list[SkillFile] = []
        for child in base.iterdir():
            if base == root and child.name == METADATA_FILENAME:
                continue
            is_directory = child.is_dir()
            items.append(
                SkillFile(
                    name=child.name,
                    path=child.relative_to(root).as_posix(),
                    is_directory=is_directory,
                    size=None if is_directory else child.stat().st_size,
                )
            )
        return sorted(items, key=lambda item: (not item.is_directory, item.name.lower()))

    @staticmethod
    def _load_metadata(skill_dir: Path) -> SkillMetadata | None:
        path = skill_dir / METADATA_FILENAME
        if not path.is_file():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("metadata must be a JSON object")
            return SkillMetadata.from_dict(payload)
        except ValueError as exc:
            logger.warning("ignoring unreadable metadata %s: %s", path, exc)
            return None


"""Tests for on-disk skill installation."""

from __future__ import annotations

import asyncio
import json
import threading
import time
from pathlib import Path

import pytest

from oh_my_skills.agents.registry import AgentRegistry
from oh_my_skills.errors import NotFoundError, PathEscapeError
from oh_my_skills.skills.archive import SkillArchive
from oh_my_skills.skills.models import PreparedSkill
from oh_my_skills.skills.store import SkillStore, find_primary_file
from oh_my_skills.sources.models import Bundle, BundleFile, SourceKind


def _prepared(files: dict[str, str], name_hint: str = "commit") -> PreparedSkill:
    bundle = Bundle(
        files=tuple(BundleFile(path, text.encode("utf-8")) for path, text in files.items()),
        origin="test",
        kind=SourceKind.ARCHIVE,
        name_hint=name_hint,
    )
    return SkillArchive().prepare(bundle)


def _leftovers(skills_dir: Path) -> list[str]:
    return sorted(child.name for child in skills_dir.iterdir() if child.name.startswith("."))


@pytest.mark.asyncio(loop_scope="function")
async def test_install_then_list(registry: AgentRegistry, tmp_path: Path) -> None:
    store = SkillStore(registry)
    metadata = await store.install(
        "claude",
        _prepared({"SKILL.md": "# Commit\n\nWrite good commit messages.\n"}),
        source="github:acme/skills",
    )

    assert metadata.name == "commit"
    assert metadata.source == "github:acme/skills"
    assert metadata.description == "Write good commit messages."

    skills = await store.list("claude")
    assert [item.name for item in skills] == ["commit"]
    assert skills[0].token_count > 0
    assert skills[0].path == tmp_path / ".claude" / "skills" / "commit"

    stored = json.loads(
        (tmp_path / ".claude" / "skills" / "commit" / ".metadata.json").read_text()
    )
    assert stored["name"] == "commit"
    assert stored["installed_at"] == stored["updated_at"]


@pytest.mark.asyncio(loop_scope="function")
async def test_reinstall_replaces_files_and_keeps_install_time(
    registry: AgentRegistry, tmp_path: Path
) -> None:
    store = SkillStore(registry)
    first = await store.install(
        "gemini", _prepared({"SKILL.md": "# v1\n", "old.txt": "stale"})
    )
    second = await store.install(
        "gemini", _prepared({"SKILL.md": "# v2\n", "new.txt": "fresh"})
    )

    skill_dir = tmp_path / ".gemini" / "skills" / "commit"
    assert not (skill_dir / "old.txt").exists()
    assert (skill_dir / "new.txt").read_text() == "fresh"
    assert second.installed_at == first.installed_at
    assert _leftovers(skill_dir.parent) == []


@pytest.mark.asyncio(loop_scope="function")
async def test_failed_swap_keeps_previous_version(
    registry: AgentRegistry, tmp_path: Path, monkeypatch
) -> None:
    store = SkillStore(registry)
    await store.install("claude", _prepared({"SKILL.md": "# original\n"}))

    def _boom(staged: Path, target: Path) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("oh_my_skills.skills.store.swap_into_place", _boom)
    with pytest.raises(OSError):
        await store.install("claude", _prepared({"SKILL.md": "# replacement\n"}))

    skills_dir = tmp_path / ".claude" / "skills"
    assert (skills_dir / "commit" / "SKILL.md").read_text() == "# original\n"
    assert _leftovers(skills_dir) == []


@pytest.mark.asyncio(loop_scope="function")
async def test_delete_removes_directory(registry: AgentRegistry, tmp_path: Path) -> None:
    store = SkillStore(registry)
    await store.install("kimi", _prepared({"SKILL.md": "# k\n"}))

    await store.delete("kimi", "commit")
    assert not (tmp_path / ".kimi" / "skills" / "commit").exists()

    with pytest.raises(NotFoundError):
        await store.delete("kimi", "commit")


@pytest.mark.asyncio(loop_scope="function")
@pytest.mark.parametrize("name", ["../../etc/passwd", "..", "a/b", ""])
async def test_names_cannot_escape_skills_dir(registry: AgentRegistry, name: str) -> None:
    store = SkillStore(registry)
    with pytest.raises(PathEscapeError):
        await store.delete("claude", name)


@pytest.mark.asyncio(loop_scope="function")
async def test_list_skips_hidden_and_incomplete_dirs(
    registry: AgentRegistry, tmp_path: Path, write_skill
) -> None:
    skills_dir = tmp_path / ".qwen" / "skills"
    write_skill(skills_dir, "zeta")
    write_skill(skills_dir, "alpha")
    write_skill(skills_dir, ".hidden")
    (skills_dir / "empty").mkdir()
    (skills_dir / "loose.md").write_text("not a skill")

    skills = await SkillStore(registry).list("qwen")
    assert [item.name for item in skills] == ["alpha", "zeta"]


@pytest.mark.asyncio(loop_scope="function")
async def test_list_missing_dir_is_empty(registry: AgentRegistry) -> None:
    assert await SkillStore(registry).list("zencoder") == []


@pytest.mark.asyncio(loop_scope="function")
async def test_list_files_and_read_file(registry: AgentRegistry) -> None:
    store = SkillStore(registry)
    await store.install(
        "cursor",
        _prepared(
            {
                "SKILL.md": "# c\n",
                "scripts/run.sh": "echo hi\n",
                "scripts/lib/util.sh": "true\n",
            }
        ),
    )

    files = await store.list_files("cursor", "commit")
    assert [(item.name, item.is_directory) for item in files] == [
        ("scripts", True),
        ("SKILL.md", False),
    ]
    assert files[1].size == 4

    nested = await store.list_files("cursor", "commit", "scripts")
    assert [item.path for item in nested] == ["scripts/lib", "scripts/run.sh"]

    assert await store.read_file("cursor", "commit", "scripts/run.sh") == "echo hi\n"
    with pytest.raises(PathEscapeError):
        await store.read_file("cursor", "commit", "../../.claude.json")
    with pytest.raises(PathEscapeError):
        await store.read_file("cursor", "commit", "../../etc/passwd")
    with pytest.raises(NotFoundError):
        await store.read_file("cursor", "commit", "missing.txt")
    with pytest.raises(NotFoundError):
        await store.list_files("cursor", "commit", "nope")


@pytest.mark.asyncio(loop_scope="function")
async def test_metadata_and_content(
    registry: AgentRegistry, tmp_path: Path, write_skill
) -> None:
    store = SkillStore(registry)
    write_skill(tmp_path / ".qoder" / "skills", "manual", "# Manual\n")

    assert await store.read_metadata("qoder", "manual") is None
    assert await store.read_content("qoder", "manual") == "# Manual\n"
    with pytest.raises(NotFoundError):
        await store.read_content("qoder", "ghost")


@pytest.mark.asyncio(loop_scope="function")
async def test_corrupt_metadata_is_ignored(
    registry: AgentRegistry, tmp_path: Path, write_skill
) -> None:
    skill_dir = write_skill(tmp_path / ".qoder" / "skills", "broken")
    (skill_dir / ".metadata.json").write_text("{not json")

    assert await SkillStore(registry).read_metadata("qoder", "broken") is None


def test_find_primary_file_searches_nested_dirs(tmp_path: Path) -> None:
    nested = tmp_path / "skill" / "inner"
    nested.mkdir(parents=True)
    (nested / "skill.md").write_text("x")
    (tmp_path / "skill" / ".git").mkdir()

    assert find_primary_file(tmp_path / "skill") == nested / "skill.md"
    assert find_primary_file(tmp_path / "missing") is None


@pytest.mark.asyncio(loop_scope="function")
async def test_same_name_installs_are_serialized(
    registry: AgentRegistry, tmp_path: Path, monkeypatch
) -> None:
    guard = threading.Lock()
    active = 0
    peak = 0
    original = SkillStore._install

    def tracking(self, *args):
        nonlocal active, peak
        with guard:
            active += 1
            peak = max(peak, active)
        try:
            time.sleep(0.05)
            return original(self, *args)
        finally:
            with guard:
                active -= 1

    monkeypatch.setattr(SkillStore, "_install", tracking)
    store = SkillStore(registry)
    await asyncio.gather(
        store.install("claude", _prepared({"SKILL.md": "# A\n", "a.txt": "a"})),
        store.install("claude", _prepared({"SKILL.md": "# B\n", "b.txt": "b"})),
    )

    assert peak == 1
    skills_dir = tmp_path / ".claude" / "skills"
    names = sorted(child.name for child in (skills_dir / "commit").iterdir())
    assert names in (
        [".metadata.json", "SKILL.md", "a.txt"],
        [".metadata.json", "SKILL.md", "b.txt"],
    )
    assert _leftovers(skills_dir) == []
    assert [child.name for child in skills_dir.iterdir()] == ["commit"]


@pytest.mark.asyncio(loop_scope="function")
async def test_different_names_install_in_parallel(
    registry: AgentRegistry, tmp_path: Path
) -> None:
    store = SkillStore(registry)
    await asyncio.gather(
        *(
            store.install("claude", _prepared({"SKILL.md": f"# {name}\n"}, name_hint=name))
            for name in ("commit", "review", "deploy")
        )
    )

    skills_dir = tmp_path / ".claude" / "skills"
    assert [item.name for item in await store.list("claude")] == ["commit", "deploy", "review"]
    assert _leftovers(skills_dir) == []
    for name in ("commit", "review", "deploy"):
        assert (skills_dir / name / "SKILL.md").read_text() == f"# {name}\n"

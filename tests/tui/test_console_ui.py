"""Tests for the rich console renderers."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from oh_my_skills.agents.registry import AgentRegistry
from oh_my_skills.engine import AgentInstallResult
from oh_my_skills.mcp.models import McpServerEntry, Transport
from oh_my_skills.skills.models import SkillFile, SkillMetadata
from oh_my_skills.sources.models import SearchSkill
from oh_my_skills.tui import SkillsConsoleUI
from oh_my_skills.tui.tables import _format_size, format_installs


def _ui() -> tuple[SkillsConsoleUI, Console]:
    console = Console(record=True, width=120)
    return SkillsConsoleUI(console), console


def test_render_skill_hides_front_matter() -> None:
    ui, console = _ui()
    metadata = SkillMetadata(
        name="commit", installed_at="2026-01-01", updated_at="2026-01-02", version="1.2"
    )
    ui.render_skill("commit", metadata, "---\nname: commit\n---\n# Commit\n\nBody text.\n")
    text = console.export_text()
    assert "1.2" in text
    assert "Body text." in text
    assert "name: commit" not in text


def test_render_install_results_counts_failures() -> None:
    ui, console = _ui()
    ui.render_install_results(
        [
            AgentInstallResult(
                agent="claude",
                metadata=SkillMetadata(name="commit", installed_at="t", updated_at="t"),
            ),
            AgentInstallResult(agent="kimi", error="disk full"),
        ]
    )
    text = console.export_text()
    assert "1 installed, 1 failed" in text
    assert "disk full" in text


def test_render_mcp_servers(tmp_path: Path) -> None:
    ui, console = _ui()
    registry = AgentRegistry.default(tmp_path)
    ui.render_mcp_servers(
        registry.resolve("codex"),
        [
            McpServerEntry(name="fs", transport=Transport.STDIO, command="npx", args=["fs"]),
            McpServerEntry(
                name="web", transport=Transport.HTTP, url="https://mcp.example.com", disabled=True
            ),
        ],
    )
    ui.render_mcp_servers(registry.resolve("kimi"), [])
    text = console.export_text()
    assert "npx fs" in text
    assert "https://mcp.example.com" in text
    assert "disabled" in text
    assert "MCP is not supported for Kimi CLI" in text


def test_render_skill_files() -> None:
    ui, console = _ui()
    ui.render_skill_files(
        "commit",
        [
            SkillFile(name="scripts", path="scripts", is_directory=True),
            SkillFile(name="SKILL.md", path="SKILL.md", is_directory=False, size=2048),
        ],
    )
    text = console.export_text()
    assert "scripts/" in text
    assert "2.0 KB" in text


def test_format_size() -> None:
    assert _format_size(None) == ""
    assert _format_size(12) == "12 B"
    assert _format_size(3 * 1024 * 1024) == "3.0 MB"


def test_render_search_results_uses_slug_without_source() -> None:
    ui, console = _ui()
    ui.render_search_results(
        "review",
        [
            SearchSkill(name="review", slug="acme/review", source="acme/skills", installs=2500),
            SearchSkill(name="lint", slug="other/lint", source="", installs=7),
        ],
    )
    text = console.export_text()
    assert "acme/skills" in text
    assert "other/lint" in text
    assert "2.5k" in text


def test_format_installs() -> None:
    assert format_installs(0) == "0"
    assert format_installs(999) == "999"
    assert format_installs(1000) == "1.0k"

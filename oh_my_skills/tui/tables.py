from rich.table import Column, Table

from oh_my_skills.agents.models import AgentProfile
from oh_my_skills.engine import AgentInstallResult
from oh_my_skills.mcp.models import McpServerEntry
from oh_my_skills.skills.models import SkillFile, SkillInfo, SkillMetadata
from oh_my_skills.sources.models import SearchSkill
from oh_my_skills.tui.enums import TRANSPORT_STYLE, UIStyle
from oh_my_skills.utils import compact_home_path


def _styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"


def _format_size(size: int | None) -> str:
    if size is None:
        return ""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_installs(count: int) -> str:
    if count >= 1000:
        return f"{count / 1000:.1f}k"
    return str(count)


class AgentsTable:
    @staticmethod
    def agents_table(items: list[AgentProfile]) -> Table:
        table = Table(
            Column(header="Agent", width=12),
            Column(header="Name", width=14),
            Column(header="Skills", overflow="ellipsis"),
            Column(header="MCP config", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            mcp = (
                compact_home_path(item.mcp_config_path)
                if item.mcp_config_path is not None
                else _styled("not supported", UIStyle.DIM.value)
            )
            table.add_row(
                item.id, item.label, compact_home_path(item.skills_dir), mcp
            )
        return table


class SkillsTable:
    @staticmethod
    def skills_table(items: list[SkillInfo]) -> Table:
        table = Table(
            Column(header="Skill", width=28),
            Column(header="Tokens", width=8, justify="right"),
            Column(header="Path", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            table.add_row(item.name, str(item.token_count), compact_home_path(item.path))
        return table

    @staticmethod
    def metadata_block(metadata: SkillMetadata) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Name", metadata.name)
        for label, value in (
            ("Description", metadata.description),
            ("Version", metadata.version),
            ("Author", metadata.author),
            ("Source", metadata.source),
        ):
            if value:
                table.add_row(label, value)
        table.add_row("Installed", metadata.installed_at)
        table.add_row("Updated", metadata.updated_at)
        return table

    @staticmethod
    def files_table(items: list[SkillFile]) -> Table:
        table = Table(
            Column(header="Path", overflow="fold"),
            Column(header="Size", width=10, justify="right"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            path = _styled(f"{item.path}/", UIStyle.BLUE.value) if item.is_directory else item.path
            table.add_row(path, _format_size(item.size))
        return table

    @staticmethod
    def install_results_table(items: list[AgentInstallResult]) -> Table:
        table = Table(
            Column(header="Agent", width=12),
            Column(header="Status", width=10),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            if item.ok:
                detail = item.metadata.name if item.metadata is not None else ""
                table.add_row(item.agent, _styled("installed", UIStyle.GREEN.value), detail)
            else:
                table.add_row(item.agent, _styled("failed", UIStyle.RED.value), item.error or "")
        return table


class SearchTable:
    @staticmethod
    def results_table(items: list[SearchSkill]) -> Table:
        table = Table(
            Column(header="#", width=4, justify="right"),
            Column(header="Skill", width=28),
            Column(header="Source", overflow="ellipsis"),
            Column(header="Installs", width=10, justify="right"),
            expand=True,
            header_style="bold",
        )
        for index, item in enumerate(items, start=1):
            table.add_row(
                str(index), item.name, item.origin, format_installs(item.installs)
            )
        return table


class McpTable:
    @staticmethod
    def servers_table(items: list[McpServerEntry]) -> Table:
        table = Table(
            Column(header="Server", width=20),
            Column(header="Transport", width=10),
            Column(header="Status", width=10),
            Column(header="Target", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            transport_style = TRANSPORT_STYLE.get(item.transport, UIStyle.WHITE.value)
            status = (
                _styled("disabled", UIStyle.YELLOW.value)
                if item.disabled
                else _styled("enabled", UIStyle.GREEN.value)
            )
            if item.url:
                target = item.url
            else:
                target = " ".join([item.command or "", *item.args]).strip()
            table.add_row(
                item.name,
                _styled(item.transport.value, transport_style),
                status,
                target,
            )
        return table

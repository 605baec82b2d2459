from rich.console import Console
from rich.markdown import Markdown

from oh_my_skills.agents.models import AgentProfile
from oh_my_skills.engine import AgentInstallResult
from oh_my_skills.mcp.models import McpServerEntry
from oh_my_skills.skills.models import SkillFile, SkillInfo, SkillMetadata
from oh_my_skills.skills.parser import split_front_matter
from oh_my_skills.sources.models import SearchSkill
from oh_my_skills.tui.enums import UIStyle
from oh_my_skills.tui.sections import UISection
from oh_my_skills.tui.tables import AgentsTable, McpTable, SearchTable, SkillsTable


class SkillsConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_agents(self, agents: list[AgentProfile]) -> None:
        self.console.print(
            UISection.wrap(
                "agents", AgentsTable.agents_table(agents), style=UIStyle.BLUE.value
            )
        )

    def render_skills(self, title: str, skills: list[SkillInfo]) -> None:
        if not skills:
            self.console.print(
                UISection.note(title, "No skills installed.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                title,
                SkillsTable.skills_table(skills),
                style=UIStyle.BLUE.value,
                subtitle=f"{len(skills)} skills",
            )
        )

    def render_skill(
        self, name: str, metadata: SkillMetadata | None, content: str
    ) -> None:
        if metadata is not None:
            self.console.print(
                UISection.wrap(
                    "skill", SkillsTable.metadata_block(metadata), style=UIStyle.CYAN.value
                )
            )
        else:
            self.console.print(
                UISection.note(
                    "skill",
                    f"[bold]{name}[/bold]\nNo metadata recorded.",
                    style=UIStyle.DIM.value,
                )
            )
        _, body = split_front_matter(content)
        self.console.print(UISection.wrap("SKILL.md", Markdown(body)))

    def render_skill_files(self, name: str, files: list[SkillFile]) -> None:
        if not files:
            self.console.print(
                UISection.note(name, "Directory is empty.", style=UIStyle.DIM.value)
            )
            return
        self.console.print(
            UISection.wrap(name, SkillsTable.files_table(files), style=UIStyle.CYAN.value)
        )

    def render_installed(self, agent: str, metadata: SkillMetadata) -> None:
        source = f"\nsource: {metadata.source}" if metadata.source else ""
        self.console.print(
            UISection.note(
                "install",
                f"Installed [bold]{metadata.name}[/bold] for {agent}{source}",
                style=UIStyle.GREEN.value,
            )
        )

    def render_install_results(self, results: list[AgentInstallResult]) -> None:
        failed = sum(1 for item in results if not item.ok)
        self.console.print(
            UISection.wrap(
                "install",
                SkillsTable.install_results_table(results),
                style=UIStyle.GREEN.value if failed == 0 else UIStyle.RED.value,
                subtitle=f"{len(results) - failed} installed, {failed} failed",
            )
        )

    def render_removed(self, kind: str, name: str, agent: str) -> None:
        self.console.print(
            UISection.note(
                kind,
                f"Removed [bold]{name}[/bold] from {agent}",
                style=UIStyle.YELLOW.value,
            )
        )

    def render_search_results(self, query: str, results: list[SearchSkill]) -> None:
        if not results:
            self.console.print(
                UISection.note(
                    "search", f"No skills found for '{query}'.", style=UIStyle.YELLOW.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "search",
                SearchTable.results_table(results),
                style=UIStyle.BLUE.value,
                subtitle=query,
            )
        )

    def render_mcp_servers(
        self, agent: AgentProfile, servers: list[McpServerEntry]
    ) -> None:
        if not agent.has_mcp:
            self.console.print(
                UISection.note(
                    "mcp",
                    f"MCP is not supported for {agent.label}.",
                    style=UIStyle.DIM.value,
                )
            )
            return
        if not servers:
            self.console.print(
                UISection.note(
                    "mcp", "No MCP servers configured.", style=UIStyle.YELLOW.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "mcp",
                McpTable.servers_table(servers),
                style=UIStyle.BLUE.value,
                subtitle=agent.label,
            )
        )

    def render_mcp_saved(self, agent: str, name: str, action: str) -> None:
        self.console.print(
            UISection.note(
                "mcp",
                f"MCP server [bold]{name}[/bold] {action} for {agent}",
                style=UIStyle.GREEN.value,
            )
        )

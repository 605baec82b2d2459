import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, TypeVar

import click
from rich.console import Console

from oh_my_skills.agents.models import AgentId
from oh_my_skills.engine import SkillsEngine
from oh_my_skills.errors import SkillSyncError
from oh_my_skills.logging_config import LOG_LEVELS, setup_logging
from oh_my_skills.mcp.models import AddMcpServerRequest, Transport
from oh_my_skills.mcp.payload import parse_server_payload, request_from_dict
from oh_my_skills.settings import EngineSettings
from oh_my_skills.sources.search import DEFAULT_SEARCH_LIMIT
from oh_my_skills.tui import SkillsConsoleUI
from oh_my_skills.tui.search_selector import SearchSelectorApp, installable

T = TypeVar("T")

AGENT_VALUES = [agent.value for agent in AgentId]


def _agent_argument(name: str = "agent", required: bool = True) -> Callable:
    return click.argument(
        name,
        required=required,
        type=click.Choice(AGENT_VALUES, case_sensitive=False),
    )


def _agent_option() -> Callable:
    return click.option(
        "--agent",
        "-a",
        "agents",
        multiple=True,
        type=click.Choice(AGENT_VALUES, case_sensitive=False),
        help="Target agent (repeatable).",
    )


def _run(obj: Dict[str, Any], action: Callable[[SkillsEngine], Awaitable[T]]) -> T:
    factory: Callable[[EngineSettings], SkillsEngine] = obj.get(
        "engine_factory", lambda settings: SkillsEngine(settings=settings)
    )

    async def runner() -> T:
        async with factory(obj["settings"]) as engine:
            return await action(engine)

    try:
        return asyncio.run(runner())
    except SkillSyncError as exc:
        raise click.ClickException(str(exc))
    except OSError as exc:
        raise click.ClickException(f"Fatal: {exc}")


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, item = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint=option)
        pairs[key] = item
    return pairs


def _ui() -> SkillsConsoleUI:
    return SkillsConsoleUI(Console())


def _json_option() -> Callable:
    return click.option(
        "--json", "as_json", is_flag=True, help="Print JSON instead of tables."
    )


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level for diagnostics on stderr.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Manage agent skills and MCP servers."""
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = EngineSettings.from_env()
        except ValueError as exc:
            raise click.ClickException(str(exc))
    try:
        setup_logging(log_level or ctx.obj["settings"].log_level)
    except ValueError as exc:
        raise click.ClickException(str(exc))


@cli.group(help="Inspect supported agents.")
def agents() -> None:
    pass


@agents.command("list", help="List agents and their skill/MCP locations.")
@_json_option()
@click.pass_obj
def agents_list(obj: Dict[str, Any], as_json: bool) -> None:
    async def action(engine: SkillsEngine):
        return engine.list_agents()

    profiles = _run(obj, action)
    if as_json:
        _echo_json([profile.as_dict() for profile in profiles])
        return
    _ui().render_agents(profiles)


@cli.group(help="Install, inspect and remove skills.")
def skills() -> None:
    pass


@skills.command("list", help="List installed skills (all agents when omitted).")
@_agent_argument(required=False)
@_json_option()
@click.pass_obj
def skills_list(obj: Dict[str, Any], agent: str | None, as_json: bool) -> None:
    async def action(engine: SkillsEngine):
        if agent is None:
            return await engine.list_all_skills()
        return await engine.list_skills(agent)

    skills = _run(obj, action)
    if as_json:
        _echo_json([skill.as_dict() for skill in skills])
        return
    _ui().render_skills(agent or "all agents", skills)


@skills.command("show", help="Show a skill's metadata and SKILL.md.")
@_agent_argument()
@click.argument("name")
@click.pass_obj
def skills_show(obj: Dict[str, Any], agent: str, name: str) -> None:
    async def action(engine: SkillsEngine):
        metadata = await engine.get_skill_metadata(agent, name)
        content = await engine.get_skill_content(agent, name)
        return metadata, content

    metadata, content = _run(obj, action)
    _ui().render_skill(name, metadata, content)


@skills.command("files", help="List files inside a skill directory.")
@_agent_argument()
@click.argument("name")
@click.argument("subpath", required=False)
@_json_option()
@click.pass_obj
def skills_files(
    obj: Dict[str, Any], agent: str, name: str, subpath: str | None, as_json: bool
) -> None:
    async def action(engine: SkillsEngine):
        return await engine.list_skill_files(agent, name, subpath)

    files = _run(obj, action)
    if as_json:
        _echo_json([item.as_dict() for item in files])
        return
    _ui().render_skill_files(f"{name}/{subpath}" if subpath else name, files)


@skills.command("cat", help="Print one file from a skill directory.")
@_agent_argument()
@click.argument("name")
@click.argument("path")
@click.pass_obj
def skills_cat(obj: Dict[str, Any], agent: str, name: str, path: str) -> None:
    async def action(engine: SkillsEngine):
        return await engine.read_skill_file(agent, name, path)

    click.echo(_run(obj, action), nl=False)


@skills.command("install", help="Install a skill from a URL, GitHub reference or file.")
@click.argument("source")
@_agent_option()
@click.option("--all", "all_agents", is_flag=True, help="Install into every agent.")
@click.pass_obj
def skills_install(
    obj: Dict[str, Any], source: str, agents: tuple[str, ...], all_agents: bool
) -> None:
    if not agents and not all_agents:
        raise click.UsageError("Pass --agent at least once, or --all.")

    ui = _ui()
    if len(agents) == 1 and not all_agents:

        async def install_one(engine: SkillsEngine):
            return await engine.install_skill_from_source(agents[0], source)

        ui.render_installed(agents[0], _run(obj, install_one))
        return

    async def install_many(engine: SkillsEngine):
        return await engine.install_skill_to_agents(
            None if all_agents else list(agents), source
        )

    results = _run(obj, install_many)
    ui.render_install_results(results)
    if not any(item.ok for item in results):
        raise click.exceptions.Exit(1)


@skills.command("delete", help="Delete an installed skill.")
@_agent_argument()
@click.argument("name")
@click.pass_obj
def skills_delete(obj: Dict[str, Any], agent: str, name: str) -> None:
    async def action(engine: SkillsEngine):
        await engine.delete_skill(agent, name)

    _run(obj, action)
    _ui().render_removed("skill", name, agent)


@skills.command("search", help="Search the public skill index.")
@click.argument("query")
@click.option("--limit", default=DEFAULT_SEARCH_LIMIT, show_default=True, type=int)
@click.option(
    "--interactive",
    "-i",
    is_flag=True,
    help="Pick results to install with an interactive selector.",
)
@_agent_option()
@_json_option()
@click.pass_obj
def skills_search(
    obj: Dict[str, Any],
    query: str,
    limit: int,
    interactive: bool,
    agents: tuple[str, ...],
    as_json: bool,
) -> None:
    async def action(engine: SkillsEngine):
        return await engine.search_skills(query, limit)

    results = _run(obj, action)
    if as_json:
        _echo_json([skill.as_dict() for skill in results])
        return
    ui = _ui()
    ui.render_search_results(query, results)
    if not interactive or not results:
        return
    if not agents:
        raise click.UsageError("Pass --agent to install selected results.")

    selected = SearchSelectorApp(query, results).run() or []
    for skill in installable(results, selected):

        async def install(engine: SkillsEngine, descriptor: str = skill.descriptor):
            return await engine.install_skill_to_agents(list(agents), descriptor)

        ui.render_install_results(_run(obj, install))


@cli.group(help="Manage MCP servers in agent config files.")
def mcp() -> None:
    pass


@mcp.command("list", help="List MCP servers configured for an agent.")
@_agent_argument()
@_json_option()
@click.pass_obj
def mcp_list(obj: Dict[str, Any], agent: str, as_json: bool) -> None:
    async def action(engine: SkillsEngine):
        return engine.registry.resolve(agent), await engine.list_mcp_servers(agent)

    profile, servers = _run(obj, action)
    if as_json:
        _echo_json([server.as_dict() for server in servers])
        return
    _ui().render_mcp_servers(profile, servers)


@mcp.command("add", help="Add or replace an MCP server.")
@_agent_argument()
@click.argument("name", required=False)
@click.option("--command", "command", default=None, help="Executable for stdio servers.")
@click.option("--arg", "args", multiple=True, help="Argument (repeatable).")
@click.option("--env", "env", multiple=True, help="KEY=VALUE (repeatable).")
@click.option("--url", default=None, help="Endpoint for http servers.")
@click.option("--header", "headers", multiple=True, help="KEY=VALUE (repeatable).")
@click.option("--json", "json_payload", default=None, help="Server definition as JSON.")
@click.pass_obj
def mcp_add(
    obj: Dict[str, Any],
    agent: str,
    name: str | None,
    command: str | None,
    args: tuple[str, ...],
    env: tuple[str, ...],
    url: str | None,
    headers: tuple[str, ...],
    json_payload: str | None,
) -> None:
    try:
        request = _build_add_request(
            name, command, args, env, url, headers, json_payload
        )
    except SkillSyncError as exc:
        raise click.ClickException(str(exc))

    async def action(engine: SkillsEngine):
        await engine.add_mcp_server(agent, request)

    _run(obj, action)
    _ui().render_mcp_saved(agent, request.name, "saved")


def _build_add_request(
    name: str | None,
    command: str | None,
    args: tuple[str, ...],
    env: tuple[str, ...],
    url: str | None,
    headers: tuple[str, ...],
    json_payload: str | None,
) -> AddMcpServerRequest:
    if json_payload is not None:
        return parse_server_payload(json_payload)
    if not name:
        raise click.UsageError("NAME is required unless --json is given.")
    if command and url:
        raise click.UsageError("Use either --command or --url, not both.")

    payload: dict[str, Any] = {"name": name}
    if url:
        payload["transport"] = Transport.HTTP.value
        payload["url"] = url
        payload["headers"] = _parse_pairs(headers, "--header")
    else:
        payload["transport"] = Transport.STDIO.value
        if command is not None:
            payload["command"] = command
        payload["args"] = list(args)
        payload["env"] = _parse_pairs(env, "--env")
    return request_from_dict(payload)


@mcp.command("remove", help="Remove an MCP server.")
@_agent_argument()
@click.argument("name")
@click.pass_obj
def mcp_remove(obj: Dict[str, Any], agent: str, name: str) -> None:
    async def action(engine: SkillsEngine):
        await engine.remove_mcp_server(agent, name)

    _run(obj, action)
    _ui().render_removed("mcp", name, agent)


def _toggle(obj: Dict[str, Any], agent: str, name: str, disabled: bool) -> None:
    async def action(engine: SkillsEngine):
        await engine.toggle_mcp_server(agent, name, disabled)

    _run(obj, action)
    _ui().render_mcp_saved(agent, name, "disabled" if disabled else "enabled")


@mcp.command("enable", help="Enable an MCP server.")
@_agent_argument()
@click.argument("name")
@click.pass_obj
def mcp_enable(obj: Dict[str, Any], agent: str, name: str) -> None:
    _toggle(obj, agent, name, disabled=False)


@mcp.command("disable", help="Disable an MCP server without removing it.")
@_agent_argument()
@click.argument("name")
@click.pass_obj
def mcp_disable(obj: Dict[str, Any], agent: str, name: str) -> None:
    _toggle(obj, agent, name, disabled=True)


def main() -> int:
    try:
        result = cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    # click hands back the code of an Exit raised inside a command
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())

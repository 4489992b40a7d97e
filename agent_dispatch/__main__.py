import sys
import time
from pathlib import Path
from typing import Any, Dict, NoReturn

import click
from rich.console import Console

from agent_dispatch.config import resolve_config_root
from agent_dispatch.errors import DispatchError
from agent_dispatch.exit_codes import ExitCode, classify_error
from agent_dispatch.logs import configure_logging
from agent_dispatch.permissions.models import Decision
from agent_dispatch.providers.models import ProviderState
from agent_dispatch.registry import AgentRegistry
from agent_dispatch.session import HostSession
from agent_dispatch.sources import SourceRepository
from agent_dispatch.tui import DispatchConsoleUI


HOLD_POLL_SECONDS = 0.5


def _fail(ui: DispatchConsoleUI, error: DispatchError) -> NoReturn:
    label, code = classify_error(error)
    ui.render_error(label, error)
    raise click.exceptions.Exit(int(code))


def _load_registry(obj: Dict[str, Any], ui: DispatchConsoleUI) -> AgentRegistry:
    repository = SourceRepository(resolve_config_root(obj.get("config_dir")))
    sources = repository.collect(extra_agent_dirs=obj.get("agents_dirs", ()))
    registry = AgentRegistry()
    try:
        registry.load_definitions(sources)
    except DispatchError as exc:
        _fail(ui, exc)
    return registry


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Config root holding opencode.json and agents/.",
)
@click.option(
    "--agents-dir",
    "agents_dirs",
    multiple=True,
    type=click.Path(path_type=Path, file_okay=False),
    help="Additional directory of agent definitions (repeatable).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_dir: Path | None,
    agents_dirs: tuple[Path, ...],
    verbose: bool,
) -> None:
    """Agent registry and tool-provider dispatcher."""
    configure_logging(verbose)
    ctx.obj = {"config_dir": config_dir, "agents_dirs": agents_dirs}


@cli.command("list-agents", help="List agent profiles.")
@click.option("--primary-only", is_flag=True, help="Hide subagents.")
@click.option("--all", "show_all", is_flag=True, help="Include disabled agents.")
@click.pass_obj
def list_agents(obj: Dict[str, Any], primary_only: bool, show_all: bool) -> None:
    ui = DispatchConsoleUI(Console())
    with _load_registry(obj, ui) as registry:
        ui.render_agents(
            registry.list_agents(
                include_subagents=not primary_only, include_disabled=show_all
            )
        )


@cli.command("describe-agent", help="Show an agent profile and its permissions.")
@click.argument("name")
@click.option("--no-prompt", is_flag=True, help="Omit the instruction body.")
@click.pass_obj
def describe_agent(obj: Dict[str, Any], name: str, no_prompt: bool) -> None:
    ui = DispatchConsoleUI(Console())
    with _load_registry(obj, ui) as registry:
        try:
            profile = registry.resolve_agent(name)
        except DispatchError as exc:
            _fail(ui, exc)
        ui.render_agent(profile, show_prompt=not no_prompt)


@cli.command("check-permission", help="Evaluate an agent's permission for an action.")
@click.argument("agent")
@click.argument("capability")
@click.argument("action", nargs=-1, required=True)
@click.pass_obj
def check_permission(
    obj: Dict[str, Any], agent: str, capability: str, action: tuple[str, ...]
) -> None:
    ui = DispatchConsoleUI(Console())
    candidate = " ".join(action)
    with _load_registry(obj, ui) as registry:
        try:
            check = registry.explain_permission(agent, capability, candidate)
        except DispatchError as exc:
            _fail(ui, exc)
    ui.render_permission(agent, capability, candidate, check)
    if check.decision == Decision.DENY:
        raise click.exceptions.Exit(int(ExitCode.PERMISSION_DENIED))


@cli.command("list-providers", help="List configured tool providers.")
@click.pass_obj
def list_providers(obj: Dict[str, Any]) -> None:
    ui = DispatchConsoleUI(Console())
    with _load_registry(obj, ui) as registry:
        ui.render_providers(
            [
                (descriptor, registry.provider_state(descriptor.name))
                for descriptor in registry.list_providers()
            ]
        )


@cli.command("start-provider", help="Launch a tool provider and verify its handshake.")
@click.argument("name")
@click.option(
    "--hold",
    is_flag=True,
    help="Keep the provider running until interrupted or it exits.",
)
@click.pass_obj
def start_provider(obj: Dict[str, Any], name: str, hold: bool) -> None:
    ui = DispatchConsoleUI(Console())
    with _load_registry(obj, ui) as registry:
        try:
            handle = registry.acquire_tool_provider(name)
        except DispatchError as exc:
            _fail(ui, exc)
        ui.render_provider_started(handle)
        if not hold:
            return
        try:
            while registry.provider_state(name) == ProviderState.READY:
                time.sleep(HOLD_POLL_SECONDS)
        except KeyboardInterrupt:
            pass
        ui.render_provider_stopped(name, registry.stop_tool_provider(name))


@cli.command("stop-provider", help="Stop a tool provider running in this session.")
@click.argument("name")
@click.pass_obj
def stop_provider(obj: Dict[str, Any], name: str) -> None:
    ui = DispatchConsoleUI(Console())
    with _load_registry(obj, ui) as registry:
        try:
            stopped = registry.stop_tool_provider(name)
        except DispatchError as exc:
            _fail(ui, exc)
        ui.render_provider_stopped(name, stopped)


@cli.command(help="Serve host queries line by line on stdin/stdout.")
@click.pass_obj
def session(obj: Dict[str, Any]) -> None:
    ui = DispatchConsoleUI(Console(stderr=True))
    registry = _load_registry(obj, ui)
    HostSession(registry, sys.stdin, sys.stdout).run()


def main() -> int:
    try:
        result = cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return int(ExitCode.USAGE)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    # Non-standalone click returns the Exit code instead of raising it.
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    sys.exit(main())

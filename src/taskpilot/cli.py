"""CLI entry point using Click."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import click

from taskpilot import __version__
from taskpilot.config import TaskpilotConfig, load_config
from taskpilot.console import HELP_TEXT, QUIT, SHOW_HELP, ConsoleRenderer, format_message, parse_line
from taskpilot.core.orchestrator import Agent, command_status_sink
from taskpilot.core.process_registry import ProcessRegistry
from taskpilot.core.workspace import prepare_system_prompt
from taskpilot.errors import ConfigurationError
from taskpilot.integrations.persistence.history import HistoryStore
from taskpilot.integrations.utilities.logger import setup_logging
from taskpilot.providers.registry import create_provider
from taskpilot.tools.permission import ModePermissionChecker, PermissionMode
from taskpilot.tools.standard import create_standard_registry
from taskpilot.types.events import ControlEvent, OutputEvent

logger = logging.getLogger(__name__)


@click.command()
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None,
              help="Config file to use instead of ./taskpilot.yaml")
@click.option("--workspace", "-w", type=click.Path(file_okay=False), default=None,
              help="Workspace directory the agent works in")
@click.option("--model", "-m", help="Model name passed to the provider")
@click.option("--provider", help="Provider: echo, mock, or package.module:factory")
@click.option("--permission", "-p", type=click.Choice([m.value for m in PermissionMode]),
              default=None, help="Permission mode for tool execution")
@click.option("--skip-load-messages", is_flag=True, help="Start with an empty history")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--version", is_flag=True, help="Show version and exit")
def main(
    config_file: str | None,
    workspace: str | None,
    model: str | None,
    provider: str | None,
    permission: str | None,
    skip_load_messages: bool,
    debug: bool,
    version: bool,
) -> None:
    """Taskpilot - autonomous coding agent for one workspace.

    Type a task and press enter. /help lists the console commands.
    """
    if version:
        click.echo(f"taskpilot {__version__}")
        return

    # Build CLI args dict
    cli_args: dict[str, Any] = {}
    if workspace:
        cli_args["workspace"] = workspace
    if model:
        cli_args["model"] = model
    if provider:
        cli_args["provider"] = provider
    if permission:
        cli_args["permission_mode"] = permission
    if debug:
        cli_args["debug"] = True

    try:
        config = load_config(cli_args=cli_args, config_file=config_file)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    log_file = setup_logging(config.log_dir, debug=config.debug)
    logger.info("Starting taskpilot %s, logging to %s", __version__, log_file)

    try:
        asyncio.run(_run_session(config, load_messages=not skip_load_messages))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    except KeyboardInterrupt:
        pass


async def _run_session(config: TaskpilotConfig, *, load_messages: bool) -> None:
    workspace = config.workspace_path
    workspace.mkdir(parents=True, exist_ok=True)

    control: asyncio.Queue[ControlEvent] = asyncio.Queue()
    output: asyncio.Queue[OutputEvent] = asyncio.Queue()
    processes = ProcessRegistry()
    history = HistoryStore(config.history_dir)
    messages = history.load() if load_messages else []

    tools = create_standard_registry(
        workspace,
        processes,
        on_command_status=command_status_sink(output),
        command_poll_limit=config.command_poll_limit,
        command_poll_interval=config.command_poll_interval,
    )
    provider = create_provider(
        config.provider,
        model=config.model or None,
        system_prompt=prepare_system_prompt(workspace, config.user_instructions),
        tools=tools.get_definitions(),
    )
    agent = Agent(
        provider,
        tools,
        processes,
        workspace=workspace,
        control=control,
        output=output,
        history=history,
        permissions=ModePermissionChecker(config.permission_mode),
        messages=messages,
        max_context_tokens=config.max_context_tokens,
        tick_interval=config.tick_interval,
    )

    click.echo(f"taskpilot {__version__} | provider {provider.name} | workspace {workspace}")
    click.echo(f"permission mode: {config.permission_mode}. Type /help for commands.")
    for message in messages:
        click.echo(format_message(message))

    agent_task = asyncio.create_task(agent.run(), name="agent")
    printer_task = asyncio.create_task(_print_events(output), name="printer")
    try:
        await _read_input(control)
    finally:
        agent.stop()
        await agent_task
        await processes.aclose()
        printer_task.cancel()
        await asyncio.gather(printer_task, return_exceptions=True)
        await provider.close()
        logger.info("Session closed")


async def _read_input(control: asyncio.Queue[ControlEvent]) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        parsed = parse_line(line)
        if parsed is None:
            continue
        if parsed is QUIT:
            return
        if parsed is SHOW_HELP:
            click.echo(HELP_TEXT)
            continue
        control.put_nowait(parsed)


async def _print_events(output: asyncio.Queue[OutputEvent]) -> None:
    renderer = ConsoleRenderer()
    while True:
        event = await output.get()
        text = renderer.render(event)
        if text:
            click.echo(text, nl=False)


if __name__ == "__main__":
    main()

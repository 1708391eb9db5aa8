"""Main CLI entry point.

Everything after the options is a command in the fixed browser-automation
vocabulary (`open example.com`, `snapshot -i`, ...). The command is
encoded, a daemon for the session is started if needed, and the request
is exchanged with it. `batch` runs several quoted commands in order and
stops at the first failure.
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import typer

from agentbrowser.commands import parse_batch_commands, parse_command
from agentbrowser.core.configs import ENV_FILE, ClientConfig, load_client_config
from agentbrowser.daemon.batch import BatchExecutor
from agentbrowser.daemon.client import DaemonClient
from agentbrowser.daemon.protocol import Request, Response
from agentbrowser.daemon.session import SessionAddress
from agentbrowser.daemon.supervisor import (
    DaemonSupervisor,
    DetachedProcessLauncher,
    default_search_dirs,
)
from agentbrowser.errors import AgentBrowserError, EncodingError
from agentbrowser.ui.output import UIManager

logger = logging.getLogger(__name__)

HELP = """
agent-browser - fast browser automation CLI

Usage:
  agent-browser <command> [args] [--json]
  agent-browser batch <cmd1> <cmd2> ... [--json]

Commands:
  open <url>              Navigate to URL
  click <sel>             Click element (use @ref from snapshot)
  fill <sel> <text>       Fill input
  type <sel> <text>       Type text
  hover <sel>             Hover element
  snapshot [options]      Get accessibility tree with refs
  screenshot [path]       Take screenshot
  get text <sel>          Get text content
  get url                 Get current URL
  get title               Get page title
  press <key>             Press keyboard key
  wait <ms|sel>           Wait for time or element
  back | forward | reload Navigate history / reload page
  eval <js>               Evaluate JavaScript
  close                   Close browser

Snapshot Options:
  -i, --interactive       Only show interactive elements (buttons, links, inputs)
  -c, --compact           Remove empty structural elements
  -d, --depth <n>         Limit tree depth (e.g., --depth 3)
  -s, --selector <sel>    Scope snapshot to CSS selector

Batch Mode:
  batch <cmd1> <cmd2> ... Execute multiple commands in sequence
                          Each command is a quoted string

Options:
  --json                  Output JSON (for AI agents)
  --session <name>        Session name (default: $AGENT_BROWSER_SESSION or "default")
  --timeout <seconds>     Response timeout per command (default: 30)
  --status                Show daemon status for the session and exit
  --verbose               Debug logging to stderr
  -h, --help              Show this help

Examples:
  agent-browser open example.com
  agent-browser snapshot
  agent-browser click @e2
  agent-browser fill @e3 "hello"

  # Batch mode - execute multiple commands efficiently
  agent-browser batch "open example.com" "snapshot" "click a"
  agent-browser batch "open google.com" "snapshot" "get title" --json
"""

app = typer.Typer(add_completion=False)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _use_color() -> bool:
    return "NO_COLOR" not in os.environ and sys.stdout.isatty()


def build_supervisor(config: ClientConfig, address: SessionAddress) -> DaemonSupervisor:
    """Wire a supervisor that launches the daemon detached, logging to the session log."""
    candidates = default_search_dirs()
    if config.daemon_path is not None:
        candidates.insert(0, config.daemon_path)
    return DaemonSupervisor(
        address,
        launcher=DetachedProcessLauncher(log_path=address.log_path),
        candidates=candidates,
        poll_interval=config.poll_interval,
        poll_attempts=config.poll_attempts,
    )


def build_client(config: ClientConfig, address: SessionAddress) -> DaemonClient:
    return DaemonClient(address, timeout=config.timeout)


def _run_single(
    tokens: List[str],
    supervisor: DaemonSupervisor,
    client: DaemonClient,
    ui: UIManager,
) -> int:
    request = parse_command(tokens)
    if request is None:
        raise EncodingError(f"Unknown command: {tokens[0]}")

    supervisor.ensure_running()
    response = client.exchange(request)
    ui.response(response)
    return 0 if response.success else 1


def _run_batch(
    commands: List[str],
    supervisor: DaemonSupervisor,
    client: DaemonClient,
    ui: UIManager,
) -> int:
    if not commands:
        raise EncodingError(
            'Batch mode requires at least one command. '
            'Example: agent-browser batch "open example.com" "snapshot"'
        )

    requests = parse_batch_commands(commands)
    if not requests:
        raise EncodingError("No valid commands found")

    supervisor.ensure_running()

    def on_result(request: Request, response: Response) -> None:
        ui.batch_step(request.action, response)

    result = BatchExecutor(client).run(requests, on_result=on_result)
    ui.batch_result(result)
    return 0 if result.success else 1


def _show_status(supervisor: DaemonSupervisor, ui: UIManager) -> int:
    status = supervisor.status()
    if ui.json_output:
        ui.emit_json(status.to_dict())
        return 0
    state = "ready" if status.ready else ("starting" if status.running else "not running")
    ui.message(f"Session:  {status.session}")
    ui.message(f"PID:      {status.pid if status.pid is not None else '-'}")
    ui.message(f"Socket:   {supervisor.address.socket_path}{'' if status.socket_exists else ' (missing)'}")
    ui.message(f"Status:   {state}", color="green" if status.ready else "dim")
    return 0


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    },
)
def main(
    tokens: Optional[List[str]] = typer.Argument(None, metavar="COMMAND [ARGS]..."),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    show_help: bool = typer.Option(False, "--help", help="Show help"),
    session: Optional[str] = typer.Option(None, "--session", help="Session name"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Response timeout in seconds"),
    status: bool = typer.Option(False, "--status", help="Show daemon status and exit"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
) -> None:
    """agent-browser - fast browser automation CLI."""
    tokens = list(tokens or [])
    ui = UIManager(json_output=json_output, color=_use_color())

    if show_help or "-h" in tokens or (not tokens and not status):
        typer.echo(HELP)
        raise typer.Exit(0)

    try:
        config = load_client_config(os.environ, env_file=Path.cwd() / ENV_FILE)
        config = config.with_overrides(session=session, timeout=timeout)
        _configure_logging(verbose or config.debug)

        address = SessionAddress.for_session(config.session, config.tmp_dir)
        logger.debug("Session %s -> %s", address.name, address.socket_path)
        supervisor = build_supervisor(config, address)

        if status:
            code = _show_status(supervisor, ui)
        elif tokens[0] == "batch":
            code = _run_batch(tokens[1:], supervisor, build_client(config, address), ui)
        else:
            code = _run_single(tokens, supervisor, build_client(config, address), ui)
    except AgentBrowserError as e:
        ui.failure(str(e))
        raise typer.Exit(1)

    raise typer.Exit(code)


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()

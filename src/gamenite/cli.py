import sys
import time
from datetime import datetime, timezone

import click
import halo
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from click.shell_completion import CompletionItem

from gamenite.actions import ActionResult, ServerActions
from gamenite.auth.store import User
from gamenite.bootstrap import build_actions
from gamenite.config import get_settings
from gamenite.control.models import TRANSITIONAL_STATUSES, WorkflowStatus, parse_timestamp
from gamenite.control.polling import (
    CreationTracker,
    PollTask,
    PollTimeout,
    wait_for_server,
    wait_for_workflow,
)
from gamenite.display import format_elapsed, status_display
from gamenite.games.definitions import build_catalog
from gamenite.logging_config import setup_logging

console = Console()

PROGRESS_MODE = "steps"  # "steps" or "plain"

# Holding the Railway token is what authorizes the CLI.
OPERATOR = User(id="cli-operator", email="operator@localhost", name="CLI operator")


class StepProgress:
    """Step-by-step progress display.

    Modes:
        "steps"   halo bouncingBar spinner, checkmark/cross per step on new lines
        "plain"   just print each message, no spinner/ANSI (for non-TTY / debug)
    """

    def __init__(self, mode="steps"):
        self._mode = mode
        self._spinner = None

    def update(self, message):
        if self._mode == "steps":
            if self._spinner:
                self._spinner.succeed()
            self._spinner = halo.Halo(text=message, spinner="bouncingBar")
            self._spinner.start()
        else:
            print(message)

    def relabel(self, message):
        """Change the text of the current step without completing it."""
        if self._mode == "steps" and self._spinner:
            self._spinner.text = message

    def finish(self, message=None):
        if self._mode == "steps":
            if self._spinner:
                self._spinner.succeed(message)
                self._spinner = None
        elif message:
            print(message)

    def fail(self, message=None):
        if self._mode == "steps":
            if self._spinner:
                self._spinner.fail(message)
                self._spinner = None
        else:
            print(message or "Failed")


def _progress_mode(ctx):
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    if debug:
        return "plain"
    if not sys.stderr.isatty():
        return "plain"
    return PROGRESS_MODE


def _complete_game(ctx, param, incomplete):
    return [
        CompletionItem(g.id, help=g.name)
        for g in build_catalog().list_games()
        if g.id.startswith(incomplete)
    ]


def _make_actions(ctx) -> ServerActions:
    """Build the action layer from settings, once per CLI invocation."""
    if "actions" not in ctx.obj:
        ctx.obj["actions"] = build_actions(get_settings())
    return ctx.obj["actions"]


def _check(result: ActionResult):
    if not result.success:
        console.print(f"[bold red]Error:[/] {result.error}")
        raise SystemExit(1)
    return result.data


def _checked(result: ActionResult, progress: "StepProgress"):
    """Like _check, but closes the running progress step first."""
    if not result.success:
        progress.fail(result.error)
    return _check(result)


class HelpfulCommand(click.Command):
    """Show full help text when a command is invoked incorrectly."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            click.echo(ctx.get_help())
            click.echo()
            console.print(f"[bold red]Error:[/] {e.format_message()}")
            ctx.exit(2)


class HelpfulGroup(click.Group):
    command_class = HelpfulCommand


@click.group(cls=HelpfulGroup)
@click.version_option(version="0.1.0", prog_name="gamenite")
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, debug):
    """Game Nite - Run game servers on Railway."""
    settings = get_settings()
    setup_logging(settings.log_format, "DEBUG" if debug else settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.pass_context
def games(ctx):
    """List supported games."""
    all_games = _check(_make_actions(ctx).list_games(OPERATOR))
    if not all_games:
        click.echo("No games available.")
        return

    table = Table(title="Games")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Image", style="yellow")
    table.add_column("Port", style="magenta")
    table.add_column("Deployable")

    for g in all_games:
        table.add_row(
            g["id"], g["name"], g["image"] or "-", str(g["default_port"]),
            "yes" if g["deployable"] else "[dim]no[/]",
        )

    console.print(table)


def _servers_table(game_id: str, servers: list[dict]) -> Table:
    table = Table(title=f"{game_id} servers")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Status")
    table.add_column("Created", style="dim")

    now = datetime.now(timezone.utc)
    for s in servers:
        display = status_display(
            s["deployment_status"], parse_timestamp(s["status_updated_at"]), now=now,
        )
        table.add_row(s["id"], s["name"], f"[{display.style}]{display.label}[/]", s["created_at"])
    return table


def _any_transitional(servers: list[dict]) -> bool:
    return any((s["deployment_status"] or "").upper() in TRANSITIONAL_STATUSES for s in servers)


@cli.command("list")
@click.argument("game_id", shell_complete=_complete_game)
@click.option("--watch", "-w", is_flag=True, help="Refresh while servers are deploying")
@click.option("--interval", default=5.0, type=float, hidden=True)
@click.pass_context
def list_servers(ctx, game_id, watch, interval):
    """List servers for a game."""
    actions = _make_actions(ctx)
    servers = _check(actions.list_servers(OPERATOR, game_id))
    if not servers:
        console.print(f"No {game_id} servers.")
        return

    if not watch or not _any_transitional(servers):
        console.print(_servers_table(game_id, servers))
        return

    with Live(_servers_table(game_id, servers), console=console) as live:
        def _refresh() -> bool:
            latest = _check(actions.list_servers(OPERATOR, game_id))
            live.update(_servers_table(game_id, latest))
            return not _any_transitional(latest)

        try:
            PollTask(_refresh, interval=interval).run()
        except KeyboardInterrupt:
            pass


def _parse_config(config) -> dict[str, str]:
    env = {}
    for c in config:
        if "=" not in c:
            console.print(f"[red]Invalid config format: {c} (expected KEY=VALUE)[/]")
            raise SystemExit(1)
        key, value = c.split("=", 1)
        env[key] = value
    return env


def _print_server(server: dict, title: str):
    lines = [
        f"[bold]ID:[/]       {server['id']}",
        f"[bold]Name:[/]     {server['name']}",
        f"[bold]Status:[/]   {status_display(server['deployment_status']).label}",
        f"[bold]Share:[/]    /share/{server['id']}",
    ]
    console.print(Panel("\n".join(lines), title=f"[green]{title}[/]", border_style="green"))


@cli.command()
@click.argument("game_id", shell_complete=_complete_game)
@click.argument("name")
@click.option("--config", "-c", multiple=True, help="Environment variable KEY=VALUE")
@click.option("--direct", is_flag=True, help="Create the service directly instead of via template")
@click.option("--wait", is_flag=True, help="Wait until the server appears")
@click.option("--interval", default=3.0, type=float, hidden=True)
@click.option("--timeout", default=600.0, type=float, hidden=True, help="Seconds to wait before giving up")
@click.pass_context
def create(ctx, game_id, name, config, direct, wait, interval, timeout):
    """Create a game server."""
    env = _parse_config(config)
    actions = _make_actions(ctx)
    progress = StepProgress(mode=_progress_mode(ctx))
    progress.update(f"Creating {name}...")
    result = actions.create_server(OPERATOR, game_id, name, custom_env=env or None, direct=direct)
    _checked(result, progress)
    progress.finish()

    if direct:
        _print_server(result.data["server"], "Server Created")
        return

    workflow_id = result.data["workflow_id"]
    console.print(f"Deployment started (workflow [cyan]{workflow_id or '-'}[/]).")
    if not wait:
        return

    def _fetch() -> WorkflowStatus:
        data = _checked(actions.get_workflow_status(OPERATOR, workflow_id), progress)
        return WorkflowStatus(status=data["status"], error=data["error"])

    def _poll_servers() -> list[dict]:
        return _checked(actions.list_servers(OPERATOR, game_id), progress)

    deadline = time.monotonic() + timeout
    tracker = CreationTracker()
    ticket = tracker.begin(result.data["name"])
    try:
        if workflow_id:
            progress.update("Waiting for deployment...")
            status = wait_for_workflow(
                _fetch, interval=interval, timeout=timeout,
                on_update=lambda s: progress.relabel(f"Deployment {s.status or 'pending'}..."),
            )
            if status is not None and status.failed:
                progress.fail(status.error or f"Deployment {status.status}")
                raise SystemExit(1)
            progress.finish()

        progress.update(f"Waiting for {ticket.name} to appear...")
        server = wait_for_server(
            tracker, ticket, _poll_servers,
            interval=interval,
            timeout=max(0.0, deadline - time.monotonic()),
            name_of=lambda s: s["name"],
        )
        progress.finish()
    except PollTimeout:
        tracker.abandon()
        progress.fail(f"Timed out after {timeout:g}s")
        console.print(f"[yellow]{name} may still be deploying. Check with: gamenite list {game_id}[/]")
        raise SystemExit(1)
    except KeyboardInterrupt:
        tracker.abandon()
        progress.fail("Interrupted")
        console.print("\n[yellow]Interrupted.[/]")
        raise SystemExit(130)

    if server is not None:
        _print_server(server, "Server Ready")


@cli.command()
@click.argument("server_id")
@click.pass_context
def restart(ctx, server_id):
    """Restart a server."""
    progress = StepProgress(mode=_progress_mode(ctx))
    progress.update(f"Restarting {server_id}...")
    result = _make_actions(ctx).restart_server(OPERATOR, server_id)
    if not result.success:
        progress.fail(result.error)
        _check(result)
    progress.finish()
    console.print(f"[green]Server {server_id} restarting.[/]")


@cli.command()
@click.argument("server_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete(ctx, server_id, yes):
    """Delete a server and its volumes."""
    if not yes:
        click.confirm(f"Delete server {server_id}?", abort=True)

    progress = StepProgress(mode=_progress_mode(ctx))
    started = time.monotonic()
    progress.update("Deleting (0:00)")

    def _tick() -> bool:
        progress.relabel(f"Deleting ({format_elapsed(time.monotonic() - started)})")
        return False

    ticker = PollTask(_tick, interval=1.0).start()
    try:
        result = _make_actions(ctx).delete_server(OPERATOR, server_id)
    finally:
        ticker.stop()

    if not result.success:
        progress.fail(result.error)
        _check(result)
    progress.finish(f"Deleted ({format_elapsed(time.monotonic() - started)})")
    console.print(f"[green]Server {server_id} deleted.[/]")


@cli.command()
@click.argument("server_id")
@click.pass_context
def share(ctx, server_id):
    """Show connection details for a server."""
    details = _check(_make_actions(ctx).share_details(server_id))
    lines = [
        f"[bold]Server:[/]   {details['server_name']}",
        f"[bold]Game:[/]     {details['game']}",
        f"[bold]Address:[/]  {details['address']}",
        f"[bold]Port:[/]     {details['port']}",
        f"[bold]Connect:[/]  {details['address']}:{details['port']}",
    ]
    console.print(Panel("\n".join(lines), title="[green]Join Server[/]", border_style="green"))


@cli.command()
@click.argument("workflow_id")
@click.pass_context
def workflow(ctx, workflow_id):
    """Show the status of a deployment workflow."""
    data = _check(_make_actions(ctx).get_workflow_status(OPERATOR, workflow_id))
    console.print(f"Status: [cyan]{data['status'] or 'unknown'}[/]")
    if data["error"]:
        console.print(f"Error:  [red]{data['error']}[/]")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", "-p", default=8000, type=int, help="Bind port")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the web app."""
    import uvicorn

    console.print(f"[green]Starting Game Nite on {host}:{port}[/]")
    uvicorn.run("gamenite.api:create_app", factory=True, host=host, port=port, reload=reload)

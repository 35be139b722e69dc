"""
SaltDao Governance CLI Commands

Local developer tooling around the governance engine:
- Replaying a scenario file and showing the resulting slots and events
- Showing the effective configuration
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

import click
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from saltdao.core.config import ConfigurationError, load_config
from saltdao.simulation import ScenarioError, load_scenario, run_scenario

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _format_ts(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


@click.group()
@click.option("--json-output", is_flag=True, help="Print machine-readable JSON")
@click.pass_context
def governance(ctx: click.Context, json_output: bool):
    """Governance replay and inspection commands."""
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json_output


@governance.command("replay")
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def replay(ctx: click.Context, scenario_file: str):
    """
    Replay a scenario file on a fresh chain.

    Prints the final proposal slots, the event log and the state digest.
    The engine uses the effective SALTDAO_* configuration unless the
    scenario overrides it.

    Example:
        saltdao --json-output replay scenarios/majority.yaml
    """
    try:
        config = ctx.obj.get("config") or load_config()
        result = run_scenario(load_scenario(scenario_file), config)
    except (ScenarioError, ConfigurationError, OSError, ValueError, yaml.YAMLError) as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    now = result.timestamp
    table = Table(title=f"Proposal Slots (block {result.block_number})", box=box.ROUNDED)
    table.add_column("Slot", style="cyan", justify="right")
    table.add_column("Proposal", style="white", no_wrap=True)
    table.add_column("State", style="green")
    table.add_column("Agree", style="green", justify="right")
    table.add_column("Disagree", style="red", justify="right")
    table.add_column("Expires", style="dim")
    table.add_column("Checkpoint", style="dim", justify="right")

    state_colors = {"active": "yellow", "finalized": "green", "expired": "dim"}
    for slot, proposal in enumerate(result.proposals, start=1):
        state = proposal.state(now).value
        color = state_colors.get(state, "white")
        table.add_row(
            str(slot),
            "0x" + proposal.id.hex()[:16],
            f"[{color}]{state.upper()}[/]",
            str(proposal.agreements),
            str(proposal.disagreements),
            _format_ts(proposal.expires_at),
            str(proposal.creation_checkpoint),
        )
    console.print(table)

    events = Table(title=f"Events ({len(result.events)})", box=box.SIMPLE)
    events.add_column("Block", justify="right")
    events.add_column("Event", style="cyan")
    events.add_column("Proposal", no_wrap=True)
    events.add_column("Details")
    for event in result.events:
        details = {
            k: v for k, v in event.items() if k not in ("event", "proposal_id", "block_number")
        }
        events.add_row(
            str(event["block_number"]),
            event["event"],
            event["proposal_id"][:18],
            ", ".join(f"{k}={v}" for k, v in details.items()),
        )
    console.print(events)

    failed = [s for s in result.steps if not s.ok]
    console.print(
        f"[bold]Steps:[/] {len(result.steps)} "
        f"([green]{len(result.steps) - len(failed)} ok[/], [yellow]{len(failed)} expected failures[/])"
    )
    console.print(f"[bold]State digest:[/] {result.digest}")


@governance.command("config")
@click.option("--file", "config_file", type=click.Path(exists=True, dir_okay=False), help="YAML config file")
@click.pass_context
def show_config(ctx: click.Context, config_file: str | None):
    """Show the effective engine configuration."""
    try:
        config = load_config(config_file)
    except (ConfigurationError, yaml.YAMLError) as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(config.to_dict(), indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED)
    for key, value in config.to_dict().items():
        table.add_row(f"[bold cyan]{key}", str(value))
    console.print(table)

#!/usr/bin/env python3
"""
cliffvest CLI - schedule inspection

Provides offline commands for planning vestings:
- Preview a schedule's release table for an amount
- Encode and decode the 32-byte vesting id
"""

from __future__ import annotations

import json
import logging
import sys

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.address import derive_address
from ..core.contracts.vesting_schedule import (
    ScheduleConfig,
    decode_vesting_id,
    encode_vesting_id,
)
from ..core.exceptions import VestingError
from ..core.fixed_point import FixedPointRatio
from ..core.logging_config import setup_logging

logger = logging.getLogger(__name__)
console = Console()

PREVIEW_TOKEN = derive_address("cliffvest-preview-token")


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {escape(str(exc))}")
    sys.exit(exit_code)


@click.group()
@click.option("--log-level", default=None, help="Override CLIFFVEST_LOG_LEVEL")
@click.option("--log-json/--no-log-json", default=None, help="Emit JSON log lines")
def cli(log_level: str | None, log_json: bool | None):
    """cliffvest - token reservation and vesting tools."""
    setup_logging(name="cliffvest", level=log_level, json_format=log_json)


@cli.command("preview")
@click.option("--name", default="Preview", show_default=True, help="Vesting name (max 31 bytes)")
@click.option("--period-size", type=int, default=None, help="Seconds per period (default from config)")
@click.option("--cliff", type=int, default=0, show_default=True, help="Cliff periods")
@click.option("--vesting", type=int, required=True, help="Linear vesting periods")
@click.option("--initial-release", default="0", show_default=True, help="Initial release percent, e.g. 23 or 45.6")
@click.option("--amount", type=int, required=True, help="Reserved amount in base units")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
def preview(
    name: str,
    period_size: int | None,
    cliff: int,
    vesting: int,
    initial_release: str,
    amount: int,
    as_json: bool,
):
    """
    Show how a reservation is released period by period.

    Example:
        cliffvest preview --cliff 3 --vesting 12 --initial-release 23 --amount 123
    """
    try:
        ratio = FixedPointRatio.from_percent(initial_release)
        schedule = ScheduleConfig.create(name, period_size, cliff, vesting, ratio.value, PREVIEW_TOKEN)
        if amount <= 0:
            raise click.BadParameter("amount must be positive", param_hint="--amount")
        steps = schedule.release_table(amount)
    except (VestingError, ValueError) as exc:
        _handle_cli_error(exc)
        return

    if as_json:
        click.echo(json.dumps({
            "schedule": schedule.to_dict(),
            "amount": amount,
            "steps": [step.to_dict() for step in steps],
        }, indent=2))
        return

    console.print(
        f"[bold cyan]{escape(schedule.label)}[/]: {schedule.cliff} cliff + {schedule.vesting} vesting "
        f"periods of {schedule.period_length}s, initial release {ratio}"
    )
    table = Table(box=box.ROUNDED)
    table.add_column("Period", justify="right")
    table.add_column("Released", justify="right", style="green")
    table.add_column("Vested", justify="right", style="cyan")
    for step in steps:
        table.add_row(str(step.elapsed_periods), str(step.released_amount), str(step.vested_amount))
    console.print(table)


@cli.command("vesting-id")
@click.argument("name")
def vesting_id(name: str):
    """Encode NAME as a 32-byte vesting id."""
    try:
        raw = encode_vesting_id(name)
    except VestingError as exc:
        _handle_cli_error(exc)
        return
    click.echo("0x" + raw.hex())


@cli.command("decode-id")
@click.argument("hex_id")
def decode_id(hex_id: str):
    """Decode a 32-byte vesting id back to its name."""
    text = hex_id[2:] if hex_id.lower().startswith("0x") else hex_id
    try:
        name = decode_vesting_id(bytes.fromhex(text))
    except (VestingError, ValueError) as exc:
        _handle_cli_error(exc)
        return
    click.echo(name)


def main():
    return cli()


if __name__ == "__main__":
    sys.exit(main() or 0)

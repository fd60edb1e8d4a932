#!/usr/bin/env python3
"""
vestledger CLI - operate a vesting suite stored in a local JSON state file.

Every command loads the suite, runs a single operation against it, and saves
it back atomically. Pass --now to pin the clock (unix seconds) instead of
reading the wall clock.

Example:
    vestledger deploy --deployer 0xabc...
    vestledger mint-escrow --minter 0xabc... --to 0xdef... --amount 1000
    vestledger --now 1700000000 deposit --account 0xdef... --amount 1000
    vestledger --json-output position 0xdef...
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vestledger.core import config
from vestledger.core.config import ConfigurationError
from vestledger.core.deployment import (
    SuiteStateError,
    VestingSuite,
    deploy_suite,
    load_suite,
    save_suite,
)
from vestledger.core.logging_config import setup_logging
from vestledger.core.vm.exceptions import VMError

logger = logging.getLogger(__name__)
console = Console()

CLI_ERRORS = (VMError, SuiteStateError, ConfigurationError, ValueError)


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, extra={"event": "cli.error"})
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _time_provider(ctx: click.Context) -> Callable[[], int] | None:
    now = ctx.obj.get("now")
    if now is None:
        return None
    return lambda: now


def _load(ctx: click.Context) -> VestingSuite:
    return load_suite(ctx.obj["state_file"], time_provider=_time_provider(ctx))


def _save(ctx: click.Context, suite: VestingSuite) -> None:
    save_suite(suite, ctx.obj["state_file"])


def _render(ctx: click.Context, title: str, data: dict[str, Any], style: str = "green") -> None:
    """Print `data` as JSON or as a two-column rich table."""
    if ctx.obj["json_output"]:
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED)
    for key, value in data.items():
        table.add_row(f"[bold cyan]{key.replace('_', ' ').title()}", str(value))
    console.print(Panel(table, title=f"[bold {style}]{title}", border_style=style))


def _position_data(suite: VestingSuite, account: str) -> dict[str, Any]:
    vester = suite.vester
    position = vester.get_position(account)
    return {
        "account": account.lower(),
        "deposited_amount": position.deposited_amount,
        "claimed_amount": position.claimed_amount,
        "vesting_start_time": position.vesting_start_time,
        "last_claim_time": position.last_claim_time,
        "claimable": vester.claimable(account),
        "total_vested": vester.total_vested(account),
        "unvested_amount": vester.unvested_amount(account),
        "time_until_fully_vested": vester.time_until_fully_vested(account),
    }


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.option(
    "--state-file",
    envvar="VESTLEDGER_STATE_FILE",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Suite state file (defaults to deployments/local.json).",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--now",
    type=int,
    default=None,
    help="Fixed unix time in seconds used instead of the wall clock.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=config.LOG_LEVEL,
    show_default=True,
    help="Logging level (logs go to stderr as JSON).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    state_file: Path | None,
    json_output: bool,
    now: int | None,
    log_level: str,
):
    """
    vestledger - linear vesting of escrowed tokens into rewards.

    Escrowed tokens deposited into the Vester are burned and unlock linearly
    as reward tokens over the vesting duration.
    """
    ctx.ensure_object(dict)
    setup_logging(
        name="vestledger",
        log_file=config.LOG_FILE or None,
        level=log_level,
        environment=config.NETWORK,
    )
    ctx.obj["state_file"] = state_file or Path(config.get_state_file())
    ctx.obj["json_output"] = json_output
    ctx.obj["now"] = now


# ============================================================================
# Deployment
# ============================================================================

@cli.command("deploy")
@click.option("--deployer", required=True, help="Deployer address (owner of the Vester)")
@click.option(
    "--duration",
    type=int,
    default=None,
    help="Vesting duration in seconds (defaults to VESTLEDGER_VESTING_DURATION or 365 days).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@click.pass_context
def deploy(ctx: click.Context, deployer: str, duration: int | None, force: bool):
    """Deploy the reward token, escrowed token and Vester."""
    state_file: Path = ctx.obj["state_file"]
    try:
        if state_file.exists() and not force:
            raise click.ClickException(
                f"State file {state_file} already exists; pass --force to overwrite"
            )
        suite = deploy_suite(
            deployer,
            vesting_duration=duration,
            time_provider=_time_provider(ctx),
        )
        _save(ctx, suite)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(
        ctx,
        "Vesting Suite Deployed",
        {
            "network": suite.network,
            "deployer": suite.deployer,
            "reward_token": suite.reward_token.address,
            "escrowed_token": suite.escrowed_token.address,
            "vester": suite.vester.address,
            "vesting_duration": suite.vester.vesting_duration,
            "state_file": str(state_file),
        },
    )


@cli.command("validate")
@click.option(
    "--expected-duration",
    type=int,
    default=None,
    help="Fail unless the Vester uses exactly this duration (seconds).",
)
@click.pass_context
def validate(ctx: click.Context, expected_duration: int | None):
    """Check token ownership, minters, transfer blocking and Vester wiring."""
    try:
        suite = _load(ctx)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    report = suite.validate(expected_duration=expected_duration)

    if ctx.obj["json_output"]:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        table = Table(title="Suite Validation", box=box.ROUNDED)
        table.add_column("Check", style="cyan")
        table.add_column("Result")
        table.add_column("Detail", style="dim")
        for check in report.checks:
            result = "[green]PASS" if check.passed else "[red]FAIL"
            table.add_row(check.name, result, check.detail)
        console.print(table)
        console.print(
            f"[bold]{report.pass_count} passed, {report.fail_count} failed"
        )

    if not report.passed:
        sys.exit(1)


# ============================================================================
# Token Operations
# ============================================================================

@cli.command("mint-escrow")
@click.option("--minter", required=True, help="Authorized escrow minter")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--amount", required=True, type=int, help="Amount in base units")
@click.pass_context
def mint_escrow(ctx: click.Context, minter: str, recipient: str, amount: int):
    """Mint escrowed tokens (authorized minters only)."""
    try:
        suite = _load(ctx)
        suite.escrowed_token.mint(minter, recipient, amount)
        _save(ctx, suite)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(
        ctx,
        "Escrow Minted",
        {
            "to": recipient.lower(),
            "amount": amount,
            "balance": suite.escrowed_token.balance_of(recipient),
            "total_supply": suite.escrowed_token.total_supply,
        },
    )


@cli.command("balances")
@click.argument("account")
@click.pass_context
def balances(ctx: click.Context, account: str):
    """Show reward and escrowed balances of an account."""
    try:
        suite = _load(ctx)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(
        ctx,
        "Balances",
        {
            "account": account.lower(),
            "reward_balance": suite.reward_token.balance_of(account),
            "escrowed_balance": suite.escrowed_token.balance_of(account),
            "reward_supply": suite.reward_token.total_supply,
            "escrowed_supply": suite.escrowed_token.total_supply,
        },
    )


# ============================================================================
# Vesting Operations
# ============================================================================

@cli.command("deposit")
@click.option("--account", required=True, help="Depositing account")
@click.option("--amount", required=True, type=int, help="Escrowed amount to vest")
@click.pass_context
def deposit(ctx: click.Context, account: str, amount: int):
    """Burn escrowed tokens and start (or grow) a vesting position."""
    try:
        suite = _load(ctx)
        reward_before = suite.reward_token.balance_of(account)
        suite.vester.deposit(account, amount)
        _save(ctx, suite)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    data = _position_data(suite, account)
    data["claimed_on_deposit"] = suite.reward_token.balance_of(account) - reward_before
    _render(ctx, "Deposit Accepted", data)


@cli.command("claim")
@click.option("--account", required=True, help="Claiming account")
@click.pass_context
def claim(ctx: click.Context, account: str):
    """Mint the vested-but-unclaimed reward."""
    try:
        suite = _load(ctx)
        amount = suite.vester.claim(account)
        _save(ctx, suite)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(
        ctx,
        "Reward Claimed",
        {
            "account": account.lower(),
            "claimed": amount,
            "reward_balance": suite.reward_token.balance_of(account),
        },
    )


@cli.command("withdraw")
@click.option("--account", required=True, help="Withdrawing account")
@click.pass_context
def withdraw(ctx: click.Context, account: str):
    """Close the position, returning unvested collateral and forfeiting unclaimed rewards."""
    try:
        suite = _load(ctx)
        unvested, forfeited = suite.vester.withdraw(account)
        _save(ctx, suite)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(
        ctx,
        "Position Withdrawn",
        {
            "account": account.lower(),
            "unvested_returned": unvested,
            "forfeited": forfeited,
            "escrowed_balance": suite.escrowed_token.balance_of(account),
        },
        style="yellow",
    )


@cli.command("set-duration")
@click.option("--caller", required=True, help="Vester owner")
@click.option("--duration", required=True, type=int, help="New vesting duration in seconds")
@click.pass_context
def set_duration(ctx: click.Context, caller: str, duration: int):
    """Change the vesting duration for every open position (owner only)."""
    try:
        suite = _load(ctx)
        old_duration = suite.vester.vesting_duration
        suite.vester.set_vesting_duration(caller, duration)
        _save(ctx, suite)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(
        ctx,
        "Vesting Duration Updated",
        {
            "old_duration": old_duration,
            "new_duration": duration,
            "open_positions": len(suite.vester.positions),
        },
    )


@cli.command("position")
@click.argument("account")
@click.pass_context
def position(ctx: click.Context, account: str):
    """Show an account's vesting position and live accrual."""
    try:
        suite = _load(ctx)
        data = _position_data(suite, account)
    except CLI_ERRORS as exc:
        _cli_fail(exc)
        return

    _render(ctx, "Vesting Position", data, style="cyan")


def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()

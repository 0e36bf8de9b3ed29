#!/usr/bin/env python3
"""
FLOP Token CLI - Token Management Interface

Operates on a token persisted in a local JSON state file:
- Deploy a token and inspect balances, XP, fees and events
- Fee-bearing transfers, approvals and predictions
- Owner administration (airdrops, XP roles, fee schedule)
- Serve the read-only HTTP API
"""

from __future__ import annotations

import json
import logging
import secrets
import sys
from typing import Any, Callable

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from flop.core import config
from flop.core.config import ConfigurationError, load_deployment_settings
from flop.core.contracts.fee_engine import FeeConfig
from flop.core.contracts.flop_token import FlopToken
from flop.core.state_store import StateStoreError, TokenStateStore
from flop.core.structured_logger import configure_logging
from flop.core.units import format_flop, to_base_units
from flop.core.vm.exceptions import VMExecutionError

logger = logging.getLogger(__name__)
console = Console()

CLI_ERRORS = (VMExecutionError, StateStoreError, ConfigurationError, ValueError, OSError)


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    if isinstance(exc, VMExecutionError):
        console.print(f"[bold red]Error:[/] {escape(exc.code)}: {escape(exc.message)}", soft_wrap=True)
    else:
        console.print(f"[bold red]Error:[/] {escape(str(exc))}", soft_wrap=True)
    sys.exit(exit_code)


def _parse_amount(value: str, in_flop: bool) -> int:
    """Base units by default; whole-token decimals with --flop."""
    if in_flop:
        return to_base_units(value)
    try:
        amount = int(value)
    except ValueError as exc:
        raise ValueError(f"Amount must be an integer number of base units, got {value!r}") from exc
    if amount < 0:
        raise ValueError("Amount cannot be negative")
    return amount


def _random_address() -> str:
    return "0x" + secrets.token_hex(20)


def _output(ctx: click.Context, payload: dict[str, Any], title: str) -> None:
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(payload, indent=2, default=str))
        return

    table = Table(title=title, show_header=False, box=box.ROUNDED)
    for key, value in payload.items():
        table.add_row(f"[bold cyan]{key}", str(value))
    console.print(table)


def _mutate(ctx: click.Context, operation: Callable[[FlopToken], dict[str, Any]], title: str) -> None:
    """Load the token, apply ``operation``, persist and report."""
    store: TokenStateStore = ctx.obj["store"]
    try:
        token = store.load()
        result = operation(token)
        store.save(token)
    except CLI_ERRORS as exc:
        _handle_cli_error(exc)
        return
    _output(ctx, result, title)


def _view(ctx: click.Context, render: Callable[[FlopToken], dict[str, Any]], title: str) -> None:
    try:
        token = ctx.obj["store"].load()
        result = render(token)
    except CLI_ERRORS as exc:
        _handle_cli_error(exc)
        return
    _output(ctx, result, title)


amount_unit_option = click.option(
    "--flop", "in_flop", is_flag=True, help="Interpret amounts as FLOP (18 decimals) instead of base units"
)


@click.group()
@click.option(
    "--state",
    "state_path",
    envvar="FLOP_STATE_PATH",
    default=config.STATE_PATH,
    show_default=True,
    help="Token state file",
)
@click.option("--json-output", is_flag=True, help="Emit raw JSON instead of tables")
@click.option("--log-level", envvar="FLOP_LOG_LEVEL", default="WARNING", show_default=True)
@click.option("--log-json", is_flag=True, envvar="FLOP_LOG_JSON", help="Write logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, state_path: str, json_output: bool, log_level: str, log_json: bool):
    """FLOP token ledger commands."""
    configure_logging(log_level, json_output=log_json)
    ctx.ensure_object(dict)
    ctx.obj["store"] = TokenStateStore(state_path)
    ctx.obj["json_output"] = json_output


# ==================== Deployment & Views ====================


@cli.command("init")
@click.option("--deployer", required=True, help="Owner address receiving the initial supply")
@click.option("--prediction-pool", default=None, help="Prediction pool address")
@click.option("--buyback-wallet", default=None, help="Buyback wallet address")
@click.option("--initial-supply", default=None, type=int, help="Initial supply in base units")
@click.option("--force", is_flag=True, help="Overwrite an existing state file")
@click.pass_context
def init_token(
    ctx: click.Context,
    deployer: str,
    prediction_pool: str | None,
    buyback_wallet: str | None,
    initial_supply: int | None,
    force: bool,
):
    """
    Deploy a new token into the state file.

    Fee percentages and destinations default to the FLOP_* environment
    settings. On testnet, missing destinations are generated.

    Example:
        flop init --deployer 0xabc... --initial-supply 1000000
    """
    store: TokenStateStore = ctx.obj["store"]
    try:
        if store.exists() and not force:
            raise StateStoreError(f"Token state already exists at {store.path}; use --force to replace it")

        settings = load_deployment_settings()
        pool = prediction_pool or settings.prediction_pool or _random_address()
        buyback = buyback_wallet or settings.buyback_wallet or _random_address()
        token = FlopToken.deploy(
            deployer=deployer,
            prediction_pool=pool,
            buyback_wallet=buyback,
            initial_supply=settings.initial_supply if initial_supply is None else initial_supply,
            fee_config=FeeConfig(
                burn_fee_pct=settings.burn_fee_pct,
                prediction_pool_fee_pct=settings.prediction_pool_fee_pct,
                buyback_fee_pct=settings.buyback_fee_pct,
            ),
        )
        store.save(token)
    except CLI_ERRORS as exc:
        _handle_cli_error(exc)
        return

    logger.info("Token initialized at %s", store.path)
    _output(
        ctx,
        {
            "address": token.address,
            "owner": token.owner,
            "network": settings.network.value,
            "total_supply": token.total_supply,
            "prediction_pool": token.prediction_pool,
            "buyback_wallet": token.buyback_wallet,
            **token.fee_config.to_dict(),
        },
        "FLOP Token Deployed",
    )


@cli.command("info")
@click.pass_context
def token_info(ctx: click.Context):
    """Show token metadata and configuration."""
    _view(
        ctx,
        lambda token: {
            "name": token.name,
            "symbol": token.symbol,
            "decimals": token.decimals,
            "address": token.address,
            "owner": token.owner,
            "total_supply": token.total_supply,
            "total_supply_flop": format_flop(token.total_supply),
            "prediction_pool": token.prediction_pool,
            "buyback_wallet": token.buyback_wallet,
            "xp_paused": token.xp_paused,
            "current_batch": token.current_batch,
            "events": len(token.events),
        },
        "FLOP Token",
    )


@cli.command("balance")
@click.argument("address")
@click.pass_context
def balance(ctx: click.Context, address: str):
    """Show the token balance of ADDRESS."""

    def render(token: FlopToken) -> dict[str, Any]:
        amount = token.balance_of(address)
        return {"address": address.lower(), "balance": amount, "flop": format_flop(amount)}

    _view(ctx, render, "Balance")


@cli.command("xp")
@click.argument("address")
@click.pass_context
def xp(ctx: click.Context, address: str):
    """Show the XP of ADDRESS."""
    _view(ctx, lambda token: {"address": address.lower(), "xp": token.get_xp(address)}, "XP")


@cli.command("fees")
@click.pass_context
def fees(ctx: click.Context):
    """Show the current fee schedule."""
    _view(
        ctx,
        lambda token: {**token.fee_config.to_dict(), "total_fee_pct": token.fee_config.total_fee_pct},
        "Fee Schedule",
    )


@cli.command("quote")
@click.argument("amount")
@amount_unit_option
@click.pass_context
def quote(ctx: click.Context, amount: str, in_flop: bool):
    """Show how a transfer of AMOUNT would be split."""
    _view(ctx, lambda token: token.quote_fee(_parse_amount(amount, in_flop)).to_dict(), "Fee Quote")


@cli.command("events")
@click.option("--limit", default=20, type=click.IntRange(min=1), show_default=True)
@click.option("--offset", default=0, type=click.IntRange(min=0), show_default=True)
@click.option("--type", "event_type", default=None, help="Only show this event type")
@click.pass_context
def events(ctx: click.Context, limit: int, offset: int, event_type: str | None):
    """List emitted events."""
    try:
        token = ctx.obj["store"].load()
    except CLI_ERRORS as exc:
        _handle_cli_error(exc)
        return

    page = token.events.page(limit, offset, event_type)
    if ctx.obj.get("json_output"):
        click.echo(json.dumps([e.to_dict() for e in page], indent=2, default=str))
        return

    table = Table(title="Events", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Event", style="cyan")
    table.add_column("Args")
    for event in page:
        args = ", ".join(f"{k}={v}" for k, v in event.args.items())
        table.add_row(str(event.sequence), event.event_type, args)
    console.print(table)


# ==================== Holder Operations ====================


@cli.command("transfer")
@click.option("--from", "sender", required=True, help="Sender address")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.argument("amount")
@amount_unit_option
@click.pass_context
def transfer(ctx: click.Context, sender: str, recipient: str, amount: str, in_flop: bool):
    """Transfer AMOUNT; the recipient receives it net of fees."""

    def operation(token: FlopToken) -> dict[str, Any]:
        value = _parse_amount(amount, in_flop)
        split = token.quote_fee(value)
        token.transfer(sender, recipient, value)
        return split.to_dict()

    _mutate(ctx, operation, "Transfer")


@cli.command("approve")
@click.option("--owner", required=True, help="Token holder granting the allowance")
@click.option("--spender", required=True, help="Address allowed to spend")
@click.argument("amount")
@amount_unit_option
@click.pass_context
def approve(ctx: click.Context, owner: str, spender: str, amount: str, in_flop: bool):
    """Set SPENDER's allowance over OWNER's tokens to AMOUNT."""

    def operation(token: FlopToken) -> dict[str, Any]:
        token.approve(owner, spender, _parse_amount(amount, in_flop))
        return {"owner": owner.lower(), "spender": spender.lower(), "allowance": token.allowance(owner, spender)}

    _mutate(ctx, operation, "Approval")


@cli.command("transfer-from")
@click.option("--spender", required=True, help="Address spending the allowance")
@click.option("--from", "from_addr", required=True, help="Token holder")
@click.option("--to", "to_addr", required=True, help="Recipient address")
@click.argument("amount")
@amount_unit_option
@click.pass_context
def transfer_from(ctx: click.Context, spender: str, from_addr: str, to_addr: str, amount: str, in_flop: bool):
    """Delegated transfer; the allowance drops by the full AMOUNT."""

    def operation(token: FlopToken) -> dict[str, Any]:
        value = _parse_amount(amount, in_flop)
        split = token.quote_fee(value)
        token.transfer_from(spender, from_addr, to_addr, value)
        return {**split.to_dict(), "remaining_allowance": token.allowance(from_addr, spender)}

    _mutate(ctx, operation, "Delegated Transfer")


@cli.command("predict")
@click.option("--user", required=True, help="Address placing the prediction")
@click.argument("amount")
@click.argument("prediction")
@amount_unit_option
@click.pass_context
def predict(ctx: click.Context, user: str, amount: str, prediction: str, in_flop: bool):
    """Stake AMOUNT on PREDICTION and earn XP."""

    def operation(token: FlopToken) -> dict[str, Any]:
        earned = token.place_prediction(user, _parse_amount(amount, in_flop), prediction)
        return {"user": user.lower(), "prediction": prediction, "xp_earned": earned, "xp": token.get_xp(user)}

    _mutate(ctx, operation, "Prediction Placed")


# ==================== Owner Operations ====================


@cli.command("airdrop")
@click.option("--caller", required=True, help="Owner address funding the airdrop")
@click.option("--amount", required=True, help="Amount per recipient")
@click.option(
    "--recipients-file",
    type=click.Path(exists=True, dir_okay=False),
    help="File with one recipient address per line",
)
@click.argument("recipients", nargs=-1)
@amount_unit_option
@click.pass_context
def airdrop(
    ctx: click.Context,
    caller: str,
    amount: str,
    recipients_file: str | None,
    recipients: tuple[str, ...],
    in_flop: bool,
):
    """
    Fee-free distribution of --amount to every recipient.

    A failed batch still consumes its batch index.

    Example:
        flop airdrop --caller 0xowner... --amount 100 0xaaa... 0xbbb...
    """
    addresses = list(recipients)
    if recipients_file:
        with open(recipients_file, "r", encoding="utf-8") as handle:
            addresses.extend(line.strip() for line in handle if line.strip())

    store: TokenStateStore = ctx.obj["store"]
    try:
        token = store.load()
        value = _parse_amount(amount, in_flop)
        try:
            batch = token.airdrop_batch(caller, addresses, value)
        finally:
            # A consumed batch index is persisted even when the batch fails
            store.save(token)
    except CLI_ERRORS as exc:
        _handle_cli_error(exc)
        return

    _output(
        ctx,
        {"batch": batch, "recipients": len(addresses), "amount_per_recipient": value, "next_batch": token.current_batch},
        "Airdrop",
    )


@cli.command("grant-xp")
@click.option("--caller", required=True, help="Owner or authorized address")
@click.argument("user")
@click.argument("amount", type=click.IntRange(min=0))
@click.pass_context
def grant_xp(ctx: click.Context, caller: str, user: str, amount: int):
    """Grant AMOUNT XP to USER."""
    _mutate(ctx, lambda token: {"user": user.lower(), "xp": token.grant_xp(caller, user, amount)}, "XP Granted")


@cli.command("spend-xp")
@click.option("--caller", required=True, help="Owner or authorized address")
@click.argument("user")
@click.argument("amount", type=click.IntRange(min=0))
@click.pass_context
def spend_xp(ctx: click.Context, caller: str, user: str, amount: int):
    """Spend AMOUNT of USER's XP."""
    _mutate(ctx, lambda token: {"user": user.lower(), "xp": token.spend_xp(caller, user, amount)}, "XP Spent")


@cli.command("pause-xp")
@click.option("--caller", required=True, help="Owner address")
@click.pass_context
def pause_xp(ctx: click.Context, caller: str):
    """Toggle the XP system pause flag."""
    _mutate(ctx, lambda token: {"xp_paused": token.toggle_xp_pause(caller)}, "XP System")


@cli.command("authorize")
@click.option("--caller", required=True, help="Owner address")
@click.argument("identity")
@click.pass_context
def authorize(ctx: click.Context, caller: str, identity: str):
    """Allow IDENTITY to grant and spend XP."""

    def operation(token: FlopToken) -> dict[str, Any]:
        token.authorize(caller, identity)
        return {"identity": identity.lower(), "authorized": token.is_authorized(identity)}

    _mutate(ctx, operation, "XP Authorization")


@cli.command("revoke")
@click.option("--caller", required=True, help="Owner address")
@click.argument("identity")
@click.pass_context
def revoke(ctx: click.Context, caller: str, identity: str):
    """Remove IDENTITY from the XP authorized set."""

    def operation(token: FlopToken) -> dict[str, Any]:
        token.revoke(caller, identity)
        return {"identity": identity.lower(), "authorized": token.is_authorized(identity)}

    _mutate(ctx, operation, "XP Authorization")


@cli.command("set-fees")
@click.option("--caller", required=True, help="Owner address")
@click.option("--burn", "burn_pct", required=True, type=click.IntRange(min=0), help="Burn percentage")
@click.option("--pool", "pool_pct", required=True, type=click.IntRange(min=0), help="Prediction pool percentage")
@click.option("--buyback", "buyback_pct", required=True, type=click.IntRange(min=0), help="Buyback percentage")
@click.pass_context
def set_fees(ctx: click.Context, caller: str, burn_pct: int, pool_pct: int, buyback_pct: int):
    """Replace the fee schedule (total may not exceed 100)."""

    def operation(token: FlopToken) -> dict[str, Any]:
        fee_config = token.set_fees(caller, burn_pct, pool_pct, buyback_pct)
        return {**fee_config.to_dict(), "total_fee_pct": fee_config.total_fee_pct}

    _mutate(ctx, operation, "Fee Schedule")


@cli.command("set-pool")
@click.option("--caller", required=True, help="Owner address")
@click.argument("address")
@click.pass_context
def set_pool(ctx: click.Context, caller: str, address: str):
    """Point the prediction pool share at ADDRESS."""

    def operation(token: FlopToken) -> dict[str, Any]:
        token.set_prediction_pool(caller, address)
        return {"prediction_pool": token.prediction_pool}

    _mutate(ctx, operation, "Prediction Pool")


@cli.command("set-buyback")
@click.option("--caller", required=True, help="Owner address")
@click.argument("address")
@click.pass_context
def set_buyback(ctx: click.Context, caller: str, address: str):
    """Point the buyback share at ADDRESS."""

    def operation(token: FlopToken) -> dict[str, Any]:
        token.set_buyback_wallet(caller, address)
        return {"buyback_wallet": token.buyback_wallet}

    _mutate(ctx, operation, "Buyback Wallet")


@cli.command("mint")
@click.option("--caller", required=True, help="Owner address")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.argument("amount")
@amount_unit_option
@click.pass_context
def mint(ctx: click.Context, caller: str, recipient: str, amount: str, in_flop: bool):
    """Mint AMOUNT new tokens to --to."""

    def operation(token: FlopToken) -> dict[str, Any]:
        token.mint(caller, recipient, _parse_amount(amount, in_flop))
        return {"to": recipient.lower(), "balance": token.balance_of(recipient), "total_supply": token.total_supply}

    _mutate(ctx, operation, "Mint")


# ==================== API Server ====================


@cli.command("serve")
@click.option("--host", default=config.API_HOST, show_default=True)
@click.option("--port", default=config.API_PORT, type=int, show_default=True)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Serve the read-only HTTP API over the current state file."""
    from flop.api.app import create_app
    from flop.core.token_metrics import TokenMetrics

    try:
        token = ctx.obj["store"].load(metrics=TokenMetrics())
    except CLI_ERRORS as exc:
        _handle_cli_error(exc)
        return

    console.print(f"[bold cyan]Serving {token.symbol} API on http://{host}:{port}[/]")
    create_app(token).run(host=host, port=port)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()

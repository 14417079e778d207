from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Coroutine
from typing import Any

import click
from eth_account import Account
from loguru import logger

from lp_vault.access.authorizer import AllowListAuthorizer
from lp_vault.adapters.uniswap_v2_adapter.adapter import (
    Web3Erc20,
    Web3ExecutionContext,
    Web3Router,
)
from lp_vault.core.config import get_private_key, get_vault_settings, load_config
from lp_vault.core.errors import ConfigurationError, VaultError
from lp_vault.core.utils.transaction import (
    TransactionRevertedError,
    make_sign_callback,
)
from lp_vault.core.utils.uniswap_v2_math import slippage_min
from lp_vault.vault.vault import LiquidityVault


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


async def _build_vault(
    *, wallet_address: str | None = None, sign_callback=None
) -> LiquidityVault:
    settings = get_vault_settings()

    def _token(address: str) -> Web3Erc20:
        return Web3Erc20(
            address,
            settings.chain_id,
            wallet_address=wallet_address,
            sign_callback=sign_callback,
        )

    router = Web3Router(
        settings.router,
        settings.chain_id,
        wallet_address=wallet_address,
        sign_callback=sign_callback,
    )
    return await LiquidityVault.create(
        address=settings.vault_address,
        asset=_token(settings.reference_asset),
        token0=_token(settings.token0),
        token1=_token(settings.token1),
        router=router,
        context=Web3ExecutionContext(
            settings.chain_id, deadline_buffer_s=settings.deadline_buffer_s
        ),
        authorizer=AllowListAuthorizer(settings.managers),
    )


async def _status() -> dict[str, Any]:
    vault = await _build_vault()
    position = await vault.position()
    return {
        "vault": vault.address,
        "pair": vault.pair.address,
        **position.model_dump(),
    }


async def _invest(
    amount0: int, amount1: int, amount0_min: int | None, amount1_min: int | None
) -> dict[str, Any]:
    private_key = get_private_key()
    if not private_key:
        raise ConfigurationError("No private key configured for the vault wallet")
    account = Account.from_key(private_key)
    settings = get_vault_settings()
    if account.address != settings.vault_address:
        raise ConfigurationError(
            f"Private key controls {account.address}, not vault {settings.vault_address}"
        )

    vault = await _build_vault(
        wallet_address=account.address, sign_callback=make_sign_callback(private_key)
    )
    if amount0_min is None:
        amount0_min = slippage_min(amount0, settings.slippage_bps)
    if amount1_min is None:
        amount1_min = slippage_min(amount1, settings.slippage_bps)
    receipt = await vault.invest_v2(
        account.address, amount0, amount1, amount0_min, amount1_min
    )
    return receipt.model_dump()


# reported as JSON; anything else propagates with its traceback
_REPORTED_ERRORS = (VaultError, TransactionRevertedError, ValueError)


def _run_and_report(coro: Coroutine[Any, Any, dict[str, Any]]) -> None:
    try:
        result = asyncio.run(coro)
    except _REPORTED_ERRORS as exc:
        logger.debug(f"Command failed: {exc!r}")
        _echo_json({"ok": False, "error": type(exc).__name__, "details": str(exc)})
        raise SystemExit(1) from exc
    _echo_json({"ok": True, "result": result})


@click.group(name="lp-vault", help="Liquidity vault over a Uniswap V2 position.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.json (defaults to LP_VAULT_CONFIG_PATH or ./config.json).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
def cli(config_path: str | None, log_level: str) -> None:
    _configure_logging(log_level)
    load_config(config_path, require_exists=config_path is not None)


@cli.command(name="status", help="Print idle balance, LP claim and total assets.")
def status_cmd() -> None:
    _run_and_report(_status())


@cli.command(name="invest", help="Move idle pair tokens into the pool.")
@click.argument("amount0", type=int)
@click.argument("amount1", type=int)
@click.option("--amount0-min", type=int, default=None)
@click.option("--amount1-min", type=int, default=None)
def invest_cmd(
    amount0: int, amount1: int, amount0_min: int | None, amount1_min: int | None
) -> None:
    _run_and_report(_invest(amount0, amount1, amount0_min, amount1_min))


if __name__ == "__main__":
    cli()

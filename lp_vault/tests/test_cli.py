from __future__ import annotations

import copy
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner
from eth_account import Account

import lp_vault.core.config as config
from lp_vault.cli import cli
from lp_vault.core.utils.transaction import TransactionRevertedError
from lp_vault.vault.models import InvestmentReceipt, PositionValuation

TEST_KEY = "0x" + "4c" * 32

VAULT_SECTION = {
    "chain_id": 8453,
    "reference_asset": "0x1111111111111111111111111111111111111111",
    "token0": "0x1111111111111111111111111111111111111111",
    "token1": "0x3333333333333333333333333333333333333333",
    "router": "0x4444444444444444444444444444444444444444",
    "vault_address": "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
    "managers": [],
    "rpc_urls": {"8453": "https://base.example.org"},
}


@pytest.fixture(autouse=True)
def restore_global_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LP_VAULT_PRIVATE_KEY", raising=False)
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def _write_config(tmp_path: Path, section: dict | None) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({} if section is None else {"vault": section}))
    return str(path)


def _run(*args: str):
    result = CliRunner().invoke(cli, ["--log-level", "ERROR", *args])
    return result, json.loads(result.stdout)


def test_status_without_vault_section(tmp_path: Path) -> None:
    result, payload = _run("--config", _write_config(tmp_path, None), "status")
    assert result.exit_code == 1
    assert payload["ok"] is False
    assert payload["error"] == "ConfigurationError"


def test_status_reports_position(tmp_path: Path) -> None:
    vault = MagicMock()
    vault.address = VAULT_SECTION["vault_address"]
    vault.pair.address = "0x6666666666666666666666666666666666666666"
    vault.position = AsyncMock(
        return_value=PositionValuation(
            idle=500,
            liquidity_claim=50,
            owned0=500,
            owned1=250,
            position_value=750,
            total_assets=1_250,
        )
    )
    with patch("lp_vault.cli._build_vault", new=AsyncMock(return_value=vault)):
        result, payload = _run("--config", _write_config(tmp_path, VAULT_SECTION), "status")

    assert result.exit_code == 0
    assert payload["ok"] is True
    assert payload["result"]["total_assets"] == 1_250
    assert payload["result"]["pair"] == "0x6666666666666666666666666666666666666666"


def test_invest_requires_private_key(tmp_path: Path) -> None:
    result, payload = _run(
        "--config", _write_config(tmp_path, VAULT_SECTION), "invest", "1000", "500"
    )
    assert result.exit_code == 1
    assert payload["error"] == "ConfigurationError"
    assert "private key" in payload["details"]


def test_invest_rejects_key_for_other_wallet(tmp_path: Path) -> None:
    section = {**VAULT_SECTION, "private_key": TEST_KEY}
    result, payload = _run("--config", _write_config(tmp_path, section), "invest", "1", "1")
    assert result.exit_code == 1
    assert "not vault" in payload["details"]


def test_invest_applies_configured_slippage(tmp_path: Path) -> None:
    wallet = Account.from_key(TEST_KEY).address
    section = {**VAULT_SECTION, "vault_address": wallet, "private_key": TEST_KEY}
    vault = MagicMock()
    vault.invest_v2 = AsyncMock(
        return_value=InvestmentReceipt(
            amount0_used=1_000, amount1_used=500, liquidity_minted=70, deadline=1
        )
    )
    with patch("lp_vault.cli._build_vault", new=AsyncMock(return_value=vault)):
        result, payload = _run(
            "--config", _write_config(tmp_path, section), "invest", "1000", "500"
        )

    assert result.exit_code == 0
    assert payload["result"]["liquidity_minted"] == 70
    vault.invest_v2.assert_awaited_once_with(wallet, 1_000, 500, 995, 497)


def test_invest_explicit_minimums(tmp_path: Path) -> None:
    wallet = Account.from_key(TEST_KEY).address
    section = {**VAULT_SECTION, "vault_address": wallet, "private_key": TEST_KEY}
    vault = MagicMock()
    vault.invest_v2 = AsyncMock(
        return_value=InvestmentReceipt(
            amount0_used=1, amount1_used=1, liquidity_minted=1, deadline=1
        )
    )
    with patch("lp_vault.cli._build_vault", new=AsyncMock(return_value=vault)):
        _run(
            "--config",
            _write_config(tmp_path, section),
            "invest",
            "1000",
            "500",
            "--amount0-min",
            "0",
            "--amount1-min",
            "1",
        )
    vault.invest_v2.assert_awaited_once_with(wallet, 1_000, 500, 0, 1)


def test_status_reports_missing_rpc(tmp_path: Path) -> None:
    vault = MagicMock()
    vault.position = AsyncMock(
        side_effect=ValueError("No RPCs configured for chain ID 8453")
    )
    with patch("lp_vault.cli._build_vault", new=AsyncMock(return_value=vault)):
        result, payload = _run("--config", _write_config(tmp_path, VAULT_SECTION), "status")

    assert result.exit_code == 1
    assert payload == {
        "ok": False,
        "error": "ValueError",
        "details": "No RPCs configured for chain ID 8453",
    }


def test_invest_reports_reverted_transaction(tmp_path: Path) -> None:
    wallet = Account.from_key(TEST_KEY).address
    section = {**VAULT_SECTION, "vault_address": wallet, "private_key": TEST_KEY}
    vault = MagicMock()
    vault.invest_v2 = AsyncMock(side_effect=TransactionRevertedError("0xdead"))
    with patch("lp_vault.cli._build_vault", new=AsyncMock(return_value=vault)):
        result, payload = _run(
            "--config", _write_config(tmp_path, section), "invest", "1000", "500"
        )

    assert result.exit_code == 1
    assert payload["error"] == "TransactionRevertedError"
    assert "0xdead" in payload["details"]

import pytest

from lp_vault.core.errors import ArithmeticBoundaryError, InsufficientBalanceError
from lp_vault.testing import ALICE, BOB
from lp_vault.vault.shares import (
    Rounding,
    ShareLedger,
    convert_to_assets,
    convert_to_shares,
)


class TestConversions:
    def test_empty_vault_is_one_to_one(self):
        assert convert_to_shares(1_000, 0, 0) == 1_000
        assert convert_to_assets(1_000, 0, 0) == 1_000

    def test_gain_makes_shares_dearer(self):
        # 2000 assets backing 1000 shares
        assert convert_to_shares(1_000, 2_000, 1_000) == 500
        assert convert_to_assets(500, 2_000, 1_000) == 999

    def test_rounding_favours_vault(self):
        down = convert_to_shares(1_000, 2_000, 1_000, Rounding.DOWN)
        up = convert_to_shares(1_000, 2_000, 1_000, Rounding.UP)
        assert up == down + 1
        assert convert_to_assets(500, 2_000, 1_000, Rounding.UP) == 1_000

    def test_donation_to_empty_vault_does_not_divide_by_zero(self):
        assert convert_to_shares(10, 1_000, 0) == 0
        assert convert_to_assets(0, 1_000, 0) == 0

    def test_rejects_negative(self):
        with pytest.raises(ArithmeticBoundaryError):
            convert_to_shares(-1, 0, 0)


class TestShareLedger:
    def test_mint_and_burn(self):
        ledger = ShareLedger("lpVLT")
        ledger.mint(ALICE, 10)
        ledger.mint(BOB, 5)
        ledger.burn(ALICE, 4)
        assert ledger.balance_of(ALICE) == 6
        assert ledger.supply == 11

    def test_burn_more_than_owned(self):
        ledger = ShareLedger("lpVLT")
        ledger.mint(ALICE, 1)
        with pytest.raises(InsufficientBalanceError):
            ledger.burn(ALICE, 2)
        assert ledger.supply == 1

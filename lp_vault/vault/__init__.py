from lp_vault.vault.executor import InvestmentExecutor
from lp_vault.vault.models import (
    DivestmentReceipt,
    InvestmentReceipt,
    PositionValuation,
    ReservesSnapshot,
)
from lp_vault.vault.oracle import FeedOracle, ParityOracle, PoolSpotOracle, PriceOracle
from lp_vault.vault.valuation import ValuationEngine
from lp_vault.vault.vault import LiquidityVault

__all__ = [
    "DivestmentReceipt",
    "FeedOracle",
    "InvestmentExecutor",
    "InvestmentReceipt",
    "LiquidityVault",
    "ParityOracle",
    "PoolSpotOracle",
    "PositionValuation",
    "PriceOracle",
    "ReservesSnapshot",
    "ValuationEngine",
]

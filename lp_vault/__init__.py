__version__ = "0.1.0"

from lp_vault.access import AllowListAuthorizer, RoleAuthorizer, RoleRegistry
from lp_vault.vault import (
    InvestmentReceipt,
    LiquidityVault,
    ParityOracle,
    ValuationEngine,
)

__all__ = [
    "__version__",
    "AllowListAuthorizer",
    "InvestmentReceipt",
    "LiquidityVault",
    "ParityOracle",
    "RoleAuthorizer",
    "RoleRegistry",
    "ValuationEngine",
]

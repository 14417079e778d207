from lp_vault.ledger.chain import Chain, StatefulLedger
from lp_vault.ledger.factory import V2Factory
from lp_vault.ledger.pair import V2Pair
from lp_vault.ledger.router import V2Router
from lp_vault.ledger.token import Erc20Ledger

__all__ = [
    "Chain",
    "Erc20Ledger",
    "StatefulLedger",
    "V2Factory",
    "V2Pair",
    "V2Router",
]

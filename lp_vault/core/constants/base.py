MAX_UINT256 = 2**256 - 1
MAX_UINT112 = 2**112 - 1

# Uniswap V2 locks this much LP supply to the zero address on the first mint.
MINIMUM_LIQUIDITY = 1000
SWAP_FEE_BPS = 30

DEFAULT_SLIPPAGE_BPS = 50
DEFAULT_DEADLINE_BUFFER_S = 0

# Fixed-point scale for external price feeds.
PRICE_SCALE = 10**18

OP_INVEST = "invest_v2"
OP_DIVEST = "divest_v2"

from pydantic import BaseModel


class ReservesSnapshot(BaseModel):
    """Pool state read for one valuation. Never cached across calls."""

    token0: str
    token1: str
    reserve0: int
    reserve1: int
    total_supply: int
    block_timestamp_last: int

    model_config = {"frozen": True}


class PositionValuation(BaseModel):
    idle: int
    liquidity_claim: int
    owned0: int
    owned1: int
    position_value: int
    total_assets: int
    reserves: ReservesSnapshot | None = None

    model_config = {"frozen": True}


class InvestmentReceipt(BaseModel):
    amount0_used: int
    amount1_used: int
    liquidity_minted: int
    deadline: int

    model_config = {"frozen": True}


class DivestmentReceipt(BaseModel):
    liquidity_burned: int
    amount0_received: int
    amount1_received: int
    deadline: int

    model_config = {"frozen": True}

from __future__ import annotations


class VaultError(RuntimeError):
    """Base class for every failure the vault surfaces to its caller."""


class ConfigurationError(VaultError):
    pass


class UnauthorizedError(VaultError):
    def __init__(self, caller: str, operation: str):
        self.caller = caller
        self.operation = operation
        super().__init__(f"{caller} is not allowed to call {operation}")


class LedgerError(VaultError):
    pass


class InsufficientBalanceError(LedgerError):
    def __init__(self, token: str, holder: str, balance: int, needed: int):
        self.token = token
        self.holder = holder
        self.balance = balance
        self.needed = needed
        super().__init__(
            f"Insufficient balance of {token} for {holder}: have {balance}, need {needed}"
        )


class InsufficientAllowanceError(LedgerError):
    def __init__(self, token: str, owner: str, spender: str, allowance: int, needed: int):
        self.token = token
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.needed = needed
        super().__init__(
            f"Insufficient allowance of {token} from {owner} to {spender}: "
            f"have {allowance}, need {needed}"
        )


class LiquidityRejectedError(VaultError):
    """The router refused a liquidity request; nothing it touched was kept."""


class SlippageError(LiquidityRejectedError):
    def __init__(self, token: str, amount: int, minimum: int):
        self.token = token
        self.amount = amount
        self.minimum = minimum
        super().__init__(
            f"Insufficient {token} amount: router would use {amount}, minimum is {minimum}"
        )


class DeadlineExpiredError(LiquidityRejectedError):
    def __init__(self, deadline: int, now: int):
        self.deadline = deadline
        self.now = now
        super().__init__(f"Deadline {deadline} expired at {now}")


class InsufficientLiquidityError(LiquidityRejectedError):
    pass


class ArithmeticBoundaryError(VaultError, ArithmeticError):
    """A uint256 computation left its range. Results are never wrapped."""

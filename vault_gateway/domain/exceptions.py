"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


# Access control

class UnauthorizedError(DomainException):
    """Caller lacks the capability required by the operation"""

    def __init__(self, identity: str, capability: str):
        self.identity = identity
        self.capability = capability
        super().__init__(f"{identity} lacks capability {capability}")


class InvalidRunStateError(DomainException):
    """Operation is not permitted in the current run-state"""

    def __init__(self, required: str, actual: str):
        self.required = required
        self.actual = actual
        super().__init__(f"Operation requires run-state {required}, system is {actual}")


# Ledger

class InvalidAmountError(DomainException):
    """Amount must be a positive integer"""

    pass


class BelowMinimumDepositError(DomainException):
    """Deposit is smaller than the configured minimum"""

    def __init__(self, amount: int, minimum: int):
        super().__init__(f"Deposit {amount} below minimum {minimum}")


class CapacityExceededError(DomainException):
    """Deposit would push holdings above the capacity cap"""

    def __init__(self, projected: int, cap: int):
        super().__init__(f"Projected holdings {projected} exceed capacity {cap}")


class ExceedsBalanceError(DomainException):
    """Withdrawal is larger than the account balance"""

    def __init__(self, amount: int, balance: int):
        super().__init__(f"Withdrawal {amount} exceeds balance {balance}")


class ExceedsPerWithdrawalCapError(DomainException):
    """Withdrawal is larger than the per-operation cap"""

    def __init__(self, amount: int, cap: int):
        super().__init__(f"Withdrawal {amount} exceeds per-withdrawal cap {cap}")


class DailyLimitExceededError(DomainException):
    """Withdrawal would exceed the remaining daily allowance"""

    def __init__(self, amount: int, remaining: int):
        super().__init__(f"Withdrawal {amount} exceeds remaining daily allowance {remaining}")


class InsufficientLiquidityError(DomainException):
    """Holdings cannot cover the requested payout"""

    pass


class CreditScoreOutOfRangeError(DomainException):
    """Credit score outside the configured bounds"""

    def __init__(self, score: int, minimum: int, maximum: int):
        super().__init__(f"Credit score {score} outside [{minimum}, {maximum}]")


class TransactionNotFoundError(DomainException):
    """No transaction at the requested index"""

    pass


class TransferFailedError(DomainException):
    """Transfer sink rejected or never acknowledged the value movement"""

    pass


# Oracle

class FeedNotConfiguredError(DomainException):
    """No active price feed for the symbol"""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No active price feed for {symbol}")


class FeedUnavailableError(DomainException):
    """Price feed source returned an error or is unreachable"""

    pass


class InvalidFeedDataError(DomainException):
    """Feed reading failed validation"""

    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Invalid feed data for {symbol}: {reason}")


class NoValidCachedDataError(DomainException):
    """No valid cached price for the symbol"""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No valid cached price for {symbol}")


class InvalidFeedConfigError(DomainException):
    """Feed configuration has unusable sanity bounds"""

    pass

"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RunState(str, Enum):
    RUNNING = "running"
    SUSPENDED = "suspended"


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    EMERGENCY_WITHDRAWAL = "emergency_withdrawal"
    INTEREST_PAYMENT = "interest_payment"


@dataclass(frozen=True)
class BankConfig:
    """Vault limits, fixed at construction"""

    capacity_cap: int
    per_withdrawal_cap: int
    min_deposit: int
    daily_withdrawal_cap: int
    interest_rate_bps: int
    min_credit_score: int
    max_credit_score: int
    default_credit_score: int

    def __post_init__(self) -> None:
        if self.capacity_cap <= 0:
            raise ValueError("capacity_cap must be positive")
        if self.min_deposit <= 0 or self.min_deposit > self.capacity_cap:
            raise ValueError("min_deposit must be in (0, capacity_cap]")
        if self.per_withdrawal_cap <= 0 or self.daily_withdrawal_cap <= 0:
            raise ValueError("withdrawal caps must be positive")
        if self.interest_rate_bps < 0:
            raise ValueError("interest_rate_bps must not be negative")
        if not (self.min_credit_score <= self.default_credit_score <= self.max_credit_score):
            raise ValueError("default_credit_score must lie within the credit score bounds")

    @classmethod
    def from_settings(cls, settings) -> "BankConfig":
        return cls(
            capacity_cap=settings.capacity_cap,
            per_withdrawal_cap=settings.per_withdrawal_cap,
            min_deposit=settings.min_deposit,
            daily_withdrawal_cap=settings.daily_withdrawal_cap,
            interest_rate_bps=settings.interest_rate_bps,
            min_credit_score=settings.min_credit_score,
            max_credit_score=settings.max_credit_score,
            default_credit_score=settings.default_credit_score,
        )


@dataclass
class Account:
    """Per-identity accounting record, owned by the ledger engine"""

    total_deposited: int = 0
    total_withdrawn: int = 0
    last_deposit_at: int = 0
    last_withdrawal_at: int = 0
    credit_score: int = 0
    active: bool = False


@dataclass(frozen=True)
class Transaction:
    """Immutable entry in an identity's transaction log"""

    amount: int
    timestamp: int
    kind: TransactionKind
    processed: bool = True
    # Transfer reference for payouts; deposits move no funds out
    reference: Optional[str] = None


@dataclass
class PriceFeedConfig:
    """External feed configured for a symbol"""

    symbol: str
    source_ref: str
    description: str
    min_price: int
    max_price: int
    active: bool = True


@dataclass(frozen=True)
class RoundData:
    """Raw reading reported by a feed source - untrusted until validated"""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@dataclass(frozen=True)
class CachedPrice:
    """Last validated price stored for a symbol"""

    symbol: str
    price: int
    cached_at: int
    valid: bool
    round_id: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass(frozen=True)
class FeedHealth:
    healthy: bool
    last_update: int
    price: int


@dataclass(frozen=True)
class FeedInfo:
    symbol: str
    source_ref: str
    description: str
    active: bool
    decimals: int
    source_description: str

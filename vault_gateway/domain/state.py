"""Process-wide vault state aggregate.

Every balance, counter and cache entry lives here. The aggregate is built
once and handed by reference to the capability gate, the ledger engine and
the price oracle; none of them keep module-level state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from vault_gateway.domain.models import (
    Account,
    BankConfig,
    CachedPrice,
    PriceFeedConfig,
    RunState,
    Transaction,
)


@dataclass
class VaultState:
    config: BankConfig
    run_state: RunState = RunState.RUNNING

    # Native asset currently in custody
    holdings: int = 0

    deposit_count: int = 0
    withdrawal_count: int = 0
    oracle_update_count: int = 0

    balances: Dict[str, int] = field(default_factory=dict)
    accounts: Dict[str, Account] = field(default_factory=dict)
    transactions: Dict[str, List[Transaction]] = field(default_factory=dict)
    # (identity, day_bucket) -> amount withdrawn that day
    daily_withdrawals: Dict[Tuple[str, int], int] = field(default_factory=dict)

    feeds: Dict[str, PriceFeedConfig] = field(default_factory=dict)
    cached_prices: Dict[str, CachedPrice] = field(default_factory=dict)

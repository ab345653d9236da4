"""Ledger engine - balances, limits, interest and the transaction log.

Every mutating operation follows the same order:

1. capability and run-state checks (CapabilityGate)
2. amount and limit validation
3. state mutation and transaction log append
4. external transfer, strictly last

Steps 1-4 run under one engine-wide lock, so mutating operations never
interleave. A failed transfer aborts the operation and restores every
record it touched.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from vault_gateway.domain.access import CapabilityGate
from vault_gateway.domain.exceptions import (
    BelowMinimumDepositError,
    CapacityExceededError,
    CreditScoreOutOfRangeError,
    DailyLimitExceededError,
    ExceedsBalanceError,
    ExceedsPerWithdrawalCapError,
    InsufficientLiquidityError,
    InvalidAmountError,
    TransactionNotFoundError,
    TransferFailedError,
)
from vault_gateway.domain.interfaces import TransferSink
from vault_gateway.domain.models import Account, Transaction, TransactionKind
from vault_gateway.domain.state import VaultState
from vault_gateway.utils.date_utils import day_bucket, days_between

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
DAYS_PER_YEAR = 365


def _now() -> int:
    return int(time.time())


@dataclass
class _Checkpoint:
    """Pre-mutation copy of every record an operation may touch"""

    identity: str
    balance: Optional[int]
    account: Optional[Account]
    log_length: int
    day_key: Optional[Tuple[str, int]]
    day_total: Optional[int]
    holdings: int
    deposit_count: int
    withdrawal_count: int


def _new_reference() -> str:
    """Transfer reference, also sent as the sink's idempotency key. Never reused."""
    return uuid.uuid4().hex


def _validate_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(f"Amount must be a positive integer, got {amount!r}")


class LedgerEngine:
    """Owns balances, accounts, daily counters and the transaction log"""

    def __init__(
        self,
        state: VaultState,
        gate: CapabilityGate,
        transfer_sink: TransferSink,
        clock: Callable[[], int] = _now,
    ):
        self.state = state
        self.gate = gate
        self.transfer_sink = transfer_sink
        self.clock = clock
        self._lock = asyncio.Lock()

    @property
    def config(self):
        return self.state.config

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    async def deposit(self, identity: str, amount: int) -> Transaction:
        async with self._lock:
            self.gate.require_running()
            if amount < self.config.min_deposit:
                raise BelowMinimumDepositError(amount, self.config.min_deposit)
            projected = self.state.holdings + amount
            if projected > self.config.capacity_cap:
                raise CapacityExceededError(projected, self.config.capacity_cap)

            now = self.clock()
            self.state.deposit_count += 1
            self.state.holdings = projected
            self.state.balances[identity] = self.state.balances.get(identity, 0) + amount

            account = self._get_or_create_account(identity)
            account.total_deposited += amount
            account.last_deposit_at = now
            account.active = True

            txn = self._append(identity, amount, now, TransactionKind.DEPOSIT)
            logger.info("Deposit recorded", extra={"identity": identity, "amount": amount})
            return txn

    async def withdraw(self, identity: str, amount: int) -> Transaction:
        async with self._lock:
            self.gate.require_running()
            _validate_amount(amount)
            balance = self.state.balances.get(identity, 0)
            if amount > balance:
                raise ExceedsBalanceError(amount, balance)
            if amount > self.config.per_withdrawal_cap:
                raise ExceedsPerWithdrawalCapError(amount, self.config.per_withdrawal_cap)
            if amount > self.state.holdings:
                raise InsufficientLiquidityError(
                    f"Holdings {self.state.holdings} cannot cover withdrawal {amount}"
                )

            now = self.clock()
            day_key = (identity, day_bucket(now))
            withdrawn_today = self.state.daily_withdrawals.get(day_key, 0)
            if withdrawn_today + amount > self.config.daily_withdrawal_cap:
                raise DailyLimitExceededError(amount, self.config.daily_withdrawal_cap - withdrawn_today)

            checkpoint = self._checkpoint(identity, day_key)

            self.state.withdrawal_count += 1
            self.state.balances[identity] = balance - amount
            self.state.daily_withdrawals[day_key] = withdrawn_today + amount
            self.state.holdings -= amount

            account = self._get_or_create_account(identity)
            account.total_withdrawn += amount
            account.last_withdrawal_at = now

            reference = _new_reference()
            txn = self._append(identity, amount, now, TransactionKind.WITHDRAWAL, reference)
            await self._transfer(identity, amount, reference, checkpoint)
            logger.info("Withdrawal recorded", extra={"identity": identity, "amount": amount})
            return txn

    def calculate_interest(self, identity: str) -> int:
        """
        Simple (non-compounding) interest accrued since the last deposit.

        interest = total_deposited * rate_bps * days / (10000 * 365)

        Integer division truncates toward zero, so partial days and
        fractional wei always round in the vault's favour.
        """
        account = self.state.accounts.get(identity)
        if account is None or not account.active or account.total_deposited == 0:
            return 0
        days = days_between(account.last_deposit_at, self.clock())
        return (
            account.total_deposited * self.config.interest_rate_bps * days
        ) // (BPS_DENOMINATOR * DAYS_PER_YEAR)

    async def pay_interest(self, identity: str) -> int:
        """Pay out accrued interest and restart accrual. Callable by anyone."""
        async with self._lock:
            self.gate.require_running()
            interest = self.calculate_interest(identity)
            if interest == 0:
                return 0
            if interest > self.state.holdings:
                raise InsufficientLiquidityError(
                    f"Holdings {self.state.holdings} cannot cover interest {interest}"
                )

            checkpoint = self._checkpoint(identity)
            now = self.clock()
            self.state.accounts[identity].last_deposit_at = now
            self.state.holdings -= interest

            reference = _new_reference()
            self._append(identity, interest, now, TransactionKind.INTEREST_PAYMENT, reference)
            await self._transfer(identity, interest, reference, checkpoint)
            logger.info("Interest paid", extra={"identity": identity, "amount": interest})
            return interest

    async def emergency_withdraw(self, caller: str, to: str, amount: int) -> Transaction:
        """Drain up to `amount` of holdings to `to` while suspended. No caps apply."""
        async with self._lock:
            self.gate.require_operation(caller, "emergency_withdraw")
            self.gate.require_suspended()
            _validate_amount(amount)
            if self.state.holdings == 0:
                raise InsufficientLiquidityError("No holdings to drain")

            payout = min(amount, self.state.holdings)
            checkpoint = self._checkpoint(to)
            now = self.clock()
            self.state.holdings -= payout

            reference = _new_reference()
            txn = self._append(to, payout, now, TransactionKind.EMERGENCY_WITHDRAWAL, reference)
            await self._transfer(to, payout, reference, checkpoint)
            logger.warning(
                "Emergency withdrawal executed",
                extra={"identity": caller, "to": to, "requested": amount, "amount": payout},
            )
            return txn

    async def update_credit_score(self, caller: str, identity: str, score: int) -> Account:
        async with self._lock:
            self.gate.require_operation(caller, "update_credit_score")
            if not (self.config.min_credit_score <= score <= self.config.max_credit_score):
                raise CreditScoreOutOfRangeError(score, self.config.min_credit_score, self.config.max_credit_score)
            account = self._get_or_create_account(identity)
            account.credit_score = score
            logger.info("Credit score updated", extra={"identity": identity, "score": score})
            return replace(account)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_holdings(self) -> int:
        return self.state.holdings

    def get_balance(self, identity: str) -> int:
        return self.state.balances.get(identity, 0)

    def get_account(self, identity: str) -> Account:
        """Snapshot of the account; unknown identities get a blank record"""
        account = self.state.accounts.get(identity)
        if account is None:
            return Account(credit_score=self.config.default_credit_score)
        return replace(account)

    def get_transaction_count(self, identity: str) -> int:
        return len(self.state.transactions.get(identity, []))

    def get_transaction(self, identity: str, index: int) -> Transaction:
        log = self.state.transactions.get(identity, [])
        if index < 0 or index >= len(log):
            raise TransactionNotFoundError(f"No transaction {index} for {identity}")
        return log[index]

    def list_transactions(self, identity: str, offset: int = 0, limit: int = 50) -> List[Transaction]:
        log = self.state.transactions.get(identity, [])
        return list(log[offset:offset + limit])

    def get_daily_withdrawn(self, identity: str, day: int) -> int:
        return self.state.daily_withdrawals.get((identity, day), 0)

    def get_remaining_daily_allowance(self, identity: str) -> int:
        today = day_bucket(self.clock())
        return self.config.daily_withdrawal_cap - self.get_daily_withdrawn(identity, today)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_create_account(self, identity: str) -> Account:
        account = self.state.accounts.get(identity)
        if account is None:
            account = Account(credit_score=self.config.default_credit_score)
            self.state.accounts[identity] = account
        return account

    def _append(
        self,
        identity: str,
        amount: int,
        now: int,
        kind: TransactionKind,
        reference: Optional[str] = None,
    ) -> Transaction:
        txn = Transaction(amount=amount, timestamp=now, kind=kind, reference=reference)
        self.state.transactions.setdefault(identity, []).append(txn)
        return txn

    def _checkpoint(self, identity: str, day_key: Optional[Tuple[str, int]] = None) -> _Checkpoint:
        account = self.state.accounts.get(identity)
        return _Checkpoint(
            identity=identity,
            balance=self.state.balances.get(identity),
            account=replace(account) if account is not None else None,
            log_length=self.get_transaction_count(identity),
            day_key=day_key,
            day_total=self.state.daily_withdrawals.get(day_key) if day_key else None,
            holdings=self.state.holdings,
            deposit_count=self.state.deposit_count,
            withdrawal_count=self.state.withdrawal_count,
        )

    def _restore(self, checkpoint: _Checkpoint) -> None:
        identity = checkpoint.identity
        if checkpoint.balance is None:
            self.state.balances.pop(identity, None)
        else:
            self.state.balances[identity] = checkpoint.balance

        if checkpoint.account is None:
            self.state.accounts.pop(identity, None)
        else:
            self.state.accounts[identity] = checkpoint.account

        log = self.state.transactions.get(identity)
        if log is not None:
            del log[checkpoint.log_length:]
            if not log:
                del self.state.transactions[identity]

        if checkpoint.day_key is not None:
            if checkpoint.day_total is None:
                self.state.daily_withdrawals.pop(checkpoint.day_key, None)
            else:
                self.state.daily_withdrawals[checkpoint.day_key] = checkpoint.day_total

        self.state.holdings = checkpoint.holdings
        self.state.deposit_count = checkpoint.deposit_count
        self.state.withdrawal_count = checkpoint.withdrawal_count

    async def _transfer(self, to: str, amount: int, reference: str, checkpoint: _Checkpoint) -> None:
        try:
            await self.transfer_sink.transfer(to, amount, reference)
        except Exception as e:
            self._restore(checkpoint)
            logger.error(
                "Transfer failed, operation rolled back",
                extra={"identity": to, "amount": amount, "reference": reference},
            )
            if isinstance(e, TransferFailedError):
                raise
            raise TransferFailedError(f"Transfer to {to} failed: {e}") from e

"""Account endpoints - deposits, withdrawals, interest and ledger queries"""

import time
from fastapi import APIRouter, Depends, Path, Query, Request

from vault_gateway.api.v1.schemas import (
    AccountResponse,
    AmountRequest,
    CreditScoreRequest,
    CreditScoreResponse,
    DailyWithdrawalResponse,
    InterestResponse,
    LedgerOperationResponse,
    TransactionListResponse,
    TransactionSchema,
)
from vault_gateway.api.dependencies import Vault, get_caller_id, get_request_id, get_vault
from vault_gateway.domain.models import Transaction
from vault_gateway.infrastructure.observability.logging import log_ledger_event
from vault_gateway.infrastructure.observability.metrics import record_ledger_operation
from vault_gateway.utils.date_utils import bucket_to_date

router = APIRouter()


def to_transaction_schema(index: int, txn: Transaction) -> TransactionSchema:
    return TransactionSchema(
        index=index,
        amount=txn.amount,
        timestamp=txn.timestamp,
        kind=txn.kind.value,
        processed=txn.processed,
        reference=txn.reference,
    )


def committed_response(vault: Vault, identity: str, txn: Transaction) -> LedgerOperationResponse:
    """Build the response for an operation whose transaction was just appended"""
    index = vault.ledger.get_transaction_count(identity) - 1
    return LedgerOperationResponse(
        identity=identity,
        kind=txn.kind.value,
        amount=txn.amount,
        balance=vault.ledger.get_balance(identity),
        holdings=vault.ledger.get_holdings(),
        transaction=to_transaction_schema(index, txn),
    )


@router.post("/accounts/deposit", response_model=LedgerOperationResponse)
async def deposit(
    body: AmountRequest,
    request: Request,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    """Credit the caller's balance. Rejected below the minimum or above capacity."""
    start_time = time.time()
    txn = await vault.ledger.deposit(caller, body.amount)

    record_ledger_operation(txn.kind.value, txn.amount, vault.ledger.get_holdings())
    log_ledger_event(get_request_id(request), caller, txn.kind.value, txn.amount, (time.time() - start_time) * 1000)
    return committed_response(vault, caller, txn)


@router.post("/accounts/withdraw", response_model=LedgerOperationResponse)
async def withdraw(
    body: AmountRequest,
    request: Request,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    """
    Debit the caller's balance and transfer the amount out.

    Checks, in order: balance, per-withdrawal cap, daily cap.
    """
    start_time = time.time()
    txn = await vault.ledger.withdraw(caller, body.amount)

    record_ledger_operation(txn.kind.value, txn.amount, vault.ledger.get_holdings())
    log_ledger_event(get_request_id(request), caller, txn.kind.value, txn.amount, (time.time() - start_time) * 1000)
    return committed_response(vault, caller, txn)


@router.get("/accounts/{identity}", response_model=AccountResponse)
def get_account(identity: str, vault: Vault = Depends(get_vault)):
    account = vault.ledger.get_account(identity)
    return AccountResponse(
        identity=identity,
        balance=vault.ledger.get_balance(identity),
        total_deposited=account.total_deposited,
        total_withdrawn=account.total_withdrawn,
        last_deposit_at=account.last_deposit_at,
        last_withdrawal_at=account.last_withdrawal_at,
        credit_score=account.credit_score,
        active=account.active,
        accrued_interest=vault.ledger.calculate_interest(identity),
        remaining_daily_allowance=vault.ledger.get_remaining_daily_allowance(identity),
        transaction_count=vault.ledger.get_transaction_count(identity),
    )


@router.get("/accounts/{identity}/interest", response_model=InterestResponse)
def quote_interest(identity: str, vault: Vault = Depends(get_vault)):
    return InterestResponse(identity=identity, interest=vault.ledger.calculate_interest(identity))


@router.post("/accounts/{identity}/interest", response_model=InterestResponse)
async def pay_interest(identity: str, request: Request, vault: Vault = Depends(get_vault)):
    """Pay accrued interest to the identity. Anyone may trigger it."""
    start_time = time.time()
    interest = await vault.ledger.pay_interest(identity)
    if interest > 0:
        record_ledger_operation("interest_payment", interest, vault.ledger.get_holdings())
        log_ledger_event(get_request_id(request), identity, "interest_payment", interest, (time.time() - start_time) * 1000)
    return InterestResponse(identity=identity, interest=interest)


@router.get("/accounts/{identity}/transactions", response_model=TransactionListResponse)
def list_transactions(
    identity: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    vault: Vault = Depends(get_vault),
):
    transactions = vault.ledger.list_transactions(identity, offset=offset, limit=limit)
    return TransactionListResponse(
        identity=identity,
        total=vault.ledger.get_transaction_count(identity),
        transactions=[to_transaction_schema(offset + i, txn) for i, txn in enumerate(transactions)],
    )


@router.get("/accounts/{identity}/transactions/{index}", response_model=TransactionSchema)
def get_transaction(identity: str, index: int, vault: Vault = Depends(get_vault)):
    return to_transaction_schema(index, vault.ledger.get_transaction(identity, index))


@router.get("/accounts/{identity}/withdrawals/{day}", response_model=DailyWithdrawalResponse)
def get_daily_withdrawals(
    identity: str,
    day: int = Path(..., ge=0, le=2_932_896),  # up to 9999-12-31
    vault: Vault = Depends(get_vault),
):
    """Amount withdrawn by the identity during a day bucket (unix time // 86400)"""
    return DailyWithdrawalResponse(
        identity=identity,
        day=day,
        calendar_date=bucket_to_date(day),
        withdrawn=vault.ledger.get_daily_withdrawn(identity, day),
        cap=vault.state.config.daily_withdrawal_cap,
    )


@router.put("/accounts/{identity}/credit-score", response_model=CreditScoreResponse)
async def update_credit_score(
    identity: str,
    body: CreditScoreRequest,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    account = await vault.ledger.update_credit_score(caller, identity, body.score)
    return CreditScoreResponse(identity=identity, credit_score=account.credit_score)

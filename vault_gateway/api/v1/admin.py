"""Administrative endpoints - run-state control and emergency drain"""

import time
from fastapi import APIRouter, Depends, Request

from vault_gateway.api.v1.accounts import committed_response
from vault_gateway.api.v1.schemas import EmergencyWithdrawRequest, LedgerOperationResponse, StatusResponse
from vault_gateway.api.dependencies import Vault, get_caller_id, get_request_id, get_vault
from vault_gateway.infrastructure.observability.logging import log_ledger_event
from vault_gateway.infrastructure.observability.metrics import record_ledger_operation

router = APIRouter()


def _status(vault: Vault) -> StatusResponse:
    state = vault.state
    return StatusResponse(
        run_state=state.run_state.value,
        holdings=state.holdings,
        capacity_cap=state.config.capacity_cap,
        deposit_count=state.deposit_count,
        withdrawal_count=state.withdrawal_count,
        oracle_update_count=state.oracle_update_count,
    )


@router.get("/admin/status", response_model=StatusResponse)
def get_status(vault: Vault = Depends(get_vault)):
    return _status(vault)


@router.post("/admin/suspend", response_model=StatusResponse)
def suspend(caller: str = Depends(get_caller_id), vault: Vault = Depends(get_vault)):
    vault.gate.suspend(caller)
    return _status(vault)


@router.post("/admin/resume", response_model=StatusResponse)
def resume(caller: str = Depends(get_caller_id), vault: Vault = Depends(get_vault)):
    vault.gate.resume(caller)
    return _status(vault)


@router.post("/admin/emergency-withdraw", response_model=LedgerOperationResponse)
async def emergency_withdraw(
    body: EmergencyWithdrawRequest,
    request: Request,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    """
    Drain holdings to a recipient while the vault is suspended.

    Transfers min(amount, holdings); no per-operation or daily caps apply.
    """
    start_time = time.time()
    txn = await vault.ledger.emergency_withdraw(caller, body.to, body.amount)

    record_ledger_operation(txn.kind.value, txn.amount, vault.ledger.get_holdings())
    log_ledger_event(get_request_id(request), body.to, txn.kind.value, txn.amount, (time.time() - start_time) * 1000)
    return committed_response(vault, body.to, txn)

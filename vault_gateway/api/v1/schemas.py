"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional


class AmountRequest(BaseModel):
    """Request body for deposit and withdrawal"""

    amount: int = Field(..., description="Amount in the native asset's smallest unit")


class TransactionSchema(BaseModel):
    """Single entry in an identity's transaction log"""

    index: int
    amount: int
    timestamp: int
    kind: str
    processed: bool
    reference: Optional[str] = None


class LedgerOperationResponse(BaseModel):
    """Response for deposit, withdrawal and emergency withdrawal"""

    identity: str
    kind: str
    amount: int
    balance: int
    holdings: int
    transaction: TransactionSchema


class AccountResponse(BaseModel):
    """Response for GET /v1/accounts/{identity}"""

    identity: str
    balance: int
    total_deposited: int
    total_withdrawn: int
    last_deposit_at: int
    last_withdrawal_at: int
    credit_score: int
    active: bool
    accrued_interest: int
    remaining_daily_allowance: int
    transaction_count: int


class TransactionListResponse(BaseModel):
    identity: str
    total: int
    transactions: List[TransactionSchema]


class DailyWithdrawalResponse(BaseModel):
    identity: str
    day: int
    calendar_date: date
    withdrawn: int
    cap: int


class InterestResponse(BaseModel):
    identity: str
    interest: int


class CreditScoreRequest(BaseModel):
    score: int


class CreditScoreResponse(BaseModel):
    identity: str
    credit_score: int


class EmergencyWithdrawRequest(BaseModel):
    to: str = Field(..., min_length=1, description="Recipient identity")
    amount: int = Field(..., gt=0)


class StatusResponse(BaseModel):
    """Response for GET /v1/admin/status"""

    run_state: str
    holdings: int
    capacity_cap: int
    deposit_count: int
    withdrawal_count: int
    oracle_update_count: int


class FeedConfigRequest(BaseModel):
    source_ref: str = Field(..., min_length=1)
    description: str = ""
    min_price: Optional[int] = Field(None, gt=0)
    max_price: Optional[int] = Field(None, gt=0)


class FeedConfigResponse(BaseModel):
    symbol: str
    source_ref: str
    description: str
    min_price: int
    max_price: int
    active: bool


class FeedInfoResponse(BaseModel):
    symbol: str
    source_ref: str
    description: str
    source_description: str
    decimals: int
    active: bool


class PriceResponse(BaseModel):
    symbol: str
    price: int
    timestamp: Optional[int] = None


class FeedHealthResponse(BaseModel):
    symbol: str
    healthy: bool
    last_update: int
    price: int


class CachedPriceResponse(BaseModel):
    symbol: str
    price: int
    cached_at: int
    valid: bool
    round_id: Optional[int] = None
    updated_at: Optional[int] = None


class ConversionResponse(BaseModel):
    symbol: str
    direction: str
    amount: int
    converted: int
    cached: bool

"""Oracle endpoints - feed configuration, validated prices, cache and conversion"""

from enum import Enum
from fastapi import APIRouter, Depends, Query, Request

from vault_gateway.api.v1.schemas import (
    CachedPriceResponse,
    ConversionResponse,
    FeedConfigRequest,
    FeedConfigResponse,
    FeedHealthResponse,
    FeedInfoResponse,
    PriceResponse,
)
from vault_gateway.api.dependencies import Vault, get_caller_id, get_request_id, get_vault
from vault_gateway.domain.conversion import from_reference_currency, to_reference_currency
from vault_gateway.domain.models import CachedPrice
from vault_gateway.infrastructure.observability.logging import log_oracle_event
from vault_gateway.infrastructure.observability.metrics import oracle_update_counter

router = APIRouter()


class Direction(str, Enum):
    TO_REFERENCE = "to_reference"
    FROM_REFERENCE = "from_reference"


def _cached_response(entry: CachedPrice) -> CachedPriceResponse:
    return CachedPriceResponse(
        symbol=entry.symbol,
        price=entry.price,
        cached_at=entry.cached_at,
        valid=entry.valid,
        round_id=entry.round_id,
        updated_at=entry.updated_at,
    )


@router.put("/oracle/feeds/{symbol:path}", response_model=FeedConfigResponse)
def configure_feed(
    symbol: str,
    body: FeedConfigRequest,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    config = vault.oracle.configure_feed(
        caller,
        symbol,
        body.source_ref,
        body.description,
        min_price=body.min_price,
        max_price=body.max_price,
    )
    return FeedConfigResponse(
        symbol=config.symbol,
        source_ref=config.source_ref,
        description=config.description,
        min_price=config.min_price,
        max_price=config.max_price,
        active=config.active,
    )


@router.get("/oracle/feeds/{symbol:path}", response_model=FeedInfoResponse)
async def get_feed_info(symbol: str, vault: Vault = Depends(get_vault)):
    info = await vault.oracle.get_feed_info(symbol)
    return FeedInfoResponse(
        symbol=info.symbol,
        source_ref=info.source_ref,
        description=info.description,
        source_description=info.source_description,
        decimals=info.decimals,
        active=info.active,
    )


@router.get("/oracle/prices/{symbol:path}/latest", response_model=PriceResponse)
async def get_latest_price(symbol: str, request: Request, vault: Vault = Depends(get_vault)):
    """Freshly fetched and fully validated price"""
    data = await vault.oracle.get_latest_round(symbol)
    log_oracle_event(get_request_id(request), symbol, "latest_price", data.answer)
    return PriceResponse(symbol=symbol, price=data.answer, timestamp=data.updated_at)


@router.get("/oracle/prices/{symbol:path}/health", response_model=FeedHealthResponse)
async def monitor_health(symbol: str, request: Request, vault: Vault = Depends(get_vault)):
    """Diagnostic read; always 200, unhealthy feeds report healthy=false"""
    health = await vault.oracle.monitor_health(symbol)
    log_oracle_event(get_request_id(request), symbol, "health_check", health.price, health.healthy)
    return FeedHealthResponse(
        symbol=symbol,
        healthy=health.healthy,
        last_update=health.last_update,
        price=health.price,
    )


@router.post("/oracle/prices/{symbol:path}/cache", response_model=CachedPriceResponse)
async def update_cached_price(
    symbol: str,
    request: Request,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    entry = await vault.oracle.update_cached_price(caller, symbol)
    oracle_update_counter.labels(symbol=symbol).inc()
    log_oracle_event(get_request_id(request), symbol, "cache_refresh", entry.price)
    return _cached_response(entry)


@router.get("/oracle/prices/{symbol:path}/cache", response_model=CachedPriceResponse)
def get_cached_price(symbol: str, vault: Vault = Depends(get_vault)):
    return _cached_response(vault.oracle.get_cached_price(symbol))


@router.delete("/oracle/prices/{symbol:path}/cache", status_code=204)
def invalidate_cached_price(
    symbol: str,
    caller: str = Depends(get_caller_id),
    vault: Vault = Depends(get_vault),
):
    vault.oracle.invalidate_cached_price(caller, symbol)


@router.get("/oracle/prices/{symbol:path}/rounds/{round_id}", response_model=PriceResponse)
async def get_historical_price(symbol: str, round_id: int, vault: Vault = Depends(get_vault)):
    price, timestamp = await vault.oracle.get_historical_price(symbol, round_id)
    return PriceResponse(symbol=symbol, price=price, timestamp=timestamp)


@router.get("/oracle/convert/{symbol:path}", response_model=ConversionResponse)
async def convert(
    symbol: str,
    amount: int = Query(..., ge=0),
    direction: Direction = Query(Direction.TO_REFERENCE),
    cached: bool = Query(False, description="Use the cached price instead of a fresh validated read"),
    vault: Vault = Depends(get_vault),
):
    if direction is Direction.TO_REFERENCE:
        converted = await to_reference_currency(vault.oracle, amount, symbol, use_cache=cached)
    else:
        converted = await from_reference_currency(vault.oracle, amount, symbol, use_cache=cached)
    return ConversionResponse(
        symbol=symbol,
        direction=direction.value,
        amount=amount,
        converted=converted,
        cached=cached,
    )

"""Price oracle - feed configuration, reading validation and the validated cache"""

import logging
import time
from typing import Callable, Optional, Tuple

from vault_gateway.domain.access import CapabilityGate
from vault_gateway.domain.exceptions import (
    FeedNotConfiguredError,
    FeedUnavailableError,
    InvalidFeedConfigError,
    InvalidFeedDataError,
    NoValidCachedDataError,
)
from vault_gateway.domain.interfaces import FeedSource
from vault_gateway.domain.models import CachedPrice, FeedHealth, FeedInfo, PriceFeedConfig, RoundData
from vault_gateway.domain.state import VaultState
from vault_gateway.infrastructure.observability.metrics import record_validation_failure

logger = logging.getLogger(__name__)

DEFAULT_STALE_THRESHOLD_SECONDS = 2 * 3600
DEFAULT_MIN_PRICE = 100 * 10**8
DEFAULT_MAX_PRICE = 50_000 * 10**8


def _now() -> int:
    return int(time.time())


def check_round_integrity(symbol: str, data: RoundData) -> None:
    """Checks shared by every read: positive answer, answer not carried over from an older round"""
    if data.answer <= 0:
        raise InvalidFeedDataError(symbol, "non_positive_answer")
    if data.answered_in_round < data.round_id:
        raise InvalidFeedDataError(symbol, "stale_round")


def validate_reading(
    symbol: str,
    data: RoundData,
    now: int,
    stale_threshold: int,
    min_price: int,
    max_price: int,
) -> int:
    """
    Validate a latest-round reading and return its price.

    Checks run in order and the first failure wins:
    1. answer > 0
    2. answered_in_round >= round_id
    3. now - updated_at <= stale_threshold
    4. min_price <= answer <= max_price
    """
    check_round_integrity(symbol, data)
    if now - data.updated_at > stale_threshold:
        raise InvalidFeedDataError(symbol, "stale_price")
    if not (min_price <= data.answer <= max_price):
        raise InvalidFeedDataError(symbol, "price_out_of_bounds")
    return data.answer


class PriceOracle:
    """Consumes external feeds and keeps one validated price per symbol"""

    def __init__(
        self,
        state: VaultState,
        gate: CapabilityGate,
        source: FeedSource,
        clock: Callable[[], int] = _now,
        stale_threshold: int = DEFAULT_STALE_THRESHOLD_SECONDS,
        default_min_price: int = DEFAULT_MIN_PRICE,
        default_max_price: int = DEFAULT_MAX_PRICE,
    ):
        self.state = state
        self.gate = gate
        self.source = source
        self.clock = clock
        self.stale_threshold = stale_threshold
        self.default_min_price = default_min_price
        self.default_max_price = default_max_price

    def configure_feed(
        self,
        caller: str,
        symbol: str,
        source_ref: str,
        description: str,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> PriceFeedConfig:
        """Register (or replace) the feed for a symbol. Last write wins."""
        self.gate.require_operation(caller, "configure_feed")
        lower = self.default_min_price if min_price is None else min_price
        upper = self.default_max_price if max_price is None else max_price
        if lower <= 0 or lower > upper:
            raise InvalidFeedConfigError(f"Invalid price bounds [{lower}, {upper}] for {symbol}")

        config = PriceFeedConfig(
            symbol=symbol,
            source_ref=source_ref,
            description=description,
            min_price=lower,
            max_price=upper,
        )
        self.state.feeds[symbol] = config
        logger.info("Price feed configured", extra={"symbol": symbol, "source_ref": source_ref})
        return config

    def get_feed_config(self, symbol: str) -> PriceFeedConfig:
        config = self.state.feeds.get(symbol)
        if config is None or not config.active:
            raise FeedNotConfiguredError(symbol)
        return config

    async def get_latest_round(self, symbol: str) -> RoundData:
        """Fetch and fully validate the latest round for a symbol"""
        config = self.get_feed_config(symbol)
        data = await self.source.latest_round_data(config.source_ref)
        try:
            validate_reading(
                symbol,
                data,
                now=self.clock(),
                stale_threshold=self.stale_threshold,
                min_price=config.min_price,
                max_price=config.max_price,
            )
        except InvalidFeedDataError as e:
            record_validation_failure(e.reason)
            logger.warning(
                "Feed reading rejected",
                extra={"symbol": symbol, "reason": e.reason, "round_id": data.round_id},
            )
            raise
        return data

    async def get_latest_price(self, symbol: str) -> int:
        data = await self.get_latest_round(symbol)
        return data.answer

    async def monitor_health(self, symbol: str) -> FeedHealth:
        """Diagnostic read - never raises for feed problems, reports healthy=False instead"""
        try:
            data = await self.get_latest_round(symbol)
        except Exception as e:
            logger.info("Feed unhealthy", extra={"symbol": symbol, "error": type(e).__name__})
            return FeedHealth(healthy=False, last_update=0, price=0)
        return FeedHealth(healthy=True, last_update=data.updated_at, price=data.answer)

    async def update_cached_price(self, caller: str, symbol: str) -> CachedPrice:
        self.gate.require_operation(caller, "update_cached_price")
        data = await self.get_latest_round(symbol)
        entry = CachedPrice(
            symbol=symbol,
            price=data.answer,
            cached_at=self.clock(),
            valid=True,
            round_id=data.round_id,
            updated_at=data.updated_at,
        )
        self.state.cached_prices[symbol] = entry
        self.state.oracle_update_count += 1
        logger.info("Cached price updated", extra={"symbol": symbol, "price": data.answer})
        return entry

    def invalidate_cached_price(self, caller: str, symbol: str) -> None:
        self.gate.require_operation(caller, "invalidate_cached_price")
        entry = self.state.cached_prices.get(symbol)
        if entry is None:
            raise NoValidCachedDataError(symbol)
        self.state.cached_prices[symbol] = CachedPrice(
            symbol=symbol,
            price=entry.price,
            cached_at=entry.cached_at,
            valid=False,
            round_id=entry.round_id,
            updated_at=entry.updated_at,
        )
        logger.warning("Cached price invalidated", extra={"symbol": symbol})

    def get_cached_price(self, symbol: str) -> CachedPrice:
        entry = self.state.cached_prices.get(symbol)
        if entry is None or not entry.valid:
            raise NoValidCachedDataError(symbol)
        return entry

    async def get_historical_price(self, symbol: str, round_id: int) -> Tuple[int, int]:
        """Price and timestamp of a past round. Exempt from staleness and range checks."""
        config = self.get_feed_config(symbol)
        data = await self.source.get_round_data(config.source_ref, round_id)
        check_round_integrity(symbol, data)
        return data.answer, data.updated_at

    async def get_decimals(self, symbol: str) -> int:
        config = self.get_feed_config(symbol)
        return await self._source_decimals(config.source_ref)

    async def _source_decimals(self, source_ref: str) -> int:
        decimals = await self.source.decimals(source_ref)
        if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
            raise FeedUnavailableError(f"Feed {source_ref} reported invalid decimals {decimals!r}")
        return decimals

    async def get_feed_info(self, symbol: str) -> FeedInfo:
        config = self.get_feed_config(symbol)
        return FeedInfo(
            symbol=symbol,
            source_ref=config.source_ref,
            description=config.description,
            active=config.active,
            decimals=await self._source_decimals(config.source_ref),
            source_description=await self.source.description(config.source_ref),
        )

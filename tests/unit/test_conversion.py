"""Unit tests for native <-> reference currency conversion"""

import pytest
from vault_gateway.domain.conversion import (
    from_reference_currency,
    native_to_reference,
    reference_to_native,
    to_reference_currency,
)
from vault_gateway.domain.exceptions import FeedUnavailableError, InvalidFeedDataError, NoValidCachedDataError
from tests.conftest import ETH, ETH_USD_PRICE, START, make_round


def test_native_to_reference_one_unit():
    """1 unit at $2000 (8 decimals) is $2000 at the native 18-decimal scale"""
    assert native_to_reference(ETH, ETH_USD_PRICE, 8) == 2_000 * ETH


def test_reference_to_native_truncates():
    # 1 wei-scaled dollar buys less than one wei at $2000
    assert reference_to_native(1, ETH_USD_PRICE, 8) == 0
    assert reference_to_native(2_000 * ETH, ETH_USD_PRICE, 8) == ETH


@pytest.mark.parametrize("amount", [1, 999, 10**15, 123_456_789_012_345_678_901, 7 * ETH + 3])
def test_round_trip_within_truncation(amount):
    """to(from(x)) never exceeds x and loses less than one price step"""
    price = 321_987_654_321
    back = native_to_reference(reference_to_native(amount, price, 8), price, 8)

    assert back <= amount
    assert amount - back <= price // 10**8 + 1


def test_conversion_rejects_non_positive_price():
    with pytest.raises(ValueError):
        native_to_reference(ETH, 0, 8)


async def test_to_reference_uses_validated_price(oracle):
    assert await to_reference_currency(oracle, ETH, "ETH/USD") == 2_000 * ETH


async def test_from_reference_uses_validated_price(oracle):
    assert await from_reference_currency(oracle, 4_000 * ETH, "ETH/USD") == 2 * ETH


async def test_conversion_fails_on_stale_feed_even_with_cache(oracle, feed_source):
    await oracle.update_cached_price("updater", "ETH/USD")
    feed_source.set_latest("eth-usd", make_round(updated_at=START - 3 * 3600))

    with pytest.raises(InvalidFeedDataError):
        await to_reference_currency(oracle, ETH, "ETH/USD")

    # Explicit cached path still works
    assert await to_reference_currency(oracle, ETH, "ETH/USD", use_cache=True) == 2_000 * ETH


async def test_cached_conversion_without_cache_entry(oracle):
    with pytest.raises(NoValidCachedDataError):
        await to_reference_currency(oracle, ETH, "ETH/USD", use_cache=True)


async def test_conversion_rejects_negative_feed_decimals(oracle, feed_source):
    feed_source.decimals_value = -2

    with pytest.raises(FeedUnavailableError):
        await to_reference_currency(oracle, ETH, "ETH/USD")

"""Native asset <-> reference currency conversion over validated prices"""

from vault_gateway.domain.oracle import PriceOracle


def native_to_reference(amount: int, price: int, decimals: int) -> int:
    """
    Convert native smallest units to the reference currency.

    The result keeps the native asset's fixed-point scale:
    1 unit (10**18 wei) at $2,000.00000000 (8 decimals) -> 2000 * 10**18.
    Truncates toward zero.
    """
    if price <= 0:
        raise ValueError("price must be positive")
    return amount * price // 10**decimals


def reference_to_native(amount: int, price: int, decimals: int) -> int:
    """Inverse of native_to_reference, truncating toward zero"""
    if price <= 0:
        raise ValueError("price must be positive")
    return amount * 10**decimals // price


async def _price(oracle: PriceOracle, symbol: str, use_cache: bool) -> int:
    # The cached path is opt-in; default reads go through full validation
    if use_cache:
        return oracle.get_cached_price(symbol).price
    return await oracle.get_latest_price(symbol)


async def to_reference_currency(
    oracle: PriceOracle, amount: int, symbol: str, use_cache: bool = False
) -> int:
    price = await _price(oracle, symbol, use_cache)
    return native_to_reference(amount, price, await oracle.get_decimals(symbol))


async def from_reference_currency(
    oracle: PriceOracle, amount: int, symbol: str, use_cache: bool = False
) -> int:
    price = await _price(oracle, symbol, use_cache)
    return reference_to_native(amount, price, await oracle.get_decimals(symbol))

"""
Unit tests for tri_scan/pricing.py
"""

import pytest
from fakes import USDC, WETH, FakeVenue, empty, fixed, raises

from tri_scan.pricing import derive_native_to_quote_price


class TestDeriveNativePrice:
    """Test native token pricing through venue options."""

    @pytest.mark.asyncio
    async def test_first_positive_quote_wins(self):
        uni = FakeVenue("uniswapv3")
        uni.add(WETH, USDC, "UNI:500", fixed(3012_450000))
        uni.add(WETH, USDC, "UNI:3000", fixed(2999_000000))

        price = await derive_native_to_quote_price({"uniswapv3": uni}, USDC, WETH)

        assert price == pytest.approx(3012.45)
        assert uni.calls == [("UNI:500", 10**18)]

    @pytest.mark.asyncio
    async def test_falls_through_failed_options(self):
        uni = FakeVenue("uniswapv3")
        uni.add(WETH, USDC, "UNI:500", raises(RuntimeError("rpc down")))
        uni.add(WETH, USDC, "UNI:3000", empty("ZERO_OUTPUT"))
        aero = FakeVenue("aerodrome", home_symbols={"AERO"})
        aero.add(WETH, USDC, "AERO:vol", fixed(3000_000000))

        price = await derive_native_to_quote_price(
            {"uniswapv3": uni, "aerodrome": aero}, USDC, WETH
        )

        assert price == pytest.approx(3000.0)

    @pytest.mark.asyncio
    async def test_no_quote_gives_zero(self, caplog):
        uni = FakeVenue("uniswapv3")
        uni.add(WETH, USDC, "UNI:500", fixed(0))

        price = await derive_native_to_quote_price({"uniswapv3": uni}, USDC, WETH)

        assert price == 0.0
        assert "Could not price WETH" in caplog.text

    @pytest.mark.asyncio
    async def test_same_token(self):
        assert await derive_native_to_quote_price({}, WETH, WETH) == 1.0

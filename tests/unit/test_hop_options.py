"""
Unit tests for tri_scan/hop_options.py

Verifies venue ordering, debug summaries and per-triangle preparation.
"""

import pytest
from fakes import AERO, DAI, USDC, WETH, FakeVenue, fixed, triangle

from tri_scan.exceptions import InvalidInput
from tri_scan.hop_options import build_hop_options, get_triangle_hop_options, prepare_triangles
from tri_scan.types import PoolCheck, RouteCandidate
from tri_scan.venues.base import VenueOptions


def venues_for(*pairs):
    uni = FakeVenue("uniswapv3")
    aero = FakeVenue("aerodrome", home_symbols={"AERO"})
    for token_in, token_out in pairs:
        uni.add(token_in, token_out, "UNI:500", fixed(1))
        uni.add(token_in, token_out, "UNI:3000", fixed(1))
        aero.add(token_in, token_out, "AERO:vol", fixed(1))
    return {"uniswapv3": uni, "aerodrome": aero}


class TestBuildHopOptions:
    """Test option ordering across venues."""

    @pytest.mark.asyncio
    async def test_default_venue_order(self):
        venues = venues_for((WETH, DAI))
        build = await build_hop_options(WETH, DAI, venues)

        assert [o.label for o in build.options] == ["UNI:500", "UNI:3000", "AERO:vol"]
        assert build.debug["venue_counts"] == {"uniswapv3": 2, "aerodrome": 1}
        assert build.debug["token_in"] == "WETH"
        assert build.debug["token_out"] == "DAI"

    @pytest.mark.asyncio
    async def test_home_venue_goes_first(self):
        venues = venues_for((WETH, AERO))
        build = await build_hop_options(WETH, AERO, venues)

        assert [o.label for o in build.options] == ["AERO:vol", "UNI:500", "UNI:3000"]

    @pytest.mark.asyncio
    async def test_quote_token_output_keeps_default(self):
        """Legs ending in the quote token keep the default order."""
        venues = venues_for((AERO, USDC))
        build = await build_hop_options(AERO, USDC, venues, quote_symbol="USDC")

        assert [o.venue_id for o in build.options] == ["uniswapv3", "uniswapv3", "aerodrome"]

    @pytest.mark.asyncio
    async def test_quote_native_pair_keeps_default(self):
        venues = venues_for((USDC, WETH))
        venues["uniswapv3"].home_symbols = frozenset()
        venues["aerodrome"].home_symbols = frozenset({"WETH"})
        build = await build_hop_options(
            USDC, WETH, venues, quote_symbol="USDC", native_symbol="WETH"
        )

        assert build.options[0].venue_id == "uniswapv3"

    @pytest.mark.asyncio
    async def test_explicit_venue_order(self):
        venues = venues_for((WETH, DAI))
        build = await build_hop_options(WETH, DAI, venues, venue_order=["aerodrome", "uniswapv3"])

        assert build.options[0].venue_id == "aerodrome"

    @pytest.mark.asyncio
    async def test_listing_error_contributes_nothing(self):
        venues = venues_for((WETH, DAI))
        venues["uniswapv3"].list_error = RuntimeError("rpc down")
        build = await build_hop_options(WETH, DAI, venues)

        assert [o.label for o in build.options] == ["AERO:vol"]
        assert build.debug["venue_errors"] == {"uniswapv3": "rpc down"}
        assert "uniswapv3" not in build.debug["venue_counts"]

    @pytest.mark.asyncio
    async def test_pool_checks_in_debug(self):
        class PoolVenue(FakeVenue):
            async def list_options(self, token_in, token_out, fee_prefs):
                return VenueOptions(
                    options=[],
                    pool_checks=[PoolCheck(self.venue_id, "fee:500", "0x" + "0" * 40, False)],
                )

        build = await build_hop_options(WETH, DAI, {"uniswapv3": PoolVenue("uniswapv3")})

        assert build.options == []
        assert build.debug["pool_checks"] == [
            {"venue": "uniswapv3", "mode": "fee:500", "pool": "0x" + "0" * 40, "has_pool": False}
        ]

    @pytest.mark.asyncio
    async def test_options_quote_the_bound_pair(self):
        venues = venues_for((WETH, DAI))
        build = await build_hop_options(WETH, DAI, venues)

        result = await build.options[0].quote(10**18)
        assert result.amount_out == 1
        assert venues["uniswapv3"].calls == [("UNI:500", 10**18)]


class TestTriangleHopOptions:
    """Test per-triangle preparation."""

    @pytest.mark.asyncio
    async def test_three_legs_in_route_order(self):
        venues = venues_for((USDC, WETH), (WETH, AERO), (AERO, USDC))
        builds = await get_triangle_hop_options(triangle(USDC, WETH, AERO), venues)

        assert [(b.debug["token_in"], b.debug["token_out"]) for b in builds] == [
            ("USDC", "WETH"),
            ("WETH", "AERO"),
            ("AERO", "USDC"),
        ]
        assert [len(b.options) for b in builds] == [3, 3, 3]

    @pytest.mark.asyncio
    async def test_prepare_preserves_order(self):
        venues = venues_for((USDC, WETH), (WETH, AERO), (AERO, USDC))
        routes = [triangle(USDC, WETH, AERO), triangle(USDC, AERO, WETH)]
        prepared = await prepare_triangles(routes, venues, concurrency=2)

        assert [p.triangle.id for p in prepared] == [r.id for r in routes]
        # reverse direction has no registered options
        assert [len(b.options) for b in prepared[1].hop_options] == [0, 0, 0]

    @pytest.mark.asyncio
    async def test_prepare_rejects_open_walks(self):
        venues = venues_for()
        bad = RouteCandidate(id="bad", tokens=(USDC, WETH, AERO, DAI))
        with pytest.raises(InvalidInput):
            await prepare_triangles([bad], venues)

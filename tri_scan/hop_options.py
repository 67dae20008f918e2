"""
Hop-option building: which venue/fee/mode options exist for a directed pair.

Options are built fresh for every scan and carry quote coroutines bound to
their venue mode; nothing is quoted here.
"""

import asyncio
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .concurrency import run_limited
from .registry import FeePrefs
from .triangles import validate_triangle
from .types import (
    HopOption,
    HopOptionsBuild,
    PoolCheck,
    RouteCandidate,
    Token,
    TriangleWithHopOptions,
)
from .utils import get_logger
from .venues.base import VenueQuoter, summarize_error

logger = get_logger(__name__)


def _prefers_default_order(
    token_in: Token, token_out: Token, quote_symbol: str, native_symbol: str
) -> bool:
    if token_out.symbol == quote_symbol:
        return True
    return {token_in.symbol, token_out.symbol} == {quote_symbol, native_symbol}


def order_hop_options(
    token_in: Token,
    token_out: Token,
    options_by_venue: Mapping[str, List[HopOption]],
    venue_order: Sequence[str],
    home_symbols: Mapping[str, frozenset],
    quote_symbol: str = "USDC",
    native_symbol: str = "WETH",
) -> List[HopOption]:
    """
    Concatenate per-venue option lists in preference order.

    Default order is venue_order. Legs ending in the quote token, and the
    quote/native pair, keep the default. Otherwise a venue whose home
    symbols include either side of the pair moves to the front.
    """
    order = [v for v in venue_order if v in options_by_venue]
    order += [v for v in options_by_venue if v not in order]

    if not _prefers_default_order(token_in, token_out, quote_symbol, native_symbol):
        pair = {token_in.symbol, token_out.symbol}
        home = [v for v in order if pair & set(home_symbols.get(v, ()))]
        order = home + [v for v in order if v not in home]

    ordered: List[HopOption] = []
    for venue_id in order:
        ordered.extend(options_by_venue[venue_id])
    return ordered


async def build_hop_options(
    token_in: Token,
    token_out: Token,
    venues: Mapping[str, VenueQuoter],
    fee_prefs: Optional[FeePrefs] = None,
    venue_order: Optional[Sequence[str]] = None,
    quote_symbol: str = "USDC",
    native_symbol: str = "WETH",
) -> HopOptionsBuild:
    """
    Build the ordered option list for one directed pair.

    Venues are asked in their mapping order; venue_order (default: the
    mapping order) is the preference order before home-token promotion.
    A venue whose listing raises contributes no options and the error lands
    in the debug summary.

    Returns:
        HopOptionsBuild with options and debug info (pool checks, labels,
        per-venue counts, venue errors)
    """
    fee_prefs = fee_prefs or {}
    options_by_venue: Dict[str, List[HopOption]] = {}
    pool_checks: List[PoolCheck] = []
    venue_errors: Dict[str, str] = {}

    for venue_id, venue in venues.items():
        try:
            listed = await venue.list_options(token_in, token_out, fee_prefs)
        except Exception as e:
            summary = summarize_error(e)
            logger.warning(
                f"Option listing failed on {venue_id} for "
                f"{token_in.symbol}->{token_out.symbol}: {summary}"
            )
            venue_errors[venue_id] = summary
            options_by_venue[venue_id] = []
            continue
        options_by_venue[venue_id] = list(listed.options)
        pool_checks.extend(listed.pool_checks)

    options = order_hop_options(
        token_in,
        token_out,
        options_by_venue,
        venue_order=list(venue_order) if venue_order else list(venues.keys()),
        home_symbols={vid: v.home_symbols for vid, v in venues.items()},
        quote_symbol=quote_symbol,
        native_symbol=native_symbol,
    )

    venue_counts: Dict[str, int] = {}
    for option in options:
        venue_counts[option.venue_id] = venue_counts.get(option.venue_id, 0) + 1

    return HopOptionsBuild(
        options=options,
        debug={
            "token_in": token_in.symbol,
            "token_out": token_out.symbol,
            "pool_checks": [
                {
                    "venue": c.venue_id,
                    "mode": c.mode,
                    "pool": c.pool_address,
                    "has_pool": c.has_pool,
                }
                for c in pool_checks
            ],
            "option_labels": [o.label for o in options],
            "venue_counts": venue_counts,
            "venue_errors": venue_errors,
        },
    )


async def get_triangle_hop_options(
    triangle: RouteCandidate,
    venues: Mapping[str, VenueQuoter],
    fee_prefs: Optional[FeePrefs] = None,
    quote_symbol: str = "USDC",
    native_symbol: str = "WETH",
) -> Tuple[HopOptionsBuild, HopOptionsBuild, HopOptionsBuild]:
    """Build the three legs' options concurrently."""
    builds = await asyncio.gather(
        *(
            build_hop_options(
                token_in,
                token_out,
                venues,
                fee_prefs,
                quote_symbol=quote_symbol,
                native_symbol=native_symbol,
            )
            for token_in, token_out in triangle.hop_pairs()
        )
    )
    return builds[0], builds[1], builds[2]


async def prepare_triangles(
    triangles: Sequence[RouteCandidate],
    venues: Mapping[str, VenueQuoter],
    fee_prefs: Optional[FeePrefs] = None,
    concurrency: int = 4,
    quote_symbol: str = "USDC",
    native_symbol: str = "WETH",
) -> List[TriangleWithHopOptions]:
    """
    Pair every triangle with its hop-option builds.

    Raises:
        InvalidInput: If a triangle violates the closed-walk invariant
    """
    for triangle in triangles:
        validate_triangle(triangle)

    async def build(triangle: RouteCandidate, _index: int) -> TriangleWithHopOptions:
        hop_options = await get_triangle_hop_options(
            triangle, venues, fee_prefs, quote_symbol, native_symbol
        )
        return TriangleWithHopOptions(triangle=triangle, hop_options=hop_options)

    prepared = await run_limited(triangles, concurrency, build)
    logger.info(f"Built hop options for {len(prepared)} triangles")
    return prepared

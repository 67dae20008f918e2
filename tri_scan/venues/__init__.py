"""
Venue adapters for the supported DEX protocols.

VENUE_FACTORIES maps a venue id to a constructor taking
(web3, VenueContext); build_venues() instantiates the enabled ones in
configured order.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

from web3 import Web3

from ..registry import StableConfig
from ..types import Token
from .abi import (
    AERODROME_FACTORY,
    AERODROME_ROUTER,
    UNISWAP_V3_FACTORY,
    UNISWAP_V3_QUOTER_V2,
)
from .aerodrome import AerodromeQuoter
from .base import (
    STABLE_REVERT_EXPECTED,
    QuoteCache,
    VenueOptions,
    VenueQuoter,
    is_expected_rejection,
)
from .uniswap_v3 import DEFAULT_FEE_TIERS, UniswapV3Quoter


@dataclass(frozen=True)
class VenueContext:
    """Everything venue constructors may need besides the Web3 handle."""

    fee_tiers: Sequence[int] = DEFAULT_FEE_TIERS
    stable_config: StableConfig = StableConfig()
    connector: Optional[Token] = None
    cache_ttl_sec: float = 8.0
    call_timeout_sec: float = 10.0
    uniswap_v3_factory: str = UNISWAP_V3_FACTORY
    uniswap_v3_quoter: str = UNISWAP_V3_QUOTER_V2
    aerodrome_router: str = AERODROME_ROUTER
    aerodrome_factory: str = AERODROME_FACTORY


def _make_uniswap_v3(web3: Web3, ctx: VenueContext) -> UniswapV3Quoter:
    return UniswapV3Quoter(
        web3,
        fee_tiers=ctx.fee_tiers,
        factory_address=ctx.uniswap_v3_factory,
        quoter_address=ctx.uniswap_v3_quoter,
        cache_ttl_sec=ctx.cache_ttl_sec,
        call_timeout_sec=ctx.call_timeout_sec,
    )


def _make_aerodrome(web3: Web3, ctx: VenueContext) -> AerodromeQuoter:
    return AerodromeQuoter(
        web3,
        stable_config=ctx.stable_config,
        connector=ctx.connector,
        router_address=ctx.aerodrome_router,
        factory_address=ctx.aerodrome_factory,
        cache_ttl_sec=ctx.cache_ttl_sec,
        call_timeout_sec=ctx.call_timeout_sec,
    )


VENUE_FACTORIES: Dict[str, Callable[[Web3, VenueContext], VenueQuoter]] = {
    UniswapV3Quoter.venue_id: _make_uniswap_v3,
    AerodromeQuoter.venue_id: _make_aerodrome,
}


def build_venues(
    web3: Web3, venue_ids: Sequence[str], ctx: VenueContext
) -> Dict[str, VenueQuoter]:
    """
    Instantiate the requested venues, preserving the requested order.

    Raises:
        ValueError: If a venue id is not supported
    """
    venues: Dict[str, VenueQuoter] = {}
    for venue_id in venue_ids:
        factory = VENUE_FACTORIES.get(venue_id)
        if factory is None:
            raise ValueError(
                f"Unsupported venue '{venue_id}' (supported: {', '.join(sorted(VENUE_FACTORIES))})"
            )
        venues[venue_id] = factory(web3, ctx)
    return venues


__all__ = [
    "AerodromeQuoter",
    "QuoteCache",
    "STABLE_REVERT_EXPECTED",
    "UniswapV3Quoter",
    "VENUE_FACTORIES",
    "VenueContext",
    "VenueOptions",
    "VenueQuoter",
    "build_venues",
    "is_expected_rejection",
]

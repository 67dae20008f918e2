"""
Aerodrome adapter: volatile and stable pools quoted through the router.

Stable mode is offered speculatively for stable-eligible pairs; when the
pair has no stable pool the router reverts, which is reported with the
STABLE_REVERT_EXPECTED summary so the engine can tell it apart from real
failures. A volatile direct route that reverts is retried through a
connector token (two pools), and the connector is reported in
HopQuoteResult.via.
"""

import time
from typing import Callable, FrozenSet, List, Optional, Tuple

from web3 import Web3

from ..registry import FeePrefs, StableConfig
from ..types import HopOption, HopQuoteResult, Token
from ..utils import get_logger
from .abi import AERODROME_FACTORY, AERODROME_ROUTER, AERODROME_ROUTER_ABI
from .base import (
    STABLE_REVERT_EXPECTED,
    LastErrorMixin,
    QuoteCache,
    VenueOptions,
    is_revert,
    run_blocking,
    summarize_error,
)

logger = get_logger(__name__)

MODE_VOLATILE = "volatile"
MODE_STABLE = "stable"

Route = Tuple[str, str, bool, str]


class AerodromeQuoter(LastErrorMixin):
    """Quotes exact-input swaps through the Aerodrome router."""

    venue_id = "aerodrome"
    home_symbols: FrozenSet[str] = frozenset({"AERO"})

    def __init__(
        self,
        web3: Web3,
        stable_config: Optional[StableConfig] = None,
        connector: Optional[Token] = None,
        router_address: str = AERODROME_ROUTER,
        factory_address: str = AERODROME_FACTORY,
        cache_ttl_sec: float = 8.0,
        call_timeout_sec: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize adapter.

        Args:
            web3: Connected Web3 instance
            stable_config: Decides which pairs get a stable option
            connector: Token used for two-pool volatile fallback routes
            router_address: Aerodrome router address
            factory_address: Pool factory passed in each route
            cache_ttl_sec: Quote cache TTL
            call_timeout_sec: Timeout applied to each RPC call
            clock: Monotonic clock for the cache
        """
        self.web3 = web3
        self.stable_config = stable_config or StableConfig()
        self.connector = connector
        self.factory_address = Web3.to_checksum_address(factory_address)
        self.call_timeout_sec = call_timeout_sec
        self.router = web3.eth.contract(
            address=Web3.to_checksum_address(router_address),
            abi=AERODROME_ROUTER_ABI,
        )
        self.cache = QuoteCache(ttl_sec=cache_ttl_sec, clock=clock)

    def can_use_stable(self, token_in: Token, token_out: Token) -> bool:
        return self.stable_config.is_eligible(token_in, token_out)

    async def list_options(
        self, token_in: Token, token_out: Token, fee_prefs: FeePrefs
    ) -> VenueOptions:
        result = VenueOptions()
        result.options.append(
            HopOption(
                venue_id=self.venue_id,
                label="AERO:vol",
                quote=self._bind_quote(token_in, token_out, False),
            )
        )
        if self.can_use_stable(token_in, token_out):
            result.options.append(
                HopOption(
                    venue_id=self.venue_id,
                    label="AERO:stable",
                    quote=self._bind_quote(token_in, token_out, True),
                )
            )
        return result

    def _bind_quote(self, token_in: Token, token_out: Token, stable: bool):
        async def quote(amount_in: int) -> Optional[HopQuoteResult]:
            return await self.quote_by_mode(token_in, token_out, amount_in, stable)

        return quote

    async def quote(
        self, token_in: Token, token_out: Token, amount_in: int, mode: str
    ) -> Optional[HopQuoteResult]:
        if mode not in (MODE_VOLATILE, MODE_STABLE):
            raise ValueError(f"Invalid Aerodrome mode: {mode}")
        return await self.quote_by_mode(
            token_in, token_out, amount_in, mode == MODE_STABLE
        )

    async def _get_amounts_out(self, amount_in: int, routes: List[Route]) -> int:
        amounts = await run_blocking(
            self.router.functions.getAmountsOut(int(amount_in), routes).call,
            timeout=self.call_timeout_sec,
        )
        return int(amounts[-1])

    def _route(self, token_in: Token, token_out: Token, stable: bool) -> Route:
        return (token_in.address, token_out.address, stable, self.factory_address)

    async def quote_by_mode(
        self, token_in: Token, token_out: Token, amount_in: int, stable: bool
    ) -> Optional[HopQuoteResult]:
        """
        Quote one pool mode.

        Returns:
            HopQuoteResult (no gas estimate; Aerodrome has no quoter gas
            figure), or None with last_error() describing why
        """
        mode = MODE_STABLE if stable else MODE_VOLATILE
        pair = f"{token_in.symbol}->{token_out.symbol}"
        key = QuoteCache.key(token_in, token_out, amount_in, mode)
        hit, cached, cached_error = self.cache.get(key)
        if hit:
            if cached is None:
                self._set_error(cached_error)
            return cached

        result: Optional[HopQuoteResult] = None
        summary = ""
        try:
            amount_out = await self._get_amounts_out(
                amount_in, [self._route(token_in, token_out, stable)]
            )
            result = HopQuoteResult(amount_out=amount_out, meta={"stable": stable, "route_hops": 1})
        except Exception as e:
            if stable and is_revert(e):
                summary = f"{STABLE_REVERT_EXPECTED}: no stable pool for {pair}"
                self._set_error(summary, detail=f"{summary} ({e})")
            elif not stable and is_revert(e) and self._connector_applies(token_in, token_out):
                result = await self._quote_via_connector(token_in, token_out, amount_in)
                if result is None:
                    summary = self._last_error
            else:
                summary = summarize_error(e)
                self._set_error(summary, detail=f"{pair} {mode}: {e}")

        if result is not None and result.amount_out <= 0:
            summary = f"ZERO_OUTPUT: {pair} {mode}"
            self._set_error(summary)
            result = None

        self.cache.put(key, result, summary)
        return result

    def _connector_applies(self, token_in: Token, token_out: Token) -> bool:
        if self.connector is None:
            return False
        return self.connector.address not in (token_in.address, token_out.address)

    async def _quote_via_connector(
        self, token_in: Token, token_out: Token, amount_in: int
    ) -> Optional[HopQuoteResult]:
        via = self.connector
        routes = [
            self._route(token_in, via, False),
            self._route(via, token_out, False),
        ]
        try:
            amount_out = await self._get_amounts_out(amount_in, routes)
        except Exception as e:
            summary = summarize_error(e)
            self._set_error(
                summary,
                detail=f"{token_in.symbol}->{via.symbol}->{token_out.symbol} volatile: {e}",
            )
            return None

        logger.debug(
            f"Routed {token_in.symbol}->{token_out.symbol} via {via.symbol}: {amount_out}"
        )
        return HopQuoteResult(
            amount_out=amount_out,
            via=via.symbol,
            meta={"stable": False, "route_hops": 2},
        )

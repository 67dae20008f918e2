"""
Uniswap V3 adapter: per-fee-tier pools quoted through QuoterV2.

Pool existence is probed through the factory once per (pair, fee) and
remembered for the lifetime of the adapter. Quotes are cached for a short
TTL and every RPC call runs under a per-call timeout.
"""

import time
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from web3 import Web3

from ..registry import FeePrefs, get_pair_fee_order
from ..types import HopOption, HopQuoteResult, PoolCheck, Token
from ..utils import get_logger
from .abi import (
    UNISWAP_V3_FACTORY,
    UNISWAP_V3_FACTORY_ABI,
    UNISWAP_V3_QUOTER_V2,
    UNISWAP_V3_QUOTER_V2_ABI,
)
from .base import (
    ZERO_ADDRESS,
    LastErrorMixin,
    QuoteCache,
    VenueOptions,
    run_blocking,
    summarize_error,
)

logger = get_logger(__name__)

DEFAULT_FEE_TIERS = (500, 3000, 10000)


def fee_mode(fee: int) -> str:
    return f"fee:{fee}"


def parse_fee_mode(mode: str) -> int:
    """ "fee:500" -> 500 """
    prefix, _, value = mode.partition(":")
    if prefix != "fee" or not value.isdigit():
        raise ValueError(f"Invalid Uniswap V3 mode: {mode}")
    return int(value)


class UniswapV3Quoter(LastErrorMixin):
    """
    Quotes single-pool exact-input swaps on Uniswap V3.

    Options are one per fee tier with an existing pool, ordered by the pair's
    fee preferences and then the default tiers.
    """

    venue_id = "uniswapv3"
    home_symbols: FrozenSet[str] = frozenset()

    def __init__(
        self,
        web3: Web3,
        fee_tiers: Sequence[int] = DEFAULT_FEE_TIERS,
        factory_address: str = UNISWAP_V3_FACTORY,
        quoter_address: str = UNISWAP_V3_QUOTER_V2,
        cache_ttl_sec: float = 8.0,
        call_timeout_sec: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize adapter.

        Args:
            web3: Connected Web3 instance
            fee_tiers: Default fee tiers in hundredths of a bip (500 = 0.05%)
            factory_address: UniswapV3Factory address
            quoter_address: QuoterV2 address
            cache_ttl_sec: Quote cache TTL
            call_timeout_sec: Timeout applied to each RPC call
            clock: Monotonic clock for the cache
        """
        self.web3 = web3
        self.fee_tiers: List[int] = list(fee_tiers)
        self.call_timeout_sec = call_timeout_sec
        self.factory = web3.eth.contract(
            address=Web3.to_checksum_address(factory_address),
            abi=UNISWAP_V3_FACTORY_ABI,
        )
        self.quoter = web3.eth.contract(
            address=Web3.to_checksum_address(quoter_address),
            abi=UNISWAP_V3_QUOTER_V2_ABI,
        )
        self.cache = QuoteCache(ttl_sec=cache_ttl_sec, clock=clock)
        self._pool_addresses: Dict[Tuple[str, str, int], str] = {}

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    async def get_pool_address(self, token_a: Token, token_b: Token, fee: int) -> str:
        """Factory pool address for the pair and fee (zero address if none)."""
        a, b = sorted([token_a.address, token_b.address])
        key = (a, b, fee)
        if key not in self._pool_addresses:
            pool = await run_blocking(
                self.factory.functions.getPool(a, b, fee).call,
                timeout=self.call_timeout_sec,
            )
            self._pool_addresses[key] = str(pool)
        return self._pool_addresses[key]

    async def has_pool(self, token_a: Token, token_b: Token, fee: int) -> bool:
        pool = await self.get_pool_address(token_a, token_b, fee)
        return pool.lower() != ZERO_ADDRESS

    async def list_options(
        self, token_in: Token, token_out: Token, fee_prefs: FeePrefs
    ) -> VenueOptions:
        result = VenueOptions()
        fee_order = get_pair_fee_order(
            token_in.symbol, token_out.symbol, self.fee_tiers, fee_prefs
        )

        for fee in fee_order:
            try:
                pool = await self.get_pool_address(token_in, token_out, fee)
            except Exception as e:
                logger.debug(
                    f"getPool failed for {token_in.symbol}/{token_out.symbol} fee {fee}: "
                    f"{summarize_error(e)}"
                )
                result.pool_checks.append(
                    PoolCheck(self.venue_id, fee_mode(fee), "unknown", False)
                )
                continue

            exists = pool.lower() != ZERO_ADDRESS
            result.pool_checks.append(PoolCheck(self.venue_id, fee_mode(fee), pool, exists))
            if exists:
                result.options.append(
                    HopOption(
                        venue_id=self.venue_id,
                        label=f"UNI:{fee}",
                        quote=self._bind_quote(token_in, token_out, fee),
                    )
                )

        return result

    def _bind_quote(self, token_in: Token, token_out: Token, fee: int):
        async def quote(amount_in: int) -> Optional[HopQuoteResult]:
            return await self.quote_with_fee(token_in, token_out, amount_in, fee)

        return quote

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    async def quote(
        self, token_in: Token, token_out: Token, amount_in: int, mode: str
    ) -> Optional[HopQuoteResult]:
        return await self.quote_with_fee(
            token_in, token_out, amount_in, parse_fee_mode(mode)
        )

    async def quote_with_fee(
        self, token_in: Token, token_out: Token, amount_in: int, fee: int
    ) -> Optional[HopQuoteResult]:
        """
        Quote an exact-input single-pool swap.

        Returns:
            HopQuoteResult with the quoter's gas estimate, or None with
            last_error() describing why
        """
        key = QuoteCache.key(token_in, token_out, amount_in, fee_mode(fee))
        hit, cached, cached_error = self.cache.get(key)
        if hit:
            if cached is None:
                self._set_error(cached_error)
            return cached

        params = (token_in.address, token_out.address, int(amount_in), int(fee), 0)
        try:
            amount_out, _, _, gas_estimate = await run_blocking(
                self.quoter.functions.quoteExactInputSingle(params).call,
                timeout=self.call_timeout_sec,
            )
        except Exception as e:
            summary = summarize_error(e)
            self._set_error(summary, detail=f"{token_in.symbol}->{token_out.symbol} fee {fee}: {e}")
            self.cache.put(key, None, summary)
            return None

        if int(amount_out) <= 0:
            summary = f"ZERO_OUTPUT: {token_in.symbol}->{token_out.symbol} fee {fee}"
            self._set_error(summary)
            self.cache.put(key, None, summary)
            return None

        result = HopQuoteResult(
            amount_out=int(amount_out),
            gas_units_estimate=int(gas_estimate),
            meta={"fee_tier": fee},
        )
        self.cache.put(key, result)
        return result

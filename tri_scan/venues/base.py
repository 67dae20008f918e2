"""
Venue capability protocol and shared adapter helpers.

A venue is anything that can list quoting options for a directed pair and
quote an input amount in one of those options' modes. The simulation engine
never sees venue internals; it only calls HopOption.quote and, when a quote
comes back empty, the venue's last_error() accessor.
"""

import asyncio
import functools
import time
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

from web3.exceptions import ContractLogicError

from ..registry import FeePrefs
from ..types import HopOption, HopQuoteResult, PoolCheck, Token

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Summary prefix for a speculative stable-pool quote that reverted
STABLE_REVERT_EXPECTED = "STABLE_REVERT_EXPECTED"

MAX_SUMMARY_LEN = 180


@dataclass
class VenueOptions:
    """Options one venue offers for a directed pair."""

    options: List[HopOption] = field(default_factory=list)
    pool_checks: List[PoolCheck] = field(default_factory=list)


@runtime_checkable
class VenueQuoter(Protocol):
    """Protocol every venue adapter implements."""

    venue_id: str
    home_symbols: FrozenSet[str]

    async def list_options(
        self, token_in: Token, token_out: Token, fee_prefs: FeePrefs
    ) -> VenueOptions:
        """Ordered options for the pair (fee tiers, pool modes)."""
        ...

    async def quote(
        self, token_in: Token, token_out: Token, amount_in: int, mode: str
    ) -> Optional[HopQuoteResult]:
        """Quote amount_in in the given mode; None when no usable quote."""
        ...

    def last_error(self, verbose: bool = False) -> str:
        """Short reason for the most recent failed quote."""
        ...


# ============================================================================
# Error helpers
# ============================================================================


def is_expected_rejection(message: Optional[str]) -> bool:
    """True for the designated stable-pool revert summary."""
    if not message:
        return False
    text = message.strip()
    if text.upper().startswith("THROW:"):
        text = text[len("THROW:"):].strip()
    return text.startswith(STABLE_REVERT_EXPECTED)


def is_revert(exc: BaseException) -> bool:
    """True when a contract call reverted (as opposed to transport errors)."""
    if isinstance(exc, ContractLogicError):
        return True
    # covers "execution reverted" and "missing revert data" from providers
    return "revert" in str(exc).lower()


def summarize_error(exc: BaseException, limit: int = MAX_SUMMARY_LEN) -> str:
    """
    One-line error summary capped at `limit` characters.

    Timeouts carry no message of their own, so they are named explicitly.
    """
    if isinstance(exc, asyncio.TimeoutError):
        text = "TIMEOUT: quote call exceeded per-call timeout"
    elif isinstance(exc, ContractLogicError):
        # str() of a ContractLogicError includes the revert data tuple
        text = " ".join(str(getattr(exc, "message", None) or exc).split())
        if "CALL_EXCEPTION" not in text:
            text = f"CALL_EXCEPTION: {text}"
    else:
        text = " ".join(str(exc).split()) or type(exc).__name__
    return text[:limit]


async def run_blocking(fn: Callable[..., Any], *args: Any, timeout: float) -> Any:
    """
    Run a blocking web3 call in the default executor with a timeout.

    The worker thread is not interrupted on timeout; its result is dropped.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(
        loop.run_in_executor(None, functools.partial(fn, *args)), timeout
    )


# ============================================================================
# TTL quote cache
# ============================================================================

CacheKey = Tuple[str, str, int, str]


class QuoteCache:
    """
    Read-through cache of quote outcomes keyed by (in, out, amount, mode).

    Failed quotes are cached too (as None) so a dead pool is not re-queried
    inside the TTL window.
    """

    def __init__(self, ttl_sec: float = 8.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Optional[HopQuoteResult], str]] = {}

    @staticmethod
    def key(token_in: Token, token_out: Token, amount_in: int, mode: str) -> CacheKey:
        return (token_in.address, token_out.address, int(amount_in), mode)

    def get(self, key: CacheKey) -> Tuple[bool, Optional[HopQuoteResult], str]:
        """Return (hit, result, error_summary); expired entries are evicted."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None, ""
        expiry, result, error = entry
        if expiry <= self._clock():
            del self._entries[key]
            return False, None, ""
        return True, result, error

    def put(
        self, key: CacheKey, result: Optional[HopQuoteResult], error: str = ""
    ) -> None:
        if self.ttl_sec <= 0:
            return
        self._entries[key] = (self._clock() + self.ttl_sec, result, error)

    def __len__(self) -> int:
        return len(self._entries)


class LastErrorMixin:
    """Tracks the most recent failure summary and its full detail."""

    _last_error: str = ""
    _last_error_detail: str = ""

    def _set_error(self, summary: str, detail: Optional[str] = None) -> None:
        self._last_error = summary[:MAX_SUMMARY_LEN]
        self._last_error_detail = detail if detail is not None else summary

    def last_error(self, verbose: bool = False) -> str:
        if verbose and self._last_error_detail:
            return self._last_error_detail
        return self._last_error or "quote failed"

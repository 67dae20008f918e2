"""
Core data types for triangle route simulation.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
    Union,
)


@dataclass(frozen=True)
class Token:
    """
    A tradeable asset from the token registry.

    Attributes:
        symbol: Upper-case symbol, unique within the registry (e.g., "USDC")
        address: Checksummed 20-byte contract address
        decimals: Token decimals in [0, 36]
    """

    symbol: str
    address: str
    decimals: int


@dataclass(frozen=True)
class RouteHop:
    """
    One directed swap through one venue.

    Attributes:
        venue_id: Venue that quoted this hop (e.g., "uniswapv3")
        token_in: Token sold
        token_out: Token bought
        label: Venue/fee/mode tag (e.g., "UNI:500", "AERO:vol/via WETH")
    """

    venue_id: str
    token_in: Token
    token_out: Token
    label: str


@dataclass(frozen=True)
class RouteCandidate:
    """
    A closed three-hop walk start -> mid1 -> mid2 -> start.

    Attributes:
        id: Deterministic id built from the symbol sequence
        tokens: Exactly four tokens with tokens[0] == tokens[3]
    """

    id: str
    tokens: Tuple[Token, Token, Token, Token]

    def hop_pairs(self) -> List[Tuple[Token, Token]]:
        """Directed (token_in, token_out) pairs for the three legs."""
        return [(self.tokens[i], self.tokens[i + 1]) for i in range(3)]


@dataclass(frozen=True)
class HopQuoteResult:
    """
    Output of a single hop quote.

    Attributes:
        amount_out: Output amount in token_out units
        gas_units_estimate: Venue gas estimate, None when the venue has none
        via: Connector symbol when the venue routed through two pools
        meta: Venue specific details (fee tier, pool mode, pool address)
    """

    amount_out: int
    gas_units_estimate: Optional[int] = None
    via: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class QuoteFailure:
    """Typed failure a quote function may return instead of raising."""

    reason: str
    expected: bool = False


QuoteOutcome = Union[HopQuoteResult, QuoteFailure, None]
QuoteFn = Callable[[int], Awaitable[QuoteOutcome]]


@dataclass(frozen=True)
class HopOption:
    """
    One concrete way to execute a hop.

    The quote coroutine is bound to the pair and venue mode when the option
    is built; the engine only calls it with an input amount.
    """

    venue_id: str
    label: str
    quote: QuoteFn = field(compare=False, repr=False)


@dataclass(frozen=True)
class PoolCheck:
    """Result of a pool existence probe made while building options."""

    venue_id: str
    mode: str
    pool_address: str
    has_pool: bool


@dataclass
class HopOptionsBuild:
    """Ordered hop options for one directed pair plus a debug summary."""

    options: List[HopOption]
    debug: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TriangleWithHopOptions:
    """A triangle paired with the option builds for its three legs."""

    triangle: RouteCandidate
    hop_options: Tuple[HopOptionsBuild, HopOptionsBuild, HopOptionsBuild]


@dataclass(frozen=True)
class ScanBudgets:
    """
    Per-run resource ceilings for the simulation engine.

    Attributes:
        max_combos_per_triangle: Combinations evaluated per triangle
        max_total_quotes: Quote calls across the whole run
        time_budget_ms: Wall-clock budget from the start of simulation
        quote_concurrency: Triangles evaluated concurrently
    """

    max_combos_per_triangle: int
    max_total_quotes: int
    time_budget_ms: int
    quote_concurrency: int


@dataclass(frozen=True)
class SimResult:
    """
    Outcome of evaluating one hop-option combination.

    Amounts are in start-token units. When gas_known is False, gas_cost is 0
    and net_profit equals gross_profit.
    """

    route: RouteCandidate
    hops: Tuple[RouteHop, RouteHop, RouteHop]
    start_amount: int
    final_amount: int
    gross_profit: int
    gas_cost: int
    gas_known: bool
    net_profit: int
    gas_units: int = 0
    failed: bool = False
    fail_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "route": self.route.id,
            "hops": [
                {
                    "venue": hop.venue_id,
                    "token_in": hop.token_in.symbol,
                    "token_out": hop.token_out.symbol,
                    "label": hop.label,
                }
                for hop in self.hops
            ],
            "start_amount": self.start_amount,
            "final_amount": self.final_amount,
            "gross_profit": self.gross_profit,
            "gas_cost": self.gas_cost,
            "gas_known": self.gas_known,
            "gas_units": self.gas_units,
            "net_profit": self.net_profit,
            "failed": self.failed,
            "fail_reason": self.fail_reason,
        }


@dataclass
class SimStats:
    """
    Aggregate statistics for one simulation run.

    hop_options_min/max/avg hold one entry per hop position.
    """

    triangles_considered: int = 0
    combos_enumerated: int = 0
    triangles_skipped_no_hop_options: int = 0
    quote_attempts: int = 0
    quote_failures: int = 0
    expected_rejections: int = 0
    hop_options_min: List[int] = field(default_factory=lambda: [0, 0, 0])
    hop_options_max: List[int] = field(default_factory=lambda: [0, 0, 0])
    hop_options_avg: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    errors_by_dex: Dict[str, int] = field(default_factory=dict)
    errors_by_hop: Dict[str, int] = field(default_factory=dict)
    top_errors_by_dex: Dict[str, List[str]] = field(default_factory=dict)
    error_types_by_dex: Dict[str, Dict[str, int]] = field(default_factory=dict)
    stopped_early: bool = False
    stop_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "triangles_considered": self.triangles_considered,
            "combos_enumerated": self.combos_enumerated,
            "triangles_skipped_no_hop_options": self.triangles_skipped_no_hop_options,
            "quote_attempts": self.quote_attempts,
            "quote_failures": self.quote_failures,
            "expected_rejections": self.expected_rejections,
            "hop_options_min": list(self.hop_options_min),
            "hop_options_max": list(self.hop_options_max),
            "hop_options_avg": [round(v, 4) for v in self.hop_options_avg],
            "errors_by_dex": dict(self.errors_by_dex),
            "errors_by_hop": dict(self.errors_by_hop),
            "top_errors_by_dex": {k: list(v) for k, v in self.top_errors_by_dex.items()},
            "error_types_by_dex": {
                k: dict(v) for k, v in self.error_types_by_dex.items()
            },
            "stopped_early": self.stopped_early,
            "stop_reason": self.stop_reason,
        }

"""
Route simulation engine.

Evaluates every hop-option combination of every triangle under the run
budgets, turning quote chains into scored SimResults. All amounts are
integers in token units; a float only enters through the native/quote price
used for gas costing.
"""

import itertools
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from .concurrency import run_limited
from .exceptions import ExpectedVenueRejection, InvalidInput
from .fixed_point import format_units, gas_cost_in_quote_units, to_units
from .stats import STOP_QUOTE_BUDGET, STOP_TIME_BUDGET, StatsAccumulator
from .triangles import validate_triangle
from .types import (
    HopOption,
    HopQuoteResult,
    QuoteFailure,
    RouteCandidate,
    RouteHop,
    ScanBudgets,
    SimResult,
    SimStats,
    Token,
    TriangleWithHopOptions,
)
from .utils import get_logger
from .venues.base import MAX_SUMMARY_LEN, VenueQuoter, is_expected_rejection, summarize_error

logger = get_logger(__name__)

MAX_ENUMERATION_LOGS = 8
MAX_FAILURE_SAMPLES = 5
MAX_TRACED_COMBOS = 10


@dataclass
class SimulationParams:
    """
    Inputs for one simulation run.

    Attributes:
        triangles: Triangles paired with their three hop-option builds
        start_token: Token every triangle starts and ends at
        amount_in: Start amount as a decimal string ("100")
        budgets: Run ceilings
        venues: venue id -> adapter, used for the last-error accessor
        min_profit: Optional decimal string; results below it are dropped
        gas_price_wei: Gas price in wei
        native_to_quote_price: Native token price in start-token units (0 = unknown)
        native_decimals: Decimals of the native gas token
        verbose: Diagnostics mode
        trace_amounts: Log per-hop amounts for the first combos of each triangle
        clock: Monotonic seconds
    """

    triangles: Sequence[TriangleWithHopOptions]
    start_token: Token
    amount_in: str
    budgets: ScanBudgets
    venues: Mapping[str, VenueQuoter] = field(default_factory=dict)
    min_profit: Optional[str] = None
    gas_price_wei: int = 0
    native_to_quote_price: float = 0.0
    native_decimals: int = 18
    verbose: bool = False
    trace_amounts: bool = False
    clock: Callable[[], float] = time.monotonic


@dataclass
class SimulationOutput:
    results: List[SimResult]
    stats: SimStats


def hop_key(position: int, token_in: Token, token_out: Token) -> str:
    """Per-hop error key, e.g. "hop2:WETH->AERO"."""
    return f"hop{position}:{token_in.symbol}->{token_out.symbol}"


def _validate_budgets(budgets: ScanBudgets) -> None:
    for name in ("max_combos_per_triangle", "max_total_quotes", "time_budget_ms"):
        value = getattr(budgets, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidInput(
                f"Budget {name} must be a non-negative integer, got {value!r}",
                details={"budget": name},
            )
    if budgets.quote_concurrency < 1:
        raise InvalidInput(
            f"quote_concurrency must be >= 1, got {budgets.quote_concurrency}",
            details={"budget": "quote_concurrency"},
        )


def _validate_triangles(
    triangles: Sequence[TriangleWithHopOptions], start_token: Token
) -> None:
    for entry in triangles:
        route = entry.triangle
        validate_triangle(route)
        if route.tokens[0].address != start_token.address:
            raise InvalidInput(
                f"Triangle {route.id} does not start at {start_token.symbol}",
                details={"route": route.id},
            )
        if len(entry.hop_options) != 3:
            raise InvalidInput(
                f"Triangle {route.id} needs 3 hop option lists, got {len(entry.hop_options)}",
                details={"route": route.id},
            )


class RouteSimulator:
    """
    One simulation run: validated inputs, a deadline and a stats accumulator.

    Instances are single-use; simulate_triangles() creates one per call.
    """

    def __init__(self, params: SimulationParams):
        """
        Validate inputs and fix the run deadline.

        Raises:
            InvalidInput: Malformed amounts, budgets or triangles
        """
        _validate_budgets(params.budgets)
        _validate_triangles(params.triangles, params.start_token)

        self.params = params
        self.start_units = to_units(params.amount_in, params.start_token.decimals)
        if self.start_units <= 0:
            raise InvalidInput(f"Start amount must be positive: {params.amount_in}")
        self.min_profit_units: Optional[int] = None
        if params.min_profit is not None:
            self.min_profit_units = to_units(params.min_profit, params.start_token.decimals)
        if params.gas_price_wei < 0:
            raise InvalidInput(f"Gas price must be non-negative: {params.gas_price_wei}")

        self.stats = StatsAccumulator()
        self.deadline = params.clock() + params.budgets.time_budget_ms / 1000.0

        self._enumeration_logs = 0
        self._failure_samples = 0

    # ------------------------------------------------------------------
    # Budget checks
    # ------------------------------------------------------------------

    def deadline_passed(self) -> bool:
        return self.params.clock() >= self.deadline

    def _check_global_budgets(self) -> bool:
        """Return True (and flag the stop) if the deadline or quote cap is hit."""
        if self.deadline_passed():
            self.stats.mark_stopped(STOP_TIME_BUDGET)
            return True
        if self.stats.quotes_exhausted(self.params.budgets.max_total_quotes):
            self.stats.mark_stopped(STOP_QUOTE_BUDGET)
            return True
        return False

    # ------------------------------------------------------------------
    # Triangle and combination evaluation
    # ------------------------------------------------------------------

    async def simulate_triangle(
        self, entry: TriangleWithHopOptions, _index: int = 0
    ) -> List[SimResult]:
        if self._check_global_budgets():
            return []

        route = entry.triangle
        option_lists = [build.options for build in entry.hop_options]
        counts = [len(options) for options in option_lists]
        self.stats.begin_triangle(counts)

        if min(counts) == 0:
            self.stats.skip_no_hop_options()
            logger.debug(f"{route.id}: no hop options {tuple(counts)}, skipped")
            return []

        kept: List[SimResult] = []
        evaluated = 0
        for combo in itertools.product(*option_lists):
            if evaluated >= self.params.budgets.max_combos_per_triangle:
                break
            if self._check_global_budgets():
                break

            self.stats.count_combo()
            result = await self.simulate_combo(
                route, combo, trace=self.params.trace_amounts and evaluated < MAX_TRACED_COMBOS
            )
            evaluated += 1
            if self._keep(result):
                kept.append(result)

        if self.params.verbose and self._enumeration_logs < MAX_ENUMERATION_LOGS:
            self._enumeration_logs += 1
            logger.info(
                f"{route.id}: options {tuple(counts)}, evaluated {evaluated} combos, "
                f"kept {len(kept)}"
            )
        return kept

    def _keep(self, result: SimResult) -> bool:
        if result.failed:
            return False
        if self.min_profit_units is not None:
            return result.net_profit >= self.min_profit_units
        return True

    async def simulate_combo(
        self,
        route: RouteCandidate,
        combo: Sequence[HopOption],
        trace: bool = False,
    ) -> SimResult:
        """
        Quote one option combination hop by hop from the start amount.

        Never raises for venue failures; they come back as a failed SimResult
        and are tallied in the run statistics.
        """
        hops = tuple(
            RouteHop(option.venue_id, token_in, token_out, option.label)
            for option, (token_in, token_out) in zip(combo, route.hop_pairs())
        )
        amount = self.start_units
        gas_units = 0
        gas_complete = True
        trace_amounts = [amount]

        for position, (option, hop) in enumerate(zip(combo, hops), start=1):
            if self.deadline_passed():
                self.stats.mark_stopped(STOP_TIME_BUDGET)
                return self._failed(route, hops, STOP_TIME_BUDGET)
            if not self.stats.reserve_quote(self.params.budgets.max_total_quotes):
                self.stats.mark_stopped(STOP_QUOTE_BUDGET)
                return self._failed(route, hops, STOP_QUOTE_BUDGET)

            result, summary, expected = await self._quote_hop(option, amount)
            if result is None:
                key = hop_key(position, hop.token_in, hop.token_out)
                self.stats.record_failure(
                    option.venue_id, key, summary, expected=expected, verbose=self.params.verbose
                )
                self._log_failure_sample(route, key, option, summary, expected)
                return self._failed(route, hops, f"{option.venue_id} {summary}")

            if result.via:
                hops = hops[: position - 1] + (
                    replace(hop, label=f"{hop.label}/via {result.via}"),
                ) + hops[position:]
            if result.gas_units_estimate is None:
                gas_complete = False
            else:
                gas_units += result.gas_units_estimate
            amount = result.amount_out
            trace_amounts.append(amount)

        if trace:
            self._log_trace(route, hops, trace_amounts)

        return self._score(route, hops, amount, gas_units, gas_complete)

    async def _quote_hop(
        self, option: HopOption, amount: int
    ) -> Tuple[Optional[HopQuoteResult], str, bool]:
        """Call one option; returns (result, failure summary, expected rejection)."""
        try:
            outcome = await option.quote(amount)
        except ExpectedVenueRejection as e:
            return None, f"THROW: {summarize_error(e)}"[:MAX_SUMMARY_LEN], True
        except Exception as e:
            summary = f"THROW: {summarize_error(e)}"[:MAX_SUMMARY_LEN]
            return None, summary, is_expected_rejection(summary)

        if isinstance(outcome, QuoteFailure):
            summary = (outcome.reason or "quote failed")[:MAX_SUMMARY_LEN]
            return None, summary, outcome.expected or is_expected_rejection(summary)

        if outcome is None or outcome.amount_out <= 0:
            summary = self._venue_error(option.venue_id)
            return None, summary, is_expected_rejection(summary)

        return outcome, "", False

    def _venue_error(self, venue_id: str) -> str:
        venue = self.params.venues.get(venue_id)
        if venue is None:
            return "quote failed"
        return (venue.last_error(self.params.verbose) or "quote failed")[:MAX_SUMMARY_LEN]

    def _score(
        self,
        route: RouteCandidate,
        hops: Tuple[RouteHop, RouteHop, RouteHop],
        final_amount: int,
        gas_units: int,
        gas_complete: bool,
    ) -> SimResult:
        gross = final_amount - self.start_units
        price = self.params.native_to_quote_price
        if gas_complete and price > 0:
            gas_cost = gas_cost_in_quote_units(
                gas_units,
                self.params.gas_price_wei,
                price,
                self.params.start_token.decimals,
                self.params.native_decimals,
            )
            return SimResult(
                route=route,
                hops=hops,
                start_amount=self.start_units,
                final_amount=final_amount,
                gross_profit=gross,
                gas_cost=gas_cost,
                gas_known=True,
                net_profit=gross - gas_cost,
                gas_units=gas_units,
            )
        return SimResult(
            route=route,
            hops=hops,
            start_amount=self.start_units,
            final_amount=final_amount,
            gross_profit=gross,
            gas_cost=0,
            gas_known=False,
            net_profit=gross,
            gas_units=gas_units,
        )

    def _failed(
        self, route: RouteCandidate, hops: Tuple[RouteHop, ...], reason: str
    ) -> SimResult:
        return SimResult(
            route=route,
            hops=hops,
            start_amount=self.start_units,
            final_amount=0,
            gross_profit=0,
            gas_cost=0,
            gas_known=False,
            net_profit=0,
            failed=True,
            fail_reason=reason,
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _log_failure_sample(
        self,
        route: RouteCandidate,
        key: str,
        option: HopOption,
        summary: str,
        expected: bool,
    ) -> None:
        if not self.params.verbose or self._failure_samples >= MAX_FAILURE_SAMPLES:
            return
        self._failure_samples += 1
        tag = " (expected)" if expected else ""
        logger.info(f"{route.id} {key} {option.label} failed{tag}: {summary}")

    def _log_trace(
        self,
        route: RouteCandidate,
        hops: Sequence[RouteHop],
        amounts: Sequence[int],
    ) -> None:
        parts = [format_units(amounts[0], route.tokens[0].decimals)]
        for hop, amount in zip(hops, amounts[1:]):
            parts.append(
                f"[{hop.label}] {format_units(amount, hop.token_out.decimals)} {hop.token_out.symbol}"
            )
        logger.info(f"trace {route.id}: {route.tokens[0].symbol} " + " -> ".join(parts))

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> SimulationOutput:
        triangles = list(self.params.triangles)
        per_triangle = await run_limited(
            triangles, self.params.budgets.quote_concurrency, self.simulate_triangle
        )
        results = [result for chunk in per_triangle for result in chunk]
        stats = self.stats.snapshot()

        logger.info(
            f"Simulated {stats.triangles_considered}/{len(triangles)} triangles: "
            f"{stats.combos_enumerated} combos, {stats.quote_attempts} quotes, "
            f"{stats.quote_failures} failures, {len(results)} results"
        )
        if stats.stopped_early:
            logger.warning(f"Simulation stopped early: {stats.stop_reason}")
        return SimulationOutput(results=results, stats=stats)


async def simulate_triangles(params: SimulationParams) -> SimulationOutput:
    """
    Simulate all triangles under the configured budgets.

    Returns:
        SimulationOutput with kept results in triangle order and run stats

    Raises:
        InvalidInput: If amounts, budgets or triangles are malformed
    """
    return await RouteSimulator(params).run()

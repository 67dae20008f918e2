"""
Scan orchestration: wires settings, registry, venues and the engine.
"""

import asyncio
import sys
import time
from typing import Dict, FrozenSet, List, Optional, TextIO, Tuple

from web3 import Web3

from .config import ScanSettings
from .exceptions import ConfigError, TriScanError
from .fixed_point import format_units
from .hop_options import build_hop_options, prepare_triangles
from .pricing import derive_native_to_quote_price
from .ranking import format_results_table, format_stats_table, rank_results, report_lines
from .registry import (
    FeePrefs,
    build_stable_config,
    find_token,
    load_fee_prefs,
    load_stable_pair_overrides,
    load_tokens,
    select_token_subset,
)
from .simulate import SimulationParams, simulate_triangles
from .triangles import generate_triangles
from .types import HopQuoteResult, QuoteFailure, SimResult, SimStats, Token
from .utils import format_duration, get_logger
from .venues import VenueContext, VenueQuoter, build_venues
from .venues.base import run_blocking, summarize_error

logger = get_logger(__name__)

CHAIN_NAMES = {
    1: "Ethereum Mainnet",
    8453: "Base",
    84532: "Base Sepolia",
}

SELF_TEST_EXTRA_SYMBOL = "AERO"


class ScanRunner:
    """
    Runs one scan (or a self-test) from validated settings.

    Attributes:
        settings: Validated ScanSettings
        web3: Web3 instance (set by connect() unless injected)
        tokens: Token universe after subset selection
        venues: venue id -> adapter, in configured order
    """

    def __init__(
        self,
        settings: ScanSettings,
        web3: Optional[Web3] = None,
        out: TextIO = sys.stdout,
    ):
        self.settings = settings
        self.web3 = web3
        self.out = out
        self.tokens: List[Token] = []
        self.fee_prefs: FeePrefs = {}
        self.start_token: Optional[Token] = None
        self.native_token: Optional[Token] = None
        self.venues: Dict[str, VenueQuoter] = {}
        self._all_tokens: List[Token] = []
        self._stable_overrides: FrozenSet[str] = frozenset()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """
        Connect to the RPC endpoint and verify it answers.

        Raises:
            TriScanError: If the endpoint cannot be queried
        """
        rpc_url = self.settings.rpc_url
        logger.info(f"Connecting to RPC: {rpc_url}")
        self.web3 = Web3(
            Web3.HTTPProvider(
                rpc_url, request_kwargs={"timeout": self.settings.call_timeout_sec}
            )
        )
        try:
            chain_id = self.web3.eth.chain_id
            block = self.web3.eth.block_number
        except Exception as e:
            raise TriScanError(f"Failed to connect to RPC endpoint {rpc_url}: {e}") from e

        chain_name = CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")
        logger.info(f"Connected to {chain_name} (block #{block:,})")

    def load_registry(self) -> None:
        """
        Load tokens, fee preferences and stable-pair overrides.

        Raises:
            ConfigError: If a file is invalid or a configured symbol is unknown
        """
        s = self.settings
        tokens = load_tokens(s.tokens_path)
        self.tokens = select_token_subset(tokens, s.token_subset, s.start_symbol)
        self.fee_prefs = load_fee_prefs(s.fee_prefs_path)

        self.start_token = find_token(self.tokens, s.start_symbol)
        if self.start_token is None:
            raise ConfigError(f"Start token {s.start_symbol} not found in registry")
        # Native token only prices gas; it may sit outside the subset
        self.native_token = find_token(self.tokens, s.native_symbol) or find_token(
            tokens, s.native_symbol
        )
        if self.native_token is None:
            logger.warning(f"Native token {s.native_symbol} not in registry; gas costs unknown")

        self._stable_overrides = load_stable_pair_overrides(s.stable_pairs_path)
        self._all_tokens = tokens

    def build_venues(self) -> None:
        s = self.settings
        connector_symbol = s.connector_symbol or s.native_symbol
        connector = find_token(self._all_tokens, connector_symbol)
        ctx = VenueContext(
            fee_tiers=tuple(s.fee_tiers),
            stable_config=build_stable_config(self._all_tokens, self._stable_overrides),
            connector=connector,
            cache_ttl_sec=s.cache_ttl_sec,
            call_timeout_sec=s.call_timeout_sec,
            **s.address_overrides(),
        )
        try:
            self.venues = build_venues(self.web3, s.dexes, ctx)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        logger.info(f"Venues: {', '.join(self.venues)}")

    def setup(self) -> None:
        if self.web3 is None:
            self.connect()
        self.load_registry()
        self.build_venues()

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    async def resolve_gas_price(self) -> int:
        if self.settings.gas_price_wei is not None:
            return self.settings.gas_price_wei
        try:
            price = await run_blocking(
                lambda: self.web3.eth.gas_price, timeout=self.settings.call_timeout_sec
            )
        except Exception as e:
            logger.warning(f"Gas price lookup failed: {summarize_error(e)}; gas costs unknown")
            return 0
        return int(price)

    async def scan(self) -> Tuple[List[SimResult], SimStats]:
        """Run the full pipeline and return ranked results plus stats."""
        s = self.settings
        started = time.monotonic()

        mids = [t for t in self.tokens if t.symbol != self.start_token.symbol]
        triangles = generate_triangles(self.start_token, mids, s.max_triangles)
        logger.info(f"Generated {len(triangles)} triangles from {len(mids)} mid tokens")

        native_symbol = self.native_token.symbol if self.native_token else s.native_symbol
        prepared = await prepare_triangles(
            triangles,
            self.venues,
            self.fee_prefs,
            concurrency=s.option_concurrency,
            quote_symbol=self.start_token.symbol,
            native_symbol=native_symbol,
        )

        gas_price_wei = await self.resolve_gas_price()
        native_price = 0.0
        if self.native_token is not None and gas_price_wei > 0:
            native_price = await derive_native_to_quote_price(
                self.venues, self.start_token, self.native_token, self.fee_prefs
            )

        output = await simulate_triangles(
            SimulationParams(
                triangles=prepared,
                start_token=self.start_token,
                amount_in=s.amount,
                budgets=s.budgets,
                venues=self.venues,
                min_profit=s.min_profit,
                gas_price_wei=gas_price_wei,
                native_to_quote_price=native_price,
                native_decimals=self.native_token.decimals if self.native_token else 18,
                verbose=s.verbose,
                trace_amounts=s.trace_amounts,
            )
        )

        ranked = rank_results(output.results, s.top_n, s.gas_policy)
        logger.info(
            f"Scan finished in {format_duration(time.monotonic() - started)}: "
            f"{len(output.results)} qualifying, showing {len(ranked)}"
        )
        return ranked, output.stats

    def report(self, results: List[SimResult], stats: SimStats) -> None:
        for line in report_lines(results, stats):
            print(line, file=self.out)
        if results:
            logger.info("\n" + format_results_table(results))
        else:
            logger.info("No opportunities found")
        logger.info("\n" + format_stats_table(stats))

    # ------------------------------------------------------------------
    # Self-test
    # ------------------------------------------------------------------

    async def self_test(self) -> int:
        """
        Quote start<->native (and AERO when listed) on every option.

        Returns:
            0 if at least one quote succeeded, 1 otherwise
        """
        pairs: List[Tuple[Token, Token]] = []
        if self.native_token is not None:
            pairs += [
                (self.start_token, self.native_token),
                (self.native_token, self.start_token),
            ]
        extra = find_token(self.tokens, SELF_TEST_EXTRA_SYMBOL)
        if extra is not None:
            pairs += [(self.start_token, extra), (extra, self.start_token)]
        if not pairs:
            logger.error("Self-test needs the native token or AERO in the registry")
            return 1

        successes = 0
        for token_in, token_out in pairs:
            build = await build_hop_options(
                token_in,
                token_out,
                self.venues,
                self.fee_prefs,
                quote_symbol=self.start_token.symbol,
                native_symbol=self.settings.native_symbol,
            )
            amount_in = 10**token_in.decimals
            if not build.options:
                logger.warning(f"self-test {token_in.symbol}->{token_out.symbol}: no options")
            for option in build.options:
                ok, text = await self._self_test_quote(option, token_out, amount_in)
                successes += ok
                level = "ok" if ok else "FAIL"
                logger.info(
                    f"self-test {token_in.symbol}->{token_out.symbol} {option.label}: {level} {text}"
                )

        logger.info(f"Self-test finished: {successes} successful quotes")
        return 0 if successes else 1

    async def _self_test_quote(self, option, token_out: Token, amount_in: int) -> Tuple[bool, str]:
        try:
            outcome = await option.quote(amount_in)
        except Exception as e:
            return False, summarize_error(e)
        if isinstance(outcome, HopQuoteResult) and outcome.amount_out > 0:
            via = f" via {outcome.via}" if outcome.via else ""
            return True, f"{format_units(outcome.amount_out, token_out.decimals)}{via}"
        if isinstance(outcome, QuoteFailure):
            return False, outcome.reason
        venue = self.venues.get(option.venue_id)
        return False, venue.last_error(self.settings.verbose) if venue else "quote failed"

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    async def run_async(self) -> int:
        if self.settings.self_test:
            return await self.self_test()
        results, stats = await self.scan()
        self.report(results, stats)
        return 0

    def run(self) -> int:
        """
        Set up and execute the configured mode.

        Returns:
            Exit code

        Raises:
            TriScanError: Configuration, registry, input or connection errors
        """
        self.setup()
        return asyncio.run(self.run_async())

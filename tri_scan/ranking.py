"""
Ranking and reporting of simulation results.

Results with unknown gas are never silently treated as zero-cost: the
UnknownGasPolicy decides whether they rank alongside, after, or not at all
with gas-known results.
"""

from enum import Enum
from typing import Any, Dict, List, Sequence, Union

from tabulate import tabulate

from .exceptions import ConfigError
from .fixed_point import format_signed_units, format_units
from .types import SimResult, SimStats
from .utils import json_line


class UnknownGasPolicy(Enum):
    """How results with unknown gas cost are ranked."""

    INCLUDE = "include"
    KNOWN_FIRST = "known_first"
    EXCLUDE = "exclude"

    @classmethod
    def parse(cls, value: Union[str, "UnknownGasPolicy"]) -> "UnknownGasPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ConfigError(f"Unknown gas policy '{value}' (expected one of: {allowed})")


def rank_results(
    results: Sequence[SimResult],
    top_n: int,
    policy: UnknownGasPolicy = UnknownGasPolicy.INCLUDE,
) -> List[SimResult]:
    """
    Best results first by net profit.

    Sorting is stable, so ties keep simulation order. top_n <= 0 returns
    every ranked result.
    """
    candidates = [r for r in results if not r.failed]
    if policy is UnknownGasPolicy.EXCLUDE:
        candidates = [r for r in candidates if r.gas_known]

    if policy is UnknownGasPolicy.KNOWN_FIRST:
        ranked = sorted(candidates, key=lambda r: (not r.gas_known, -r.net_profit))
    else:
        ranked = sorted(candidates, key=lambda r: -r.net_profit)

    if top_n > 0:
        ranked = ranked[:top_n]
    return ranked


def _route_path(result: SimResult) -> str:
    return " -> ".join(
        [result.hops[0].token_in.symbol]
        + [f"[{hop.label}] {hop.token_out.symbol}" for hop in result.hops]
    )


def format_results_table(results: Sequence[SimResult], places: int = 6) -> str:
    """Console table of ranked results."""
    rows = []
    for rank, r in enumerate(results, start=1):
        decimals = r.route.tokens[0].decimals
        rows.append(
            [
                rank,
                _route_path(r),
                format_units(r.start_amount, decimals, places),
                format_units(r.final_amount, decimals, places),
                format_signed_units(r.gross_profit, decimals, places),
                format_units(r.gas_cost, decimals, places) if r.gas_known else "unknown",
                format_signed_units(r.net_profit, decimals, places),
            ]
        )
    return tabulate(
        rows,
        headers=["#", "Route", "In", "Out", "Gross", "Gas", "Net"],
        tablefmt="grid",
    )


def format_stats_table(stats: SimStats) -> str:
    """Two-column summary of the run statistics."""
    rows: List[List[Any]] = [
        ["Triangles considered", stats.triangles_considered],
        ["Skipped (no hop options)", stats.triangles_skipped_no_hop_options],
        ["Combos enumerated", stats.combos_enumerated],
        ["Quote attempts", stats.quote_attempts],
        ["Quote failures", stats.quote_failures],
        ["Expected rejections", stats.expected_rejections],
        ["Hop options min", "/".join(str(v) for v in stats.hop_options_min)],
        ["Hop options max", "/".join(str(v) for v in stats.hop_options_max)],
        ["Hop options avg", "/".join(f"{v:.2f}" for v in stats.hop_options_avg)],
    ]
    for venue_id, count in sorted(stats.errors_by_dex.items()):
        rows.append([f"Errors {venue_id}", count])
    if stats.stopped_early:
        rows.append(["Stopped early", stats.stop_reason])
    return tabulate(rows, tablefmt="simple")


def report_lines(results: Sequence[SimResult], stats: SimStats) -> List[str]:
    """JSON-lines records: one per opportunity, then the run stats."""
    lines = [json_line("opportunity", result_record(r)) for r in results]
    if not results:
        lines.append(json_line("no_opportunities", {"message": "no opportunities found"}))
    lines.append(json_line("stats", stats.to_dict()))
    return lines


def result_record(result: SimResult) -> Dict[str, Any]:
    record = result.to_dict()
    decimals = result.route.tokens[0].decimals
    record["net_profit_display"] = format_signed_units(result.net_profit, decimals)
    return record

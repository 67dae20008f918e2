"""
Unit tests for tri_scan/ranking.py
"""

import json
import unittest

from fakes import AERO, USDC, WETH, triangle

from tri_scan.exceptions import ConfigError
from tri_scan.ranking import (
    UnknownGasPolicy,
    format_results_table,
    format_stats_table,
    rank_results,
    report_lines,
)
from tri_scan.types import RouteHop, SimResult, SimStats

ROUTE = triangle(USDC, WETH, AERO)


def result(net, gas_known=True, failed=False, gas_cost=0, label="UNI:500"):
    start = 100_000000
    final = 0 if failed else start + net + gas_cost
    hops = tuple(
        RouteHop("uniswapv3", tin, tout, label) for tin, tout in ROUTE.hop_pairs()
    )
    return SimResult(
        route=ROUTE,
        hops=hops,
        start_amount=start,
        final_amount=final,
        gross_profit=final - start,
        gas_cost=gas_cost,
        gas_known=gas_known,
        net_profit=final - start - gas_cost,
        failed=failed,
        fail_reason="uniswapv3 THROW: boom" if failed else None,
    )


class TestRankResults(unittest.TestCase):
    """Test ordering, filtering and gas policies."""

    def test_sorted_by_net_profit(self):
        ranked = rank_results([result(1), result(5), result(-3)], top_n=10)
        self.assertEqual([r.net_profit for r in ranked], [5, 1, -3])

    def test_failed_results_excluded(self):
        ranked = rank_results([result(0, failed=True), result(2)], top_n=10)
        self.assertEqual(len(ranked), 1)
        self.assertFalse(ranked[0].failed)

    def test_top_n(self):
        results = [result(n) for n in range(10)]
        self.assertEqual([r.net_profit for r in rank_results(results, top_n=3)], [9, 8, 7])
        self.assertEqual(len(rank_results(results, top_n=0)), 10)

    def test_ties_keep_input_order(self):
        first = result(4, label="UNI:500")
        second = result(4, label="UNI:3000")
        ranked = rank_results([first, second], top_n=10)
        self.assertEqual([r.hops[0].label for r in ranked], ["UNI:500", "UNI:3000"])

    def test_policy_include(self):
        ranked = rank_results([result(1), result(9, gas_known=False)], 10)
        self.assertEqual([r.gas_known for r in ranked], [False, True])

    def test_policy_known_first(self):
        ranked = rank_results(
            [result(9, gas_known=False), result(1), result(3)],
            10,
            UnknownGasPolicy.KNOWN_FIRST,
        )
        self.assertEqual([(r.gas_known, r.net_profit) for r in ranked], [(True, 3), (True, 1), (False, 9)])

    def test_policy_exclude(self):
        ranked = rank_results([result(9, gas_known=False), result(1)], 10, UnknownGasPolicy.EXCLUDE)
        self.assertEqual([r.net_profit for r in ranked], [1])

    def test_parse_policy(self):
        self.assertIs(UnknownGasPolicy.parse("Exclude"), UnknownGasPolicy.EXCLUDE)
        self.assertIs(UnknownGasPolicy.parse(UnknownGasPolicy.INCLUDE), UnknownGasPolicy.INCLUDE)
        with self.assertRaises(ConfigError):
            UnknownGasPolicy.parse("zero")


class TestReporting(unittest.TestCase):
    """Test table and JSON-lines rendering."""

    def test_results_table(self):
        table = format_results_table([result(1_500000, gas_cost=250000), result(2, gas_known=False)])
        self.assertIn("USDC -> [UNI:500] WETH -> [UNI:500] AERO -> [UNI:500] USDC", table)
        self.assertIn("+1.500000", table)
        self.assertIn("0.250000", table)
        self.assertIn("unknown", table)

    def test_stats_table(self):
        stats = SimStats(
            triangles_considered=2,
            quote_attempts=9,
            errors_by_dex={"aerodrome": 1},
            stopped_early=True,
            stop_reason="quote budget",
        )
        table = format_stats_table(stats)
        self.assertIn("Quote attempts", table)
        self.assertIn("Errors aerodrome", table)
        self.assertIn("quote budget", table)

    def test_report_lines(self):
        lines = report_lines([result(7)], SimStats(quote_attempts=3))
        records = [json.loads(line) for line in lines]

        self.assertEqual([r["event"] for r in records], ["opportunity", "stats"])
        self.assertEqual(records[0]["route"], ROUTE.id)
        self.assertEqual(records[0]["net_profit"], 7)
        self.assertEqual(records[0]["net_profit_display"], "+0.000007")
        self.assertEqual(records[0]["hops"][1]["token_in"], "WETH")
        self.assertEqual(records[1]["quote_attempts"], 3)

    def test_report_without_results(self):
        records = [json.loads(line) for line in report_lines([], SimStats())]
        self.assertEqual([r["event"] for r in records], ["no_opportunities", "stats"])

    def test_large_amounts_stay_integers(self):
        big = 10**40
        record = json.loads(report_lines([result(big)], SimStats())[0])
        self.assertEqual(record["net_profit"], big)


if __name__ == "__main__":
    unittest.main()

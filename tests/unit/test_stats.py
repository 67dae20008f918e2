"""
Unit tests for tri_scan/stats.py
"""

import threading
import unittest

from tri_scan.stats import StatsAccumulator, classify_error_summary


class TestClassifyErrorSummary(unittest.TestCase):
    def test_buckets(self):
        self.assertEqual(classify_error_summary("TIMEOUT: quote call exceeded"), "timeouts")
        self.assertEqual(classify_error_summary("THROW: request timed out"), "timeouts")
        self.assertEqual(classify_error_summary("CALL_EXCEPTION: SPL"), "call_exceptions")
        self.assertEqual(classify_error_summary("execution reverted"), "call_exceptions")
        self.assertEqual(classify_error_summary("ZERO_OUTPUT: USDC->WETH"), "other")


class TestStatsAccumulator(unittest.TestCase):
    """Test the lock-guarded run statistics."""

    def setUp(self):
        self.stats = StatsAccumulator()

    def test_reserve_quote_respects_ceiling(self):
        granted = [self.stats.reserve_quote(3) for _ in range(5)]
        self.assertEqual(granted, [True, True, True, False, False])
        self.assertEqual(self.stats.snapshot().quote_attempts, 3)

    def test_reserve_quote_is_atomic_across_threads(self):
        granted = []
        lock = threading.Lock()

        def worker():
            for _ in range(200):
                ok = self.stats.reserve_quote(500)
                with lock:
                    granted.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sum(granted), 500)
        self.assertEqual(self.stats.snapshot().quote_attempts, 500)

    def test_option_count_statistics(self):
        self.stats.begin_triangle([2, 4, 1])
        self.stats.begin_triangle([4, 0, 3])
        snap = self.stats.snapshot()
        self.assertEqual(snap.triangles_considered, 2)
        self.assertEqual(snap.hop_options_min, [2, 0, 1])
        self.assertEqual(snap.hop_options_max, [4, 4, 3])
        self.assertEqual(snap.hop_options_avg, [3.0, 2.0, 2.0])

    def test_failure_tallies(self):
        self.stats.record_failure("uniswapv3", "hop1:USDC->WETH", "TIMEOUT: slow")
        self.stats.record_failure("uniswapv3", "hop1:USDC->WETH", "CALL_EXCEPTION: SPL")
        self.stats.record_failure("aerodrome", "hop3:AERO->USDC", "quote failed")
        snap = self.stats.snapshot()

        self.assertEqual(snap.quote_failures, 3)
        self.assertEqual(snap.errors_by_dex, {"uniswapv3": 2, "aerodrome": 1})
        self.assertEqual(snap.errors_by_hop, {"hop1:USDC->WETH": 2, "hop3:AERO->USDC": 1})
        self.assertEqual(
            snap.error_types_by_dex["uniswapv3"],
            {"timeouts": 1, "call_exceptions": 1, "other": 0},
        )

    def test_top_errors_distinct_and_capped(self):
        for i in range(8):
            self.stats.record_failure("uniswapv3", "hop1:A->B", f"error {i % 7}")
        self.stats.record_failure("uniswapv3", "hop1:A->B", "error 0")
        top = self.stats.snapshot().top_errors_by_dex["uniswapv3"]
        self.assertEqual(top, ["error 0", "error 1", "error 2", "error 3", "error 4"])

    def test_expected_rejection_not_tallied(self):
        self.stats.record_failure("aerodrome", "hop2:A->B", "STABLE_REVERT_EXPECTED: x", expected=True)
        snap = self.stats.snapshot()
        self.assertEqual(snap.expected_rejections, 1)
        self.assertEqual(snap.quote_failures, 0)
        self.assertEqual(snap.errors_by_dex, {})

    def test_expected_rejection_tallied_when_verbose(self):
        self.stats.record_failure(
            "aerodrome", "hop2:A->B", "STABLE_REVERT_EXPECTED: x", expected=True, verbose=True
        )
        snap = self.stats.snapshot()
        self.assertEqual(snap.expected_rejections, 1)
        self.assertEqual(snap.errors_by_dex, {"aerodrome": 1})

    def test_first_stop_reason_wins(self):
        self.stats.mark_stopped("quote budget")
        self.stats.mark_stopped("time budget")
        snap = self.stats.snapshot()
        self.assertTrue(snap.stopped_early)
        self.assertEqual(snap.stop_reason, "quote budget")

    def test_snapshot_is_a_copy(self):
        self.stats.record_failure("uniswapv3", "hop1:A->B", "x")
        snap = self.stats.snapshot()
        snap.errors_by_dex["uniswapv3"] = 99
        self.assertEqual(self.stats.snapshot().errors_by_dex["uniswapv3"], 1)

    def test_to_dict(self):
        self.stats.begin_triangle([1, 2, 3])
        data = self.stats.snapshot().to_dict()
        self.assertEqual(data["triangles_considered"], 1)
        self.assertEqual(data["hop_options_avg"], [1.0, 2.0, 3.0])
        self.assertIsNone(data["stop_reason"])


if __name__ == "__main__":
    unittest.main()

"""
Run statistics accumulator for the simulation engine.

Triangle workers share one accumulator; every mutation goes through the
lock so the quote counter check-and-increment stays atomic.
"""

import threading
from typing import Dict, List, Sequence

from .types import SimStats

MAX_TOP_ERRORS = 5

STOP_TIME_BUDGET = "time budget"
STOP_QUOTE_BUDGET = "quote budget"


def classify_error_summary(summary: str) -> str:
    """Bucket an error summary as timeouts, call_exceptions or other."""
    text = summary.upper()
    if "TIMEOUT" in text or "TIMED OUT" in text:
        return "timeouts"
    if "CALL_EXCEPTION" in text or "REVERT" in text:
        return "call_exceptions"
    return "other"


class StatsAccumulator:
    """
    Thread-safe mutable counterpart of SimStats.

    Call snapshot() for an immutable-by-convention SimStats copy with the
    per-hop option averages computed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._stats = SimStats()
        self._option_sums = [0, 0, 0]

    def begin_triangle(self, option_counts: Sequence[int]) -> None:
        """Count a triangle as considered and fold in its per-hop option counts."""
        with self._lock:
            s = self._stats
            first = s.triangles_considered == 0
            s.triangles_considered += 1
            for i, count in enumerate(option_counts[:3]):
                self._option_sums[i] += count
                if first:
                    s.hop_options_min[i] = count
                    s.hop_options_max[i] = count
                else:
                    s.hop_options_min[i] = min(s.hop_options_min[i], count)
                    s.hop_options_max[i] = max(s.hop_options_max[i], count)

    def skip_no_hop_options(self) -> None:
        with self._lock:
            self._stats.triangles_skipped_no_hop_options += 1

    def count_combo(self) -> None:
        with self._lock:
            self._stats.combos_enumerated += 1

    def reserve_quote(self, max_total_quotes: int) -> bool:
        """
        Claim one quote attempt if the run-wide ceiling allows it.

        Returns:
            True if the attempt was counted, False if the ceiling is reached
        """
        with self._lock:
            if self._stats.quote_attempts >= max_total_quotes:
                return False
            self._stats.quote_attempts += 1
            return True

    def quotes_exhausted(self, max_total_quotes: int) -> bool:
        with self._lock:
            return self._stats.quote_attempts >= max_total_quotes

    def record_failure(
        self,
        venue_id: str,
        hop_key: str,
        summary: str,
        expected: bool = False,
        verbose: bool = False,
    ) -> None:
        """
        Record a failed quote.

        Expected rejections only bump expected_rejections unless verbose is
        on, in which case they are tallied like any other failure as well.
        """
        with self._lock:
            s = self._stats
            if expected:
                s.expected_rejections += 1
                if not verbose:
                    return

            s.quote_failures += 1
            s.errors_by_dex[venue_id] = s.errors_by_dex.get(venue_id, 0) + 1
            s.errors_by_hop[hop_key] = s.errors_by_hop.get(hop_key, 0) + 1

            bucket = classify_error_summary(summary)
            types = s.error_types_by_dex.setdefault(
                venue_id, {"timeouts": 0, "call_exceptions": 0, "other": 0}
            )
            types[bucket] += 1

            top = s.top_errors_by_dex.setdefault(venue_id, [])
            if summary not in top and len(top) < MAX_TOP_ERRORS:
                top.append(summary)

    def mark_stopped(self, reason: str) -> None:
        """Flag the run as stopped early; the first reason recorded wins."""
        with self._lock:
            if not self._stats.stopped_early:
                self._stats.stopped_early = True
                self._stats.stop_reason = reason

    def snapshot(self) -> SimStats:
        with self._lock:
            s = self._stats
            n = s.triangles_considered
            avg: List[float] = [
                (total / n) if n else 0.0 for total in self._option_sums
            ]
            return SimStats(
                triangles_considered=s.triangles_considered,
                combos_enumerated=s.combos_enumerated,
                triangles_skipped_no_hop_options=s.triangles_skipped_no_hop_options,
                quote_attempts=s.quote_attempts,
                quote_failures=s.quote_failures,
                expected_rejections=s.expected_rejections,
                hop_options_min=list(s.hop_options_min),
                hop_options_max=list(s.hop_options_max),
                hop_options_avg=avg,
                errors_by_dex=dict(s.errors_by_dex),
                errors_by_hop=dict(s.errors_by_hop),
                top_errors_by_dex={k: list(v) for k, v in s.top_errors_by_dex.items()},
                error_types_by_dex=self._copy_types(s.error_types_by_dex),
                stopped_early=s.stopped_early,
                stop_reason=s.stop_reason,
            )

    @staticmethod
    def _copy_types(types: Dict[str, Dict[str, int]]) -> Dict[str, Dict[str, int]]:
        return {k: dict(v) for k, v in types.items()}

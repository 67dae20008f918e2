"""
DEX triangle route scanner.

Enumerates three-hop routes start -> mid1 -> mid2 -> start over a token
universe, quotes every hop-option combination across the configured DEX
venues under time and quote budgets, and ranks the routes by profit net
of estimated gas. Read-only: nothing is ever executed on chain.
"""

PROJECT_NAME = "dex-triangle-scanner"

from tri_scan.version import __version__
from tri_scan.exceptions import (
    ConfigError,
    ExpectedVenueRejection,
    InvalidDecimal,
    InvalidInput,
    RegistryError,
    TriScanError,
    VenueError,
)
from tri_scan.types import (
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
from tri_scan.simulate import SimulationOutput, SimulationParams, simulate_triangles
from tri_scan.triangles import generate_triangles

__all__ = [
    "PROJECT_NAME",
    "__version__",
    "ConfigError",
    "ExpectedVenueRejection",
    "InvalidDecimal",
    "InvalidInput",
    "RegistryError",
    "TriScanError",
    "VenueError",
    "HopOption",
    "HopQuoteResult",
    "QuoteFailure",
    "RouteCandidate",
    "RouteHop",
    "ScanBudgets",
    "SimResult",
    "SimStats",
    "Token",
    "TriangleWithHopOptions",
    "SimulationOutput",
    "SimulationParams",
    "simulate_triangles",
    "generate_triangles",
]

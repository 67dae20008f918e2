"""
Command line interface for the triangle route scanner.

Usage:
    python3 run_scan.py --tokens tokens.json
    python3 run_scan.py --config configs/base.yaml --amount 250 --top 10
    python3 run_scan.py --config configs/base.yaml --self-test
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from . import logging_config
from .exceptions import ConfigError, InvalidInput, TriScanError
from .config import load_settings
from .runner import ScanRunner
from .version import __version__


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _csv_ints(value: str) -> List[int]:
    try:
        return [int(part) for part in _csv(value)]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated integers: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scan DEX venues for triangular arbitrage routes (read-only)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan with defaults, RPC from BASE_RPC_URL
  python3 run_scan.py --tokens tokens.json

  # Smaller universe, tighter budgets
  python3 run_scan.py --tokens tokens.json --subset USDC,WETH,AERO,cbBTC \\
      --max-total-quotes 300 --time-budget-ms 15000

  # Check venue connectivity only
  python3 run_scan.py --tokens tokens.json --self-test
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--rpc", dest="rpc_url", help="RPC URL (default: $BASE_RPC_URL)")
    parser.add_argument("--tokens", dest="tokens_path", help="Token registry JSON")
    parser.add_argument("--fee-prefs", dest="fee_prefs_path", help="Per-pair fee tier preferences JSON")
    parser.add_argument("--stable-pairs", dest="stable_pairs_path", help="Stable pair overrides JSON")

    parser.add_argument("--start", dest="start_symbol", help="Start/quote token (default: USDC)")
    parser.add_argument("--native", dest="native_symbol", help="Gas token (default: WETH)")
    parser.add_argument("--connector", dest="connector_symbol", help="Connector for two-pool routes")
    parser.add_argument("--amount", help='Start amount as a decimal string (default: "100")')
    parser.add_argument("--min-profit", dest="min_profit", help="Minimum net profit in start token")
    parser.add_argument("--top", dest="top_n", type=int, help="Results to report (default: 20)")
    parser.add_argument("--max-triangles", type=int, help="Triangle cap (default: 200)")
    parser.add_argument("--subset", dest="token_subset", type=_csv, help="Comma-separated symbols")
    parser.add_argument("--dexes", type=_csv, help="Comma-separated venue ids")
    parser.add_argument("--fee-tiers", type=_csv_ints, help="Comma-separated Uniswap V3 fee tiers")

    parser.add_argument("--max-combos-per-triangle", type=int)
    parser.add_argument("--max-total-quotes", type=int)
    parser.add_argument("--time-budget-ms", type=int)
    parser.add_argument("--quote-concurrency", type=int)
    parser.add_argument("--option-concurrency", type=int)
    parser.add_argument("--cache-ttl-sec", type=float)
    parser.add_argument("--call-timeout-sec", type=float)
    parser.add_argument("--gas-price-wei", type=int, help="Override the node gas price")
    parser.add_argument(
        "--unknown-gas",
        dest="unknown_gas_policy",
        choices=["include", "known_first", "exclude"],
        help="Ranking of results with unknown gas cost (default: include)",
    )

    parser.add_argument("--verbose", action="store_true", default=None, help="Diagnostics mode")
    parser.add_argument("--trace-amounts", action="store_true", default=None)
    parser.add_argument("--self-test", action="store_true", default=None)
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Settings overrides from parsed flags; unset flags are dropped."""
    values = vars(args).copy()
    values.pop("config", None)
    return {k: v for k, v in values.items() if v is not None}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config, overrides_from_args(args))
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    if settings.verbose:
        logging_config.setup_debug()
    else:
        logging_config.setup()

    try:
        return ScanRunner(settings).run()
    except (ConfigError, InvalidInput) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except TriScanError as e:
        print(f"Scan failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nStopped by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())

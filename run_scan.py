#!/usr/bin/env python3
"""
DEX triangle route scanner CLI.

Usage:
    python3 run_scan.py --tokens tokens.json
    python3 run_scan.py --config configs/base.yaml --self-test
"""

import sys

from tri_scan.cli import main

if __name__ == "__main__":
    sys.exit(main())

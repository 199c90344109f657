#!/usr/bin/env python3
"""Entry point for the re-buy planner CLI (thin wrapper).

Usage::

    python scripts/run_planner.py show
    python scripts/run_planner.py execute 1 --cost 900
"""

from __future__ import annotations

import sys


def main() -> None:
    from cryptorecovery.hub.cli import main as cli_main

    sys.exit(cli_main(sys.argv[1:]))


if __name__ == "__main__":
    main()

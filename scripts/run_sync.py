#!/usr/bin/env python3
"""
Run one catalog sync in the foreground.

Downloads the feed, reconciles it against the store and prints the
summary. Exits 0 when the run completes, 1 otherwise.

Usage:
    # Full sync (create + update) over SSH
    python3 scripts/run_sync.py

    # Prices only through the WooCommerce REST API
    python3 scripts/run_sync.py --mode prices --method rest
"""

import argparse
import logging
import os
import sys

# Add project root to path for proper package imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from catalog_sync.common import load_settings, setup_logging
from catalog_sync.models import RunPhase
from catalog_sync.sync import RunCoordinator

logger = logging.getLogger("catalog_sync.cli")


def main():
    parser = argparse.ArgumentParser(description="Run one catalog sync")
    parser.add_argument("--mode", choices=["full", "prices"], default="full",
                        help="full = create + update, prices = update existing prices only")
    parser.add_argument("--method", choices=["ssh", "rest"],
                        help="Store backend (default from config)")
    parser.add_argument("--config", help="Settings YAML (default: config/sync.yaml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)
    settings = load_settings(args.config)

    coordinator = RunCoordinator(settings)
    coordinator.start(args.mode, args.method, background=False)

    state = coordinator.status(include_logs=False)
    print(f"\nPhase:   {state['phase']}")
    print(f"Created: {state['created']}")
    print(f"Updated: {state['updated']}")
    print(f"Skipped: {state['skipped']}")
    print(f"Errors:  {state['errors']}")

    sys.exit(0 if coordinator.phase == RunPhase.COMPLETE else 1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Catalog Sync Server

Serves the sync control API (start/stop/status, SSE progress stream).

Requirements:
    pip install -e .

Usage:
    # Serve on the default port (PORT env var or 3000)
    python3 sync_server.py

    # Custom config and verbose logging
    python3 sync_server.py --config config/sync.yaml --port 8080 --verbose
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from catalog_sync.common import load_settings, setup_logging
from catalog_sync.sync import RunCoordinator
from catalog_sync.web import create_app

logger = logging.getLogger("catalog_sync.server")


def main():
    parser = argparse.ArgumentParser(description="Serve the catalog sync control API")
    parser.add_argument("--config", help="Settings YAML (default: config/sync.yaml)")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, help="Port (default: PORT env var or 3000)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Warnings only")
    args = parser.parse_args()

    load_dotenv()
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        settings = load_settings(args.config)
    except FileNotFoundError as e:
        logger.error("%s", e)
        sys.exit(1)

    port = args.port or int(os.environ.get("PORT", 3000))
    app = create_app(RunCoordinator(settings))

    logger.info("Catalog sync running on port %d (default method: %s)", port, settings.default_method)
    if settings.default_method == "ssh":
        logger.info("SSH: %s:%d", settings.ssh.host or "<unset>", settings.ssh.port)
    app.run(host=args.host, port=port, threaded=True)


if __name__ == "__main__":
    main()

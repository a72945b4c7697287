"""Entry point for the ventwire MCP server."""

import argparse
import logging

from ventwire.database.session import init_database
from ventwire.logging_config import setup_logging
from ventwire.parsers.register_all import register_all_parsers

logger = logging.getLogger("ventwire")


def main() -> int:
    """Main entry point for the ventwire server."""
    setup_logging()

    parser = argparse.ArgumentParser(
        description="ventwire: MCP server for ventilator telemetry"
    )
    parser.add_argument(
        "--database",
        default=None,
        help="Path to database file (default: configured or ~/.ventwire/ventwire.db)",
    )
    args = parser.parse_args()

    try:
        register_all_parsers()
        init_database(args.database)
        logger.info("Database initialized successfully")

        from ventwire.server import server

        logger.info("Starting MCP server...")
        server.run()
        return 0

    except Exception as e:
        logger.error(f"Server failed to start: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

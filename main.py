#!/usr/bin/env python3
"""RouteKeeper Main Entry Point.

Features:
  - Load configuration (.env, config/settings.yaml, environment)
  - Early logging initialization
  - Typer CLI

Key CLI usage:
  python main.py init-db
  python main.py list --sort-by distance --direction desc
  python main.py import routes.csv --user alice
  python main.py web --port 8080

Common environment variables:
  DB_URL, DB_PATH, LOG_LEVEL, LOG_TO_STDOUT, WEB_HOST, PORT
"""

import sys
from typing import Optional

import typer
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=False)

from routekeeper.infrastructure.logging_config import LoggerConfig  # noqa: E402
from routekeeper.presentation.cli.commands import register_commands  # noqa: E402

LoggerConfig.initialize()
logger = LoggerConfig.get_logger("routekeeper.main")

app = typer.Typer(
    name="routekeeper",
    help="RouteKeeper - route storage with shared values and bulk import",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode=None,
)

register_commands(app)


def main(args: Optional[list] = None):
    """Programmatic entrypoint.

    Args:
        args: Optional list of command arguments. If None, uses sys.argv[1:]
    """
    if args is None:
        args = sys.argv[1:]

    logger.info(f"Entry point started with arguments: {args}")
    try:
        app(args=args, prog_name="routekeeper")
    except KeyboardInterrupt:
        print("\n🚫 Operation cancelled by user (Ctrl+C)")
        logger.warning("Operation cancelled by user (Ctrl+C)")
        sys.exit(0)


if __name__ == "__main__":
    main()

# main.py

"""Entry point for the pullstats harvester."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pullstats.config.logging_config import setup_logging
from pullstats.config.settings import Settings

logger = logging.getLogger("pullstats.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pullstats",
        description=(
            "Record pull counts of an organization's public "
            "container packages and chart their history."
        ),
    )
    parser.add_argument(
        "-p",
        "--profile",
        default="",
        dest="organization",
        help="Your organization name.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=str(Settings.OUTPUT_DIR),
        dest="output_dir",
        help="Destination folder for .csv (default: %(default)s).",
    )
    parser.add_argument(
        "-r",
        "--renders",
        default=str(Settings.RENDER_DIR),
        dest="render_dir",
        help="Destination folder for the graphs (default: %(default)s).",
    )
    parser.add_argument(
        "--no-render",
        action="store_false",
        default=True,
        dest="render",
        help="Only crawl and append history; skip charts.",
    )
    parser.add_argument(
        "--no-totals",
        action="store_false",
        default=True,
        dest="include_totals",
        help="Do not add a total-per-date trace to charts.",
    )
    parser.add_argument(
        "--report-only",
        action="store_true",
        default=False,
        dest="report_only",
        help="Rebuild charts from existing history without crawling.",
    )
    return parser


def main() -> None:
    """Parse arguments and run a harvest or a report pass."""
    parser = _build_parser()
    args = parser.parse_args()

    if not args.organization:
        print("Usage:")
        parser.print_help()
        sys.exit(1)

    log_file = setup_logging()
    logger.info("pullstats starting, log file: %s", log_file)

    from pullstats.cli.runner import run_harvest, run_report

    output_dir = Path(args.output_dir)
    render_dir = Path(args.render_dir)

    if args.report_only:
        exit_code = run_report(
            args.organization,
            output_dir,
            render_dir,
            include_totals=args.include_totals,
        )
    else:
        exit_code = asyncio.run(
            run_harvest(
                args.organization,
                output_dir,
                render_dir,
                render=args.render,
                include_totals=args.include_totals,
            )
        )
    logger.info("pullstats finished with exit code %d", exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

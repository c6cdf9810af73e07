#!/usr/bin/env python3
"""Compute the KPI for one contributor from an activity bundle

The bundle is a JSON or YAML file holding the user record and the raw tasks,
projects, time logs, comments and documents exported by the project
management product. Records are scoped to the user before scoring.
"""

import argparse
import json
import sys
from typing import List, Optional

from kpi_engine.config import Config
from kpi_engine.models.kpi import create_kpi_calculator
from kpi_engine.models.weights import DIMENSIONS
from kpi_engine.utils.bundle import BundleError, load_bundle
from kpi_engine.utils.logging import get_logger, setup_logging
from kpi_engine.utils.time_windows import DEFAULT_TIME_WINDOW, TimeWindowError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute a contributor KPI from an activity bundle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python compute_kpi.py --bundle data/alice.json                  # Last 30 days
  python compute_kpi.py --bundle data/alice.json --time-window ytd
  python compute_kpi.py --bundle data/alice.yaml --json           # Machine-readable output
  python compute_kpi.py --bundle data/alice.json -v               # Verbose output
        """,
    )
    parser.add_argument("--bundle", type=str, required=True, help="Path to the activity bundle (.json or .yaml)")
    parser.add_argument(
        "--time-window",
        type=str,
        default=None,
        help=f"Time window to score: 30days, 90days, ytd (default: config or {DEFAULT_TIME_WINDOW})",
    )
    parser.add_argument("--config", type=str, help="Path to config.yaml (role weight overrides)")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity: -v (INFO), -vv (DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (warnings and errors only)")
    parser.add_argument("--log-file", type=str, help="Override log file location")
    return parser


def load_config(config_path: Optional[str], out) -> Optional[Config]:
    """Load config.yaml; a missing default file means built-in weights"""
    try:
        return Config(config_path=config_path)
    except FileNotFoundError:
        if config_path:
            raise
        out.debug("No config.yaml found, using built-in role weights")
        return None


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.quiet or args.json:
        log_level = "WARNING"
    elif args.verbose >= 2:
        log_level = "DEBUG"
    else:
        log_level = "INFO"

    setup_logging(log_level=log_level, log_file=args.log_file, config_file="config/logging.yaml")
    out = get_logger("kpi_engine.cli")

    try:
        config = load_config(args.config, out)
        weight_table = config.role_weights if config else None
        time_window = args.time_window or (config.default_time_window if config else DEFAULT_TIME_WINDOW)
        bundle = load_bundle(args.bundle)
        calculator = create_kpi_calculator(
            bundle["user"],
            bundle["tasks"],
            bundle["projects"],
            bundle["time_logs"],
            bundle["comments"],
            bundle["documents"],
            time_window=time_window,
            weight_table=weight_table,
        )
    except (BundleError, TimeWindowError, FileNotFoundError, ValueError) as e:
        out.error(f"Error: {e}")
        return 1

    result = calculator.calculate_kpi()

    if args.json:
        print(json.dumps({"user_id": bundle["user"].get("id"), "time_window": time_window, **result.to_dict()}))
        return 0

    user = bundle["user"]
    out.section(f"KPI for {user.get('name') or user.get('id')}")
    out.info(f"Role: {user.get('role') or 'member'}", emoji="👤")
    out.info(f"Time window: {time_window}", emoji="📅")
    out.info("")
    for dimension in DIMENSIONS:
        out.info(f"{dimension.capitalize():<14} {getattr(result, dimension):>6.1f}", indent=2)
    out.info("")
    out.success(f"Overall: {result.overall:.1f} ({result.grade})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Entry point for `python -m ngstep` and the `ngstep` CLI script."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from ngstep import get_version
from ngstep.errors import UpgradeError
from ngstep.log_config import configure_logging
from ngstep.loops import UpgradeOrchestrator
from ngstep.settings import UpgradeSettings, parse_bool


def _bool_flag(value: str) -> bool:
    try:
        return parse_bool(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got: {parsed}")
    return parsed


def _positive_int(value: str) -> int:
    parsed = _non_negative_int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got: {parsed}")
    return parsed


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ngstep",
        description="Step Angular dependencies through major versions, committing after each step",
    )
    parser.add_argument(
        "--to-version",
        type=_non_negative_int,
        default=None,
        help="Target major version (default: NGSTEP_TO_VERSION or 12)",
    )
    parser.add_argument(
        "--verbose",
        type=_bool_flag,
        nargs="?",
        const=True,
        default=None,
        help="Attach external commands to the terminal instead of capturing their output",
    )
    parser.add_argument(
        "--start-after-install",
        type=_bool_flag,
        nargs="?",
        const=True,
        default=None,
        help="Run the project's start command once the upgrade has converged",
    )
    parser.add_argument("--project-root", type=Path, default=None, help="Project directory (default: cwd)")
    parser.add_argument(
        "--max-passes",
        type=_positive_int,
        default=None,
        help="Upper bound on convergence passes (default: distance to the target)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument(
        "--log-level",
        default="DEBUG",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    logger = logging.getLogger("ngstep")

    project_root = (args.project_root or Path.cwd()).resolve()
    try:
        settings = UpgradeSettings.from_env(project_root).with_overrides(
            to_version=args.to_version,
            verbose=args.verbose,
            start_after_install=args.start_after_install,
            max_passes=args.max_passes,
            project_root=str(project_root),
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    logger.debug(
        "Extracted options --verbose=%s --to-version=%d --start-after-install=%s",
        str(settings.verbose).lower(),
        settings.to_version,
        str(settings.start_after_install).lower(),
    )

    try:
        UpgradeOrchestrator(settings).run()
    except UpgradeError as exc:
        logger.error("Error running upgrade: %s", exc)
        return exc.exit_code
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

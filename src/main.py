# src/main.py - v1
"""CLI entry point: analyze, classify and completeness commands.

Usage:
    docintel analyze <file> [--force] [--quick] [--budget-ms N]
    docintel classify <file>
    docintel completeness <file>

Results are printed to stdout as JSON; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from docintel.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        _setup_logging(args.verbose)
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docintel",
        description=f"docintel v{__version__} - document intelligence",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", help="Summarize a document and extract insights",
    )
    p_analyze.add_argument("file", type=Path, help="Path to document")
    p_analyze.add_argument(
        "--force", action="store_true",
        help="Ignore a cached result",
    )
    p_analyze.add_argument(
        "--quick", action="store_true",
        help="Skip structured extraction",
    )
    p_analyze.add_argument(
        "--budget-ms", type=int, default=None,
        help="Overall time budget in milliseconds (default: from settings)",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- classify ---
    p_classify = subparsers.add_parser(
        "classify", help="Print a short document type label",
    )
    p_classify.add_argument("file", type=Path, help="Path to document")
    p_classify.set_defaults(func=_cmd_classify)

    # --- completeness ---
    p_complete = subparsers.add_parser(
        "completeness", help="Report unfilled form fields",
    )
    p_complete.add_argument("file", type=Path, help="Path to document")
    p_complete.set_defaults(func=_cmd_completeness)

    return parser


async def _cmd_analyze(args: argparse.Namespace) -> int:
    """Run the intelligence pipeline on one document."""
    from docintel.api.facade import get_intelligence

    if not _check_file(args.file):
        return 1
    if args.budget_ms is not None and args.budget_ms <= 0:
        logger.error("--budget-ms must be positive")
        return 1

    result = await get_intelligence(
        args.file, force_refresh=args.force, quick=args.quick, budget_ms=args.budget_ms,
    )
    _print_json(result.model_dump(mode="json"))
    return 0


async def _cmd_classify(args: argparse.Namespace) -> int:
    from docintel.api.facade import classify_document

    if not _check_file(args.file):
        return 1
    label = await classify_document(args.file)
    _print_json({"file": str(args.file), "document_type": label})
    return 0


async def _cmd_completeness(args: argparse.Namespace) -> int:
    from docintel.api.facade import check_completeness

    if not _check_file(args.file):
        return 1
    report = await check_completeness(args.file)
    _print_json(report.model_dump(mode="json"))
    return 0


def _check_file(path: Path) -> bool:
    if not path.is_file():
        logger.error("File not found: %s", path)
        return False
    return True


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage from .env settings."""
    from docintel.config.settings import load_settings
    from docintel.logging.logger import setup_logging_from_settings

    setup_logging_from_settings(load_settings(), verbose=verbose)


if __name__ == "__main__":
    sys.exit(main())

"""Command-line entry point. Prints JSON to stdout; logs go to stderr."""

import argparse
import json
import logging
import sys
from typing import Optional

from helpscope.core.config import get_settings
from helpscope.core.logging import configure_structlog
from helpscope.discovery import DiscoveryOptions, discover_clis
from helpscope.executor import CommandExecutor
from helpscope.introspection import CLIIntrospector
from helpscope.parser import HelpParser

logger = logging.getLogger(__name__)


def _emit(payload) -> None:
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")


def _cmd_parse(args: argparse.Namespace) -> int:
    try:
        if args.file and args.file != "-":
            with open(args.file, encoding="utf-8", errors="replace") as fh:
                text = fh.read()
        else:
            text = sys.stdin.read()
    except OSError as exc:
        print(f"helpscope: cannot read {args.file}: {exc}", file=sys.stderr)
        return 1

    _emit(HelpParser().parse(text).to_dict())
    return 0


def _cmd_introspect(args: argparse.Namespace) -> int:
    settings = get_settings()
    introspector = CLIIntrospector(
        CommandExecutor(args.program),
        cache_ttl=settings.structure_cache_ttl,
    )
    _emit(introspector.get_command_structure().to_dict())
    return 0


def _cmd_discover(args: argparse.Namespace) -> int:
    overrides = {
        "limit": args.limit,
        "min_score": args.min_score,
        "timeout": args.timeout,
        "max_concurrent": args.max_concurrent,
    }
    try:
        options = DiscoveryOptions(
            use_cache=not args.no_cache,
            **{k: v for k, v in overrides.items() if v is not None},
        )
    except ValueError as exc:
        print(f"helpscope: {exc}", file=sys.stderr)
        return 2

    def progress(done: int, total: int) -> None:
        logger.debug("Discovery progress %d/%d", done, total)

    _emit([cli.to_dict() for cli in discover_clis(options, on_progress=progress)])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="helpscope",
        description="Introspect command-line programs from their help text",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")
    subparsers = parser.add_subparsers(dest="action", required=True)

    parse_p = subparsers.add_parser("parse", help="Parse help text from a file or stdin")
    parse_p.add_argument("file", nargs="?", help="File to read (default: stdin)")
    parse_p.set_defaults(handler=_cmd_parse)

    introspect_p = subparsers.add_parser(
        "introspect", help="Probe a program and print its command structure"
    )
    introspect_p.add_argument("program", help="Program name or path")
    introspect_p.set_defaults(handler=_cmd_introspect)

    discover_p = subparsers.add_parser("discover", help="Rank CLIs found on PATH")
    discover_p.add_argument("--limit", type=int)
    discover_p.add_argument("--min-score", type=int)
    discover_p.add_argument("--timeout", type=float, help="Seconds per help probe")
    discover_p.add_argument("--max-concurrent", type=int)
    discover_p.add_argument("--no-cache", action="store_true", help="Ignore and skip the cache file")
    discover_p.set_defaults(handler=_cmd_discover)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_structlog(debug=args.debug or get_settings().debug)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())

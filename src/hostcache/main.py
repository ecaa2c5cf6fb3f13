from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional, TextIO

import yaml

from .config.config_parser import build_resolver, parse_config_file
from .config.logging_config import init_logging
from .errors import ResolverError
from .resolver import Resolver, set_resolver

logger = logging.getLogger("hostcache.main")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hostcache",
        description="Resolve host names and IP addresses through a shared cache",
    )
    parser.add_argument("tokens", nargs="*", metavar="TOKEN", help="Host name or IP address")
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--var",
        dest="vars",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Set a config variable (repeatable)",
    )
    parser.add_argument(
        "--one",
        action="store_true",
        help="Print only the first address of each result",
    )
    parser.add_argument(
        "--this-host",
        action="store_true",
        help="Also resolve the local machine's host name",
    )
    parser.add_argument("--format", choices=("yaml", "json"), default="yaml")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def _emit(result: Any, fmt: str, out: TextIO) -> None:
    if fmt == "json":
        out.write(json.dumps(result, indent=2) + "\n")
    else:
        out.write(yaml.safe_dump(result, sort_keys=False, explicit_start=True))


def _lookup(resolver: Resolver, token: Optional[str], one: bool) -> Any:
    if token is None:
        entry = resolver.this_host()
        return {"query": entry.name, "entry": entry.to_dict()}
    if one:
        return {"query": token, "address": str(resolver.resolve_one(token))}
    return {"query": token, "entry": resolver.resolve(token).to_dict()}


def main(
    argv: Optional[List[str]] = None,
    *,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """
    Command line entrypoint.

    Inputs:
      - argv: Argument list (defaults to sys.argv[1:]).
      - stdout/stderr: Optional streams, used by tests.

    Outputs:
      - int exit code: 0 on success, 1 when any lookup failed, 2 for usage or
        configuration errors.

    Example:
      $ hostcache localhost 127.0.0.1 --format json
    """
    out = stdout or sys.stdout
    err = stderr or sys.stderr

    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.tokens and not args.this_host:
        parser.print_usage(err)
        err.write("hostcache: error: give at least one TOKEN or --this-host\n")
        return 2

    cfg: dict = {}
    if args.config:
        try:
            cfg = parse_config_file(args.config, cli_vars=args.vars)
        except (OSError, ValueError) as exc:
            err.write(f"error: {exc}\n")
            return 2

    log_cfg = dict(cfg.get("logging") or {})
    if args.verbose:
        log_cfg["level"] = "debug"
    init_logging(log_cfg)
    if args.config:
        logger.info("Loaded config from %s", args.config)

    try:
        resolver = build_resolver(cfg)
    except (KeyError, TypeError, ValueError, ImportError) as exc:
        err.write(f"error: {exc}\n")
        return 2
    set_resolver(resolver)

    queries: List[Optional[str]] = list(args.tokens)
    if args.this_host:
        queries.append(None)

    failed = False
    for token in queries:
        try:
            result = _lookup(resolver, token, args.one)
        except ResolverError as exc:
            failed = True
            err.write(f"error: {type(exc).__name__}: {exc}\n")
            continue
        _emit(result, args.format, out)

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover

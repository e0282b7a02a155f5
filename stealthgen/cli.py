# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
stealthgen command line.

Run from the repo root (next to node_modules/):

    python -m stealthgen             regenerate ext/stealth/evasions.js + stealth.go
    python -m stealthgen --check     exit 1 if the generated files are stale

Re-run whenever the plugin is updated:

    npm update puppeteer-extra-plugin-stealth && python -m stealthgen
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import pipeline
from .config import Settings, load_settings
from .gen_types import BuildResult, StealthGenError

logger = logging.getLogger("stealthgen.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stealthgen",
        description="Bundle puppeteer-extra-plugin-stealth evasions into one script embedded by a Go file.",
    )
    parser.add_argument("--root", help="Project root holding node_modules/ (default: current directory)")
    parser.add_argument("--evasion-dir", help="Evasion directory, relative to --root unless absolute")
    parser.add_argument("--out-dir", help="Output directory, relative to --root unless absolute")
    parser.add_argument("--scan-mode", choices=["naive", "lexical"],
                        help="naive: count every brace; lexical: ignore braces in strings and comments")
    parser.add_argument("--workers", type=int, help="Threads used to read and extract units")
    parser.add_argument("--check", action="store_true",
                        help="Do not write; exit 1 if the artifacts on disk are missing or stale")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    return parser


_log_handler: Optional[logging.Handler] = None


def _configure_logging(args: argparse.Namespace, default_level: str = "WARNING"):
    global _log_handler
    if args.quiet:
        level = logging.ERROR
    elif args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, default_level)

    # One handler per process, rebound to the current stderr on every run.
    root = logging.getLogger("stealthgen")
    if _log_handler is not None:
        root.removeHandler(_log_handler)
    _log_handler = logging.StreamHandler(sys.stderr)
    _log_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root.addHandler(_log_handler)
    root.setLevel(level)


def _report_payloads(result: BuildResult):
    for p in result.payloads:
        suffix = ", with utils" if p.needs_shared else ""
        print(f'  [OK] {p.name}  (params: "{p.parameters}"{suffix})')


def _run_check(cfg: Settings, args: argparse.Namespace) -> int:
    result, stale = pipeline.check(cfg)
    if stale:
        for path in stale:
            print(f"[STALE] {path}", file=sys.stderr)
        print(f"Generated files are out of date. Run: {cfg.REGEN_COMMAND}", file=sys.stderr)
        return 1
    if not args.quiet:
        print(f"[OK] {cfg.js_path()} and {cfg.go_path()} are up to date "
              f"({len(result.payloads)} evasions)")
    return 0


def _run_generate(cfg: Settings, args: argparse.Namespace) -> int:
    result, (js_path, go_path) = pipeline.generate(cfg)
    if not args.quiet:
        _report_payloads(result)
        print(f"\n[OK] Wrote {js_path}  ({result.script.size_kb:.1f} KB, {len(result.payloads)} evasions)")
        print(f"[OK] Wrote {go_path}")
        print("Done.")
    return 0


def run(args: argparse.Namespace) -> int:
    _configure_logging(args)
    try:
        cfg = load_settings(
            PROJECT_ROOT=args.root,
            EVASION_DIR=args.evasion_dir,
            OUT_DIR=args.out_dir,
            SCAN_MODE=args.scan_mode,
            MAX_WORKERS=args.workers,
        )
    except StealthGenError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return e.exit_code
    if not args.verbose and not args.quiet:
        _configure_logging(args, cfg.LOG_LEVEL)

    logger.debug(f"Evasion dir: {cfg.evasion_path()}, output dir: {cfg.out_path()}, mode: {cfg.SCAN_MODE}")
    try:
        if args.check:
            return _run_check(cfg, args)
        return _run_generate(cfg, args)
    except StealthGenError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return e.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())

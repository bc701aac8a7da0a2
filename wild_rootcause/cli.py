"""wild_rootcause/cli.py — command-line driver.

Usage examples
--------------
    # Reason-bucketed summary as JSON
    wild-rootcause summary snapshot.json --base-dir ~/src/project

    # Per-root report in the terminal, top 20 roots by score
    wild-rootcause report snapshot.json -f text --limit 20

    # Everything as one HTML page, plus the macro location list
    wild-rootcause all snapshot.json -f html -o report.html --macro-out macros.json

Exit codes
----------
    0   Success.
    2   Infrastructure failure (bad configuration, unreadable snapshot).
    3   The snapshot violates the root / indirect classification.

The module doubles as ``python -m wild_rootcause`` via the companion
``__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import io
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from . import __version__, package_info
from .aggregators import MacroInfoAggregator
from .config import OUTPUT_FORMATS, ReportConfig
from .errors import ConfigError, InconsistentClassification, SnapshotError
from .perf_stats import PerformanceStats, Phase
from .render import HtmlRenderer, make_text_renderer, render_json
from .report import RCMapEntry, RootCauseReport, build_rc_map, build_root_cause_report
from .snapshot import load_snapshot
from .summary import WildPointerSummary, summarize

_log = logging.getLogger("wild_rootcause")

EXIT_OK: int = 0
EXIT_INFRA: int = 2
EXIT_INCONSISTENT: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``wild_rootcause`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("wild_rootcause")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _open_output(dest: Optional[str]) -> TextIO:
    """``None`` or ``"-"`` → ``sys.stdout``; otherwise open *dest* for writing."""
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _render_page(
    args: argparse.Namespace,
    cfg: ReportConfig,
    summary: Optional[WildPointerSummary],
    report: Optional[RootCauseReport],
    rc_map: Optional[List[RCMapEntry]],
) -> str:
    """Render the selected parts to a string before the output is opened.

    An unreadable ``--html-template`` therefore leaves an existing output
    file untouched.
    """
    if cfg.output_format == "json":
        return render_json(summary, report, rc_map) + "\n"
    if cfg.output_format == "html":
        return HtmlRenderer(cfg.html_template).render(summary, report, rc_map)

    colour = cfg.colour
    if colour is None:
        colour = args.output in (None, "-") and sys.stdout.isatty()
    buf = io.StringIO()
    renderer = make_text_renderer(buf, colour)
    if summary is not None:
        renderer.render_summary(summary)
    if report is not None:
        renderer.render_report(report, limit=args.limit)
    if rc_map is not None:
        renderer.render_rc_map(rc_map)
    return buf.getvalue()


def _config_from_args(args: argparse.Namespace) -> ReportConfig:
    cfg = ReportConfig.from_env()
    if args.base_dir:
        cfg.base_dirs = tuple(args.base_dir)
    if args.generated:
        cfg.generated_globs = tuple(args.generated)
    if args.format:
        cfg.output_format = args.format
    if args.colour is not None:
        cfg.colour = args.colour
    if args.html_template:
        cfg.html_template = args.html_template
    if args.macro_out:
        cfg.macro_out = args.macro_out
    if args.strict:
        cfg.strict = True
    return cfg


# ===========================================================================
# Sub-command implementation
# ===========================================================================

def cmd_run(args: argparse.Namespace) -> int:
    """Load the snapshot once and emit the parts selected by the command."""
    try:
        cfg = _config_from_args(args)
        for warning in cfg.validate():
            _log.warning("ReportConfig: %s", warning)
    except ConfigError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    perf = PerformanceStats()
    perf.start(Phase.TOTAL)
    try:
        snap = load_snapshot(args.snapshot, cfg.classifier(), perf=perf)
    except (SnapshotError, OSError) as exc:
        _log.error("Cannot load snapshot: %s", exc)
        return EXIT_INFRA
    except InconsistentClassification as exc:
        _log.error("Inconsistent snapshot: %s", exc)
        return EXIT_INCONSISTENT

    index = snap.index
    if cfg.strict:
        problems = index.check_invariants()
        for problem in problems:
            _log.error("Invariant violated: %s", problem)
        if problems:
            return EXIT_INCONSISTENT

    want_summary = args.command in ("summary", "all")
    want_report = args.command in ("report", "all") or cfg.macro_out is not None
    want_rc_map = args.command in ("rcmap", "all")

    summary = summarize(index) if want_summary else None
    report = build_root_cause_report(index) if want_report else None
    rc_map = build_rc_map(index) if want_rc_map else None
    # --macro-out may need the report even when it is not displayed.
    shown_report = report if args.command in ("report", "all") else None

    try:
        page = _render_page(args, cfg, summary, shown_report, rc_map)
    except OSError as exc:
        _log.error("Cannot read HTML template: %s", exc)
        return EXIT_INFRA

    try:
        stream = _open_output(args.output)
        try:
            stream.write(page)
        finally:
            if stream is not sys.stdout:
                stream.close()

        if cfg.macro_out is not None and report is not None:
            macros = MacroInfoAggregator()
            macros.add_macro_info(report.macro_locations)
            macros.dump_stats(cfg.macro_out)
        if args.cast_out:
            snap.casts.dump_stats(args.cast_out)
        if args.void_out:
            snap.voids.dump_stats(args.void_out)

        perf.stop(Phase.TOTAL)
        if args.perf_stats:
            fh = _open_output(args.perf_stats)
            try:
                perf.print_stats(fh, json_format=args.perf_stats.endswith(".json"))
            finally:
                if fh is not sys.stdout:
                    fh.close()
    except OSError as exc:
        _log.error("Cannot write output: %s", exc)
        return EXIT_INFRA

    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="wild-rootcause",
        description=(
            "Explain WILD pointers: attribute every WILD qualifier variable\n"
            "to the root causes that force it and score each root's impact."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              wild-rootcause summary snapshot.json --base-dir src/
              wild-rootcause report  snapshot.json -f text --limit 20
              wild-rootcause all     snapshot.json -f html -o report.html
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_common_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("snapshot", metavar="SNAPSHOT",
                       help="Solver snapshot (JSON).")
        p.add_argument("-b", "--base-dir", action="append", metavar="DIR",
                       help="Project directory; repeatable.  Files outside "
                            "every base directory are not in source.")
        p.add_argument("--generated", action="append", metavar="GLOB",
                       help="Glob of generated files to treat as not in source.")
        p.add_argument("-o", "--output", default=None, metavar="FILE",
                       help='Output file ("-" or omit for stdout).')
        p.add_argument("-f", "--format", choices=OUTPUT_FORMATS, default=None,
                       help="Output format (default: json).")
        colour = p.add_mutually_exclusive_group()
        colour.add_argument("--color", dest="colour", action="store_const",
                            const=True, default=None, help="Force coloured text.")
        colour.add_argument("--no-color", dest="colour", action="store_const",
                            const=False, help="Disable coloured text.")
        p.add_argument("--html-template", metavar="FILE", default=None,
                       help="Jinja2 template for HTML output.")
        p.add_argument("--limit", type=int, default=None, metavar="N",
                       help="Only show the N highest-scoring roots in text output.")
        p.add_argument("--macro-out", metavar="FILE", default=None,
                       help="Write the macro-hidden root locations as JSON.")
        p.add_argument("--cast-out", metavar="FILE", default=None,
                       help="Write the invalid cast table as JSON.")
        p.add_argument("--void-out", metavar="FILE", default=None,
                       help="Write the void declaration table as JSON.")
        p.add_argument("--perf-stats", metavar="FILE", default=None,
                       help="Write timing and rewrite statistics (JSON if *.json).")
        p.add_argument("--strict", action="store_true",
                       help="Check index invariants after loading.")
        p.set_defaults(func=cmd_run)

    for name, help_text in (
        ("summary", "Per-reason WILD pointer summary."),
        ("report", "Per-root report with scores and notes."),
        ("rcmap", "Explaining roots of every WILD atom."),
        ("all", "Summary, report and RC map together."),
    ):
        _add_common_args(subparsers.add_parser(name, help=help_text))

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    _log.debug("Package info: %s", package_info())

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())

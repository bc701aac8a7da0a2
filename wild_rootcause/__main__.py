"""
wild_rootcause/__main__.py
==========================

Entry point for ``python -m wild_rootcause``.

Usage
-----
    python -m wild_rootcause <command> [options] SNAPSHOT

Commands
--------
    summary     Per-reason WILD pointer summary
    report      Per-root report with impact scores and notes
    rcmap       The roots that explain every WILD atom
    all         All three of the above

See :mod:`wild_rootcause.cli` for the options and exit codes.
"""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())

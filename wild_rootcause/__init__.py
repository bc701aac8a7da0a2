"""
wild_rootcause — Root-Cause Attribution for WILD Pointers
==========================================================

Explains *why* pointers end up WILD after checked-pointer inference.
Every WILD qualifier variable (an *atom*) is either a **root cause**,
forced WILD directly by something the solver saw (an unsafe cast, a
variadic call, a macro expansion, ...), or **indirect**, WILD only
because WILD-ness flowed into it from one or more roots.

The package keeps a bidirectional index between the two, scores each
root by the share of indirect WILD-ness it explains and renders the
result as JSON, terminal text or HTML.

Core modules
------------
errors
    Exception hierarchy.
locations
    Source locations and the in-source file classifier.
attribution
    The root / indirect attribution index.
scoring
    Partition-of-unity impact scores.
summary
    Reason-bucketed WILD pointer summary.
report
    Per-root report, macro location list and RC map.
aggregators
    Cast, void and macro side tables.
perf_stats
    Phase timers and rewrite counters.
config
    Environment-backed report settings.
snapshot
    Loads a solver snapshot into an index.
render
    JSON, terminal and HTML renderers.

Quick start
-----------
>>> from wild_rootcause import AttributionIndex, RootDiagnostic, atom_score
>>> idx = AttributionIndex()
>>> idx.record_root(1, RootDiagnostic("Cast"))
>>> idx.record_propagation(1, 2)
True
>>> atom_score(idx, idx.forward_effects_of(1))
1.0

Package layout
--------------
::

    wild_rootcause/
    ├── __init__.py            ← this file
    ├── __main__.py
    ├── cli.py
    ├── errors.py
    ├── locations.py
    ├── attribution.py
    ├── scoring.py
    ├── summary.py
    ├── report.py
    ├── aggregators.py
    ├── perf_stats.py
    ├── config.py
    ├── snapshot.py
    └── render.py
"""

from __future__ import annotations

import importlib
import sys
from typing import TYPE_CHECKING, Any, Dict, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.2.0"
__author__ = "wild-rootcause contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated incrementally below

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
#
# Every module is required; a failed import is fatal.
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "RootCauseError",
        "InconsistentClassification",
        "SnapshotError",
        "ConfigError",
    ],
    "locations": [
        "DEFAULT_SYSTEM_PREFIXES",
        "SourceLocation",
        "FileClassifier",
        "valid_or_none",
        "location_json",
        "classifier_from_dirs",
    ],
    "attribution": [
        "MACRO_REASON",
        "ReasonNote",
        "RootDiagnostic",
        "AttributionIndex",
    ],
    "scoring": [
        "atom_score",
        "pointer_score",
    ],
    "summary": [
        "ReasonBucket",
        "WildPointerSummary",
        "summarize",
    ],
    "report": [
        "SubReason",
        "RootCauseEntry",
        "RootCauseReport",
        "build_root_cause_report",
        "RCMapEntry",
        "build_rc_map",
    ],
    "aggregators": [
        "CastInfoAggregator",
        "VoidKind",
        "VoidInfoAggregator",
        "MacroInfoAggregator",
    ],
    "perf_stats": [
        "Phase",
        "Counter",
        "PerformanceStats",
    ],
    "config": [
        "ReportConfig",
    ],
    "snapshot": [
        "Snapshot",
        "load_snapshot",
    ],
    "render": [
        "render_json",
        "make_text_renderer",
        "HtmlRenderer",
    ],
}

# ---------------------------------------------------------------------------
# Import helper
# ---------------------------------------------------------------------------

def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace.

    Parameters
    ----------
    module_rel_name:
        Module name relative to this package (e.g. ``"attribution"``).
    names:
        Public symbols to re-export.
    """
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"wild_rootcause: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"wild_rootcause.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    # wild_rootcause.attribution.AttributionIndex works as well as
    # wild_rootcause.AttributionIndex
    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)

# ---------------------------------------------------------------------------
# Eagerly import everything at package load time
# ---------------------------------------------------------------------------

for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

# ---------------------------------------------------------------------------
# Package-level utilities
# ---------------------------------------------------------------------------

def list_submodules() -> List[str]:
    """Return the names of all re-exporting submodules."""
    return sorted(_CORE_MODULES.keys())


def package_info() -> Dict[str, Any]:
    """Return a dict of metadata about the installed package.

    Handy for ``-vv`` logging and bug reports.  Every submodule is imported
    when the package loads, so ``loaded_submodules`` always matches
    :func:`list_submodules`.
    """
    loaded = [
        mod_name for mod_name in list_submodules()
        if f"{__name__}.{mod_name}" in sys.modules
    ]

    return {
        "package": __name__,
        "version": __version__,
        "python": sys.version,
        "loaded_submodules": loaded,
        "all_exports": list(__all__),
    }


__all__ += ["list_submodules", "package_info", "__version__"]

# ---------------------------------------------------------------------------
# Static re-declarations for type checkers and IDEs
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        RootCauseError as RootCauseError,
        InconsistentClassification as InconsistentClassification,
        SnapshotError as SnapshotError,
        ConfigError as ConfigError,
    )
    from .locations import (
        DEFAULT_SYSTEM_PREFIXES as DEFAULT_SYSTEM_PREFIXES,
        SourceLocation as SourceLocation,
        FileClassifier as FileClassifier,
        valid_or_none as valid_or_none,
        location_json as location_json,
        classifier_from_dirs as classifier_from_dirs,
    )
    from .attribution import (
        MACRO_REASON as MACRO_REASON,
        ReasonNote as ReasonNote,
        RootDiagnostic as RootDiagnostic,
        AttributionIndex as AttributionIndex,
    )
    from .scoring import atom_score as atom_score, pointer_score as pointer_score
    from .summary import (
        ReasonBucket as ReasonBucket,
        WildPointerSummary as WildPointerSummary,
        summarize as summarize,
    )
    from .report import (
        SubReason as SubReason,
        RootCauseEntry as RootCauseEntry,
        RootCauseReport as RootCauseReport,
        build_root_cause_report as build_root_cause_report,
        RCMapEntry as RCMapEntry,
        build_rc_map as build_rc_map,
    )
    from .aggregators import (
        CastInfoAggregator as CastInfoAggregator,
        VoidKind as VoidKind,
        VoidInfoAggregator as VoidInfoAggregator,
        MacroInfoAggregator as MacroInfoAggregator,
    )
    from .perf_stats import (
        Phase as Phase,
        Counter as Counter,
        PerformanceStats as PerformanceStats,
    )
    from .config import ReportConfig as ReportConfig
    from .snapshot import Snapshot as Snapshot, load_snapshot as load_snapshot
    from .render import (
        render_json as render_json,
        make_text_renderer as make_text_renderer,
        HtmlRenderer as HtmlRenderer,
    )

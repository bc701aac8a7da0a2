"""
wild_rootcause/snapshot.py
══════════════════════════

Writer phase: build an :class:`~wild_rootcause.attribution.AttributionIndex`
from the solver's JSON snapshot.

Snapshot layout::

    {
      "atoms":       [{"id": 2, "name": "q_2",
                       "location": {"file": "a.c", "line": 4,
                                    "colstart": 3, "colend": 9}}],
      "roots":       [{"atom": 1, "reason": "Cast", "location": {...},
                       "notes": [{"reason": "...", "location": {...}}]}],
      "indirect":    [7],
      "propagation": [[1, 2], [1, 3]],
      "pointers":    [{"id": "main:p", "atoms": [1, 2]}],
      "casts":       [{"dst": "int *", "src": "char *", "location": {...}}],
      "voids":       [{"name": "buf", "kind": "Local", "generic": false,
                       "location": {...}}],
      "rewrite_stats": {"NumWildCasts": 3}
    }

Only ``roots`` is required.  Records are applied in a fixed order:
names and locations, roots, propagation edges, bare indirect atoms,
pointer membership, in-source classification.  The index invariants
therefore hold whatever the order of keys in the file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .aggregators import CastInfoAggregator, VoidInfoAggregator, VoidKind
from .attribution import AttributionIndex, ReasonNote, RootDiagnostic
from .errors import SnapshotError
from .locations import SourceLocation
from .perf_stats import PerformanceStats

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """A populated index plus the side data carried by the same snapshot."""
    index: AttributionIndex
    casts: CastInfoAggregator = field(default_factory=CastInfoAggregator)
    voids: VoidInfoAggregator = field(default_factory=VoidInfoAggregator)
    perf: PerformanceStats = field(default_factory=PerformanceStats)


# ─────────────────────────────────────────────────────────────────────────
#  Field helpers
# ─────────────────────────────────────────────────────────────────────────

def _list(doc: Mapping[str, Any], key: str, required: bool = False) -> List[Any]:
    if key not in doc:
        if required:
            raise SnapshotError("missing required key", key)
        return []
    value = doc[key]
    if not isinstance(value, list):
        raise SnapshotError(f"expected a list, got {type(value).__name__}", key)
    return value


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"expected an integer atom id, got {value!r}", where)
    return value


def _location(raw: Any, where: str) -> Optional[SourceLocation]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise SnapshotError(f"expected a location object, got {raw!r}", where)
    try:
        return SourceLocation.from_dict(raw)
    except (TypeError, ValueError) as exc:
        raise SnapshotError(f"bad location: {exc}", where) from exc


def _record(raw: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise SnapshotError(f"expected an object, got {raw!r}", where)
    return raw


# ─────────────────────────────────────────────────────────────────────────
#  Loader
# ─────────────────────────────────────────────────────────────────────────

def read_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"invalid JSON: {exc}", str(p)) from exc
    if not isinstance(doc, dict):
        raise SnapshotError("top level must be an object", str(p))
    return doc


def load_snapshot(
    source: Union[str, Path, Mapping[str, Any]],
    file_classifier: Callable[[str], bool],
    index: Optional[AttributionIndex] = None,
    perf: Optional[PerformanceStats] = None,
) -> Snapshot:
    """
    Populate *index* (a fresh one by default) from *source*.

    *source* is either a path to a JSON file or an already-decoded
    mapping.  Raises :class:`SnapshotError` for malformed input and
    :class:`~wild_rootcause.errors.InconsistentClassification` if the
    snapshot classifies an Atom both as root and indirect.
    """
    doc = source if isinstance(source, Mapping) else read_snapshot(source)
    if index is None:
        index = AttributionIndex()
    snap = Snapshot(index=index, perf=perf if perf is not None else PerformanceStats())

    locations: Dict[int, Optional[SourceLocation]] = {}
    for i, raw in enumerate(_list(doc, "atoms")):
        where = f"atoms[{i}]"
        rec = _record(raw, where)
        atom = _int(rec.get("id"), where + ".id")
        if "name" in rec:
            index.set_name(atom, str(rec["name"]))
        loc = _location(rec.get("location"), where + ".location")
        if loc is not None:
            locations[atom] = loc

    for i, raw in enumerate(_list(doc, "roots", required=True)):
        where = f"roots[{i}]"
        rec = _record(raw, where)
        atom = _int(rec.get("atom"), where + ".atom")
        reason = rec.get("reason")
        if not isinstance(reason, str) or not reason:
            raise SnapshotError("root needs a non-empty reason", where + ".reason")
        loc = _location(rec.get("location"), where + ".location")
        notes = []
        for j, note in enumerate(_list(rec, "notes")):
            nwhere = f"{where}.notes[{j}]"
            note = _record(note, nwhere)
            notes.append(
                ReasonNote(str(note.get("reason", "")),
                           _location(note.get("location"), nwhere + ".location"))
            )
        index.record_root(atom, RootDiagnostic(reason, loc, tuple(notes)))
        if "name" in rec:
            index.set_name(atom, str(rec["name"]))
        # An explicit atom location wins over the diagnostic's.
        locations.setdefault(atom, loc)

    ignored = 0
    for i, raw in enumerate(_list(doc, "propagation")):
        where = f"propagation[{i}]"
        if not isinstance(raw, list) or len(raw) != 2:
            raise SnapshotError("expected a [root, affected] pair", where)
        root = _int(raw[0], where + "[0]")
        affected = _int(raw[1], where + "[1]")
        if not index.record_propagation(root, affected):
            ignored += 1
    if ignored:
        logger.debug("Ignored %d self or root-to-root propagation edges", ignored)

    for i, raw in enumerate(_list(doc, "indirect")):
        index.record_indirect(_int(raw, f"indirect[{i}]"))

    pointers = _list(doc, "pointers")
    for i, raw in enumerate(pointers):
        where = f"pointers[{i}]"
        rec = _record(raw, where)
        if "id" not in rec:
            raise SnapshotError("pointer variable needs an id", where)
        pvar = rec["id"]
        if isinstance(pvar, list):
            pvar = tuple(pvar)
        elif isinstance(pvar, dict):
            raise SnapshotError("pointer variable id must be a scalar or list", where + ".id")
        for j, atom in enumerate(_list(rec, "atoms")):
            index.record_pointer_membership(_int(atom, f"{where}.atoms[{j}]"), pvar)
    if pointers:
        index.lift_pointer_relations()

    for atom in sorted(index.roots | index.indirect):
        index.classify_in_source(atom, locations.get(atom), file_classifier)
    for atom, loc in locations.items():
        if index.location_of(atom) is None:
            index.record_location(atom, loc)

    _load_side_data(doc, snap)

    stats = index.stats()
    logger.info(
        "Loaded snapshot: %d roots (%d in source), %d indirect (%d in source), %d edges",
        stats["roots"], stats["roots_in_source"], stats["indirect"],
        stats["indirect_in_source"], stats["edges"],
    )
    return snap


def _load_side_data(doc: Mapping[str, Any], snap: Snapshot) -> None:
    for i, raw in enumerate(_list(doc, "casts")):
        where = f"casts[{i}]"
        rec = _record(raw, where)
        loc = _location(rec.get("location"), where + ".location") or SourceLocation()
        snap.casts.add_cast_info(str(rec.get("dst", "")), str(rec.get("src", "")), loc)

    for i, raw in enumerate(_list(doc, "voids")):
        where = f"voids[{i}]"
        rec = _record(raw, where)
        loc = _location(rec.get("location"), where + ".location") or SourceLocation()
        name = str(rec.get("name", ""))
        snap.voids.add_void_info(loc, name)
        if "kind" in rec:
            try:
                kind = VoidKind(rec["kind"])
            except ValueError:
                raise SnapshotError(f"unknown void kind {rec['kind']!r}", where + ".kind") from None
            snap.voids.update_type(loc, kind, name)
        if "generic" in rec:
            snap.voids.update_generic(loc, bool(rec["generic"]))

    raw_stats = doc.get("rewrite_stats", {})
    if not isinstance(raw_stats, Mapping):
        raise SnapshotError("expected an object", "rewrite_stats")
    for key, value in raw_stats.items():
        counter = PerformanceStats.counter_by_key(key)
        if counter is None:
            logger.warning("Unknown rewrite counter %r in snapshot", key)
            continue
        snap.perf.increment(counter, _int(value, f"rewrite_stats.{key}"))


__all__ = ["Snapshot", "read_snapshot", "load_snapshot"]

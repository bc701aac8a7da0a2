"""
wild_rootcause/report.py
════════════════════════

Per-root detailed report and the reverse "RC map" view.

Root-cause report
─────────────────
Roots are visited in ascending Atom id.  For every root the report holds
its name, reason, in-source flag, location, how many Atoms and pointer
variables it explains together with their fractional scores, and the
diagnostic's notes in insertion order.

Roots whose reason is :data:`~wild_rootcause.attribution.MACRO_REASON`
additionally hand their location back to the report, which keeps an
ordered, duplicate-free list of those locations.  External tooling uses
it to warn that macro expansions hide root causes textual inspection
will not reveal.

RC map
──────
For every explained Atom (ascending), the names of the roots explaining
it.  Unresolved type-argument placeholders (``_tyarg_`` in the name and
no valid location) are left out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .attribution import MACRO_REASON, Atom, AttributionIndex
from .locations import SourceLocation, location_json, valid_or_none
from .scoring import atom_score, pointer_score

logger = logging.getLogger(__name__)

# Marker the constraint builder puts in the names of type-argument atoms.
TYARG_MARKER = "_tyarg_"

NameFn = Callable[[Atom], str]


# ═════════════════════════════════════════════════════════════════════════
#  ROOT-CAUSE REPORT
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SubReason:
    """One note of a root diagnostic, as reported."""
    reason: str
    location: Optional[SourceLocation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"Rsn": self.reason, "Location": location_json(self.location)}


@dataclass(frozen=True)
class RootCauseEntry:
    """Everything the report says about one root."""
    atom: Atom
    name: str
    reason: str
    in_source: bool
    location: Optional[SourceLocation]
    atoms_affected: int
    atoms_score: float
    pointers_affected: int
    pointers_score: float
    sub_reasons: Tuple[SubReason, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ConstraintKey": self.atom,
            "Name": self.name,
            "Reason": self.reason,
            "InSrc": self.in_source,
            "Location": location_json(self.location),
            "AtomsAffected": self.atoms_affected,
            "AtomsScore": self.atoms_score,
            "PtrsAffected": self.pointers_affected,
            "PtrsScore": self.pointers_score,
            "SubReasons": [s.to_dict() for s in self.sub_reasons],
        }


@dataclass(frozen=True)
class RootCauseReport:
    entries: Tuple[RootCauseEntry, ...]
    macro_locations: Tuple[SourceLocation, ...]

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def entry(self, atom: Atom) -> RootCauseEntry:
        for e in self.entries:
            if e.atom == atom:
                return e
        raise KeyError(atom)

    def to_dict(self) -> Dict[str, Any]:
        return {"RootCauseStats": [e.to_dict() for e in self.entries]}

    def macro_locations_dict(self) -> List[Dict[str, Any]]:
        return [loc.to_dict() for loc in self.macro_locations]


def root_cause_entry(
    index: AttributionIndex,
    root: Atom,
    name_of: Optional[NameFn] = None,
) -> Tuple[RootCauseEntry, Optional[SourceLocation]]:
    """
    Build the report entry for *root*.

    Returns the entry and, for macro roots only, the root's location (which
    may be ``None`` if unknown); ``None`` for every other reason.
    """
    name_of = name_of or index.name_of
    diag = index.diagnostic_of(root)
    location = valid_or_none(index.location_of(root)) or valid_or_none(diag.location)

    affected = index.transitive_effects((root,))
    pointers = index.forward_pointer_effects_of(root)

    entry = RootCauseEntry(
        atom=root,
        name=name_of(root),
        reason=diag.reason,
        in_source=index.is_root_in_source(root),
        location=location,
        atoms_affected=len(affected),
        atoms_score=atom_score(index, affected),
        pointers_affected=len(pointers),
        pointers_score=pointer_score(index, pointers),
        sub_reasons=tuple(SubReason(n.reason, n.location) for n in diag.notes),
    )
    if diag.reason == MACRO_REASON:
        return entry, location
    return entry, None


def build_root_cause_report(
    index: AttributionIndex,
    name_of: Optional[NameFn] = None,
) -> RootCauseReport:
    """Report every root of *index* in ascending Atom order.  Pure read."""
    entries: List[RootCauseEntry] = []
    macro_locations: List[SourceLocation] = []
    seen: Set[SourceLocation] = set()
    for root in sorted(index.roots):
        entry, macro_loc = root_cause_entry(index, root, name_of)
        entries.append(entry)
        if macro_loc is not None and macro_loc not in seen:
            seen.add(macro_loc)
            macro_locations.append(macro_loc)
    logger.info(
        "Reported %d roots, %d distinct macro locations",
        len(entries), len(macro_locations),
    )
    return RootCauseReport(tuple(entries), tuple(macro_locations))


# ═════════════════════════════════════════════════════════════════════════
#  RC MAP
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RCMapEntry:
    atom: Atom
    name: str
    location: Optional[SourceLocation]
    causes: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Key": self.atom,
            "Name": self.name,
            "Location": location_json(self.location),
            "Reasons": list(self.causes),
        }


def _is_unresolved_tyarg(index: AttributionIndex, root: Atom, name: str) -> bool:
    if TYARG_MARKER not in name:
        return False
    return valid_or_none(index.diagnostic_of(root).location) is None


def build_rc_map(
    index: AttributionIndex,
    name_of: Optional[NameFn] = None,
) -> List[RCMapEntry]:
    """List the explaining roots of every explained Atom."""
    name_of = name_of or index.name_of
    result: List[RCMapEntry] = []
    for atom in index.explained_atoms():
        causes: List[str] = []
        for root in sorted(index.reverse_causes_of(atom)):
            root_name = name_of(root)
            if _is_unresolved_tyarg(index, root, root_name):
                continue
            causes.append(root_name)
        result.append(
            RCMapEntry(
                atom=atom,
                name=name_of(atom),
                location=valid_or_none(index.location_of(atom)),
                causes=tuple(causes),
            )
        )
    return result


def rc_map_dict(entries: List[RCMapEntry]) -> Dict[str, Any]:
    return {"RCMap": [e.to_dict() for e in entries]}


__all__ = [
    "TYARG_MARKER",
    "SubReason",
    "RootCauseEntry",
    "RootCauseReport",
    "root_cause_entry",
    "build_root_cause_report",
    "RCMapEntry",
    "build_rc_map",
    "rc_map_dict",
]

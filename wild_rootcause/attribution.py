"""
wild_rootcause/attribution.py
═════════════════════════════

The attribution index: who explains which WILD qualifier variable.

After the constraint solver has converged, every WILD Atom is either a
*root* (forced WILD directly by a program construct, carrying a
:class:`RootDiagnostic`) or *indirect* (forced WILD only through
propagation).  The index records, for every Atom, the set of roots that
explain it and, for every root, the set of Atoms it explains.

    ┌───────────────────────────────────────────────────────────────┐
    │  Relations                                                    │
    │    forward[r]     — Atoms root r forces WILD                  │
    │    reverse[a]     — roots that force Atom a WILD              │
    │    forward_ptr[r] — pointer variables root r makes WILD       │
    │    reverse_ptr[p] — roots that make pointer variable p WILD   │
    └───────────────────────────────────────────────────────────────┘

Invariants:

    * ``a ∈ forward[r]  ⇔  r ∈ reverse[a]`` (and likewise at pointer level)
    * ``roots ∩ indirect = ∅``
    * ``roots_in_source ⊆ roots`` and ``indirect_in_source ⊆ indirect``
    * roots never explain themselves: ``reverse[r] = ∅`` for every root

The index is written once by a single writer (the solver integration or
:mod:`wild_rootcause.snapshot`) and is read-only afterwards.  All tables
are keyed by integer Atom ids; no Atom object owns another.

Usage example::

    idx = AttributionIndex()
    idx.record_root(1, RootDiagnostic("Cast", SourceLocation("a.c", 3, 5, 9)))
    idx.record_propagation(1, 2)
    idx.reverse_causes_of(2)      # frozenset({1})
"""

from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Callable,
    DefaultDict,
    Dict,
    FrozenSet,
    Hashable,
    Iterable,
    List,
    Optional,
    Set,
    Tuple,
)

from .errors import InconsistentClassification
from .locations import SourceLocation

logger = logging.getLogger(__name__)

Atom = int
AtomSet = FrozenSet[Atom]
PointerVariable = Hashable

# Reason string for roots that are only visible through a macro expansion.
MACRO_REASON = "Macro"

_EMPTY: FrozenSet = frozenset()


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — ROOT DIAGNOSTICS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReasonNote:
    """A finer-grained sub-explanation attached to a root diagnostic."""
    reason: str
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class RootDiagnostic:
    """
    Why a root Atom was forced WILD.

    Attributes
    ----------
    reason : str
        Short classification, e.g. ``"Cast"``, ``"Extern"``, ``"Macro"``.
    location : SourceLocation or None
        The source construct responsible; may be absent or invalid.
    notes : tuple of ReasonNote
        Additional explanations in insertion order.
    """
    reason: str
    location: Optional[SourceLocation] = None
    notes: Tuple[ReasonNote, ...] = ()

    def with_note(
        self, reason: str, location: Optional[SourceLocation] = None
    ) -> RootDiagnostic:
        return dataclasses.replace(
            self, notes=self.notes + (ReasonNote(reason, location),)
        )


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — ATTRIBUTION INDEX
# ═════════════════════════════════════════════════════════════════════════

class AttributionIndex:
    """Per-run store of root causes and their forward / reverse effects."""

    def __init__(self) -> None:
        self._diagnostics: Dict[Atom, RootDiagnostic] = {}
        self._locations: Dict[Atom, SourceLocation] = {}
        self._names: Dict[Atom, str] = {}
        self._roots_in_source: Set[Atom] = set()
        self._indirect: Set[Atom] = set()
        self._indirect_in_source: Set[Atom] = set()
        self._reverse: DefaultDict[Atom, Set[Atom]] = defaultdict(set)
        self._forward: DefaultDict[Atom, Set[Atom]] = defaultdict(set)
        self._members: DefaultDict[Atom, Set[PointerVariable]] = defaultdict(set)
        self._reverse_ptr: DefaultDict[PointerVariable, Set[Atom]] = defaultdict(set)
        self._forward_ptr: DefaultDict[Atom, Set[PointerVariable]] = defaultdict(set)

    def clear(self) -> None:
        """Reset every table.  Must not be called while reports are being built."""
        self._diagnostics.clear()
        self._locations.clear()
        self._names.clear()
        self._roots_in_source.clear()
        self._indirect.clear()
        self._indirect_in_source.clear()
        self._reverse.clear()
        self._forward.clear()
        self._members.clear()
        self._reverse_ptr.clear()
        self._forward_ptr.clear()

    # ── writer phase ─────────────────────────────────────────────────

    def record_root(self, atom: Atom, diagnostic: RootDiagnostic) -> None:
        """Register *atom* as a root cause; replaces an earlier diagnostic."""
        if atom in self._indirect:
            raise InconsistentClassification(
                "already classified as indirect, cannot become a root", atom
            )
        self._diagnostics[atom] = diagnostic

    def record_indirect(self, atom: Atom) -> bool:
        """Mark *atom* WILD through propagation.  Returns ``True`` if new."""
        if atom in self._diagnostics:
            raise InconsistentClassification(
                "is a root, cannot be classified as indirect", atom
            )
        if atom in self._indirect:
            return False
        self._indirect.add(atom)
        return True

    def record_propagation(self, root: Atom, affected: Atom) -> bool:
        """
        Record that *root* transitively forces *affected* to WILD.

        Self-loops and edges into another root are ignored: roots carry
        no reverse causes of their own.  Returns ``True`` if the edge was
        recorded.
        """
        if root not in self._diagnostics:
            raise InconsistentClassification(
                "propagation source is not a recorded root", root
            )
        if affected == root:
            logger.debug("Ignoring self propagation of root %d", root)
            return False
        if affected in self._diagnostics:
            logger.debug("Ignoring propagation %d -> %d into a root", root, affected)
            return False
        self.record_indirect(affected)
        self._forward[root].add(affected)
        self._reverse[affected].add(root)
        return True

    def record_location(self, atom: Atom, location: Optional[SourceLocation]) -> None:
        if location is not None:
            self._locations[atom] = location

    def set_name(self, atom: Atom, name: str) -> None:
        self._names[atom] = name

    def classify_in_source(
        self,
        atom: Atom,
        location: Optional[SourceLocation],
        file_classifier: Callable[[str], bool],
    ) -> bool:
        """
        Record *location* for *atom* and classify it as in-source if the
        location is valid and *file_classifier* accepts its file.

        Atoms that are neither roots nor indirect only get their location
        recorded.  Returns the in-source verdict.
        """
        self.record_location(atom, location)
        in_source = (
            location is not None
            and location.valid
            and bool(file_classifier(location.file))
        )
        if atom in self._diagnostics:
            target = self._roots_in_source
        elif atom in self._indirect:
            target = self._indirect_in_source
        else:
            logger.debug("Atom %d is not WILD; location recorded only", atom)
            return in_source
        if in_source:
            target.add(atom)
        else:
            target.discard(atom)
        return in_source

    def record_pointer_membership(self, atom: Atom, pvar: PointerVariable) -> None:
        """Declare that *atom* is one level of pointer variable *pvar*."""
        self._members[atom].add(pvar)

    def record_pointer_propagation(self, root: Atom, pvar: PointerVariable) -> bool:
        if root not in self._diagnostics:
            raise InconsistentClassification(
                "pointer propagation source is not a recorded root", root
            )
        if pvar in self._forward_ptr[root]:
            return False
        self._forward_ptr[root].add(pvar)
        self._reverse_ptr[pvar].add(root)
        return True

    def lift_pointer_relations(self) -> int:
        """
        Derive ``forward_ptr`` / ``reverse_ptr`` from the atom relations.

        Every pointer variable containing an Atom explained by root *r*
        is explained by *r*.  Returns the number of new pointer edges.
        """
        added = 0
        for atom in sorted(self._reverse):
            pvars = self._members.get(atom)
            if not pvars:
                continue
            for root in self._reverse[atom]:
                for pvar in pvars:
                    if self.record_pointer_propagation(root, pvar):
                        added += 1
        logger.debug("Lifted %d pointer-level attribution edges", added)
        return added

    # ── reader phase ─────────────────────────────────────────────────

    @property
    def roots(self) -> AtomSet:
        return frozenset(self._diagnostics)

    @property
    def roots_in_source(self) -> AtomSet:
        return frozenset(self._roots_in_source)

    @property
    def indirect(self) -> AtomSet:
        return frozenset(self._indirect)

    @property
    def indirect_in_source(self) -> AtomSet:
        return frozenset(self._indirect_in_source)

    def is_root(self, atom: Atom) -> bool:
        return atom in self._diagnostics

    def is_root_in_source(self, atom: Atom) -> bool:
        return atom in self._roots_in_source

    def diagnostic_of(self, atom: Atom) -> RootDiagnostic:
        try:
            return self._diagnostics[atom]
        except KeyError:
            raise InconsistentClassification(
                "diagnostic requested for a non-root atom", atom
            ) from None

    def location_of(self, atom: Atom) -> Optional[SourceLocation]:
        return self._locations.get(atom)

    def name_of(self, atom: Atom) -> str:
        return self._names.get(atom, f"q_{atom}")

    def reverse_causes_of(self, atom: Atom) -> AtomSet:
        causes = self._reverse.get(atom)
        return frozenset(causes) if causes else _EMPTY

    def forward_effects_of(self, root: Atom) -> AtomSet:
        effects = self._forward.get(root)
        return frozenset(effects) if effects else _EMPTY

    def cause_count(self, atom: Atom) -> int:
        causes = self._reverse.get(atom)
        return len(causes) if causes else 0

    def transitive_effects(self, root_set: Iterable[Atom]) -> AtomSet:
        result: Set[Atom] = set()
        for root in root_set:
            effects = self._forward.get(root)
            if effects:
                result.update(effects)
        return frozenset(result)

    def reverse_pointer_causes_of(self, pvar: PointerVariable) -> AtomSet:
        causes = self._reverse_ptr.get(pvar)
        return frozenset(causes) if causes else _EMPTY

    def forward_pointer_effects_of(self, root: Atom) -> FrozenSet[PointerVariable]:
        effects = self._forward_ptr.get(root)
        return frozenset(effects) if effects else _EMPTY

    def pointer_cause_count(self, pvar: PointerVariable) -> int:
        causes = self._reverse_ptr.get(pvar)
        return len(causes) if causes else 0

    def explained_atoms(self) -> List[Atom]:
        """Atoms with at least one explaining root, ascending."""
        return sorted(a for a, causes in self._reverse.items() if causes)

    # ── diagnostics ──────────────────────────────────────────────────

    def check_invariants(self) -> List[str]:
        """Return a description of every violated invariant (empty if sound)."""
        problems: List[str] = []
        overlap = self._indirect.intersection(self._diagnostics)
        if overlap:
            problems.append(f"roots and indirect overlap: {sorted(overlap)}")
        stray = self._roots_in_source.difference(self._diagnostics)
        if stray:
            problems.append(f"in-source roots that are not roots: {sorted(stray)}")
        stray = self._indirect_in_source.difference(self._indirect)
        if stray:
            problems.append(f"in-source indirect atoms that are not indirect: {sorted(stray)}")
        for root, effects in self._forward.items():
            for atom in effects:
                if root not in self._reverse.get(atom, _EMPTY):
                    problems.append(f"forward {root}->{atom} has no reverse entry")
        for atom, causes in self._reverse.items():
            if causes and atom in self._diagnostics:
                problems.append(f"root {atom} has reverse causes {sorted(causes)}")
            for root in causes:
                if atom not in self._forward.get(root, _EMPTY):
                    problems.append(f"reverse {atom}<-{root} has no forward entry")
        for root, pvars in self._forward_ptr.items():
            for pvar in pvars:
                if root not in self._reverse_ptr.get(pvar, _EMPTY):
                    problems.append(f"pointer forward {root}->{pvar!r} has no reverse entry")
        return problems

    def stats(self) -> Dict[str, int]:
        return {
            "roots": len(self._diagnostics),
            "roots_in_source": len(self._roots_in_source),
            "indirect": len(self._indirect),
            "indirect_in_source": len(self._indirect_in_source),
            "edges": sum(len(v) for v in self._forward.values()),
            "pointer_edges": sum(len(v) for v in self._forward_ptr.values()),
        }

    def __repr__(self) -> str:
        s = self.stats()
        return (
            f"AttributionIndex(roots={s['roots']}, indirect={s['indirect']}, "
            f"edges={s['edges']})"
        )


__all__ = [
    "Atom",
    "AtomSet",
    "PointerVariable",
    "MACRO_REASON",
    "ReasonNote",
    "RootDiagnostic",
    "AttributionIndex",
]

"""
wild_rootcause/scoring.py
═════════════════════════

Fractional blame scores.

An Atom explained by *k* roots contributes ``1/k`` to the score of each of
them, so the credit handed out for any single Atom over all roots sums to
one.  That makes per-root impact numbers additive: summing the scores of
every root never exceeds the number of WILD Atoms they explain.

Atoms with no recorded cause contribute nothing (they are explained by
something outside the tracked roots); this is not an error.

Per-root credits for one Atom sum to exactly 1.0 only when totalled with
:func:`math.fsum`; a plain ``sum`` can land one ulp short (six roots give
``0.9999999999999999``).  Callers aggregating scores across roots should
use ``math.fsum`` as well.
"""

from __future__ import annotations

import math
from typing import Iterable

from .attribution import Atom, AttributionIndex, PointerVariable


def atom_score(index: AttributionIndex, atoms: Iterable[Atom]) -> float:
    """``Σ 1/|reverse(a)|`` over *atoms*, skipping Atoms with no causes."""
    terms = []
    for atom in atoms:
        k = index.cause_count(atom)
        if k:
            terms.append(1.0 / k)
    return math.fsum(terms)


def pointer_score(index: AttributionIndex, pvars: Iterable[PointerVariable]) -> float:
    """Same as :func:`atom_score` over the pointer-level reverse relation."""
    terms = []
    for pvar in pvars:
        k = index.pointer_cause_count(pvar)
        if k:
            terms.append(1.0 / k)
    return math.fsum(terms)


__all__ = ["atom_score", "pointer_score"]

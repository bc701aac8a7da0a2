# tests/conftest.py
"""
Shared fixtures: small attribution indexes built by hand.

Scenario A
    Atoms 1..4.  Root 1 ("Cast") forces 2 and 3; root 4 ("Extern")
    forces 3 only.  Everything lives in ``src/a.c``.
Scenario B
    Root 5 ("Macro") at ``src/m.h:10:1:8``.
Scenario C
    Atom 6 has no propagation edges at all.
"""

from typing import Dict, Iterable, Optional, Tuple

import pytest

from wild_rootcause.attribution import AttributionIndex, ReasonNote, RootDiagnostic
from wild_rootcause.locations import FileClassifier, SourceLocation


def loc(line: int, file: str = "src/a.c", cs: int = 1, ce: int = 4) -> SourceLocation:
    return SourceLocation(file, line, cs, ce)


def build_index(
    roots: Dict[int, str],
    edges: Iterable[Tuple[int, int]] = (),
    locations: Optional[Dict[int, SourceLocation]] = None,
    classifier=None,
) -> AttributionIndex:
    """Roots (atom → reason), propagation edges, then in-source classification."""
    locations = locations or {}
    classifier = classifier or FileClassifier.accept_all()
    idx = AttributionIndex()
    for atom, reason in roots.items():
        idx.record_root(atom, RootDiagnostic(reason, locations.get(atom)))
    for root, affected in edges:
        idx.record_propagation(root, affected)
    for atom in sorted(idx.roots | idx.indirect):
        idx.classify_in_source(atom, locations.get(atom, loc(atom)), classifier)
    return idx


@pytest.fixture
def scenario_a() -> AttributionIndex:
    return build_index(
        roots={1: "Cast", 4: "Extern"},
        edges=[(1, 2), (1, 3), (4, 3)],
    )


MACRO_LOC = SourceLocation("src/m.h", 10, 1, 8)


@pytest.fixture
def scenario_b() -> AttributionIndex:
    idx = AttributionIndex()
    idx.record_root(
        5,
        RootDiagnostic(
            "Macro",
            MACRO_LOC,
            (ReasonNote("expanded from FOO", loc(3)), ReasonNote("cast inside macro")),
        ),
    )
    idx.record_propagation(5, 7)
    idx.classify_in_source(5, MACRO_LOC, FileClassifier.accept_all())
    idx.classify_in_source(7, loc(7), FileClassifier.accept_all())
    return idx


@pytest.fixture
def scenario_c() -> AttributionIndex:
    idx = AttributionIndex()
    idx.record_root(1, RootDiagnostic("Cast", loc(1)))
    idx.record_propagation(1, 2)
    return idx

# tests/test_scoring.py
"""
Tests for fractional blame scores.
"""

import math
import random

import pytest

from wild_rootcause.attribution import AttributionIndex, RootDiagnostic
from wild_rootcause.scoring import atom_score, pointer_score
from tests.conftest import build_index


class TestAtomScore:

    def test_scenario_a(self, scenario_a):
        assert atom_score(scenario_a, scenario_a.forward_effects_of(1)) == pytest.approx(1.5)
        assert atom_score(scenario_a, scenario_a.forward_effects_of(4)) == pytest.approx(0.5)

    def test_empty_set(self, scenario_a):
        assert atom_score(scenario_a, []) == 0.0

    def test_unexplained_atom_scores_zero(self, scenario_c):
        assert atom_score(scenario_c, [6]) == 0.0

    def test_root_scores_zero(self, scenario_a):
        assert atom_score(scenario_a, [1, 4]) == 0.0

    def test_accepts_any_iterable(self, scenario_a):
        assert atom_score(scenario_a, iter([2, 3])) == pytest.approx(1.5)

    def test_partition_of_unity(self):
        rng = random.Random(7)
        idx = AttributionIndex()
        roots = list(range(1, 11))
        for r in roots:
            idx.record_root(r, RootDiagnostic("Cast"))
        for _ in range(200):
            idx.record_propagation(rng.choice(roots), rng.randrange(100, 160))
        total = sum(atom_score(idx, idx.forward_effects_of(r)) for r in roots)
        assert total == pytest.approx(len(idx.explained_atoms()))

    @pytest.mark.parametrize("k", range(1, 13))
    def test_shared_atom_credit_sums_to_one(self, k):
        idx = AttributionIndex()
        for r in range(1, k + 1):
            idx.record_root(r, RootDiagnostic("Cast"))
            idx.record_propagation(r, 100)
        causes = sorted(idx.reverse_causes_of(100))
        assert len(causes) == k
        assert math.fsum(atom_score(idx, idx.forward_effects_of(r)) for r in causes) == 1.0

    def test_score_bounded_by_affected_count(self, scenario_a):
        for r in scenario_a.roots:
            affected = scenario_a.forward_effects_of(r)
            assert 0.0 <= atom_score(scenario_a, affected) <= len(affected)


class TestPointerScore:

    def test_shared_pointer_is_split(self):
        idx = build_index({1: "Cast", 4: "Extern"}, [(1, 2), (1, 3), (4, 3)])
        idx.record_pointer_membership(2, "p")
        idx.record_pointer_membership(3, "q")
        idx.lift_pointer_relations()
        assert pointer_score(idx, idx.forward_pointer_effects_of(1)) == pytest.approx(1.5)
        assert pointer_score(idx, idx.forward_pointer_effects_of(4)) == pytest.approx(0.5)

    def test_no_pointers(self, scenario_a):
        assert pointer_score(scenario_a, []) == 0.0
        assert pointer_score(scenario_a, ["unknown"]) == 0.0

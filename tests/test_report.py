# tests/test_report.py
"""
Tests for the per-root report, the macro location list and the RC map.
"""

import json

import pytest

from wild_rootcause.attribution import AttributionIndex, RootDiagnostic
from wild_rootcause.locations import FileClassifier, SourceLocation
from wild_rootcause.report import (
    build_rc_map,
    build_root_cause_report,
    rc_map_dict,
    root_cause_entry,
)
from tests.conftest import MACRO_LOC, build_index, loc


class TestRootCauseReport:

    def test_roots_in_ascending_order(self, scenario_a):
        report = build_root_cause_report(scenario_a)
        assert [e.atom for e in report] == [1, 4]
        assert len(report) == 2

    def test_scenario_a_entry(self, scenario_a):
        e = build_root_cause_report(scenario_a).entry(1)
        assert e.name == "q_1"
        assert e.reason == "Cast"
        assert e.in_source is True
        assert e.location == loc(1)
        assert e.atoms_affected == 2
        assert e.atoms_score == pytest.approx(1.5)
        assert e.pointers_affected == 0
        assert e.pointers_score == 0.0
        assert e.sub_reasons == ()

    def test_unknown_entry(self, scenario_a):
        with pytest.raises(KeyError):
            build_root_cause_report(scenario_a).entry(2)

    def test_notes_keep_order(self, scenario_b):
        e = build_root_cause_report(scenario_b).entry(5)
        assert [s.reason for s in e.sub_reasons] == ["expanded from FOO", "cast inside macro"]
        assert e.sub_reasons[0].location == loc(3)
        assert e.sub_reasons[1].location is None

    def test_custom_name_function(self, scenario_a):
        report = build_root_cause_report(scenario_a, name_of=lambda a: f"v{a}")
        assert report.entry(4).name == "v4"

    def test_location_falls_back_to_diagnostic(self):
        idx = AttributionIndex()
        idx.record_root(1, RootDiagnostic("Cast", loc(12)))
        e = build_root_cause_report(idx).entry(1)
        assert e.location == loc(12)

    def test_invalid_location_reported_as_null(self):
        idx = AttributionIndex()
        idx.record_root(1, RootDiagnostic("Cast", SourceLocation()))
        e = build_root_cause_report(idx).entry(1)
        assert e.location is None
        assert e.to_dict()["Location"] is None

    def test_out_of_source_root(self):
        idx = AttributionIndex()
        idx.record_root(1, RootDiagnostic("Extern"))
        idx.classify_in_source(1, loc(1, "/usr/include/stdlib.h"), FileClassifier())
        assert build_root_cause_report(idx).entry(1).in_source is False

    def test_pointer_numbers(self):
        idx = build_index({1: "Cast", 4: "Extern"}, [(1, 2), (1, 3), (4, 3)])
        idx.record_pointer_membership(2, "p")
        idx.record_pointer_membership(3, "q")
        idx.lift_pointer_relations()
        e = build_root_cause_report(idx).entry(4)
        assert e.pointers_affected == 1
        assert e.pointers_score == pytest.approx(0.5)

    def test_to_dict(self, scenario_b):
        d = build_root_cause_report(scenario_b).to_dict()
        (entry,) = d["RootCauseStats"]
        assert entry == {
            "ConstraintKey": 5,
            "Name": "q_5",
            "Reason": "Macro",
            "InSrc": True,
            "Location": "src/m.h:10:1:8",
            "AtomsAffected": 1,
            "AtomsScore": 1.0,
            "PtrsAffected": 0,
            "PtrsScore": 0.0,
            "SubReasons": [
                {"Rsn": "expanded from FOO", "Location": "src/a.c:3:1:4"},
                {"Rsn": "cast inside macro", "Location": None},
            ],
        }
        json.dumps(d)


class TestMacroLocations:

    def test_single_macro_root(self, scenario_b):
        report = build_root_cause_report(scenario_b)
        assert report.macro_locations == (MACRO_LOC,)

    def test_same_location_deduplicated(self, scenario_b):
        scenario_b.record_root(8, RootDiagnostic("Macro", MACRO_LOC))
        report = build_root_cause_report(scenario_b)
        assert report.macro_locations == (MACRO_LOC,)
        assert build_root_cause_report(scenario_b).macro_locations == (MACRO_LOC,)

    def test_order_follows_atom_order(self):
        idx = AttributionIndex()
        idx.record_root(9, RootDiagnostic("Macro", loc(9, "m.h")))
        idx.record_root(2, RootDiagnostic("Macro", loc(2, "m.h")))
        report = build_root_cause_report(idx)
        assert [l.line for l in report.macro_locations] == [2, 9]

    def test_non_macro_roots_excluded(self, scenario_a):
        assert build_root_cause_report(scenario_a).macro_locations == ()

    def test_macro_without_location_skipped(self):
        idx = AttributionIndex()
        idx.record_root(1, RootDiagnostic("Macro"))
        entry, macro_loc = root_cause_entry(idx, 1)
        assert entry.reason == "Macro"
        assert macro_loc is None
        assert build_root_cause_report(idx).macro_locations == ()

    def test_macro_locations_dict(self, scenario_b):
        report = build_root_cause_report(scenario_b)
        assert report.macro_locations_dict() == [
            {"file": "src/m.h", "line": 10, "colstart": 1, "colend": 8}
        ]


class TestRCMap:

    def test_scenario_a(self, scenario_a):
        entries = build_rc_map(scenario_a)
        assert [e.atom for e in entries] == [2, 3]
        assert entries[0].causes == ("q_1",)
        assert entries[1].causes == ("q_1", "q_4")
        assert entries[1].location == loc(3)

    def test_tyarg_without_location_filtered(self):
        idx = AttributionIndex()
        idx.record_root(1, RootDiagnostic("Cast", loc(1)))
        idx.record_root(2, RootDiagnostic("Cast"))
        idx.set_name(2, "f_tyarg_0")
        idx.record_propagation(1, 3)
        idx.record_propagation(2, 3)
        (entry,) = build_rc_map(idx)
        assert entry.causes == ("q_1",)

    def test_tyarg_with_location_kept(self):
        idx = AttributionIndex()
        idx.record_root(2, RootDiagnostic("Cast", loc(2)))
        idx.set_name(2, "f_tyarg_0")
        idx.record_propagation(2, 3)
        (entry,) = build_rc_map(idx)
        assert entry.causes == ("f_tyarg_0",)

    def test_unexplained_atoms_absent(self, scenario_c):
        assert [e.atom for e in build_rc_map(scenario_c)] == [2]

    def test_dict(self, scenario_a):
        d = rc_map_dict(build_rc_map(scenario_a))
        assert d["RCMap"][1] == {
            "Key": 3,
            "Name": "q_3",
            "Location": "src/a.c:3:1:4",
            "Reasons": ["q_1", "q_4"],
        }

# tests/test_locations.py
"""
Tests for source locations and the in-source file classifier.
"""

import pytest

from wild_rootcause.locations import (
    FileClassifier,
    SourceLocation,
    classifier_from_dirs,
    location_json,
    valid_or_none,
)


class TestSourceLocation:

    def test_validity(self):
        assert SourceLocation("a.c", 1).valid
        assert not SourceLocation("", 1).valid
        assert not SourceLocation("a.c", 0).valid

    def test_str(self):
        assert str(SourceLocation("a.c", 3, 5, 9)) == "a.c:3:5:9"

    def test_from_dict_accepts_both_spellings(self):
        a = SourceLocation.from_dict({"file": "a.c", "line": 3, "colstart": 5, "colend": 9})
        b = SourceLocation.from_dict({"file": "a.c", "line": 3, "col_start": 5, "col_end": 9})
        assert a == b == SourceLocation("a.c", 3, 5, 9)

    def test_from_dict_bad_line(self):
        with pytest.raises(ValueError):
            SourceLocation.from_dict({"file": "a.c", "line": "three"})

    def test_from_dict_null_file_is_unknown(self):
        l = SourceLocation.from_dict({"file": None, "line": 3, "colstart": 1, "colend": 2})
        assert l.file == ""
        assert not l.valid

    @pytest.mark.parametrize("raw", [
        {"file": "a.c", "line": 3.7},
        {"file": "a.c", "line": 3, "colstart": 1.5},
        {"file": "a.c", "line": 3, "col_end": "9"},
        {"file": "a.c", "line": True},
    ])
    def test_from_dict_rejects_non_integers(self, raw):
        with pytest.raises(ValueError):
            SourceLocation.from_dict(raw)

    def test_from_dict_null_coordinates(self):
        l = SourceLocation.from_dict({"file": "a.c", "line": None, "colstart": None})
        assert (l.line, l.col_start) == (0, 0)

    def test_hashable_and_ordered(self):
        locs = {SourceLocation("b.c", 1), SourceLocation("a.c", 2), SourceLocation("a.c", 2)}
        assert sorted(locs)[0] == SourceLocation("a.c", 2)
        assert len(locs) == 2

    def test_json_helpers(self):
        assert valid_or_none(SourceLocation()) is None
        assert valid_or_none(None) is None
        assert location_json(SourceLocation("a.c", 1, 2, 3)) == "a.c:1:2:3"
        assert location_json(SourceLocation()) is None


class TestFileClassifier:

    def test_system_headers_rejected(self):
        fc = FileClassifier()
        assert fc("/usr/include/stdio.h") is False
        assert fc("/home/u/proj/a.c") is True

    def test_empty_path_rejected(self):
        assert FileClassifier.accept_all()("") is False

    def test_base_dirs(self, tmp_path):
        proj = tmp_path / "proj"
        proj.mkdir()
        fc = classifier_from_dirs([str(proj)])
        assert fc(str(proj / "src" / "a.c")) is True
        assert fc(str(tmp_path / "elsewhere" / "b.c")) is False
        # Sibling directory sharing a name prefix.
        assert fc(str(tmp_path / "proj2" / "c.c")) is False

    def test_generated_globs(self):
        fc = FileClassifier(generated_globs=("*.pb.c", "gen/*"))
        assert fc("/x/y/msg.pb.c") is False
        assert fc("gen/table.c") is False
        assert fc("/x/y/main.c") is True

    def test_results_cached(self):
        fc = FileClassifier()
        fc("/home/u/a.c")
        assert fc._cache == {"/home/u/a.c": True}

# tests/test_cli.py
"""
End-to-end tests for the ``wild-rootcause`` command line.
"""

import json
import logging

import pytest

from wild_rootcause import __version__
from wild_rootcause.cli import EXIT_INCONSISTENT, EXIT_INFRA, EXIT_OK, main
from tests.test_snapshot import SCENARIO_A, _loc


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("WILDRC_BASE_DIRS", "WILDRC_GENERATED", "WILDRC_FORMAT",
                "WILDRC_HTML_TEMPLATE", "WILDRC_NO_COLOR"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def detach_log_handlers():
    yield
    logger = logging.getLogger("wild_rootcause")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def snapshot_file(tmp_path):
    doc = dict(SCENARIO_A)
    doc["roots"] = SCENARIO_A["roots"] + [
        {"atom": 5, "reason": "Macro", "location": _loc(10, "src/m.h")},
    ]
    doc["casts"] = [{"dst": "int *", "src": "char *", "location": _loc(1)}]
    doc["rewrite_stats"] = {"NumWildCasts": 2}
    path = tmp_path / "snap.json"
    path.write_text(json.dumps(doc))
    return path


class TestCommands:

    def test_summary_json(self, snapshot_file, capsys):
        assert main(["summary", str(snapshot_file)]) == EXIT_OK
        out = json.loads(capsys.readouterr().out)
        reasons = [list(r)[0] for r in out["WildPtrInfo"]["DirectWildPtrs"]["Reasons"]]
        assert reasons == ["Cast", "Extern", "Macro"]

    def test_report_json(self, snapshot_file, capsys):
        assert main(["report", str(snapshot_file)]) == EXIT_OK
        out = json.loads(capsys.readouterr().out)
        assert [e["ConstraintKey"] for e in out["RootCauseStats"]] == [1, 4, 5]

    def test_rcmap_json(self, snapshot_file, capsys):
        assert main(["rcmap", str(snapshot_file)]) == EXIT_OK
        out = json.loads(capsys.readouterr().out)
        assert out["RCMap"][1]["Reasons"] == ["p", "q_4"]

    def test_all_to_file(self, snapshot_file, tmp_path):
        target = tmp_path / "out" / "all.json"
        assert main(["all", str(snapshot_file), "-o", str(target)]) == EXIT_OK
        parts = json.loads(target.read_text())
        assert len(parts) == 3

    def test_text_output(self, snapshot_file, capsys):
        assert main(["report", str(snapshot_file), "-f", "text", "--no-color"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Root causes (3 total)" in out
        assert "warning: 1 macro expansion is hiding" in out

    def test_html_output(self, snapshot_file, tmp_path):
        target = tmp_path / "r.html"
        assert main(["all", str(snapshot_file), "-f", "html", "-o", str(target)]) == EXIT_OK
        assert "<!DOCTYPE html>" in target.read_text()

    def test_format_from_environment(self, snapshot_file, capsys, monkeypatch):
        monkeypatch.setenv("WILDRC_FORMAT", "text")
        assert main(["summary", str(snapshot_file)]) == EXIT_OK
        assert "WILD pointer summary" in capsys.readouterr().out


class TestSideOutputs:

    def test_macro_out_with_summary_command(self, snapshot_file, tmp_path, capsys):
        macros = tmp_path / "macros.json"
        assert main(["summary", str(snapshot_file), "--macro-out", str(macros)]) == EXIT_OK
        assert json.loads(macros.read_text()) == [_loc(10, "src/m.h")]
        assert "RootCauseStats" not in capsys.readouterr().out

    def test_cast_and_void_out(self, snapshot_file, tmp_path):
        casts = tmp_path / "casts.json"
        voids = tmp_path / "voids.json"
        assert main(["summary", str(snapshot_file),
                     "--cast-out", str(casts), "--void-out", str(voids)]) == EXIT_OK
        assert json.loads(casts.read_text())[0]["Dst"] == "int *"
        assert json.loads(voids.read_text()) == []

    def test_perf_stats(self, snapshot_file, tmp_path):
        perf = tmp_path / "perf.json"
        assert main(["summary", str(snapshot_file), "--perf-stats", str(perf)]) == EXIT_OK
        stats = json.loads(perf.read_text())
        assert stats[1]["ReWriteStats"]["NumWildCasts"] == 2
        assert stats[0]["TimeStats"]["TotalTime"] >= 0.0


class TestExitCodes:

    def test_missing_file(self, tmp_path):
        assert main(["summary", str(tmp_path / "nope.json")]) == EXIT_INFRA

    def test_malformed_snapshot(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"atoms": []}))
        assert main(["summary", str(path)]) == EXIT_INFRA

    def test_inconsistent_snapshot(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"roots": [{"atom": 1, "reason": "Cast"}], "indirect": [1]}))
        assert main(["report", str(path)]) == EXIT_INCONSISTENT

    def test_bad_format_from_environment(self, snapshot_file, monkeypatch):
        monkeypatch.setenv("WILDRC_FORMAT", "xml")
        assert main(["summary", str(snapshot_file)]) == EXIT_INFRA

    def test_missing_html_template_creates_no_output(self, snapshot_file, tmp_path, caplog):
        target = tmp_path / "r.html"
        rc = main(["all", str(snapshot_file), "-f", "html", "-o", str(target),
                   "--html-template", str(tmp_path / "missing.j2")])
        assert rc == EXIT_INFRA
        assert not target.exists()
        assert "Cannot read HTML template" in caplog.text

    def test_missing_html_template_keeps_existing_output(self, snapshot_file, tmp_path):
        target = tmp_path / "r.html"
        target.write_text("<p>previous run</p>")
        rc = main(["all", str(snapshot_file), "-f", "html", "-o", str(target),
                   "--html-template", str(tmp_path / "missing.j2")])
        assert rc == EXIT_INFRA
        assert target.read_text() == "<p>previous run</p>"

    def test_text_to_file_is_plain(self, snapshot_file, tmp_path):
        target = tmp_path / "r.txt"
        assert main(["report", str(snapshot_file), "-f", "text", "-o", str(target)]) == EXIT_OK
        text = target.read_text()
        assert "Root causes (3 total)" in text
        assert "\x1b[" not in text

    def test_strict_on_sound_snapshot(self, snapshot_file, capsys):
        assert main(["summary", str(snapshot_file), "--strict"]) == EXIT_OK

    def test_no_command(self):
        assert main([]) == EXIT_INFRA

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert __version__ in capsys.readouterr().out

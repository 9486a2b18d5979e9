"""
Tests for the pkgns command line: output and exit codes.
"""

import pytest
from pkgns.__main__ import main


DOCUMENT = {"packages": [
    {"name": "base", "version": "1.0.0", "exports": ["dim"], "definitions": {"secret": 1}},
    {"name": "util", "version": "0.2.0", "Imports": "base (>= 1.0)",
     "namespace": "export(nrow)\nimportFrom(base, dim)"},
    {"name": "app", "version": "0.1.0", "Depends": "util"},
    {"name": "other", "version": "1.0.0", "exports": ["dim"]},
]}


@pytest.fixture
def manifests(manifest_file):
    return str(manifest_file(DOCUMENT))


class TestPlanAndCheck:
    """plan / check / revdeps"""

    def test_plan(self, manifests, capsys):
        assert main(["plan", manifests]) == 0
        lines = capsys.readouterr().out.split()
        assert lines[::2] == ["base", "other", "util", "app"]

    def test_check_ok(self, manifests, capsys):
        assert main(["check", manifests, "--workers", "2"]) == 0
        assert "ok: 4 packages loaded" in capsys.readouterr().out

    def test_revdeps(self, manifests, capsys):
        assert main(["revdeps", manifests, "base"]) == 0
        assert capsys.readouterr().out.split() == ["app", "util"]

    def test_revdeps_direct(self, manifests, capsys):
        assert main(["revdeps", manifests, "base", "--direct"]) == 0
        assert capsys.readouterr().out.split() == ["util"]


class TestResolve:
    """resolve"""

    def test_top_level_shadowing(self, manifests, capsys):
        assert main(["resolve", manifests, "dim", "--attach", "base", "other"]) == 0
        assert capsys.readouterr().out.strip() == "other::dim (exported)"

    def test_internal_resolution_ignores_search_path(self, manifests, capsys):
        assert main(["resolve", manifests, "dim", "--attach", "other", "--from", "util"]) == 0
        assert capsys.readouterr().out.strip() == "base::dim (exported)"

    def test_qualified(self, manifests, capsys):
        assert main(["resolve", manifests, "base:::secret"]) == 0
        assert "base::secret (private)" in capsys.readouterr().out


class TestExitCodes:
    """0 ok, 1 validation error, 2 runtime error."""

    def test_missing_file(self, tmp_path, capsys):
        assert main(["plan", str(tmp_path / "nope.json")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_cycle_is_validation_error(self, manifest_file, capsys):
        path = manifest_file({"packages": [
            {"name": "a", "Imports": "b"},
            {"name": "b", "Imports": "a"},
        ]})
        assert main(["--no-color", "check", str(path)]) == 1
        err = capsys.readouterr().err
        assert "error[E0101]" in err
        assert "\x1b[" not in err

    def test_malformed_manifest_is_validation_error(self, manifest_file, capsys):
        path = manifest_file('{"packages": [')
        assert main(["--no-color", "plan", str(path)]) == 1
        assert "invalid JSON" in capsys.readouterr().err

    def test_bad_constraint_is_validation_error(self, manifest_file, capsys):
        path = manifest_file({"packages": [{"name": "a", "Imports": "b (== 1.0)"}]})
        assert main(["--no-color", "plan", str(path)]) == 1
        assert "error[E0003]" in capsys.readouterr().err

    def test_not_exported_is_runtime_error(self, manifests, capsys):
        assert main(["--no-color", "resolve", manifests, "base::secret"]) == 2
        assert "error[E0303]" in capsys.readouterr().err

    def test_unknown_symbol_is_runtime_error(self, manifests):
        assert main(["resolve", manifests, "nothing"]) == 2

    def test_attach_unknown_package_is_runtime_error(self, manifests):
        assert main(["resolve", manifests, "dim", "--attach", "ghost"]) == 2

    def test_malformed_reference_is_runtime_error(self, manifests, capsys):
        assert main(["--no-color", "resolve", manifests, "a::b::c"]) == 2
        assert "error[E0308]: malformed reference 'a::b::c'" in capsys.readouterr().err

    def test_revdeps_unknown_package(self, manifests):
        assert main(["revdeps", manifests, "ghost"]) == 2

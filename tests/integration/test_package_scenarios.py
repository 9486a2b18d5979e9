"""
Integration tests: the build-time failure scenarios and attach/detach rules,
driven from JSON manifest documents through the loader and the engine.
"""

import threading
import pytest
from pkgns.analysis.manifest import LifecycleState, manifests_from_document
from pkgns.engine.driver import PackageEngine
from pkgns.shared.errors import (
    CyclicDependency, DetachBlocked, DuplicateExport, UndeclaredDependencyImport, VersionConflict,
)
from tests.test_utils import manifest

pytestmark = pytest.mark.integration


def _engine(packages, workers=None):
    return PackageEngine(manifests_from_document({"packages": packages}), workers=workers)


class TestBuildFailures:
    """Fail-fast validation; nothing is committed."""

    def test_version_conflict_names_both_requirers(self):
        eng = _engine([
            {"name": "lib", "version": "2.0.0"},
            {"name": "X", "Imports": "lib (>= 2.0)"},
            {"name": "Y", "dependencies": [{"name": "lib", "kind": "required", "constraint": ">= 1.0, < 2.0"}]},
        ])
        result = eng.load_all()
        assert not result.success
        err = result.error
        assert isinstance(err, VersionConflict)
        assert err.requirers == ["X", "Y"]
        assert dict(err.requirements) == {"X": ">= 2.0.0", "Y": ">= 1.0.0, < 2.0.0"}
        assert result.plan is None
        assert eng.loaded() == []

    def test_duplicate_export_even_with_identical_definitions(self):
        eng = _engine([{"name": "p", "namespace": "export(f)\nexport(f)", "definitions": {"f": 1}}])
        result = eng.load_all()
        assert isinstance(result.error, DuplicateExport)
        assert eng.state_of("p") is LifecycleState.MANIFESTED

    def test_undeclared_dependency_import_even_if_exported(self):
        eng = _engine([
            {"name": "Q", "exports": ["g"]},
            {"name": "P", "namespace": "importFrom(Q, g)"},
        ])
        result = eng.load_all()
        assert isinstance(result.error, UndeclaredDependencyImport)
        assert eng.loaded() == []

    def test_cycle_names_every_member_and_returns_no_plan(self):
        eng = _engine([
            {"name": "a", "Imports": "b"},
            {"name": "b", "LinkingTo": "c"},
            {"name": "c", "Depends": "a"},
        ])
        result = eng.load_all()
        assert isinstance(result.error, CyclicDependency)
        assert sorted(result.error.packages) == ["a", "b", "c"]
        assert result.plan is None

    def test_development_edges_do_not_order(self):
        eng = _engine([
            {"name": "a", "Suggests": "b"},
            {"name": "b", "Enhances": "a", "Imports": "c"},
            {"name": "c"},
        ])
        assert eng.plan().order == ("a", "c", "b")


class TestAttachDetach:
    """Search path rules through the engine."""

    def _engine(self):
        eng = PackageEngine([
            manifest("A", exports=["f"]),
            manifest("B", depends=["A"], exports=["g"]),
            manifest("C", exports=["f"]),
        ])
        assert eng.load_all().success
        return eng

    def test_detach_ordering(self):
        eng = self._engine()
        eng.attach("A")
        eng.attach("B")
        with pytest.raises(DetachBlocked) as exc:
            eng.detach("A")
        assert exc.value.blockers == ["B"]
        eng.detach("B")
        eng.detach("A")
        assert eng.search_path() == []

    def test_idempotent_attach(self):
        eng = self._engine()
        eng.attach("A")
        eng.attach("C")
        eng.attach("A")
        assert eng.search_path() == ["A", "C"]
        assert eng.resolve("f").package == "A"

    def test_find_and_conflicts(self):
        eng = self._engine()
        eng.attach("A")
        eng.attach("C")
        assert eng.find("f") == ["C", "A"]
        assert eng.conflicts() == ["f"]

    def test_concurrent_attach_detach_and_resolution(self):
        eng = self._engine()
        errors = []

        def toggle(name):
            try:
                for _ in range(100):
                    eng.attach(name)
                    eng.detach(name)
            except Exception as e:  # surfaced by the assertion below
                errors.append(e)

        def resolver():
            try:
                for _ in range(300):
                    result = eng.try_resolve("f")
                    if result.is_ok():
                        assert result.unwrap().package in ("A", "C")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=toggle, args=(n,)) for n in ("A", "C")]
        threads.append(threading.Thread(target=resolver))
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
        assert eng.search_path() == []


class TestParallelLoad:
    """load_all(workers) equals the sequential result."""

    def _packages(self):
        packages = [{"name": "root", "exports": ["r"], "definitions": {"r": 0}}]
        for i in range(10):
            packages.append({"name": f"leaf{i}", "Imports": "root",
                             "namespace": f"importFrom(root, r)\nexport(l{i})"})
        packages.append({"name": "top", "Imports": ", ".join(f"leaf{i}" for i in range(10)),
                         "namespace": "\n".join(f"import(leaf{i})" for i in range(10))})
        return packages

    def test_same_namespaces(self):
        sequential = _engine(self._packages())
        parallel = _engine(self._packages(), workers=4)
        assert sequential.load_all().success
        assert parallel.load_all().success
        for name in sequential.loaded():
            assert sequential.namespace(name) == parallel.namespace(name)
        assert sorted(parallel.namespace("top").imports) == [f"l{i}" for i in range(10)]

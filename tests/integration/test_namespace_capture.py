"""
Integration tests: namespace capture versus search path shadowing, end to
end through PackageEngine.

base exports dim; util imports dim from base and exports nrow, which calls
the imported dim; other (unrelated to util) exports its own dim.
"""

import pytest
from pkgns.runtime.resolver import Internal, TopLevel

pytestmark = pytest.mark.integration


class TestNamespaceCapture:
    """Internal resolution never consults the search path."""

    def test_top_level_is_shadowed_by_most_recent_attach(self, capture_engine):
        capture_engine.attach("base")
        assert capture_engine.resolve("dim", TopLevel()).package == "base"
        capture_engine.attach("other")
        assert capture_engine.resolve("dim", TopLevel()).package == "other"

    def test_internal_resolution_is_captured(self, capture_engine):
        capture_engine.attach("util")
        capture_engine.attach("other")
        assert capture_engine.resolve("dim", TopLevel()).package == "other"
        assert capture_engine.resolve("dim", Internal("util")).package == "base"

    def test_calling_nrow_unaffected_by_other(self, capture_engine):
        before = capture_engine.call("util::nrow", [1, 2, 3, 4])
        capture_engine.attach("base")
        capture_engine.attach("util")
        capture_engine.attach("other")
        after = capture_engine.call("nrow", [1, 2, 3, 4])
        assert before == after == 4
        # the top-level dim really is other's
        assert capture_engine.call("dim", [1, 2, 3, 4]) == ("other", -1)

    def test_attach_order_never_changes_internal_result(self, capture_engine):
        results = set()
        for order in (["other", "base", "util"], ["util", "base", "other"], ["base", "other", "util"]):
            for name in order:
                capture_engine.attach(name)
            results.add(capture_engine.call("util::nrow", [0, 0]))
            results.add(capture_engine.resolve("dim", Internal("util")).package)
            capture_engine.shutdown()
        assert results == {2, "base"}

    def test_detaching_shadow_restores_top_level(self, capture_engine):
        capture_engine.attach("base")
        capture_engine.attach("other")
        capture_engine.detach("other")
        assert capture_engine.resolve("dim").package == "base"

"""
Tests for Resolver dispatch over Internal / Qualified / TopLevel contexts,
parse_reference and the non-raising try_resolve API.
"""

import pytest
from pkgns.engine.driver import PackageEngine
from pkgns.runtime.resolver import Internal, Qualified, TopLevel, parse_reference
from pkgns.shared.definitions import DefKind
from pkgns.shared.errors import (
    LifecycleError, MalformedReference, NotExported, PackageNotFound, ResolutionError, UndefinedSymbol,
)
from tests.test_utils import manifest


@pytest.fixture
def engine():
    eng = PackageEngine([
        manifest("base", exports=["dim"], definitions={"dim": "base-dim", "internal_helper": 1}),
        manifest("util", imports=["base"], import_from=[("base", "dim")],
                 exports=["nrow"], definitions={"nrow": "util-nrow", "hidden": "util-hidden"}),
        manifest("later", imports=["base"]),
    ])
    eng.load("util")
    return eng


class TestParseReference:
    """Textual references."""

    def test_bare(self):
        assert parse_reference("dim") == ("dim", TopLevel())

    def test_exported(self):
        assert parse_reference("util::nrow") == ("nrow", Qualified("util"))

    def test_internal(self):
        assert parse_reference("util:::hidden") == ("hidden", Qualified("util", internal=True))

    @pytest.mark.parametrize("text", ["", "::x", "pkg::", "a::b::c"])
    def test_malformed(self, text):
        with pytest.raises(MalformedReference) as exc:
            parse_reference(text)
        assert exc.value.category == "runtime"

    def test_malformed_reference_through_engine(self, engine):
        with pytest.raises(ResolutionError):
            engine.call("util::")
        with pytest.raises(MalformedReference):
            engine.resolver.resolve_reference("a::b::c", package="util")


class TestInternalContext:
    """Internal(P): imports, own definitions, core."""

    def test_import(self, engine):
        assert engine.resolve("dim", Internal("util")).package == "base"

    def test_private_definition(self, engine):
        assert engine.resolve("hidden", Internal("util")).value == "util-hidden"

    def test_core_fallback(self, engine):
        definition = engine.resolve("sum", Internal("util"))
        assert definition.kind is DefKind.BUILTIN
        assert definition.package == "core"

    def test_undefined(self, engine):
        with pytest.raises(UndefinedSymbol) as exc:
            engine.resolve("nope", Internal("util"))
        assert "namespace:util" in str(exc.value)

    def test_unknown_package(self, engine):
        with pytest.raises(PackageNotFound):
            engine.resolve("x", Internal("ghost"))

    def test_registered_but_not_loaded(self, engine):
        with pytest.raises(LifecycleError):
            engine.resolve("x", Internal("later"))


class TestQualifiedContext:
    """pkg::name and pkg:::name."""

    def test_exported(self, engine):
        assert engine.resolve("nrow", Qualified("util")).value == "util-nrow"

    def test_private_is_not_exported(self, engine):
        with pytest.raises(NotExported) as exc:
            engine.resolve("hidden", Qualified("util"))
        assert exc.value.private
        assert "'hidden' is not an exported object from 'namespace:util'" in str(exc.value)
        assert "util:::hidden" in exc.value.help_text

    def test_imported_name_is_not_exported(self, engine):
        with pytest.raises(NotExported):
            engine.resolve("dim", Qualified("util"))

    def test_triple_colon_sees_private(self, engine):
        assert engine.resolve("hidden", Qualified("util", internal=True)).value == "util-hidden"

    def test_triple_colon_missing(self, engine):
        with pytest.raises(UndefinedSymbol):
            engine.resolve("nope", Qualified("util", internal=True))

    def test_core_is_qualifiable(self, engine):
        assert engine.resolve("sum", Qualified("core")).kind is DefKind.BUILTIN


class TestTopLevelContext:
    """Search path lookups."""

    def test_not_attached_is_undefined(self, engine):
        with pytest.raises(UndefinedSymbol):
            engine.resolve("nrow", TopLevel())

    def test_attached(self, engine):
        engine.attach("util")
        assert engine.resolve("nrow").package == "util"
        # imported names are not re-exported onto the search path
        with pytest.raises(UndefinedSymbol):
            engine.resolve("dim")


class TestTryResolve:
    """Result-returning API."""

    def test_ok(self, engine):
        result = engine.try_resolve("nrow", Qualified("util"))
        assert result.is_ok()
        assert result.unwrap().package == "util"

    def test_err(self, engine):
        result = engine.try_resolve("nope", Internal("util"))
        assert result.is_err()
        assert isinstance(result.unwrap_err(), ResolutionError)
        with pytest.raises(UndefinedSymbol):
            result.unwrap()

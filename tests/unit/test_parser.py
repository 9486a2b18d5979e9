"""
Tests for the Lark manifest-fragment parser: constraints, DESCRIPTION
dependency fields and NAMESPACE directives.
"""

import pytest
from pkgns.analysis.manifest import ImportDirective, RelationKind
from pkgns.shared.errors import ConstraintError, ManifestError
from pkgns.shared.version import Version


class TestConstraintParsing:
    """Version constraint strings."""

    def test_empty_and_any(self, parser):
        assert parser.parse_constraint(None).is_any
        assert parser.parse_constraint("  ").is_any
        assert parser.parse_constraint("any").is_any

    def test_single_comparison(self, parser):
        rng = parser.parse_constraint(">= 1.2")
        assert rng.lower == Version(1, 2)
        assert rng.upper is None

    def test_compound_comparison(self, parser):
        rng = parser.parse_constraint(">= 1.0, < 2.0")
        assert str(rng) == ">= 1.0.0, < 2.0.0"

    def test_exact_pin_rejected_with_location(self, parser):
        with pytest.raises(ConstraintError) as exc:
            parser.parse_constraint("== 1.0", source="<pin>")
        assert exc.value.location is not None
        assert exc.value.location.file == "<pin>"

    def test_garbage_reports_column(self, parser):
        with pytest.raises(ConstraintError) as exc:
            parser.parse_constraint(">= 1.0 junk", source="<c>")
        loc = exc.value.location
        assert loc.file == "<c>"
        assert loc.column > 1
        assert exc.value.source_text == ">= 1.0 junk"


class TestDependencyField:
    """DESCRIPTION-style dependency lists."""

    def test_names_and_constraints(self, parser):
        deps = parser.parse_dependency_field("dplyr (>= 1.0.0), rlang", RelationKind.REQUIRED)
        assert [d.name for d in deps] == ["dplyr", "rlang"]
        assert str(deps[0].constraint) == ">= 1.0.0"
        assert deps[1].constraint.is_any
        assert all(d.kind is RelationKind.REQUIRED for d in deps)

    def test_kind_carried_through(self, parser):
        deps = parser.parse_dependency_field("testthat", RelationKind.REQUIRED_DEV)
        assert deps[0].kind is RelationKind.REQUIRED_DEV

    def test_multiple_comparisons_in_parentheses(self, parser):
        deps = parser.parse_dependency_field("lib (>= 1.0, < 2.0)", RelationKind.ATTACH_REQUIRED)
        assert str(deps[0].constraint) == ">= 1.0.0, < 2.0.0"

    def test_empty_field(self, parser):
        assert parser.parse_dependency_field("", RelationKind.REQUIRED) == []

    def test_unbalanced_parenthesis(self, parser):
        with pytest.raises(ConstraintError):
            parser.parse_dependency_field("lib (>= 1.0", RelationKind.REQUIRED)


class TestNamespaceDirectives:
    """NAMESPACE text."""

    def test_export_import_and_import_from(self, parser):
        text = "\n".join([
            "# namespace of util",
            "export(nrow, ncol)",
            "import(methods)",
            "importFrom(base, dim, `length`)",
        ])
        directives = parser.parse_namespace(text)
        assert directives.exports == ["nrow", "ncol"]
        assert directives.imports == [
            ImportDirective("methods"),
            ImportDirective("base", "dim"),
            ImportDirective("base", "length"),
        ]

    def test_rename_on_import(self, parser):
        directives = parser.parse_namespace("importFrom(base, base_dim = dim)")
        imported = directives.imports[0]
        assert imported.source_symbol == "dim"
        assert imported.binding_name == "base_dim"

    def test_repeated_exports_are_kept(self, parser):
        directives = parser.parse_namespace("export(f)\nexport(f)")
        assert directives.exports == ["f", "f"]

    def test_bad_directive(self, parser):
        with pytest.raises(ManifestError):
            parser.parse_namespace("exportPattern(^[a-z])")

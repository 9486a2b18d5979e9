"""
Manifest fragment transformer: converts the Lark parse tree into engine
value types (version ranges, dependency pairs, namespace directives).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import logging

from lark import Transformer, v_args
from lark.lexer import Token

from ...shared.version import VersionConstraint, VersionRange
from ...analysis.manifest.model import ImportDirective

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class NamespaceDirectives:
    """Export and import directives read from one NAMESPACE text."""
    exports: List[str] = field(default_factory=list)
    imports: List[ImportDirective] = field(default_factory=list)


@v_args(inline=True)
class ManifestTransformer(Transformer):
    """
    Tree -> value transformer for all three start rules.

    Exceptions raised here (e.g. ConstraintError for an exact pin) reach the
    caller wrapped in ``lark.exceptions.VisitError``; ``ManifestParser``
    unwraps them.
    """

    # ---- constraints -------------------------------------------------------

    def comparison(self, operator: Token, version: Token) -> VersionConstraint:
        return VersionConstraint.of(str(operator), str(version))

    def constraint_spec(self, *comparisons: VersionConstraint) -> VersionRange:
        return VersionRange.from_constraints(comparisons)

    def any_constraint(self, _token: Token) -> VersionRange:
        return VersionRange.any()

    # ---- DESCRIPTION fields ------------------------------------------------

    def dependency(self, name: Token, *comparisons: VersionConstraint) -> Tuple[str, VersionRange]:
        return str(name), VersionRange.from_constraints(comparisons)

    def dependency_list(self, *dependencies: Tuple[str, VersionRange]) -> List[Tuple[str, VersionRange]]:
        return list(dependencies)

    # ---- NAMESPACE directives ----------------------------------------------

    def symbol(self, token: Token) -> str:
        text = str(token)
        if token.type == "QUOTED_SYMBOL":
            return text[1:-1]
        return text

    def import_item(self, name: str, source: Optional[str] = None) -> Tuple[str, Optional[str]]:
        # `local = source` renames; a bare name imports under its own name
        if source is None:
            return name, None
        return source, name

    def export_directive(self, *names: str) -> NamespaceDirectives:
        return NamespaceDirectives(exports=list(names))

    def import_directive(self, *packages: Token) -> NamespaceDirectives:
        return NamespaceDirectives(imports=[ImportDirective(str(p)) for p in packages])

    def import_from_directive(self, package: Token, *items: Tuple[str, Optional[str]]) -> NamespaceDirectives:
        return NamespaceDirectives(imports=[
            ImportDirective(str(package), source_symbol=symbol, local_name=local)
            for symbol, local in items
        ])

    def namespace_file(self, *directives: NamespaceDirectives) -> NamespaceDirectives:
        merged = NamespaceDirectives()
        for directive in directives:
            merged.exports.extend(directive.exports)
            merged.imports.extend(directive.imports)
        logger.debug(f"NAMESPACE: {len(merged.exports)} exports, {len(merged.imports)} imports")
        return merged

"""
Parser

Lark front end for the textual manifest fragments a packaging front end
hands the engine: version constraints, DESCRIPTION dependency fields and
NAMESPACE directives.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional
import logging

from lark import Lark
from lark.exceptions import UnexpectedInput, VisitError

from ..shared.errors import ConstraintError, ManifestError, PkgnsError
from ..shared.source_location import SourceLocation
from ..shared.version import VersionRange
from ..analysis.manifest.model import DependencySpec, RelationKind
from .transformers import ManifestTransformer, NamespaceDirectives

logger = logging.getLogger("pkgns.frontend.parser")

START_RULES = ["constraint_spec", "dependency_list", "namespace_file"]


class ManifestParser:
    """
    Parses manifest fragments into engine value types.

    - Single LALR parser with one start rule per fragment kind
    - Parse errors become ConstraintError/ManifestError carrying the
      fragment text so ErrorReporter can point at the offending column
    """

    def __init__(self):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            grammar_path,
            start=START_RULES,
            parser='lalr',
            maybe_placeholders=False,
        )
        self.transformer = ManifestTransformer()

    def parse_constraint(self, text: Optional[str], source: str = "<constraint>") -> VersionRange:
        """Parse ``">= 1.2, < 2"``; empty text and ``"any"`` mean any version."""
        if text is None or not str(text).strip():
            return VersionRange.any()
        return self._parse(str(text), "constraint_spec", source, ConstraintError)

    def parse_dependency_field(
        self,
        text: Optional[str],
        kind: RelationKind,
        source: str = "<dependencies>",
    ) -> List[DependencySpec]:
        """Parse a DESCRIPTION field such as ``"dplyr (>= 1.0.0), rlang"``."""
        if text is None or not str(text).strip():
            return []
        pairs = self._parse(str(text), "dependency_list", source, ConstraintError, field=kind.field_name)
        return [DependencySpec(name, kind, constraint) for name, constraint in pairs]

    def parse_namespace(self, text: Optional[str], source: str = "<NAMESPACE>") -> NamespaceDirectives:
        """Parse ``export(...)``, ``import(...)`` and ``importFrom(...)`` directives."""
        if text is None or not str(text).strip():
            return NamespaceDirectives()
        return self._parse(str(text), "namespace_file", source, ManifestError, field="namespace")

    def _parse(self, text: str, start: str, source: str, error_class, field: Optional[str] = None) -> Any:
        try:
            tree = self.parser.parse(text, start=start)
            return self.transformer.transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, PkgnsError):
                exc = e.orig_exc
                if exc.location is None:
                    exc.location = SourceLocation(file=source, field=field)
                raise exc from None
            raise
        except UnexpectedInput as e:
            location = SourceLocation(
                file=source,
                line=max(getattr(e, "line", 0) or 0, 0),
                column=max(getattr(e, "column", 0) or 0, 0),
                field=field,
            )
            logger.debug(f"Parse error in {source}: {e}")
            raise error_class(
                f"cannot parse {start.replace('_', ' ')} '{text.strip()}'",
                location=location,
                label="unexpected input here",
                source_text=text,
            ) from e


@lru_cache(maxsize=1)
def get_parser() -> ManifestParser:
    """Shared parser instance (grammar compiled once per process)."""
    return ManifestParser()


def parse_constraint(text: Optional[str], source: str = "<constraint>") -> VersionRange:
    return get_parser().parse_constraint(text, source)


def parse_dependency_field(text: Optional[str], kind: RelationKind, source: str = "<dependencies>") -> List[DependencySpec]:
    return get_parser().parse_dependency_field(text, kind, source)


def parse_namespace(text: Optional[str], source: str = "<NAMESPACE>") -> NamespaceDirectives:
    return get_parser().parse_namespace(text, source)

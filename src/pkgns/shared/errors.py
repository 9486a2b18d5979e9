"""
Error Reporting

Structured diagnostics for manifest, graph, namespace and resolution errors.
Every engine failure is a typed ``PkgnsError`` that converts to an ``Error``
diagnostic; ``ErrorReporter`` renders diagnostics rustc-style.
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .source_location import SourceLocation
from ..utils.config import COLOR_ENV_VAR


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get(COLOR_ENV_VAR, "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return True

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """One rendered-ready diagnostic."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None
    notes: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0003]: invalid version constraint '>= 1.x'
         --> <util:Imports>:1:13
          |
        1 | base (>= 1.x)
          |             ^ unexpected character
          |
          = help: constraints look like '>= 1.2.3'
    """
    out: List[str] = []

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    if source is None or not loc.line:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    gw = max(len(str(loc.line)), 1)
    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    span_len = loc.end_column - loc.column if loc.end_column > loc.column else 1
    carets = " " * col_start + "^" * span_len
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, _RED, color=color)
    )

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _append_annotations(
    out: List[str],
    error: Error,
    gw: int,
    color: bool,
) -> None:
    notes = ([error.note] if error.note else []) + list(error.notes)
    if not (error.help or notes):
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    for note in notes:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + note
        )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """Collects diagnostics and formats them for a front end."""

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files = source_files if source_files is not None else {}
        self.errors: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
        ))

    def report_exception(self, exc: "PkgnsError") -> None:
        """Record a typed engine error (keeps its field text for snippets)."""
        if exc.location is not None and exc.source_text is not None:
            self.source_files.setdefault(exc.location.file, exc.source_text)
        self.errors.append(exc.to_diagnostic())

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        parts = [self.format_error(e, color=color) for e in self.errors]
        use_color = color if color is not None else _use_color()
        count = len(self.errors)
        summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
        parts.append(
            _style("error", _BOLD, _RED, color=use_color)
            + _style(f": {summary}", _BOLD, color=use_color)
        )
        return "\n\n".join(parts)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def print_errors(self, color: Optional[bool] = None) -> None:
        if self.errors:
            print(self.format_all_errors(color=color), file=sys.stderr)


# ============================================================================
# Exception Classes
# ============================================================================

class PkgnsError(Exception):
    """
    Base exception for all engine errors.

    ``category`` is ``"validation"`` for build-time failures (manifest, graph,
    namespace) and ``"runtime"`` for attach/detach/lookup misuse.
    """
    code = "E0000"
    category = "validation"

    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 help: Optional[str] = None,
                 note: Optional[str] = None,
                 label: Optional[str] = None,
                 source_text: Optional[str] = None,
                 notes: Sequence[str] = ()):
        super().__init__(message)
        self.message = message
        self.location = location
        self.help_text = help
        self.note_text = note
        self.label_text = label
        self.source_text = source_text
        self.notes = list(notes)

    def to_diagnostic(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.code,
            help=self.help_text,
            note=self.note_text,
            label=self.label_text,
            notes=list(self.notes),
        )

    def __str__(self):
        if self.location:
            return f"error[{self.code}]: {self.message}\n --> {self.location}"
        return f"error[{self.code}]: {self.message}"


# -- manifests ---------------------------------------------------------------

class ManifestError(PkgnsError):
    """Malformed manifest input."""
    code = "E0001"


class DuplicatePackage(ManifestError):
    code = "E0002"

    def __init__(self, package: str, location: Optional[SourceLocation] = None):
        super().__init__(
            f"package '{package}' is registered more than once",
            location,
            help="each package name may have exactly one manifest",
        )
        self.package = package


class ConstraintError(ManifestError):
    """Invalid or unsupported version constraint."""
    code = "E0003"


# -- dependency graph ----------------------------------------------------------

class GraphError(PkgnsError):
    """Dependency graph validation failure."""


class CyclicDependency(GraphError):
    code = "E0101"

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"cyclic dependency: {' -> '.join(self.cycle)}",
            help="break the cycle by moving one edge to Suggests or Enhances",
        )

    @property
    def packages(self) -> List[str]:
        """Distinct packages on the cycle, in cycle order."""
        return self.cycle[:-1] if len(self.cycle) > 1 and self.cycle[0] == self.cycle[-1] else list(self.cycle)


class VersionConflict(GraphError):
    code = "E0102"

    def __init__(self,
                 package: str,
                 requirements: Sequence[Tuple[str, str]],
                 installed: Optional[str] = None):
        self.package = package
        self.requirements = list(requirements)
        self.installed = installed
        wants = ", ".join(f"{who} requires {package} {constraint}" for who, constraint in self.requirements)
        if installed is not None:
            message = f"version conflict on '{package}' {installed}: {wants}"
        else:
            message = f"version conflict on '{package}': {wants}"
        super().__init__(
            message,
            note="only one version of a package can be loaded at a time",
            notes=[f"required by {who}: {constraint}" for who, constraint in self.requirements],
        )

    @property
    def requirers(self) -> List[str]:
        return [who for who, _ in self.requirements]


class MissingDependency(GraphError):
    code = "E0103"

    def __init__(self, package: str, dependency: str, kind: str):
        self.package = package
        self.dependency = dependency
        self.kind = kind
        super().__init__(
            f"package '{package}' depends on '{dependency}' ({kind}), which is not registered",
            help=f"register a manifest for '{dependency}' or remove the dependency",
        )


class SelfDependency(GraphError):
    code = "E0104"

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"package '{package}' depends on itself")


# -- namespaces ---------------------------------------------------------------

class NamespaceError(PkgnsError):
    """Namespace (export/import table) build failure."""


class DuplicateExport(NamespaceError):
    code = "E0201"

    def __init__(self, package: str, symbol: str):
        self.package = package
        self.symbol = symbol
        super().__init__(
            f"'{symbol}' is exported more than once by package '{package}'",
            help="remove the repeated export directive",
        )


class UnresolvedImport(NamespaceError):
    code = "E0202"

    def __init__(self, package: str, source_package: str, symbol: str,
                 available: Sequence[str] = ()):
        self.package = package
        self.source_package = source_package
        self.symbol = symbol
        note = f"'{source_package}' exports: {', '.join(sorted(available))}" if available else None
        super().__init__(
            f"package '{package}' imports '{symbol}' from '{source_package}', which does not export it",
            note=note,
        )


class UndeclaredDependencyImport(NamespaceError):
    code = "E0203"

    def __init__(self, package: str, source_package: str, symbol: Optional[str] = None):
        self.package = package
        self.source_package = source_package
        self.symbol = symbol
        what = f"'{symbol}' from '{source_package}'" if symbol else f"package '{source_package}'"
        super().__init__(
            f"package '{package}' imports {what} without declaring it as a dependency",
            help=f"add '{source_package}' to Imports or Depends",
        )


# -- runtime resolution -------------------------------------------------------

class ResolutionError(PkgnsError):
    """Recoverable runtime resolution error."""
    category = "runtime"


class DetachBlocked(ResolutionError):
    code = "E0301"

    def __init__(self, package: str, blockers: Sequence[str]):
        self.package = package
        self.blockers = sorted(blockers)
        super().__init__(
            f"cannot detach '{package}': still required by attached {', '.join(self.blockers)}",
            help="detach the dependent packages first",
        )


class UndefinedSymbol(ResolutionError):
    code = "E0302"

    def __init__(self, symbol: str, context: str):
        self.symbol = symbol
        self.context = context
        super().__init__(f"object '{symbol}' not found ({context})")


class NotExported(ResolutionError):
    code = "E0303"

    def __init__(self, package: str, symbol: str, private: bool = False):
        self.package = package
        self.symbol = symbol
        self.private = private
        help = f"use {package}:::{symbol} to reach the internal object" if private else None
        super().__init__(
            f"'{symbol}' is not an exported object from 'namespace:{package}'",
            help=help,
        )


class NotFound(ResolutionError):
    code = "E0304"

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"'{symbol}' not found on the search path")


class PackageNotFound(ResolutionError):
    code = "E0305"

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"there is no package called '{package}'")


class LifecycleError(ResolutionError):
    code = "E0306"

    def __init__(self, package: str, state: str, operation: str):
        self.package = package
        self.state = state
        self.operation = operation
        super().__init__(f"cannot {operation} '{package}' while it is {state}")


class NotCallable(ResolutionError):
    code = "E0307"

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"attempt to apply non-function '{symbol}'")


class MalformedReference(ResolutionError):
    code = "E0308"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(
            f"malformed reference '{reference}'" if reference else "empty reference",
            help="write name, pkg::name or pkg:::name",
        )

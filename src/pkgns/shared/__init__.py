"""
Shared components: value types, definitions and diagnostics.
"""

from .source_location import SourceLocation
from .definitions import Definition, DefKind, core_definitions
from .version import Version, VersionConstraint, VersionRange, Comparator
from .errors import (
    Error, ErrorReporter, PkgnsError,
    ManifestError, DuplicatePackage, ConstraintError,
    GraphError, CyclicDependency, VersionConflict, MissingDependency, SelfDependency,
    NamespaceError, DuplicateExport, UnresolvedImport, UndeclaredDependencyImport,
    ResolutionError, DetachBlocked, UndefinedSymbol, NotExported, NotFound,
    PackageNotFound, LifecycleError, NotCallable, MalformedReference,
)

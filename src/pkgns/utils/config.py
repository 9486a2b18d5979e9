"""
Configuration constants to replace magic strings throughout pkgns
"""

# Reference syntax constants
QUALIFIED_SEPARATOR = "::"    # pkg::name  (exported symbols only)
INTERNAL_SEPARATOR = ":::"    # pkg:::name (private symbols too)

# Core namespace constants
CORE_PACKAGE = "core"
DEFAULT_CORE_BUILTINS = (
    "c", "length", "dim", "nrow", "ncol", "sum", "print", "identical", "stop",
)

# Version constants
VERSION_COMPONENTS = 3        # (major, minor, patch)
ANY_CONSTRAINT = "any"

# Manifest field constants (DESCRIPTION-style dependency fields)
DEPENDENCY_FIELDS = ("Depends", "Imports", "LinkingTo", "Suggests", "Enhances")
NAMESPACE_FIELD = "namespace"

# CLI exit codes
EXIT_OK = 0
EXIT_VALIDATION_ERROR = 1
EXIT_RUNTIME_ERROR = 2

# Diagnostics
COLOR_ENV_VAR = "PKGNS_COLOR"

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

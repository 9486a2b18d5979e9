"""
pkgns: package dependency and namespace resolution engine.

Builds a validated load order from package manifests, builds per-package
namespaces (export and import tables) and resolves symbol references with
namespace capture, alongside an attach/detach search path for top-level
lookups.
"""

__version__ = "0.1.0"

from .shared import (
    Version, VersionConstraint, VersionRange, Definition, DefKind,
    PkgnsError, ErrorReporter,
)
from .analysis.manifest import (
    RelationKind, LifecycleState, DependencySpec, ImportDirective, PackageManifest,
    ManifestStore, ManifestLoader, load_manifests,
)
from .analysis.dependency_graph import (
    DependencyEdge, DependencyGraphBuilder, LoadPlan, build_load_plan,
    reverse_dependencies, version_change_impact,
)
from .analysis.namespace import Namespace, NamespaceRegistry
from .runtime import (
    SearchPathManager, Resolver, Internal, Qualified, TopLevel, parse_reference,
    NamespaceFunction, NamespaceEnvironment,
)
from .engine import PackageEngine, BuildResult

__all__ = [
    '__version__',
    'Version', 'VersionConstraint', 'VersionRange', 'Definition', 'DefKind',
    'PkgnsError', 'ErrorReporter',
    'RelationKind', 'LifecycleState', 'DependencySpec', 'ImportDirective', 'PackageManifest',
    'ManifestStore', 'ManifestLoader', 'load_manifests',
    'DependencyEdge', 'DependencyGraphBuilder', 'LoadPlan', 'build_load_plan',
    'reverse_dependencies', 'version_change_impact',
    'Namespace', 'NamespaceRegistry',
    'SearchPathManager', 'Resolver', 'Internal', 'Qualified', 'TopLevel', 'parse_reference',
    'NamespaceFunction', 'NamespaceEnvironment',
    'PackageEngine', 'BuildResult',
]

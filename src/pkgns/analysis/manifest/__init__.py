"""Manifests: data model, store, JSON loader."""

from .model import (
    RelationKind, LifecycleState, DependencySpec, ImportDirective, PackageManifest,
    HARD_KINDS, IMPORTABLE_KINDS,
)
from .store import ManifestStore
from .loader import ManifestLoader, load_manifests, manifests_from_document

__all__ = [
    'RelationKind',
    'LifecycleState',
    'DependencySpec',
    'ImportDirective',
    'PackageManifest',
    'HARD_KINDS',
    'IMPORTABLE_KINDS',
    'ManifestStore',
    'ManifestLoader',
    'load_manifests',
    'manifests_from_document',
]

"""
Manifest Store

Holds one manifest per package name. Pure data holder: registration and
lookup only, no validation of the graph (that is the builder's job).
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .model import PackageManifest
from ...shared.errors import DuplicatePackage

logger = logging.getLogger(__name__)


class ManifestStore:
    """
    Registry of parsed manifests keyed by package name.

    Iteration and ``names()`` are sorted by name so every consumer sees the
    same deterministic order.
    """

    def __init__(self, manifests: Iterable[PackageManifest] = ()):
        self._manifests: Dict[str, PackageManifest] = {}
        for manifest in manifests:
            self.register(manifest)

    def register(self, manifest: PackageManifest) -> None:
        if manifest.name in self._manifests:
            raise DuplicatePackage(manifest.name, manifest.location)
        self._manifests[manifest.name] = manifest
        logger.debug(f"Registered manifest {manifest}: {len(manifest.dependencies)} dependencies")

    def get(self, name: str) -> Optional[PackageManifest]:
        return self._manifests.get(name)

    def __getitem__(self, name: str) -> PackageManifest:
        return self._manifests[name]

    def __contains__(self, name: object) -> bool:
        return name in self._manifests

    def __len__(self) -> int:
        return len(self._manifests)

    def __iter__(self) -> Iterator[PackageManifest]:
        for name in self.names():
            yield self._manifests[name]

    def names(self) -> List[str]:
        return sorted(self._manifests)

    def __repr__(self) -> str:
        return f"ManifestStore({self.names()})"

"""
Namespace Types

Immutable per-package tables produced by the NamespaceRegistry and shared
read-only by every resolution query afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional

from ...shared.definitions import Definition
from ...shared.version import Version


@dataclass(frozen=True)
class ImportBinding:
    """A locally usable name bound to another package's export."""
    local_name: str
    source_package: str
    source_symbol: str
    definition: Definition
    whole_package: bool = False

    def __str__(self) -> str:
        return f"{self.local_name} <- {self.source_package}::{self.source_symbol}"


@dataclass(frozen=True)
class Namespace:
    """
    A loaded package's namespace.

    Internal references resolve through ``imports``, then the package's own
    definitions (``exports``, then ``private``), then ``core``. The search
    path is never consulted: whatever gets attached later cannot change what
    a name means inside this package.
    """
    package: str
    version: Version
    exports: Mapping[str, Definition]
    imports: Mapping[str, ImportBinding]
    private: Mapping[str, Definition] = field(default_factory=dict)
    core: Mapping[str, Definition] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        for name in ("exports", "imports", "private", "core"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def lookup_internal(self, name: str) -> Optional[Definition]:
        binding = self.imports.get(name)
        if binding is not None:
            return binding.definition
        definition = self.lookup_own(name)
        if definition is not None:
            return definition
        return self.core.get(name)

    def lookup_export(self, name: str) -> Optional[Definition]:
        return self.exports.get(name)

    def lookup_own(self, name: str) -> Optional[Definition]:
        """Exported or private definitions (``pkg:::name`` access)."""
        definition = self.exports.get(name)
        if definition is not None:
            return definition
        return self.private.get(name)

    def exported_names(self) -> List[str]:
        return sorted(self.exports)

    def __str__(self) -> str:
        return (f"Namespace({self.package} {self.version}, {len(self.exports)} exports, "
                f"{len(self.imports)} imports, {len(self.private)} private)")
